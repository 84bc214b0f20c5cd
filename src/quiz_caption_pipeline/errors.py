from __future__ import annotations


class PipelineError(RuntimeError):
    """Base class for failures that abort a pipeline run."""


class EpisodeLookupError(PipelineError):
    pass


class CaptionDownloadError(PipelineError):
    pass


class ModelCallError(PipelineError):
    pass
