from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

from .captions import DEFAULT_BOILERPLATE, TriggerPolicy, build_trigger_policy


def _first_nonempty(*values: str | None) -> str | None:
    for value in values:
        if value is not None and str(value).strip():
            return str(value).strip()
    return None


def _float_env(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    return float(raw)


def _list_env(name: str) -> tuple[str, ...] | None:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return None
    return tuple(part.strip() for part in raw.split(",") if part.strip())


@dataclass
class StageLLMConfig:
    api_key: str | None
    provider: str | None
    model: str | None
    base_url: str | None = None


@dataclass
class TriggerConfig:
    policy: str
    prefixes: tuple[str, ...] | None
    threshold_prefix: str | None
    marker: str | None

    def build(self) -> TriggerPolicy:
        return build_trigger_policy(
            self.policy,
            prefixes=self.prefixes,
            threshold_prefix=self.threshold_prefix,
            marker=self.marker,
        )


@dataclass
class PipelineConfig:
    listing_url: str
    episode_base_url: str
    episode_link_selector: str
    http_timeout: float
    ytdlp_bin: str
    caption_file_stem: str
    caption_suffix: str
    trigger: TriggerConfig
    boilerplate: tuple[str, ...]
    extract: StageLLMConfig
    extract_temperature: float
    extract_prompt_file: Path | None
    output_root: Path

    @classmethod
    def from_env(cls) -> "PipelineConfig":
        load_dotenv()

        extract = StageLLMConfig(
            api_key=_first_nonempty(os.getenv("EXTRACT_API_KEY")),
            provider=_first_nonempty(os.getenv("EXTRACT_PROVIDER")),
            model=_first_nonempty(os.getenv("EXTRACT_MODEL"), "llama3"),
            base_url=_first_nonempty(os.getenv("OLLAMA_BASE_URL")),
        )
        trigger = TriggerConfig(
            policy=_first_nonempty(os.getenv("TRIGGER_POLICY"), "marker") or "marker",
            prefixes=_list_env("TRIGGER_PREFIXES"),
            threshold_prefix=_first_nonempty(os.getenv("TRIGGER_THRESHOLD")),
            marker=_first_nonempty(os.getenv("TRIGGER_MARKER")),
        )
        prompt_file = _first_nonempty(os.getenv("EXTRACT_PROMPT_FILE"))

        return cls(
            listing_url=_first_nonempty(
                os.getenv("LISTING_URL"), "https://www.france.tv/france-3/questions-pour-un-champion"
            )
            or "https://www.france.tv/france-3/questions-pour-un-champion",
            episode_base_url=_first_nonempty(os.getenv("EPISODE_BASE_URL"), "https://www.france.tv")
            or "https://www.france.tv",
            episode_link_selector=_first_nonempty(
                os.getenv("EPISODE_LINK_SELECTOR"), "a.js-program-content-continue-watching"
            )
            or "a.js-program-content-continue-watching",
            http_timeout=_float_env("HTTP_TIMEOUT", 30.0),
            ytdlp_bin=_first_nonempty(os.getenv("YTDLP_BIN"), "yt-dlp") or "yt-dlp",
            caption_file_stem=_first_nonempty(os.getenv("CAPTION_FILE_STEM"), "qpuc") or "qpuc",
            caption_suffix=_first_nonempty(os.getenv("CAPTION_SUFFIX"), ".qsm.vtt") or ".qsm.vtt",
            trigger=trigger,
            boilerplate=_list_env("BOILERPLATE_FRAGMENTS") or DEFAULT_BOILERPLATE,
            extract=extract,
            extract_temperature=_float_env("EXTRACT_TEMPERATURE", 0.0),
            extract_prompt_file=Path(prompt_file) if prompt_file else None,
            output_root=Path(_first_nonempty(os.getenv("OUTPUT_ROOT"), "output") or "output"),
        )
