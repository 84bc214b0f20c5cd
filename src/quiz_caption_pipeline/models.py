from __future__ import annotations

from dataclasses import dataclass


@dataclass
class ScanState:
    window_open: bool = False
    past_threshold: bool = False


@dataclass
class ExtractionResult:
    prompt: str
    response: str
