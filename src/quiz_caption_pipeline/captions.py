"""Caption window extraction.

Walks a WebVTT caption file line by line, waits for a trigger policy to open
the final-round window and joins the cleaned spoken text of every following
cue into one flat transcript.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Iterable, Iterator, Sequence
from dataclasses import dataclass
from pathlib import Path
from typing import Protocol

from .models import ScanState


logger = logging.getLogger(__name__)


MARKUP_TOKENS: tuple[str, ...] = (
    "<c.white>",
    "<c.magenta>",
    "<c.red>",
    "<c.green>",
    "<c.cyan>",
    "<c.yellow>",
    "</c>",
)
DEFAULT_BOILERPLATE: tuple[str, ...] = ("france.tv access",)

DEFAULT_FIXED_PREFIX = "00:33:"
DEFAULT_MULTI_PREFIXES: tuple[str, ...] = ("00:30:", "00:31:", "00:32:", "00:33:")
DEFAULT_THRESHOLD_PREFIX = "00:30:"
DEFAULT_MARKER = "<c.cyan>"

CUE_INDEX_RE = re.compile(r"^\d+$")
TIMING_SEPARATOR = "-->"


class LineStream:
    """Iterator over caption lines with one line of safe lookahead."""

    def __init__(self, lines: Iterable[str]) -> None:
        self._lines = iter(lines)
        self._buffer: list[str] = []

    def __iter__(self) -> LineStream:
        return self

    def __next__(self) -> str:
        if self._buffer:
            return self._buffer.pop()
        return next(self._lines)

    def peek(self) -> str | None:
        """Return the next line without consuming it, or None at end of input."""
        if not self._buffer:
            try:
                self._buffer.append(next(self._lines))
            except StopIteration:
                return None
        return self._buffer[-1]


class TriggerPolicy(Protocol):
    includes_trigger_line: bool

    def opens_window(self, line: str, stream: LineStream, state: ScanState) -> bool: ...


@dataclass(frozen=True)
class FixedTimestampTrigger:
    prefix: str = DEFAULT_FIXED_PREFIX
    includes_trigger_line: bool = True

    def opens_window(self, line: str, stream: LineStream, state: ScanState) -> bool:
        return line.startswith(self.prefix)


@dataclass(frozen=True)
class MultiTimestampTrigger:
    prefixes: tuple[str, ...] = DEFAULT_MULTI_PREFIXES
    includes_trigger_line: bool = True

    def opens_window(self, line: str, stream: LineStream, state: ScanState) -> bool:
        return any(line.startswith(prefix) for prefix in self.prefixes)


@dataclass(frozen=True)
class MarkerTrigger:
    """Open after a timestamp floor, on a marker line followed by a blank line.

    The round announcement shows up as a colored cue closed by an empty line,
    which is steadier across episodes than the broadcast clock. The marker
    line itself stays out of the window.
    """

    threshold_prefix: str = DEFAULT_THRESHOLD_PREFIX
    marker: str = DEFAULT_MARKER
    includes_trigger_line: bool = False

    def opens_window(self, line: str, stream: LineStream, state: ScanState) -> bool:
        if not state.past_threshold:
            if line.startswith(self.threshold_prefix):
                state.past_threshold = True
            return False
        if self.marker not in line:
            return False
        next_line = stream.peek()
        # No following line is not a blank line.
        return next_line is not None and not next_line.strip()


def build_trigger_policy(
    name: str,
    *,
    prefixes: Sequence[str] | None = None,
    threshold_prefix: str | None = None,
    marker: str | None = None,
) -> TriggerPolicy:
    key = name.strip().lower()
    if key == "fixed":
        return FixedTimestampTrigger(prefix=prefixes[0] if prefixes else DEFAULT_FIXED_PREFIX)
    if key == "multi":
        return MultiTimestampTrigger(prefixes=tuple(prefixes) if prefixes else DEFAULT_MULTI_PREFIXES)
    if key == "marker":
        return MarkerTrigger(
            threshold_prefix=threshold_prefix or DEFAULT_THRESHOLD_PREFIX,
            marker=marker or DEFAULT_MARKER,
        )
    raise ValueError(f"Unknown trigger policy: {name!r} (expected fixed, multi or marker)")


def _removal_pattern(boilerplate: Sequence[str]) -> re.Pattern[str]:
    fragments = [*MARKUP_TOKENS, *(fragment for fragment in boilerplate if fragment)]
    return re.compile("|".join(re.escape(fragment) for fragment in fragments))


def clean_caption_line(line: str, boilerplate: Sequence[str] = DEFAULT_BOILERPLATE) -> str:
    return _removal_pattern(boilerplate).sub("", line.strip()).strip()


def is_content_line(line: str) -> bool:
    stripped = line.strip()
    if not stripped:
        return False
    if TIMING_SEPARATOR in stripped:
        return False
    return CUE_INDEX_RE.match(stripped) is None


def iter_window_lines(
    content: str,
    policy: TriggerPolicy,
    *,
    boilerplate: Sequence[str] = DEFAULT_BOILERPLATE,
) -> Iterator[str]:
    """Yield cleaned spoken-text lines from the window onward, in file order."""
    pattern = _removal_pattern(boilerplate)
    state = ScanState()
    stream = LineStream(content.splitlines())
    for line in stream:
        if not state.window_open and policy.opens_window(line, stream, state):
            state.window_open = True
            if not policy.includes_trigger_line:
                continue
        if not state.window_open or not is_content_line(line):
            continue
        # Qualification runs on the raw line; a bare tag still yields "".
        yield pattern.sub("", line.strip()).strip()


def extract_transcript(
    content: str,
    policy: TriggerPolicy,
    *,
    boilerplate: Sequence[str] = DEFAULT_BOILERPLATE,
) -> str:
    return "".join(f"{text} " for text in iter_window_lines(content, policy, boilerplate=boilerplate))


def parse_caption_file(
    path: Path,
    policy: TriggerPolicy,
    *,
    boilerplate: Sequence[str] = DEFAULT_BOILERPLATE,
) -> str:
    content = path.read_text(encoding="utf-8")
    transcript = extract_transcript(content, policy, boilerplate=boilerplate)
    if not transcript:
        logger.warning("No caption text found in window for %s (policy=%r)", path, policy)
    return transcript


def format_human_readable(transcript: str) -> str:
    """Put every hyphen-introduced speaker turn on its own line."""
    return transcript.replace(" -", "\n- ")
