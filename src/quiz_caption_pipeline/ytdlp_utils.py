from __future__ import annotations

import logging
import shlex
import subprocess
from pathlib import Path

from .errors import CaptionDownloadError


logger = logging.getLogger(__name__)


def _run(cmd: list[str]) -> str:
    rendered = " ".join(shlex.quote(part) for part in cmd)
    try:
        completed = subprocess.run(cmd, check=True, capture_output=True, text=True)
    except FileNotFoundError as exc:
        raise CaptionDownloadError(f"Command not found: {cmd[0]}") from exc
    except subprocess.CalledProcessError as exc:
        detail = (exc.stderr or "").strip()
        raise CaptionDownloadError(f"Command failed ({exc.returncode}): {rendered}: {detail}") from exc
    # Run quietly; anything on stderr is a diagnostic we do not trust.
    if completed.stderr and completed.stderr.strip():
        raise CaptionDownloadError(f"Command reported errors: {rendered}: {completed.stderr.strip()}")
    return completed.stdout


def caption_path(output_dir: Path, file_stem: str, caption_suffix: str) -> Path:
    return output_dir / f"{file_stem}{caption_suffix}"


def download_captions(
    ytdlp_bin: str,
    url: str,
    output_dir: Path,
    *,
    file_stem: str = "qpuc",
    caption_suffix: str = ".qsm.vtt",
) -> Path:
    target = caption_path(output_dir, file_stem, caption_suffix)
    if target.exists():
        logger.info("Captions already downloaded at %s, skipping", target)
        return target

    output_dir.mkdir(parents=True, exist_ok=True)
    cmd = [
        ytdlp_bin,
        "-P",
        str(output_dir),
        "-o",
        f"{file_stem}.%(ext)s",
        "-q",
        "--write-subs",
        "--skip-download",
        url,
    ]
    _run(cmd)
    if not target.exists():
        raise CaptionDownloadError(f"Download finished but no caption file was written at {target}")
    return target
