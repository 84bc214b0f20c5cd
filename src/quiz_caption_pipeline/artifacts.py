from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path


@dataclass(frozen=True)
class StagePaths:
    replay_dir: Path
    parsed_transcript: Path
    human_readable: Path
    prompt: Path
    response: Path

    @classmethod
    def under(cls, output_root: Path) -> "StagePaths":
        return cls(
            replay_dir=output_root / "1_qpuc_replay",
            parsed_transcript=output_root / "2_parsed_subtitles" / "parsed_vtt.txt",
            human_readable=output_root / "3_human_readable_subtitles" / "human_readable_subs.txt",
            prompt=output_root / "4_ai_prompt" / "prompt.txt",
            response=output_root / "5_ai_output" / "ai_response.txt",
        )


def write_text(output_path: Path, content: str) -> None:
    output_path.parent.mkdir(parents=True, exist_ok=True)
    output_path.write_text(content, encoding="utf-8")
