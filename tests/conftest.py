"""Shared caption fixtures.

The sample mirrors the shape of a replay captions track: a WEBVTT header,
numbered cues, color-tagged payload lines and the broadcaster's accessibility
credit.
"""

from pathlib import Path

import pytest


SAMPLE_VTT = """WEBVTT

1
00:29:58.000 --> 00:30:01.000
<c.white>On se retrouve après la pub.</c>

2
00:30:05.000 --> 00:30:08.000
<c.yellow>-Et voici vos cadeaux !</c>

3
00:30:40.000 --> 00:30:42.000
<c.cyan>

4
00:30:43.000 --> 00:30:47.000
<c.cyan>Face-à-face, thème : cinéma.</c>
-Je vous écoute.

5
00:30:48.000 --> 00:30:50.000
<c.green>-Spielberg !</c> france.tv access
"""


@pytest.fixture
def sample_vtt() -> str:
    return SAMPLE_VTT


@pytest.fixture
def sample_vtt_file(tmp_path: Path) -> Path:
    path = tmp_path / "qpuc.qsm.vtt"
    path.write_text(SAMPLE_VTT, encoding="utf-8")
    return path
