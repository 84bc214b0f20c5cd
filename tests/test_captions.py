"""Tests for the caption window scanner."""

import pytest

from quiz_caption_pipeline.captions import (
    MARKUP_TOKENS,
    FixedTimestampTrigger,
    LineStream,
    MarkerTrigger,
    MultiTimestampTrigger,
    build_trigger_policy,
    clean_caption_line,
    extract_transcript,
    format_human_readable,
    is_content_line,
    iter_window_lines,
    parse_caption_file,
)


# ---------------------------------------------------------------------------
# Window-start policies
# ---------------------------------------------------------------------------

def test_fixed_trigger_excludes_lines_before_window():
    content = "\n".join(
        [
            "00:32:10.000 --> 00:32:12.000",
            "before window",
            "00:33:05.000 --> 00:33:07.000",
            "<c.cyan>Thème</c> histoire ",
        ]
    )
    assert extract_transcript(content, FixedTimestampTrigger("00:33:")) == "Thème histoire "


def test_multi_trigger_opens_on_any_candidate_prefix():
    content = "\n".join(
        [
            "00:29:59.000 --> 00:30:00.000",
            "trop tôt",
            "00:31:02.000 --> 00:31:04.000",
            "Début de la manche",
        ]
    )
    policy = MultiTimestampTrigger(("00:30:", "00:31:", "00:32:", "00:33:"))
    assert extract_transcript(content, policy) == "Début de la manche "


def test_multi_trigger_with_sample(sample_vtt):
    assert extract_transcript(sample_vtt, MultiTimestampTrigger()) == (
        "-Et voici vos cadeaux !  Face-à-face, thème : cinéma. -Je vous écoute. -Spielberg ! "
    )


def test_marker_trigger_opens_after_marker_line():
    content = "\n".join(
        [
            "00:33:58.000 --> 00:33:59.000",
            "<c.cyan>",
            "",
            "00:34:00.000 --> 00:34:01.000",
            "avant l'annonce",
            "<c.cyan>",
            "",
            "00:34:02.000 --> 00:34:05.000",
            "Thème : cinéma",
        ]
    )
    policy = MarkerTrigger(threshold_prefix="00:34:", marker="<c.cyan>")
    assert extract_transcript(content, policy) == "Thème : cinéma "


def test_marker_trigger_with_sample(sample_vtt):
    assert extract_transcript(sample_vtt, MarkerTrigger()) == (
        "Face-à-face, thème : cinéma. -Je vous écoute. -Spielberg ! "
    )


def test_marker_needs_blank_following_line():
    content = "\n".join(
        [
            "00:34:00.000 --> 00:34:01.000",
            "<c.cyan>Question",
            "suite",
        ]
    )
    assert extract_transcript(content, MarkerTrigger(threshold_prefix="00:34:")) == ""


def test_marker_on_last_line_is_not_a_trigger():
    content = "00:34:00.000 --> 00:34:01.000\n<c.cyan>"
    policy = MarkerTrigger(threshold_prefix="00:34:")
    assert extract_transcript(content, policy) == ""


def test_window_never_closes_once_open():
    content = "\n".join(
        [
            "00:33:00.000 --> 00:33:01.000",
            "premier",
            "00:10:00.000 --> 00:10:01.000",
            "deuxième",
            "<c.cyan>",
            "",
            "troisième",
        ]
    )
    assert list(iter_window_lines(content, FixedTimestampTrigger("00:33:"))) == [
        "premier",
        "deuxième",
        "",
        "troisième",
    ]


def test_tag_only_line_keeps_its_separator():
    content = "\n".join(
        [
            "00:30:40.000 --> 00:30:42.000",
            "avant",
            "<c.cyan>",
            "",
            "00:30:43.000 --> 00:30:47.000",
            "après",
        ]
    )
    assert extract_transcript(content, MultiTimestampTrigger()) == "avant  après "
    assert extract_transcript("00:30:00.000 --> 00:30:01.000\n</c>", MultiTimestampTrigger()) == " "


def test_no_trigger_yields_empty_transcript(sample_vtt):
    assert extract_transcript(sample_vtt, FixedTimestampTrigger("00:45:")) == ""


# ---------------------------------------------------------------------------
# Line qualification and cleanup
# ---------------------------------------------------------------------------

def test_structural_lines_never_appear():
    content = "\n".join(
        [
            "WEBVTT",
            "",
            "42",
            "00:00:01.000 --> 00:00:02.000",
            "   ",
            "Il y a 42 questions",
        ]
    )
    policy = FixedTimestampTrigger("")
    assert list(iter_window_lines(content, policy)) == ["WEBVTT", "Il y a 42 questions"]


@pytest.mark.parametrize(
    "line, expected",
    [
        ("", False),
        ("   ", False),
        ("12", False),
        (" 7 ", False),
        ("00:30:05.000 --> 00:30:08.000 line:90%", False),
        ("12 candidats", True),
        ("<c.cyan>", True),
    ],
)
def test_is_content_line(line, expected):
    assert is_content_line(line) is expected


def test_all_markup_tokens_are_stripped():
    line = "".join(MARKUP_TOKENS) + " Bonjour " + "".join(reversed(MARKUP_TOKENS))
    cleaned = clean_caption_line(line)
    assert cleaned == "Bonjour"
    for token in MARKUP_TOKENS:
        assert token not in cleaned


def test_boilerplate_removed_and_text_kept():
    assert clean_caption_line("<c.green>-Spielberg !</c> france.tv access") == "-Spielberg !"
    assert clean_caption_line("Réponse : Paris france.tv access") == "Réponse : Paris"


def test_custom_boilerplate_fragments():
    assert clean_caption_line("Sous-titrage ST' 501 Bonjour", ("Sous-titrage ST' 501",)) == "Bonjour"


def test_unknown_tags_are_left_alone():
    assert clean_caption_line("<c.blue>texte</c>") == "<c.blue>texte"


def test_extraction_is_idempotent(sample_vtt):
    policy = MarkerTrigger()
    assert extract_transcript(sample_vtt, policy) == extract_transcript(sample_vtt, policy)


def test_crlf_line_endings(sample_vtt):
    crlf = sample_vtt.replace("\n", "\r\n")
    assert extract_transcript(crlf, MarkerTrigger()) == extract_transcript(sample_vtt, MarkerTrigger())


def test_parse_caption_file_reads_utf8(sample_vtt_file):
    assert parse_caption_file(sample_vtt_file, MarkerTrigger()).startswith("Face-à-face")


def test_parse_caption_file_missing_file_raises(tmp_path):
    with pytest.raises(FileNotFoundError):
        parse_caption_file(tmp_path / "absent.vtt", MarkerTrigger())


# ---------------------------------------------------------------------------
# Lookahead stream
# ---------------------------------------------------------------------------

def test_line_stream_peek_does_not_consume():
    stream = LineStream(["a", "b"])
    assert stream.peek() == "a"
    assert next(stream) == "a"
    assert stream.peek() == "b"
    assert stream.peek() == "b"
    assert list(stream) == ["b"]
    assert stream.peek() is None


def test_line_stream_peek_on_empty_input():
    assert LineStream([]).peek() is None


# ---------------------------------------------------------------------------
# Policy factory and formatting
# ---------------------------------------------------------------------------

def test_build_trigger_policy_by_name():
    assert build_trigger_policy("fixed", prefixes=["00:31:"]) == FixedTimestampTrigger("00:31:")
    assert build_trigger_policy("MULTI") == MultiTimestampTrigger()
    assert build_trigger_policy("marker", threshold_prefix="00:34:", marker="<c.red>") == MarkerTrigger(
        threshold_prefix="00:34:", marker="<c.red>"
    )


def test_build_trigger_policy_rejects_unknown_name():
    with pytest.raises(ValueError, match="Unknown trigger policy"):
        build_trigger_policy("sometimes")


def test_format_human_readable_breaks_on_speaker_turns():
    transcript = "-Et voici vos cadeaux ! Face-à-face, thème : cinéma. -Je vous écoute. -Spielberg ! "
    assert format_human_readable(transcript) == (
        "-Et voici vos cadeaux ! Face-à-face, thème : cinéma.\n- Je vous écoute.\n- Spielberg ! "
    )
