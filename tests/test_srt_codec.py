from dataclasses import replace

import pytest

from srtalign import segment_ops
from srtalign.exceptions import SrtFormatError
from srtalign.models import ValidationLimits
from srtalign.srt_codec import SRTCodec

SAMPLE = (
    "1\n"
    "00:00:01,000 --> 00:00:03,000\n"
    "Hello there.\n"
    "\n"
    "2\n"
    "00:00:03,000 --> 00:00:03,400\n"
    "Two\n"
    "lines\n"
)


def test_parse_reads_blocks_and_flags():
    segments = SRTCodec().parse(SAMPLE, source_file="movie.srt")

    assert [seg.id for seg in segments] == [1, 2]
    assert segments[0].text == "Hello there."
    assert segments[1].text == "Two\nlines"
    assert segments[1].char_count == 8
    assert segments[1].is_too_short
    assert all(seg.has_timecode_conflict for seg in segments)
    assert all(seg.source_file == "movie.srt" for seg in segments)


def test_parse_tolerates_bom_crlf_and_loose_arrows():
    raw = "\ufeff1\r\n00:00:01,000-->00:00:02,000\r\nHi\r\n\r\n\r\n2\r\n00:00:05,000   -->   00:00:06,500\r\nBye\r\n"
    segments = SRTCodec().parse(raw)

    assert [(seg.start_time, seg.end_time, seg.text) for seg in segments] == [
        ("00:00:01,000", "00:00:02,000", "Hi"),
        ("00:00:05,000", "00:00:06,500", "Bye"),
    ]


def test_malformed_blocks_are_skipped(caplog):
    raw = (
        "1\n00:00:01,000 --> 00:00:02,000\nGood\n\n"
        "no id here\n00:00:03,000 --> 00:00:04,000\nMissing id\n\n"
        "3\n00:00:05.000 --> 00:00:06,000\nDot instead of comma\n\n"
        "4\nno timecode\n\n"
        "5\n00:00:07,000 --> 00:00:08,000\nAlso good\n"
    )
    segments = SRTCodec().parse(raw)

    assert [seg.id for seg in segments] == [1, 5]
    assert "Skipping" in caplog.text


def test_empty_input_gives_no_segments():
    assert SRTCodec().parse("") == []
    assert SRTCodec().parse("\ufeff  \n") == []


def test_serialize_round_trip():
    codec = SRTCodec()
    segments = codec.parse(SAMPLE)
    text = codec.serialize(segments)

    assert text == SAMPLE
    again = codec.parse(text)
    assert [(s.id, s.start_time, s.end_time, s.text) for s in again] == \
        [(s.id, s.start_time, s.end_time, s.text) for s in segments]


def test_edited_text_survives_a_save_and_reload(caplog):
    codec = SRTCodec()
    limits = ValidationLimits()
    segments = codec.parse(SAMPLE)
    segments = segment_ops.update_text(segments, 1, "Line one<br><br>Line two", limits)
    segments = segment_ops.update_text(segments, 2, "text\n", limits)

    again = codec.parse(codec.serialize(segments))

    assert [(s.id, s.text) for s in again] == [(1, "Line one\nLine two"), (2, "text")]
    assert "Skipping" not in caplog.text


def test_serialize_never_writes_a_blank_line_inside_a_cue():
    codec = SRTCodec()
    segments = [replace(seg, text="a\n \nb\n") for seg in codec.parse(SAMPLE)]

    again = codec.parse(codec.serialize(segments))

    assert [(s.id, s.text) for s in again] == [(1, "a\nb"), (2, "a\nb")]


def test_parse_keeps_trailing_spaces_of_the_last_cue():
    segments = SRTCodec().parse("1\n00:00:01,000 --> 00:00:02,000\nLast line  \n\n")

    assert segments[0].text == "Last line  "


def test_write_and_read_file(tmp_path):
    codec = SRTCodec()
    path = tmp_path / "out" / "movie.srt"
    codec.write_file(codec.parse(SAMPLE), str(path))

    assert path.read_bytes().startswith(b"\xef\xbb\xbf")
    segments = codec.read_file(str(path))
    assert [seg.text for seg in segments] == ["Hello there.", "Two\nlines"]
    assert segments[0].source_file == "movie.srt"


def test_read_file_falls_back_to_latin1(tmp_path):
    path = tmp_path / "legacy.srt"
    path.write_bytes("1\n00:00:01,000 --> 00:00:02,000\nCafé\n".encode("latin-1"))
    assert SRTCodec().read_file(str(path))[0].text == "Café"


def test_read_file_errors(tmp_path):
    codec = SRTCodec()
    with pytest.raises(FileNotFoundError):
        codec.read_file(str(tmp_path / "missing.srt"))

    garbage = tmp_path / "garbage.srt"
    garbage.write_text("this is not a subtitle file", encoding="utf-8")
    with pytest.raises(SrtFormatError):
        codec.read_file(str(garbage))


def test_edited_filename():
    assert SRTCodec.edited_filename("movie.srt") == "movie_edited.srt"
    assert SRTCodec.edited_filename("dir/movie.srt", "_fixed") == "dir/movie_fixed.srt"
    assert SRTCodec.edited_filename("movie") == "movie_edited.srt"
