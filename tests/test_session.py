from srtalign.models import ValidationLimits
from srtalign.session import EditorSession, SubtitleDocument
from srtalign.timeline import SegmentFilter

TRANSLATED = (
    "1\n00:00:00,000 --> 00:00:00,500\nHola\n\n"
    "2\n00:00:00,500 --> 00:00:05,000\nEste es un subtítulo mucho más largo que hay que dividir\n\n"
    "3\n00:00:06,000 --> 00:00:08,000\nAdiós\n"
)
ORIGINAL = (
    "1\n00:00:00,000 --> 00:00:00,500\nHi\n\n"
    "2\n00:00:00,500 --> 00:00:05,000\nThis is a much longer subtitle that needs splitting\n\n"
    "3\n00:00:06,000 --> 00:00:08,000\nBye\n"
)


class FixedShortener:
    """Stands in for a model-backed shortener."""

    def __init__(self, answer):
        self.answer = answer
        self.calls = []

    def shorten(self, text, max_chars):
        self.calls.append((text, max_chars))
        return self.answer


def _document():
    session = EditorSession(ValidationLimits())
    return session, session.load_translated(TRANSLATED, "movie.es.srt")


def test_originals_are_paired_by_position():
    session, document = _document()
    session.load_original(ORIGINAL, "movie.es.srt")
    assert [seg.original_text for seg in document.segments] == ["Hi", "This is a much longer subtitle that needs splitting", "Bye"]

    # Loading the translation after the original pairs as well
    again = session.load_translated(TRANSLATED, "movie.es.srt")
    assert again.segments[2].original_text == "Bye"


def test_bulk_operation_can_be_undone():
    _, document = _document()
    before = list(document.segments)

    document.bulk_split(SegmentFilter(long_lines=True))
    assert len(document) == 4
    assert document.can_undo

    assert document.undo()
    assert document.segments == before
    assert not document.can_undo
    assert not document.undo()


def test_structural_and_text_edits_clear_the_snapshot():
    _, document = _document()
    document.remove_line_breaks()
    document.fix_timecode_conflicts(SegmentFilter(conflicts=True))
    assert document.can_undo

    document.update_text(3, "Hasta luego")
    assert not document.can_undo

    document.fix_timecode_conflicts(SegmentFilter(conflicts=True))
    document.merge_with_next(2)
    assert not document.can_undo


def test_no_op_bulk_operation_keeps_previous_snapshot():
    _, document = _document()
    document.fix_timecode_conflicts(SegmentFilter(conflicts=True))
    had_snapshot = document.can_undo
    document.bulk_merge(SegmentFilter(too_long=True))
    assert document.can_undo == had_snapshot


def test_cascade_through_the_document():
    _, document = _document()
    plan = document.plan_cascade()
    assert plan.can_be_fixed

    document.apply_cascade(plan)
    assert document.segment(1).end_time == "00:00:01,000"
    assert document.can_undo
    document.undo()
    assert document.segment(1).end_time == "00:00:00,500"


def test_apply_shortening_is_a_normal_text_edit():
    _, document = _document()
    shortener = FixedShortener("Texto corto")

    assert document.apply_shortening(2, shortener) == "Texto corto"
    assert shortener.calls[0][1] == 74
    assert document.segment(2).text == "Texto corto"
    assert document.segment(2).can_undo
    assert document.apply_shortening(42, shortener) is None


def test_set_limits_revalidates_every_document():
    session, document = _document()
    assert not document.segment(2).is_long

    session.set_limits(ValidationLimits(max_total_chars=20, max_line_chars=20))
    assert document.segment(2).is_long


def test_export_and_lookup():
    session, _ = _document()
    assert session.export("movie.es.srt") == TRANSLATED
    assert len(session.segments_for_file("movie.es.srt")) == 3
    assert session.segments_for_file("other.srt") == []


def test_plain_data_round_trip():
    session, document = _document()
    session.load_original(ORIGINAL, "movie.es.srt")
    document.update_text(1, "Buenas")

    restored = EditorSession.from_plain_data(session.to_plain_data())
    restored_document = restored.document("movie.es.srt")

    assert restored.limits == session.limits
    assert [seg.to_plain_data() for seg in restored_document.segments] == \
        [seg.to_plain_data() for seg in document.segments]
    assert restored_document.segment(1).is_too_short
    assert restored_document.segment(1).can_undo
    assert len(restored.originals["movie.es.srt"]) == 3


def test_clear():
    session, _ = _document()
    session.clear()
    assert session.documents == {}
    assert session.segments_for_file("movie.es.srt") == []


def test_document_is_built_with_flags():
    document = SubtitleDocument("x.srt", [], ValidationLimits())
    assert len(document) == 0
    assert document.issues()['segments'] == 0
