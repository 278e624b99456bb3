"""Tests for code-space <-> display-space line mapping."""

import pytest

from mcp_code_annotations.coordinates import display_span, to_code_line, to_display_line
from mcp_code_annotations.models import Annotation
from mcp_code_annotations.store import AnnotationStore


def _store(*entries: tuple[int, str], file_ref: str = "f.py") -> AnnotationStore:
    store = AnnotationStore()
    for line, contents in entries:
        store.add(Annotation(file_ref, line, contents))
    return store


def _render(store: AnnotationStore, file_ref: str, total_lines: int) -> list[tuple[str, int]]:
    """Lay out a file the way the annotated view does.

    Returns one (kind, code_line) pair per display line, kind being "code" or
    "note" (a line of an annotation block anchored at code_line).
    """
    annotations = store.get_all(file_ref)
    rendered: list[tuple[str, int]] = []
    for line in range(total_lines):
        for annotation in annotations:
            if annotation.line_ref == line:
                rendered.extend([("note", line)] * annotation.lines_occupied)
        rendered.append(("code", line))
    return rendered


class TestNoAnnotations:
    def test_identity_both_ways(self):
        for line in range(10):
            assert to_display_line([], line) == line
            assert to_code_line([], line) == line

    def test_negative_lines_rejected(self):
        with pytest.raises(ValueError):
            to_display_line([], -1)
        with pytest.raises(ValueError):
            to_code_line([], -1)


class TestSingleMultilineAnnotation:
    """One two-line annotation anchored at code line 5."""

    def setup_method(self):
        self.store = _store((5, "line1\nline2"))
        self.annotations = self.store.get_all("f.py")

    def test_lines_above_unaffected(self):
        for line in range(5):
            assert to_display_line(self.annotations, line) == line
            assert to_code_line(self.annotations, line) == line

    def test_block_starts_at_anchor_display_line(self):
        assert to_display_line(self.annotations, 5) == 5

    def test_block_lines_snap_to_anchor(self):
        assert to_code_line(self.annotations, 5) == 5
        assert to_code_line(self.annotations, 6) == 5

    def test_anchor_code_line_itself(self):
        assert to_code_line(self.annotations, 7) == 5

    def test_lines_below_shift_by_lines_occupied(self):
        assert to_display_line(self.annotations, 6) == 8
        assert to_code_line(self.annotations, 8) == 6
        assert to_display_line(self.annotations, 10) == 12

    def test_display_span(self):
        assert display_span(self.annotations, self.annotations[0]) == range(5, 7)


class TestSeveralAnnotations:
    def test_round_trip_with_second_annotation_below(self):
        annotations = _store((5, "line1\nline2"), (10, "a\nb\nc")).get_all("f.py")
        assert to_code_line(annotations, to_display_line(annotations, 10)) == 10

    def test_round_trip_every_code_line(self):
        annotations = _store(
            (0, "top"), (3, "x\ny"), (4, "z"), (9, "p\nq\nr\ns")
        ).get_all("f.py")
        for line in range(30):
            assert to_code_line(annotations, to_display_line(annotations, line)) == line

    def test_display_lines_never_collide(self):
        annotations = _store((2, "a\nb"), (6, "c"), (7, "d\ne\nf")).get_all("f.py")
        displays = [to_display_line(annotations, line) for line in range(20)]
        assert displays == sorted(set(displays))

    def test_matches_rendered_layout(self):
        store = _store((1, "a"), (4, "b\nc"), (4, "dup"), (8, "d\ne\nf"))
        annotations = store.get_all("f.py")
        rendered = _render(store, "f.py", 12)
        for display_line, (_, code_line) in enumerate(rendered):
            assert to_code_line(annotations, display_line) == code_line

    def test_code_lines_render_where_expected(self):
        store = _store((1, "a"), (4, "b\nc"), (8, "d\ne\nf"))
        annotations = store.get_all("f.py")
        rendered = _render(store, "f.py", 12)
        for line in range(12):
            if store.get("f.py", line) is None:
                assert rendered[to_display_line(annotations, line)] == ("code", line)
            else:
                assert rendered[to_display_line(annotations, line)] == ("note", line)

    def test_stacked_duplicate_spans(self):
        annotations = _store((4, "b\nc"), (4, "dup")).get_all("f.py")
        first, second = annotations
        assert display_span(annotations, first) == range(4, 6)
        assert display_span(annotations, second) == range(6, 7)

    def test_identical_duplicates_stack(self):
        annotations = _store((4, "dup"), (4, "dup")).get_all("f.py")
        spans = [display_span(annotations, a) for a in annotations]
        assert spans == [range(4, 5), range(5, 6)]

    def test_display_beyond_last_annotation(self):
        annotations = _store((2, "a\nb"), (3, "c")).get_all("f.py")
        assert to_code_line(annotations, 100) == 97


class TestStoreResolveHelpers:
    def test_resolve_uses_file_bucket(self):
        store = _store((2, "a\nb"))
        store.add(Annotation("other.py", 0, "x\ny\nz"))
        assert store.resolve_to_display("f.py", 3) == 5
        assert store.resolve_to_code("f.py", 5) == 3
        assert store.resolve_to_display("other.py", 3) == 6
        assert store.resolve_to_display("unknown.py", 3) == 3
