"""Data models for line annotations and bookmarks."""

from dataclasses import dataclass, field


@dataclass(frozen=True)
class Annotation:
    """A free-text note anchored to one code-space line of a file.

    ``lines_occupied`` and ``keywords`` are derived from ``contents`` by the
    annotation store on insert; values passed in here are ignored there.
    """

    file_ref: str  # Path relative to the codebase root
    line_ref: int  # Code-space anchor line (0-indexed)
    contents: str
    lines_occupied: int = 1
    keywords: tuple[str, ...] = field(default_factory=tuple)


@dataclass(frozen=True)
class Bookmark:
    """A marker on one code-space line of a file."""

    file_ref: str
    line_ref: int


@dataclass(frozen=True)
class AnnotationDraft:
    """An annotation being written or edited in a review session."""

    file_ref: str
    line_ref: int
    contents: str  # Existing contents when editing, "" otherwise
    is_edit: bool
