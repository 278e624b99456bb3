# mcp-code-annotations - Line annotations and bookmarks with MCP server
# Copyright (C) 2026 Michael Doyle
#
# This program is free software: you can redistribute it and/or modify
# it under the terms of the GNU Affero General Public License as published by
# the Free Software Foundation, either version 3 of the License, or
# (at your option) any later version.
#
# This program is distributed in the hope that it will be useful,
# but WITHOUT ANY WARRANTY; without even the implied warranty of
# MERCHANTABILITY or FITNESS FOR A PARTICULAR PURPOSE. See the
# GNU Affero General Public License for more details.
#
# You should have received a copy of the GNU Affero General Public License
# along with this program. If not, see <https://www.gnu.org/licenses/>.
#
# Commercial licensing available. See COMMERCIAL-LICENSE.md for details.

"""Per-file, line-ordered stores for annotations and bookmarks.

Each store keeps one bucket (list) per file path, sorted ascending by
``line_ref``. Entries are frozen dataclasses, so everything handed back to
callers is a snapshot that cannot disturb the ordering.

Duplicate line numbers within a file are allowed. Equal lines keep their
insertion order, and ``get``/``remove`` act on the earliest one.

A missing entry is a normal outcome: ``get`` and ``remove`` return None.
"""

from __future__ import annotations

import bisect
import dataclasses
from typing import Generic, TypeVar

from mcp_code_annotations import coordinates
from mcp_code_annotations.keywords import extract_keywords
from mcp_code_annotations.models import Annotation, Bookmark

_Entry = TypeVar("_Entry", Annotation, Bookmark)


def _line_key(entry: Annotation | Bookmark) -> int:
    return entry.line_ref


class _LineStore(Generic[_Entry]):
    """Shared bucket handling for both stores."""

    def __init__(self) -> None:
        self._buckets: dict[str, list[_Entry]] = {}

    # ------------------------------------------------------------------
    # Mutation
    # ------------------------------------------------------------------

    def add(self, entry: _Entry) -> _Entry:
        """Insert ``entry`` at its sorted position and return the stored copy."""
        if entry.line_ref < 0:
            raise ValueError(f"line_ref must be non-negative, got {entry.line_ref}")
        entry = self._prepare(entry)
        bucket = self._buckets.setdefault(entry.file_ref, [])
        bisect.insort_right(bucket, entry, key=_line_key)
        return entry

    def remove(self, file_ref: str, line_ref: int) -> _Entry | None:
        """Remove the entry at exactly ``line_ref``.

        Returns the removed entry, or None if there is none (nothing changes).
        Buckets left empty are dropped.
        """
        bucket = self._buckets.get(file_ref)
        index = self._find(bucket, line_ref)
        if index is None:
            return None
        removed = bucket.pop(index)
        if not bucket:
            del self._buckets[file_ref]
        return removed

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def get(self, file_ref: str, line_ref: int) -> _Entry | None:
        """Exact lookup by file and code-space line."""
        bucket = self._buckets.get(file_ref)
        index = self._find(bucket, line_ref)
        return None if index is None else bucket[index]

    def get_all(self, file_ref: str | None = None) -> list[_Entry]:
        """Entries for one file in ascending line order, or for every file.

        An unknown file gives an empty list. Without ``file_ref`` entries are
        grouped per file (ascending within each file).
        """
        if file_ref is not None:
            return list(self._buckets.get(file_ref, ()))
        return [entry for bucket in self._buckets.values() for entry in bucket]

    def files(self) -> list[str]:
        """File paths that currently have at least one entry."""
        return list(self._buckets)

    def __len__(self) -> int:
        return sum(len(bucket) for bucket in self._buckets.values())

    def __contains__(self, key: tuple[str, int]) -> bool:
        file_ref, line_ref = key
        return self.get(file_ref, line_ref) is not None

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _prepare(self, entry: _Entry) -> _Entry:
        return entry

    @staticmethod
    def _find(bucket: list[_Entry] | None, line_ref: int) -> int | None:
        if not bucket:
            return None
        index = bisect.bisect_left(bucket, line_ref, key=_line_key)
        if index < len(bucket) and bucket[index].line_ref == line_ref:
            return index
        return None


class AnnotationStore(_LineStore[Annotation]):
    """Annotations grouped per file, with derived fields kept up to date."""

    def _prepare(self, entry: Annotation) -> Annotation:
        if not isinstance(entry.contents, str):
            raise TypeError(f"contents must be a string, got {type(entry.contents).__name__}")
        # Derived fields are always recomputed, never trusted from the caller.
        return dataclasses.replace(
            entry,
            lines_occupied=entry.contents.count("\n") + 1,
            keywords=tuple(extract_keywords(entry.contents)),
        )

    def resolve_to_code(self, file_ref: str, display_line: int) -> int:
        """Map a display-space line of ``file_ref`` to its code-space line."""
        return coordinates.to_code_line(self._buckets.get(file_ref, ()), display_line)

    def resolve_to_display(self, file_ref: str, code_line: int) -> int:
        """Map a code-space line of ``file_ref`` to display-space."""
        return coordinates.to_display_line(self._buckets.get(file_ref, ()), code_line)

    def display_span(self, annotation: Annotation) -> range:
        """Display lines covered by a stored annotation's rendered block."""
        return coordinates.display_span(self._buckets.get(annotation.file_ref, ()), annotation)

    def find_keyword(self, keyword: str) -> list[Annotation]:
        """All annotations tagged with ``keyword`` (exact, case-sensitive)."""
        return [a for a in self.get_all() if keyword in a.keywords]


class BookmarkStore(_LineStore[Bookmark]):
    """Bookmarks grouped per file."""
