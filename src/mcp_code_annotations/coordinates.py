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

"""Mapping between code-space and display-space line numbers.

Code-space is the line numbering of the unannotated source file. Display-space
is the numbering seen once every annotation of the file is rendered inline:
an annotation anchored at code line N occupies ``lines_occupied`` display
lines immediately above code line N.

Example, one two-line annotation anchored at code line 5:

    display 0-4   code 0-4
    display 5-6   annotation block
    display 7     code 5
    display 8     code 6

All functions take the file's annotations in ascending ``line_ref`` order, as
returned by ``AnnotationStore.get_all(file_ref)``.
"""

from __future__ import annotations

from collections.abc import Sequence

from mcp_code_annotations.models import Annotation


def _check_line(line: int) -> None:
    if line < 0:
        raise ValueError(f"line numbers are non-negative, got {line}")


def to_display_line(annotations: Sequence[Annotation], code_line: int) -> int:
    """Convert a code-space line to display-space.

    Every annotation anchored strictly before ``code_line`` shifts it down by
    that annotation's ``lines_occupied``. The result is the display line where
    a block anchored at ``code_line`` begins, which is also where the code
    line itself renders when nothing is anchored to it.
    """
    _check_line(code_line)
    shift = 0
    for annotation in annotations:
        if annotation.line_ref >= code_line:
            break
        shift += annotation.lines_occupied
    return code_line + shift


def to_code_line(annotations: Sequence[Annotation], display_line: int) -> int:
    """Convert a display-space line to code-space.

    A display line inside a rendered annotation block is not source; it
    snaps to the block's anchor line.
    """
    _check_line(display_line)
    consumed = 0
    for annotation in annotations:
        anchor = annotation.line_ref
        candidate = display_line - consumed
        if anchor >= candidate:
            return candidate
        if candidate < anchor + annotation.lines_occupied:
            return anchor
        consumed += annotation.lines_occupied
    return display_line - consumed


def display_span(annotations: Sequence[Annotation], annotation: Annotation) -> range:
    """Display lines covered by ``annotation``'s rendered block.

    ``annotation`` must be one of the stored objects in ``annotations``; it is
    matched by identity, so identical notes on one anchor stack in store order.
    """
    start = to_display_line(annotations, annotation.line_ref)
    for other in annotations:
        if other.line_ref != annotation.line_ref:
            continue
        if other is annotation:
            break
        start += other.lines_occupied
    return range(start, start + annotation.lines_occupied)
