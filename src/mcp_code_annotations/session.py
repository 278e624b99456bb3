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

"""Review actions driven by lines seen in the rendered (annotated) view.

Every method takes a display-space line, resolves it to code-space first and
only then touches the stores, so actions key off the stable source line no
matter how many annotation blocks render above it.
"""

from __future__ import annotations

from mcp_code_annotations.models import Annotation, AnnotationDraft, Bookmark
from mcp_code_annotations.project import Project


class ReviewSession:
    """Single owner of a project's stores during an interactive review."""

    def __init__(self, project: Project):
        self.project = project

    def code_line(self, file_ref: str, display_line: int) -> int:
        return self.project.annotations.resolve_to_code(file_ref, display_line)

    def toggle_bookmark(self, file_ref: str, display_line: int) -> tuple[bool, int]:
        """Remove the bookmark at the line if there is one, otherwise add one.

        Returns (added, code_line).
        """
        line = self.code_line(file_ref, display_line)
        if self.project.bookmarks.remove(file_ref, line) is not None:
            return False, line
        self.project.bookmarks.add(Bookmark(file_ref=file_ref, line_ref=line))
        return True, line

    def delete_at(self, file_ref: str, display_line: int) -> Annotation | Bookmark | None:
        """Delete the annotation at the line, or failing that its bookmark."""
        line = self.code_line(file_ref, display_line)
        removed = self.project.annotations.remove(file_ref, line)
        if removed is None:
            removed = self.project.bookmarks.remove(file_ref, line)
        return removed

    def begin_annotation(self, file_ref: str, display_line: int) -> AnnotationDraft:
        """Start a new annotation, or an edit when the line is already annotated."""
        line = self.code_line(file_ref, display_line)
        existing = self.project.annotations.get(file_ref, line)
        return AnnotationDraft(
            file_ref=file_ref,
            line_ref=line,
            contents=existing.contents if existing else "",
            is_edit=existing is not None,
        )

    def submit_annotation(self, draft: AnnotationDraft, contents: str) -> Annotation | None:
        """Store ``contents`` for the draft's line, replacing any earlier note.

        Empty contents leave the line without an annotation. If the new
        contents are rejected the earlier note is kept.
        """
        annotations = self.project.annotations
        existing = annotations.get(draft.file_ref, draft.line_ref)
        if not contents:
            if existing is not None:
                annotations.remove(draft.file_ref, draft.line_ref)
            return None
        # Added after the earlier note on the same line, so remove() below
        # takes the earlier one.
        stored = annotations.add(
            Annotation(file_ref=draft.file_ref, line_ref=draft.line_ref, contents=contents)
        )
        if existing is not None:
            annotations.remove(draft.file_ref, draft.line_ref)
        return stored
