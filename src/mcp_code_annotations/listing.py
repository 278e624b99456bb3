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

"""Tabular listings of annotations and bookmarks with their source lines.

All functions return plain dicts for easy JSON formatting.
"""

from __future__ import annotations

from mcp_code_annotations.errors import OutOfBoundsError
from mcp_code_annotations.project import Project


def _simplify(line: str) -> str:
    """Trim and collapse internal whitespace runs to single spaces."""
    return " ".join(line.split())


def _code_line(lines: list[str], file_ref: str, line_ref: int) -> str:
    if line_ref >= len(lines):
        raise OutOfBoundsError(file_ref, line_ref, len(lines))
    return _simplify(lines[line_ref])


def list_bookmarks(project: Project, file_ref: str | None = None) -> list[dict]:
    """Bookmarks as {"file", "line", "code"} rows, grouped per file."""
    rows: list[dict] = []
    files = [file_ref] if file_ref is not None else project.bookmarks.files()
    for path in files:
        bookmarks = project.bookmarks.get_all(path)
        if not bookmarks:
            continue
        lines = project.read_source_lines(path)
        for bookmark in bookmarks:
            rows.append(
                {
                    "file": path,
                    "line": bookmark.line_ref,
                    "code": _code_line(lines, path, bookmark.line_ref),
                }
            )
    return rows


def list_annotations(project: Project, file_ref: str | None = None) -> list[dict]:
    """Annotations as {"file", "line", "code", "annotation", "keywords"} rows."""
    rows: list[dict] = []
    files = [file_ref] if file_ref is not None else project.annotations.files()
    for path in files:
        annotations = project.annotations.get_all(path)
        if not annotations:
            continue
        lines = project.read_source_lines(path)
        for annotation in annotations:
            rows.append(
                {
                    "file": path,
                    "line": annotation.line_ref,
                    "code": _code_line(lines, path, annotation.line_ref),
                    "annotation": annotation.contents,
                    "keywords": list(annotation.keywords),
                }
            )
    return rows
