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

"""Conversion between stores and the persisted "blocks" document schema.

Document layout::

    {
      "annotations": {
        "<path>": {"file": "<path>", "annotations": [{"line": 5, "contents": "..."}]}
      },
      "bookmarks": {
        "<path>": {"file": "<path>", "bookmarks": [{"line": 3}]}
      }
    }

Derived annotation fields (lines occupied, keywords) are never written; they
are recomputed when entries are loaded back through the stores.
"""

from __future__ import annotations

from enum import Enum
from typing import Any

from mcp_code_annotations.errors import UnsupportedSchemaError
from mcp_code_annotations.models import Annotation, Bookmark
from mcp_code_annotations.store import AnnotationStore, BookmarkStore


class SchemaVariant(Enum):
    """Known document schemas. Only BLOCKS is implemented."""

    BLOCKS = "blocks"
    SNIPPET = "snippet"


def _require_blocks(schema: SchemaVariant) -> None:
    if schema is not SchemaVariant.BLOCKS:
        raise UnsupportedSchemaError(f"Unsupported schema: {schema.value}")


def _parse_line(raw: object, file_ref: str) -> int:
    # bool is an int subclass but never a valid line
    if not isinstance(raw, int) or isinstance(raw, bool) or raw < 0:
        raise UnsupportedSchemaError(f"Invalid line {raw!r} in entry for {file_ref}")
    return raw


def _file_entries(document: dict[str, Any], section: str) -> list[tuple[str, list[dict]]]:
    """Pull (file path, entry list) pairs out of one top-level section."""
    files = document.get(section, {})
    if not isinstance(files, dict):
        raise UnsupportedSchemaError(f"'{section}' must be an object")

    result: list[tuple[str, list[dict]]] = []
    for key, file_obj in files.items():
        if not isinstance(file_obj, dict):
            raise UnsupportedSchemaError(f"'{section}.{key}' must be an object")
        file_ref = file_obj.get("file", key)
        entries = file_obj.get(section, [])
        if not isinstance(file_ref, str) or not isinstance(entries, list):
            raise UnsupportedSchemaError(f"Malformed '{section}' entry for {key}")
        result.append((file_ref, entries))
    return result


# ---------------------------------------------------------------------------
# Per-entity fragments
# ---------------------------------------------------------------------------


def annotation_to_dict(
    annotation: Annotation, schema: SchemaVariant = SchemaVariant.BLOCKS
) -> dict[str, Any]:
    _require_blocks(schema)
    return {"line": annotation.line_ref, "contents": annotation.contents}


def bookmark_to_dict(
    bookmark: Bookmark, schema: SchemaVariant = SchemaVariant.BLOCKS
) -> dict[str, Any]:
    _require_blocks(schema)
    return {"line": bookmark.line_ref}


# ---------------------------------------------------------------------------
# Whole stores
# ---------------------------------------------------------------------------


def annotations_to_dict(
    store: AnnotationStore, schema: SchemaVariant = SchemaVariant.BLOCKS
) -> dict[str, Any]:
    """Serialize every file bucket of ``store`` to the ``annotations`` section."""
    _require_blocks(schema)
    return {
        file_ref: {
            "file": file_ref,
            "annotations": [annotation_to_dict(a, schema) for a in store.get_all(file_ref)],
        }
        for file_ref in store.files()
    }


def bookmarks_to_dict(
    store: BookmarkStore, schema: SchemaVariant = SchemaVariant.BLOCKS
) -> dict[str, Any]:
    """Serialize every file bucket of ``store`` to the ``bookmarks`` section."""
    _require_blocks(schema)
    return {
        file_ref: {
            "file": file_ref,
            "bookmarks": [bookmark_to_dict(b, schema) for b in store.get_all(file_ref)],
        }
        for file_ref in store.files()
    }


def annotations_from_dict(
    document: dict[str, Any], schema: SchemaVariant = SchemaVariant.BLOCKS
) -> AnnotationStore:
    """Build an AnnotationStore from a full document.

    The whole document is validated before any entry is stored, so a bad
    entry raises UnsupportedSchemaError without producing a partial store.
    """
    _require_blocks(schema)
    parsed: list[Annotation] = []
    for file_ref, entries in _file_entries(document, "annotations"):
        for entry in entries:
            if not isinstance(entry, dict) or not isinstance(entry.get("contents"), str):
                raise UnsupportedSchemaError(f"Malformed annotation in {file_ref}: {entry!r}")
            line = _parse_line(entry.get("line"), file_ref)
            parsed.append(Annotation(file_ref=file_ref, line_ref=line, contents=entry["contents"]))

    store = AnnotationStore()
    for annotation in parsed:
        store.add(annotation)
    return store


def bookmarks_from_dict(
    document: dict[str, Any], schema: SchemaVariant = SchemaVariant.BLOCKS
) -> BookmarkStore:
    """Build a BookmarkStore from a full document."""
    _require_blocks(schema)
    parsed: list[Bookmark] = []
    for file_ref, entries in _file_entries(document, "bookmarks"):
        for entry in entries:
            if not isinstance(entry, dict):
                raise UnsupportedSchemaError(f"Malformed bookmark in {file_ref}: {entry!r}")
            parsed.append(Bookmark(file_ref=file_ref, line_ref=_parse_line(entry.get("line"), file_ref)))

    store = BookmarkStore()
    for bookmark in parsed:
        store.add(bookmark)
    return store
