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

"""A reviewed codebase: its root path plus its annotation and bookmark stores.

Handles loading and saving the project document as JSON.
"""

import json
import logging
import os
from typing import Any

from mcp_code_annotations.errors import ProjectPathError, UnsupportedSchemaError
from mcp_code_annotations.serialization import (
    SchemaVariant,
    annotations_from_dict,
    annotations_to_dict,
    bookmarks_from_dict,
    bookmarks_to_dict,
)
from mcp_code_annotations.store import AnnotationStore, BookmarkStore

logger = logging.getLogger(__name__)


class Project:
    """Annotations and bookmarks for one codebase."""

    def __init__(
        self,
        codebase_path: str,
        annotations: AnnotationStore | None = None,
        bookmarks: BookmarkStore | None = None,
    ):
        self.codebase_path = os.path.abspath(codebase_path)
        if not os.path.isdir(self.codebase_path):
            raise ProjectPathError(f"Codebase path does not exist: {self.codebase_path}")
        self.annotations = annotations if annotations is not None else AnnotationStore()
        self.bookmarks = bookmarks if bookmarks is not None else BookmarkStore()

    # ------------------------------------------------------------------
    # Serialization
    # ------------------------------------------------------------------

    @classmethod
    def from_dict(
        cls,
        codebase_path: str,
        document: dict[str, Any],
        schema: SchemaVariant = SchemaVariant.BLOCKS,
    ) -> "Project":
        if not isinstance(document, dict):
            raise UnsupportedSchemaError("Project document must be a JSON object")
        return cls(
            codebase_path,
            annotations=annotations_from_dict(document, schema),
            bookmarks=bookmarks_from_dict(document, schema),
        )

    def to_dict(self, schema: SchemaVariant = SchemaVariant.BLOCKS) -> dict[str, Any]:
        return {
            "annotations": annotations_to_dict(self.annotations, schema),
            "bookmarks": bookmarks_to_dict(self.bookmarks, schema),
        }

    @classmethod
    def load(cls, codebase_path: str, document_path: str) -> "Project":
        """Load a project document, or start empty if the file does not exist."""
        if not os.path.exists(document_path):
            logger.info("No annotations file at %s, starting empty", document_path)
            return cls(codebase_path)

        with open(document_path, encoding="utf-8") as f:
            try:
                document = json.load(f)
            except json.JSONDecodeError as e:
                raise UnsupportedSchemaError(f"{document_path} is not valid JSON: {e}") from e

        project = cls.from_dict(codebase_path, document)
        logger.info(
            "Loaded %d annotations and %d bookmarks from %s",
            len(project.annotations),
            len(project.bookmarks),
            document_path,
        )
        return project

    def save(self, document_path: str) -> None:
        """Write the project document, replacing the file atomically."""
        document = self.to_dict()
        tmp_path = document_path + ".tmp"
        with open(tmp_path, "w", encoding="utf-8") as f:
            json.dump(document, f, indent=2)
            f.write("\n")
        os.replace(tmp_path, document_path)
        logger.debug(
            "Saved %d annotations and %d bookmarks to %s",
            len(self.annotations),
            len(self.bookmarks),
            document_path,
        )

    # ------------------------------------------------------------------
    # Source access
    # ------------------------------------------------------------------

    def resolve_path(self, file_ref: str) -> str:
        """Absolute path of ``file_ref``; it must stay inside the codebase."""
        abs_path = os.path.abspath(os.path.join(self.codebase_path, file_ref))
        if os.path.commonpath([abs_path, self.codebase_path]) != self.codebase_path:
            raise ValueError(f"{file_ref} is outside the codebase")
        return abs_path

    def read_source_lines(self, file_ref: str) -> list[str]:
        """Read a source file and split it into lines (0-indexed)."""
        with open(self.resolve_path(file_ref), encoding="utf-8", errors="replace") as f:
            return f.read().split("\n")
