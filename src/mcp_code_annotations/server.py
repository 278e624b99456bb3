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

"""MCP server for line annotations and bookmarks.

Exposes a project's annotation and bookmark stores as MCP tools, so a
reviewer (or an agent) can attach notes to source lines without touching
the source files.

Usage:
    PROJECT_ROOT=/path/to/project python -m mcp_code_annotations.server

Environment:
    PROJECT_ROOT          codebase root (default: current directory)
    ANNOTATIONS_FILE      project document (default: <root>/.annotations.json)
    ANNOTATIONS_AUTOSAVE  "0" disables saving after every change (default: "1")
"""

from __future__ import annotations

import json
import os
import sys
import time
import traceback

from mcp.server import Server
from mcp.server.stdio import stdio_server
from mcp.types import Tool, TextContent
import mcp.types as types

from mcp_code_annotations.listing import list_annotations, list_bookmarks
from mcp_code_annotations.models import Annotation
from mcp_code_annotations.project import Project
from mcp_code_annotations.session import ReviewSession

# ---------------------------------------------------------------------------
# Module-level state
# ---------------------------------------------------------------------------

server = Server("mcp-code-annotations")

_project_root: str = ""
_document_path: str = ""
_autosave: bool = True
_project: Project | None = None
_session: ReviewSession | None = None

# Session usage stats
_session_start: float = time.time()
_tool_call_counts: dict[str, int] = {}
_total_chars_returned: int = 0

_MUTATING_TOOLS = frozenset(
    {"add_annotation", "edit_annotation", "remove_annotation", "toggle_bookmark", "delete_at"}
)


def _format_result(value: object) -> str:
    """Format a tool result as readable text."""
    if isinstance(value, str):
        return value
    if isinstance(value, (dict, list)):
        return json.dumps(value, indent=2, default=str)
    return str(value)


def _format_elapsed(seconds: float) -> str:
    """Session length as ``Ns``, ``Nm Ns`` or ``Nh Nm``."""
    minutes, secs = divmod(int(seconds), 60)
    if not minutes:
        return f"{secs}s"
    hours, minutes = divmod(minutes, 60)
    if not hours:
        return f"{minutes}m {secs}s"
    return f"{hours}h {minutes}m"


def _format_usage_stats() -> str:
    """Format session usage statistics."""
    elapsed = time.time() - _session_start
    total_calls = sum(_tool_call_counts.values())
    tool_calls = total_calls - _tool_call_counts.get("get_usage_stats", 0)

    lines = [
        f"Session duration: {_format_elapsed(elapsed)}",
        f"Total tool calls: {tool_calls}",
    ]

    if _tool_call_counts:
        lines.append("")
        lines.append("Calls by tool:")
        for tool_name, count in sorted(_tool_call_counts.items(), key=lambda x: -x[1]):
            if tool_name == "get_usage_stats":
                continue
            lines.append(f"  {tool_name}: {count}")

    lines.append("")
    lines.append(f"Total chars returned: {_total_chars_returned:,}")

    if _project is not None:
        lines.append(
            f"Annotations: {len(_project.annotations)} "
            f"in {len(_project.annotations.files())} files"
        )
        lines.append(
            f"Bookmarks: {len(_project.bookmarks)} "
            f"in {len(_project.bookmarks.files())} files"
        )

    return "\n".join(lines)


def _load_project() -> None:
    """Load (or reload) the project document named by the environment."""
    global _project_root, _document_path, _autosave, _project, _session

    _project_root = os.environ.get("PROJECT_ROOT", os.getcwd())
    _document_path = os.environ.get(
        "ANNOTATIONS_FILE", os.path.join(_project_root, ".annotations.json")
    )
    _autosave = os.environ.get("ANNOTATIONS_AUTOSAVE", "1") != "0"

    print(f"[mcp-code-annotations] Loading project: {_project_root}", file=sys.stderr)
    _project = Project.load(_project_root, _document_path)
    _session = ReviewSession(_project)
    print(
        f"[mcp-code-annotations] {len(_project.annotations)} annotations, "
        f"{len(_project.bookmarks)} bookmarks ({_document_path})",
        file=sys.stderr,
    )


def _save_project() -> None:
    if _project is not None:
        _project.save(_document_path)


def _annotation_dict(project: Project, annotation: Annotation) -> dict:
    """Describe a stored annotation, including where its block renders."""
    span = project.annotations.display_span(annotation)
    return {
        "file": annotation.file_ref,
        "line": annotation.line_ref,
        "display_lines": [span.start, span.stop - 1],
        "lines_occupied": annotation.lines_occupied,
        "keywords": list(annotation.keywords),
        "contents": annotation.contents,
    }


def _display_line(project: Project, arguments: dict) -> int:
    """The display-space line named by a tool call's line/space arguments."""
    line = int(arguments["line"])
    if arguments.get("space", "code") == "display":
        return line
    return project.annotations.resolve_to_display(arguments["file_path"], line)


# ---------------------------------------------------------------------------
# Tool definitions
# ---------------------------------------------------------------------------

_FILE_PATH = {
    "type": "string",
    "description": "Path of the source file, relative to the project root.",
}
_LINE = {
    "type": "integer",
    "description": "0-indexed line number in the unannotated source (code-space).",
}
_SPACED_LINE = {
    "type": "integer",
    "description": "0-indexed line number; code-space unless space is 'display'.",
}
_SPACE = {
    "type": "string",
    "enum": ["code", "display"],
    "description": (
        "'code' (default) for source line numbers, 'display' for line numbers "
        "in the annotated view, where annotation blocks render above their lines."
    ),
}

TOOLS = [
    Tool(
        name="add_annotation",
        description="Attach a note to a source line. '#tag' and '#(multi word tag)' in the text become keywords.",
        inputSchema={
            "type": "object",
            "properties": {
                "file_path": _FILE_PATH,
                "line": _LINE,
                "contents": {"type": "string", "description": "Annotation text (may span lines)."},
            },
            "required": ["file_path", "line", "contents"],
        },
    ),
    Tool(
        name="edit_annotation",
        description="Replace the note on a line (or create it). Empty contents remove the note.",
        inputSchema={
            "type": "object",
            "properties": {
                "file_path": _FILE_PATH,
                "line": _SPACED_LINE,
                "contents": {"type": "string", "description": "New annotation text."},
                "space": _SPACE,
            },
            "required": ["file_path", "line", "contents"],
        },
    ),
    Tool(
        name="remove_annotation",
        description="Remove the note attached to a source line.",
        inputSchema={
            "type": "object",
            "properties": {"file_path": _FILE_PATH, "line": _LINE},
            "required": ["file_path", "line"],
        },
    ),
    Tool(
        name="get_annotation",
        description="Get the note attached to a source line, with its keywords and rendered position.",
        inputSchema={
            "type": "object",
            "properties": {"file_path": _FILE_PATH, "line": _LINE},
            "required": ["file_path", "line"],
        },
    ),
    Tool(
        name="list_annotations",
        description="List notes with the code line they annotate. Omit file_path for the whole project.",
        inputSchema={
            "type": "object",
            "properties": {
                "file_path": {
                    "type": "string",
                    "description": "Relative path to filter to a single file.",
                },
            },
        },
    ),
    Tool(
        name="toggle_bookmark",
        description="Bookmark a line, or remove its bookmark if it already has one.",
        inputSchema={
            "type": "object",
            "properties": {"file_path": _FILE_PATH, "line": _SPACED_LINE, "space": _SPACE},
            "required": ["file_path", "line"],
        },
    ),
    Tool(
        name="list_bookmarks",
        description="List bookmarks with the code on each bookmarked line. Omit file_path for the whole project.",
        inputSchema={
            "type": "object",
            "properties": {
                "file_path": {
                    "type": "string",
                    "description": "Relative path to filter to a single file.",
                },
            },
        },
    ),
    Tool(
        name="delete_at",
        description="Delete the note on a line, or its bookmark if there is no note.",
        inputSchema={
            "type": "object",
            "properties": {"file_path": _FILE_PATH, "line": _SPACED_LINE, "space": _SPACE},
            "required": ["file_path", "line"],
        },
    ),
    Tool(
        name="resolve_line",
        description="Convert a line number between source (code) and annotated view (display) numbering.",
        inputSchema={
            "type": "object",
            "properties": {
                "file_path": _FILE_PATH,
                "line": {"type": "integer", "description": "0-indexed line number to convert."},
                "to": {
                    "type": "string",
                    "enum": ["code", "display"],
                    "description": "Target numbering.",
                },
            },
            "required": ["file_path", "line", "to"],
        },
    ),
    Tool(
        name="find_keyword",
        description="Find every note tagged with a keyword (without the leading '#').",
        inputSchema={
            "type": "object",
            "properties": {"keyword": {"type": "string", "description": "Keyword to find."}},
            "required": ["keyword"],
        },
    ),
    Tool(
        name="save_annotations",
        description="Write all notes and bookmarks to the annotations file.",
        inputSchema={"type": "object", "properties": {}},
    ),
    Tool(
        name="reload_annotations",
        description="Discard in-memory changes and reload the annotations file.",
        inputSchema={"type": "object", "properties": {}},
    ),
    Tool(
        name="get_usage_stats",
        description="Session stats: tool calls, characters returned, annotation and bookmark counts.",
        inputSchema={"type": "object", "properties": {}},
    ),
]


# ---------------------------------------------------------------------------
# MCP handlers
# ---------------------------------------------------------------------------


@server.list_tools()
async def list_tools() -> list[Tool]:
    return TOOLS


@server.call_tool()
async def call_tool(name: str, arguments: dict) -> list[types.TextContent]:
    global _total_chars_returned

    _tool_call_counts[name] = _tool_call_counts.get(name, 0) + 1
    arguments = arguments or {}

    try:
        if name == "reload_annotations":
            _load_project()
            return [TextContent(type="text", text="Annotations reloaded.")]

        if name == "get_usage_stats":
            return [TextContent(type="text", text=_format_usage_stats())]

        if _project is None or _session is None:
            return [TextContent(type="text", text="Error: project not loaded. Call reload_annotations first.")]

        if name == "add_annotation":
            stored = _project.annotations.add(
                Annotation(
                    file_ref=arguments["file_path"],
                    line_ref=int(arguments["line"]),
                    contents=arguments["contents"],
                )
            )
            result = _annotation_dict(_project, stored)

        elif name == "edit_annotation":
            draft = _session.begin_annotation(arguments["file_path"], _display_line(_project, arguments))
            stored = _session.submit_annotation(draft, arguments["contents"])
            if stored is None:
                result = f"Removed annotation at {draft.file_ref}:{draft.line_ref}"
            else:
                result = _annotation_dict(_project, stored)

        elif name == "remove_annotation":
            file_path, line = arguments["file_path"], int(arguments["line"])
            removed = _project.annotations.remove(file_path, line)
            if removed is None:
                result = f"No annotation at {file_path}:{line}"
            else:
                result = f"Removed annotation at {file_path}:{line}"

        elif name == "get_annotation":
            file_path, line = arguments["file_path"], int(arguments["line"])
            found = _project.annotations.get(file_path, line)
            result = f"No annotation at {file_path}:{line}" if found is None else _annotation_dict(_project, found)

        elif name == "list_annotations":
            result = list_annotations(_project, arguments.get("file_path"))

        elif name == "toggle_bookmark":
            added, line = _session.toggle_bookmark(arguments["file_path"], _display_line(_project, arguments))
            verb = "Added" if added else "Removed"
            result = f"{verb} bookmark at {arguments['file_path']}:{line}"

        elif name == "list_bookmarks":
            result = list_bookmarks(_project, arguments.get("file_path"))

        elif name == "delete_at":
            removed = _session.delete_at(arguments["file_path"], _display_line(_project, arguments))
            if removed is None:
                result = f"Nothing to delete at {arguments['file_path']}:{arguments['line']}"
            else:
                kind = "annotation" if isinstance(removed, Annotation) else "bookmark"
                result = f"Removed {kind} at {removed.file_ref}:{removed.line_ref}"

        elif name == "resolve_line":
            file_path, line = arguments["file_path"], int(arguments["line"])
            if arguments["to"] == "code":
                result = {"display_line": line, "code_line": _project.annotations.resolve_to_code(file_path, line)}
            else:
                result = {"code_line": line, "display_line": _project.annotations.resolve_to_display(file_path, line)}

        elif name == "find_keyword":
            result = [_annotation_dict(_project, a) for a in _project.annotations.find_keyword(arguments["keyword"])]

        elif name == "save_annotations":
            _save_project()
            result = f"Saved to {_document_path}"

        else:
            return [TextContent(type="text", text=f"Error: unknown tool '{name}'")]

        if name in _MUTATING_TOOLS and _autosave:
            _save_project()

        formatted = _format_result(result)
        _total_chars_returned += len(formatted)
        return [TextContent(type="text", text=formatted)]

    except Exception as e:
        tb = traceback.format_exc()
        print(f"[mcp-code-annotations] Error in {name}: {tb}", file=sys.stderr)
        return [TextContent(type="text", text=f"Error: {e}")]


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------


async def main():
    _load_project()
    async with stdio_server() as (read_stream, write_stream):
        await server.run(
            read_stream,
            write_stream,
            server.create_initialization_options(),
        )


def main_sync():
    """Synchronous entry point for console_scripts."""
    import asyncio

    asyncio.run(main())


if __name__ == "__main__":
    main_sync()
