"""Tests for the MCP tool handlers and session usage stats."""

import asyncio
import json
import time

import pytest


@pytest.fixture(autouse=True)
def _reset_server_state(tmp_path, monkeypatch):
    """Point the server at a throwaway project and reset module-level state."""
    import mcp_code_annotations.server as srv

    (tmp_path / "app.py").write_text("\n".join(f"value_{i} = {i}" for i in range(20)))
    monkeypatch.setenv("PROJECT_ROOT", str(tmp_path))
    monkeypatch.setenv("ANNOTATIONS_FILE", str(tmp_path / "notes.json"))
    monkeypatch.delenv("ANNOTATIONS_AUTOSAVE", raising=False)

    srv._session_start = time.time()
    srv._tool_call_counts.clear()
    srv._total_chars_returned = 0
    srv._project = None
    srv._session = None
    yield
    srv._tool_call_counts.clear()
    srv._total_chars_returned = 0
    srv._project = None
    srv._session = None


def _call(name: str, arguments: dict | None = None) -> str:
    from mcp_code_annotations.server import call_tool

    result = asyncio.run(call_tool(name, arguments or {}))
    return result[0].text


def _loaded():
    import mcp_code_annotations.server as srv

    srv._load_project()
    return srv


class TestSessionDuration:
    def test_duration_reported_in_minutes(self):
        import mcp_code_annotations.server as srv

        srv._session_start = time.time() - 125
        assert "Session duration: 2m 5s" in srv._format_usage_stats()

    def test_duration_reported_in_hours(self):
        import mcp_code_annotations.server as srv

        srv._session_start = time.time() - 3725
        assert "Session duration: 1h 2m" in srv._format_usage_stats()

    def test_fresh_session_reported_in_seconds(self):
        import mcp_code_annotations.server as srv

        assert "Session duration: 0s" in srv._format_usage_stats()


class TestUsageStats:
    def test_empty_session(self):
        from mcp_code_annotations.server import _format_usage_stats

        result = _format_usage_stats()
        assert "Total tool calls: 0" in result
        assert "Total chars returned: 0" in result

    def test_counts_calls_and_entries(self):
        _loaded()
        _call("add_annotation", {"file_path": "app.py", "line": 1, "contents": "x"})
        _call("toggle_bookmark", {"file_path": "app.py", "line": 2})
        result = _call("get_usage_stats")
        assert "Total tool calls: 2" in result
        assert "add_annotation: 1" in result
        assert "get_usage_stats" not in result
        assert "Annotations: 1 in 1 files" in result
        assert "Bookmarks: 1 in 1 files" in result


class TestTools:
    def test_requires_loaded_project(self):
        assert _call("list_annotations").startswith("Error: project not loaded")

    def test_unknown_tool(self):
        _loaded()
        assert _call("no_such_tool") == "Error: unknown tool 'no_such_tool'"

    def test_add_and_get_annotation(self):
        _loaded()
        added = json.loads(
            _call("add_annotation", {"file_path": "app.py", "line": 4, "contents": "a\nb #perf"})
        )
        assert added["lines_occupied"] == 2
        assert added["keywords"] == ["perf"]
        assert added["display_lines"] == [4, 5]
        fetched = json.loads(_call("get_annotation", {"file_path": "app.py", "line": 4}))
        assert fetched["contents"] == "a\nb #perf"

    def test_get_missing_annotation(self):
        _loaded()
        assert _call("get_annotation", {"file_path": "app.py", "line": 4}) == "No annotation at app.py:4"

    def test_remove_annotation(self):
        _loaded()
        _call("add_annotation", {"file_path": "app.py", "line": 4, "contents": "x"})
        assert _call("remove_annotation", {"file_path": "app.py", "line": 4}) == "Removed annotation at app.py:4"
        assert _call("remove_annotation", {"file_path": "app.py", "line": 4}) == "No annotation at app.py:4"

    def test_toggle_bookmark_in_display_space(self):
        srv = _loaded()
        _call("add_annotation", {"file_path": "app.py", "line": 1, "contents": "a\nb\nc"})
        text = _call("toggle_bookmark", {"file_path": "app.py", "line": 6, "space": "display"})
        assert text == "Added bookmark at app.py:3"
        assert srv._project.bookmarks.get("app.py", 3) is not None

    def test_list_bookmarks(self):
        _loaded()
        _call("toggle_bookmark", {"file_path": "app.py", "line": 7})
        rows = json.loads(_call("list_bookmarks"))
        assert rows == [{"file": "app.py", "line": 7, "code": "value_7 = 7"}]

    def test_edit_annotation(self):
        srv = _loaded()
        _call("add_annotation", {"file_path": "app.py", "line": 2, "contents": "old"})
        _call("edit_annotation", {"file_path": "app.py", "line": 2, "contents": "new #x"})
        assert srv._project.annotations.get("app.py", 2).keywords == ("x",)
        assert len(srv._project.annotations) == 1

    def test_delete_at(self):
        _loaded()
        _call("toggle_bookmark", {"file_path": "app.py", "line": 5})
        assert _call("delete_at", {"file_path": "app.py", "line": 5}) == "Removed bookmark at app.py:5"
        assert _call("delete_at", {"file_path": "app.py", "line": 5}) == "Nothing to delete at app.py:5"

    def test_resolve_line(self):
        _loaded()
        _call("add_annotation", {"file_path": "app.py", "line": 5, "contents": "line1\nline2"})
        to_display = json.loads(_call("resolve_line", {"file_path": "app.py", "line": 10, "to": "display"}))
        assert to_display == {"code_line": 10, "display_line": 12}
        to_code = json.loads(_call("resolve_line", {"file_path": "app.py", "line": 6, "to": "code"}))
        assert to_code == {"display_line": 6, "code_line": 5}

    def test_find_keyword(self):
        _loaded()
        _call("add_annotation", {"file_path": "app.py", "line": 1, "contents": "#bug here"})
        _call("add_annotation", {"file_path": "app.py", "line": 9, "contents": "fine"})
        found = json.loads(_call("find_keyword", {"keyword": "bug"}))
        assert [f["line"] for f in found] == [1]

    def test_out_of_bounds_reported_as_error(self):
        _loaded()
        _call("toggle_bookmark", {"file_path": "app.py", "line": 99})
        assert "out of bounds" in _call("list_bookmarks")


class TestPersistence:
    def test_autosave_and_reload(self, tmp_path):
        srv = _loaded()
        _call("add_annotation", {"file_path": "app.py", "line": 3, "contents": "kept"})
        document = json.loads((tmp_path / "notes.json").read_text())
        assert document["annotations"]["app.py"]["annotations"] == [{"line": 3, "contents": "kept"}]

        srv._project.annotations.remove("app.py", 3)
        assert _call("reload_annotations") == "Annotations reloaded."
        assert srv._project.annotations.get("app.py", 3).contents == "kept"

    def test_autosave_disabled(self, tmp_path, monkeypatch):
        monkeypatch.setenv("ANNOTATIONS_AUTOSAVE", "0")
        _loaded()
        _call("add_annotation", {"file_path": "app.py", "line": 3, "contents": "x"})
        assert not (tmp_path / "notes.json").exists()
        _call("save_annotations")
        assert (tmp_path / "notes.json").exists()


class TestBlockPlacement:
    def test_identical_notes_on_one_line_stack(self):
        _loaded()
        first = json.loads(_call("add_annotation", {"file_path": "app.py", "line": 4, "contents": "dup"}))
        second = json.loads(_call("add_annotation", {"file_path": "app.py", "line": 4, "contents": "dup"}))
        assert first["display_lines"] == [4, 4]
        assert second["display_lines"] == [5, 5]

    def test_blocks_below_earlier_notes_shift(self):
        _loaded()
        _call("add_annotation", {"file_path": "app.py", "line": 1, "contents": "a\nb"})
        placed = json.loads(_call("add_annotation", {"file_path": "app.py", "line": 6, "contents": "c"}))
        assert placed["display_lines"] == [8, 8]

    def test_rejected_edit_keeps_existing_note(self):
        srv = _loaded()
        _call("add_annotation", {"file_path": "app.py", "line": 2, "contents": "old"})
        text = _call("edit_annotation", {"file_path": "app.py", "line": 2, "contents": 123})
        assert text.startswith("Error:")
        assert srv._project.annotations.get("app.py", 2).contents == "old"
