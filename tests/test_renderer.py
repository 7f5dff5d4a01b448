"""Tests for Renderer output helpers."""

import io

from agent_harness.renderer import Renderer


def _renderer():
    out = io.StringIO()
    return Renderer(output_file=out), out


class TestRenderer:
    def test_messages_with_brackets_are_not_markup(self):
        r, out = _renderer()
        r.print_error("[MCP: github] failed")
        assert "[MCP: github] failed" in out.getvalue()

    def test_tool_panel_truncates_long_values(self):
        r, out = _renderer()
        r.render_tool_panel("bash", {"command": "x" * 80})
        text = out.getvalue()
        assert "bash" in text
        assert "x" * 47 + "..." in text
        assert "x" * 60 not in text

    def test_tool_panel_name_with_brackets_is_literal(self):
        r, out = _renderer()
        r.render_tool_panel("foo[/bar]", {})
        assert "foo[/bar]" in out.getvalue()

    def test_tool_panel_non_mapping_arguments(self):
        r, out = _renderer()
        r.render_tool_panel("bash", ["ls"])
        assert "['ls']" in out.getvalue()

    def test_tool_result_preview_is_capped(self):
        r, out = _renderer()
        r.render_tool_result("\n".join(f"line{i}" for i in range(20)))
        text = out.getvalue()
        assert "line7" in text
        assert "line8" not in text
        assert "(12 more lines)" in text

    def test_final_answer(self):
        r, out = _renderer()
        r.render_final("**All done**")
        assert "All done" in out.getvalue()

    def test_spinner_is_noop_when_captured(self):
        r, out = _renderer()
        with r.status_spinner("working"):
            pass
        assert out.getvalue() == ""
