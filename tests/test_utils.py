"""Tests for shared utilities and the system prompt."""

from agent_harness.system_prompt import SYSTEM_PROMPT, build_system_prompt
from agent_harness.utils import truncate_output


class TestTruncateOutput:
    def test_short_text_unchanged(self):
        assert truncate_output("abc", 10) == "abc"

    def test_exact_limit_unchanged(self):
        assert truncate_output("a" * 10, 10) == "a" * 10

    def test_long_text_marked(self):
        text = truncate_output("a" * 25, 10)
        assert text == "a" * 10 + "\n\n[Output truncated - showing first 10 of 25 characters]"


class TestSystemPrompt:
    def test_default_mentions_workspace(self, tmp_path):
        prompt = build_system_prompt(str(tmp_path))
        assert prompt.startswith(SYSTEM_PROMPT.rstrip())
        assert str(tmp_path) in prompt

    def test_override_replaces_default(self):
        prompt = build_system_prompt("/w", "Be terse.")
        assert prompt.startswith("Be terse.")
        assert "edit_file" not in prompt
