"""Tests for Conversation turns and message rendering."""

import json

import pytest

from agent_harness.conversation import Conversation, ToolInvocation, ToolOutput


def _calls(*ids):
    return [ToolInvocation(id=i, name="read_file", arguments={"path": f"{i}.txt"}) for i in ids]


class TestTurns:
    def test_seeded_with_user_text(self):
        conv = Conversation()
        conv.add_user("do the thing")
        assert len(conv) == 1
        assert conv.turns[0].role == "user"

    def test_results_must_follow_assistant(self):
        conv = Conversation()
        conv.add_user("hi")
        with pytest.raises(ValueError):
            conv.add_tool_results([ToolOutput("a", "x")])

    def test_result_ids_must_match(self):
        conv = Conversation()
        conv.add_user("hi")
        conv.add_assistant("", _calls("a", "b"))
        with pytest.raises(ValueError):
            conv.add_tool_results([ToolOutput("a", "x")])

    def test_turns_is_a_copy(self):
        conv = Conversation()
        conv.add_user("hi")
        conv.turns.clear()
        assert len(conv) == 1


class TestMessages:
    def test_system_prompt_first_and_not_a_turn(self):
        conv = Conversation()
        conv.add_user("hi")
        msgs = conv.to_messages("SYSTEM")
        assert msgs[0] == {"role": "system", "content": "SYSTEM"}
        assert msgs[1] == {"role": "user", "content": "hi"}
        assert len(conv) == 1

    def test_no_system_prompt(self):
        conv = Conversation()
        conv.add_user("hi")
        assert conv.to_messages() == [{"role": "user", "content": "hi"}]

    def test_tool_round_trip_shape(self):
        conv = Conversation()
        conv.add_user("read both")
        conv.add_assistant("Reading.", _calls("a", "b"))
        conv.add_tool_results([ToolOutput("a", "A"), ToolOutput("b", "B")])
        conv.add_assistant("Done.")

        msgs = conv.to_messages("S")
        assert [m["role"] for m in msgs] == ["system", "user", "assistant", "tool", "tool", "assistant"]
        assistant = msgs[2]
        assert assistant["content"] == "Reading."
        assert [tc["id"] for tc in assistant["tool_calls"]] == ["a", "b"]
        assert json.loads(assistant["tool_calls"][0]["function"]["arguments"]) == {"path": "a.txt"}
        assert msgs[3] == {"role": "tool", "tool_call_id": "a", "content": "A"}
        assert msgs[5] == {"role": "assistant", "content": "Done."}

    def test_empty_assistant_text_with_calls_is_none(self):
        conv = Conversation()
        conv.add_user("x")
        conv.add_assistant("", _calls("a"))
        assert conv.to_messages()[1]["content"] is None

    def test_invalid_json_arguments_replayed_as_empty_object(self):
        conv = Conversation()
        conv.add_user("x")
        conv.add_assistant("", [ToolInvocation("a", "read_file", {"__invalid_json__": "{bad"})])
        assert conv.to_messages()[1]["tool_calls"][0]["function"]["arguments"] == "{}"
