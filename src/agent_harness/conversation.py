"""Conversation history for one agent task."""

import json
import logging
from dataclasses import dataclass, field
from typing import Any

from agent_harness.utils import INVALID_JSON_KEY

_log = logging.getLogger(__name__)


@dataclass(frozen=True)
class ToolInvocation:
    """A tool call requested by the model."""

    id: str
    name: str
    arguments: Any


@dataclass(frozen=True)
class ToolOutput:
    """The text produced for one invocation, matched by id."""

    invocation_id: str
    content: str


@dataclass
class Turn:
    """One entry in the history.

    A user turn holds either ``text`` or ``tool_outputs``; an assistant turn
    holds ``text`` and any ``tool_calls`` it requested.
    """

    role: str
    text: str = ""
    tool_calls: list[ToolInvocation] = field(default_factory=list)
    tool_outputs: list[ToolOutput] = field(default_factory=list)


class Conversation:
    """Ordered turns, seeded with the task and discarded when the task ends."""

    def __init__(self) -> None:
        self._turns: list[Turn] = []

    @property
    def turns(self) -> list[Turn]:
        return list(self._turns)

    def __len__(self) -> int:
        return len(self._turns)

    def add_user(self, text: str) -> None:
        self._turns.append(Turn(role="user", text=text))

    def add_assistant(self, text: str, tool_calls: list[ToolInvocation] | None = None) -> None:
        self._turns.append(Turn(role="assistant", text=text or "", tool_calls=list(tool_calls or [])))

    def add_tool_results(self, outputs: list[ToolOutput]) -> None:
        """Append the results answering the most recent assistant turn.

        Raises:
            ValueError: If the previous turn is not an assistant turn, or the
                result ids do not match its requested ids one to one.
        """
        last = self._turns[-1] if self._turns else None
        if last is None or last.role != "assistant":
            raise ValueError("Tool results must follow an assistant turn")
        requested = [call.id for call in last.tool_calls]
        answered = [out.invocation_id for out in outputs]
        if sorted(requested) != sorted(answered):
            raise ValueError(f"Tool result ids {answered} do not match requested ids {requested}")
        self._turns.append(Turn(role="user", tool_outputs=list(outputs)))

    def to_messages(self, system_prompt: str | None = None) -> list[dict[str, Any]]:
        """Render the history as chat messages for the inference service.

        Args:
            system_prompt: Sent ahead of the turns; not itself a turn.

        Returns:
            A new list of message dicts in the OpenAI/litellm format.
        """
        messages: list[dict[str, Any]] = []
        if system_prompt:
            messages.append({"role": "system", "content": system_prompt})

        for turn in self._turns:
            if turn.tool_outputs:
                for out in turn.tool_outputs:
                    messages.append({
                        "role": "tool",
                        "tool_call_id": out.invocation_id,
                        "content": out.content,
                    })
            elif turn.role == "assistant" and turn.tool_calls:
                messages.append({
                    "role": "assistant",
                    "content": turn.text or None,
                    "tool_calls": [
                        {
                            "id": call.id,
                            "type": "function",
                            "function": {
                                "name": call.name,
                                "arguments": _encode_arguments(call.arguments),
                            },
                        }
                        for call in turn.tool_calls
                    ],
                })
            else:
                messages.append({"role": turn.role, "content": turn.text})
        return messages


def _encode_arguments(arguments: Any) -> str:
    if isinstance(arguments, str):
        return arguments
    if isinstance(arguments, dict) and INVALID_JSON_KEY in arguments:
        # providers reject malformed JSON in replayed history
        return "{}"
    try:
        return json.dumps(arguments)
    except (TypeError, ValueError):
        _log.debug("Could not encode tool arguments %r", arguments)
        return "{}"
