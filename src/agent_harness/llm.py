"""LiteLLM client wrapper - the inference boundary of the agent loop."""

import json
import logging
import time
from dataclasses import dataclass, field
from typing import Any

import litellm

from agent_harness.conversation import ToolInvocation
from agent_harness.utils import INVALID_JSON_KEY

_log = logging.getLogger(__name__)

FINAL_ANSWER = "final_answer"
TOOL_USE = "tool_use"
OTHER = "other"

_FINAL_REASONS = {"stop", "end_turn"}
_TOOL_REASONS = {"tool_calls", "function_call", "tool_use"}

TRANSIENT_ERRORS: tuple[type[Exception], ...] = (
    litellm.RateLimitError,
    litellm.Timeout,
    litellm.APIConnectionError,
    litellm.ServiceUnavailableError,
    litellm.InternalServerError,
)


class InferenceError(Exception):
    """Raised when the inference service fails in a way retrying won't fix."""


@dataclass
class ModelResponse:
    """One normalized reply from the model."""

    stop: str
    text: str = ""
    tool_calls: list[ToolInvocation] = field(default_factory=list)
    raw_stop_reason: str | None = None


def map_stop_reason(reason: str | None) -> str:
    if reason in _FINAL_REASONS:
        return FINAL_ANSWER
    if reason in _TOOL_REASONS:
        return TOOL_USE
    return OTHER


def parse_arguments(raw: Any) -> Any:
    """Decode tool-call arguments.

    Unparseable JSON is kept under ``__invalid_json__`` so the dispatcher can
    report it to the model instead of the loop crashing.
    """
    if raw is None:
        return {}
    if not isinstance(raw, str):
        return raw
    if not raw.strip():
        return {}
    try:
        return json.loads(raw)
    except json.JSONDecodeError:
        return {INVALID_JSON_KEY: raw}


class LLMClient:
    """LiteLLM client for model communication."""

    def __init__(self, config: Any) -> None:
        self.model = config.model
        self.api_base = config.api_base
        self.api_key = config.api_key
        self.temperature = config.temperature
        self.max_output_tokens = config.max_output_tokens
        self.max_retries = config.max_retries
        self.retry_backoff = config.retry_backoff

    def complete(self, messages: list[dict], tools: list[dict] | None = None) -> ModelResponse:
        """Send one completion request, retrying transient failures.

        Raises:
            InferenceError: On a non-transient failure, or once retries are exhausted.
        """
        attempt = 0
        while True:
            try:
                response = litellm.completion(
                    model=self.model,
                    messages=messages,
                    api_base=self.api_base,
                    api_key=self.api_key,
                    tools=tools or None,
                    max_tokens=self.max_output_tokens,
                    temperature=self.temperature,
                )
                break
            except TRANSIENT_ERRORS as e:
                if attempt >= self.max_retries:
                    raise InferenceError(
                        f"Inference service still failing after {self.max_retries} retries: "
                        f"{type(e).__name__}: {e}"
                    ) from e
                delay = self.retry_backoff * 2 ** attempt
                _log.warning(
                    "Transient inference error (%s), retry %d/%d in %.1fs",
                    type(e).__name__, attempt + 1, self.max_retries, delay,
                )
                time.sleep(delay)
                attempt += 1
            except Exception as e:
                raise InferenceError(self._describe_fatal(e)) from e

        try:
            return self._normalize(response)
        except (AttributeError, IndexError, TypeError) as e:
            raise InferenceError(
                f"Malformed response from the inference service: {type(e).__name__}: {e}"
            ) from e

    def _describe_fatal(self, error: Exception) -> str:
        if isinstance(error, litellm.AuthenticationError):
            return (
                f"Authentication failed for model {self.model}.\n\n"
                f"  Error: {error.message}\n\n"
                f"Check api_key in ~/.agent-harness/config.yaml"
            )
        if isinstance(error, litellm.BadRequestError):
            return (
                f"Model rejected the request.\n\n"
                f"  Error: {error}\n\n"
                f"The model may not support tool calls or this message format."
            )
        return f"Unexpected error from the inference service: {type(error).__name__}: {error}"

    def _normalize(self, response: Any) -> ModelResponse:
        choice = response.choices[0]
        message = choice.message
        raw_reason = getattr(choice, "finish_reason", None)

        calls: list[ToolInvocation] = []
        for i, tc in enumerate(getattr(message, "tool_calls", None) or []):
            function = getattr(tc, "function", None)
            name = getattr(function, "name", None)
            if not name:
                _log.warning("Skipping tool call %d with no function name", i)
                continue
            calls.append(ToolInvocation(
                id=getattr(tc, "id", None) or f"call_{i}",
                name=name,
                arguments=parse_arguments(getattr(function, "arguments", None)),
            ))

        stop = map_stop_reason(raw_reason)
        _log.debug("Model stopped with %r (%d tool calls)", raw_reason, len(calls))
        return ModelResponse(
            stop=stop,
            text=message.content or "",
            tool_calls=calls,
            raw_stop_reason=raw_reason,
        )
