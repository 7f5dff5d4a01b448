"""Agent - the tool-use loop between the model and the registry."""

import enum
import logging
from dataclasses import dataclass

from agent_harness.conversation import Conversation, ToolOutput
from agent_harness.llm import FINAL_ANSWER, TOOL_USE, InferenceError, LLMClient
from agent_harness.registry import Dispatcher, ToolRegistry
from agent_harness.renderer import Renderer
from agent_harness.system_prompt import SYSTEM_PROMPT

_log = logging.getLogger(__name__)

DEFAULT_MAX_ITERATIONS = 25


class AgentOutcome(enum.Enum):
    COMPLETED = "completed"
    ITERATION_LIMIT = "iteration_limit"
    FATAL_ERROR = "fatal_error"


@dataclass
class AgentResult:
    """How a task ended.

    ``text`` is the model's final answer, the iteration-limit notice, or the
    inference error message; ``iterations`` counts inference calls made.
    """

    outcome: AgentOutcome
    text: str
    iterations: int
    conversation: Conversation


class Agent:
    """Drives one task: ask the model, run requested tools, feed results back.

    States per iteration: awaiting the model, model responded, dispatching
    tools. The loop ends on a final answer, on a fatal inference error, or
    after ``max_iterations`` inference calls that each asked for tools.
    """

    def __init__(
        self,
        llm_client: LLMClient,
        registry: ToolRegistry,
        dispatcher: Dispatcher,
        renderer: Renderer | None = None,
        max_iterations: int = DEFAULT_MAX_ITERATIONS,
        system_prompt: str = SYSTEM_PROMPT,
    ) -> None:
        if max_iterations < 1:
            raise ValueError("max_iterations must be at least 1")
        self.llm_client = llm_client
        self.registry = registry
        self.dispatcher = dispatcher
        self.renderer = renderer
        self.max_iterations = max_iterations
        self.system_prompt = system_prompt

    def run(self, task: str) -> AgentResult:
        """Run the loop for ``task`` until it completes or a bound is hit."""
        conversation = Conversation()
        conversation.add_user(task)
        tools = self.registry.openai_tools()

        iterations = 0
        while iterations < self.max_iterations:
            iterations += 1
            _log.debug("Iteration %d/%d", iterations, self.max_iterations)

            messages = conversation.to_messages(self.system_prompt)
            try:
                if self.renderer is not None:
                    with self.renderer.status_spinner("[dim]Thinking...[/dim]"):
                        response = self.llm_client.complete(messages, tools)
                else:
                    response = self.llm_client.complete(messages, tools)
            except InferenceError as e:
                _log.error("Inference failed on iteration %d: %s", iterations, e)
                return AgentResult(AgentOutcome.FATAL_ERROR, str(e), iterations, conversation)

            conversation.add_assistant(response.text, response.tool_calls)

            if response.stop == FINAL_ANSWER:
                _log.info("Final answer after %d iterations", iterations)
                return AgentResult(AgentOutcome.COMPLETED, response.text, iterations, conversation)

            if response.stop != TOOL_USE:
                _log.warning(
                    "Model stopped with unexpected reason %r (%d tool calls)",
                    response.raw_stop_reason, len(response.tool_calls),
                )

            if not response.tool_calls:
                return AgentResult(AgentOutcome.COMPLETED, response.text, iterations, conversation)

            if self.renderer is not None:
                self.renderer.render_assistant_text(response.text)

            outputs = []
            for call in response.tool_calls:
                if self.renderer is not None:
                    self.renderer.render_tool_panel(call.name, call.arguments)
                content = self.dispatcher.dispatch(call.name, call.arguments)
                if self.renderer is not None:
                    self.renderer.render_tool_result(content)
                outputs.append(ToolOutput(invocation_id=call.id, content=content))
            conversation.add_tool_results(outputs)

        message = (
            f"Stopped: reached the iteration limit of {self.max_iterations} "
            f"without a final answer."
        )
        _log.warning(message)
        return AgentResult(AgentOutcome.ITERATION_LIMIT, message, iterations, conversation)
