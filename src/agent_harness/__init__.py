"""agent-harness - a minimal, model-agnostic tool-using agent loop."""

from importlib.metadata import version

__version__ = version("agent-harness")

from agent_harness.agent import Agent, AgentOutcome, AgentResult
from agent_harness.config import ConfigError, HarnessConfig, load_config
from agent_harness.conversation import Conversation
from agent_harness.llm import InferenceError, LLMClient
from agent_harness.registry import Dispatcher, ToolRegistry
from agent_harness.tool_result import ToolResult
