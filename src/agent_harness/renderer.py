"""Rich terminal output helpers for the CLI."""

import contextlib
import io

from rich.console import Console
from rich.markdown import Markdown
from rich.panel import Panel
from rich.rule import Rule
from rich.status import Status
from rich.text import Text

_PREVIEW_LINES = 8


class Renderer:
    """Render markdown and styled status/error output in terminal."""

    def __init__(self, output_file: io.TextIOBase | None = None) -> None:
        self._output_file = output_file
        if output_file is not None:
            self.console = Console(file=output_file, force_terminal=False, highlight=False, width=120)
        else:
            self.console = Console()

    def print_error(self, message: str) -> None:
        """Print a styled error message."""
        self.console.print(Text(message, style="red"), highlight=False)

    def print_info(self, message: str) -> None:
        """Print a styled informational message."""
        self.console.print(Text(message, style="dim"), highlight=False)

    def print_warning(self, message: str) -> None:
        """Print a styled warning message."""
        self.console.print(Text(message, style="yellow"), highlight=False)

    def print_success(self, message: str) -> None:
        """Print a styled success message."""
        self.console.print(Text(message, style="green"), highlight=False)

    def status_spinner(self, message: str) -> "Status | contextlib.AbstractContextManager":
        """Return a spinner context manager, or a no-op one when output is captured."""
        if self._output_file is not None or not self.console.is_terminal:
            return contextlib.nullcontext()
        return self.console.status(message)

    def render_separator(self) -> None:
        self.console.print(Rule(style="dim"))

    def render_task(self, task: str, model: str) -> None:
        """Render the task header before the loop starts."""
        self.console.print(Text.assemble(
            ("Task", "bold cyan"),
            (" > ", "green"),
            (task, ""),
        ), highlight=False)
        self.console.print(Text(f"model: {model}", style="dim"), highlight=False)

    def render_assistant_text(self, text: str) -> None:
        """Intermediate reasoning the model emitted alongside tool calls."""
        if text.strip():
            self.console.print(Text(text.strip(), style="italic"), highlight=False)

    def render_tool_panel(self, tool_name: str, tool_args: object) -> None:
        """Render a compact inline display for tool execution.

        Args:
            tool_name: Name of the tool being executed
            tool_args: Arguments as sent by the model
        """
        self.console.print(Text.assemble(("◆ ", "bold cyan"), (tool_name, "cyan")), highlight=False)
        if not isinstance(tool_args, dict):
            self.console.print(Text(f"  {tool_args!r}", style="dim"), highlight=False)
            return
        for key, value in tool_args.items():
            value_str = str(value)
            if len(value_str) > 50:
                value_str = value_str[:47] + "..."
            self.console.print(Text.assemble(("  " + str(key), "dim"), ": " + value_str), highlight=False)

    def render_tool_result(self, output: str) -> None:
        """Show the first lines of a tool's text, red when it reports an error."""
        lines = output.splitlines() or [""]
        preview = "\n".join(lines[:_PREVIEW_LINES])
        if len(lines) > _PREVIEW_LINES:
            preview += f"\n... ({len(lines) - _PREVIEW_LINES} more lines)"
        is_error = output.startswith(("Error:", "Unknown tool:", "Unexpected error"))
        style = "red" if is_error else "dim"
        self.console.print(Text(preview, style=style), highlight=False)

    def render_final(self, text: str) -> None:
        """Render the final answer in a panel."""
        self.console.print(Panel(Markdown(text or "_(no text)_"), border_style="green", expand=True))
