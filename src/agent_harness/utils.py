"""Shared utilities."""

DEFAULT_MAX_OUTPUT_CHARS = 30000

# Marks tool-call arguments the model sent as unparseable JSON
INVALID_JSON_KEY = "__invalid_json__"


def truncate_output(text: str, max_length: int = DEFAULT_MAX_OUTPUT_CHARS) -> str:
    """Truncate output to max_length characters.

    Args:
        text: The text to truncate
        max_length: Maximum length (default 30000)

    Returns:
        Truncated text with indicator appended
    """
    if len(text) <= max_length:
        return text

    truncated = text[:max_length]
    indicator = (
        f"\n\n[Output truncated - showing first {max_length} of {len(text)} characters]"
    )
    return truncated + indicator
