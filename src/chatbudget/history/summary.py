"""Rendering of the pre-summary snapshot."""

from collections.abc import Sequence

from jinja2 import Environment, StrictUndefined

from ..types import Message, UserMessage

SUMMARY_HEADER = (
    "Summarize the conversation below using concise bullet points. Maintain a focus "
    "on any requests, questions, or action items the user may have raised. Include:\n"
    "- Key topics discussed\n"
    "- Notable shifts in tone\n"
    "- Questions asked and answered"
)

# Every block ends with a blank line; the final one is trimmed after rendering.
SUMMARY_TEMPLATE = (
    "{{ header }}\n\n"
    "{% for entry in entries %}{{ entry.role }}: {{ entry.content }}\n\n{% endfor %}"
)

SEPARATOR_LENGTH = 2

_env = Environment(
    undefined=StrictUndefined,
    autoescape=False,  # prompts, not HTML
    keep_trailing_newline=True,
)
_template = _env.from_string(SUMMARY_TEMPLATE)


def render_summary_request(messages: Sequence[Message], header: str = SUMMARY_HEADER) -> str:
    """
    Render the summarization request for ``messages``.

    Each message becomes ``"<role>: <content>"`` followed by a blank line. The
    trailing separator is trimmed, so the text ends with the last message's
    content.
    """
    entries = [
        {"role": message.role.value, "content": message.content or ""}
        for message in messages
    ]
    rendered = _template.render(header=header, entries=entries)
    return rendered[:-SEPARATOR_LENGTH]


def build_summary_message(messages: Sequence[Message]) -> UserMessage:
    """Build the user message that asks the model to summarize ``messages``."""
    return UserMessage(render_summary_request(messages))
