"""Message bubble widget for transcript rendering."""

from __future__ import annotations

from typing import Any

from rich.markdown import Markdown
from rich.text import Text
from textual.app import ComposeResult
from textual.containers import Vertical
from textual.widgets import Static

from ..models import Attachment, Message, MessageRole

ROLE_LABELS: dict[MessageRole, str] = {
    MessageRole.USER: "You",
    MessageRole.ASSISTANT: "Bot",
    MessageRole.ERROR: "Error",
}


def describe_for_display(attachment: Attachment) -> str:
    """Short preview line for an attachment shown under a user message."""
    if attachment.is_image:
        return f"[image] {attachment.name}"
    if attachment.is_text:
        return f"[text] {attachment.name} ({len(attachment.content or '')} chars)"
    return f"[file] {attachment.name} ({attachment.type})"


class MessageBubble(Vertical):
    """Render one transcript entry: role label, timestamp, body, and attachment previews."""

    DEFAULT_CSS = """
    MessageBubble {
        height: auto;
        margin-bottom: 1;
        padding: 0 1;
    }
    MessageBubble > #header-block {
        height: 1;
    }
    MessageBubble > #content-block {
        height: auto;
    }
    MessageBubble > #attachment-block {
        height: auto;
        color: $text-muted;
    }
    MessageBubble.role-error > #content-block {
        color: $error;
    }
    """

    def __init__(self, message: Message, show_timestamp: bool = True, **kwargs: Any) -> None:
        super().__init__(**kwargs)
        self.message = message
        self.show_timestamp = show_timestamp
        self.add_class(f"role-{message.role.value}")

    @property
    def role(self) -> MessageRole:
        return self.message.role

    @property
    def role_prefix(self) -> str:
        return ROLE_LABELS[self.message.role]

    def _compose_header(self) -> Text:
        header = Text(self.role_prefix, style="bold")
        if self.show_timestamp and self.message.timestamp:
            header.append(f"  {self.message.timestamp}", style="dim")
        return header

    def _compose_body(self) -> Markdown | Text:
        # Only model output is treated as markdown; user and error text stay literal.
        if self.message.role is MessageRole.ASSISTANT:
            return Markdown(self.message.content)
        return Text(self.message.content)

    def compose(self) -> ComposeResult:
        yield Static(self._compose_header(), id="header-block")
        yield Static(self._compose_body(), id="content-block")
        if self.message.attachments:
            preview = "\n".join(describe_for_display(item) for item in self.message.attachments)
            yield Static(Text(preview), id="attachment-block")
