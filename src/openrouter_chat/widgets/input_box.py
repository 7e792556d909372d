"""Input row with the message field, attach button, and send button."""

from __future__ import annotations

import os

from textual import events
from textual.containers import Horizontal
from textual.message import Message
from textual.widgets import Button, Input

SEND_LABEL = "Send"
BUSY_LABEL = "Processing..."


def extract_pasted_paths(text: str) -> list[str]:
    """Return the file paths in pasted text, as terminals emit for drag and drop.

    Every token must name an existing file; otherwise the paste is ordinary
    text and an empty list is returned.
    """
    paths: list[str] = []
    for token in text.strip().split():
        cleaned = token.strip("'\"")
        if cleaned.startswith("file://"):
            cleaned = cleaned[len("file://") :]
        if not cleaned or not os.path.isfile(os.path.expanduser(cleaned)):
            return []
        paths.append(cleaned)
    return paths


class MessageInput(Input):
    """Message field that turns pasted file paths into attach requests."""

    class FilesPasted(Message):
        """Posted with the paths found in a paste."""

        def __init__(self, paths: list[str]) -> None:
            super().__init__()
            self.paths = paths

    accept_files = True

    def _on_paste(self, event: events.Paste) -> None:
        if not self.accept_files or not event.text:
            return
        paths = extract_pasted_paths(event.text)
        if not paths:
            return
        # Skip Input's own handler so the paths never land in the draft.
        event.prevent_default()
        event.stop()
        self.post_message(self.FilesPasted(paths))


class InputBox(Horizontal):
    """Submission form; the whole row is disabled while a request is in flight."""

    class AttachRequested(Message):
        """Posted when the user clicks the attach button."""

    def compose(self):  # type: ignore[override]
        yield MessageInput(placeholder="Type a message...", id="message_input")
        yield Button("Attach", id="attach_button", variant="default")
        yield Button(SEND_LABEL, id="send_button", variant="success")

    def set_busy(self, busy: bool) -> None:
        self.query_one("#message_input", Input).disabled = busy
        send_button = self.query_one("#send_button", Button)
        send_button.disabled = busy
        send_button.label = BUSY_LABEL if busy else SEND_LABEL

    def set_attach_enabled(self, enabled: bool) -> None:
        self.query_one("#attach_button", Button).display = enabled
        self.query_one("#message_input", MessageInput).accept_files = enabled

    def on_button_pressed(self, event: Button.Pressed) -> None:
        if event.button.id == "attach_button":
            event.stop()
            self.post_message(self.AttachRequested())
