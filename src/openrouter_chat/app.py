"""Main Textual application for chatting through OpenRouter."""

from __future__ import annotations

import logging
import sys
from typing import Any

from textual.app import App, ComposeResult
from textual.binding import Binding
from textual.containers import Container
from textual.events import Paste
from textual.widgets import Button, Footer, Header, Input, Select

from .config import load_config
from .controller import ConversationController
from .dispatcher import RequestDispatcher
from .exceptions import AttachmentReadError
from .logging_utils import configure_logging
from .models import ConversationSnapshot, MessageRole
from .screens import AttachPathScreen
from .task_manager import TaskManager
from .widgets.attachment_list import AttachmentList
from .widgets.conversation import ConversationView
from .widgets.input_box import InputBox, MessageInput, extract_pasted_paths
from .widgets.message import MessageBubble
from .widgets.session_panel import SessionPanel

LOGGER = logging.getLogger(__name__)


class OpenRouterChatApp(App[None]):
    """Rendering surface: forwards widget events to the controller and redraws from snapshots."""

    CSS = """
    Screen {
        layout: vertical;
        background: $background;
    }

    #app-root {
        layout: vertical;
        width: 100%;
        height: 1fr;
    }

    #conversation {
        height: 1fr;
        padding: 1;
        border: round $panel;
    }

    #pending_attachments {
        height: auto;
        max-height: 6;
    }

    InputBox {
        height: auto;
        padding: 0 1 1 1;
        border-top: solid $panel;
        background: $surface;
    }

    #message_input {
        width: 1fr;
    }
    """

    BINDINGS = [
        Binding("ctrl+q", "quit", "Quit"),
        Binding("ctrl+o", "attach_file", "Attach"),
        Binding("ctrl+s", "send_message", "Send"),
    ]

    def __init__(
        self,
        config: dict[str, dict[str, Any]] | None = None,
        dispatcher: Any | None = None,
    ) -> None:
        self.config = config or load_config()
        configure_logging(self.config["logging"])
        LOGGER.info(
            "app.python",
            extra={
                "event": "app.python",
                "executable": sys.executable,
                "version": sys.version.split()[0],
            },
        )
        openrouter_cfg = self.config["openrouter"]
        attachments_cfg = self.config["attachments"]
        self.dispatcher = dispatcher or RequestDispatcher(
            endpoint=str(openrouter_cfg["endpoint"]),
            referer=str(openrouter_cfg["referer"]),
            timeout=float(openrouter_cfg["timeout"]),
        )
        self.controller = ConversationController(
            self.dispatcher,
            models=list(openrouter_cfg["models"]),
            default_model=str(openrouter_cfg["model"]),
            attachments_enabled=bool(attachments_cfg["enabled"]),
            max_image_bytes=int(attachments_cfg["max_image_bytes"]),
            max_file_bytes=int(attachments_cfg["max_file_bytes"]),
        )
        self._tasks = TaskManager()
        self._unsubscribe = None
        self._was_in_flight = False
        super().__init__()

    def compose(self) -> ComposeResult:
        yield Header()
        with Container(id="app-root"):
            yield SessionPanel(self.controller.models, self.controller.model, id="session_panel")
            yield ConversationView(
                show_timestamps=bool(self.config["ui"]["show_timestamps"]),
                id="conversation",
            )
            yield AttachmentList(id="pending_attachments")
            yield InputBox()
        yield Footer()

    def on_mount(self) -> None:
        self.title = str(self.config["app"]["title"])
        self.sub_title = f"Model: {self.controller.model}"
        self.query_one(InputBox).set_attach_enabled(self.controller.attachments_enabled)
        self.query_one("#pending_attachments", AttachmentList).display = False
        self._unsubscribe = self.controller.subscribe(self._on_snapshot)
        self.query_one("#message_input", Input).focus()

    async def on_unmount(self) -> None:
        if self._unsubscribe is not None:
            self._unsubscribe()
        await self._tasks.cancel_all()
        close = getattr(self.dispatcher, "aclose", None)
        if close is not None:
            await close()

    # -- rendering ---------------------------------------------------------

    def _on_snapshot(self, snapshot: ConversationSnapshot) -> None:
        self.call_later(self._render_snapshot, snapshot)

    def _style_bubble(self, bubble: MessageBubble) -> None:
        ui_cfg = self.config["ui"]
        colors = {
            MessageRole.USER: ui_cfg["user_message_color"],
            MessageRole.ASSISTANT: ui_cfg["assistant_message_color"],
            MessageRole.ERROR: ui_cfg["error_message_color"],
        }
        bubble.styles.background = str(colors[bubble.role])
        bubble.styles.border = ("round", str(ui_cfg["border_color"]))

    async def _render_snapshot(self, snapshot: ConversationSnapshot) -> None:
        self.query_one(InputBox).set_busy(snapshot.in_flight)
        self.query_one("#session_panel", SessionPanel).show_credential_state(
            snapshot.has_credential
        )
        self.query_one("#pending_attachments", AttachmentList).show(
            snapshot.pending_attachments
        )
        conversation = self.query_one("#conversation", ConversationView)
        for bubble in await conversation.sync(snapshot.messages):
            self._style_bubble(bubble)

        message_input = self.query_one("#message_input", Input)
        if snapshot.in_flight and not self._was_in_flight:
            # The controller cleared its draft when this submission started.
            message_input.value = ""
            self.sub_title = "Waiting for response..."
        elif self._was_in_flight and not snapshot.in_flight:
            self.sub_title = f"Model: {snapshot.model}"
            message_input.focus()
        self._was_in_flight = snapshot.in_flight

    # -- input events ------------------------------------------------------

    def on_input_changed(self, event: Input.Changed) -> None:
        if event.input.id == "message_input":
            if event.value != self.controller.draft:
                self.controller.set_draft(event.value)
        elif event.input.id == "api_key_input":
            self.controller.set_credential(event.value)

    def on_input_submitted(self, event: Input.Submitted) -> None:
        if event.input.id == "message_input":
            self.action_send_message()

    def on_button_pressed(self, event: Button.Pressed) -> None:
        if event.button.id == "send_button":
            self.action_send_message()

    def on_select_changed(self, event: Select.Changed) -> None:
        if event.select.id != "model_select" or not isinstance(event.value, str):
            return
        if self.controller.set_model(event.value):
            self.sub_title = f"Model: {event.value}"

    def action_send_message(self) -> None:
        self._tasks.spawn(self.controller.submit(), label="submit")

    # -- attachments -------------------------------------------------------

    def action_attach_file(self) -> None:
        if not self.controller.attachments_enabled:
            self.sub_title = "Attachments are disabled in configuration."
            return
        self.push_screen(AttachPathScreen(), callback=self._on_attach_path)

    def on_input_box_attach_requested(self, _message: InputBox.AttachRequested) -> None:
        self.action_attach_file()

    def _on_attach_path(self, path: str | None) -> None:
        if path:
            self._tasks.spawn(self.attach_path(path), label="attach")

    async def attach_path(self, path: str) -> None:
        """Attach one file and report the outcome in the subtitle."""
        try:
            attachment = await self.controller.attach(path)
        except AttachmentReadError as exc:
            self.sub_title = str(exc)
            return
        if attachment is not None:
            count = len(self.controller.pending_attachments)
            self.sub_title = f"Attached: {attachment.name} ({count} pending)"

    def _attach_paths(self, paths: list[str]) -> None:
        for path in paths:
            self._tasks.spawn(self.attach_path(path), label="attach")

    def on_message_input_files_pasted(self, message: MessageInput.FilesPasted) -> None:
        self._attach_paths(message.paths)

    def on_paste(self, event: Paste) -> None:
        """Attach files dropped while focus is outside the message input."""
        if not self.controller.attachments_enabled or not event.text:
            return
        paths = extract_pasted_paths(event.text)
        if paths:
            event.stop()
            self._attach_paths(paths)

    def on_attachment_list_remove_requested(self, message: AttachmentList.RemoveRequested) -> None:
        removed = self.controller.remove_attachment(message.index)
        if removed is not None:
            self.sub_title = f"Removed: {removed.name}"
