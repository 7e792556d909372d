"""Modal screens."""

from __future__ import annotations

from typing import Any

from textual.app import ComposeResult
from textual.containers import Container
from textual.screen import ModalScreen
from textual.widgets import Input, Static


class AttachPathScreen(ModalScreen[str | None]):
    """Ask for the path of a file to attach; dismisses with ``None`` on Esc."""

    CSS = """
    AttachPathScreen {
        align: center middle;
    }

    #attach-dialog {
        width: 70;
        height: auto;
        padding: 1 2;
        border: round $panel;
        background: $surface;
    }

    #attach-title {
        padding-bottom: 1;
        text-style: bold;
    }

    #attach-path {
        width: 100%;
        margin-bottom: 1;
    }
    """

    def compose(self) -> ComposeResult:
        with Container(id="attach-dialog"):
            yield Static("Attach file", id="attach-title")
            yield Input(placeholder="~/path/to/file", id="attach-path")
            yield Static("Enter to attach | Esc to cancel", id="attach-help")

    def on_mount(self) -> None:
        self.query_one("#attach-path", Input).focus()

    def on_input_submitted(self, event: Input.Submitted) -> None:
        if event.input.id != "attach-path":
            return
        event.stop()
        value = event.value.strip()
        self.dismiss(value or None)

    def on_key(self, event: Any) -> None:  # noqa: ANN401
        if str(getattr(event, "key", "")).lower() == "escape":
            self.dismiss(None)
