"""Model selector and credential field."""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any

from textual.app import ComposeResult
from textual.containers import Vertical
from textual.widgets import Input, Label, Select

CREDENTIAL_SET = "API key entered"
CREDENTIAL_MISSING = "No API key entered"


class SessionPanel(Vertical):
    """Session settings: the closed model list and the in-memory credential."""

    DEFAULT_CSS = """
    SessionPanel {
        height: auto;
        padding: 0 1;
    }
    SessionPanel #credential_status {
        color: $text-muted;
    }
    """

    def __init__(self, models: Sequence[str], model: str, **kwargs: Any) -> None:
        super().__init__(**kwargs)
        self._models = tuple(models)
        self._model = model

    def compose(self) -> ComposeResult:
        yield Label("Model")
        yield Select(
            [(name, name) for name in self._models],
            value=self._model,
            allow_blank=False,
            id="model_select",
        )
        yield Label("API Key")
        yield Input(placeholder="Enter your OpenRouter API key", password=True, id="api_key_input")
        yield Label(CREDENTIAL_MISSING, id="credential_status")

    def show_credential_state(self, has_credential: bool) -> None:
        self.query_one("#credential_status", Label).update(
            CREDENTIAL_SET if has_credential else CREDENTIAL_MISSING
        )
