"""Conversation controller: owns transcript, draft, attachments, and the in-flight guard."""

from __future__ import annotations

import asyncio
from collections.abc import Callable, Iterable
import logging
from pathlib import Path
from typing import Protocol

from .attachments import (
    DEFAULT_MAX_FILE_BYTES,
    DEFAULT_MAX_IMAGE_BYTES,
    compose_message_body,
    read_attachment,
)
from .config import DEFAULT_MODEL, DEFAULT_MODELS
from .exceptions import AttachmentReadError
from .models import (
    Attachment,
    ConversationSnapshot,
    DispatchResult,
    Message,
    MessageRole,
    format_timestamp,
)

LOGGER = logging.getLogger(__name__)

CREDENTIAL_REQUIRED = "Please enter an API key first"
ERROR_LABEL = "Error"
GENERIC_FAILURE = "An error occurred"

SnapshotListener = Callable[[ConversationSnapshot], None]


class Dispatcher(Protocol):
    """Anything that can deliver one message and report the outcome."""

    async def send_message(self, message: str, model: str, credential: str) -> DispatchResult:
        ...


class ConversationController:
    """Single owner of all mutable chat state.

    Every mutating operation ends by pushing a :class:`ConversationSnapshot`
    to subscribers; the rendering surface only ever reads snapshots.
    """

    def __init__(
        self,
        dispatcher: Dispatcher,
        *,
        models: Iterable[str] = DEFAULT_MODELS,
        default_model: str = DEFAULT_MODEL,
        attachments_enabled: bool = True,
        max_image_bytes: int = DEFAULT_MAX_IMAGE_BYTES,
        max_file_bytes: int = DEFAULT_MAX_FILE_BYTES,
        clock: Callable[[], str] = format_timestamp,
    ) -> None:
        self._dispatcher = dispatcher
        self._models: tuple[str, ...] = tuple(dict.fromkeys(models))
        if default_model not in self._models:
            self._models = (default_model, *self._models)
        self._model = default_model
        self._credential = ""
        self._draft = ""
        self._pending: list[Attachment] = []
        self._messages: list[Message] = []
        self._in_flight = False
        self._listeners: list[SnapshotListener] = []
        self._clock = clock
        self.attachments_enabled = attachments_enabled
        self.max_image_bytes = max_image_bytes
        self.max_file_bytes = max_file_bytes

    # -- read side ---------------------------------------------------------

    @property
    def messages(self) -> tuple[Message, ...]:
        return tuple(self._messages)

    @property
    def pending_attachments(self) -> tuple[Attachment, ...]:
        return tuple(self._pending)

    @property
    def draft(self) -> str:
        return self._draft

    @property
    def model(self) -> str:
        return self._model

    @property
    def models(self) -> tuple[str, ...]:
        return self._models

    @property
    def in_flight(self) -> bool:
        return self._in_flight

    @property
    def has_credential(self) -> bool:
        return bool(self._credential)

    def snapshot(self) -> ConversationSnapshot:
        """Return an immutable copy of the current state."""
        return ConversationSnapshot(
            messages=tuple(self._messages),
            draft=self._draft,
            pending_attachments=tuple(self._pending),
            in_flight=self._in_flight,
            model=self._model,
            models=self._models,
            has_credential=self.has_credential,
        )

    def subscribe(self, listener: SnapshotListener) -> Callable[[], None]:
        """Register ``listener`` for snapshots and return an unsubscribe callable."""
        self._listeners.append(listener)

        def _unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return _unsubscribe

    def _notify(self) -> None:
        snapshot = self.snapshot()
        for listener in list(self._listeners):
            try:
                listener(snapshot)
            except Exception:  # noqa: BLE001 - a broken observer must not break state.
                LOGGER.exception(
                    "controller.listener_failed",
                    extra={"event": "controller.listener_failed"},
                )

    def _append(
        self,
        role: MessageRole,
        content: str,
        attachments: tuple[Attachment, ...] = (),
    ) -> Message:
        message = Message(
            role=role,
            content=content,
            timestamp=self._clock(),
            attachments=attachments,
        )
        self._messages.append(message)
        return message

    # -- session settings --------------------------------------------------

    def set_draft(self, text: str) -> None:
        self._draft = text
        self._notify()

    def set_credential(self, credential: str) -> None:
        """Hold the credential in memory only; it is never logged or persisted."""
        self._credential = credential.strip()
        self._notify()

    def set_model(self, model: str) -> bool:
        """Select ``model`` if it belongs to the configured enumeration."""
        if model not in self._models:
            LOGGER.warning(
                "controller.model.rejected",
                extra={"event": "controller.model.rejected", "model": model},
            )
            return False
        self._model = model
        LOGGER.info(
            "controller.model.selected",
            extra={"event": "controller.model.selected", "model": model},
        )
        self._notify()
        return True

    # -- attachments -------------------------------------------------------

    def add_attachment(self, attachment: Attachment) -> None:
        """Queue an already-read attachment for the next send."""
        self._pending.append(attachment)
        self._notify()

    async def attach(self, path: str | Path) -> Attachment | None:
        """Read ``path`` off the event loop and queue the result.

        Returns ``None`` when attachments are disabled. Read failures are
        logged and re-raised as :class:`AttachmentReadError`; they never touch
        the transcript.
        """
        if not self.attachments_enabled:
            LOGGER.info(
                "attachment.disabled",
                extra={"event": "attachment.disabled", "path": str(path)},
            )
            return None
        try:
            attachment = await asyncio.to_thread(
                read_attachment,
                path,
                max_image_bytes=self.max_image_bytes,
                max_file_bytes=self.max_file_bytes,
            )
        except AttachmentReadError as exc:
            LOGGER.warning(
                "attachment.read_failed",
                extra={"event": "attachment.read_failed", "path": str(path), "error": str(exc)},
            )
            raise
        self.add_attachment(attachment)
        LOGGER.info(
            "attachment.added",
            extra={
                "event": "attachment.added",
                "attachment": attachment.name,
                "mime": attachment.type,
                "pending": len(self._pending),
            },
        )
        return attachment

    def remove_attachment(self, index: int) -> Attachment | None:
        """Drop the pending attachment at ``index``; out-of-range is a no-op."""
        if not 0 <= index < len(self._pending):
            return None
        removed = self._pending.pop(index)
        self._notify()
        return removed

    # -- submission --------------------------------------------------------

    async def submit(self) -> None:
        """Send the draft (plus flattened attachments) and record the outcome."""
        if self._in_flight:
            LOGGER.debug("controller.submit.busy", extra={"event": "controller.submit.busy"})
            return

        if not self._credential:
            self._append(MessageRole.ERROR, CREDENTIAL_REQUIRED)
            self._notify()
            return

        attachments = tuple(self._pending) if self.attachments_enabled else ()
        if not self._draft.strip() and not attachments:
            return

        body = compose_message_body(self._draft, attachments)
        self._append(MessageRole.USER, body, attachments)
        self._draft = ""
        self._pending.clear()
        self._in_flight = True
        model, credential = self._model, self._credential
        LOGGER.info(
            "controller.submit.start",
            extra={
                "event": "controller.submit.start",
                "model": model,
                "attachments": len(attachments),
            },
        )
        self._notify()

        try:
            result = await self._dispatcher.send_message(body, model, credential)
            if result.ok:
                self._append(MessageRole.ASSISTANT, result.message)
            else:
                self._append(MessageRole.ERROR, f"{ERROR_LABEL}: {result.error}")
        except Exception as exc:  # noqa: BLE001 - surfaced as a transcript entry.
            LOGGER.exception(
                "controller.submit.failed",
                extra={"event": "controller.submit.failed", "model": model},
            )
            self._append(MessageRole.ERROR, f"{ERROR_LABEL}: {str(exc) or GENERIC_FAILURE}")
        finally:
            self._in_flight = False
            self._notify()
