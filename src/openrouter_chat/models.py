"""Transcript, attachment, and dispatch result containers."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum


class MessageRole(str, Enum):
    """Who produced a transcript entry."""

    USER = "user"
    ASSISTANT = "assistant"
    ERROR = "error"


def format_timestamp(moment: datetime | None = None) -> str:
    """Return a localized hour:minute label for a transcript entry."""
    return (moment or datetime.now()).strftime("%H:%M")


@dataclass(frozen=True)
class Attachment:
    """A file selected for the next send.

    Text files carry decoded ``content``; images carry a data ``url``; any
    other file is recorded by name and type only.
    """

    name: str
    type: str = "application/octet-stream"
    content: str | None = None
    url: str | None = None

    def __post_init__(self) -> None:
        if not self.name.strip():
            raise ValueError("Attachment name must not be empty.")
        if self.content is not None and self.url is not None:
            raise ValueError("Attachment cannot carry both text content and a data URL.")

    @property
    def is_image(self) -> bool:
        return self.type.lower().startswith("image/")

    @property
    def is_text(self) -> bool:
        return self.content is not None


@dataclass(frozen=True)
class Message:
    """A single immutable transcript entry."""

    role: MessageRole
    content: str
    timestamp: str = field(default_factory=format_timestamp)
    attachments: tuple[Attachment, ...] = ()


@dataclass(frozen=True)
class DispatchResult:
    """Normalized outcome of one completion request."""

    message: str = ""
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @classmethod
    def success(cls, message: str) -> DispatchResult:
        return cls(message=message)

    @classmethod
    def failure(cls, error: str) -> DispatchResult:
        return cls(message="", error=error)


@dataclass(frozen=True)
class ConversationSnapshot:
    """Read-only view of controller state handed to subscribers.

    The credential itself is never part of a snapshot, only whether one is set.
    """

    messages: tuple[Message, ...] = ()
    draft: str = ""
    pending_attachments: tuple[Attachment, ...] = ()
    in_flight: bool = False
    model: str = ""
    models: tuple[str, ...] = ()
    has_credential: bool = False
