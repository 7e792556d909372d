"""Top-level package for openrouter-chat."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from .exceptions import (
    AttachmentReadError,
    ConfigValidationError,
    MalformedResponseError,
    OpenRouterChatError,
)
from .models import (
    Attachment,
    ConversationSnapshot,
    DispatchResult,
    Message,
    MessageRole,
)

if TYPE_CHECKING:
    from .app import OpenRouterChatApp
    from .config import ensure_config_dir, load_config
    from .controller import ConversationController
    from .dispatcher import RequestDispatcher

__all__ = [
    "Attachment",
    "AttachmentReadError",
    "ConfigValidationError",
    "ConversationController",
    "ConversationSnapshot",
    "DispatchResult",
    "MalformedResponseError",
    "Message",
    "MessageRole",
    "OpenRouterChatApp",
    "OpenRouterChatError",
    "RequestDispatcher",
    "ensure_config_dir",
    "load_config",
]

_LAZY_EXPORTS: dict[str, str] = {
    "OpenRouterChatApp": ".app",
    "ConversationController": ".controller",
    "RequestDispatcher": ".dispatcher",
    "ensure_config_dir": ".config",
    "load_config": ".config",
}


def __getattr__(name: str) -> Any:
    """Import heavier modules on first use so the UI stack is only loaded when needed."""
    module_name = _LAZY_EXPORTS.get(name)
    if module_name is None:
        raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
    from importlib import import_module

    return getattr(import_module(module_name, __name__), name)
