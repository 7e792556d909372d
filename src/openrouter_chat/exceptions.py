"""Domain exception hierarchy for the OpenRouter chat application."""

from __future__ import annotations


class OpenRouterChatError(RuntimeError):
    """Base class for all domain-level chat errors."""


class MalformedResponseError(OpenRouterChatError):
    """Raised when a successful response lacks the completion content."""


class AttachmentReadError(OpenRouterChatError):
    """Raised when a selected file cannot be turned into an attachment."""


class ConfigValidationError(OpenRouterChatError):
    """Raised when configuration cannot be validated safely."""
