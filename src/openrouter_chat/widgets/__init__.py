"""Widget exports for the openrouter_chat UI."""

from .attachment_list import AttachmentList
from .conversation import ConversationView
from .input_box import InputBox, MessageInput
from .message import MessageBubble
from .session_panel import SessionPanel

__all__ = [
    "AttachmentList",
    "ConversationView",
    "InputBox",
    "MessageBubble",
    "MessageInput",
    "SessionPanel",
]
