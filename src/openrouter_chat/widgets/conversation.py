"""Scrollable transcript view."""

from __future__ import annotations

from collections.abc import Sequence

from textual.containers import VerticalScroll

from ..models import Message
from .message import MessageBubble


class ConversationView(VerticalScroll):
    """Hosts one bubble per transcript entry; entries are only ever appended."""

    def __init__(self, show_timestamps: bool = True, **kwargs) -> None:
        super().__init__(**kwargs)
        self.show_timestamps = show_timestamps
        self._rendered = 0

    @property
    def rendered_count(self) -> int:
        return self._rendered

    async def sync(self, messages: Sequence[Message]) -> list[MessageBubble]:
        """Mount bubbles for entries not yet shown and scroll to the newest."""
        new_messages = list(messages[self._rendered :])
        if not new_messages:
            return []
        bubbles = [
            MessageBubble(message, show_timestamp=self.show_timestamps) for message in new_messages
        ]
        self._rendered += len(bubbles)
        await self.mount_all(bubbles)
        self.scroll_end(animate=True)
        return bubbles
