"""Pending attachment list; selecting an entry removes it."""

from __future__ import annotations

from collections.abc import Sequence

from textual.message import Message
from textual.widgets import OptionList

from ..models import Attachment
from .message import describe_for_display


class AttachmentList(OptionList):
    """Shows attachments queued for the next send."""

    class RemoveRequested(Message):
        """Posted with the position of the attachment to drop."""

        def __init__(self, index: int) -> None:
            super().__init__()
            self.index = index

    def show(self, attachments: Sequence[Attachment]) -> None:
        self.clear_options()
        self.add_options([f"x {describe_for_display(item)}" for item in attachments])
        self.display = bool(attachments)

    def on_option_list_option_selected(self, event: OptionList.OptionSelected) -> None:
        event.stop()
        self.post_message(self.RemoveRequested(event.option_index))
