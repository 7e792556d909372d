"""Reading selected files into attachments and flattening them into text."""

from __future__ import annotations

import base64
from collections.abc import Iterable
import logging
import mimetypes
from pathlib import Path

from .exceptions import AttachmentReadError
from .models import Attachment

LOGGER = logging.getLogger(__name__)

DEFAULT_MAX_IMAGE_BYTES = 10 * 1024 * 1024
DEFAULT_MAX_FILE_BYTES = 2 * 1024 * 1024
FALLBACK_MIME = "application/octet-stream"

# Non ``text/*`` types that still read as plain text.
TEXT_LIKE_MIMES: frozenset[str] = frozenset(
    {
        "application/json",
        "application/xml",
        "application/javascript",
        "application/x-sh",
        "application/toml",
        "application/x-yaml",
        "application/yaml",
    }
)


def guess_mime(path: Path) -> str:
    mime, _ = mimetypes.guess_type(path.name)
    return mime or FALLBACK_MIME


def is_image_mime(mime: str) -> bool:
    return mime.lower().startswith("image/")


def is_text_mime(mime: str) -> bool:
    lowered = mime.lower()
    return lowered.startswith("text/") or lowered in TEXT_LIKE_MIMES


def _check_size(path: Path, max_bytes: int, kind: str) -> None:
    size = path.stat().st_size
    if size > max_bytes:
        max_mb = max_bytes / (1024 * 1024)
        raise AttachmentReadError(f"{kind} too large (max {max_mb:.1f}MB): {path.name}")


def read_attachment(
    raw_path: str | Path,
    *,
    max_image_bytes: int = DEFAULT_MAX_IMAGE_BYTES,
    max_file_bytes: int = DEFAULT_MAX_FILE_BYTES,
) -> Attachment:
    """Turn a file on disk into an Attachment.

    Images become a base64 data URL, text files are decoded as UTF-8, and any
    other type is recorded by name and type without reading its bytes.

    Raises:
        AttachmentReadError: the path is missing, not a file, too large, or
            cannot be read.
    """
    path = Path(raw_path).expanduser()
    try:
        if not path.is_file():
            raise AttachmentReadError(f"File not found: {path}")
        mime = guess_mime(path)
        if is_image_mime(mime):
            _check_size(path, max_image_bytes, "Image")
            encoded = base64.b64encode(path.read_bytes()).decode("ascii")
            attachment = Attachment(name=path.name, type=mime, url=f"data:{mime};base64,{encoded}")
        elif is_text_mime(mime):
            _check_size(path, max_file_bytes, "File")
            text = path.read_text(encoding="utf-8", errors="replace")
            attachment = Attachment(name=path.name, type=mime, content=text)
        else:
            attachment = Attachment(name=path.name, type=mime)
    except OSError as exc:
        raise AttachmentReadError(f"Unable to read {path.name}: {exc.strerror or exc}") from exc
    LOGGER.debug(
        "attachment.read",
        extra={"event": "attachment.read", "attachment": attachment.name, "mime": attachment.type},
    )
    return attachment


def describe_attachment(attachment: Attachment) -> str:
    """Return the one-line summary sent in place of the attachment itself."""
    if attachment.is_image:
        return f"[Image attached: {attachment.name}]"
    if attachment.is_text:
        return f"[Text file attached: {attachment.name}]"
    return f"[File attached: {attachment.name}]"


def flatten_attachments(attachments: Iterable[Attachment]) -> str:
    """Join one summary line per attachment, in insertion order."""
    return "\n".join(describe_attachment(item) for item in attachments)


def compose_message_body(draft: str, attachments: Iterable[Attachment]) -> str:
    """Append the flattened summary to ``draft`` after a blank line.

    An empty draft yields the summary alone; no attachments yields the draft.
    """
    summary = flatten_attachments(attachments)
    if not summary:
        return draft
    if draft:
        return f"{draft}\n\n{summary}"
    return summary
