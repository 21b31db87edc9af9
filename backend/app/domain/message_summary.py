"""
Conversation preview text derived from a message.

Pure and deterministic: the same body and attachment list always give the
same summary. Attachments may be ORM rows, dicts with camelCase or
snake_case keys, or pydantic models; missing optional fields are tolerated.
"""

from __future__ import annotations

from typing import Any, Iterable, Mapping, Optional, Sequence

DEFAULT_SUMMARY_MAX_LENGTH = 2000

_TYPE_LABELS = {
    "image": "Image",
    "video": "Video",
    "audio": "Audio",
    "document": "Document",
    "application": "File",
}


def _field(attachment: Any, *names: str) -> Optional[str]:
    for name in names:
        if isinstance(attachment, Mapping):
            value = attachment.get(name)
        else:
            value = getattr(attachment, name, None)
        if value is not None and str(value).strip():
            return str(value).strip()
    return None


def attachment_label(attachment: Any) -> str:
    """Bracket label for one attachment, e.g. ``Image`` or ``File``."""
    kind = _field(attachment, "file_type", "fileType")
    if not kind:
        mime = _field(attachment, "mime_type", "mimeType")
        kind = mime.split("/", 1)[0] if mime else None
    if not kind:
        return "Attachment"
    kind = kind.lower()
    return _TYPE_LABELS.get(kind, kind.capitalize())


def summarize_attachments(attachments: Optional[Sequence[Any]]) -> str:
    if not attachments:
        return ""
    first = attachments[0]
    label = attachment_label(first)
    name = _field(first, "original_name", "originalName") or label
    summary = f"[{label}] {name}"
    if len(attachments) > 1:
        summary += f" (+{len(attachments) - 1} more)"
    return summary


def summarize(
    body: Optional[str],
    attachments: Optional[Iterable[Any]] = None,
    max_length: int = DEFAULT_SUMMARY_MAX_LENGTH,
) -> str:
    """
    Preview text for a message.

    A non-empty trimmed body wins; otherwise the first attachment is
    described; otherwise the summary is empty.
    """
    text = (body or "").strip()
    if text:
        return text[:max_length]
    return summarize_attachments(list(attachments or []))[:max_length]
