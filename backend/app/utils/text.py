"""Text helpers for user-supplied message content."""

from __future__ import annotations

import re
from typing import Optional

from ..core.config import settings
from ..core.constants import HTML_TAG_PATTERN

_HTML_TAG_RE = re.compile(HTML_TAG_PATTERN)


def sanitize_body(body: Optional[str], max_length: Optional[int] = None) -> str:
    """
    Strip HTML tags, trim, and cap the body length.

    Bodies are stored as plain text; anything that looks like a tag is removed
    rather than escaped.
    """
    if not body:
        return ""
    cap = max_length if max_length is not None else settings.message_body_max_length
    return _HTML_TAG_RE.sub("", str(body)).strip()[:cap]


def escape_like(term: str, escape: str = "\\") -> str:
    """Escape LIKE wildcards so ``term`` matches literally."""
    return (
        term.replace(escape, escape * 2).replace("%", f"{escape}%").replace("_", f"{escape}_")
    )
