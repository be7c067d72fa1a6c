"""
Validated channel identifier type.

Tracked channel IDs double as history file names, so the accepted
alphabet is restricted to characters that are safe in a path segment.
"""

from __future__ import annotations

import re
from typing import Annotated

from pydantic import BeforeValidator, Field

MAX_CHANNEL_ID_LENGTH = 100

_CHANNEL_ID_PATTERN = re.compile(r"^[A-Za-z0-9_@-][A-Za-z0-9_.@-]*$")


def validate_channel_id(v: str) -> str:
    """Validate a tracked channel identifier (UC... ID or @handle)."""
    if not isinstance(v, str):
        raise TypeError("ChannelId must be a string")

    # Check not empty after stripping whitespace
    cleaned = v.strip()
    if not cleaned:
        raise ValueError("ChannelId cannot be empty or whitespace-only")

    if len(cleaned) > MAX_CHANNEL_ID_LENGTH:
        raise ValueError(
            f"ChannelId too long (max {MAX_CHANNEL_ID_LENGTH} chars), "
            f"got {len(cleaned)}: {cleaned[:50]}..."
        )

    # Letters, digits, "_", "-", "@", "." (not leading, so ".." is rejected)
    if not _CHANNEL_ID_PATTERN.match(cleaned):
        raise ValueError(f"ChannelId contains invalid characters: {cleaned}")

    return cleaned


ChannelId = Annotated[
    str,
    BeforeValidator(validate_channel_id),
    Field(description="YouTube channel ID or @handle"),
]
