"""
Channel media type classification (Online / Offline).

An explicit table supplied through configuration always wins. Channels
missing from the table fall back to keyword matching on the channel name.
"""

from typing import Literal, Optional

MediaType = Literal["Online", "Offline"]

MEDIA_TYPES = ("Online", "Offline")

# Keywords that identify online channels (case-insensitive)
DEFAULT_ONLINE_KEYWORDS = ["digital", "online", "social", "search", "display"]


class MediaTypeTable:
    """Lookup table from channel name to media type."""

    def __init__(self, mapping: Optional[dict[str, str]] = None, online_keywords: Optional[list[str]] = None):
        self.mapping: dict[str, MediaType] = {}
        for channel, media_type in (mapping or {}).items():
            normalized = media_type.strip().capitalize()
            if normalized not in MEDIA_TYPES:
                raise ValueError(f"Invalid media type for {channel}: {media_type!r}")
            self.mapping[channel.strip().lower()] = normalized

        if online_keywords is None:
            online_keywords = DEFAULT_ONLINE_KEYWORDS
        self.online_keywords = [kw.lower() for kw in online_keywords]

    def classify(self, channel: str) -> MediaType:
        """Get the media type for a channel."""
        name_lower = channel.lower()
        if name_lower in self.mapping:
            return self.mapping[name_lower]
        if any(kw in name_lower for kw in self.online_keywords):
            return "Online"
        return "Offline"


DEFAULT_MEDIA_TYPES = MediaTypeTable()
