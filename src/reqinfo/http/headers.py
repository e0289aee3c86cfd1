"""
=============================================================================
REQUEST HEADERS
=============================================================================

A small multi-map for request headers, with the lookup rules the rest of
the server relies on.

=============================================================================
LOOKUP RULES
=============================================================================

    ┌─────────────────────────────────────────────────────────────────────┐
    │  Received:                        headers.get(...)                  │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                      │
    │  User-Agent: curl/8.5.0           get("user-agent") → "curl/8.5.0"  │
    │                                   get("USER-AGENT") → "curl/8.5.0"  │
    │                                                                      │
    │  Accept: text/html                get("accept") → "text/html"       │
    │  Accept: text/plain               (first value wins, no folding)    │
    │                                                                      │
    │  Via: caf\xc3\xa9                 get("via") → None                 │
    │                                   (not visible ASCII → absent)      │
    │                                                                      │
    │  (no Referer)                     get("referer") → None             │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

Values are kept as the raw bytes that came off the wire. Only get()
turns them into text, and only when every byte is visible ASCII or a
horizontal tab. Anything else is reported as absent instead of being
decoded with replacement characters, so callers never see mojibake.

=============================================================================
"""

from typing import Dict, Iterator, List, Optional, Tuple, Union


# Visible ASCII (0x20-0x7E) plus horizontal tab
_TEXT_BYTES = frozenset(range(0x20, 0x7F)) | {0x09}


def decode_header_value(raw: bytes) -> Optional[str]:
    """
    Decode a raw header value if it is valid header text.

    Returns:
        The value as str, or None if it contains bytes outside visible
        ASCII and tab.
    """
    if all(byte in _TEXT_BYTES for byte in raw):
        return raw.decode("ascii")
    return None


class Headers:
    """
    Case-insensitive, order-preserving header collection.

    Implements the HeaderSource capability used by the request info
    extractor: get(name) -> Optional[str].

    Usage:
        headers = Headers()
        headers.add("Accept", b"text/html")
        headers.get("accept")           # "text/html"
        headers.get("x-missing")        # None
    """

    def __init__(self, items: Optional[List[Tuple[str, Union[str, bytes]]]] = None):
        # Arrival order, original name casing
        self._items: List[Tuple[str, bytes]] = []
        # Lowercase name → indexes into _items
        self._index: Dict[str, List[int]] = {}

        for name, value in items or []:
            self.add(name, value)

    def add(self, name: str, value: Union[str, bytes]) -> None:
        """Append a header. Does not replace earlier values."""
        if isinstance(value, str):
            value = value.encode("utf-8")
        self._index.setdefault(name.lower(), []).append(len(self._items))
        self._items.append((name, value))

    def get_raw(self, name: str) -> Optional[bytes]:
        """First raw value for a header name, or None."""
        positions = self._index.get(name.lower())
        if not positions:
            return None
        return self._items[positions[0]][1]

    def get(self, name: str, default: Optional[str] = None) -> Optional[str]:
        """
        First value for a header name as text.

        Args:
            name: Header name (any case).
            default: Returned when the header is missing or not valid text.

        Returns:
            Header value, or default.
        """
        raw = self.get_raw(name)
        if raw is None:
            return default
        value = decode_header_value(raw)
        return default if value is None else value

    def get_all(self, name: str) -> List[str]:
        """All text values for a header name, in arrival order."""
        values = []
        for position in self._index.get(name.lower(), []):
            value = decode_header_value(self._items[position][1])
            if value is not None:
                values.append(value)
        return values

    def items(self) -> List[Tuple[str, bytes]]:
        """All (name, raw value) pairs in arrival order."""
        return list(self._items)

    def __contains__(self, name: object) -> bool:
        return isinstance(name, str) and name.lower() in self._index

    def __getitem__(self, name: str) -> str:
        value = self.get(name)
        if value is None:
            raise KeyError(name)
        return value

    def __iter__(self) -> Iterator[str]:
        return iter(self._index)

    def __len__(self) -> int:
        return len(self._items)

    def __repr__(self) -> str:
        return f"Headers({self._items!r})"
