import re
from enum import Enum
from typing import Union


class Marker(Enum):
    OPEN = "open"
    CLOSE = "close"
    SELF_CLOSING = "self_closing"


Segment = Union[str, Marker]


class ThinkMarkers:
    """The three reasoning delimiters: ``<think>``, ``</think>`` and ``<think/>``.

    Matching is case-insensitive. No attributes, whitespace or nesting
    are recognized, and ``</think/>`` is not a delimiter.
    """

    def __init__(self, tag: str = "think"):
        self.tag = tag
        self.open = f"<{tag}>"
        self.close = f"</{tag}>"
        self.self_closing = f"<{tag}/>"
        self.pattern = re.compile(
            rf"<(?:/{re.escape(tag)}|{re.escape(tag)}/?)>", re.IGNORECASE
        )
        self._literals = (self.open, self.close, self.self_closing)

    @property
    def longest(self) -> int:
        return max(len(lit) for lit in self._literals)

    def classify(self, literal: str) -> Marker:
        lowered = literal.lower()
        if lowered.startswith("</"):
            return Marker.CLOSE
        if lowered.endswith("/>"):
            return Marker.SELF_CLOSING
        return Marker.OPEN

    def is_partial(self, text: str) -> bool:
        """True if ``text`` could still grow into one of the delimiters."""
        lowered = text.lower()
        return any(
            len(lowered) < len(lit) and lit.lower().startswith(lowered)
            for lit in self._literals
        )


class MarkerScanner:
    """Splits streamed text into content spans and delimiter markers.

    Text that ends in an incomplete delimiter (``"Hello <th"``) is held in
    ``pending`` until the next delta decides whether it is a marker or
    plain content. Every character fed in comes out exactly once, either
    as content or as part of a recognized marker.
    """

    def __init__(self, markers: ThinkMarkers | None = None):
        self.markers = markers or ThinkMarkers()
        self.pending = ""

    def scan(self, delta: str) -> list[Segment]:
        """Feed one delta and return the segments it resolves, in order."""
        if not delta:
            return []

        text = self.pending + delta
        self.pending = ""
        segments: list[Segment] = []

        pos = 0
        while True:
            match = self.markers.pattern.search(text, pos)
            if match is None:
                break
            if match.start() > pos:
                segments.append(text[pos:match.start()])
            segments.append(self.markers.classify(match.group(0)))
            pos = match.end()

        rest = text[pos:]
        lt = rest.rfind("<")
        if lt != -1 and self.markers.is_partial(rest[lt:]):
            # Only the last "<" can start a delimiter: literals contain one "<"
            self.pending = rest[lt:]
            rest = rest[:lt]
        if rest:
            segments.append(rest)
        return segments

    def flush(self) -> str:
        """Return and clear any held partial delimiter."""
        held = self.pending
        self.pending = ""
        return held
