from dataclasses import dataclass
from enum import Enum
from typing import Optional

from vitalchat.pipeline.scanner import Marker, MarkerScanner, ThinkMarkers


class Mode(Enum):
    VISIBLE = "visible"
    REASONING = "reasoning"


class PartKind(Enum):
    REASONING = "reasoning"
    TEXT = "text"


@dataclass(frozen=True)
class FramePart:
    kind: PartKind
    text: str


@dataclass(frozen=True)
class Frame:
    """Snapshot of both channels after one delta.

    Frames only grow, so a renderer can replace what it shows with the
    latest frame.
    """

    reasoning: str = ""
    visible: str = ""

    @property
    def parts(self) -> tuple[FramePart, ...]:
        text = FramePart(PartKind.TEXT, self.visible)
        if self.reasoning:
            return (FramePart(PartKind.REASONING, self.reasoning), text)
        return (text,)


_TRANSITIONS = {
    Marker.OPEN: Mode.REASONING,
    Marker.CLOSE: Mode.VISIBLE,
    # Ends an open reasoning block but never starts one.
    Marker.SELF_CLOSING: Mode.VISIBLE,
}


class ChannelAccumulators:
    """Append-only reasoning and visible text."""

    def __init__(self):
        self._reasoning: list[str] = []
        self._visible: list[str] = []

    def append(self, mode: Mode, text: str) -> None:
        if not text:
            return
        if mode is Mode.REASONING:
            self._reasoning.append(text)
        else:
            self._visible.append(text)

    @property
    def reasoning(self) -> str:
        return "".join(self._reasoning)

    @property
    def visible(self) -> str:
        return "".join(self._visible)

    def snapshot(self) -> Frame:
        return Frame(reasoning=self.reasoning, visible=self.visible)


class StreamClassifier:
    """Separates a streamed response into reasoning and visible channels.

    Create one per streamed response. ``process`` is called once per
    delta and returns the frame for it; ``finish`` is called when the
    stream has ended normally.
    """

    def __init__(self, markers: Optional[ThinkMarkers] = None):
        self._scanner = MarkerScanner(markers)
        self._channels = ChannelAccumulators()
        self.mode = Mode.VISIBLE

    @property
    def pending(self) -> str:
        return self._scanner.pending

    @property
    def reasoning(self) -> str:
        return self._channels.reasoning

    @property
    def visible(self) -> str:
        return self._channels.visible

    def process(self, delta: str) -> Frame:
        for segment in self._scanner.scan(delta):
            if isinstance(segment, Marker):
                self.mode = _TRANSITIONS[segment]
            else:
                self._channels.append(self.mode, segment)
        return self._channels.snapshot()

    def finish(self) -> Frame:
        """Flush a trailing partial delimiter as content of the active mode."""
        self._channels.append(self.mode, self._scanner.flush())
        return self._channels.snapshot()


def split_reasoning(text: str, markers: Optional[ThinkMarkers] = None) -> Frame:
    """Classify a complete, non-streamed response."""
    classifier = StreamClassifier(markers)
    classifier.process(text)
    return classifier.finish()
