from rich.console import Console, Group
from rich.live import Live
from rich.markdown import Markdown

from vitalchat.pipeline.classifier import Frame, PartKind
from vitalchat.ui.components import reasoning_panel


class StreamingFrame:
    """Live view that is replaced wholesale by each new frame."""

    def __init__(self, console: Console, show_reasoning: bool = False):
        self._console = console
        self._show_reasoning = show_reasoning
        self._live: Live | None = None

    def start(self) -> None:
        self._live = Live(
            Markdown(""),
            console=self._console,
            refresh_per_second=10,
        )
        self._live.start()

    def update(self, frame: Frame) -> None:
        if self._live is not None:
            self._live.update(self.compose(frame))

    def compose(self, frame: Frame) -> Group:
        renderables = []
        for part in frame.parts:
            if part.kind is PartKind.REASONING:
                renderables.append(
                    reasoning_panel(part.text, collapsed=not self._show_reasoning)
                )
            else:
                renderables.append(Markdown(part.text))
        return Group(*renderables)

    def finish(self) -> None:
        if self._live is not None:
            self._live.stop()
            self._live = None

    @property
    def is_active(self) -> bool:
        return self._live is not None
