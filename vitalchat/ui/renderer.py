from rich.console import Console

from vitalchat.pipeline.classifier import Frame
from vitalchat.ui.components import error_panel, provider_banner
from vitalchat.ui.frame_stream import StreamingFrame


class FrameRenderer:
    """Renders classified frames to the terminal with Rich formatting."""

    def __init__(self, console: Console, show_reasoning: bool = False):
        self._console = console
        self._stream = StreamingFrame(console, show_reasoning=show_reasoning)

    def banner(self, provider: str, model: str) -> None:
        self._console.print(provider_banner(provider, model))

    def render(self, frame: Frame) -> None:
        if not self._stream.is_active:
            self._stream.start()
        self._stream.update(frame)

    def error(self, text: str) -> None:
        self.finalize()
        self._console.print(error_panel(text))

    def notice(self, text: str) -> None:
        self.finalize()
        self._console.print(text, style="banner")

    def finalize(self) -> None:
        if self._stream.is_active:
            self._stream.finish()


class NullRenderer:
    """No-op renderer, used when frames are consumed elsewhere."""

    def banner(self, provider: str, model: str) -> None:
        pass

    def render(self, frame: Frame) -> None:
        pass

    def error(self, text: str) -> None:
        pass

    def notice(self, text: str) -> None:
        pass

    def finalize(self) -> None:
        pass
