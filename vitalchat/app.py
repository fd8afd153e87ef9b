import asyncio
import logging
import signal
import sys
from typing import Optional

from vitalchat.errors import ProviderError
from vitalchat.input.base import InputSource
from vitalchat.pipeline.classifier import Frame
from vitalchat.pipeline.stream import classify_stream
from vitalchat.providers.base import ChatBackend
from vitalchat.providers.messages import ChatMessage, Role
from vitalchat.ui.renderer import NullRenderer

log = logging.getLogger(__name__)


class ChatApp:
    """Main application: prompt -> model stream -> classify -> render."""

    def __init__(
        self,
        backend: ChatBackend,
        input_source: InputSource,
        renderer=None,
        system_prompt: Optional[str] = None,
    ):
        self._backend = backend
        self._input = input_source
        self._renderer = renderer or NullRenderer()
        self._history: list[ChatMessage] = []
        if system_prompt:
            self._history.append(ChatMessage(Role.SYSTEM, system_prompt))
        self._cancel: Optional[asyncio.Event] = None
        self._running = True
        self._processing = False
        self._interrupted = False

    @property
    def history(self) -> list[ChatMessage]:
        return list(self._history)

    async def run(self) -> None:
        loop = asyncio.get_running_loop()
        if sys.platform == "win32":
            signal.signal(signal.SIGINT, lambda *_: self._handle_interrupt())
        else:
            loop.add_signal_handler(signal.SIGINT, self._handle_interrupt)

        self._renderer.notice(self._input.ready_message)
        try:
            while self._running:
                prompt = await self._input.get_prompt()
                if prompt is None:
                    break
                await self.ask(prompt)
        finally:
            if sys.platform != "win32":
                loop.remove_signal_handler(signal.SIGINT)
            self._renderer.finalize()
            await self._backend.close()

    async def ask(self, prompt: str) -> Optional[Frame]:
        """Stream one answer. Returns the last frame shown, if any."""
        self._history.append(ChatMessage(Role.USER, prompt))
        cancel = asyncio.Event()
        self._cancel = cancel
        self._processing = True
        self._interrupted = False
        frame: Optional[Frame] = None

        try:
            deltas = self._backend.stream_deltas(self._history, cancel=cancel)
            async for frame in classify_stream(deltas, cancel=cancel):
                self._renderer.render(frame)
        except ProviderError as exc:
            log.error("%s", exc)
            self._renderer.error(str(exc))
            self._history.pop()
            return None
        finally:
            self._processing = False
            self._cancel = None

        self._renderer.finalize()
        if self._interrupted:
            self._renderer.notice("[Response interrupted. Enter a new prompt.]")
        if frame is not None and frame.visible:
            self._history.append(ChatMessage(Role.ASSISTANT, frame.visible))
        else:
            self._history.pop()
        return frame

    def _handle_interrupt(self) -> None:
        if self._processing and self._cancel is not None:
            self._interrupted = True
            self._cancel.set()
        else:
            self._running = False
