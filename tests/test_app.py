"""Interactive loop: history handling, errors and Ctrl+C interruption."""

import asyncio
from typing import AsyncIterator, Optional

import pytest

from vitalchat.app import ChatApp
from vitalchat.errors import ProviderError
from vitalchat.input.base import InputSource
from vitalchat.pipeline.classifier import Frame
from vitalchat.providers.base import ChatBackend, ConnectionStatus
from vitalchat.providers.messages import Role


class ScriptedBackend(ChatBackend):
    """Backend that streams scripted deltas, optionally slowly."""

    name = "scripted"

    def __init__(self, deltas, delay: float = 0.0, error: Optional[Exception] = None):
        self._deltas = list(deltas)
        self._delay = delay
        self._error = error
        self.requests = []
        self.released = 0
        self.closed = False

    async def stream_deltas(
        self, messages, *, cancel: Optional[asyncio.Event] = None
    ) -> AsyncIterator[str]:
        self.requests.append(list(messages))
        try:
            if self._error is not None:
                raise self._error
            for d in self._deltas:
                yield d
                await asyncio.sleep(self._delay)
        finally:
            self.released += 1

    async def list_models(self) -> list[str]:
        return ["scripted"]

    async def test_connection(self) -> ConnectionStatus:
        return ConnectionStatus(True, "Connected")

    async def close(self) -> None:
        self.closed = True


class ScriptedInput(InputSource):
    def __init__(self, prompts):
        self._prompts = list(prompts)
        self.call_count = 0

    @property
    def ready_message(self) -> str:
        return "Ready."

    async def get_prompt(self) -> Optional[str]:
        self.call_count += 1
        if not self._prompts:
            return None
        return self._prompts.pop(0)


class RecordingRenderer:
    def __init__(self):
        self.frames: list[Frame] = []
        self.errors: list[str] = []
        self.notices: list[str] = []

    def banner(self, provider, model):
        pass

    def render(self, frame):
        self.frames.append(frame)

    def error(self, text):
        self.errors.append(text)

    def notice(self, text):
        self.notices.append(text)

    def finalize(self):
        pass


@pytest.mark.asyncio
async def test_ask_keeps_only_visible_text_in_history():
    backend = ScriptedBackend(["<think>vitals look ", "stable</think>", "All normal."])
    renderer = RecordingRenderer()
    app = ChatApp(backend, ScriptedInput([]), renderer=renderer, system_prompt="Be brief.")

    frame = await app.ask("Assess the patient")

    assert frame == Frame(reasoning="vitals look stable", visible="All normal.")
    assert len(renderer.frames) == 3
    assert [m.role for m in app.history] == [Role.SYSTEM, Role.USER, Role.ASSISTANT]
    assert app.history[-1].content == "All normal."
    assert backend.released == 1


@pytest.mark.asyncio
async def test_provider_error_is_rendered_and_prompt_dropped():
    backend = ScriptedBackend([], error=ProviderError("scripted", 500, "boom"))
    renderer = RecordingRenderer()
    app = ChatApp(backend, ScriptedInput([]), renderer=renderer)

    assert await app.ask("hello") is None
    assert renderer.errors == ["scripted API error (500): boom"]
    assert app.history == []


@pytest.mark.asyncio
async def test_follow_up_sends_full_history():
    backend = ScriptedBackend(["Sure."])
    app = ChatApp(backend, ScriptedInput([]))
    await app.ask("first")
    await app.ask("second")
    contents = [m.content for m in backend.requests[-1]]
    assert contents == ["first", "Sure.", "second"]


@pytest.mark.asyncio
async def test_run_processes_prompts_until_quit():
    backend = ScriptedBackend(["ok"])
    input_source = ScriptedInput(["a", "b"])
    app = ChatApp(backend, input_source)

    await asyncio.wait_for(app.run(), timeout=5.0)

    assert input_source.call_count == 3
    assert len(backend.requests) == 2
    assert backend.closed


@pytest.mark.asyncio
async def test_interrupt_stops_stream_and_input_continues():
    backend = ScriptedBackend([f"sentence {i}. " for i in range(50)], delay=0.05)
    renderer = RecordingRenderer()
    input_source = ScriptedInput(["long answer", "next"])
    app = ChatApp(backend, input_source, renderer=renderer)

    async def interrupt_during_processing():
        await asyncio.sleep(0.15)
        app._handle_interrupt()

    interrupt_task = asyncio.create_task(interrupt_during_processing())
    try:
        await asyncio.wait_for(app.run(), timeout=10.0)
    except asyncio.TimeoutError:
        pytest.fail(f"App hung after interrupt, get_prompt calls: {input_source.call_count}")
    finally:
        interrupt_task.cancel()
        try:
            await interrupt_task
        except asyncio.CancelledError:
            pass

    assert input_source.call_count == 3
    assert "[Response interrupted. Enter a new prompt.]" in renderer.notices
    assert backend.released == 2
    # The interrupted answer kept only what was shown before Ctrl+C.
    first_answer = app.history[1].content
    assert 0 < len(first_answer) < len("".join(f"sentence {i}. " for i in range(50)))


@pytest.mark.asyncio
async def test_interrupt_when_idle_stops_loop():
    app = ChatApp(ScriptedBackend([]), ScriptedInput([]))
    app._handle_interrupt()
    assert app._running is False
