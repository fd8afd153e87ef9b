import asyncio
from typing import Optional

from rich.console import Console

from vitalchat.input.base import InputSource


class RichInput(InputSource):
    """Rich-styled terminal input source."""

    def __init__(self, console: Console):
        self._console = console

    @property
    def ready_message(self) -> str:
        return "VitalChat is ready. Type your question, or 'quit' to exit."

    async def get_prompt(self) -> Optional[str]:
        loop = asyncio.get_running_loop()
        while True:
            try:
                line = await loop.run_in_executor(
                    None, lambda: self._console.input("[prompt]You:[/] ")
                )
                line = line.strip()
                if line.lower() in ("quit", "exit", "q"):
                    return None
                if line:
                    return line
            except (EOFError, KeyboardInterrupt):
                return None
