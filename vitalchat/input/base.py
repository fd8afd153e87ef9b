from abc import ABC, abstractmethod
from typing import Optional


class InputSource(ABC):
    """Abstract source of user prompts."""

    @property
    def ready_message(self) -> str:
        """Message shown when the app is ready for input."""
        return "VitalChat is starting."

    @abstractmethod
    async def get_prompt(self) -> Optional[str]:
        """Get the next user prompt. Returns None to quit."""
        ...
