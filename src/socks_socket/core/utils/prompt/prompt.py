"""Base prompt handling and UI components."""

from prompt_toolkit import PromptSession
from prompt_toolkit.history import InMemoryHistory
from rich.console import Console

console = Console()


class PromptHandler:
    """Line prompt for interactive tunnel sessions."""

    def __init__(self, message: str = "> ") -> None:
        """Initialize the PromptHandler with an in-memory history.

        Args:
            message: Prompt text shown before each line
        """
        self._message = message
        self._session: PromptSession[str] = PromptSession(history=InMemoryHistory())

    async def read_line(self) -> str | None:
        """Read one line, returning None when the user ends input (Ctrl+D / Ctrl+C)."""
        try:
            return await self._session.prompt_async(self._message)
        except (EOFError, KeyboardInterrupt):
            return None
