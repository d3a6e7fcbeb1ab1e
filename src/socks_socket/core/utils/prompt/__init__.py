"""Prompt and UI utilities."""

from socks_socket.core.utils.prompt.prompt import PromptHandler, console
from socks_socket.core.utils.prompt.session_ui import SessionUI

__all__ = ["console", "PromptHandler", "SessionUI"]
