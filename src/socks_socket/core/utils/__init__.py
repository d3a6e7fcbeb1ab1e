"""Utility functions and helpers."""

from socks_socket.core.utils.prompt import PromptHandler, SessionUI
from socks_socket.core.utils.utils import format_bytes, format_duration

__all__ = ["format_bytes", "format_duration", "PromptHandler", "SessionUI"]
