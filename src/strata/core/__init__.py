"""Core transport functionality."""

from .transport import HttpxTransport

__all__ = ["HttpxTransport"]
