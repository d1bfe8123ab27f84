"""LSP-facing server and request handlers."""

from . import server

__all__ = ["server"]
