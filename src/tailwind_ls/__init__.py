"""Tailwind utility-class completion language server."""

__version__ = "0.1.0"
