"""Framed command protocol: command codes, packet building and checking, and command dispatch."""

__version__ = "1.0.0"
__all__ = ["messages", "frame", "handlers"]