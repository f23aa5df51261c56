"""Terminal interface for the companion engine."""

from .cli import main

__all__ = ["main"]
