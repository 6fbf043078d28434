"""Command line entry point (``python -m maint_ingest.cli``)."""

from .app import main

__all__ = ["main"]
