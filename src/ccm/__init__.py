"""Manage Claude Code settings profiles and switch between them."""

__version__ = "0.3.0"
