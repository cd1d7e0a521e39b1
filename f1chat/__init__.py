"""
F1 chat application package.

This package contains the conversation store, JSON persistence, the Ollama
client and the PySide6 desktop UI.
"""

from .config import AppConfig

__all__ = ["AppConfig"]
