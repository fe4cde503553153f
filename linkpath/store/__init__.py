"""Path record storage."""

from .path_store import PathStore

__all__ = ["PathStore"]
