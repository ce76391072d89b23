from . import files, health  # noqa: F401

__all__ = ["files", "health"]
