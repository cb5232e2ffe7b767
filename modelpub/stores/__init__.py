"""Persistent stores used across publishing runs."""

from .model_cache import ModelCache

__all__ = ["ModelCache"]
