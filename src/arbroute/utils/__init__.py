"""Utility modules for arbroute."""

from arbroute.utils.debounce import Debouncer

__all__ = ["Debouncer"]
