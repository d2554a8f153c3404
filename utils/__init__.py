"""Shared utilities for the backend."""
from utils.money import format_inr

__all__ = [
    "format_inr",
]
