"""Utility functions for Ntando."""

from ntando.utils.logging import configure_logging, get_logger

__all__ = [
    "configure_logging",
    "get_logger",
]
