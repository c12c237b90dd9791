"""
Utilities module - Shared helper functions.
"""

from web_macro.utils.logging import setup_logging, get_logger

__all__ = [
    "setup_logging",
    "get_logger",
]
