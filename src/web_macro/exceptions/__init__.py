"""
Exceptions module - Custom exception hierarchy.

This module defines all custom exceptions used throughout Web Macro,
providing clear error types for different failure scenarios.
"""

from web_macro.exceptions.base import (
    WebMacroError,
    ConfigurationError,
)
from web_macro.exceptions.page import (
    PageError,
    BrowserLaunchError,
    InvalidSelectorError,
    ContextGoneError,
)
from web_macro.exceptions.storage import (
    StorageError,
    MacroNotFoundError,
    ReplayError,
)

__all__ = [
    # Base exceptions
    "WebMacroError",
    "ConfigurationError",
    # Page exceptions
    "PageError",
    "BrowserLaunchError",
    "InvalidSelectorError",
    "ContextGoneError",
    # Storage / replay exceptions
    "StorageError",
    "MacroNotFoundError",
    "ReplayError",
]
