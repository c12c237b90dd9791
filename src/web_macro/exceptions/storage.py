"""
Storage and replay exceptions.
"""

from web_macro.exceptions.base import WebMacroError


class StorageError(WebMacroError):
    """
    Error reading or writing persisted state.
    
    Raised for unreadable files and for macros written by a newer schema.
    """
    pass


class MacroNotFoundError(StorageError):
    """No macro is stored under the requested name."""
    
    def __init__(self, message: str, name: str):
        super().__init__(message, {"name": name})
        self.name = name


class ReplayError(WebMacroError):
    """
    Replay could not be started.
    
    Raised when a replay request is rejected, e.g. an empty macro or a
    recording already in progress.
    """
    pass
