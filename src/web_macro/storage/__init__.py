"""
Storage module - Macro and session persistence.
"""

from typing import Tuple

from web_macro.config.settings import StorageSettings
from web_macro.storage.base import MacroStore, SessionStore, RecordingSnapshot
from web_macro.storage.json_store import JsonMacroStore, JsonSessionStore
from web_macro.storage.memory import InMemoryMacroStore, InMemorySessionStore


def create_stores(settings: StorageSettings) -> Tuple[MacroStore, SessionStore]:
    """
    Build the macro and session stores selected by settings.
    
    Args:
        settings: Storage settings
        
    Returns:
        (macro_store, session_store)
    """
    if settings.backend == "memory":
        return InMemoryMacroStore(), InMemorySessionStore()
    return JsonMacroStore(settings.macros_path), JsonSessionStore(settings.session_path)


__all__ = [
    "MacroStore",
    "SessionStore",
    "RecordingSnapshot",
    "JsonMacroStore",
    "JsonSessionStore",
    "InMemoryMacroStore",
    "InMemorySessionStore",
    "create_stores",
]
