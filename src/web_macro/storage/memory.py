"""
In-memory stores, used by tests and for throwaway sessions.
"""

import copy
from typing import Dict, Optional

from web_macro.recorder.models import Macro
from web_macro.storage.base import MacroStore, RecordingSnapshot, SessionStore


class InMemoryMacroStore(MacroStore):
    """Macros kept in a dict; copies go in and out so callers cannot mutate storage."""
    
    def __init__(self):
        self._macros: Dict[str, Macro] = {}
    
    async def save(self, macro: Macro) -> None:
        self._macros[macro.name] = copy.deepcopy(macro)
    
    async def get(self, name: str) -> Optional[Macro]:
        macro = self._macros.get(name)
        return copy.deepcopy(macro) if macro else None
    
    async def delete(self, name: str) -> bool:
        return self._macros.pop(name, None) is not None
    
    async def list(self) -> Dict[str, Macro]:
        return copy.deepcopy(self._macros)


class InMemorySessionStore(SessionStore):
    
    def __init__(self, snapshot: Optional[RecordingSnapshot] = None):
        self._snapshot = copy.deepcopy(snapshot) if snapshot else RecordingSnapshot()
    
    async def load(self) -> RecordingSnapshot:
        return copy.deepcopy(self._snapshot)
    
    async def save(self, snapshot: RecordingSnapshot) -> None:
        self._snapshot = copy.deepcopy(snapshot)
