"""
Storage interfaces - Persisted macros and the durable recording snapshot.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from web_macro.recorder.models import Action, Macro


@dataclass
class RecordingSnapshot:
    """
    The part of the session that must survive a controller restart.
    
    Attributes:
        is_recording: Whether a recording is in progress
        actions: Actions recorded so far
    """
    is_recording: bool = False
    actions: List[Action] = field(default_factory=list)
    
    def to_dict(self) -> Dict[str, Any]:
        return {
            "is_recording": self.is_recording,
            "actions": [a.to_dict() for a in self.actions],
        }
    
    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "RecordingSnapshot":
        return cls(
            is_recording=bool(data.get("is_recording", False)),
            actions=[Action.from_dict(a) for a in data.get("actions", [])],
        )


class MacroStore(ABC):
    """Key-value store of macros by unique name."""
    
    @abstractmethod
    async def save(self, macro: Macro) -> None:
        """Store a macro, overwriting any macro with the same name."""
        ...
    
    @abstractmethod
    async def get(self, name: str) -> Optional[Macro]:
        """Return the macro stored under name, or None."""
        ...
    
    @abstractmethod
    async def delete(self, name: str) -> bool:
        """
        Delete a macro.
        
        Returns:
            True if a macro was removed
        """
        ...
    
    @abstractmethod
    async def list(self) -> Dict[str, Macro]:
        """Return all macros keyed by name."""
        ...


class SessionStore(ABC):
    """Durable home of the in-progress recording."""
    
    @abstractmethod
    async def load(self) -> RecordingSnapshot:
        """Return the stored snapshot (an idle, empty one if none)."""
        ...
    
    @abstractmethod
    async def save(self, snapshot: RecordingSnapshot) -> None:
        """Replace the stored snapshot."""
        ...
