"""
Replay state - Immutable snapshot of a replay in progress.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional, Tuple

from web_macro.recorder.models import Action


class ReplayPhase(str, Enum):
    """Replay lifecycle."""
    IDLE = "idle"
    PLAYING = "playing"
    PAUSED_FOR_NAVIGATION = "paused_for_navigation"
    COMPLETE = "complete"


@dataclass(frozen=True)
class ReplayState:
    """
    Where a replay stands.
    
    Attributes:
        phase: Lifecycle phase
        name: Macro name, when replay was started by name
        actions: The macro being played
        index: Position of the next action to dispatch
        target_context: Page context the replay is bound to
        speed: Speed multiplier
        generation: Bumped on every start/stop; ticks from older generations are stale
        in_flight: An action was dispatched and no ACTION_DONE has arrived yet
        played: Actions executed (element found)
        skipped: Actions skipped (element not found)
    """
    phase: ReplayPhase = ReplayPhase.IDLE
    name: Optional[str] = None
    actions: Tuple[Action, ...] = ()
    index: int = 0
    target_context: Optional[str] = None
    speed: float = 1.0
    generation: int = 0
    in_flight: bool = False
    played: int = 0
    skipped: int = 0
    
    @property
    def is_replaying(self) -> bool:
        return self.phase in (ReplayPhase.PLAYING, ReplayPhase.PAUSED_FOR_NAVIGATION)
    
    @property
    def token(self) -> Tuple[int, int]:
        """Identifies the pending tick for the current step."""
        return (self.generation, self.index)
    
    @property
    def total(self) -> int:
        return len(self.actions)
    
    def status(self) -> Dict[str, Any]:
        """Read-only view answered to REPLAY_STATUS."""
        return {
            "state": self.phase.value,
            "name": self.name,
            "index": self.index,
            "total": self.total,
            "speed": self.speed,
            "played": self.played,
            "skipped": self.skipped,
            "target_context": self.target_context,
        }


@dataclass(frozen=True)
class ReplayReport:
    """
    Outcome of a finished replay.
    
    Attributes:
        name: Macro name, if known
        total: Actions in the macro, breadcrumbs included
        played: Actions executed
        skipped: Actions skipped because their element never appeared
        stopped: True if the replay was stopped or lost its page before the end
    """
    name: Optional[str]
    total: int
    played: int
    skipped: int
    stopped: bool
    
    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "total": self.total,
            "played": self.played,
            "skipped": self.skipped,
            "stopped": self.stopped,
        }
