"""
Session state - Everything the controller knows, as one immutable value.
"""

from dataclasses import dataclass, field, replace
from typing import Any, Dict, Tuple

from web_macro.recorder.models import Action
from web_macro.replay.state import ReplayState
from web_macro.storage.base import RecordingSnapshot


@dataclass(frozen=True)
class SessionState:
    """
    Controller session state.
    
    Attributes:
        is_recording: Whether a recording is in progress
        current_macro: Actions recorded in the current (or last) recording
        replay: Replay progress
    """
    is_recording: bool = False
    current_macro: Tuple[Action, ...] = ()
    replay: ReplayState = field(default_factory=ReplayState)
    
    @property
    def is_replaying(self) -> bool:
        return self.replay.is_replaying
    
    def summary(self) -> Dict[str, Any]:
        """Answer to GET_STATE."""
        return {
            "is_recording": self.is_recording,
            "is_replaying": self.is_replaying,
            "action_count": len(self.current_macro),
        }
    
    def snapshot(self) -> RecordingSnapshot:
        return RecordingSnapshot(
            is_recording=self.is_recording,
            actions=list(self.current_macro),
        )
    
    def with_snapshot(self, snapshot: RecordingSnapshot) -> "SessionState":
        """Replace the durable part, keeping replay progress."""
        return replace(
            self,
            is_recording=snapshot.is_recording,
            current_macro=tuple(snapshot.actions),
        )
