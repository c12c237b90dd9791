"""
Effects - Side effects requested by state transitions.

Transitions never touch storage, timers, or page contexts themselves; they
return these plain records and the controller carries them out in order.
"""

from dataclasses import dataclass
from typing import TYPE_CHECKING, Optional, Tuple

from web_macro.messaging.messages import Message
from web_macro.recorder.models import Macro

if TYPE_CHECKING:
    from web_macro.replay.state import ReplayReport


@dataclass(frozen=True)
class PersistRecording:
    """Write is_recording and the in-progress action list to the session store."""


@dataclass(frozen=True)
class SendToContext:
    """Deliver a message to one page context (best effort)."""
    context_id: Optional[str]
    message: Message


@dataclass(frozen=True)
class BroadcastToActive:
    """Deliver a message to the active page context (best effort)."""
    message: Message


@dataclass(frozen=True)
class ScheduleReplay:
    """Feed a REPLAY_TICK carrying token back in after delay_ms, replacing any pending tick."""
    delay_ms: int
    token: Tuple[int, int]


@dataclass(frozen=True)
class CancelReplayTimer:
    """Drop the pending REPLAY_TICK, if any."""


@dataclass(frozen=True)
class SaveMacro:
    macro: Macro


@dataclass(frozen=True)
class DeleteMacro:
    name: str


@dataclass(frozen=True)
class ReplayFinished:
    """Replay left the Playing/Paused states; wake anyone waiting on it."""
    report: "ReplayReport"
