"""
Replay module - Timed, navigation-aware playback of recorded macros.
"""

from web_macro.replay.state import ReplayPhase, ReplayReport, ReplayState
from web_macro.replay.engine import ReplayEngine, compute_delay

__all__ = [
    "ReplayEngine",
    "ReplayPhase",
    "ReplayReport",
    "ReplayState",
    "compute_delay",
]
