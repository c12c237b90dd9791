"""
Recorder module - Capture user interactions as replayable actions.
"""

from web_macro.recorder.models import MACRO_SCHEMA_VERSION, Action, ActionType, Macro
from web_macro.recorder.recorder import ActionRecorder

__all__ = [
    "MACRO_SCHEMA_VERSION",
    "Action",
    "ActionType",
    "Macro",
    "ActionRecorder",
]
