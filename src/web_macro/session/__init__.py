"""
Session module - Controller state, transitions and the controller itself.
"""

from web_macro.session.state import SessionState
from web_macro.session.transitions import SessionReducer, Transition, append_action
from web_macro.session.controller import MacroController

__all__ = [
    "SessionState",
    "SessionReducer",
    "Transition",
    "append_action",
    "MacroController",
]
