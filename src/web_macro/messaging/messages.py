"""
Message types exchanged between the controller and page contexts.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Optional


class MessageType(str, Enum):
    """Every message understood by the controller or a page context."""
    # UI -> controller
    GET_STATE = "GET_STATE"
    START_RECORDING = "START_RECORDING"
    STOP_RECORDING = "STOP_RECORDING"
    SAVE_MACRO = "SAVE_MACRO"
    DELETE_MACRO = "DELETE_MACRO"
    GET_MACROS = "GET_MACROS"
    GET_MACRO = "GET_MACRO"
    START_REPLAY = "START_REPLAY"
    STOP_REPLAY = "STOP_REPLAY"
    REPLAY_STATUS = "REPLAY_STATUS"
    # page context -> controller
    RECORD_ACTION = "RECORD_ACTION"
    ACTION_DONE = "ACTION_DONE"
    ACTION_NAVIGATED = "ACTION_NAVIGATED"
    # host runtime -> controller
    PAGE_LOADED = "PAGE_LOADED"
    CONTEXT_CLOSED = "CONTEXT_CLOSED"
    # controller -> itself (timers)
    REPLAY_TICK = "REPLAY_TICK"
    # controller -> page context (START/STOP_RECORDING are shared)
    REPLAY_ACTION = "REPLAY_ACTION"
    REPLAY_COMPLETE = "REPLAY_COMPLETE"


@dataclass
class Message:
    """
    One message on the bus.
    
    Attributes:
        type: Message type
        payload: Message-specific data
        context_id: Sending (or, for replies to a page, target) page context
    """
    type: MessageType
    payload: Dict[str, Any] = field(default_factory=dict)
    context_id: Optional[str] = None
    
    def get(self, key: str, default: Any = None) -> Any:
        return self.payload.get(key, default)
