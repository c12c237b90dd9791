"""
Messaging module - Controller <-> page context message passing.
"""

from web_macro.messaging.messages import Message, MessageType
from web_macro.messaging.bus import MessageBus

__all__ = [
    "Message",
    "MessageType",
    "MessageBus",
]
