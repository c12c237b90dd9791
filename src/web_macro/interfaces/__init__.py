"""
Interfaces module - Abstract contracts between the engine and a browser.
"""

from web_macro.interfaces.page import (
    IElement,
    IPageContext,
    Subscription,
    MutationCallback,
    ReadyCallback,
    EventCallback,
    CloseCallback,
)

__all__ = [
    "IElement",
    "IPageContext",
    "Subscription",
    "MutationCallback",
    "ReadyCallback",
    "EventCallback",
    "CloseCallback",
]
