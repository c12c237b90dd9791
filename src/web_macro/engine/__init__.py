"""
Engine module - Selector generation, element resolution and action execution.
"""

from web_macro.engine.selectors import (
    ElementSnapshot,
    PathNode,
    SelectorEngine,
    SelectorSet,
    css_escape,
    quote_attr,
)
from web_macro.engine.resolver import ElementResolver
from web_macro.engine.waiter import ElementWaiter
from web_macro.engine.executor import ActionExecutor, ExecutionResult

__all__ = [
    "ElementSnapshot",
    "PathNode",
    "SelectorEngine",
    "SelectorSet",
    "css_escape",
    "quote_attr",
    "ElementResolver",
    "ElementWaiter",
    "ActionExecutor",
    "ExecutionResult",
]
