"""
Web Macro - Record user interactions on web pages and replay them later.

Recording captures clicks, text entry and dropdown choices as actions with
layered CSS selectors; replay re-finds each element, waiting for it to
appear, and reproduces the recorded timing across page navigations.

Example:
    >>> from web_macro import MacroRuntime
    >>> async with MacroRuntime() as runtime:
    ...     await runtime.open("https://example.com")
    ...     report = await runtime.replay("login", speed=2.0)
"""

__version__ = "0.1.0"

# Public API exports
from web_macro.config.settings import Settings
from web_macro.recorder.models import Action, ActionType, Macro
from web_macro.runtime import MacroRuntime

__all__ = [
    "Action",
    "ActionType",
    "Macro",
    "MacroRuntime",
    "Settings",
    "__version__",
]
