"""
Page-related exceptions.
"""

from web_macro.exceptions.base import WebMacroError


class PageError(WebMacroError):
    """Base exception for page-context errors."""
    pass


class BrowserLaunchError(PageError):
    """
    Error launching the browser.
    
    Raised when the browser fails to start, which could be due to:
    - Missing browser binaries
    - Invalid browser options
    - Resource constraints
    """
    pass


class InvalidSelectorError(PageError):
    """
    Selector could not be parsed by the page.
    
    Raised when a recorded selector contains syntax the page's selector
    engine rejects (unusual characters, broken escaping). Callers move on
    to the next alternate selector.
    """
    
    def __init__(self, message: str, selector: str):
        super().__init__(message, {"selector": selector})
        self.selector = selector


class ContextGoneError(PageError):
    """
    Target page context no longer exists.
    
    Raised when a message or DOM operation targets a page whose document
    was torn down (navigation, reload) or whose tab was closed.
    """
    
    def __init__(self, message: str, context_id: str | None = None):
        super().__init__(message, {"context_id": context_id})
        self.context_id = context_id
