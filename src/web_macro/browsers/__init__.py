"""
Browsers module - Browser automation implementations.
"""

from web_macro.browsers.playwright_page import (
    PlaywrightBrowser,
    PlaywrightElement,
    PlaywrightPageContext,
)

__all__ = [
    "PlaywrightBrowser",
    "PlaywrightElement",
    "PlaywrightPageContext",
]
