"""
Element Resolver - Map a recorded action back to a live element.

One resolution attempt, no waiting. The ElementWaiter repeats attempts
as the DOM changes.
"""

import logging
from typing import Optional

from web_macro.config.settings import SelectorSettings
from web_macro.engine.selectors import quote_attr
from web_macro.exceptions import InvalidSelectorError
from web_macro.interfaces.page import FIELD_TAGS, IElement, IPageContext
from web_macro.recorder.models import Action

logger = logging.getLogger(__name__)

# Generic interactive role scanned alongside the recorded tag
INTERACTIVE_ROLE_SELECTOR = "[role=button]"


class ElementResolver:
    """
    Resolve an action's selectors against the current DOM.
    
    Order per attempt:
    1. Each of [selector, *selector_alts]; malformed selectors and
       selectors matching only hidden elements are skipped.
    2. Exact trimmed text (or value, or a form field's label) match among
       visible elements of the recorded tag plus [role=button].
    3. Placeholder attribute match.
    """
    
    def __init__(self, settings: Optional[SelectorSettings] = None):
        self._settings = settings or SelectorSettings()
    
    async def resolve(self, page: IPageContext, action: Action) -> Optional[IElement]:
        """
        Run one resolution attempt.
        
        Args:
            page: Page context to search
            action: Recorded action
            
        Returns:
            The first visible match, or None
        """
        for selector in action.selectors:
            element = await self._first_visible(page, selector)
            if element:
                return element
        
        if action.text:
            element = await self._match_text(page, action)
            if element:
                logger.debug(f"Resolved {action.selector!r} by text fallback")
                return element
        
        if action.placeholder:
            element = await self._first_visible(
                page, f"[placeholder={quote_attr(action.placeholder)}]"
            )
            if element:
                logger.debug(f"Resolved {action.selector!r} by placeholder fallback")
                return element
        
        return None
    
    async def _first_visible(self, page: IPageContext, selector: str) -> Optional[IElement]:
        try:
            matches = await page.query_all(selector)
        except InvalidSelectorError:
            logger.debug(f"Skipping malformed selector: {selector!r}")
            return None
        
        for element in matches:
            if await element.is_visible():
                return element
        return None
    
    async def _match_text(self, page: IPageContext, action: Action) -> Optional[IElement]:
        scan = f"{action.tag}, {INTERACTIVE_ROLE_SELECTOR}" if action.tag else INTERACTIVE_ROLE_SELECTOR
        try:
            candidates = await page.query_all(scan)
        except InvalidSelectorError:
            return None
        
        limit = self._settings.text_max_length
        for element in candidates:
            text = (await element.text()).strip()[:limit]
            value = await element.value()
            if text != action.text and (value or "").strip() != action.text:
                if element.tag_name not in FIELD_TAGS:
                    continue
                if (await element.label_text())[:limit] != action.text:
                    continue
            if await element.is_visible():
                return element
        return None
