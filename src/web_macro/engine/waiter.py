"""
Element Waiter - Wait for a recorded target to appear in the live DOM.

Resolution is retried on DOM mutation notifications rather than on a
polling interval; a hard deadline bounds the wait.
"""

import asyncio
import logging
import time
from typing import Optional

from web_macro.engine.resolver import ElementResolver
from web_macro.interfaces.page import IElement, IPageContext
from web_macro.recorder.models import Action

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT_MS = 15000


class ElementWaiter:
    """
    Locate the element for an action, waiting for it if necessary.
    
    Example:
        >>> waiter = ElementWaiter(page)
        >>> element = await waiter.locate(action, timeout_ms=5000)
        >>> if element is None:
        ...     print("skipping step")
    """
    
    def __init__(
        self,
        page: IPageContext,
        resolver: Optional[ElementResolver] = None,
        default_timeout_ms: int = DEFAULT_TIMEOUT_MS,
    ):
        """
        Initialize the waiter.
        
        Args:
            page: Page context to search
            resolver: Resolution strategy (defaults to ElementResolver())
            default_timeout_ms: Timeout used when locate() gets none
        """
        self._page = page
        self._resolver = resolver or ElementResolver()
        self._default_timeout_ms = default_timeout_ms
    
    async def locate(self, action: Action, timeout_ms: Optional[int] = None) -> Optional[IElement]:
        """
        Wait for a visible element matching the action.
        
        Makes one immediate attempt, then re-attempts after every DOM
        mutation notification until the deadline.
        
        Args:
            action: Recorded action to locate
            timeout_ms: Maximum wait in milliseconds
            
        Returns:
            The element, or None on timeout. Never raises on timeout.
        """
        timeout_ms = self._default_timeout_ms if timeout_ms is None else timeout_ms
        loop = asyncio.get_running_loop()
        deadline = loop.time() + timeout_ms / 1000
        started = time.monotonic()

        # Subscribe before the first attempt so no mutation slips between them
        changed = asyncio.Event()
        subscription = self._page.subscribe_mutations(changed.set)

        try:
            element = await self._resolver.resolve(self._page, action)
            if element:
                return element

            while True:
                remaining = deadline - loop.time()
                if remaining <= 0:
                    break
                try:
                    await asyncio.wait_for(changed.wait(), timeout=remaining)
                except asyncio.TimeoutError:
                    continue

                changed.clear()
                element = await self._resolver.resolve(self._page, action)
                if element:
                    return element
        finally:
            subscription.cancel()
        
        logger.debug(
            f"Element for {action.type.value} {action.selector!r} not found "
            f"after {int((time.monotonic() - started) * 1000)}ms"
        )
        return None
