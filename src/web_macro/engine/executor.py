"""
Action Executor - Perform one recorded action against the live page.
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import Awaitable, Callable, Optional

from web_macro.config.settings import ReplaySettings
from web_macro.engine.waiter import ElementWaiter
from web_macro.recorder.models import Action, ActionType

logger = logging.getLogger(__name__)

TOGGLE_INPUT_TYPES = ("checkbox", "radio")


@dataclass
class ExecutionResult:
    """
    Outcome of executing one action.
    
    Attributes:
        found: Whether the target element was located
        navigated: Whether the action was reported as navigation-triggering
        skipped: True for breadcrumbs and unresolved targets
    """
    found: bool
    navigated: bool = False
    skipped: bool = False


class ActionExecutor:
    """
    Execute fill/select/click actions using the element waiter.
    
    Example:
        >>> executor = ActionExecutor(ElementWaiter(page))
        >>> result = await executor.execute(action, on_navigate=report)
    """
    
    def __init__(self, waiter: ElementWaiter, settings: Optional[ReplaySettings] = None):
        self._waiter = waiter
        self._settings = settings or ReplaySettings()
    
    async def execute(
        self,
        action: Action,
        on_navigate: Optional[Callable[[], Awaitable[None]]] = None,
    ) -> ExecutionResult:
        """
        Locate the target and perform the action.
        
        Args:
            action: Action to perform
            on_navigate: Awaited before a click that is expected to navigate,
                while the current document still exists
                
        Returns:
            ExecutionResult describing what happened
        """
        if action.is_breadcrumb:
            return ExecutionResult(found=True, skipped=True)
        
        element = await self._waiter.locate(action, timeout_ms=self._settings.element_timeout_ms)
        if element is None:
            return ExecutionResult(found=False, skipped=True)
        
        await element.scroll_into_view()
        if self._settings.scroll_settle_ms:
            await asyncio.sleep(self._settings.scroll_settle_ms / 1000)
        
        if action.type == ActionType.FILL:
            await element.focus()
            await element.set_value(action.value or "", events=("input", "change"))
            return ExecutionResult(found=True)
        
        if action.type == ActionType.SELECT:
            await element.focus()
            await element.set_value(action.value or "", events=("change",))
            return ExecutionResult(found=True)
        
        return await self._click(element, action, on_navigate)
    
    async def _click(self, element, action: Action, on_navigate) -> ExecutionResult:
        input_type = await element.input_type()
        if input_type in TOGGLE_INPUT_TYPES and action.checked is not None:
            if await element.is_checked() == action.checked:
                logger.debug(f"{action.selector!r} already in recorded state, not clicking")
                return ExecutionResult(found=True)
        
        navigates = await element.will_navigate()
        if navigates and on_navigate:
            await on_navigate()
        
        await element.click()
        return ExecutionResult(found=True, navigated=navigates)
