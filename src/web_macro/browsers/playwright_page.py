"""
Playwright Page Context - Implementation of IPageContext using Playwright.

This module provides the Playwright-backed page context, its element
wrapper, and a small browser launcher.
"""

import asyncio
import json
import logging
import uuid
from typing import Any, Awaitable, Callable, Dict, Iterable, List, Optional

from web_macro.config.settings import BrowserSettings
from web_macro.exceptions import (
    BrowserLaunchError,
    ContextGoneError,
    InvalidSelectorError,
    PageError,
)
from web_macro.interfaces.page import (
    CloseCallback,
    EventCallback,
    FIELD_TAGS,
    IElement,
    IPageContext,
    MutationCallback,
    ReadyCallback,
    Subscription,
)
from web_macro.recorder.page_script import (
    EVENT_BINDING,
    IS_VISIBLE_SCRIPT,
    MUTATION_BINDING,
    PAGE_SCRIPT,
    READY_BINDING,
    SET_RECORDING_SCRIPT,
    SET_VALUE_SCRIPT,
    TOAST_SCRIPT,
    WILL_NAVIGATE_SCRIPT,
)

logger = logging.getLogger(__name__)

_CONTEXT_GONE_MARKERS = (
    "execution context was destroyed",
    "target closed",
    "has been closed",
    "frame was detached",
    "cannot find context",
)
_INVALID_SELECTOR_MARKERS = (
    "not a valid selector",
    "unexpected token",
    "syntaxerror",
    "unexpected symbol",
    "failed to parse selector",
)


def translate_error(error: Exception, context_id: Optional[str] = None, selector: Optional[str] = None) -> Exception:
    """
    Map a Playwright error onto the Web Macro exception hierarchy.
    
    Args:
        error: Error raised by Playwright
        context_id: Page context the call targeted
        selector: Selector involved, if any
        
    Returns:
        ContextGoneError, InvalidSelectorError, or a generic PageError
    """
    text = str(error).lower()
    if any(marker in text for marker in _CONTEXT_GONE_MARKERS):
        return ContextGoneError(f"Page context is gone: {error}", context_id=context_id)
    if selector is not None and any(marker in text for marker in _INVALID_SELECTOR_MARKERS):
        return InvalidSelectorError(f"Invalid selector: {error}", selector=selector)
    return PageError(str(error), {"context_id": context_id, "selector": selector})


class _MutationSubscription(Subscription):
    def __init__(self, subscribers: List[MutationCallback], callback: MutationCallback):
        self._subscribers = subscribers
        self._callback = callback
        subscribers.append(callback)
    
    def cancel(self) -> None:
        if self._callback in self._subscribers:
            self._subscribers.remove(self._callback)


class PlaywrightElement(IElement):
    """
    Playwright implementation of IElement.
    
    Wraps a Playwright ElementHandle for interaction and inspection.
    """
    
    def __init__(self, element: Any, tag_name: str, context_id: Optional[str] = None):
        """
        Initialize the element wrapper.
        
        Args:
            element: Playwright ElementHandle
            tag_name: Lower-case tag name
            context_id: Owning page context, for error reporting
        """
        self._element = element
        self._tag_name = tag_name
        self._context_id = context_id
    
    @property
    def tag_name(self) -> str:
        return self._tag_name
    
    async def _evaluate(self, script: str, arg: Any = None) -> Any:
        try:
            if arg is None:
                return await self._element.evaluate(script)
            return await self._element.evaluate(script, arg)
        except PageError:
            raise
        except Exception as e:
            raise translate_error(e, self._context_id) from e
    
    async def input_type(self) -> Optional[str]:
        if self._tag_name != "input":
            return None
        return await self._evaluate("el => (el.type || 'text').toLowerCase()")
    
    async def text(self) -> str:
        return (await self._evaluate("el => el.textContent || ''")).strip()
    
    async def value(self) -> Optional[str]:
        return await self._evaluate("el => ('value' in el) ? String(el.value) : null")
    
    async def label_text(self) -> str:
        if self._tag_name not in FIELD_TAGS:
            return ""
        return (await self._evaluate(
            "el => (el.labels && el.labels.length) ? (el.labels[0].textContent || '') : ''"
        )).strip()
    
    async def is_checked(self) -> bool:
        return bool(await self._evaluate("el => !!el.checked"))
    
    async def is_visible(self) -> bool:
        return bool(await self._evaluate(IS_VISIBLE_SCRIPT))
    
    async def will_navigate(self) -> bool:
        return bool(await self._evaluate(WILL_NAVIGATE_SCRIPT))
    
    async def focus(self) -> None:
        await self._evaluate("el => el.focus()")
    
    async def click(self) -> None:
        await self._evaluate("el => el.click()")
    
    async def set_value(self, value: str, events: Iterable[str] = ("input", "change")) -> None:
        await self._evaluate(SET_VALUE_SCRIPT, [value, list(events)])
    
    async def scroll_into_view(self) -> None:
        await self._evaluate("el => el.scrollIntoView({behavior: 'smooth', block: 'center'})")


class PlaywrightPageContext(IPageContext):
    """
    Playwright implementation of IPageContext.
    
    One instance per tab. The context_id stays the same across navigations
    of that tab; the in-page script is re-run in every new document.
    """
    
    def __init__(self, page: Any, context_id: Optional[str] = None):
        """
        Initialize the page context.
        
        Args:
            page: Playwright Page object
            context_id: Identifier for the tab (generated if omitted)
        """
        self._page = page
        self._context_id = context_id or uuid.uuid4().hex[:12]
        self._mutation_subscribers: List[MutationCallback] = []
        self._installed = False
    
    @property
    def context_id(self) -> str:
        return self._context_id
    
    @property
    def url(self) -> str:
        return self._page.url
    
    @property
    def page(self) -> Any:
        """The underlying Playwright Page."""
        return self._page
    
    async def goto(self, url: str) -> None:
        """Navigate the tab to a URL."""
        try:
            await self._page.goto(url, wait_until="load")
        except Exception as e:
            raise translate_error(e, self._context_id) from e
    
    async def query_all(self, selector: str) -> List[IElement]:
        try:
            handles = await self._page.query_selector_all(f"css={selector}")
            tags = await asyncio.gather(
                *(h.evaluate("el => el.tagName.toLowerCase()") for h in handles)
            )
        except Exception as e:
            raise translate_error(e, self._context_id, selector=selector) from e
        return [PlaywrightElement(h, tag, self._context_id) for h, tag in zip(handles, tags)]
    
    def subscribe_mutations(self, callback: MutationCallback) -> Subscription:
        return _MutationSubscription(self._mutation_subscribers, callback)
    
    def _on_mutation(self, source: Any) -> None:
        for callback in list(self._mutation_subscribers):
            callback()
    
    async def install(
        self,
        on_ready: ReadyCallback,
        on_event: EventCallback,
        on_close: Optional[CloseCallback] = None,
    ) -> None:
        if self._installed:
            raise PageError("Page script already installed", {"context_id": self._context_id})
        
        async def ready(source: Any) -> None:
            await on_ready()
        
        async def event(source: Any, payload: str) -> None:
            try:
                data = json.loads(payload)
            except json.JSONDecodeError:
                logger.warning(f"Dropping malformed page event: {payload[:200]}")
                return
            await on_event(data)
        
        await self._page.expose_binding(READY_BINDING, ready)
        await self._page.expose_binding(EVENT_BINDING, event)
        await self._page.expose_binding(MUTATION_BINDING, self._on_mutation)
        await self._page.add_init_script(PAGE_SCRIPT)
        
        if on_close:
            self._page.on("close", lambda _page: asyncio.create_task(on_close()))
        
        self._installed = True
        
        # The current document predates add_init_script
        try:
            await self._page.evaluate(PAGE_SCRIPT)
        except Exception as e:
            logger.debug(f"Initial page script injection failed: {e}")
    
    async def set_recording(self, recording: bool) -> None:
        try:
            await self._page.evaluate(SET_RECORDING_SCRIPT, recording)
        except Exception as e:
            raise translate_error(e, self._context_id) from e
    
    async def show_toast(self, text: str) -> None:
        try:
            await self._page.evaluate(TOAST_SCRIPT, text)
        except Exception as e:
            raise translate_error(e, self._context_id) from e


class PlaywrightBrowser:
    """
    Launch a Playwright browser and hand out page contexts.
    
    Example:
        >>> browser = PlaywrightBrowser(settings.browser)
        >>> await browser.launch()
        >>> context = await browser.new_page_context()
        >>> await browser.close()
    """
    
    def __init__(self, settings: Optional[BrowserSettings] = None):
        """Initialize the browser (not launched yet)."""
        self._settings = settings or BrowserSettings()
        self._playwright: Any = None
        self._browser: Any = None
        self._context: Any = None
        self._page_contexts: Dict[Any, PlaywrightPageContext] = {}
    
    @property
    def is_connected(self) -> bool:
        """Check if browser is connected."""
        return self._browser is not None and self._browser.is_connected()
    
    async def launch(self, **options: Any) -> None:
        """
        Launch the browser.
        
        Args:
            **options: Additional Playwright launch options
        """
        try:
            from playwright.async_api import async_playwright
            
            self._playwright = await async_playwright().start()
            launcher = getattr(self._playwright, self._settings.browser_type)
            self._browser = await launcher.launch(
                headless=self._settings.headless,
                slow_mo=self._settings.slow_mo,
                **options,
            )
            self._context = await self._browser.new_context(
                viewport={
                    "width": self._settings.viewport_width,
                    "height": self._settings.viewport_height,
                },
            )
            self._context.set_default_timeout(self._settings.timeout_ms)
            
            logger.info(
                f"Launched {self._settings.browser_type} browser (headless={self._settings.headless})"
            )
        except Exception as e:
            await self.close()
            raise BrowserLaunchError(f"Failed to launch browser: {e}") from e
    
    async def new_page_context(self) -> PlaywrightPageContext:
        """
        Open a new tab.
        
        Returns:
            Page context for the new tab
        """
        if not self._context:
            raise BrowserLaunchError("Browser not launched. Call launch() first.")
        page = await self._context.new_page()
        return self._wrap(page)
    
    def on_page_context(self, callback: Callable[[PlaywrightPageContext], Awaitable[None]]) -> None:
        """
        Call back for every tab opened in the browser context, including
        popups opened by the page itself.
        """
        if not self._context:
            raise BrowserLaunchError("Browser not launched. Call launch() first.")
        self._context.on("page", lambda page: asyncio.create_task(callback(self._wrap(page))))
    
    def _wrap(self, page: Any) -> PlaywrightPageContext:
        context = self._page_contexts.get(page)
        if context is None:
            context = PlaywrightPageContext(page)
            self._page_contexts[page] = context
        return context
    
    async def close(self) -> None:
        """Close the browser and cleanup."""
        if self._context:
            await self._context.close()
            self._context = None
        self._page_contexts.clear()
        
        if self._browser:
            await self._browser.close()
            self._browser = None
        
        if self._playwright:
            await self._playwright.stop()
            self._playwright = None
        
        logger.info("Browser closed")
