"""
Page Interface - Abstract base classes for a live page context.

A page context is one document in one tab. It is torn down and rebuilt
on every navigation or reload; nothing obtained from it (elements,
subscriptions) survives that.

Example:
    >>> from web_macro.browsers import PlaywrightBrowser
    >>> browser = PlaywrightBrowser()
    >>> await browser.launch(headless=True)
    >>> context = await browser.new_page_context()
    >>> await context.goto("https://example.com")
"""

from abc import ABC, abstractmethod
from typing import Awaitable, Callable, Iterable, List, Optional


MutationCallback = Callable[[], None]
ReadyCallback = Callable[[], Awaitable[None]]
EventCallback = Callable[[dict], Awaitable[None]]
CloseCallback = Callable[[], Awaitable[None]]

# Form controls that can have an associated <label>
FIELD_TAGS = ("input", "select", "textarea")


class Subscription(ABC):
    """Handle returned by IPageContext.subscribe_mutations()."""
    
    @abstractmethod
    def cancel(self) -> None:
        """Stop delivering notifications. Safe to call more than once."""
        ...


class IElement(ABC):
    """
    Abstract interface for a live DOM element.
    
    All reads go to the live DOM; nothing is cached.
    """
    
    @property
    @abstractmethod
    def tag_name(self) -> str:
        """Lower-case tag name."""
        ...
    
    @abstractmethod
    async def input_type(self) -> Optional[str]:
        """HTML input subtype for <input> elements, None otherwise."""
        ...
    
    @abstractmethod
    async def text(self) -> str:
        """Trimmed text content."""
        ...
    
    @abstractmethod
    async def value(self) -> Optional[str]:
        """Current value for form controls."""
        ...
    
    @abstractmethod
    async def label_text(self) -> str:
        """Trimmed text of the first <label> tied to a form field, or ''."""
        ...
    
    @abstractmethod
    async def is_checked(self) -> bool:
        """Checked state for checkbox/radio inputs."""
        ...
    
    @abstractmethod
    async def is_visible(self) -> bool:
        """
        Check visibility.
        
        Visible iff computed display is not 'none', visibility is not
        'hidden', opacity is not '0', and the bounding box has positive
        width or height.
        """
        ...
    
    @abstractmethod
    async def will_navigate(self) -> bool:
        """Whether clicking is expected to navigate (real link or submit control)."""
        ...
    
    @abstractmethod
    async def focus(self) -> None:
        """Give the element focus."""
        ...
    
    @abstractmethod
    async def click(self) -> None:
        """Dispatch a click on the element."""
        ...
    
    @abstractmethod
    async def set_value(self, value: str, events: Iterable[str] = ("input", "change")) -> None:
        """
        Set the value through the native property setter, then fire events.
        
        Going through the native setter lets frameworks that wrap the value
        property observe the change.
        
        Args:
            value: New value
            events: Event names dispatched (bubbling) after the change
        """
        ...
    
    @abstractmethod
    async def scroll_into_view(self) -> None:
        """Scroll the element to the centre of the viewport."""
        ...


class IPageContext(ABC):
    """
    Abstract interface for one page context (a document in a tab).
    """
    
    @property
    @abstractmethod
    def context_id(self) -> str:
        """Stable identifier of the tab this context lives in."""
        ...
    
    @property
    @abstractmethod
    def url(self) -> str:
        """Current document URL."""
        ...
    
    @abstractmethod
    async def query_all(self, selector: str) -> List[IElement]:
        """
        Find all elements matching a CSS selector.
        
        Raises:
            InvalidSelectorError: If the selector cannot be parsed
        """
        ...
    
    @abstractmethod
    def subscribe_mutations(self, callback: MutationCallback) -> Subscription:
        """
        Register interest in DOM changes.
        
        The callback fires on child-list changes anywhere in the document and
        on changes to the style, class, hidden, disabled and aria-hidden
        attributes.
        """
        ...
    
    @abstractmethod
    async def install(
        self,
        on_ready: ReadyCallback,
        on_event: EventCallback,
        on_close: Optional[CloseCallback] = None,
    ) -> None:
        """
        Install the in-page script.
        
        Args:
            on_ready: Awaited whenever a new document finishes loading
            on_event: Awaited with each raw interaction event from the page
            on_close: Awaited once when the tab closes
        """
        ...
    
    @abstractmethod
    async def set_recording(self, recording: bool) -> None:
        """Tell the in-page script whether to report interaction events."""
        ...
    
    @abstractmethod
    async def show_toast(self, text: str) -> None:
        """Show a short, non-blocking notification in the page."""
        ...
