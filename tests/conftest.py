"""
Pytest configuration and fixtures.
"""

import asyncio
from typing import Dict, Iterable, List, Optional

import pytest

from web_macro.config import Settings, ReplaySettings, StorageSettings
from web_macro.exceptions import InvalidSelectorError
from web_macro.interfaces.page import IElement, IPageContext, Subscription


class FakeElement(IElement):
    """In-memory element that records what was done to it."""

    def __init__(
        self,
        tag: str = "button",
        text: str = "",
        value: Optional[str] = None,
        input_type: Optional[str] = None,
        checked: bool = False,
        visible: bool = True,
        navigates: bool = False,
        label: str = "",
    ):
        self._tag = tag
        self._text = text
        self._value = value
        self._input_type = input_type
        self.checked = checked
        self.visible = visible
        self.navigates = navigates
        self.label = label
        self.clicks = 0
        self.focused = False
        self.scrolled = False
        self.dispatched: List[str] = []

    @property
    def tag_name(self) -> str:
        return self._tag

    async def input_type(self) -> Optional[str]:
        return self._input_type

    async def text(self) -> str:
        return self._text.strip()

    async def value(self) -> Optional[str]:
        return self._value

    async def label_text(self) -> str:
        return self.label.strip()

    async def is_checked(self) -> bool:
        return self.checked

    async def is_visible(self) -> bool:
        return self.visible

    async def will_navigate(self) -> bool:
        return self.navigates

    async def focus(self) -> None:
        self.focused = True

    async def click(self) -> None:
        self.clicks += 1
        if self._input_type == "checkbox":
            self.checked = not self.checked
        elif self._input_type == "radio":
            self.checked = True

    async def set_value(self, value: str, events: Iterable[str] = ("input", "change")) -> None:
        self._value = value
        self.dispatched.extend(events)

    async def scroll_into_view(self) -> None:
        self.scrolled = True


class FakeSubscription(Subscription):

    def __init__(self, subscribers: list, callback):
        self._subscribers = subscribers
        self._callback = callback
        subscribers.append(callback)

    def cancel(self) -> None:
        if self._callback in self._subscribers:
            self._subscribers.remove(self._callback)


class FakePageContext(IPageContext):
    """
    Page context backed by a selector -> elements map.

    Tests mutate the map and call notify() to simulate DOM changes.
    """

    def __init__(self, context_id: str = "ctx-1", url: str = "https://example.com/"):
        self._context_id = context_id
        self._url = url
        self.elements: Dict[str, List[FakeElement]] = {}
        self.invalid_selectors: set = set()
        self.queries: List[str] = []
        self.subscribers: list = []
        self.recording: Optional[bool] = None
        self.toasts: List[str] = []
        self.on_ready = None
        self.on_event = None
        self.on_close = None
        self.visited: List[str] = []

    @property
    def context_id(self) -> str:
        return self._context_id

    @property
    def url(self) -> str:
        return self._url

    def add(self, selector: str, element: FakeElement) -> FakeElement:
        self.elements.setdefault(selector, []).append(element)
        return element

    def notify(self) -> None:
        for callback in list(self.subscribers):
            callback()

    async def goto(self, url: str) -> None:
        """Simulate a navigation: a new document announces itself."""
        self.visited.append(url)
        self._url = url
        if self.on_ready:
            await self.on_ready()

    async def query_all(self, selector: str) -> List[IElement]:
        self.queries.append(selector)
        if selector in self.invalid_selectors:
            raise InvalidSelectorError(f"bad selector {selector}", selector=selector)
        return list(self.elements.get(selector, []))

    def subscribe_mutations(self, callback) -> Subscription:
        return FakeSubscription(self.subscribers, callback)

    async def install(self, on_ready, on_event, on_close=None) -> None:
        self.on_ready = on_ready
        self.on_event = on_event
        self.on_close = on_close

    async def set_recording(self, recording: bool) -> None:
        self.recording = recording

    async def show_toast(self, text: str) -> None:
        self.toasts.append(text)


@pytest.fixture
def settings():
    """Provide test settings with fast replay timing and in-memory storage."""
    return Settings(
        replay=ReplaySettings(
            min_delay_ms=0,
            max_delay_ms=50,
            default_delay_ms=10,
            element_timeout_ms=200,
            navigation_settle_ms=10,
            navigation_timeout_ms=500,
            scroll_settle_ms=0,
        ),
        storage=StorageSettings(backend="memory"),
    )


@pytest.fixture
def page():
    """Provide a fake page context."""
    return FakePageContext()


@pytest.fixture
def make_page():
    """Provide a factory for additional fake page contexts."""
    return FakePageContext


@pytest.fixture
def make_element():
    """Provide a factory for fake elements."""
    return FakeElement


async def _settle(rounds: int = 20) -> None:
    for _ in range(rounds):
        await asyncio.sleep(0)


@pytest.fixture
def settle():
    """Provide a coroutine that lets pending tasks and queued messages run."""
    return _settle
