"""
Tests for element resolution and waiting.
"""

import asyncio
import time

import pytest

from web_macro.engine.resolver import ElementResolver
from web_macro.engine.waiter import ElementWaiter
from web_macro.recorder.models import Action, ActionType


def click(selector="#go", alts=None, text=None, tag="button", placeholder=None):
    return Action(
        type=ActionType.CLICK,
        selector=selector,
        selector_alts=alts or [],
        text=text,
        tag=tag,
        placeholder=placeholder,
    )


class TestElementResolver:
    """Test one-shot resolution."""

    @pytest.fixture
    def resolver(self):
        return ElementResolver()

    @pytest.mark.asyncio
    async def test_primary_selector(self, resolver, page, make_element):
        """Test the primary selector is used when it matches."""
        target = page.add("#go", make_element())
        assert await resolver.resolve(page, click()) is target

    @pytest.mark.asyncio
    async def test_first_visible_match(self, resolver, page, make_element):
        """Test hidden matches are skipped in favour of a visible one."""
        page.add("#go", make_element(visible=False))
        visible = page.add("#go", make_element())
        assert await resolver.resolve(page, click()) is visible

    @pytest.mark.asyncio
    async def test_alternates_in_order(self, resolver, page, make_element):
        """Test alternates are tried in order after the primary."""
        second = page.add(".second", make_element())
        page.add(".third", make_element())
        action = click(alts=[".first", ".second", ".third"])
        assert await resolver.resolve(page, action) is second

    @pytest.mark.asyncio
    async def test_invalid_selector_skipped(self, resolver, page, make_element):
        """Test a malformed selector does not abort resolution."""
        page.invalid_selectors.add("#go")
        target = page.add("button.ok", make_element())
        assert await resolver.resolve(page, click(alts=["button.ok"])) is target

    @pytest.mark.asyncio
    async def test_text_fallback(self, resolver, page, make_element):
        """Test exact trimmed text matches among tag and role=button candidates."""
        page.add("button, [role=button]", make_element(text="Cancel"))
        target = page.add("button, [role=button]", make_element(text="  Submit  "))
        assert await resolver.resolve(page, click(text="Submit")) is target

    @pytest.mark.asyncio
    async def test_text_fallback_matches_value(self, resolver, page, make_element):
        """Test text fallback also compares the element value."""
        target = page.add("input, [role=button]", make_element(tag="input", value="Send"))
        action = click(text="Send", tag="input")
        assert await resolver.resolve(page, action) is target

    @pytest.mark.asyncio
    async def test_text_fallback_matches_field_label(self, resolver, page, make_element):
        """Test a fill recorded with its label text resolves through the label."""
        page.add("input, [role=button]", make_element(tag="input", value="", label="Username"))
        target = page.add("input, [role=button]", make_element(tag="input", value="", label=" Email address "))
        action = Action(type=ActionType.FILL, selector="#gone", value="a@b.c", text="Email address", tag="input")
        assert await resolver.resolve(page, action) is target

    @pytest.mark.asyncio
    async def test_label_ignored_for_non_fields(self, resolver, page, make_element):
        """Test label text is only consulted for form fields."""
        page.add("button, [role=button]", make_element(text="Go", label="Submit"))
        assert await resolver.resolve(page, click(selector="#gone", text="Submit")) is None

    @pytest.mark.asyncio
    async def test_text_fallback_requires_visibility(self, resolver, page, make_element):
        """Test a hidden text match is not returned."""
        page.add("button, [role=button]", make_element(text="Submit", visible=False))
        assert await resolver.resolve(page, click(text="Submit")) is None

    @pytest.mark.asyncio
    async def test_placeholder_fallback(self, resolver, page, make_element):
        """Test placeholder is the last resort."""
        target = page.add('[placeholder="Email"]', make_element(tag="input"))
        action = click(selector="#email", tag="input", placeholder="Email")
        assert await resolver.resolve(page, action) is target

    @pytest.mark.asyncio
    async def test_nothing_matches(self, resolver, page):
        """Test None is returned when every strategy fails."""
        assert await resolver.resolve(page, click(text="Nope", placeholder="x")) is None


class TestElementWaiter:
    """Test waiting for elements on DOM mutations."""

    @pytest.mark.asyncio
    async def test_immediate_match(self, page, make_element):
        """Test an element already present is returned without waiting."""
        target = page.add("#go", make_element())
        waiter = ElementWaiter(page)
        assert await waiter.locate(click(), timeout_ms=1000) is target
        assert page.subscribers == []

    @pytest.mark.asyncio
    async def test_appears_after_mutation(self, page, make_element):
        """Test an element added later is found after a mutation notification."""
        waiter = ElementWaiter(page)
        target = make_element()

        async def add_later():
            await asyncio.sleep(0.05)
            page.add("#go", target)
            page.notify()

        task = asyncio.create_task(add_later())
        found = await waiter.locate(click(), timeout_ms=2000)
        await task
        assert found is target

    @pytest.mark.asyncio
    async def test_becomes_visible(self, page, make_element):
        """Test a hidden element is returned once it becomes visible."""
        element = page.add("#go", make_element(visible=False))
        waiter = ElementWaiter(page)

        async def reveal():
            await asyncio.sleep(0.05)
            element.visible = True
            page.notify()

        task = asyncio.create_task(reveal())
        assert await waiter.locate(click(), timeout_ms=2000) is element
        await task

    @pytest.mark.asyncio
    async def test_timeout_returns_none(self, page):
        """Test timing out returns None after at least the timeout, without raising."""
        waiter = ElementWaiter(page)
        started = time.monotonic()
        result = await waiter.locate(click(), timeout_ms=150)
        elapsed_ms = (time.monotonic() - started) * 1000
        assert result is None
        assert elapsed_ms >= 140

    @pytest.mark.asyncio
    async def test_unrelated_mutations_keep_waiting(self, page):
        """Test mutations that do not produce a match do not end the wait early."""
        waiter = ElementWaiter(page)

        async def churn():
            for _ in range(5):
                await asyncio.sleep(0.01)
                page.notify()

        task = asyncio.create_task(churn())
        started = time.monotonic()
        assert await waiter.locate(click(), timeout_ms=200) is None
        assert (time.monotonic() - started) * 1000 >= 190
        await task

    @pytest.mark.asyncio
    async def test_subscription_released(self, page):
        """Test the mutation subscription is cancelled after the wait."""
        waiter = ElementWaiter(page)
        await waiter.locate(click(), timeout_ms=20)
        assert page.subscribers == []
