"""
Integration tests against a real browser.

These need Playwright's Chromium (playwright install chromium) and are
skipped when it cannot be launched.
"""

import asyncio
from urllib.parse import quote

import pytest

from web_macro.config import BrowserSettings, Settings, StorageSettings
from web_macro.exceptions import BrowserLaunchError
from web_macro.messaging.messages import MessageType
from web_macro.runtime import MacroRuntime

pytestmark = pytest.mark.integration

SEARCH_PAGE = """
<html><body>
  <input id="q" type="text" placeholder="Search">
  <button id="go" onclick="document.getElementById('out').textContent = 'Results for ' + document.getElementById('q').value">Search</button>
  <div id="out"></div>
  <div id="late-slot"></div>
  <script>
    setTimeout(function () {
      var b = document.createElement('button');
      b.id = 'late';
      b.textContent = 'Late';
      b.onclick = function () { document.getElementById('out').textContent = 'late clicked'; };
      document.getElementById('late-slot').appendChild(b);
    }, 500);
  </script>
</body></html>
"""

SEARCH_URL = "data:text/html," + quote(SEARCH_PAGE)


@pytest.fixture
async def runtime():
    """Provide a runtime on headless Chromium, or skip."""
    settings = Settings(
        browser=BrowserSettings(headless=True),
        storage=StorageSettings(backend="memory"),
    )
    runtime = MacroRuntime(settings)
    try:
        await runtime.start()
    except BrowserLaunchError as e:
        await runtime.close()
        pytest.skip(f"Browser not available: {e}")
    yield runtime
    await runtime.close()


async def _text(tab, selector):
    return await tab.page.evaluate(f"document.querySelector({selector!r}).textContent")


class TestPlaywrightRecording:
    """Test recording real DOM events."""

    @pytest.mark.asyncio
    async def test_records_fill_and_click(self, runtime):
        """Test typing and clicking in the page is recorded."""
        tab = await runtime.open(SEARCH_URL)
        await runtime.start_recording()
        await runtime.bus.drain()

        await tab.page.fill("#q", "cats")
        await tab.page.click("#go")
        await asyncio.sleep(0.3)

        result = await runtime.stop_recording()
        types = [a["type"] for a in result["macro"]]
        assert types == ["fill", "click"]
        assert result["macro"][0]["selector"] == "#q"
        assert result["macro"][0]["value"] == "cats"


class TestPlaywrightReplay:
    """Test replaying into a real page."""

    @pytest.mark.asyncio
    async def test_replays_search(self, runtime):
        """Test a saved macro fills the field and clicks the button."""
        await runtime.send(
            MessageType.SAVE_MACRO,
            name="search",
            macro=[
                {"type": "fill", "selector": "#q", "value": "cats", "tag": "input", "input_type": "text", "timestamp": 0},
                {"type": "click", "selector": "#go", "text": "Search", "tag": "button", "timestamp": 300},
            ],
        )
        tab = await runtime.open(SEARCH_URL)

        report = await runtime.replay("search", speed=2.0, timeout=20)

        assert report.played == 2
        assert await _text(tab, "#out") == "Results for cats"

    @pytest.mark.asyncio
    async def test_waits_for_late_element(self, runtime):
        """Test replay waits for a button the page adds after loading."""
        await runtime.send(
            MessageType.SAVE_MACRO,
            name="late",
            macro=[{"type": "click", "selector": "#late", "text": "Late", "tag": "button", "timestamp": 0}],
        )
        tab = await runtime.open(SEARCH_URL)

        report = await runtime.replay("late", timeout=20)

        assert report.skipped == 0
        assert await _text(tab, "#out") == "late clicked"
