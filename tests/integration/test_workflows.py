"""
Integration tests for complete record / save / replay workflows.

The runtime is driven end to end with an in-memory browser whose tabs are
fake page contexts, so the controller, bus, agents and storage all run for
real without launching a browser.
"""

import pytest

from web_macro.config import StorageSettings
from web_macro.messaging.messages import MessageType
from web_macro.runtime import MacroRuntime


# =============================================================================
# MOCK CLASSES
# =============================================================================

class FakeBrowser:
    """Stand-in for PlaywrightBrowser handing out fake page contexts."""

    def __init__(self, make_page):
        self._make_page = make_page
        self.tabs = []
        self.launched = False
        self.closed = False
        self._callback = None

    async def launch(self, **options):
        self.launched = True

    def on_page_context(self, callback):
        self._callback = callback

    async def new_page_context(self):
        tab = self._make_page(f"tab-{len(self.tabs) + 1}")
        self.tabs.append(tab)
        return tab

    async def popup(self):
        """Simulate the page opening a new tab by itself."""
        tab = await self.new_page_context()
        await self._callback(tab)
        return tab

    async def close(self):
        self.closed = True


def snapshot(tag, id_, text="", type_=None):
    attributes = {"id": id_}
    if type_:
        attributes["type"] = type_
    return {
        "tag": tag,
        "attributes": attributes,
        "text": text,
        "path": [{"tag": tag, "id": id_, "id_unique": True, "index": 1, "same_tag_count": 1}],
    }


def event(kind, element=None, timestamp=1000, **extra):
    data = {"kind": kind, "element": element, "url": "https://example.com/", "timestamp": timestamp}
    data.update(extra)
    return data


@pytest.fixture
def browser(make_page):
    return FakeBrowser(make_page)


@pytest.fixture
async def runtime(settings, browser):
    """Provide a started runtime on the fake browser."""
    async with MacroRuntime(settings, browser=browser) as runtime:
        yield runtime


# =============================================================================
# TESTS
# =============================================================================

class TestRuntimeLifecycle:
    """Test starting and stopping the runtime."""

    @pytest.mark.asyncio
    async def test_start_and_close(self, settings, browser):
        """Test the runtime launches and closes the browser."""
        runtime = MacroRuntime(settings, browser=browser)
        await runtime.start()
        assert browser.launched
        assert runtime.controller.is_running

        await runtime.close()
        assert browser.closed
        assert not runtime.controller.is_running

    @pytest.mark.asyncio
    async def test_open_attaches_agent(self, runtime, browser):
        """Test open() attaches an agent before navigating."""
        tab = await runtime.open("https://example.com/")
        assert tab.visited == ["https://example.com/"]
        assert tab.context_id in runtime.agents
        assert runtime.bus.active_context == tab.context_id

    @pytest.mark.asyncio
    async def test_attach_is_idempotent(self, runtime):
        """Test attaching the same tab twice returns the same agent."""
        tab = await runtime.open("https://example.com/")
        agent = runtime.agents[tab.context_id]
        assert await runtime.attach(tab) is agent

    @pytest.mark.asyncio
    async def test_popup_gets_agent(self, runtime, browser):
        """Test tabs opened by the page are attached automatically."""
        await runtime.open("https://example.com/")
        popup = await browser.popup()
        assert popup.context_id in runtime.agents
        assert runtime.bus.active_context == popup.context_id


class TestRecordReplayWorkflow:
    """Test recording a macro and replaying it."""

    @pytest.mark.asyncio
    async def test_record_save_replay(self, runtime, browser, make_element):
        """Test a recorded search is saved and replayed into the page."""
        tab = await runtime.open("https://example.com/")
        await runtime.start_recording()
        await runtime.bus.drain()
        assert tab.recording is True

        await tab.on_event(event("input", snapshot("input", "q", type_="text"), 1000, value="cats"))
        await tab.on_event(event("click", snapshot("button", "go", "Search"), 1400))
        result = await runtime.stop_recording()
        assert result["count"] == 2

        await runtime.save("search")
        saved = await runtime.macro_store.get("search")
        assert [a.selector for a in saved.actions] == ["#q", "#go"]

        field = tab.add("#q", make_element(tag="input", input_type="text"))
        button = tab.add("#go", make_element(text="Search"))
        report = await runtime.replay("search", timeout=5)

        assert await field.value() == "cats"
        assert button.clicks == 1
        assert report.played == 2
        assert report.stopped is False

    @pytest.mark.asyncio
    async def test_replaying_twice_gives_same_values(self, runtime, make_element):
        """Test a fill and select macro leaves the same values on every run."""
        await runtime.send(MessageType.SAVE_MACRO, name="form", macro=[
            {"type": "fill", "selector": "#name", "value": "Ada", "timestamp": 0},
            {"type": "select", "selector": "#country", "value": "uk", "timestamp": 100},
            {"type": "fill", "selector": "#name", "value": "Ada Lovelace", "timestamp": 200},
        ])
        tab = await runtime.open("https://example.com/form")

        results = []
        for _ in range(2):
            tab.elements.clear()
            name = tab.add("#name", make_element(tag="input", input_type="text", value=""))
            country = tab.add("#country", make_element(tag="select", value="fr"))
            report = await runtime.replay("form", timeout=5)
            results.append((await name.value(), await country.value(), report.played, report.skipped))

        assert results[0] == ("Ada Lovelace", "uk", 3, 0)
        assert results[1] == results[0]

    @pytest.mark.asyncio
    async def test_stop_flushes_unblurred_edit(self, runtime):
        """Test text typed just before stopping is not lost."""
        tab = await runtime.open("https://example.com/")
        await runtime.start_recording()
        await runtime.bus.drain()

        await tab.on_event(event("input", snapshot("textarea", "notes"), value="hello"))
        result = await runtime.stop_recording()

        assert result["count"] == 1
        assert result["macro"][0]["type"] == "fill"
        assert result["macro"][0]["value"] == "hello"

    @pytest.mark.asyncio
    async def test_recording_follows_navigation(self, runtime, browser):
        """Test recording continues in the new document after a navigation."""
        tab = await runtime.open("https://example.com/")
        await runtime.start_recording()
        await runtime.bus.drain()

        await tab.on_event(event("click", snapshot("a", "next", "Next"), 1000))
        await tab.on_event(event("unload", timestamp=1100))
        await tab.goto("https://example.com/next")
        await runtime.bus.drain()
        await tab.on_event(event("click", snapshot("button", "done", "Done"), 2000))

        result = await runtime.stop_recording()
        assert [a["type"] for a in result["macro"]] == ["click", "navigate", "click"]

    @pytest.mark.asyncio
    async def test_replay_unknown_macro(self, runtime):
        """Test replaying a missing macro raises."""
        from web_macro.exceptions import ReplayError
        await runtime.open("https://example.com/")
        with pytest.raises(ReplayError):
            await runtime.replay("ghost")

    @pytest.mark.asyncio
    async def test_cannot_replay_while_recording(self, runtime):
        """Test replay is refused during a recording."""
        from web_macro.exceptions import ReplayError
        await runtime.open("https://example.com/")
        await runtime.send(MessageType.SAVE_MACRO, name="m", macro=[{"type": "click", "selector": "#a"}])
        await runtime.start_recording()
        with pytest.raises(ReplayError):
            await runtime.replay("m")

    @pytest.mark.asyncio
    async def test_interrupted_recording_does_not_block_replay(self, settings, make_page, make_element, tmp_path):
        """Test a run that fails mid-recording leaves the next run free to replay."""
        settings.storage = StorageSettings(
            backend="json",
            macros_path=str(tmp_path / "macros.json"),
            session_path=str(tmp_path / "session.json"),
        )

        with pytest.raises(RuntimeError):
            async with MacroRuntime(settings, browser=FakeBrowser(make_page)) as first:
                await first.open("https://example.com/")
                await first.send(MessageType.SAVE_MACRO, name="m", macro=[{"type": "click", "selector": "#a"}])
                await first.start_recording()
                raise RuntimeError("interrupted")

        async with MacroRuntime(settings, browser=FakeBrowser(make_page)) as second:
            state = await second.send(MessageType.GET_STATE)
            assert state["is_recording"] is False

            tab = await second.open("https://example.com/")
            button = tab.add("#a", make_element())
            report = await second.replay("m", timeout=5)

        assert button.clicks == 1
        assert report.played == 1
