"""
Macro Runtime - Wires the browser, message bus, controller and page agents.

Example:
    >>> async with MacroRuntime(settings) as runtime:
    ...     await runtime.open("https://example.com")
    ...     await runtime.start_recording()
    ...     ...
    ...     await runtime.stop_recording()
    ...     await runtime.save("login")
"""

import asyncio
import logging
from typing import Any, Dict, Optional

from web_macro.browsers.playwright_page import PlaywrightBrowser, PlaywrightPageContext
from web_macro.config.settings import Settings
from web_macro.exceptions import ReplayError, WebMacroError
from web_macro.interfaces.page import IPageContext
from web_macro.messaging.bus import MessageBus
from web_macro.messaging.messages import Message, MessageType
from web_macro.page.agent import PageAgent
from web_macro.replay.state import ReplayReport
from web_macro.session.controller import MacroController
from web_macro.storage import create_stores

logger = logging.getLogger(__name__)


class MacroRuntime:
    """
    One browser plus everything needed to record and replay in it.

    Every tab the browser opens, including popups, gets its own PageAgent.
    """

    def __init__(self, settings: Optional[Settings] = None, browser: Optional[PlaywrightBrowser] = None):
        self.settings = settings or Settings()
        self.bus = MessageBus()
        macro_store, session_store = create_stores(self.settings.storage)
        self.macro_store = macro_store
        self.controller = MacroController(self.bus, macro_store, session_store, self.settings)
        self._browser = browser or PlaywrightBrowser(self.settings.browser)
        self._agents: Dict[str, PageAgent] = {}
        self._installs: Dict[str, "asyncio.Future[None]"] = {}
        self._recording = False

    async def __aenter__(self) -> "MacroRuntime":
        await self.start()
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.close()

    @property
    def agents(self) -> Dict[str, PageAgent]:
        return dict(self._agents)

    async def start(self) -> None:
        await self.controller.start()
        await self._browser.launch()
        self._browser.on_page_context(self.attach)

    async def close(self) -> None:
        """Shut down, ending any recording this runtime started first."""
        if self._recording:
            logger.warning("Closing while recording; stopping the recording")
            try:
                await self.send(MessageType.STOP_RECORDING)
            except WebMacroError as e:
                logger.warning(f"Could not stop recording on close: {e}")
            self._recording = False
        await self.controller.stop()
        await self.bus.close()
        await self._browser.close()
        self._agents.clear()
        self._installs.clear()

    async def attach(self, page: IPageContext) -> PageAgent:
        """
        Attach a page agent to a tab (once per tab).

        Concurrent callers for the same tab all wait for the one install.
        """
        agent = self._agents.get(page.context_id)
        if agent is None:
            agent = PageAgent(page, self.bus, self.settings)
            self._agents[page.context_id] = agent
            self._installs[page.context_id] = asyncio.ensure_future(agent.attach())
        await self._installs[page.context_id]
        return agent

    async def open(self, url: str) -> PlaywrightPageContext:
        """Open url in a new tab with an agent attached."""
        page = await self._browser.new_page_context()
        await self.attach(page)
        await page.goto(url)
        return page

    async def send(self, message_type: MessageType, **payload: Any) -> dict:
        """
        Send a message to the controller.

        Raises:
            WebMacroError: If the controller reports a failure
        """
        response = await self.controller.handle(Message(message_type, payload))
        if not response.get("ok", True):
            raise WebMacroError(response.get("error", f"{message_type.value} failed"))
        return response

    async def start_recording(self) -> dict:
        response = await self.send(MessageType.START_RECORDING)
        self._recording = True
        return response

    async def stop_recording(self) -> dict:
        """Stop recording after sending any edits still pending in the pages."""
        for agent in list(self._agents.values()):
            await agent.flush()
        response = await self.send(MessageType.STOP_RECORDING)
        self._recording = False
        return response

    async def save(self, name: str) -> dict:
        return await self.send(MessageType.SAVE_MACRO, name=name)

    async def replay(self, name: str, speed: Optional[float] = None, timeout: Optional[float] = None) -> ReplayReport:
        """
        Replay a saved macro in the active tab and wait for it to finish.

        Raises:
            ReplayError: If the replay could not start
        """
        response = await self.controller.handle(
            Message(MessageType.START_REPLAY, {"name": name, "speed": speed})
        )
        if not response.get("ok"):
            raise ReplayError(response.get("error", "Replay failed to start"))
        report = await self.controller.wait_for_replay(timeout)
        if report is None:
            raise ReplayError("Replay finished without a report")
        return report
