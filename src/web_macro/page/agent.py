"""
Page Agent - The per-tab worker that records and replays inside one page.

The agent lives as long as its tab. Each new document announces itself
through the ready callback; the agent then builds a fresh recorder, asks
the controller whether a recording is in progress, and reports the load
so a paused replay can resume.
"""

import asyncio
import logging
from typing import Any, Dict, Optional

from web_macro.config.settings import Settings
from web_macro.engine.executor import ActionExecutor
from web_macro.engine.resolver import ElementResolver
from web_macro.engine.selectors import SelectorEngine
from web_macro.engine.waiter import ElementWaiter
from web_macro.exceptions import ContextGoneError, PageError, WebMacroError
from web_macro.interfaces.page import IPageContext
from web_macro.messaging.bus import MessageBus
from web_macro.messaging.messages import Message, MessageType
from web_macro.recorder.models import Action
from web_macro.recorder.recorder import ActionRecorder

logger = logging.getLogger(__name__)

TOAST_SELECTOR_LENGTH = 40


class PageAgent:
    """
    Records interactions in, and replays actions into, one page context.

    Example:
        >>> agent = PageAgent(context, bus, settings)
        >>> await agent.attach()
        >>> await context.goto("https://example.com")
    """

    def __init__(self, page: IPageContext, bus: MessageBus, settings: Optional[Settings] = None):
        self._page = page
        self._bus = bus
        self._settings = settings or Settings()
        self._selectors = SelectorEngine(self._settings.selectors)
        self._recorder = self._new_recorder()
        waiter = ElementWaiter(
            page,
            ElementResolver(self._settings.selectors),
            default_timeout_ms=self._settings.replay.element_timeout_ms,
        )
        self._executor = ActionExecutor(waiter, self._settings.replay)
        self._event_lock = asyncio.Lock()
        self._replay_task: Optional[asyncio.Task] = None
        self._navigation_reported = False
        self._closed = False

    @property
    def context_id(self) -> str:
        return self._page.context_id

    @property
    def recorder(self) -> ActionRecorder:
        return self._recorder

    async def attach(self) -> None:
        """Register on the bus and install the page script."""
        self._bus.register_context(self.context_id, self.handle_message)
        await self._page.install(self._on_ready, self._on_event, self._on_close)
        logger.debug(f"Page agent attached to {self.context_id}")

    async def flush(self) -> int:
        """
        Send any pending (not yet blurred) edits to the controller.

        Returns:
            Number of actions sent
        """
        async with self._event_lock:
            actions = self._recorder.flush()
            for action in actions:
                await self._send_action(action)
        return len(actions)

    # -- messages from the controller --------------------------------------

    async def handle_message(self, message: Message) -> Dict[str, Any]:
        """Handle a message posted to this context."""
        if message.type == MessageType.START_RECORDING:
            await self._start_recording()
        elif message.type == MessageType.STOP_RECORDING:
            await self._stop_recording()
        elif message.type == MessageType.REPLAY_ACTION:
            await self._start_replay_step(message)
        elif message.type == MessageType.REPLAY_COMPLETE:
            await self._replay_complete(bool(message.get("stopped")))
        else:
            logger.debug(f"Page {self.context_id} ignoring {message.type.value}")
            return {"ok": False, "error": f"Unsupported message: {message.type.value}"}
        return {"ok": True}

    async def _start_recording(self) -> None:
        already = self._recorder.is_recording
        self._recorder.start()
        await self._page.set_recording(True)
        if not already:
            await self._toast("Recording...")

    async def _stop_recording(self) -> None:
        async with self._event_lock:
            for action in self._recorder.stop():
                await self._send_action(action)
        await self._page.set_recording(False)
        await self._toast("Recording stopped")

    async def _start_replay_step(self, message: Message) -> None:
        try:
            action = Action.from_dict(message.get("action") or {})
        except (KeyError, ValueError, TypeError) as e:
            logger.error(f"Malformed replay action: {e}")
            await self._report_done(found=False)
            return

        self._cancel_replay_step()
        self._navigation_reported = False
        self._replay_task = asyncio.create_task(
            self._run_replay_step(action, message.get("index")),
            name=f"replay-step-{self.context_id}",
        )

    async def _run_replay_step(self, action: Action, index: Optional[int]) -> None:
        try:
            result = await self._executor.execute(action, on_navigate=self._report_navigation)
        except ContextGoneError:
            if self._navigation_reported:
                return
            logger.warning(f"Page changed while replaying step {index}; moving on")
            await self._report_done(found=False)
            return
        except WebMacroError as e:
            logger.error(f"Step {index} failed: {e}")
            await self._report_done(found=False)
            return

        if not result.found:
            logger.warning(f"Element not found for step {index}: {action.selector}")
            await self._toast(f"Element not found: {(action.selector or '')[:TOAST_SELECTOR_LENGTH]}")
        if not result.navigated:
            await self._report_done(found=result.found)

    async def _report_navigation(self) -> None:
        self._navigation_reported = True
        await self._bus.send_to_controller(
            Message(MessageType.ACTION_NAVIGATED, context_id=self.context_id)
        )

    async def _report_done(self, found: bool) -> None:
        await self._bus.send_to_controller(
            Message(MessageType.ACTION_DONE, {"found": found}, self.context_id)
        )

    async def _replay_complete(self, stopped: bool) -> None:
        self._cancel_replay_step()
        await self._toast("Replay stopped" if stopped else "Macro complete!")

    def _cancel_replay_step(self) -> None:
        if self._replay_task and not self._replay_task.done():
            self._replay_task.cancel()
        self._replay_task = None

    # -- callbacks from the page -------------------------------------------

    async def _on_ready(self) -> None:
        self._recorder = self._new_recorder()
        try:
            state = await self._bus.send_to_controller(
                Message(MessageType.GET_STATE, context_id=self.context_id)
            )
            if state.get("is_recording"):
                await self._start_recording()
        except ContextGoneError as e:
            logger.debug(f"Document in {self.context_id} went away while loading: {e}")
            return
        await self._bus.send_to_controller(Message(MessageType.PAGE_LOADED, context_id=self.context_id))

    async def _on_event(self, event: Dict[str, Any]) -> None:
        async with self._event_lock:
            for action in self._recorder.handle_event(event):
                await self._send_action(action)

    async def _on_close(self) -> None:
        if self._closed:
            return
        self._closed = True
        self._cancel_replay_step()
        self._bus.unregister_context(self.context_id)
        logger.debug(f"Page context {self.context_id} closed")
        await self._bus.send_to_controller(Message(MessageType.CONTEXT_CLOSED, context_id=self.context_id))

    # -- helpers ------------------------------------------------------------

    async def _send_action(self, action: Action) -> None:
        response = await self._bus.send_to_controller(
            Message(MessageType.RECORD_ACTION, {"action": action.to_dict()}, self.context_id)
        )
        if not response.get("ok", False):
            logger.warning(f"Controller rejected recorded action: {response.get('error')}")

    async def _toast(self, text: str) -> None:
        try:
            await self._page.show_toast(text)
        except PageError as e:
            logger.debug(f"Toast not shown in {self.context_id}: {e}")

    def _new_recorder(self) -> ActionRecorder:
        return ActionRecorder(self._selectors, self._settings.selectors)
