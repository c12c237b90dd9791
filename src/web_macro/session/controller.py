"""
Macro Controller - The single authority over recording and replay state.

All messages, from the CLI, from page agents and from replay timers, go
through one queue and are handled one at a time, so state transitions
never interleave. Page agents are only ever *posted* to, never awaited,
which keeps page handlers free to call back into the controller.
"""

import asyncio
import logging
from typing import Any, Dict, List, Optional, Tuple

from web_macro.config.settings import Settings
from web_macro.effects import (
    BroadcastToActive,
    CancelReplayTimer,
    DeleteMacro,
    PersistRecording,
    ReplayFinished,
    SaveMacro,
    ScheduleReplay,
    SendToContext,
)
from web_macro.exceptions import MacroNotFoundError, StorageError, WebMacroError
from web_macro.messaging.bus import MessageBus
from web_macro.messaging.messages import Message, MessageType
from web_macro.replay.engine import ReplayEngine
from web_macro.replay.state import ReplayReport
from web_macro.session.state import SessionState
from web_macro.session.transitions import SessionReducer
from web_macro.storage.base import MacroStore, SessionStore

logger = logging.getLogger(__name__)

_Pending = Tuple[Message, Optional["asyncio.Future[dict]"]]


class MacroController:
    """
    Owns session state, the macro library and the replay timer.

    Example:
        >>> controller = MacroController(bus, macro_store, session_store)
        >>> await controller.start()
        >>> await controller.handle(Message(MessageType.START_RECORDING))
        >>> ...
        >>> result = await controller.handle(Message(MessageType.STOP_RECORDING))
        >>> await controller.handle(Message(MessageType.SAVE_MACRO, {"name": "login"}))
    """

    def __init__(
        self,
        bus: MessageBus,
        macro_store: MacroStore,
        session_store: SessionStore,
        settings: Optional[Settings] = None,
    ):
        self._bus = bus
        self._macros = macro_store
        self._session = session_store
        self._settings = settings or Settings()
        self._reducer = SessionReducer(ReplayEngine(self._settings.replay))
        self._state = SessionState()
        self._queue: "asyncio.Queue[_Pending]" = asyncio.Queue()
        self._worker: Optional[asyncio.Task] = None
        self._timer: Optional[asyncio.Task] = None
        self._replay_waiters: List["asyncio.Future[ReplayReport]"] = []
        self._last_report: Optional[ReplayReport] = None

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def last_report(self) -> Optional[ReplayReport]:
        return self._last_report

    @property
    def is_running(self) -> bool:
        return self._worker is not None and not self._worker.done()

    async def start(self) -> None:
        """Rehydrate the recording from the session store and begin serving."""
        if self.is_running:
            return
        await self._rehydrate()
        self._bus.register_controller(self.handle)
        self._worker = asyncio.create_task(self._run(), name="macro-controller")
        logger.debug("Controller started")

    async def stop(self) -> None:
        """Stop serving; pending timers are cancelled and waiters released."""
        self._cancel_timer()
        if self._worker:
            self._worker.cancel()
            try:
                await self._worker
            except asyncio.CancelledError:
                pass
            self._worker = None
        while not self._queue.empty():
            _, future = self._queue.get_nowait()
            if future and not future.done():
                future.cancel()
        for waiter in self._replay_waiters:
            if not waiter.done():
                waiter.cancel()
        self._replay_waiters.clear()
        logger.debug("Controller stopped")

    async def handle(self, message: Message) -> dict:
        """
        Submit a message and wait for its response.

        Failures are reported in the response as {"ok": False, "error": ...}
        rather than raised.
        """
        if not self.is_running:
            raise WebMacroError("Controller is not running")
        future: "asyncio.Future[dict]" = asyncio.get_running_loop().create_future()
        self._queue.put_nowait((message, future))
        return await future

    async def wait_for_replay(self, timeout: Optional[float] = None) -> Optional[ReplayReport]:
        """
        Wait until the current replay finishes.

        Returns:
            The replay report, or the last report if no replay is running

        Raises:
            asyncio.TimeoutError: If timeout elapses first
        """
        if not self._state.is_replaying:
            return self._last_report
        waiter: "asyncio.Future[ReplayReport]" = asyncio.get_running_loop().create_future()
        self._replay_waiters.append(waiter)
        return await asyncio.wait_for(waiter, timeout)

    # -- worker -------------------------------------------------------------

    async def _run(self) -> None:
        while True:
            message, future = await self._queue.get()
            if future is not None and future.done():
                continue
            try:
                response = await self._process(message)
            except WebMacroError as e:
                logger.warning(f"{message.type.value} failed: {e}")
                response = {"ok": False, "error": e.message}
            except Exception as e:
                logger.exception(f"Unexpected error handling {message.type.value}")
                response = {"ok": False, "error": str(e)}
            if future is not None and not future.done():
                future.set_result(response)

    async def _process(self, message: Message) -> dict:
        if message.type == MessageType.GET_MACROS:
            macros = await self._macros.list()
            return {"ok": True, "macros": {name: m.to_dict() for name, m in macros.items()}}

        if message.type == MessageType.GET_MACRO:
            name = message.get("name") or ""
            macro = await self._macros.get(name)
            if macro is None:
                raise MacroNotFoundError(f"Macro not found: {name}", name)
            return {"ok": True, "macro": macro.to_dict()}

        if message.type == MessageType.START_REPLAY:
            message = await self._resolve_replay_request(message)

        if message.type == MessageType.RECORD_ACTION and not self._state.is_recording:
            # Another controller instance may have started recording
            await self._rehydrate()

        transition = self._reducer(self._state, message)
        self._state = transition.state
        for effect in transition.effects:
            await self._apply(effect)
        return transition.response

    async def _resolve_replay_request(self, message: Message) -> Message:
        payload: Dict[str, Any] = dict(message.payload)
        if payload.get("macro") is None and payload.get("name"):
            macro = await self._macros.get(payload["name"])
            if macro is not None:
                payload["macro"] = [a.to_dict() for a in macro.actions]
        if not payload.get("target_context"):
            payload["target_context"] = message.context_id or self._bus.active_context
        return Message(message.type, payload, message.context_id)

    async def _rehydrate(self) -> None:
        try:
            snapshot = await self._session.load()
        except StorageError as e:
            logger.warning(f"Could not restore recording session: {e}")
            return
        self._state = self._state.with_snapshot(snapshot)
        if snapshot.is_recording or snapshot.actions:
            logger.debug(
                f"Restored session: recording={snapshot.is_recording}, "
                f"{len(snapshot.actions)} actions"
            )

    # -- effects ------------------------------------------------------------

    async def _apply(self, effect: object) -> None:
        if isinstance(effect, PersistRecording):
            await self._session.save(self._state.snapshot())
        elif isinstance(effect, SendToContext):
            self._bus.post_to_context(effect.context_id, effect.message)
        elif isinstance(effect, BroadcastToActive):
            self._bus.post_to_active(effect.message)
        elif isinstance(effect, ScheduleReplay):
            self._schedule_tick(effect.delay_ms, effect.token)
        elif isinstance(effect, CancelReplayTimer):
            self._cancel_timer()
        elif isinstance(effect, SaveMacro):
            await self._macros.save(effect.macro)
            logger.info(f"Saved macro '{effect.macro.name}' ({effect.macro.count} actions)")
        elif isinstance(effect, DeleteMacro):
            if await self._macros.delete(effect.name):
                logger.info(f"Deleted macro '{effect.name}'")
            else:
                logger.debug(f"Delete of unknown macro '{effect.name}' ignored")
        elif isinstance(effect, ReplayFinished):
            self._finish_replay(effect.report)
        else:
            raise WebMacroError(f"Unknown effect: {effect!r}")

    def _schedule_tick(self, delay_ms: int, token: Tuple[int, int]) -> None:
        self._cancel_timer()
        self._timer = asyncio.create_task(self._tick_after(delay_ms, token), name="replay-tick")

    async def _tick_after(self, delay_ms: int, token: Tuple[int, int]) -> None:
        await asyncio.sleep(delay_ms / 1000)
        self._queue.put_nowait((Message(MessageType.REPLAY_TICK, {"token": list(token)}), None))

    def _cancel_timer(self) -> None:
        if self._timer and not self._timer.done():
            self._timer.cancel()
        self._timer = None

    def _finish_replay(self, report: ReplayReport) -> None:
        self._last_report = report
        waiters, self._replay_waiters = self._replay_waiters, []
        for waiter in waiters:
            if not waiter.done():
                waiter.set_result(report)
