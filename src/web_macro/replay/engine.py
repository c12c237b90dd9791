"""
Replay Engine - Timing and sequencing of macro playback.

The engine is a set of pure transitions over ReplayState. Each returns the
next state plus the effects the controller must carry out (dispatching an
action to a page, scheduling the next tick, reporting completion). Nothing
here sleeps, so replay survives page navigations: the pending step is just
an index and a scheduled token.

Flow for one step:

    dispatch  -> REPLAY_ACTION sent, in_flight
    ACTION_DONE -> delay computed from the recorded gap, tick scheduled
    REPLAY_TICK -> next dispatch

A navigating click reports ACTION_NAVIGATED instead of ACTION_DONE; replay
then pauses until the bound context reports PAGE_LOADED and resumes after
a settle delay.
"""

import logging
from dataclasses import replace
from typing import List, Optional, Sequence, Tuple

from web_macro.config.settings import ReplaySettings
from web_macro.effects import (
    CancelReplayTimer,
    ReplayFinished,
    ScheduleReplay,
    SendToContext,
)
from web_macro.exceptions import ReplayError
from web_macro.messaging.messages import Message, MessageType
from web_macro.recorder.models import Action
from web_macro.replay.state import ReplayPhase, ReplayReport, ReplayState

logger = logging.getLogger(__name__)

Result = Tuple[ReplayState, List[object]]


def compute_delay(
    current: Action,
    following: Optional[Action],
    speed: float,
    settings: ReplaySettings,
) -> int:
    """
    Delay to wait after current before the next action runs.

    The recorded gap between the two timestamps is divided by speed and
    clamped to [min_delay_ms, max_delay_ms]. Without both timestamps the
    default delay is used.

    Example:
        >>> compute_delay(a_at_0, b_at_3000, 2.0, ReplaySettings())
        1500
    """
    if following is None or current.timestamp is None or following.timestamp is None:
        return settings.default_delay_ms
    gap = (following.timestamp - current.timestamp) / speed
    return int(round(min(max(gap, settings.min_delay_ms), settings.max_delay_ms)))


class ReplayEngine:
    """
    Pure replay transitions.

    Example:
        >>> engine = ReplayEngine(ReplaySettings())
        >>> state, effects = engine.start(ReplayState(), actions, "ctx-1", speed=2.0)
    """

    def __init__(self, settings: Optional[ReplaySettings] = None):
        self._settings = settings or ReplaySettings()

    @property
    def settings(self) -> ReplaySettings:
        return self._settings

    # -- entry points -------------------------------------------------------

    def start(
        self,
        state: ReplayState,
        actions: Sequence[Action],
        target_context: Optional[str],
        speed: Optional[float] = None,
        name: Optional[str] = None,
    ) -> Result:
        """
        Begin playing actions in target_context.

        Raises:
            ReplayError: If a replay is running, the macro is empty,
                no target context is known, or speed is not positive
        """
        if state.is_replaying:
            raise ReplayError("A replay is already running")
        if not actions:
            raise ReplayError("Macro has no actions")
        if not target_context:
            raise ReplayError("No page context to replay in")
        speed = self._settings.default_speed if speed is None else float(speed)
        if speed <= 0:
            raise ReplayError(f"Speed must be positive, got {speed}")

        logger.info(
            f"Replaying {name or 'macro'} ({len(actions)} actions) "
            f"in {target_context} at {speed}x"
        )
        started = ReplayState(
            phase=ReplayPhase.PLAYING,
            name=name,
            actions=tuple(actions),
            index=0,
            target_context=target_context,
            speed=speed,
            generation=state.generation + 1,
        )
        return self._dispatch(started)

    def stop(self, state: ReplayState) -> Result:
        """Abort the replay; pending ticks become stale."""
        if not state.is_replaying:
            return state, []

        logger.info(f"Replay stopped at action {state.index}/{state.total}")
        report = self._report(state, stopped=True)
        effects: List[object] = [
            CancelReplayTimer(),
            SendToContext(
                state.target_context,
                Message(MessageType.REPLAY_COMPLETE, {"stopped": True}, state.target_context),
            ),
            ReplayFinished(report),
        ]
        return self._released(state, ReplayPhase.IDLE), effects

    def on_action_done(
        self,
        state: ReplayState,
        found: bool = True,
        context_id: Optional[str] = None,
    ) -> Result:
        """An action finished executing; schedule the next one."""
        if not self._expecting_result(state, context_id):
            logger.debug("Ignoring ACTION_DONE with no action in flight")
            return state, []

        state = replace(
            state,
            in_flight=False,
            played=state.played + (1 if found else 0),
            skipped=state.skipped + (0 if found else 1),
        )
        following = self._next_executable(state.actions, state.index)
        if following is None:
            return self._complete(state)

        # A skipped breadcrumb still shapes the gap: its timestamp is the next one recorded
        current = state.actions[state.index - 1]
        upcoming = state.actions[state.index] if state.index < state.total else None
        delay = compute_delay(current, upcoming, state.speed, self._settings)
        return state, [ScheduleReplay(delay, state.token)]

    def on_navigated(self, state: ReplayState, context_id: Optional[str] = None) -> Result:
        """The in-flight click is about to navigate the page; pause."""
        if not self._expecting_result(state, context_id):
            logger.debug("Ignoring ACTION_NAVIGATED with no action in flight")
            return state, []

        state = replace(
            state,
            phase=ReplayPhase.PAUSED_FOR_NAVIGATION,
            in_flight=False,
            played=state.played + 1,
        )
        logger.debug(f"Replay paused for navigation after action {state.index}")
        # Watchdog: resume even if no load is reported
        return state, [ScheduleReplay(self._settings.navigation_timeout_ms, state.token)]

    def on_page_loaded(self, state: ReplayState, context_id: Optional[str]) -> Result:
        """A document finished loading in context_id."""
        if state.phase != ReplayPhase.PAUSED_FOR_NAVIGATION or context_id != state.target_context:
            return state, []

        logger.debug(f"Page loaded in {context_id}; resuming replay")
        state = replace(state, phase=ReplayPhase.PLAYING)
        return state, [ScheduleReplay(self._settings.navigation_settle_ms, state.token)]

    def on_tick(self, state: ReplayState, token: Optional[Sequence[int]]) -> Result:
        """A scheduled delay elapsed."""
        if not state.is_replaying or token is None or tuple(token) != state.token:
            logger.debug(f"Ignoring stale replay tick {token}")
            return state, []
        if state.in_flight:
            return state, []

        if state.phase == ReplayPhase.PAUSED_FOR_NAVIGATION:
            logger.warning(
                f"No page load within {self._settings.navigation_timeout_ms}ms "
                f"after navigation; resuming replay"
            )
            state = replace(state, phase=ReplayPhase.PLAYING)
        return self._dispatch(state)

    def on_context_closed(self, state: ReplayState, context_id: Optional[str]) -> Result:
        """The bound context went away; replay cannot continue."""
        if not state.is_replaying or context_id != state.target_context:
            return state, []

        logger.warning(f"Page context {context_id} closed during replay")
        report = self._report(state, stopped=True)
        return self._released(state, ReplayPhase.IDLE), [CancelReplayTimer(), ReplayFinished(report)]

    # -- internals ----------------------------------------------------------

    def _dispatch(self, state: ReplayState) -> Result:
        index = state.index
        while index < state.total and state.actions[index].is_breadcrumb:
            index += 1
        if index >= state.total:
            return self._complete(replace(state, index=index))

        action = state.actions[index]
        logger.debug(
            f"Dispatching action {index + 1}/{state.total}: "
            f"{action.type.value} {action.selector or ''}"
        )
        message = Message(
            MessageType.REPLAY_ACTION,
            {"action": action.to_dict(), "index": index},
            state.target_context,
        )
        state = replace(state, index=index + 1, in_flight=True)
        return state, [SendToContext(state.target_context, message)]

    def _complete(self, state: ReplayState) -> Result:
        logger.info(
            f"Replay complete: {state.played} played, {state.skipped} skipped "
            f"of {state.total}"
        )
        report = self._report(state, stopped=False)
        effects: List[object] = [
            CancelReplayTimer(),
            SendToContext(
                state.target_context,
                Message(MessageType.REPLAY_COMPLETE, {"stopped": False}, state.target_context),
            ),
            ReplayFinished(report),
        ]
        return self._released(state, ReplayPhase.COMPLETE), effects

    def _released(self, state: ReplayState, phase: ReplayPhase) -> ReplayState:
        return ReplayState(
            phase=phase,
            name=state.name,
            generation=state.generation + 1,
            played=state.played,
            skipped=state.skipped,
            speed=state.speed,
        )

    @staticmethod
    def _report(state: ReplayState, stopped: bool) -> ReplayReport:
        return ReplayReport(
            name=state.name,
            total=state.total,
            played=state.played,
            skipped=state.skipped,
            stopped=stopped,
        )

    @staticmethod
    def _expecting_result(state: ReplayState, context_id: Optional[str]) -> bool:
        if state.phase != ReplayPhase.PLAYING or not state.in_flight:
            return False
        return context_id is None or context_id == state.target_context

    @staticmethod
    def _next_executable(actions: Sequence[Action], index: int) -> Optional[Action]:
        for action in actions[index:]:
            if not action.is_breadcrumb:
                return action
        return None
