"""
Session transitions - (state, message) -> (state, response, effects).

The reducer is pure: it reads nothing but its arguments and returns the
effects the controller must perform. Storage lookups (macro by name) are
resolved by the controller before a message reaches it.
"""

import logging
from dataclasses import dataclass, field, replace
from typing import Any, Callable, Dict, List, Optional

from web_macro.effects import (
    BroadcastToActive,
    DeleteMacro,
    PersistRecording,
    SaveMacro,
    SendToContext,
)
from web_macro.exceptions import ReplayError
from web_macro.messaging.messages import Message, MessageType
from web_macro.recorder.models import Action, ActionType, Macro
from web_macro.replay.engine import ReplayEngine
from web_macro.session.state import SessionState

logger = logging.getLogger(__name__)

OK = {"ok": True}


@dataclass
class Transition:
    """Result of reducing one message."""
    state: SessionState
    response: Dict[str, Any] = field(default_factory=lambda: dict(OK))
    effects: List[object] = field(default_factory=list)


def failed(state: SessionState, error: str) -> Transition:
    return Transition(state, {"ok": False, "error": error})


def append_action(actions: tuple, action: Action) -> tuple:
    """
    Append action, collapsing consecutive fills of the same field.

    A fill directly following a fill with the same selector replaces it,
    so the macro keeps only the final value typed into a field.
    """
    if actions:
        last = actions[-1]
        if (
            action.type == ActionType.FILL
            and last.type == ActionType.FILL
            and last.selector == action.selector
        ):
            return actions[:-1] + (action,)
    return actions + (action,)


class SessionReducer:
    """
    Pure state machine for the controller.

    Example:
        >>> reducer = SessionReducer(ReplayEngine())
        >>> t = reducer(SessionState(), Message(MessageType.START_RECORDING))
        >>> t.state.is_recording
        True
    """

    def __init__(self, replay_engine: Optional[ReplayEngine] = None):
        self._replay = replay_engine or ReplayEngine()
        self._handlers: Dict[MessageType, Callable[[SessionState, Message], Transition]] = {
            MessageType.GET_STATE: self._get_state,
            MessageType.START_RECORDING: self._start_recording,
            MessageType.STOP_RECORDING: self._stop_recording,
            MessageType.RECORD_ACTION: self._record_action,
            MessageType.SAVE_MACRO: self._save_macro,
            MessageType.DELETE_MACRO: self._delete_macro,
            MessageType.START_REPLAY: self._start_replay,
            MessageType.STOP_REPLAY: self._stop_replay,
            MessageType.REPLAY_STATUS: self._replay_status,
            MessageType.ACTION_DONE: self._action_done,
            MessageType.ACTION_NAVIGATED: self._action_navigated,
            MessageType.PAGE_LOADED: self._page_loaded,
            MessageType.CONTEXT_CLOSED: self._context_closed,
            MessageType.REPLAY_TICK: self._replay_tick,
        }

    def __call__(self, state: SessionState, message: Message) -> Transition:
        handler = self._handlers.get(message.type)
        if handler is None:
            return failed(state, f"Unknown message type: {message.type}")
        return handler(state, message)

    # -- recording ----------------------------------------------------------

    def _get_state(self, state: SessionState, message: Message) -> Transition:
        return Transition(state, state.summary())

    def _start_recording(self, state: SessionState, message: Message) -> Transition:
        if state.is_replaying:
            return failed(state, "Cannot record while a replay is running")

        logger.info("Recording started")
        state = replace(state, is_recording=True, current_macro=())
        return Transition(
            state,
            effects=[
                PersistRecording(),
                BroadcastToActive(Message(MessageType.START_RECORDING)),
            ],
        )

    def _stop_recording(self, state: SessionState, message: Message) -> Transition:
        state = replace(state, is_recording=False)
        logger.info(f"Recording stopped with {len(state.current_macro)} actions")
        return Transition(
            state,
            {
                "ok": True,
                "macro": [a.to_dict() for a in state.current_macro],
                "count": len(state.current_macro),
            },
            [
                PersistRecording(),
                BroadcastToActive(Message(MessageType.STOP_RECORDING)),
            ],
        )

    def _record_action(self, state: SessionState, message: Message) -> Transition:
        if not state.is_recording:
            logger.debug("Ignoring action recorded while not recording")
            return Transition(state, {"ok": True, "total": len(state.current_macro)})

        try:
            action = Action.from_dict(message.get("action") or {})
        except (KeyError, ValueError, TypeError) as e:
            return failed(state, f"Malformed action: {e}")

        state = replace(state, current_macro=append_action(state.current_macro, action))
        logger.info(f"Recorded #{len(state.current_macro)}: {action.type.value} {action.selector or action.url or ''}")
        return Transition(
            state,
            {"ok": True, "total": len(state.current_macro)},
            [PersistRecording()],
        )

    # -- library ------------------------------------------------------------

    def _save_macro(self, state: SessionState, message: Message) -> Transition:
        name = message.get("name")
        if not isinstance(name, str) or not name.strip():
            return failed(state, "Macro name is required")

        raw = message.get("macro")
        try:
            actions = (
                [Action.from_dict(a) for a in raw]
                if raw is not None
                else list(state.current_macro)
            )
        except (KeyError, ValueError, TypeError) as e:
            return failed(state, f"Malformed macro: {e}")

        macro = Macro(name=name.strip(), actions=actions)
        return Transition(state, {"ok": True, "count": macro.count}, [SaveMacro(macro)])

    def _delete_macro(self, state: SessionState, message: Message) -> Transition:
        name = message.get("name")
        if not name:
            return failed(state, "Macro name is required")
        return Transition(state, effects=[DeleteMacro(name)])

    # -- replay -------------------------------------------------------------

    def _start_replay(self, state: SessionState, message: Message) -> Transition:
        if state.is_recording:
            return failed(state, "Cannot replay while recording")

        raw = message.get("macro")
        if raw is None:
            return failed(state, "Macro not found")
        try:
            actions = [Action.from_dict(a) for a in raw]
        except (KeyError, ValueError, TypeError) as e:
            return failed(state, f"Malformed macro: {e}")

        target = message.get("target_context") or message.context_id
        try:
            replay, effects = self._replay.start(
                state.replay,
                actions,
                target,
                speed=message.get("speed"),
                name=message.get("name"),
            )
        except ReplayError as e:
            return failed(state, str(e))
        return Transition(replace(state, replay=replay), effects=effects)

    def _stop_replay(self, state: SessionState, message: Message) -> Transition:
        return self._replaying(state, *self._replay.stop(state.replay))

    def _replay_status(self, state: SessionState, message: Message) -> Transition:
        return Transition(state, {"ok": True, **state.replay.status()})

    def _action_done(self, state: SessionState, message: Message) -> Transition:
        result = self._replay.on_action_done(
            state.replay,
            found=bool(message.get("found", True)),
            context_id=message.context_id,
        )
        return self._replaying(state, *result)

    def _action_navigated(self, state: SessionState, message: Message) -> Transition:
        return self._replaying(state, *self._replay.on_navigated(state.replay, message.context_id))

    def _replay_tick(self, state: SessionState, message: Message) -> Transition:
        return self._replaying(state, *self._replay.on_tick(state.replay, message.get("token")))

    # -- host events --------------------------------------------------------

    def _page_loaded(self, state: SessionState, message: Message) -> Transition:
        replay, effects = self._replay.on_page_loaded(state.replay, message.context_id)
        transition = self._replaying(state, replay, effects)
        if state.is_recording and message.context_id:
            # Recording continues across navigations
            transition.effects.append(
                SendToContext(
                    message.context_id,
                    Message(MessageType.START_RECORDING, context_id=message.context_id),
                )
            )
        return transition

    def _context_closed(self, state: SessionState, message: Message) -> Transition:
        return self._replaying(
            state, *self._replay.on_context_closed(state.replay, message.context_id)
        )

    @staticmethod
    def _replaying(state: SessionState, replay, effects) -> Transition:
        return Transition(replace(state, replay=replay), effects=list(effects))
