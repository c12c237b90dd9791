"""
Action Recorder - Turn raw page events into semantic actions.

The in-page script reports raw click/input/blur/change/unload events with
a snapshot of the target element. The recorder coalesces keystrokes into
one fill per field edit and emits click/select/navigate actions directly.

A recorder belongs to one document: the PageAgent creates a fresh one
after every navigation.
"""

import logging
import time
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from web_macro.config.settings import SelectorSettings
from web_macro.engine.selectors import ElementSnapshot, SelectorEngine
from web_macro.recorder.models import Action, ActionType

logger = logging.getLogger(__name__)

# <input> types whose edits are recorded as fill actions
TEXT_INPUT_TYPES = {
    "text", "email", "password", "search", "tel", "url", "number",
    "date", "datetime-local", "month", "week", "time", "color",
}
TOGGLE_INPUT_TYPES = {"checkbox", "radio"}


@dataclass
class PendingEdit:
    """Latest value typed into a field that has not been flushed yet."""
    element: ElementSnapshot
    value: str
    url: Optional[str]
    timestamp: int


class ActionRecorder:
    """
    Convert raw interaction events into Actions.
    
    Example:
        >>> recorder = ActionRecorder()
        >>> recorder.handle_event({"kind": "input", "element": {...}, "value": "a"})
        []
        >>> recorder.handle_event({"kind": "blur", "element": {...}})
        [Action(type=<ActionType.FILL: 'fill'>, ...)]
    """
    
    def __init__(
        self,
        selector_engine: Optional[SelectorEngine] = None,
        settings: Optional[SelectorSettings] = None,
    ):
        self._settings = settings or SelectorSettings()
        self._selectors = selector_engine or SelectorEngine(self._settings)
        self._pending: Dict[str, PendingEdit] = {}
        self._last_timestamp = 0
        self._is_recording = False
    
    @property
    def is_recording(self) -> bool:
        return self._is_recording
    
    @property
    def has_pending_edits(self) -> bool:
        return bool(self._pending)
    
    def start(self) -> None:
        """Start accepting events."""
        self._is_recording = True
    
    def stop(self) -> List[Action]:
        """
        Stop accepting events.
        
        Returns:
            Fill actions for edits still pending at stop time
        """
        flushed = self.flush()
        self._is_recording = False
        return flushed
    
    def handle_event(self, event: Dict[str, Any]) -> List[Action]:
        """
        Process one raw event from the page.
        
        Args:
            event: Event object posted by the page script
            
        Returns:
            Actions completed by this event, in order (often empty)
        """
        if not self._is_recording:
            return []
        
        kind = event.get("kind")
        element_data = event.get("element")
        element = ElementSnapshot.from_dict(element_data) if element_data else None
        url = event.get("url")
        timestamp = self._timestamp(event.get("timestamp"))
        
        if kind == "click" and element:
            return self._on_click(element, url, timestamp)
        if kind == "input" and element:
            self._on_input(element, event.get("value"), url, timestamp)
            return []
        if kind == "blur" and element:
            return self._flush_selector(self._selectors.primary_selector(element))
        if kind == "change" and element:
            return self._on_change(element, event.get("value"), url, timestamp)
        if kind == "unload":
            actions = self.flush()
            actions.append(Action(
                type=ActionType.NAVIGATE,
                url=url,
                timestamp=self._monotonic(timestamp),
            ))
            return actions
        
        logger.debug(f"Ignoring page event: {kind}")
        return []
    
    def flush(self) -> List[Action]:
        """Emit every pending edit as a fill action."""
        actions = []
        for selector in list(self._pending):
            actions.extend(self._flush_selector(selector))
        return actions
    
    def _on_click(self, element: ElementSnapshot, url: Optional[str], timestamp: int) -> List[Action]:
        actions = self.flush()
        
        selectors = self._selectors.selector_for(element)
        checked = element.checked if element.input_type in TOGGLE_INPUT_TYPES else None
        actions.append(Action(
            type=ActionType.CLICK,
            selector=selectors.primary,
            selector_alts=selectors.alternates,
            text=self._text(element),
            tag=element.tag,
            input_type=element.input_type,
            checked=checked,
            placeholder=element.placeholder,
            url=url,
            timestamp=self._monotonic(timestamp),
        ))
        return actions
    
    def _on_input(self, element: ElementSnapshot, value: Any, url: Optional[str], timestamp: int) -> None:
        if not self._is_text_field(element):
            return
        selector = self._selectors.primary_selector(element)
        self._pending[selector] = PendingEdit(
            element=element,
            value=self._value(value, element),
            url=url,
            timestamp=timestamp,
        )
    
    def _on_change(self, element: ElementSnapshot, value: Any, url: Optional[str], timestamp: int) -> List[Action]:
        if element.tag == "select":
            selectors = self._selectors.selector_for(element)
            return [Action(
                type=ActionType.SELECT,
                selector=selectors.primary,
                selector_alts=selectors.alternates,
                text=self._text(element),
                value=self._value(value, element),
                tag=element.tag,
                url=url,
                timestamp=self._monotonic(timestamp),
            )]
        
        if self._is_text_field(element):
            # Covers widgets that set the value without firing input events
            self._on_input(element, value, url, timestamp)
            return self._flush_selector(self._selectors.primary_selector(element))
        
        return []
    
    def _flush_selector(self, selector: str) -> List[Action]:
        pending = self._pending.pop(selector, None)
        if pending is None:
            return []
        
        element = pending.element
        selectors = self._selectors.selector_for(element)
        return [Action(
            type=ActionType.FILL,
            selector=selectors.primary,
            selector_alts=selectors.alternates,
            text=self._text(element),
            value=pending.value,
            tag=element.tag,
            input_type=element.input_type,
            placeholder=element.placeholder,
            url=pending.url,
            timestamp=self._monotonic(pending.timestamp),
        )]
    
    def _is_text_field(self, element: ElementSnapshot) -> bool:
        if element.tag == "textarea":
            return True
        return element.tag == "input" and element.input_type in TEXT_INPUT_TYPES
    
    def _text(self, element: ElementSnapshot) -> Optional[str]:
        text = element.text.strip()[: self._settings.text_max_length]
        return text or None
    
    def _value(self, value: Any, element: ElementSnapshot) -> str:
        if value is None:
            value = element.value
        return "" if value is None else str(value)
    
    def _timestamp(self, value: Any) -> int:
        if isinstance(value, (int, float)):
            return int(value)
        return int(time.time() * 1000)
    
    def _monotonic(self, timestamp: int) -> int:
        self._last_timestamp = max(self._last_timestamp, timestamp)
        return self._last_timestamp
