"""
Macro data model - Actions and the named macros that hold them.
"""

import json
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional

from web_macro.exceptions import StorageError

# Bumped whenever the persisted Action shape changes incompatibly
MACRO_SCHEMA_VERSION = 1


class ActionType(str, Enum):
    """Types of recordable actions."""
    CLICK = "click"
    FILL = "fill"
    SELECT = "select"
    NAVIGATE = "navigate"


@dataclass
class Action:
    """
    One recorded, replayable step.
    
    Attributes:
        type: Kind of interaction
        selector: Primary selector (None for navigate breadcrumbs)
        selector_alts: Up to four fallback selectors, most specific first
        text: Trimmed visible or label text, used as a last-resort match key
        value: Entered text or selected option value (fill/select only)
        tag: Lower-case tag name of the target
        input_type: HTML input subtype for <input> targets
        checked: Target toggle state for checkbox/radio clicks
        placeholder: Placeholder attribute of the target, if any
        url: Page URL when the action was captured
        timestamp: Capture time in epoch milliseconds
    """
    type: ActionType
    selector: Optional[str] = None
    selector_alts: List[str] = field(default_factory=list)
    text: Optional[str] = None
    value: Optional[str] = None
    tag: Optional[str] = None
    input_type: Optional[str] = None
    checked: Optional[bool] = None
    placeholder: Optional[str] = None
    url: Optional[str] = None
    timestamp: Optional[int] = None
    
    @property
    def is_breadcrumb(self) -> bool:
        """Navigate actions are informational and never executed."""
        return self.type == ActionType.NAVIGATE
    
    @property
    def selectors(self) -> List[str]:
        """Primary selector followed by the alternates, without blanks."""
        candidates = [self.selector, *self.selector_alts]
        return [s for s in candidates if s]
    
    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary, omitting unset fields."""
        result: Dict[str, Any] = {"type": self.type.value}
        if self.selector is not None:
            result["selector"] = self.selector
        if self.selector_alts:
            result["selector_alts"] = list(self.selector_alts)
        for key in ("text", "value", "tag", "input_type", "checked", "placeholder", "url", "timestamp"):
            value = getattr(self, key)
            if value is not None:
                result[key] = value
        return result
    
    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Action":
        """Create from dictionary."""
        return cls(
            type=ActionType(data["type"]),
            selector=data.get("selector"),
            selector_alts=list(data.get("selector_alts") or []),
            text=data.get("text"),
            value=data.get("value"),
            tag=data.get("tag"),
            input_type=data.get("input_type"),
            checked=data.get("checked"),
            placeholder=data.get("placeholder"),
            url=data.get("url"),
            timestamp=data.get("timestamp"),
        )


@dataclass
class Macro:
    """
    A named, persisted action list.
    
    Macros are immutable once saved; saving again under the same name
    overwrites the whole entry.
    """
    name: str
    actions: List[Action] = field(default_factory=list)
    saved_at: int = field(default_factory=lambda: int(time.time() * 1000))
    schema_version: int = MACRO_SCHEMA_VERSION
    
    @property
    def count(self) -> int:
        return len(self.actions)
    
    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "name": self.name,
            "actions": [a.to_dict() for a in self.actions],
            "saved_at": self.saved_at,
            "count": self.count,
            "schema_version": self.schema_version,
        }
    
    def to_json(self, indent: int = 2) -> str:
        """Convert to JSON string."""
        return json.dumps(self.to_dict(), indent=indent)
    
    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Macro":
        """
        Create from dictionary.
        
        Raises:
            StorageError: If the macro was written by a newer schema
        """
        version = data.get("schema_version", 1)
        if version > MACRO_SCHEMA_VERSION:
            raise StorageError(
                f"Macro '{data.get('name')}' uses schema version {version}, "
                f"newer than supported version {MACRO_SCHEMA_VERSION}"
            )
        return cls(
            name=data["name"],
            actions=[Action.from_dict(a) for a in data.get("actions", [])],
            saved_at=data.get("saved_at", 0),
            schema_version=version,
        )
    
    @classmethod
    def from_json(cls, json_str: str) -> "Macro":
        """Create from JSON string."""
        return cls.from_dict(json.loads(json_str))
