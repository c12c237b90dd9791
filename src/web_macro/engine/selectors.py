"""
Selector Engine - Generate robust CSS selectors for recorded elements.

The in-page script captures an ElementSnapshot of the event target (its
attributes plus a short ancestor chain). Selector generation runs here,
in Python, on that snapshot:

    primary:    #id > [data-testid] > [aria-label] > tag[name] > structural path
    alternates: [placeholder], tag[type][name], tag.class..., structural path

No single selector survives every DOM change (A/B tests, generated class
names, re-renders), so replay gets several independent chances.
"""

import re
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from web_macro.config.settings import SelectorSettings


def css_escape(value: str) -> str:
    """
    Escape a string for use as a CSS identifier (CSS.escape semantics).
    
    Args:
        value: Raw identifier, e.g. an id or class name
        
    Returns:
        Identifier safe to place after '#' or '.'
    """
    result = []
    length = len(value)
    for i, ch in enumerate(value):
        code = ord(ch)
        if code == 0:
            result.append("�")
        elif (
            0x1 <= code <= 0x1F
            or code == 0x7F
            or (i == 0 and "0" <= ch <= "9")
            or (i == 1 and "0" <= ch <= "9" and value[0] == "-")
        ):
            result.append(f"\\{code:x} ")
        elif i == 0 and ch == "-" and length == 1:
            result.append("\\-")
        elif code >= 0x80 or ch in "-_" or ch.isascii() and ch.isalnum():
            result.append(ch)
        else:
            result.append("\\" + ch)
    return "".join(result)


def quote_attr(value: str) -> str:
    """Quote a string as a CSS attribute value."""
    escaped = value.replace("\\", "\\\\").replace('"', '\\"')
    escaped = escaped.replace("\n", "\\a ").replace("\r", "\\d ")
    return f'"{escaped}"'


@dataclass
class PathNode:
    """
    One step on the walk from an element towards the document root.
    
    Attributes:
        tag: Lower-case tag name
        id: id attribute, if any
        id_unique: Whether the id matches exactly one element in the document
        index: 1-based position among same-tag siblings
        same_tag_count: Number of same-tag siblings, including this node
    """
    tag: str
    id: Optional[str] = None
    id_unique: bool = True
    index: int = 1
    same_tag_count: int = 1
    
    @property
    def has_stable_id(self) -> bool:
        return bool(self.id) and self.id_unique
    
    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "PathNode":
        return cls(
            tag=str(data.get("tag", "")).lower(),
            id=data.get("id") or None,
            id_unique=data.get("id_unique", True),
            index=int(data.get("index", 1)),
            same_tag_count=int(data.get("same_tag_count", 1)),
        )


@dataclass
class ElementSnapshot:
    """
    Serializable description of a DOM element captured in the page.
    
    Attributes:
        tag: Lower-case tag name
        attributes: Raw attribute map
        text: Visible text (or label text for form fields)
        value: Current value for form controls
        checked: Current checked state for checkbox/radio
        path: The element itself followed by its ancestors (html excluded)
    """
    tag: str
    attributes: Dict[str, str] = field(default_factory=dict)
    text: str = ""
    value: Optional[str] = None
    checked: Optional[bool] = None
    path: List[PathNode] = field(default_factory=list)
    
    @property
    def id(self) -> Optional[str]:
        return self.attributes.get("id") or None
    
    @property
    def id_unique(self) -> bool:
        return self.path[0].id_unique if self.path else True
    
    @property
    def name(self) -> Optional[str]:
        return self.attributes.get("name") or None
    
    @property
    def input_type(self) -> Optional[str]:
        if self.tag != "input":
            return None
        return (self.attributes.get("type") or "text").lower()
    
    @property
    def placeholder(self) -> Optional[str]:
        return self.attributes.get("placeholder") or None
    
    @property
    def class_list(self) -> List[str]:
        class_attr = self.attributes.get("class", "")
        return class_attr.split() if class_attr else []
    
    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ElementSnapshot":
        """Build from the JSON object posted by the page script."""
        tag = str(data.get("tag", "")).lower()
        path = [PathNode.from_dict(p) for p in data.get("path") or []]
        if not path:
            attrs = data.get("attributes") or {}
            path = [PathNode(tag=tag, id=attrs.get("id") or None)]
        return cls(
            tag=tag,
            attributes={k: str(v) for k, v in (data.get("attributes") or {}).items()},
            text=data.get("text") or "",
            value=data.get("value"),
            checked=data.get("checked"),
            path=path,
        )


@dataclass
class SelectorSet:
    """Primary selector plus ranked alternates for one element."""
    primary: str
    alternates: List[str] = field(default_factory=list)
    
    @property
    def all(self) -> List[str]:
        return [self.primary, *self.alternates]


class SelectorEngine:
    """
    Generate a primary selector and ranked fallbacks for an element.
    
    Example:
        >>> engine = SelectorEngine()
        >>> selectors = engine.selector_for(snapshot)
        >>> selectors.primary
        '#email'
    """
    
    def __init__(self, settings: Optional[SelectorSettings] = None):
        self._settings = settings or SelectorSettings()
        self._volatile_class = re.compile(self._settings.volatile_class_pattern)
    
    def selector_for(self, element: ElementSnapshot) -> SelectorSet:
        """
        Generate selectors for an element.
        
        Args:
            element: Snapshot captured by the page script
            
        Returns:
            SelectorSet with a primary selector and up to max_alternates fallbacks
        """
        primary = self.primary_selector(element)
        return SelectorSet(
            primary=primary,
            alternates=[s for s in self.alternate_selectors(element) if s != primary],
        )
    
    def primary_selector(self, element: ElementSnapshot) -> str:
        """First applicable of id, test-id, aria-label, tag[name], structural path."""
        if element.id and element.id_unique:
            return f"#{css_escape(element.id)}"
        
        test_id = element.attributes.get("data-testid")
        if test_id:
            return f"[data-testid={quote_attr(test_id)}]"
        
        aria_label = element.attributes.get("aria-label")
        if aria_label:
            return f"[aria-label={quote_attr(aria_label)}]"
        
        if element.name:
            return f"{element.tag}[name={quote_attr(element.name)}]"
        
        return self.structural_path(element)
    
    def alternate_selectors(self, element: ElementSnapshot) -> List[str]:
        """Ranked, deduplicated fallbacks; the structural path is always last."""
        alts: List[str] = []
        
        if element.placeholder:
            alts.append(f"[placeholder={quote_attr(element.placeholder)}]")
        
        type_attr = element.attributes.get("type")
        if type_attr and element.name:
            alts.append(
                f"{element.tag}[type={quote_attr(type_attr)}][name={quote_attr(element.name)}]"
            )
        
        class_selector = self.class_selector(element)
        if class_selector:
            alts.append(class_selector)
        
        alts.append(self.structural_path(element))
        
        unique = list(dict.fromkeys(alts))
        limit = self._settings.max_alternates
        if len(unique) > limit:
            # Keep the structural path as the final fallback
            unique = unique[: limit - 1] + [unique[-1]]
        return unique
    
    def class_selector(self, element: ElementSnapshot) -> Optional[str]:
        """tag.cls1.cls2 from non-volatile classes, or None when unsuitable."""
        classes = [c for c in element.class_list if not self._volatile_class.match(c)]
        if not classes or len(classes) > self._settings.max_class_count:
            return None
        return element.tag + "".join(f".{css_escape(c)}" for c in classes)
    
    def structural_path(self, element: ElementSnapshot) -> str:
        """
        Build a tag/nth-of-type path from the element upwards.
        
        The walk stops at the first node with a stable id (anchoring the
        path there) or after max_path_depth segments.
        """
        parts: List[str] = []
        for node in element.path:
            if node.has_stable_id:
                parts.append(f"#{css_escape(node.id)}")
                break
            part = node.tag
            if node.same_tag_count > 1:
                part += f":nth-of-type({node.index})"
            parts.append(part)
            if len(parts) >= self._settings.max_path_depth:
                break
        parts.reverse()
        return " > ".join(parts) if parts else element.tag
