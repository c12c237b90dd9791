"""
JSON file stores.

The macro file layout is:

    {"schema_version": 1, "macros": {"<name>": {...macro...}}}

Files are written to a temporary sibling and then renamed over the
original, so a crash mid-write never leaves a truncated file.
"""

import json
import logging
import os
from pathlib import Path
from typing import Any, Dict, Optional, Union

from web_macro.exceptions import StorageError
from web_macro.recorder.models import MACRO_SCHEMA_VERSION, Macro
from web_macro.storage.base import MacroStore, RecordingSnapshot, SessionStore

logger = logging.getLogger(__name__)


def _read_json(path: Path) -> Optional[Dict[str, Any]]:
    if not path.exists():
        return None
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as e:
        raise StorageError(f"Could not read {path}: {e}") from e
    if not isinstance(data, dict):
        raise StorageError(f"Unexpected content in {path}: expected an object")
    return data


def _write_json(path: Path, data: Dict[str, Any]) -> None:
    tmp = path.with_name(path.name + ".tmp")
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        tmp.write_text(json.dumps(data, indent=2), encoding="utf-8")
        os.replace(tmp, path)
    except OSError as e:
        raise StorageError(f"Could not write {path}: {e}") from e


class JsonMacroStore(MacroStore):
    """
    Macros persisted in one JSON file.
    
    Example:
        >>> store = JsonMacroStore("macros.json")
        >>> await store.save(Macro(name="login", actions=actions))
        >>> (await store.get("login")).count
        3
    """
    
    def __init__(self, path: Union[str, Path]):
        self._path = Path(path).expanduser()
    
    @property
    def path(self) -> Path:
        return self._path
    
    def _load_raw(self) -> Dict[str, Any]:
        data = _read_json(self._path)
        if data is None:
            return {}
        version = data.get("schema_version", 1)
        if version > MACRO_SCHEMA_VERSION:
            raise StorageError(
                f"{self._path} uses schema version {version}, "
                f"newer than supported version {MACRO_SCHEMA_VERSION}"
            )
        return dict(data.get("macros") or {})
    
    def _store_raw(self, macros: Dict[str, Any]) -> None:
        _write_json(self._path, {"schema_version": MACRO_SCHEMA_VERSION, "macros": macros})
    
    async def save(self, macro: Macro) -> None:
        macros = self._load_raw()
        macros[macro.name] = macro.to_dict()
        self._store_raw(macros)
        logger.debug(f"Wrote macro '{macro.name}' to {self._path}")
    
    async def get(self, name: str) -> Optional[Macro]:
        data = self._load_raw().get(name)
        return Macro.from_dict(data) if data else None
    
    async def delete(self, name: str) -> bool:
        macros = self._load_raw()
        if name not in macros:
            return False
        del macros[name]
        self._store_raw(macros)
        logger.debug(f"Deleted macro '{name}' from {self._path}")
        return True
    
    async def list(self) -> Dict[str, Macro]:
        return {name: Macro.from_dict(data) for name, data in self._load_raw().items()}


class JsonSessionStore(SessionStore):
    """Recording snapshot persisted in a JSON file."""
    
    def __init__(self, path: Union[str, Path]):
        self._path = Path(path).expanduser()
    
    async def load(self) -> RecordingSnapshot:
        data = _read_json(self._path)
        return RecordingSnapshot.from_dict(data) if data else RecordingSnapshot()
    
    async def save(self, snapshot: RecordingSnapshot) -> None:
        _write_json(self._path, snapshot.to_dict())
