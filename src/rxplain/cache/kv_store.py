# ============================================================================
# src/rxplain/cache/kv_store.py
# ============================================================================
"""
Key-value stores behind the report cache.

Both stores hold string keys and string values, mirroring browser local
storage: callers serialize before writing.
"""

import threading
from pathlib import Path
from typing import Dict, List, Optional, Protocol, runtime_checkable
import logging

from ..utils.exceptions import StoreError
from ..utils.file_utils import read_json, write_json

logger = logging.getLogger(__name__)


@runtime_checkable
class KeyValueStore(Protocol):

    def get(self, key: str) -> Optional[str]:
        ...

    def set(self, key: str, value: str) -> None:
        ...

    def delete(self, key: str) -> None:
        ...

    def keys(self) -> List[str]:
        ...


class InMemoryKeyValueStore:
    """Dictionary-backed store."""

    def __init__(self, initial: Optional[Dict[str, str]] = None):
        self._data: Dict[str, str] = dict(initial or {})
        self._lock = threading.RLock()

    def get(self, key: str) -> Optional[str]:
        with self._lock:
            return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        with self._lock:
            self._data[key] = value

    def delete(self, key: str) -> None:
        with self._lock:
            self._data.pop(key, None)

    def keys(self) -> List[str]:
        with self._lock:
            return list(self._data.keys())

    def __len__(self) -> int:
        return len(self._data)


class JsonFileKeyValueStore(InMemoryKeyValueStore):
    """
    Store persisted to a single JSON file.

    The whole map is rewritten on every mutation. A corrupt or unreadable
    file is treated as empty and overwritten on the next write.
    """

    def __init__(self, path: Path):
        self.path = Path(path)
        super().__init__(self._load())

    def _load(self) -> Dict[str, str]:
        if not self.path.exists():
            return {}
        try:
            data = read_json(self.path)
        except (OSError, ValueError) as e:
            logger.warning(f"Ignoring unreadable key-value file {self.path}: {e}")
            return {}
        if not isinstance(data, dict):
            logger.warning(f"Ignoring key-value file {self.path}: not a JSON object")
            return {}
        return {str(k): v for k, v in data.items() if isinstance(v, str)}

    def _persist(self) -> None:
        try:
            write_json(self._data, self.path)
        except OSError as e:
            raise StoreError(f"Failed to write key-value file {self.path}: {e}") from e

    def set(self, key: str, value: str) -> None:
        with self._lock:
            super().set(key, value)
            self._persist()

    def delete(self, key: str) -> None:
        with self._lock:
            if key in self._data:
                super().delete(key)
                self._persist()
