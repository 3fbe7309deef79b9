from __future__ import annotations

import copy
import json
import threading
import uuid
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from pathlib import Path
from typing import Any, TypeVar

_T = TypeVar("_T")


def write_bytes_atomic(path: Path, payload: bytes) -> None:
    """Write `payload` to a hidden sibling file, then rename it over `path`.

    Readers observe either the previous content or the new content. On failure
    the temporary file is removed and the target is left untouched.
    """
    temp_path = path.with_name(f".{path.name}.{uuid.uuid4().hex}.tmp")
    try:
        temp_path.write_bytes(payload)
        temp_path.replace(path)
    except BaseException:
        temp_path.unlink(missing_ok=True)
        raise


def write_text_atomic(path: Path, text: str) -> None:
    """Atomically write UTF-8 text to `path`."""
    write_bytes_atomic(path, text.encode("utf-8"))


class JsonStore:
    """JSON document persistence with atomic writes and per-path locking."""

    _locks: dict[Path, threading.RLock] = {}
    _locks_guard = threading.Lock()

    def read(
        self,
        path: Path,
        *,
        default_factory: Callable[[], Any] | None = None,
    ) -> Any:
        """Read a JSON document, falling back to `default_factory` when absent."""
        with self._lock(path):
            return self._load(path, default_factory)

    def write(self, path: Path, data: Any) -> None:
        """Serialize and atomically write a JSON document."""
        path.parent.mkdir(parents=True, exist_ok=True)
        with self._lock(path):
            write_text_atomic(path, self._serialize(data))

    def update(
        self,
        path: Path,
        updater: Callable[[Any], _T],
        *,
        default_factory: Callable[[], Any] | None = None,
    ) -> _T:
        """Read, transform, and rewrite a document under a single lock."""
        path.parent.mkdir(parents=True, exist_ok=True)
        with self._lock(path):
            current = self._load(path, default_factory)
            updated = updater(current)
            write_text_atomic(path, self._serialize(updated))
        return updated

    def _load(self, path: Path, default_factory: Callable[[], Any] | None) -> Any:
        if not path.exists():
            if default_factory is None:
                raise FileNotFoundError(path)
            return copy.deepcopy(default_factory())
        with path.open("r", encoding="utf-8") as handle:
            return json.load(handle)

    def _serialize(self, data: Any) -> str:
        return f"{json.dumps(data, indent=2, ensure_ascii=False)}\n"

    @classmethod
    @contextmanager
    def _lock(cls, path: Path) -> Iterator[None]:
        key = path.resolve()
        with cls._locks_guard:
            lock = cls._locks.setdefault(key, threading.RLock())
        with lock:
            yield
