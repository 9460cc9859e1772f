"""
Capability interface shared by the local and remote data stores.

Documents are JSON-compatible dicts addressed by ``namespace`` + ``key``.
Writes report success as a boolean; callers decide what a failed write means.
Listeners registered with :meth:`DataStore.subscribe` are called in-process
after every successful write with ``(namespace, key, value)`` where ``value``
is ``None`` for removals.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from collections import defaultdict
from typing import Any, Callable

logger = logging.getLogger(__name__)

Listener = Callable[[str, str | None, dict[str, Any] | None], None]


class DataStore(ABC):
    def __init__(self) -> None:
        self._listeners: dict[str, list[Listener]] = defaultdict(list)

    @abstractmethod
    def get(self, namespace: str, key: str) -> dict[str, Any] | None: ...

    @abstractmethod
    def list(self, namespace: str) -> list[dict[str, Any]]: ...

    @abstractmethod
    def _write(self, namespace: str, key: str, value: dict[str, Any]) -> bool: ...

    @abstractmethod
    def _delete(self, namespace: str, key: str) -> bool: ...

    @abstractmethod
    def _delete_all(self, namespace: str) -> bool: ...

    def set(self, namespace: str, key: str, value: dict[str, Any]) -> bool:
        ok = self._write(namespace, key, value)
        if ok:
            self._emit(namespace, key, value)
        return ok

    def remove(self, namespace: str, key: str) -> bool:
        ok = self._delete(namespace, key)
        if ok:
            self._emit(namespace, key, None)
        return ok

    def clear(self, namespace: str) -> bool:
        ok = self._delete_all(namespace)
        if ok:
            self._emit(namespace, None, None)
        return ok

    def ping(self) -> bool:
        """Whether the backing store answers right now."""
        return True

    def subscribe(self, namespace: str, callback: Listener) -> Callable[[], None]:
        self._listeners[namespace].append(callback)

        def unsubscribe() -> None:
            if callback in self._listeners[namespace]:
                self._listeners[namespace].remove(callback)

        return unsubscribe

    def _emit(self, namespace: str, key: str | None, value: dict[str, Any] | None) -> None:
        for callback in list(self._listeners.get(namespace, [])):
            try:
                callback(namespace, key, value)
            except Exception:
                # Listener failures never fail a committed write.
                logger.exception("Store listener failed for %s/%s", namespace, key)
