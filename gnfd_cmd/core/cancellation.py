"""
Cancellation scopes for network-bound operations.

A scope is passed explicitly into every operation. Cancelling a scope
cancels all scopes derived from it and runs their registered callbacks,
which is how transports abort in-flight requests.
"""

import threading
from typing import Callable, List, Optional

from loguru import logger

from .errors import OperationCancelled


class CancelScope:
    """Cancellable operation scope, optionally derived from a parent."""

    def __init__(self, parent: Optional["CancelScope"] = None, name: str = "root"):
        self.name = name
        self._parent = parent
        self._event = threading.Event()
        self._lock = threading.RLock()
        self._callbacks: List[Callable[[], None]] = []
        self._children: List["CancelScope"] = []
        self.reason: Optional[str] = None

        if parent is not None:
            parent._adopt(self)

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def child(self, name: str = "") -> "CancelScope":
        """Derive a scope that is cancelled together with this one."""
        return CancelScope(parent=self, name=name or f"{self.name}.child")

    def cancel(self, reason: str = "operation cancelled") -> None:
        """Cancel this scope and every scope derived from it.

        Callbacks run once, in registration order. A failing callback is
        logged and does not stop the others.
        """
        with self._lock:
            if self._event.is_set():
                return
            self.reason = reason
            self._event.set()
            callbacks, self._callbacks = self._callbacks, []
            children = list(self._children)

        logger.debug("Cancelling scope {} ({})", self.name, reason)
        for callback in callbacks:
            try:
                callback()
            except Exception as e:
                logger.warning("Cancel callback failed in scope {}: {}", self.name, e)
        for child in children:
            child.cancel(reason)

    def on_cancel(self, callback: Callable[[], None]) -> None:
        """Register a callback; runs immediately if already cancelled."""
        with self._lock:
            if not self._event.is_set():
                self._callbacks.append(callback)
                return
        callback()

    def raise_if_cancelled(self) -> None:
        if self._event.is_set():
            raise OperationCancelled(self.reason or "operation cancelled")

    def close(self) -> None:
        """Detach from the parent so a finished scope is not kept alive."""
        if self._parent is not None:
            self._parent._release(self)
        with self._lock:
            self._callbacks = []

    def __enter__(self) -> "CancelScope":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def _adopt(self, child: "CancelScope") -> None:
        with self._lock:
            already_cancelled = self._event.is_set()
            if not already_cancelled:
                self._children.append(child)
        if already_cancelled:
            child.cancel(self.reason or "operation cancelled")

    def _release(self, child: "CancelScope") -> None:
        with self._lock:
            if child in self._children:
                self._children.remove(child)
