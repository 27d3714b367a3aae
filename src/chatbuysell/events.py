"""
Change notification plumbing shared by the stores.

Handlers are plain callables; subscribing returns a cleanup function.
"""

import logging
import time
from typing import Any, Callable, Optional

logger = logging.getLogger(__name__)

Handler = Callable[..., None]


class Observable:
    def __init__(self) -> None:
        self._handlers: list[Handler] = []

    def subscribe(self, handler: Handler) -> Callable[[], None]:
        """Add a change handler. Returns a cleanup function."""
        self._handlers.append(handler)

        def remove() -> None:
            try:
                self._handlers.remove(handler)
            except ValueError:
                pass
        return remove

    def _emit(self, *args: Any) -> None:
        for handler in list(self._handlers):
            handler(*args)


class Notification:
    __slots__ = ("level", "message", "error", "created_at")

    def __init__(self, level: str, message: str, error: Optional[BaseException] = None):
        self.level = level
        self.message = message
        self.error = error
        self.created_at = time.time()

    def __repr__(self) -> str:
        return f"Notification(level={self.level!r}, message={self.message!r})"


class Notifier(Observable):
    """Collects non-blocking user-facing notifications (toasts)."""

    def __init__(self) -> None:
        super().__init__()
        self._pending: list[Notification] = []

    @property
    def pending(self) -> list[Notification]:
        return list(self._pending)

    def error(self, message: str, error: Optional[BaseException] = None) -> Notification:
        return self._push(Notification("error", message, error))

    def info(self, message: str) -> Notification:
        return self._push(Notification("info", message))

    def drain(self) -> list[Notification]:
        """Return and clear pending notifications."""
        items, self._pending = self._pending, []
        return items

    def _push(self, note: Notification) -> Notification:
        if note.level == "error":
            logger.error("%s%s", note.message, f": {note.error}" if note.error else "")
        self._pending.append(note)
        self._emit(note)
        return note
