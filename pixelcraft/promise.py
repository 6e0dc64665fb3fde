"""Progress reporting, cancellation and result delivery for background work."""

from __future__ import annotations

import threading
from concurrent.futures import Future
from typing import Callable, Generic, Optional, TypeVar

T = TypeVar("T")


class Promise(Generic[T]):
    """Carries the progress, cancellation flag and result of one operation."""

    def __init__(self) -> None:
        self._cancelled = threading.Event()
        self._progress = 0
        self._callback: Optional[Callable[[int], None]] = None
        self._future: Future = Future()

    @property
    def progress_value(self) -> int:
        """The last progress value reported."""
        return self._progress

    def set_progress_value(self, value: int) -> None:
        """Record a progress value and pass it to the progress callback."""
        self._progress = value
        callback = self._callback
        if callback is not None:
            callback(value)

    def is_canceled(self) -> bool:
        return self._cancelled.is_set()

    def cancel(self) -> None:
        self._cancelled.set()

    def set_progress_callback(self, callback: Optional[Callable[[int], None]]) -> None:
        self._callback = callback

    def set_result(self, result: T) -> None:
        """Deliver the result; a second call raises InvalidStateError."""
        self._future.set_result(result)

    def future(self) -> Future:
        """The future through which the result is awaited."""
        return self._future