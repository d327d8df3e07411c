"""
Time source and cancellable sleep shared by every suspension point of a run.
"""
import threading
import time
import typing as t

from .errors import DeadlineExceededError, RunCancelledError


class SystemClock:
    """
    Monotonic clock whose sleep can be interrupted from another thread.

    Usage:
        clock = SystemClock()
        # on caller disconnect / Ctrl-C, from any thread:
        clock.cancel()
    """

    def __init__(self) -> None:
        self._cancel_event = threading.Event()

    def now(self) -> float:
        return time.monotonic()

    def sleep(self, seconds: float) -> None:
        """
        Suspend for `seconds`, raising RunCancelledError as soon as the
        clock is cancelled.
        """
        if self._cancel_event.wait(timeout=max(0.0, seconds)):
            raise RunCancelledError("Run cancelled by caller")

    def cancel(self) -> None:
        self._cancel_event.set()

    @property
    def cancelled(self) -> bool:
        return self._cancel_event.is_set()

    def raise_if_cancelled(self) -> None:
        if self._cancel_event.is_set():
            raise RunCancelledError("Run cancelled by caller")


def check_deadline(clock: t.Any, deadline: t.Optional[float], what: str) -> None:
    """Raise DeadlineExceededError if `deadline` (a clock instant) has passed."""
    if deadline is not None and clock.now() >= deadline:
        raise DeadlineExceededError(f"{what} not observed before deadline")
