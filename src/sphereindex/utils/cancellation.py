"""
One-shot cooperative cancellation.

A :class:`StopTrigger` owns the signal and hands out a :class:`StopToken`
to the code doing the work. The signal starts "not stopped", can be
stopped exactly once and never reverts. Any number of threads may wait on
the token; all are released when the trigger fires.

Example:
    >>> trigger = StopTrigger()
    >>> token = trigger.token
    >>> worker = threading.Thread(target=index_builder, args=(token,))
    >>> trigger.stop()
"""

import logging
import threading
from typing import Optional

from sphereindex.exceptions import SphereIndexError

__all__ = [
    "OperationStopped",
    "StopTrigger",
    "StopToken",
]

logger = logging.getLogger(__name__)


class OperationStopped(SphereIndexError):
    """Raised by :meth:`StopToken.raise_if_stopped` once the trigger has fired."""

    def __init__(self, message: str = "Operation cancelled because a StopToken was triggered."):
        super().__init__(message)


class StopTrigger:
    """Source of a one-shot stop signal."""

    def __init__(self):
        self._event = threading.Event()
        self._token = StopToken(self._event)

    @property
    def token(self) -> "StopToken":
        """The token tied to this trigger (the same instance every time)."""
        return self._token

    @property
    def is_stopped(self) -> bool:
        return self._event.is_set()

    def stop(self) -> None:
        """Fire the signal. Calling again has no further effect."""
        if not self._event.is_set():
            logger.debug("Stop signal triggered")
        self._event.set()


class StopToken:
    """
    Read-only view of a stop signal.

    Tokens are obtained from :attr:`StopTrigger.token`; a token created
    directly is never stopped.
    """

    __slots__ = ("_event",)

    def __init__(self, event: Optional[threading.Event] = None):
        self._event = event if event is not None else threading.Event()

    @classmethod
    def never(cls) -> "StopToken":
        """A token that is never stopped."""
        return cls()

    @property
    def is_stopped(self) -> bool:
        """Poll the signal without blocking."""
        return self._event.is_set()

    def wait(self, timeout: Optional[float] = None) -> bool:
        """
        Block until the signal fires.

        Args:
            timeout: Maximum time to wait in seconds (None waits forever)

        Returns:
            True if the signal fired, False on timeout
        """
        return self._event.wait(timeout)

    def raise_if_stopped(self) -> None:
        """Raise :class:`OperationStopped` if the signal has fired."""
        if self._event.is_set():
            raise OperationStopped()
