"""Synchronous hand-off channel for engine output lines.

A :class:`LineChannel` has no buffer: :meth:`LineChannel.send` returns only
once a receiver has taken the line, so a slow consumer throttles the reader
thread and, through the pipe buffer, the engine itself.
"""

from __future__ import annotations

import queue
import threading
import time
from typing import Iterator, Optional

# Upper bound on how long a blocked sender goes without re-checking its
# cancellation event when nobody calls :meth:`LineChannel.wake`.
_POLL_INTERVAL = 0.1


class ChannelClosed(Exception):
    """Raised by :meth:`LineChannel.recv` once the channel is closed and empty."""


class LineChannel:
    """Zero-capacity rendezvous channel of ``str`` values."""

    def __init__(self) -> None:
        self._cond = threading.Condition()
        self._item: Optional[str] = None
        self._pending = False
        self._sent = 0
        self._taken = 0
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    def send(self, line: str, cancel: Optional[threading.Event] = None) -> bool:
        """Hand *line* to a receiver.

        Blocks until a receiver takes the line (returns ``True``) or until
        *cancel* is set or the channel is closed (returns ``False``). A line
        that was offered but not taken when cancellation arrives is dropped.
        """
        with self._cond:
            while self._pending and not self._stopped(cancel):
                self._cond.wait(_POLL_INTERVAL)
            if self._stopped(cancel):
                return False

            self._item = line
            self._pending = True
            self._sent += 1
            ticket = self._sent
            self._cond.notify_all()

            while self._taken < ticket:
                if self._stopped(cancel):
                    self._item = None
                    self._pending = False
                    self._sent -= 1
                    self._cond.notify_all()
                    return False
                self._cond.wait(_POLL_INTERVAL)
            return True

    def recv(self, timeout: Optional[float] = None) -> str:
        """Take the next line.

        Raises :class:`queue.Empty` when *timeout* expires first and
        :class:`ChannelClosed` when the channel is closed with nothing pending.
        """
        deadline = None if timeout is None else time.monotonic() + timeout
        with self._cond:
            while not self._pending:
                if self._closed:
                    raise ChannelClosed("line channel is closed")
                if deadline is None:
                    self._cond.wait()
                    continue
                remaining = deadline - time.monotonic()
                if remaining <= 0:
                    raise queue.Empty
                self._cond.wait(remaining)

            line = self._item
            self._item = None
            self._pending = False
            self._taken += 1
            self._cond.notify_all()
            return line

    def __iter__(self) -> Iterator[str]:
        while True:
            try:
                yield self.recv()
            except ChannelClosed:
                return

    def close(self) -> None:
        """Mark the channel closed; blocked receivers wake up and stop."""
        with self._cond:
            self._closed = True
            self._cond.notify_all()

    def wake(self) -> None:
        """Wake blocked senders so they re-check their cancellation event."""
        with self._cond:
            self._cond.notify_all()

    def _stopped(self, cancel: Optional[threading.Event]) -> bool:
        return self._closed or (cancel is not None and cancel.is_set())
