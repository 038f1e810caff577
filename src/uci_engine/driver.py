"""Session layer on top of :class:`~uci_engine.process.EngineProcess`.

The driver starts the engine, copies its stdout line by line onto a
:class:`~uci_engine.channel.LineChannel` from a background thread, and
exposes a small command surface::

    driver = EngineDriver("/usr/bin/stockfish")
    driver.run()
    driver.set_option("multipv", 3)
    for line in driver.lines():
        if line == "uciok":
            break
    driver.close()

UCI replies are passed through verbatim; parsing them is left to callers.
"""

from __future__ import annotations

import errno
import logging
import queue
import threading
from typing import Any, Iterator, Optional

from .channel import LineChannel
from .errors import ReadError, SpawnError, WriteError
from .options import EngineOptions
from .process import EngineProcess

logger = logging.getLogger(__name__)

# How long close() waits for the reader thread after shutting the engine down.
_READER_JOIN_TIMEOUT = 1.0


class EngineDriver:
    """Runs one UCI engine and streams its output lines."""

    def __init__(self, path: str, options: Optional[EngineOptions] = None) -> None:
        self.path = path
        self.process = EngineProcess(path)
        self.cancel_event = threading.Event()
        self.options = options if options is not None else EngineOptions()
        self.output = LineChannel()
        self.errors: "queue.Queue[ReadError]" = queue.Queue()
        self._reader: Optional[threading.Thread] = None

    @property
    def running(self) -> bool:
        return self._reader is not None and self._reader.is_alive()

    def run(self) -> None:
        """Start the engine, send ``uci`` and spawn the reader thread."""
        if self._reader is not None:
            raise SpawnError(f"engine driver for '{self.path}' is already running")

        self.process.start()
        self.send_command("uci")

        self._reader = threading.Thread(
            target=self._read_output,
            name=f"uci-reader-{self.process.pid}",
            daemon=True,
        )
        self._reader.start()

    def send_command(self, command: str, *args: Any) -> None:
        """Format ``command % args`` and write it to the engine.

        Delivery is best effort: a failed write is logged, not raised.
        """
        line = command % args if args else command
        logger.debug(">> %s", line)
        try:
            self.process.write(line)
        except WriteError as err:
            logger.debug("Dropped command %r: %s", line, err)

    def set_option(self, name: str, value: Any) -> None:
        """Update a recognised option.

        ``depth`` only changes the local record. ``multipv`` is also pushed
        to the engine as ``setoption name MultiPV value <n>``.

        Raises:
            OptionError: unknown name, non-integer value or ``multipv``
                outside [1, 256]. Nothing is changed or sent in that case.
        """
        self.options = self.options.with_option(name, value)
        if name == "multipv":
            self.send_command("setoption name MultiPV value %d", self.options.multipv)

    def recv(self, timeout: Optional[float] = None) -> str:
        """Receive the next engine line (see :meth:`LineChannel.recv`)."""
        return self.output.recv(timeout)

    def lines(self) -> Iterator[str]:
        """Iterate over engine lines until the reader stops."""
        return iter(self.output)

    def cancel(self) -> None:
        """Stop the reader. Lines not yet received are dropped."""
        self.cancel_event.set()
        self.output.wake()

    def close(self) -> None:
        """Cancel the reader and shut the engine down.

        Propagates :class:`~uci_engine.errors.ShutdownError` from
        :meth:`EngineProcess.close`.
        """
        self.cancel()
        try:
            self.process.close()
        finally:
            if self._reader is not None and self._reader is not threading.current_thread():
                self._reader.join(_READER_JOIN_TIMEOUT)

    def __enter__(self) -> "EngineDriver":
        self.run()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()

    def _read_output(self) -> None:
        stream = self.process.stdout
        try:
            for raw in iter(stream.readline, b""):
                line = raw.decode("utf-8", errors="replace").rstrip("\r\n")
                logger.debug("<< %s", line)
                if not self.output.send(line, self.cancel_event):
                    return
        except ValueError:
            # stdout was closed by EngineProcess.close()
            return
        except OSError as err:
            if err.errno == errno.EBADF:
                return
            error = ReadError(
                f"UCI engine communication failure reading from '{self.path}': {err}"
            )
            error.__cause__ = err
            logger.error("%s", error)
            self.errors.put(error)
        finally:
            self.output.close()
