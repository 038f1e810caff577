"""Child-process handle for a UCI engine.

:class:`EngineProcess` owns the engine's three standard streams from the
moment it is constructed. The pipes are plain ``os.pipe()`` pairs; the child
ends are handed to :class:`subprocess.Popen` at :meth:`EngineProcess.start`
and closed in the parent right after the spawn, so the parent only ever holds
its own side.

Shutdown is cooperative first (``quit``) and forced after
:data:`QUIT_TIMEOUT` seconds.
"""

from __future__ import annotations

import logging
import os
import queue
import stat
import subprocess
import threading
from typing import BinaryIO, List, Optional, Tuple

from .errors import (
    AccessDeniedError,
    ConfigError,
    EngineNotFoundError,
    ForceKilledError,
    NotAFileError,
    PipeCreateError,
    ShutdownError,
    SpawnError,
    WriteError,
)

logger = logging.getLogger(__name__)

QUIT_TIMEOUT = 3.0

_PIPE_NAMES = ("stdin", "stdout", "stderr")


class EngineProcess:
    """Owns one engine child process and its stdin/stdout/stderr pipes."""

    def __init__(self, path: str) -> None:
        if not path:
            raise ConfigError("cannot create engine process: engine path is empty")
        path = os.fspath(path)
        _check_engine_path(path)

        self._path = path
        self._args = [path]
        self._popen: Optional[subprocess.Popen] = None

        self._lock = threading.Lock()
        self._closed = False
        self._close_done = threading.Event()
        self._close_error: Optional[ShutdownError] = None

        (in_r, in_w), (out_r, out_w), (err_r, err_w) = _create_pipes(path)
        # Child ends, passed to Popen and closed in the parent once spawned.
        self._child_fds: List[int] = [in_r, out_w, err_w]
        self._stdin: BinaryIO = os.fdopen(in_w, "wb")
        self._stdout: BinaryIO = os.fdopen(out_r, "rb")
        self._stderr: BinaryIO = os.fdopen(err_r, "rb")

    # ------------------------------------------------------------------
    # Properties
    # ------------------------------------------------------------------

    @property
    def path(self) -> str:
        return self._path

    @property
    def pid(self) -> Optional[int]:
        return self._popen.pid if self._popen is not None else None

    @property
    def returncode(self) -> Optional[int]:
        return self._popen.returncode if self._popen is not None else None

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def stdin(self) -> BinaryIO:
        return self._stdin

    @property
    def stdout(self) -> BinaryIO:
        """Engine stdout. Consumed by the driver's reader thread."""
        return self._stdout

    @property
    def stderr(self) -> BinaryIO:
        """Engine stderr. Never drained here; left to diagnostic consumers."""
        return self._stderr

    def is_running(self) -> bool:
        return self._popen is not None and self._popen.poll() is None

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def start(self) -> None:
        """Spawn the engine. Pipes are released if the spawn fails."""
        with self._lock:
            if self._closed:
                raise SpawnError(
                    f"cannot start the engine '{self._path}': process handle is closed"
                )
            if self._popen is not None:
                raise SpawnError(
                    f"cannot start the engine '{self._path}': already started "
                    f"(pid {self._popen.pid})"
                )

            in_r, out_w, err_w = self._child_fds
            try:
                self._popen = subprocess.Popen(
                    self._args,
                    stdin=in_r,
                    stdout=out_w,
                    stderr=err_w,
                    close_fds=True,
                )
            except (OSError, ValueError) as err:
                self._closed = True
                self._release_pipes()
                self._close_done.set()
                raise SpawnError(
                    f"failed to start the engine '{self._path}': {err}"
                ) from err

            self._close_child_fds()

        logger.info("Started engine %s (pid %d)", self._path, self._popen.pid)

    def write(self, line: str) -> None:
        """Write *line* plus a newline to the engine's stdin.

        Not serialized against other writers: concurrent callers must
        coordinate themselves or lines may interleave.
        """
        if self._closed:
            raise WriteError(
                f"cannot write to the engine '{self._path}': "
                "stdin pipe or process is closed"
            )
        self._write_line(line)

    def close(self) -> None:
        """Ask the engine to quit, kill it after :data:`QUIT_TIMEOUT` seconds.

        Idempotent: later calls block until the first one finishes and then
        repeat its outcome. Raises :class:`ShutdownError` when the engine
        exited with a non-zero status and :class:`ForceKilledError` when it
        had to be killed.
        """
        with self._lock:
            first = not self._closed
            self._closed = True

        if not first:
            self._close_done.wait()
            if self._close_error is not None:
                raise self._close_error
            return

        try:
            self._close_error = self._shutdown()
        finally:
            self._release_pipes()
            self._close_done.set()

        if self._close_error is not None:
            raise self._close_error

    def __enter__(self) -> "EngineProcess":
        self.start()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()

    def __repr__(self) -> str:
        state = "closed" if self._closed else ("running" if self._popen else "created")
        return f"<EngineProcess path={self._path!r} pid={self.pid} {state}>"

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _shutdown(self) -> Optional[ShutdownError]:
        if self._popen is None:
            return None
        popen = self._popen

        try:
            self._write_line("quit")
        except WriteError as err:
            logger.debug("Could not send quit to %s: %s", self._path, err)

        done: "queue.Queue[int]" = queue.Queue(maxsize=1)
        waiter = threading.Thread(
            target=lambda: done.put(popen.wait()),
            name=f"engine-waiter-{popen.pid}",
            daemon=True,
        )
        waiter.start()

        try:
            returncode = done.get(timeout=QUIT_TIMEOUT)
        except queue.Empty:
            popen.kill()
            popen.wait()
            logger.warning(
                "Engine %s (pid %d) ignored quit for %.1fs, killed",
                self._path,
                popen.pid,
                QUIT_TIMEOUT,
            )
            return ForceKilledError(
                f"engine '{self._path}' did not respond to quit command "
                f"within {QUIT_TIMEOUT:.1f}s, force killed",
                returncode=popen.returncode,
            )

        if returncode != 0:
            return ShutdownError(
                f"engine '{self._path}' exited with status {returncode} during shutdown",
                returncode=returncode,
            )
        logger.info("Engine %s (pid %d) exited cleanly", self._path, popen.pid)
        return None

    def _write_line(self, line: str) -> None:
        try:
            self._stdin.write(f"{line}\n".encode("utf-8"))
            self._stdin.flush()
        except (OSError, ValueError) as err:
            raise WriteError(
                f"failed to write {line!r} to the engine '{self._path}': {err}"
            ) from err

    def _close_child_fds(self) -> None:
        for fd in self._child_fds:
            try:
                os.close(fd)
            except OSError:
                pass
        self._child_fds = []

    def _release_pipes(self) -> None:
        self._close_child_fds()
        for stream in (self._stdin, self._stderr, self._stdout):
            try:
                stream.close()
            except OSError as err:
                # stdin may still hold unflushed bytes for a dead child.
                logger.debug("Error closing pipe of %s: %s", self._path, err)


def _check_engine_path(path: str) -> None:
    try:
        st = os.stat(path)
    except (FileNotFoundError, NotADirectoryError) as err:
        raise EngineNotFoundError(
            f"cannot create engine process: engine '{path}' does not exist"
        ) from err
    except PermissionError as err:
        raise AccessDeniedError(
            f"cannot create engine process: permission denied for '{path}': {err}"
        ) from err
    except OSError as err:
        raise ConfigError(
            f"cannot create engine process: invalid engine path '{path}': {err}"
        ) from err

    if stat.S_ISDIR(st.st_mode):
        raise NotAFileError(
            f"cannot create engine process: engine path '{path}' is a directory"
        )


def _create_pipes(path: str) -> List[Tuple[int, int]]:
    """Create the stdin, stdout and stderr pipes, all or nothing."""
    created: List[Tuple[int, int]] = []
    for name in _PIPE_NAMES:
        try:
            created.append(os.pipe())
        except OSError as err:
            for read_fd, write_fd in created:
                os.close(read_fd)
                os.close(write_fd)
            raise PipeCreateError(
                f"cannot create engine process: failed to create {name} pipe "
                f"for '{path}': {err}"
            ) from err
    return created
