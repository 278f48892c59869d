"""Stdio transport: owns the MCP server subprocess and its pipes."""

from __future__ import annotations

import asyncio
import contextlib
import logging
import os
import signal
from typing import Protocol, runtime_checkable

from mcpcli.protocol.errors import InvalidStateError, TransportError

logger = logging.getLogger(__name__)

#: Seconds a freshly spawned server must survive to count as started.
_START_GRACE = 0.1

#: Seconds to wait for a graceful exit after closing the server's stdin.
_CLOSE_GRACE = 0.5

#: Seconds to wait after SIGTERM before SIGKILL.
_SIGTERM_WAIT = 2.0

#: Maximum bytes per line read from the server (4 MB).
_MAX_LINE_BYTES = 4 * 1_048_576

_SIGKILL = getattr(signal, "SIGKILL", signal.SIGTERM)


@runtime_checkable
class Transport(Protocol):
    """Line-oriented duplex channel to a tool server."""

    @property
    def is_connected(self) -> bool:
        """True while the peer can still receive requests."""
        ...

    async def send_line(self, line: str) -> None:
        """Write one line (a terminator is appended)."""
        ...

    async def read_line(self) -> str | None:
        """Wait for the next line; ``None`` means the stream ended."""
        ...

    async def close(self) -> None:
        """Release the channel.  Must be idempotent and never raise."""
        ...


class ProcessTransport:
    """Transport over a spawned process's stdin/stdout.

    Stdout is pumped by a background task into a queue, so a reader that is
    cancelled (e.g. by a call timeout) never loses or splits a line: the
    next ``read_line`` simply picks up where the queue stands.  Stderr is
    drained into the debug log so the server can never block on a full pipe.

    Teardown (``close``) runs the same escalation on every exit path:
    close stdin -> wait -> SIGTERM the process group -> wait -> SIGKILL.
    """

    def __init__(
        self,
        *,
        start_grace: float = _START_GRACE,
        close_grace: float = _CLOSE_GRACE,
        sigterm_wait: float = _SIGTERM_WAIT,
    ) -> None:
        self._start_grace = start_grace
        self._close_grace = close_grace
        self._sigterm_wait = sigterm_wait

        self._process: asyncio.subprocess.Process | None = None
        self._lines: asyncio.Queue[str | None] = asyncio.Queue()
        self._read_task: asyncio.Task[None] | None = None
        self._stderr_task: asyncio.Task[None] | None = None
        self._read_error: TransportError | None = None
        self._eof = False
        self._closed = False

    @property
    def pid(self) -> int | None:
        """PID of the server process, if one was spawned."""
        return self._process.pid if self._process is not None else None

    @property
    def is_connected(self) -> bool:
        proc = self._process
        return not self._closed and proc is not None and proc.returncode is None

    # ------------------------------------------------------------------ #
    # Lifecycle
    # ------------------------------------------------------------------ #

    async def start(
        self, command: str, args: list[str], cwd: str | None = None
    ) -> bool:
        """Spawn the server.  Returns False instead of raising on failure."""
        if self._process is not None or self._closed:
            msg = "Transport already started"
            raise InvalidStateError(msg)

        try:
            proc = await asyncio.create_subprocess_exec(
                command,
                *args,
                stdin=asyncio.subprocess.PIPE,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
                cwd=cwd,
                limit=_MAX_LINE_BYTES,
                start_new_session=True,
            )
        except OSError as exc:
            logger.error("Failed to spawn server '%s': %s", command, exc)
            return False

        self._process = proc
        self._read_task = asyncio.create_task(self._read_loop(proc))
        self._stderr_task = asyncio.create_task(self._drain_stderr(proc))

        # A server that dies straight away (bad flags, missing runtime)
        # should be reported as a start failure, not a handshake timeout.
        await asyncio.sleep(self._start_grace)
        if proc.returncode is not None:
            logger.error(
                "Server '%s' exited immediately with code %s", command, proc.returncode
            )
            await self.close()
            return False

        logger.debug("Started server '%s' (pid %d)", command, proc.pid)
        return True

    async def close(self) -> None:
        """Stop the server and release its pipes.  Safe to call repeatedly."""
        if self._closed:
            return
        self._closed = True

        proc = self._process
        if proc is not None:
            try:
                await self._terminate(proc)
            except Exception:
                logger.exception("Error while stopping server process")

        for task in (self._read_task, self._stderr_task):
            if task is not None and not task.done():
                task.cancel()
                with contextlib.suppress(asyncio.CancelledError):
                    await task

    async def _terminate(self, proc: asyncio.subprocess.Process) -> None:
        try:
            # 1. Close stdin so the server sees EOF and can exit on its own.
            if proc.stdin is not None and not proc.stdin.is_closing():
                proc.stdin.close()
                with contextlib.suppress(BrokenPipeError, ConnectionResetError, OSError):
                    await proc.stdin.wait_closed()

            # 2. Grace period.
            if await _wait_exit(proc, self._close_grace):
                return

            # 3. SIGTERM the whole process group.
            logger.debug("Server pid %d still running, sending SIGTERM", proc.pid)
            _signal_group(proc, signal.SIGTERM)
            if await _wait_exit(proc, self._sigterm_wait):
                return

            # 4. SIGKILL.
            logger.warning("Server pid %d ignored SIGTERM, killing", proc.pid)
            _signal_group(proc, _SIGKILL)
            await proc.wait()
        finally:
            # Also reached when the caller is cancelled mid-teardown.
            if proc.returncode is None:
                _signal_group(proc, _SIGKILL)

    # ------------------------------------------------------------------ #
    # Line I/O
    # ------------------------------------------------------------------ #

    async def send_line(self, line: str) -> None:
        proc = self._process
        if self._closed or proc is None or proc.stdin is None or proc.stdin.is_closing():
            msg = "Server input stream is closed"
            raise TransportError(msg)

        try:
            proc.stdin.write(line.encode() + b"\n")
            await proc.stdin.drain()
        except (BrokenPipeError, ConnectionResetError, OSError) as exc:
            msg = f"Failed to write to server: {exc}"
            raise TransportError(msg) from exc

    async def read_line(self) -> str | None:
        if self._process is None:
            msg = "Transport not started"
            raise TransportError(msg)
        if self._eof:
            return None

        line = await self._lines.get()
        if line is None:
            self._eof = True
            if self._read_error is not None:
                raise self._read_error
            return None
        return line

    # ------------------------------------------------------------------ #
    # Background readers
    # ------------------------------------------------------------------ #

    async def _read_loop(self, proc: asyncio.subprocess.Process) -> None:
        """Pump stdout lines into the queue until EOF."""
        if proc.stdout is None:
            self._lines.put_nowait(None)
            return

        try:
            while True:
                try:
                    raw = await proc.stdout.readline()
                except ValueError:
                    self._read_error = TransportError(
                        f"Server sent a line longer than {_MAX_LINE_BYTES} bytes"
                    )
                    break
                if not raw:
                    break
                await self._lines.put(raw.decode(errors="replace").rstrip("\r\n"))
        except asyncio.CancelledError:
            raise
        except Exception as exc:
            logger.error("Server stdout read error: %s", exc)
            self._read_error = TransportError(f"Server stdout read error: {exc}")
        finally:
            self._lines.put_nowait(None)

    async def _drain_stderr(self, proc: asyncio.subprocess.Process) -> None:
        if proc.stderr is None:
            return
        while True:
            try:
                raw = await proc.stderr.readline()
            except ValueError:
                # Over-long line; the reader has already discarded it.
                continue
            if not raw:
                return
            logger.debug("server stderr: %s", raw.decode(errors="replace").rstrip())


async def _wait_exit(proc: asyncio.subprocess.Process, timeout: float) -> bool:
    """Wait up to *timeout* seconds for *proc* to exit."""
    try:
        await asyncio.wait_for(proc.wait(), timeout=timeout)
    except TimeoutError:
        return False
    return True


def _signal_group(proc: asyncio.subprocess.Process, sig: int) -> None:
    """Signal the server's process group (the server and anything it spawned)."""
    with contextlib.suppress(ProcessLookupError, PermissionError):
        if hasattr(os, "killpg"):
            os.killpg(proc.pid, sig)
        else:
            proc.kill()
