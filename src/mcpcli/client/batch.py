"""Batch runner: ordered tool calls and pauses over one live connection."""

from __future__ import annotations

import asyncio
import logging
import re
from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import Any, Literal, Protocol

from mcpcli.client.session import McpClient
from mcpcli.formatting.arguments import parse_batch_command
from mcpcli.protocol.errors import McpError, ProtocolError, RequestTimeoutError
from mcpcli.protocol.models import ToolCallResult

logger = logging.getLogger(__name__)

_WAIT_RE = re.compile(r"^wait:(\d+)$", re.IGNORECASE)

# ------------------------------------------------------------------ #
# Steps
# ------------------------------------------------------------------ #


@dataclass(frozen=True)
class Wait:
    """Pause for ``duration_ms`` without touching the connection."""

    duration_ms: int


@dataclass(frozen=True)
class Invoke:
    """Call ``tool_name`` with ``arguments``."""

    tool_name: str
    arguments: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class Skip:
    """A command that could not be turned into a step."""

    command: str
    reason: str


BatchStep = Wait | Invoke | Skip


def parse_step(command: str) -> BatchStep:
    """Parse ``wait:<ms>`` (any case) or ``tool key=value ...``."""
    text = command.strip()
    match = _WAIT_RE.match(text)
    if match:
        return Wait(int(match.group(1)))

    try:
        tool_name, arguments = parse_batch_command(text)
    except ValueError as exc:
        return Skip(command, f"Unparseable command: {exc}")
    if not tool_name:
        return Skip(command, "Empty command")
    return Invoke(tool_name, arguments)


# ------------------------------------------------------------------ #
# Reporting
# ------------------------------------------------------------------ #

StepStatus = Literal["ok", "failed", "skipped", "waited"]


@dataclass
class StepOutcome:
    index: int
    command: str
    status: StepStatus
    result: ToolCallResult | None = None
    error: McpError | None = None


@dataclass
class BatchReport:
    """Per-step outcomes of one batch run, in execution order."""

    outcomes: list[StepOutcome] = field(default_factory=list)

    def count(self, status: StepStatus) -> int:
        return sum(1 for o in self.outcomes if o.status == status)

    @property
    def succeeded(self) -> int:
        return self.count("ok")

    @property
    def failed(self) -> int:
        return self.count("failed")

    @property
    def skipped(self) -> int:
        return self.count("skipped")


class BatchSink(Protocol):
    """Receives progress from a :class:`BatchRunner`."""

    def waiting(self, index: int, duration_ms: int) -> None: ...

    def step_started(self, index: int, step: Invoke) -> None: ...

    def step_result(self, index: int, step: Invoke, result: ToolCallResult) -> None: ...

    def step_failed(self, index: int, step: Invoke, error: McpError) -> None: ...

    def step_skipped(self, index: int, step: Skip) -> None: ...


class LoggingSink:
    """Default sink: report progress through the module logger."""

    def waiting(self, index: int, duration_ms: int) -> None:
        logger.info("step %d: waiting %dms", index, duration_ms)

    def step_started(self, index: int, step: Invoke) -> None:
        logger.info("step %d: calling %s", index, step.tool_name)

    def step_result(self, index: int, step: Invoke, result: ToolCallResult) -> None:
        logger.info(
            "step %d: %s returned %d item(s)", index, step.tool_name, len(result.content)
        )

    def step_failed(self, index: int, step: Invoke, error: McpError) -> None:
        logger.error("step %d: %s failed: %s", index, step.tool_name, error)

    def step_skipped(self, index: int, step: Skip) -> None:
        logger.warning("step %d: skipped (%s)", index, step.reason)


# ------------------------------------------------------------------ #
# Runner
# ------------------------------------------------------------------ #


class BatchRunner:
    """Runs batch commands in order against one initialized client.

    A ``ProtocolError`` or ``RequestTimeoutError`` fails only its own step;
    the remaining steps still run.  Any other ``McpError`` (correlation,
    decode, invalid state, transport) means the connection can no longer be
    trusted and aborts the batch by propagating.
    """

    def __init__(
        self,
        client: McpClient,
        sink: BatchSink | None = None,
        step_timeout: float | None = None,
    ) -> None:
        self._client = client
        self._sink: BatchSink = sink or LoggingSink()
        self._step_timeout = step_timeout

    async def run(self, commands: Sequence[str]) -> BatchReport:
        report = BatchReport()
        for index, command in enumerate(commands, start=1):
            step = parse_step(command)
            match step:
                case Wait(duration_ms=duration_ms):
                    self._sink.waiting(index, duration_ms)
                    await asyncio.sleep(duration_ms / 1000)
                    report.outcomes.append(StepOutcome(index, command, "waited"))

                case Skip():
                    self._sink.step_skipped(index, step)
                    report.outcomes.append(StepOutcome(index, command, "skipped"))

                case Invoke():
                    report.outcomes.append(await self._invoke(index, command, step))

        return report

    async def _invoke(self, index: int, command: str, step: Invoke) -> StepOutcome:
        self._sink.step_started(index, step)
        try:
            result = await self._client.call_tool(
                step.tool_name, step.arguments, timeout=self._step_timeout
            )
        except (ProtocolError, RequestTimeoutError) as exc:
            self._sink.step_failed(index, step, exc)
            return StepOutcome(index, command, "failed", error=exc)

        self._sink.step_result(index, step, result)
        return StepOutcome(index, command, "ok", result=result)
