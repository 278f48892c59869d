"""Protocol client: stdio transport, MCP session, and batch runner."""

from mcpcli.client.batch import (
    BatchReport,
    BatchRunner,
    BatchSink,
    BatchStep,
    Invoke,
    Skip,
    StepOutcome,
    Wait,
    parse_step,
)
from mcpcli.client.session import ClientState, McpClient
from mcpcli.client.transport import ProcessTransport, Transport

__all__ = [
    "BatchReport",
    "BatchRunner",
    "BatchSink",
    "BatchStep",
    "ClientState",
    "Invoke",
    "McpClient",
    "ProcessTransport",
    "Skip",
    "StepOutcome",
    "Transport",
    "Wait",
    "parse_step",
]
