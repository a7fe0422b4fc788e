"""
shipwright.integrations.tools.mock - Mock Tool Runner for Testing
===================================================================

A runner that never starts a process. It replays scripted output events,
returns a configurable exit code and records every call, so pipeline tests
can assert on what the orchestrator asked the tool to do.

Usage:
    >>> runner = MockToolRunner()
    >>> runner.queue_event("1440649959,amazon-ebs,artifact,0,id,us-east-1:ami-9d66def6")
    >>> result = await runner.execute(Path("."), {"aws_region": "us-east-1"}, on_event=collector)
    >>> runner.call_count
    1
    >>> runner.set_should_fail(True)  # next runs exit with code 1
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Optional, Sequence, Union

from shipwright.core.exceptions import ToolExecutionError
from shipwright.core.models import ToolResult, VariableSet
from shipwright.integrations.tools.base import BaseToolRunner, EventCallback
from shipwright.integrations.tools.machine_readable import parse_event_line


class MockToolRunner(BaseToolRunner):
    """Scripted tool runner.

    Features:
        - **Event Script**: Events queued with queue_event() are replayed to
          on_event on every run, in order.
        - **Call History**: Every execute() call is recorded.
        - **Failure Simulation**: Non-zero exit codes, or a launch failure
          raised as ToolExecutionError.

    Attributes:
        _tool_name: Name reported in results and errors.
        _events: Scripted events, each a list of fields.
        _call_history: One dict per execute() call.
    """

    def __init__(self, tool_name: str = "mock") -> None:
        self._tool_name = tool_name
        self._events: list[list[str]] = []
        self._call_history: list[dict[str, Any]] = []
        self._exit_code = 0
        self._launch_error: Optional[str] = None
        super().__init__()

    @property
    def name(self) -> str:
        return self._tool_name

    @property
    def call_history(self) -> list[dict[str, Any]]:
        """Recorded calls with "working_dir", "variables" and "state_id"."""
        return self._call_history

    @property
    def call_count(self) -> int:
        return len(self._call_history)

    # =========================================================================
    # Scripting
    # =========================================================================

    def queue_event(self, event: Union[str, Sequence[str]]) -> None:
        """Add an event to replay. Strings are parsed as machine-readable lines."""
        if isinstance(event, str):
            self._events.append(parse_event_line(event))
        else:
            self._events.append(list(event))

    def clear_events(self) -> None:
        self._events.clear()

    def set_should_fail(self, should_fail: bool, exit_code: int = 1) -> None:
        """Make subsequent runs exit non-zero (or succeed again)."""
        self._exit_code = exit_code if should_fail else 0

    def set_launch_error(self, message: Optional[str]) -> None:
        """Make subsequent runs raise ToolExecutionError before any output."""
        self._launch_error = message

    # =========================================================================
    # BaseToolRunner
    # =========================================================================

    async def execute(
        self,
        working_dir: Path,
        variables: VariableSet,
        *,
        on_event: Optional[EventCallback] = None,
        state_id: Optional[str] = None,
    ) -> ToolResult:
        self._call_history.append({
            "working_dir": working_dir,
            "variables": dict(variables),
            "state_id": state_id,
        })
        self._logger.debug(
            "mock_tool_called",
            working_dir=str(working_dir),
            state_id=state_id,
            queued_events=len(self._events),
        )

        if self._launch_error is not None:
            raise ToolExecutionError(
                message=self._launch_error,
                tool=self.name,
                error_code="TOOL_LAUNCH_FAILED",
            )

        output: list[str] = []
        for fields in self._events:
            output.append(",".join(fields))
            if on_event is not None and fields:
                on_event(fields)

        return ToolResult(
            tool=self.name,
            command=[self.name],
            exit_code=self._exit_code,
            output=output,
        )
