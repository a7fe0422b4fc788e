"""
shipwright.integrations.tools.base - Abstract Tool Runner Interface
=====================================================================

The contract every external build/deploy tool wrapper implements. The
orchestrator never shells out itself; it calls a runner through this
interface, which lets tests swap in MockToolRunner.

Architecture Context:
    ┌──────────────────────┐   execute()    ┌──────────────────┐
    │ PipelineOrchestrator │ ─────────────→ │  BaseToolRunner  │
    │                      │ ←─ ToolResult ─ │   (abstract)     │
    │   ArtifactCollector ←┼──── on_event ── │                  │
    └──────────────────────┘                └────────┬─────────┘
                                         ┌───────────┼────────────┐
                                    ┌────▼───┐  ┌────▼─────┐  ┌───▼──┐
                                    │ Packer │  │Terraform │  │ Mock │
                                    └────────┘  └──────────┘  └──────┘

Failure Contract:
    - Tool ran and exited non-zero → ToolResult with exit_code != 0.
    - Tool could not be started or timed out → ToolExecutionError. An
      output line over the 1 MiB limit is reported the same way.
    - If reading stops early for any reason, the process is killed before
      the exception propagates.
"""

from __future__ import annotations

import asyncio
import contextlib
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Callable, Optional, Sequence

import structlog

from shipwright.core.exceptions import ToolExecutionError
from shipwright.core.models import ToolResult, VariableSet


logger = structlog.get_logger()


# One structured event from a tool's output stream, as a list of fields.
EventCallback = Callable[[Sequence[str]], None]

# Packer ui lines can be long (escaped multi-line messages).
_LINE_LIMIT = 1024 * 1024


class BaseToolRunner(ABC):
    """Abstract base class for external tool runners.

    Subclasses implement `execute()`. `_stream()` is provided for the
    subprocess-backed runners: it launches the command, feeds each output
    line to a handler and returns a ToolResult.

    Attributes:
        _timeout: Optional wall-clock limit per run, in seconds.
    """

    def __init__(self, *, timeout: Optional[float] = None) -> None:
        self._timeout = timeout
        self._logger = logger.bind(component=f"{self.name}_runner")

    @property
    @abstractmethod
    def name(self) -> str:
        """Short tool name used in logs and errors ("packer", "terraform")."""

    @abstractmethod
    async def execute(
        self,
        working_dir: Path,
        variables: VariableSet,
        *,
        on_event: Optional[EventCallback] = None,
        state_id: Optional[str] = None,
    ) -> ToolResult:
        """Run the tool once.

        Args:
            working_dir: Directory holding the tool's configuration.
            variables: Input variables passed to the tool.
            on_event: Called with each structured output event, in order.
            state_id: Durable state handle for stateful tools. Runners for
                stateless tools ignore it.

        Returns:
            ToolResult describing the run.

        Raises:
            ToolExecutionError: If the tool could not be started or timed out.
        """

    # =========================================================================
    # Subprocess Helper
    # =========================================================================

    @staticmethod
    def _var_args(variables: VariableSet) -> list[str]:
        """Render variables as repeated `-var key=value` arguments."""
        args: list[str] = []
        for key in sorted(variables):
            args.extend(["-var", f"{key}={variables[key]}"])
        return args

    async def _stream(
        self,
        command: list[str],
        cwd: Path,
        on_line: Optional[Callable[[str], None]] = None,
    ) -> ToolResult:
        """Run `command` in `cwd`, handing each stdout/stderr line to `on_line`.

        Lines are delivered one at a time from this coroutine, so handlers
        see them in the order the tool wrote them.
        """
        # Variable values can carry secrets, so only the subcommand is logged.
        self._logger.info("tool_starting", subcommand=command[1:2], cwd=str(cwd))

        try:
            process = await asyncio.create_subprocess_exec(
                *command,
                cwd=str(cwd),
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.STDOUT,
                limit=_LINE_LIMIT,
            )
        except OSError as exc:
            raise ToolExecutionError(
                message=(
                    f"Could not start {self.name}: {exc}\n\n"
                    f"Make sure {self.name} is installed and on the PATH, or set "
                    f"its binary path in the Shipwright configuration."
                ),
                tool=self.name,
                error_code="TOOL_LAUNCH_FAILED",
                details={"binary": command[0]},
            ) from exc

        output: list[str] = []

        async def _pump() -> None:
            assert process.stdout is not None
            while True:
                try:
                    raw = await process.stdout.readline()
                except ValueError as exc:
                    raise ToolExecutionError(
                        message=(
                            f"{self.name} wrote an output line longer than "
                            f"{_LINE_LIMIT} bytes and was stopped."
                        ),
                        tool=self.name,
                        error_code="TOOL_OUTPUT_TOO_LONG",
                        details={"line_limit": _LINE_LIMIT},
                    ) from exc
                if not raw:
                    break
                line = raw.decode("utf-8", errors="replace").rstrip("\r\n")
                output.append(line)
                self._logger.debug("tool_output", line=line)
                if on_line is not None:
                    on_line(line)
            await process.wait()

        try:
            await asyncio.wait_for(_pump(), timeout=self._timeout)
        except asyncio.TimeoutError as exc:
            raise ToolExecutionError(
                message=(
                    f"{self.name} did not finish within {self._timeout} seconds "
                    f"and was stopped. Check the output above, then retry."
                ),
                tool=self.name,
                error_code="TOOL_TIMEOUT",
                details={"timeout_seconds": self._timeout},
            ) from exc
        finally:
            # Never leave the tool running once we stop reading it.
            if process.returncode is None:
                with contextlib.suppress(ProcessLookupError):
                    process.kill()
                await process.wait()
                self._logger.warning("tool_killed", pid=process.pid)

        exit_code = process.returncode if process.returncode is not None else -1
        self._logger.info("tool_finished", exit_code=exit_code, lines=len(output))
        return ToolResult(
            tool=self.name,
            command=command,
            exit_code=exit_code,
            output=output,
        )
