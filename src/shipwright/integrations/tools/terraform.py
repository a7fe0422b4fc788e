"""
shipwright.integrations.tools.terraform - Terraform Deploy Runner
===================================================================

Runs `terraform init` and `terraform apply` in the deploy directory. The
deploy record's state handle picks the state file, so a second deploy of
the same tuple updates the resources the first one created instead of
creating new ones:

    <state_dir>/<state_id>.tfstate

Usage:
    >>> runner = TerraformRunner(state_dir="/var/lib/shipwright/state")
    >>> result = await runner.execute(
    ...     Path("/app/.otto/deploy"), variables, state_id="dep-1234",
    ... )
"""

from __future__ import annotations

from pathlib import Path
from typing import Optional

from shipwright.core.models import ToolResult, VariableSet
from shipwright.integrations.tools.base import BaseToolRunner, EventCallback


class TerraformRunner(BaseToolRunner):
    """Deploy runner wrapping the Terraform CLI.

    Attributes:
        _binary: Terraform executable name or path.
        _state_dir: Absolute directory holding one state file per handle.
    """

    def __init__(
        self,
        binary: str = "terraform",
        state_dir: str | Path = ".shipwright/state",
        *,
        timeout: Optional[float] = None,
    ) -> None:
        self._binary = binary
        self._state_dir = Path(state_dir).resolve()
        super().__init__(timeout=timeout)

    @property
    def name(self) -> str:
        return "terraform"

    def state_path(self, state_id: str) -> Path:
        """State file for a state handle."""
        return self._state_dir / f"{state_id}.tfstate"

    def init_command(self) -> list[str]:
        return [self._binary, "init", "-input=false"]

    def apply_command(
        self, variables: VariableSet, state_id: Optional[str] = None
    ) -> list[str]:
        """Assemble the argv for `terraform apply`.

        Without a state handle Terraform falls back to its default state
        location in the working directory.
        """
        command = [self._binary, "apply", "-input=false", "-auto-approve"]
        if state_id is not None:
            command.append(f"-state={self.state_path(state_id)}")
        command.extend(self._var_args(variables))
        return command

    async def execute(
        self,
        working_dir: Path,
        variables: VariableSet,
        *,
        on_event: Optional[EventCallback] = None,
        state_id: Optional[str] = None,
    ) -> ToolResult:
        def _dispatch(line: str) -> None:
            if on_event is not None and line:
                on_event([line])

        if state_id is not None:
            self._state_dir.mkdir(parents=True, exist_ok=True)

        init = await self._stream(self.init_command(), cwd=working_dir, on_line=_dispatch)
        if not init.success:
            return init

        return await self._stream(
            self.apply_command(variables, state_id),
            cwd=working_dir,
            on_line=_dispatch,
        )
