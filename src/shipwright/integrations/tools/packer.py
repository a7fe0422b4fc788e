"""
shipwright.integrations.tools.packer - Packer Build Runner
============================================================

Runs `packer build -machine-readable` against the compiled build template
and turns every output line into a structured event for `on_event`.

    packer build -machine-readable \\
        -var aws_access_key=... -var aws_region=us-east-1 ... \\
        <working_dir>/build/template.json

Usage:
    >>> runner = PackerRunner(binary="packer")
    >>> collector = ArtifactCollector()
    >>> result = await runner.execute(Path("/app/.otto"), variables, on_event=collector)
"""

from __future__ import annotations

from pathlib import Path
from typing import Optional

from shipwright.core.models import ToolResult, VariableSet
from shipwright.integrations.tools.base import BaseToolRunner, EventCallback
from shipwright.integrations.tools.machine_readable import parse_event_line


class PackerRunner(BaseToolRunner):
    """Build runner wrapping the Packer CLI.

    Packer is stateless from the pipeline's point of view, so `state_id`
    is ignored.

    Attributes:
        _binary: Packer executable name or path.
        _template: Template path relative to the working directory.
    """

    def __init__(
        self,
        binary: str = "packer",
        template: str = "build/template.json",
        *,
        timeout: Optional[float] = None,
    ) -> None:
        self._binary = binary
        self._template = template
        super().__init__(timeout=timeout)

    @property
    def name(self) -> str:
        return "packer"

    def build_command(self, working_dir: Path, variables: VariableSet) -> list[str]:
        """Assemble the argv for one build."""
        return [
            self._binary,
            "build",
            "-machine-readable",
            *self._var_args(variables),
            str(working_dir / self._template),
        ]

    async def execute(
        self,
        working_dir: Path,
        variables: VariableSet,
        *,
        on_event: Optional[EventCallback] = None,
        state_id: Optional[str] = None,
    ) -> ToolResult:
        def _dispatch(line: str) -> None:
            fields = parse_event_line(line)
            if fields and on_event is not None:
                on_event(fields)

        return await self._stream(
            self.build_command(working_dir, variables),
            cwd=working_dir,
            on_line=_dispatch,
        )
