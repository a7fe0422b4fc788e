"""
Tests for shipwright.integrations.tools
=========================================

These tests verify the external tool layer:
    - parse_event_line (machine-readable splitting and un-escaping)
    - PackerRunner / TerraformRunner command assembly
    - Subprocess streaming against a small fake executable
    - MockToolRunner (event script, call tracking, failure simulation)
    - create_build_runner / create_deploy_runner factories

No real Packer or Terraform binary is needed.
"""

import asyncio
import os
import stat
import sys
from pathlib import Path

import pytest

from shipwright.core.config import ToolsConfig
from shipwright.core.exceptions import ConfigurationError, ToolExecutionError
from shipwright.integrations.tools.factory import (
    create_build_runner,
    create_deploy_runner,
)
from shipwright.integrations.tools.machine_readable import parse_event_line
from shipwright.integrations.tools.mock import MockToolRunner
from shipwright.integrations.tools.packer import PackerRunner
from shipwright.integrations.tools.terraform import TerraformRunner
from shipwright.pipeline.extractor import ArtifactCollector


posix_only = pytest.mark.skipif(sys.platform == "win32", reason="needs a POSIX shell")


def _fake_tool(directory: Path, body: str) -> str:
    """Write an executable shell script and return its path."""
    script = directory / "fake-tool"
    script.write_text("#!/bin/sh\n" + body)
    script.chmod(script.stat().st_mode | stat.S_IXUSR)
    return str(script)


def _is_running(pid: int) -> bool:
    try:
        os.kill(pid, 0)
    except ProcessLookupError:
        return False
    return True


# =============================================================================
# Tests: parse_event_line
# =============================================================================
class TestParseEventLine:
    """Tests for machine-readable line parsing."""

    def test_artifact_line(self) -> None:
        assert parse_event_line("1440649959,amazon-ebs,artifact,0,id,us-east-1:ami-9d66def6\n") == [
            "1440649959", "amazon-ebs", "artifact", "0", "id", "us-east-1:ami-9d66def6",
        ]

    def test_escaped_comma(self) -> None:
        fields = parse_event_line("1,,ui,say,a%!(PACKER_COMMA) b")
        assert fields == ["1", "", "ui", "say", "a, b"]

    def test_escaped_newline(self) -> None:
        assert parse_event_line("1,,ui,say,line1\\nline2")[-1] == "line1\nline2"

    @pytest.mark.parametrize("line", ["", "\n", "   \r\n"])
    def test_blank_lines(self, line) -> None:
        assert parse_event_line(line) == []


# =============================================================================
# Tests: Command Assembly
# =============================================================================
class TestCommands:
    """Tests for the argv each runner builds."""

    def test_packer_build_command(self, tmp_path) -> None:
        runner = PackerRunner(binary="/opt/packer")
        command = runner.build_command(tmp_path, {"aws_region": "us-east-1", "aws_access_key": "AK"})

        assert command == [
            "/opt/packer", "build", "-machine-readable",
            "-var", "aws_access_key=AK",
            "-var", "aws_region=us-east-1",
            str(tmp_path / "build" / "template.json"),
        ]

    def test_terraform_init_command(self) -> None:
        assert TerraformRunner().init_command() == ["terraform", "init", "-input=false"]

    def test_terraform_apply_command_with_state(self, tmp_path) -> None:
        runner = TerraformRunner(state_dir=tmp_path / "state")
        command = runner.apply_command({"ami": "ami-1"}, state_id="dep-1")

        assert command == [
            "terraform", "apply", "-input=false", "-auto-approve",
            f"-state={tmp_path / 'state' / 'dep-1.tfstate'}",
            "-var", "ami=ami-1",
        ]

    def test_terraform_apply_command_without_state(self) -> None:
        command = TerraformRunner().apply_command({})
        assert not any(arg.startswith("-state=") for arg in command)

    def test_terraform_state_dir_is_absolute(self) -> None:
        assert TerraformRunner(state_dir="relative/state").state_path("x").is_absolute()


# =============================================================================
# Tests: Subprocess Runners
# =============================================================================
@posix_only
class TestSubprocessRunners:
    """Runs the real runners against a fake executable."""

    async def test_packer_streams_events_to_callback(self, tmp_path) -> None:
        binary = _fake_tool(
            tmp_path,
            'echo "1,,ui,say,starting"\n'
            'echo "1440649959,amazon-ebs,artifact,0,id,us-east-1:ami-9d66def6"\n',
        )
        collector = ArtifactCollector()

        result = await PackerRunner(binary=binary).execute(tmp_path, {}, on_event=collector)

        assert result.success
        assert result.tool == "packer"
        assert len(result.output) == 2
        assert collector.snapshot() == {"us-east-1": "ami-9d66def6"}

    async def test_non_zero_exit_is_returned_not_raised(self, tmp_path) -> None:
        binary = _fake_tool(tmp_path, 'echo "boom"\nexit 3\n')

        result = await PackerRunner(binary=binary).execute(tmp_path, {})

        assert result.exit_code == 3
        assert result.tail() == "boom"

    async def test_missing_binary_raises_launch_error(self, tmp_path) -> None:
        runner = PackerRunner(binary=str(tmp_path / "no-such-packer"))

        with pytest.raises(ToolExecutionError) as exc_info:
            await runner.execute(tmp_path, {})

        assert exc_info.value.error_code == "TOOL_LAUNCH_FAILED"
        assert exc_info.value.exit_code is None

    async def test_timeout_kills_tool(self, tmp_path) -> None:
        binary = _fake_tool(tmp_path, "exec sleep 5\n")

        with pytest.raises(ToolExecutionError) as exc_info:
            await PackerRunner(binary=binary, timeout=0.2).execute(tmp_path, {})

        assert exc_info.value.error_code == "TOOL_TIMEOUT"

    async def test_callback_error_kills_tool(self, tmp_path) -> None:
        """An exception raised by the event handler stops the tool too."""
        pid_file = tmp_path / "tool.pid"
        binary = _fake_tool(tmp_path, f'echo $$ > "{pid_file}"\necho "1,,ui,say,hi"\nexec sleep 30\n')

        def _explode(fields) -> None:
            raise RuntimeError("handler failed")

        with pytest.raises(RuntimeError):
            await PackerRunner(binary=binary).execute(tmp_path, {}, on_event=_explode)

        assert not _is_running(int(pid_file.read_text()))

    async def test_overlong_line_raises_and_kills_tool(self, tmp_path) -> None:
        pid_file = tmp_path / "tool.pid"
        binary = _fake_tool(
            tmp_path,
            f'echo $$ > "{pid_file}"\n'
            "head -c 1100000 /dev/zero | tr '\\0' a\n"
            "echo\n"
            "exec sleep 30\n",
        )

        with pytest.raises(ToolExecutionError) as exc_info:
            await PackerRunner(binary=binary).execute(tmp_path, {})

        assert exc_info.value.error_code == "TOOL_OUTPUT_TOO_LONG"
        assert not _is_running(int(pid_file.read_text()))

    async def test_cancellation_kills_tool(self, tmp_path) -> None:
        pid_file = tmp_path / "tool.pid"
        binary = _fake_tool(tmp_path, f'echo $$ > "{pid_file}"\nexec sleep 30\n')

        task = asyncio.create_task(PackerRunner(binary=binary).execute(tmp_path, {}))
        for _ in range(100):
            if pid_file.exists() and pid_file.read_text().strip():
                break
            await asyncio.sleep(0.05)
        task.cancel()

        with pytest.raises(asyncio.CancelledError):
            await task

        assert not _is_running(int(pid_file.read_text()))

    async def test_terraform_runs_init_then_apply(self, tmp_path) -> None:
        log = tmp_path / "calls.log"
        binary = _fake_tool(tmp_path, f'echo "$1" >> "{log}"\necho "ok $1"\n')
        runner = TerraformRunner(binary=binary, state_dir=tmp_path / "state")
        lines: list = []

        result = await runner.execute(tmp_path, {"ami": "ami-1"}, on_event=lines.append, state_id="dep-1")

        assert result.success
        assert log.read_text().split() == ["init", "apply"]
        assert lines == [["ok init"], ["ok apply"]]
        assert (tmp_path / "state").is_dir()

    async def test_terraform_stops_when_init_fails(self, tmp_path) -> None:
        log = tmp_path / "calls.log"
        binary = _fake_tool(tmp_path, f'echo "$1" >> "{log}"\nexit 1\n')

        result = await TerraformRunner(binary=binary, state_dir=tmp_path / "state").execute(tmp_path, {})

        assert result.exit_code == 1
        assert log.read_text().split() == ["init"]


# =============================================================================
# Tests: MockToolRunner
# =============================================================================
class TestMockToolRunner:
    """Tests for the scripted runner."""

    async def test_replays_events_in_order(self, tmp_path) -> None:
        runner = MockToolRunner()
        runner.queue_event("1,a,artifact,0,id,us-east-1:ami-1")
        runner.queue_event(["1", "a", "artifact", "0", "id", "us-west-2:ami-2"])
        seen: list = []

        await runner.execute(tmp_path, {}, on_event=seen.append)

        assert [fields[-1] for fields in seen] == ["us-east-1:ami-1", "us-west-2:ami-2"]

    async def test_records_calls(self, tmp_path) -> None:
        runner = MockToolRunner()
        variables = {"aws_region": "us-east-1"}

        await runner.execute(tmp_path, variables, state_id="dep-1")
        variables["aws_region"] = "changed"

        assert runner.call_count == 1
        assert runner.call_history[0] == {
            "working_dir": tmp_path,
            "variables": {"aws_region": "us-east-1"},
            "state_id": "dep-1",
        }

    async def test_failure_simulation(self, tmp_path) -> None:
        runner = MockToolRunner()
        runner.set_should_fail(True, exit_code=7)
        assert (await runner.execute(tmp_path, {})).exit_code == 7

        runner.set_should_fail(False)
        assert (await runner.execute(tmp_path, {})).success

    async def test_launch_error(self, tmp_path) -> None:
        runner = MockToolRunner("mock-build")
        runner.set_launch_error("not installed")

        with pytest.raises(ToolExecutionError) as exc_info:
            await runner.execute(tmp_path, {})
        assert exc_info.value.tool == "mock-build"

    def test_is_a_tool_runner(self) -> None:
        from shipwright.integrations.tools.base import BaseToolRunner
        assert isinstance(MockToolRunner(), BaseToolRunner)


# =============================================================================
# Tests: Factory
# =============================================================================
class TestFactories:
    """Tests for create_build_runner / create_deploy_runner."""

    def test_defaults(self) -> None:
        config = ToolsConfig()
        assert isinstance(create_build_runner(config), PackerRunner)
        assert isinstance(create_deploy_runner(config), TerraformRunner)

    def test_mock(self) -> None:
        config = ToolsConfig(build_tool="mock", deploy_tool="MOCK")
        assert create_build_runner(config).name == "mock-build"
        assert create_deploy_runner(config).name == "mock-deploy"

    def test_binary_paths_are_used(self, tmp_path) -> None:
        config = ToolsConfig(packer_binary="/opt/packer", terraform_binary="/opt/terraform")
        assert create_build_runner(config).build_command(tmp_path, {})[0] == "/opt/packer"
        assert create_deploy_runner(config).init_command()[0] == "/opt/terraform"

    def test_unknown_build_tool(self) -> None:
        with pytest.raises(ConfigurationError) as exc_info:
            create_build_runner(ToolsConfig(build_tool="docker"))
        assert exc_info.value.error_code == "UNKNOWN_TOOL"
        assert exc_info.value.details["stage"] == "build"

    def test_unknown_deploy_tool(self) -> None:
        with pytest.raises(ConfigurationError):
            create_deploy_runner(ToolsConfig(deploy_tool="pulumi"))
