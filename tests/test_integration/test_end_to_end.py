"""
End-to-End Integration Tests for Shipwright
=============================================

These tests drive the facade from configuration down to the record store
and the tool runners, with no component mocked out except the external
binaries themselves.

Test Scenarios:
    1. Build then deploy with mock runners and a file-backed store
    2. A second session reuses the stored build and deploy state handle
    3. Real Packer/Terraform runners against fake executables
    4. Multi-region builds deploy the artifact for the infra's region
"""

from __future__ import annotations

import stat
import sys
from pathlib import Path

import pytest

from shipwright.core.config import ShipwrightConfig, StoreConfig, ToolsConfig
from shipwright.core.enums import InfraState
from shipwright.core.exceptions import NotFoundError
from shipwright.core.models import InfrastructureRecord
from shipwright.facade import Shipwright
from shipwright.integrations.tools.mock import MockToolRunner


def _file_config(root: Path, **tools) -> ShipwrightConfig:
    return ShipwrightConfig(
        tools=ToolsConfig(**{"build_tool": "mock", "deploy_tool": "mock", **tools}),
        store=StoreConfig(backend="file", path=str(root / "records")),
    )


async def _seed_infra(shipwright: Shipwright, region: str = "us-east-1") -> None:
    await shipwright.record_store.put_infra(
        InfrastructureRecord(name="aws-main", state=InfraState.READY, outputs={"region": region})
    )


# =============================================================================
# Test: Build and Deploy across sessions
# =============================================================================
class TestPersistentPipeline:
    """Build in one session, deploy in later ones."""

    async def test_deploy_in_new_session_uses_stored_build(self, tmp_path, ctx) -> None:
        build_runner = MockToolRunner("mock-build")
        build_runner.queue_event("1440649959,amazon-ebs,artifact,0,id,us-east-1:ami-9d66def6")

        async with Shipwright(_file_config(tmp_path), build_runner=build_runner) as first:
            await _seed_infra(first)
            await first.build(ctx)

        deploy_runner = MockToolRunner("mock-deploy")
        async with Shipwright(_file_config(tmp_path), deploy_runner=deploy_runner) as second:
            deploy = await second.deploy(ctx)

        assert deploy_runner.call_history[0]["variables"]["ami"] == "ami-9d66def6"
        assert deploy_runner.call_history[0]["state_id"] == deploy.id

    async def test_state_handle_is_stable_across_sessions(self, tmp_path, ctx) -> None:
        build_runner = MockToolRunner("mock-build")
        build_runner.queue_event("1,amazon-ebs,artifact,0,id,us-east-1:ami-1")

        async with Shipwright(_file_config(tmp_path), build_runner=build_runner) as shipwright:
            await _seed_infra(shipwright)
            await shipwright.build(ctx)
            first = await shipwright.deploy(ctx)

        async with Shipwright(_file_config(tmp_path)) as shipwright:
            second = await shipwright.deploy(ctx)

        assert first.id == second.id

    async def test_multi_region_build_deploys_infra_region(self, tmp_path, ctx) -> None:
        build_runner = MockToolRunner("mock-build")
        build_runner.queue_event("1,amazon-ebs,artifact,0,id,us-east-1:ami-east")
        build_runner.queue_event("1,amazon-ebs,artifact,0,id,eu-west-1:ami-eu")
        deploy_runner = MockToolRunner("mock-deploy")

        async with Shipwright(
            _file_config(tmp_path), build_runner=build_runner, deploy_runner=deploy_runner,
        ) as shipwright:
            await _seed_infra(shipwright, region="eu-west-1")
            build = await shipwright.build(ctx)
            await shipwright.deploy(ctx)

        assert build.artifact == {"us-east-1": "ami-east", "eu-west-1": "ami-eu"}
        assert deploy_runner.call_history[0]["variables"]["ami"] == "ami-eu"

    async def test_region_changed_after_build(self, tmp_path, ctx) -> None:
        build_runner = MockToolRunner("mock-build")
        build_runner.queue_event("1,amazon-ebs,artifact,0,id,us-east-1:ami-east")

        async with Shipwright(_file_config(tmp_path), build_runner=build_runner) as shipwright:
            await _seed_infra(shipwright)
            await shipwright.build(ctx)
            await _seed_infra(shipwright, region="ap-south-1")

            with pytest.raises(NotFoundError) as exc_info:
                await shipwright.deploy(ctx)

        assert "ap-south-1" in exc_info.value.message


# =============================================================================
# Test: Real runners against fake binaries
# =============================================================================
@pytest.mark.skipif(sys.platform == "win32", reason="needs a POSIX shell")
class TestRealRunners:
    """PackerRunner and TerraformRunner wired from configuration."""

    @staticmethod
    def _script(path: Path, body: str) -> str:
        path.write_text("#!/bin/sh\n" + body)
        path.chmod(path.stat().st_mode | stat.S_IXUSR)
        return str(path)

    async def test_full_pipeline(self, tmp_path, ctx) -> None:
        bin_dir = tmp_path / "bin"
        bin_dir.mkdir()
        tf_log = tmp_path / "terraform.log"
        packer = self._script(
            bin_dir / "packer",
            'echo "1440649959,amazon-ebs,ui,say,Building%!(PACKER_COMMA) please wait"\n'
            'echo "1440649959,amazon-ebs,artifact,0,id,us-east-1:ami-9d66def6"\n',
        )
        terraform = self._script(bin_dir / "terraform", f'echo "$@" >> "{tf_log}"\n')
        (ctx.working_dir / "deploy").mkdir()

        config = _file_config(
            tmp_path,
            build_tool="packer",
            deploy_tool="terraform",
            packer_binary=packer,
            terraform_binary=terraform,
            state_dir=str(tmp_path / "state"),
        )

        async with Shipwright(config) as shipwright:
            await _seed_infra(shipwright)
            build = await shipwright.build(ctx)
            deploy = await shipwright.deploy(ctx)

        assert build.artifact == {"us-east-1": "ami-9d66def6"}
        init_args, apply_args = tf_log.read_text().splitlines()
        assert init_args == "init -input=false"
        assert f"-state={tmp_path / 'state' / (deploy.id + '.tfstate')}" in apply_args
        assert "ami=ami-9d66def6" in apply_args
