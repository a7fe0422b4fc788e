"""
Build and Deploy Example: One Tuple, Both Stages
===================================================

This example runs the whole pipeline for a single application tuple
using mock tool runners, so it works without Packer or Terraform
installed:

    1. Mark the infrastructure as ready (normally the infra stage does this)
    2. Build: the mock build tool reports an artifact for us-east-1
    3. Deploy: the artifact for the infra's region is handed to the deploy tool
    4. Deploy again: the same state handle is reused

Usage:
    python examples/build_and_deploy.py
"""

from __future__ import annotations

import asyncio
import tempfile
from pathlib import Path

from shipwright.core.config import ShipwrightConfig, ToolsConfig
from shipwright.core.enums import InfraState
from shipwright.core.models import AppTuple, InfrastructureRecord, PipelineContext
from shipwright.facade import Shipwright
from shipwright.integrations.tools.mock import MockToolRunner


async def main() -> None:
    """Build, deploy twice and print what each stage did."""
    config = ShipwrightConfig(tools=ToolsConfig(build_tool="mock", deploy_tool="mock"))

    # Script the build tool's machine-readable output
    build_runner = MockToolRunner("mock-build")
    build_runner.queue_event("1440649959,amazon-ebs,ui,say,Creating the AMI...")
    build_runner.queue_event("1440649959,amazon-ebs,artifact,0,id,us-east-1:ami-9d66def6")
    deploy_runner = MockToolRunner("mock-deploy")

    with tempfile.TemporaryDirectory() as working_dir:
        ctx = PipelineContext(
            app_tuple=AppTuple(app="api", infra="aws", infra_flavor="simple"),
            infra_name="aws-main",
            working_dir=Path(working_dir),
            credentials={"aws_access_key": "AKIA-EXAMPLE", "aws_secret_key": "example"},
        )

        async with Shipwright(
            config, build_runner=build_runner, deploy_runner=deploy_runner,
        ) as shipwright:
            await shipwright.record_store.put_infra(
                InfrastructureRecord(
                    name="aws-main",
                    state=InfraState.READY,
                    outputs={"region": "us-east-1"},
                )
            )

            build = await shipwright.build(ctx)
            first = await shipwright.deploy(ctx)
            second = await shipwright.deploy(ctx)

    print("Build and Deploy")
    print("-" * 40)
    print(f"Tuple      : {ctx.app_tuple}")
    print(f"Artifacts  : {build.artifact}")
    print(f"Deploy ID  : {first.id}")
    print(f"Reused ID  : {second.id == first.id}")
    print(f"Deploy vars: {sorted(deploy_runner.call_history[0]['variables'])}")


if __name__ == "__main__":
    asyncio.run(main())
