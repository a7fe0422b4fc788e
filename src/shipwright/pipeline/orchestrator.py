"""
shipwright.pipeline.orchestrator - Build and Deploy Workflows
===============================================================

The PipelineOrchestrator drives the two stages of the delivery pipeline.
Each run is strictly sequential; nothing is retried automatically.

Build:
    ┌──────────┐   ┌───────────┐   ┌─────────────────┐   ┌────────────┐
    │ get_infra│ → │ StageGate │ → │ build tool      │ → │ put_build  │
    └──────────┘   └───────────┘   │ + Artifact-     │   └────────────┘
                                   │   Collector     │
                                   └─────────────────┘

Deploy:
    ┌──────────┐   ┌───────────┐   ┌──────────┐   ┌──────────┐   ┌─────────────┐
    │ get_infra│ → │ StageGate │ → │ get_build│ → │reconcile │ → │ deploy tool │
    └──────────┘   └───────────┘   │ + region │   │ deploy ID│   │ (state_id)  │
                                   └──────────┘   └──────────┘   └─────────────┘

Error Semantics:
    PreconditionError   infra missing or not READY (nothing else happened)
    NotFoundError       no build, or no artifact for the infra's region
    ToolExecutionError  the tool failed; for builds nothing was stored
    PersistenceError    the tool succeeded but the record store write failed
"""

from __future__ import annotations

from pathlib import Path

import structlog

from shipwright.core.enums import PipelineStage
from shipwright.core.exceptions import (
    NotFoundError,
    PersistenceError,
    ToolExecutionError,
)
from shipwright.core.models import BuildRecord, DeployRecord, PipelineContext, ToolResult
from shipwright.infrastructure.record_store import RecordStore
from shipwright.integrations.tools.base import BaseToolRunner
from shipwright.pipeline.extractor import ArtifactCollector
from shipwright.pipeline.gate import require_infra_ready
from shipwright.pipeline.reconciler import DeployStateReconciler
from shipwright.pipeline.variables import resolve_variables


logger = structlog.get_logger()


class PipelineOrchestrator:
    """Runs the build and deploy workflows against a record store.

    Attributes:
        _store: Infrastructure/build/deploy records.
        _build_runner: Tool used by build() (normally Packer).
        _deploy_runner: Tool used by deploy() (normally Terraform).
        _deploy_subdir: Deploy configuration dir, relative to the working dir.
        _reconciler: Ensures a deploy state handle exists before deploying.

    Example:
        >>> orchestrator = PipelineOrchestrator(
        ...     store, build_runner=PackerRunner(), deploy_runner=TerraformRunner(),
        ... )
        >>> build = await orchestrator.build(ctx)
        >>> deploy = await orchestrator.deploy(ctx)
    """

    def __init__(
        self,
        store: RecordStore,
        *,
        build_runner: BaseToolRunner,
        deploy_runner: BaseToolRunner,
        deploy_subdir: str = "deploy",
    ) -> None:
        self._store = store
        self._build_runner = build_runner
        self._deploy_runner = deploy_runner
        self._deploy_subdir = deploy_subdir
        self._reconciler = DeployStateReconciler(store)
        self._logger = logger.bind(component="pipeline_orchestrator")

    @property
    def store(self) -> RecordStore:
        return self._store

    # =========================================================================
    # Build
    # =========================================================================

    async def build(self, ctx: PipelineContext) -> BuildRecord:
        """Build artifacts for the context's tuple and store the result.

        Returns:
            The stored BuildRecord.

        Raises:
            PreconditionError: Infrastructure is not ready.
            ToolExecutionError: The build tool failed. Nothing was stored.
            PersistenceError: The build succeeded but could not be stored.
        """
        log = self._logger.bind(tuple=ctx.app_tuple.key, stage="build")

        infra = require_infra_ready(
            await self._store.get_infra(ctx.infra_name), PipelineStage.BUILD,
        )
        variables = resolve_variables(infra.outputs, ctx.credentials)

        log.info("build_starting", infra=infra.name, region=variables["aws_region"])

        collector = ArtifactCollector()
        result = await self._build_runner.execute(
            ctx.working_dir, variables, on_event=collector,
        )
        if not result.success:
            raise self._tool_failure(result, PipelineStage.BUILD)

        build = BuildRecord.for_tuple(ctx.app_tuple, artifact=collector.snapshot())
        if not build.artifact:
            log.warning("build_produced_no_artifacts")

        try:
            await self._store.put_build(build)
        except Exception as exc:
            raise PersistenceError(
                message=(
                    f"Error storing the build in the record store: {exc}\n\n"
                    f"Despite the build itself completing successfully, the result\n"
                    f"must also be stored in the record store to be able to deploy\n"
                    f"this build. Please fix the above error and retry storing the\n"
                    f"build."
                ),
                record_type="build",
                error_code="BUILD_STORE_FAILED",
                details={"tuple": ctx.app_tuple.key, "artifact": build.artifact},
            ) from exc

        log.info("build_stored", artifacts=build.artifact)
        return build

    # =========================================================================
    # Deploy
    # =========================================================================

    async def deploy(self, ctx: PipelineContext) -> DeployRecord:
        """Deploy the stored build for the context's tuple.

        Returns:
            The DeployRecord whose ID was handed to the deploy tool.

        Raises:
            PreconditionError: Infrastructure is not ready.
            NotFoundError: No build, or no artifact for the infra's region.
            PersistenceError: A new deploy record could not be stored.
            ToolExecutionError: The deploy tool failed.
        """
        log = self._logger.bind(tuple=ctx.app_tuple.key, stage="deploy")

        infra = require_infra_ready(
            await self._store.get_infra(ctx.infra_name), PipelineStage.DEPLOY,
        )
        region = infra.outputs.get("region", "")

        build = await self._store.get_build(ctx.app_tuple)
        if build is None:
            raise NotFoundError(
                message=(
                    "This application hasn't been built yet. Please run build\n"
                    "first so that the deploy step has an artifact to deploy."
                ),
                resource="build",
                error_code="BUILD_NOT_FOUND",
                details={"tuple": ctx.app_tuple.key},
            )

        artifact_id = build.artifact.get(region)
        if artifact_id is None:
            raise NotFoundError(
                message=(
                    f"An artifact for the region '{region}' could not be found. "
                    f"Please run build and try again."
                ),
                resource="artifact",
                error_code="ARTIFACT_NOT_FOUND",
                details={
                    "tuple": ctx.app_tuple.key,
                    "region": region,
                    "available_regions": sorted(build.artifact),
                },
            )
        variables = resolve_variables(
            infra.outputs, ctx.credentials, {"ami": artifact_id},
        )

        deploy = await self._reconciler.reconcile(ctx.app_tuple)

        log.info(
            "deploy_starting",
            region=region,
            artifact_id=artifact_id,
            deploy_id=deploy.id,
        )

        result = await self._deploy_runner.execute(
            Path(ctx.working_dir) / self._deploy_subdir,
            variables,
            state_id=deploy.id,
        )
        if not result.success:
            raise self._tool_failure(result, PipelineStage.DEPLOY)

        log.info("deploy_finished", deploy_id=deploy.id)
        return deploy

    # =========================================================================
    # Helpers
    # =========================================================================

    def _tool_failure(self, result: ToolResult, stage: PipelineStage) -> ToolExecutionError:
        """Build the error for a tool that exited non-zero."""
        self._logger.error(
            f"{stage.value}_tool_failed",
            tool=result.tool,
            exit_code=result.exit_code,
        )
        if stage == PipelineStage.BUILD:
            hint = (
                "The build tool reported an error. Please read the output\n"
                "above, resolve the problem and run build again."
            )
        else:
            hint = (
                f"{result.tool} usually has helpful error messages. Please read the\n"
                "error messages above and resolve them. Sometimes simply running\n"
                "deploy again will work."
            )
        return ToolExecutionError(
            message=f"Error running {result.tool}: exit status {result.exit_code}\n\n{hint}",
            tool=result.tool,
            exit_code=result.exit_code,
            details={"stage": stage.value, "output_tail": result.tail()},
        )
