"""
shipwright.facade - Shipwright Top-Level Facade
=================================================

The single entry point that wires configuration, the record store and the
tool runners into a PipelineOrchestrator.

Architecture Context:
    ┌──────────────────────────────────────────────┐
    │              Shipwright (Facade)              │
    │                                               │
    │   ShipwrightConfig ──→ runners, store, logs   │
    │                                               │
    │   ┌───────────────────────────────────────┐   │
    │   │        PipelineOrchestrator            │   │
    │   │  gate → variables → tool → records     │   │
    │   └──────────────┬────────────────────────┘   │
    │          ┌───────┴────────┐                   │
    │   ┌──────▼─────┐   ┌──────▼────────────┐      │
    │   │RecordStore │   │ Packer/Terraform  │      │
    │   └────────────┘   └───────────────────┘      │
    └──────────────────────────────────────────────┘

Usage:
    >>> async with Shipwright(load_config()) as shipwright:
    ...     build = await shipwright.build(ctx)
    ...     deploy = await shipwright.deploy(ctx)
"""

from __future__ import annotations

import logging
from typing import Any, Optional

import structlog

from shipwright.core.config import ShipwrightConfig
from shipwright.core.exceptions import ConfigurationError
from shipwright.core.models import BuildRecord, DeployRecord, PipelineContext
from shipwright.infrastructure.record_store import (
    FileRecordStore,
    InMemoryRecordStore,
    RecordStore,
)
from shipwright.integrations.tools.base import BaseToolRunner
from shipwright.integrations.tools.factory import (
    create_build_runner,
    create_deploy_runner,
)
from shipwright.pipeline.orchestrator import PipelineOrchestrator


logger = structlog.get_logger()


def configure_logging(log_level: str) -> None:
    """Filter structlog output below `log_level`.

    Raises:
        ConfigurationError: If the level name is not a logging level.
    """
    level = logging.getLevelName(log_level.upper())
    if not isinstance(level, int):
        raise ConfigurationError(
            message=f"Unknown log level: '{log_level}'",
            error_code="INVALID_LOG_LEVEL",
            details={"log_level": log_level},
        )
    structlog.configure(wrapper_class=structlog.make_filtering_bound_logger(level))


def create_record_store(config: ShipwrightConfig) -> RecordStore:
    """Create the record store selected by `config.store.backend`."""
    if config.store.backend == "file":
        return FileRecordStore(config.store.path)
    return InMemoryRecordStore()


class Shipwright:
    """Top-level facade for the build/deploy pipeline.

    Lifecycle:
        1. ``Shipwright(config)``  - Instantiate with configuration
        2. ``await initialize()``  - Configure logging
        3. ``await build(ctx)`` / ``await deploy(ctx)``
        4. ``await shutdown()``

    Or use the async context manager.

    Any collaborator can be injected; the rest are built from config.
    """

    def __init__(
        self,
        config: Optional[ShipwrightConfig] = None,
        *,
        record_store: Optional[RecordStore] = None,
        build_runner: Optional[BaseToolRunner] = None,
        deploy_runner: Optional[BaseToolRunner] = None,
    ) -> None:
        self._config = config or ShipwrightConfig()

        self._record_store = record_store or create_record_store(self._config)
        self._build_runner = build_runner or create_build_runner(self._config.tools)
        self._deploy_runner = deploy_runner or create_deploy_runner(self._config.tools)

        self._orchestrator = PipelineOrchestrator(
            self._record_store,
            build_runner=self._build_runner,
            deploy_runner=self._deploy_runner,
            deploy_subdir=self._config.tools.deploy_subdir,
        )

        self._initialized = False
        self._logger = logger.bind(component="shipwright")

    # =========================================================================
    # Properties
    # =========================================================================

    @property
    def config(self) -> ShipwrightConfig:
        return self._config

    @property
    def record_store(self) -> RecordStore:
        return self._record_store

    @property
    def orchestrator(self) -> PipelineOrchestrator:
        return self._orchestrator

    @property
    def build_runner(self) -> BaseToolRunner:
        return self._build_runner

    @property
    def deploy_runner(self) -> BaseToolRunner:
        return self._deploy_runner

    @property
    def is_initialized(self) -> bool:
        return self._initialized

    # =========================================================================
    # Lifecycle Management
    # =========================================================================

    async def initialize(self) -> None:
        """Prepare for pipeline runs. Idempotent."""
        if self._initialized:
            self._logger.debug("shipwright_already_initialized")
            return

        configure_logging(self._config.log_level)
        self._initialized = True
        self._logger.info(
            "shipwright_initialized",
            environment=self._config.environment,
            build_tool=self._build_runner.name,
            deploy_tool=self._deploy_runner.name,
            store=type(self._record_store).__name__,
        )

    async def shutdown(self) -> None:
        """End the session. Idempotent."""
        if not self._initialized:
            self._logger.debug("shipwright_not_initialized_skipping_shutdown")
            return
        self._initialized = False
        self._logger.info("shipwright_shutdown_complete")

    async def __aenter__(self) -> Shipwright:
        await self.initialize()
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        await self.shutdown()

    # =========================================================================
    # Pipeline Stages
    # =========================================================================

    async def build(self, ctx: PipelineContext) -> BuildRecord:
        """Run the build stage. See PipelineOrchestrator.build()."""
        self._ensure_initialized()
        build = await self._orchestrator.build(ctx)
        self._logger.info(
            "build_success",
            tuple=ctx.app_tuple.key,
            message=(
                "The build was completed successfully and stored in the record "
                "store, so other members of your team don't need to rebuild "
                "this same version and can deploy it immediately."
            ),
        )
        return build

    async def deploy(self, ctx: PipelineContext) -> DeployRecord:
        """Run the deploy stage. See PipelineOrchestrator.deploy()."""
        self._ensure_initialized()
        return await self._orchestrator.deploy(ctx)

    # =========================================================================
    # Internal Helpers
    # =========================================================================

    def _ensure_initialized(self) -> None:
        if not self._initialized:
            raise RuntimeError(
                "Shipwright has not been initialized. "
                "Call await shipwright.initialize() or use "
                "'async with Shipwright() as shipwright:'"
            )

    def __repr__(self) -> str:
        return (
            f"Shipwright("
            f"initialized={self._initialized}, "
            f"build_tool={self._build_runner.name!r}, "
            f"deploy_tool={self._deploy_runner.name!r})"
        )
