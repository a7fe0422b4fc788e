"""
Shared Test Fixtures for Shipwright
=====================================

Reusable pytest fixtures, organized by layer:

    1. Configuration
    2. Records and context
    3. Infrastructure (RecordStore)
    4. Tool runners (MockToolRunner)
    5. Pipeline (PipelineOrchestrator)
"""

from __future__ import annotations

import pytest

from shipwright.core.config import ShipwrightConfig, ToolsConfig
from shipwright.core.enums import InfraState
from shipwright.core.models import AppTuple, InfrastructureRecord, PipelineContext
from shipwright.infrastructure.record_store import InMemoryRecordStore
from shipwright.integrations.tools.mock import MockToolRunner
from shipwright.pipeline.orchestrator import PipelineOrchestrator


ARTIFACT_EVENT = "1440649959,amazon-ebs,artifact,0,id,us-east-1:ami-9d66def6"


# =============================================================================
# Configuration
# =============================================================================

@pytest.fixture
def config():
    """Shipwright configuration using mock tools."""
    return ShipwrightConfig(tools=ToolsConfig(build_tool="mock", deploy_tool="mock"))


# =============================================================================
# Records and Context
# =============================================================================

@pytest.fixture
def app_tuple():
    """The tuple used by most pipeline tests."""
    return AppTuple(app="api", infra="aws", infra_flavor="simple")


@pytest.fixture
def ready_infra():
    """A READY infrastructure record in us-east-1."""
    return InfrastructureRecord(
        name="aws-main",
        state=InfraState.READY,
        outputs={"region": "us-east-1"},
    )


@pytest.fixture
def ctx(app_tuple, tmp_path):
    """Pipeline context with credentials and a temp working directory."""
    return PipelineContext(
        app_tuple=app_tuple,
        infra_name="aws-main",
        working_dir=tmp_path,
        credentials={"aws_access_key": "AKIA-TEST", "aws_secret_key": "s3cr3t"},
    )


# =============================================================================
# Infrastructure
# =============================================================================

@pytest.fixture
def record_store():
    """Fresh, empty InMemoryRecordStore."""
    return InMemoryRecordStore()


@pytest.fixture
async def ready_store(record_store, ready_infra):
    """InMemoryRecordStore holding a READY infrastructure record."""
    await record_store.put_infra(ready_infra)
    return record_store


# =============================================================================
# Tool Runners
# =============================================================================

@pytest.fixture
def build_runner():
    """MockToolRunner for builds, emitting one us-east-1 artifact event."""
    runner = MockToolRunner("mock-build")
    runner.queue_event(ARTIFACT_EVENT)
    return runner


@pytest.fixture
def deploy_runner():
    """MockToolRunner for deploys."""
    return MockToolRunner("mock-deploy")


# =============================================================================
# Pipeline
# =============================================================================

@pytest.fixture
def orchestrator(ready_store, build_runner, deploy_runner):
    """PipelineOrchestrator over a READY store and mock tools."""
    return PipelineOrchestrator(
        ready_store,
        build_runner=build_runner,
        deploy_runner=deploy_runner,
    )
