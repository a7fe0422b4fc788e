"""
shipwright.core.models - Core Data Models
===========================================

Pydantic models for the records the pipeline reads and writes, plus the
per-run context and tool result types.

Model Overview:
    AppTuple              → (app, infra, infra_flavor) lookup key
    InfrastructureRecord  → upstream infra state + outputs (read-only here)
    BuildRecord           → region → artifact id produced by a build
    DeployRecord          → durable state handle for the deploy tool
    PipelineContext       → everything one build/deploy run needs
    ToolResult            → outcome of one external tool invocation

Data Flow:
    ┌──────────────┐  InfrastructureRecord  ┌──────────────────────┐
    │ RecordStore  │ ─────────────────────→ │ PipelineOrchestrator │
    │              │ ←──── BuildRecord ──── │  (build)             │
    │              │ ── BuildRecord ──────→ │  (deploy)            │
    │              │ ←──── DeployRecord ─── │  via reconciler      │
    └──────────────┘                        └──────────────────────┘
"""

from __future__ import annotations

from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from shipwright.core.enums import DeployState, InfraState


# A flat string → string mapping handed to an external tool. Built fresh for
# every invocation and never persisted.
VariableSet = dict[str, str]


def _now() -> datetime:
    """Current UTC timestamp."""
    return datetime.now(timezone.utc)


# =============================================================================
# App Tuple
# =============================================================================
# The composite identity for build and deploy records. Frozen, so it hashes
# structurally and can be used directly as a dict key by record stores.
# =============================================================================
class AppTuple(BaseModel):
    """Composite identity of an application on an infrastructure.

    Attributes:
        app: Application name.
        infra: Infrastructure type (e.g., "aws").
        infra_flavor: Infrastructure flavor (e.g., "simple", "vpc-public-private").

    Example:
        >>> t = AppTuple(app="api", infra="aws", infra_flavor="simple")
        >>> t == AppTuple(app="api", infra="aws", infra_flavor="simple")
        True
        >>> t.key
        'api/aws/simple'
    """

    model_config = ConfigDict(frozen=True)

    app: str = Field(min_length=1, description="Application name")
    infra: str = Field(min_length=1, description="Infrastructure type")
    infra_flavor: str = Field(min_length=1, description="Infrastructure flavor")

    @property
    def key(self) -> str:
        """Stable string form, for stores that need string keys."""
        return f"{self.app}/{self.infra}/{self.infra_flavor}"

    def __str__(self) -> str:
        return self.key


# =============================================================================
# Infrastructure Record
# =============================================================================
class InfrastructureRecord(BaseModel):
    """State and outputs of a provisioned infrastructure.

    Created and advanced by the infrastructure stage. The pipeline only
    reads it: the state gates build/deploy, the outputs feed variables.

    Attributes:
        name: Infrastructure name (the lookup key).
        state: Provisioning state.
        outputs: Provisioner outputs, e.g. {"region": "us-east-1"}.
    """

    name: str = Field(description="Infrastructure name")
    state: InfraState = Field(default=InfraState.PENDING, description="Provisioning state")
    outputs: dict[str, str] = Field(
        default_factory=dict,
        description="Provisioner outputs (region, subnet ids, ...)",
    )


# =============================================================================
# Tuple-keyed records
# =============================================================================
# Build and deploy records carry the tuple fields inline so that they
# serialize flat. `app_tuple` rebuilds the AppTuple for lookups.
# =============================================================================
class _TupleRecord(BaseModel):
    app: str
    infra: str
    infra_flavor: str

    @property
    def app_tuple(self) -> AppTuple:
        return AppTuple(app=self.app, infra=self.infra, infra_flavor=self.infra_flavor)


class BuildRecord(_TupleRecord):
    """Result of a successful build for one tuple.

    Only one artifact per region is tracked. A later successful build for
    the same tuple overwrites the whole record.

    Attributes:
        artifact: Region → artifact id (e.g., {"us-east-1": "ami-9d66def6"}).
        created_at: When the build was stored (UTC).
    """

    artifact: dict[str, str] = Field(
        default_factory=dict,
        description="Region to artifact identifier",
    )
    created_at: datetime = Field(default_factory=_now)

    @classmethod
    def for_tuple(cls, app_tuple: AppTuple, **kwargs) -> "BuildRecord":
        return cls(
            app=app_tuple.app,
            infra=app_tuple.infra,
            infra_flavor=app_tuple.infra_flavor,
            **kwargs,
        )


class DeployRecord(_TupleRecord):
    """Durable state handle for the deploy tool.

    The record store assigns `id` on first write. From then on every deploy
    of the same tuple must reuse it, because the deploy tool keys its own
    state on it.

    Attributes:
        id: Opaque state handle, None until first stored.
        state: Deploy state. This package only ever writes NEW.
    """

    id: Optional[str] = Field(default=None, description="State handle assigned by the store")
    state: DeployState = Field(default=DeployState.NEW)

    @classmethod
    def for_tuple(cls, app_tuple: AppTuple, **kwargs) -> "DeployRecord":
        return cls(
            app=app_tuple.app,
            infra=app_tuple.infra,
            infra_flavor=app_tuple.infra_flavor,
            **kwargs,
        )


# =============================================================================
# Pipeline Context
# =============================================================================
# Replaces the host plugin context: an explicit bundle of inputs for one run.
# =============================================================================
class PipelineContext(BaseModel):
    """Inputs for a single build or deploy run.

    Attributes:
        app_tuple: Which app/infra/flavor records to read and write.
        infra_name: Name of the active infrastructure (InfrastructureRecord key).
        working_dir: Directory holding the compiled tool configuration
            (build/template.json, deploy/*.tf).
        credentials: Infrastructure credentials (aws_access_key, aws_secret_key).
    """

    model_config = ConfigDict(frozen=True)

    app_tuple: AppTuple
    infra_name: str = Field(min_length=1)
    working_dir: Path
    credentials: dict[str, str] = Field(default_factory=dict, repr=False)


# =============================================================================
# Tool Result
# =============================================================================
class ToolResult(BaseModel):
    """Outcome of one external tool invocation.

    Attributes:
        tool: Tool name ("packer", "terraform", "mock").
        command: The argv that was run (secrets included, never log it raw).
        exit_code: Process exit code.
        output: Raw output lines, kept for error reporting.
    """

    tool: str
    command: list[str] = Field(default_factory=list, repr=False)
    exit_code: int = 0
    output: list[str] = Field(default_factory=list)

    @property
    def success(self) -> bool:
        return self.exit_code == 0

    def tail(self, lines: int = 20) -> str:
        """Last `lines` lines of output, for error messages."""
        return "\n".join(self.output[-lines:])
