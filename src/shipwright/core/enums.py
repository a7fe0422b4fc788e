"""
shipwright.core.enums - Type-Safe Enumerations
================================================

Closed enumerations for every state field that flows through Shipwright.
Record states used to be free-form strings in the directory service; here
they are enums so an invalid state cannot be constructed.

All enums inherit from both `str` and `Enum`, which means:
    - They serialize to strings in JSON/YAML (Pydantic-friendly)
    - They can be compared with plain strings: InfraState.READY == "ready"

State Ownership:
    ┌──────────────────────────────────────────────────────────────┐
    │  InfraState   → owned by the infrastructure provisioner       │
    │  DeployState  → NEW written here, the rest by the deploy tool │
    │  PipelineStage → which half of the pipeline is running        │
    └──────────────────────────────────────────────────────────────┘
"""

from enum import Enum


# =============================================================================
# Infrastructure State
# =============================================================================
# Written by the external infrastructure stage. Build and deploy only ever
# read it, and only READY lets them proceed (see pipeline/gate.py).
# =============================================================================
class InfraState(str, Enum):
    """Lifecycle states of an infrastructure record.

    State Transitions (owned by the provisioner):
        PENDING → PARTIAL → READY
        Any     → FAILED

    Usage:
        >>> record.state == InfraState.READY
    """

    PENDING = "pending"     # Infrastructure requested but not created yet
    PARTIAL = "partial"     # Provisioning started but did not finish
    READY = "ready"         # Fully provisioned, outputs are valid
    FAILED = "failed"       # Provisioning failed


# =============================================================================
# Deploy State
# =============================================================================
# The reconciler writes NEW so that a durable state handle exists before the
# deploy tool runs. Anything past NEW belongs to the deploy tool.
# =============================================================================
class DeployState(str, Enum):
    """Lifecycle states of a deploy record.

    State Transitions:
        (none) → NEW:      DeployStateReconciler creates the record
        NEW → SUCCESS:     Deploy tool reports success (external)
        NEW → FAILED:      Deploy tool reports failure (external)
    """

    NEW = "new"             # Placeholder holding the state handle
    SUCCESS = "success"     # Last deploy completed
    FAILED = "failed"       # Last deploy failed


# =============================================================================
# Pipeline Stage
# =============================================================================
class PipelineStage(str, Enum):
    """The two stages this package drives.

    Used in error messages ("run `infra`, then run `build` again") and as
    structured logging context.
    """

    BUILD = "build"
    DEPLOY = "deploy"
