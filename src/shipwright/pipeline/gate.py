"""
shipwright.pipeline.gate - Infrastructure Readiness Gate
==========================================================

Build and deploy both depend on the target infrastructure: its final
properties (region, networking) feed the tool variables. Neither stage may
start until the infrastructure stage has finished.
"""

from __future__ import annotations

from typing import Optional

from shipwright.core.enums import InfraState, PipelineStage
from shipwright.core.exceptions import PreconditionError
from shipwright.core.models import InfrastructureRecord


def require_infra_ready(
    infra: Optional[InfrastructureRecord],
    stage: PipelineStage,
) -> InfrastructureRecord:
    """Check that infrastructure exists and is READY.

    Args:
        infra: The infrastructure record, or None if it was never created.
        stage: The stage about to run, used in the remediation text.

    Returns:
        The same record, for chaining.

    Raises:
        PreconditionError: If the record is missing or not READY.
    """
    if infra is not None and infra.state == InfraState.READY:
        return infra

    raise PreconditionError(
        message=(
            f"Infrastructure for this application hasn't been built yet.\n"
            f"The {stage.value} step requires this because the target infrastructure\n"
            f"as well as its final properties can affect the {stage.value} process.\n"
            f"Please run the infra stage to build the underlying infrastructure,\n"
            f"then run {stage.value} again."
        ),
        stage=stage.value,
        details={
            "infra": infra.name if infra is not None else None,
            "state": infra.state.value if infra is not None else None,
        },
    )
