"""
Shipwright - Build-and-Deploy Pipeline Orchestration
======================================================

Shipwright drives the two stages that follow infrastructure provisioning:

    Infra (external)  →  Build                →  Deploy
                         (Packer: artifacts)     (Terraform: state per tuple)

It gates each stage on infrastructure readiness, resolves tool variables
from infrastructure outputs and credentials, extracts artifact ids from
Packer's event stream, and keeps build/deploy records so that repeated
runs are idempotent and Terraform can resume from prior state.

Architecture Layers (top to bottom):
    1. Facade          - Shipwright (config-driven wiring)
    2. Pipeline        - PipelineOrchestrator, gate, variables, extractor, reconciler
    3. Infrastructure  - RecordStore implementations
    4. Integrations    - Packer / Terraform / mock tool runners

Quick Start:
    >>> from shipwright import Shipwright
    >>> async with Shipwright() as shipwright:
    ...     await shipwright.build(ctx)
    ...     await shipwright.deploy(ctx)
"""

__version__ = "0.1.0"

from shipwright.facade import Shipwright

__all__ = ["Shipwright", "__version__"]
