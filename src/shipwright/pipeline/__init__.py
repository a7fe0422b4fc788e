"""
shipwright.pipeline - Build/Deploy Orchestration
==================================================

    - gate:          require_infra_ready (StageGate)
    - variables:     resolve_variables (VariableResolver)
    - extractor:     extract_artifact, ArtifactCollector (ArtifactExtractor)
    - reconciler:    DeployStateReconciler
    - orchestrator:  PipelineOrchestrator (build, deploy)
"""

from shipwright.pipeline.extractor import ArtifactCollector, extract_artifact
from shipwright.pipeline.gate import require_infra_ready
from shipwright.pipeline.orchestrator import PipelineOrchestrator
from shipwright.pipeline.reconciler import DeployStateReconciler
from shipwright.pipeline.variables import resolve_variables

__all__ = [
    "ArtifactCollector",
    "extract_artifact",
    "require_infra_ready",
    "resolve_variables",
    "DeployStateReconciler",
    "PipelineOrchestrator",
]
