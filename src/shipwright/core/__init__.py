"""
shipwright.core - Foundation Layer
====================================

Plain data structures and configuration shared by every other package:

    - config:      ShipwrightConfig, ToolsConfig, StoreConfig, load_config
    - enums:       InfraState, DeployState, PipelineStage
    - models:      AppTuple, records, PipelineContext, ToolResult
    - exceptions:  ShipwrightError hierarchy

Dependency Rule:
    core/ depends on NOTHING else in the shipwright package.
"""

from shipwright.core.config import ShipwrightConfig, StoreConfig, ToolsConfig
from shipwright.core.enums import DeployState, InfraState, PipelineStage
from shipwright.core.exceptions import (
    ConfigurationError,
    NotFoundError,
    PersistenceError,
    PreconditionError,
    ShipwrightError,
    ToolExecutionError,
)
from shipwright.core.models import (
    AppTuple,
    BuildRecord,
    DeployRecord,
    InfrastructureRecord,
    PipelineContext,
    ToolResult,
    VariableSet,
)

__all__ = [
    # Config
    "ShipwrightConfig",
    "ToolsConfig",
    "StoreConfig",
    # Enums
    "InfraState",
    "DeployState",
    "PipelineStage",
    # Models
    "AppTuple",
    "InfrastructureRecord",
    "BuildRecord",
    "DeployRecord",
    "PipelineContext",
    "ToolResult",
    "VariableSet",
    # Exceptions
    "ShipwrightError",
    "ConfigurationError",
    "PreconditionError",
    "NotFoundError",
    "ToolExecutionError",
    "PersistenceError",
]
