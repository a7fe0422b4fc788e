"""
shipwright.core.config - Configuration Management
===================================================

Configuration can be loaded from multiple sources with the following
priority (highest first):

    1. Explicit constructor arguments
    2. Environment variables (prefixed with SHIPWRIGHT_)
    3. YAML configuration file (shipwright.yaml)
    4. Default values defined in the models below

Architecture Context:
    ShipwrightConfig
        ├── ToolsConfig  → tool factory → PackerRunner / TerraformRunner
        ├── StoreConfig  → facade → InMemoryRecordStore / FileRecordStore
        └── log_level    → facade → structlog level filter

Usage:
    # Load from environment variables:
    config = ShipwrightConfig()

    # Load from YAML file:
    config = load_config("shipwright.yaml")

    # Explicit overrides:
    config = ShipwrightConfig(tools=ToolsConfig(build_tool="mock"))

Environment Variables:
    SHIPWRIGHT_LOG_LEVEL=DEBUG
    SHIPWRIGHT_TOOLS__PACKER_BINARY=/usr/local/bin/packer
    SHIPWRIGHT_TOOLS__STATE_DIR=/var/lib/shipwright/state
    SHIPWRIGHT_STORE__BACKEND=file
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Literal, Optional

import yaml
from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings

from shipwright.core.exceptions import ConfigurationError


# =============================================================================
# Tools Configuration
# =============================================================================
# Which external tools drive each stage and where to find them. "mock"
# selects MockToolRunner for tests and dry runs.
# =============================================================================
class ToolsConfig(BaseModel):
    """Configuration for the external build and deploy tools.

    Attributes:
        build_tool: Runner for the build stage ("packer" or "mock").
        deploy_tool: Runner for the deploy stage ("terraform" or "mock").
        packer_binary: Packer executable name or path.
        terraform_binary: Terraform executable name or path.
        build_template: Packer template, relative to the working directory.
        deploy_subdir: Terraform configuration dir, relative to the working directory.
        state_dir: Where Terraform state files are kept, one per state handle.
        timeout_seconds: Optional wall-clock limit per tool run. None waits
            for the tool to finish.
    """

    build_tool: str = Field(default="packer", description="Build runner name")
    deploy_tool: str = Field(default="terraform", description="Deploy runner name")
    packer_binary: str = Field(default="packer", description="Packer executable")
    terraform_binary: str = Field(default="terraform", description="Terraform executable")
    build_template: str = Field(
        default="build/template.json",
        description="Packer template path relative to the working directory",
    )
    deploy_subdir: str = Field(
        default="deploy",
        description="Terraform directory relative to the working directory",
    )
    state_dir: str = Field(
        default=".shipwright/state",
        description="Directory for Terraform state files keyed by state handle",
    )
    timeout_seconds: Optional[float] = Field(
        default=None,
        gt=0,
        description="Per-run tool timeout in seconds (None = no limit)",
    )


# =============================================================================
# Store Configuration
# =============================================================================
class StoreConfig(BaseModel):
    """Configuration for the record store backend.

    Attributes:
        backend: "memory" (lost on exit) or "file" (JSON documents on disk).
        path: Root directory for the file backend.
    """

    backend: Literal["memory", "file"] = Field(
        default="memory",
        description="Record store backend",
    )
    path: str = Field(
        default=".shipwright/records",
        description="Root directory for the file backend",
    )


# =============================================================================
# Main Configuration
# =============================================================================
# Environment Variable Mapping:
#   SHIPWRIGHT_LOG_LEVEL              → config.log_level
#   SHIPWRIGHT_TOOLS__BUILD_TOOL      → config.tools.build_tool
#   SHIPWRIGHT_STORE__PATH            → config.store.path
# =============================================================================
class ShipwrightConfig(BaseSettings):
    """Top-level configuration for Shipwright.

    Attributes:
        environment: Deployment environment of Shipwright itself.
        log_level: Logging level for the structlog filter.
        tools: External tool configuration (see ToolsConfig).
        store: Record store configuration (see StoreConfig).

    Example:
        >>> config = ShipwrightConfig(
        ...     log_level="DEBUG",
        ...     tools=ToolsConfig(build_tool="mock", deploy_tool="mock"),
        ... )
    """

    environment: Literal["dev", "staging", "prod"] = Field(
        default="dev",
        description="Deployment environment (affects defaults and verbosity)",
    )
    log_level: str = Field(
        default="INFO",
        description="Logging level: DEBUG, INFO, WARNING, ERROR, CRITICAL",
    )
    tools: ToolsConfig = Field(
        default_factory=ToolsConfig,
        description="External tool configuration",
    )
    store: StoreConfig = Field(
        default_factory=StoreConfig,
        description="Record store configuration",
    )

    model_config = {
        "env_prefix": "SHIPWRIGHT_",
        "env_nested_delimiter": "__",
        "case_sensitive": False,
    }


# =============================================================================
# Configuration Loader
# =============================================================================
def load_config(path: Optional[str] = None) -> ShipwrightConfig:
    """Load configuration from a YAML file and/or environment variables.

    Args:
        path: Path to a YAML configuration file. If None, looks for
            'shipwright.yaml' in the current directory and falls back to
            pure defaults + environment variables.

    Returns:
        A fully validated ShipwrightConfig instance.

    Raises:
        FileNotFoundError: If an explicit path is provided but doesn't exist.
        ConfigurationError: If the YAML file does not contain a mapping.
    """
    if path is None:
        default_path = Path("shipwright.yaml")
        if default_path.exists():
            path = str(default_path)

    yaml_data: dict[str, Any] = {}
    if path is not None:
        config_path = Path(path)
        if not config_path.exists():
            raise FileNotFoundError(
                f"Configuration file not found: {path}. "
                f"Create one or use SHIPWRIGHT_* environment variables."
            )

        with open(config_path) as f:
            raw_data = yaml.safe_load(f)

        if isinstance(raw_data, dict):
            yaml_data = raw_data
        elif raw_data is not None:
            raise ConfigurationError(
                message=f"Configuration file {path} must contain a mapping",
                details={"path": str(path), "type": type(raw_data).__name__},
            )

    return ShipwrightConfig(**yaml_data)


def get_default_config() -> ShipwrightConfig:
    """Create a ShipwrightConfig with all defaults (plus any set env vars)."""
    return ShipwrightConfig()
