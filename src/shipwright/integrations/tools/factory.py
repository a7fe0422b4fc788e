"""
shipwright.integrations.tools.factory - Tool Runner Factory
=============================================================

Maps the tool names in ToolsConfig to concrete runners.

Usage:
    >>> from shipwright.integrations.tools import create_build_runner
    >>> runner = create_build_runner(ToolsConfig(build_tool="packer"))
    >>> type(runner)  # PackerRunner
"""

from __future__ import annotations

from shipwright.core.config import ToolsConfig
from shipwright.core.exceptions import ConfigurationError
from shipwright.integrations.tools.base import BaseToolRunner


def create_build_runner(config: ToolsConfig) -> BaseToolRunner:
    """Create the runner for the build stage.

    Mapping:
        - "packer" → PackerRunner
        - "mock"   → MockToolRunner

    Raises:
        ConfigurationError: If the tool name is not recognized.
    """
    tool_name = config.build_tool.lower()

    if tool_name == "packer":
        from shipwright.integrations.tools.packer import PackerRunner
        return PackerRunner(
            binary=config.packer_binary,
            template=config.build_template,
            timeout=config.timeout_seconds,
        )

    if tool_name == "mock":
        from shipwright.integrations.tools.mock import MockToolRunner
        return MockToolRunner("mock-build")

    raise ConfigurationError(
        message=(
            f"Unknown build tool: '{tool_name}'. "
            f"Available build tools: 'packer', 'mock'."
        ),
        error_code="UNKNOWN_TOOL",
        details={"stage": "build", "tool": tool_name},
    )


def create_deploy_runner(config: ToolsConfig) -> BaseToolRunner:
    """Create the runner for the deploy stage.

    Mapping:
        - "terraform" → TerraformRunner
        - "mock"      → MockToolRunner

    Raises:
        ConfigurationError: If the tool name is not recognized.
    """
    tool_name = config.deploy_tool.lower()

    if tool_name == "terraform":
        from shipwright.integrations.tools.terraform import TerraformRunner
        return TerraformRunner(
            binary=config.terraform_binary,
            state_dir=config.state_dir,
            timeout=config.timeout_seconds,
        )

    if tool_name == "mock":
        from shipwright.integrations.tools.mock import MockToolRunner
        return MockToolRunner("mock-deploy")

    raise ConfigurationError(
        message=(
            f"Unknown deploy tool: '{tool_name}'. "
            f"Available deploy tools: 'terraform', 'mock'."
        ),
        error_code="UNKNOWN_TOOL",
        details={"stage": "deploy", "tool": tool_name},
    )
