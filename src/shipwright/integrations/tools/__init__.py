"""
shipwright.integrations.tools - External Tool Runners
=======================================================

Wrappers around the build and deploy tools:

    - BaseToolRunner:   Abstract interface
    - PackerRunner:     Build stage (packer build -machine-readable)
    - TerraformRunner:  Deploy stage (terraform apply, state per handle)
    - MockToolRunner:   Scripted runner for tests and dry runs
    - create_build_runner / create_deploy_runner: config → runner
"""

from shipwright.integrations.tools.base import BaseToolRunner, EventCallback
from shipwright.integrations.tools.factory import (
    create_build_runner,
    create_deploy_runner,
)
from shipwright.integrations.tools.machine_readable import parse_event_line
from shipwright.integrations.tools.mock import MockToolRunner
from shipwright.integrations.tools.packer import PackerRunner
from shipwright.integrations.tools.terraform import TerraformRunner

__all__ = [
    "BaseToolRunner",
    "EventCallback",
    "PackerRunner",
    "TerraformRunner",
    "MockToolRunner",
    "create_build_runner",
    "create_deploy_runner",
    "parse_event_line",
]
