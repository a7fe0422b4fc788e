"""
shipwright.pipeline.variables - Tool Variable Resolution
==========================================================

Builds the flat variable set handed to Packer and Terraform.
"""

from __future__ import annotations

from typing import Mapping, Optional

from shipwright.core.models import VariableSet


# Credential keys looked up in the infrastructure credentials mapping.
ACCESS_KEY = "aws_access_key"
SECRET_KEY = "aws_secret_key"


def resolve_variables(
    outputs: Mapping[str, str],
    credentials: Mapping[str, str],
    extras: Optional[Mapping[str, str]] = None,
) -> VariableSet:
    """Build the variable set for one tool invocation.

    Missing outputs or credentials become empty strings. Checking that
    credentials are present is the credential store's job; the tool will
    report a clear error if they are wrong.

    Args:
        outputs: Infrastructure outputs (needs "region").
        credentials: Infrastructure credentials.
        extras: Stage-specific additions, e.g. {"ami": "ami-9d66def6"}.
            These win over the base variables on key collisions.

    Returns:
        A new dict; none of the inputs are modified.

    Example:
        >>> resolve_variables({"region": "us-east-1"}, {"aws_access_key": "AK"})
        {'aws_region': 'us-east-1', 'aws_access_key': 'AK', 'aws_secret_key': ''}
    """
    variables: VariableSet = {
        "aws_region": outputs.get("region", ""),
        ACCESS_KEY: credentials.get(ACCESS_KEY, ""),
        SECRET_KEY: credentials.get(SECRET_KEY, ""),
    }
    if extras:
        variables.update(extras)
    return variables
