"""
shipwright.core.exceptions - Custom Exception Hierarchy
=========================================================

Structured exceptions for the build/deploy pipeline. Each one carries an
error code and a `details` dict in addition to its message, and every
message tells the operator what to do next. Remediation differs per type,
which is why they are kept distinct:

Exception Hierarchy:
    ShipwrightError (base)
        ├── ConfigurationError   - Invalid config, unknown tool names
        ├── PreconditionError    - Infrastructure not ready → run infra first
        ├── NotFoundError        - Missing build / artifact → run build first
        ├── ToolExecutionError   - Packer/Terraform failed → fix and retry
        └── PersistenceError     - Record store write failed → retry the store

Nothing in this package retries automatically. Retries are operator-driven,
so the remediation text is the contract.

Usage:
    >>> from shipwright.core.exceptions import NotFoundError
    >>> raise NotFoundError(
    ...     message="An artifact for the region 'us-east-1' could not be found.",
    ...     resource="artifact",
    ...     error_code="ARTIFACT_NOT_FOUND",
    ...     details={"region": "us-east-1"},
    ... )
"""

from __future__ import annotations

from typing import Any, Optional


# =============================================================================
# Base Exception
# =============================================================================
# All Shipwright exceptions inherit from this base class, so callers can
# catch every pipeline failure with a single except clause:
#
#   try:
#       await shipwright.deploy(ctx)
#   except ShipwrightError as e:
#       logger.error(e.message, error_code=e.error_code, details=e.details)
# =============================================================================
class ShipwrightError(Exception):
    """Base exception for all Shipwright errors.

    Attributes:
        message: Human-readable error description with remediation text.
        error_code: Machine-readable error code (UPPER_SNAKE_CASE).
        details: Arbitrary dict with additional debugging context.
    """

    def __init__(
        self,
        message: str,
        error_code: str = "UNKNOWN_ERROR",
        details: Optional[dict[str, Any]] = None,
    ) -> None:
        super().__init__(message)

        self.message = message
        self.error_code = error_code
        self.details = details or {}

    def to_dict(self) -> dict[str, Any]:
        """Serialize this exception to a dictionary.

        Returns:
            Dictionary with error_type, message, error_code, and details.
        """
        return {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "error_code": self.error_code,
            "details": self.details,
        }

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__name__}("
            f"message={self.message!r}, "
            f"error_code={self.error_code!r}, "
            f"details={self.details!r})"
        )


# =============================================================================
# Configuration Error
# =============================================================================
class ConfigurationError(ShipwrightError):
    """Raised when Shipwright configuration is invalid.

    Typical causes: an unknown tool or store backend name, or a YAML config
    file that does not contain a mapping.
    """

    def __init__(
        self,
        message: str,
        error_code: str = "CONFIG_ERROR",
        details: Optional[dict[str, Any]] = None,
    ) -> None:
        super().__init__(message=message, error_code=error_code, details=details)


# =============================================================================
# Precondition Error
# =============================================================================
# Raised by the stage gate. The remedy is always the same: run the
# infrastructure stage, then re-run the stage that failed.
# =============================================================================
class PreconditionError(ShipwrightError):
    """Raised when upstream infrastructure is not ready for a stage.

    Attributes:
        stage: The pipeline stage that was refused ("build" or "deploy").

    Example:
        >>> raise PreconditionError(
        ...     message="Infrastructure for this application hasn't been built yet. ...",
        ...     stage="build",
        ...     details={"infra": "aws-east", "state": "pending"},
        ... )
    """

    def __init__(
        self,
        message: str,
        stage: str,
        error_code: str = "INFRA_NOT_READY",
        details: Optional[dict[str, Any]] = None,
    ) -> None:
        enriched_details = details or {}
        enriched_details["stage"] = stage

        super().__init__(message=message, error_code=error_code, details=enriched_details)

        self.stage = stage


# =============================================================================
# Not Found Error
# =============================================================================
class NotFoundError(ShipwrightError):
    """Raised when a deploy needs a record that does not exist.

    Attributes:
        resource: What was missing: "build" or "artifact".
    """

    def __init__(
        self,
        message: str,
        resource: str,
        error_code: str = "NOT_FOUND",
        details: Optional[dict[str, Any]] = None,
    ) -> None:
        enriched_details = details or {}
        enriched_details["resource"] = resource

        super().__init__(message=message, error_code=error_code, details=enriched_details)

        self.resource = resource


# =============================================================================
# Tool Execution Error
# =============================================================================
# Covers both "the tool ran and exited non-zero" and "the tool could not be
# started at all" (missing binary). The error_code tells them apart.
# =============================================================================
class ToolExecutionError(ShipwrightError):
    """Raised when an external build or deploy tool fails.

    Attributes:
        tool: Name of the tool ("packer", "terraform", ...).
        exit_code: Process exit code, or None if the tool never started.

    Example:
        >>> raise ToolExecutionError(
        ...     message="Error running Terraform: exit status 1 ...",
        ...     tool="terraform",
        ...     exit_code=1,
        ... )
    """

    def __init__(
        self,
        message: str,
        tool: str,
        exit_code: Optional[int] = None,
        error_code: str = "TOOL_FAILED",
        details: Optional[dict[str, Any]] = None,
    ) -> None:
        enriched_details = details or {}
        enriched_details["tool"] = tool
        if exit_code is not None:
            enriched_details["exit_code"] = exit_code

        super().__init__(message=message, error_code=error_code, details=enriched_details)

        self.tool = tool
        self.exit_code = exit_code


# =============================================================================
# Persistence Error
# =============================================================================
# A failed record store write. For builds this happens AFTER the artifact
# was produced, so the message must say the build itself succeeded: the
# operator should retry the store, not necessarily rebuild.
# =============================================================================
class PersistenceError(ShipwrightError):
    """Raised when a record store write fails.

    Attributes:
        record_type: Which record could not be stored ("build" or "deploy").
    """

    def __init__(
        self,
        message: str,
        record_type: str,
        error_code: str = "STORE_WRITE_FAILED",
        details: Optional[dict[str, Any]] = None,
    ) -> None:
        enriched_details = details or {}
        enriched_details["record_type"] = record_type

        super().__init__(message=message, error_code=error_code, details=enriched_details)

        self.record_type = record_type
