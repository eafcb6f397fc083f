"""
Databuilder exception hierarchy.

All domain-specific exceptions inherit from DataBuilderError, making it easy
to catch any framework error with a single base class while still allowing
fine-grained handling when needed.

Hierarchy::

    DataBuilderError
    ├── ConfigurationError        - config / flow file loading, parsing
    ├── FrameworkError            - the single typed failure of a run (see ErrorCode)
    ├── BuilderError              - raised by builders, carries a payload
    │   └── DataValidationError   - builder rejected its inputs
    └── BuilderNotFoundError      - name not present in a builder registry
"""

from __future__ import annotations

from enum import StrEnum
from typing import Any


class DataBuilderError(Exception):
    """Base exception for all databuilder errors."""

    def __init__(self, message: str, *, details: dict[str, Any] | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details or {}


# --- Configuration -----------------------------------------------------------


class ConfigurationError(DataBuilderError):
    """Raised when configuration or flow file loading, parsing, or validation fails."""


# --- Run failures ------------------------------------------------------------


class ErrorCode(StrEnum):
    """Phase of a run that failed."""

    NO_FACTORY_FOR_DATA_BUILDER = "NO_FACTORY_FOR_DATA_BUILDER"
    PRE_PROCESSING_ERROR = "PRE_PROCESSING_ERROR"
    BUILDER_EXECUTION_ERROR = "BUILDER_EXECUTION_ERROR"


class FrameworkError(DataBuilderError):
    """Raised when a flow run fails.

    ``error_code`` identifies the failing phase. For builder failures,
    ``builder_name`` names the builder and ``details`` holds the payload the
    builder attached (or ``{"MESSAGE": ...}`` for unexpected exceptions).
    """

    def __init__(
        self,
        error_code: ErrorCode,
        message: str,
        *,
        details: dict[str, Any] | None = None,
        builder_name: str | None = None,
        cause: BaseException | None = None,
    ) -> None:
        super().__init__(message, details=details)
        self.error_code = error_code
        self.builder_name = builder_name
        if cause is not None:
            self.__cause__ = cause

    def __str__(self) -> str:
        return f"[{self.error_code}] {self.message}"


# --- Builders ----------------------------------------------------------------


class BuilderError(DataBuilderError):
    """Raised by a builder to report an expected failure with a structured payload."""


class DataValidationError(BuilderError):
    """Raised by a builder when its inputs are present but invalid."""


class BuilderNotFoundError(DataBuilderError):
    """Raised when a builder name is not registered."""

    def __init__(self, name: str) -> None:
        super().__init__(f"Builder not found: {name}", details={"builder": name})
        self.builder_name = name
