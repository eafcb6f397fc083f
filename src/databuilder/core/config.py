"""
Executor settings read from the ``executor:`` section of the project config.
"""

from dataclasses import dataclass
from typing import Any

from databuilder.exceptions import ConfigurationError


@dataclass
class ExecutorConfig:
    """Configuration for executor construction."""

    log_executions: bool = True
    metrics_enabled: bool = False
    correlation_ids: bool = True

    @classmethod
    def from_dict(cls, data: dict[str, Any] | None) -> "ExecutorConfig":
        """
        Build from an ``executor`` mapping; unknown keys are rejected.

        Raises:
            ConfigurationError: On unknown keys or non-boolean values
        """
        data = data or {}
        known = {"log_executions", "metrics_enabled", "correlation_ids"}
        unknown = set(data) - known
        if unknown:
            raise ConfigurationError(
                f"Unknown executor option(s): {', '.join(sorted(unknown))}",
                details={"unknown": sorted(unknown)},
            )
        for key, value in data.items():
            if not isinstance(value, bool):
                raise ConfigurationError(
                    f"Executor option '{key}' must be true or false, got {value!r}",
                    details={"option": key},
                )
        return cls(**data)
