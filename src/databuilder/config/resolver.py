"""
Configuration value resolution.

Strings may reference environment variables as ``${VAR}`` or
``${VAR:-default}`` and the current environment name as ``{env}``.
"""

import os
import re
from typing import Any

from databuilder.exceptions import ConfigurationError

_ENV_VAR = re.compile(r"\$\{([A-Za-z_][A-Za-z0-9_]*)(?::-([^}]*))?\}")


def resolve_config(config_data: dict[str, Any], env: str = "dev", *, strict: bool = False) -> dict[str, Any]:
    """
    Resolve placeholders throughout a configuration mapping.

    Args:
        config_data: Configuration dictionary
        env: Current environment name, substituted for ``{env}``
        strict: Raise instead of leaving unset variables without default as is

    Returns:
        Resolved copy of the configuration

    Raises:
        ConfigurationError: In strict mode, when a referenced variable is unset
    """
    return _resolve_value(config_data, env, strict)


def _resolve_value(value: Any, env: str, strict: bool) -> Any:
    if isinstance(value, dict):
        return {k: _resolve_value(v, env, strict) for k, v in value.items()}
    if isinstance(value, list):
        return [_resolve_value(item, env, strict) for item in value]
    if isinstance(value, str):
        return _resolve_string(value, env, strict)
    return value


def _resolve_string(value: str, env: str, strict: bool) -> str:
    def replace_var(match: re.Match[str]) -> str:
        name, default = match.group(1), match.group(2)
        resolved = os.getenv(name)
        if resolved is not None:
            return resolved
        if default is not None:
            return default
        if strict:
            raise ConfigurationError(
                f"Environment variable '{name}' is not set", details={"variable": name}
            )
        return match.group(0)

    return _ENV_VAR.sub(replace_var, value).replace("{env}", env)
