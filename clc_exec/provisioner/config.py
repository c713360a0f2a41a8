"""Decoding of the provisioner's resource config."""

import os
from collections.abc import Mapping
from dataclasses import replace
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from clc_exec.logging_config import get_logger
from clc_exec.provisioner.errors import ConfigDecodeError
from clc_exec.provisioner.types import ResourceConfig

logger = get_logger(__name__)

# Environment variable -> config key. Package fields have no env fallback.
ENV_OVERRIDES: dict[str, str] = {
    "CLC_USERNAME": "username",
    "CLC_PASSWORD": "password",
    "CLC_ACCOUNT": "account",
}


def _weak_str(value: Any) -> Any:
    if isinstance(value, bool):
        return "1" if value else "0"
    if isinstance(value, int | float):
        return str(value)
    return value


def merge_parameter_blocks(value: Any) -> dict[str, Any]:
    """Normalise parameters given as a mapping or a list of mappings.

    List entries are merged in order, later keys winning.

    Raises:
        ValueError: If value is neither a mapping nor a list of mappings.
    """
    if value is None:
        return {}
    if isinstance(value, Mapping):
        return dict(value)
    if isinstance(value, list | tuple):
        merged: dict[str, Any] = {}
        for item in value:
            if not isinstance(item, Mapping):
                raise ValueError("parameters list entries must be mappings")
            merged.update(item)
        return merged
    raise ValueError("parameters must be a mapping or a list of mappings")


class ProvisionerConfig(BaseModel):
    """Decoded provisioner configuration.

    Unknown keys are rejected. Scalars are weakly typed: numbers and booleans
    are accepted where strings are expected.
    """

    model_config = ConfigDict(extra="forbid", frozen=True)

    username: str = Field(..., min_length=1)
    password: str = Field(..., min_length=1, repr=False)
    account: str = Field(..., min_length=1)
    package: str = Field(..., min_length=1)
    parameters: dict[str, str] = Field(default_factory=dict)

    @field_validator("username", "password", "account", "package", mode="before")
    @classmethod
    def coerce_scalar(cls, v: Any) -> Any:
        return _weak_str(v)

    @field_validator("parameters", mode="before")
    @classmethod
    def coerce_parameters(cls, v: Any) -> Any:
        merged = merge_parameter_blocks(v)
        return {str(key): _weak_str(value) for key, value in merged.items()}


def merge_env_overrides(
    config: ResourceConfig, environ: Mapping[str, str] | None = None
) -> ResourceConfig:
    """Return a copy of config with credentials taken from the environment.

    Every non-empty CLC_USERNAME / CLC_PASSWORD / CLC_ACCOUNT value is set in
    both the raw and interpolated maps. The passed config is left untouched.
    """
    environ = os.environ if environ is None else environ

    overrides = {}
    for env, key in ENV_OVERRIDES.items():
        value = environ.get(env, "")
        if value:
            logger.debug("env_override_applied", env=env, key=key)
            overrides[key] = value

    if not overrides:
        return config

    return replace(
        config,
        raw={**config.raw, **overrides},
        config={**config.config, **overrides},
    )


def _format_validation_error(error: ValidationError) -> str:
    problems = []
    for err in error.errors():
        loc = ".".join(str(part) for part in err["loc"]) or "<root>"
        if err["type"] == "extra_forbidden":
            problems.append(f"{loc}: unknown configuration key")
        else:
            problems.append(f"{loc}: {err['msg']}")
    return f"{len(problems)} error(s) decoding provisioner config: " + "; ".join(problems)


def decode_config(
    config: ResourceConfig, environ: Mapping[str, str] | None = None
) -> ProvisionerConfig:
    """Merge env credentials and the raw/interpolated maps, then decode.

    Interpolated values win over raw ones.

    Raises:
        ConfigDecodeError: On missing, empty, unknown or mistyped keys.
    """
    merged = merge_env_overrides(config, environ)
    values = {**merged.raw, **merged.config}

    try:
        return ProvisionerConfig.model_validate(values)
    except ValidationError as e:
        raise ConfigDecodeError(_format_validation_error(e)) from e
