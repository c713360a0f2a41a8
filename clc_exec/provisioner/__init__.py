from .config import (
    ENV_OVERRIDES,
    ProvisionerConfig,
    decode_config,
    merge_env_overrides,
    merge_parameter_blocks,
)
from .errors import (
    AuthenticationError,
    ClientConfigError,
    ConfigDecodeError,
    JobFailedError,
    PackageExecutionError,
    ProvisionerError,
    StatusExtractionError,
    StatusPollError,
    StatusTimeoutError,
)
from .runner import ResourceProvisioner, build_validator, wait_status
from .types import InstanceState, ResourceConfig, UIOutput
from .validator import Validator

__all__ = [
    "ENV_OVERRIDES",
    "AuthenticationError",
    "ClientConfigError",
    "ConfigDecodeError",
    "InstanceState",
    "JobFailedError",
    "PackageExecutionError",
    "ProvisionerConfig",
    "ProvisionerError",
    "ResourceConfig",
    "ResourceProvisioner",
    "StatusExtractionError",
    "StatusPollError",
    "StatusTimeoutError",
    "UIOutput",
    "Validator",
    "build_validator",
    "decode_config",
    "merge_env_overrides",
    "merge_parameter_blocks",
    "wait_status",
]
