"""Types exchanged with the host that runs the provisioner."""

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any, Protocol


class UIOutput(Protocol):
    """Sink for human-readable progress messages."""

    def output(self, message: str) -> None: ...


@dataclass(frozen=True)
class InstanceState:
    """Existing state of the resource being provisioned."""

    id: str


@dataclass(frozen=True)
class ResourceConfig:
    """Provisioner configuration as supplied by the host.

    ``raw`` holds values as written, ``config`` holds the interpolated values.
    """

    raw: dict[str, Any] = field(default_factory=dict)
    config: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "ResourceConfig":
        return cls(raw=dict(data), config=dict(data))
