"""Key-level validation of a resource config.

Keys are checked on the flattened raw map, so nested values are addressed
with dotted paths: ``parameters.foo`` for mappings and ``parameters.#`` /
``parameters.0.foo`` for lists. A ``*`` segment in a declared key matches
any single segment.
"""

from collections.abc import Iterable
from dataclasses import dataclass, field
from typing import Any

from clc_exec.provisioner.types import ResourceConfig


def flatten(value: dict[str, Any], prefix: str = "") -> dict[str, Any]:
    """Flatten nested mappings and lists into dotted keys. None values are dropped."""
    flat: dict[str, Any] = {}
    for key, item in value.items():
        path = f"{prefix}{key}"
        if item is None:
            continue
        if isinstance(item, dict):
            flat.update(flatten(item, f"{path}."))
        elif isinstance(item, list | tuple):
            flat[f"{path}.#"] = len(item)
            flat.update(flatten({str(i): v for i, v in enumerate(item)}, f"{path}."))
        else:
            flat[path] = item
    return flat


def _matches(pattern: list[str], key: list[str]) -> bool:
    if len(key) < len(pattern):
        return False
    return all(p == "*" or p == k for p, k in zip(pattern, key, strict=False))


@dataclass
class Validator:
    """Declares required and optional keys of a resource config."""

    required: list[str] = field(default_factory=list)
    optional: list[str] = field(default_factory=list)

    def validate(self, config: ResourceConfig) -> tuple[list[str], list[str]]:
        """Check config against the declared keys.

        Returns:
            (warnings, errors), both lists of messages.
        """
        flat = flatten(config.raw)
        warnings: list[str] = []
        errors: list[str] = []
        matched: set[str] = set()

        for declared in self.required:
            hits = self._match(declared, flat)
            if not hits:
                errors.append(f"{declared}: required field is not set")
                continue
            matched.update(hits)
            if "*" not in declared and declared not in hits:
                errors.append(f"{declared}: required field must be a single value")
            elif declared in hits and flat[declared] == "":
                errors.append(f"{declared}: required field is empty")

        for declared in self.optional:
            hits = self._match(declared, flat)
            if "*" in declared:
                warnings.extend(self._coercion_warnings(hits, flat))
            matched.update(hits)

        for key in sorted(set(flat) - matched):
            errors.append(f"Unknown configuration: {key}")

        return warnings, errors

    @staticmethod
    def _match(declared: str, flat: dict[str, Any]) -> list[str]:
        pattern = declared.split(".")
        return [key for key in flat if _matches(pattern, key.split("."))]

    @staticmethod
    def _coercion_warnings(keys: Iterable[str], flat: dict[str, Any]) -> list[str]:
        return [
            f"{key}: value {flat[key]!r} will be converted to a string"
            for key in sorted(keys)
            if not key.endswith(".#") and not isinstance(flat[key], str)
        ]
