"""Discovery configuration files."""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from refract.core.errors import ConfigError
from refract.core.schemas import validate_instance


@dataclass
class ReceiverSpec:
    """A receiver to load: ``target`` is ``package.module[:attribute]``."""

    target: str
    name: str = ""
    convention: str | None = None

    def to_dict(self) -> dict[str, Any]:
        d: dict[str, Any] = {"target": self.target}
        if self.name:
            d["name"] = self.name
        if self.convention:
            d["convention"] = self.convention
        return d

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> ReceiverSpec:
        return cls(target=d["target"], name=d.get("name", ""), convention=d.get("convention"))


@dataclass
class DiscoverConfig:
    """Everything needed to build a document without writing code.

    Attributes:
        title: ``info.title`` of the document.
        version: Base version; a build timestamp is appended.
        convention: Default convention for receivers that name none.
        duplicate_policy: ``"allow"``, ``"error"`` or ``"shadow"``.
        source_links: Top-level package to repository base URL.
    """

    receivers: list[ReceiverSpec] = field(default_factory=list)
    title: str = ""
    version: str = ""
    description: str | None = None
    convention: str = "standard"
    flatten: bool = False
    validate: bool = False
    duplicate_policy: str = "allow"
    source_links: dict[str, str] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "title": self.title,
            "version": self.version,
            "convention": self.convention,
            "flatten": self.flatten,
            "validate": self.validate,
            "duplicate_policy": self.duplicate_policy,
            "source_links": self.source_links,
            "receivers": [r.to_dict() for r in self.receivers],
        }
        if self.description is not None:
            payload["description"] = self.description
        return payload

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> DiscoverConfig:
        errors = validate_instance(d, "config")
        if errors:
            raise ConfigError("invalid discovery configuration:\n  " + "\n  ".join(errors))
        return cls(
            receivers=[ReceiverSpec.from_dict(r) for r in d["receivers"]],
            title=d.get("title", ""),
            version=d.get("version", ""),
            description=d.get("description"),
            convention=d.get("convention", "standard"),
            flatten=d.get("flatten", False),
            validate=d.get("validate", False),
            duplicate_policy=d.get("duplicate_policy", "allow"),
            source_links=d.get("source_links", {}),
        )


def load_config(path: str | Path) -> DiscoverConfig:
    """Read and validate a JSON configuration file."""
    try:
        with open(path, encoding="utf-8") as f:
            data = json.load(f)
    except json.JSONDecodeError as exc:
        raise ConfigError(f"Invalid JSON in {path}: {exc}") from exc
    except OSError as exc:
        raise ConfigError(f"Cannot read {path}: {exc}") from exc
    if not isinstance(data, dict):
        raise ConfigError(f"{path}: configuration must be a JSON object")
    return DiscoverConfig.from_dict(data)
