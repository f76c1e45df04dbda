"""Error taxonomy for document builds.

Only :class:`IneligibleMethod` and :class:`AutogeneratedSkip` are swallowed
by the method assembler; every other error aborts the whole build.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any


class RefractError(Exception):
    """Base class for all refract errors."""


@dataclass(eq=False)
class DeclarationNotFound(RefractError):
    """No source declaration could be correlated with a callable."""

    qualname: str
    reason: str = "no matching declaration"
    synthetic: bool = False

    def __str__(self) -> str:
        return f"declaration not found for {self.qualname!r}: {self.reason}"


@dataclass(eq=False)
class UnsupportedType(RefractError):
    """A type cannot be reflected into a JSON schema."""

    type: Any
    reason: str

    def __str__(self) -> str:
        return f"unsupported type {self.type!r}: {self.reason}"


@dataclass(eq=False)
class IneligibleMethod(RefractError):
    """A convention rejected the callable."""

    name: str
    reason: str

    def __str__(self) -> str:
        return f"method {self.name!r} is ineligible: {self.reason}"


@dataclass(eq=False)
class AutogeneratedSkip(RefractError):
    """A callable is synthetic or reserved and is excluded without error."""

    name: str
    reason: str = "autogenerated"

    def __str__(self) -> str:
        return f"method {self.name!r} skipped: {self.reason}"


class MissingCollaborator(RefractError):
    """A required collaborator was not configured before discovery."""


@dataclass(eq=False)
class DuplicateMethodName(RefractError):
    """Two receivers produced the same method name."""

    name: str
    count: int = 2

    def __str__(self) -> str:
        return f"method name {self.name!r} registered {self.count} times"


@dataclass(eq=False)
class InvalidDocument(RefractError):
    """The built document failed schema validation."""

    errors: list[str] = field(default_factory=list)

    def __str__(self) -> str:
        head = "; ".join(self.errors[:3])
        more = f" (+{len(self.errors) - 3} more)" if len(self.errors) > 3 else ""
        return f"invalid OpenRPC document: {head}{more}"


class ConfigError(RefractError):
    """A discovery configuration could not be loaded."""
