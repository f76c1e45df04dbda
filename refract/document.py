"""Document aggregation.

A :class:`Document` collects service receivers and listeners and turns
them into an :class:`~refract.core.model.OpenRPCDocument` on each call to
:meth:`Document.discover`.  Nothing derived is cached between builds.

Usage::

    doc = Document(Meta(title="calc", version="1.0"), StandardConvention())
    doc.register_receiver(Calculator())
    openrpc = doc.discover()
"""

from __future__ import annotations

import dataclasses
import datetime as _dt
import logging
from collections import Counter
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable

from refract.conventions.base import Convention
from refract.core.declarations import DeclarationResolver
from refract.core.errors import DuplicateMethodName, InvalidDocument, MissingCollaborator
from refract.core.flatten import flatten_schemas
from refract.core.model import Method, OpenRPCDocument
from refract.core.schemas import validate_document
from refract.meta import MetaRegisterer

logger = logging.getLogger("refract.document")

Clock = Callable[[], _dt.datetime]


class DuplicatePolicy(str, Enum):
    """What to do when two receivers produce the same method name."""

    ALLOW = "allow"
    ERROR = "error"
    SHADOW = "shadow"


@dataclass(frozen=True)
class Registration:
    name: str
    receiver: Any
    convention: Convention | None = None


def _utcnow() -> _dt.datetime:
    return _dt.datetime.now(_dt.timezone.utc)


def stamp_version(base: str, when: _dt.datetime) -> str:
    """``base+YYYYmmddHHMMSS`` in UTC, or an RFC 3339 timestamp without a base."""
    when = when.astimezone(_dt.timezone.utc)
    if not base:
        return when.replace(microsecond=0).isoformat().replace("+00:00", "Z")
    return f"{base}+{when.strftime('%Y%m%d%H%M%S')}"


class Document:
    """Registry of receivers that builds OpenRPC documents on demand."""

    def __init__(
        self,
        meta: MetaRegisterer | None = None,
        convention: Convention | None = None,
        *,
        duplicate_policy: DuplicatePolicy | str = DuplicatePolicy.ALLOW,
        flatten: bool = False,
        validate: bool = False,
        clock: Clock | None = None,
    ) -> None:
        self.meta = meta
        self.convention = convention
        self.duplicate_policy = DuplicatePolicy(duplicate_policy)
        self.flatten = flatten
        self.validate = validate
        self.clock = clock or _utcnow
        self.receivers: list[Registration] = []
        self.listeners: list[Any] = []

    def with_meta(self, meta: MetaRegisterer) -> Document:
        self.meta = meta
        return self

    def with_convention(self, convention: Convention) -> Document:
        """Default convention for receivers registered without one."""
        self.convention = convention
        return self

    def register_receiver(self, receiver: Any, name: str = "", convention: Convention | None = None) -> None:
        """Register *receiver*; *name* replaces its type name in method names."""
        self.receivers.append(Registration(name, receiver, convention))

    def register_listener(self, listener: Any) -> None:
        self.listeners.append(listener)

    # ------------------------------------------------------------------

    def discover(self) -> OpenRPCDocument:
        """Build the document from every registered receiver.

        Raises:
            MissingCollaborator: no meta, or a receiver without a convention.
            DuplicateMethodName: with :attr:`DuplicatePolicy.ERROR`.
            InvalidDocument: validation was requested and failed.
        """
        if self.meta is None:
            raise MissingCollaborator("meta: missing interface")

        info = dataclasses.replace(self.meta.info())
        info.version = stamp_version(info.version, self.clock())
        document = OpenRPCDocument(
            info=info,
            servers=self.meta.servers(self.listeners),
            external_docs=self.meta.external_docs(),
        )

        resolver = DeclarationResolver()
        methods: list[Method] = []
        for registration in self.receivers:
            convention = registration.convention or self.convention
            if convention is None:
                raise MissingCollaborator(
                    f"no convention for receiver {registration.name or type(registration.receiver).__name__!r}"
                )
            methods.extend(convention.receiver_methods(registration.receiver, registration.name, resolver))

        methods.sort(key=lambda m: m.name)
        document.methods = self._apply_duplicate_policy(methods)

        if self.flatten:
            flatten_schemas(document)
        if self.validate:
            errors = validate_document(document.to_dict())
            if errors:
                raise InvalidDocument(errors)

        logger.info(
            "Discovered %d methods from %d receivers",
            len(document.methods),
            len(self.receivers),
        )
        return document

    def _apply_duplicate_policy(self, methods: list[Method]) -> list[Method]:
        counts = Counter(m.name for m in methods)
        duplicates = sorted(name for name, n in counts.items() if n > 1)
        if not duplicates:
            return methods
        if self.duplicate_policy is DuplicatePolicy.ERROR:
            raise DuplicateMethodName(duplicates[0], counts[duplicates[0]])
        if self.duplicate_policy is DuplicatePolicy.SHADOW:
            latest = {m.name: m for m in methods}
            return [m for m in methods if latest[m.name] is m]
        logger.warning("Duplicate method names: %s", ", ".join(duplicates))
        return methods

    def rpc_discover(self, kind: str = "standard") -> Any:
        """A service object answering discovery requests for this document."""
        from refract.service import EthereumDiscoverService, StandardDiscoverService

        if kind == "standard":
            return StandardDiscoverService(self)
        if kind == "ethereum":
            return EthereumDiscoverService(self)
        raise ValueError(f"Unknown discover service kind: {kind!r}")
