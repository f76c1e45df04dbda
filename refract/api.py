"""refract public Python API.

Provides the primary entrypoints:
  - ``discover(...)`` -> OpenRPCDocument for in-process receivers
  - ``discover_from_config(...)`` -> OpenRPCDocument from a DiscoverConfig
  - ``load_target(...)`` -> receiver object named by ``module:attribute``
"""

from __future__ import annotations

import importlib
import inspect
import logging
from typing import Any, Iterable, Mapping, Sequence

from refract.config import DiscoverConfig
from refract.conventions.base import Convention, get_convention
from refract.core.errors import ConfigError
from refract.core.model import OpenRPCDocument
from refract.document import Document, DuplicatePolicy
from refract.meta import Meta

logger = logging.getLogger("refract")


def _resolve_convention(convention: Convention | str | None, **kwargs: Any) -> Convention | None:
    if convention is None or isinstance(convention, Convention):
        return convention
    return get_convention(convention, **kwargs)


def discover(
    receivers: Iterable[Any],
    *,
    convention: Convention | str = "standard",
    title: str = "",
    version: str = "",
    description: str | None = None,
    flatten: bool = False,
    validate: bool = False,
    duplicate_policy: DuplicatePolicy | str = DuplicatePolicy.ALLOW,
    listeners: Sequence[Any] = (),
    source_links: Mapping[str, str] | None = None,
) -> OpenRPCDocument:
    """Build an OpenRPC document for *receivers*.

    Parameters:
        receivers: Receiver objects, ``(name, receiver)`` pairs or
            ``(name, receiver, convention)`` triples.
        convention: Default convention, as an instance or registry name.
        title: ``info.title``.
        version: Base version; a build timestamp is appended.
        flatten: Move schemas into ``components.schemas``.
        validate: Validate the result against the OpenRPC document schema.
        duplicate_policy: Handling of method names produced twice.
        listeners: Bound sockets to list as servers.
        source_links: Top-level package to repository base URL.

    Returns:
        The built document.
    """
    links = dict(source_links or {})
    document = Document(
        Meta(title=title, version=version, description=description),
        _resolve_convention(convention, source_links=links),
        duplicate_policy=duplicate_policy,
        flatten=flatten,
        validate=validate,
    )
    for entry in receivers:
        if isinstance(entry, tuple):
            name, receiver, *rest = entry
            per_receiver = _resolve_convention(rest[0], source_links=links) if rest else None
            document.register_receiver(receiver, name, per_receiver)
        else:
            document.register_receiver(entry)
    for listener in listeners:
        document.register_listener(listener)
    return document.discover()


def load_target(target: str) -> Any:
    """Import ``package.module[:attribute]`` and return a receiver.

    Classes are instantiated without arguments; a bare module is itself the
    receiver.
    """
    module_name, _, attribute = target.partition(":")
    try:
        module = importlib.import_module(module_name)
    except ImportError as exc:
        raise ConfigError(f"Cannot import {module_name!r}: {exc}") from exc
    if not attribute:
        return module

    obj: Any = module
    for part in attribute.split("."):
        try:
            obj = getattr(obj, part)
        except AttributeError as exc:
            raise ConfigError(f"{module_name!r} has no attribute {attribute!r}") from exc
    if inspect.isclass(obj):
        obj = obj()
    return obj


def discover_from_config(config: DiscoverConfig) -> OpenRPCDocument:
    """Load every receiver named in *config* and build its document."""
    receivers = [
        (spec.name, load_target(spec.target), spec.convention or config.convention)
        for spec in config.receivers
    ]
    logger.debug("Loaded %d receivers from configuration", len(receivers))
    return discover(
        receivers,
        convention=config.convention,
        title=config.title,
        version=config.version,
        description=config.description,
        flatten=config.flatten,
        validate=config.validate,
        duplicate_policy=config.duplicate_policy,
        source_links=config.source_links,
    )
