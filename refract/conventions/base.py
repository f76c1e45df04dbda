"""Method conventions.

A :class:`Convention` decides which callables of a receiver become OpenRPC
methods, how they are named, and how their parameters and result are
described.  Concrete conventions implement the abstract policy methods;
everything else has a shared default that subclasses may override.
"""

from __future__ import annotations

import abc
import contextvars
import logging
import re
from typing import Any, Iterable, Mapping

from refract.core.callables import ServiceCallable, collect_callables
from refract.core.declarations import (
    DeclarationRecord,
    DeclarationResolver,
    FieldGroup,
    NamedField,
    expand_fields,
)
from refract.core.errors import AutogeneratedSkip, DeclarationNotFound, IneligibleMethod, RefractError
from refract.core.kinds import full_type_description, is_context_type, is_error_type
from refract.core.links import remote_source_link
from refract.core.model import ContentDescriptor, ExternalDocs, Method, Tag
from refract.core.reflection import JsonSchemaMode, ReflectOptions, default_reflect_options, type_to_schema

logger = logging.getLogger("refract.conventions")

_DEPRECATED_RE = re.compile(r"deprecated", re.IGNORECASE)


def first_lower(text: str) -> str:
    return text[:1].lower() + text[1:]


class Convention(abc.ABC):
    """Eligibility, naming and description policy for service methods."""

    #: Registry name of the convention.
    name: str = ""
    param_structure: str = "by-position"
    #: Drop module qualifiers from names synthesised for ``Optional[...]`` fields.
    strip_pointer_qualifiers: bool = False

    def __init__(
        self,
        *,
        reflect_options: ReflectOptions | None = None,
        error_types: Iterable[Any] = (Exception,),
        context_types: Iterable[Any] = (contextvars.Context,),
        reserved_names: Iterable[str] = (),
        source_links: Mapping[str, str] | None = None,
    ) -> None:
        self.reflect_options = reflect_options or default_reflect_options()
        self.error_types = tuple(error_types)
        self.context_types = tuple(context_types)
        self.reserved_names = [re.compile(p) for p in reserved_names]
        self.source_links = dict(source_links or {})

    def __repr__(self) -> str:
        return f"{type(self).__name__}()"

    # ------------------------------------------------------------------
    # Policy
    # ------------------------------------------------------------------

    @abc.abstractmethod
    def ineligibility_reason(self, call: ServiceCallable) -> str | None:
        """Why *call* cannot be a method, or ``None`` if it can."""

    @abc.abstractmethod
    def method_name(self, receiver_name: str, call: ServiceCallable) -> str:
        """Public method name; *receiver_name* is the registered name or ``""``."""

    @abc.abstractmethod
    def method_params(self, call: ServiceCallable, decl: DeclarationRecord) -> list[ContentDescriptor]:
        """Ordered parameter descriptors."""

    @abc.abstractmethod
    def method_result(self, call: ServiceCallable, decl: DeclarationRecord) -> ContentDescriptor:
        """The single result descriptor."""

    def is_method_eligible(self, call: ServiceCallable) -> bool:
        return self.ineligibility_reason(call) is None

    def is_reserved(self, call: ServiceCallable) -> bool:
        return any(p.search(call.name) for p in self.reserved_names)

    def is_error_type(self, tp: Any) -> bool:
        return is_error_type(tp, self.error_types)

    def is_context_type(self, tp: Any) -> bool:
        return is_context_type(tp, self.context_types)

    # ------------------------------------------------------------------
    # Method-level derivations
    # ------------------------------------------------------------------

    def source_link(self, call: ServiceCallable, decl: DeclarationRecord) -> str | None:
        return remote_source_link(call.module, decl.source_file, decl.lineno, self.source_links)

    def method_summary(self, call: ServiceCallable, decl: DeclarationRecord) -> str:
        return decl.summary

    def method_description(self, call: ServiceCallable, decl: DeclarationRecord) -> str:
        block = f"```python\n{decl.source}\n```"
        link = self.source_link(call, decl)
        return f"[{link}]({link})\n{block}" if link else block

    def method_deprecated(self, call: ServiceCallable, decl: DeclarationRecord) -> bool:
        if getattr(call.function, "__deprecated__", None):
            return True
        return bool(_DEPRECATED_RE.search(decl.doc))

    def method_external_docs(self, call: ServiceCallable, decl: DeclarationRecord) -> ExternalDocs | None:
        link = self.source_link(call, decl)
        return ExternalDocs(url=link, description="Source link") if link else None

    def method_tags(self, call: ServiceCallable, decl: DeclarationRecord) -> list[Tag]:
        return []

    # ------------------------------------------------------------------
    # Content descriptors
    # ------------------------------------------------------------------

    def descriptor_name(self, call: ServiceCallable, field: NamedField) -> str:
        return field.name

    def descriptor_summary(self, call: ServiceCallable, field: NamedField) -> str:
        return field.group.comment or field.group.doc

    def descriptor_description(self, call: ServiceCallable, field: NamedField) -> str:
        return field.group.type_text

    def descriptor_required(self, call: ServiceCallable, field: NamedField) -> bool:
        return True

    def descriptor_deprecated(self, call: ServiceCallable, field: NamedField) -> bool:
        return bool(_DEPRECATED_RE.search(self.descriptor_summary(call, field)))

    def schema(
        self,
        call: ServiceCallable,
        field: NamedField,
        tp: Any,
        mode: JsonSchemaMode = "validation",
    ) -> dict[str, Any]:
        return type_to_schema(tp, self.reflect_options, mode=mode)

    def build_content_descriptor(
        self,
        call: ServiceCallable,
        field: NamedField,
        tp: Any,
        *,
        mode: JsonSchemaMode = "validation",
    ) -> ContentDescriptor:
        return ContentDescriptor(
            name=self.descriptor_name(call, field),
            summary=self.descriptor_summary(call, field),
            description=self.descriptor_description(call, field),
            schema=self.schema(call, field, tp, mode),
            required=self.descriptor_required(call, field),
            deprecated=self.descriptor_deprecated(call, field),
        )

    # ------------------------------------------------------------------
    # Field helpers
    # ------------------------------------------------------------------

    def param_fields(self, call: ServiceCallable, decl: DeclarationRecord) -> list[NamedField]:
        """Expanded parameters, checked against the runtime signature."""
        fields = expand_fields(decl.params, strip_pointer_qualifiers=self.strip_pointer_qualifiers)
        if len(fields) != len(call.parameters):
            raise DeclarationNotFound(
                call.qualname,
                f"declaration has {len(fields)} parameters, runtime signature has {len(call.parameters)}",
            )
        return fields

    def result_fields(self, call: ServiceCallable, decl: DeclarationRecord) -> list[NamedField]:
        """Expanded results; positions the declaration cannot account for are
        named after their runtime type."""
        fields = expand_fields(decl.results, strip_pointer_qualifiers=self.strip_pointer_qualifiers)
        if len(fields) == len(call.result_types):
            return fields
        out = []
        for tp in call.result_types:
            text = full_type_description(tp)
            out.append(NamedField(text, FieldGroup(type_text=text)))
        return out

    # ------------------------------------------------------------------
    # Assembly
    # ------------------------------------------------------------------

    def build_method(self, receiver_name: str, call: ServiceCallable, resolver: DeclarationResolver) -> Method:
        """Assemble the :class:`Method` for *call*.

        Raises:
            IneligibleMethod: the convention rejects the callable.
            AutogeneratedSkip: the name is reserved or the callable has no
                real source.
            DeclarationNotFound, UnsupportedType: the build must abort.
        """
        reason = self.ineligibility_reason(call)
        if reason is not None:
            raise IneligibleMethod(call.name, reason)
        if self.is_reserved(call):
            raise AutogeneratedSkip(call.name, "reserved name")
        try:
            decl = resolver.resolve(call)
        except DeclarationNotFound as exc:
            if exc.synthetic:
                raise AutogeneratedSkip(call.name, "autogenerated, no source declaration") from exc
            raise

        return Method(
            name=self.method_name(receiver_name, call),
            params=self.method_params(call, decl),
            result=self.method_result(call, decl),
            summary=self.method_summary(call, decl),
            description=self.method_description(call, decl),
            tags=self.method_tags(call, decl),
            external_docs=self.method_external_docs(call, decl),
            deprecated=self.method_deprecated(call, decl),
            param_structure=self.param_structure,
        )

    def receiver_methods(
        self,
        receiver: Any,
        receiver_name: str = "",
        resolver: DeclarationResolver | None = None,
    ) -> list[Method]:
        """All methods of *receiver* under this convention, in attribute order."""
        if resolver is None:
            resolver = DeclarationResolver()
        methods: list[Method] = []
        for call in collect_callables(receiver):
            try:
                methods.append(self.build_method(receiver_name, call, resolver))
            except (IneligibleMethod, AutogeneratedSkip) as exc:
                logger.debug("%s: %s", self.name, exc)
            except RefractError as exc:
                exc.add_note(f"while describing {call.qualname} with the {self.name} convention")
                raise
        return methods


# ------------------------------------------------------------------
# Convention registry
# ------------------------------------------------------------------

_REGISTRY: dict[str, type[Convention]] = {}


def register_convention(name: str, cls: type[Convention]) -> None:
    """Register a convention class under *name*."""
    _REGISTRY[name] = cls


_ep_conventions_discovered = False


def _discover_entry_point_conventions() -> None:
    """Load conventions from the ``refract.conventions`` entry-point group once."""
    global _ep_conventions_discovered
    if _ep_conventions_discovered:
        return
    _ep_conventions_discovered = True
    import importlib.metadata

    for ep in importlib.metadata.entry_points(group="refract.conventions"):
        try:
            cls = ep.load()
        except (ImportError, AttributeError):
            logger.debug("Failed to load convention entry-point %s", ep.name, exc_info=True)
            continue
        _REGISTRY.setdefault(ep.name, cls)


def get_convention(name: str, **kwargs: Any) -> Convention:
    """Instantiate the convention registered under *name*.

    Resolution order:
    1. Explicit ``register_convention()`` calls.
    2. ``refract.conventions`` entry-point group (discovered once).
    3. Built-in ``"standard"`` and ``"ethereum"``.
    """
    if name not in _REGISTRY:
        _discover_entry_point_conventions()

    if name not in _REGISTRY:
        if name == "standard":
            from refract.conventions.standard import StandardConvention
            return StandardConvention(**kwargs)
        elif name == "ethereum":
            from refract.conventions.ethereum import EthereumConvention
            return EthereumConvention(**kwargs)
        raise KeyError(f"No convention registered for {name!r}. Available: {available_conventions()}")
    return _REGISTRY[name](**kwargs)


def available_conventions() -> list[str]:
    return sorted({"standard", "ethereum", *_REGISTRY})
