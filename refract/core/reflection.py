"""Schema reflection engine.

Turns runtime types into JSON-Schema trees.  Raw reflection is delegated to
pydantic's ``TypeAdapter``; the result is then passed through two ordered
mutation pipelines:

* type-level mutations ``(schema, source_type) -> None``, applied once to
  the top-level schema of a field;
* tree-level mutations, factories ``(root) -> visitor`` whose visitor is
  applied to every node of the tree by a depth-first walk.

All mutations edit schemas in place.
"""

from __future__ import annotations

import copy
import dataclasses
import logging
from dataclasses import dataclass, field
from typing import Any, Callable, ClassVar, is_typeddict

from pydantic import BaseModel, ConfigDict, TypeAdapter
from pydantic.errors import PydanticUndefinedAnnotation, PydanticUserError
from pydantic.json_schema import GenerateJsonSchema, JsonSchemaMode

from refract.core.errors import UnsupportedType
from refract.core.kinds import (
    TypeKind,
    deref,
    full_type_description,
    is_pointer,
    is_sequence,
    strip_annotated,
    type_kind,
)
from refract.core.walk import DEFINITION_KEYS, collect_definitions, collect_refs, iter_subschemas, walk_depth_first

logger = logging.getLogger("refract.reflection")

TypeMutation = Callable[[dict[str, Any], Any], None]
TreeMutation = Callable[[dict[str, Any]], Callable[[dict[str, Any]], None]]

NULL_SCHEMA: dict[str, Any] = {"type": "null"}

PRIMITIVE_TYPES = ("array", "object", "string", "number", "integer", "boolean", "null")


def empty_interface_schema() -> dict[str, Any]:
    """Schema for values of any shape: one of the primitive JSON types."""
    return {"oneOf": [{"type": t} for t in PRIMITIVE_TYPES]}


@dataclass
class ReflectOptions:
    """Configuration of :func:`type_to_schema`.

    ``ignored_types`` reflect to the permissive ``{}``; ``type_overrides``
    and ``type_mapper`` replace reflection for specific types (nested ones
    included).  The mutation lists run in order.
    """

    ignored_types: tuple[Any, ...] = ()
    type_overrides: dict[Any, dict[str, Any]] = field(default_factory=dict)
    type_mapper: Callable[[Any], dict[str, Any] | None] | None = None
    type_mutations: list[TypeMutation] = field(default_factory=list)
    tree_mutations: list[TreeMutation] = field(default_factory=list)

    def schema_override(self, tp: Any) -> dict[str, Any] | None:
        """Replacement schema for *tp*, or ``None`` to reflect it normally."""
        if any(tp is ignored for ignored in self.ignored_types):
            return {}
        try:
            override = self.type_overrides.get(tp)
        except TypeError:
            override = None
        if override is None and self.type_mapper is not None:
            override = self.type_mapper(tp)
        return copy.deepcopy(override) if override is not None else None


def default_reflect_options(**overrides: Any) -> ReflectOptions:
    """Options with the built-in overrides and both mutation pipelines."""
    options = ReflectOptions(
        type_overrides={Any: empty_interface_schema(), object: empty_interface_schema()},
        type_mutations=[set_description_from_type, nilable_from_type],
        tree_mutations=[
            require_default_on,
            expand_references,
            remove_definitions,
            normalize_additional_properties,
        ],
    )
    return dataclasses.replace(options, **overrides)


# ----------------------------------------------------------------------
# Reflection
# ----------------------------------------------------------------------


class ReflectingJsonSchema(GenerateJsonSchema):
    """pydantic schema generator honouring :class:`ReflectOptions` overrides."""

    options: ClassVar[ReflectOptions] = ReflectOptions()

    def generate_inner(self, schema: Any) -> Any:
        cls = schema.get("cls") if isinstance(schema, dict) else None
        if cls is not None:
            override = self.options.schema_override(cls)
            if override is not None:
                return override
        return super().generate_inner(schema)

    def any_schema(self, schema: Any) -> Any:
        override = self.options.schema_override(Any)
        if override is not None:
            return override
        return super().any_schema(schema)


def _has_own_config(tp: Any) -> bool:
    tp = strip_annotated(tp)
    return isinstance(tp, type) and (
        issubclass(tp, BaseModel) or dataclasses.is_dataclass(tp) or is_typeddict(tp)
    )


def reflect_type(tp: Any, options: ReflectOptions, *, mode: JsonSchemaMode = "validation") -> dict[str, Any]:
    """Raw pydantic reflection of *tp*, without any mutation."""
    generator = type("BoundReflectingJsonSchema", (ReflectingJsonSchema,), {"options": options})
    try:
        if _has_own_config(tp):
            adapter = TypeAdapter(tp)
        else:
            adapter = TypeAdapter(tp, config=ConfigDict(arbitrary_types_allowed=True))
        return adapter.json_schema(mode=mode, schema_generator=generator)
    except (PydanticUserError, PydanticUndefinedAnnotation) as exc:
        raise UnsupportedType(tp, str(exc).splitlines()[0]) from exc


def type_to_schema(
    tp: Any,
    options: ReflectOptions | None = None,
    *,
    mode: JsonSchemaMode = "validation",
) -> dict[str, Any]:
    """Reflect *tp* into a JSON schema and run the mutation pipelines.

    Pointers (``Optional[T]``) are reflected as ``T``; the nilable mutation
    is what re-introduces ``null``.

    Raises:
        UnsupportedType: for callables, channels and anything pydantic
            cannot describe.
    """
    if options is None:
        options = default_reflect_options()
    kind = type_kind(tp)
    if kind in (TypeKind.FUNCTION, TypeKind.CHANNEL):
        raise UnsupportedType(tp, f"{kind.value} types have no JSON representation")

    target = deref(tp)
    schema = options.schema_override(strip_annotated(target))
    if schema is None:
        schema = reflect_type(target, options, mode=mode)
    for mutate in options.type_mutations:
        mutate(schema, tp)
    for factory in options.tree_mutations:
        walk_depth_first(schema, factory(schema))
    logger.debug("Reflected %s (%s)", full_type_description(tp), mode)
    return schema


# ----------------------------------------------------------------------
# Type-level mutations
# ----------------------------------------------------------------------


def set_description_from_type(schema: dict[str, Any], tp: Any) -> None:
    """Backfill ``description`` with the module-qualified type name."""
    if not schema.get("description"):
        schema["description"] = full_type_description(tp)


def nilable_from_type(schema: dict[str, Any], tp: Any) -> None:
    """Pointers and variable-length sequences may be ``null``.

    Definition maps stay on the root so local references keep resolving.
    """
    if is_pointer(tp) or is_sequence(tp):
        inner = dict(schema)
        definitions = {key: inner.pop(key) for key in DEFINITION_KEYS if key in inner}
        schema.clear()
        schema["oneOf"] = [inner, dict(NULL_SCHEMA)]
        schema.update(definitions)


# ----------------------------------------------------------------------
# Tree-level mutations
# ----------------------------------------------------------------------


def require_default_on(root: dict[str, Any]) -> Callable[[dict[str, Any]], None]:
    """Object properties are required unless some were explicitly marked."""

    def visit(node: dict[str, Any]) -> None:
        properties = node.get("properties")
        if isinstance(properties, dict) and properties and not node.get("required"):
            node["required"] = list(properties)

    return visit


def expand_references(root: dict[str, Any]) -> Callable[[dict[str, Any]], None]:
    """Inline local ``$ref`` targets.

    A reference back into a definition that is already being expanded is
    recursive and stays a reference; :func:`remove_definitions` keeps its
    target.
    """
    definitions = collect_definitions(root)

    def inline(node: dict[str, Any], active: frozenset[str]) -> None:
        ref = node.get("$ref")
        if ref is not None:
            if ref not in definitions or ref in active:
                return
            siblings = {k: v for k, v in node.items() if k != "$ref"}
            node.clear()
            node.update(copy.deepcopy(definitions[ref]))
            node.update(siblings)
            active = active | {ref}
        for child in list(iter_subschemas(node, definitions=False)):
            inline(child, active)

    def visit(node: dict[str, Any]) -> None:
        # Inlining from the root reaches every node outside the definitions.
        if node is root:
            inline(node, frozenset())

    return visit


def remove_definitions(root: dict[str, Any]) -> Callable[[dict[str, Any]], None]:
    """Drop definition maps, keeping entries still targeted by a reference."""
    definitions = collect_definitions(root)
    needed: set[str] = set()
    pending = list(collect_refs(root, definitions=False))
    while pending:
        ref = pending.pop()
        if ref in needed or ref not in definitions:
            continue
        needed.add(ref)
        pending.extend(collect_refs(definitions[ref], definitions=False))

    def visit(node: dict[str, Any]) -> None:
        for key in DEFINITION_KEYS:
            defs = node.get(key)
            if not isinstance(defs, dict):
                continue
            kept = {name: d for name, d in defs.items() if f"#/{key}/{name}" in needed}
            if kept:
                node[key] = kept
            else:
                del node[key]

    return visit


def normalize_additional_properties(root: dict[str, Any]) -> Callable[[dict[str, Any]], None]:
    """Boolean ``additionalProperties`` become the empty schema ``{}``."""

    def visit(node: dict[str, Any]) -> None:
        if isinstance(node.get("additionalProperties"), bool):
            node["additionalProperties"] = {}

    return visit
