"""Schema flattening.

Moves every non-trivial schema node of a document's methods into
``components.schemas`` under a content-derived key and leaves a
``$ref`` in its place.  Keys combine a readable label with a canonical
structural hash, so equal schemas share one entry and flattening an
already-flattened document changes nothing.
"""

from __future__ import annotations

import copy
import re
from typing import Any

from refract.core.hashing import hash_dict
from refract.core.model import OpenRPCDocument
from refract.core.walk import DEFINITION_KEYS, SCHEMA_KEYS, SCHEMA_LIST_KEYS, SCHEMA_MAP_KEYS, walk_depth_first

COMPONENTS_REF_PREFIX = "#/components/schemas/"

_LABEL_RE = re.compile(r"[^A-Za-z0-9_.-]+")


def schema_key(schema: dict[str, Any]) -> str:
    """``<title or type>_<16 hex digits of the canonical hash>``."""
    label = schema.get("title") or schema.get("type") or "schema"
    if isinstance(label, list):
        label = "-".join(str(t) for t in label)
    label = _LABEL_RE.sub("_", str(label)).strip("_") or "schema"
    return f"{label}_{hash_dict(schema)[:16]}"


def _is_reference(node: Any) -> bool:
    return isinstance(node, dict) and "$ref" in node


def _is_flattenable(node: Any) -> bool:
    return isinstance(node, dict) and bool(node) and not _is_reference(node)


def flatten_schemas(document: OpenRPCDocument) -> OpenRPCDocument:
    """Flatten every param and result schema of *document* in place."""
    table = document.components.schemas
    for method in document.methods:
        for descriptor in [*method.params, method.result]:
            descriptor.schema = flatten_schema(descriptor.schema, table)
    return document


def flatten_schema(schema: dict[str, Any], table: dict[str, dict[str, Any]]) -> dict[str, Any]:
    """Return the reference replacing *schema*, storing its parts in *table*."""
    if not _is_flattenable(schema):
        return schema
    schema = copy.deepcopy(schema)
    _hoist_definitions(schema, table)
    return _flatten_node(schema, table)


def _hoist_definitions(schema: dict[str, Any], table: dict[str, dict[str, Any]]) -> None:
    """Move local ``$defs`` into *table* and point local references at them."""
    hoisted: dict[str, dict[str, Any]] = {}

    def pop_definitions(node: dict[str, Any]) -> None:
        for key in DEFINITION_KEYS:
            defs = node.pop(key, None)
            if isinstance(defs, dict):
                for name, definition in defs.items():
                    hoisted[f"#/{key}/{name}"] = definition

    walk_depth_first(schema, pop_definitions)
    if not hoisted:
        return

    # Keys come from the definitions as written, before any rewriting.
    targets = {ref: COMPONENTS_REF_PREFIX + schema_key(d) for ref, d in hoisted.items()}

    def rewrite(node: dict[str, Any]) -> None:
        ref = node.get("$ref")
        if ref in targets:
            node["$ref"] = targets[ref]

    walk_depth_first(schema, rewrite)
    for definition in hoisted.values():
        walk_depth_first(definition, rewrite)
    for ref, definition in hoisted.items():
        key = targets[ref][len(COMPONENTS_REF_PREFIX):]
        table.setdefault(key, _flatten_children(definition, table))


def _flatten_children(node: dict[str, Any], table: dict[str, dict[str, Any]]) -> dict[str, Any]:
    for key in SCHEMA_KEYS:
        child = node.get(key)
        if _is_flattenable(child):
            node[key] = _flatten_node(child, table)
        elif key == "items" and isinstance(child, list):
            node[key] = [_flatten_node(c, table) if _is_flattenable(c) else c for c in child]
    for key in SCHEMA_LIST_KEYS:
        children = node.get(key)
        if isinstance(children, list):
            node[key] = [_flatten_node(c, table) if _is_flattenable(c) else c for c in children]
    for key in SCHEMA_MAP_KEYS:
        children = node.get(key)
        if isinstance(children, dict):
            node[key] = {
                name: _flatten_node(c, table) if _is_flattenable(c) else c
                for name, c in children.items()
            }
    return node


def _flatten_node(node: dict[str, Any], table: dict[str, dict[str, Any]]) -> dict[str, Any]:
    node = _flatten_children(node, table)
    key = schema_key(node)
    table.setdefault(key, node)
    return {"$ref": COMPONENTS_REF_PREFIX + key}
