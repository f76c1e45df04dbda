"""Depth-first traversal of JSON-Schema trees."""

from __future__ import annotations

from typing import Any, Callable, Iterator

# Keywords whose value is a single subschema.
SCHEMA_KEYS = (
    "items",
    "additionalItems",
    "additionalProperties",
    "unevaluatedItems",
    "unevaluatedProperties",
    "propertyNames",
    "contains",
    "not",
    "if",
    "then",
    "else",
)
# Keywords whose value is a list of subschemas.
SCHEMA_LIST_KEYS = ("oneOf", "anyOf", "allOf", "prefixItems")
# Keywords whose value maps names to subschemas.
SCHEMA_MAP_KEYS = ("properties", "patternProperties", "dependentSchemas")
DEFINITION_KEYS = ("$defs", "definitions")

Visitor = Callable[[dict[str, Any]], None]


def iter_subschemas(node: dict[str, Any], *, definitions: bool = True) -> Iterator[dict[str, Any]]:
    """Yield the direct dict-valued subschemas of *node*."""
    for key in SCHEMA_KEYS:
        child = node.get(key)
        if isinstance(child, dict):
            yield child
        elif key == "items" and isinstance(child, list):
            yield from (c for c in child if isinstance(c, dict))
    for key in SCHEMA_LIST_KEYS:
        for child in node.get(key) or ():
            if isinstance(child, dict):
                yield child
    map_keys = SCHEMA_MAP_KEYS + DEFINITION_KEYS if definitions else SCHEMA_MAP_KEYS
    for key in map_keys:
        children = node.get(key)
        if isinstance(children, dict):
            yield from (c for c in children.values() if isinstance(c, dict))


def walk_depth_first(schema: Any, visit: Visitor) -> None:
    """Call *visit* on every schema node, parents before children.

    Children are read after the parent was visited, so a visitor may rewrite
    a node in place and the walk follows the rewritten tree.
    """
    if not isinstance(schema, dict):
        return
    visit(schema)
    for child in list(iter_subschemas(schema)):
        walk_depth_first(child, visit)


def collect_definitions(schema: dict[str, Any]) -> dict[str, dict[str, Any]]:
    """Map local reference targets (``#/$defs/Name``) to their definitions."""
    found: dict[str, dict[str, Any]] = {}

    def visit(node: dict[str, Any]) -> None:
        for key in DEFINITION_KEYS:
            defs = node.get(key)
            if isinstance(defs, dict):
                for name, definition in defs.items():
                    found.setdefault(f"#/{key}/{name}", definition)

    walk_depth_first(schema, visit)
    return found


def collect_refs(schema: dict[str, Any], *, definitions: bool = True) -> set[str]:
    """All ``$ref`` targets reachable from *schema*."""
    refs: set[str] = set()
    stack = [schema]
    while stack:
        node = stack.pop()
        ref = node.get("$ref")
        if isinstance(ref, str):
            refs.add(ref)
        stack.extend(iter_subschemas(node, definitions=definitions))
    return refs
