"""JSON Schema definitions for refract inputs and outputs.

Each schema is a Python dict following JSON Schema Draft 2020-12.
``validate_document`` checks a built OpenRPC document, including that every
content-descriptor schema is itself a valid JSON Schema.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import jsonschema

# ======================================================================
# Schemas
# ======================================================================

_CONTENT_DESCRIPTOR: dict[str, Any] = {
    "type": "object",
    "required": ["name", "schema"],
    "properties": {
        "name": {"type": "string", "minLength": 1},
        "summary": {"type": "string"},
        "description": {"type": "string"},
        "schema": {"type": ["object", "boolean"]},
        "required": {"type": "boolean"},
        "deprecated": {"type": "boolean"},
    },
    "additionalProperties": True,
}

_EXTERNAL_DOCS: dict[str, Any] = {
    "type": "object",
    "required": ["url"],
    "properties": {
        "url": {"type": "string"},
        "description": {"type": "string"},
    },
}

OPENRPC_DOCUMENT_SCHEMA: dict[str, Any] = {
    "$schema": "https://json-schema.org/draft/2020-12/schema",
    "title": "OpenRPC Document",
    "type": "object",
    "required": ["openrpc", "info", "methods"],
    "properties": {
        "openrpc": {"type": "string", "pattern": r"^1\.\d+\.\d+$"},
        "info": {
            "type": "object",
            "required": ["title", "version"],
            "properties": {
                "title": {"type": "string"},
                "version": {"type": "string"},
                "description": {"type": "string"},
            },
        },
        "externalDocs": {"$ref": "#/$defs/externalDocs"},
        "servers": {
            "type": "array",
            "items": {
                "type": "object",
                "required": ["url"],
                "properties": {
                    "url": {"type": "string"},
                    "name": {"type": "string"},
                },
            },
        },
        "methods": {
            "type": "array",
            "items": {
                "type": "object",
                "required": ["name", "params"],
                "properties": {
                    "name": {"type": "string", "minLength": 1},
                    "summary": {"type": "string"},
                    "description": {"type": "string"},
                    "externalDocs": {"$ref": "#/$defs/externalDocs"},
                    "params": {"type": "array", "items": {"$ref": "#/$defs/contentDescriptor"}},
                    "result": {"$ref": "#/$defs/contentDescriptor"},
                    "deprecated": {"type": "boolean"},
                    "paramStructure": {"enum": ["by-name", "by-position", "either"]},
                },
            },
        },
        "components": {
            "type": "object",
            "properties": {
                "schemas": {"type": "object", "additionalProperties": {"type": ["object", "boolean"]}},
            },
        },
    },
    "$defs": {
        "contentDescriptor": _CONTENT_DESCRIPTOR,
        "externalDocs": _EXTERNAL_DOCS,
    },
    "additionalProperties": True,
}

_RECEIVER: dict[str, Any] = {
    "type": "object",
    "required": ["target"],
    "properties": {
        "target": {"type": "string", "pattern": r"^[\w.]+(:[\w.]+)?$"},
        "name": {"type": "string"},
        "convention": {"type": "string"},
    },
    "additionalProperties": False,
}

CONFIG_SCHEMA: dict[str, Any] = {
    "$schema": "https://json-schema.org/draft/2020-12/schema",
    "title": "refract Discovery Configuration",
    "type": "object",
    "required": ["receivers"],
    "properties": {
        "title": {"type": "string"},
        "version": {"type": "string"},
        "description": {"type": "string"},
        "convention": {"type": "string"},
        "flatten": {"type": "boolean"},
        "validate": {"type": "boolean"},
        "duplicate_policy": {"enum": ["allow", "error", "shadow"]},
        "source_links": {"type": "object", "additionalProperties": {"type": "string"}},
        "receivers": {"type": "array", "items": _RECEIVER},
    },
    "additionalProperties": False,
}

SCHEMAS: dict[str, dict[str, Any]] = {
    "openrpc": OPENRPC_DOCUMENT_SCHEMA,
    "config": CONFIG_SCHEMA,
}


# ======================================================================
# Validation
# ======================================================================


def _format_error(err: jsonschema.ValidationError) -> str:
    path = ".".join(str(p) for p in err.absolute_path) or "(root)"
    return f"[{path}] {err.message}"


def validate_instance(data: Any, schema_name: str) -> list[str]:
    """Validate *data* against a named schema.  Returns error messages."""
    validator = jsonschema.Draft202012Validator(SCHEMAS[schema_name])
    errors = sorted(validator.iter_errors(data), key=lambda e: list(map(str, e.absolute_path)))
    return [_format_error(e) for e in errors]


def validate_document(data: dict[str, Any]) -> list[str]:
    """Validate an OpenRPC document dict.

    Beyond the document shape, every param and result schema and every
    component schema must be a well-formed Draft 2020-12 schema.
    """
    errors = validate_instance(data, "openrpc")
    if errors:
        return errors

    for mi, method in enumerate(data.get("methods", [])):
        descriptors = [(f"methods.{mi}.params.{pi}", p) for pi, p in enumerate(method.get("params", []))]
        if "result" in method:
            descriptors.append((f"methods.{mi}.result", method["result"]))
        for where, descriptor in descriptors:
            errors.extend(_check_schema(where, descriptor.get("schema")))
    for key, schema in data.get("components", {}).get("schemas", {}).items():
        errors.extend(_check_schema(f"components.schemas.{key}", schema))
    return errors


def _check_schema(where: str, schema: Any) -> list[str]:
    try:
        jsonschema.Draft202012Validator.check_schema(schema)
    except jsonschema.SchemaError as exc:
        return [f"[{where}.schema] {exc.message}"]
    return []


def validate_file(path: str | Path) -> list[str]:
    """Validate an OpenRPC document stored as JSON at *path*."""
    try:
        with open(path, encoding="utf-8") as f:
            data = json.load(f)
    except json.JSONDecodeError as exc:
        return [f"JSON parse error: {exc}"]
    if not isinstance(data, dict):
        return ["(root) document must be a JSON object"]
    return validate_document(data)
