"""Core subpackage: callables, declarations, reflection, flattening, model, schemas."""

from __future__ import annotations

__all__ = [
    "ContentDescriptor",
    "DeclarationResolver",
    "Method",
    "OpenRPCDocument",
    "ReflectOptions",
    "default_reflect_options",
    "expand_field",
    "flatten_schemas",
    "hash_dict",
    "type_to_schema",
    "validate_document",
]

from refract.core.declarations import DeclarationResolver, expand_field
from refract.core.flatten import flatten_schemas
from refract.core.hashing import hash_dict
from refract.core.model import ContentDescriptor, Method, OpenRPCDocument
from refract.core.reflection import ReflectOptions, default_reflect_options, type_to_schema
from refract.core.schemas import validate_document
