"""OpenRPC document model.

Plain dataclasses with ``to_dict()`` producing the camelCase OpenRPC
shape.  Optional members are omitted when unset.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Any

OPENRPC_VERSION = "1.2.6"


def _compact(d: dict[str, Any]) -> dict[str, Any]:
    return {k: v for k, v in d.items() if v is not None}


@dataclass
class ExternalDocs:
    url: str
    description: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return _compact({"description": self.description, "url": self.url})


@dataclass
class Info:
    title: str
    version: str
    description: str | None = None
    terms_of_service: str | None = None
    contact: dict[str, Any] | None = None
    license: dict[str, Any] | None = None

    def to_dict(self) -> dict[str, Any]:
        return _compact({
            "title": self.title,
            "description": self.description,
            "termsOfService": self.terms_of_service,
            "contact": self.contact,
            "license": self.license,
            "version": self.version,
        })


@dataclass
class Server:
    url: str
    name: str
    description: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return _compact({"name": self.name, "url": self.url, "description": self.description})


@dataclass
class Tag:
    name: str
    description: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return _compact({"name": self.name, "description": self.description})


@dataclass
class ContentDescriptor:
    """A documented parameter or result."""

    name: str
    schema: dict[str, Any]
    summary: str = ""
    description: str = ""
    required: bool = True
    deprecated: bool = False

    def to_dict(self) -> dict[str, Any]:
        d: dict[str, Any] = {"name": self.name}
        if self.summary:
            d["summary"] = self.summary
        d["description"] = self.description
        d["schema"] = self.schema
        d["required"] = self.required
        d["deprecated"] = self.deprecated
        return d


def null_content_descriptor() -> ContentDescriptor:
    """The result of a method that returns nothing but (at most) an error."""
    return ContentDescriptor(
        name="Null",
        description="Null",
        schema={"type": "null"},
        required=True,
        deprecated=False,
    )


@dataclass
class Method:
    name: str
    params: list[ContentDescriptor]
    result: ContentDescriptor
    summary: str = ""
    description: str = ""
    tags: list[Tag] = field(default_factory=list)
    external_docs: ExternalDocs | None = None
    deprecated: bool = False
    param_structure: str = "by-position"

    def to_dict(self) -> dict[str, Any]:
        d: dict[str, Any] = {"name": self.name}
        if self.tags:
            d["tags"] = [t.to_dict() for t in self.tags]
        d["summary"] = self.summary
        d["description"] = self.description
        if self.external_docs is not None:
            d["externalDocs"] = self.external_docs.to_dict()
        d["params"] = [p.to_dict() for p in self.params]
        d["result"] = self.result.to_dict()
        d["deprecated"] = self.deprecated
        d["paramStructure"] = self.param_structure
        return d


@dataclass
class Components:
    schemas: dict[str, dict[str, Any]] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {"schemas": self.schemas}


@dataclass
class OpenRPCDocument:
    info: Info
    methods: list[Method] = field(default_factory=list)
    servers: list[Server] = field(default_factory=list)
    external_docs: ExternalDocs | None = None
    components: Components = field(default_factory=Components)
    openrpc: str = OPENRPC_VERSION

    def method(self, name: str) -> Method:
        """First method called *name*."""
        for m in self.methods:
            if m.name == name:
                return m
        raise KeyError(name)

    @property
    def method_names(self) -> list[str]:
        return [m.name for m in self.methods]

    def to_dict(self) -> dict[str, Any]:
        d: dict[str, Any] = {"openrpc": self.openrpc, "info": self.info.to_dict()}
        if self.external_docs is not None:
            d["externalDocs"] = self.external_docs.to_dict()
        if self.servers:
            d["servers"] = [s.to_dict() for s in self.servers]
        d["methods"] = [m.to_dict() for m in self.methods]
        if self.components.schemas:
            d["components"] = self.components.to_dict()
        return d

    def to_json(self, indent: int | None = 2) -> str:
        return json.dumps(self.to_dict(), indent=indent)
