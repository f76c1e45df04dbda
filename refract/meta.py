"""Document-level metadata: info, external docs and servers."""

from __future__ import annotations

import abc
import socket
from dataclasses import dataclass, field
from typing import Any, Callable, Sequence

from refract.core.model import ExternalDocs, Info, Server


def listeners_to_servers(listeners: Sequence[Any]) -> list[Server]:
    """Describe bound sockets as servers.

    Each listener needs ``getsockname()``; TCP and UDP endpoints become
    ``host:port`` and Unix sockets their path.
    """
    servers: list[Server] = []
    for listener in listeners:
        if listener is None:
            continue
        address = listener.getsockname()
        family = getattr(listener, "family", None)
        kind = getattr(listener, "type", None)
        if family == getattr(socket, "AF_UNIX", object()):
            url, network = str(address), "unix"
        else:
            host, port = address[0], address[1]
            url = f"[{host}]:{port}" if ":" in host else f"{host}:{port}"
            network = "udp" if kind == socket.SOCK_DGRAM else "tcp"
        servers.append(Server(url=url, name=network))
    return servers


class MetaRegisterer(abc.ABC):
    """Supplies the parts of a document that do not come from methods."""

    @abc.abstractmethod
    def info(self) -> Info:
        ...

    def external_docs(self) -> ExternalDocs | None:
        return None

    def servers(self, listeners: Sequence[Any]) -> list[Server]:
        return listeners_to_servers(listeners)


@dataclass
class Meta(MetaRegisterer):
    """Static metadata with an injectable listener-to-server mapping."""

    title: str = ""
    version: str = ""
    description: str | None = None
    docs: ExternalDocs | None = None
    servers_fn: Callable[[Sequence[Any]], list[Server]] = field(default=listeners_to_servers)

    def info(self) -> Info:
        return Info(title=self.title, version=self.version, description=self.description)

    def external_docs(self) -> ExternalDocs | None:
        return self.docs

    def servers(self, listeners: Sequence[Any]) -> list[Server]:
        return self.servers_fn(listeners)
