"""Discovery services.

Receivers that answer ``discover`` requests with the OpenRPC document of
a :class:`~refract.document.Document`.  Each follows the shape of its
convention, so it can itself be registered and described.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, NewType, Optional

if TYPE_CHECKING:
    from refract.document import Document

DiscoverArg = NewType("DiscoverArg", int)


class StandardDiscoverService:
    """``Discover(arg, reply)`` in the Standard convention."""

    def __init__(self, document: Document) -> None:
        self._document = document

    def Discover(self, arg: DiscoverArg, reply: Optional[dict[str, Any]]) -> Optional[Exception]:
        """Fill *reply* with the current OpenRPC document."""
        if reply is None:
            return ValueError("reply must not be None")
        reply.clear()
        reply.update(self._document.discover().to_dict())
        return None


class EthereumDiscoverService:
    """``discover()`` in the Ethereum convention."""

    def __init__(self, document: Document) -> None:
        self._document = document

    def discover(self) -> dict[str, Any]:
        """Return the current OpenRPC document."""
        return self._document.discover().to_dict()
