"""refract: OpenRPC documents reflected from Python service objects."""

from __future__ import annotations

__version__ = "0.1.0"

from refract.api import discover, discover_from_config, load_target
from refract.conventions import EthereumConvention, StandardConvention, get_convention
from refract.core.model import OPENRPC_VERSION
from refract.document import Document, DuplicatePolicy
from refract.meta import Meta

__all__ = [
    "__version__",
    "OPENRPC_VERSION",
    "Document",
    "DuplicatePolicy",
    "EthereumConvention",
    "Meta",
    "StandardConvention",
    "discover",
    "discover_from_config",
    "get_convention",
    "load_target",
]
