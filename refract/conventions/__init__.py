"""Method conventions: which callables become methods and how they are named."""

from __future__ import annotations

__all__ = [
    "Convention",
    "EthereumConvention",
    "StandardConvention",
    "available_conventions",
    "ethereum_method_name",
    "get_convention",
    "register_convention",
]

from refract.conventions.base import Convention, available_conventions, get_convention, register_convention
from refract.conventions.ethereum import EthereumConvention, ethereum_method_name
from refract.conventions.standard import StandardConvention
