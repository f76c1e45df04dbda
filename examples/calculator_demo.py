"""refract end-to-end example: calculator discovery demo.

Registers one calculator in each method convention, builds the OpenRPC
document with flattened schemas, and writes it next to this script.
"""

from __future__ import annotations

import contextvars
from dataclasses import dataclass
from pathlib import Path
from typing import NewType, Optional

from refract import Document, EthereumConvention, Meta, StandardConvention

SumReply = NewType("SumReply", int)


@dataclass
class SumArg:
    values: list[int]


class Arithmetic:
    def Sum(self, arg: SumArg, reply: Optional[SumReply]) -> Optional[Exception]:
        """Sum adds every value of arg."""
        return None


class Calculator:
    def Add(self, a: int, b: int) -> int:
        """Add returns a + b."""
        return a + b

    def Divide(
        self,
        ctx: contextvars.Context,
        a: float,  # dividend
        b: float,  # divisor, never zero
    ) -> tuple[float, Optional[Exception]]:
        """Divide returns a / b."""
        if b == 0:
            return 0.0, ZeroDivisionError("division by zero")
        return a / b, None


def main() -> None:
    document = Document(Meta(title="calculator", version="1.0.0"), StandardConvention(), flatten=True, validate=True)
    document.register_receiver(Arithmetic(), "arith")
    document.register_receiver(Calculator(), "calc", EthereumConvention())
    document.register_receiver(document.rpc_discover("ethereum"), "rpc", EthereumConvention())

    openrpc = document.discover()

    print("=== refract Calculator Demo ===")
    print(f"Version: {openrpc.info.version}")
    print()
    for method in openrpc.methods:
        params = ", ".join(p.name for p in method.params)
        print(f"  {method.name}({params}) -> {method.result.name}")
    print()
    print(f"Component schemas: {len(openrpc.components.schemas)}")

    output = Path(__file__).parent / "output" / "calculator.openrpc.json"
    output.parent.mkdir(parents=True, exist_ok=True)
    output.write_text(openrpc.to_json() + "\n", encoding="utf-8")
    print(f"Document written: {output}")


if __name__ == "__main__":
    main()
