"""Fake arithmetic services, one per method convention."""

from __future__ import annotations

import contextvars
import random
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any, NewType, Optional

import fakegeometry

AddReply = NewType("AddReply", int)
HasBatteriesArg = NewType("HasBatteriesArg", str)
HasBatteriesReply = NewType("HasBatteriesReply", bool)
BigMulReply = NewType("BigMulReply", Decimal)
DivReply = NewType("DivReply", float)
IsZeroReply = NewType("IsZeroReply", bool)


@dataclass
class AddArg:
    a: int
    b: int


@dataclass
class DivArg:
    a: int
    b: int


@dataclass
class BigMulArg:
    a: Decimal
    b: Decimal


@dataclass
class HistoryItem:
    method: str
    args: list[Any] = field(default_factory=list)


@dataclass
class Pi:
    """Pi requests the constant."""


@dataclass
class TreeNode:
    value: int
    children: list[TreeNode] = field(default_factory=list)


class Calculator:
    """Calculator keeps a history of the operations it performed."""

    def __init__(self) -> None:
        self.history: list[HistoryItem] = []

    def _remember(self, method: str, *args: Any) -> None:
        self.history.append(HistoryItem(method, list(args)))

    def HasBatteries(self) -> bool:
        """HasBatteries reports whether the calculator has power."""
        return True

    def Add(self, argA: int, argB: int) -> int:
        """Add returns the sum of two integers."""
        self._remember("Add", argA, argB)
        return argA + argB

    def Mul(
        self,
        argA: int,  # the multiplicand
        # the multiplier
        argB: int,
    ) -> tuple[int, Optional[Exception]]:
        """Mul returns the product of two integers."""
        self._remember("Mul", argA, argB)
        return argA * argB, None

    def BigMul(self, argA: Optional[Decimal], argB: Optional[Decimal]) -> Optional[Decimal]:
        if argA is None or argB is None:
            return None
        return argA * argB

    def Div(self, argA: int, argB: int) -> tuple[int, Optional[Exception]]:
        """Div divides argA by argB.

        Deprecated: use Mul with a reciprocal instead.
        """
        if argB == 0:
            return 0, ZeroDivisionError("division by zero")
        return argA // argB, None

    def IsZero(self, value: int) -> bool:
        return value == 0

    def History(self) -> list[HistoryItem]:
        """History lists every remembered operation."""
        return list(self.history)

    def Last(self) -> Optional[HistoryItem]:
        return self.history[-1] if self.history else None

    def GetRecord(self, index: int = 0) -> tuple[HistoryItem, Optional[Exception]]:
        """GetRecord returns one history entry.

        Args:
            index: Position in the history, oldest first.
        """
        try:
            return self.history[index], None
        except IndexError as exc:
            return HistoryItem(""), exc

    def Reset(self) -> None:
        self.history.clear()

    def SumWithContext(self, ctx: contextvars.Context, *numbers: int) -> tuple[int, Optional[Exception]]:
        return sum(numbers), None

    def ConstructCircle(self, radius: float) -> Optional[fakegeometry.Circle]:
        if radius < 0:
            return None
        return fakegeometry.Circle(radius)

    def GuessAreaOfCircle(self, pi: Optional[Pi], circle: Optional[fakegeometry.Circle]) -> float:
        if circle is None:
            return 0.0
        return 3.14 * circle.radius ** 2

    def BuildTree(self, depth: int) -> TreeNode:
        node = TreeNode(depth)
        if depth > 0:
            node.children.append(self.BuildTree(depth - 1))
        return node

    def ThreePseudoRandomNumbers(self) -> tuple[int, int, int]:
        return random.randint(0, 9), random.randint(0, 9), random.randint(0, 9)

    def LatestError(self) -> tuple[Optional[Exception], bool]:
        return None, False


class CalculatorRPC:
    """CalculatorRPC exposes the calculator in the standard convention."""

    def __init__(self) -> None:
        self.calculator = Calculator()

    def HasBatteries(self, arg: HasBatteriesArg, reply: Optional[HasBatteriesReply]) -> Optional[Exception]:
        return None

    def Add(self, arg: AddArg, reply: Optional[AddReply]) -> Optional[Exception]:
        """Add sums the two operands of arg."""
        self.calculator.Add(arg.a, arg.b)
        return None

    def BigMul(self, arg: BigMulArg, reply: Optional[BigMulReply]) -> Optional[Exception]:
        return None

    def Div(self, arg: DivArg, reply: Optional[DivReply]) -> Optional[Exception]:
        """Div is deprecated. Use Mul instead."""
        if arg.b == 0:
            return ZeroDivisionError("division by zero")
        return None

    def IsZero(
        self,
        arg: int,  # value to test
        reply: Optional[IsZeroReply],
    ) -> Optional[Exception]:
        return None

    def Mul(self, argA: int, argB: int) -> tuple[int, Optional[Exception]]:
        return argA * argB, None

    def BrokenReset(self) -> None:
        self.calculator.Reset()
