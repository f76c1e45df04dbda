"""Runtime view of the callables a service receiver exposes."""

from __future__ import annotations

import inspect
import logging
import typing
from dataclasses import dataclass
from enum import Enum
from typing import Any, get_args, get_origin

from refract.core.kinds import NoneType, strip_annotated

logger = logging.getLogger("refract.callables")


class ParameterKind(str, Enum):
    POSITIONAL = "positional"
    VAR_POSITIONAL = "var_positional"
    KEYWORD_ONLY = "keyword_only"
    VAR_KEYWORD = "var_keyword"


_KINDS = {
    inspect.Parameter.POSITIONAL_ONLY: ParameterKind.POSITIONAL,
    inspect.Parameter.POSITIONAL_OR_KEYWORD: ParameterKind.POSITIONAL,
    inspect.Parameter.VAR_POSITIONAL: ParameterKind.VAR_POSITIONAL,
    inspect.Parameter.KEYWORD_ONLY: ParameterKind.KEYWORD_ONLY,
    inspect.Parameter.VAR_KEYWORD: ParameterKind.VAR_KEYWORD,
}


@dataclass(frozen=True)
class Parameter:
    """One non-receiver parameter with its resolved type."""

    name: str
    kind: ParameterKind
    type: Any = Any
    has_default: bool = False


@dataclass(frozen=True)
class ServiceCallable:
    """A function value, optionally bound to a receiver.

    ``parameters`` never include the receiver slot; ``bound`` records whether
    one was consumed.
    """

    name: str
    function: Any
    receiver: Any = None
    bound: bool = False
    parameters: tuple[Parameter, ...] = ()
    result_types: tuple[Any, ...] = ()

    @property
    def param_types(self) -> tuple[Any, ...]:
        return tuple(p.type for p in self.parameters)

    @property
    def qualname(self) -> str:
        return getattr(self.function, "__qualname__", self.name)

    @property
    def bare_name(self) -> str:
        return self.qualname.rpartition(".")[2]

    @property
    def enclosing_qualname(self) -> str:
        return self.qualname.rpartition(".")[0]

    @property
    def module(self) -> str:
        return getattr(self.function, "__module__", None) or ""

    @property
    def receiver_type_name(self) -> str:
        return receiver_type_name(self.receiver)

    @classmethod
    def from_function(cls, fn: Any, *, name: str | None = None, receiver: Any = None) -> ServiceCallable:
        """Build from a plain function or bound method."""
        bound = inspect.ismethod(fn)
        if bound and receiver is None:
            receiver = fn.__self__
        func = inspect.unwrap(fn.__func__ if bound else fn)
        params = list(inspect.signature(func).parameters.values())
        if bound and params:
            params = params[1:]

        hints = resolve_hints(func)
        parameters = []
        for p in params:
            kind = _KINDS[p.kind]
            tp = hints.get(p.name, Any)
            if kind is ParameterKind.VAR_POSITIONAL:
                tp = list[tp]
            parameters.append(Parameter(p.name, kind, tp, p.default is not inspect.Parameter.empty))

        results = split_results(hints["return"]) if "return" in hints else (Any,)
        return cls(
            name=name or func.__name__,
            function=func,
            receiver=receiver,
            bound=bound,
            parameters=tuple(parameters),
            result_types=results,
        )


def resolve_hints(func: Any) -> dict[str, Any]:
    """Evaluated annotations of *func*; unresolvable names degrade to ``Any``."""
    try:
        return typing.get_type_hints(func, include_extras=True)
    except (NameError, TypeError, AttributeError) as exc:
        logger.warning("Could not resolve annotations of %s: %s", getattr(func, "__qualname__", func), exc)
        return {}


def split_results(tp: Any) -> tuple[Any, ...]:
    """Split a return annotation into result positions.

    ``None`` is zero results and a fixed-length ``tuple[A, B]`` is one result
    per element; anything else, including ``tuple[T, ...]``, is one result.
    """
    bare = strip_annotated(tp)
    if bare is None or bare is NoneType:
        return ()
    if get_origin(bare) is tuple:
        args = get_args(bare)
        if not args:
            return ()
        if args[-1] is not Ellipsis:
            return tuple(args)
    return (tp,)


def receiver_type_name(receiver: Any) -> str:
    if receiver is None:
        return ""
    if inspect.ismodule(receiver):
        return receiver.__name__.rpartition(".")[2]
    if inspect.isclass(receiver):
        return receiver.__name__
    return type(receiver).__name__


def collect_callables(receiver: Any) -> list[ServiceCallable]:
    """Enumerate the Python functions reachable on *receiver*, sorted by name.

    Instances contribute every method of their class hierarchy; modules
    contribute the functions they define.  Dunder names are never listed.
    """
    out: list[ServiceCallable] = []
    if inspect.ismodule(receiver):
        for name, value in sorted(vars(receiver).items()):
            if name.startswith("__"):
                continue
            if inspect.isfunction(value) and value.__module__ == receiver.__name__:
                out.append(ServiceCallable.from_function(value, name=name, receiver=receiver))
        return out

    owner = type(receiver)
    for name in sorted(dir(owner)):
        if name.startswith("__"):
            continue
        static = inspect.getattr_static(owner, name)
        raw = static.__func__ if isinstance(static, (staticmethod, classmethod)) else static
        if not callable(raw) or not inspect.isfunction(inspect.unwrap(raw)):
            continue
        out.append(ServiceCallable.from_function(getattr(receiver, name), name=name, receiver=receiver))
    return out
