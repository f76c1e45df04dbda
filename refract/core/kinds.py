"""Classification of runtime type annotations.

Service signatures are plain Python annotations.  The helpers here answer
the structural questions the conventions and the schema engine ask about
them: is this a pointer (``Optional[T]``), a variable-length sequence, the
error kind, a context parameter, or something JSON Schema cannot express?
"""

from __future__ import annotations

import asyncio
import collections
import collections.abc
import functools
import queue
import types
from enum import Enum
from typing import Annotated, Any, Literal, Union, get_args, get_origin

NoneType = type(None)


class TypeKind(str, Enum):
    """Structural kind of an annotation."""

    ANY = "any"
    NONE = "none"
    POINTER = "pointer"
    UNION = "union"
    SEQUENCE = "sequence"
    ARRAY = "array"
    MAPPING = "mapping"
    FUNCTION = "function"
    CHANNEL = "channel"
    NAMED = "named"


_SEQUENCE_TYPES: tuple[Any, ...] = (
    list,
    set,
    frozenset,
    collections.deque,
    collections.abc.Sequence,
    collections.abc.MutableSequence,
    collections.abc.Set,
    collections.abc.MutableSet,
    collections.abc.Collection,
    collections.abc.Iterable,
)

_MAPPING_TYPES: tuple[Any, ...] = (
    dict,
    collections.OrderedDict,
    collections.defaultdict,
    collections.abc.Mapping,
    collections.abc.MutableMapping,
)

_FUNCTION_TYPES: tuple[Any, ...] = (
    collections.abc.Callable,
    types.FunctionType,
    types.BuiltinFunctionType,
    types.MethodType,
    functools.partial,
)

# Streams and queues have no JSON value.
_CHANNEL_CLASSES: tuple[type, ...] = (
    queue.Queue,
    queue.SimpleQueue,
    asyncio.Queue,
    collections.abc.Iterator,
    collections.abc.AsyncIterator,
    collections.abc.Awaitable,
)


def strip_annotated(tp: Any) -> Any:
    """Return the bare type of an ``Annotated[...]`` annotation."""
    while get_origin(tp) is Annotated:
        tp = get_args(tp)[0]
    return tp


def _is_union(tp: Any) -> bool:
    origin = get_origin(tp)
    return origin is Union or origin is types.UnionType


def pointer_target(tp: Any) -> Any | None:
    """Return ``T`` for ``Optional[T]`` / ``T | None``, else ``None``."""
    tp = strip_annotated(tp)
    if not _is_union(tp):
        return None
    args = get_args(tp)
    if NoneType not in args:
        return None
    rest = tuple(a for a in args if a is not NoneType)
    if not rest:
        return None
    if len(rest) == 1:
        return rest[0]
    return Union[rest]


def is_pointer(tp: Any) -> bool:
    return pointer_target(tp) is not None


def deref(tp: Any) -> Any:
    """Strip one level of optionality; non-pointers are returned unchanged."""
    target = pointer_target(tp)
    return tp if target is None else target


def is_sequence(tp: Any) -> bool:
    """True for variable-length sequences (``list[T]``, ``tuple[T, ...]``, ...)."""
    tp = strip_annotated(tp)
    base = get_origin(tp) or tp
    if base is tuple:
        args = get_args(tp)
        return not args or (len(args) == 2 and args[1] is Ellipsis)
    return any(base is s for s in _SEQUENCE_TYPES)


def _is_function(base: Any) -> bool:
    return any(base is f for f in _FUNCTION_TYPES)


def _is_channel(base: Any) -> bool:
    return isinstance(base, type) and issubclass(base, _CHANNEL_CLASSES)


def type_kind(tp: Any) -> TypeKind:
    """Classify *tp* into a :class:`TypeKind`."""
    tp = strip_annotated(tp)
    if tp is Any or tp is object:
        return TypeKind.ANY
    if tp is None or tp is NoneType:
        return TypeKind.NONE
    if is_pointer(tp):
        return TypeKind.POINTER
    if _is_union(tp):
        return TypeKind.UNION
    base = get_origin(tp) or tp
    if _is_function(base):
        return TypeKind.FUNCTION
    if _is_channel(base):
        return TypeKind.CHANNEL
    if is_sequence(tp):
        return TypeKind.SEQUENCE
    if base is tuple:
        return TypeKind.ARRAY
    if any(base is m for m in _MAPPING_TYPES):
        return TypeKind.MAPPING
    return TypeKind.NAMED


def is_exported_name(name: str) -> bool:
    return bool(name) and not name.startswith("_")


def is_exported_or_builtin(tp: Any) -> bool:
    """True when *tp* is a builtin, a generic alias, or a public named type."""
    tp = deref(strip_annotated(tp))
    if tp is Any or get_origin(tp) is not None:
        return True
    if getattr(tp, "__module__", None) == "builtins":
        return True
    return is_exported_name(getattr(tp, "__name__", ""))


def is_error_type(tp: Any, error_types: tuple[Any, ...] = (Exception,)) -> bool:
    """True when *tp* is exactly one of *error_types* (optionality ignored)."""
    tp = deref(strip_annotated(tp))
    return any(tp is e for e in error_types)


def is_context_type(tp: Any, context_types: tuple[Any, ...]) -> bool:
    tp = strip_annotated(tp)
    return any(tp is c for c in context_types)


def full_type_description(tp: Any) -> str:
    """Printable, module-qualified name of *tp*.

    Builtins stay bare (``int``), everything else carries its defining module
    (``geometry.Circle``); generics are printed recursively.
    """
    tp = strip_annotated(tp)
    target = pointer_target(tp)
    if target is not None:
        return f"Optional[{full_type_description(target)}]"
    if tp is Any:
        return "typing.Any"
    if tp is None or tp is NoneType:
        return "None"
    if tp is Ellipsis:
        return "..."
    origin = get_origin(tp)
    if origin is not None:
        args = get_args(tp)
        if origin is Literal:
            return f"Literal[{', '.join(repr(a) for a in args)}]"
        if _is_union(tp):
            return " | ".join(full_type_description(a) for a in args)
        head = full_type_description(origin)
        if not args:
            return head
        return f"{head}[{', '.join(full_type_description(a) for a in args)}]"
    name = getattr(tp, "__qualname__", None) or getattr(tp, "__name__", None)
    if not isinstance(name, str):
        return repr(tp)
    module = getattr(tp, "__module__", None)
    if module in (None, "builtins"):
        return name
    return f"{module}.{name}"
