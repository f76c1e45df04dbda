"""Tests for source declaration lookup and field expansion."""

from __future__ import annotations

import ast
from typing import Optional

import fakearithmetic
import pytest

from refract.core.callables import ServiceCallable, collect_callables
from refract.core.declarations import DeclarationResolver, FieldGroup, expand_field, strip_qualifiers
from refract.core.errors import DeclarationNotFound


class Foo:
    def Ping(self) -> str:
        """Ping from Foo."""
        return "foo"


class FooBar:
    def Ping(self) -> str:
        """Ping from FooBar."""
        return "foobar"


class Child(Foo):
    pass


class Notes:
    def Tag(self, label: str,  # short label
            weight: int) -> int:
        return weight

    def Solo(self, value: int) -> int:  # returns the value
        return value


class Helpers:
    # Echo returns its input.
    @staticmethod
    def Echo(value: int) -> int:
        return value


def _call(receiver, name):
    return ServiceCallable.from_function(getattr(receiver, name), name=name)


def _resolve(receiver, name):
    return DeclarationResolver().resolve(_call(receiver, name))


# ----------------------------------------------------------------------
# expand_field
# ----------------------------------------------------------------------


def test_expand_field_one_per_name():
    group = FieldGroup(names=["a", "b", "c"], type_text="int")
    fields = expand_field(group)
    assert [f.name for f in fields] == ["a", "b", "c"]
    assert all(f.group is group for f in fields)


def test_expand_field_unnamed_uses_type_text():
    fields = expand_field(FieldGroup(type_text="list[int]"))
    assert [f.name for f in fields] == ["list[int]"]


def test_expand_field_none():
    assert expand_field(None) == []


def test_expand_field_strips_pointer_qualifiers():
    annotation = ast.parse("Optional[fakegeometry.Circle]", mode="eval").body
    group = FieldGroup(annotation=annotation, type_text="Optional[fakegeometry.Circle]")
    assert expand_field(group)[0].name == "Optional[fakegeometry.Circle]"
    assert expand_field(group, strip_pointer_qualifiers=True)[0].name == "Optional[Circle]"


def test_strip_qualifiers_leaves_plain_names():
    assert strip_qualifiers("dict[str, a.b.C]") == "dict[str, C]"
    assert strip_qualifiers("int") == "int"


# ----------------------------------------------------------------------
# Resolution
# ----------------------------------------------------------------------


def test_resolves_method_and_drops_receiver():
    decl = _resolve(fakearithmetic.Calculator(), "Add")
    assert decl.name == "Add"
    assert [g.names for g in decl.params] == [["argA"], ["argB"]]
    assert [g.type_text for g in decl.params] == ["int", "int"]
    assert [g.type_text for g in decl.results] == ["int"]
    assert decl.summary == "Add returns the sum of two integers."
    assert decl.source.startswith("def Add(self, argA: int, argB: int)")
    assert decl.source_file.endswith("fakearithmetic.py")


def test_same_name_in_prefixed_class_is_not_confused():
    assert _resolve(Foo(), "Ping").summary == "Ping from Foo."
    assert _resolve(FooBar(), "Ping").summary == "Ping from FooBar."


def test_inherited_method_resolves_to_defining_class():
    assert _resolve(Child(), "Ping").summary == "Ping from Foo."


def test_staticmethod_keeps_first_parameter():
    decl = _resolve(Helpers(), "Echo")
    assert [g.names for g in decl.params] == [["value"]]
    # Comments above the decorator document a function without a docstring.
    assert decl.doc == "Echo returns its input."


def test_parameter_comments():
    decl = _resolve(fakearithmetic.Calculator(), "Mul")
    arg_a, arg_b = decl.params
    assert arg_a.comment == "the multiplicand"
    assert arg_b.doc == "the multiplier"
    assert [g.type_text for g in decl.results] == ["int", "Optional[Exception]"]


def test_comment_after_first_parameter_on_def_line():
    label, weight = _resolve(Notes(), "Tag").params
    assert label.comment == "short label"
    assert weight.comment == ""


def test_comment_after_signature_is_not_a_parameter_comment():
    (value,) = _resolve(Notes(), "Solo").params
    assert value.comment == ""


def test_docstring_args_fill_parameter_docs():
    decl = _resolve(fakearithmetic.Calculator(), "GetRecord")
    (index,) = decl.params
    assert index.doc == "Position in the history, oldest first."
    assert index.has_default


def test_none_return_has_no_results():
    assert _resolve(fakearithmetic.Calculator(), "Reset").results == []


def test_variadic_parameter():
    decl = _resolve(fakearithmetic.Calculator(), "SumWithContext")
    ctx, numbers = decl.params
    assert ctx.names == ["ctx"]
    assert numbers.names == ["numbers"]
    assert numbers.variadic


def test_pointer_groups():
    decl = _resolve(fakearithmetic.Calculator(), "ConstructCircle")
    (result,) = decl.results
    assert result.is_pointer
    assert not decl.params[0].is_pointer


def test_builtin_has_no_declaration():
    call = ServiceCallable.from_function(len, name="len")
    with pytest.raises(DeclarationNotFound):
        DeclarationResolver().resolve(call)


def test_exec_generated_function_is_synthetic():
    namespace = {"__name__": "generated"}
    exec("def Ping() -> int:\n    return 1\n", namespace)
    call = ServiceCallable.from_function(namespace["Ping"])
    with pytest.raises(DeclarationNotFound) as excinfo:
        DeclarationResolver().resolve(call)
    assert excinfo.value.synthetic


def test_resolver_memoises_parsed_files():
    resolver = DeclarationResolver()
    calls = collect_callables(fakearithmetic.Calculator())
    for call in calls:
        if not call.name.startswith("_"):
            resolver.resolve(call)
    assert len(resolver._sources) == 1


# ----------------------------------------------------------------------
# Callables
# ----------------------------------------------------------------------


def test_collect_callables_sorted_and_without_dunders():
    names = [c.name for c in collect_callables(fakearithmetic.Calculator())]
    assert names == sorted(names)
    assert "__init__" not in names
    assert "Add" in names and "_remember" in names


def test_collect_callables_from_module():
    from refract.core import hashing

    names = [c.name for c in collect_callables(hashing)]
    assert names == ["canonical_json", "hash_bytes", "hash_dict", "hash_string"]
    assert all(c.receiver_type_name == "hashing" for c in collect_callables(hashing))


def test_from_function_splits_results():
    call = _call(fakearithmetic.Calculator(), "Mul")
    assert call.result_types == (int, Optional[Exception])
    assert call.bound
    assert call.receiver_type_name == "Calculator"


def test_from_function_variadic_is_list():
    call = _call(fakearithmetic.Calculator(), "SumWithContext")
    assert call.param_types[1] == list[int]
