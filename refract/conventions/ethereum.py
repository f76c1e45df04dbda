"""Ethereum-style convention.

Any positional parameters, an optional leading context parameter, and at
most one non-error result followed by an optional error::

    def add(self, a: int, b: int) -> int
    def sum(self, ctx: contextvars.Context, *values: int) -> tuple[int, Exception | None]

Method names are ``<receiver>_<method>`` with both parts first-lowered.
"""

from __future__ import annotations

from refract.conventions.base import Convention, first_lower
from refract.core.callables import ParameterKind, ServiceCallable
from refract.core.declarations import DeclarationRecord, NamedField
from refract.core.kinds import is_exported_name
from refract.core.model import ContentDescriptor, null_content_descriptor


def ethereum_method_name(receiver_name: str, method_name: str, receiver_type: str) -> str:
    """``ethereum_method_name("", "Add", "Calculator") == "calculator_add"``."""
    return f"{first_lower(receiver_name or receiver_type)}_{first_lower(method_name)}"


class EthereumConvention(Convention):
    name = "ethereum"
    strip_pointer_qualifiers = True

    def ineligibility_reason(self, call: ServiceCallable) -> str | None:
        if not is_exported_name(call.name):
            return "not exported"
        if any(p.kind in (ParameterKind.KEYWORD_ONLY, ParameterKind.VAR_KEYWORD) for p in call.parameters):
            return "keyword-only parameters cannot be passed by position"
        results = call.result_types
        if len(results) > 2:
            return f"has {len(results)} results, at most two are allowed"
        if len(results) == 2:
            if self.is_error_type(results[0]):
                return "an error result must come last"
            if not self.is_error_type(results[1]):
                return "the second result must be an error"
        return None

    def method_name(self, receiver_name: str, call: ServiceCallable) -> str:
        return ethereum_method_name(receiver_name, call.name, call.receiver_type_name)

    def method_params(self, call: ServiceCallable, decl: DeclarationRecord) -> list[ContentDescriptor]:
        descriptors = []
        fields = self.param_fields(call, decl)
        for index, (field, tp) in enumerate(zip(fields, call.param_types)):
            # A leading context is consumed positionally but not described.
            if index == 0 and self.is_context_type(tp):
                continue
            descriptors.append(self.build_content_descriptor(call, field, tp))
        return descriptors

    def method_result(self, call: ServiceCallable, decl: DeclarationRecord) -> ContentDescriptor:
        results = call.result_types
        if not results or self.is_error_type(results[0]):
            return null_content_descriptor()
        field = self.result_fields(call, decl)[0]
        return self.build_content_descriptor(call, field, results[0], mode="serialization")

    def descriptor_required(self, call: ServiceCallable, field: NamedField) -> bool:
        return not (field.group.has_default or field.group.variadic)
