"""Standard convention: ``Method(self, arg, reply) -> Optional[Exception]``.

Each method takes one request value and one ``Optional[...]`` reply holder
and returns only an error.  The request becomes the single parameter; the
dereferenced reply type becomes the result.
"""

from __future__ import annotations

from refract.conventions.base import Convention
from refract.core.callables import ParameterKind, ServiceCallable
from refract.core.declarations import DeclarationRecord
from refract.core.kinds import deref, full_type_description, is_exported_name, is_exported_or_builtin, is_pointer
from refract.core.model import ContentDescriptor


class StandardConvention(Convention):
    name = "standard"

    def ineligibility_reason(self, call: ServiceCallable) -> str | None:
        if not is_exported_name(call.name):
            return "not exported"
        if any(p.kind is not ParameterKind.POSITIONAL for p in call.parameters):
            return "only positional parameters are supported"
        if len(call.parameters) != 2:
            return f"has {len(call.parameters)} parameters, needs exactly two (arg, reply)"
        arg, reply = call.param_types
        if not is_exported_or_builtin(arg):
            return f"argument type {full_type_description(arg)} is not exported"
        if not is_pointer(reply):
            return f"reply type {full_type_description(reply)} is not Optional"
        if not is_exported_or_builtin(reply):
            return f"reply type {full_type_description(reply)} is not exported"
        if len(call.result_types) != 1:
            return f"has {len(call.result_types)} results, needs exactly one"
        if not self.is_error_type(call.result_types[0]):
            return f"returns {full_type_description(call.result_types[0])}, not an error"
        return None

    def method_name(self, receiver_name: str, call: ServiceCallable) -> str:
        return f"{receiver_name or call.receiver_type_name}.{call.name}"

    def method_params(self, call: ServiceCallable, decl: DeclarationRecord) -> list[ContentDescriptor]:
        arg = self.param_fields(call, decl)[0]
        return [self.build_content_descriptor(call, arg, call.param_types[0])]

    def method_result(self, call: ServiceCallable, decl: DeclarationRecord) -> ContentDescriptor:
        reply = self.param_fields(call, decl)[1]
        return self.build_content_descriptor(call, reply, deref(call.param_types[1]), mode="serialization")
