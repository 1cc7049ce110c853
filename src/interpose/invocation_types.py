"""Synthesis of the nested invocation class of each backing member."""

import types
from collections.abc import Callable
from typing import Generic

from interpose.contributors import Callback
from interpose.contributors import MethodToGenerate
from interpose.emitter import ClassEmitter
from interpose.emitter import ParameterLayout
from interpose.errors import NoTargetProceedError
from interpose.invocation import AbstractInvocation
from interpose.invocation import CompositionInvocation
from interpose.invocation import InheritanceInvocation
from interpose.members import TYPE_ARGS_PARAMETER
from interpose.members import MethodToken


def _invoke_on_target(
    callback: Callback,
    declared_layout: ParameterLayout,
    backing_layout: ParameterLayout,
    generic: bool,
    composition: bool,
) -> Callable[[AbstractInvocation], None]:
    """Build the terminal step calling the backing member.

    :param callback: Backing member, called with the target first.
    :param declared_layout: Parameter layout of the declared member.
    :param backing_layout: Parameter layout of the backing member.
    :param generic: Whether the backing member takes type arguments.
    :param composition: Whether the target is a separate object that must be checked first.
    :returns: ``invoke_method_on_target`` implementation.
    """

    def invoke_method_on_target(self: AbstractInvocation) -> None:
        """Call the backing member and copy by-reference values back into the arguments.

        :param self: Invocation at the end of the chain.
        """
        if composition is True:
            self.ensure_valid_target()  # type: ignore[attr-defined]
        call_values, cells = declared_layout.wrap_by_ref(self.arguments)
        args, kwargs = backing_layout.unbind(call_values)
        if generic is True:
            kwargs[TYPE_ARGS_PARAMETER] = self.generic_arguments
        self.return_value = callback(self.invocation_target, *args, **kwargs)
        for index, cell in cells:
            self.arguments[index] = cell.value

    return invoke_method_on_target


def _invoke_without_target(self: AbstractInvocation) -> None:
    """Report that the member has no target to proceed to.

    :param self: Invocation reaching the end of the chain.
    :raises NoTargetProceedError: Always.
    """
    raise NoTargetProceedError(self.method.qualified_name)


class InvocationTypeGenerator:
    """Build the invocation class threading the interceptor chain for one backing member.

    Class proxies get an ``InheritanceInvocation`` whose terminal step calls the
    base-class implementation on the proxy; every other contributor gets a
    ``CompositionInvocation`` calling the backing member on its target. Without
    a callback the terminal step raises ``NoTargetProceedError``. Generic members
    get a class generic over the member's type parameters, subscripted with the
    call's type arguments.
    """

    method: MethodToGenerate
    callback: Callback | None
    declared_layout: ParameterLayout
    inheritance: bool

    def __init__(
        self,
        method: MethodToGenerate,
        callback: Callback | None,
        declared_layout: ParameterLayout,
        inheritance: bool,
    ) -> None:
        """Initialize the generator.

        :param method: Member the invocation class serves.
        :param callback: Backing member, or ``None`` when there is no target.
        :param declared_layout: Parameter layout of the declared member.
        :param inheritance: Whether the backing member runs on the proxy itself.
        """
        self.method = method
        self.callback = callback
        self.declared_layout = declared_layout
        self.inheritance = inheritance

    def _backing_layout(self) -> ParameterLayout:
        """Return the layout used to unbind arguments for the backing member.

        :returns: Backing layout, or the declared layout when the callback is not the backing member.
        """
        backing: MethodToken | None = self.method.method_on_target
        if backing is None or self.callback is not backing.function:
            return self.declared_layout
        return ParameterLayout(backing.function, generic=backing.is_generic)

    def generate(self, emitter: ClassEmitter, name: str) -> type:
        """Define the invocation class and nest it in the generated type.

        :param emitter: Emitter of the generated type.
        :param name: Nested class name.
        :returns: Invocation class.
        """
        base: type = InheritanceInvocation if self.inheritance is True else CompositionInvocation
        namespace: dict[str, object] = {"__module__": emitter.module}
        if self.callback is None:
            namespace["invoke_method_on_target"] = _invoke_without_target
        else:
            backing: MethodToken | None = self.method.method_on_target
            generic: bool = backing.is_generic if backing is not None else self.method.method.is_generic
            namespace["invoke_method_on_target"] = _invoke_on_target(
                self.callback,
                self.declared_layout,
                self._backing_layout(),
                generic,
                self.inheritance is False,
            )

        bases: tuple[object, ...] = (base,)
        if self.method.method.is_generic is True:
            bases = (base, Generic[self.method.method.generic_parameters])  # type: ignore[index]
        invocation_type: type = types.new_class(name, bases, {}, lambda body: body.update(namespace))
        return emitter.create_nested_class(name, invocation_type)
