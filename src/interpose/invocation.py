"""Interceptor protocol and the invocation objects that drive the chain."""

import abc
from collections.abc import Sequence

from interpose.errors import InvocationChainExhaustedError
from interpose.errors import NoTargetProceedError
from interpose.members import MethodToken
from interpose.refs import Ref


class Interceptor(abc.ABC):
    """Unit of cross-cutting behavior run around a proxied member call."""

    @abc.abstractmethod
    def intercept(self, invocation: "AbstractInvocation") -> None:
        """Handle one call.

        Call ``invocation.proceed()`` to continue with the next interceptor or
        the target; skip it to short-circuit and set ``return_value`` instead.

        :param invocation: Current invocation.
        """


class StandardInterceptor(Interceptor):
    """Passthrough interceptor with overridable hooks around ``proceed()``."""

    def intercept(self, invocation: "AbstractInvocation") -> None:
        """Run ``pre_proceed``, ``perform_proceed`` and ``post_proceed`` in order.

        :param invocation: Current invocation.
        """
        self.pre_proceed(invocation)
        self.perform_proceed(invocation)
        self.post_proceed(invocation)

    def pre_proceed(self, invocation: "AbstractInvocation") -> None:
        """Hook run before the chain continues.

        :param invocation: Current invocation.
        """
        pass

    def perform_proceed(self, invocation: "AbstractInvocation") -> None:
        """Continue the chain.

        :param invocation: Current invocation.
        """
        invocation.proceed()

    def post_proceed(self, invocation: "AbstractInvocation") -> None:
        """Hook run after the chain returns.

        :param invocation: Current invocation.
        """
        pass


class InterceptorSelector(abc.ABC):
    """Choose, per member, which of a proxy's interceptors run."""

    @abc.abstractmethod
    def select_interceptors(
        self,
        type_: type,
        method: MethodToken,
        interceptors: Sequence[Interceptor],
    ) -> Sequence[Interceptor]:
        """Select interceptors for one member.

        The result is cached per proxy instance and member after the first call.

        :param type_: Proxied target type.
        :param method: Declared member being invoked.
        :param interceptors: All interceptors of the proxy instance.
        :returns: Interceptors to run, in order.
        """


class AbstractInvocation(abc.ABC):
    """Per-call context threaded through the interceptor chain.

    The chain is the tuple of interceptors plus a cursor. ``proceed()`` moves
    the cursor one step: to the next interceptor, or, past the last one, to the
    terminal call of the target. The cursor is restored when the step returns
    or raises, so an interceptor may proceed again (e.g. to retry).
    """

    _target: object
    _proxy: object
    _interceptors: tuple[Interceptor, ...]
    _target_type: type
    _target_method: MethodToken
    _interface_method: MethodToken | None
    _arguments: list[object]
    _generic_arguments: tuple[object, ...] | None
    _cursor: int
    return_value: object

    def __init__(
        self,
        target: object,
        proxy: object,
        interceptors: Sequence[Interceptor],
        target_type: type,
        target_method: MethodToken,
        interface_method: MethodToken | None,
        arguments: list[object],
        selector: InterceptorSelector | None = None,
        selected_interceptors: Ref[Sequence[Interceptor]] | None = None,
    ) -> None:
        """Initialize an invocation.

        The first seven parameters are the default construction shape. A
        generated type whose options carry an interceptor selector also passes
        ``selector`` and the cell caching the selected interceptors.

        :param target: Object the terminal step calls into.
        :param proxy: Proxy instance that received the call.
        :param interceptors: Interceptors of the proxy instance.
        :param target_type: Proxied target type.
        :param target_method: Backing member token, or the declared token when there is no backing.
        :param interface_method: Declared member token when it differs from the backing token.
        :param arguments: Call arguments, one slot per declared parameter.
        :param selector: Optional interceptor selector.
        :param selected_interceptors: Writable cell caching the selector's choice.
        """
        self._target = target
        self._proxy = proxy
        self._target_type = target_type
        self._target_method = target_method
        self._interface_method = interface_method
        self._arguments = arguments
        self._generic_arguments = None
        self._cursor = -1
        self.return_value = None
        if selector is not None and selected_interceptors is not None:
            if selected_interceptors.value is None:
                selected_interceptors.value = tuple(
                    selector.select_interceptors(target_type, self.method, tuple(interceptors))
                )
            interceptors = selected_interceptors.value
        self._interceptors = tuple(interceptors)

    @property
    def proxy(self) -> object:
        """Return the proxy instance the call was made on.

        :returns: Proxy instance.
        """
        return self._proxy

    @property
    def invocation_target(self) -> object:
        """Return the object the terminal step runs on.

        :returns: The proxy itself for class proxies, else the proxy target.
        """
        return self._target

    @property
    def target_type(self) -> type:
        """Return the type the proxy was generated for.

        :returns: Proxied type.
        """
        return self._target_type

    @property
    def method(self) -> MethodToken:
        """Return the declared member token.

        :returns: Interface member when the backing member differs, else the backing member.
        """
        if self._interface_method is None:
            return self._target_method
        return self._interface_method

    @property
    def method_invocation_target(self) -> MethodToken:
        """Return the member the terminal step calls.

        :returns: Backing member token.
        """
        return self._target_method

    @property
    def arguments(self) -> list[object]:
        """Return the call arguments, in declaration order.

        :returns: Mutable argument list.
        """
        return self._arguments

    @property
    def interceptors(self) -> tuple[Interceptor, ...]:
        """Return the interceptors running for this call.

        :returns: Interceptors, after selection.
        """
        return self._interceptors

    @property
    def generic_arguments(self) -> tuple[object, ...] | None:
        """Return the type arguments of a generic call.

        :returns: Type arguments, or ``None`` for non-generic calls.
        """
        return self._generic_arguments

    def set_generic_method_arguments(self, generic_arguments: tuple[object, ...]) -> None:
        """Bind the type arguments of a generic call.

        :param generic_arguments: Type arguments.
        """
        self._generic_arguments = tuple(generic_arguments)

    def get_argument_value(self, index: int) -> object:
        """Return one argument.

        :param index: Position in declaration order.
        :returns: Argument value.
        """
        return self._arguments[index]

    def set_argument_value(self, index: int, value: object) -> None:
        """Replace one argument before the terminal step runs.

        :param index: Position in declaration order.
        :param value: New value.
        """
        self._arguments[index] = value

    def get_concrete_method(self) -> MethodToken:
        """Return the declared member token bound to this call's type arguments.

        :returns: Concrete declared member token.
        """
        return self._concrete(self.method)

    def get_concrete_method_invocation_target(self) -> MethodToken:
        """Return the backing member token bound to this call's type arguments.

        :returns: Concrete backing member token.
        """
        return self._concrete(self._target_method)

    def _concrete(self, token: MethodToken) -> MethodToken:
        """Instantiate ``token`` with the call's type arguments when it is a generic definition.

        :param token: Member token.
        :returns: Instantiated token, or ``token`` unchanged.
        """
        if token.is_generic_definition is True and self._generic_arguments is not None:
            return token.make_generic(self._generic_arguments)
        return token

    def proceed(self) -> None:
        """Advance to the next interceptor, or to the target past the last one.

        :raises InvocationChainExhaustedError: If called while already at the terminal step.
        """
        self._cursor += 1
        try:
            if self._cursor < len(self._interceptors):
                self._interceptors[self._cursor].intercept(self)
            elif self._cursor == len(self._interceptors):
                self.invoke_method_on_target()
            else:
                raise InvocationChainExhaustedError(
                    f"proceed() called past the end of the interceptor chain for {self.method.qualified_name}"
                )
        finally:
            self._cursor -= 1

    @abc.abstractmethod
    def invoke_method_on_target(self) -> None:
        """Run the terminal call and store its result in ``return_value``."""

    def __repr__(self) -> str:
        """Return a description naming the member and the arguments.

        :returns: Representation text.
        """
        return f"<{type(self).__name__} {self.method.qualified_name} args={self._arguments!r}>"


class InheritanceInvocation(AbstractInvocation):
    """Invocation whose terminal step runs the base-class implementation on the proxy."""


class CompositionInvocation(AbstractInvocation):
    """Invocation whose terminal step calls the backing member on a separate target."""

    def ensure_valid_target(self) -> None:
        """Check that a target is present.

        :raises NoTargetProceedError: If the invocation has no target.
        """
        if self._target is None:
            raise NoTargetProceedError(self.method.qualified_name)
