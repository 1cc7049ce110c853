"""Interceptors, hooks and selectors shared by the test suite."""

from collections.abc import Sequence

from interpose import AbstractInvocation
from interpose import AllMethodsHook
from interpose import Interceptor
from interpose import InterceptorSelector
from interpose import MethodToken
from interpose import StandardInterceptor


class RecordingInterceptor(StandardInterceptor):
    """Record the name of every intercepted member, then proceed."""

    calls: list[str]
    arguments: list[list[object]]
    invocations: list[AbstractInvocation]

    def __init__(self) -> None:
        """Initialize empty records."""
        self.calls = []
        self.arguments = []
        self.invocations = []

    def pre_proceed(self, invocation: AbstractInvocation) -> None:
        self.calls.append(invocation.method.name)
        self.arguments.append(list(invocation.arguments))
        self.invocations.append(invocation)


class TracingInterceptor(Interceptor):
    """Append ``<label>-before``/``<label>-after`` around ``proceed()``."""

    label: str
    trace: list[str]

    def __init__(self, label: str, trace: list[str]) -> None:
        """Initialize the tracer.

        :param label: Prefix of the trace entries.
        :param trace: Shared trace list.
        """
        self.label = label
        self.trace = trace

    def intercept(self, invocation: AbstractInvocation) -> None:
        self.trace.append(f"{self.label}-before")
        invocation.proceed()
        self.trace.append(f"{self.label}-after")


class MultiplyResultInterceptor(Interceptor):
    """Proceed, then multiply the return value."""

    factor: int

    def __init__(self, factor: int) -> None:
        self.factor = factor

    def intercept(self, invocation: AbstractInvocation) -> None:
        invocation.proceed()
        invocation.return_value = invocation.return_value * self.factor  # type: ignore[operator]


class ReturnValueInterceptor(Interceptor):
    """Short-circuit every call with a fixed return value."""

    value: object
    arguments: dict[int, object]

    def __init__(self, value: object, arguments: dict[int, object] | None = None) -> None:
        """Initialize the interceptor.

        :param value: Return value to set.
        :param arguments: Argument values to set by index before returning.
        """
        self.value = value
        self.arguments = arguments if arguments is not None else {}

    def intercept(self, invocation: AbstractInvocation) -> None:
        for index, argument in self.arguments.items():
            invocation.set_argument_value(index, argument)
        invocation.return_value = self.value


class ArgumentOverrideInterceptor(Interceptor):
    """Replace one argument, then proceed."""

    index: int
    value: object

    def __init__(self, index: int, value: object) -> None:
        self.index = index
        self.value = value

    def intercept(self, invocation: AbstractInvocation) -> None:
        invocation.set_argument_value(self.index, self.value)
        invocation.proceed()


class SkipMembersHook(AllMethodsHook):
    """Leave the named members out of interception and record notifications."""

    skipped_names: frozenset[str]
    notifications: list[str]
    inspected: int

    def __init__(self, *skipped_names: str) -> None:
        """Initialize the hook.

        :param skipped_names: Member names not to intercept.
        """
        self.skipped_names = frozenset(skipped_names)
        self.notifications = []
        self.inspected = 0

    def should_intercept_method(self, type_: type, member: MethodToken) -> bool:
        if member.name in self.skipped_names:
            return False
        return super().should_intercept_method(type_, member)

    def non_proxyable_member_notification(self, type_: type, member: MethodToken) -> None:
        self.notifications.append(member.name)

    def methods_inspected(self) -> None:
        self.inspected += 1

    def __eq__(self, other: object) -> bool:
        return self is other

    def __hash__(self) -> int:
        return id(self)


class CountingSelector(InterceptorSelector):
    """Keep only ``RecordingInterceptor`` instances and count selections."""

    selections: int

    def __init__(self) -> None:
        self.selections = 0

    def select_interceptors(
        self,
        type_: type,
        method: MethodToken,
        interceptors: Sequence[Interceptor],
    ) -> Sequence[Interceptor]:
        self.selections += 1
        return [interceptor for interceptor in interceptors if isinstance(interceptor, RecordingInterceptor)]
