"""Tests for class proxies, with and without a separate target."""

import pytest

from interpose import GenericTypeDefinitionError
from interpose import NoTargetProceedError
from interpose import ProxyGenerationOptions
from interpose import ProxyGenerator
from interpose import StandardInterceptor
from interpose import TargetNotImplementedError
from interpose import TypeNotProxyableError
from interpose import as_interface
from interpose import get_interceptors
from interpose import get_proxy_target
from interpose import is_proxy
from tests.fixtures.interceptors import ArgumentOverrideInterceptor
from tests.fixtures.interceptors import MultiplyResultInterceptor
from tests.fixtures.interceptors import RecordingInterceptor
from tests.fixtures.interceptors import ReturnValueInterceptor
from tests.fixtures.interceptors import SkipMembersHook
from tests.fixtures.interceptors import TracingInterceptor
from tests.fixtures.proxy_targets import Account
from tests.fixtures.proxy_targets import Box
from tests.fixtures.proxy_targets import Calculator
from tests.fixtures.proxy_targets import Job
from tests.fixtures.proxy_targets import Resettable
from tests.fixtures.proxy_targets import Sealed
from tests.fixtures.proxy_targets import SelfInitializing
from tests.fixtures.proxy_targets import Thermostat


def test_class_proxy_runs_base_implementation_after_interceptors() -> None:
    """Verify the chain reaches the base-class implementation on the proxy itself."""
    recorder: RecordingInterceptor = RecordingInterceptor()
    calculator = ProxyGenerator().create_class_proxy(Calculator, [recorder])

    result: object = calculator.add(2, 3)

    assert result == 5
    assert recorder.calls == ["add"]
    assert calculator.calls == ["add"]
    assert isinstance(calculator, Calculator) is True
    assert is_proxy(calculator) is True
    assert get_proxy_target(calculator) is calculator
    assert recorder.invocations[0].invocation_target is calculator
    assert recorder.invocations[0].method.declaring_type is Calculator


def test_interceptors_run_in_order_and_see_the_result_after_proceed() -> None:
    """Verify interceptor order and that post-proceed code can replace the result."""
    trace: list[str] = []
    calculator = ProxyGenerator().create_class_proxy(
        Calculator,
        [TracingInterceptor("outer", trace), MultiplyResultInterceptor(10), TracingInterceptor("inner", trace)],
    )

    result: object = calculator.add(1, 2)

    assert result == 30
    assert trace == ["outer-before", "inner-before", "inner-after", "outer-after"]


def test_interceptor_can_short_circuit_the_call() -> None:
    """Verify a call that never proceeds skips the target and returns the set value."""
    calculator = ProxyGenerator().create_class_proxy(Calculator, [ReturnValueInterceptor(-1)])

    result: object = calculator.add(1, 2)

    assert result == -1
    assert calculator.calls == []


def test_interceptor_can_rewrite_arguments() -> None:
    """Verify argument changes made before proceeding reach the target."""
    calculator = ProxyGenerator().create_class_proxy(Calculator, [ArgumentOverrideInterceptor(0, 10)])

    result: object = calculator.add(1, 2)

    assert result == 12


def test_keyword_arguments_are_bound_to_declared_parameters() -> None:
    """Verify keyword calls produce one positional argument slot per parameter."""
    recorder: RecordingInterceptor = RecordingInterceptor()
    calculator = ProxyGenerator().create_class_proxy(Calculator, [recorder])

    result: object = calculator.add(right=4, left=1)

    assert result == 5
    assert recorder.arguments[0] == [1, 4]


def test_members_returning_none_ignore_the_return_value() -> None:
    """Verify members annotated ``-> None`` always return ``None``."""
    calculator = ProxyGenerator().create_class_proxy(Calculator, [ReturnValueInterceptor("ignored")])

    result: object = calculator.reset()

    assert result is None


def test_final_and_static_members_are_reported_and_not_intercepted() -> None:
    """Verify non-proxyable members reach the hook and keep their behavior."""
    hook: SkipMembersHook = SkipMembersHook()
    recorder: RecordingInterceptor = RecordingInterceptor()
    calculator = ProxyGenerator().create_class_proxy(
        Calculator, [recorder], options=ProxyGenerationOptions(hook=hook)
    )

    assert calculator.version() == "1.0"
    assert calculator.describe() == "calculator"
    assert recorder.calls == []
    assert "version" in hook.notifications
    assert "describe" in hook.notifications
    assert hook.inspected == 1


def test_hook_skipped_members_are_inherited_unchanged() -> None:
    """Verify members rejected by the hook run without interception."""
    hook: SkipMembersHook = SkipMembersHook("reset")
    recorder: RecordingInterceptor = RecordingInterceptor()
    calculator = ProxyGenerator().create_class_proxy(
        Calculator, [recorder], options=ProxyGenerationOptions(hook=hook)
    )

    calculator.add(1, 1)
    calculator.reset()

    assert recorder.calls == ["add"]
    assert calculator.calls == []
    assert "reset" not in vars(type(calculator))


def test_abstract_member_without_implementation_cannot_proceed() -> None:
    """Verify an abstract member of a class proxy has no target to proceed to."""
    generator: ProxyGenerator = ProxyGenerator()
    job = generator.create_class_proxy(Job, [StandardInterceptor()])

    with pytest.raises(NoTargetProceedError):
        job.run()
    assert job.name() == "job"

    answered = generator.create_class_proxy(Job, [ReturnValueInterceptor("done")])
    assert answered.run() == "done"


def test_final_class_is_rejected() -> None:
    """Verify a final class cannot be proxied."""
    with pytest.raises(TypeNotProxyableError):
        ProxyGenerator().create_class_proxy(Sealed, [])


def test_generic_type_definition_is_rejected_and_closed_type_is_accepted() -> None:
    """Verify only closed generic classes can be proxied."""
    generator: ProxyGenerator = ProxyGenerator()
    with pytest.raises(GenericTypeDefinitionError) as raised:
        generator.create_class_proxy(Box, [])
    assert raised.value.argument_name == "class_to_proxy"

    box = generator.create_class_proxy(Box[int], [RecordingInterceptor()])
    box.put(3)
    assert box.get() == 3
    assert isinstance(box, Box) is True


def test_constructor_arguments_follow_the_proxy_fields() -> None:
    """Verify base constructor arguments are forwarded after the interceptors."""
    recorder: RecordingInterceptor = RecordingInterceptor()
    account = ProxyGenerator().create_class_proxy(
        Account, [recorder], constructor_args=("ann",), constructor_kwargs={"balance": 5}
    )

    assert account.owner == "ann"
    assert account.deposit(10) == 15
    assert recorder.calls == ["deposit"]
    assert get_interceptors(account) == (recorder,)


def test_required_constructor_arguments_leave_no_parameterless_constructor() -> None:
    """Verify a proxy type of a class with required arguments cannot be built without arguments."""
    account = ProxyGenerator().create_class_proxy(Account, [], constructor_args=("ann",))

    with pytest.raises(TypeError):
        type(account)()


def test_parameterless_constructor_uses_a_standard_interceptor() -> None:
    """Verify the parameterless constructor installs a passthrough interceptor."""
    calculator = ProxyGenerator().create_class_proxy(Calculator, [])

    fresh = type(calculator)()

    interceptors: tuple[object, ...] = get_interceptors(fresh)
    assert len(interceptors) == 1
    assert isinstance(interceptors[0], StandardInterceptor) is True
    assert fresh.add(2, 2) == 4


def test_fields_are_assigned_before_the_base_constructor_runs() -> None:
    """Verify members called from the base constructor are already intercepted."""
    recorder: RecordingInterceptor = RecordingInterceptor()
    instance = ProxyGenerator().create_class_proxy(SelfInitializing, [recorder])

    assert instance.ready is True
    assert recorder.calls == ["prepare"]


def test_properties_are_intercepted_per_accessor() -> None:
    """Verify property getters and setters each run through the chain."""
    recorder: RecordingInterceptor = RecordingInterceptor()
    thermostat = ProxyGenerator().create_class_proxy(Thermostat, [recorder])

    thermostat.celsius = 25.5
    value: object = thermostat.celsius

    assert value == 25.5
    accessors: list[object] = [invocation.method.accessor for invocation in recorder.invocations]
    assert accessors == ["fset", "fget"]


def test_colliding_interface_member_gets_an_explicit_name() -> None:
    """Verify an additional interface member hidden by a class member is reachable through the interface."""
    calculator = ProxyGenerator().create_class_proxy(
        Calculator, [ReturnValueInterceptor("interface reset")], interfaces=[Resettable]
    )

    assert "Resettable.reset" in vars(type(calculator))
    assert isinstance(calculator, Resettable) is True
    assert as_interface(calculator, Resettable).reset() == "interface reset"


def test_class_proxy_with_target_forwards_to_the_target() -> None:
    """Verify a class proxy with target leaves its own state untouched."""
    target: Calculator = Calculator()
    recorder: RecordingInterceptor = RecordingInterceptor()
    proxy = ProxyGenerator().create_class_proxy_with_target(Calculator, target, [recorder])

    result: object = proxy.add(4, 5)

    assert result == 9
    assert target.calls == ["add"]
    assert proxy.calls == []
    assert get_proxy_target(proxy) is target
    invocation = recorder.invocations[0]
    assert invocation.invocation_target is target
    assert invocation.method.declaring_type is Calculator


def test_class_proxy_with_target_rejects_unrelated_target() -> None:
    """Verify the target must be an instance of the proxied class."""
    with pytest.raises(TargetNotImplementedError):
        ProxyGenerator().create_class_proxy_with_target(Calculator, Account("ann"), [])
