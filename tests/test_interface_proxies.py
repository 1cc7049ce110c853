"""Tests for interface proxies, mixins, generic members and by-reference parameters."""

import pytest

from interpose import InterfaceExpectedError
from interpose import InvalidMixinConfigurationError
from interpose import MissingTypeArgumentsError
from interpose import NoTargetProceedError
from interpose import Out
from interpose import ProxyGenerationOptions
from interpose import ProxyGenerator
from interpose import Ref
from interpose import StandardInterceptor
from interpose import TargetNotImplementedError
from interpose import as_interface
from interpose import get_proxy_target
from tests.fixtures.interceptors import CountingSelector
from tests.fixtures.interceptors import RecordingInterceptor
from tests.fixtures.interceptors import ReturnValueInterceptor
from tests.fixtures.interceptors import SkipMembersHook
from tests.fixtures.proxy_targets import AuditMixin
from tests.fixtures.proxy_targets import Auditable
from tests.fixtures.proxy_targets import BuiltinConverter
from tests.fixtures.proxy_targets import Calculator
from tests.fixtures.proxy_targets import Converter
from tests.fixtures.proxy_targets import Document
from tests.fixtures.proxy_targets import FriendlyGreeter
from tests.fixtures.proxy_targets import Greeter
from tests.fixtures.proxy_targets import GreeterMixin
from tests.fixtures.proxy_targets import IntParser
from tests.fixtures.proxy_targets import LoudGreeter
from tests.fixtures.proxy_targets import Named
from tests.fixtures.proxy_targets import Observable
from tests.fixtures.proxy_targets import OtherAuditMixin
from tests.fixtures.proxy_targets import Parser
from tests.fixtures.proxy_targets import Person
from tests.fixtures.proxy_targets import Resource
from tests.fixtures.proxy_targets import Shape
from tests.fixtures.proxy_targets import Square
from tests.fixtures.proxy_targets import SupportsClose


def test_interface_proxy_forwards_to_the_target() -> None:
    """Verify the target's implementation backs every interface member."""
    target: FriendlyGreeter = FriendlyGreeter()
    recorder: RecordingInterceptor = RecordingInterceptor()
    greeter = ProxyGenerator().create_interface_proxy_with_target(LoudGreeter, target, [recorder])

    assert greeter.greet("ann") == "Hello, ann"
    assert greeter.shout("bob") == "HELLO, BOB"
    assert isinstance(greeter, Greeter) is True
    assert isinstance(greeter, FriendlyGreeter) is False
    assert get_proxy_target(greeter) is target
    assert recorder.calls == ["greet", "shout"]

    invocation = recorder.invocations[0]
    assert invocation.invocation_target is target
    assert invocation.method.declaring_type is Greeter
    assert invocation.method_invocation_target.declaring_type is FriendlyGreeter


def test_interface_proxy_requires_an_interface_and_a_matching_target() -> None:
    """Verify the proxied type must be an interface implemented by the target."""
    generator: ProxyGenerator = ProxyGenerator()
    with pytest.raises(InterfaceExpectedError):
        generator.create_interface_proxy_with_target(Calculator, Calculator(), [])
    with pytest.raises(TargetNotImplementedError):
        generator.create_interface_proxy_with_target(Greeter, Calculator(), [])


def test_structural_protocol_target_is_accepted() -> None:
    """Verify a protocol interface accepts a target that implements it structurally."""
    closer = ProxyGenerator().create_interface_proxy_with_target(SupportsClose, Resource(), [RecordingInterceptor()])

    assert closer.close() == "closed"


def test_interface_proxy_without_target_cannot_proceed() -> None:
    """Verify interceptors must produce the result when there is no target."""
    generator: ProxyGenerator = ProxyGenerator()
    greeter = generator.create_interface_proxy_without_target(Greeter, [StandardInterceptor()])

    with pytest.raises(NoTargetProceedError) as raised:
        greeter.greet("ann")
    assert isinstance(raised.value, NotImplementedError) is True
    assert get_proxy_target(greeter) is None

    answering = generator.create_interface_proxy_without_target(Greeter, [ReturnValueInterceptor("hi")])
    assert answering.greet("ann") == "hi"


def test_redeclared_interface_member_is_generated_once() -> None:
    """Verify a member redeclared by a derived interface also implements the base member."""
    square = ProxyGenerator().create_interface_proxy_without_target(Square, [ReturnValueInterceptor(4.0)])

    members: dict[str, object] = vars(type(square))
    assert "area" in members
    assert "Shape.area" not in members
    assert as_interface(square, Shape).area() == 4.0


def test_out_and_ref_parameters_are_copied_back() -> None:
    """Verify by-reference values written by the target reach the caller's cells."""
    parser = ProxyGenerator().create_interface_proxy_with_target(Parser, IntParser(), [RecordingInterceptor()])

    result: Out[int] = Out()
    parsed: object = parser.try_parse("42", result)
    counter: Ref[int] = Ref(1)
    parser.increment(counter)

    assert parsed is True
    assert result.value == 42
    assert result.is_set is True
    assert counter.value == 2


def test_interceptor_can_fill_out_parameters_without_a_target() -> None:
    """Verify by-reference arguments set by an interceptor reach the caller."""
    parser = ProxyGenerator().create_interface_proxy_without_target(
        Parser, [ReturnValueInterceptor(True, arguments={1: 7})]
    )

    result: Out[int] = Out()
    parsed: object = parser.try_parse("ignored", result)

    assert parsed is True
    assert result.value == 7


def test_interceptor_sees_dereferenced_by_ref_values() -> None:
    """Verify the invocation holds the cell value, not the cell."""
    recorder: RecordingInterceptor = RecordingInterceptor()
    parser = ProxyGenerator().create_interface_proxy_with_target(Parser, IntParser(), [recorder])

    parser.increment(Ref(5))

    assert recorder.arguments[0] == [5]


def test_generic_method_is_instantiated_per_call() -> None:
    """Verify each call carries its own type arguments through the chain."""
    recorder: RecordingInterceptor = RecordingInterceptor()
    converter = ProxyGenerator().create_interface_proxy_with_target(Converter, BuiltinConverter(), [recorder])

    as_int: object = converter.convert[int]("5")
    as_text: object = converter.convert[str](5)

    assert as_int == 5
    assert as_text == "5"
    first, second = recorder.invocations
    assert first.generic_arguments == (int,)
    assert second.generic_arguments == (str,)
    assert first.method.generic_arguments == (int,)
    assert first.get_concrete_method().generic_arguments == (int,)
    assert first.method_invocation_target.generic_arguments == (int,)


def test_generic_method_requires_type_arguments() -> None:
    """Verify calling a generic member without type arguments fails."""
    converter = ProxyGenerator().create_interface_proxy_with_target(Converter, BuiltinConverter(), [])

    with pytest.raises(MissingTypeArgumentsError):
        converter.convert("5")
    with pytest.raises(MissingTypeArgumentsError):
        converter.convert[int, str]("5")


def test_property_accessors_forward_to_the_target() -> None:
    """Verify property reads and writes reach the target."""
    target: Person = Person("ann")
    recorder: RecordingInterceptor = RecordingInterceptor()
    named = ProxyGenerator().create_interface_proxy_with_target(Named, target, [recorder])

    assert named.name == "ann"
    named.name = "bob"

    assert target.name == "bob"
    accessors: list[object] = [invocation.method.accessor for invocation in recorder.invocations]
    assert accessors == ["fget", "fset"]


def test_event_subscriptions_forward_to_the_target() -> None:
    """Verify ``+=`` and ``-=`` on a proxied event run the target's adder and remover."""
    target: Document = Document()
    recorder: RecordingInterceptor = RecordingInterceptor()
    observable = ProxyGenerator().create_interface_proxy_with_target(Observable, target, [recorder])
    received: list[str] = []

    observable.changed += received.append
    target.touch("edited")
    observable.changed -= received.append
    target.touch("ignored")

    assert received == ["edited"]
    assert target.handlers == []
    accessors: list[object] = [invocation.method.accessor for invocation in recorder.invocations]
    assert accessors == ["add", "remove"]


def test_hook_skipped_interface_member_forwards_directly() -> None:
    """Verify a skipped member still gets a body that calls the target."""
    recorder: RecordingInterceptor = RecordingInterceptor()
    greeter = ProxyGenerator().create_interface_proxy_with_target(
        LoudGreeter,
        FriendlyGreeter(),
        [recorder],
        options=ProxyGenerationOptions(hook=SkipMembersHook("greet")),
    )

    assert greeter.greet("ann") == "Hello, ann"
    assert greeter.shout("ann") == "HELLO, ANN"
    assert recorder.calls == ["shout"]


def test_mixin_members_dispatch_to_the_mixin_instance() -> None:
    """Verify a mixin adds its interface and backs its members."""
    mixin: AuditMixin = AuditMixin()
    recorder: RecordingInterceptor = RecordingInterceptor()
    calculator = ProxyGenerator().create_class_proxy(
        Calculator, [recorder], options=ProxyGenerationOptions(mixins=[mixin])
    )

    assert isinstance(calculator, Auditable) is True
    assert calculator.audit_log() == ["created"]
    assert recorder.invocations[0].invocation_target is mixin


def test_mixin_interface_already_requested_is_rejected() -> None:
    """Verify a mixin cannot add an interface listed as an additional interface."""
    options: ProxyGenerationOptions = ProxyGenerationOptions(mixins=[AuditMixin()])

    with pytest.raises(InvalidMixinConfigurationError) as raised:
        ProxyGenerator().create_class_proxy(Calculator, [], interfaces=[Auditable], options=options)
    assert "additional interfaces" in str(raised.value)


def test_two_mixins_with_the_same_interface_are_rejected() -> None:
    """Verify two mixins cannot contribute the same interface."""
    with pytest.raises(InvalidMixinConfigurationError):
        ProxyGenerationOptions(mixins=[AuditMixin(), OtherAuditMixin()])


def test_target_wins_over_a_mixin_for_the_same_interface() -> None:
    """Verify an interface implemented by the target is not taken over by a mixin."""
    greeter = ProxyGenerator().create_interface_proxy_with_target(
        Greeter, FriendlyGreeter(), [], options=ProxyGenerationOptions(mixins=[GreeterMixin()])
    )

    assert greeter.greet("ann") == "Hello, ann"


def test_create_proxy_picks_the_proxy_kind() -> None:
    """Verify the general entry point dispatches on the target type and target."""
    generator: ProxyGenerator = ProxyGenerator()

    with_target = generator.create_proxy(Greeter, [], [], None, [], target=FriendlyGreeter())
    without_target = generator.create_proxy(Greeter, [], [], None, [ReturnValueInterceptor("x")])
    class_proxy = generator.create_proxy(Calculator, [], [AuditMixin()], None, [])

    assert with_target.greet("ann") == "Hello, ann"
    assert without_target.greet("ann") == "x"
    assert class_proxy.add(1, 1) == 2
    assert class_proxy.audit_log() == ["created"]


def test_selector_choice_is_cached_per_instance_and_member() -> None:
    """Verify the selector runs once per proxy instance and member."""
    selector: CountingSelector = CountingSelector()
    recorder: RecordingInterceptor = RecordingInterceptor()
    options: ProxyGenerationOptions = ProxyGenerationOptions(selector=selector)
    generator: ProxyGenerator = ProxyGenerator()

    first = generator.create_interface_proxy_with_target(
        Greeter, FriendlyGreeter(), [ReturnValueInterceptor("blocked"), recorder], options=options
    )
    second = generator.create_interface_proxy_with_target(
        Greeter, FriendlyGreeter(), [ReturnValueInterceptor("blocked"), recorder], options=options
    )

    assert first.greet("a") == "Hello, a"
    assert first.greet("b") == "Hello, b"
    assert second.greet("c") == "Hello, c"
    assert selector.selections == 2
    assert recorder.calls == ["greet", "greet", "greet"]
    assert type(first) is type(second)
