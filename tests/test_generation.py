"""Tests for the type cache, registry naming, generator state and attribute replication."""

import threading
import time
from concurrent.futures import ThreadPoolExecutor

import pytest

from interpose import GeneratedProxy
from interpose import GenerationOptionsAlreadySetError
from interpose import GenerationOptionsNotSetError
from interpose import InvocationChainExhaustedError
from interpose import MethodToken
from interpose import ProxyGenerationOptions
from interpose import ProxyGenerator
from interpose import ProxyRegistry
from interpose import Serializable
from interpose import VisibilityPolicy
from interpose import as_interface
from interpose import get_custom_attributes
from interpose import get_proxy_target
from interpose import is_proxy
from interpose import is_proxy_type
from interpose.cache import CacheKey
from interpose.cache import TypeCache
from interpose.invocation import InheritanceInvocation
from interpose.proxy_generators import ClassProxyGenerator
from tests.fixtures.interceptors import RecordingInterceptor
from tests.fixtures.interceptors import SkipMembersHook
from tests.fixtures.proxy_targets import Audited
from tests.fixtures.proxy_targets import AuditMixin
from tests.fixtures.proxy_targets import Auditable
from tests.fixtures.proxy_targets import Cached
from tests.fixtures.proxy_targets import Calculator
from tests.fixtures.proxy_targets import DoubleGreeter
from tests.fixtures.proxy_targets import Greeter
from tests.fixtures.proxy_targets import Ledger
from tests.fixtures.proxy_targets import Pipeline
from tests.fixtures.proxy_targets import Resettable
from tests.fixtures.proxy_targets import Service
from tests.fixtures.proxy_targets import Tracked
from tests.fixtures.proxy_targets import Welcomer


class _RestartingInvocation(InheritanceInvocation):
    """Invocation whose terminal step illegally proceeds again."""

    def invoke_method_on_target(self) -> None:
        self.proceed()


def test_same_request_reuses_the_generated_type() -> None:
    """Verify identical requests share one proxy type."""
    generator: ProxyGenerator = ProxyGenerator()

    first = generator.create_class_proxy(Calculator, [])
    second = generator.create_class_proxy(Calculator, [RecordingInterceptor()])

    assert type(first) is type(second)
    assert len(generator.builder.registry.type_cache) == 1


def test_interface_order_does_not_change_the_cache_key() -> None:
    """Verify additional interfaces are compared as a set."""
    options: ProxyGenerationOptions = ProxyGenerationOptions()

    forward: CacheKey = CacheKey.create("class", Calculator, [Greeter, Resettable], options)
    backward: CacheKey = CacheKey.create("class", Calculator, [Resettable, Greeter], options)

    assert forward == backward
    assert hash(forward) == hash(backward)


def test_different_options_produce_different_types() -> None:
    """Verify mixins and hooks are part of the type identity."""
    generator: ProxyGenerator = ProxyGenerator()

    plain = generator.create_class_proxy(Calculator, [])
    with_mixin = generator.create_class_proxy(
        Calculator, [], options=ProxyGenerationOptions(mixins=[AuditMixin()])
    )
    with_other_mixin_instance = generator.create_class_proxy(
        Calculator, [], options=ProxyGenerationOptions(mixins=[AuditMixin()])
    )

    assert type(plain) is not type(with_mixin)
    assert type(with_mixin) is type(with_other_mixin_instance)
    assert isinstance(with_mixin, Auditable) is True
    assert isinstance(plain, Auditable) is False


def test_concurrent_requests_synthesize_one_type() -> None:
    """Verify racing requests for one key run the factory once and agree on the result."""
    cache: TypeCache = TypeCache()
    key: CacheKey = CacheKey.create("class", Calculator, [], ProxyGenerationOptions())
    calls: list[int] = []
    calls_lock: threading.Lock = threading.Lock()

    def factory() -> type:
        with calls_lock:
            calls.append(1)
        time.sleep(0.05)
        return type("Synthesized", (Calculator,), {})

    with ThreadPoolExecutor(max_workers=8) as executor:
        results: list[type] = list(executor.map(lambda _: cache.get_or_create(key, factory), range(16)))

    assert len(calls) == 1
    assert all(result is results[0] for result in results) is True


def test_synthesis_of_one_key_does_not_block_another_key() -> None:
    """Verify a slow factory for one key leaves requests for other keys free to complete."""
    cache: TypeCache = TypeCache()
    slow_key: CacheKey = CacheKey.create("class", Calculator, [], ProxyGenerationOptions())
    fast_key: CacheKey = CacheKey.create("class", Greeter, [], ProxyGenerationOptions())
    started: threading.Event = threading.Event()
    release: threading.Event = threading.Event()

    def slow_factory() -> type:
        started.set()
        release.wait(timeout=5)
        return type("Slow", (Calculator,), {})

    with ThreadPoolExecutor(max_workers=1) as executor:
        slow_result = executor.submit(cache.get_or_create, slow_key, slow_factory)
        assert started.wait(timeout=5) is True

        fast: type = cache.get_or_create(fast_key, lambda: type("Fast", (), {}))

        assert fast.__name__ == "Fast"
        assert slow_result.done() is False
        assert cache.pending_keys == 1
        release.set()
        assert slow_result.result(timeout=5).__name__ == "Slow"

    assert cache.pending_keys == 0
    assert len(cache) == 2


def test_concurrent_proxy_creation_shares_the_type() -> None:
    """Verify concurrent proxy requests through one generator return instances of one type."""
    generator: ProxyGenerator = ProxyGenerator()

    with ThreadPoolExecutor(max_workers=8) as executor:
        proxies: list[object] = list(
            executor.map(lambda _: generator.create_class_proxy(Calculator, [RecordingInterceptor()]), range(16))
        )

    proxy_types: set[type] = {type(proxy) for proxy in proxies}
    assert len(proxy_types) == 1


def test_failed_synthesis_is_not_cached() -> None:
    """Verify a factory error stores nothing and a later request may succeed."""
    cache: TypeCache = TypeCache()
    key: CacheKey = CacheKey.create("class", Calculator, [], ProxyGenerationOptions())

    def failing() -> type:
        raise RuntimeError("synthesis failed")

    with pytest.raises(RuntimeError):
        cache.get_or_create(key, failing)
    assert key not in cache
    assert cache.pending_keys == 0

    created: type = cache.get_or_create(key, lambda: type("Retried", (Calculator,), {}))
    assert cache.get(key) is created
    assert len(cache) == 1
    assert cache.pending_keys == 0


def test_registry_hands_out_unique_type_names() -> None:
    """Verify name collisions get a numeric suffix and reset starts over."""
    registry: ProxyRegistry = ProxyRegistry()
    generator: ProxyGenerator = ProxyGenerator(registry=registry)

    first = generator.create_class_proxy(Calculator, [])
    second = generator.create_class_proxy(
        Calculator, [], options=ProxyGenerationOptions(hook=SkipMembersHook())
    )

    assert type(first).__name__ == "CalculatorProxy"
    assert type(second).__name__ == "CalculatorProxy_1"
    assert type(first).__module__ == registry.module_name

    registry.reset()
    assert len(registry.type_cache) == 0
    assert registry.get_unique_name("CalculatorProxy") == "CalculatorProxy"


def test_independent_registries_share_nothing() -> None:
    """Verify generators with separate registries build separate types."""
    first = ProxyGenerator(registry=ProxyRegistry()).create_class_proxy(Calculator, [])
    second = ProxyGenerator(registry=ProxyRegistry()).create_class_proxy(Calculator, [])

    assert type(first) is not type(second)


def test_generation_options_are_set_once() -> None:
    """Verify reading unset options and setting them twice both fail."""
    generator: ClassProxyGenerator = ClassProxyGenerator(ProxyRegistry(), Calculator)

    with pytest.raises(GenerationOptionsNotSetError):
        generator.options  # noqa: B018

    options: ProxyGenerationOptions = ProxyGenerationOptions()
    generator.set_generation_options(options)
    assert generator.options is options
    with pytest.raises(GenerationOptionsAlreadySetError):
        generator.set_generation_options(options)


def test_proceed_past_the_terminal_step_fails() -> None:
    """Verify proceeding from the terminal call reports an exhausted chain."""
    token: MethodToken = MethodToken(Calculator, "add", Calculator.add)
    target: Calculator = Calculator()
    invocation: _RestartingInvocation = _RestartingInvocation(
        target, target, [], Calculator, token, None, [1, 2]
    )

    with pytest.raises(InvocationChainExhaustedError):
        invocation.proceed()


def test_non_inheritable_attributes_are_replicated() -> None:
    """Verify the generated type and members carry the original's non-inheritable attributes."""
    ledger = ProxyGenerator().create_class_proxy(Ledger, [])
    proxy_type: type = type(ledger)

    type_attributes: tuple[object, ...] = get_custom_attributes(proxy_type)
    assert Audited("type") in type_attributes
    assert any(isinstance(attribute, GeneratedProxy) for attribute in type_attributes) is True
    assert any(isinstance(attribute, Tracked) for attribute in type_attributes) is False
    assert any(isinstance(attribute, Serializable) for attribute in type_attributes) is False

    inherited: tuple[object, ...] = get_custom_attributes(proxy_type, inherit=True)
    assert any(isinstance(attribute, Tracked) for attribute in inherited) is True

    member_attributes: tuple[object, ...] = get_custom_attributes(proxy_type.post)
    assert member_attributes == (Audited("member"),)
    assert ledger.post(3) == 3


def test_inheritable_member_attributes_reach_generated_members() -> None:
    """Verify inheritable attributes of an overridden member are read through the generated member."""
    proxy = ProxyGenerator().create_class_proxy(Service, [])
    generated: object = vars(type(proxy))["fetch"]

    assert get_custom_attributes(generated) == ()
    assert get_custom_attributes(generated, inherit=True) == (Cached(),)
    assert proxy.fetch() == "fetched"


def test_method_tokens_are_resolved_once_per_type() -> None:
    """Verify every call of a member sees the same token object."""
    recorder: RecordingInterceptor = RecordingInterceptor()
    calculator = ProxyGenerator().create_class_proxy(Calculator, [recorder])

    calculator.add(1, 2)
    calculator.add(3, 4)

    assert recorder.invocations[0].method is recorder.invocations[1].method
    assert recorder.invocations[0].method_invocation_target is recorder.invocations[1].method_invocation_target


def test_members_with_one_backing_member_share_an_invocation_type() -> None:
    """Verify two interface members implemented by one target member use one invocation class."""
    recorder: RecordingInterceptor = RecordingInterceptor()
    proxy = ProxyGenerator().create_interface_proxy_with_target(
        Greeter, DoubleGreeter(), [recorder], interfaces=[Welcomer]
    )

    assert proxy.greet("Ada") == "Hi, Ada"
    assert as_interface(proxy, Welcomer).greet("Bob") == "Hi, Bob"

    first, second = recorder.invocations
    assert first.method.declaring_type is Greeter
    assert second.method.declaring_type is Welcomer
    assert type(first) is type(second)


def test_proxy_introspection_helpers() -> None:
    """Verify proxy detection and the errors raised for ordinary objects."""
    calculator: Calculator = Calculator()
    proxy = ProxyGenerator().create_class_proxy(Calculator, [])

    assert is_proxy_type(type(proxy)) is True
    assert is_proxy_type(Calculator) is False
    assert is_proxy(proxy) is True
    assert is_proxy(calculator) is False
    with pytest.raises(TypeError):
        get_proxy_target(calculator)


def test_visibility_policy_decides_whether_internal_members_are_intercepted() -> None:
    """Verify internal members of untrusted modules are reported instead of intercepted."""
    trusted_recorder: RecordingInterceptor = RecordingInterceptor()
    trusted = ProxyGenerator().create_class_proxy(Pipeline, [trusted_recorder])

    hook: SkipMembersHook = SkipMembersHook()
    untrusted_recorder: RecordingInterceptor = RecordingInterceptor()
    registry: ProxyRegistry = ProxyRegistry(visibility_policy=VisibilityPolicy(trust_all=False))
    untrusted = ProxyGenerator(registry=registry).create_class_proxy(
        Pipeline, [untrusted_recorder], options=ProxyGenerationOptions(hook=hook)
    )

    assert trusted.run() == "stepped"
    assert untrusted.run() == "stepped"
    assert trusted_recorder.calls == ["run", "_step"]
    assert untrusted_recorder.calls == ["run"]
    assert "_step" in hook.notifications
