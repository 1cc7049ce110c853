"""Public facade: create proxy instances and inspect existing ones."""

from collections.abc import Mapping
from collections.abc import Sequence

from interpose.attributes import GeneratedProxy
from interpose.attributes import get_custom_attributes
from interpose.builder import DefaultProxyBuilder
from interpose.emitter import INTERFACE_MAP_FIELD
from interpose.emitter import ProxyTypeMeta
from interpose.errors import InterfaceExpectedError
from interpose.errors import TargetNotImplementedError
from interpose.introspection import implements_interface
from interpose.introspection import is_interface
from interpose.introspection import resolve_origin
from interpose.introspection import type_name
from interpose.invocation import Interceptor
from interpose.options import DEFAULT_OPTIONS
from interpose.options import ProxyGenerationOptions
from interpose.registry import ProxyRegistry


class ProxyGenerator:
    """Create proxy instances.

    Example::

        generator = ProxyGenerator()
        repository = generator.create_interface_proxy_with_target(Repository, SqlRepository(), [Logging()])
    """

    _builder: DefaultProxyBuilder

    def __init__(self, builder: DefaultProxyBuilder | None = None, registry: ProxyRegistry | None = None) -> None:
        """Initialize a proxy generator.

        :param builder: Builder creating the proxy types.
        :param registry: Registry for a new builder, used when ``builder`` is omitted.
        """
        self._builder = builder if builder is not None else DefaultProxyBuilder(registry)

    @property
    def builder(self) -> DefaultProxyBuilder:
        """Return the builder that synthesizes proxy types.

        :returns: Proxy builder.
        """
        return self._builder

    @staticmethod
    def _instantiate(
        proxy_type: type,
        leading: Sequence[object],
        options: ProxyGenerationOptions,
        constructor_args: Sequence[object],
        constructor_kwargs: Mapping[str, object] | None,
    ) -> object:
        """Construct a proxy instance.

        :param proxy_type: Generated proxy type.
        :param leading: Interceptors and, for with-target proxies, the target.
        :param options: Generation options supplying the mixin instances.
        :param constructor_args: Positional arguments for the base constructor.
        :param constructor_kwargs: Keyword arguments for the base constructor.
        :returns: Proxy instance.
        """
        arguments: list[object] = [*leading, *options.mixin_data.mixins, *constructor_args]
        return proxy_type(*arguments, **dict(constructor_kwargs or {}))

    def create_class_proxy(
        self,
        class_to_proxy: object,
        interceptors: Sequence[Interceptor],
        *,
        interfaces: Sequence[type] = (),
        options: ProxyGenerationOptions = DEFAULT_OPTIONS,
        constructor_args: Sequence[object] = (),
        constructor_kwargs: Mapping[str, object] | None = None,
    ) -> object:
        """Create an instance of a subclass of ``class_to_proxy`` whose overridable members are intercepted.

        :param class_to_proxy: Class or closed generic alias.
        :param interceptors: Interceptors, in calling order.
        :param interfaces: Additional interfaces, implemented without a target.
        :param options: Generation options.
        :param constructor_args: Positional arguments for the base constructor.
        :param constructor_kwargs: Keyword arguments for the base constructor.
        :returns: Proxy instance.
        """
        proxy_type: type = self._builder.create_class_proxy_type(class_to_proxy, interfaces, options)
        return self._instantiate(proxy_type, [tuple(interceptors)], options, constructor_args, constructor_kwargs)

    def create_class_proxy_with_target(
        self,
        class_to_proxy: object,
        target: object,
        interceptors: Sequence[Interceptor],
        *,
        interfaces: Sequence[type] = (),
        options: ProxyGenerationOptions = DEFAULT_OPTIONS,
        constructor_args: Sequence[object] = (),
        constructor_kwargs: Mapping[str, object] | None = None,
    ) -> object:
        """Create a subclass instance of ``class_to_proxy`` that forwards to ``target``.

        :param class_to_proxy: Class or closed generic alias.
        :param target: Instance of ``class_to_proxy`` receiving the calls.
        :param interceptors: Interceptors, in calling order.
        :param interfaces: Additional interfaces.
        :param options: Generation options.
        :param constructor_args: Positional arguments for the base constructor.
        :param constructor_kwargs: Keyword arguments for the base constructor.
        :returns: Proxy instance.
        :raises TargetNotImplementedError: If ``target`` is not an instance of ``class_to_proxy``.
        """
        if isinstance(target, resolve_origin(class_to_proxy)) is False:
            raise TargetNotImplementedError(
                f"Target type {type_name(type(target))} is not a subclass of {type_name(class_to_proxy)}"
            )
        proxy_type: type = self._builder.create_class_proxy_type_with_target(
            class_to_proxy, interfaces, type(target), options
        )
        return self._instantiate(
            proxy_type, [tuple(interceptors), target], options, constructor_args, constructor_kwargs
        )

    def create_interface_proxy_with_target(
        self,
        interface_to_proxy: object,
        target: object,
        interceptors: Sequence[Interceptor],
        *,
        interfaces: Sequence[type] = (),
        options: ProxyGenerationOptions = DEFAULT_OPTIONS,
    ) -> object:
        """Create an implementation of ``interface_to_proxy`` that forwards to ``target``.

        :param interface_to_proxy: Interface or closed generic alias.
        :param target: Object implementing the interface.
        :param interceptors: Interceptors, in calling order.
        :param interfaces: Additional interfaces; those ``target`` implements forward to it.
        :param options: Generation options.
        :returns: Proxy instance.
        :raises InterfaceExpectedError: If ``interface_to_proxy`` is not an interface.
        :raises TargetNotImplementedError: If ``target`` does not implement the interface.
        """
        interface: type = resolve_origin(interface_to_proxy)
        if is_interface(interface) is False:
            raise InterfaceExpectedError(f"{type_name(interface_to_proxy)} is not an interface")
        if implements_interface(type(target), interface) is False:
            raise TargetNotImplementedError(
                f"Target type {type_name(type(target))} does not implement interface {type_name(interface_to_proxy)}"
            )
        proxy_type: type = self._builder.create_interface_proxy_type_with_target(
            interface_to_proxy, interfaces, type(target), options
        )
        return self._instantiate(proxy_type, [tuple(interceptors), target], options, (), None)

    def create_interface_proxy_without_target(
        self,
        interface_to_proxy: object,
        interceptors: Sequence[Interceptor],
        *,
        interfaces: Sequence[type] = (),
        options: ProxyGenerationOptions = DEFAULT_OPTIONS,
    ) -> object:
        """Create an implementation of ``interface_to_proxy`` whose members only run interceptors.

        :param interface_to_proxy: Interface or closed generic alias.
        :param interceptors: Interceptors, in calling order; the last one must not proceed.
        :param interfaces: Additional interfaces.
        :param options: Generation options.
        :returns: Proxy instance.
        :raises InterfaceExpectedError: If ``interface_to_proxy`` is not an interface.
        """
        proxy_type: type = self._builder.create_interface_proxy_type_without_target(
            interface_to_proxy, interfaces, options
        )
        return self._instantiate(proxy_type, [tuple(interceptors)], options, (), None)

    def create_proxy(
        self,
        target_type: object,
        extra_interfaces: Sequence[type],
        mixins: Sequence[object],
        options: ProxyGenerationOptions | None,
        interceptors: Sequence[Interceptor],
        target: object = None,
    ) -> object:
        """Create a proxy of the kind that fits the request.

        An interface ``target_type`` gives an interface proxy, with a target when
        ``target`` is given. Any other class gives a class proxy, forwarding to
        ``target`` when it is given.

        :param target_type: Class, interface or closed generic alias.
        :param extra_interfaces: Additional interfaces.
        :param mixins: Mixin instances, appended to those of ``options``.
        :param options: Generation options, or ``None`` for the defaults.
        :param interceptors: Interceptors, in calling order.
        :param target: Optional proxy target.
        :returns: Proxy instance.
        """
        if options is None:
            options = DEFAULT_OPTIONS
        if len(mixins) > 0:
            options = options.with_mixins(mixins)
        if is_interface(resolve_origin(target_type)) is True:
            if target is None:
                return self.create_interface_proxy_without_target(
                    target_type, interceptors, interfaces=extra_interfaces, options=options
                )
            return self.create_interface_proxy_with_target(
                target_type, target, interceptors, interfaces=extra_interfaces, options=options
            )
        if target is None:
            return self.create_class_proxy(target_type, interceptors, interfaces=extra_interfaces, options=options)
        return self.create_class_proxy_with_target(
            target_type, target, interceptors, interfaces=extra_interfaces, options=options
        )


class InterfaceView:
    """View of a proxy through one of its interfaces.

    Members generated under an explicit ``"Interface.member"`` name are reached
    by their plain interface name.
    """

    __slots__ = ("_proxy", "_interface", "_names")

    _proxy: object
    _interface: type
    _names: dict[str, str]

    def __init__(self, proxy: object, interface: type) -> None:
        """Initialize a view.

        :param proxy: Proxy instance.
        :param interface: Interface implemented by the proxy.
        """
        object.__setattr__(self, "_proxy", proxy)
        object.__setattr__(self, "_interface", interface)
        names: dict[str, str] = {}
        overrides: dict[tuple[type, str], str] = getattr(type(proxy), INTERFACE_MAP_FIELD, {})
        # Bases first; a redeclaration in a more derived interface wins.
        for klass in reversed(interface.__mro__):
            for (declaring_type, member_name), generated_name in overrides.items():
                if declaring_type is klass:
                    names[member_name] = generated_name
        object.__setattr__(self, "_names", names)

    def _resolve(self, name: str) -> str:
        """Map an interface member name to the generated member name.

        :param name: Interface member name.
        :returns: Name of the member on the proxy.
        """
        return self._names.get(name, name)

    def __getattr__(self, name: str) -> object:
        """Read a member of the proxy through the interface.

        :param name: Interface member name.
        :returns: Member value.
        """
        return getattr(self._proxy, self._resolve(name))

    def __setattr__(self, name: str, value: object) -> None:
        """Write a member of the proxy through the interface.

        :param name: Interface member name.
        :param value: New value.
        """
        setattr(self._proxy, self._resolve(name), value)

    def __delattr__(self, name: str) -> None:
        """Delete a member of the proxy through the interface.

        :param name: Interface member name.
        """
        delattr(self._proxy, self._resolve(name))

    def __repr__(self) -> str:
        """Return a description naming the interface and the proxy.

        :returns: Representation text.
        """
        return f"<{self._interface.__name__} view of {self._proxy!r}>"


def as_interface(proxy: object, interface: object) -> InterfaceView:
    """Return a view of ``proxy`` through ``interface``.

    :param proxy: Proxy instance.
    :param interface: Interface or closed generic alias implemented by the proxy.
    :returns: Interface view.
    :raises TypeError: If the proxy does not implement ``interface``.
    """
    resolved: type = resolve_origin(interface)
    if isinstance(proxy, resolved) is False:
        raise TypeError(f"{type_name(type(proxy))} does not implement {type_name(interface)}")
    return InterfaceView(proxy, resolved)


def is_proxy_type(type_: object) -> bool:
    """Report whether ``type_`` was generated by this library.

    :param type_: Any object.
    :returns: ``True`` for a generated proxy type.
    """
    if isinstance(type_, ProxyTypeMeta) is False:
        return False
    return any(isinstance(attribute, GeneratedProxy) for attribute in get_custom_attributes(type_))


def is_proxy(instance: object) -> bool:
    """Report whether ``instance`` is a proxy.

    :param instance: Any object.
    :returns: ``True`` when the instance's type is a generated proxy type.
    """
    return is_proxy_type(type(instance))


def get_proxy_target(proxy: object) -> object:
    """Return the object a proxy forwards to.

    :param proxy: Proxy instance.
    :returns: The target for with-target proxies, the proxy itself for class proxies, else ``None``.
    :raises TypeError: If ``proxy`` is not a proxy.
    """
    if is_proxy(proxy) is False:
        raise TypeError(f"{type_name(type(proxy))} is not a proxy type")
    return proxy.__proxy_target__()  # type: ignore[attr-defined]


def get_interceptors(proxy: object) -> tuple[Interceptor, ...]:
    """Return the interceptors of a proxy.

    :param proxy: Proxy instance.
    :returns: Interceptors, in calling order.
    :raises TypeError: If ``proxy`` is not a proxy.
    """
    if is_proxy(proxy) is False:
        raise TypeError(f"{type_name(type(proxy))} is not a proxy type")
    return tuple(proxy.__proxy_interceptors__())  # type: ignore[attr-defined]
