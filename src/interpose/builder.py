"""Entry points that turn a proxy request into a generated type."""

import logging
from collections.abc import Sequence

from interpose.introspection import type_name
from interpose.options import DEFAULT_OPTIONS
from interpose.options import ProxyGenerationOptions
from interpose.proxy_generators import ClassProxyGenerator
from interpose.proxy_generators import ClassProxyWithTargetGenerator
from interpose.proxy_generators import InterfaceProxyWithoutTargetGenerator
from interpose.proxy_generators import InterfaceProxyWithTargetGenerator
from interpose.registry import ProxyRegistry

logger = logging.getLogger(__name__)


class DefaultProxyBuilder:
    """Create proxy types through a fresh generator per request."""

    _registry: ProxyRegistry

    def __init__(self, registry: ProxyRegistry | None = None) -> None:
        """Initialize a builder.

        :param registry: Registry owning the type cache; a private one is created when omitted.
        """
        self._registry = registry if registry is not None else ProxyRegistry()

    @property
    def registry(self) -> ProxyRegistry:
        """Return the registry owning the type cache.

        :returns: Proxy registry.
        """
        return self._registry

    def create_class_proxy_type(
        self,
        class_to_proxy: object,
        additional_interfaces: Sequence[type] = (),
        options: ProxyGenerationOptions = DEFAULT_OPTIONS,
    ) -> type:
        """Return a type that subclasses ``class_to_proxy`` and intercepts its overridable members.

        Instances are created with ``(interceptors, *mixins, *base_args)``.

        :param class_to_proxy: Class or closed generic alias.
        :param additional_interfaces: Interfaces the proxy implements without a target.
        :param options: Generation options.
        :returns: Generated type.
        """
        logger.debug("Class proxy requested for %s", type_name(class_to_proxy))
        generator: ClassProxyGenerator = ClassProxyGenerator(self._registry, class_to_proxy)
        return generator.generate_code(tuple(additional_interfaces), options)

    def create_class_proxy_type_with_target(
        self,
        class_to_proxy: object,
        additional_interfaces: Sequence[type],
        target_class: type,
        options: ProxyGenerationOptions = DEFAULT_OPTIONS,
    ) -> type:
        """Return a type that subclasses ``class_to_proxy`` and forwards to an instance of ``target_class``.

        Instances are created with ``(interceptors, target, *mixins, *base_args)``.

        :param class_to_proxy: Class or closed generic alias.
        :param additional_interfaces: Additional interfaces.
        :param target_class: Concrete class of the proxy target.
        :param options: Generation options.
        :returns: Generated type.
        """
        logger.debug(
            "Class proxy with target %s requested for %s", type_name(target_class), type_name(class_to_proxy)
        )
        generator: ClassProxyWithTargetGenerator = ClassProxyWithTargetGenerator(self._registry, class_to_proxy)
        return generator.generate_code(target_class, tuple(additional_interfaces), options)

    def create_interface_proxy_type_with_target(
        self,
        interface_to_proxy: object,
        additional_interfaces: Sequence[type],
        target_class: type,
        options: ProxyGenerationOptions = DEFAULT_OPTIONS,
    ) -> type:
        """Return a type that implements ``interface_to_proxy`` by forwarding to a target.

        :param interface_to_proxy: Interface or closed generic alias.
        :param additional_interfaces: Additional interfaces.
        :param target_class: Concrete class of the proxy target.
        :param options: Generation options.
        :returns: Generated type.
        """
        logger.debug(
            "Interface proxy with target %s requested for %s",
            type_name(target_class),
            type_name(interface_to_proxy),
        )
        generator: InterfaceProxyWithTargetGenerator = InterfaceProxyWithTargetGenerator(
            self._registry, interface_to_proxy
        )
        return generator.generate_code(target_class, tuple(additional_interfaces), options)

    def create_interface_proxy_type_without_target(
        self,
        interface_to_proxy: object,
        additional_interfaces: Sequence[type] = (),
        options: ProxyGenerationOptions = DEFAULT_OPTIONS,
    ) -> type:
        """Return a proxy type implementing an interface with no target.

        :param interface_to_proxy: Interface or closed generic alias.
        :param additional_interfaces: Additional interfaces.
        :param options: Generation options.
        :returns: Generated proxy type.
        """
        logger.debug("Interface proxy without target requested for %s", type_name(interface_to_proxy))
        generator: InterfaceProxyWithoutTargetGenerator = InterfaceProxyWithoutTargetGenerator(
            self._registry, interface_to_proxy
        )
        return generator.generate_code(tuple(additional_interfaces), options)
