"""Generation options, member-selection hooks and mixin data."""

import abc
import logging
from collections.abc import Iterable
from collections.abc import Sequence

from interpose.attributes import AttributeDisassembler
from interpose.errors import InvalidMixinConfigurationError
from interpose.introspection import get_all_interfaces
from interpose.introspection import type_name
from interpose.invocation import InterceptorSelector
from interpose.members import MethodToken

logger = logging.getLogger(__name__)


class ProxyGenerationHook(abc.ABC):
    """Decide which members of a type get intercepted."""

    @abc.abstractmethod
    def should_intercept_method(self, type_: type, member: MethodToken) -> bool:
        """Decide whether one member is intercepted.

        :param type_: Type being proxied.
        :param member: Candidate member.
        :returns: ``False`` to leave the member out of interception.
        """

    @abc.abstractmethod
    def non_proxyable_member_notification(self, type_: type, member: MethodToken) -> None:
        """Receive a member that cannot be proxied (final, static or not visible).

        :param type_: Type being proxied.
        :param member: Member that will not be intercepted.
        """

    @abc.abstractmethod
    def methods_inspected(self) -> None:
        """Signal that every member of the type has been inspected."""


class AllMethodsHook(ProxyGenerationHook):
    """Intercept every member except those declared on skipped types."""

    skipped_types: tuple[type, ...] = (object,)

    def should_intercept_method(self, type_: type, member: MethodToken) -> bool:
        """Intercept members not declared on a skipped type.

        :param type_: Type being proxied.
        :param member: Candidate member.
        :returns: ``True`` unless the member is declared on a skipped type.
        """
        return member.declaring_type not in self.skipped_types

    def non_proxyable_member_notification(self, type_: type, member: MethodToken) -> None:
        """Log a member that cannot be proxied.

        :param type_: Type being proxied.
        :param member: Member left as is.
        """
        logger.debug("Member %s of %s cannot be proxied", member.qualified_name, type_name(type_))

    def methods_inspected(self) -> None:
        """Ignore the end of member inspection."""
        pass

    def __eq__(self, other: object) -> bool:
        """Treat every hook of the same type as equal.

        :param other: Object to compare with.
        :returns: ``True`` when ``other`` has the same type.
        """
        return type(other) is type(self)

    def __hash__(self) -> int:
        """Hash the hook type.

        :returns: Hash value.
        """
        return hash(type(self))


def _sort_key(interface: type) -> str:
    """Return the qualified name ordering mixin interfaces.

    :param interface: Mixin interface.
    :returns: ``module.QualifiedName``.
    """
    return f"{interface.__module__}.{interface.__qualname__}"


class MixinData:
    """Ordered map of mixin interface to the mixin instance implementing it.

    Every interface in a mixin's class closure is contributed by that mixin.
    Interfaces are ordered by qualified name, which fixes the position of
    each mixin field on the generated type.
    """

    _interface_to_mixin: dict[type, object]
    _mixin_interfaces: list[type]
    _mixin_positions: dict[type, int]

    def __init__(self, mixins: Iterable[object] | None = None) -> None:
        """Build mixin data.

        :param mixins: Mixin instances.
        :raises InvalidMixinConfigurationError: If two mixins implement the same interface.
        """
        self._interface_to_mixin = {}
        for mixin in mixins or ():
            for interface in get_all_interfaces([type(mixin)]):
                existing: object | None = self._interface_to_mixin.get(interface)
                if existing is not None:
                    raise InvalidMixinConfigurationError(
                        "The list of mixins contains two mixins implementing the same interface "
                        + f"'{type_name(interface)}': {type(existing).__name__} and {type(mixin).__name__}. "
                        + "An interface cannot be added by more than one mixin."
                    )
                self._interface_to_mixin[interface] = mixin
        self._mixin_interfaces = sorted(self._interface_to_mixin, key=_sort_key)
        self._mixin_positions = {interface: index for index, interface in enumerate(self._mixin_interfaces)}

    @property
    def mixin_interfaces(self) -> tuple[type, ...]:
        """Return the mixin interfaces in field order.

        :returns: Mixin interfaces.
        """
        return tuple(self._mixin_interfaces)

    @property
    def mixins(self) -> tuple[object, ...]:
        """Return mixin instances in mixin-interface order.

        :returns: One entry per mixin interface.
        """
        return tuple(self._interface_to_mixin[interface] for interface in self._mixin_interfaces)

    def contains_mixin(self, interface: type) -> bool:
        """Return whether a mixin contributes ``interface``.

        :param interface: Interface.
        :returns: ``True`` when a mixin implements it.
        """
        return interface in self._interface_to_mixin

    def get_mixin_instance(self, interface: type) -> object:
        """Return the mixin implementing ``interface``.

        :param interface: Mixin interface.
        :returns: Mixin instance.
        :raises KeyError: If no mixin implements ``interface``.
        """
        return self._interface_to_mixin[interface]

    def get_mixin_position(self, interface: type) -> int:
        """Return the field position of the mixin implementing ``interface``.

        :param interface: Mixin interface.
        :returns: Zero-based position.
        :raises KeyError: If no mixin implements ``interface``.
        """
        return self._mixin_positions[interface]

    def __eq__(self, other: object) -> bool:
        """Compare mixin data by the ordered mixin interfaces.

        :param other: Object to compare with.
        :returns: ``True`` when both contribute the same interfaces.
        """
        if isinstance(other, MixinData) is False:
            return NotImplemented
        return self._mixin_interfaces == other._mixin_interfaces  # type: ignore[union-attr]

    def __hash__(self) -> int:
        """Hash the ordered mixin interfaces.

        :returns: Hash value.
        """
        return hash(tuple(self._mixin_interfaces))


class ProxyGenerationOptions:
    """Immutable configuration of one proxy type.

    Two options objects with equal signatures produce the same generated type.
    The selector takes part with its own equality, which is identity unless the
    selector class defines ``__eq__``; the generated type keeps the selector of
    the options it was generated with.
    """

    _hook: ProxyGenerationHook
    _selector: InterceptorSelector | None
    _mixin_instances: tuple[object, ...]
    _mixin_data: MixinData
    _attribute_disassembler: AttributeDisassembler
    _base_type_for_interface_proxy: type

    def __init__(
        self,
        hook: ProxyGenerationHook | None = None,
        selector: InterceptorSelector | None = None,
        mixins: Sequence[object] | None = None,
        attribute_disassembler: AttributeDisassembler | None = None,
        base_type_for_interface_proxy: type = object,
    ) -> None:
        """Initialize options.

        :param hook: Member-selection hook; defaults to ``AllMethodsHook``.
        :param selector: Optional interceptor selector.
        :param mixins: Mixin instances.
        :param attribute_disassembler: Attribute replication policy.
        :param base_type_for_interface_proxy: Base class of interface proxies.
        :raises InvalidMixinConfigurationError: If two mixins implement the same interface.
        """
        self._hook = hook if hook is not None else AllMethodsHook()
        self._selector = selector
        self._mixin_instances = tuple(mixins or ())
        self._mixin_data = MixinData(self._mixin_instances)
        if attribute_disassembler is None:
            attribute_disassembler = AttributeDisassembler()
        self._attribute_disassembler = attribute_disassembler
        self._base_type_for_interface_proxy = base_type_for_interface_proxy

    @property
    def hook(self) -> ProxyGenerationHook:
        """Return the member-selection hook.

        :returns: Hook.
        """
        return self._hook

    @property
    def selector(self) -> InterceptorSelector | None:
        """Return the interceptor selector.

        :returns: Selector, or ``None`` when every interceptor runs for every member.
        """
        return self._selector

    @property
    def mixin_data(self) -> MixinData:
        """Return the mixins ordered by interface.

        :returns: Mixin data.
        """
        return self._mixin_data

    @property
    def attribute_disassembler(self) -> AttributeDisassembler:
        """Return the disassembler applied to replicated attributes.

        :returns: Attribute disassembler.
        """
        return self._attribute_disassembler

    @property
    def base_type_for_interface_proxy(self) -> type:
        """Return the base class of interface proxies.

        :returns: Base class.
        """
        return self._base_type_for_interface_proxy

    @property
    def has_mixins(self) -> bool:
        """Return whether any mixin was supplied.

        :returns: ``True`` when mixins are present.
        """
        return len(self._mixin_instances) > 0

    def with_mixins(self, mixins: Sequence[object]) -> "ProxyGenerationOptions":
        """Return a copy of these options with ``mixins`` appended.

        :param mixins: Additional mixin instances.
        :returns: New options.
        """
        return ProxyGenerationOptions(
            hook=self._hook,
            selector=self._selector,
            mixins=self._mixin_instances + tuple(mixins),
            attribute_disassembler=self._attribute_disassembler,
            base_type_for_interface_proxy=self._base_type_for_interface_proxy,
        )

    def signature(self) -> tuple[object, ...]:
        """Return the stable cache signature of these options.

        :returns: Hashable signature tuple.
        """
        return (
            self._mixin_data.mixin_interfaces,
            self._hook,
            self._selector,
            self._attribute_disassembler,
            self._base_type_for_interface_proxy,
        )

    def __eq__(self, other: object) -> bool:
        """Compare options by their cache signature.

        :param other: Object to compare with.
        :returns: ``True`` when both produce the same generated type.
        """
        if isinstance(other, ProxyGenerationOptions) is False:
            return NotImplemented
        return self.signature() == other.signature()  # type: ignore[union-attr]

    def __hash__(self) -> int:
        """Hash the cache signature.

        :returns: Hash value.
        """
        return hash(self.signature())


DEFAULT_OPTIONS: ProxyGenerationOptions = ProxyGenerationOptions()
