"""Custom attribute metadata and the replication filter for generated types."""

import copy
from collections.abc import Callable
from collections.abc import Iterable
from typing import Any
from typing import TypeVar

ATTRIBUTES_FIELD: str = "__custom_attributes__"
USAGE_FIELD: str = "__attribute_usage__"
OVERRIDDEN_MEMBER_FIELD: str = "__overridden_member__"

_AttributeType = TypeVar("_AttributeType", bound=type)


class AttributeUsage:
    """Usage information declared by an attribute class."""

    inherited: bool
    allow_multiple: bool

    def __init__(self, inherited: bool = True, allow_multiple: bool = False) -> None:
        """Initialize usage information.

        :param inherited: Whether the attribute flows to subclasses and overrides.
        :param allow_multiple: Whether the attribute may be applied more than once.
        """
        self.inherited = inherited
        self.allow_multiple = allow_multiple

    def __repr__(self) -> str:
        """Return a constructor-style representation.

        :returns: Representation text.
        """
        return f"AttributeUsage(inherited={self.inherited}, allow_multiple={self.allow_multiple})"


class Attribute:
    """Base class for custom attributes attached with ``custom_attribute``."""

    __attribute_usage__: AttributeUsage = AttributeUsage(inherited=True)

    def __eq__(self, other: object) -> bool:
        """Compare attributes by type and field values.

        :param other: Object to compare with.
        :returns: ``True`` when both attributes carry the same fields.
        """
        if type(other) is not type(self):
            return NotImplemented
        return vars(self) == vars(other)

    def __hash__(self) -> int:
        """Hash the attribute type together with its field values.

        :returns: Hash value.
        """
        return hash((type(self), tuple(sorted(vars(self).items(), key=lambda item: item[0]))))

    def __repr__(self) -> str:
        """Return a constructor-style representation.

        :returns: Representation text.
        """
        fields: str = ", ".join(f"{name}={value!r}" for name, value in vars(self).items())
        return f"{type(self).__name__}({fields})"


def attribute_usage(inherited: bool = True, allow_multiple: bool = False) -> Callable[[_AttributeType], _AttributeType]:
    """Declare usage information on an attribute class.

    :param inherited: Whether the attribute flows to subclasses and overrides.
    :param allow_multiple: Whether the attribute may be applied more than once.
    :returns: Class decorator.
    """

    def decorate(attribute_type: _AttributeType) -> _AttributeType:
        """Record the usage on ``attribute_type``.

        :param attribute_type: Attribute class.
        :returns: ``attribute_type``.
        """
        setattr(attribute_type, USAGE_FIELD, AttributeUsage(inherited=inherited, allow_multiple=allow_multiple))
        return attribute_type

    return decorate


def get_attribute_usage(attribute_type: type) -> AttributeUsage | None:
    """Return the usage declared for an attribute class.

    :param attribute_type: Attribute class.
    :returns: Declared usage, or ``None`` when the class declares none.
    """
    usage: object = getattr(attribute_type, USAGE_FIELD, None)
    if isinstance(usage, AttributeUsage):
        return usage
    return None


def _declared_attributes(element: object) -> tuple[object, ...]:
    """Return the attributes declared directly on ``element``.

    :param element: Class, function or other attribute holder.
    :returns: Declared attributes, in declaration order.
    """
    if isinstance(element, type):
        declared: object = element.__dict__.get(ATTRIBUTES_FIELD, ())
    else:
        declared = getattr(element, "__dict__", {}).get(ATTRIBUTES_FIELD, ())
    return tuple(declared)  # type: ignore[arg-type]


def custom_attribute(*attributes: object) -> Callable[[Any], Any]:
    """Attach custom attributes to a class or function.

    :param attributes: Attribute instances.
    :returns: Decorator that records the attributes on the element.
    """

    def decorate(element: Any) -> Any:
        """Append the attributes to those already declared on ``element``.

        :param element: Class or function.
        :returns: ``element``.
        :raises ValueError: If a single-use attribute is applied twice.
        """
        existing: tuple[object, ...] = _declared_attributes(element)
        for attribute in attributes:
            usage: AttributeUsage | None = get_attribute_usage(type(attribute))
            allow_multiple: bool = usage is not None and usage.allow_multiple
            duplicate: bool = any(type(current) is type(attribute) for current in existing)
            if duplicate is True and allow_multiple is False:
                raise ValueError(f"{type(attribute).__name__} cannot be applied more than once")
            existing = existing + (attribute,)
        setattr(element, ATTRIBUTES_FIELD, existing)
        return element

    return decorate


def get_custom_attributes(element: object, inherit: bool = False) -> tuple[object, ...]:
    """Return the custom attributes of a class or function.

    With ``inherit`` a class also collects the inheritable attributes of its
    base classes, and a generated member collects those of the members it
    overrides.

    :param element: Class or function.
    :param inherit: Also collect inheritable attributes of base classes or overridden members.
    :returns: Attributes, most derived first.
    """
    attributes: list[object] = list(_declared_attributes(element))
    if inherit is False:
        return tuple(attributes)
    for ancestor in _ancestors(element):
        for attribute in _declared_attributes(ancestor):
            usage: AttributeUsage | None = get_attribute_usage(type(attribute))
            if usage is not None and usage.inherited is True:
                attributes.append(attribute)
    return tuple(attributes)


def _ancestors(element: object) -> list[object]:
    """Return the elements ``element`` inherits attributes from.

    :param element: Class or function.
    :returns: Base classes in MRO order, or the chain of overridden members.
    """
    if isinstance(element, type):
        return list(element.__mro__[1:])
    ancestors: list[object] = []
    current: object = getattr(element, "__dict__", {}).get(OVERRIDDEN_MEMBER_FIELD)
    while current is not None and current not in ancestors:
        ancestors.append(current)
        current = getattr(current, "__dict__", {}).get(OVERRIDDEN_MEMBER_FIELD)
    return ancestors


@attribute_usage(inherited=False)
class Serializable(Attribute):
    """Marks a class as participating in serialization round trips."""


@attribute_usage(inherited=False)
class GeneratedProxy(Attribute):
    """Marker the emitter attaches to every generated proxy type."""

    target_name: str

    def __init__(self, target_name: str) -> None:
        """Initialize the marker.

        :param target_name: Qualified name of the proxied type.
        """
        self.target_name = target_name


class AttributeDisassembler:
    """Turn an attribute of the original element into the one attached to the generated element."""

    def disassemble(self, attribute: object) -> object:
        """Return the attribute to attach on the generated element.

        :param attribute: Attribute declared on the original element.
        :returns: Attribute copy.
        """
        return copy.copy(attribute)

    def __eq__(self, other: object) -> bool:
        """Treat every disassembler of the same type as equal.

        :param other: Object to compare with.
        :returns: ``True`` when ``other`` has the same type.
        """
        return type(other) is type(self)

    def __hash__(self) -> int:
        """Hash the disassembler type.

        :returns: Hash value.
        """
        return hash(type(self))


class AttributeReplicationFilter:
    """Decide which custom attributes get copied onto generated types and members.

    Inheritable attributes already reach the generated element through the
    base type and are skipped, as are attributes on the exclusion list, which
    only mean something to the original element or are managed by the emitter.
    """

    _excluded: list[type]

    def __init__(self, excluded: Iterable[type] | None = None) -> None:
        """Initialize the filter.

        :param excluded: Attribute types never replicated; defaults to the built-in list.
        """
        if excluded is None:
            self._excluded = [Serializable, GeneratedProxy]
        else:
            self._excluded = list(excluded)

    @property
    def excluded(self) -> tuple[type, ...]:
        """Return the attribute types never replicated.

        :returns: Excluded attribute types.
        """
        return tuple(self._excluded)

    def add(self, attribute_type: type) -> None:
        """Add an attribute type to the exclusion list.

        :param attribute_type: Attribute type never to replicate.
        """
        if attribute_type not in self._excluded:
            self._excluded.append(attribute_type)

    def contains(self, attribute_type: type) -> bool:
        """Return whether an attribute type is on the exclusion list.

        :param attribute_type: Attribute type.
        :returns: ``True`` when the type is excluded.
        """
        return attribute_type in self._excluded

    def should_skip(self, attribute: object) -> bool:
        """Decide whether one attribute must not be replicated.

        :param attribute: Attribute declared on the original element.
        :returns: ``True`` when the attribute must be skipped.
        """
        if self.contains(type(attribute)) is True:
            return True
        usage: AttributeUsage | None = get_attribute_usage(type(attribute))
        if usage is None:
            return True
        return usage.inherited

    def attributes_to_replicate(self, element: object) -> list[object]:
        """Return the non-inheritable attributes declared on ``element``.

        :param element: Original class or function.
        :returns: Attributes to copy onto the generated counterpart.
        """
        replicated: list[object] = []
        for attribute in get_custom_attributes(element, inherit=False):
            if self.should_skip(attribute) is False:
                replicated.append(attribute)
        return replicated
