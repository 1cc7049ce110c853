"""Reflection helpers over classes, members and constructors."""

import abc
import enum
import inspect
import typing
from collections.abc import Iterable
from collections.abc import Iterator

from interpose.members import GenericMethod
from interpose.members import event

# Class-body bookkeeping entries that never count as members.
_CLASS_BOOKKEEPING: frozenset[str] = frozenset(
    {
        "__module__",
        "__qualname__",
        "__doc__",
        "__dict__",
        "__weakref__",
        "__slots__",
        "__annotations__",
        "__annotate__",
        "__annotate_func__",
        "__annotations_cache__",
        "__classcell__",
        "__abstractmethods__",
        "__parameters__",
        "__orig_bases__",
        "__type_params__",
        "__static_attributes__",
        "__firstlineno__",
        "__protocol_attrs__",
        "__non_callable_proto_members__",
        "__callable_proto_members_only__",
        "__subclasshook__",
        "__init__",
        "__custom_attributes__",
        "_abc_impl",
        "_is_protocol",
        "_is_runtime_protocol",
    }
)

# Special members that belong to object construction, attribute machinery or
# serialization and are never overridden by a proxy.
NON_PROXYABLE_SPECIAL_NAMES: frozenset[str] = frozenset(
    {
        "__new__",
        "__init__",
        "__del__",
        "__init_subclass__",
        "__class_getitem__",
        "__subclasshook__",
        "__getattribute__",
        "__getattr__",
        "__setattr__",
        "__delattr__",
        "__dir__",
        "__hash__",
        "__sizeof__",
        "__set_name__",
        "__instancecheck__",
        "__subclasscheck__",
        "__mro_entries__",
        "__reduce__",
        "__reduce_ex__",
        "__getstate__",
        "__setstate__",
        "__getnewargs__",
        "__getnewargs_ex__",
        "__copy__",
        "__deepcopy__",
        "__proxy_target__",
        "__proxy_interceptors__",
    }
)

_FRAMEWORK_MODULES: frozenset[str] = frozenset({"abc", "typing", "typing_extensions", "builtins"})


class Visibility(enum.Enum):
    """Name-based visibility of a member."""

    PUBLIC = "public"
    INTERNAL = "internal"
    ASSEMBLY = "assembly"
    PRIVATE = "private"
    SPECIAL = "special"


class MemberKind(enum.Enum):
    """Kind of a raw class attribute, as seen by member collection."""

    METHOD = "method"
    GENERIC_METHOD = "generic_method"
    PROPERTY = "property"
    EVENT = "event"
    STATIC = "static"
    OTHER = "other"


def member_kind(raw: object) -> MemberKind:
    """Classify a raw class-dictionary entry.

    :param raw: Value found in a class ``__dict__``.
    :returns: Member kind.
    """
    if isinstance(raw, (staticmethod, classmethod)):
        return MemberKind.STATIC
    if isinstance(raw, GenericMethod):
        return MemberKind.GENERIC_METHOD
    if isinstance(raw, property):
        return MemberKind.PROPERTY
    if isinstance(raw, event):
        return MemberKind.EVENT
    if inspect.isfunction(raw) is True:
        return MemberKind.METHOD
    return MemberKind.OTHER


def member_visibility(name: str) -> Visibility:
    """Derive visibility from a member name.

    :param name: Member name.
    :returns: ``SPECIAL`` for dunders, ``PRIVATE`` for mangled names, ``INTERNAL`` for ``_name``.
    """
    if name.startswith("__") and name.endswith("__"):
        return Visibility.SPECIAL
    if name.startswith("_") and "__" in name:
        return Visibility.PRIVATE
    if name.startswith("_"):
        return Visibility.INTERNAL
    return Visibility.PUBLIC


def is_final(element: object) -> bool:
    """Report whether ``typing.final`` marked a class or member.

    :param element: Class, function or descriptor.
    :returns: ``True`` when marked final.
    """
    if isinstance(element, property):
        return any(is_final(accessor) for accessor in (element.fget, element.fset, element.fdel))
    if isinstance(element, GenericMethod):
        return is_final(element.function)
    return getattr(element, "__final__", False) is True


def is_generic_type_definition(type_: object) -> bool:
    """Report whether ``type_`` still has unbound type parameters.

    ``Repository`` declared as ``class Repository(Generic[T])`` is a definition;
    ``Repository[int]`` and ``class IntRepository(Repository[int])`` are not.

    :param type_: Class or generic alias.
    :returns: ``True`` for a generic type definition.
    """
    if isinstance(type_, type) is False:
        return False
    return len(getattr(type_, "__parameters__", ())) > 0


def resolve_origin(type_: object) -> type:
    """Return the class behind a class or a parameterized generic alias.

    :param type_: Class or generic alias such as ``Repository[int]``.
    :returns: Runtime class.
    :raises TypeError: If ``type_`` is neither.
    """
    if isinstance(type_, type):
        return type_
    origin: object = typing.get_origin(type_)
    if isinstance(origin, type):
        return origin
    raise TypeError(f"{type_!r} is not a class")


def type_name(type_: object) -> str:
    """Return a readable qualified name for a class or generic alias.

    :param type_: Class or generic alias.
    :returns: ``module.QualName`` text.
    """
    if isinstance(type_, type):
        return f"{type_.__module__}.{type_.__qualname__}"
    return repr(type_)


def declared_members(cls: type) -> Iterator[tuple[str, object]]:
    """Yield the members a class declares itself, in definition order.

    :param cls: Class to inspect.
    :returns: Iterator of ``(name, raw)`` pairs.
    """
    for name, raw in cls.__dict__.items():
        if name in _CLASS_BOOKKEEPING:
            continue
        yield name, raw


def effective_members(cls: type) -> dict[str, tuple[type, object]]:
    """Resolve every member name of ``cls`` to its most derived definition.

    Members declared on ``object`` are excluded.

    :param cls: Class to inspect.
    :returns: Mapping of name to ``(declaring_type, raw)``.
    """
    resolved: dict[str, tuple[type, object]] = {}
    for klass in cls.__mro__:
        if klass is object:
            continue
        for name, raw in declared_members(klass):
            if name not in resolved:
                resolved[name] = (klass, raw)
    return resolved


def is_interface(cls: object) -> bool:
    """Report whether ``cls`` is an interface.

    An interface is an ``abc.ABCMeta`` class (``typing.Protocol`` classes
    included) whose own methods, properties and events are all abstract.

    :param cls: Candidate class.
    :returns: ``True`` for an interface.
    """
    if isinstance(cls, abc.ABCMeta) is False:
        return False
    if cls.__module__ in _FRAMEWORK_MODULES:  # type: ignore[union-attr]
        return False
    for _, raw in declared_members(cls):  # type: ignore[arg-type]
        kind: MemberKind = member_kind(raw)
        if kind is MemberKind.OTHER or kind is MemberKind.STATIC:
            continue
        if getattr(raw, "__isabstractmethod__", False) is False:
            return False
    return True


def get_all_interfaces(types: Iterable[type]) -> list[type]:
    """Return the interface closure of ``types`` in discovery order.

    Each type contributes itself (when it is an interface) followed by every
    interface along its MRO. A visited set guards the walk.

    :param types: Classes or interfaces.
    :returns: Unique interfaces.
    """
    visited: set[type] = set()
    closure: list[type] = []
    for type_ in types:
        for klass in resolve_origin(type_).__mro__:
            if klass in visited:
                continue
            visited.add(klass)
            if is_interface(klass) is True:
                closure.append(klass)
    return closure


def base_interfaces(interface: type) -> list[type]:
    """Return the interfaces an interface directly inherits.

    :param interface: Interface class.
    :returns: Direct base interfaces.
    """
    return [base for base in interface.__bases__ if is_interface(base) is True]


def base_constructor_signature(cls: type) -> inspect.Signature | None:
    """Return the signature of ``cls.__init__`` without ``self``.

    :param cls: Base class.
    :returns: Signature, or ``None`` when the runtime cannot provide one.
    """
    try:
        signature: inspect.Signature = inspect.signature(cls.__init__)
    except (TypeError, ValueError):
        return None
    parameters: list[inspect.Parameter] = list(signature.parameters.values())
    if len(parameters) > 0 and parameters[0].kind in (
        inspect.Parameter.POSITIONAL_ONLY,
        inspect.Parameter.POSITIONAL_OR_KEYWORD,
    ):
        parameters = parameters[1:]
    return signature.replace(parameters=parameters)


def accepts_no_arguments(signature: inspect.Signature | None) -> bool:
    """Report whether a constructor signature can be called without arguments.

    :param signature: Constructor signature without ``self``.
    :returns: ``True`` when every parameter is optional.
    """
    if signature is None:
        return True
    for parameter in signature.parameters.values():
        if parameter.kind in (inspect.Parameter.VAR_POSITIONAL, inspect.Parameter.VAR_KEYWORD):
            continue
        if parameter.default is inspect.Parameter.empty:
            return False
    return True


class VisibilityPolicy:
    """Host-supplied trust policy for internal members.

    Internal members (``_name``) of types whose module is trusted are proxied
    and narrowed to ``ASSEMBLY`` visibility; other internal members are
    reported as non-proxyable.
    """

    _trust_all: bool
    _trusted_modules: frozenset[str]

    def __init__(self, trust_all: bool = True, trusted_modules: Iterable[str] = ()) -> None:
        """Initialize the policy.

        :param trust_all: Trust every module.
        :param trusted_modules: Module roots trusted when ``trust_all`` is ``False``.
        """
        self._trust_all = trust_all
        self._trusted_modules = frozenset(trusted_modules)

    def internals_visible(self, declaring_type: type) -> bool:
        """Decide whether internal members of ``declaring_type`` may be proxied.

        :param declaring_type: Class declaring the member.
        :returns: ``True`` when the declaring module is trusted.
        """
        if self._trust_all is True:
            return True
        module_name: str = declaring_type.__module__
        for trusted in self._trusted_modules:
            if module_name == trusted or module_name.startswith(f"{trusted}."):
                return True
        return False


def implements_interface(cls: type, interface: type) -> bool:
    """Report whether ``cls`` implements ``interface``.

    Nominal subclassing is checked first. Protocols that cannot be used with
    ``issubclass`` fall back to a structural check over the interface's
    declared member names.

    :param cls: Candidate implementation class.
    :param interface: Interface class.
    :returns: ``True`` when ``cls`` provides the interface.
    """
    try:
        if issubclass(cls, interface) is True:
            return True
    except TypeError:
        pass
    else:
        if getattr(interface, "_is_protocol", False) is False:
            return False
    for name, raw in declared_members(interface):
        if member_kind(raw) in (MemberKind.OTHER, MemberKind.STATIC):
            continue
        if hasattr(cls, name) is False:
            return False
    return True
