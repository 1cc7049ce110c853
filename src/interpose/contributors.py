"""Member discovery and the contributors that back generated members."""

import abc
import logging
from collections.abc import Callable
from collections.abc import Iterator

from interpose.introspection import NON_PROXYABLE_SPECIAL_NAMES
from interpose.introspection import MemberKind
from interpose.introspection import Visibility
from interpose.introspection import VisibilityPolicy
from interpose.introspection import base_interfaces
from interpose.introspection import declared_members
from interpose.introspection import effective_members
from interpose.introspection import is_final
from interpose.introspection import member_kind
from interpose.introspection import member_visibility
from interpose.introspection import resolve_origin
from interpose.members import TYPE_ARGS_PARAMETER
from interpose.members import GenericMethod
from interpose.members import MethodToken
from interpose.members import event
from interpose.options import ProxyGenerationHook

logger = logging.getLogger(__name__)

Callback = Callable[..., object]

_PROPERTY_ACCESSORS: tuple[str, ...] = ("fget", "fset", "fdel")
_EVENT_ACCESSORS: tuple[str, ...] = ("fadd", "fremove")
_EVENT_ACCESSOR_NAMES: dict[str, str] = {"fadd": "add", "fremove": "remove"}


class MethodToGenerate:
    """One member the generated type implements.

    ``method`` is the declared member, ``method_on_target`` the backing member
    (``None`` when nothing backs it). Standalone members are generated on their
    own; property and event accessors are generated with their owner.
    """

    method: MethodToken
    method_on_target: MethodToken | None
    element: object
    contributor: "TypeContributor"
    standalone: bool
    proxyable: bool
    explicit: bool
    generated_name: str
    shadowed: list[type]

    def __init__(
        self,
        method: MethodToken,
        element: object,
        contributor: "TypeContributor",
        standalone: bool = True,
        proxyable: bool = True,
    ) -> None:
        """Initialize a member and resolve its backing member.

        :param method: Declared member token.
        :param element: Raw class attribute declaring the member.
        :param contributor: Contributor supplying the backing member.
        :param standalone: Whether the member is generated on its own rather than as an accessor.
        :param proxyable: Whether calls run the interceptor chain.
        """
        self.method = method
        self.element = element
        self.contributor = contributor
        self.standalone = standalone
        self.proxyable = proxyable
        self.method_on_target = contributor.resolve_backing(method)
        self.explicit = False
        self.generated_name = method.name
        self.shadowed = []

    @property
    def has_target(self) -> bool:
        """Return whether a backing member exists.

        :returns: ``True`` when ``method_on_target`` is set.
        """
        return self.method_on_target is not None

    def __repr__(self) -> str:
        """Return a description naming the declared and generated member.

        :returns: Representation text.
        """
        return f"<MethodToGenerate {self.method.qualified_name} -> {self.generated_name}>"


class PropertyToGenerate:
    """Property the generated type implements, with its accessors."""

    name: str
    declaring_type: type
    element: property
    getter: MethodToGenerate | None
    setter: MethodToGenerate | None
    deleter: MethodToGenerate | None
    aliases: dict[str, str]
    explicit: bool
    generated_name: str
    shadowed: list[type]

    def __init__(self, name: str, declaring_type: type, element: property) -> None:
        """Initialize a property with no accessors.

        :param name: Property name.
        :param declaring_type: Class or interface declaring the property.
        :param element: Declared property.
        """
        self.name = name
        self.declaring_type = declaring_type
        self.element = element
        self.getter = None
        self.setter = None
        self.deleter = None
        self.aliases = {}
        self.explicit = False
        self.generated_name = name
        self.shadowed = []

    def accessors(self) -> Iterator[tuple[str, MethodToGenerate]]:
        """Yield the accessors present on the property.

        :returns: Iterator of ``(accessor, member)`` pairs.
        """
        for accessor, method in (("fget", self.getter), ("fset", self.setter), ("fdel", self.deleter)):
            if method is not None:
                yield accessor, method

    @property
    def proxyable(self) -> bool:
        """Return whether any accessor is intercepted.

        :returns: ``True`` when at least one accessor is proxyable.
        """
        return any(method.proxyable for _, method in self.accessors())

    @property
    def is_abstract(self) -> bool:
        """Return whether the declared property is abstract.

        :returns: ``True`` for an abstract property.
        """
        return getattr(self.element, "__isabstractmethod__", False) is True


class EventToGenerate:
    """Event the generated type implements, with its adder and remover."""

    name: str
    declaring_type: type
    element: event
    adder: MethodToGenerate | None
    remover: MethodToGenerate | None
    explicit: bool
    generated_name: str
    shadowed: list[type]

    def __init__(self, name: str, declaring_type: type, element: event) -> None:
        """Initialize an event with no accessors.

        :param name: Event name.
        :param declaring_type: Class or interface declaring the event.
        :param element: Declared event.
        """
        self.name = name
        self.declaring_type = declaring_type
        self.element = element
        self.adder = None
        self.remover = None
        self.explicit = False
        self.generated_name = name
        self.shadowed = []

    def accessors(self) -> Iterator[tuple[str, MethodToGenerate]]:
        """Yield the accessors present on the event.

        :returns: Iterator of ``(accessor, member)`` pairs.
        """
        for accessor, method in (("add", self.adder), ("remove", self.remover)):
            if method is not None:
                yield accessor, method

    @property
    def proxyable(self) -> bool:
        """Return whether any accessor is intercepted.

        :returns: ``True`` when at least one accessor is proxyable.
        """
        return any(method.proxyable for _, method in self.accessors())

    @property
    def is_abstract(self) -> bool:
        """Return whether the declared event is abstract.

        :returns: ``True`` for an abstract event.
        """
        return getattr(self.element, "__isabstractmethod__", False) is True


def _accessor_token(declaring_type: type, name: str, function: Callable[..., object], accessor: str) -> MethodToken:
    """Return the token of a property or event accessor.

    :param declaring_type: Class or interface declaring the owner.
    :param name: Owner name.
    :param function: Accessor function.
    :param accessor: Accessor name.
    :returns: Accessor token.
    """
    return MethodToken(declaring_type, name, function, accessor=accessor)


def _method_token(declaring_type: type, name: str, raw: object) -> MethodToken:
    """Return the token of a plain or generic method.

    :param declaring_type: Class or interface declaring the method.
    :param name: Method name.
    :param raw: Function or ``GenericMethod``.
    :returns: Method token.
    """
    if isinstance(raw, GenericMethod):
        return MethodToken(declaring_type, name, raw.function, generic_parameters=raw.type_params)
    return MethodToken(declaring_type, name, raw)  # type: ignore[arg-type]


class MembersCollector:
    """Discover the proxyable members of one class or interface.

    Members rejected by the selection hook stay tracked with ``proxyable``
    unset so they are processed once. Members that cannot be proxied at all
    (static, final on a class proxy, internal and not visible) are reported
    through the hook and dropped unless they are abstract, in which case they
    still need a body on the generated type.
    """

    type_: type
    contributor: "TypeContributor"
    hook: ProxyGenerationHook
    policy: VisibilityPolicy
    only_overridable: bool
    methods: list[MethodToGenerate]
    properties: list[PropertyToGenerate]
    events: list[EventToGenerate]
    skipped: list[MethodToken]

    def __init__(
        self,
        type_: type,
        contributor: "TypeContributor",
        hook: ProxyGenerationHook,
        policy: VisibilityPolicy,
        only_overridable: bool,
    ) -> None:
        """Initialize an empty collector.

        :param type_: Class or interface whose members are collected.
        :param contributor: Contributor the collected members belong to.
        :param hook: Member-selection hook.
        :param policy: Visibility policy.
        :param only_overridable: Skip final members.
        """
        self.type_ = type_
        self.contributor = contributor
        self.hook = hook
        self.policy = policy
        self.only_overridable = only_overridable
        self.methods = []
        self.properties = []
        self.events = []
        self.skipped = []

    def collect(self, members: Iterator[tuple[str, type, object]]) -> None:
        """Collect members.

        :param members: ``(name, declaring_type, raw)`` triples.
        """
        plain_methods: list[tuple[str, type, object]] = []
        accessor_functions: dict[int, tuple[PropertyToGenerate, str]] = {}
        for name, declaring_type, raw in members:
            if name in NON_PROXYABLE_SPECIAL_NAMES:
                continue
            if member_visibility(name) is Visibility.PRIVATE:
                continue
            kind: MemberKind = member_kind(raw)
            if kind is MemberKind.OTHER:
                continue
            if kind is MemberKind.STATIC:
                self._notify(declaring_type, name, raw)
                continue
            if kind is MemberKind.PROPERTY:
                collected_property: PropertyToGenerate | None = self._collect_property(name, declaring_type, raw)  # type: ignore[arg-type]
                if collected_property is not None:
                    for accessor, _ in collected_property.accessors():
                        accessor_functions[id(getattr(raw, accessor))] = (collected_property, accessor)
            elif kind is MemberKind.EVENT:
                self._collect_event(name, declaring_type, raw)  # type: ignore[arg-type]
            else:
                plain_methods.append((name, declaring_type, raw))

        for name, declaring_type, raw in plain_methods:
            owner: tuple[PropertyToGenerate, str] | None = accessor_functions.get(id(raw))
            if owner is not None:
                # ``get_x`` bound both as a function and as the accessor of ``x``.
                owner[0].aliases[owner[1]] = name
                continue
            method: MethodToGenerate | None = self._create_method(
                _method_token(declaring_type, name, raw), raw, declaring_type, standalone=True
            )
            if method is not None:
                self.methods.append(method)

    def _accepts(self, declaring_type: type, raw: object, token: MethodToken) -> bool | None:
        """Return ``None`` when the member cannot be proxied, else whether the hook accepts it."""
        visibility: Visibility = member_visibility(token.name)
        if visibility is Visibility.INTERNAL and self.policy.internals_visible(declaring_type) is False:
            return None
        if self.only_overridable is True and is_final(raw) is True:
            return None
        return self.hook.should_intercept_method(self.type_, token)

    def _create_method(
        self,
        token: MethodToken,
        raw: object,
        declaring_type: type,
        standalone: bool,
    ) -> MethodToGenerate | None:
        """Track one member, or report and drop it when it cannot be proxied.

        :param token: Member token.
        :param raw: Raw member.
        :param declaring_type: Class or interface declaring the member.
        :param standalone: Whether the member is generated on its own.
        :returns: Member to generate, or ``None`` when dropped.
        """
        accepted: bool | None = self._accepts(declaring_type, raw, token)
        if accepted is None:
            self.hook.non_proxyable_member_notification(self.type_, token)
            if token.is_abstract is False:
                return None
            accepted = False
        if accepted is False:
            self.skipped.append(token)
            logger.debug("Member %s of %s is not intercepted", token.qualified_name, self.type_.__qualname__)
        return MethodToGenerate(token, raw, self.contributor, standalone=standalone, proxyable=accepted)

    def _collect_property(self, name: str, declaring_type: type, raw: property) -> PropertyToGenerate | None:
        """Collect the accessors of a property.

        :param name: Property name.
        :param declaring_type: Class or interface declaring the property.
        :param raw: Declared property.
        :returns: Collected property, or ``None`` when every accessor was dropped.
        """
        collected: PropertyToGenerate = PropertyToGenerate(name, declaring_type, raw)
        for accessor in _PROPERTY_ACCESSORS:
            function: Callable[..., object] | None = getattr(raw, accessor)
            if function is None:
                continue
            token: MethodToken = _accessor_token(declaring_type, name, function, accessor)
            method: MethodToGenerate | None = self._create_method(token, function, declaring_type, standalone=False)
            if method is None:
                continue
            setattr(collected, {"fget": "getter", "fset": "setter", "fdel": "deleter"}[accessor], method)
        if collected.getter is None and collected.setter is None and collected.deleter is None:
            return None
        self.properties.append(collected)
        return collected

    def _collect_event(self, name: str, declaring_type: type, raw: event) -> None:
        """Collect the accessors of an event.

        :param name: Event name.
        :param declaring_type: Class or interface declaring the event.
        :param raw: Declared event.
        """
        collected: EventToGenerate = EventToGenerate(name, declaring_type, raw)
        for accessor in _EVENT_ACCESSORS:
            function: Callable[..., object] | None = getattr(raw, accessor)
            if function is None:
                continue
            token: MethodToken = _accessor_token(declaring_type, name, function, _EVENT_ACCESSOR_NAMES[accessor])
            method: MethodToGenerate | None = self._create_method(token, function, declaring_type, standalone=False)
            if method is None:
                continue
            if accessor == "fadd":
                collected.adder = method
            else:
                collected.remover = method
        if collected.adder is None and collected.remover is None:
            return
        self.events.append(collected)

    def _notify(self, declaring_type: type, name: str, raw: object) -> None:
        """Report a member that cannot be proxied to the hook.

        :param declaring_type: Class or interface declaring the member.
        :param name: Member name.
        :param raw: Raw member.
        """
        function: object = raw.__func__ if isinstance(raw, (staticmethod, classmethod)) else raw
        self.hook.non_proxyable_member_notification(self.type_, MethodToken(declaring_type, name, function))  # type: ignore[arg-type]


def _find_accessor(raw: object, accessor: str | None) -> Callable[..., object] | None:
    """Return the function implementing one accessor of a raw member.

    :param raw: Raw member on the target class.
    :param accessor: Accessor name, or ``None`` for a method.
    :returns: Implementing function, or ``None`` when the member has no such accessor.
    """
    if accessor is None:
        if isinstance(raw, GenericMethod):
            return raw.function
        if member_kind(raw) is MemberKind.METHOD:
            return raw  # type: ignore[return-value]
        return None
    if accessor in _PROPERTY_ACCESSORS and isinstance(raw, property):
        return getattr(raw, accessor)
    if isinstance(raw, event):
        return raw.fadd if accessor == "add" else raw.fremove
    return None


def interface_dispatch(token: MethodToken) -> Callback:
    """Build a callback that reaches a member through normal attribute dispatch on the target.

    :param token: Declared member token.
    :returns: Callable taking the target followed by the call arguments.
    """
    name: str = token.name
    if token.accessor == "fget":
        return lambda target: getattr(target, name)
    if token.accessor == "fset":
        return lambda target, value: setattr(target, name, value)
    if token.accessor == "fdel":
        return lambda target: delattr(target, name)
    if token.accessor == "add":
        return lambda target, handler: getattr(target, name).add(handler)
    if token.accessor == "remove":
        return lambda target, handler: getattr(target, name).remove(handler)
    if token.is_generic is True:

        def dispatch_generic(target: object, *args: object, **kwargs: object) -> object:
            """Call the generic member with the type arguments passed by the invocation.

            :param target: Object the member is looked up on.
            :param args: Positional arguments.
            :param kwargs: Keyword arguments, including the type arguments.
            :returns: Member result.
            """
            type_args: object = kwargs.pop(TYPE_ARGS_PARAMETER)
            return getattr(target, name)[type_args](*args, **kwargs)

        return dispatch_generic

    def dispatch(target: object, *args: object, **kwargs: object) -> object:
        """Call the member by name on ``target``.

        :param target: Object the member is looked up on.
        :param args: Positional arguments.
        :param kwargs: Keyword arguments.
        :returns: Member result.
        """
        return getattr(target, name)(*args, **kwargs)

    return dispatch


class TypeContributor(abc.ABC):
    """Backing source for a set of generated members."""

    proxied_class: type | None
    interfaces: list[type]
    methods: list[MethodToGenerate]
    properties: list[PropertyToGenerate]
    events: list[EventToGenerate]

    def __init__(self, proxied_class: type | None = None) -> None:
        """Initialize a contributor with no interfaces or members.

        :param proxied_class: Class whose members are collected, if any.
        """
        self.proxied_class = proxied_class
        self.interfaces = []
        self.methods = []
        self.properties = []
        self.events = []

    def add_interface(self, interface: type) -> None:
        """Register an interface whose members this contributor backs.

        :param interface: Interface.
        """
        if interface not in self.interfaces:
            self.interfaces.append(interface)

    @abc.abstractmethod
    def resolve_backing(self, token: MethodToken) -> MethodToken | None:
        """Return the member backing ``token``.

        :param token: Declared member token.
        :returns: Backing token, or ``None`` when nothing implements the member.
        """

    def create_callback(self, method: MethodToGenerate) -> Callback | None:
        """Return the terminal call for a member.

        :param method: Member to generate.
        :returns: Callable taking the target followed by the call arguments, or ``None``.
        """
        if method.method_on_target is None:
            return None
        return method.method_on_target.function

    def collect_members(self, hook: ProxyGenerationHook, policy: VisibilityPolicy, only_overridable: bool) -> None:
        """Discover the members of the proxied class and of every mapped interface.

        Interface members already present on the proxied class are covered by
        the class member. An interface member redeclared by a more derived
        interface of this contributor is covered by that redeclaration.

        :param hook: Member-selection hook.
        :param policy: Visibility policy.
        :param only_overridable: Skip final members.
        """
        class_names: frozenset[str] = frozenset()
        if self.proxied_class is not None:
            class_members: dict[str, tuple[type, object]] = effective_members(self.proxied_class)
            class_names = frozenset(class_members)
            collector: MembersCollector = MembersCollector(self.proxied_class, self, hook, policy, only_overridable)
            collector.collect((name, owner, raw) for name, (owner, raw) in class_members.items())
            self._absorb(collector)

        declared_by: dict[str, list[tuple[type, object]]] = {}
        for interface in self.interfaces:
            members: list[tuple[str, type, object]] = []
            for name, raw in declared_members(interface):
                if name in class_names:
                    continue
                owners: list[tuple[type, object]] = declared_by.setdefault(name, [])
                shadowing: tuple[type, object] | None = next(
                    (owner for owner in owners if issubclass(owner[0], interface)), None
                )
                if shadowing is not None:
                    self._record_shadowed(shadowing[1], interface)
                    continue
                owners.append((interface, raw))
                members.append((name, interface, raw))
            collector = MembersCollector(interface, self, hook, policy, False)
            collector.collect(iter(members))
            self._absorb(collector)

    def _absorb(self, collector: MembersCollector) -> None:
        """Take over the members found by ``collector``.

        :param collector: Finished collector.
        """
        self.methods.extend(collector.methods)
        self.properties.extend(collector.properties)
        self.events.extend(collector.events)

    def _record_shadowed(self, winner: object, interface: type) -> None:
        """Record that ``interface`` redeclares the member ``winner`` already covers.

        :param winner: Raw member that is generated.
        :param interface: Interface whose redeclaration it also implements.
        """
        for member in (*self.methods, *self.properties, *self.events):
            if member.element is winner:
                member.shadowed.append(interface)
                return


class ClassTargetContributor(TypeContributor):
    """Class proxy: the base-class implementation, run on the proxy itself, backs each member."""

    def resolve_backing(self, token: MethodToken) -> MethodToken | None:
        """Back every concrete member by itself.

        :param token: Declared member token.
        :returns: ``token``, or ``None`` for abstract members.
        """
        if token.is_abstract is True:
            return None
        return token


class TargetContributor(TypeContributor):
    """With-target proxies: the member of the proxy target's class backs each member."""

    target_class: type
    _target_members: dict[str, tuple[type, object]]

    def __init__(self, proxied_class: type | None, target_class: type) -> None:
        """Initialize a contributor backed by ``target_class``.

        :param proxied_class: Class whose members are collected, if any.
        :param target_class: Class of the proxy target.
        """
        self.target_class = target_class
        self._target_members = effective_members(target_class)
        super().__init__(proxied_class)

    def resolve_backing(self, token: MethodToken) -> MethodToken | None:
        """Return the member of the target class with the same name and accessor.

        :param token: Declared member token.
        :returns: Backing token, or ``None`` when the target class does not implement it.
        """
        found: tuple[type, object] | None = self._target_members.get(token.name)
        if found is None:
            return None
        owner, raw = found
        function: Callable[..., object] | None = _find_accessor(raw, token.accessor)
        if function is None or getattr(function, "__isabstractmethod__", False) is True:
            return None
        generic_parameters: tuple[object, ...] = raw.type_params if isinstance(raw, GenericMethod) else ()
        return MethodToken(owner, token.name, function, accessor=token.accessor, generic_parameters=generic_parameters)


class MixinContributor(TypeContributor):
    """Members of one mixin interface, backed by the mixin instance."""

    mixin_interface: type

    def __init__(self, mixin_interface: type) -> None:
        """Initialize a contributor for one mixin interface.

        :param mixin_interface: Interface implemented by the mixin.
        """
        self.mixin_interface = mixin_interface
        super().__init__(None)

    def resolve_backing(self, token: MethodToken) -> MethodToken | None:
        """Back every member by the interface member itself.

        :param token: Declared member token.
        :returns: ``token``.
        """
        return token

    def create_callback(self, method: MethodToGenerate) -> Callback | None:
        """Dispatch through the interface member on the mixin instance.

        :param method: Member to generate.
        :returns: Dispatching callback.
        """
        # The mixin's class is not part of the cache key; dispatch through the interface member.
        return interface_dispatch(method.method)


class NoTargetContributor(TypeContributor):
    """Members with no backing: interceptors must provide the result."""

    def resolve_backing(self, token: MethodToken) -> MethodToken | None:
        """Report that no member has a backing member.

        :param token: Declared member token.
        :returns: ``None``.
        """
        return None


def add_interface_hierarchy_mapping(
    interface: type,
    implementer: TypeContributor,
    mapping: dict[type, TypeContributor],
    visited: set[type] | None = None,
) -> None:
    """Map ``interface`` and its base interfaces to ``implementer``; the first mapping of an interface wins.

    :param interface: Interface to map.
    :param implementer: Contributor backing it.
    :param mapping: Interface to contributor map, updated in place.
    :param visited: Interfaces already walked in this call.
    """
    interface = resolve_origin(interface)
    if visited is None:
        visited = set()
    if interface in visited:
        return
    visited.add(interface)
    if interface not in mapping:
        mapping[interface] = implementer
        implementer.add_interface(interface)
    for base in base_interfaces(interface):
        add_interface_hierarchy_mapping(base, implementer, mapping, visited)
