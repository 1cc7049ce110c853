"""Shared machinery of every proxy generator.

A generator instance serves exactly one request. It fixes the generation
options once, reduces the request to a cache key and, on a miss, drives the
member pipeline: contributors discover members, each member gets its
invocation class and forwarding body, constructors are mirrored from the base
class, and non-inheritable custom attributes are replicated.
"""

import abc
import enum
import inspect
import logging
from collections.abc import Callable
from collections.abc import Iterable
from collections.abc import Sequence
from typing import TYPE_CHECKING

from interpose.attributes import GeneratedProxy
from interpose.cache import CacheKey
from interpose.cache import ProxyKind
from interpose.contributors import Callback
from interpose.contributors import ClassTargetContributor
from interpose.contributors import EventToGenerate
from interpose.contributors import MethodToGenerate
from interpose.contributors import MixinContributor
from interpose.contributors import NoTargetContributor
from interpose.contributors import PropertyToGenerate
from interpose.contributors import TypeContributor
from interpose.contributors import add_interface_hierarchy_mapping
from interpose.emitter import ClassEmitter
from interpose.emitter import FieldCell
from interpose.emitter import FieldReference
from interpose.emitter import MemberAttributes
from interpose.emitter import MethodEmitter
from interpose.emitter import NullReference
from interpose.emitter import ParameterLayout
from interpose.emitter import ProxyConstructor
from interpose.emitter import Reference
from interpose.emitter import StaticFieldReference
from interpose.errors import GenerationOptionsAlreadySetError
from interpose.errors import GenerationOptionsNotSetError
from interpose.errors import GenericTypeDefinitionError
from interpose.errors import InvalidMixinConfigurationError
from interpose.introspection import Visibility
from interpose.introspection import accepts_no_arguments
from interpose.introspection import base_constructor_signature
from interpose.introspection import base_interfaces
from interpose.introspection import effective_members
from interpose.introspection import implements_interface
from interpose.introspection import is_final
from interpose.introspection import is_generic_type_definition
from interpose.introspection import member_visibility
from interpose.introspection import resolve_origin
from interpose.introspection import type_name
from interpose.invocation import StandardInterceptor
from interpose.invocation_types import InvocationTypeGenerator
from interpose.members import TYPE_ARGS_PARAMETER
from interpose.members import MethodToken
from interpose.options import ProxyGenerationOptions

if TYPE_CHECKING:
    from interpose.registry import ProxyRegistry

logger = logging.getLogger(__name__)

INTERCEPTORS_FIELD: str = "__interceptors"
TARGET_FIELD: str = "__target"


class ConstructorVersion(enum.Enum):
    """Which member tokens an invocation receives.

    ``WITH_TARGET_METHOD`` passes the backing member as the target method and
    the declared member as the interface method; ``WITHOUT_TARGET_METHOD``
    passes the declared member only.
    """

    WITH_TARGET_METHOD = "with_target_method"
    WITHOUT_TARGET_METHOD = "without_target_method"


class BaseProxyGenerator(abc.ABC):
    """Generate one proxy type per distinct request signature."""

    kind: ProxyKind
    constructor_version: ConstructorVersion

    target_type: object
    _registry: "ProxyRegistry"
    _options: ProxyGenerationOptions | None
    _method_to_token_field: dict[MethodToken, StaticFieldReference]
    _method_to_invocation: dict[tuple[MethodToken, bool, bool], type]
    _interface_to_mixin_field: dict[type, FieldReference]
    _type_token_field: StaticFieldReference | None
    _options_field: StaticFieldReference | None
    _field_count: int
    _callback_counter: int
    _generic_field_counter: int

    def __init__(self, registry: "ProxyRegistry", target_type: object) -> None:
        """Initialize a generator.

        :param registry: Registry owning the type cache.
        :param target_type: Class, generic alias or interface being proxied.
        """
        self._registry = registry
        self.target_type = target_type
        self._options = None
        self._method_to_token_field = {}
        self._method_to_invocation = {}
        self._interface_to_mixin_field = {}
        self._type_token_field = None
        self._options_field = None
        self._field_count = 1
        self._callback_counter = 0
        self._generic_field_counter = 0

    @property
    def registry(self) -> "ProxyRegistry":
        """Return the registry owning the type cache.

        :returns: Proxy registry.
        """
        return self._registry

    @property
    def options(self) -> ProxyGenerationOptions:
        """Return the generation options.

        :returns: Options set for this request.
        :raises GenerationOptionsNotSetError: If the options were not set yet.
        """
        if self._options is None:
            raise GenerationOptionsNotSetError("ProxyGenerationOptions must be set before being retrieved.")
        return self._options

    def set_generation_options(self, options: ProxyGenerationOptions) -> None:
        """Fix the generation options of this generator.

        :param options: Generation options.
        :raises GenerationOptionsAlreadySetError: If options were already set.
        """
        if self._options is not None:
            raise GenerationOptionsAlreadySetError("ProxyGenerationOptions can only be set once.")
        self._options = options

    @staticmethod
    def check_not_generic_type_definition(type_: object, argument_name: str) -> None:
        """Reject a generic type definition.

        :param type_: Type to check; ``None`` is accepted.
        :param argument_name: Argument name reported in the error.
        :raises GenericTypeDefinitionError: If ``type_`` has unbound type parameters.
        """
        if type_ is not None and is_generic_type_definition(type_) is True:
            raise GenericTypeDefinitionError(type_name(type_), argument_name)

    @classmethod
    def check_not_generic_type_definitions(cls, types_: Iterable[object] | None, argument_name: str) -> None:
        """Reject open generic types among ``types_``.

        :param types_: Types or aliases to check, or ``None``.
        :param argument_name: Argument name reported in the error.
        :raises GenericTypeDefinitionError: If any type has unbound type parameters.
        """
        if types_ is None:
            return
        for type_ in types_:
            cls.check_not_generic_type_definition(type_, argument_name)

    def get_or_create_type(self, key: CacheKey, factory: Callable[[], type]) -> type:
        """Return the cached type for ``key``, running ``factory`` on a miss.

        :param key: Cache key.
        :param factory: Synthesis routine.
        :returns: Generated type.
        """
        return self._registry.type_cache.get_or_create(key, factory)

    @abc.abstractmethod
    def get_proxy_target_reference(self) -> Reference:
        """Return where the generated type keeps its proxy target."""

    def get_method_target_reference(self, method: MethodToken) -> Reference:
        """Return the target of a member nothing backs.

        :param method: Declared member token.
        :returns: Reference loaded as the invocation target.
        """
        return NullReference()

    def can_only_proxy_virtual(self) -> bool:
        """Report whether only overridable members may be intercepted.

        :returns: ``True`` for proxy kinds that subclass the proxied class.
        """
        return False

    def build_class_emitter(self, name: str, parent_type: object, interfaces: Sequence[type]) -> ClassEmitter:
        """Declare the generated type.

        :param name: Unique type name.
        :param parent_type: Base class or generic alias.
        :param interfaces: Interfaces the type implements.
        :returns: Class emitter.
        :raises GenericTypeDefinitionError: If the parent or an interface is a generic type definition.
        """
        self.check_not_generic_type_definition(parent_type, "parent_type")
        self.check_not_generic_type_definitions(interfaces, "interfaces")
        return ClassEmitter(name, parent_type, interfaces, self._registry.module_name)

    def create_options_field(self, emitter: ClassEmitter) -> StaticFieldReference:
        """Declare the static field holding the generation options.

        :param emitter: Emitter of the generated type.
        :returns: Options field.
        """
        self._options_field = emitter.create_static_field("__proxy_generation_options")
        return self._options_field

    def initialize_static_fields(self, built_type: type) -> None:
        """Assign the static fields whose values exist only after the type is built.

        :param built_type: Generated type.
        """
        if self._options_field is not None:
            self._options_field.initialize(built_type, self.options)

    def create_type_token_field(self, emitter: ClassEmitter, type_token: object) -> StaticFieldReference:
        """Declare the static field holding the type reported to interceptors.

        :param emitter: Emitter of the generated type.
        :param type_token: Type reported as the invocation's target type.
        :returns: Type token field.
        """
        self._type_token_field = emitter.create_static_field("__type_token_cache", type_token)
        return self._type_token_field

    def cache_method_tokens(self, emitter: ClassEmitter, methods: Iterable[MethodToken]) -> None:
        """Declare one static field per non-generic member token.

        Generic member tokens depend on the call's type arguments and are
        computed per call instead.

        :param emitter: Emitter of the generated type.
        :param methods: Declared and backing tokens.
        """
        for method in methods:
            if method.declaring_type is object or method.is_generic is True:
                continue
            if method in self._method_to_token_field:
                continue
            field: StaticFieldReference = emitter.create_static_field(f"__token_cache_{self._field_count}", method)
            self._field_count += 1
            self._method_to_token_field[method] = field

    def add_mixin_fields(self, emitter: ClassEmitter) -> list[FieldReference]:
        """Declare one field per mixin interface, in mixin position order.

        :param emitter: Emitter of the generated type.
        :returns: Mixin fields.
        """
        mixins: list[FieldReference] = []
        for interface in self.options.mixin_data.mixin_interfaces:
            qualified: str = f"{interface.__module__}.{interface.__qualname__}".replace(".", "_")
            field: FieldReference = emitter.create_field(f"__mixin_{qualified}")
            self._interface_to_mixin_field[interface] = field
            mixins.append(field)
        return mixins

    def validate_mixin_interfaces(
        self,
        interfaces_to_check: Iterable[type],
        role: str,
        visited: set[type] | None = None,
    ) -> None:
        """Reject mixin interfaces that duplicate ``interfaces_to_check`` or their bases.

        :param interfaces_to_check: Interfaces implemented in another way.
        :param role: Description of where those interfaces come from.
        :param visited: Interfaces already checked.
        :raises InvalidMixinConfigurationError: On a duplicate.
        """
        if visited is None:
            visited = set()
        for interface in interfaces_to_check:
            if interface in visited:
                continue
            visited.add(interface)
            if self.options.mixin_data.contains_mixin(interface) is True:
                mixin: object = self.options.mixin_data.get_mixin_instance(interface)
                raise InvalidMixinConfigurationError(
                    f"The mixin {type(mixin).__name__} adds the interface '{type_name(interface)}' to the generated "
                    + f"proxy, but the interface already exists in the proxy's {role}. "
                    + "A mixin cannot add an interface already implemented in another way."
                )
            self.validate_mixin_interfaces(base_interfaces(interface), role, visited)

    def add_mixin_mappings(self, mapping: dict[type, TypeContributor]) -> list[MixinContributor]:
        """Map each mixin interface not already implemented by the target to its mixin.

        :param mapping: Interface to contributor map, updated in place.
        :returns: One contributor per mapped mixin interface.
        """
        contributors: list[MixinContributor] = []
        for interface in self.options.mixin_data.mixin_interfaces:
            if interface in mapping:
                logger.debug("Interface %s is implemented by the proxy target, not by its mixin", type_name(interface))
                continue
            contributor: MixinContributor = MixinContributor(interface)
            mapping[interface] = contributor
            contributor.add_interface(interface)
            contributors.append(contributor)
        return contributors

    def add_additional_interface_mappings(
        self,
        interfaces: Iterable[type],
        mapping: dict[type, TypeContributor],
        target_contributor: TypeContributor | None = None,
        target_class: type | None = None,
    ) -> NoTargetContributor:
        """Map the additional interfaces to the target when it implements them, else to no target.

        :param interfaces: Additional interfaces.
        :param mapping: Interface to contributor map, updated in place.
        :param target_contributor: Contributor of the proxy target.
        :param target_class: Class of the proxy target.
        :returns: Contributor of the members nothing backs.
        """
        no_target: NoTargetContributor = NoTargetContributor()
        for interface in interfaces:
            if resolve_origin(interface) in mapping:
                continue
            if (
                target_contributor is not None
                and target_class is not None
                and implements_interface(target_class, interface) is True
            ):
                add_interface_hierarchy_mapping(interface, target_contributor, mapping)
            else:
                add_interface_hierarchy_mapping(interface, no_target, mapping)
        return no_target

    def get_target_reference(self, method: MethodToGenerate, proxy_target: Reference) -> Reference:
        """Return where a member's invocation target is loaded from.

        :param method: Member to generate.
        :param proxy_target: Reference to the proxy target.
        :returns: Mixin field for mixin members, the proxy target for backed members, else the fallback target.
        """
        if method.has_target is False:
            return self.get_method_target_reference(method.method)
        if isinstance(method.contributor, MixinContributor):
            return self._interface_to_mixin_field[method.contributor.mixin_interface]
        return proxy_target

    def assign_member_names(self, contributors: Sequence[TypeContributor], reserved: Iterable[str]) -> None:
        """Choose the attribute name of every generated member.

        Members of the proxied class keep their names. An interface member whose
        name is already taken is generated under ``"Interface.member"``.

        :param contributors: Contributors in priority order.
        :param reserved: Names already taken on the generated type.
        """
        claimed: set[str] = set(reserved)
        for contributor in contributors:
            class_names: frozenset[str] = frozenset()
            if contributor.proxied_class is not None:
                class_names = frozenset(effective_members(contributor.proxied_class))
            members: list[MethodToGenerate | PropertyToGenerate | EventToGenerate] = [
                method for method in contributor.methods if method.standalone is True
            ]
            members.extend(contributor.properties)
            members.extend(contributor.events)
            for member in members:
                if isinstance(member, MethodToGenerate):
                    name: str = member.method.name
                    declaring_type: type = member.method.declaring_type
                else:
                    name = member.name
                    declaring_type = member.declaring_type
                if name in claimed and name not in class_names:
                    member.explicit = True
                    member.generated_name = f"{declaring_type.__name__}.{name}"
                claimed.add(member.generated_name)
                if isinstance(member, (PropertyToGenerate, EventToGenerate)):
                    for _, accessor in member.accessors():
                        accessor.explicit = member.explicit
                        accessor.generated_name = member.generated_name

    def obtain_method_attributes(self, method: MethodToGenerate) -> tuple[str, MemberAttributes]:
        """Compute the name and flags of a generated member.

        :param method: Member to generate.
        :returns: ``(name, attributes)``.
        """
        token: MethodToken = method.method
        name: str = method.generated_name
        if method.explicit is True:
            attributes: MemberAttributes = MemberAttributes(
                visibility=Visibility.PRIVATE,
                final=True,
                hide_by_sig=True,
                new_slot=True,
            )
        else:
            visibility: Visibility = member_visibility(token.name)
            if visibility is Visibility.INTERNAL and self._registry.visibility_policy.internals_visible(
                token.declaring_type
            ):
                visibility = Visibility.ASSEMBLY
            attributes = MemberAttributes(
                visibility=visibility,
                new_slot=is_final(method.element),
                hide_by_sig=True,
            )
        if token.accessor is not None or token.name.startswith(("get_", "set_")):
            attributes = MemberAttributes(
                visibility=attributes.visibility,
                final=attributes.final,
                hide_by_sig=attributes.hide_by_sig,
                new_slot=attributes.new_slot,
                special_name=True,
            )
        return name, attributes

    def _uses_inheritance(self, method: MethodToGenerate) -> bool:
        """Return whether a member's terminal step runs the base implementation on the proxy.

        :param method: Member to generate.
        :returns: ``True`` for members the proxied class implements or declares on a class proxy.
        """
        if isinstance(method.contributor, ClassTargetContributor):
            return True
        return self.kind == "class" and isinstance(method.contributor, NoTargetContributor)

    def create_callback_method(self, emitter: ClassEmitter, method: MethodToGenerate) -> Callback | None:
        """Define the terminal call of a member.

        For class proxies the callback runs the base-class implementation on the
        proxy and is also installed on the generated type.

        :param emitter: Emitter of the generated type.
        :param method: Member to generate.
        :returns: Callback, or ``None`` when nothing backs the member.
        """
        callback: Callback | None = method.contributor.create_callback(method)
        if callback is None or self._uses_inheritance(method) is False:
            return callback

        base_function: Callback = callback

        def invoke_base(self: object, *args: object, **kwargs: object) -> object:
            """Run the base-class implementation on the proxy.

            :param self: Proxy instance.
            :param args: Positional arguments.
            :param kwargs: Keyword arguments.
            :returns: Base implementation result.
            """
            return base_function(self, *args, **kwargs)

        self._callback_counter += 1
        name: str = f"_{method.method.name}_callback_{self._callback_counter}"
        invoke_base.__name__ = name
        emitter.define_function(name, invoke_base)
        return invoke_base

    def build_invocation_nested_type(
        self,
        emitter: ClassEmitter,
        method: MethodToGenerate,
        callback: Callback | None,
        layout: ParameterLayout,
    ) -> type:
        """Return the invocation class of a member, sharing it between members with the same backing.

        :param emitter: Emitter of the generated type.
        :param method: Member to generate.
        :param callback: Terminal call.
        :param layout: Declared parameter layout.
        :returns: Invocation class (generic for generic members).
        """
        key_token: MethodToken = method.method_on_target if method.method_on_target is not None else method.method
        key: tuple[MethodToken, bool, bool] = (key_token, method.method.is_generic, callback is not None)
        existing: type | None = self._method_to_invocation.get(key)
        if existing is not None:
            return existing
        suffix: str = "" if key_token.accessor is None else f"_{key_token.accessor}"
        name: str = (
            f"{key_token.declaring_type.__name__}_{key_token.name}{suffix}"
            + f"_Invocation_{len(self._method_to_invocation) + 1}"
        )
        invocation_type: type = InvocationTypeGenerator(
            method, callback, layout, self._uses_inheritance(method)
        ).generate(emitter, name)
        self._method_to_invocation[key] = invocation_type
        return invocation_type

    def _token_field_name(self, method: MethodToken) -> str:
        """Return the name of the static field holding a member token.

        :param method: Member token.
        :returns: Existing field name, or a fresh name for generic members.
        """
        field: StaticFieldReference | None = self._method_to_token_field.get(method)
        if field is not None:
            return field.name
        self._generic_field_counter += 1
        return f"__{method.name}_{len(method.generic_parameters)}_generic_{self._generic_field_counter}"

    def implement_proxied_method(
        self,
        method_emitter: MethodEmitter,
        method: MethodToGenerate,
        emitter: ClassEmitter,
        interceptors_field: FieldReference,
        target: Reference,
    ) -> MethodEmitter:
        """Give ``method_emitter`` a body that runs the interceptor chain.

        :param method_emitter: Generated member.
        :param method: Member to generate.
        :param emitter: Emitter of the generated type.
        :param interceptors_field: Field holding the proxy's interceptors.
        :param target: Reference to the invocation target.
        :returns: ``method_emitter``.
        """
        declared: MethodToken = method.method
        backing: MethodToken | None = method.method_on_target
        layout: ParameterLayout = method_emitter.copy_parameters_and_return_type_from(
            declared.function, declared.generic_parameters
        )
        callback: Callback | None = self.create_callback_method(emitter, method)
        invocation_type: type = self.build_invocation_nested_type(emitter, method, callback, layout)
        generic: bool = declared.is_generic
        declared_field: StaticFieldReference | None = self._method_to_token_field.get(declared)
        backing_field: StaticFieldReference | None = (
            None if backing is None else self._method_to_token_field.get(backing)
        )
        type_token_field: StaticFieldReference | None = self._type_token_field
        with_target_method: bool = self.constructor_version is ConstructorVersion.WITH_TARGET_METHOD
        selector_cache: FieldReference | None = None
        options_field: StaticFieldReference | None = self._options_field
        if self.options.selector is not None:
            selector_cache = emitter.create_field(f"{self._token_field_name(declared)}_interceptors")

        def invoke(proxy: object, arguments: list[object], type_args: tuple[object, ...] | None) -> object:
            """Build the invocation for one call, run the chain and return its result.

            :param proxy: Proxy instance.
            :param arguments: Bound call arguments.
            :param type_args: Type arguments of a generic call.
            :returns: Return value set by the chain.
            """
            declared_token: MethodToken
            backing_token: MethodToken | None
            invocation_class: type
            if generic is True and type_args is not None:
                declared_token = declared.make_generic(type_args)
                backing_token = backing
                if backing is not None and backing.is_generic_definition is True:
                    backing_token = backing.make_generic(type_args)
                invocation_class = invocation_type[type_args]  # type: ignore[index]
            else:
                declared_token = declared_field.load(proxy) if declared_field is not None else declared  # type: ignore[assignment]
                backing_token = backing_field.load(proxy) if backing_field is not None else backing  # type: ignore[assignment]
                invocation_class = invocation_type

            target_method: MethodToken = declared_token
            interface_method: MethodToken | None = None
            if with_target_method is True and backing_token is not None:
                target_method = backing_token
                interface_method = declared_token

            interceptors: object = interceptors_field.load(proxy) or ()
            type_token: object = type_token_field.load(proxy) if type_token_field is not None else type(proxy)
            values: list[object] = layout.dereference(arguments)
            if selector_cache is None or options_field is None:
                invocation = invocation_class(
                    target.load(proxy), proxy, interceptors, type_token, target_method, interface_method, values
                )
            else:
                invocation = invocation_class(
                    target.load(proxy),
                    proxy,
                    interceptors,
                    type_token,
                    target_method,
                    interface_method,
                    values,
                    options_field.load(proxy).selector,  # type: ignore[attr-defined]
                    FieldCell(proxy, selector_cache),
                )
            if generic is True and type_args is not None:
                invocation.set_generic_method_arguments(type_args)
            invocation.proceed()
            if layout.has_by_ref is True:
                layout.copy_out(arguments, invocation.arguments)
            if layout.returns_void is True:
                return None
            return invocation.return_value

        method_emitter.set_body(invoke)
        return method_emitter

    def implement_direct_method(
        self,
        method_emitter: MethodEmitter,
        method: MethodToGenerate,
        target: Reference,
    ) -> MethodEmitter:
        """Give a non-intercepted member a body so the generated type stays concrete.

        The body calls the backing member directly, or returns ``None`` when
        nothing backs it.

        :param method_emitter: Generated member.
        :param method: Member the hook skipped or that cannot be intercepted.
        :param target: Reference to the backing target.
        :returns: ``method_emitter``.
        """
        declared: MethodToken = method.method
        layout: ParameterLayout = method_emitter.copy_parameters_and_return_type_from(
            declared.function, declared.generic_parameters
        )
        callback: Callback | None = method.contributor.create_callback(method)
        generic: bool = declared.is_generic

        def forward(proxy: object, arguments: list[object], type_args: tuple[object, ...] | None) -> object:
            """Call the backing member directly, without interceptors.

            :param proxy: Proxy instance.
            :param arguments: Bound call arguments.
            :param type_args: Type arguments of a generic call.
            :returns: Backing member result.
            """
            if callback is None:
                return None
            args, kwargs = layout.unbind(arguments)
            if generic is True:
                kwargs[TYPE_ARGS_PARAMETER] = type_args
            result: object = callback(target.load(proxy), *args, **kwargs)
            if layout.returns_void is True:
                return None
            return result

        method_emitter.set_body(forward)
        return method_emitter

    def _implement_body(
        self,
        method_emitter: MethodEmitter,
        method: MethodToGenerate,
        emitter: ClassEmitter,
        interceptors_field: FieldReference,
    ) -> None:
        """Give a member its body and copy the original member's metadata onto it.

        :param method_emitter: Generated member.
        :param method: Member to generate.
        :param emitter: Emitter of the generated type.
        :param interceptors_field: Field holding the proxy's interceptors.
        """
        target: Reference = self.get_target_reference(method, self.get_proxy_target_reference())
        if method.proxyable is True:
            self.implement_proxied_method(method_emitter, method, emitter, interceptors_field, target)
        else:
            self.implement_direct_method(method_emitter, method, target)
        method_emitter.set_overridden_member(method.element)
        self.replicate_member_attributes(method.element, method_emitter)

    def implement_method(
        self,
        emitter: ClassEmitter,
        interceptors_field: FieldReference,
        method: MethodToGenerate,
    ) -> None:
        """Generate one standalone member.

        Members the hook skipped are only generated when they would otherwise
        stay abstract on the generated type.

        :param emitter: Emitter of the generated type.
        :param interceptors_field: Field holding the proxy's interceptors.
        :param method: Member to generate.
        """
        if method.standalone is False:
            return
        if method.proxyable is False and method.method.is_abstract is False:
            return
        name, attributes = self.obtain_method_attributes(method)
        method_emitter: MethodEmitter = emitter.create_method(name, attributes)
        self._implement_body(method_emitter, method, emitter, interceptors_field)
        self._define_overrides(emitter, name, method.method.declaring_type, method.method.name, method.shadowed)

    def implement_property(
        self,
        emitter: ClassEmitter,
        interceptors_field: FieldReference,
        property_: PropertyToGenerate,
    ) -> None:
        """Generate one property and its accessors.

        :param emitter: Emitter of the generated type.
        :param interceptors_field: Field holding the proxy's interceptors.
        :param property_: Property to generate.
        """
        if property_.proxyable is False and property_.is_abstract is False:
            return
        property_emitter = emitter.create_property(property_.generated_name, property_.element.__doc__)
        for accessor, method in property_.accessors():
            name, attributes = self.obtain_method_attributes(method)
            if accessor == "fget":
                method_emitter: MethodEmitter = property_emitter.create_get_method(name, attributes)
            elif accessor == "fset":
                method_emitter = property_emitter.create_set_method(name, attributes)
            else:
                method_emitter = property_emitter.create_delete_method(name, attributes)
            self._implement_body(method_emitter, method, emitter, interceptors_field)
        for accessor, alias in property_.aliases.items():
            property_emitter.add_accessor_alias(accessor, alias)
        self._define_overrides(
            emitter, property_.generated_name, property_.declaring_type, property_.name, property_.shadowed
        )

    def implement_event(
        self,
        emitter: ClassEmitter,
        interceptors_field: FieldReference,
        event_: EventToGenerate,
    ) -> None:
        """Generate one event and its accessors.

        :param emitter: Emitter of the generated type.
        :param interceptors_field: Field holding the proxy's interceptors.
        :param event_: Event to generate.
        """
        if event_.proxyable is False and event_.is_abstract is False:
            return
        event_emitter = emitter.create_event(event_.generated_name, event_.element.__doc__)
        for accessor, method in event_.accessors():
            name, attributes = self.obtain_method_attributes(method)
            if accessor == "add":
                method_emitter: MethodEmitter = event_emitter.create_add_method(name, attributes)
            else:
                method_emitter = event_emitter.create_remove_method(name, attributes)
            self._implement_body(method_emitter, method, emitter, interceptors_field)
        self._define_overrides(emitter, event_.generated_name, event_.declaring_type, event_.name, event_.shadowed)

    @staticmethod
    def _define_overrides(
        emitter: ClassEmitter,
        generated_name: str,
        declaring_type: type,
        member_name: str,
        shadowed: Sequence[type],
    ) -> None:
        """Bind a generated member to the interface members it implements.

        :param emitter: Emitter of the generated type.
        :param generated_name: Attribute name of the generated member.
        :param declaring_type: Type declaring the member.
        :param member_name: Member name on the declaring type.
        :param shadowed: Interfaces whose redeclaration the member also implements.
        """
        emitter.define_method_override(generated_name, declaring_type, member_name)
        for interface in shadowed:
            emitter.define_method_override(generated_name, interface, member_name)

    def replicate_member_attributes(self, element: object, method_emitter: MethodEmitter) -> None:
        """Copy the non-inheritable attributes of a member onto its generated counterpart.

        :param element: Original member.
        :param method_emitter: Generated member.
        """
        disassembler = self.options.attribute_disassembler
        for attribute in self._registry.attribute_filter.attributes_to_replicate(element):
            method_emitter.define_custom_attribute(disassembler.disassemble(attribute))

    def replicate_type_attributes(self, target_type: type, emitter: ClassEmitter) -> None:
        """Copy the non-inheritable attributes of the proxied type onto the generated type.

        :param target_type: Proxied class or interface.
        :param emitter: Emitter of the generated type.
        """
        disassembler = self.options.attribute_disassembler
        for attribute in self._registry.attribute_filter.attributes_to_replicate(target_type):
            emitter.define_custom_attribute(disassembler.disassemble(attribute))

    def define_proxy_accessors(
        self,
        emitter: ClassEmitter,
        interceptors_field: FieldReference,
        target: Reference,
    ) -> None:
        """Install the accessors reading the proxy target and the interceptors.

        :param emitter: Emitter of the generated type.
        :param interceptors_field: Field holding the interceptors.
        :param target: Reference to the proxy target.
        """

        def __proxy_target__(self: object) -> object:
            """Return the proxy target.

            :param self: Proxy instance.
            :returns: Target object.
            """
            return target.load(self)

        def __proxy_interceptors__(self: object) -> object:
            """Return the proxy's interceptors.

            :param self: Proxy instance.
            :returns: Interceptors.
            """
            return interceptors_field.load(self)

        emitter.define_function("__proxy_target__", __proxy_target__)
        emitter.define_function("__proxy_interceptors__", __proxy_interceptors__)

    def generate_constructors(self, emitter: ClassEmitter, base_type: object, fields: Sequence[FieldReference]) -> None:
        """Mirror the base constructor, proxy fields first.

        :param emitter: Emitter of the generated type.
        :param base_type: Base class or generic alias.
        :param fields: Proxy fields, in argument order.
        """
        base_class: type = resolve_origin(base_type)
        parameters: list[inspect.Parameter] = [
            inspect.Parameter(f"_proxy_{field.name.lstrip('_')}", inspect.Parameter.POSITIONAL_ONLY)
            for field in fields
        ]
        if base_class is not object:
            base_signature: inspect.Signature | None = base_constructor_signature(base_class)
            if base_signature is None:
                parameters.append(inspect.Parameter("args", inspect.Parameter.VAR_POSITIONAL))
                parameters.append(inspect.Parameter("kwargs", inspect.Parameter.VAR_KEYWORD))
            else:
                parameters.extend(base_signature.parameters.values())
        emitter.create_constructor(ProxyConstructor(fields, base_class.__init__, inspect.Signature(parameters)))

    def generate_parameterless_constructor(
        self,
        emitter: ClassEmitter,
        base_type: object,
        interceptors_field: FieldReference,
    ) -> None:
        """Add a constructor taking no arguments when the base class allows it.

        The interceptors field starts with a single ``StandardInterceptor``.

        :param emitter: Emitter of the generated type.
        :param base_type: Base class or generic alias.
        :param interceptors_field: Field holding the interceptors.
        """
        base_class: type = resolve_origin(base_type)
        if base_class is not object and accepts_no_arguments(base_constructor_signature(base_class)) is False:
            return
        emitter.create_constructor(
            ProxyConstructor(
                (),
                base_class.__init__,
                inspect.Signature([]),
                initializers=((interceptors_field, lambda: (StandardInterceptor(),)),),
            )
        )

    def emit_members(
        self,
        emitter: ClassEmitter,
        contributors: Sequence[TypeContributor],
        interceptors_field: FieldReference,
        reserved: Iterable[str],
    ) -> None:
        """Run the member pipeline of every contributor.

        :param emitter: Emitter of the generated type.
        :param contributors: Contributors in priority order.
        :param interceptors_field: Field holding the interceptors.
        :param reserved: Names already taken on the generated type.
        """
        policy = self._registry.visibility_policy
        for contributor in contributors:
            contributor.collect_members(self.options.hook, policy, self.can_only_proxy_virtual())
        self.options.hook.methods_inspected()
        self.assign_member_names(contributors, reserved)

        tokens: list[MethodToken] = []
        for contributor in contributors:
            methods: list[MethodToGenerate] = list(contributor.methods)
            for owner in (*contributor.properties, *contributor.events):
                methods.extend(method for _, method in owner.accessors())
            for method in methods:
                if method.proxyable is False:
                    continue
                tokens.append(method.method)
                if method.method_on_target is not None:
                    tokens.append(method.method_on_target)
        self.cache_method_tokens(emitter, tokens)

        for contributor in contributors:
            for method in contributor.methods:
                self.implement_method(emitter, interceptors_field, method)
            for property_ in contributor.properties:
                self.implement_property(emitter, interceptors_field, property_)
            for event_ in contributor.events:
                self.implement_event(emitter, interceptors_field, event_)

    def finish_type(self, emitter: ClassEmitter, replicate_from: type | None) -> type:
        """Attach type-level attributes, build the type and initialize its static fields.

        :param emitter: Emitter of the generated type.
        :param replicate_from: Class whose non-inheritable attributes are replicated.
        :returns: Generated type.
        """
        if replicate_from is not None:
            self.replicate_type_attributes(replicate_from, emitter)
        emitter.define_custom_attribute(GeneratedProxy(type_name(self.target_type)))
        built: type = emitter.build_type()
        self.initialize_static_fields(built)
        logger.debug("Generated %s (%s) for %s", built.__qualname__, self.kind, type_name(self.target_type))
        return built
