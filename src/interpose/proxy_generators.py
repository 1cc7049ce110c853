"""Concrete generators, one per proxy kind."""

from collections.abc import Sequence

from interpose.cache import CacheKey
from interpose.contributors import ClassTargetContributor
from interpose.contributors import NoTargetContributor
from interpose.contributors import TargetContributor
from interpose.contributors import TypeContributor
from interpose.contributors import add_interface_hierarchy_mapping
from interpose.emitter import ClassEmitter
from interpose.emitter import FieldReference
from interpose.emitter import NullReference
from interpose.emitter import Reference
from interpose.emitter import SelfReference
from interpose.errors import InterfaceExpectedError
from interpose.errors import TypeNotProxyableError
from interpose.generator import INTERCEPTORS_FIELD
from interpose.generator import TARGET_FIELD
from interpose.generator import BaseProxyGenerator
from interpose.generator import ConstructorVersion
from interpose.introspection import effective_members
from interpose.introspection import get_all_interfaces
from interpose.introspection import is_final
from interpose.introspection import is_interface
from interpose.introspection import resolve_origin
from interpose.introspection import type_name
from interpose.members import MethodToken
from interpose.options import ProxyGenerationOptions


class ClassProxyGenerator(BaseProxyGenerator):
    """Subclass the target class and run the base implementation as the terminal step."""

    kind = "class"
    constructor_version = ConstructorVersion.WITHOUT_TARGET_METHOD

    def get_proxy_target_reference(self) -> Reference:
        """Return the proxy itself, which the base implementation runs on.

        :returns: Self reference.
        """
        return SelfReference()

    def get_method_target_reference(self, method: MethodToken) -> Reference:
        """Return the proxy itself for every member.

        :param method: Member being generated.
        :returns: Self reference.
        """
        return SelfReference()

    def can_only_proxy_virtual(self) -> bool:
        """Report that only overridable members are intercepted.

        :returns: ``True``.
        """
        return True

    def generate_code(self, interfaces: Sequence[type], options: ProxyGenerationOptions) -> type:
        """Return the class proxy type for this request.

        :param interfaces: Additional interfaces.
        :param options: Generation options.
        :returns: Generated type, from the cache when possible.
        :raises GenericTypeDefinitionError: If the class or an interface is a generic type definition.
        :raises TypeNotProxyableError: If the class is final.
        """
        self.check_not_generic_type_definition(self.target_type, "class_to_proxy")
        self.check_not_generic_type_definitions(interfaces, "additional_interfaces_to_proxy")
        if is_final(resolve_origin(self.target_type)) is True:
            raise TypeNotProxyableError(f"Cannot proxy final class {type_name(self.target_type)}")
        self.set_generation_options(options)
        key: CacheKey = CacheKey.create(self.kind, self.target_type, interfaces, options)
        return self.get_or_create_type(key, lambda: self.generate_type(interfaces))

    def generate_type(self, interfaces: Sequence[type]) -> type:
        """Synthesize the class proxy type.

        :param interfaces: Additional interfaces.
        :returns: Generated type.
        """
        base_class: type = resolve_origin(self.target_type)
        self.validate_mixin_interfaces(interfaces, "additional interfaces")

        mapping: dict[type, TypeContributor] = {}
        target: ClassTargetContributor = ClassTargetContributor(base_class)
        for interface in get_all_interfaces([base_class]):
            add_interface_hierarchy_mapping(interface, target, mapping)
        mixins = self.add_mixin_mappings(mapping)
        no_target: NoTargetContributor = self.add_additional_interface_mappings(interfaces, mapping, target, base_class)

        emitter: ClassEmitter = self.build_class_emitter(
            self.registry.get_unique_name(f"{base_class.__name__}Proxy"),
            self.target_type,
            [*interfaces, *self.options.mixin_data.mixin_interfaces],
        )
        interceptors: FieldReference = emitter.create_field(INTERCEPTORS_FIELD)
        mixin_fields: list[FieldReference] = self.add_mixin_fields(emitter)
        self.create_options_field(emitter)
        self.create_type_token_field(emitter, self.target_type)
        self.define_proxy_accessors(emitter, interceptors, self.get_proxy_target_reference())

        self.emit_members(emitter, [target, *mixins, no_target], interceptors, effective_members(base_class))

        self.generate_constructors(emitter, self.target_type, [interceptors, *mixin_fields])
        self.generate_parameterless_constructor(emitter, self.target_type, interceptors)
        return self.finish_type(emitter, base_class)


class ClassProxyWithTargetGenerator(BaseProxyGenerator):
    """Subclass the target class and forward to a separate instance of it."""

    kind = "class_with_target"
    constructor_version = ConstructorVersion.WITH_TARGET_METHOD

    _target_field: FieldReference | None = None

    def get_proxy_target_reference(self) -> Reference:
        """Return the target field, once the emitter has created it.

        :returns: Target field, or a null reference before it exists.
        """
        if self._target_field is None:
            return NullReference()
        return self._target_field

    def can_only_proxy_virtual(self) -> bool:
        """Report that only overridable members are intercepted.

        :returns: ``True``.
        """
        return True

    def generate_code(
        self,
        proxy_target_type: type,
        interfaces: Sequence[type],
        options: ProxyGenerationOptions,
    ) -> type:
        """Return the class proxy type forwarding to instances of ``proxy_target_type``.

        :param proxy_target_type: Class of the proxy target.
        :param interfaces: Additional interfaces.
        :param options: Generation options.
        :returns: Generated type, from the cache when possible.
        """
        self.check_not_generic_type_definition(self.target_type, "class_to_proxy")
        self.check_not_generic_type_definitions(interfaces, "additional_interfaces_to_proxy")
        if is_final(resolve_origin(self.target_type)) is True:
            raise TypeNotProxyableError(f"Cannot proxy final class {type_name(self.target_type)}")
        self.set_generation_options(options)
        key: CacheKey = CacheKey.create(self.kind, self.target_type, interfaces, options, proxy_target_type)
        return self.get_or_create_type(key, lambda: self.generate_type(proxy_target_type, interfaces))

    def generate_type(self, proxy_target_type: type, interfaces: Sequence[type]) -> type:
        """Synthesize the class proxy type forwarding to a target.

        :param proxy_target_type: Class of the proxy target.
        :param interfaces: Additional interfaces.
        :returns: Generated type.
        """
        base_class: type = resolve_origin(self.target_type)
        self.validate_mixin_interfaces(interfaces, "additional interfaces")

        mapping: dict[type, TypeContributor] = {}
        target: TargetContributor = TargetContributor(base_class, proxy_target_type)
        for interface in get_all_interfaces([base_class]):
            add_interface_hierarchy_mapping(interface, target, mapping)
        mixins = self.add_mixin_mappings(mapping)
        no_target: NoTargetContributor = self.add_additional_interface_mappings(
            interfaces, mapping, target, proxy_target_type
        )

        emitter: ClassEmitter = self.build_class_emitter(
            self.registry.get_unique_name(f"{base_class.__name__}Proxy"),
            self.target_type,
            [*interfaces, *self.options.mixin_data.mixin_interfaces],
        )
        interceptors: FieldReference = emitter.create_field(INTERCEPTORS_FIELD)
        self._target_field = emitter.create_field(TARGET_FIELD)
        mixin_fields: list[FieldReference] = self.add_mixin_fields(emitter)
        self.create_options_field(emitter)
        self.create_type_token_field(emitter, proxy_target_type)
        self.define_proxy_accessors(emitter, interceptors, self._target_field)

        self.emit_members(emitter, [target, *mixins, no_target], interceptors, effective_members(base_class))

        self.generate_constructors(emitter, self.target_type, [interceptors, self._target_field, *mixin_fields])
        self.generate_parameterless_constructor(emitter, self.target_type, interceptors)
        return self.finish_type(emitter, base_class)


class InterfaceProxyWithTargetGenerator(BaseProxyGenerator):
    """Implement an interface by forwarding to a target instance."""

    kind = "interface_with_target"
    constructor_version = ConstructorVersion.WITH_TARGET_METHOD

    _target_field: FieldReference | None = None

    def get_proxy_target_reference(self) -> Reference:
        """Return the target field, once the emitter has created it.

        :returns: Target field, or a null reference before it exists.
        """
        if self._target_field is None:
            return NullReference()
        return self._target_field

    def generate_code(
        self,
        proxy_target_type: type,
        interfaces: Sequence[type],
        options: ProxyGenerationOptions,
    ) -> type:
        """Return the interface proxy type forwarding to instances of ``proxy_target_type``.

        :param proxy_target_type: Class of the proxy target.
        :param interfaces: Additional interfaces.
        :param options: Generation options.
        :returns: Generated type, from the cache when possible.
        :raises InterfaceExpectedError: If the proxied type is not an interface.
        """
        self.check_not_generic_type_definition(self.target_type, "interface_to_proxy")
        self.check_not_generic_type_definitions(interfaces, "additional_interfaces_to_proxy")
        if is_interface(resolve_origin(self.target_type)) is False:
            raise InterfaceExpectedError(f"{type_name(self.target_type)} is not an interface")
        self.set_generation_options(options)
        key: CacheKey = CacheKey.create(self.kind, self.target_type, interfaces, options, proxy_target_type)
        return self.get_or_create_type(key, lambda: self.generate_type(proxy_target_type, interfaces))

    def generate_type(self, proxy_target_type: type, interfaces: Sequence[type]) -> type:
        """Synthesize the interface proxy type forwarding to a target.

        :param proxy_target_type: Class of the proxy target.
        :param interfaces: Additional interfaces.
        :returns: Generated type.
        """
        interface_to_proxy: type = resolve_origin(self.target_type)
        self.validate_mixin_interfaces(interfaces, "additional interfaces")

        mapping: dict[type, TypeContributor] = {}
        target: TargetContributor = TargetContributor(None, proxy_target_type)
        add_interface_hierarchy_mapping(interface_to_proxy, target, mapping)
        mixins = self.add_mixin_mappings(mapping)
        no_target: NoTargetContributor = self.add_additional_interface_mappings(
            interfaces, mapping, target, proxy_target_type
        )

        base_type: type = self.options.base_type_for_interface_proxy
        emitter: ClassEmitter = self.build_class_emitter(
            self.registry.get_unique_name(f"{interface_to_proxy.__name__}Proxy"),
            base_type,
            [self.target_type, *interfaces, *self.options.mixin_data.mixin_interfaces],  # type: ignore[list-item]
        )
        interceptors: FieldReference = emitter.create_field(INTERCEPTORS_FIELD)
        self._target_field = emitter.create_field(TARGET_FIELD)
        mixin_fields: list[FieldReference] = self.add_mixin_fields(emitter)
        self.create_options_field(emitter)
        self.create_type_token_field(emitter, proxy_target_type)
        self.define_proxy_accessors(emitter, interceptors, self._target_field)

        self.emit_members(emitter, [target, *mixins, no_target], interceptors, effective_members(base_type))

        self.generate_constructors(emitter, base_type, [interceptors, self._target_field, *mixin_fields])
        self.generate_parameterless_constructor(emitter, base_type, interceptors)
        return self.finish_type(emitter, None)


class InterfaceProxyWithoutTargetGenerator(BaseProxyGenerator):
    """Implement an interface whose members are all left to the interceptors."""

    kind = "interface_without_target"
    constructor_version = ConstructorVersion.WITHOUT_TARGET_METHOD

    def get_proxy_target_reference(self) -> Reference:
        """Return a null reference; there is no target.

        :returns: Null reference.
        """
        return NullReference()

    def generate_code(self, interfaces: Sequence[type], options: ProxyGenerationOptions) -> type:
        """Return the target-less interface proxy type for this request.

        :param interfaces: Additional interfaces.
        :param options: Generation options.
        :returns: Generated type, from the cache when possible.
        :raises InterfaceExpectedError: If the proxied type is not an interface.
        """
        self.check_not_generic_type_definition(self.target_type, "interface_to_proxy")
        self.check_not_generic_type_definitions(interfaces, "additional_interfaces_to_proxy")
        if is_interface(resolve_origin(self.target_type)) is False:
            raise InterfaceExpectedError(f"{type_name(self.target_type)} is not an interface")
        self.set_generation_options(options)
        key: CacheKey = CacheKey.create(self.kind, self.target_type, interfaces, options)
        return self.get_or_create_type(key, lambda: self.generate_type(interfaces))

    def generate_type(self, interfaces: Sequence[type]) -> type:
        """Synthesize the target-less interface proxy type.

        :param interfaces: Additional interfaces.
        :returns: Generated type.
        """
        interface_to_proxy: type = resolve_origin(self.target_type)
        self.validate_mixin_interfaces(interfaces, "additional interfaces")

        mapping: dict[type, TypeContributor] = {}
        no_target: NoTargetContributor = NoTargetContributor()
        add_interface_hierarchy_mapping(interface_to_proxy, no_target, mapping)
        mixins = self.add_mixin_mappings(mapping)
        for interface in interfaces:
            if resolve_origin(interface) not in mapping:
                add_interface_hierarchy_mapping(interface, no_target, mapping)

        base_type: type = self.options.base_type_for_interface_proxy
        emitter: ClassEmitter = self.build_class_emitter(
            self.registry.get_unique_name(f"{interface_to_proxy.__name__}Proxy"),
            base_type,
            [self.target_type, *interfaces, *self.options.mixin_data.mixin_interfaces],  # type: ignore[list-item]
        )
        interceptors: FieldReference = emitter.create_field(INTERCEPTORS_FIELD)
        mixin_fields: list[FieldReference] = self.add_mixin_fields(emitter)
        self.create_options_field(emitter)
        self.create_type_token_field(emitter, self.target_type)
        self.define_proxy_accessors(emitter, interceptors, self.get_proxy_target_reference())

        self.emit_members(emitter, [no_target, *mixins], interceptors, effective_members(base_type))

        self.generate_constructors(emitter, base_type, [interceptors, *mixin_fields])
        self.generate_parameterless_constructor(emitter, base_type, interceptors)
        return self.finish_type(emitter, None)
