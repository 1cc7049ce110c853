"""Backend that turns member, field and constructor descriptions into a class.

The generator describes what a proxy type contains; this module is the only
place that assembles the namespace and creates the class object. Member bodies
are closures over request-local state, built by the generator and attached to
``MethodEmitter`` instances here.
"""

import abc
import inspect
import threading
import types
from collections.abc import Callable
from collections.abc import Sequence
from dataclasses import dataclass
from typing import Any

from interpose.attributes import ATTRIBUTES_FIELD
from interpose.attributes import OVERRIDDEN_MEMBER_FIELD
from interpose.introspection import Visibility
from interpose.introspection import resolve_origin
from interpose.members import TYPE_ARGS_PARAMETER
from interpose.members import GenericMethod
from interpose.members import event
from interpose.refs import Ref
from interpose.refs import is_by_ref_annotation

CONSTRUCTORS_FIELD: str = "__proxy_constructors__"
INTERFACE_MAP_FIELD: str = "__proxy_interface_map__"
MEMBER_ATTRIBUTES_FIELD: str = "__proxy_member_attributes__"

MemberBody = Callable[[Any, list[object], tuple[object, ...] | None], object]


@dataclass(frozen=True)
class MemberAttributes:
    """Visibility and dispatch flags of a generated member."""

    visibility: Visibility
    virtual: bool = True
    final: bool = False
    hide_by_sig: bool = False
    new_slot: bool = False
    special_name: bool = False


class Reference(abc.ABC):
    """Location a generated body reads a value from."""

    @abc.abstractmethod
    def load(self, owner: object) -> object:
        """Read the value for one proxy instance.

        :param owner: Proxy instance executing the body.
        :returns: Referenced value.
        """


class SelfReference(Reference):
    """The proxy instance itself."""

    def load(self, owner: object) -> object:
        """Return the proxy instance.

        :param owner: Proxy instance executing the body.
        :returns: ``owner``.
        """
        return owner


class NullReference(Reference):
    """No value; used where a proxy kind has no target."""

    def load(self, owner: object) -> object:
        """Return ``None``.

        :param owner: Proxy instance executing the body.
        :returns: ``None``.
        """
        return None


class FieldReference(Reference):
    """Per-instance field of the generated type."""

    name: str

    def __init__(self, name: str) -> None:
        """Initialize the reference.

        :param name: Field name.
        """
        self.name = name

    def load(self, owner: object) -> object:
        """Read the field from one proxy instance.

        :param owner: Proxy instance.
        :returns: Field value.
        """
        return object.__getattribute__(owner, self.name)

    def store(self, owner: object, value: object) -> None:
        """Write the field on one proxy instance.

        :param owner: Proxy instance.
        :param value: New value.
        """
        object.__setattr__(owner, self.name, value)

    def __repr__(self) -> str:
        """Return a description naming the field.

        :returns: Representation text.
        """
        return f"FieldReference({self.name!r})"


class StaticFieldReference(Reference):
    """Class-level field of the generated type."""

    name: str

    def __init__(self, name: str) -> None:
        """Initialize the reference.

        :param name: Field name.
        """
        self.name = name

    def load(self, owner: object) -> object:
        """Read the field from the proxy's type.

        :param owner: Proxy instance.
        :returns: Field value.
        """
        return getattr(type(owner), self.name)

    def initialize(self, built_type: type, value: object) -> None:
        """Assign the field once the type is built.

        :param built_type: Generated type.
        :param value: Field value.
        """
        setattr(built_type, self.name, value)

    def __repr__(self) -> str:
        """Return a description naming the field.

        :returns: Representation text.
        """
        return f"StaticFieldReference({self.name!r})"


class FieldCell(Ref[object]):
    """Writable cell addressing one instance field (the address of the field)."""

    _owner: object
    _field: FieldReference

    def __init__(self, owner: object, field: FieldReference) -> None:
        """Initialize a cell over one instance field.

        :param owner: Proxy instance holding the field.
        :param field: Field the cell reads and writes.
        """
        object.__setattr__(self, "_owner", owner)
        object.__setattr__(self, "_field", field)

    @property  # type: ignore[override]
    def value(self) -> object:
        """Read the field.

        :returns: Field value.
        """
        return self._field.load(self._owner)

    @value.setter
    def value(self, value: object) -> None:
        """Write the field.

        :param value: New value.
        """
        self._field.store(self._owner, value)


class ParameterLayout:
    """Parameters copied from a member, used to move call arguments in and out of an argument list.

    The argument list holds one slot per declared parameter (``self`` excluded,
    and the ``type_args`` parameter of generic members excluded). Variadic
    parameters occupy one slot holding their tuple or dict.
    """

    signature: inspect.Signature
    source_signature: inspect.Signature
    by_ref_indices: tuple[int, ...]
    returns_void: bool

    def __init__(self, function: Callable[..., object], generic: bool = False) -> None:
        """Copy the parameters of ``function``.

        :param function: Member implementation, declared with ``self`` first.
        :param generic: Whether the member is generic (drops its ``type_args`` parameter).
        """
        source_signature: inspect.Signature = inspect.signature(function)
        parameters: list[inspect.Parameter] = list(source_signature.parameters.values())[1:]
        if generic is True:
            parameters = [
                parameter
                for parameter in parameters
                if parameter.name != TYPE_ARGS_PARAMETER or parameter.kind is not inspect.Parameter.KEYWORD_ONLY
            ]
        self.source_signature = source_signature
        self.signature = source_signature.replace(parameters=parameters)
        self.by_ref_indices = tuple(
            index for index, parameter in enumerate(parameters) if is_by_ref_annotation(parameter.annotation)
        )
        self.returns_void = source_signature.return_annotation in (None, type(None), "None")

    @property
    def has_by_ref(self) -> bool:
        """Return whether any parameter is passed by reference.

        :returns: ``True`` when at least one parameter is by-reference.
        """
        return len(self.by_ref_indices) > 0

    def bind(self, args: tuple[object, ...], kwargs: dict[str, object]) -> list[object]:
        """Bind a call to an argument list.

        :param args: Positional call arguments.
        :param kwargs: Keyword call arguments.
        :returns: One slot per parameter, defaults applied.
        :raises TypeError: If the call does not match the signature.
        """
        bound: inspect.BoundArguments = self.signature.bind(*args, **kwargs)
        bound.apply_defaults()
        return list(bound.arguments.values())

    def dereference(self, arguments: list[object]) -> list[object]:
        """Replace by-reference cells with their current values.

        :param arguments: Caller's argument list.
        :returns: Argument list handed to the invocation.
        """
        values: list[object] = list(arguments)
        for index in self.by_ref_indices:
            cell: object = values[index]
            if isinstance(cell, Ref):
                values[index] = cell.value
        return values

    def copy_out(self, arguments: list[object], values: list[object]) -> None:
        """Write by-reference values back into the caller's cells.

        :param arguments: Caller's argument list (holding the cells).
        :param values: Invocation argument list after the call.
        """
        for index in self.by_ref_indices:
            cell: object = arguments[index]
            if isinstance(cell, Ref):
                cell.value = values[index]

    def wrap_by_ref(self, values: list[object]) -> tuple[list[object], list[tuple[int, Ref[object]]]]:
        """Create fresh cells for by-reference slots before calling a backing member.

        :param values: Invocation argument list.
        :returns: Call values and ``(index, cell)`` pairs to read back.
        """
        call_values: list[object] = list(values)
        cells: list[tuple[int, Ref[object]]] = []
        for index in self.by_ref_indices:
            cell: Ref[object] = Ref(values[index])
            call_values[index] = cell
            cells.append((index, cell))
        return call_values, cells

    def unbind(self, values: list[object]) -> tuple[list[object], dict[str, object]]:
        """Rebuild positional and keyword arguments from an argument list.

        :param values: One slot per parameter.
        :returns: ``(args, kwargs)``.
        """
        args: list[object] = []
        kwargs: dict[str, object] = {}
        for parameter, value in zip(self.signature.parameters.values(), values):
            if parameter.kind is inspect.Parameter.VAR_POSITIONAL:
                args.extend(value)  # type: ignore[call-overload]
            elif parameter.kind is inspect.Parameter.VAR_KEYWORD:
                kwargs.update(value)  # type: ignore[call-overload]
            elif parameter.kind is inspect.Parameter.KEYWORD_ONLY:
                kwargs[parameter.name] = value
            else:
                args.append(value)
        return args, kwargs


class MethodEmitter:
    """One generated method: name, flags, copied parameters and body."""

    name: str
    attributes: MemberAttributes
    layout: ParameterLayout | None
    generic_parameters: tuple[object, ...]
    body: MemberBody | None
    custom_attributes: list[object]
    overridden_member: object | None
    _source: Callable[..., object] | None

    def __init__(self, name: str, attributes: MemberAttributes) -> None:
        """Declare a method with no parameters or body yet.

        :param name: Attribute name of the method.
        :param attributes: Visibility and dispatch flags.
        """
        self.name = name
        self.attributes = attributes
        self.layout = None
        self.generic_parameters = ()
        self.body = None
        self.custom_attributes = []
        self.overridden_member = None
        self._source = None

    def copy_parameters_and_return_type_from(
        self,
        function: Callable[..., object],
        generic_parameters: tuple[object, ...] = (),
    ) -> ParameterLayout:
        """Adopt the parameters and return annotation of ``function``.

        :param function: Declared member implementation.
        :param generic_parameters: Type parameters when the member is generic.
        :returns: Copied parameter layout.
        """
        self.generic_parameters = generic_parameters
        self.layout = ParameterLayout(function, generic=len(generic_parameters) > 0)
        self._source = function
        return self.layout

    def set_body(self, body: MemberBody) -> None:
        """Set the closure executed when the generated method is called.

        :param body: Body receiving the proxy, bound arguments and type arguments.
        """
        self.body = body

    def define_custom_attribute(self, attribute: object) -> None:
        """Attach a custom attribute to the generated method.

        :param attribute: Attribute instance.
        """
        self.custom_attributes.append(attribute)

    def set_overridden_member(self, member: object) -> None:
        """Record the member this method overrides, for attribute inheritance.

        :param member: Declared member on the base type or interface.
        """
        self.overridden_member = member

    def materialize(self, owner_qualname: str, module: str) -> object:
        """Produce the function (or generic method) installed on the type.

        :param owner_qualname: Qualified name of the generated type.
        :param module: Module name of the generated type.
        :returns: Function or ``GenericMethod``.
        :raises ValueError: If the emitter has no parameters or body.
        """
        layout: ParameterLayout | None = self.layout
        body: MemberBody | None = self.body
        if layout is None or body is None:
            raise ValueError(f"Method emitter {self.name!r} is missing its parameters or body")

        member: Callable[..., object]
        if len(self.generic_parameters) > 0:

            def generic_member(self: object, *args: object, type_args: tuple[object, ...], **kwargs: object) -> object:
                """Bind the call and run the body with the call's type arguments.

                :param self: Proxy instance.
                :param args: Positional arguments.
                :param type_args: Type arguments of the call.
                :param kwargs: Keyword arguments.
                :returns: Body result.
                """
                return body(self, layout.bind(args, kwargs), type_args)

            member = generic_member
        else:

            def plain_member(self: object, *args: object, **kwargs: object) -> object:
                """Bind the call and run the body.

                :param self: Proxy instance.
                :param args: Positional arguments.
                :param kwargs: Keyword arguments.
                :returns: Body result.
                """
                return body(self, layout.bind(args, kwargs), None)

            member = plain_member

        member.__name__ = self.name
        member.__qualname__ = f"{owner_qualname}.{self.name}"
        member.__module__ = module
        member.__signature__ = layout.source_signature  # type: ignore[attr-defined]
        if self._source is not None:
            member.__doc__ = self._source.__doc__
        setattr(member, MEMBER_ATTRIBUTES_FIELD, self.attributes)
        if len(self.custom_attributes) > 0:
            setattr(member, ATTRIBUTES_FIELD, tuple(self.custom_attributes))
        if self.overridden_member is not None:
            setattr(member, OVERRIDDEN_MEMBER_FIELD, self.overridden_member)
        if len(self.generic_parameters) > 0:
            generic: GenericMethod = GenericMethod(member, self.generic_parameters)
            for field_name in (ATTRIBUTES_FIELD, OVERRIDDEN_MEMBER_FIELD):
                if field_name in member.__dict__:
                    setattr(generic, field_name, member.__dict__[field_name])
            return generic
        return member


class PropertyEmitter:
    """Generated property assembled from getter, setter and deleter emitters."""

    name: str
    doc: str | None
    getter: MethodEmitter | None
    setter: MethodEmitter | None
    deleter: MethodEmitter | None
    aliases: dict[str, str]

    def __init__(self, name: str, doc: str | None) -> None:
        """Declare a property with no accessors yet.

        :param name: Property name.
        :param doc: Property docstring.
        """
        self.name = name
        self.doc = doc
        self.getter = None
        self.setter = None
        self.deleter = None
        self.aliases = {}

    def create_get_method(self, name: str, attributes: MemberAttributes) -> MethodEmitter:
        """Declare the getter.

        :param name: Attribute name of the getter.
        :param attributes: Visibility and dispatch flags.
        :returns: Getter emitter.
        """
        self.getter = MethodEmitter(name, attributes)
        return self.getter

    def create_set_method(self, name: str, attributes: MemberAttributes) -> MethodEmitter:
        """Declare the setter.

        :param name: Attribute name of the setter.
        :param attributes: Visibility and dispatch flags.
        :returns: Setter emitter.
        """
        self.setter = MethodEmitter(name, attributes)
        return self.setter

    def create_delete_method(self, name: str, attributes: MemberAttributes) -> MethodEmitter:
        """Declare the deleter.

        :param name: Attribute name of the deleter.
        :param attributes: Visibility and dispatch flags.
        :returns: Deleter emitter.
        """
        self.deleter = MethodEmitter(name, attributes)
        return self.deleter

    def add_accessor_alias(self, accessor: str, attribute_name: str) -> None:
        """Also install one accessor under a plain attribute name.

        :param accessor: ``"fget"``, ``"fset"`` or ``"fdel"``.
        :param attribute_name: Name the original type binds the accessor function to.
        """
        self.aliases[accessor] = attribute_name


class EventEmitter:
    """Generated event assembled from adder and remover emitters."""

    name: str
    doc: str | None
    adder: MethodEmitter | None
    remover: MethodEmitter | None

    def __init__(self, name: str, doc: str | None) -> None:
        """Declare an event with no accessors yet.

        :param name: Event name.
        :param doc: Event docstring.
        """
        self.name = name
        self.doc = doc
        self.adder = None
        self.remover = None

    def create_add_method(self, name: str, attributes: MemberAttributes) -> MethodEmitter:
        """Declare the adder.

        :param name: Attribute name of the adder.
        :param attributes: Visibility and dispatch flags.
        :returns: Adder emitter.
        """
        self.adder = MethodEmitter(name, attributes)
        return self.adder

    def create_remove_method(self, name: str, attributes: MemberAttributes) -> MethodEmitter:
        """Declare the remover.

        :param name: Attribute name of the remover.
        :param attributes: Visibility and dispatch flags.
        :returns: Remover emitter.
        """
        self.remover = MethodEmitter(name, attributes)
        return self.remover


class ProxyConstructor:
    """One synthesized constructor of a proxy type.

    Positional arguments fill the proxy fields first; the remaining arguments
    go to the base constructor. Fields are assigned before the base
    constructor runs.
    """

    fields: tuple[FieldReference, ...]
    initializers: tuple[tuple[FieldReference, Callable[[], object]], ...]
    base_init: Callable[..., None] | None
    signature: inspect.Signature | None

    def __init__(
        self,
        fields: Sequence[FieldReference],
        base_init: Callable[..., None] | None,
        signature: inspect.Signature | None = None,
        initializers: Sequence[tuple[FieldReference, Callable[[], object]]] = (),
    ) -> None:
        """Initialize a constructor description.

        :param fields: Proxy fields assigned from the leading positional arguments.
        :param base_init: Base ``__init__`` invoked with the remaining arguments.
        :param signature: Signature exposed for the generated type.
        :param initializers: Fields initialized from factories instead of arguments.
        """
        self.fields = tuple(fields)
        self.base_init = base_init
        self.signature = signature
        self.initializers = tuple(initializers)

    @property
    def is_parameterless(self) -> bool:
        """Return whether the constructor takes no arguments at all.

        :returns: ``True`` for the parameterless constructor.
        """
        return len(self.fields) == 0 and self.signature is not None and len(self.signature.parameters) == 0

    def matches(self, args: tuple[object, ...], kwargs: dict[str, object]) -> bool:
        """Return whether a call can be routed to this constructor.

        :param args: Positional arguments.
        :param kwargs: Keyword arguments.
        :returns: ``True`` when the arguments fit.
        """
        if self.is_parameterless is True:
            return len(args) == 0 and len(kwargs) == 0
        return len(args) >= len(self.fields)

    def construct(self, cls: type, args: tuple[object, ...], kwargs: dict[str, object]) -> object:
        """Allocate and initialize an instance of ``cls``.

        :param cls: Proxy type (or a subclass of it).
        :param args: Positional arguments.
        :param kwargs: Keyword arguments for the base constructor.
        :returns: New instance.
        """
        field_count: int = len(self.fields)
        base_args: tuple[object, ...] = args[field_count:]
        if cls.__new__ is object.__new__:
            instance: object = object.__new__(cls)
        else:
            instance = cls.__new__(cls, *base_args, **kwargs)
        for field, value in zip(self.fields, args[:field_count]):
            field.store(instance, value)
        for field, factory in self.initializers:
            field.store(instance, factory())
        if self.base_init is not None:
            self.base_init(instance, *base_args, **kwargs)
        return instance


class ProxyTypeMeta(abc.ABCMeta):
    """Metaclass of generated proxy types; routes construction through the synthesized constructors."""

    def __call__(cls, *args: object, **kwargs: object) -> object:
        """Construct an instance through the first matching synthesized constructor.

        :param args: Positional arguments.
        :param kwargs: Keyword arguments.
        :returns: New instance.
        :raises TypeError: If no constructor accepts the arguments.
        """
        constructors: tuple[ProxyConstructor, ...] = getattr(cls, CONSTRUCTORS_FIELD, ())
        if len(args) == 0 and len(kwargs) == 0:
            for constructor in constructors:
                if constructor.is_parameterless is True:
                    return constructor.construct(cls, args, kwargs)
        for constructor in constructors:
            if constructor.is_parameterless is False and constructor.matches(args, kwargs) is True:
                return constructor.construct(cls, args, kwargs)
        raise TypeError(f"{cls.__name__}() has no constructor accepting {len(args)} positional argument(s)")


_COMBINED_METACLASSES: dict[type, type] = {}
_COMBINED_METACLASSES_LOCK: threading.Lock = threading.Lock()


def resolve_metaclass(bases: Sequence[object]) -> type:
    """Return a metaclass compatible with every base and with ``ProxyTypeMeta``.

    :param bases: Bases of the generated type (classes or generic aliases).
    :returns: ``ProxyTypeMeta`` or a metaclass combining it with the bases' metaclass.
    :raises TypeError: If the bases' metaclasses conflict with each other.
    """
    winner: type = type
    for base in bases:
        meta: type = type(resolve_origin(base))
        if issubclass(winner, meta):
            continue
        if issubclass(meta, winner):
            winner = meta
            continue
        raise TypeError(f"metaclass conflict between {winner.__name__} and {meta.__name__}")
    if issubclass(winner, ProxyTypeMeta):
        return winner
    if issubclass(ProxyTypeMeta, winner):
        return ProxyTypeMeta
    with _COMBINED_METACLASSES_LOCK:
        combined: type | None = _COMBINED_METACLASSES.get(winner)
        if combined is None:
            combined = type(f"Proxy{winner.__name__}", (ProxyTypeMeta, winner), {})
            _COMBINED_METACLASSES[winner] = combined
        return combined


def _inherited_hash(bases: Sequence[object]) -> object:
    """Return the ``__hash__`` the generated type inherits.

    :param bases: Bases of the generated type.
    :returns: Hash function of the first base, else ``object.__hash__``.
    """
    for base in bases:
        return resolve_origin(base).__hash__
    return object.__hash__


class ClassEmitter:
    """Collects the description of one type and builds it."""

    name: str
    module: str
    bases: tuple[object, ...]
    _namespace: dict[str, object]
    _methods: dict[str, MethodEmitter]
    _properties: dict[str, PropertyEmitter]
    _events: dict[str, EventEmitter]
    _constructors: list[ProxyConstructor]
    _constructor_signature: inspect.Signature | None
    _overrides: dict[tuple[type, str], str]
    _custom_attributes: list[object]
    _static_fields: list[tuple[StaticFieldReference, object]]

    def __init__(self, name: str, base_type: object | None, interfaces: Sequence[type], module: str) -> None:
        """Declare a type.

        :param name: Type name.
        :param base_type: Base class or generic alias; ``None`` or ``object`` for no base.
        :param interfaces: Interfaces the type declares, in generation order.
        :param module: Module name reported by the type.
        """
        self.name = name
        self.module = module
        self.bases = self._compute_bases(base_type, interfaces)
        self._namespace = {"__module__": module, "__qualname__": name}
        self._methods = {}
        self._properties = {}
        self._events = {}
        self._constructors = []
        self._constructor_signature = None
        self._overrides = {}
        self._custom_attributes = []
        self._static_fields = []

    @staticmethod
    def _compute_bases(base_type: object | None, interfaces: Sequence[type]) -> tuple[object, ...]:
        """Return the bases of the generated type, dropping interfaces another base already covers.

        :param base_type: Base class or generic alias, if any.
        :param interfaces: Interfaces in generation order.
        :returns: Bases in MRO-safe order.
        """
        bases: list[object] = []
        base_class: type | None = None
        if base_type is not None and base_type is not object:
            bases.append(base_type)
            base_class = resolve_origin(base_type)
        # Interfaces already inherited by the base or by a later interface would break the MRO.
        origins: list[type] = [resolve_origin(interface) for interface in interfaces]
        for index, interface in enumerate(interfaces):
            origin: type = origins[index]
            if base_class is not None and issubclass(base_class, origin):
                continue
            if origin in origins[:index]:
                continue
            covered: bool = any(other is not origin and issubclass(other, origin) for other in origins)
            if covered is True:
                continue
            bases.append(interface)
        if len(bases) == 0:
            bases.append(object)
        return tuple(bases)

    @property
    def qualname(self) -> str:
        """Return the qualified name of the generated type.

        :returns: Qualified name.
        """
        return self.name

    def has_member(self, name: str) -> bool:
        """Return whether a member or field is already declared under ``name``.

        :param name: Attribute name.
        :returns: ``True`` when the name is taken.
        """
        return name in self._methods or name in self._properties or name in self._events or name in self._namespace

    def create_field(self, name: str) -> FieldReference:
        """Declare a per-instance field, ``None`` until assigned.

        :param name: Field name.
        :returns: Field reference.
        """
        self._namespace[name] = None
        return FieldReference(name)

    def create_static_field(self, name: str, value: object = None) -> StaticFieldReference:
        """Declare a class-level field.

        :param name: Field name.
        :param value: Initial value.
        :returns: Field reference.
        """
        self._namespace[name] = value
        reference: StaticFieldReference = StaticFieldReference(name)
        return reference

    def create_method(self, name: str, attributes: MemberAttributes) -> MethodEmitter:
        """Declare a method.

        :param name: Attribute name.
        :param attributes: Visibility and dispatch flags.
        :returns: Method emitter.
        """
        emitter: MethodEmitter = MethodEmitter(name, attributes)
        self._methods[name] = emitter
        return emitter

    def define_function(self, name: str, function: Callable[..., object]) -> None:
        """Install a ready-made function (callbacks, helpers).

        :param name: Attribute name.
        :param function: Function object.
        """
        function.__qualname__ = f"{self.name}.{name}"
        self._namespace[name] = function

    def create_property(self, name: str, doc: str | None) -> PropertyEmitter:
        """Declare a property.

        :param name: Property name.
        :param doc: Property docstring.
        :returns: Property emitter.
        """
        emitter: PropertyEmitter = PropertyEmitter(name, doc)
        self._properties[name] = emitter
        return emitter

    def create_event(self, name: str, doc: str | None) -> EventEmitter:
        """Declare an event.

        :param name: Event name.
        :param doc: Event docstring.
        :returns: Event emitter.
        """
        emitter: EventEmitter = EventEmitter(name, doc)
        self._events[name] = emitter
        return emitter

    def create_nested_class(self, name: str, nested: type) -> type:
        """Attach a nested class to the type.

        :param name: Attribute name.
        :param nested: Nested class.
        :returns: The nested class.
        """
        nested.__qualname__ = f"{self.name}.{name}"
        self._namespace[name] = nested
        return nested

    def create_constructor(self, constructor: ProxyConstructor) -> None:
        """Add a synthesized constructor.

        :param constructor: Constructor description.
        """
        self._constructors.append(constructor)
        if constructor.is_parameterless is False and constructor.signature is not None:
            self._constructor_signature = constructor.signature

    def define_custom_attribute(self, attribute: object) -> None:
        """Attach a custom attribute to the generated type.

        :param attribute: Attribute instance.
        """
        self._custom_attributes.append(attribute)

    def define_method_override(self, generated_name: str, declaring_type: type, member_name: str) -> None:
        """Bind a generated member as the implementation of an interface member.

        :param generated_name: Attribute name of the generated member.
        :param declaring_type: Interface declaring the member.
        :param member_name: Member name on the interface.
        """
        self._overrides[(declaring_type, member_name)] = generated_name

    def build_type(self) -> type:
        """Finalize the description into a class.

        :returns: Generated class.
        """
        namespace: dict[str, object] = dict(self._namespace)
        for name, method in self._methods.items():
            namespace[name] = method.materialize(self.name, self.module)
        for name, property_emitter in self._properties.items():
            accessors: dict[str, object] = {}
            for accessor, emitter in (
                ("fget", property_emitter.getter),
                ("fset", property_emitter.setter),
                ("fdel", property_emitter.deleter),
            ):
                if emitter is not None:
                    accessors[accessor] = emitter.materialize(self.name, self.module)
            namespace[name] = property(
                accessors.get("fget"),  # type: ignore[arg-type]
                accessors.get("fset"),  # type: ignore[arg-type]
                accessors.get("fdel"),  # type: ignore[arg-type]
                property_emitter.doc,
            )
            for accessor, alias in property_emitter.aliases.items():
                if accessor in accessors:
                    namespace[alias] = accessors[accessor]
        for name, event_emitter in self._events.items():
            adder: object = None if event_emitter.adder is None else event_emitter.adder.materialize(self.name, self.module)
            remover: object = (
                None if event_emitter.remover is None else event_emitter.remover.materialize(self.name, self.module)
            )
            namespace[name] = event(adder, remover, event_emitter.doc)  # type: ignore[arg-type]

        if "__eq__" in namespace and "__hash__" not in namespace:
            namespace["__hash__"] = _inherited_hash(self.bases)
        namespace[CONSTRUCTORS_FIELD] = tuple(self._constructors)
        namespace[INTERFACE_MAP_FIELD] = dict(self._overrides)
        namespace[ATTRIBUTES_FIELD] = tuple(self._custom_attributes)
        if self._constructor_signature is not None:
            namespace["__signature__"] = self._constructor_signature

        metaclass: type = resolve_metaclass(self.bases)
        built: type = types.new_class(
            self.name,
            self.bases,
            {"metaclass": metaclass},
            lambda body: body.update(namespace),
        )
        return built
