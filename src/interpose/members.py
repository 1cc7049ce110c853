"""Member descriptors (events, generic methods) and member identity tokens."""

import inspect
from collections.abc import Callable
from typing import Any

from interpose.errors import MissingTypeArgumentsError

TYPE_ARGS_PARAMETER: str = "type_args"
"""Keyword-only parameter through which a generic method receives its type arguments."""

EventAccessor = Callable[[Any, Callable[..., object]], object]


class BoundEvent:
    """Event view bound to one instance."""

    __slots__ = ("descriptor", "instance")

    descriptor: "event"
    instance: object

    def __init__(self, descriptor: "event", instance: object) -> None:
        """Initialize a bound event.

        :param descriptor: Owning event descriptor.
        :param instance: Instance the event is bound to.
        """
        self.descriptor = descriptor
        self.instance = instance

    def add(self, handler: Callable[..., object]) -> None:
        """Subscribe ``handler``.

        :param handler: Event handler.
        """
        self.descriptor.add(self.instance, handler)

    def remove(self, handler: Callable[..., object]) -> None:
        """Unsubscribe ``handler``.

        :param handler: Event handler.
        """
        self.descriptor.remove(self.instance, handler)

    def __iadd__(self, handler: Callable[..., object]) -> "BoundEvent":
        """Subscribe ``handler`` with ``+=``.

        :param handler: Event handler.
        :returns: This bound event.
        """
        self.add(handler)
        return self

    def __isub__(self, handler: Callable[..., object]) -> "BoundEvent":
        """Unsubscribe ``handler`` with ``-=``.

        :param handler: Event handler.
        :returns: This bound event.
        """
        self.remove(handler)
        return self

    def __repr__(self) -> str:
        """Return a description naming the event and its instance.

        :returns: Representation text.
        """
        return f"<bound event {self.descriptor.name} of {self.instance!r}>"


class event:
    """Descriptor for an event with ``add``/``remove`` accessors.

    Declared like ``property``::

        class Button:
            @event
            def clicked(self, handler): ...

            @clicked.remover
            def clicked(self, handler): ...

    ``button.clicked += handler`` calls the adder and ``-=`` the remover.
    """

    fadd: EventAccessor | None
    fremove: EventAccessor | None
    name: str

    def __init__(
        self,
        fadd: EventAccessor | None = None,
        fremove: EventAccessor | None = None,
        doc: str | None = None,
    ) -> None:
        """Initialize an event descriptor.

        :param fadd: Adder accessor.
        :param fremove: Remover accessor.
        :param doc: Optional docstring; defaults to the adder's docstring.
        """
        self.fadd = fadd
        self.fremove = fremove
        if doc is None and fadd is not None:
            doc = fadd.__doc__
        self.__doc__ = doc
        self.name = fadd.__name__ if fadd is not None else ""

    def adder(self, fadd: EventAccessor) -> "event":
        """Return a copy of this event with a different adder.

        :param fadd: Adder accessor.
        :returns: New event descriptor.
        """
        return type(self)(fadd, self.fremove, self.__doc__)

    def remover(self, fremove: EventAccessor) -> "event":
        """Return a copy of this event with a different remover.

        :param fremove: Remover accessor.
        :returns: New event descriptor.
        """
        return type(self)(self.fadd, fremove, self.__doc__)

    def __set_name__(self, owner: type, name: str) -> None:
        """Record the attribute name the event is declared under.

        :param owner: Declaring class.
        :param name: Attribute name.
        """
        self.name = name

    def __get__(self, instance: object, owner: type | None = None) -> object:
        """Return the descriptor on the class, or a bound event on an instance.

        :param instance: Instance, or ``None`` for class access.
        :param owner: Class the attribute was looked up on.
        :returns: Descriptor or ``BoundEvent``.
        """
        if instance is None:
            return self
        return BoundEvent(self, instance)

    def __set__(self, instance: object, value: object) -> None:
        """Accept only the rebinding performed by ``+=`` and ``-=``.

        :param instance: Instance being assigned to.
        :param value: Assigned value.
        :raises AttributeError: If anything other than this event's bound event is assigned.
        """
        # ``proxy.evt += handler`` rebinds the attribute to the same bound event.
        if isinstance(value, BoundEvent) and value.descriptor is self and value.instance is instance:
            return
        raise AttributeError(f"event {self.name!r} cannot be assigned; use += or add()")

    @property
    def __isabstractmethod__(self) -> bool:
        """Return whether either accessor is abstract.

        :returns: ``True`` when ``add`` or ``remove`` is abstract.
        """
        for accessor in (self.fadd, self.fremove):
            if getattr(accessor, "__isabstractmethod__", False) is True:
                return True
        return False

    def add(self, instance: object, handler: Callable[..., object]) -> None:
        """Invoke the adder on ``instance``.

        :param instance: Owning instance.
        :param handler: Event handler.
        :raises AttributeError: If the event has no adder.
        """
        if self.fadd is None:
            raise AttributeError(f"event {self.name!r} has no adder")
        self.fadd(instance, handler)

    def remove(self, instance: object, handler: Callable[..., object]) -> None:
        """Invoke the remover on ``instance``.

        :param instance: Owning instance.
        :param handler: Event handler.
        :raises AttributeError: If the event has no remover.
        """
        if self.fremove is None:
            raise AttributeError(f"event {self.name!r} has no remover")
        self.fremove(instance, handler)


class BoundGenericMethod:
    """Generic method bound to an instance and, once subscripted, to type arguments."""

    __slots__ = ("_method", "_instance", "_type_args")

    _method: "GenericMethod"
    _instance: object
    _type_args: tuple[object, ...] | None

    def __init__(
        self,
        method: "GenericMethod",
        instance: object,
        type_args: tuple[object, ...] | None = None,
    ) -> None:
        """Bind a generic method to an instance.

        :param method: Generic method descriptor.
        :param instance: Instance the method is bound to.
        :param type_args: Type arguments, or ``None`` until subscripted.
        """
        self._method = method
        self._instance = instance
        self._type_args = type_args

    @property
    def type_args(self) -> tuple[object, ...] | None:
        """Return the bound type arguments.

        :returns: Type arguments or ``None`` when unbound.
        """
        return self._type_args

    def __getitem__(self, items: object) -> "BoundGenericMethod":
        """Bind type arguments with ``obj.method[int]``.

        :param items: Single type argument or tuple of type arguments.
        :returns: Bound method carrying the type arguments.
        :raises MissingTypeArgumentsError: If the count does not match the type parameters.
        """
        type_args: tuple[object, ...] = self._method.check_type_arguments(items)
        return BoundGenericMethod(self._method, self._instance, type_args)

    def __call__(self, *args: object, **kwargs: object) -> object:
        """Call the method with the bound type arguments.

        :param args: Positional arguments.
        :param kwargs: Keyword arguments.
        :returns: Method result.
        :raises MissingTypeArgumentsError: If no type arguments were bound.
        """
        if self._type_args is None:
            raise MissingTypeArgumentsError(
                f"generic method {self._method.__qualname__} requires type arguments, "
                + f"e.g. obj.{self._method.__name__}[int](...)"
            )
        return self._method.function(self._instance, *args, **{TYPE_ARGS_PARAMETER: self._type_args}, **kwargs)

    def __repr__(self) -> str:
        """Return a description naming the method and its type arguments.

        :returns: Representation text.
        """
        return f"<bound generic method {self._method.__qualname__}{list(self._type_args or ())}>"


class GenericMethod:
    """Descriptor for a method generic over one or more type parameters."""

    function: Callable[..., object]
    type_params: tuple[object, ...]

    def __init__(self, function: Callable[..., object], type_params: tuple[object, ...]) -> None:
        """Initialize a generic method.

        :param function: Implementing function; receives ``type_args`` as keyword-only argument.
        :param type_params: Type parameters (``TypeVar`` instances).
        :raises TypeError: If no type parameters are given.
        """
        if len(type_params) == 0:
            raise TypeError(f"generic method {function.__qualname__} needs at least one type parameter")
        self.function = function
        self.type_params = tuple(type_params)
        self.__name__ = function.__name__
        self.__qualname__ = function.__qualname__
        self.__doc__ = function.__doc__

    @property
    def __isabstractmethod__(self) -> bool:
        """Return whether the implementing function is abstract.

        :returns: ``True`` for an abstract generic method.
        """
        return getattr(self.function, "__isabstractmethod__", False) is True

    def __get__(self, instance: object, owner: type | None = None) -> object:
        """Return the descriptor on the class, or a bound generic method on an instance.

        :param instance: Instance, or ``None`` for class access.
        :param owner: Class the attribute was looked up on.
        :returns: Descriptor or ``BoundGenericMethod``.
        """
        if instance is None:
            return self
        return BoundGenericMethod(self, instance)

    def check_type_arguments(self, items: object) -> tuple[object, ...]:
        """Normalize and validate subscription items.

        :param items: Single type argument or tuple of type arguments.
        :returns: Tuple of type arguments.
        :raises MissingTypeArgumentsError: If the count does not match the type parameters.
        """
        type_args: tuple[object, ...] = items if isinstance(items, tuple) else (items,)
        if len(type_args) != len(self.type_params):
            raise MissingTypeArgumentsError(
                f"generic method {self.__qualname__} takes {len(self.type_params)} type argument(s), "
                + f"got {len(type_args)}"
            )
        return type_args


def generic_method(*type_params: object) -> Any:
    """Declare a generic method.

    Either ``@generic_method(T, U)`` or, for functions declared with PEP 695
    type parameters, a bare ``@generic_method``.

    :param type_params: Type parameters, or the function itself in bare form.
    :returns: A ``GenericMethod`` or a decorator producing one.
    """
    if len(type_params) == 1 and inspect.isfunction(type_params[0]) is True:
        function: Callable[..., object] = type_params[0]  # type: ignore[assignment]
        return GenericMethod(function, tuple(getattr(function, "__type_params__", ())))

    def decorate(function: Callable[..., object]) -> GenericMethod:
        """Wrap ``function`` with the declared type parameters.

        :param function: Implementing function.
        :returns: Generic method.
        """
        return GenericMethod(function, type_params)

    return decorate


class MethodToken:
    """Identity of one declared or backing member.

    Tokens compare structurally. A token of a generic member without type
    arguments is a generic definition; ``make_generic`` yields the token of one
    concrete instantiation.
    """

    __slots__ = (
        "declaring_type",
        "name",
        "accessor",
        "function",
        "generic_parameters",
        "generic_arguments",
    )

    declaring_type: type
    name: str
    accessor: str | None
    function: Callable[..., object]
    generic_parameters: tuple[object, ...]
    generic_arguments: tuple[object, ...] | None

    def __init__(
        self,
        declaring_type: type,
        name: str,
        function: Callable[..., object],
        accessor: str | None = None,
        generic_parameters: tuple[object, ...] = (),
        generic_arguments: tuple[object, ...] | None = None,
    ) -> None:
        """Initialize a token.

        :param declaring_type: Class or interface declaring the member.
        :param name: Member name.
        :param function: Implementing or declaring function.
        :param accessor: Accessor name for property and event accessors.
        :param generic_parameters: Type parameters of a generic member.
        :param generic_arguments: Type arguments of an instantiated generic member.
        """
        self.declaring_type = declaring_type
        self.name = name
        self.function = function
        self.accessor = accessor
        self.generic_parameters = generic_parameters
        self.generic_arguments = generic_arguments

    @property
    def is_generic(self) -> bool:
        """Return whether the member takes type parameters.

        :returns: ``True`` for generic members.
        """
        return len(self.generic_parameters) > 0

    @property
    def is_generic_definition(self) -> bool:
        """Return whether this is an uninstantiated generic member.

        :returns: ``True`` when generic and not yet bound to type arguments.
        """
        return self.is_generic and self.generic_arguments is None

    @property
    def is_abstract(self) -> bool:
        """Return whether the member is abstract.

        :returns: ``True`` when the function is abstract.
        """
        return getattr(self.function, "__isabstractmethod__", False) is True

    @property
    def qualified_name(self) -> str:
        """Return ``Type.member`` (plus the accessor for property and event accessors).

        :returns: Qualified member name.
        """
        base_name: str = f"{self.declaring_type.__qualname__}.{self.name}"
        if self.accessor is None:
            return base_name
        return f"{base_name}.{self.accessor}"

    def make_generic(self, type_args: tuple[object, ...]) -> "MethodToken":
        """Return the token of one concrete instantiation.

        :param type_args: Type arguments bound to the generic parameters.
        :returns: Instantiated token.
        :raises MissingTypeArgumentsError: If the token is not a generic definition or counts differ.
        """
        if self.is_generic_definition is False:
            raise MissingTypeArgumentsError(f"{self.qualified_name} is not a generic member definition")
        if len(type_args) != len(self.generic_parameters):
            raise MissingTypeArgumentsError(
                f"{self.qualified_name} takes {len(self.generic_parameters)} type argument(s), got {len(type_args)}"
            )
        return MethodToken(
            self.declaring_type,
            self.name,
            self.function,
            accessor=self.accessor,
            generic_parameters=self.generic_parameters,
            generic_arguments=tuple(type_args),
        )

    def _identity(self) -> tuple[object, ...]:
        """Return the fields that identify the token.

        :returns: Identity tuple.
        """
        return (self.declaring_type, self.name, self.accessor, self.function, self.generic_arguments)

    def __eq__(self, other: object) -> bool:
        """Compare tokens by identity fields.

        :param other: Object to compare with.
        :returns: ``True`` when both denote the same member.
        """
        if isinstance(other, MethodToken) is False:
            return NotImplemented
        return self._identity() == other._identity()  # type: ignore[union-attr]

    def __hash__(self) -> int:
        """Hash the identity fields.

        :returns: Hash value.
        """
        return hash(self._identity())

    def __repr__(self) -> str:
        """Return a description naming the member and its type arguments.

        :returns: Representation text.
        """
        suffix: str = ""
        if self.generic_arguments is not None:
            names: list[str] = [getattr(arg, "__name__", repr(arg)) for arg in self.generic_arguments]
            suffix = f"[{', '.join(names)}]"
        return f"<MethodToken {self.qualified_name}{suffix}>"
