"""Classes and interfaces proxied by the test suite."""

import abc
from collections.abc import Callable
from typing import Generic
from typing import Protocol
from typing import TypeVar
from typing import final
from typing import runtime_checkable

from interpose import Attribute
from interpose import Out
from interpose import Ref
from interpose import Serializable
from interpose import attribute_usage
from interpose import custom_attribute
from interpose import event
from interpose import generic_method

T = TypeVar("T")


class Calculator:
    """Concrete class with overridable, final and static members."""

    calls: list[str]

    def __init__(self) -> None:
        """Initialize an empty call log."""
        self.calls = []

    def add(self, left: int, right: int) -> int:
        """Add two numbers.

        :param left: Left operand.
        :param right: Right operand.
        :returns: Sum.
        """
        self.calls.append("add")
        return left + right

    def reset(self) -> None:
        self.calls.clear()

    @final
    def version(self) -> str:
        return "1.0"

    @staticmethod
    def describe() -> str:
        return "calculator"


class Account:
    """Class whose constructor requires an argument."""

    owner: str
    balance: int

    def __init__(self, owner: str, balance: int = 0) -> None:
        """Initialize the account.

        :param owner: Account owner.
        :param balance: Opening balance.
        """
        self.owner = owner
        self.balance = balance

    def deposit(self, amount: int) -> int:
        """Deposit money.

        :param amount: Amount to add.
        :returns: New balance.
        """
        self.balance += amount
        return self.balance


class SelfInitializing:
    """Class calling an overridable member from its constructor."""

    ready: bool

    def __init__(self) -> None:
        """Initialize through ``prepare``."""
        self.ready = self.prepare()

    def prepare(self) -> bool:
        return True


class Pipeline:
    """Class with an internal member."""

    def run(self) -> str:
        return self._step()

    def _step(self) -> str:
        return "stepped"


class Thermostat:
    """Class with a read/write property."""

    _celsius: float

    def __init__(self) -> None:
        """Start at room temperature."""
        self._celsius = 20.0

    @property
    def celsius(self) -> float:
        return self._celsius

    @celsius.setter
    def celsius(self, value: float) -> None:
        self._celsius = value


class Job(abc.ABC):
    """Abstract class: ``run`` has no implementation to proceed to."""

    @abc.abstractmethod
    def run(self) -> str:
        """Run the job.

        :returns: Job output.
        """

    def name(self) -> str:
        return "job"


@final
class Sealed:
    """Final class; cannot be subclassed by a proxy."""

    def ping(self) -> str:
        return "pong"


class Box(Generic[T]):
    """Generic class used closed (``Box[int]``) and open."""

    item: T | None

    def __init__(self) -> None:
        """Initialize an empty box."""
        self.item = None

    def put(self, item: T) -> None:
        self.item = item

    def get(self) -> T | None:
        return self.item


class Greeter(abc.ABC):
    """Interface with a single method."""

    @abc.abstractmethod
    def greet(self, name: str) -> str:
        """Greet someone.

        :param name: Who to greet.
        :returns: Greeting.
        """


class LoudGreeter(Greeter):
    """Interface extending ``Greeter``."""

    @abc.abstractmethod
    def shout(self, name: str) -> str: ...


class FriendlyGreeter(LoudGreeter):
    """Implementation of both greeter interfaces."""

    def greet(self, name: str) -> str:
        return f"Hello, {name}"

    def shout(self, name: str) -> str:
        return f"HELLO, {name.upper()}"


class Resettable(abc.ABC):
    """Interface whose member name collides with ``Calculator.reset``."""

    @abc.abstractmethod
    def reset(self) -> str: ...


class Shape(abc.ABC):
    @abc.abstractmethod
    def area(self) -> float: ...


class Square(Shape):
    """Interface redeclaring a member of its base interface."""

    @abc.abstractmethod
    def area(self) -> float: ...


class Parser(abc.ABC):
    """Interface with by-reference parameters."""

    @abc.abstractmethod
    def try_parse(self, text: str, result: Out[int]) -> bool:
        """Parse an integer.

        :param text: Text to parse.
        :param result: Receives the parsed value.
        :returns: ``True`` on success.
        """

    @abc.abstractmethod
    def increment(self, counter: Ref[int]) -> None: ...


class IntParser(Parser):
    def try_parse(self, text: str, result: Out[int]) -> bool:
        if text.isdigit() is False:
            return False
        result.value = int(text)
        return True

    def increment(self, counter: Ref[int]) -> None:
        counter.value = (counter.value or 0) + 1


class Converter(abc.ABC):
    """Interface with a generic method."""

    @generic_method(T)
    @abc.abstractmethod
    def convert(self, value: object, *, type_args: tuple[type, ...]) -> object:
        """Convert ``value`` to the requested type.

        :param value: Value to convert.
        :param type_args: Target type.
        :returns: Converted value.
        """


class BuiltinConverter(Converter):
    @generic_method(T)
    def convert(self, value: object, *, type_args: tuple[type, ...]) -> object:
        target_type: type = type_args[0]
        return target_type(value)


class Named(abc.ABC):
    """Interface with a read/write property."""

    @property
    @abc.abstractmethod
    def name(self) -> str: ...

    @name.setter
    @abc.abstractmethod
    def name(self, value: str) -> None: ...


class Person(Named):
    _name: str

    def __init__(self, name: str) -> None:
        """Initialize the person.

        :param name: Person name.
        """
        self._name = name

    @property
    def name(self) -> str:
        return self._name

    @name.setter
    def name(self, value: str) -> None:
        self._name = value


class Observable(abc.ABC):
    """Interface with an event."""

    @event
    @abc.abstractmethod
    def changed(self, handler: Callable[[str], None]) -> None: ...

    @changed.remover
    @abc.abstractmethod
    def changed(self, handler: Callable[[str], None]) -> None: ...


class Document(Observable):
    handlers: list[Callable[[str], None]]

    def __init__(self) -> None:
        """Initialize without subscribers."""
        self.handlers = []

    @event
    def changed(self, handler: Callable[[str], None]) -> None:
        self.handlers.append(handler)

    @changed.remover
    def changed(self, handler: Callable[[str], None]) -> None:
        self.handlers.remove(handler)

    def touch(self, text: str) -> None:
        """Notify every subscriber.

        :param text: Change description.
        """
        for handler in list(self.handlers):
            handler(text)


class Auditable(abc.ABC):
    """Interface contributed by ``AuditMixin``."""

    @abc.abstractmethod
    def audit_log(self) -> list[str]: ...


class AuditMixin(Auditable):
    entries: list[str]

    def __init__(self) -> None:
        """Start the log with a creation entry."""
        self.entries = ["created"]

    def audit_log(self) -> list[str]:
        return list(self.entries)


class OtherAuditMixin(Auditable):
    def audit_log(self) -> list[str]:
        return ["other"]


class GreeterMixin(Greeter):
    def greet(self, name: str) -> str:
        return f"Mixin greets {name}"


@runtime_checkable
class SupportsClose(Protocol):
    """Protocol implemented structurally by ``Resource``."""

    @abc.abstractmethod
    def close(self) -> str: ...


class Resource:
    def close(self) -> str:
        return "closed"


@attribute_usage(inherited=False)
class Audited(Attribute):
    """Non-inheritable attribute; replicated onto generated types and members."""

    level: str

    def __init__(self, level: str) -> None:
        """Initialize the attribute.

        :param level: Audit level.
        """
        self.level = level


@attribute_usage(inherited=True)
class Tracked(Attribute):
    """Inheritable attribute; reaches proxies through the base class."""


@custom_attribute(Audited("type"), Tracked(), Serializable())
class Ledger:
    """Class carrying custom attributes on itself and on a member."""

    @custom_attribute(Audited("member"))
    def post(self, amount: int) -> int:
        return amount


@attribute_usage(inherited=True)
class Cached(Attribute):
    """Inheritable member attribute; reaches generated overrides through the overridden member."""


class Service:
    @custom_attribute(Cached())
    def fetch(self) -> str:
        return "fetched"


class Welcomer(abc.ABC):
    """Interface declaring the same member as ``Greeter``."""

    @abc.abstractmethod
    def greet(self, name: str) -> str: ...


class DoubleGreeter(Greeter, Welcomer):
    """One implementation backing both ``Greeter.greet`` and ``Welcomer.greet``."""

    def greet(self, name: str) -> str:
        return f"Hi, {name}"
