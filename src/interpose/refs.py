"""By-reference argument cells."""

import typing
from typing import Generic
from typing import TypeVar

T = TypeVar("T")


class Ref(Generic[T]):
    """Mutable cell passed for a by-reference parameter.

    A member parameter annotated ``Ref[...]`` receives the caller's cell. Values
    written into the cell during the call are visible to the caller afterwards.
    """

    value: T | None

    def __init__(self, value: T | None = None) -> None:
        """Initialize the cell.

        :param value: Initial cell value.
        """
        self.value = value

    def __repr__(self) -> str:
        """Return a debug representation.

        :returns: Representation text.
        """
        return f"{type(self).__name__}({self.value!r})"


class Out(Ref[T]):
    """Cell for an output-only parameter; starts without a value."""

    def __init__(self) -> None:
        """Initialize an unset output cell."""
        super().__init__(None)
        object.__setattr__(self, "_is_set", False)

    def __setattr__(self, attr_name: str, value: object) -> None:
        """Track writes to ``value``.

        :param attr_name: Attribute name.
        :param value: Attribute value.
        """
        object.__setattr__(self, attr_name, value)
        if attr_name == "value":
            object.__setattr__(self, "_is_set", True)

    @property
    def is_set(self) -> bool:
        """Report whether a value was written into the cell.

        :returns: ``True`` once ``value`` has been assigned.
        """
        return self._is_set


_BY_REF_NAMES: frozenset[str] = frozenset({"Ref", "Out", "interpose.Ref", "interpose.Out"})


def is_by_ref_annotation(annotation: object) -> bool:
    """Check whether a parameter annotation marks a by-reference parameter.

    String annotations (postponed evaluation) are matched by name.

    :param annotation: Raw parameter annotation.
    :returns: ``True`` for ``Ref``/``Out`` and their parameterized forms.
    """
    if isinstance(annotation, str):
        head: str = annotation.split("[", 1)[0].strip()
        return head in _BY_REF_NAMES
    if isinstance(annotation, type) and issubclass(annotation, Ref):
        return True
    origin: object = typing.get_origin(annotation)
    return isinstance(origin, type) and issubclass(origin, Ref)
