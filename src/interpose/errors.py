"""Custom error types for interpose."""


class InterposeError(Exception):
    """Base class for all interpose errors."""


class InvalidMixinConfigurationError(InterposeError):
    """Raised when two sources contribute the same interface to one proxy type."""


class GenericTypeDefinitionError(InterposeError):
    """Raised when a generic type definition is passed where a concrete type is required."""

    type_name: str
    argument_name: str

    def __init__(self, type_name: str, argument_name: str) -> None:
        """Initialize a generic type definition error.

        :param type_name: Qualified name of the offending type.
        :param argument_name: Name of the argument that received it.
        """
        self.type_name = type_name
        self.argument_name = argument_name
        super().__init__(
            f"Type cannot be a generic type definition. Type: {type_name} (argument {argument_name!r})"
        )


class GenerationOptionsNotSetError(InterposeError):
    """Raised when generation options are read before being set."""


class GenerationOptionsAlreadySetError(InterposeError):
    """Raised when generation options are set more than once on one generator."""


class InterfaceExpectedError(InterposeError):
    """Raised when a non-interface type is passed where an interface is required."""


class TypeNotProxyableError(InterposeError):
    """Raised when the target type cannot be subclassed by a proxy."""


class TargetNotImplementedError(InterposeError):
    """Raised when a proxy target does not implement the proxied interface."""


class NoTargetProceedError(InterposeError, NotImplementedError):
    """Raised when ``proceed()`` reaches a member that has no implementation."""

    method_name: str

    def __init__(self, method_name: str) -> None:
        """Initialize a no-target error.

        :param method_name: Qualified name of the member being invoked.
        """
        self.method_name = method_name
        super().__init__(
            f"The interceptor attempted to 'proceed' for member '{method_name}' which has no target. "
            + "When calling a member without a target there is no implementation to 'proceed' to and "
            + "it is the responsibility of the interceptor to mimic the implementation "
            + "(set the return value, out arguments etc)."
        )


class InvocationChainExhaustedError(InterposeError):
    """Raised when ``proceed()`` is called past the terminal step of the chain."""


class MissingTypeArgumentsError(InterposeError, TypeError):
    """Raised when a generic method is called without matching type arguments."""
