"""Public package API for interpose."""

from interpose.api import InterfaceView
from interpose.api import ProxyGenerator
from interpose.api import as_interface
from interpose.api import get_interceptors
from interpose.api import get_proxy_target
from interpose.api import is_proxy
from interpose.api import is_proxy_type
from interpose.attributes import Attribute
from interpose.attributes import AttributeDisassembler
from interpose.attributes import AttributeReplicationFilter
from interpose.attributes import AttributeUsage
from interpose.attributes import GeneratedProxy
from interpose.attributes import Serializable
from interpose.attributes import attribute_usage
from interpose.attributes import custom_attribute
from interpose.attributes import get_custom_attributes
from interpose.builder import DefaultProxyBuilder
from interpose.errors import GenerationOptionsAlreadySetError
from interpose.errors import GenerationOptionsNotSetError
from interpose.errors import GenericTypeDefinitionError
from interpose.errors import InterfaceExpectedError
from interpose.errors import InterposeError
from interpose.errors import InvalidMixinConfigurationError
from interpose.errors import InvocationChainExhaustedError
from interpose.errors import MissingTypeArgumentsError
from interpose.errors import NoTargetProceedError
from interpose.errors import TargetNotImplementedError
from interpose.errors import TypeNotProxyableError
from interpose.introspection import VisibilityPolicy
from interpose.invocation import AbstractInvocation
from interpose.invocation import Interceptor
from interpose.invocation import InterceptorSelector
from interpose.invocation import StandardInterceptor
from interpose.members import MethodToken
from interpose.members import event
from interpose.members import generic_method
from interpose.options import AllMethodsHook
from interpose.options import ProxyGenerationHook
from interpose.options import ProxyGenerationOptions
from interpose.refs import Out
from interpose.refs import Ref
from interpose.registry import ProxyRegistry

__all__: list[str] = [
    "InterfaceView",
    "ProxyGenerator",
    "as_interface",
    "get_interceptors",
    "get_proxy_target",
    "is_proxy",
    "is_proxy_type",
    "Attribute",
    "AttributeDisassembler",
    "AttributeReplicationFilter",
    "AttributeUsage",
    "GeneratedProxy",
    "Serializable",
    "attribute_usage",
    "custom_attribute",
    "get_custom_attributes",
    "DefaultProxyBuilder",
    "GenerationOptionsAlreadySetError",
    "GenerationOptionsNotSetError",
    "GenericTypeDefinitionError",
    "InterfaceExpectedError",
    "InterposeError",
    "InvalidMixinConfigurationError",
    "InvocationChainExhaustedError",
    "MissingTypeArgumentsError",
    "NoTargetProceedError",
    "TargetNotImplementedError",
    "TypeNotProxyableError",
    "VisibilityPolicy",
    "AbstractInvocation",
    "Interceptor",
    "InterceptorSelector",
    "StandardInterceptor",
    "MethodToken",
    "event",
    "generic_method",
    "AllMethodsHook",
    "ProxyGenerationHook",
    "ProxyGenerationOptions",
    "Out",
    "Ref",
    "ProxyRegistry",
]
