"""Process-scoped generation state shared by every builder."""

import logging
import threading

from interpose.attributes import AttributeReplicationFilter
from interpose.cache import TypeCache
from interpose.introspection import VisibilityPolicy

logger = logging.getLogger(__name__)

DEFAULT_MODULE_NAME: str = "interpose.proxies"


class ProxyRegistry:
    """Own the type cache and the naming of generated types.

    One registry is passed explicitly to every builder. Independent registries
    share nothing, which keeps tests isolated from each other.
    """

    _type_cache: TypeCache
    _visibility_policy: VisibilityPolicy
    _attribute_filter: AttributeReplicationFilter
    _module_name: str
    _names_lock: threading.Lock
    _name_counters: dict[str, int]

    def __init__(
        self,
        visibility_policy: VisibilityPolicy | None = None,
        attribute_filter: AttributeReplicationFilter | None = None,
        module_name: str = DEFAULT_MODULE_NAME,
    ) -> None:
        """Initialize a registry.

        :param visibility_policy: Trust policy for internal members; trusts every module by default.
        :param attribute_filter: Custom attribute replication filter.
        :param module_name: ``__module__`` reported by generated types.
        """
        self._type_cache = TypeCache()
        self._visibility_policy = visibility_policy if visibility_policy is not None else VisibilityPolicy()
        self._attribute_filter = attribute_filter if attribute_filter is not None else AttributeReplicationFilter()
        self._module_name = module_name
        self._names_lock = threading.Lock()
        self._name_counters = {}

    @property
    def type_cache(self) -> TypeCache:
        """Return the cache of generated types.

        :returns: Type cache.
        """
        return self._type_cache

    @property
    def visibility_policy(self) -> VisibilityPolicy:
        """Return the policy deciding which internal members are reachable.

        :returns: Visibility policy.
        """
        return self._visibility_policy

    @property
    def attribute_filter(self) -> AttributeReplicationFilter:
        """Return the filter applied to replicated attributes.

        :returns: Attribute replication filter.
        """
        return self._attribute_filter

    @property
    def module_name(self) -> str:
        """Return the module name assigned to generated types.

        :returns: Module name.
        """
        return self._module_name

    def get_unique_name(self, suggested_name: str) -> str:
        """Return a type name not yet handed out by this registry.

        :param suggested_name: Preferred name, e.g. ``"RepositoryProxy"``.
        :returns: ``suggested_name`` the first time, then ``suggested_name_1``, ``suggested_name_2``...
        """
        with self._names_lock:
            counter: int | None = self._name_counters.get(suggested_name)
            if counter is None:
                self._name_counters[suggested_name] = 0
                return suggested_name
            counter += 1
            self._name_counters[suggested_name] = counter
            return f"{suggested_name}_{counter}"

    def reset(self) -> None:
        """Drop every cached type and naming counter."""
        self._type_cache.clear()
        with self._names_lock:
            self._name_counters.clear()
        logger.debug("Registry for module %s reset", self._module_name)
