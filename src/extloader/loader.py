"""
Per-abstraction loader state.

An ``ExtensionLoader`` owns the discovered provider map of one abstraction
and the instances created from it:

- the provider map is computed once and then frozen
- each provider name maps to exactly one shared instance
- two names bound to the same class share that class' instance

All caches use double-checked locking: an unsynchronized read first, and a
lock only on the slow path, re-checking once the lock is held.
"""

import logging
import threading
from typing import Callable, Dict, Generic, List, Mapping, Optional, Tuple, TypeVar

from extloader.discovery import ProviderDiscovery
from extloader.exceptions import (
    InstantiationError,
    InvalidArgumentError,
    UnknownProviderError,
    qualified_name,
)
from extloader.records import is_blank

logger = logging.getLogger(__name__)

T = TypeVar("T")
V = TypeVar("V")


class _Holder(Generic[V]):
    """Compute-once cell guarded by its own re-entrant lock."""

    def __init__(self) -> None:
        self._lock = threading.RLock()
        self._value: Optional[V] = None

    @property
    def value(self) -> Optional[V]:
        return self._value

    def get_or_compute(self, compute: Callable[[], V]) -> V:
        value = self._value
        if value is None:
            with self._lock:
                value = self._value
                if value is None:
                    value = compute()
                    self._value = value
        return value


class ExtensionLoader(Generic[T]):
    """
    Discovers, instantiates and caches the providers of one abstraction.

    Loaders are created by ``ExtensionRegistry``; callers normally go through
    ``ExtensionRegistry.get_extension`` instead of using a loader directly.

    Example:
        >>> loader = registry.get_extension_loader(Greeter)
        >>> loader.get_instance("hello").greet("world")
    """

    def __init__(self, abstraction: type, discovery: ProviderDiscovery) -> None:
        self.abstraction = abstraction
        self._discovery = discovery
        self._default_name: Optional[str] = None

        # name -> implementation class, frozen once published
        self._classes: _Holder[Tuple[Optional[str], Mapping[str, type]]] = _Holder()

        # provider name -> shared instance
        self._instances: Dict[str, T] = {}
        self._instances_lock = threading.RLock()

        # implementation class -> shared instance
        self._providers: Dict[type, T] = {}

    def __repr__(self) -> str:
        return f"ExtensionLoader({qualified_name(self.abstraction)})"

    def get_extension_classes(self) -> Mapping[str, type]:
        """
        Get the provider map, running discovery on first use.

        Returns:
            Read-only mapping of provider name to implementation class, in
            registration order. The same mapping object is returned on every
            call once discovery has succeeded.

        Note:
            A failed discovery publishes nothing, so the next call retries.
        """
        return self._classes.get_or_compute(self._load_extension_classes)[1]

    def _load_extension_classes(self) -> Tuple[Optional[str], Mapping[str, type]]:
        default_name, classes = self._discovery.discover()
        self._default_name = default_name
        logger.info(
            f"Loaded {len(classes)} provider(s) for {qualified_name(self.abstraction)}"
        )
        return default_name, classes

    @property
    def default_name(self) -> Optional[str]:
        """Default provider name declared by ``@spi``, available after discovery."""
        self.get_extension_classes()
        return self._default_name

    @property
    def provider_names(self) -> Tuple[str, ...]:
        return tuple(self.get_extension_classes())

    def has_extension(self, name: str) -> bool:
        if is_blank(name):
            return False
        return name in self.get_extension_classes()

    def get_instance(self, name: str) -> T:
        """
        Get the shared instance registered under ``name``.

        Args:
            name: Provider name

        Returns:
            The provider instance; every caller receives the same object

        Raises:
            InvalidArgumentError: If ``name`` is blank
            UnknownProviderError: If no provider is registered under ``name``
            InstantiationError: If the provider class cannot be constructed
        """
        if is_blank(name):
            raise InvalidArgumentError(
                f"provider name of {qualified_name(self.abstraction)} must not be blank"
            )

        implementation = self.get_extension_classes().get(name)
        if implementation is None:
            raise UnknownProviderError(self.abstraction, name)

        instance = self._instances.get(name)
        if instance is None:
            with self._instances_lock:
                instance = self._instances.get(name)
                if instance is None:
                    instance = self._instantiate(name, implementation)
                    self._instances[name] = instance
        return instance

    def get_default_instance(self) -> Optional[T]:
        """Get the default provider instance, or None when no default is declared."""
        default_name = self.default_name
        if is_blank(default_name):
            return None
        return self.get_instance(default_name)  # type: ignore[arg-type]

    def get_all_instances(self) -> List[T]:
        """
        Get one instance per discovered provider, in registration order.

        Returns:
            List of provider instances (empty if nothing is registered)
        """
        classes = self.get_extension_classes()
        if not classes:
            return []

        if len(self._instances) == len(classes):
            return [self._instances[name] for name in classes]

        return [self.get_instance(name) for name in classes]

    def _instantiate(self, name: str, implementation: type) -> T:
        """
        Create (or reuse) the instance of an implementation class.

        Called with the instance lock held. The lock is re-entrant, so a
        constructor may look up other providers of the same abstraction.

        Raises:
            InstantiationError: If the class cannot be constructed
        """
        provider = self._providers.get(implementation)
        if provider is not None:
            return provider

        try:
            provider = implementation()
        except Exception as e:
            raise InstantiationError(self.abstraction, name, implementation, e) from e

        self._providers[implementation] = provider
        logger.info(
            f"Instantiated provider {name} ({qualified_name(implementation)}) "
            f"for {qualified_name(self.abstraction)}"
        )
        return provider
