"""
Extension registry: one ``ExtensionLoader`` per abstraction.

The registry owns every loader it creates for the lifetime of the process.
A default registry is created lazily on first access and reads its
discovery settings from ``extloader.config.settings``; tests and embedding
applications can build independent registries instead.
"""

import logging
import sys
import threading
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Sequence, Type, TypeVar

from extloader.config import Settings
from extloader.discovery import ProviderDiscovery, service_roots
from extloader.exceptions import InvalidArgumentError, qualified_name
from extloader.loader import ExtensionLoader
from extloader.records import is_blank
from extloader.validation import check_abstraction

logger = logging.getLogger(__name__)

T = TypeVar("T")


class ExtensionRegistry:
    """
    Registry of extension loaders keyed by abstraction.

    Example:
        >>> registry = ExtensionRegistry(search_path=[Path("plugins")])
        >>> greeter = registry.get_extension(Greeter, "hello")
    """

    def __init__(
        self,
        search_path: Optional[Iterable[Any]] = None,
        extra_roots: Optional[Sequence[Path]] = None,
        enable_entry_points: Optional[bool] = None,
        settings: Optional[Settings] = None,
    ) -> None:
        """
        Initialize the registry.

        Args:
            search_path: Entries scanned for the services directory. Defaults to
                         the live ``sys.path`` when ``settings.scan_sys_path`` is
                         enabled, otherwise nothing.
            extra_roots: Service roots used as-is (combined with
                         ``settings.extra_roots``)
            enable_entry_points: Override ``settings.enable_entry_points``
            settings: Settings to read defaults from (a fresh ``Settings()``
                      when omitted)
        """
        self.settings = settings if settings is not None else Settings()
        self._search_path = list(search_path) if search_path is not None else None
        self.extra_roots: List[Path] = self.settings.extra_root_paths
        if extra_roots:
            self.extra_roots.extend(Path(root) for root in extra_roots)
        self.enable_entry_points = (
            self.settings.enable_entry_points
            if enable_entry_points is None
            else enable_entry_points
        )

        self._loaders: Dict[type, ExtensionLoader[Any]] = {}
        self._lock = threading.Lock()

    @property
    def search_path(self) -> List[Any]:
        if self._search_path is not None:
            return self._search_path
        if self.settings.scan_sys_path:
            return list(sys.path)
        return []

    def roots(self) -> List[Path]:
        """Service roots, evaluated now (``sys.path`` may change over time)."""
        return service_roots(
            self.search_path,
            services_directory=self.settings.services_directory,
            extra_roots=self.extra_roots,
        )

    def get_extension_loader(self, abstraction: Type[T]) -> ExtensionLoader[T]:
        """
        Get (or create) the loader for an abstraction.

        Args:
            abstraction: An interface-shaped class marked with ``@spi``

        Returns:
            The loader; concurrent callers always observe the same loader

        Raises:
            InvalidArgumentError: If ``abstraction`` is None
            ConfigurationError: If ``abstraction`` is not an ``@spi`` interface
        """
        if abstraction is None:
            raise InvalidArgumentError("extension type must not be None")
        check_abstraction(abstraction)

        loader = self._loaders.get(abstraction)
        if loader is not None:
            return loader

        # The extension factory is discovered before any dependent abstraction
        from extloader.factory import ExtensionFactory

        if abstraction is not ExtensionFactory:
            self.get_extension_loader(ExtensionFactory).get_extension_classes()

        with self._lock:
            loader = self._loaders.get(abstraction)
            if loader is None:
                loader = self._create_loader(abstraction)
                self._loaders[abstraction] = loader
        return loader

    def _create_loader(self, abstraction: type) -> ExtensionLoader[Any]:
        discovery = ProviderDiscovery(
            abstraction,
            roots=self.roots(),
            enable_entry_points=self.enable_entry_points,
            entry_point_group_prefix=self.settings.entry_point_group_prefix,
            encoding=self.settings.resource_encoding,
        )
        logger.info(f"Created extension loader for {qualified_name(abstraction)}")
        return ExtensionLoader(abstraction, discovery)

    def get_extension(self, abstraction: Type[T], name: Optional[str] = None) -> Optional[T]:
        """
        Get a provider instance by name.

        Args:
            abstraction: An ``@spi`` abstraction
            name: Provider name; blank or None selects the default provider

        Returns:
            The shared provider instance, or None if ``name`` is blank and the
            abstraction declares no default
        """
        loader = self.get_extension_loader(abstraction)
        if is_blank(name):
            return loader.get_default_instance()
        return loader.get_instance(name)  # type: ignore[arg-type]

    @property
    def loaded_abstractions(self) -> List[type]:
        """Abstractions that currently have a loader."""
        return list(self._loaders)


# Global registry instance (singleton pattern)
_default_registry: Optional[ExtensionRegistry] = None
_default_registry_lock = threading.Lock()


def get_default_registry() -> ExtensionRegistry:
    """
    Get the default process-wide registry.

    The registry is lazy-initialized on first access from the global
    settings and is never torn down.

    Returns:
        Global ExtensionRegistry instance
    """
    global _default_registry

    if _default_registry is None:
        with _default_registry_lock:
            if _default_registry is None:
                from extloader.config import settings

                _default_registry = ExtensionRegistry(settings=settings)
                logger.debug("Initialized default extension registry")

    return _default_registry


def get_extension_loader(abstraction: Type[T]) -> ExtensionLoader[T]:
    """Get the loader for ``abstraction`` from the default registry."""
    return get_default_registry().get_extension_loader(abstraction)


def get_extension(abstraction: Type[T], name: Optional[str] = None) -> Optional[T]:
    """
    Get a provider instance from the default registry.

    A blank name resolves to the default provider, or None when the
    abstraction declares none.
    """
    return get_default_registry().get_extension(abstraction, name)
