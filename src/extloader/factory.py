"""
Extension factory facade.

``ExtensionFactory`` is itself an extension point; its ``spi`` provider is
registered by the package's bundled registration file and forwards lookups
to the default registry. The registry discovers this abstraction before any
other so the factory is always ready.
"""

from abc import ABC, abstractmethod
from typing import Optional, Type, TypeVar

from extloader.markers import is_spi, spi, spi_provider
from extloader.validation import is_interface

T = TypeVar("T")


@spi("spi")
class ExtensionFactory(ABC):
    """Looks up extensions by key and abstraction."""

    @abstractmethod
    def get_extension(self, key: Optional[str], abstraction: Type[T]) -> Optional[T]:
        """
        Get the provider of ``abstraction`` registered as ``key``.

        Returns:
            The provider instance, or None if ``abstraction`` is not an
            extensible interface
        """
        ...


@spi_provider
class SpiExtensionFactory(ExtensionFactory):
    """Factory backed by the default extension registry."""

    def get_extension(self, key: Optional[str], abstraction: Type[T]) -> Optional[T]:
        if abstraction is None or not is_interface(abstraction) or not is_spi(abstraction):
            return None

        from extloader.registry import get_extension

        return get_extension(abstraction, key)
