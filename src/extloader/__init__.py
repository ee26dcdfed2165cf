"""
extloader - declarative extension loading.

Binds an ``@spi`` abstraction and a provider name to one shared provider
instance, using registration files (``META-INF/services/<module>.<Type>``)
and package entry points instead of hard-coded imports.
"""

__version__ = "0.1.0"

from extloader.exceptions import (
    ConfigurationError,
    ConflictError,
    DiscoveryError,
    ExtensionError,
    InstantiationError,
    InvalidArgumentError,
    UnknownProviderError,
    ValidationError,
)
from extloader.factory import ExtensionFactory, SpiExtensionFactory
from extloader.loader import ExtensionLoader
from extloader.markers import SpiMetadata, spi, spi_provider
from extloader.registry import (
    ExtensionRegistry,
    get_default_registry,
    get_extension,
    get_extension_loader,
)

__all__ = [
    "ConfigurationError",
    "ConflictError",
    "DiscoveryError",
    "ExtensionError",
    "ExtensionFactory",
    "ExtensionLoader",
    "ExtensionRegistry",
    "InstantiationError",
    "InvalidArgumentError",
    "SpiExtensionFactory",
    "SpiMetadata",
    "UnknownProviderError",
    "ValidationError",
    "get_default_registry",
    "get_extension",
    "get_extension_loader",
    "spi",
    "spi_provider",
]
