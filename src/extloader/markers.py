"""
Class markers for extensible abstractions and their providers.

``@spi`` tags an interface-shaped class as an extension point and optionally
names its default provider. ``@spi_provider`` tags a concrete class as an
implementation that may be bound to such an extension point.

Both markers are stored in the decorated class' own namespace, so a subclass
of a provider is not itself a provider until it is marked too.

Example:
    >>> @spi("hello")
    ... class Greeter(ABC):
    ...     @abstractmethod
    ...     def greet(self, who: str) -> str: ...
    >>> @spi_provider
    ... class HelloGreeter(Greeter):
    ...     def greet(self, who: str) -> str:
    ...         return f"hello {who}"
"""

from dataclasses import dataclass
from typing import Callable, Optional, TypeVar, Union, overload

T = TypeVar("T", bound=type)

SPI_ATTRIBUTE = "__spi__"
PROVIDER_ATTRIBUTE = "__spi_provider__"


@dataclass(frozen=True)
class SpiMetadata:
    """
    Marker payload attached to an extensible abstraction.

    Attributes:
        default: Name of the provider returned when no name is requested.
    """

    default: Optional[str] = None


@overload
def spi(target: T) -> T: ...


@overload
def spi(target: Optional[str] = None, *, default: Optional[str] = None) -> Callable[[T], T]: ...


def spi(
    target: Union[T, str, None] = None,
    *,
    default: Optional[str] = None,
) -> Union[T, Callable[[T], T]]:
    """
    Mark a class as an extensible abstraction.

    Usable bare (``@spi``), with the default provider name as positional
    argument (``@spi("hello")``) or as keyword (``@spi(default="hello")``).
    """
    if isinstance(target, type):
        setattr(target, SPI_ATTRIBUTE, SpiMetadata(default=default))
        return target

    if target is not None:
        default = target

    def decorate(cls: T) -> T:
        setattr(cls, SPI_ATTRIBUTE, SpiMetadata(default=default or None))
        return cls

    return decorate


def spi_provider(cls: T) -> T:
    """Mark a concrete class as an extension provider."""
    setattr(cls, PROVIDER_ATTRIBUTE, True)
    return cls


def get_spi_metadata(cls: type) -> Optional[SpiMetadata]:
    """Return the ``@spi`` payload declared directly on ``cls``, if any."""
    metadata = vars(cls).get(SPI_ATTRIBUTE)
    return metadata if isinstance(metadata, SpiMetadata) else None


def is_spi(cls: type) -> bool:
    return get_spi_metadata(cls) is not None


def is_spi_provider(cls: type) -> bool:
    return vars(cls).get(PROVIDER_ATTRIBUTE) is True
