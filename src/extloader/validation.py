"""
Structural checks applied to abstractions and provider candidates.

Abstractions must be interface-shaped (a ``typing.Protocol`` class, or an
``abc.ABC`` class declaring abstract methods and no state) and marked with
``@spi``. Candidates must be behavioral subtypes of the abstraction and
marked with ``@spi_provider``.
"""

from abc import ABCMeta
from typing import Any, Iterator

from extloader.exceptions import ConfigurationError, ValidationError
from extloader.markers import is_spi, is_spi_provider


def is_interface(abstraction: Any) -> bool:
    """
    Check whether ``abstraction`` is interface-shaped.

    Protocol classes always qualify. Other ``ABCMeta`` classes qualify when
    they declare at least one abstract method and no ``__init__`` of their
    own, so concrete or stateful classes are rejected.
    """
    if not isinstance(abstraction, ABCMeta):
        return False
    if is_protocol(abstraction):
        return True
    return bool(abstraction.__abstractmethods__) and "__init__" not in vars(abstraction)


def is_protocol(abstraction: type) -> bool:
    return bool(getattr(abstraction, "_is_protocol", False))


def protocol_members(abstraction: type) -> Iterator[str]:
    """
    Yield the public member names a Protocol declares, bases included.

    Annotated attributes count as members as well as methods and
    properties, matching what ``typing`` considers part of a protocol.
    """
    seen = set()
    for base in abstraction.__mro__:
        if base is object or not is_protocol(base):
            continue
        names = list(vars(base)) + list(vars(base).get("__annotations__", {}))
        for name in names:
            if name.startswith("_") or name in seen:
                continue
            seen.add(name)
            yield name


def check_abstraction(abstraction: Any) -> None:
    """
    Verify that ``abstraction`` may own an extension loader.

    Raises:
        ConfigurationError: If it is not an interface or lacks ``@spi``
    """
    if not is_interface(abstraction):
        raise ConfigurationError(abstraction, "is not an interface")
    if not is_spi(abstraction):
        raise ConfigurationError(abstraction, "is not marked with @spi")


def check_conformance(abstraction: type, candidate: Any) -> None:
    """
    Verify that ``candidate`` is a behavioral subtype of ``abstraction``.

    Nominal abstractions require ``issubclass``; protocols are satisfied by
    any class exposing every protocol member.

    Raises:
        ValidationError: If the candidate does not conform
    """
    if not isinstance(candidate, type):
        raise ValidationError(abstraction, candidate, "not a class")

    if is_protocol(abstraction):
        if abstraction in candidate.__mro__:
            return
        missing = [name for name in protocol_members(abstraction) if not hasattr(candidate, name)]
        if missing:
            raise ValidationError(
                abstraction,
                candidate,
                f"subtype is missing protocol members: {', '.join(sorted(missing))}",
            )
        return

    if not issubclass(candidate, abstraction):
        raise ValidationError(abstraction, candidate, "not a subtype of the extension type")


def check_provider_marker(abstraction: type, candidate: type) -> None:
    """
    Raises:
        ValidationError: If ``candidate`` is not marked with ``@spi_provider``
    """
    if not is_spi_provider(candidate):
        raise ValidationError(abstraction, candidate, "not marked with @spi_provider")


def validate_candidate(abstraction: type, candidate: Any) -> type:
    """Run every candidate check and return the candidate on success."""
    check_conformance(abstraction, candidate)
    check_provider_marker(abstraction, candidate)
    return candidate
