"""Custom exceptions for extloader.

Every failure raised by the loader derives from ``ExtensionError`` and keeps
the abstraction plus the offending name, type or cause as attributes so
callers can inspect them without parsing messages.
"""

from typing import Any, Optional


def qualified_name(obj: Any) -> str:
    """Return ``module.QualName`` for a class, or ``repr`` for anything else."""
    if isinstance(obj, type):
        return f"{obj.__module__}.{obj.__qualname__}"
    return repr(obj)


class ExtensionError(Exception):
    """Base exception for all extension loader errors."""

    pass


class ConfigurationError(ExtensionError):
    """Raised when an abstraction is not an extensible interface."""

    def __init__(self, abstraction: Any, reason: str):
        self.abstraction = abstraction
        self.reason = reason
        super().__init__(f"extension type ({qualified_name(abstraction)}) {reason}")


class DiscoveryError(ExtensionError):
    """Raised when a registration source cannot be read or resolved."""

    def __init__(
        self,
        abstraction: Any,
        source: str,
        message: str,
        cause: Optional[BaseException] = None,
    ):
        self.abstraction = abstraction
        self.source = source
        self.cause = cause
        text = (
            f"failed to load extensions of {qualified_name(abstraction)} "
            f"from {source}: {message}"
        )
        if cause is not None:
            text += f" ({type(cause).__name__}: {cause})"
        super().__init__(text)


class ValidationError(ExtensionError):
    """Raised when a registered class fails conformance or marker checks."""

    def __init__(self, abstraction: Any, candidate: Any, reason: str):
        self.abstraction = abstraction
        self.candidate = candidate
        self.reason = reason
        super().__init__(
            f"{qualified_name(candidate)} cannot provide "
            f"{qualified_name(abstraction)}: {reason}"
        )


class ConflictError(ExtensionError):
    """Raised when one provider name is bound to two different classes."""

    def __init__(self, abstraction: Any, name: str, existing: type, duplicate: type):
        self.abstraction = abstraction
        self.name = name
        self.existing = existing
        self.duplicate = duplicate
        super().__init__(
            f"duplicated provider '{name}' for {qualified_name(abstraction)}: "
            f"{qualified_name(existing)} or {qualified_name(duplicate)}"
        )


class UnknownProviderError(ExtensionError, LookupError):
    """Raised when no provider is registered under the requested name."""

    def __init__(self, abstraction: Any, name: str):
        self.abstraction = abstraction
        self.name = name
        super().__init__(
            f"no provider named '{name}' registered for {qualified_name(abstraction)}"
        )


class InvalidArgumentError(ExtensionError, ValueError):
    """Raised when a caller passes a blank name or a missing abstraction."""

    pass


class InstantiationError(ExtensionError):
    """Raised when a valid provider class cannot be constructed."""

    def __init__(
        self,
        abstraction: Any,
        name: str,
        implementation: type,
        cause: BaseException,
    ):
        self.abstraction = abstraction
        self.name = name
        self.implementation = implementation
        self.cause = cause
        super().__init__(
            f"provider '{name}' ({qualified_name(implementation)}) of "
            f"{qualified_name(abstraction)} cannot be instantiated: {cause}"
        )
