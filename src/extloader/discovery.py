"""
Provider discovery for one extensible abstraction.

Registrations are collected from two kinds of sources:
1. Registration files named after the abstraction under each service root
   (the bundled root, configured extra roots, and ``<entry>/META-INF/services``
   for every search path entry)
2. Entry points in the group ``extloader.services.<module>.<Abstraction>``

All sources are merged. A name bound twice to the same class is accepted;
a name bound to two different classes is a conflict.
"""

import importlib
import logging
from importlib.metadata import entry_points
from pathlib import Path
from types import MappingProxyType
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

from extloader.exceptions import ConflictError, DiscoveryError, ExtensionError, qualified_name
from extloader.markers import get_spi_metadata
from extloader.records import RegistrationRecord, parse_registration_file
from extloader.validation import validate_candidate

logger = logging.getLogger(__name__)

# Registration files shipped inside the package (the extension factory lives here)
BUILTIN_ROOT = Path(__file__).parent / "META-INF" / "services"

DEFAULT_SERVICES_DIRECTORY = "META-INF/services"
DEFAULT_ENTRY_POINT_PREFIX = "extloader.services"


def service_roots(
    search_path: Iterable[Any],
    services_directory: str = DEFAULT_SERVICES_DIRECTORY,
    extra_roots: Sequence[Path] = (),
) -> List[Path]:
    """
    Build the ordered list of directories that may hold registration files.

    Args:
        search_path: Import search entries (usually ``sys.path``); entries that
                     are not existing directories are ignored
        services_directory: Directory, relative to each search entry, that
                            holds registration files
        extra_roots: Additional roots used as-is

    Returns:
        Roots in lookup order, deduplicated by resolved path
    """
    candidates: List[Path] = [BUILTIN_ROOT, *extra_roots]
    for entry in search_path:
        if not isinstance(entry, (str, Path)):
            continue
        base = Path(entry) if entry else Path.cwd()
        if base.is_dir():
            candidates.append(base / services_directory)

    roots: List[Path] = []
    seen = set()
    for root in candidates:
        try:
            key = root.resolve()
        except OSError:
            key = root
        if key in seen:
            continue
        seen.add(key)
        roots.append(root)
    return roots


def resolve_identifier(identifier: str) -> Any:
    """
    Import the object an identifier points at.

    Accepts ``module.Class``, ``module:Class`` and ``module:Outer.Inner``.

    Raises:
        ImportError: If the module cannot be imported
        AttributeError: If the module has no such attribute
        Exception: Whatever the module body raises while it is imported
    """
    if ":" in identifier:
        module_name, attribute_path = identifier.split(":", 1)
    else:
        module_name, attribute_path = identifier.rsplit(".", 1)

    target: Any = importlib.import_module(module_name)
    for part in attribute_path.split("."):
        target = getattr(target, part)
    return target


class ProviderDiscovery:
    """
    Collects and validates the provider bindings of one abstraction.

    A discovery object is stateless between calls; memoization of its result
    belongs to the owning ``ExtensionLoader``.
    """

    def __init__(
        self,
        abstraction: type,
        roots: Sequence[Path],
        enable_entry_points: bool = True,
        entry_point_group_prefix: str = DEFAULT_ENTRY_POINT_PREFIX,
        encoding: str = "utf-8",
    ) -> None:
        """
        Initialize discovery.

        Args:
            abstraction: The ``@spi`` abstraction to discover providers for
            roots: Directories searched for the abstraction's registration file
            enable_entry_points: Whether to read package entry points as well
            entry_point_group_prefix: Prefix of the entry point group name
            encoding: Encoding of registration files
        """
        self.abstraction = abstraction
        self.roots = list(roots)
        self.enable_entry_points = enable_entry_points
        self.entry_point_group_prefix = entry_point_group_prefix
        self.encoding = encoding

    @property
    def resource_name(self) -> str:
        """File name of this abstraction's registration files."""
        return qualified_name(self.abstraction)

    @property
    def entry_point_group(self) -> str:
        return f"{self.entry_point_group_prefix}.{self.resource_name}"

    def find_resources(self) -> List[Path]:
        """Return every registration file for the abstraction, in root order."""
        resources = []
        for root in self.roots:
            candidate = root / self.resource_name
            if candidate.is_file():
                resources.append(candidate)
        return resources

    def discover(self) -> Tuple[Optional[str], Mapping[str, type]]:
        """
        Run discovery.

        Returns:
            The default provider name (or None) and a read-only, insertion
            ordered mapping of provider name to implementation class

        Raises:
            DiscoveryError: If a source cannot be read or a class cannot be imported
            ValidationError: If a registered class fails validation
            ConflictError: If a name is bound to two different classes

        Note:
            Failures are logged with their cause before being raised.
        """
        metadata = get_spi_metadata(self.abstraction)
        default_name = metadata.default if metadata else None

        classes: Dict[str, type] = {}
        try:
            for record in self._collect_records():
                self._load_record(classes, record)
        except ExtensionError as e:
            logger.error(f"Load extension classes error: {e}", exc_info=True)
            raise

        logger.debug(
            f"Discovered {len(classes)} provider(s) for {self.resource_name}: "
            f"{', '.join(classes) or '-'}"
        )
        return default_name, MappingProxyType(classes)

    def _collect_records(self) -> Iterable[RegistrationRecord]:
        for resource in self.find_resources():
            logger.debug(f"Reading registration file: {resource}")
            try:
                yield from parse_registration_file(resource, self.encoding)
            except (OSError, UnicodeDecodeError, ValueError) as e:
                raise DiscoveryError(
                    self.abstraction, str(resource), "unreadable registration file", e
                ) from e

        if self.enable_entry_points:
            yield from self._entry_point_records()

    def _entry_point_records(self) -> List[RegistrationRecord]:
        group = self.entry_point_group
        try:
            eps = entry_points(group=group)
            return [
                RegistrationRecord(
                    name=ep.name,
                    identifier=ep.value,
                    source=f"entry-point:{group}",
                )
                for ep in eps
            ]
        except Exception as e:
            raise DiscoveryError(self.abstraction, f"entry-point:{group}", "invalid entry point", e) from e

    def _load_record(self, classes: Dict[str, type], record: RegistrationRecord) -> None:
        try:
            candidate = resolve_identifier(record.identifier)
        except Exception as e:
            raise DiscoveryError(
                self.abstraction,
                record.location,
                f"cannot resolve '{record.identifier}'",
                e,
            ) from e

        validate_candidate(self.abstraction, candidate)

        existing = classes.get(record.name)
        if existing is None:
            classes[record.name] = candidate
            logger.debug(f"Registered provider {record.name} -> {qualified_name(candidate)}")
        elif existing is not candidate:
            raise ConflictError(self.abstraction, record.name, existing, candidate)
