"""
Registration record schema and registration file parsing.

A registration file lives under a service root and is named after the
fully-qualified abstraction it provides for, e.g.::

    META-INF/services/pkg.greeters.Greeter

Its content follows the property-file convention::

    # comments start with '#' or '!'
    hello = pkg.greeters.HelloGreeter
    loud: pkg.greeters:LoudGreeter

Records are validated with Pydantic, mirroring how plugin manifests are
validated elsewhere.
"""

import logging
import re
from pathlib import Path
from typing import Iterator, List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

logger = logging.getLogger(__name__)

_COMMENT_PREFIXES = ("#", "!")
_ENTRY = re.compile(r"^([^=:\s]+)(?:\s*[=:]\s*|\s+)(.*)$")


def is_blank(value: Optional[str]) -> bool:
    """Check whether a string is ``None``, empty or whitespace only."""
    return value is None or not value.strip()


class RegistrationRecord(BaseModel):
    """
    One ``name = identifier`` binding read from a registration source.

    Attributes:
        name: Provider name callers request
        identifier: Importable class path (``module.Class`` or ``module:Class``)
        source: Where the record came from (file path or entry point group)
        line: Line number within a registration file, if any
    """

    model_config = ConfigDict(frozen=True)

    name: str = Field(..., min_length=1, description="Provider name")
    identifier: str = Field(
        ...,
        min_length=1,
        description="Importable class path (e.g., 'pkg.module.Class' or 'pkg.module:Class')",
    )
    source: str = Field(..., description="Registration file path or entry point group")
    line: Optional[int] = Field(None, description="Line number in the registration file")

    @field_validator("name", "identifier", mode="before")
    @classmethod
    def strip_whitespace(cls, value: str) -> str:
        return value.strip() if isinstance(value, str) else value

    @field_validator("identifier")
    @classmethod
    def validate_identifier(cls, value: str) -> str:
        """Ensure the identifier names at least a module and an attribute."""
        if ":" in value:
            module_name, _, attribute = value.partition(":")
            if not module_name or not attribute:
                raise ValueError(f"identifier must look like 'module:Class', got: {value}")
        elif len(value.split(".")) < 2:
            raise ValueError(
                f"identifier must be fully qualified (e.g., 'module.Class'), got: {value}"
            )
        else:
            module_name = value.rsplit(".", 1)[0]

        # Relative imports have no anchor package here
        if module_name.startswith(".") or not all(module_name.split(".")):
            raise ValueError(f"identifier must name an absolute module, got: {value}")
        return value

    @property
    def location(self) -> str:
        """Human-readable origin, including the line number when known."""
        if self.line is None:
            return self.source
        return f"{self.source}:{self.line}"


def _logical_lines(text: str) -> Iterator[Tuple[int, str]]:
    """Yield (line number, line) pairs with backslash continuations joined."""
    buffer = ""
    start = 0
    for number, raw in enumerate(text.splitlines(), start=1):
        line = raw.strip()
        if not buffer:
            start = number
            if not line or line.startswith(_COMMENT_PREFIXES):
                continue
        if line.endswith("\\") and not line.endswith("\\\\"):
            buffer += line[:-1]
            continue
        yield start, buffer + line
        buffer = ""
    if buffer:
        yield start, buffer


def split_entry(line: str) -> Tuple[str, str]:
    """Split a logical line into (name, identifier); missing parts come back empty."""
    match = _ENTRY.match(line)
    if match is None:
        return line.strip(), ""
    return match.group(1).strip(), match.group(2).strip()


def parse_registration_text(text: str, source: str) -> List[RegistrationRecord]:
    """
    Parse registration file content into ordered records.

    Entries with a blank name or identifier are skipped silently.

    Raises:
        ValueError: If an entry's identifier is malformed
    """
    records: List[RegistrationRecord] = []
    for number, line in _logical_lines(text):
        name, identifier = split_entry(line)
        if is_blank(name) or is_blank(identifier):
            logger.debug(f"Skipping blank entry at {source}:{number}")
            continue
        try:
            records.append(
                RegistrationRecord(name=name, identifier=identifier, source=source, line=number)
            )
        except ValidationError as e:
            raise ValueError(f"Invalid registration entry at {source}:{number}: {e}") from e
    return records


def parse_registration_file(path: Path, encoding: str = "utf-8") -> List[RegistrationRecord]:
    """
    Read and parse a registration file.

    Raises:
        OSError: If the file cannot be read
        UnicodeDecodeError: If the file is not valid in ``encoding``
        ValueError: If an entry is malformed
    """
    text = path.read_text(encoding=encoding)
    return parse_registration_text(text, str(path))
