"""
Pytest configuration and fixtures for extloader tests.

Provider classes have to be importable by name, so the sample package is
written into a temporary directory that is prepended to ``sys.path`` for
the duration of a test, and registration files are written next to it
under ``META-INF/services``.
"""

import importlib
import sys
import textwrap
from pathlib import Path
from types import ModuleType
from typing import Callable

import pytest

from extloader.config import Settings
from extloader.exceptions import qualified_name
from extloader.registry import ExtensionRegistry

SAMPLE_PACKAGE = "greetpkg"

SAMPLE_CODE = '''
import threading
import time
from abc import ABC, abstractmethod
from typing import Protocol

from extloader import spi, spi_provider


@spi("hello")
class Greeter(ABC):
    @abstractmethod
    def greet(self, who: str) -> str: ...


@spi_provider
class HelloGreeter(Greeter):
    def greet(self, who: str) -> str:
        return f"hello {who}"


@spi_provider
class LoudGreeter(Greeter):
    def greet(self, who: str) -> str:
        return f"HELLO {who.upper()}!"


class UnmarkedGreeter(Greeter):
    def greet(self, who: str) -> str:
        return who


@spi_provider
class Stranger:
    def greet(self, who: str) -> str:
        return who


@spi_provider
class BrokenGreeter(Greeter):
    def __init__(self) -> None:
        raise RuntimeError("boom")

    def greet(self, who: str) -> str:
        return who


@spi_provider
class HalfGreeter(Greeter):
    pass


@spi_provider
class SlowGreeter(Greeter):
    created = 0
    _lock = threading.Lock()

    def __init__(self) -> None:
        with SlowGreeter._lock:
            SlowGreeter.created += 1
        time.sleep(0.05)

    def greet(self, who: str) -> str:
        return f"slowly {who}"


@spi_provider
class WrappingGreeter(Greeter):
    lookup = None

    def __init__(self) -> None:
        self.inner = WrappingGreeter.lookup("hello")

    def greet(self, who: str) -> str:
        return f"<{self.inner.greet(who)}>"


class Outer:
    @spi_provider
    class InnerGreeter(Greeter):
        def greet(self, who: str) -> str:
            return f"inner {who}"


@spi
class Farewell(Protocol):
    def bye(self, who: str) -> str: ...


@spi_provider
class PoliteFarewell:
    def bye(self, who: str) -> str:
        return f"goodbye {who}"


@spi_provider
class MuteFarewell:
    pass


@spi
class Nameless(ABC):
    @abstractmethod
    def run(self) -> None: ...


@spi_provider
class NamelessImpl(Nameless):
    def run(self) -> None:
        return None


@spi
class NotAnInterface:
    pass


@spi
class Concrete(ABC):
    def run(self) -> None:
        return None


@spi
class Stateful(ABC):
    def __init__(self) -> None:
        self.count = 0

    @abstractmethod
    def run(self) -> None: ...


class Unmarked(ABC):
    @abstractmethod
    def run(self) -> None: ...
'''


@pytest.fixture
def site_dir(tmp_path: Path, monkeypatch) -> Path:
    """Create an importable directory holding the sample provider package."""
    site = tmp_path / "site"
    package = site / SAMPLE_PACKAGE
    package.mkdir(parents=True)
    (package / "__init__.py").write_text(textwrap.dedent(SAMPLE_CODE))

    monkeypatch.syspath_prepend(str(site))
    yield site

    for name in list(sys.modules):
        if name == SAMPLE_PACKAGE or name.startswith(f"{SAMPLE_PACKAGE}."):
            del sys.modules[name]


@pytest.fixture
def samples(site_dir: Path) -> ModuleType:
    """Import the sample provider package."""
    return importlib.import_module(SAMPLE_PACKAGE)


@pytest.fixture
def services_dir(site_dir: Path) -> Path:
    """Service root inside the sample site directory."""
    root = site_dir / "META-INF" / "services"
    root.mkdir(parents=True, exist_ok=True)
    return root


@pytest.fixture
def write_registration() -> Callable[..., Path]:
    """Return a helper that writes a registration file for an abstraction."""

    def write(root: Path, abstraction: type, content: str, encoding: str = "utf-8") -> Path:
        root.mkdir(parents=True, exist_ok=True)
        path = root / qualified_name(abstraction)
        path.write_text(textwrap.dedent(content), encoding=encoding)
        return path

    return write


@pytest.fixture
def test_settings() -> Settings:
    """Settings isolated from the environment's .env file."""
    return Settings(_env_file=None, extra_roots=[])


@pytest.fixture
def registry(site_dir: Path, test_settings: Settings) -> ExtensionRegistry:
    """Independent registry that only searches the sample site directory."""
    return ExtensionRegistry(
        search_path=[site_dir],
        enable_entry_points=False,
        settings=test_settings,
    )
