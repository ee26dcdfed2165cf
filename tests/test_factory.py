"""Tests for the extension factory facade."""

import pytest

import extloader.registry as registry_module
from extloader.config import Settings
from extloader.factory import ExtensionFactory, SpiExtensionFactory
from extloader.markers import get_spi_metadata


@pytest.fixture(autouse=True)
def fresh_default_registry(monkeypatch):
    monkeypatch.setattr(registry_module, "_default_registry", None)
    monkeypatch.setattr(
        "extloader.config.settings",
        Settings(_env_file=None, enable_entry_points=False),
    )


def test_factory_declares_spi_default():
    assert get_spi_metadata(ExtensionFactory).default == "spi"


class TestSpiExtensionFactory:
    """Test SpiExtensionFactory.get_extension."""

    def test_forwards_to_registry(self, samples, services_dir, write_registration):
        write_registration(
            services_dir,
            samples.Greeter,
            "hello=greetpkg.HelloGreeter\nloud=greetpkg.LoudGreeter\n",
        )
        factory = SpiExtensionFactory()

        loud = factory.get_extension("loud", samples.Greeter)

        assert isinstance(loud, samples.LoudGreeter)
        assert factory.get_extension("loud", samples.Greeter) is loud
        assert isinstance(factory.get_extension(None, samples.Greeter), samples.HelloGreeter)

    def test_non_interface_returns_none(self, samples):
        assert SpiExtensionFactory().get_extension("x", samples.NotAnInterface) is None

    def test_unmarked_interface_returns_none(self, samples):
        assert SpiExtensionFactory().get_extension("x", samples.Unmarked) is None

    def test_none_returns_none(self):
        assert SpiExtensionFactory().get_extension("x", None) is None

    def test_factory_resolves_itself(self):
        factory = registry_module.get_extension(ExtensionFactory)

        assert isinstance(factory, SpiExtensionFactory)
        assert factory.get_extension("spi", ExtensionFactory) is factory
