"""Tests for loading module descriptors across ordered registries."""

from unittest.mock import MagicMock

import pytest

from constants import ModuleType
from descriptors.models import LoaderResult
from descriptors.service import ModuleDescriptorService
from errors import ApplicationGeneratorError, ErrorCategory
from registry.models import ModuleRegistries, SimpleModuleRegistry
from versioning.models import ModuleDefinition

R1 = SimpleModuleRegistry("http://r1", "http://r1/{id}")
R2 = SimpleModuleRegistry("http://r2", "http://r2/{id}")
FALLBACK = SimpleModuleRegistry("http://fallback", "http://fallback/{id}")

FOO = ModuleDefinition("mod-foo", "1.0.0")
BAR = ModuleDefinition("mod-bar", "2.0.0")


def make_facade(contents):
    """``contents`` maps registry url to {module id: descriptor or exception}."""

    def find_descriptor(registry, module):
        value = contents.get(registry.url, {}).get(module.id)
        if isinstance(value, Exception):
            raise value
        if value is None:
            return None
        return LoaderResult(registry.public_url_for(module.id), value)

    facade = MagicMock()
    facade.find_descriptor.side_effect = find_descriptor
    return facade


def infrastructure_error():
    return ApplicationGeneratorError("boom", ErrorCategory.INFRASTRUCTURE)


@pytest.fixture
def registries():
    return ModuleRegistries(be_registries=[R1, R2], be_fallback_registries=[FALLBACK])


class TestModuleDescriptorService:
    def test_empty_request(self, registries):
        facade = make_facade({})
        result = ModuleDescriptorService(registries, facade).load_modules(ModuleType.BE, [])
        assert result.artifacts == [] and result.descriptors == []
        facade.find_descriptor.assert_not_called()

    def test_first_registry_wins(self, registries):
        facade = make_facade(
            {
                "http://r1": {"mod-foo-1.0.0": {"id": "mod-foo-1.0.0", "from": "r1"}},
                "http://r2": {
                    "mod-foo-1.0.0": {"id": "mod-foo-1.0.0", "from": "r2"},
                    "mod-bar-2.0.0": {"id": "mod-bar-2.0.0"},
                },
            }
        )

        result = ModuleDescriptorService(registries, facade).load_modules(ModuleType.BE, [FOO, BAR])

        assert result.descriptors == [{"id": "mod-foo-1.0.0", "from": "r1"}, {"id": "mod-bar-2.0.0"}]
        assert [m.url for m in result.artifacts] == ["http://r1/mod-foo-1.0.0", "http://r2/mod-bar-2.0.0"]
        queried = [(c.args[0].url, c.args[1].id) for c in facade.find_descriptor.call_args_list]
        assert ("http://r2", "mod-foo-1.0.0") not in queried

    def test_fallback_used_for_missing_modules(self, registries):
        facade = make_facade(
            {
                "http://r1": {"mod-foo-1.0.0": {"id": "mod-foo-1.0.0"}},
                "http://fallback": {"mod-bar-2.0.0": {"id": "mod-bar-2.0.0"}},
            }
        )

        result = ModuleDescriptorService(registries, facade).load_modules(ModuleType.BE, [FOO, BAR])

        assert result.artifacts == [FOO, BAR]
        assert result.artifacts[1].url == "http://fallback/mod-bar-2.0.0"

    def test_missing_modules_reported_together(self, registries):
        facade = make_facade({"http://r1": {"mod-foo-1.0.0": infrastructure_error()}})

        with pytest.raises(ApplicationGeneratorError) as exc_info:
            ModuleDescriptorService(registries, facade).load_modules(ModuleType.BE, [FOO, BAR])

        assert exc_info.value.category == ErrorCategory.MODULE_NOT_FOUND
        assert [e.artifact for e in exc_info.value.errors] == ["mod-foo-1.0.0", "mod-bar-2.0.0"]

    def test_every_lookup_failed(self):
        registries = ModuleRegistries(ui_registries=[R1])
        facade = make_facade({"http://r1": {"mod-foo-1.0.0": infrastructure_error()}})

        with pytest.raises(ApplicationGeneratorError) as exc_info:
            ModuleDescriptorService(registries, facade).load_modules(ModuleType.UI, [FOO])

        assert exc_info.value.category == ErrorCategory.INFRASTRUCTURE

    def test_malformed_descriptor_id(self, registries):
        facade = make_facade({"http://r1": {"mod-foo-1.0.0": {"id": "mod-foo"}}})

        with pytest.raises(ApplicationGeneratorError) as exc_info:
            ModuleDescriptorService(registries, facade).load_modules(ModuleType.BE, [FOO])

        assert exc_info.value.category == ErrorCategory.CONFIGURATION_ERROR
