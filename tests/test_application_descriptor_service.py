"""Tests for application descriptor creation from templates."""

import json
from unittest.mock import MagicMock

import pytest

from constants import ModuleType, ModuleUrlsMode
from descriptors.application import ApplicationDescriptorGenerator, ApplicationDescriptorService
from descriptors.json_provider import JsonProvider
from descriptors.models import ApplicationDescriptorTemplate
from descriptors.validator import ApplicationDependencyValidator
from errors import ApplicationGeneratorError, ErrorCategory
from settings import GeneratorConfig
from versioning.models import Dependency, ModuleDefinition

from fakes import FakeDescriptorService, FakeVersionService


@pytest.fixture
def template():
    return ApplicationDescriptorTemplate(
        id="app-x-1.0.0",
        name="app-x",
        version="1.0.0",
        description="Application X",
        modules=[Dependency("mod-foo", "^1.0.0")],
        ui_modules=[Dependency("folio_users", "10.0.0")],
        dependencies=[Dependency("app-platform", "^2.0.0")],
    )


def make_service(config=None, versions=None):
    return ApplicationDescriptorService(
        config or GeneratorConfig(),
        FakeVersionService(versions or {"mod-foo": "1.2.0"}),
        FakeDescriptorService(),
    )


class TestApplicationDescriptorService:
    def test_full_descriptor_by_default(self, template):
        descriptor = make_service().create(template)

        assert descriptor.id == "app-x-1.0.0"
        assert descriptor.platform == "base"
        assert descriptor.modules == [ModuleDefinition("mod-foo", "1.2.0")]
        assert descriptor.modules[0].url is None
        assert descriptor.module_descriptors == [{"id": "mod-foo-1.2.0"}]
        assert descriptor.ui_module_descriptors == [{"id": "folio_users-10.0.0"}]
        assert descriptor.dependencies == [Dependency("app-platform", "^2.0.0")]

    def test_url_only_mode(self, template):
        descriptor = make_service(GeneratorConfig(module_urls_mode=ModuleUrlsMode.TRUE)).create(template)

        assert descriptor.modules[0].url == "http://registry/mod-foo-1.2.0"
        assert descriptor.module_descriptors is None
        assert "moduleDescriptors" not in descriptor.to_dict()

    def test_both_mode(self, template):
        descriptor = make_service(GeneratorConfig(module_urls_mode=ModuleUrlsMode.BOTH)).create(template)

        assert descriptor.ui_modules[0].url == "http://registry/folio_users-10.0.0"
        assert descriptor.ui_module_descriptors == [{"id": "folio_users-10.0.0"}]

    def test_modules_resolved_per_type(self, template):
        service = make_service()
        service.create(template)
        assert [call[0] for call in service.version_service.calls] == [ModuleType.BE, ModuleType.UI]
        assert service.descriptor_service.calls[0] == (ModuleType.BE, [ModuleDefinition("mod-foo", "1.2.0")])

    def test_id_mismatch(self, template):
        bad = ApplicationDescriptorTemplate(id="app-x-2.0.0", name=template.name, version=template.version)
        with pytest.raises(ApplicationGeneratorError) as exc_info:
            make_service().create(bad)
        assert exc_info.value.category == ErrorCategory.CONFIGURATION_ERROR

    def test_snapshot_build_number(self):
        template = ApplicationDescriptorTemplate(id="app-x-1.0.0-SNAPSHOT", name="app-x", version="1.0.0-SNAPSHOT")

        descriptor = make_service(GeneratorConfig(build_number="42")).create(template)

        assert descriptor.version == "1.0.0-SNAPSHOT.42"
        assert descriptor.id == "app-x-1.0.0-SNAPSHOT.42"

    def test_build_number_ignored_for_release(self, template):
        assert make_service(GeneratorConfig(build_number="42")).create(template).version == "1.0.0"

    def test_project_metadata_fallback(self):
        config = GeneratorConfig(
            project_name="app-y", project_version="2.0.0", project_description="Project Y"
        )

        descriptor = make_service(config).create(ApplicationDescriptorTemplate(platform="complete"))

        assert descriptor.id == "app-y-2.0.0"
        assert descriptor.description == "Project Y"
        assert descriptor.platform == "complete"
        assert descriptor.dependencies == []


class TestApplicationDescriptorGenerator:
    def test_writes_descriptor(self, template, tmp_path):
        generator = ApplicationDescriptorGenerator(make_service(), ApplicationDependencyValidator(), JsonProvider())

        descriptor = generator.generate(template, str(tmp_path / "out"))

        written = json.loads((tmp_path / "out" / "app-x-1.0.0.json").read_text(encoding="utf-8"))
        assert written == descriptor.to_dict()
        assert written["modules"] == [{"id": "mod-foo-1.2.0", "name": "mod-foo", "version": "1.2.0"}]

    def test_validation_failure_stops_generation(self, tmp_path):
        service = MagicMock()
        template = ApplicationDescriptorTemplate(name="app-x", version="1.0.0", modules=[Dependency("", "1.0.0")])
        generator = ApplicationDescriptorGenerator(service, ApplicationDependencyValidator(), JsonProvider())

        with pytest.raises(ApplicationGeneratorError):
            generator.generate(template, str(tmp_path))

        service.create.assert_not_called()
