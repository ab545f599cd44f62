"""Tests for per-registry module descriptor loaders."""

import json
from unittest.mock import MagicMock, patch

import pytest

from common.object_store import ObjectStorage, ObjectStoreError
from constants import ModuleType, RegistryType
from descriptors.loaders import (
    ModuleDescriptorLoaderFacade,
    OkapiDescriptorLoader,
    S3DescriptorLoader,
    SimpleDescriptorLoader,
)
from descriptors.service import ModuleDescriptorService
from errors import ApplicationGeneratorError, ErrorCategory
from registry.models import ModuleRegistries, OkapiModuleRegistry, S3ModuleRegistry, SimpleModuleRegistry
from versioning.models import ModuleDefinition

from fakes import FakeBucket


class BrokenBucket(ObjectStorage):
    def list_page(self, bucket, prefix, page_size, continuation_token=None):
        raise ObjectStoreError("timeout")


def _descriptor(module_id):
    return json.dumps({"id": module_id}).encode("utf-8")


@pytest.fixture
def s3_registry():
    return S3ModuleRegistry(bucket="descriptors", path="be/").with_generated_fields()


class TestOkapiDescriptorLoader:
    @pytest.fixture
    def registry(self):
        return OkapiModuleRegistry("http://okapi:9130").with_generated_fields()

    @patch("descriptors.loaders.okapi.get_json")
    def test_exact_module(self, mock_get_json, registry):
        mock_get_json.return_value = (200, {}, [{"id": "mod-foo-1.0.0", "provides": []}])

        result = OkapiDescriptorLoader().find_descriptor(registry, ModuleDefinition("mod-foo", "1.0.0"))

        assert result.descriptor == {"id": "mod-foo-1.0.0", "provides": []}
        assert result.source_url == "http://okapi:9130/_/proxy/modules/mod-foo-1.0.0"
        assert mock_get_json.call_args.args[0] == "http://okapi:9130/_/proxy/modules"
        assert mock_get_json.call_args.kwargs["params"] == {
            "filter": "mod-foo-1.0.0",
            "latest": 1,
            "orderBy": "id",
            "order": "desc",
            "full": "true",
        }

    @patch("descriptors.loaders.okapi.get_json")
    def test_latest_filters_by_name(self, mock_get_json, registry):
        mock_get_json.return_value = (200, {}, [{"id": "mod-foo-2.1.0"}])

        result = OkapiDescriptorLoader().find_descriptor(registry, ModuleDefinition("mod-foo", "latest"))

        assert mock_get_json.call_args.kwargs["params"]["filter"] == "mod-foo"
        assert result.source_url.endswith("/mod-foo-2.1.0")

    @pytest.mark.parametrize("response", [(404, {}, None), (200, {}, []), (200, {}, {"id": "x"})])
    @patch("descriptors.loaders.okapi.get_json")
    def test_not_found(self, mock_get_json, response, registry):
        mock_get_json.return_value = response
        assert OkapiDescriptorLoader().find_descriptor(registry, ModuleDefinition("mod-foo", "1.0.0")) is None


class TestSimpleDescriptorLoader:
    @pytest.fixture
    def registry(self):
        return SimpleModuleRegistry("http://catalog", "https://cdn.example.org/{id}.json")

    @patch("descriptors.loaders.simple.get_json")
    def test_found(self, mock_get_json, registry):
        mock_get_json.return_value = (200, {}, {"id": "mod-foo-1.0.0"})

        result = SimpleDescriptorLoader().find_descriptor(registry, ModuleDefinition("mod-foo", "1.0.0"))

        mock_get_json.assert_called_once()
        assert mock_get_json.call_args.args[0] == "http://catalog/mod-foo-1.0.0"
        assert result.source_url == "https://cdn.example.org/mod-foo-1.0.0.json"

    @patch("descriptors.loaders.simple.get_json")
    def test_missing(self, mock_get_json, registry):
        mock_get_json.return_value = (404, {}, None)
        assert SimpleDescriptorLoader().find_descriptor(registry, ModuleDefinition("mod-foo", "1.0.0")) is None

    @patch("descriptors.loaders.simple.get_json")
    def test_latest_is_not_supported(self, mock_get_json, registry):
        assert SimpleDescriptorLoader().find_descriptor(registry, ModuleDefinition("mod-foo", "latest")) is None
        mock_get_json.assert_not_called()

    @patch("common.http_client.time.sleep")
    @patch("common.http_client.requests.request")
    def test_unavailable_catalog_is_infrastructure(self, mock_request, mock_sleep, registry):
        mock_request.return_value = MagicMock(status_code=503, text="", headers={})
        service = ModuleDescriptorService(
            ModuleRegistries(be_registries=[registry]), ModuleDescriptorLoaderFacade([SimpleDescriptorLoader()])
        )

        with pytest.raises(ApplicationGeneratorError) as exc_info:
            service.load_modules(ModuleType.BE, [ModuleDefinition("mod-foo", "1.0.0")])
        assert exc_info.value.category == ErrorCategory.INFRASTRUCTURE


class TestS3DescriptorLoader:
    def test_exact_key(self, s3_registry):
        bucket = FakeBucket(
            {
                "be/mod-foo-1.0.0.json": _descriptor("mod-foo-1.0.0"),
                "be/mod-foo-1.0.0-SNAPSHOT.3.json": _descriptor("mod-foo-1.0.0-SNAPSHOT.3"),
            }
        )

        result = S3DescriptorLoader(bucket).find_descriptor(s3_registry, ModuleDefinition("mod-foo", "1.0.0"))

        assert bucket.prefixes == ["be/mod-foo-1.0.0"]
        assert result.descriptor == {"id": "mod-foo-1.0.0"}
        assert result.source_url == "https://descriptors.s3.amazonaws.com/be/mod-foo-1.0.0"

    def test_stable_request_without_exact_key(self, s3_registry):
        bucket = FakeBucket({"be/mod-foo-1.0.10.json": _descriptor("mod-foo-1.0.10")})
        assert S3DescriptorLoader(bucket).find_descriptor(s3_registry, ModuleDefinition("mod-foo", "1.0.1")) is None

    def test_prerelease_request_takes_newest_build(self, s3_registry):
        bucket = FakeBucket(
            {
                "be/mod-foo-1.1.0-SNAPSHOT.9.json": _descriptor("mod-foo-1.1.0-SNAPSHOT.9"),
                "be/mod-foo-1.1.0-SNAPSHOT.10.json": _descriptor("mod-foo-1.1.0-SNAPSHOT.10"),
            }
        )

        result = S3DescriptorLoader(bucket).find_descriptor(
            s3_registry, ModuleDefinition("mod-foo", "1.1.0-SNAPSHOT")
        )

        assert result.descriptor == {"id": "mod-foo-1.1.0-SNAPSHOT.10"}

    def test_latest_ignores_other_modules_sharing_prefix(self, s3_registry):
        bucket = FakeBucket(
            {
                "be/mod-foo-1.0.0.json": _descriptor("mod-foo-1.0.0"),
                "be/mod-foo-1.2.0.json": _descriptor("mod-foo-1.2.0"),
                "be/mod-foo-storage-3.0.0.json": _descriptor("mod-foo-storage-3.0.0"),
            }
        )

        result = S3DescriptorLoader(bucket).find_descriptor(s3_registry, ModuleDefinition("mod-foo", "latest"))

        assert bucket.prefixes == ["be/mod-foo"]
        assert result.descriptor == {"id": "mod-foo-1.2.0"}

    def test_unparseable_descriptor(self, s3_registry):
        bucket = FakeBucket({"be/mod-foo-1.0.0.json": b"{not json"})
        assert S3DescriptorLoader(bucket).find_descriptor(s3_registry, ModuleDefinition("mod-foo", "1.0.0")) is None

    def test_listing_failure(self, s3_registry):
        with pytest.raises(ApplicationGeneratorError) as exc_info:
            S3DescriptorLoader(BrokenBucket()).find_descriptor(s3_registry, ModuleDefinition("mod-foo", "1.0.0"))
        assert exc_info.value.category == ErrorCategory.INFRASTRUCTURE


class TestModuleDescriptorLoaderFacade:
    def test_dispatches_by_registry_type(self):
        okapi_loader = MagicMock(registry_type=RegistryType.OKAPI)
        simple_loader = MagicMock(registry_type=RegistryType.SIMPLE)
        facade = ModuleDescriptorLoaderFacade([okapi_loader, simple_loader])
        registry = SimpleModuleRegistry("http://catalog")
        module = ModuleDefinition("mod-foo", "1.0.0")

        facade.find_descriptor(registry, module)

        simple_loader.find_descriptor.assert_called_once_with(registry, module)
        okapi_loader.find_descriptor.assert_not_called()

    def test_unknown_registry_type(self, s3_registry):
        facade = ModuleDescriptorLoaderFacade([])
        assert facade.find_descriptor(s3_registry, ModuleDefinition("mod-foo", "1.0.0")) is None
