"""Tests for the proxy-catalog (Okapi) version resolver."""

from unittest.mock import MagicMock, patch

import pytest

from constants import ModuleType
from errors import ApplicationGeneratorError, ErrorCategory
from registry.models import ModuleRegistries, OkapiModuleRegistry
from versioning.models import Dependency, PreReleaseFilter
from versioning.resolvers.facade import VersionResolverFacade
from versioning.resolvers.okapi import OkapiVersionResolver
from versioning.service import ModuleVersionService


@pytest.fixture
def resolver():
    return OkapiVersionResolver()


@pytest.fixture
def registry():
    return OkapiModuleRegistry("http://okapi:9130").with_generated_fields()


class TestOkapiVersionResolver:
    """Query building and response handling."""

    def test_build_query_for_be_module(self):
        query = OkapiVersionResolver.build_query(Dependency("mod-users", "^19.0.0"), ModuleType.BE)
        assert query == {"filter": "mod-users", "preRelease": "true", "orderBy": "id", "order": "desc"}

    def test_build_query_for_ui_module_uses_npm_snapshot(self):
        query = OkapiVersionResolver.build_query(
            Dependency("folio_users", "^11.0.0", PreReleaseFilter.FALSE), ModuleType.UI
        )
        assert query["npmSnapshot"] == "false"
        assert "preRelease" not in query

    @patch("versioning.resolvers.okapi.get_json")
    def test_versions_filtered_by_exact_name_and_sorted(self, mock_get_json, resolver, registry):
        mock_get_json.return_value = (
            200,
            {},
            [
                {"id": "mod-foo-1.0.0"},
                {"id": "mod-foo-storage-3.0.0"},
                {"id": "mod-foo-1.10.0"},
                {"id": "mod-foo-1.2.0"},
            ],
        )

        versions = resolver.get_available_versions(registry, Dependency("mod-foo", "*"), ModuleType.BE)

        assert versions == ["1.10.0", "1.2.0", "1.0.0"]
        args, kwargs = mock_get_json.call_args
        assert args[0] == "http://okapi:9130/_/proxy/modules"
        assert kwargs["params"]["filter"] == "mod-foo"

    @patch("versioning.resolvers.okapi.get_json")
    def test_non_200_returns_none(self, mock_get_json, resolver, registry):
        mock_get_json.return_value = (500, {}, None)
        assert resolver.get_available_versions(registry, Dependency("mod-foo", "*"), ModuleType.BE) is None

    @patch("versioning.resolvers.okapi.get_json")
    def test_empty_catalog_returns_none(self, mock_get_json, resolver, registry):
        mock_get_json.return_value = (200, {}, [])
        assert resolver.get_available_versions(registry, Dependency("mod-foo", "*"), ModuleType.BE) is None

    @patch("versioning.resolvers.okapi.get_json")
    def test_network_failure_propagates(self, mock_get_json, resolver, registry):
        mock_get_json.side_effect = ApplicationGeneratorError("boom", ErrorCategory.INFRASTRUCTURE)
        with pytest.raises(ApplicationGeneratorError) as exc_info:
            resolver.get_available_versions(registry, Dependency("mod-foo", "*"), ModuleType.BE)
        assert exc_info.value.category == ErrorCategory.INFRASTRUCTURE


class TestUnavailableRegistry:
    @patch("common.http_client.time.sleep")
    @patch("common.http_client.requests.request")
    def test_persistent_503_resolves_to_infrastructure(self, mock_request, mock_sleep, registry):
        mock_request.return_value = MagicMock(status_code=503, text="", headers={})
        service = ModuleVersionService(
            ModuleRegistries(be_registries=[registry]), VersionResolverFacade([OkapiVersionResolver()])
        )

        with pytest.raises(ApplicationGeneratorError) as exc_info:
            service.resolve_module_constraint(Dependency("mod-foo", "^1.0.0"), ModuleType.BE)
        assert exc_info.value.category == ErrorCategory.INFRASTRUCTURE

        with pytest.raises(ApplicationGeneratorError) as exc_info:
            service.resolve_modules_constraints([Dependency("mod-foo", "^1.0.0")], ModuleType.BE)
        assert exc_info.value.category == ErrorCategory.INFRASTRUCTURE
