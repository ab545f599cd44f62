"""Tests for artifact existence checkers."""

import json
from unittest.mock import MagicMock, patch

import pytest

from artifacts.docker_hub import DockerHubExistenceChecker
from artifacts.facade import ArtifactExistenceCheckerFacade
from artifacts.folio_npm import FolioNpmExistenceChecker, to_package_name
from constants import ModuleType
from errors import ApplicationGeneratorError, ErrorCategory
from registry.artifact import DockerHubArtifactRegistry, FolioNpmArtifactRegistry
from versioning.models import ModuleDefinition


def make_response(status_code, text=""):
    response = MagicMock()
    response.status_code = status_code
    response.text = text
    return response


class TestPackageName:
    @pytest.mark.parametrize(
        "module_name,expected",
        [
            ("folio_users", "@folio/users"),
            ("folio_plugin_find_user", "@folio/plugin-find-user"),
            ("stripes_core", "@folio/stripes-core"),
        ],
    )
    def test_to_package_name(self, module_name, expected):
        assert to_package_name(module_name) == expected


class TestDockerHubExistenceChecker:
    @pytest.fixture
    def checker(self):
        return DockerHubExistenceChecker()

    def test_build_url(self, checker):
        url = checker.build_url(DockerHubArtifactRegistry("folioorg"), ModuleDefinition("mod-users", "19.2.0"))
        assert url == "https://hub.docker.com/v2/repositories/folioorg/mod-users/tags/19.2.0"

    @patch("artifacts.base.send_with_retry")
    def test_found(self, mock_send, checker):
        mock_send.return_value = make_response(200)
        assert checker.exists(ModuleDefinition("mod-users", "19.2.0"), DockerHubArtifactRegistry("folioorg"))

    @patch("artifacts.base.send_with_retry")
    def test_missing(self, mock_send, checker):
        mock_send.return_value = make_response(404)
        assert not checker.exists(ModuleDefinition("mod-users", "19.2.0"), DockerHubArtifactRegistry("folioorg"))

    @patch("artifacts.base.send_with_retry")
    def test_server_error_is_infrastructure(self, mock_send, checker):
        mock_send.return_value = make_response(503)
        with pytest.raises(ApplicationGeneratorError) as exc_info:
            checker.exists(ModuleDefinition("mod-users", "19.2.0"), DockerHubArtifactRegistry("folioorg"))
        assert exc_info.value.category == ErrorCategory.INFRASTRUCTURE
        assert exc_info.value.errors[0].http_status_code == 503


class TestFolioNpmExistenceChecker:
    @pytest.fixture
    def checker(self):
        return FolioNpmExistenceChecker()

    @patch("artifacts.base.send_with_retry")
    def test_version_listed(self, mock_send, checker):
        mock_send.return_value = make_response(200, json.dumps({"versions": {"11.0.0": {}}}))
        assert checker.exists(ModuleDefinition("folio_users", "11.0.0"), FolioNpmArtifactRegistry("npm-folio"))
        assert mock_send.call_args.args[1] == "https://repository.folio.org/repository/npm-folio/@folio/users"

    @patch("artifacts.base.send_with_retry")
    def test_version_not_listed(self, mock_send, checker):
        mock_send.return_value = make_response(200, json.dumps({"versions": {"10.0.0": {}}}))
        assert not checker.exists(ModuleDefinition("folio_users", "11.0.0"), FolioNpmArtifactRegistry("npm-folio"))

    @patch("artifacts.base.send_with_retry")
    def test_package_missing(self, mock_send, checker):
        mock_send.return_value = make_response(404)
        assert not checker.exists(ModuleDefinition("folio_users", "11.0.0"), FolioNpmArtifactRegistry("npm-folio"))


class TestArtifactExistenceCheckerFacade:
    def test_dispatches_by_registry_type(self):
        docker = MagicMock(spec=DockerHubExistenceChecker)
        docker.registry_type = DockerHubExistenceChecker().registry_type
        docker.module_type = ModuleType.BE
        docker.exists.return_value = True
        facade = ArtifactExistenceCheckerFacade([docker])

        module = ModuleDefinition("mod-users", "1.0.0")
        assert facade.exists(module, DockerHubArtifactRegistry("folioorg"), ModuleType.BE)
        docker.exists.assert_called_once()

    def test_module_type_mismatch(self):
        facade = ArtifactExistenceCheckerFacade([DockerHubExistenceChecker()])
        assert not facade.exists(ModuleDefinition("folio_users", "1.0.0"), DockerHubArtifactRegistry("x"), ModuleType.UI)

    def test_missing_checker(self):
        facade = ArtifactExistenceCheckerFacade([])
        assert not facade.exists(ModuleDefinition("folio_users", "1.0.0"), FolioNpmArtifactRegistry("x"), ModuleType.UI)
