"""Tests for the command line interface, with the network layer stubbed out."""

import json
import time
from datetime import datetime, timezone

import pytest
import responses
from typer.testing import CliRunner

from copctl import cli
from copctl.errors import MalformedResponseError, ServerRejectedError
from copctl.model import DownloadResult, FeatureCollection
from copctl.store import ConfigStore, StoredConfig

runner = CliRunner()


class FakeCatalogue:
    def __init__(self, collection=None, error=None):
        self.collection = collection or FeatureCollection(features=[])
        self.error = error
        self.calls = []

    def search(self, params, token):
        self.calls.append(("search", params, None))
        if self.error:
            raise self.error
        return self.collection

    def list_items(self, params, token, collection):
        self.calls.append(("list", params, collection))
        if self.error:
            raise self.error
        return self.collection


@pytest.fixture
def token(make_token):
    return make_token(access_token="abc123")


@pytest.fixture
def stub_network(monkeypatch, token):
    """Replace authentication and catalogue access, returns a setter for the catalogue."""

    def _install(catalogue: FakeCatalogue) -> FakeCatalogue:
        monkeypatch.setattr(cli, "_ensure_token", lambda session: token)
        monkeypatch.setattr(cli, "_catalogue", lambda session: catalogue)
        return catalogue

    return _install


class TestSearch:
    def test_dates_are_expanded(self, stub_network, feature):
        catalogue = stub_network(FakeCatalogue(FeatureCollection(features=[feature])))

        result = runner.invoke(cli.app, ["search", "--from", "2024-01-01", "--to", "2024-01-31", "--limit", "5"])

        assert result.exit_code == 0, result.output
        _, params, _ = catalogue.calls[0]
        assert params.start == datetime(2024, 1, 1, tzinfo=timezone.utc)
        assert params.end == datetime(2024, 1, 31, 23, 59, 59, tzinfo=timezone.utc)
        assert params.limit == 5
        assert result.output.startswith("features:\n")
        assert f"id: {feature.id}" in result.output

    def test_no_features(self, stub_network):
        stub_network(FakeCatalogue())

        result = runner.invoke(cli.app, ["search", "--ids", "missing"])

        assert result.exit_code == 0
        assert "No features found." in result.output

    def test_library_error_exits_with_status_one(self, stub_network):
        stub_network(FakeCatalogue(error=MalformedResponseError("HTTP 401: unexpected body", body="{}")))

        result = runner.invoke(cli.app, ["search"])

        assert result.exit_code == 1
        assert "Error: HTTP 401" in result.output

    def test_invalid_date_is_a_usage_error(self, stub_network):
        catalogue = stub_network(FakeCatalogue())

        result = runner.invoke(cli.app, ["search", "--from", "last tuesday"])

        assert result.exit_code == 2
        assert catalogue.calls == []

    def test_limit_out_of_range(self, stub_network):
        stub_network(FakeCatalogue())

        result = runner.invoke(cli.app, ["search", "--limit", "70000"])

        assert result.exit_code == 2

    def test_placeholder_credentials_are_refused(self, monkeypatch):
        monkeypatch.setenv("COPERNICUS_USER", "FAKE_USER")
        monkeypatch.setenv("COPERNICUS_PASS", "FAKE_PASS")

        result = runner.invoke(cli.app, ["search"])

        assert result.exit_code == 1
        assert "template value" in result.output


class TestTokenCache:
    @responses.activate
    def test_expired_token_is_refreshed_and_stored(
        self, monkeypatch, tmp_path, copernicus_config, make_token, token_payload, feature_document
    ):
        monkeypatch.setattr("copctl.store.typer.get_app_dir", lambda name: str(tmp_path / name))
        monkeypatch.setenv("COPERNICUS_USER", "user@example.com")
        monkeypatch.setenv("COPERNICUS_PASS", "secret")
        store = ConfigStore()
        expired = make_token(acquired_at=int(time.time()) - 1000, expires_in=600, refresh_expires_in=3600)
        store.save(StoredConfig(auth_token=expired))
        token_call = responses.post(copernicus_config["token_url"], json=token_payload)
        search_call = responses.get(
            copernicus_config["search_url"], json={"type": "FeatureCollection", "features": [feature_document]}
        )

        result = runner.invoke(cli.app, ["search"])

        assert result.exit_code == 0, result.output
        assert token_call.call_count == 1
        assert "grant_type=refresh_token" in token_call.calls[0].request.body
        assert "refresh_token=cached-refresh-token" in token_call.calls[0].request.body
        assert search_call.calls[0].request.headers["Authorization"] == "Bearer new-access-token"
        stored = json.loads(store.path.read_text())
        assert stored["auth_token"]["access_token"] == "new-access-token"
        assert store.load().auth_token.refresh_token == "new-refresh-token"

    @responses.activate
    def test_valid_token_is_reused_without_login(
        self, monkeypatch, tmp_path, copernicus_config, make_token, feature_document
    ):
        monkeypatch.setattr("copctl.store.typer.get_app_dir", lambda name: str(tmp_path / name))
        monkeypatch.setenv("COPERNICUS_USER", "user@example.com")
        monkeypatch.setenv("COPERNICUS_PASS", "secret")
        ConfigStore().save(StoredConfig(auth_token=make_token(acquired_at=int(time.time()))))
        search_call = responses.get(
            copernicus_config["search_url"], json={"type": "FeatureCollection", "features": [feature_document]}
        )

        result = runner.invoke(cli.app, ["search"])

        assert result.exit_code == 0, result.output
        assert len(responses.calls) == 1
        assert search_call.calls[0].request.headers["Authorization"] == "Bearer cached-access-token"


class TestList:
    def test_default_collection(self, stub_network):
        catalogue = stub_network(FakeCatalogue())

        result = runner.invoke(cli.app, ["list", "--bbox", "1,2,3,4"])

        assert result.exit_code == 0
        kind, params, collection = catalogue.calls[0]
        assert kind == "list"
        assert collection == "SENTINEL-2"
        assert params.bbox == "1,2,3,4"

    def test_explicit_collection(self, stub_network):
        catalogue = stub_network(FakeCatalogue())

        runner.invoke(cli.app, ["list", "--collection", "SENTINEL-1"])

        assert catalogue.calls[0][2] == "SENTINEL-1"


class TestDownload:
    def test_downloads_every_feature(self, monkeypatch, stub_network, feature, tmp_path):
        stub_network(FakeCatalogue(FeatureCollection(features=[feature])))
        fetched = []

        def fake_fetch(self, feature, token, output_dir):
            fetched.append((feature.id, output_dir))
            return DownloadResult(destination_path=output_dir / f"{feature.id}.zip", bytes_written=42)

        monkeypatch.setattr("copctl.downloaders.http.HTTPDownloader.fetch", fake_fetch)
        output_dir = tmp_path / "products"

        result = runner.invoke(cli.app, ["download", "--ids", str(feature.id), "-o", str(output_dir)])

        assert result.exit_code == 0, result.output
        assert output_dir.is_dir()
        assert fetched == [(feature.id, output_dir)]
        assert "downloaded:" in result.output
        assert "(42 bytes)" in result.output

    def test_unknown_ids(self, stub_network, tmp_path):
        stub_network(FakeCatalogue())

        result = runner.invoke(cli.app, ["download", "--ids", "nope", "-o", str(tmp_path)])

        assert result.exit_code == 1
        assert "no products found" in result.output

    def test_download_failure(self, monkeypatch, stub_network, feature, tmp_path):
        stub_network(FakeCatalogue(FeatureCollection(features=[feature])))

        def failing_fetch(self, feature, token, output_dir):
            raise ServerRejectedError(403, "https://download.example.com/product")

        monkeypatch.setattr("copctl.downloaders.http.HTTPDownloader.fetch", failing_fetch)

        result = runner.invoke(cli.app, ["download", "--ids", str(feature.id), "-o", str(tmp_path)])

        assert result.exit_code == 1
        assert "HTTP 403" in result.output

    def test_ids_are_required(self):
        result = runner.invoke(cli.app, ["download"])

        assert result.exit_code == 2
