"""Shared pytest fixtures for qiita-sync tests."""

from __future__ import annotations

from pathlib import Path
from typing import Any

import pytest

from qiita_sync.config import Config
from qiita_sync.sync.models import RemoteResponse
from qiita_sync.sync.store import MappingStore

ITEM_ID = "1c57bd07cf0eb8ae807e"
OTHER_ITEM_ID = "09dac6e4340b85e35be4"

_ENV_VARS = (
    "QIITA_ACCESS_TOKEN",
    "QIITA_API_BASE_URL",
    "QIITA_TIMEOUT",
    "MAPPING_FILEPATH",
    "STRICT",
    "MATCH_STRATEGY",
    "ARTICLE_ROOT",
    "QIITA_SYNC_DEBUG",
    "QIITA_SYNC_CONFIG",
    "LOG_LEVEL",
)


def pytest_addoption(parser):
    """Add custom CLI options for test filtering."""
    parser.addoption(
        "--run-live",
        action="store_true",
        default=False,
        help="Run tests that call the real Qiita API",
    )


def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line(
        "markers", "live: mark test as calling the real Qiita API"
    )


def pytest_collection_modifyitems(config, items):
    """Skip live tests unless --run-live is passed."""
    if config.getoption("--run-live"):
        return
    skip_live = pytest.mark.skip(reason="need --run-live option to run")
    for item in items:
        if "live" in item.keywords:
            item.add_marker(skip_live)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch, tmp_path):
    """Keep the developer's environment and config files out of tests."""
    for name in _ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("HOME", str(tmp_path / "home"))


@pytest.fixture
def mapping_file(tmp_path: Path) -> Path:
    return tmp_path / "mapping.txt"


@pytest.fixture
def store(mapping_file: Path) -> MappingStore:
    return MappingStore(mapping_file)


@pytest.fixture
def mock_config(mapping_file: Path, tmp_path: Path) -> Config:
    """Create a Config instance pointing at a temporary mapping file."""
    return Config(
        access_token="test-token",
        api_base_url="https://qiita.example.com",
        mapping_filepath=str(mapping_file),
        strict=False,
        article_root=str(tmp_path),
    )


@pytest.fixture
def header() -> dict[str, Any]:
    return {
        "title": "Heroku postdeploy runs only once",
        "topics": ["Heroku", "Rails"],
        "published": True,
    }


class FakeQiitaClient:
    """Minimal QiitaClient replacement recording every call.

    ``create_response`` / ``update_response`` are returned as-is.
    """

    def __init__(
        self,
        create_response: RemoteResponse | None = None,
        update_response: RemoteResponse | None = None,
    ) -> None:
        self.create_response = create_response or RemoteResponse(
            success=True,
            status_code=201,
            body=f'{{"id": "{ITEM_ID}"}}',
            item_id=ITEM_ID,
            url=f"https://qiita.com/user/items/{ITEM_ID}",
        )
        self.update_response = update_response or RemoteResponse(
            success=True, status_code=200, body="{}"
        )
        self.create_calls: list[dict] = []
        self.update_calls: list[tuple[str, dict]] = []

    @property
    def calls(self) -> int:
        return len(self.create_calls) + len(self.update_calls)

    def create_item(self, body: dict) -> RemoteResponse:
        self.create_calls.append(body)
        return self.create_response

    def update_item(self, item_id: str, body: dict) -> RemoteResponse:
        self.update_calls.append((item_id, body))
        return self.update_response

    def close(self) -> None:
        pass


@pytest.fixture
def fake_client() -> FakeQiitaClient:
    return FakeQiitaClient()
