"""Tests for the publish orchestrator.

Exercises the full resolve -> decide -> remote call -> record sequence
against a temporary mapping file and an in-memory Qiita client.
"""

from __future__ import annotations

from pathlib import Path
from unittest.mock import MagicMock

import pytest
import requests
from conftest import ITEM_ID, OTHER_ITEM_ID, FakeQiitaClient

from qiita_sync.config import Config
from qiita_sync.errors import (
    InvalidHeaderError,
    InvalidIdentifierFormatError,
    InvalidModeError,
    InvalidPathError,
    ItemIDDuplicationError,
    ItemIDNotFoundError,
    RemoteAPIError,
    RemoteIdentifierMissingError,
    ValidationError,
)
from qiita_sync.sync.models import RemoteResponse, SyncAction
from qiita_sync.sync.publisher import Publisher
from qiita_sync.sync.store import MappingStore

PATH = "articles/foo.md"


def _publisher(
    config: Config, client: FakeQiitaClient, **overrides
) -> Publisher:
    for key, value in overrides.items():
        setattr(config, key, value)
    return Publisher(config, client=client)


def _lines(mapping_file: Path) -> list[str]:
    return mapping_file.read_text(encoding="utf-8").splitlines()


# ---------------------------------------------------------------------------
# Scenarios
# ---------------------------------------------------------------------------


class TestCreate:
    def test_create_on_empty_store_records_mapping(
        self, mock_config, fake_client, header, mapping_file
    ):
        result = _publisher(mock_config, fake_client).publish(
            "body", header, "create", PATH
        )

        assert result.action == SyncAction.CREATE
        assert result.item_id == ITEM_ID
        assert result.recorded is True
        assert len(fake_client.create_calls) == 1
        assert mapping_file.read_bytes() == (
            b"articles/foo.md, 1c57bd07cf0eb8ae807e\n"
        )

    def test_create_ignores_existing_mapping(
        self, mock_config, fake_client, header, mapping_file
    ):
        mapping_file.write_text(f"{PATH}, {OTHER_ITEM_ID}\n", encoding="utf-8")
        _publisher(mock_config, fake_client).publish(
            "body", header, "create", PATH
        )
        assert len(fake_client.create_calls) == 1
        assert not fake_client.update_calls

    def test_create_body_has_tweet_flag(
        self, mock_config, fake_client, header
    ):
        _publisher(mock_config, fake_client).publish(
            "body", header, "create", PATH
        )
        body = fake_client.create_calls[0]
        assert body["tweet"] is True
        assert body["private"] is False
        assert body["tags"] == [{"name": "Heroku"}, {"name": "Rails"}]


class TestUpdate:
    def test_update_uses_mapped_id_and_leaves_store_unchanged(
        self, mock_config, fake_client, header, mapping_file
    ):
        mapping_file.write_text(f"{PATH}, {ITEM_ID}\n", encoding="utf-8")

        result = _publisher(mock_config, fake_client).publish(
            "body", header, "update", PATH
        )

        assert result.action == SyncAction.UPDATE
        assert result.item_id == ITEM_ID
        assert result.recorded is False
        assert fake_client.update_calls[0][0] == ITEM_ID
        assert "tweet" not in fake_client.update_calls[0][1]
        assert _lines(mapping_file) == [f"{PATH}, {ITEM_ID}"]

    def test_update_lenient_falls_back_to_create(
        self, mock_config, fake_client, header, mapping_file
    ):
        result = _publisher(mock_config, fake_client, strict=False).publish(
            "body", header, "update", PATH
        )
        assert result.action == SyncAction.CREATE
        assert len(fake_client.create_calls) == 1
        assert _lines(mapping_file) == [f"{PATH}, {ITEM_ID}"]

    def test_update_strict_fails_without_remote_call(
        self, mock_config, fake_client, header, mapping_file
    ):
        with pytest.raises(ItemIDNotFoundError):
            _publisher(mock_config, fake_client, strict=True).publish(
                "body", header, "update", PATH
            )
        assert fake_client.calls == 0
        assert mapping_file.read_text(encoding="utf-8") == ""

    def test_update_with_duplicate_mapping_fails(
        self, mock_config, fake_client, header, mapping_file
    ):
        mapping_file.write_text(
            f"{PATH}, {ITEM_ID}\n{PATH}.bak, {OTHER_ITEM_ID}\n",
            encoding="utf-8",
        )
        with pytest.raises(ItemIDDuplicationError):
            _publisher(mock_config, fake_client).publish(
                "body", header, "update", PATH
            )
        assert fake_client.calls == 0


class TestRemoteFailures:
    def test_empty_id_in_create_response(
        self, mock_config, header, mapping_file
    ):
        client = FakeQiitaClient(
            create_response=RemoteResponse(
                success=True, status_code=201, body='{"id": ""}', item_id=""
            )
        )
        with pytest.raises(RemoteIdentifierMissingError) as exc_info:
            _publisher(mock_config, client).publish(
                "body", header, "create", PATH
            )
        assert exc_info.value.path == PATH
        assert mapping_file.read_text(encoding="utf-8") == ""

    def test_malformed_id_in_create_response(
        self, mock_config, header, mapping_file
    ):
        client = FakeQiitaClient(
            create_response=RemoteResponse(
                success=True, status_code=201, item_id="not-an-id"
            )
        )
        with pytest.raises(InvalidIdentifierFormatError):
            _publisher(mock_config, client).publish(
                "body", header, "create", PATH
            )
        assert mapping_file.read_text(encoding="utf-8") == ""

    def test_non_success_response_raises_with_context(
        self, mock_config, header, mapping_file
    ):
        failure = RemoteResponse(
            success=False, status_code=403, body='{"message": "Forbidden"}'
        )
        client = FakeQiitaClient(create_response=failure)

        with pytest.raises(RemoteAPIError) as exc_info:
            _publisher(mock_config, client).publish(
                "body", header, "create", PATH
            )

        error = exc_info.value
        assert error.action == SyncAction.CREATE
        assert error.path == PATH
        assert error.response is failure
        assert "403" in str(error)
        assert mapping_file.read_text(encoding="utf-8") == ""

    def test_failed_update_is_not_retried_as_create(
        self, mock_config, header, mapping_file
    ):
        mapping_file.write_text(f"{PATH}, {ITEM_ID}\n", encoding="utf-8")
        client = FakeQiitaClient(
            update_response=RemoteResponse(success=False, status_code=404)
        )
        with pytest.raises(RemoteAPIError):
            _publisher(mock_config, client).publish(
                "body", header, "update", PATH
            )
        assert len(client.update_calls) == 1
        assert not client.create_calls

    def test_transport_error_becomes_remote_api_error(
        self, mock_config, header
    ):
        client = MagicMock()
        client.create_item.side_effect = requests.ConnectionError("boom")

        with pytest.raises(RemoteAPIError) as exc_info:
            Publisher(mock_config, client=client).publish(
                "body", header, "create", PATH
            )
        assert exc_info.value.response is None
        assert "boom" in str(exc_info.value)


class TestValidation:
    def test_invalid_mode_rejected_before_network(
        self, mock_config, fake_client, header
    ):
        with pytest.raises(InvalidModeError):
            _publisher(mock_config, fake_client).publish(
                "body", header, "delete", PATH
            )
        assert fake_client.calls == 0

    def test_invalid_header_rejected_before_network(
        self, mock_config, fake_client
    ):
        with pytest.raises(InvalidHeaderError):
            _publisher(mock_config, fake_client).publish(
                "body", {"title": "No topics", "published": True}, "create", PATH
            )
        assert fake_client.calls == 0

    @pytest.mark.parametrize("mode", ["create", "update"])
    @pytest.mark.parametrize(
        "path", ["", "articles/my post.md", "a.md\nb.md", "articles/a.md,"]
    )
    def test_unstorable_path_rejected_before_network(
        self, mock_config, fake_client, header, mapping_file, mode, path
    ):
        with pytest.raises(InvalidPathError):
            _publisher(mock_config, fake_client).publish(
                "body", header, mode, path
            )
        assert fake_client.calls == 0
        assert _lines(mapping_file) == []

    def test_created_path_reads_back_as_unique(
        self, mock_config, fake_client, header
    ):
        publisher = _publisher(mock_config, fake_client)
        publisher.publish("body", header, "create", "articles/日本語.md")

        result = publisher.publish(
            "body", header, "update", "articles/日本語.md"
        )

        assert result.action == SyncAction.UPDATE
        assert fake_client.update_calls[0][0] == ITEM_ID

    def test_store_created_even_when_validation_fails(
        self, mock_config, fake_client, mapping_file
    ):
        with pytest.raises(InvalidHeaderError):
            _publisher(mock_config, fake_client).publish(
                "body", {}, "create", PATH
            )
        assert mapping_file.exists()


# ---------------------------------------------------------------------------
# publish_file
# ---------------------------------------------------------------------------


class TestPublishFile:
    def test_uses_path_relative_to_article_root(
        self, mock_config, fake_client, tmp_path, mapping_file
    ):
        article = tmp_path / "articles" / "foo.md"
        article.parent.mkdir()
        article.write_text(
            "---\ntitle: Foo\ntopics:\n  - Python\npublished: false\n---\n# Foo\n",
            encoding="utf-8",
        )

        result = _publisher(mock_config, fake_client).publish_file(
            article, "create"
        )

        assert result.path == "articles/foo.md"
        assert fake_client.create_calls[0]["body"] == "# Foo\n"
        assert fake_client.create_calls[0]["private"] is True
        assert _lines(mapping_file) == [f"articles/foo.md, {ITEM_ID}"]

    def test_file_outside_root_rejected(
        self, mock_config, fake_client, tmp_path
    ):
        outside = tmp_path.parent / "elsewhere.md"
        publisher = _publisher(
            mock_config, fake_client, article_root=str(tmp_path / "articles")
        )
        with pytest.raises(ValidationError):
            publisher.mapping_key(outside)


def test_default_collaborators_built_from_config(mock_config):
    publisher = Publisher(mock_config)
    assert isinstance(publisher.store, MappingStore)
    assert str(publisher.store.path) == mock_config.mapping_filepath
    assert publisher.engine.strict is False
