"""Publish one article to Qiita and keep the mapping file consistent.

``Publisher.publish()`` drives a single invocation end to end:

1. Ensures the mapping file exists.
2. Validates the mode, the article path and the header (no network on
   failure).
3. Decides create vs. update via the ``DecisionEngine``.
4. Sends the request through ``QiitaClient``.
5. Raises ``RemoteAPIError`` unless Qiita reports success.
6. For creations, records ``(path, new id)`` in the mapping file, raising
   ``RemoteIdentifierMissingError`` when the response has no id.

Errors propagate unchanged; nothing is retried and no alternative action
is attempted after a failure.

Concurrency precondition: the mapping file has no locking.  Invocations
sharing a mapping file must run one at a time (e.g. a single CI job).
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any

import requests

from qiita_sync.config import Config
from qiita_sync.core.client import QiitaClient, build_item_body
from qiita_sync.errors import (
    InvalidHeaderError,
    InvalidModeError,
    InvalidPathError,
    RemoteAPIError,
    RemoteIdentifierMissingError,
    ValidationError,
)
from qiita_sync.frontmatter import read_article
from qiita_sync.sync.decision import DecisionEngine
from qiita_sync.sync.models import (
    Action,
    MatchStrategy,
    PublishResult,
    RemoteResponse,
    SyncAction,
    SyncMode,
)
from qiita_sync.sync.resolver import IdentityResolver
from qiita_sync.sync.store import MappingStore
from qiita_sync.validators import (
    validate_header,
    validate_mode,
    validate_path,
)

logger = logging.getLogger(__name__)


class Publisher:
    """Publish articles and record their Qiita item ids.

    Args:
        config: Runtime configuration (strict flag, mapping file,
            credentials).
        client: Qiita client; built from *config* when omitted.
        store: Mapping store; built from ``config.mapping_filepath`` when
            omitted.
    """

    def __init__(
        self,
        config: Config,
        client: QiitaClient | None = None,
        store: MappingStore | None = None,
    ) -> None:
        self.config = config
        self.client = client if client is not None else QiitaClient(config)
        self.store = (
            store
            if store is not None
            else MappingStore(Path(config.mapping_filepath))
        )
        self.resolver = IdentityResolver(
            self.store, MatchStrategy(config.match_strategy)
        )
        self.engine = DecisionEngine(self.resolver, strict=config.strict)

    # ------------------------------------------------------------------
    # Main entry point
    # ------------------------------------------------------------------

    def publish(
        self,
        content: str | bytes,
        header: dict[str, Any],
        mode: SyncMode | str,
        path: str,
    ) -> PublishResult:
        """Create or update the Qiita item for one article.

        Args:
            content: Article body (Markdown).
            header: Parsed YAML header (``title``, ``topics``, ``published``).
            mode: ``"create"`` or ``"update"``.
            path: Article path; the mapping file key.

        Returns:
            A ``PublishResult`` describing what was done.

        Raises:
            InvalidModeError, InvalidPathError, InvalidHeaderError: Bad
                input.
            MappingConsistencyError: Mapping file disagrees with *mode*.
            RemoteAPIError: Qiita did not report success.
            RemoteIdentifierMissingError: Create succeeded without an id.
            StoreUnavailableError: Mapping file unreadable/unwritable.
        """
        self.store.ensure_exists()

        mode_value = getattr(mode, "value", mode)
        is_valid, message = validate_mode(mode_value)
        if not is_valid:
            raise InvalidModeError(message)

        is_valid, message = validate_path(path)
        if not is_valid:
            raise InvalidPathError(message)

        is_valid, message = validate_header(header)
        if not is_valid:
            raise InvalidHeaderError(f"{message} ({path})")

        action = self.engine.decide(mode_value, path)
        response = self._send(action, content, header, path)

        if not response.success:
            raise RemoteAPIError(action.kind, path, response)

        if not action.is_create:
            logger.info("Updated %s (item %s)", path, action.item_id)
            return PublishResult(
                path=path,
                action=SyncAction.UPDATE,
                item_id=action.item_id,
                url=response.url,
                recorded=False,
            )

        if not response.item_id:
            raise RemoteIdentifierMissingError(path, response)

        self.store.append(path, response.item_id)
        logger.info("Created %s (item %s)", path, response.item_id)
        return PublishResult(
            path=path,
            action=SyncAction.CREATE,
            item_id=response.item_id,
            url=response.url,
            recorded=True,
        )

    def publish_file(
        self, file_path: Path | str, mode: SyncMode | str
    ) -> PublishResult:
        """Read a Markdown file with a YAML header and publish it.

        The mapping key is the file path relative to
        ``config.article_root``, using ``/`` separators.

        Raises:
            ValidationError: If the file lies outside the article root.
            InvalidHeaderError: If the header cannot be parsed.
        """
        file_path = Path(file_path)
        header, body = read_article(file_path)
        return self.publish(body, header, mode, self.mapping_key(file_path))

    def mapping_key(self, file_path: Path | str) -> str:
        """Return the mapping file key for *file_path*."""
        root = Path(self.config.article_root).resolve()
        resolved = Path(file_path).resolve()
        try:
            return resolved.relative_to(root).as_posix()
        except ValueError:
            raise ValidationError(
                f"{file_path} is outside the article root {root}"
            ) from None

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _send(
        self,
        action: Action,
        content: str | bytes,
        header: dict[str, Any],
        path: str,
    ) -> RemoteResponse:
        body = build_item_body(content, header, action.kind)
        try:
            if action.is_create:
                return self.client.create_item(body)
            return self.client.update_item(action.item_id, body)
        except requests.RequestException as exc:
            raise RemoteAPIError(
                action.kind,
                path,
                None,
                message=f"Qiita API request failed: {exc}",
            ) from exc
