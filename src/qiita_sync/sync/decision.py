"""Decide whether a publish request creates or updates a Qiita item.

``decide()`` is a pure function over ``(mode, strict, classification)``;
``DecisionEngine`` wires it to an ``IdentityResolver`` and only consults
the mapping file when the mode actually needs an item id.

Decision table::

    mode    strict  classification   result
    create  -       -                Create
    update  -       UNIQUE(id)       Update(id)
    update  true    ABSENT           ItemIDNotFoundError
    update  false   ABSENT           Create
    update  any     DUPLICATE        ItemIDDuplicationError
    update  any     MALFORMED        ItemIDNotMatchedError
    update  any     INVALID_FORMAT   InvalidItemIDError

The lenient ``update -> Create`` fallback lets CI publish an article the
first time it shows up in an update set; strict mode turns that into an
error instead.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from qiita_sync.errors import (
    InvalidItemIDError,
    ItemIDDuplicationError,
    ItemIDNotFoundError,
    ItemIDNotMatchedError,
    UnsupportedModeError,
)
from qiita_sync.sync.models import (
    Action,
    Classification,
    ClassificationKind,
    SyncMode,
)

if TYPE_CHECKING:
    from qiita_sync.sync.resolver import IdentityResolver

logger = logging.getLogger(__name__)


def _coerce_mode(mode: SyncMode | str) -> SyncMode:
    try:
        return SyncMode(mode)
    except ValueError:
        raise UnsupportedModeError(
            f"Unsupported mode {mode!r}: only 'create' and 'update' are handled"
        ) from None


def decide(
    mode: SyncMode | str,
    strict: bool,
    classification: Classification | None,
    path: str = "",
) -> Action:
    """Map a requested mode and a lookup result to a concrete action.

    Args:
        mode: Requested mode.
        strict: Fail instead of falling back to create when an update
            target is not mapped.
        classification: Resolver output for the path.  Ignored (and may
            be ``None``) for ``create``.
        path: Article path, used in error messages only.

    Returns:
        The ``Action`` to perform.

    Raises:
        UnsupportedModeError: Mode is neither create nor update.
        ItemIDNotFoundError: Strict update of an unmapped path.
        ItemIDDuplicationError: Several mapping lines match.
        ItemIDNotMatchedError: The single matching line is malformed.
        InvalidItemIDError: The single matching line has a bad id.
    """
    sync_mode = _coerce_mode(mode)

    if sync_mode == SyncMode.CREATE:
        return Action.create()

    if classification is None:
        raise ValueError("update decisions require a classification")

    match classification.kind:
        case ClassificationKind.UNIQUE:
            return Action.update(classification.item_id)
        case ClassificationKind.ABSENT:
            if strict:
                raise ItemIDNotFoundError(path)
            logger.info(
                "No mapping for %s; publishing as a new item (strict mode off)",
                path,
            )
            return Action.create()
        case ClassificationKind.DUPLICATE:
            raise ItemIDDuplicationError(path)
        case ClassificationKind.MALFORMED:
            raise ItemIDNotMatchedError(path)
        case ClassificationKind.INVALID_FORMAT:
            raise InvalidItemIDError(path)
        case _:
            raise ValueError(
                f"Unknown classification: {classification.kind!r}"
            )


class DecisionEngine:
    """Resolve an article's identity and decide the action for it.

    Args:
        resolver: Identity resolver for the mapping file.
        strict: Strict policy flag (see ``decide``).
    """

    def __init__(self, resolver: IdentityResolver, strict: bool) -> None:
        self.resolver = resolver
        self.strict = strict

    def decide(self, mode: SyncMode | str, path: str) -> Action:
        """Return the action for *path*; reads the mapping file only for updates."""
        sync_mode = _coerce_mode(mode)
        classification = None
        if sync_mode == SyncMode.UPDATE:
            classification = self.resolver.resolve(path)
        action = decide(sync_mode, self.strict, classification, path)
        logger.debug(
            "Decision for %s (mode=%s, strict=%s): %s",
            path,
            sync_mode.value,
            self.strict,
            action.kind.value,
        )
        return action
