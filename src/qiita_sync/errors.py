"""Exception hierarchy for qiita-sync.

Every failure raised by the sync core derives from ``QiitaSyncError`` so
callers (the CLI, CI wrappers) can catch one type and still inspect the
concrete category:

- ``ValidationError`` -- bad header, mode, path or item id; raised before any
  remote call.
- ``StoreUnavailableError`` -- the mapping file cannot be read.
- ``MappingConsistencyError`` -- the mapping file disagrees with the
  requested operation.
- ``RemoteAPIError`` -- Qiita did not report success.
- ``RemoteIdentifierMissingError`` -- Qiita reported success but the
  created item id cannot be recorded.

Nothing here retries or recovers; errors propagate to the caller as-is.
"""

from __future__ import annotations

from typing import Any


class QiitaSyncError(Exception):
    """Base class for all qiita-sync errors."""


# ---------------------------------------------------------------------------
# Validation errors
# ---------------------------------------------------------------------------


class ValidationError(QiitaSyncError):
    """Input rejected before any remote call was made."""


class InvalidHeaderError(ValidationError):
    """The article's YAML header is missing or has the wrong shape."""


class InvalidModeError(ValidationError):
    """The requested mode is not a recognised value."""


class InvalidPathError(ValidationError):
    """The article path cannot be stored as a mapping file key."""


class UnsupportedModeError(ValidationError):
    """The mode is not one the decision engine knows how to handle."""


class InvalidIdentifierFormatError(ValidationError):
    """An item id about to be written is not 20 lowercase hex characters."""


class MissingIdentifierError(ValidationError):
    """An item id about to be written is empty or absent."""


# ---------------------------------------------------------------------------
# Store errors
# ---------------------------------------------------------------------------


class StoreUnavailableError(QiitaSyncError):
    """The mapping file could not be read or created."""


# ---------------------------------------------------------------------------
# Mapping-consistency errors
# ---------------------------------------------------------------------------


class MappingConsistencyError(QiitaSyncError):
    """The mapping file is inconsistent with the requested operation.

    Attributes:
        path: Article path that was being resolved.
    """

    default_message = "Mapping file is inconsistent"

    def __init__(self, path: str, message: str | None = None) -> None:
        self.path = path
        super().__init__(f"{message or self.default_message}: {path}")


class ItemIDNotFoundError(MappingConsistencyError):
    default_message = "No Qiita item id is mapped to the article"


class ItemIDDuplicationError(MappingConsistencyError):
    default_message = "More than one Qiita item id is mapped to the article"


class ItemIDNotMatchedError(MappingConsistencyError):
    default_message = "Mapping line is not in '<path>, <item id>' form"


class InvalidItemIDError(MappingConsistencyError):
    default_message = "Mapped Qiita item id is not 20 lowercase hex characters"


# ---------------------------------------------------------------------------
# Remote errors
# ---------------------------------------------------------------------------


class RemoteAPIError(QiitaSyncError):
    """Qiita did not report success for a create or update call.

    Attributes:
        action: The action that was attempted (``create`` / ``update``).
        path: Article path.
        response: The raw ``RemoteResponse`` (``None`` when the request
            never produced one, e.g. a connection error).
    """

    def __init__(
        self,
        action: Any,
        path: str,
        response: Any = None,
        message: str | None = None,
    ) -> None:
        self.action = action
        self.path = path
        self.response = response

        if message is None:
            if response is not None:
                message = (
                    f"Qiita API returned HTTP {response.status_code}: "
                    f"{response.body[:500]}"
                )
            else:
                message = "Qiita API request failed"
        action_value = getattr(action, "value", action)
        super().__init__(f"{message} (action={action_value}, path={path})")


class RemoteIdentifierMissingError(QiitaSyncError):
    """A successful create response carried no usable item id."""

    def __init__(self, path: str, response: Any = None) -> None:
        self.path = path
        self.response = response
        super().__init__(
            f"Qiita created an item for {path} but returned no item id; "
            "the mapping file was not updated"
        )
