"""Identity resolution and mapping consistency for Qiita publishing.

Public API for deciding whether an article is created or updated on
Qiita, and for keeping the local ``path -> item id`` mapping file in
step with what was published.

Modules:

- ``store``     -- ``MappingStore``: append-only mapping file.
- ``resolver``  -- ``IdentityResolver``: classify a path's mapping lines.
- ``decision``  -- ``decide`` / ``DecisionEngine``: mode + policy + lookup
  -> action.
- ``publisher`` -- ``Publisher``: resolve, decide, call Qiita, record.
- ``models``    -- data contracts shared by the modules above.
- ``reporter``  -- text and JSON output for the CLI.

``Publisher`` is imported from ``qiita_sync.sync.publisher`` directly;
it depends on the HTTP client, which itself uses the models here.

Usage example
-------------
::

    from qiita_sync.config import load_config
    from qiita_sync.sync.publisher import Publisher

    publisher = Publisher(load_config())
    result = publisher.publish(
        content="# Hello",
        header={"title": "Hello", "topics": ["Python"], "published": True},
        mode="update",
        path="articles/hello.md",
    )
"""

from .decision import DecisionEngine, decide
from .models import (
    Action,
    Classification,
    ClassificationKind,
    MappingRecord,
    MatchStrategy,
    PublishResult,
    RemoteResponse,
    StoreDiagnostics,
    StoreIssue,
    SyncAction,
    SyncMode,
)
from .reporter import (
    diagnostics_to_json,
    format_classification,
    format_diagnostics,
    format_publish_result,
)
from .resolver import IdentityResolver
from .store import MappingStore

__all__ = [
    "Action",
    "Classification",
    "ClassificationKind",
    "DecisionEngine",
    "IdentityResolver",
    "MappingRecord",
    "MappingStore",
    "MatchStrategy",
    "PublishResult",
    "RemoteResponse",
    "StoreDiagnostics",
    "StoreIssue",
    "SyncAction",
    "SyncMode",
    "decide",
    "diagnostics_to_json",
    "format_classification",
    "format_diagnostics",
    "format_publish_result",
]
