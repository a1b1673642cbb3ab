"""Pydantic models for the publish/sync core.

Defines the data contracts shared by the store, resolver, decision
engine and publisher:

- ``SyncMode``: Requested operation (create / update).
- ``SyncAction``: Concrete operation chosen by the decision engine.
- ``MappingRecord``: One ``path -> item_id`` association.
- ``ClassificationKind`` / ``Classification``: Resolver output.
- ``Action``: Decision engine output.
- ``RemoteResponse``: What the Qiita client hands back.
- ``PublishResult``: Outcome of one successful publish.
- ``StoreIssue`` / ``StoreDiagnostics``: Mapping file health report.

All models are frozen (immutable).
"""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel


class SyncMode(str, Enum):
    """Operation requested by the caller."""

    CREATE = "create"
    UPDATE = "update"


class SyncAction(str, Enum):
    """Operation the publisher will actually perform."""

    CREATE = "create"
    UPDATE = "update"


class MatchStrategy(str, Enum):
    """How a mapping line is matched against an article path.

    ``PREFIX`` matches any line beginning with the path (compatible with
    existing mapping files); ``EXACT`` requires the path to be followed by
    the ``,`` separator.
    """

    PREFIX = "prefix"
    EXACT = "exact"


class MappingRecord(BaseModel):
    """A single ``path -> item_id`` association.

    Attributes:
        path: Article path relative to the article root.
        item_id: Qiita item id (20 lowercase hex characters).
    """

    path: str
    item_id: str

    model_config = {"frozen": True}

    def to_line(self) -> str:
        """Return the on-disk representation, without the newline."""
        return f"{self.path}, {self.item_id}"


class ClassificationKind(str, Enum):
    """Result categories of an identity lookup."""

    ABSENT = "absent"
    UNIQUE = "unique"
    DUPLICATE = "duplicate"
    MALFORMED = "malformed"
    INVALID_FORMAT = "invalid_format"


class Classification(BaseModel):
    """Identity resolver result for one path.

    Attributes:
        kind: The lookup category.
        item_id: The stored id; only set when ``kind`` is ``UNIQUE``.
        matches: Raw mapping lines that matched the path.
    """

    kind: ClassificationKind
    item_id: str | None = None
    matches: tuple[str, ...] = ()

    model_config = {"frozen": True}

    @classmethod
    def absent(cls) -> Classification:
        return cls(kind=ClassificationKind.ABSENT)

    @classmethod
    def unique(cls, item_id: str, line: str = "") -> Classification:
        return cls(
            kind=ClassificationKind.UNIQUE,
            item_id=item_id,
            matches=(line,) if line else (),
        )

    @classmethod
    def duplicate(cls, lines: tuple[str, ...] = ()) -> Classification:
        return cls(kind=ClassificationKind.DUPLICATE, matches=lines)

    @classmethod
    def malformed(cls, line: str = "") -> Classification:
        return cls(
            kind=ClassificationKind.MALFORMED,
            matches=(line,) if line else (),
        )

    @classmethod
    def invalid_format(cls, line: str = "") -> Classification:
        return cls(
            kind=ClassificationKind.INVALID_FORMAT,
            matches=(line,) if line else (),
        )


class Action(BaseModel):
    """Concrete action chosen by the decision engine.

    Attributes:
        kind: ``CREATE`` or ``UPDATE``.
        item_id: Target item id; set only for ``UPDATE``.
    """

    kind: SyncAction
    item_id: str | None = None

    model_config = {"frozen": True}

    @classmethod
    def create(cls) -> Action:
        return cls(kind=SyncAction.CREATE)

    @classmethod
    def update(cls, item_id: str) -> Action:
        return cls(kind=SyncAction.UPDATE, item_id=item_id)

    @property
    def is_create(self) -> bool:
        return self.kind == SyncAction.CREATE


class RemoteResponse(BaseModel):
    """Response from a Qiita create/update call.

    Attributes:
        success: True for any 2xx status.
        status_code: HTTP status code.
        body: Raw response body text.
        item_id: ``id`` field of the JSON body, if present.
        url: ``url`` field of the JSON body, if present.
    """

    success: bool
    status_code: int
    body: str = ""
    item_id: str | None = None
    url: str | None = None

    model_config = {"frozen": True}


class PublishResult(BaseModel):
    """Outcome of one successful publish.

    Attributes:
        path: Article path (mapping key).
        action: Action that was performed.
        item_id: Item id that was created or updated.
        url: Item URL reported by Qiita, if any.
        recorded: True if a new mapping line was appended.
    """

    path: str
    action: SyncAction
    item_id: str | None = None
    url: str | None = None
    recorded: bool = False

    model_config = {"frozen": True}


class StoreIssue(BaseModel):
    """A single problem found in the mapping file.

    Attributes:
        line_number: 1-based line number.
        line: Raw line text.
        problem: One of ``"malformed"``, ``"invalid_id"``, ``"duplicate"``,
            ``"prefix_overlap"``.
        path: Path field of the line, when one could be parsed.
    """

    line_number: int
    line: str
    problem: str
    path: str | None = None

    model_config = {"frozen": True}


class StoreDiagnostics(BaseModel):
    """Health report for a mapping file.

    Attributes:
        mapping_file: Path of the scanned file.
        total_lines: Number of non-empty lines scanned.
        issues: Problems found, in file order.
    """

    mapping_file: str
    total_lines: int = 0
    issues: list[StoreIssue] = []

    model_config = {"frozen": True}

    @property
    def ok(self) -> bool:
        return not self.issues

    @property
    def duplicates(self) -> list[StoreIssue]:
        return [i for i in self.issues if i.problem == "duplicate"]

    @property
    def malformed(self) -> list[StoreIssue]:
        return [i for i in self.issues if i.problem == "malformed"]

    @property
    def invalid_ids(self) -> list[StoreIssue]:
        return [i for i in self.issues if i.problem == "invalid_id"]

    @property
    def prefix_overlaps(self) -> list[StoreIssue]:
        return [i for i in self.issues if i.problem == "prefix_overlap"]
