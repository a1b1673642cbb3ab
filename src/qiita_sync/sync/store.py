"""Append-only mapping file that links article paths to Qiita item ids.

The file is plain UTF-8 text, one record per line::

    articles/heroku-postdeploy-runs-only-once.md, 1c57bd07cf0eb8ae807e
    articles/heroku-rails-mysql.md, 09dac6e4340b85e35be4

Key design choices:

* **Append-only** -- the store never rewrites, reorders or compacts
  existing lines.  Fixing a stale or duplicate entry is an out-of-band
  edit; ``diagnose()`` reports what needs fixing but never fixes it.
* **Validated writes** -- ``append()`` refuses ids that are empty or not
  20 lowercase hex characters, so everything this module writes can be
  read back as a unique, valid mapping.
* **Single writer** -- there is no file locking.  Callers must serialise
  invocations that share a mapping file (e.g. one CI job at a time).
"""

from __future__ import annotations

import logging
from collections import defaultdict
from collections.abc import Iterator
from pathlib import Path
from typing import IO

from qiita_sync.errors import (
    InvalidIdentifierFormatError,
    InvalidPathError,
    MissingIdentifierError,
    StoreUnavailableError,
)
from qiita_sync.sync.models import (
    MappingRecord,
    MatchStrategy,
    StoreDiagnostics,
    StoreIssue,
)
from qiita_sync.validators import is_valid_item_id, validate_path

logger = logging.getLogger(__name__)

SEPARATOR = ", "


def parse_line(line: str) -> MappingRecord | None:
    """Parse one mapping line into a ``MappingRecord``.

    Returns ``None`` when the line does not have exactly two
    whitespace-delimited fields.  The id is *not* validated here.
    """
    fields = line.split()
    if len(fields) != 2:
        return None
    return MappingRecord(path=fields[0].rstrip(","), item_id=fields[1])


class MappingStore:
    """Durable ``path -> item_id`` store backed by a flat text file.

    Args:
        path: Location of the mapping file.
    """

    def __init__(self, path: Path | str) -> None:
        self._path = Path(path)

    @property
    def path(self) -> Path:
        return self._path

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def ensure_exists(self) -> None:
        """Create the mapping file (and its parent directory) if missing.

        Idempotent: an existing file is never truncated or modified.

        Raises:
            StoreUnavailableError: If the file cannot be created.
        """
        if self._path.exists():
            return
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            self._path.touch(exist_ok=True)
        except OSError as exc:
            raise StoreUnavailableError(
                f"Cannot create mapping file {self._path}: {exc}"
            ) from exc
        logger.info("Created mapping file %s", self._path)

    # ------------------------------------------------------------------
    # Reading
    # ------------------------------------------------------------------

    def read_all(self) -> Iterator[str]:
        """Return a lazy iterator over the stored lines, in file order.

        Line terminators are stripped.  The file is opened eagerly so an
        unreadable store fails here rather than on first iteration.

        Raises:
            StoreUnavailableError: If the file cannot be opened.
        """
        try:
            fh = open(self._path, encoding="utf-8", newline="")
        except OSError as exc:
            raise StoreUnavailableError(
                f"Cannot read mapping file {self._path}: {exc}"
            ) from exc
        return self._iter_lines(fh)

    def _iter_lines(self, fh: IO[str]) -> Iterator[str]:
        with fh:
            try:
                for raw in fh:
                    yield raw.rstrip("\r\n")
            except (OSError, UnicodeDecodeError) as exc:
                raise StoreUnavailableError(
                    f"Cannot read mapping file {self._path}: {exc}"
                ) from exc

    def records(self) -> list[MappingRecord]:
        """Return every line that parses as a two-field record."""
        result: list[MappingRecord] = []
        for line in self.read_all():
            record = parse_line(line)
            if record is not None:
                result.append(record)
        return result

    # ------------------------------------------------------------------
    # Writing
    # ------------------------------------------------------------------

    def append(self, path: str, item_id: str | None) -> MappingRecord:
        """Append a ``"<path>, <item_id>"`` line to the mapping file.

        Args:
            path: Article path (the mapping key).
            item_id: Qiita item id returned by a successful create.

        Returns:
            The record that was written.

        Raises:
            MissingIdentifierError: If *item_id* is empty or ``None``.
            InvalidIdentifierFormatError: If *item_id* is not 20 lowercase
                hex characters.
            InvalidPathError: If *path* is empty or would not read back as
                one field (whitespace, trailing comma).
            StoreUnavailableError: If the file cannot be written.
        """
        if item_id is None or item_id == "":
            raise MissingIdentifierError(
                f"Refusing to record an empty item id for {path}"
            )
        if not is_valid_item_id(item_id):
            raise InvalidIdentifierFormatError(
                f"Refusing to record malformed item id {item_id!r} for {path}"
            )
        is_valid, message = validate_path(path)
        if not is_valid:
            raise InvalidPathError(message)

        record = MappingRecord(path=path, item_id=item_id)
        try:
            with open(
                self._path, "a", encoding="utf-8", newline="\n"
            ) as fh:
                fh.write(record.to_line() + "\n")
        except OSError as exc:
            raise StoreUnavailableError(
                f"Cannot write mapping file {self._path}: {exc}"
            ) from exc

        logger.info("Recorded mapping %s -> %s", path, item_id)
        return record

    # ------------------------------------------------------------------
    # Diagnostics
    # ------------------------------------------------------------------

    def diagnose(
        self, match_strategy: MatchStrategy = MatchStrategy.PREFIX
    ) -> StoreDiagnostics:
        """Scan the mapping file for entries that would break resolution.

        Reports, in file order:

        * ``malformed`` -- lines without exactly two fields.
        * ``invalid_id`` -- ids that are not 20 lowercase hex characters.
        * ``duplicate`` -- every line of a path recorded more than once.
        * ``prefix_overlap`` -- (prefix strategy only) lines whose path is
          a strict prefix of another recorded path, which makes the
          longer path's lookups ambiguous.

        Read-only; nothing is repaired.
        """
        lines = [
            (number, line)
            for number, line in enumerate(self.read_all(), start=1)
            if line.strip()
        ]

        issues: list[StoreIssue] = []
        by_path: dict[str, list[int]] = defaultdict(list)
        parsed: dict[int, MappingRecord] = {}

        for number, line in lines:
            record = parse_line(line)
            if record is None:
                issues.append(
                    StoreIssue(
                        line_number=number, line=line, problem="malformed"
                    )
                )
                continue
            parsed[number] = record
            by_path[record.path].append(number)
            if not is_valid_item_id(record.item_id):
                issues.append(
                    StoreIssue(
                        line_number=number,
                        line=line,
                        problem="invalid_id",
                        path=record.path,
                    )
                )

        raw_by_number = dict(lines)
        for path, numbers in by_path.items():
            if len(numbers) > 1:
                for number in numbers:
                    issues.append(
                        StoreIssue(
                            line_number=number,
                            line=raw_by_number[number],
                            problem="duplicate",
                            path=path,
                        )
                    )

        if match_strategy == MatchStrategy.PREFIX:
            paths = sorted(by_path)
            for path in paths:
                if any(
                    other != path and other.startswith(path)
                    for other in paths
                ):
                    for number in by_path[path]:
                        issues.append(
                            StoreIssue(
                                line_number=number,
                                line=raw_by_number[number],
                                problem="prefix_overlap",
                                path=path,
                            )
                        )

        issues.sort(key=lambda issue: issue.line_number)
        logger.debug(
            "Diagnosed %s: %d lines, %d issues",
            self._path,
            len(lines),
            len(issues),
        )
        return StoreDiagnostics(
            mapping_file=str(self._path),
            total_lines=len(lines),
            issues=issues,
        )
