"""Identity resolution: find the Qiita item id recorded for an article path.

``IdentityResolver.resolve()`` re-reads the mapping file on every call
and classifies the lines matching a path:

=================  ==========================================================
``ABSENT``         no line matches
``DUPLICATE``      more than one line matches (well-formed or not)
``MALFORMED``      one match, but not exactly ``<path>, <id>``
``INVALID_FORMAT`` one match, two fields, id is not 20 lowercase hex chars
``UNIQUE``         one match, two fields, valid id
=================  ==========================================================

Matching uses the configured ``MatchStrategy``.  ``PREFIX`` (the default)
matches every line that *begins with* the path, which is what existing
mapping files were written against: a path that is a literal prefix of
another recorded path (``a.md`` vs ``a.md.bak``) therefore resolves as
``DUPLICATE`` or ``MALFORMED``.  ``EXACT`` compares the first field of
the line, minus its trailing comma, to the path.
"""

from __future__ import annotations

import logging

from qiita_sync.errors import InvalidPathError
from qiita_sync.sync.models import Classification, MatchStrategy
from qiita_sync.sync.store import MappingStore
from qiita_sync.validators import is_valid_item_id, validate_path

logger = logging.getLogger(__name__)


def line_matches(
    line: str,
    path: str,
    strategy: MatchStrategy = MatchStrategy.PREFIX,
) -> bool:
    """Return True if the mapping *line* refers to *path*."""
    if strategy == MatchStrategy.EXACT:
        fields = line.split(maxsplit=1)
        return bool(fields) and fields[0].rstrip(",") == path
    return line.startswith(path)


def classify(matches: list[str]) -> Classification:
    """Classify the mapping lines that matched a single path."""
    if not matches:
        return Classification.absent()

    if len(matches) != 1:
        return Classification.duplicate(tuple(matches))

    line = matches[0]
    fields = line.split()
    if len(fields) != 2:
        return Classification.malformed(line)

    item_id = fields[-1]
    if not is_valid_item_id(item_id):
        return Classification.invalid_format(line)

    return Classification.unique(item_id, line)


class IdentityResolver:
    """Classify the mapping state of article paths.

    Args:
        store: Mapping store to read from.  Never written to.
        strategy: Line matching strategy.
    """

    def __init__(
        self,
        store: MappingStore,
        strategy: MatchStrategy = MatchStrategy.PREFIX,
    ) -> None:
        self.store = store
        self.strategy = MatchStrategy(strategy)

    def resolve(self, path: str) -> Classification:
        """Classify the mapping for *path* from the live file contents.

        Raises:
            InvalidPathError: If *path* could never be stored as a key;
                an empty prefix would match every line.
            StoreUnavailableError: If the mapping file cannot be read.
        """
        is_valid, message = validate_path(path)
        if not is_valid:
            raise InvalidPathError(message)

        matches = [
            line
            for line in self.store.read_all()
            if line_matches(line, path, self.strategy)
        ]
        classification = classify(matches)
        logger.debug(
            "Resolved %s -> %s (%d matching lines)",
            path,
            classification.kind.value,
            len(matches),
        )
        return classification
