"""Split Markdown articles into a YAML header and a body.

Articles start with a YAML block fenced by ``---`` lines::

    ---
    title: Heroku postdeploy runs only once
    topics:
      - Heroku
    published: true
    ---
    Article body...
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

import yaml

from qiita_sync.errors import InvalidHeaderError

FENCE = "---"


def split_front_matter(text: str) -> tuple[dict[str, Any], str]:
    """Return ``(header, body)`` for a Markdown document.

    Raises:
        InvalidHeaderError: If the document has no fenced header, the
            header is not valid YAML, or it is not a mapping.
    """
    text = text.lstrip("\ufeff")
    lines = text.splitlines(keepends=True)
    if not lines or lines[0].rstrip() != FENCE:
        raise InvalidHeaderError("Article has no YAML header")

    for index in range(1, len(lines)):
        if lines[index].rstrip() == FENCE:
            raw_header = "".join(lines[1:index])
            body = "".join(lines[index + 1 :])
            break
    else:
        raise InvalidHeaderError("Article YAML header is not terminated")

    try:
        header = yaml.safe_load(raw_header)
    except yaml.YAMLError as exc:
        raise InvalidHeaderError(
            f"Article YAML header is not valid YAML: {exc}"
        ) from exc

    if not isinstance(header, dict):
        raise InvalidHeaderError("Article YAML header must be a mapping")

    return header, body.lstrip("\n")


def read_article(path: Path) -> tuple[dict[str, Any], str]:
    """Read *path* as UTF-8 and split it with ``split_front_matter``.

    Raises:
        InvalidHeaderError: If the file is not valid UTF-8 or its header
            is invalid.
        OSError: If the file cannot be read.
    """
    try:
        text = path.read_text(encoding="utf-8")
    except UnicodeDecodeError as exc:
        raise InvalidHeaderError(
            f"Article {path} is not valid UTF-8: {exc}"
        ) from exc
    return split_front_matter(text)
