"""Report formatting for CLI output.

- ``format_publish_result`` -- one line per published article.
- ``format_classification`` -- resolver output for ``resolve``.
- ``format_diagnostics`` -- mapping file health report for ``check``.
- ``diagnostics_to_json`` -- structured dict for ``check --json``.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from .models import ClassificationKind, SyncAction

if TYPE_CHECKING:
    from .models import Classification, PublishResult, StoreDiagnostics

_PROBLEM_LABELS = {
    "malformed": "Malformed lines",
    "invalid_id": "Invalid item ids",
    "duplicate": "Duplicate paths",
    "prefix_overlap": "Paths that prefix another path",
}


def format_publish_result(result: PublishResult) -> str:
    """Format a single publish outcome."""
    verb = "Created" if result.action == SyncAction.CREATE else "Updated"
    line = f"{verb} {result.path} -> {result.item_id}"
    if result.url:
        line += f" ({result.url})"
    return line


def format_classification(path: str, classification: Classification) -> str:
    """Format resolver output for one path."""
    if classification.kind == ClassificationKind.UNIQUE:
        return f"{path}: {classification.item_id}"
    line = f"{path}: {classification.kind.value}"
    for match in classification.matches:
        line += f"\n  {match}"
    return line


def format_diagnostics(diagnostics: StoreDiagnostics) -> str:
    """Format a mapping file health report as human-readable text.

    Sections are only included when they contain at least one issue.
    """
    lines: list[str] = [
        f"Mapping file: {diagnostics.mapping_file}",
        f"Records: {diagnostics.total_lines}",
    ]

    if diagnostics.ok:
        lines.append("No problems found.")
        return "\n".join(lines)

    lines.append(f"Problems: {len(diagnostics.issues)}")
    lines.append("")

    for problem, label in _PROBLEM_LABELS.items():
        issues = [i for i in diagnostics.issues if i.problem == problem]
        if not issues:
            continue
        lines.append(f"{label}:")
        for issue in issues:
            lines.append(f"  line {issue.line_number}: {issue.line}")
        lines.append("")

    lines.append(
        "The mapping file is append-only; fix these lines by hand."
    )
    return "\n".join(lines)


def diagnostics_to_json(diagnostics: StoreDiagnostics) -> dict:
    """Return a JSON-serialisable dict for a health report."""
    return {
        "mapping_file": diagnostics.mapping_file,
        "total_lines": diagnostics.total_lines,
        "ok": diagnostics.ok,
        "issues": [issue.model_dump() for issue in diagnostics.issues],
    }
