"""Human readable run report."""

from typing import List, TextIO

from .results import RepositoryOutcome, RunReport


def _entry(outcome: RepositoryOutcome) -> str:
    if outcome.detail:
        return f"  - {outcome.path} ({outcome.detail})"
    return f"  - {outcome.path}"


def format_report(report: RunReport) -> str:
    """
    Render every non-empty category of the report.

    Returns:
        Report text, empty when nothing happened
    """
    lines: List[str] = []

    def section(title: str, entries: List[str]) -> None:
        if entries:
            lines.append(f"{title}: {len(entries)} repos")
            lines.extend(entries)

    section("Updated", [_entry(o) for o in report.updated])
    section("Cloned", [_entry(o) for o in report.cloned])
    section("Removed", [f"  - {path}" for path in report.removed])
    section("Skipped (uncommitted changes)", [_entry(o) for o in report.skipped_uncommitted])
    section("Skipped (non-default branch)", [_entry(o) for o in report.skipped_non_default])

    warnings = report.warnings
    if warnings:
        lines.append(f"Warnings: {len(warnings)}")
        lines.extend(f"  - {warning}" for warning in warnings)

    return "\n".join(lines) + "\n" if lines else ""


def print_report(report: RunReport, stream: TextIO) -> None:
    text = format_report(report)
    if text:
        stream.write(text)
        stream.flush()
