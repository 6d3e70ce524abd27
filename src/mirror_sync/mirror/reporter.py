"""Run report formatting functions.

- ``format_org_report`` -- summary for one organization.
- ``format_run_report`` -- full post-run summary over all organizations.
- ``report_to_json`` -- structured dict for ``--json`` output.
"""

from __future__ import annotations

from .models import MirrorAction, OrgReport, RunReport

# ------------------------------------------------------------------
# Human-readable report
# ------------------------------------------------------------------


def format_org_report(report: OrgReport) -> str:
    """Format one organization's results as human-readable text.

    Sections are only included when they contain at least one result.
    Up-to-date repositories are summarised by count only.

    Args:
        report: The organization report.

    Returns:
        Multi-line formatted string.
    """
    lines: list[str] = []

    header = f"Organization '{report.organization}' -> {report.output_dir}"
    if report.dry_run:
        header += " (DRY RUN)"
    lines.append(header)

    if report.error:
        lines.append(f"  Skipped: {report.error}")
        return "\n".join(lines)

    lines.append(f"  {report.summary()}")

    if report.dry_run:
        for r in report.results:
            marker = r.action.value if r.ok else f"invalid ({r.error})"
            lines.append(f"  [{marker}] {r.name}")
        return "\n".join(lines)

    if report.cloned:
        lines.append("  Cloned:")
        for r in report.cloned:
            lines.append(f"    {r.name}")

    if report.pulled:
        lines.append("  Pulled:")
        for r in report.pulled:
            lines.append(f"    {r.name}")

    if report.recovered:
        lines.append("  Recovered (diverged mirror backed up):")
        for r in report.recovered:
            lines.append(f"    {r.name} -> {r.backup_path}")

    if report.failed:
        lines.append("  Failed:")
        for r in report.failed:
            lines.append(f"    {r.name} ({r.action.value}): {r.error}")

    if report.up_to_date:
        lines.append(f"  Up to date: {len(report.up_to_date)} repositories")

    return "\n".join(lines)


def format_run_report(report: RunReport) -> str:
    """Format a complete run report as human-readable text.

    Args:
        report: The completed run report.

    Returns:
        Multi-line formatted string.
    """
    lines: list[str] = []

    header = "Mirror sync report"
    if report.dry_run:
        header += " (DRY RUN)"
    lines.append(header)
    lines.append(f"Started: {report.started_at}")
    if report.completed_at:
        lines.append(f"Completed: {report.completed_at}")
    lines.append("")

    for org in report.organizations:
        lines.append(format_org_report(org))
        lines.append("")

    lines.append(
        f"Total: {len(report.results)} repositories in "
        f"{len(report.organizations)} organizations, "
        f"{len(report.failed)} failed, "
        f"{len(report.skipped_organizations)} organizations skipped"
    )

    return "\n".join(lines).rstrip()


# ------------------------------------------------------------------
# JSON output
# ------------------------------------------------------------------


def report_to_json(report: RunReport) -> dict:
    """Convert a run report to a structured dict for JSON serialisation.

    Args:
        report: The run report.

    Returns:
        Dict with run info, per-organization counts, and per-repository
        results.
    """
    organizations = []
    for org in report.organizations:
        results_list = []
        for r in org.results:
            entry: dict = {
                "name": r.name,
                "path": str(r.path),
                "state": r.state.value,
                "action": r.action.value,
            }
            if r.backup_path:
                entry["backup_path"] = str(r.backup_path)
            if r.error:
                entry["error"] = r.error
            results_list.append(entry)

        org_entry: dict = {
            "organization": org.organization,
            "output_dir": str(org.output_dir),
            "started_at": org.started_at,
            "completed_at": org.completed_at,
            "counts": {
                "total": len(org.results),
                "cloned": len(org.cloned),
                "pulled": len(org.pulled),
                "up_to_date": len(org.up_to_date),
                "recovered": len(org.recovered),
                "failed": len(org.failed),
            },
            "results": results_list,
        }
        if org.dry_run:
            org_entry["counts"]["would_clone"] = len(org.planned(MirrorAction.CLONE))
            org_entry["counts"]["would_pull"] = len(org.planned(MirrorAction.PULL))
        if org.error:
            org_entry["error"] = org.error
        organizations.append(org_entry)

    return {
        "dry_run": report.dry_run,
        "started_at": report.started_at,
        "completed_at": report.completed_at,
        "organizations": organizations,
    }
