from __future__ import annotations
from typing import Any, Dict, List, Optional

from bbunify.batch import BatchResult, FileOutcome


def _trim(s: str, width: int) -> str:
    return s if len(s) <= width else ("…" + s[-(width - 1):] if width > 1 else s[:width])


def _outcome_to_dict(o: FileOutcome) -> Dict[str, Any]:
    return {
        "source": str(o.source),
        "output": str(o.output) if o.output is not None else None,
        "total": o.total,
        "kept": o.kept,
        "dropped": o.dropped,
        "ok": o.ok,
        "error": o.error,
    }


def format_outcome_table(
    outcomes: List[FileOutcome],
    *,
    max_rows: int = 50,
    col_widths: Optional[Dict[str, int]] = None,
) -> str:
    """
    Pretty-print one row per file.

    Columns:
      SOURCE | OUTPUT | TOTAL | KEPT | DROPPED | STATUS
    """
    widths = {
        "src": 32,
        "out": 32,
        "total": 8,
        "kept": 8,
        "dropped": 8,
        "status": 6,
    }
    if col_widths:
        widths.update(col_widths)

    header = (
        f"{'SOURCE':<{widths['src']}} | {'OUTPUT':<{widths['out']}} | "
        f"{'TOTAL':>{widths['total']}} | {'KEPT':>{widths['kept']}} | {'DROPPED':>{widths['dropped']}} | "
        f"{'STATUS':^{widths['status']}}"
    )
    sep = "-" * len(header)

    out_lines = [header, sep]
    shown = 0
    for o in outcomes:
        if shown >= max_rows:
            break
        out_s = "—" if o.output is None else _trim(str(o.output), widths["out"])
        status = "ok" if o.ok else "FAIL"
        out_lines.append(
            f"{_trim(str(o.source), widths['src']):<{widths['src']}} | {out_s:<{widths['out']}} | "
            f"{o.total:>{widths['total']}} | {o.kept:>{widths['kept']}} | {o.dropped:>{widths['dropped']}} | "
            f"{status:^{widths['status']}}"
        )
        shown += 1

    if shown < len(outcomes):
        out_lines.append(f"... ({len(outcomes) - shown} more rows)")
    return "\n".join(out_lines)


def build_json_report(result: BatchResult, *, reference_size: Optional[int] = None) -> Dict[str, Any]:
    report: Dict[str, Any] = {
        "ok": result.ok,
        "files": len(result.outcomes),
        "succeeded": len(result.succeeded),
        "failed": len(result.failed),
        "entries_kept": sum(o.kept for o in result.succeeded),
        "entries_dropped": sum(o.dropped for o in result.succeeded),
        "outcomes": [_outcome_to_dict(o) for o in result.outcomes],
    }
    if reference_size is not None:
        report["reference_size"] = reference_size
    return report


def format_text_report(
    result: BatchResult,
    *,
    reference_size: Optional[int] = None,
    max_rows: int = 50,
    title: Optional[str] = None,
) -> str:
    """
    Build a human-friendly text report with:
      - header + totals,
      - per-file table (first max_rows),
      - the full list of failures with their reasons.
    """
    summary = build_json_report(result, reference_size=reference_size)
    lines: List[str] = []
    hdr = title or "bbunify Report"
    lines.append("=" * 80)
    lines.append(hdr)
    lines.append("=" * 80)
    if reference_size is not None:
        lines.append(f"Valid blocks: {reference_size}")
    lines.append(f"Files:        {summary['files']} ({summary['succeeded']} ok, {summary['failed']} failed)")
    lines.append(f"Entries:      {summary['entries_kept']} kept, {summary['entries_dropped']} dropped")
    lines.append("")
    lines.append(format_outcome_table(result.outcomes, max_rows=max_rows))

    if result.failed:
        lines.append("")
        lines.append("Failures:")
        for o in result.failed:
            lines.append(f"  · {o.source}: {o.error}")

    lines.append("=" * 80)
    return "\n".join(lines)
