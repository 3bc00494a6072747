import json
import os
from dataclasses import asdict, dataclass
from datetime import datetime, timezone
from typing import List, Sequence, Tuple

from lighthouse import AuditResult

SUMMARY_FILENAME = "audit-summary.json"


@dataclass(frozen=True)
class RunSummary:
    total: int
    succeeded: int
    failed: int
    elapsed: float
    failures: Tuple[Tuple[str, str], ...] = ()


def first_line(text: str) -> str:
    for line in (text or "").splitlines():
        if line.strip():
            return line.strip()
    return ""


def summarize(results: Sequence[AuditResult], started: float, finished: float) -> RunSummary:
    failures = tuple((r.target, first_line(r.error or "")) for r in results if not r.succeeded)
    return RunSummary(
        total=len(results),
        succeeded=len(results) - len(failures),
        failed=len(failures),
        elapsed=round(max(0.0, finished - started), 2),
        failures=failures,
    )


def format_duration(seconds: float) -> str:
    minutes, secs = divmod(seconds, 60)
    if minutes:
        return f"{int(minutes)}m {secs:.1f}s"
    return f"{secs:.1f}s"


def format_summary(summary: RunSummary) -> str:
    lines = [
        "📊 Audit summary",
        f"   Total:     {summary.total}",
        f"   Succeeded: {summary.succeeded}",
        f"   Failed:    {summary.failed}",
        f"   Duration:  {format_duration(summary.elapsed)}",
    ]
    if summary.failures:
        lines.append("")
        lines.append("❌ Failed targets:")
        for target, error in summary.failures:
            lines.append(f"   - {target}: {error}")
    return "\n".join(lines)


def write_summary_json(summary: RunSummary, results: List[AuditResult], path: str) -> str:
    doc = {
        "generated_at": datetime.now(timezone.utc).isoformat(),
        "total": summary.total,
        "succeeded": summary.succeeded,
        "failed": summary.failed,
        "elapsed_sec": summary.elapsed,
        "failures": [{"target": t, "error": e} for t, e in summary.failures],
        "results": [asdict(r) for r in results],
    }
    os.makedirs(os.path.dirname(path) or ".", exist_ok=True)
    with open(path, "w", encoding="utf-8") as f:
        json.dump(doc, f, indent=2)
    return path
