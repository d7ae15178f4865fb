"""
Summary statistics and terminal output for a completed load test run.
Provides the human-readable summary block and the CSV export rows.
"""

from collections import Counter
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence, Tuple

from tabulate import tabulate

from simulator.models import Result
from simulator.sink import FileSink

SUMMARY_TITLE = "LOAD TEST SUMMARY"


@dataclass(frozen=True)
class RunStats:
    duration_s: float = 0.0
    memory_start_mb: float = 0.0
    memory_end_mb: float = 0.0


@dataclass(frozen=True)
class RunSummary:
    total: int
    successful: int
    failed: int
    success_rate: float
    avg_load_time_ms: float
    profile_usage: Dict[str, int] = field(default_factory=dict)
    failures: Tuple[Result, ...] = ()


def summarize(results: Sequence[Result]) -> RunSummary:
    """
    Pure function of the Result set. Average load time covers successful
    sessions only and is 0 when none succeeded.
    """
    successful = [r for r in results if r.success]
    failed = [r for r in results if not r.success]
    total = len(results)

    success_rate = (len(successful) / total * 100) if total else 0.0
    avg_load = (sum(r.load_time_ms for r in successful) / len(successful)) if successful else 0.0

    usage = Counter(r.profile_name for r in results)

    return RunSummary(
        total=total,
        successful=len(successful),
        failed=len(failed),
        success_rate=success_rate,
        avg_load_time_ms=avg_load,
        profile_usage=dict(sorted(usage.items())),
        failures=tuple(sorted(failed, key=lambda r: r.user_id)),
    )


def result_rows(results: Sequence[Result]) -> List[list]:
    """One row per Result ordered by user id, matching the results.csv header."""
    rows = []
    for r in sorted(results, key=lambda r: r.user_id):
        rows.append([
            r.user_id,
            "true" if r.success else "false",
            r.load_time_ms,
            r.error_message or "",
            r.profile_name,
            (r.screenshot_path or "") if r.success else "",
        ])
    return rows


def format_summary(summary: RunSummary, target_url: str, stats: Optional[RunStats] = None,
                   results_path: Optional[str] = None, output_dir: Optional[str] = None) -> str:
    lines = [
        "",
        "=" * 30,
        SUMMARY_TITLE,
        "=" * 30,
        f"Website:             {target_url}",
        f"Total users tested:  {summary.total}",
        f"Successful:          {summary.successful} ({summary.success_rate:.2f}%)",
        f"Failed:              {summary.failed}",
        f"Average load time:   {summary.avg_load_time_ms:.2f} ms",
    ]

    if stats is not None:
        lines.append(f"Duration:            {stats.duration_s:.2f} seconds")
        lines.append(f"Harness memory:      {stats.memory_start_mb:.2f} MB -> {stats.memory_end_mb:.2f} MB")

    lines.append("")
    lines.append("--- Profile Usage ---")
    usage_rows = [[name, count] for name, count in summary.profile_usage.items()]
    lines.append(tabulate(usage_rows, headers=["Profile", "Users"], tablefmt="simple"))

    if summary.failures:
        lines.append("")
        lines.append("Failed users:")
        failed_rows = [[r.user_id, r.error_message or "", r.profile_name] for r in summary.failures]
        lines.append(tabulate(failed_rows, headers=["User", "Error", "Profile"], tablefmt="grid"))

    if results_path:
        lines.append("")
        lines.append(f"Detailed results saved to: {results_path}")
    if output_dir:
        lines.append(f"Screenshots saved in: {output_dir}")
    lines.append("=" * 30)
    return "\n".join(lines)


class Reporter:
    """
    FLOW: Receives the complete Result set -> Summarizes -> Writes results.csv once ->
    Prints the summary block, also when the export fails.
    """

    def __init__(self, sink: FileSink, out=print):
        self.sink = sink
        self.out = out

    def report(self, results: Sequence[Result], target_url: str,
               stats: Optional[RunStats] = None) -> Tuple[RunSummary, str]:
        summary = summarize(results)
        results_path = None
        try:
            results_path = self.sink.write_results(result_rows(results))
        finally:
            self.out(format_summary(summary, target_url, stats, results_path, str(self.sink.output_dir)))
        return summary, results_path
