from reporting.aggregator import (
    Reporter,
    RunStats,
    RunSummary,
    format_summary,
    result_rows,
    summarize,
)
