from __future__ import annotations

from ..models.read_result import ReadResult

"""Summary line rendering.

Format:
SUMMARY sheets={n} rows={rows} failed_rows={failed} elapsed_sec={elapsed} throughput_rps={rps}
"""

__all__ = [
    "render_summary_line",
]


def _format_number(value: float) -> str:
    # avoid scientific notation and a trailing ".0"
    if value == 0:
        return "0"
    if value == int(value):
        return str(int(value))
    if value < 0.01:
        return f"{value:.6f}".rstrip("0").rstrip(".")
    return str(value)


def render_summary_line(result: ReadResult) -> str:
    """Render the SUMMARY line of a workbook read.

    Examples:
        >>> from datetime import datetime, timezone
        >>> start = datetime(2023, 1, 1, 10, 0, 0, tzinfo=timezone.utc)
        >>> end = datetime(2023, 1, 1, 10, 0, 2, tzinfo=timezone.utc)
        >>> render_summary_line(ReadResult("a.xlsx", start, end, 2.0))
        'SUMMARY sheets=0 rows=0 failed_rows=0 elapsed_sec=2 throughput_rps=0'
    """
    return (
        f"SUMMARY sheets={len(result.sheets)} "
        f"rows={result.total_rows} "
        f"failed_rows={result.failed_rows} "
        f"elapsed_sec={_format_number(result.elapsed_seconds)} "
        f"throughput_rps={_format_number(result.throughput_rows_per_sec)}"
    )
