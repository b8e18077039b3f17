from __future__ import annotations

from ..models.run_result import RunResult

"""SUMMARY line rendering.

Format:
SUMMARY subjects={n} enriched={e} degraded={d} written={w} elapsed_sec={s}
"""


def _format_seconds(value: float) -> str:
    if value == 0:
        return "0"
    if value == int(value):
        return str(int(value))
    if value < 0.01:
        # avoid scientific notation
        return f"{value:.6f}".rstrip("0").rstrip(".")
    return f"{value:.2f}".rstrip("0").rstrip(".")


def render_summary_line(result: RunResult) -> str:
    """Render the SUMMARY line for a finished run.

    Examples:
        >>> from datetime import datetime, timezone
        >>> from pathlib import Path
        >>> t = datetime(2024, 1, 1, tzinfo=timezone.utc)
        >>> r = RunResult(3, 2, 1, 3, Path("boats.xlsx"), "Sheet1", t, t, 2.0)
        >>> render_summary_line(r)
        'SUMMARY subjects=3 enriched=2 degraded=1 written=3 elapsed_sec=2'
    """
    return (
        f"SUMMARY subjects={result.total_subjects} "
        f"enriched={result.enriched} "
        f"degraded={result.degraded} "
        f"written={result.written_rows} "
        f"elapsed_sec={_format_seconds(result.elapsed_seconds)}"
    )
