# file: callscreen/io/report.py
"""
Screening report export helpers.

Reports are plain dictionaries (JSON-serializable) so the same structure can be
printed by the CLI, written to disk or handed to a host process.
"""

from __future__ import annotations

import csv
import json
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Iterable, Mapping, Sequence

from callscreen import __version__
from callscreen.screening.engine import ScreeningResult
from callscreen.screening.options import Configuration

CSV_FIELDS = ["row_index", "number", "e164", "verdict", "matched_by", "error"]


def utc_now_iso() -> str:
    return datetime.now(tz=timezone.utc).isoformat()


def build_report(
    results: Sequence[ScreeningResult],
    *,
    config: Configuration,
    home_region: str | None,
) -> dict[str, Any]:
    """Bundle decisions with the configuration snapshot they were made under."""

    return {
        "metadata": {
            "tool": "callscreen",
            "version": __version__,
            "generated_at": utc_now_iso(),
        },
        "home_region": home_region,
        "configuration": config.to_dict(),
        "results": [r.to_dict() for r in results],
    }


def export_json(report: Mapping[str, Any], path: Path) -> None:
    """Write a report to disk as pretty-printed JSON."""

    path.write_text(json.dumps(report, indent=2, sort_keys=True), encoding="utf-8")


def _safe_str(value: Any) -> str:
    if value is None:
        return ""
    return str(value)


def _iter_rows(results: Iterable[Mapping[str, Any]]) -> Iterable[dict[str, str]]:
    for idx, item in enumerate(results, start=1):
        yield {
            "row_index": str(idx),
            "number": _safe_str(item.get("number")),
            "e164": _safe_str(item.get("e164")),
            "verdict": "allow" if item.get("allowed") else "silence",
            "matched_by": _safe_str(item.get("matched_by")),
            "error": _safe_str(item.get("error")),
        }


def export_csv(report: Mapping[str, Any], path: Path) -> None:
    """Export the decisions of a report as one CSV row each."""

    results = report.get("results")
    if not isinstance(results, list):
        results = []

    with path.open("w", newline="", encoding="utf-8") as f:
        writer = csv.DictWriter(f, fieldnames=CSV_FIELDS)
        writer.writeheader()
        for row in _iter_rows(r for r in results if isinstance(r, dict)):
            writer.writerow(row)
