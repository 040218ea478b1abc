"""Export of a multi-city run to JSON and Markdown.

Rows are listed by remote-work score (highest first) and marked within or
over the monthly budget using the sum of the extracted USD amounts.
"""

from __future__ import annotations

import datetime
import json
import logging
from collections.abc import Sequence
from pathlib import Path
from typing import Any

from cost_of_living.services.loop import AgentRunResult

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Rows
# ---------------------------------------------------------------------------


def summary_rows(results: Sequence[AgentRunResult], monthly_budget: float) -> list[dict[str, Any]]:
    """One flat row per city, ordered by remote-work score."""
    rows = []
    for result in results:
        analysis = result.analysis
        total = analysis.total_monthly_cost
        internet = analysis.category("internet")
        rows.append(
            {
                "city": analysis.city,
                "country": analysis.country,
                "remote_work_score": analysis.remote_work_score,
                "total_cost": total,
                "within_budget": total <= monthly_budget,
                "ppp_factor": analysis.ppp.factor,
                "confidence": analysis.overall_confidence,
                "data_quality": analysis.data_quality_score,
                "internet_speed": internet.speed_mbps if internet else None,
                "goals_met": analysis.goals_met,
                "passes": result.passes,
                "stopped_reason": result.stopped_reason.value,
            }
        )
    rows.sort(key=lambda row: row["remote_work_score"], reverse=True)
    return rows


# ---------------------------------------------------------------------------
# JSON
# ---------------------------------------------------------------------------


def run_to_dict(results: Sequence[AgentRunResult], monthly_budget: float) -> dict[str, Any]:
    return {
        "timestamp": datetime.datetime.now(datetime.timezone.utc).isoformat(),
        "monthly_budget_usd": monthly_budget,
        "cities_analyzed": len(results),
        "summary": summary_rows(results, monthly_budget),
        "cities": [r.to_dict() for r in results],
    }


def export_json(results: Sequence[AgentRunResult], path: str | Path, monthly_budget: float) -> Path:
    """Write the full run to *path* as JSON and return the path."""
    out = Path(path)
    out.parent.mkdir(parents=True, exist_ok=True)
    with open(out, "w", encoding="utf-8") as fh:
        json.dump(run_to_dict(results, monthly_budget), fh, indent=2, default=str)
    return out


# ---------------------------------------------------------------------------
# Markdown
# ---------------------------------------------------------------------------


def _money(value: float | None) -> str:
    return f"${value:,.0f}" if value else "n/a"


def render_markdown(results: Sequence[AgentRunResult], monthly_budget: float) -> str:
    """Render the run as a Markdown report."""
    rows = summary_rows(results, monthly_budget)
    within = sum(1 for row in rows if row["within_budget"])
    lines = [
        "# Cost of Living Analysis",
        "",
        f"Generated: {datetime.datetime.now().strftime('%Y-%m-%d %H:%M')}",
        f"Monthly budget: {_money(monthly_budget)} | "
        f"Cities analysed: {len(rows)} | Within budget: {within}",
        "",
        "## Overview",
        "",
        "| City | Remote-work score | Monthly cost | Budget | PPP factor | Confidence | Goals met |",
        "|---|---:|---:|---|---:|---:|---|",
    ]
    for row in rows:
        lines.append(
            f"| {row['city']}, {row['country']} | {row['remote_work_score']}/100 "
            f"| {_money(row['total_cost'])} "
            f"| {'within' if row['within_budget'] else 'over'} "
            f"| {row['ppp_factor']:.3f} | {row['confidence']:.1f}% "
            f"| {'yes' if row['goals_met'] else 'no'} |"
        )

    ranked = sorted(results, key=lambda r: r.analysis.remote_work_score, reverse=True)
    for result in ranked:
        analysis = result.analysis
        lines += ["", f"## {analysis.city}, {analysis.country}", ""]
        if analysis.summary:
            lines += [analysis.summary, ""]
        if analysis.degraded:
            lines += [f"_Analysis degraded: {analysis.error}_", ""]
        lines += [
            "| Category | USD | Confidence | Strategy | Source |",
            "|---|---:|---:|---|---|",
        ]
        for cost in analysis.cost_categories:
            lines.append(
                f"| {cost.display_name} | {_money(cost.usd_amount)} | {cost.confidence}% "
                f"| {cost.strategy_used} | {cost.source or ''} |"
            )
        lines += [
            "",
            f"Passes: {result.passes} ({result.stopped_reason.value}), "
            f"data availability: {analysis.data_availability}, "
            f"source reliability: {analysis.source_reliability}",
        ]
    return "\n".join(lines) + "\n"


def save_markdown_report(
    results: Sequence[AgentRunResult],
    data_dir: str | Path,
    monthly_budget: float,
) -> Path:
    """Write a timestamped Markdown report into *data_dir*."""
    stamp = datetime.datetime.now().strftime("%Y%m%d_%H%M%S")
    out = Path(data_dir) / f"cost_analysis_{stamp}.md"
    out.parent.mkdir(parents=True, exist_ok=True)
    out.write_text(render_markdown(results, monthly_budget), encoding="utf-8")
    logger.info("Markdown report written to %s", out)
    return out
