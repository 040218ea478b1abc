"""Rich console presentation of finished city analyses."""

from __future__ import annotations

import sys
from collections.abc import Sequence
from typing import Any

from rich.console import Console
from rich.table import Table

from cost_of_living.presentation.export import summary_rows
from cost_of_living.services.loop import AgentRunResult


def _confidence_colour(value: float) -> str:
    if value >= 75:
        return "green"
    if value >= 60:
        return "yellow"
    if value >= 50:
        return "orange3"
    return "red"


class ConsoleDashboard:
    """Console tables for a multi-city run.

    Parameters
    ----------
    file:
        Output stream.  Defaults to ``sys.stdout``.
    console:
        Pre-built ``rich`` console; overrides *file*.
    """

    def __init__(self, file: Any = None, console: Console | None = None) -> None:
        self._console = console or Console(file=file or sys.stdout)

    @property
    def console(self) -> Console:
        return self._console

    def print_run(self, results: Sequence[AgentRunResult], monthly_budget: float) -> None:
        """Print the per-city overview table."""
        if not results:
            self._console.print("[red]No cities were analysed successfully.[/red]")
            return

        table = Table(
            title=f"Cost of Living (budget ${monthly_budget:,.0f}/month)",
            show_header=True,
            header_style="bold cyan",
        )
        table.add_column("City", style="bold")
        table.add_column("Remote-work", justify="right")
        table.add_column("Monthly cost", justify="right")
        table.add_column("Budget", justify="center")
        table.add_column("PPP", justify="right")
        table.add_column("Confidence", justify="right")
        table.add_column("Passes", justify="right")
        table.add_column("Goals", justify="center")

        for row in summary_rows(results, monthly_budget):
            colour = _confidence_colour(row["confidence"])
            budget = "[green]within[/green]" if row["within_budget"] else "[red]over[/red]"
            table.add_row(
                f"{row['city']}, {row['country']}",
                f"{row['remote_work_score']}/100",
                f"${row['total_cost']:,.0f}",
                budget,
                f"{row['ppp_factor']:.3f}",
                f"[{colour}]{row['confidence']:.1f}%[/{colour}]",
                str(row["passes"]),
                "yes" if row["goals_met"] else "no",
            )
        self._console.print()
        self._console.print(table)
        self._console.print()

    def print_city(self, result: AgentRunResult) -> None:
        """Print one city's category breakdown and agent metadata."""
        analysis = result.analysis
        table = Table(
            title=f"{analysis.city}, {analysis.country}",
            show_header=True,
            header_style="bold cyan",
        )
        table.add_column("Category", style="bold")
        table.add_column("USD", justify="right")
        table.add_column("PPP-adjusted", justify="right")
        table.add_column("Confidence", justify="right")
        table.add_column("Strategy")

        for cost in analysis.cost_categories:
            colour = _confidence_colour(cost.confidence)
            adjusted = analysis.ppp.adjusted.get(cost.category)
            table.add_row(
                cost.display_name,
                f"${cost.usd_amount:,.2f}" if cost.has_usd_amount else "-",
                f"{adjusted:,.2f}" if adjusted else "-",
                f"[{colour}]{cost.confidence}%[/{colour}]",
                cost.strategy_used,
            )

        self._console.print()
        self._console.print(table)
        if analysis.summary:
            self._console.print(f"  {analysis.summary}")
        if analysis.degraded:
            self._console.print(f"  [red]Degraded:[/red] {analysis.error}")
        self._console.print(
            f"  [dim]remote-work score:[/dim] {analysis.remote_work_score}/100  "
            f"[dim]confidence:[/dim] {analysis.overall_confidence:.1f}%  "
            f"[dim]passes:[/dim] {result.passes} ({result.stopped_reason.value})  "
            f"[dim]errors:[/dim] {len(result.memory.errors)}  "
            f"[dim]elapsed:[/dim] {result.elapsed_seconds:.1f}s"
        )
        self._console.print()
