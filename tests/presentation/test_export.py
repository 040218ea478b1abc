"""Tests for JSON/Markdown export and the console dashboard."""

from __future__ import annotations

import io
import json
from pathlib import Path

import pytest
from rich.console import Console

from cost_of_living.domain.entities import AgentMemory, AgentState
from cost_of_living.domain.enums import StopReason
from cost_of_living.domain.values import City, CityAnalysis, CostCategoryResult, PPPAnalysis
from cost_of_living.presentation.console import ConsoleDashboard
from cost_of_living.presentation.export import (
    export_json,
    render_markdown,
    save_markdown_report,
    summary_rows,
)
from cost_of_living.services.loop import AgentRunResult


def _run(name: str, country: str, score: int, rent: float, goals_met: bool = True) -> AgentRunResult:
    analysis = CityAnalysis(
        city=name,
        country=country,
        cost_categories=(
            CostCategoryResult(
                "rent_1br", "1BR Apartment Rent", 90, usd_amount=rent,
                source="numbeo.com", strategy_used="multi_source",
            ),
            CostCategoryResult(
                "internet", "Internet Speed & Cost", 80, usd_amount=40, speed_mbps=120,
                strategy_used="multi_source",
            ),
        ),
        ppp=PPPAnalysis(original={"rent_1br": rent}, adjusted={"rent_1br": rent * 0.5}, factor=0.5),
        remote_work_score=score,
        overall_confidence=85.0,
        goals_met=goals_met,
        summary=f"{name} summary.",
    )
    return AgentRunResult(
        city=City(name, country),
        analysis=analysis,
        state=AgentState(),
        memory=AgentMemory(),
        stopped_reason=StopReason.GOALS_MET if goals_met else StopReason.MAX_ITERATIONS,
        passes=1 if goals_met else 3,
        started_at=100.0,
        completed_at=104.5,
    )


@pytest.fixture
def results() -> list[AgentRunResult]:
    return [
        _run("Berlin", "Germany", 55, 1500),
        _run("Lisbon", "Portugal", 72, 1100),
        _run("Bangkok", "Thailand", 81, 600, goals_met=False),
    ]


class TestSummaryRows:
    def test_ordered_by_score(self, results: list[AgentRunResult]) -> None:
        rows = summary_rows(results, 1200)
        assert [r["city"] for r in rows] == ["Bangkok", "Lisbon", "Berlin"]

    def test_budget_flag_uses_total_cost(self, results: list[AgentRunResult]) -> None:
        rows = {r["city"]: r for r in summary_rows(results, 1200)}
        assert rows["Lisbon"]["total_cost"] == pytest.approx(1140)
        assert rows["Lisbon"]["within_budget"]
        assert not rows["Berlin"]["within_budget"]
        assert rows["Bangkok"]["internet_speed"] == 120
        assert rows["Bangkok"]["stopped_reason"] == "max_iterations"


class TestExport:
    def test_json(self, results: list[AgentRunResult], tmp_path: Path) -> None:
        path = export_json(results, tmp_path / "out" / "run.json", 2000)
        data = json.loads(path.read_text(encoding="utf-8"))

        assert data["cities_analyzed"] == 3
        assert data["monthly_budget_usd"] == 2000
        assert data["summary"][0]["city"] == "Bangkok"
        assert data["cities"][0]["analysis"]["cost_categories"][0]["category"] == "rent_1br"
        assert data["cities"][0]["agent"]["elapsed_seconds"] == pytest.approx(4.5)

    def test_markdown(self, results: list[AgentRunResult]) -> None:
        text = render_markdown(results, 1200)

        assert text.startswith("# Cost of Living Analysis")
        assert "Within budget: 2" in text
        assert "| Lisbon, Portugal | 72/100 | $1,140 | within |" in text
        assert "## Bangkok, Thailand" in text
        assert "| 1BR Apartment Rent | $600 | 90% | multi_source | numbeo.com |" in text
        assert text.index("## Bangkok") < text.index("## Lisbon") < text.index("## Berlin")

    def test_markdown_keeps_duplicate_cities(self) -> None:
        first = _run("Lisbon", "Portugal", 72, 1100)
        second = _run("Lisbon", "Portugal", 60, 1300)
        text = render_markdown([first, second], 2000)

        assert text.count("## Lisbon, Portugal") == 2
        assert "| 1BR Apartment Rent | $1,100 |" in text
        assert "| 1BR Apartment Rent | $1,300 |" in text
        assert text.index("$1,100 | 90%") < text.index("$1,300 | 90%")

    def test_markdown_marks_degraded(self) -> None:
        run = _run("Bali", "Indonesia", 0, 0)
        degraded = AgentRunResult(
            city=run.city,
            analysis=CityAnalysis(city="Bali", country="Indonesia", error="No analysis produced"),
            state=run.state,
            memory=run.memory,
            stopped_reason=StopReason.MAX_ITERATIONS,
            passes=3,
        )
        text = render_markdown([degraded], 2000)
        assert "_Analysis degraded: No analysis produced_" in text
        assert "| Bali, Indonesia | 0/100 | n/a |" in text

    def test_markdown_file(self, results: list[AgentRunResult], tmp_path: Path) -> None:
        path = save_markdown_report(results, tmp_path, 2000)
        assert path.parent == tmp_path
        assert path.name.startswith("cost_analysis_")
        assert path.suffix == ".md"
        assert "## Lisbon, Portugal" in path.read_text(encoding="utf-8")


class TestConsoleDashboard:
    @staticmethod
    def _dashboard() -> tuple[ConsoleDashboard, io.StringIO]:
        buffer = io.StringIO()
        console = Console(file=buffer, width=160, color_system=None)
        return ConsoleDashboard(console=console), buffer

    def test_run_table(self, results: list[AgentRunResult]) -> None:
        dashboard, buffer = self._dashboard()
        dashboard.print_run(results, 1200)
        output = buffer.getvalue()

        assert "Bangkok, Thailand" in output
        assert "81/100" in output
        assert "over" in output
        assert "within" in output

    def test_empty_run(self) -> None:
        dashboard, buffer = self._dashboard()
        dashboard.print_run([], 1200)
        assert "No cities were analysed successfully." in buffer.getvalue()

    def test_city_breakdown(self, results: list[AgentRunResult]) -> None:
        dashboard, buffer = self._dashboard()
        dashboard.print_city(results[1])
        output = buffer.getvalue()

        assert "Lisbon, Portugal" in output
        assert "$1,100.00" in output
        assert "550.00" in output
        assert "Lisbon summary." in output
        assert "passes: 1 (goals_met)" in output
