"""Presentation layer: console tables and report export."""

from cost_of_living.presentation.console import ConsoleDashboard
from cost_of_living.presentation.export import (
    export_json,
    render_markdown,
    run_to_dict,
    save_markdown_report,
    summary_rows,
)

__all__ = [
    "ConsoleDashboard",
    "export_json",
    "render_markdown",
    "run_to_dict",
    "save_markdown_report",
    "summary_rows",
]
