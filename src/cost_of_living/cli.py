"""Command-line interface for the cost-of-living agent.

Entry point
-----------
The ``main()`` function is registered as a console script in
``pyproject.toml``::

    [project.scripts]
    cost-of-living = "cost_of_living.cli:main"

Usage examples::

    cost-of-living run --budget 2500 --output ./reports
    cost-of-living run --config cities.yaml --no-cache
    cost-of-living city Lisbon
    cost-of-living info
"""

from __future__ import annotations

import argparse
import asyncio
import dataclasses
import datetime
import logging
import sys
from pathlib import Path
from typing import Any

from cost_of_living.domain.values import City
from cost_of_living.infrastructure.config import AppConfig, load_config

logger = logging.getLogger(__name__)

_LOG_FORMAT = "%(asctime)s %(levelname)-8s %(name)s: %(message)s"


def _build_parser() -> argparse.ArgumentParser:
    """Build the top-level argument parser with subcommands."""
    parser = argparse.ArgumentParser(
        prog="cost-of-living",
        description=(
            "Adaptive multi-city cost-of-living analysis for relocation and "
            "remote-work decisions."
        ),
    )
    parser.add_argument(
        "--version",
        action="store_true",
        default=False,
        help="Show version and exit.",
    )
    parser.add_argument(
        "--log-level",
        type=str.upper,
        default="WARNING",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging level. (default: WARNING)",
    )

    subparsers = parser.add_subparsers(dest="command", help="Available subcommands")

    # -- run ---------------------------------------------------------------
    run_parser = subparsers.add_parser(
        "run",
        help="Analyse every configured city.",
        description="Run one adaptive agent per configured city and report the results.",
    )
    run_parser.add_argument(
        "--budget",
        type=float,
        default=None,
        help="Monthly budget in USD. (default: from config, 2000)",
    )
    run_parser.add_argument(
        "--config",
        type=str,
        default=None,
        help="YAML or JSON configuration file.",
    )
    run_parser.add_argument(
        "--output",
        type=str,
        default=None,
        help="Directory for the JSON and Markdown reports. (default: config data_dir)",
    )
    run_parser.add_argument(
        "--no-cache",
        action="store_true",
        default=False,
        help="Ignore and do not write the perception cache.",
    )

    # -- city --------------------------------------------------------------
    city_parser = subparsers.add_parser(
        "city",
        help="Analyse a single city.",
        description="Run one agent for a single city and print its breakdown.",
    )
    city_parser.add_argument("name", type=str, help="City name, e.g. 'Lisbon'.")
    city_parser.add_argument(
        "--country",
        type=str,
        default=None,
        help="Country, required when the city is not in the configuration.",
    )
    city_parser.add_argument("--config", type=str, default=None, help="Configuration file.")
    city_parser.add_argument(
        "--no-cache",
        action="store_true",
        default=False,
        help="Ignore and do not write the perception cache.",
    )

    # -- info --------------------------------------------------------------
    info_parser = subparsers.add_parser(
        "info",
        help="Show configuration, strategies and dependency information.",
    )
    info_parser.add_argument("--config", type=str, default=None, help="Configuration file.")

    return parser


# =========================================================================
# Helpers
# =========================================================================


def _configure_logging(level: str) -> None:
    logging.basicConfig(level=getattr(logging, level), format=_LOG_FORMAT)


def _check_credentials(config: AppConfig) -> bool:
    if config.search.has_credentials:
        return True
    print(
        "Error: missing Bright Data credentials. Set BRIGHT_DATA_CUSTOMER_ID, "
        "BRIGHT_DATA_ZONE and BRIGHT_DATA_PASSWORD.",
        file=sys.stderr,
    )
    return False


async def _analyze(config: AppConfig, cities: list[City], use_cache: bool) -> Any:
    from cost_of_living.factory import AgentFactory
    from cost_of_living.infrastructure.llm import create_chat_model
    from cost_of_living.infrastructure.search import BrightDataSearchClient
    from cost_of_living.services.orchestration import analyze_cities

    model = create_chat_model(config.model)
    async with BrightDataSearchClient(config.search) as client:
        loop = AgentFactory.create_llm_agent(config, client, model, use_cache=use_cache)
        return await analyze_cities(loop, cities, stagger_seconds=config.effective_stagger)


# =========================================================================
# Subcommands
# =========================================================================


def _cmd_run(args: argparse.Namespace) -> int:
    """Handle the ``run`` subcommand."""
    from cost_of_living.presentation.console import ConsoleDashboard
    from cost_of_living.presentation.export import export_json, save_markdown_report

    config = load_config(args.config)
    if args.budget is not None:
        config = dataclasses.replace(config, monthly_budget_usd=args.budget)
        config.validate()
    if not _check_credentials(config):
        return 1

    outcome = asyncio.run(_analyze(config, list(config.cities), use_cache=not args.no_cache))
    for name, error in outcome.failures.items():
        print(f"Warning: analysis of {name} failed: {error}", file=sys.stderr)

    dashboard = ConsoleDashboard()
    for result in outcome.results:
        dashboard.print_city(result)
    dashboard.print_run(outcome.results, config.monthly_budget_usd)
    if not outcome.succeeded:
        return 1

    out_dir = Path(args.output or config.data_dir)
    stamp = datetime.datetime.now().strftime("%Y%m%d_%H%M%S")
    json_path = export_json(
        outcome.results, out_dir / f"cost_analysis_{stamp}.json", config.monthly_budget_usd
    )
    md_path = save_markdown_report(outcome.results, out_dir, config.monthly_budget_usd)
    print(f"Reports written to {json_path} and {md_path}")
    return 0


def _cmd_city(args: argparse.Namespace) -> int:
    """Handle the ``city`` subcommand."""
    from cost_of_living.presentation.console import ConsoleDashboard

    config = load_config(args.config)
    city = config.find_city(args.name)
    if city is None:
        if not args.country:
            known = ", ".join(c.name for c in config.cities)
            print(
                f"Error: unknown city '{args.name}'. Known cities: {known}. "
                "Pass --country to analyse another city.",
                file=sys.stderr,
            )
            return 1
        city = City(args.name, args.country)
    if not _check_credentials(config):
        return 1

    outcome = asyncio.run(_analyze(config, [city], use_cache=not args.no_cache))
    if not outcome.succeeded:
        print(f"Error: analysis of {city} failed.", file=sys.stderr)
        return 1
    ConsoleDashboard().print_city(outcome.results[0])
    return 0


def _cmd_info(args: argparse.Namespace) -> int:
    """Handle the ``info`` subcommand."""
    from cost_of_living import __version__
    from cost_of_living.services.strategies import DEFAULT_CATALOG

    config = load_config(args.config)
    print(f"Cost-of-living agent v{__version__}")
    print()

    print("Cities:")
    for city in config.cities:
        print(f"  - {city}")
    print()

    print("Categories:")
    for category in config.categories:
        print(f"  - {category.name}: {category.display_name}")
    print()

    print(f"Strategies (fallback: {DEFAULT_CATALOG.fallback.name}):")
    for strategy in DEFAULT_CATALOG:
        print(f"  - {strategy.name} x{strategy.confidence_modifier}: {strategy.description}")
    print()

    agent = config.agent
    print("Goals:")
    print(f"  confidence target:      {agent.confidence_target}")
    print(f"  minimum acceptable:     {agent.min_acceptable_confidence}")
    print(f"  completeness target:    {agent.completeness_target}")
    print(f"  max iterations:         {agent.max_iterations}")
    print()

    print(f"Model: {config.model.provider}/{config.model.model}")
    print(f"Bright Data credentials: {'set' if config.search.has_credentials else 'missing'}")
    print(f"Cache: {config.cache.cache_dir if config.cache.enabled else 'disabled'}")
    print(f"Monthly budget: ${config.monthly_budget_usd:,.0f}")
    return 0


# =========================================================================
# Main entry point
# =========================================================================


def main(argv: list[str] | None = None) -> None:
    """CLI entry point.

    Parameters
    ----------
    argv:
        Command-line arguments.  Defaults to ``sys.argv[1:]``.
    """
    parser = _build_parser()
    args = parser.parse_args(argv)

    if args.version:
        from cost_of_living import __version__

        print(f"cost-of-living {__version__}")
        sys.exit(0)

    if args.command is None:
        parser.print_help()
        sys.exit(0)

    _configure_logging(args.log_level)

    handlers: dict[str, Any] = {
        "run": _cmd_run,
        "city": _cmd_city,
        "info": _cmd_info,
    }

    handler = handlers.get(args.command)
    if handler is None:
        parser.print_help()
        sys.exit(1)

    try:
        exit_code = handler(args)
    except KeyboardInterrupt:
        print("\nInterrupted.", file=sys.stderr)
        exit_code = 130
    except Exception as exc:
        logger.debug("Command %s failed", args.command, exc_info=True)
        print(f"Error: {exc}", file=sys.stderr)
        exit_code = 1

    sys.exit(exit_code)


if __name__ == "__main__":
    main()
