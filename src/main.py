# src/main.py — v3
"""CLI entry point — search, verify, cost, sources commands.

Usage:
    lexresearch search "<query>" [--mode fast|deep|auto] [--user ID] [--json]
    lexresearch verify "<citation>"
    lexresearch cost "<query>" [--user ID]
    lexresearch sources
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys

from lexresearch.version import __version__

logger = logging.getLogger(__name__)


def main(argv: list[str] | None = None) -> int:
    """Main CLI entry point."""
    parser = _build_parser()
    args = parser.parse_args(argv)

    _setup_logging(args.verbose)

    if not hasattr(args, "func"):
        parser.print_help()
        return 1

    try:
        return asyncio.run(args.func(args))
    except KeyboardInterrupt:
        logger.info("Interrupted by user")
        return 130
    except Exception as exc:
        logger.error("Fatal error: %s", exc, exc_info=args.verbose)
        return 1


def _build_parser() -> argparse.ArgumentParser:
    """Build CLI argument parser."""
    parser = argparse.ArgumentParser(
        prog="lexresearch",
        description=f"lexresearch v{__version__} — Legal research aggregation",
    )
    parser.add_argument(
        "--version", action="version", version=f"%(prog)s {__version__}",
    )
    parser.add_argument(
        "-v", "--verbose", action="store_true",
        help="Enable debug logging",
    )

    subparsers = parser.add_subparsers(dest="command")

    # --- search ---
    p_search = subparsers.add_parser("search", help="Run a research query")
    p_search.add_argument("query", help="Free-text legal question")
    p_search.add_argument(
        "--mode", default="auto", choices=["fast", "deep", "thorough", "auto"],
        help="Research mode (default: auto)",
    )
    p_search.add_argument("--user", default=None, help="User id for rate limits and usage")
    p_search.add_argument("--jurisdiction", default=None, help="Court id filter")
    p_search.add_argument("--case", dest="case_id", default=None, help="Case id scope")
    p_search.add_argument("--json", action="store_true", help="Print the full response as JSON")
    p_search.set_defaults(func=_cmd_search)

    # --- verify ---
    p_verify = subparsers.add_parser("verify", help="Verify a case citation")
    p_verify.add_argument("citation", help='e.g. "Bell Atlantic Corp. v. Twombly, 550 U.S. 544"')
    p_verify.set_defaults(func=_cmd_verify)

    # --- cost ---
    p_cost = subparsers.add_parser("cost", help="Compare FAST and DEEP cost for a query")
    p_cost.add_argument("query", help="Free-text legal question")
    p_cost.add_argument("--user", default=None, help="User id for the affordability note")
    p_cost.set_defaults(func=_cmd_cost)

    # --- sources ---
    p_sources = subparsers.add_parser("sources", help="Show external source status")
    p_sources.set_defaults(func=_cmd_sources)

    return parser


async def _cmd_search(args: argparse.Namespace) -> int:
    """Execute one research query."""
    from lexresearch.core.models import Query
    from lexresearch.pipeline.research import ResearchShell

    query = Query(
        text=args.query,
        mode=args.mode,
        user_id=args.user,
        jurisdiction=args.jurisdiction,
        case_id=args.case_id,
    )
    async with ResearchShell() as shell:
        response = await shell.research(query)

    if args.json:
        print(response.model_dump_json(indent=2))
    else:
        _print_response(response)
    return 0 if response.status in ("ok", "partial", "cached", "degraded") else 1


async def _cmd_verify(args: argparse.Namespace) -> int:
    """Verify a single citation."""
    from lexresearch.pipeline.research import ResearchShell

    async with ResearchShell() as shell:
        result = await shell.verify_citation(args.citation)

    if result.found:
        print(f"\nVerified: {result.case_name or result.citation}")
        print(f"  Citation: {result.citation}")
        print(f"  URL:      {result.url}")
        print(f"  Source:   {result.source_id}")
        return 0
    print(f"\nNot found: {result.citation}")
    if result.error_message:
        print(f"  Reason:   {result.error_message}")
    return 1


async def _cmd_cost(args: argparse.Namespace) -> int:
    """Show the FAST/DEEP cost comparison and the mode recommendation."""
    from lexresearch.pipeline.research import ResearchShell

    async with ResearchShell() as shell:
        comparison = shell.compare_modes(args.query, args.user)
        recommendation = shell.recommend_mode(args.query, None, args.user)

    print("\nCost comparison:")
    print(f"  FAST:  ${comparison.fast.estimated_cost:.2f}  ({comparison.fast.explanation})")
    print(f"  DEEP:  ${comparison.deep.estimated_cost:.2f}  ({comparison.deep.explanation})")
    print(f"  Savings with FAST: ${comparison.savings:.2f} ({comparison.savings_percent}%)")
    print(f"  {comparison.recommendation}")
    print(f"\nRecommended mode: {recommendation.mode.value} ({recommendation.reason})")
    return 0


async def _cmd_sources(args: argparse.Namespace) -> int:
    """Display configured/available status of each external source."""
    from lexresearch.pipeline.research import ResearchShell

    async with ResearchShell() as shell:
        statuses = await shell.source_status()
    print(json.dumps(statuses, indent=2, default=str))
    return 0


def _print_response(response: object) -> None:
    """Print a human-readable summary of a ResearchResponse."""
    print(f"\nResearch {response.status} ({response.mode.value} mode):")
    if response.rejection is not None:
        print(f"  {response.rejection.message}")
        return
    if response.similar_query:
        print(f"  Served from similar query: {response.similar_query}")
    for source in response.failed_sources:
        print(f"  Source unavailable: {source}")
    for i, result in enumerate(response.results, start=1):
        print(f"  {i:2d}. [{result.relevance_score:5.1f}] {result.title} ({result.source})")
        if result.url:
            print(f"      {result.url}")
    if response.cost is not None:
        print(f"  Estimated cost: ${response.cost.estimated_cost:.2f}")


def _setup_logging(verbose: bool) -> None:
    """Configure logging for CLI usage."""
    from lexresearch.config.settings import Settings
    from lexresearch.logging.logger import setup_logging

    settings = Settings()
    setup_logging(
        level="DEBUG" if verbose else settings.log_level,
        log_format=settings.log_format,
        log_file=settings.log_file,
        rotation=settings.log_rotation,
        retention=settings.log_retention,
        stream=sys.stderr,
    )
    # Quiet noisy libraries
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)


if __name__ == "__main__":
    sys.exit(main())
