#!/usr/bin/env python3
"""
Command-line entry point for a crawl run.

Usage:
    content-analyzer --urls https://example.org --keywords IOP "partial hospitalization"
    content-analyzer --urls-file seeds.txt --keywords IOP --max-depth 1 --output results.json

stdout carries "Progress: N%" lines followed by the JSON result array.
Logs and the summary table go to stderr. Ctrl+C stops admitting new pages,
lets in-flight pages finish, and still prints the partial results.
"""

import argparse
import asyncio
import signal
import sys
import threading
from pathlib import Path
from typing import List, Optional

from pydantic import ValidationError
from rich.console import Console
from rich.table import Table

from .config import CrawlConfig
from .crawler.engine import CrawlEngine, CrawlOutcome
from .schemas.analysis import AnalysisRequest, AnalysisResult, results_to_json
from .utils.logger import CrawlLogger, configure_global_logging

console = Console(stderr=True)

EXIT_INVALID_INPUT = 2
EXIT_CANCELLED = 130


def load_urls(urls: Optional[List[str]], urls_file: Optional[Path]) -> List[str]:
    """Collect seed URLs from arguments and/or a file (one per line, # comments allowed)."""
    collected = list(urls or [])
    if urls_file:
        for line in urls_file.read_text().splitlines():
            line = line.strip()
            if line and not line.startswith("#"):
                collected.append(line)
    return collected


def print_progress(progress: float) -> None:
    print(f"Progress: {round(progress * 100)}%", flush=True)


def display_results(results: List[AnalysisResult], status: str) -> None:
    """Render a per-domain summary table on stderr."""
    table = Table(title=f"Crawl Results ({status})")
    table.add_column("URL", style="cyan")
    table.add_column("Status", justify="center")
    table.add_column("Keywords", justify="center")
    table.add_column("Confidence", justify="right")
    table.add_column("Insurance", justify="center")
    table.add_column("Pages", justify="right")
    table.add_column("Failed", justify="right")

    status_styles = {"success": "green", "error": "red", "partial": "yellow"}
    for result in results:
        stats = result.status_details.crawl_stats
        style = status_styles[result.analysis_status]
        insurance = result.insurance_status
        insurance_cell = f"{insurance.confidence:.2f}" if insurance.accepts_insurance else "[dim]no[/dim]"
        table.add_row(
            result.url,
            f"[{style}]{result.analysis_status}[/{style}]",
            "[green]yes[/green]" if result.has_keywords else "[dim]no[/dim]",
            f"{result.confidence_score:.2f}",
            insurance_cell,
            str(stats.successful_pages),
            str(stats.failed_pages),
        )

    console.print(table)


def run_crawl(
    request: AnalysisRequest,
    config: CrawlConfig,
    logger: CrawlLogger,
) -> CrawlOutcome:
    """Run the engine on the current thread, mapping Ctrl+C to graceful cancellation."""
    cancel_event = threading.Event()

    def handle_sigint(signum, frame):
        if cancel_event.is_set():
            raise KeyboardInterrupt
        logger.warning("Interrupt received, finishing in-flight pages (press Ctrl+C again to abort)")
        cancel_event.set()

    previous = signal.signal(signal.SIGINT, handle_sigint)
    try:
        engine = CrawlEngine(config, logger=logger)
        return asyncio.run(engine.run(request, on_progress=print_progress, cancel_event=cancel_event))
    finally:
        signal.signal(signal.SIGINT, previous)


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point."""
    parser = argparse.ArgumentParser(
        description="Crawl seed websites and score them for keywords and insurance-acceptance language"
    )
    parser.add_argument("--urls", nargs="+", help="Seed URLs (http/https)")
    parser.add_argument("--urls-file", type=Path, help="File with one seed URL per line")
    parser.add_argument("--keywords", nargs="+", required=True, help="Keywords to score pages for")
    parser.add_argument("--max-depth", type=int, help="Link depth to follow from each seed (0-5)")
    parser.add_argument(
        "--same-domain-only",
        action=argparse.BooleanOptionalAction,
        default=None,
        help="Only follow links on the seed's own host (default: from config)",
    )
    parser.add_argument("--no-insurance", action="store_true", help="Skip insurance-acceptance scoring")
    parser.add_argument("--output", type=Path, help="Also save the JSON results to this file")
    parser.add_argument("--env-file", type=str, help="Load ANALYZER_* settings from this .env file")
    parser.add_argument(
        "--log-level",
        default="INFO",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Log level (default: INFO)",
    )
    parser.add_argument("--log-file", type=str, help="Also write logs to logs/<name>")

    args = parser.parse_args(argv)

    configure_global_logging(args.log_level, phase="crawl")
    logger = CrawlLogger("content_analyzer", log_level=args.log_level, log_file=args.log_file, phase="crawl")

    urls = load_urls(args.urls, args.urls_file)
    if not urls:
        parser.error("at least one seed URL is required (--urls or --urls-file)")

    try:
        request = AnalysisRequest(
            urls=urls,
            keywords=args.keywords,
            check_insurance=False if args.no_insurance else None,
            max_depth=args.max_depth,
            same_domain_only=args.same_domain_only,
        )
    except ValidationError as e:
        logger.error(f"Invalid input: {e}")
        return EXIT_INVALID_INPUT

    config = CrawlConfig.from_env(args.env_file)

    with logger.time_operation("crawl", seeds=len(urls)):
        outcome = run_crawl(request, config, logger)

    payload = results_to_json(outcome.results)
    print(payload, flush=True)

    if args.output:
        args.output.parent.mkdir(parents=True, exist_ok=True)
        args.output.write_text(results_to_json(outcome.results, indent=2))
        logger.info(f"Results saved to: {args.output}")

    display_results(outcome.results, outcome.status)

    summary = logger.get_error_summary()
    if summary["total_errors"]:
        hosts = ", ".join(f"{host} ({count})" for host, count in summary["failures_by_host"].items())
        console.print(f"[yellow]{summary['total_errors']} page error(s) recorded[/yellow] {hosts}")

    return EXIT_CANCELLED if outcome.cancelled else 0


if __name__ == "__main__":
    sys.exit(main())
