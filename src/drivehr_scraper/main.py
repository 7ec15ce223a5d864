import argparse
import asyncio
import json
import logging
import os
import sys
import time
from pathlib import Path

from drivehr_scraper.config import LOG_LEVEL, get_careers_config, get_scraper_settings
from drivehr_scraper.fetch_service import JobFetchService
from drivehr_scraper.models import CareersConfig, FetchResult, ScraperSettings
from drivehr_scraper.normalizer import utc_now_iso
from drivehr_scraper.scrapers.html_scraper import HtmlFetchStrategy
from drivehr_scraper.scrapers.playwright_scraper import BrowserFetchStrategy, PlaywrightScraper
from drivehr_scraper.telemetry import LoggingTelemetry

logger = logging.getLogger(__name__)

STRATEGY_CHOICES = ("auto", "browser", "html")


async def run_scrape(
    config: CareersConfig,
    settings: ScraperSettings,
    strategy: str = "browser",
    source: str = "github-actions",
) -> FetchResult:
    """Run one scrape of the careers page with the chosen acquisition strategy."""
    if strategy == "browser":
        return await PlaywrightScraper(settings).scrape_jobs(config, source)

    if strategy == "html":
        strategies = [HtmlFetchStrategy()]
    else:
        strategies = [BrowserFetchStrategy(PlaywrightScraper(settings)), HtmlFetchStrategy()]

    service = JobFetchService(strategies=strategies, telemetry=LoggingTelemetry())
    return await service.fetch_jobs(config, source)


def save_jobs_artifact(result: FetchResult, output_dir: str, run_id: str = "local") -> Path:
    """Write the scraped jobs to a JSON file for downstream jobs to pick up."""
    directory = Path(output_dir)
    directory.mkdir(parents=True, exist_ok=True)
    path = directory / f"scraped-jobs-{run_id}-{int(time.time() * 1000)}.json"

    payload = {
        "timestamp": utc_now_iso(),
        "runId": run_id,
        "totalJobs": result.total_count,
        "result": result.model_dump(mode="json", by_alias=True),
    }
    path.write_text(json.dumps(payload, indent=2), encoding="utf-8")
    return path


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse command-line arguments."""
    parser = argparse.ArgumentParser(
        prog="drivehr-scraper",
        description="Scrape job postings from a DriveHR careers page and normalize them.",
    )
    parser.add_argument(
        "--company-id",
        default=None,
        help="Company id (overrides DRIVEHR_COMPANY_ID).",
    )
    parser.add_argument(
        "--careers-url",
        default=None,
        help="Careers page URL (overrides DRIVEHR_CAREERS_URL).",
    )
    parser.add_argument(
        "--strategy",
        choices=STRATEGY_CHOICES,
        default="browser",
        help="Acquisition strategy: browser only, static HTML only, or browser then HTML.",
    )
    parser.add_argument(
        "--retries",
        type=int,
        default=None,
        metavar="N",
        help="Browser attempts per run (overrides SCRAPER_RETRIES).",
    )
    parser.add_argument(
        "--timeout",
        type=int,
        default=None,
        metavar="MS",
        help="Navigation timeout in milliseconds (overrides SCRAPER_TIMEOUT).",
    )
    parser.add_argument(
        "--debug",
        action="store_true",
        help="Capture page console output and save a debug screenshot.",
    )
    parser.add_argument(
        "--headed",
        action="store_true",
        help="Show the browser window instead of running headless.",
    )
    parser.add_argument(
        "--output-dir",
        default=None,
        metavar="DIR",
        help="Write the scraped jobs as JSON into this directory.",
    )
    parser.add_argument(
        "--source",
        default="github-actions",
        help="Source tag stored on every job (default: github-actions).",
    )
    return parser.parse_args(argv)


def _build_inputs(args: argparse.Namespace) -> tuple[CareersConfig, ScraperSettings]:
    for name in ("retries", "timeout"):
        value = getattr(args, name)
        if value is not None and value <= 0:
            raise ValueError(f"--{name} must be a positive integer.")

    config = get_careers_config(company_id=args.company_id, careers_url=args.careers_url)
    settings = get_scraper_settings()

    config_updates = {}
    settings_updates: dict[str, object] = {}
    if args.retries is not None:
        config_updates["retries"] = args.retries
        settings_updates["retries"] = args.retries
    if args.timeout is not None:
        config_updates["timeout"] = args.timeout
        settings_updates["timeout"] = args.timeout
    if args.debug:
        settings_updates["debug"] = True
    if args.headed:
        settings_updates["headless"] = False

    return (
        config.model_copy(update=config_updates),
        settings.model_copy(update=settings_updates),
    )


def cli(argv: list[str] | None = None) -> None:
    """CLI entry point for the package."""
    args = parse_args(argv)

    # Set up logging once, in the application entry point only
    logging.basicConfig(
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        level=getattr(logging, LOG_LEVEL, logging.INFO),
    )

    try:
        config, settings = _build_inputs(args)
    except ValueError as e:
        logger.error(str(e))
        sys.exit(1)

    logger.info(f"Scraping jobs for company: {config.company_id}")
    result = asyncio.run(run_scrape(config, settings, args.strategy, args.source))

    if args.output_dir:
        run_id = os.getenv("GITHUB_RUN_ID", "local")
        path = save_jobs_artifact(result, args.output_dir, run_id)
        logger.info(f"Saved jobs artifact to {path}")

    if not result.success:
        logger.error(f"Job scraping failed: {result.error}")
        sys.exit(1)

    logger.info(f"Scrape finished via {result.method}: {result.total_count} jobs")


if __name__ == "__main__":
    cli()
