import logging
from dataclasses import dataclass
from datetime import UTC, datetime
from pathlib import Path

from drivehr_scraper.browser import BrowserSession
from drivehr_scraper.extractors.chain import ExtractionChain
from drivehr_scraper.models import (
    CareersConfig,
    FetchMethod,
    RawJobData,
    ScraperSettings,
    ScrapeResult,
)
from drivehr_scraper.normalizer import JobNormalizer, utc_now_iso
from drivehr_scraper.page import PlaywrightPageContext
from drivehr_scraper.retry import RetryPolicy
from drivehr_scraper.scrapers.base import FetchStrategy
from drivehr_scraper.transport import BaseTransport

logger = logging.getLogger(__name__)

DEFAULT_SOURCE = "github-actions"


@dataclass
class PageScrape:
    """Output of one successful browser attempt."""

    raw_jobs: list[RawJobData]
    extractor: str | None = None
    no_jobs_indicated: bool = False
    screenshot_path: str | None = None


class PlaywrightScraper:
    """
    Scrapes a JavaScript-rendered careers page with a headless browser.

    Each attempt opens its own browser session, navigates, waits for the
    listings to render, runs the extraction chain and tears the session down
    again. Attempts are bounded by the retry policy; no exception escapes
    scrape_jobs().
    """

    def __init__(
        self,
        settings: ScraperSettings | None = None,
        chain: ExtractionChain | None = None,
        normalizer: JobNormalizer | None = None,
    ) -> None:
        self.settings = settings or ScraperSettings()
        self.chain = chain or ExtractionChain()
        self.normalizer = normalizer or JobNormalizer()

    async def scrape_jobs(
        self,
        config: CareersConfig,
        source: str = DEFAULT_SOURCE,
    ) -> ScrapeResult:
        """Scrape and normalize jobs from the careers page."""
        url = config.build_careers_url()
        scraped_at = utc_now_iso()
        logger.info(f"Starting Playwright scraping for {url}")

        try:
            scrape = await self._run_with_retries(config, url)
        except Exception as e:
            return ScrapeResult(
                success=False,
                error=str(e) or type(e).__name__,
                url=url,
                scraped_at=scraped_at,
                fetched_at=scraped_at,
            )

        jobs = self.normalizer.normalize_jobs(scrape.raw_jobs, source, base_url=url)
        logger.info(
            f"Successfully scraped {len(jobs)} jobs from {url} "
            f"(extractor: {scrape.extractor or 'none'})"
        )

        return ScrapeResult(
            jobs=jobs,
            total_count=len(jobs),
            success=True,
            message=self._summary(len(jobs), scrape),
            url=url,
            scraped_at=scraped_at,
            fetched_at=scraped_at,
            screenshot_path=scrape.screenshot_path,
        )

    @staticmethod
    def _summary(job_count: int, scrape: PageScrape) -> str:
        message = f"Successfully scraped {job_count} jobs"
        if scrape.no_jobs_indicated:
            return f"{message} (careers page lists no openings)"
        if job_count == 0:
            return f"{message} (no job data found on page)"
        return message

    async def fetch_raw_jobs(self, config: CareersConfig) -> list[RawJobData]:
        """Run the retried browser scrape and return raw records. Raises on exhaustion."""
        scrape = await self._run_with_retries(config, config.build_careers_url())
        return scrape.raw_jobs

    async def _run_with_retries(self, config: CareersConfig, url: str) -> PageScrape:
        policy = RetryPolicy(
            attempts=config.retries or self.settings.retries,
            delay=self.settings.retry_delay,
        )

        async def attempt_scrape(attempt: int) -> PageScrape:
            return await self._scrape_once(config, url, attempt)

        return await policy.run(attempt_scrape, description=f"Scraping {url}")

    async def _scrape_once(self, config: CareersConfig, url: str, attempt: int) -> PageScrape:
        timeout = config.timeout or self.settings.timeout

        async with BrowserSession(self.settings) as session:
            page = await session.open_page(timeout=timeout)

            logger.debug(f"Attempt {attempt}: Navigating to {url}")
            await session.navigate(
                url,
                wait_until="networkidle",
                timeout=timeout,
                wait_selector=self.settings.wait_for_selector,
            )

            result = await self.chain.run(PlaywrightPageContext(page, url))

            screenshot_path = None
            if self.settings.debug:
                screenshot_path = await self._take_debug_screenshot(
                    session, config.company_id or "unknown"
                )

        return PageScrape(
            raw_jobs=result.jobs,
            extractor=result.extractor,
            no_jobs_indicated=result.no_jobs_indicated,
            screenshot_path=screenshot_path,
        )

    async def _take_debug_screenshot(self, session: BrowserSession, company_id: str) -> str | None:
        """Save a full-page screenshot. Failing to save it never fails the scrape."""
        timestamp = datetime.now(tz=UTC).isoformat().replace(":", "-").replace(".", "-")
        path = Path(self.settings.screenshot_dir) / f"scrape-debug-{company_id}-{timestamp}.png"
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            return await session.screenshot(str(path))
        except Exception as e:
            logger.warning(f"Failed to save debug screenshot to {path}: {e}")
            return None


class BrowserFetchStrategy(FetchStrategy):
    """Acquisition strategy that drives a headless browser through PlaywrightScraper."""

    name: FetchMethod = "browser"

    def __init__(self, scraper: PlaywrightScraper | None = None) -> None:
        self.scraper = scraper or PlaywrightScraper()

    def can_handle(self, config: CareersConfig) -> bool:
        return bool(config.careers_url or config.company_id)

    async def fetch_jobs(self, config: CareersConfig, transport: BaseTransport) -> list[RawJobData]:
        return await self.scraper.fetch_raw_jobs(config)
