import logging
from dataclasses import dataclass, field

from drivehr_scraper.errors import PageUnavailableError
from drivehr_scraper.extractors.base import BaseExtractor
from drivehr_scraper.extractors.dom import DomExtractor
from drivehr_scraper.extractors.jsonld import JsonLdExtractor
from drivehr_scraper.extractors.text_patterns import TextPatternExtractor
from drivehr_scraper.models import RawJobData
from drivehr_scraper.page import PageContext

logger = logging.getLogger(__name__)

NO_JOBS_INDICATORS = [
    "no positions available",
    "no current openings",
    "no job availabilities",
    "no opportunities",
    "no job opportunities",
    "we don't have any open positions",
]


@dataclass
class ExtractionResult:
    """Raw jobs found on a page and which extractor produced them."""

    jobs: list[RawJobData] = field(default_factory=list)
    extractor: str | None = None
    no_jobs_indicated: bool = False


def default_extractors() -> list[BaseExtractor]:
    return [DomExtractor(), JsonLdExtractor(), TextPatternExtractor()]


class ExtractionChain:
    """
    Runs extractors one after another against the same page and stops at
    the first one that returns jobs.

    A page that says it has no openings short-circuits the chain, so an
    empty careers page is never mistaken for a broken scraper.
    """

    def __init__(
        self,
        extractors: list[BaseExtractor] | None = None,
        no_jobs_indicators: list[str] | None = None,
    ) -> None:
        self.extractors = extractors if extractors is not None else default_extractors()
        self.no_jobs_indicators = (
            no_jobs_indicators if no_jobs_indicators is not None else NO_JOBS_INDICATORS
        )

    async def run(self, page: PageContext) -> ExtractionResult:
        indicator = await self._find_no_jobs_indicator(page)
        if indicator:
            logger.info(f"No jobs available indicator found on {page.base_url}: '{indicator}'")
            return ExtractionResult(no_jobs_indicated=True)

        for extractor in self.extractors:
            try:
                jobs = await extractor.extract(page)
            except PageUnavailableError:
                raise
            except Exception as e:
                logger.warning(f"Extractor {extractor.name} failed, trying next: {e}")
                continue

            if jobs:
                logger.debug(f"Found {len(jobs)} jobs using extractor {extractor.name}")
                return ExtractionResult(jobs=jobs, extractor=extractor.name)
            logger.debug(f"Extractor {extractor.name} found no jobs")

        logger.warning(f"No job data could be extracted from {page.base_url}")
        return ExtractionResult()

    async def _find_no_jobs_indicator(self, page: PageContext) -> str | None:
        for indicator in self.no_jobs_indicators:
            if await page.has_visible_text(indicator):
                return indicator
        return None
