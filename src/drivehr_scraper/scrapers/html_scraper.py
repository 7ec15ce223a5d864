import logging

from drivehr_scraper.errors import FetchError
from drivehr_scraper.extractors.chain import ExtractionChain
from drivehr_scraper.models import CareersConfig, FetchMethod, RawJobData
from drivehr_scraper.page import StaticPageContext
from drivehr_scraper.scrapers.base import FetchStrategy
from drivehr_scraper.transport import BaseTransport

logger = logging.getLogger(__name__)

HTML_ACCEPT_HEADERS = {"Accept": "text/html,application/xhtml+xml"}


class HtmlFetchStrategy(FetchStrategy):
    """
    Fetches the careers page over plain HTTP and extracts jobs from the
    server-rendered HTML. Only useful when the site renders listings without
    JavaScript, so it runs after the browser strategy.
    """

    name: FetchMethod = "html"

    def __init__(self, chain: ExtractionChain | None = None) -> None:
        self.chain = chain or ExtractionChain()

    def can_handle(self, config: CareersConfig) -> bool:
        return bool(config.careers_url)

    async def fetch_jobs(self, config: CareersConfig, transport: BaseTransport) -> list[RawJobData]:
        careers_url = config.build_careers_url()
        response = await transport.get(careers_url, headers=HTML_ACCEPT_HEADERS)
        if not response.success:
            detail = response.error or f"HTTP {response.status}"
            raise FetchError(f"HTML page not accessible: {detail}")

        result = await self.chain.run(StaticPageContext(response.data, careers_url))
        if result.no_jobs_indicated:
            logger.info(f"Static HTML at {careers_url} lists no openings")
        else:
            logger.info(
                f"Extracted {len(result.jobs)} raw jobs from static HTML at {careers_url} "
                f"(extractor: {result.extractor or 'none'})"
            )
        return result.jobs
