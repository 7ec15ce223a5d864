import logging
from urllib.parse import urljoin

from bs4 import BeautifulSoup, Tag

from drivehr_scraper.errors import ExtractionError
from drivehr_scraper.extractors.base import BaseExtractor
from drivehr_scraper.models import RawJobData
from drivehr_scraper.page import PageContext

logger = logging.getLogger(__name__)

MAX_DESCRIPTION_LENGTH = 500

# Containers are tried in priority order; the first one that yields jobs wins.
JOB_SELECTORS = [
    ".job-listing",
    ".job-item",
    ".career-listing",
    ".career-item",
    ".position-card",
    "[data-job-id]",
    "[data-job]",
    ".job-card",
    ".opportunity",
    "article.job",
    ".job-post",
    ".position",
    ".opening",
]
TITLE_SELECTORS = [
    "h1",
    "h2",
    "h3",
    "h4",
    ".job-title",
    ".title",
    ".position-title",
    '[class*="title"]',
    ".heading",
]
DEPARTMENT_SELECTORS = [
    ".department",
    ".category",
    '[class*="department"]',
    ".job-category",
    ".division",
    ".team",
    "[data-department]",
]
LOCATION_SELECTORS = [
    ".location",
    ".job-location",
    '[class*="location"]',
    ".city",
    ".office",
    ".workplace",
    "[data-location]",
]
TYPE_SELECTORS = [
    ".employment-type",
    ".job-type",
    ".schedule",
    ".commitment",
    ".contract-type",
]
DESCRIPTION_SELECTORS = [
    ".description",
    ".summary",
    '[class*="description"]',
    ".job-summary",
    ".overview",
    ".details",
    "p",
]
DATE_SELECTORS = [
    ".posted-date",
    ".date",
    '[class*="posted"]',
    "time",
    ".created-date",
    ".publish-date",
]
APPLY_URL_SELECTORS = [
    'a[href*="apply"]',
    "a.apply-button",
    '[class*="apply"] a',
    "a.apply-link",
    "a.application-link",
    "a[href]",
]
ID_ATTRIBUTES = ["data-job-id", "id", "data-id", "data-position-id"]


class DomExtractor(BaseExtractor):
    """
    Extracts jobs from repeated listing elements using common careers-page
    class names. Tolerates unknown markup by trying alias selectors per field.
    """

    name = "dom"

    def __init__(self, job_selectors: list[str] | None = None) -> None:
        self.job_selectors = job_selectors or JOB_SELECTORS

    async def extract(self, page: PageContext) -> list[RawJobData]:
        html = await page.content()
        if not html or not html.strip():
            raise ExtractionError(f"Page at {page.base_url} returned no HTML")

        soup = BeautifulSoup(html, "html.parser")
        jobs: list[RawJobData] = []

        for selector in self.job_selectors:
            elements = soup.select(selector)
            if not elements:
                continue

            for element in elements:
                job = self._extract_job(element, page.base_url)
                if job.get("title"):
                    jobs.append(job)

            # Found jobs with this selector, don't try others
            if jobs:
                logger.debug(f"Selector '{selector}' matched {len(jobs)} job elements")
                break

        return jobs

    def _extract_job(self, element: Tag, base_url: str) -> RawJobData:
        job: RawJobData = {
            "title": self._extract_text(element, TITLE_SELECTORS),
            "department": self._extract_text(element, DEPARTMENT_SELECTORS),
            "location": self._extract_text(element, LOCATION_SELECTORS),
            "type": self._extract_text(element, TYPE_SELECTORS),
            "description": self._extract_description(element),
            "posted_date": self._extract_date(element),
            "apply_url": self._extract_apply_url(element, base_url),
        }
        job_id = self._extract_id(element)
        if job_id:
            job["id"] = job_id
        return job

    @staticmethod
    def _extract_id(element: Tag) -> str:
        for attr in ID_ATTRIBUTES:
            value = element.get(attr)
            if value:
                return str(value).strip()
        return ""

    @staticmethod
    def _extract_text(element: Tag, selectors: list[str]) -> str:
        for selector in selectors:
            found = element.select_one(selector)
            if found is None:
                continue
            text = found.get_text(" ", strip=True)
            if text:
                return text
        return ""

    def _extract_description(self, element: Tag) -> str:
        description = self._extract_text(element, DESCRIPTION_SELECTORS)
        if len(description) > MAX_DESCRIPTION_LENGTH:
            return description[:MAX_DESCRIPTION_LENGTH].strip() + "..."
        return description

    @staticmethod
    def _extract_date(element: Tag) -> str:
        for selector in DATE_SELECTORS:
            found = element.select_one(selector)
            if found is None:
                continue
            # The datetime attribute is more reliable than display text
            datetime_attr = found.get("datetime")
            if datetime_attr:
                return str(datetime_attr).strip()
            text = found.get_text(strip=True)
            if text:
                return text
        return ""

    @staticmethod
    def _extract_apply_url(element: Tag, base_url: str) -> str:
        candidates = [element.select_one(selector) for selector in APPLY_URL_SELECTORS]
        # Some listings render the whole row as a link
        if element.name == "a":
            candidates.append(element)

        for link in candidates:
            if link is None:
                continue
            href = str(link.get("href") or "").strip()
            if not href or href.startswith(("#", "javascript:")):
                continue
            try:
                return urljoin(base_url, href)
            except ValueError as e:
                logger.debug(f"Skipping unparsable link '{href}': {e}")
        return ""
