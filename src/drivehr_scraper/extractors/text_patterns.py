import logging
import re

from drivehr_scraper.extractors.base import BaseExtractor
from drivehr_scraper.models import RawJobData
from drivehr_scraper.page import PageContext

logger = logging.getLogger(__name__)

MAX_PATTERN_MATCHES = 20
PATTERN_DESCRIPTION = "Job details extracted from page content"

ROLE_KEYWORDS = [
    "engineer",
    "developer",
    "manager",
    "analyst",
    "specialist",
    "coordinator",
    "director",
    "lead",
    "senior",
    "junior",
]


class TextPatternExtractor(BaseExtractor):
    """
    Last-resort extractor that scans visible page text for role phrases
    such as "Senior Backend Developer".

    This is a heuristic: it will pick up phrases that are not job postings
    and miss titles that don't contain a role keyword. Results are capped to
    keep false positives bounded.
    """

    name = "text-pattern"

    def __init__(self, max_matches: int = MAX_PATTERN_MATCHES) -> None:
        self.max_matches = max_matches
        keywords = "|".join(re.escape(kw) for kw in ROLE_KEYWORDS)
        self.regex = re.compile(rf"\b(?:{keywords})\s+[a-z\s]{{5,50}}", re.IGNORECASE)

    async def extract(self, page: PageContext) -> list[RawJobData]:
        text = await page.text_content()
        if not text:
            return []

        jobs: list[RawJobData] = []
        seen: set[str] = set()
        for match in self.regex.finditer(text):
            title = " ".join(match.group(0).split())
            key = title.lower()
            if key in seen:
                continue
            seen.add(key)
            jobs.append({"title": title, "description": PATTERN_DESCRIPTION})
            if len(jobs) >= self.max_matches:
                logger.debug(f"Text pattern matches capped at {self.max_matches}")
                break

        return jobs
