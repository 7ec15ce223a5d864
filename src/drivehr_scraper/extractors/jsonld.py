import json
import logging
from typing import Any

from bs4 import BeautifulSoup

from drivehr_scraper.extractors.base import BaseExtractor
from drivehr_scraper.models import RawJobData
from drivehr_scraper.page import PageContext

logger = logging.getLogger(__name__)

JOB_POSTING_TYPE = "JobPosting"


class JsonLdExtractor(BaseExtractor):
    """
    Extracts jobs from schema.org JobPosting entries embedded as JSON-LD.
    Each script block may hold a single object, an array, or an @graph.
    """

    name = "json-ld"

    async def extract(self, page: PageContext) -> list[RawJobData]:
        html = await page.content()
        soup = BeautifulSoup(html, "html.parser")
        jobs: list[RawJobData] = []

        for script in soup.find_all("script", type="application/ld+json"):
            raw = script.string or script.get_text()
            if not raw or not raw.strip():
                continue
            try:
                data = json.loads(raw)
            except json.JSONDecodeError as e:
                # A broken block must not stop us from reading the others
                logger.debug(f"Skipping invalid JSON-LD block: {e}")
                continue

            for item in self._flatten(data):
                if self._is_job_posting(item):
                    jobs.append(self._to_raw_job(item))

        return jobs

    @staticmethod
    def _flatten(data: Any) -> list[dict[str, Any]]:
        if isinstance(data, list):
            return [item for item in data if isinstance(item, dict)]
        if isinstance(data, dict):
            graph = data.get("@graph")
            if isinstance(graph, list):
                return [item for item in graph if isinstance(item, dict)]
            return [data]
        return []

    @staticmethod
    def _is_job_posting(item: dict[str, Any]) -> bool:
        item_type = item.get("@type")
        if isinstance(item_type, list):
            return JOB_POSTING_TYPE in item_type
        return item_type == JOB_POSTING_TYPE

    def _to_raw_job(self, item: dict[str, Any]) -> RawJobData:
        return {
            "id": self._text(self._identifier(item)),
            "title": self._text(item.get("title")),
            "description": self._text(item.get("description")),
            "location": self._location(item.get("jobLocation")),
            "department": self._department(item),
            "type": self._text(item.get("employmentType")),
            "posted_date": self._text(item.get("datePosted")),
            "apply_url": self._text(item.get("url") or item.get("applicationUrl")),
        }

    @staticmethod
    def _identifier(item: dict[str, Any]) -> Any:
        identifier = item.get("identifier") or item.get("id")
        # schema.org allows a PropertyValue here, e.g. {"@type": "PropertyValue", "value": "123"}
        if isinstance(identifier, dict):
            return identifier.get("value") or identifier.get("name")
        return identifier

    def _location(self, job_location: Any) -> str:
        if isinstance(job_location, list):
            job_location = job_location[0] if job_location else None
        if isinstance(job_location, dict):
            address = job_location.get("address")
            if isinstance(address, dict):
                return self._text(address.get("addressLocality"))
            return self._text(address or job_location.get("name"))
        return self._text(job_location)

    def _department(self, item: dict[str, Any]) -> str:
        organization = item.get("hiringOrganization")
        if isinstance(organization, dict):
            return self._text(organization.get("name") or item.get("department"))
        return self._text(organization or item.get("department"))

    @staticmethod
    def _text(value: Any) -> str:
        if value is None:
            return ""
        if isinstance(value, list):
            return ", ".join(str(v).strip() for v in value if v is not None and str(v).strip())
        if isinstance(value, dict):
            return ""
        return str(value).strip()
