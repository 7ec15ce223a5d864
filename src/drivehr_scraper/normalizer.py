import logging
import re
from collections.abc import Mapping
from datetime import UTC, datetime
from typing import Any
from urllib.parse import urljoin

from dateutil import parser as date_parser

from drivehr_scraper.errors import NormalizationError
from drivehr_scraper.models import NormalizedJob, RawJobData

logger = logging.getLogger(__name__)

DEFAULT_JOB_TYPE = "Full-time"
ID_SLUG_MAX_LENGTH = 20

# Alias keys in priority order; source data is never consistent about naming.
TITLE_KEYS = ("title", "position_title", "name")
ID_KEYS = ("id", "job_id")
DEPARTMENT_KEYS = ("department", "category", "division")
LOCATION_KEYS = ("location", "city", "office")
TYPE_KEYS = ("type", "employment_type", "schedule")
DESCRIPTION_KEYS = ("description", "summary", "overview")
POSTED_DATE_KEYS = ("posted_date", "created_at", "date_posted")
APPLY_URL_KEYS = ("apply_url", "application_url", "url")


def to_iso_timestamp(value: datetime) -> str:
    """Render a datetime as ISO-8601 in UTC. Naive datetimes are taken as UTC."""
    if value.tzinfo is None:
        value = value.replace(tzinfo=UTC)
    return value.astimezone(UTC).isoformat(timespec="milliseconds")


def utc_now_iso() -> str:
    return to_iso_timestamp(datetime.now(tz=UTC))


def slugify(text: str, max_length: int = ID_SLUG_MAX_LENGTH) -> str:
    """Lowercase, collapse non-alphanumerics to single dashes, trim to max_length."""
    slug = re.sub(r"[^a-z0-9]+", "-", text.lower()).strip("-")
    return slug[:max_length].strip("-")


def parse_posted_date(value: str) -> str | None:
    """Parse a free-form date string into ISO-8601. Returns None if unparsable."""
    try:
        return to_iso_timestamp(date_parser.parse(value))
    except (ValueError, OverflowError) as e:
        logger.debug(f"Failed to parse date '{value}': {e}")
        return None


class JobNormalizer:
    """
    Maps loosely-keyed raw job records onto the NormalizedJob schema.

    Records without a usable title are dropped. A record that cannot be
    normalized at all is skipped without affecting the rest of the batch.
    """

    def normalize_jobs(
        self,
        raw_jobs: list[RawJobData],
        source: str,
        base_url: str | None = None,
    ) -> list[NormalizedJob]:
        processed_at = utc_now_iso()
        jobs: list[NormalizedJob] = []

        for index, raw_job in enumerate(raw_jobs):
            try:
                job = self.normalize_job(
                    raw_job, source, processed_at, index=index, base_url=base_url
                )
            except Exception as e:
                logger.warning(f"Skipping malformed job record at index {index}: {e}")
                continue
            if job is not None:
                jobs.append(job)

        dropped = len(raw_jobs) - len(jobs)
        if dropped:
            logger.debug(f"Dropped {dropped} of {len(raw_jobs)} raw job records")
        return jobs

    def normalize_job(
        self,
        raw_job: RawJobData,
        source: str,
        processed_at: str,
        *,
        index: int = 0,
        base_url: str | None = None,
    ) -> NormalizedJob | None:
        if not isinstance(raw_job, Mapping):
            raise NormalizationError(
                f"Expected a mapping for a raw job, got {type(raw_job).__name__}"
            )

        title = self._first_text(raw_job, TITLE_KEYS)
        if not title:
            return None  # Skip jobs without titles

        return NormalizedJob(
            id=self._first_text(raw_job, ID_KEYS)
            or self.generate_job_id(title, processed_at, index),
            title=title,
            department=self._first_text(raw_job, DEPARTMENT_KEYS),
            location=self._first_text(raw_job, LOCATION_KEYS),
            type=self._first_text(raw_job, TYPE_KEYS) or DEFAULT_JOB_TYPE,
            description=self._first_text(raw_job, DESCRIPTION_KEYS),
            posted_date=self._posted_date(raw_job, processed_at),
            apply_url=self._apply_url(raw_job, base_url),
            source=source,
            raw_data=dict(raw_job),
            processed_at=processed_at,
        )

    @staticmethod
    def generate_job_id(title: str, processed_at: str, index: int) -> str:
        """
        Build an id from the title slug, the batch timestamp and the record's
        position, so same-titled postings in one batch stay distinct.
        """
        slug = slugify(title) or "job"
        try:
            stamp = int(datetime.fromisoformat(processed_at).timestamp() * 1000)
        except ValueError:
            stamp = int(datetime.now(tz=UTC).timestamp() * 1000)
        return f"{slug}-{stamp}-{index}"

    @staticmethod
    def _first_text(raw_job: Mapping[str, Any], keys: tuple[str, ...]) -> str:
        for key in keys:
            value = raw_job.get(key)
            if isinstance(value, bool) or value is None:
                continue
            if isinstance(value, (int, float)):
                value = str(value)
            if isinstance(value, str) and value.strip():
                return value.strip()
        return ""

    def _posted_date(self, raw_job: Mapping[str, Any], processed_at: str) -> str:
        value = self._first_text(raw_job, POSTED_DATE_KEYS)
        if not value:
            return processed_at
        return parse_posted_date(value) or processed_at

    def _apply_url(self, raw_job: Mapping[str, Any], base_url: str | None) -> str:
        value = self._first_text(raw_job, APPLY_URL_KEYS)
        if not value or not base_url:
            return value
        try:
            return urljoin(base_url, value)
        except ValueError as e:
            logger.debug(f"Dropping unparsable apply URL '{value}': {e}")
            return ""
