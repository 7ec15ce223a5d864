from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

DRIVEHR_BASE_URL = "https://drivehris.app"

DEFAULT_USER_AGENT = "DriveHR-Scraper/2.0 (Playwright)"
DEFAULT_WAIT_SELECTOR = ".job-listing, .job-item, .career-listing"
DEFAULT_BROWSER_ARGS = [
    "--no-sandbox",
    "--disable-dev-shm-usage",
    "--disable-gpu",
    "--disable-background-timer-throttling",
    "--disable-backgrounding-occluded-windows",
    "--disable-renderer-backgrounding",
]

# A job as found in markup or structured data, before interpretation.
RawJobData = dict[str, Any]

FetchMethod = Literal["browser", "html", "none"]


class CamelModel(BaseModel):
    """Base model that serializes to the camelCase wire format but accepts both forms."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class NormalizedJob(CamelModel):
    """
    Canonical job record handed to downstream consumers.
    Every scrape path produces instances of this model.
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    id: str = Field(min_length=1)
    title: str = Field(min_length=1)
    department: str = ""
    location: str = ""
    type: str = "Full-time"
    description: str = ""
    posted_date: str
    apply_url: str = ""
    source: str
    raw_data: RawJobData = Field(default_factory=dict)
    processed_at: str


class FetchResult(CamelModel):
    """Outcome of one fetch invocation. Created once and never mutated."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    jobs: list[NormalizedJob] = Field(default_factory=list)
    method: FetchMethod
    success: bool
    error: str | None = None
    message: str | None = None
    fetched_at: str
    total_count: int = 0


class ScrapeResult(FetchResult):
    """FetchResult produced by the browser path, with page metadata."""

    method: FetchMethod = "browser"
    url: str
    scraped_at: str
    screenshot_path: str | None = None


class CareersConfig(CamelModel):
    """Identifies the careers page to scrape."""

    careers_url: str = ""
    company_id: str = ""
    api_base_url: str = ""
    timeout: int | None = Field(default=None, gt=0)  # milliseconds
    retries: int | None = Field(default=None, ge=1)

    def build_careers_url(self) -> str:
        """Return the explicit careers URL, or the DriveHR listing URL for the company."""
        if self.careers_url:
            return self.careers_url
        return f"{DRIVEHR_BASE_URL}/careers/{self.company_id}/list"


class ScraperSettings(CamelModel):
    """Browser and retry behaviour for the Playwright scraper."""

    headless: bool = True
    timeout: int = Field(default=30000, gt=0)  # milliseconds
    wait_for_selector: str | None = DEFAULT_WAIT_SELECTOR
    retries: int = Field(default=3, ge=1)
    retry_delay: float = Field(default=0.0, ge=0)  # seconds
    debug: bool = False
    user_agent: str = DEFAULT_USER_AGENT
    browser_args: list[str] = Field(default_factory=lambda: list(DEFAULT_BROWSER_ARGS))
    stealth: bool = True
    screenshot_dir: str = "./temp"
