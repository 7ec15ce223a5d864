import os

from dotenv import load_dotenv

from drivehr_scraper.models import (
    DEFAULT_USER_AGENT,
    DRIVEHR_BASE_URL,
    CareersConfig,
    ScraperSettings,
)

# Load environment variables from .env file
load_dotenv()

_TRUE_VALUES = {"1", "true", "yes", "on"}
_FALSE_VALUES = {"0", "false", "no", "off"}


def get_config() -> dict[str, str]:
    """
    Read raw configuration values from environment variables.
    Validation happens lazily, when a value is accessed.
    """
    return {
        "DRIVEHR_COMPANY_ID": os.getenv("DRIVEHR_COMPANY_ID", "").strip(),
        "DRIVEHR_CAREERS_URL": os.getenv("DRIVEHR_CAREERS_URL", "").strip(),
        "DRIVEHR_API_BASE_URL": os.getenv("DRIVEHR_API_BASE_URL", "").strip(),
        "SCRAPER_TIMEOUT": os.getenv("SCRAPER_TIMEOUT", "30000"),
        "SCRAPER_RETRIES": os.getenv("SCRAPER_RETRIES", "3"),
        "SCRAPER_HEADLESS": os.getenv("SCRAPER_HEADLESS", "true"),
        "SCRAPER_DEBUG": os.getenv("SCRAPER_DEBUG", "false"),
        "SCRAPER_USER_AGENT": os.getenv("SCRAPER_USER_AGENT", DEFAULT_USER_AGENT),
        "ENVIRONMENT": os.getenv("ENVIRONMENT", "production"),
        "LOG_LEVEL": os.getenv("LOG_LEVEL", "INFO"),
    }


def _parse_positive_int(name: str, raw: str) -> int:
    try:
        value = int(raw)
    except ValueError:
        raise ValueError(f"{name} must be a positive integer, got '{raw}'") from None
    if value <= 0:
        raise ValueError(f"{name} must be a positive integer, got {value}")
    return value


def _parse_bool(name: str, raw: str) -> bool:
    lowered = raw.strip().lower()
    if lowered in _TRUE_VALUES:
        return True
    if lowered in _FALSE_VALUES:
        return False
    raise ValueError(f"{name} must be a boolean (true/false), got '{raw}'")


class _Config:
    """Lazy configuration that only validates when values are actually accessed."""

    def __init__(self) -> None:
        self._config: dict[str, str] | None = None

    def _load(self) -> dict[str, str]:
        if self._config is None:
            self._config = get_config()
        return self._config

    @property
    def DRIVEHR_COMPANY_ID(self) -> str:
        company_id = self._load()["DRIVEHR_COMPANY_ID"]
        if not company_id:
            raise ValueError("DRIVEHR_COMPANY_ID is not set in the environment variables.")
        return company_id

    @property
    def optional_company_id(self) -> str:
        """Company id, or an empty string when it is not set."""
        return self._load()["DRIVEHR_COMPANY_ID"]

    @property
    def DRIVEHR_CAREERS_URL(self) -> str:
        """Explicit careers URL. Empty means derive it from the company id."""
        return self._load()["DRIVEHR_CAREERS_URL"]

    @property
    def DRIVEHR_API_BASE_URL(self) -> str:
        return self.api_base_url_for(self.DRIVEHR_COMPANY_ID)

    def api_base_url_for(self, company_id: str) -> str:
        configured = self._load()["DRIVEHR_API_BASE_URL"]
        if configured or not company_id:
            return configured
        return f"{DRIVEHR_BASE_URL}/careers/{company_id}"

    @property
    def SCRAPER_TIMEOUT(self) -> int:
        """Navigation timeout in milliseconds."""
        return _parse_positive_int("SCRAPER_TIMEOUT", self._load()["SCRAPER_TIMEOUT"])

    @property
    def SCRAPER_RETRIES(self) -> int:
        return _parse_positive_int("SCRAPER_RETRIES", self._load()["SCRAPER_RETRIES"])

    @property
    def SCRAPER_HEADLESS(self) -> bool:
        return _parse_bool("SCRAPER_HEADLESS", self._load()["SCRAPER_HEADLESS"])

    @property
    def SCRAPER_DEBUG(self) -> bool:
        """Debug mode is on when requested explicitly or when running in development."""
        config = self._load()
        if config["ENVIRONMENT"].strip().lower() == "development":
            return True
        return _parse_bool("SCRAPER_DEBUG", config["SCRAPER_DEBUG"])

    @property
    def SCRAPER_USER_AGENT(self) -> str:
        return self._load()["SCRAPER_USER_AGENT"] or DEFAULT_USER_AGENT

    @property
    def LOG_LEVEL(self) -> str:
        return self._load()["LOG_LEVEL"].strip().upper() or "INFO"


_cfg = _Config()

# Module-level type declarations for mypy.
# The actual values come from __getattr__ below.
DRIVEHR_COMPANY_ID: str
DRIVEHR_CAREERS_URL: str
DRIVEHR_API_BASE_URL: str
SCRAPER_TIMEOUT: int
SCRAPER_RETRIES: int
SCRAPER_HEADLESS: bool
SCRAPER_DEBUG: bool
SCRAPER_USER_AGENT: str
LOG_LEVEL: str

_LAZY_NAMES = {
    "DRIVEHR_COMPANY_ID",
    "DRIVEHR_CAREERS_URL",
    "DRIVEHR_API_BASE_URL",
    "SCRAPER_TIMEOUT",
    "SCRAPER_RETRIES",
    "SCRAPER_HEADLESS",
    "SCRAPER_DEBUG",
    "SCRAPER_USER_AGENT",
    "LOG_LEVEL",
}


# Module-level lazy access using __getattr__ (PEP 562).
def __getattr__(name: str) -> str | int | bool:
    if name in _LAZY_NAMES:
        return getattr(_cfg, name)
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")


def get_careers_config(
    company_id: str | None = None,
    careers_url: str | None = None,
) -> CareersConfig:
    """
    Build the careers page config from the environment.
    Explicit arguments (e.g. from the command line) take precedence. The
    company id is only required when there is no careers URL to scrape.
    """
    cfg = _Config()
    careers_url = careers_url or cfg.DRIVEHR_CAREERS_URL
    if not company_id:
        company_id = cfg.DRIVEHR_COMPANY_ID if not careers_url else cfg.optional_company_id
    return CareersConfig(
        company_id=company_id,
        careers_url=careers_url,
        api_base_url=cfg.api_base_url_for(company_id),
        timeout=cfg.SCRAPER_TIMEOUT,
        retries=cfg.SCRAPER_RETRIES,
    )


def get_scraper_settings() -> ScraperSettings:
    """Build browser settings from the environment."""
    cfg = _Config()
    return ScraperSettings(
        headless=cfg.SCRAPER_HEADLESS,
        timeout=cfg.SCRAPER_TIMEOUT,
        retries=cfg.SCRAPER_RETRIES,
        debug=cfg.SCRAPER_DEBUG,
        user_agent=cfg.SCRAPER_USER_AGENT,
    )
