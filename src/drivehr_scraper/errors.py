class ScraperError(Exception):
    """Base class for errors raised while acquiring job data."""


class BrowserSessionError(ScraperError):
    """The browser, context or page could not be created."""


class NavigationError(ScraperError):
    """Loading the careers page failed or timed out."""


class PageUnavailableError(ScraperError):
    """The live page could not return its content (crashed, closed or detached)."""


class ExtractionError(ScraperError):
    """An extractor could not make sense of the page."""


class NormalizationError(ScraperError):
    """A single raw job record could not be normalized."""


class FetchError(ScraperError):
    """An acquisition strategy could not retrieve the careers page."""
