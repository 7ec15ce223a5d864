from abc import ABC, abstractmethod

from drivehr_scraper.models import RawJobData
from drivehr_scraper.page import PageContext


class BaseExtractor(ABC):
    """
    Abstract base class for page extraction strategies.
    """

    name: str = "extractor"

    @abstractmethod
    async def extract(self, page: PageContext) -> list[RawJobData]:
        """
        Pull raw job records out of the page. An empty list means this
        strategy found nothing and the next one should be tried.
        """
        pass
