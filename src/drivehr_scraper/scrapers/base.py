from abc import ABC, abstractmethod

from drivehr_scraper.models import CareersConfig, FetchMethod, RawJobData
from drivehr_scraper.transport import BaseTransport


class FetchStrategy(ABC):
    """
    Abstract base class for job acquisition strategies.
    """

    name: FetchMethod

    @abstractmethod
    def can_handle(self, config: CareersConfig) -> bool:
        """
        Whether this strategy applies to the config. Returning False is not an
        error; the orchestrator simply moves on to the next strategy.
        """
        pass

    @abstractmethod
    async def fetch_jobs(self, config: CareersConfig, transport: BaseTransport) -> list[RawJobData]:
        """
        Acquire raw job records. Raises when the data could not be acquired;
        an empty list means the careers page genuinely lists no jobs.
        """
        pass
