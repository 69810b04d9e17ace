from abc import ABC, abstractmethod
from jobscan.models import RawPost


class BaseScraper(ABC):
    @abstractmethod
    def scrape(self) -> list[RawPost]:
        """Fetch raw posts from source"""
        pass
