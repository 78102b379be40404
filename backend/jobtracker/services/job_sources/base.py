from abc import ABC, abstractmethod
from typing import List, Optional
from jobtracker.schemas import ExternalJob


class BaseJobSource(ABC):
    """Base class for external job search providers"""

    source: str = "unknown"
    timeout: float = 15.0

    @abstractmethod
    async def search(self, search_term: str, engine: Optional[str] = None) -> List[ExternalJob]:
        """Run one search and return normalized results"""
        pass
