"""Activity store port (interface)."""

from abc import ABC, abstractmethod
from typing import List

from beacontrack.domain.activity.models import Activity, AnonymizedActivity


class IActivityStore(ABC):
    """Typed access to live activities and the anonymized sink.

    Live activities are read in a stable order (ascending activity id) so
    that archival can re-query the first page until nothing remains.
    """

    @abstractmethod
    async def first_page(self, device_id: str, limit: int) -> List[Activity]:
        """Return up to ``limit`` live activities of a device, oldest id first."""
        pass

    @abstractmethod
    async def count_live(self, device_id: str) -> int:
        """Count live activities of a device."""
        pass

    @abstractmethod
    async def add(self, activity: Activity) -> None:
        """Insert a live activity (ingestion path)."""
        pass

    @abstractmethod
    async def count_anonymized(self, device_id: str) -> int:
        """Count anonymized records carrying the given device id."""
        pass

    @abstractmethod
    async def find_by_session(self, archive_session_id: str) -> List[AnonymizedActivity]:
        """Return every anonymized record produced by one archival run."""
        pass
