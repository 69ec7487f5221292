"""Activity archival pipeline.

Migrates a device's live activities into the anonymized sink in bounded
pages, deleting the originals in the same atomic batch.

Pagination re-queries the first page on every iteration: deleting the page
just archived is what advances the cursor, so an interrupted run resumes
from whatever is still live.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

import structlog

from beacontrack.domain.activity.models import AnonymizedActivity, ArchiveReason
from beacontrack.domain.activity.ports import IActivityStore
from beacontrack.domain.device.models import utc_now
from beacontrack.domain.shared.errors import ArchivalFailedError, InfrastructureError
from beacontrack.domain.shared.ports.write_batch import IBatchFactory
from beacontrack.domain.shared.value_objects import ArchiveSessionId

logger = structlog.get_logger(__name__)

DEFAULT_PAGE_SIZE = 500


@dataclass(frozen=True)
class ArchivalResult:
    """Outcome of one archival run.

    A failed run still reports how many records were archived before the
    failing page; those stay archived.
    """

    device_id: str
    reason: ArchiveReason
    session_id: ArchiveSessionId
    archived_count: int
    error: Optional[ArchivalFailedError] = None

    @property
    def succeeded(self) -> bool:
        return self.error is None

    @property
    def failed(self) -> bool:
        return self.error is not None

    def raise_for_error(self) -> "ArchivalResult":
        """Raise the carried ArchivalFailedError, if any."""
        if self.error is not None:
            raise self.error
        return self


class ActivityArchivalPipeline:
    """Archives live activities of a device page by page.

    Examples:
        >>> pipeline = ActivityArchivalPipeline(store, batches)
        >>> result = await pipeline.archive("dev_1", ArchiveReason.REBIND)
        >>> result.archived_count
        100
    """

    def __init__(
        self,
        activity_store: IActivityStore,
        batch_factory: IBatchFactory,
        page_size: int = DEFAULT_PAGE_SIZE,
    ):
        if not 1 <= page_size <= DEFAULT_PAGE_SIZE:
            raise ValueError(f"page_size must be in 1..{DEFAULT_PAGE_SIZE}, got {page_size}")
        self._activities = activity_store
        self._batches = batch_factory
        self._page_size = page_size

    @property
    def page_size(self) -> int:
        return self._page_size

    async def archive(self, device_id: str, reason: ArchiveReason) -> ArchivalResult:
        """Archive every live activity of a device.

        Never raises for store failures: a failed page commit is returned
        as a failed ArchivalResult so binding flows can log and continue.

        Args:
            device_id: Device whose activities are archived
            reason: Recorded on every anonymized record

        Returns:
            ArchivalResult with the total archived count
        """
        session_id = ArchiveSessionId.generate()
        archived = 0
        pages = 0

        logger.info(
            "archival.started",
            device_id=device_id,
            reason=reason.value,
            archive_session_id=session_id.value,
        )

        try:
            while True:
                page = await self._activities.first_page(device_id, self._page_size)
                if not page:
                    break

                anonymized_at = utc_now()
                batch = self._batches.new_batch()
                for activity in page:
                    batch.add_anonymized_activity(
                        AnonymizedActivity.from_activity(
                            activity, reason, session_id, anonymized_at
                        )
                    )
                    batch.delete_activity(activity.activity_id)
                await batch.commit()

                archived += len(page)
                pages += 1
                logger.debug(
                    "archival.page_committed",
                    device_id=device_id,
                    archive_session_id=session_id.value,
                    page=pages,
                    page_count=len(page),
                )

                if len(page) < self._page_size:
                    break

        except InfrastructureError as e:
            error = ArchivalFailedError(
                device_id=device_id,
                reason=reason.value,
                archive_session_id=session_id.value,
                archived_count=archived,
                cause=e,
            )
            logger.error(
                "archival.failed",
                device_id=device_id,
                reason=reason.value,
                archive_session_id=session_id.value,
                archived_count=archived,
                error=str(e),
            )
            return ArchivalResult(device_id, reason, session_id, archived, error)

        logger.info(
            "archival.finished",
            device_id=device_id,
            reason=reason.value,
            archive_session_id=session_id.value,
            archived_count=archived,
            pages=pages,
        )
        return ArchivalResult(device_id, reason, session_id, archived)
