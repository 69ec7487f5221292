"""Archive live activities left on UNBOUND (ghost) devices.

Dry-run by default: only reports what would be archived.

Usage:
    python scripts/cleanup_ghost_activities.py          # report only
    python scripts/cleanup_ghost_activities.py --live   # archive

Environment Variables:
    REPOSITORY_BACKEND: must be "mongodb" for a real sweep
    MONGODB_URI / MONGODB_DATABASE: see setup_mongodb_indexes.py
    ARCHIVAL_PAGE_SIZE: records per archival batch (default: 500)
"""

import argparse
import asyncio
import sys
from pathlib import Path
from typing import List, Optional

import structlog
from dotenv import load_dotenv

from beacontrack.application.archival.pipeline import ActivityArchivalPipeline
from beacontrack.application.maintenance.ghost_cleanup import GhostActivityCleanup
from beacontrack.domain.shared.errors import DomainError
from beacontrack.infrastructure.config import get_archival_page_size
from beacontrack.infrastructure.logging_config import configure_logging
from beacontrack.infrastructure.persistence.factory import get_persistence, reset_persistence

env_path = Path(__file__).parent.parent / ".env"
if env_path.exists():
    load_dotenv(env_path)

logger = structlog.get_logger(__name__)


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description=__doc__.splitlines()[0])
    parser.add_argument(
        "--live",
        action="store_true",
        help="archive ghost activities (default is a dry run)",
    )
    return parser.parse_args(argv)


async def main(argv: Optional[List[str]] = None) -> int:
    args = parse_args(argv)
    persistence = get_persistence()
    cleanup = GhostActivityCleanup(
        devices=persistence.devices,
        activities=persistence.activities,
        pipeline=ActivityArchivalPipeline(
            persistence.activities, persistence.batches, get_archival_page_size()
        ),
    )

    try:
        stats = await cleanup.run(dry_run=not args.live)
    except DomainError as e:
        logger.error("ghost_cleanup.aborted", error=str(e))
        return 1
    finally:
        reset_persistence()

    for device_id, count in sorted(stats.ghost_devices.items()):
        print(f"{device_id}\t{count}")
    print(
        f"scanned={stats.scanned_devices} ghosts={len(stats.ghost_devices)} "
        f"activities={stats.ghost_activity_count} archived={stats.archived_count} "
        f"errors={len(stats.errors)} dry_run={stats.dry_run}"
    )
    for error in stats.errors:
        print(f"ERROR {error}", file=sys.stderr)

    return 1 if stats.errors else 0


if __name__ == "__main__":
    configure_logging()
    sys.exit(asyncio.run(main()))
