"""Recompute inherited notification points for every device of some tenants.

Run after a tenant's notification points change.

Usage:
    python scripts/sync_tenant_notification_points.py TENANT_ID [TENANT_ID ...]

Environment Variables:
    REPOSITORY_BACKEND: must be "mongodb" for a real sync
    MONGODB_URI / MONGODB_DATABASE: see setup_mongodb_indexes.py
"""

import argparse
import asyncio
import sys
from pathlib import Path
from typing import List, Optional

import structlog
from dotenv import load_dotenv

from beacontrack.application.inheritance.resolver import NotificationInheritanceResolver
from beacontrack.infrastructure.logging_config import configure_logging
from beacontrack.infrastructure.persistence.factory import get_persistence, reset_persistence

env_path = Path(__file__).parent.parent / ".env"
if env_path.exists():
    load_dotenv(env_path)

logger = structlog.get_logger(__name__)


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description=__doc__.splitlines()[0])
    parser.add_argument("tenant_ids", nargs="+", metavar="TENANT_ID")
    return parser.parse_args(argv)


async def main(argv: Optional[List[str]] = None) -> int:
    args = parse_args(argv)
    persistence = get_persistence()
    resolver = NotificationInheritanceResolver(
        persistence.devices, persistence.notification_points, persistence.batches
    )

    try:
        result = await resolver.sync_all_tenants(args.tenant_ids)
    finally:
        reset_persistence()

    for tenant_id, report in result.reports.items():
        print(f"{tenant_id}\tscanned={report.scanned}\tupdated={len(report.updated)}")
    for tenant_id, error in result.failures.items():
        print(f"{tenant_id}\tFAILED\t{error}", file=sys.stderr)

    return 1 if result.failures else 0


if __name__ == "__main__":
    configure_logging()
    sys.exit(asyncio.run(main()))
