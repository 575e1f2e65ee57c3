#!/usr/bin/env python3
"""Delete resource shares that expired long ago.

Expired shares already grant nothing; this only reclaims storage. Shares
are kept for COLLAB_ACCESS_SHARE_RETENTION_DAYS after expiry unless
--retention-days overrides it.

Usage:
    ./scripts/purge_expired_shares.py
    ./scripts/purge_expired_shares.py --retention-days 7
"""

import argparse
import asyncio
import sys
from datetime import timedelta
from pathlib import Path

from rich.console import Console

# Add src/api to path so we can import from it
src_api_path = Path(__file__).parent.parent / "src" / "api"
sys.path.insert(0, str(src_api_path))

from access.dependencies import get_share_service  # noqa: E402
from infrastructure.database.dependencies import (  # noqa: E402
    close_database_connections,
    get_write_session,
)
from infrastructure.logging import configure_logging  # noqa: E402
from infrastructure.settings import get_access_settings, get_settings  # noqa: E402

console = Console()


def parse_args():
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        description="Delete resource shares that expired more than N days ago",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
    )
    parser.add_argument(
        "--retention-days",
        type=int,
        default=get_access_settings().share_retention_days,
        help="Days an expired share is kept before deletion",
    )
    return parser.parse_args()


async def purge(retention_days: int) -> int:
    """Run the purge in one transaction and return the number of deleted shares."""
    try:
        async for session in get_write_session():
            service = get_share_service(session)
            return await service.purge_expired_shares(timedelta(days=retention_days))
        return 0
    finally:
        await close_database_connections()


def main():
    """Main entry point."""
    args = parse_args()
    if args.retention_days < 0:
        console.print("[red]--retention-days must not be negative[/red]")
        sys.exit(2)

    configure_logging(debug=get_settings().debug, service="purge-expired-shares")
    count = asyncio.run(purge(args.retention_days))
    console.print(
        f"[green]Deleted {count} share(s) expired more than "
        f"{args.retention_days} day(s) ago[/green]"
    )


if __name__ == "__main__":
    try:
        main()
    except KeyboardInterrupt:
        console.print("\n\n[yellow]Interrupted by user[/yellow]")
        sys.exit(130)
