#!/usr/bin/env python
"""Remove bank transactions whose connection no longer exists.

Deleting a connection removes its transactions one by one; if some of
those deletes failed, the API reported their ids and the transactions
were left behind. This script finds and deletes them.

Usage:
    python -m scripts.purge_orphan_transactions
    python -m scripts.purge_orphan_transactions --dry-run
"""

import argparse

from database import get_session_local, init_db
from services.connection_service import ConnectionService
from services.record_store import SQLRecordStore


def purge_orphan_transactions(dry_run: bool = False) -> list[str]:
    """Delete (or with ``dry_run`` only list) orphaned transactions."""
    init_db()
    SessionLocal = get_session_local()
    db = SessionLocal()

    try:
        service = ConnectionService(SQLRecordStore(db))
        orphans = service.purge_orphaned_transactions(dry_run=dry_run)

        print(f"Found {len(orphans)} orphaned transactions")
        for tx_id in orphans:
            print(f"  - {tx_id}")

        if dry_run:
            print("\n[DRY RUN] No changes made. Run without --dry-run to apply.")
        elif orphans:
            print("\nCleanup complete!")
        return orphans
    finally:
        db.close()


if __name__ == "__main__":
    parser = argparse.ArgumentParser(
        description="Remove transactions left behind by partial connection deletes"
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Show what would be deleted without making changes",
    )
    args = parser.parse_args()

    purge_orphan_transactions(dry_run=args.dry_run)
