# ------------------------------ IMPORTS ------------------------------
"""
Orphan contribution cleanup.

Removes UPDATE contributions whose target vehicle was deleted, together with
their votes. Safe to run repeatedly and alongside live traffic.
Usage: python reconcile_orphans.py [--dry-run]
"""
import argparse
import sys
import logging

from core.database import SessionLocal
from contributions.reconciler import OrphanReconciler

# ------------------------------ LOGGING ------------------------------
logger = logging.getLogger("reconcile_orphans")

# ------------------------------ MAIN ------------------------------

def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description="Remove orphaned UPDATE contributions")
    parser.add_argument("--dry-run", action="store_true", help="List orphans without deleting them")
    args = parser.parse_args(argv)

    db = SessionLocal()
    try:
        reconciler = OrphanReconciler(db)
        if args.dry_run:
            orphans = reconciler.find_orphans()
            for orphan in orphans:
                logger.info(f"Orphan: contribution {orphan.contribution_id} -> missing vehicle {orphan.missing_vehicle_id}")
            logger.info(f"{len(orphans)} orphan(s) found")
            return 0

        report = reconciler.reconcile()
        logger.info(f"Removed {report.removed} orphaned contribution(s)")
        return 0
    except Exception as e:
        logger.error(f"Orphan reconciliation failed: {e}")
        db.rollback()
        return 1
    finally:
        db.close()

if __name__ == "__main__":
    sys.exit(main())

# ------------------------------ END OF FILE ------------------------------
