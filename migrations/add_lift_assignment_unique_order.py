"""
Enforce one lift assignment per repair order

Migration to:
- collapse duplicate lift_assignments rows per repair_order_id, keeping the
  most recently updated one
- add a unique index on lift_assignments.repair_order_id

Safe to run more than once.
Run with: python migrations/add_lift_assignment_unique_order.py
"""

import sys
from datetime import datetime
from pathlib import Path

# Add parent directory to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from sqlalchemy import func, text  # noqa: E402
from sqlalchemy.orm import Session  # noqa: E402

from liftboard.models import LiftAssignment  # noqa: E402

UNIQUE_INDEX_NAME = "uq_lift_assignments_repair_order_id"


def _recency(assignment: LiftAssignment):
    stamp = assignment.updated_at or assignment.created_at
    if stamp is None:
        return datetime.min
    return stamp.replace(tzinfo=None)


def dedupe_lift_assignments(db: Session) -> int:
    """Delete all but the newest assignment of each order. Returns rows removed."""
    duplicated = (
        db.query(LiftAssignment.repair_order_id)
        .group_by(LiftAssignment.repair_order_id)
        .having(func.count(LiftAssignment.id) > 1)
        .all()
    )

    removed = 0
    for (order_id,) in duplicated:
        rows = (
            db.query(LiftAssignment)
            .filter(LiftAssignment.repair_order_id == order_id)
            .all()
        )
        rows.sort(key=_recency, reverse=True)
        for stale in rows[1:]:
            db.delete(stale)
            removed += 1
        print(f"✅ Order {order_id}: kept {rows[0].id}, removed {len(rows) - 1}")

    db.commit()
    return removed


def ensure_unique_index(db: Session) -> None:
    db.execute(
        text(
            f"CREATE UNIQUE INDEX IF NOT EXISTS {UNIQUE_INDEX_NAME} "
            "ON lift_assignments (repair_order_id)"
        )
    )
    db.commit()


def upgrade(db: Session) -> None:
    removed = dedupe_lift_assignments(db)
    if removed:
        print(f"🧹 Removed {removed} duplicate lift assignment(s)")
    else:
        print("ℹ️  No duplicate lift assignments found")

    ensure_unique_index(db)
    print(f"✅ Unique index {UNIQUE_INDEX_NAME} in place")


def main():
    from liftboard.database import SessionLocal

    db = SessionLocal()
    try:
        upgrade(db)
    except Exception as e:
        print(f"\n❌ ERROR: {e}")
        db.rollback()
        raise
    finally:
        db.close()


if __name__ == "__main__":
    main()
