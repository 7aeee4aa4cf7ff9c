"""
Active-work resolution for the lift board.

An order is active while it has a repair (``sua_chua``) item that is not
completed. Workers reach an order's in-progress items two ways: the
``repair_item_assigned_workers`` join table, and the older single
``repair_items.worker_id`` column. Both are read and merged here so callers
only ever see one de-duplicated worker list per order.
"""

import logging
from typing import Iterable, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ...models import RepairItemWorker
from .exceptions import DegradedJoin
from .repository import ScheduleRepository
from .schemas import ActiveWorker

logger = logging.getLogger(__name__)

MISSING_TABLE_MARKERS = ("does not exist", "no such table", "schema cache")


def is_missing_assigned_workers_table(error: BaseException) -> bool:
    """True when a store error says the worker join table is absent or not migrated yet"""
    message = str(getattr(error, "orig", None) or error)
    return RepairItemWorker.__tablename__ in message and any(
        marker in message for marker in MISSING_TABLE_MARKERS
    )


def resolve_active_order_ids(db: Session) -> list[str]:
    return ScheduleRepository.list_active_order_ids(db)


def merge_worker_links(*sources: Iterable[tuple]) -> dict[str, list[ActiveWorker]]:
    """Union (order_id, worker_id, name, worker_type) rows, one entry per worker per order"""
    merged: dict[str, list[ActiveWorker]] = {}
    seen: dict[str, set[str]] = {}

    for links in sources:
        for order_id, worker_id, name, worker_type in links:
            order_seen = seen.setdefault(order_id, set())
            if worker_id in order_seen:
                continue
            order_seen.add(worker_id)
            merged.setdefault(order_id, []).append(
                ActiveWorker(id=worker_id, name=name, worker_type=worker_type)
            )

    return merged


class ActiveWorkerResolver:
    """Resolves the workers currently active on each order"""

    def __init__(self, repo: Optional[ScheduleRepository] = None):
        self.repo = repo or ScheduleRepository()

    def active_workers_by_order(
        self, db: Session, order_ids: list[str]
    ) -> dict[str, list[ActiveWorker]]:
        if not order_ids:
            return {}

        try:
            assigned = self._assigned_links(db, order_ids)
        except DegradedJoin as e:
            logger.warning(f"⚠️ Worker assignment join unavailable, using legacy workers only: {e}")
            assigned = []

        legacy = self.repo.list_legacy_worker_links(db, order_ids)
        return merge_worker_links(assigned, legacy)

    def active_workers_for_order(self, db: Session, order_id: str) -> list[ActiveWorker]:
        return self.active_workers_by_order(db, [order_id]).get(order_id, [])

    def _assigned_links(self, db: Session, order_ids: list[str]) -> list[tuple]:
        try:
            return self.repo.list_assigned_worker_links(db, order_ids)
        except SQLAlchemyError as e:
            if not is_missing_assigned_workers_table(e):
                raise
            # The failed statement poisons the transaction on PostgreSQL
            db.rollback()
            raise DegradedJoin(f"{RepairItemWorker.__tablename__} is missing or out of date") from e
