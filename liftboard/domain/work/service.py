"""Repair work service - item start/complete, order parts-wait, per-worker work list"""

import logging
from typing import Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ...models import (
    ITEM_COMPLETED,
    ITEM_IN_PROGRESS,
    ITEM_PENDING,
    ORDER_COMPLETED,
    ORDER_IN_PROGRESS,
    RepairItem,
    RepairOrder,
    Worker,
    utcnow,
)
from ..scheduling.exceptions import NotFound, StoreUnavailable
from ..scheduling.service import store_errors
from ..scheduling.workers import is_missing_assigned_workers_table
from .repository import WorkRepository
from .schemas import MyWorkResponse, OrderPartsWaitUpdate, WorkItemOut

logger = logging.getLogger(__name__)


class WorkService:
    """Service layer for repair item progress"""

    def __init__(self, db: Session):
        self.db = db
        self.repo = WorkRepository()

    def list_workers(self) -> list[Worker]:
        with store_errors("repair_workers", self.db):
            return self.repo.list_active_workers(self.db)

    def get_item(self, item_id: str) -> RepairItem:
        with store_errors("repair_items", self.db):
            item = self.repo.get_item(self.db, item_id)
        if not item:
            raise NotFound("Repair item", item_id)
        return item

    def get_order(self, order_id: str) -> RepairOrder:
        with store_errors("general_repair_orders", self.db):
            order = self.repo.get_order(self.db, order_id)
        if not order:
            raise NotFound("Repair order", order_id)
        return order

    def start_item(self, item_id: str, worker_id: Optional[str] = None) -> RepairItem:
        """Mark an item in progress; the order follows"""
        item = self.get_item(item_id)
        if worker_id:
            self._require_worker(worker_id)

        now = utcnow()
        with store_errors("repair_items", self.db, action="save"):
            item.status = ITEM_IN_PROGRESS
            item.started_at = now
            if worker_id:
                item.worker_id = worker_id
            order = self.repo.get_order(self.db, item.order_id)
            if order and order.status != ORDER_COMPLETED:
                order.status = ORDER_IN_PROGRESS
                order.updated_at = now
            self.db.commit()

        if worker_id:
            self._ensure_worker_link(item_id, worker_id)

        logger.info(f"🔧 Item {item_id} started (worker: {worker_id or '-'})")
        self.db.refresh(item)
        return item

    def complete_item(
        self, item_id: str, worker_id: Optional[str] = None
    ) -> tuple[RepairItem, bool]:
        """
        Mark an item completed.

        When it was the order's last incomplete item the order is completed too,
        which takes it off the lift board. Returns (item, order_completed).
        """
        item = self.get_item(item_id)
        if worker_id:
            self._require_worker(worker_id)

        order_completed = False
        with store_errors("repair_items", self.db, action="save"):
            item.status = ITEM_COMPLETED
            item.completed_at = utcnow()
            if worker_id:
                item.worker_id = worker_id
            self.db.flush()

            if self.repo.count_incomplete_items(self.db, item.order_id) == 0:
                order = self.repo.get_order(self.db, item.order_id)
                if order:
                    order.status = ORDER_COMPLETED
                    order.updated_at = utcnow()
                    order_completed = True
            self.db.commit()

        if order_completed:
            logger.info(f"✅ Order {item.order_id} completed with item {item_id}")
        self.db.refresh(item)
        return item, order_completed

    def set_order_parts_wait(self, order_id: str, data: OrderPartsWaitUpdate) -> RepairOrder:
        order = self.get_order(order_id)
        fields = data.model_dump(exclude_unset=True)

        # The order table keeps its own column names for the wait window
        if "parts_wait_start" in fields:
            fields["parts_order_start_time"] = fields.pop("parts_wait_start")
        if "parts_wait_end" in fields:
            fields["parts_expected_end_time"] = fields.pop("parts_wait_end")

        with store_errors("general_repair_orders", self.db, action="save"):
            for key, value in fields.items():
                setattr(order, key, value)
            order.updated_at = utcnow()
            self.db.commit()
            self.db.refresh(order)
        return order

    def get_my_work(self, worker_id: str) -> MyWorkResponse:
        """A worker's items through both the join table and the legacy worker_id"""
        assigned_ids = self._assigned_item_ids(worker_id)
        with store_errors("repair_items", self.db):
            legacy_ids = self.repo.list_legacy_item_ids(self.db, worker_id)
            item_ids = list(dict.fromkeys(assigned_ids + legacy_ids))
            items = self.repo.list_items(self.db, item_ids)

        response = MyWorkResponse()
        buckets = {
            ITEM_PENDING: response.pending,
            ITEM_IN_PROGRESS: response.inProgress,
            ITEM_COMPLETED: response.completed,
        }
        for item in items:
            bucket = buckets.get(item.status)
            if bucket is not None:
                bucket.append(WorkItemOut.model_validate(item))
        return response

    def _require_worker(self, worker_id: str) -> None:
        with store_errors("repair_workers", self.db):
            worker = self.repo.get_worker(self.db, worker_id)
        if not worker:
            raise NotFound("Worker", worker_id)

    def _assigned_item_ids(self, worker_id: str) -> list[str]:
        try:
            return self.repo.list_assigned_item_ids(self.db, worker_id)
        except SQLAlchemyError as e:
            self.db.rollback()
            if not is_missing_assigned_workers_table(e):
                logger.error(f"❌ Worker assignment lookup failed: {e}")
                raise StoreUnavailable("repair_item_assigned_workers") from e
            logger.warning("⚠️ Worker assignment join unavailable, using legacy items only")
            return []

    def _ensure_worker_link(self, item_id: str, worker_id: str) -> None:
        try:
            if not self.repo.has_worker_link(self.db, item_id, worker_id):
                self.repo.add_worker_link(self.db, item_id, worker_id)
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            if not is_missing_assigned_workers_table(e):
                logger.error(f"❌ Failed to link worker {worker_id} to item {item_id}: {e}")
                raise StoreUnavailable(
                    "repair_item_assigned_workers", "Failed to save repair_item_assigned_workers"
                ) from e
            logger.warning(
                f"⚠️ Worker assignment join unavailable, item {item_id} keeps legacy worker only"
            )
