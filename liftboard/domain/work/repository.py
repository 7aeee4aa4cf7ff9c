"""Repair work repository - item, worker and order queries"""

from typing import Optional

from sqlalchemy.orm import Session, joinedload

from ...models import (
    ITEM_COMPLETED,
    RepairItem,
    RepairItemWorker,
    RepairOrder,
    Worker,
)


class WorkRepository:
    """Repository for repair item and worker operations"""

    @staticmethod
    def list_active_workers(db: Session) -> list[Worker]:
        return db.query(Worker).filter(Worker.is_active.is_(True)).order_by(Worker.name).all()

    @staticmethod
    def get_item(db: Session, item_id: str) -> Optional[RepairItem]:
        return db.query(RepairItem).filter(RepairItem.id == item_id).first()

    @staticmethod
    def get_order(db: Session, order_id: str) -> Optional[RepairOrder]:
        return db.query(RepairOrder).filter(RepairOrder.id == order_id).first()

    @staticmethod
    def list_assigned_item_ids(db: Session, worker_id: str) -> list[str]:
        rows = (
            db.query(RepairItemWorker.repair_item_id)
            .filter(RepairItemWorker.worker_id == worker_id)
            .all()
        )
        return [row[0] for row in rows]

    @staticmethod
    def list_legacy_item_ids(db: Session, worker_id: str) -> list[str]:
        rows = db.query(RepairItem.id).filter(RepairItem.worker_id == worker_id).all()
        return [row[0] for row in rows]

    @staticmethod
    def list_items(db: Session, item_ids: list[str]) -> list[RepairItem]:
        if not item_ids:
            return []
        return (
            db.query(RepairItem)
            .options(joinedload(RepairItem.order))
            .filter(RepairItem.id.in_(item_ids))
            .order_by(RepairItem.started_at.desc(), RepairItem.id.asc())
            .all()
        )

    @staticmethod
    def count_incomplete_items(db: Session, order_id: str) -> int:
        return (
            db.query(RepairItem)
            .filter(RepairItem.order_id == order_id, RepairItem.status != ITEM_COMPLETED)
            .count()
        )

    @staticmethod
    def has_worker_link(db: Session, item_id: str, worker_id: str) -> bool:
        return (
            db.query(RepairItemWorker.id)
            .filter(
                RepairItemWorker.repair_item_id == item_id,
                RepairItemWorker.worker_id == worker_id,
            )
            .first()
            is not None
        )

    @staticmethod
    def add_worker_link(db: Session, item_id: str, worker_id: str) -> None:
        db.add(RepairItemWorker(repair_item_id=item_id, worker_id=worker_id))
        db.flush()

    @staticmethod
    def get_worker(db: Session, worker_id: str) -> Optional[Worker]:
        return db.query(Worker).filter(Worker.id == worker_id).first()
