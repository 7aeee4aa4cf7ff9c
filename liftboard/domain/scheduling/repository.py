"""Schedule repository - Database operations behind the lift board"""

from datetime import datetime
from typing import Any, Optional

from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.orm import Session

from ...models import (
    APPOINTMENT_PENDING,
    ITEM_COMPLETED,
    ITEM_IN_PROGRESS,
    ORDER_COMPLETED,
    REPAIR_TYPE_REPAIR,
    Appointment,
    Lift,
    LiftAssignment,
    RepairItem,
    RepairItemWorker,
    RepairOrder,
    Worker,
    generate_id,
    utcnow,
)

# Dialects with a native INSERT ... ON CONFLICT DO UPDATE
_UPSERT_INSERTS = {
    "postgresql": postgresql.insert,
    "sqlite": sqlite.insert,
}


class ScheduleRepository:
    """Repository for lift board database operations.

    Every method taking a list of identifiers returns an empty list without
    querying when that list is empty.
    """

    @staticmethod
    def list_active_lifts(db: Session) -> list[Lift]:
        """Active lifts in board order"""
        return (
            db.query(Lift)
            .filter(Lift.is_active.is_(True))
            .order_by(Lift.position.asc())
            .all()
        )

    @staticmethod
    def get_lift(db: Session, lift_id: str) -> Optional[Lift]:
        return db.query(Lift).filter(Lift.id == lift_id).first()

    @staticmethod
    def list_active_order_ids(db: Session) -> list[str]:
        """Orders with at least one repair item that is not completed"""
        rows = (
            db.query(RepairItem.order_id)
            .filter(
                RepairItem.repair_type == REPAIR_TYPE_REPAIR,
                RepairItem.status != ITEM_COMPLETED,
            )
            .distinct()
            .all()
        )
        return [row[0] for row in rows]

    @staticmethod
    def list_open_orders(db: Session, order_ids: list[str]) -> list[RepairOrder]:
        if not order_ids:
            return []
        return (
            db.query(RepairOrder)
            .filter(RepairOrder.id.in_(order_ids), RepairOrder.status != ORDER_COMPLETED)
            .order_by(RepairOrder.receive_date.asc(), RepairOrder.id.asc())
            .all()
        )

    @staticmethod
    def get_order(db: Session, order_id: str) -> Optional[RepairOrder]:
        return db.query(RepairOrder).filter(RepairOrder.id == order_id).first()

    @staticmethod
    def list_assignments_for_orders(db: Session, order_ids: list[str]) -> list[LiftAssignment]:
        if not order_ids:
            return []
        return (
            db.query(LiftAssignment)
            .filter(LiftAssignment.repair_order_id.in_(order_ids))
            .all()
        )

    @staticmethod
    def get_assignment(db: Session, assignment_id: str) -> Optional[LiftAssignment]:
        return db.query(LiftAssignment).filter(LiftAssignment.id == assignment_id).first()

    @staticmethod
    def get_assignment_by_order(db: Session, order_id: str) -> Optional[LiftAssignment]:
        return (
            db.query(LiftAssignment)
            .filter(LiftAssignment.repair_order_id == order_id)
            .first()
        )

    @staticmethod
    def upsert_assignment(
        db: Session,
        order_id: str,
        lift_id: Optional[str],
        scheduled_start: Optional[datetime],
        scheduled_end: Optional[datetime],
    ) -> LiftAssignment:
        """Insert or update the single assignment row of an order in one statement"""
        values = {
            "lift_id": lift_id,
            "scheduled_start": scheduled_start,
            "scheduled_end": scheduled_end,
            "updated_at": utcnow(),
        }

        insert = _UPSERT_INSERTS.get(db.get_bind().dialect.name)
        if insert is not None:
            stmt = insert(LiftAssignment).values(
                id=generate_id(), repair_order_id=order_id, **values
            )
            stmt = stmt.on_conflict_do_update(index_elements=["repair_order_id"], set_=values)
            db.execute(stmt)
        else:
            # No native upsert: the unique constraint on repair_order_id still
            # rejects a racing duplicate insert.
            existing = ScheduleRepository.get_assignment_by_order(db, order_id)
            if existing:
                for key, value in values.items():
                    setattr(existing, key, value)
            else:
                db.add(LiftAssignment(repair_order_id=order_id, **values))

        db.commit()
        return ScheduleRepository.get_assignment_by_order(db, order_id)

    @staticmethod
    def update_assignment(
        db: Session, assignment: LiftAssignment, fields: dict[str, Any]
    ) -> LiftAssignment:
        """Merge fields onto the row and refresh updated_at. None values are written."""
        for key, value in fields.items():
            if hasattr(assignment, key):
                setattr(assignment, key, value)
        assignment.updated_at = utcnow()

        db.commit()
        db.refresh(assignment)
        return assignment

    @staticmethod
    def list_assigned_worker_links(db: Session, order_ids: list[str]) -> list[tuple]:
        """(order_id, worker_id, name, worker_type) through repair_item_assigned_workers"""
        if not order_ids:
            return []
        return (
            db.query(RepairItem.order_id, Worker.id, Worker.name, Worker.worker_type)
            .join(RepairItemWorker, RepairItemWorker.repair_item_id == RepairItem.id)
            .join(Worker, Worker.id == RepairItemWorker.worker_id)
            .filter(
                RepairItem.status == ITEM_IN_PROGRESS,
                RepairItem.repair_type == REPAIR_TYPE_REPAIR,
                RepairItem.order_id.in_(order_ids),
            )
            .all()
        )

    @staticmethod
    def list_legacy_worker_links(db: Session, order_ids: list[str]) -> list[tuple]:
        """(order_id, worker_id, name, worker_type) through repair_items.worker_id"""
        if not order_ids:
            return []
        return (
            db.query(RepairItem.order_id, Worker.id, Worker.name, Worker.worker_type)
            .join(Worker, Worker.id == RepairItem.worker_id)
            .filter(
                RepairItem.status == ITEM_IN_PROGRESS,
                RepairItem.repair_type == REPAIR_TYPE_REPAIR,
                RepairItem.order_id.in_(order_ids),
            )
            .all()
        )

    @staticmethod
    def list_pending_appointments(db: Session) -> list[Appointment]:
        return (
            db.query(Appointment)
            .filter(Appointment.status == APPOINTMENT_PENDING)
            .order_by(Appointment.appointment_date.asc())
            .all()
        )
