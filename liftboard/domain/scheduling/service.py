"""Schedule service - Board aggregation and lift assignment mutations"""

import asyncio
import logging
from contextlib import contextmanager
from typing import Any, Callable, Optional

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from ...models import LiftAssignment
from .exceptions import InvalidReference, NotFound, StoreUnavailable
from .occupancy import partition_orders
from .repository import ScheduleRepository
from .schemas import (
    AppointmentOut,
    AssignmentUpdate,
    AssignmentUpsert,
    BoardSnapshot,
    LiftOut,
    PartsWaitUpdate,
)
from .workers import ActiveWorkerResolver, resolve_active_order_ids

logger = logging.getLogger(__name__)


@contextmanager
def store_errors(source: str, db: Optional[Session] = None, action: str = "load"):
    """
    Turn storage-layer failures into domain errors naming the failing source.

    Constraint violations are the caller's data problem (InvalidReference);
    anything else is an outage (StoreUnavailable).
    """
    try:
        yield
    except IntegrityError as e:
        logger.warning(f"⚠️ Write to {source} rejected by a constraint: {e.orig}")
        if db is not None:
            db.rollback()
        raise InvalidReference(source) from e
    except SQLAlchemyError as e:
        logger.error(f"❌ Store operation on {source} failed: {e}")
        if db is not None:
            db.rollback()
        raise StoreUnavailable(source, f"Failed to {action} {source}") from e


class ScheduleBoardService:
    """Builds the lift board snapshot.

    Each fetch opens its own session so independent reads can run
    concurrently in worker threads.
    """

    def __init__(
        self,
        session_factory: sessionmaker,
        resolver: Optional[ActiveWorkerResolver] = None,
    ):
        self.session_factory = session_factory
        self.repo = ScheduleRepository()
        self.resolver = resolver or ActiveWorkerResolver(self.repo)

    def _fetch(self, source: str, query: Callable[..., Any], *args) -> Any:
        db = self.session_factory()
        try:
            with store_errors(source, db):
                return query(db, *args)
        finally:
            db.close()

    async def _fetch_async(self, source: str, query: Callable[..., Any], *args) -> Any:
        return await asyncio.to_thread(self._fetch, source, query, *args)

    async def get_board(self) -> BoardSnapshot:
        lifts = await self._fetch_async("repair_lifts", self.repo.list_active_lifts)
        order_ids = await self._fetch_async("repair_items", resolve_active_order_ids)

        if not order_ids:
            appointments = await self._fetch_async(
                "appointments", self.repo.list_pending_appointments
            )
            logger.debug("📋 No active repair orders on the board")
            return BoardSnapshot(
                lifts=[LiftOut.model_validate(lift) for lift in lifts],
                assignments=[],
                unassignedOrders=[],
                appointments=[AppointmentOut.model_validate(a) for a in appointments],
            )

        orders, assignments, active_workers, appointments = await asyncio.gather(
            self._fetch_async("general_repair_orders", self.repo.list_open_orders, order_ids),
            self._fetch_async(
                "lift_assignments", self.repo.list_assignments_for_orders, order_ids
            ),
            self._fetch_async(
                "active_workers", self.resolver.active_workers_by_order, order_ids
            ),
            self._fetch_async("appointments", self.repo.list_pending_appointments),
        )

        assigned, unassigned = partition_orders(orders, assignments, active_workers)
        logger.debug(
            f"📋 Board: {len(assigned)} on lifts, {len(unassigned)} waiting, "
            f"{len(appointments)} pending appointments"
        )

        return BoardSnapshot(
            lifts=[LiftOut.model_validate(lift) for lift in lifts],
            assignments=assigned,
            unassignedOrders=unassigned,
            appointments=[AppointmentOut.model_validate(a) for a in appointments],
        )


class LiftAssignmentService:
    """The only writer of lift_assignments rows"""

    def __init__(self, db: Session):
        self.db = db
        self.repo = ScheduleRepository()

    def get_assignment(self, assignment_id: str) -> LiftAssignment:
        with store_errors("lift_assignments", self.db):
            assignment = self.repo.get_assignment(self.db, assignment_id)
        if not assignment:
            raise NotFound("Lift assignment", assignment_id)
        return assignment

    def upsert_assignment(self, data: AssignmentUpsert) -> LiftAssignment:
        """Place (or move) an order on a lift. Repeating the call is harmless."""
        with store_errors("general_repair_orders", self.db):
            order = self.repo.get_order(self.db, data.repair_order_id)
        if not order:
            raise NotFound("Repair order", data.repair_order_id)
        self._require_lift(data.lift_id)

        logger.info(f"🔧 Assigning order {data.repair_order_id} to lift {data.lift_id}")
        with store_errors("lift_assignments", self.db, action="save"):
            return self.repo.upsert_assignment(
                self.db,
                data.repair_order_id,
                data.lift_id,
                data.scheduled_start,
                data.scheduled_end,
            )

    def update_assignment(self, assignment_id: str, data: AssignmentUpdate) -> LiftAssignment:
        return self._merge(assignment_id, data.model_dump(exclude_unset=True))

    def clear_assignment(self, assignment_id: str) -> LiftAssignment:
        """Take the order off its lift; the row and its parts-wait data stay"""
        logger.info(f"🔧 Clearing lift from assignment {assignment_id}")
        return self._merge(
            assignment_id,
            {"lift_id": None, "scheduled_start": None, "scheduled_end": None},
        )

    def set_parts_wait(self, assignment_id: str, data: PartsWaitUpdate) -> LiftAssignment:
        fields = data.model_dump(exclude_unset=True)
        logger.info(f"📦 Parts-wait update on assignment {assignment_id}: {fields}")
        return self._merge(assignment_id, fields)

    def _require_lift(self, lift_id: Optional[str]) -> None:
        if lift_id is None:
            return
        with store_errors("repair_lifts", self.db):
            lift = self.repo.get_lift(self.db, lift_id)
        if not lift:
            raise NotFound("Lift", lift_id)

    def _merge(self, assignment_id: str, fields: dict[str, Any]) -> LiftAssignment:
        assignment = self.get_assignment(assignment_id)
        self._require_lift(fields.get("lift_id"))
        with store_errors("lift_assignments", self.db, action="save"):
            return self.repo.update_assignment(self.db, assignment, fields)
