"""Board aggregation"""

import asyncio
from datetime import datetime
from unittest.mock import patch

import pytest
from sqlalchemy.exc import OperationalError

from liftboard.domain.scheduling.exceptions import StoreUnavailable
from liftboard.domain.scheduling.repository import ScheduleRepository
from liftboard.domain.scheduling.service import ScheduleBoardService
from liftboard.models import RepairItemWorker
from tests.factories import (
    link_worker,
    make_appointment,
    make_assignment,
    make_item,
    make_lift,
    make_order,
    make_worker,
)


def get_board(session_factory):
    return asyncio.run(ScheduleBoardService(session_factory).get_board())


def _store_down():
    return OperationalError("SELECT ...", {}, Exception("connection refused"))


class TestEmptyBoard:
    def test_no_active_orders_still_lists_lifts_and_appointments(self, db, session_factory):
        make_lift(db, "lift-2", 2)
        make_lift(db, "lift-1", 1)
        make_lift(db, "lift-off", 3, is_active=False)
        make_appointment(db, "apt-late", datetime(2024, 1, 3, 9, 0))
        make_appointment(db, "apt-early", datetime(2024, 1, 2, 9, 0))
        make_appointment(db, "apt-done", datetime(2024, 1, 1, 9, 0), status="completed")

        board = get_board(session_factory)

        assert [lift.id for lift in board.lifts] == ["lift-1", "lift-2"]
        assert board.assignments == []
        assert board.unassignedOrders == []
        assert [a.id for a in board.appointments] == ["apt-early", "apt-late"]

    def test_completed_items_do_not_make_an_order_active(self, db, session_factory):
        make_order(db, "ord-1")
        make_item(db, "item-1", "ord-1", status="completed")

        board = get_board(session_factory)

        assert board.unassignedOrders == []


class TestPartition:
    def test_each_active_order_appears_exactly_once(self, db, session_factory):
        make_lift(db, "lift-1", 1)
        for order_id in ("ord-1", "ord-2", "ord-3"):
            make_order(db, order_id)
            make_item(db, f"item-{order_id}", order_id, status="in_progress")
        make_assignment(db, "asg-1", "ord-1", "lift-1")
        make_assignment(db, "asg-2", "ord-2", None)

        board = get_board(session_factory)

        on_lift = [view.order.id for view in board.assignments]
        waiting = [view.order.id for view in board.unassignedOrders]
        assert on_lift == ["ord-1"]
        assert sorted(waiting) == ["ord-2", "ord-3"]
        assert set(on_lift).isdisjoint(waiting)

    def test_completed_order_is_left_off_even_with_open_items(self, db, session_factory):
        make_lift(db, "lift-1", 1)
        make_order(db, "ord-1", status="completed")
        make_item(db, "item-1", "ord-1", status="pending")
        make_assignment(db, "asg-1", "ord-1", "lift-1")

        board = get_board(session_factory)

        assert board.assignments == []
        assert board.unassignedOrders == []

    def test_active_workers_attached(self, db, session_factory):
        make_worker(db, "w-1", "An")
        make_order(db, "ord-1")
        make_item(db, "item-1", "ord-1", status="in_progress", worker_id="w-1")
        link_worker(db, "item-1", "w-1")

        board = get_board(session_factory)

        (view,) = board.unassignedOrders
        assert [(w.id, w.name) for w in view.activeWorkers] == [("w-1", "An")]


class TestDegradedJoin:
    def test_missing_join_table_gives_empty_worker_sets(self, db, engine, session_factory):
        make_order(db, "ord-1")
        make_item(db, "item-1", "ord-1", status="in_progress")
        db.close()
        RepairItemWorker.__table__.drop(engine)

        board = get_board(session_factory)

        (view,) = board.unassignedOrders
        assert view.order.id == "ord-1"
        assert view.activeWorkers == []

    def test_missing_join_table_keeps_legacy_workers(self, db, engine, session_factory):
        make_worker(db, "w-1", "An")
        make_order(db, "ord-1")
        make_item(db, "item-1", "ord-1", status="in_progress", worker_id="w-1")
        db.close()
        RepairItemWorker.__table__.drop(engine)

        board = get_board(session_factory)

        assert [w.id for w in board.unassignedOrders[0].activeWorkers] == ["w-1"]


class TestStoreUnavailable:
    @pytest.mark.parametrize(
        "method, source",
        [
            ("list_active_lifts", "repair_lifts"),
            ("list_active_order_ids", "repair_items"),
            ("list_open_orders", "general_repair_orders"),
            ("list_assignments_for_orders", "lift_assignments"),
            ("list_pending_appointments", "appointments"),
        ],
    )
    def test_failing_source_is_named(self, db, session_factory, method, source):
        make_order(db, "ord-1")
        make_item(db, "item-1", "ord-1", status="in_progress")

        with patch.object(ScheduleRepository, method, side_effect=_store_down()):
            with pytest.raises(StoreUnavailable) as exc_info:
                get_board(session_factory)

        assert exc_info.value.source == source

    def test_join_failure_other_than_missing_table_is_fatal(self, db, session_factory):
        make_order(db, "ord-1")
        make_item(db, "item-1", "ord-1", status="in_progress")

        with patch.object(
            ScheduleRepository, "list_assigned_worker_links", side_effect=_store_down()
        ):
            with pytest.raises(StoreUnavailable) as exc_info:
                get_board(session_factory)

        assert exc_info.value.source == "active_workers"
