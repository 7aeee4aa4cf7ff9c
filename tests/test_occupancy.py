"""Lift occupancy partition"""

from liftboard.domain.scheduling.occupancy import partition_orders
from liftboard.domain.scheduling.schemas import ActiveWorker
from liftboard.models import LiftAssignment, RepairOrder
from tests.factories import make_assignment, make_lift, make_order


def _load(db):
    orders = db.query(RepairOrder).order_by(RepairOrder.id).all()
    assignments = db.query(LiftAssignment).all()
    return orders, assignments


def test_every_order_lands_in_exactly_one_bucket(db):
    make_lift(db, "lift-1", 1)
    make_order(db, "ord-on-lift")
    make_order(db, "ord-cleared")
    make_order(db, "ord-new")
    make_assignment(db, "asg-1", "ord-on-lift", "lift-1")
    make_assignment(db, "asg-2", "ord-cleared", None, waiting_for_parts=True)

    orders, assignments = _load(db)
    assigned, unassigned = partition_orders(orders, assignments, {})

    assert [view.order.id for view in assigned] == ["ord-on-lift"]
    assert [view.order.id for view in unassigned] == ["ord-cleared", "ord-new"]
    assert assigned[0].assignment.lift_id == "lift-1"


def test_assignment_without_matching_order_is_ignored(db):
    make_lift(db, "lift-1", 1)
    make_order(db, "ord-1")
    make_order(db, "ord-gone", status="completed")
    make_assignment(db, "asg-gone", "ord-gone", "lift-1")

    orders = [db.query(RepairOrder).filter(RepairOrder.id == "ord-1").one()]
    assignments = db.query(LiftAssignment).all()
    assigned, unassigned = partition_orders(orders, assignments, {})

    assert assigned == []
    assert [view.order.id for view in unassigned] == ["ord-1"]


def test_active_workers_attached_to_both_buckets(db):
    make_lift(db, "lift-1", 1)
    make_order(db, "ord-1")
    make_order(db, "ord-2")
    make_assignment(db, "asg-1", "ord-1", "lift-1")

    workers = {
        "ord-1": [ActiveWorker(id="w-1", name="An", worker_type="mechanic")],
        "ord-2": [ActiveWorker(id="w-2", name="Binh")],
    }
    orders, assignments = _load(db)
    assigned, unassigned = partition_orders(orders, assignments, workers)

    assert [w.id for w in assigned[0].activeWorkers] == ["w-1"]
    assert [w.id for w in unassigned[0].activeWorkers] == ["w-2"]


def test_orders_without_workers_get_empty_list(db):
    make_order(db, "ord-1")

    orders, assignments = _load(db)
    _, unassigned = partition_orders(orders, assignments, {})

    assert unassigned[0].activeWorkers == []
