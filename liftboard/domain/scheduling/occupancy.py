"""Split active orders into those on a lift and those waiting for one"""

from typing import Iterable

from ...models import LiftAssignment, RepairOrder
from .schemas import (
    ActiveWorker,
    BoardAssignmentView,
    BoardOrder,
    BoardOrderView,
    LiftAssignmentOut,
)


def partition_orders(
    orders: Iterable[RepairOrder],
    assignments: Iterable[LiftAssignment],
    active_workers: dict[str, list[ActiveWorker]],
) -> tuple[list[BoardAssignmentView], list[BoardOrderView]]:
    """
    Place every order in exactly one of (assigned, unassigned).

    An order is assigned only when its assignment row has a lift; a row with a
    null lift (e.g. after the lift was cleared) counts as unassigned.
    """
    assignment_map = {a.repair_order_id: a for a in assignments}

    assigned: list[BoardAssignmentView] = []
    unassigned: list[BoardOrderView] = []

    for order in orders:
        order_view = BoardOrder.model_validate(order)
        workers = active_workers.get(order.id, [])
        assignment = assignment_map.get(order.id)

        if assignment is not None and assignment.lift_id:
            assigned.append(
                BoardAssignmentView(
                    assignment=LiftAssignmentOut.model_validate(assignment),
                    order=order_view,
                    activeWorkers=workers,
                )
            )
        else:
            unassigned.append(BoardOrderView(order=order_view, activeWorkers=workers))

    return assigned, unassigned
