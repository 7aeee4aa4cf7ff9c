"""Repair work router - item progress and per-worker work list"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from ...auth import CurrentUser, get_current_user
from ...database import get_db
from ..scheduling.schemas import BoardOrder
from .schemas import (
    ItemActionResponse,
    MyWorkResponse,
    OrderPartsWaitUpdate,
    WorkerAction,
    WorkerOut,
    WorkItemOut,
)
from .service import WorkService

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Repairs"])


def get_work_service(db: Session = Depends(get_db)) -> WorkService:
    """Dependency injection for WorkService"""
    return WorkService(db)


@router.get("/repairs/workers", response_model=list[WorkerOut])
async def list_workers(
    current_user: CurrentUser = Depends(get_current_user),
    service: WorkService = Depends(get_work_service),
):
    return [WorkerOut.model_validate(w) for w in service.list_workers()]


@router.post("/repairs/items/{item_id}/start", response_model=ItemActionResponse)
async def start_item(
    item_id: str,
    data: WorkerAction,
    current_user: CurrentUser = Depends(get_current_user),
    service: WorkService = Depends(get_work_service),
):
    item = service.start_item(item_id, data.worker_id)
    return ItemActionResponse(item=WorkItemOut.model_validate(item))


@router.post("/repairs/items/{item_id}/complete", response_model=ItemActionResponse)
async def complete_item(
    item_id: str,
    data: WorkerAction,
    current_user: CurrentUser = Depends(get_current_user),
    service: WorkService = Depends(get_work_service),
):
    """Complete an item; the order completes with its last item"""
    item, order_completed = service.complete_item(item_id, data.worker_id)
    return ItemActionResponse(
        item=WorkItemOut.model_validate(item), order_completed=order_completed
    )


@router.put("/repairs/{order_id}/parts-waiting", response_model=BoardOrder)
async def set_order_parts_wait(
    order_id: str,
    data: OrderPartsWaitUpdate,
    current_user: CurrentUser = Depends(get_current_user),
    service: WorkService = Depends(get_work_service),
):
    return BoardOrder.model_validate(service.set_order_parts_wait(order_id, data))


@router.get("/my-work", response_model=MyWorkResponse)
async def get_my_work(
    worker_id: Optional[str] = Query(None),
    current_user: CurrentUser = Depends(get_current_user),
    service: WorkService = Depends(get_work_service),
):
    """Items of a worker grouped by status; defaults to the caller's worker"""
    worker_id = worker_id or current_user.worker_id
    if not worker_id:
        raise HTTPException(status_code=400, detail="No worker_id")
    return service.get_my_work(worker_id)
