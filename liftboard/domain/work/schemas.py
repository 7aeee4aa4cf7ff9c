"""Repair work schemas"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel

from ..scheduling.schemas import BoardOrder, StoredRecord


class WorkerOut(BaseModel):
    id: str
    name: str
    worker_type: Optional[str] = None
    is_active: bool

    class Config:
        from_attributes = True


class WorkerAction(BaseModel):
    """Body of start/complete item requests"""

    worker_id: Optional[str] = None


class WorkItemOut(StoredRecord):
    id: str
    order_id: str
    name: Optional[str] = None
    repair_type: str
    status: str
    worker_id: Optional[str] = None
    started_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    order: Optional[BoardOrder] = None

    class Config:
        from_attributes = True


class MyWorkResponse(BaseModel):
    pending: list[WorkItemOut] = []
    inProgress: list[WorkItemOut] = []
    completed: list[WorkItemOut] = []


class OrderPartsWaitUpdate(BaseModel):
    waiting_for_parts: Optional[bool] = None
    parts_note: Optional[str] = None
    parts_wait_start: Optional[datetime] = None
    parts_wait_end: Optional[datetime] = None

    class Config:
        extra = "forbid"


class ItemActionResponse(BaseModel):
    success: bool = True
    item: WorkItemOut
    order_completed: bool = False
