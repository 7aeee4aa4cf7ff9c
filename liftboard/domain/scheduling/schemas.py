"""Schedule domain schemas - Pydantic models for the lift board"""

from datetime import datetime, timezone
from typing import Optional

from pydantic import BaseModel, field_validator, model_validator


def as_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Naive datetimes are taken to be UTC"""
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def _check_window(start: Optional[datetime], end: Optional[datetime], label: str) -> None:
    if start and end and as_utc(end) < as_utc(start):
        raise ValueError(f"{label} end must not be before its start")


class StoredRecord(BaseModel):
    """Read model of a stored row. Timestamps always leave the API in UTC."""

    @field_validator("*", mode="after")
    @classmethod
    def timestamps_in_utc(cls, value):
        if isinstance(value, datetime):
            return as_utc(value)
        return value


class LiftOut(BaseModel):
    id: str
    name: str
    position: int
    is_active: bool

    class Config:
        from_attributes = True


class ActiveWorker(BaseModel):
    """A worker currently on an in-progress repair item"""

    id: str
    name: str
    worker_type: Optional[str] = None


class BoardOrder(StoredRecord):
    id: str
    license_plate: Optional[str] = None
    customer_name: Optional[str] = None
    vehicle_name: Optional[str] = None
    receive_date: Optional[datetime] = None
    return_date: Optional[datetime] = None
    status: str
    waiting_for_parts: bool = False
    parts_note: Optional[str] = None
    parts_order_start_time: Optional[datetime] = None
    parts_expected_end_time: Optional[datetime] = None

    class Config:
        from_attributes = True


class LiftAssignmentOut(StoredRecord):
    id: str
    repair_order_id: str
    lift_id: Optional[str] = None
    scheduled_start: Optional[datetime] = None
    scheduled_end: Optional[datetime] = None
    queue_position: int = 0
    status: str = "queued"
    waiting_for_parts: bool = False
    parts_note: Optional[str] = None
    parts_wait_start: Optional[datetime] = None
    parts_wait_end: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class AppointmentOut(StoredRecord):
    id: str
    customer_name: Optional[str] = None
    phone: Optional[str] = None
    license_plate: Optional[str] = None
    vehicle_name: Optional[str] = None
    service_type: Optional[str] = None
    appointment_date: datetime
    status: str
    notes: Optional[str] = None

    class Config:
        from_attributes = True


class BoardOrderView(BaseModel):
    """An active order that still needs a lift"""

    order: BoardOrder
    activeWorkers: list[ActiveWorker] = []


class BoardAssignmentView(BaseModel):
    """An active order sitting on a lift"""

    assignment: LiftAssignmentOut
    order: BoardOrder
    activeWorkers: list[ActiveWorker] = []


class BoardSnapshot(BaseModel):
    lifts: list[LiftOut]
    assignments: list[BoardAssignmentView]
    unassignedOrders: list[BoardOrderView]
    appointments: list[AppointmentOut]


class AssignmentUpsert(BaseModel):
    """Put an order on a lift (or move it); keyed on the order"""

    repair_order_id: str
    lift_id: Optional[str] = None
    scheduled_start: Optional[datetime] = None
    scheduled_end: Optional[datetime] = None

    @model_validator(mode="after")
    def validate_window(self):
        _check_window(self.scheduled_start, self.scheduled_end, "Scheduled")
        return self


class AssignmentUpdate(BaseModel):
    """Partial update of an assignment row. Explicit nulls are applied."""

    lift_id: Optional[str] = None
    scheduled_start: Optional[datetime] = None
    scheduled_end: Optional[datetime] = None
    queue_position: Optional[int] = None
    status: Optional[str] = None
    waiting_for_parts: Optional[bool] = None
    parts_note: Optional[str] = None
    parts_wait_start: Optional[datetime] = None
    parts_wait_end: Optional[datetime] = None

    class Config:
        extra = "forbid"

    @model_validator(mode="after")
    def validate_window(self):
        _check_window(self.scheduled_start, self.scheduled_end, "Scheduled")
        _check_window(self.parts_wait_start, self.parts_wait_end, "Parts wait")
        return self


class PartsWaitUpdate(BaseModel):
    waiting_for_parts: Optional[bool] = None
    parts_note: Optional[str] = None
    parts_wait_start: Optional[datetime] = None
    parts_wait_end: Optional[datetime] = None

    class Config:
        extra = "forbid"

    @model_validator(mode="after")
    def validate_window(self):
        _check_window(self.parts_wait_start, self.parts_wait_end, "Parts wait")
        return self


class AssignmentMutationResponse(BaseModel):
    success: bool = True
    assignment: LiftAssignmentOut
