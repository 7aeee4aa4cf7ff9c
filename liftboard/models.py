import uuid
from datetime import datetime, timezone

from sqlalchemy import (
    Boolean,
    Column,
    DateTime,
    ForeignKey,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from .database import Base

# Repair category items are the only ones that occupy a lift
REPAIR_TYPE_REPAIR = "sua_chua"

ITEM_PENDING = "pending"
ITEM_IN_PROGRESS = "in_progress"
ITEM_COMPLETED = "completed"

ORDER_IN_PROGRESS = "in_progress"
ORDER_COMPLETED = "completed"
APPOINTMENT_PENDING = "pending"


def generate_id():
    """Generate an opaque string identifier"""
    return str(uuid.uuid4())


def utcnow():
    return datetime.now(timezone.utc)


class Lift(Base):
    __tablename__ = "repair_lifts"

    id = Column(String(36), primary_key=True, default=generate_id)
    name = Column(String(100), nullable=False)
    position = Column(Integer, nullable=False, default=0, index=True)  # Board ordering key
    is_active = Column(Boolean, nullable=False, default=True)

    assignments = relationship("LiftAssignment", back_populates="lift")


class Worker(Base):
    __tablename__ = "repair_workers"

    id = Column(String(36), primary_key=True, default=generate_id)
    name = Column(String(255), nullable=False)
    worker_type = Column(String(50), nullable=True)  # e.g. mechanic, paint, worker_lead
    is_active = Column(Boolean, nullable=False, default=True)


class RepairOrder(Base):
    __tablename__ = "general_repair_orders"

    id = Column(String(36), primary_key=True, default=generate_id)
    license_plate = Column(String(50), nullable=True, index=True)
    customer_name = Column(String(255), nullable=True)
    vehicle_name = Column(String(255), nullable=True)
    receive_date = Column(DateTime(timezone=True), nullable=True)
    return_date = Column(DateTime(timezone=True), nullable=True)

    # pending -> in_progress -> completed
    status = Column(String(50), nullable=False, default="pending", index=True)

    # Parts-wait metadata
    waiting_for_parts = Column(Boolean, nullable=False, default=False)
    parts_note = Column(Text, nullable=True)
    parts_order_start_time = Column(DateTime(timezone=True), nullable=True)
    parts_expected_end_time = Column(DateTime(timezone=True), nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    items = relationship("RepairItem", back_populates="order")


class RepairItem(Base):
    __tablename__ = "repair_items"

    id = Column(String(36), primary_key=True, default=generate_id)
    order_id = Column(String(36), ForeignKey("general_repair_orders.id"), nullable=False, index=True)
    name = Column(String(255), nullable=True)
    repair_type = Column(String(50), nullable=False, default=REPAIR_TYPE_REPAIR, index=True)
    status = Column(String(50), nullable=False, default=ITEM_PENDING, index=True)

    # Legacy single-worker field, superseded by repair_item_assigned_workers
    worker_id = Column(String(36), ForeignKey("repair_workers.id"), nullable=True)

    started_at = Column(DateTime(timezone=True), nullable=True)
    completed_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    order = relationship("RepairOrder", back_populates="items")


class RepairItemWorker(Base):
    """Many-to-many link between repair items and workers"""

    __tablename__ = "repair_item_assigned_workers"
    __table_args__ = (
        UniqueConstraint("repair_item_id", "worker_id", name="uq_repair_item_worker"),
    )

    id = Column(String(36), primary_key=True, default=generate_id)
    repair_item_id = Column(String(36), ForeignKey("repair_items.id"), nullable=False, index=True)
    worker_id = Column(String(36), ForeignKey("repair_workers.id"), nullable=False, index=True)
    assigned_at = Column(DateTime(timezone=True), server_default=func.now())


class LiftAssignment(Base):
    __tablename__ = "lift_assignments"

    id = Column(String(36), primary_key=True, default=generate_id)
    # One row per order; a second assignment for the same order updates this row
    repair_order_id = Column(
        String(36), ForeignKey("general_repair_orders.id"), nullable=False, unique=True
    )
    # Null means the order is tracked but not on a lift
    lift_id = Column(String(36), ForeignKey("repair_lifts.id"), nullable=True)
    scheduled_start = Column(DateTime(timezone=True), nullable=True)
    scheduled_end = Column(DateTime(timezone=True), nullable=True)
    queue_position = Column(Integer, nullable=False, default=0)
    status = Column(String(20), nullable=False, default="queued")  # queued, on_lift, completed

    # Parts-wait block shown on the board card
    waiting_for_parts = Column(Boolean, nullable=False, default=False)
    parts_note = Column(Text, nullable=True)
    parts_wait_start = Column(DateTime(timezone=True), nullable=True)
    parts_wait_end = Column(DateTime(timezone=True), nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), nullable=True, default=utcnow)

    lift = relationship("Lift", back_populates="assignments")


class Appointment(Base):
    __tablename__ = "appointments"

    id = Column(String(36), primary_key=True, default=generate_id)
    customer_name = Column(String(255), nullable=True)
    phone = Column(String(50), nullable=True)
    license_plate = Column(String(50), nullable=True)
    vehicle_name = Column(String(255), nullable=True)
    service_type = Column(String(50), nullable=True)  # kiem_tra, sua_chua, bao_duong, ...
    appointment_date = Column(DateTime(timezone=True), nullable=False, index=True)
    status = Column(String(50), nullable=False, default=APPOINTMENT_PENDING, index=True)
    notes = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
