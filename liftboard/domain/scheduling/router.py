"""Schedule router - FastAPI endpoints for the lift board"""

import logging

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session, sessionmaker

from ...auth import CurrentUser, get_current_user
from ...database import get_db, get_session_factory
from .schemas import (
    AssignmentMutationResponse,
    AssignmentUpdate,
    AssignmentUpsert,
    BoardSnapshot,
    LiftAssignmentOut,
    PartsWaitUpdate,
)
from .service import LiftAssignmentService, ScheduleBoardService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/schedule", tags=["Schedule"])


def get_board_service(
    session_factory: sessionmaker = Depends(get_session_factory),
) -> ScheduleBoardService:
    """Dependency injection for ScheduleBoardService"""
    return ScheduleBoardService(session_factory)


def get_assignment_service(db: Session = Depends(get_db)) -> LiftAssignmentService:
    """Dependency injection for LiftAssignmentService"""
    return LiftAssignmentService(db)


@router.get("/data", response_model=BoardSnapshot)
async def get_board(
    current_user: CurrentUser = Depends(get_current_user),
    service: ScheduleBoardService = Depends(get_board_service),
):
    """Lifts, orders on lifts, orders waiting for a lift and pending appointments"""
    return await service.get_board()


@router.post("/assignments", response_model=AssignmentMutationResponse)
async def upsert_assignment(
    data: AssignmentUpsert,
    current_user: CurrentUser = Depends(get_current_user),
    service: LiftAssignmentService = Depends(get_assignment_service),
):
    """Put an order on a lift, or move it if it already has an assignment"""
    assignment = service.upsert_assignment(data)
    return AssignmentMutationResponse(assignment=LiftAssignmentOut.model_validate(assignment))


@router.put("/assignments/{assignment_id}", response_model=AssignmentMutationResponse)
async def update_assignment(
    assignment_id: str,
    data: AssignmentUpdate,
    current_user: CurrentUser = Depends(get_current_user),
    service: LiftAssignmentService = Depends(get_assignment_service),
):
    assignment = service.update_assignment(assignment_id, data)
    return AssignmentMutationResponse(assignment=LiftAssignmentOut.model_validate(assignment))


@router.put("/assignments/{assignment_id}/remove", response_model=AssignmentMutationResponse)
async def clear_assignment(
    assignment_id: str,
    current_user: CurrentUser = Depends(get_current_user),
    service: LiftAssignmentService = Depends(get_assignment_service),
):
    """Take an order off its lift"""
    assignment = service.clear_assignment(assignment_id)
    return AssignmentMutationResponse(assignment=LiftAssignmentOut.model_validate(assignment))


@router.put("/assignments/{assignment_id}/parts-wait", response_model=AssignmentMutationResponse)
async def set_parts_wait(
    assignment_id: str,
    data: PartsWaitUpdate,
    current_user: CurrentUser = Depends(get_current_user),
    service: LiftAssignmentService = Depends(get_assignment_service),
):
    assignment = service.set_parts_wait(assignment_id, data)
    return AssignmentMutationResponse(assignment=LiftAssignmentOut.model_validate(assignment))
