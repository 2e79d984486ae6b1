# api/attendance/attendance_routes.py

from typing import List
from uuid import UUID

from fastapi import APIRouter, Depends, Response
from sqlalchemy.orm import Session

from config.database import get_db
from middlewares.auth_middleware import auth_middleware
from middlewares.role_middleware import role_middleware
from api.attendance.attendance_schema import (
    ScanSubmission,
    LinkSubmission,
    AttendanceResult,
    AttendanceOut,
    LinkPreviewOut,
)
from api.attendance.attendance_controller import AttendanceController
from utils.deps import get_clock

router = APIRouter(prefix="/attendance", tags=["attendance"])


@router.post(
    "/scan",
    response_model=AttendanceResult,
    summary="Mark attendance with a scanned QR proof (in-person meetings)",
)
def scan(
    payload: ScanSubmission,
    response: Response,
    db: Session = Depends(get_db),
    current_user: dict = Depends(auth_middleware),
    clock=Depends(get_clock),
) -> AttendanceResult:
    return AttendanceController.scan(payload, response, db, current_user["id"], clock)


@router.post(
    "/link",
    response_model=AttendanceResult,
    summary="Mark attendance through an attendance link (online meetings)",
)
def mark_link(
    payload: LinkSubmission,
    response: Response,
    db: Session = Depends(get_db),
    current_user: dict = Depends(auth_middleware),
    clock=Depends(get_clock),
) -> AttendanceResult:
    return AttendanceController.mark_link(payload, response, db, current_user["id"], clock)


@router.get(
    "/link/{link_token}",
    response_model=LinkPreviewOut,
    summary="Meeting details behind an attendance link",
)
def preview_link(
    link_token: str,
    db: Session = Depends(get_db),
    current_user: dict = Depends(auth_middleware),
    clock=Depends(get_clock),
) -> LinkPreviewOut:
    return AttendanceController.preview_link(link_token, db, current_user["id"], clock)


@router.get(
    "/meetings/{meeting_id}/records",
    response_model=List[AttendanceOut],
    summary="List all attendance records for a meeting",
    dependencies=[Depends(role_middleware(required_roles=["admin"]))],
)
def list_meeting_records(
    meeting_id: UUID,
    db: Session = Depends(get_db),
) -> List[AttendanceOut]:
    return AttendanceController.list_meeting_records(meeting_id, db)


@router.get(
    "/users/me/records",
    response_model=List[AttendanceOut],
    summary="List my own attendance records",
)
def list_my_records(
    db: Session = Depends(get_db),
    current_user: dict = Depends(auth_middleware),
) -> List[AttendanceOut]:
    return AttendanceController.list_my_records(db, current_user["id"])
