# api/attendance/attendance_controller.py

from typing import List
from uuid import UUID
from fastapi import Response, status
from sqlalchemy.orm import Session

from api.attendance.attendance_service import AttendanceService, AttendanceOutcome
from api.attendance.attendance_records_model import AttendanceMethod
from api.attendance.attendance_schema import (
    ScanSubmission,
    LinkSubmission,
    AttendanceResult,
    AttendanceOut,
    LinkPreviewOut,
    MeetingSummary,
)
from utils.clock import Clock


def _result(outcome: AttendanceOutcome, response: Response) -> AttendanceResult:
    response.status_code = status.HTTP_201_CREATED if outcome.recorded else status.HTTP_200_OK
    meeting = outcome.meeting
    is_link = outcome.record.method is AttendanceMethod.link
    if outcome.recorded:
        message = "Attendance marked successfully!"
    else:
        message = "You have already marked attendance for this meeting."
    return AttendanceResult(
        recorded=outcome.recorded,
        already_recorded=outcome.already_recorded,
        method=outcome.record.method,
        recorded_at=outcome.record.recorded_at,
        meeting=MeetingSummary.model_validate(meeting),
        meeting_link=meeting.meeting_link if is_link else None,
        message=message,
    )


class AttendanceController:
    @staticmethod
    def scan(
        payload: ScanSubmission,
        response: Response,
        db: Session,
        current_user_id: int,
        clock: Clock,
    ) -> AttendanceResult:
        svc = AttendanceService(db, clock)
        outcome = svc.submit_scan(payload.proof, current_user_id, payload.location())
        return _result(outcome, response)

    @staticmethod
    def mark_link(
        payload: LinkSubmission,
        response: Response,
        db: Session,
        current_user_id: int,
        clock: Clock,
    ) -> AttendanceResult:
        svc = AttendanceService(db, clock)
        outcome = svc.submit_link(payload.link_token, current_user_id, payload.location())
        return _result(outcome, response)

    @staticmethod
    def preview_link(
        link_token: str,
        db: Session,
        current_user_id: int,
        clock: Clock,
    ) -> LinkPreviewOut:
        svc = AttendanceService(db, clock)
        preview = svc.preview_link(link_token, current_user_id)
        meeting = preview["meeting"]
        return LinkPreviewOut(
            meeting=MeetingSummary.model_validate(meeting),
            description=meeting.description,
            meeting_link=meeting.meeting_link,
            status=preview["status"],
            already_recorded=preview["already_recorded"],
        )

    @staticmethod
    def list_meeting_records(meeting_id: UUID, db: Session) -> List[AttendanceOut]:
        svc = AttendanceService(db)
        return [AttendanceOut.model_validate(r) for r in svc.list_meeting_records(meeting_id)]

    @staticmethod
    def list_my_records(db: Session, current_user_id: int) -> List[AttendanceOut]:
        svc = AttendanceService(db)
        return [AttendanceOut.model_validate(r) for r in svc.list_user_records(current_user_id)]
