# api/attendance/attendance_errors.py
"""
Outcomes a caller can act on. Each carries a stable machine-readable code
alongside the human message, rendered by FastAPI as
``{"detail": {"code": ..., "message": ...}}``.
"""
from typing import Optional

from fastapi import HTTPException, status


class AttendanceError(HTTPException):
    code = "InternalError"
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_message = "Something went wrong."

    def __init__(self, message: Optional[str] = None):
        self.message = message or self.default_message
        super().__init__(
            status_code=self.status_code,
            detail={"code": self.code, "message": self.message},
        )


class BadRequest(AttendanceError):
    code = "BadRequest"
    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "Malformed request."


class NotFound(AttendanceError):
    code = "NotFound"
    status_code = status.HTTP_404_NOT_FOUND
    default_message = "Meeting not found."


class ExpiredQR(AttendanceError):
    code = "ExpiredQR"
    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "This QR code has expired. Please scan the latest QR code."


class TooEarly(AttendanceError):
    code = "TooEarly"
    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "This meeting has not started yet. Please wait for the meeting to begin."


class MeetingEnded(AttendanceError):
    code = "MeetingEnded"
    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "This meeting has ended. Attendance can no longer be marked."


class Forbidden(AttendanceError):
    code = "Forbidden"
    status_code = status.HTTP_403_FORBIDDEN
    default_message = "You are not on the participants list for this meeting."


class LocationRequired(AttendanceError):
    code = "LocationRequired"
    status_code = status.HTTP_400_BAD_REQUEST
    default_message = (
        "This meeting has geofencing enabled. "
        "Please allow location access and try again."
    )


class OutOfRange(AttendanceError):
    code = "OutOfRange"
    status_code = status.HTTP_400_BAD_REQUEST

    def __init__(self, distance_m: float, radius_m: float):
        self.distance_m = distance_m
        self.radius_m = radius_m
        super().__init__(
            f"You are outside the allowed geofence. You are approximately "
            f"{round(distance_m)}m away, but you need to be within "
            f"{round(radius_m)}m of the meeting location to mark attendance."
        )


class InternalError(AttendanceError):
    pass
