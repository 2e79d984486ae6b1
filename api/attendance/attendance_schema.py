# api/attendance/attendance_schema.py

from pydantic import BaseModel, ConfigDict, Field, model_validator
from typing import Optional
from uuid import UUID
from datetime import datetime

from api.attendance.attendance_records_model import AttendanceMethod
from api.meetings.meetings_model import ChannelKind


class GeoPoint(BaseModel):
    lat: float
    lng: float
    accuracy: Optional[float] = None


class LocatedSubmission(BaseModel):
    lat: Optional[float] = Field(default=None, ge=-90, le=90)
    lng: Optional[float] = Field(default=None, ge=-180, le=180)
    accuracy: Optional[float] = Field(default=None, ge=0)

    @model_validator(mode="after")
    def check_coordinate_pair(self):
        if (self.lat is None) != (self.lng is None):
            raise ValueError("lat and lng must be sent together")
        return self

    def location(self) -> Optional[GeoPoint]:
        if self.lat is None or self.lng is None:
            return None
        return GeoPoint(lat=self.lat, lng=self.lng, accuracy=self.accuracy)


class ScanSubmission(LocatedSubmission):
    """
    Payload sent after scanning the in-room QR code. ``proof`` is the opaque
    string read from the code, passed back untouched.
    """
    proof: str


class LinkSubmission(LocatedSubmission):
    model_config = ConfigDict(populate_by_name=True)

    link_token: str = Field(alias="linkToken")


class MeetingSummary(BaseModel):
    id: UUID
    title: str
    channel: ChannelKind
    scheduled_at: datetime
    duration_minutes: int
    location: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)


class AttendanceResult(BaseModel):
    recorded: bool
    already_recorded: bool
    method: AttendanceMethod
    recorded_at: datetime
    meeting: MeetingSummary
    meeting_link: Optional[str] = None
    message: str


class LinkPreviewOut(BaseModel):
    meeting: MeetingSummary
    description: Optional[str] = None
    meeting_link: Optional[str] = None
    status: str
    already_recorded: bool


class AttendanceOut(BaseModel):
    meeting_id: UUID
    user_id: int
    method: AttendanceMethod
    recorded_at: datetime
    location_lat: Optional[float] = None
    location_lng: Optional[float] = None
    location_accuracy: Optional[float] = None

    model_config = ConfigDict(from_attributes=True)
