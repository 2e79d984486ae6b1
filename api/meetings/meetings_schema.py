# api/meetings/meetings_schema.py

from pydantic import BaseModel, ConfigDict, Field, model_validator
from typing import List, Optional
from uuid import UUID
from datetime import datetime

from api.meetings.meetings_model import ChannelKind, Participation
from api.meetings.meeting_lifecycle import LifecycleState, MAX_DURATION_MINUTES


class GeofenceIn(BaseModel):
    lat: float = Field(ge=-90, le=90)
    lng: float = Field(ge=-180, le=180)
    radius_m: float = Field(default=200, ge=10, le=5000)


class MeetingCreate(BaseModel):
    title: str = Field(min_length=1, max_length=200)
    description: Optional[str] = Field(default=None, max_length=2000)
    channel: ChannelKind
    scheduled_at: datetime
    duration_minutes: Optional[int] = Field(default=None, ge=5, le=MAX_DURATION_MINUTES)
    location: Optional[str] = None
    meeting_link: Optional[str] = None
    geofence: Optional[GeofenceIn] = None
    participation: Participation = Participation.open
    participant_ids: List[int] = Field(default_factory=list)

    @model_validator(mode="after")
    def check_channel_fields(self):
        if self.geofence is not None and self.channel is not ChannelKind.presence_token:
            raise ValueError("Geofencing only applies to presence_token meetings")
        if self.scheduled_at.tzinfo is None:
            raise ValueError("scheduled_at must include a timezone offset")
        return self


class MeetingOut(BaseModel):
    id: UUID
    title: str
    description: Optional[str] = None
    channel: ChannelKind
    scheduled_at: datetime
    duration_minutes: int
    ends_at: datetime
    state: LifecycleState
    is_active: bool
    location: Optional[str] = None
    meeting_link: Optional[str] = None
    participation: Participation
    participant_ids: List[int] = Field(default_factory=list)
    geofence: Optional[GeofenceIn] = None
    created_by: int

    model_config = ConfigDict(from_attributes=True)


class ProofOut(BaseModel):
    meeting_id: UUID
    proof: str
    issued_at: datetime


class LinkOut(BaseModel):
    meeting_id: UUID
    link_token: str


class PauseOut(BaseModel):
    meeting_id: UUID
    paused: bool
    message: str


class ProofStatusOut(BaseModel):
    """Read-only view used by the screen that displays the rotating QR."""
    current_proof: Optional[str] = None
    paused: bool
    seconds_until_next_rotation: int
    rotation_interval: int
    is_active: bool
    state: LifecycleState
