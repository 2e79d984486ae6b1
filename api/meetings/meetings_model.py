from sqlalchemy import (
    Column, String, Integer, Boolean, Text, DateTime, Float, Enum, Uuid, func
)
from sqlalchemy.orm import relationship
import enum
import uuid
from config.database import Base
from api.meetings.meeting_participants_model import MeetingParticipant


class ChannelKind(enum.Enum):
    presence_token = "presence_token"   # in-room, rotating QR proof
    join_link      = "join_link"        # remote, long-lived link token


class Participation(enum.Enum):
    open       = "open"
    restricted = "restricted"


class Meeting(Base):
    __tablename__ = "meetings"

    id               = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    title            = Column(Text, nullable=False)
    description      = Column(Text, nullable=True)
    channel          = Column(Enum(ChannelKind, name="meeting_channel_enum"), nullable=False)
    scheduled_at     = Column(DateTime(timezone=True), nullable=False, index=True)
    duration_minutes = Column(Integer, nullable=False, default=60)
    location         = Column(Text, nullable=True)
    meeting_link     = Column(Text, nullable=True)
    created_by       = Column(Integer, nullable=False, index=True)

    # denormalised hint, refreshed by the lifecycle scheduler
    is_active        = Column(Boolean, nullable=False, default=False, index=True)

    # presence_token channel
    proof_token      = Column(String(128), nullable=True)
    proof_issued_at  = Column(DateTime(timezone=True), nullable=True)
    proof_paused     = Column(Boolean, nullable=False, default=False)

    # join_link channel
    link_token       = Column(String(128), nullable=True, unique=True, index=True)

    geofence_lat      = Column(Float, nullable=True)
    geofence_lng      = Column(Float, nullable=True)
    geofence_radius_m = Column(Float, nullable=True)

    participation    = Column(
        Enum(Participation, name="meeting_participation_enum"),
        nullable=False, default=Participation.open
    )

    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    updated_at = Column(DateTime(timezone=True), nullable=False,
                        server_default=func.now(), onupdate=func.now())

    participants = relationship(
        MeetingParticipant,
        cascade="all, delete-orphan",
        lazy="selectin",
    )

    @property
    def has_geofence(self) -> bool:
        return (
            self.geofence_lat is not None
            and self.geofence_lng is not None
            and self.geofence_radius_m is not None
        )

    @property
    def participant_ids(self) -> set:
        return {p.user_id for p in self.participants}
