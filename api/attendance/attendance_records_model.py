from sqlalchemy import (
    Column,
    Integer,
    Float,
    DateTime,
    Enum,
    ForeignKey,
    Uuid,
    func,
    UniqueConstraint,
)
import enum
from config.database import Base


class AttendanceMethod(enum.Enum):
    token = "token"
    link  = "link"


class AttendanceRecord(Base):
    __tablename__ = "attendance_records"
    __table_args__ = (
        UniqueConstraint("meeting_id", "user_id", name="uq_attendance_meeting_user"),
    )

    id                = Column(Integer, primary_key=True, index=True)
    meeting_id        = Column(Uuid(as_uuid=True), ForeignKey("meetings.id"), nullable=False, index=True)
    user_id           = Column(Integer, nullable=False, index=True)
    method            = Column(Enum(AttendanceMethod, name="attendance_method_enum"), nullable=False)
    recorded_at       = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    # advisory only, never re-validated after the fact
    location_lat      = Column(Float, nullable=True)
    location_lng      = Column(Float, nullable=True)
    location_accuracy = Column(Float, nullable=True)
    created_at        = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    def __init__(self, meeting_id, user_id, method, recorded_at, location=None):
        self.meeting_id  = meeting_id
        self.user_id     = user_id
        self.method      = method
        self.recorded_at = recorded_at
        if location is not None:
            self.location_lat      = location.lat
            self.location_lng      = location.lng
            self.location_accuracy = location.accuracy
