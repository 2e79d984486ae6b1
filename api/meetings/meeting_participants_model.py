from sqlalchemy import Column, Integer, ForeignKey, UniqueConstraint, Uuid
from config.database import Base


class MeetingParticipant(Base):
    """Allow-list entry for a meeting with restricted participation."""
    __tablename__ = "meeting_participants"
    __table_args__ = (
        UniqueConstraint("meeting_id", "user_id", name="uq_participant_meeting_user"),
    )

    id         = Column(Integer, primary_key=True, index=True)
    meeting_id = Column(Uuid(as_uuid=True), ForeignKey("meetings.id", ondelete="CASCADE"), nullable=False)
    user_id    = Column(Integer, nullable=False)

    def __init__(self, user_id, meeting_id=None):
        self.user_id    = user_id
        self.meeting_id = meeting_id
