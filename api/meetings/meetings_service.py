# api/meetings/meetings_service.py

import logging
from datetime import timedelta
from typing import Dict, Any, List
from uuid import UUID
from sqlalchemy import update, not_
from sqlalchemy.orm import Session

from api.attendance.attendance_errors import BadRequest
from api.meetings.meetings_model import Meeting, ChannelKind, Participation
from api.meetings.meeting_participants_model import MeetingParticipant
from api.meetings.meeting_lifecycle import LifecycleState, MAX_DURATION_MINUTES, derive_state, meeting_window
from api.meetings.meetings_schema import MeetingCreate
from config.settings import settings
from helpers.token_helper import encode_proof, generate_link_token, generate_proof_token
from services.base_service import BaseService
from services.rotation_service import RotationState
from utils.clock import Clock, as_utc, utc_now

logger = logging.getLogger(__name__)


class MeetingService(BaseService[Meeting]):
    def __init__(self, db: Session, clock: Clock = utc_now):
        super().__init__(db, Meeting)
        self.clock = clock

    def get_meeting(self, meeting_id: UUID) -> Meeting:
        return self.get_by_id_or_404(meeting_id, "Meeting not found.")

    def create_meeting(self, data: MeetingCreate, user_id: int) -> Meeting:
        """Register a meeting. It starts dormant with no proof issued."""
        meeting = Meeting(
            title            = data.title.strip(),
            description      = data.description,
            channel          = data.channel,
            scheduled_at     = as_utc(data.scheduled_at),
            duration_minutes = data.duration_minutes or settings.DEFAULT_MEETING_DURATION_MINUTES,
            location         = data.location,
            meeting_link     = data.meeting_link if data.channel is ChannelKind.join_link else None,
            participation    = data.participation,
            created_by       = user_id,
            is_active        = False,
            proof_paused     = False,
        )
        if data.geofence is not None:
            meeting.geofence_lat      = data.geofence.lat
            meeting.geofence_lng      = data.geofence.lng
            meeting.geofence_radius_m = data.geofence.radius_m
        if data.participation is Participation.restricted:
            meeting.participants = [MeetingParticipant(user_id=uid) for uid in set(data.participant_ids)]

        self.db.add(meeting)
        self.db.commit()
        self.db.refresh(meeting)
        logger.info(f"📅 Meeting {meeting.id} created by user {user_id}")
        return meeting

    def list_active(self) -> List[Meeting]:
        """
        Meetings whose window contains now, newest first. The cached
        ``is_active`` flag is not consulted.
        """
        now = self.clock()
        # no meeting runs longer than MAX_DURATION_MINUTES, so older starts cannot be live
        candidates = (
            self.db.query(Meeting)
            .filter(Meeting.scheduled_at <= now)
            .filter(Meeting.scheduled_at > now - timedelta(minutes=MAX_DURATION_MINUTES))
            .order_by(Meeting.scheduled_at.desc())
            .all()
        )
        return [
            m for m in candidates
            if derive_state(now, m.scheduled_at, m.duration_minutes) is LifecycleState.active
        ]

    def generate_proof(self, meeting_id: UUID) -> Meeting:
        """
        Pre-generate a presence proof. From then on the rotation tick keeps
        replacing it until the meeting ends.
        """
        meeting = self.get_meeting(meeting_id)
        if meeting.channel is not ChannelKind.presence_token:
            raise BadRequest("QR proofs can only be generated for presence_token meetings.")

        self.db.execute(
            update(Meeting)
            .where(Meeting.id == meeting.id)
            .values(proof_token=generate_proof_token(), proof_issued_at=self.clock())
            .execution_options(synchronize_session=False)
        )
        self.db.commit()
        self.db.refresh(meeting)
        return meeting

    def generate_link(self, meeting_id: UUID) -> Meeting:
        """(Re)issue the attendance link token of a remote meeting."""
        meeting = self.get_meeting(meeting_id)
        if meeting.channel is not ChannelKind.join_link:
            raise BadRequest("Attendance links can only be generated for join_link meetings.")

        self.db.execute(
            update(Meeting)
            .where(Meeting.id == meeting.id)
            .values(link_token=generate_link_token())
            .execution_options(synchronize_session=False)
        )
        self.db.commit()
        self.db.refresh(meeting)
        return meeting

    def toggle_proof_pause(self, meeting_id: UUID, rotation_state: RotationState) -> bool:
        """
        Flip the pause flag in one UPDATE so it cannot interleave with a
        rotation. Resuming restarts the shared countdown.
        """
        meeting = self.get_meeting(meeting_id)
        if meeting.channel is not ChannelKind.presence_token:
            raise BadRequest("Only presence_token meetings have a rotating proof.")

        self.db.execute(
            update(Meeting)
            .where(Meeting.id == meeting.id)
            .values(proof_paused=not_(Meeting.proof_paused))
            .execution_options(synchronize_session=False)
        )
        self.db.commit()
        self.db.refresh(meeting)

        if not meeting.proof_paused:
            rotation_state.reset()
        logger.info(f"⏯️ Proof rotation {'paused' if meeting.proof_paused else 'resumed'} for meeting {meeting.id}")
        return meeting.proof_paused

    def current_proof(self, meeting: Meeting):
        if not meeting.proof_token or meeting.proof_issued_at is None:
            return None
        return encode_proof(meeting.id, meeting.proof_token, meeting.proof_issued_at)

    def proof_status(self, meeting_id: UUID, rotation_state: RotationState) -> Dict[str, Any]:
        """Read-only: never rotates anything itself."""
        meeting = self.get_meeting(meeting_id)
        now = self.clock()
        return {
            "current_proof": self.current_proof(meeting),
            "paused": bool(meeting.proof_paused),
            "seconds_until_next_rotation": rotation_state.seconds_until_next_rotation(now),
            "rotation_interval": rotation_state.interval_seconds,
            "is_active": bool(meeting.is_active),
            "state": derive_state(now, meeting.scheduled_at, meeting.duration_minutes),
        }

    def describe(self, meeting: Meeting) -> Dict[str, Any]:
        start, end = meeting_window(meeting.scheduled_at, meeting.duration_minutes)
        geofence = None
        if meeting.has_geofence:
            geofence = {
                "lat": meeting.geofence_lat,
                "lng": meeting.geofence_lng,
                "radius_m": meeting.geofence_radius_m,
            }
        return {
            "id": meeting.id,
            "title": meeting.title,
            "description": meeting.description,
            "channel": meeting.channel,
            "scheduled_at": start,
            "duration_minutes": meeting.duration_minutes,
            "ends_at": end,
            "state": derive_state(self.clock(), start, meeting.duration_minutes),
            "is_active": bool(meeting.is_active),
            "location": meeting.location,
            "meeting_link": meeting.meeting_link,
            "participation": meeting.participation,
            "participant_ids": sorted(meeting.participant_ids),
            "geofence": geofence,
            "created_by": meeting.created_by,
        }
