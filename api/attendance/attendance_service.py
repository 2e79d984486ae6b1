# api/attendance/attendance_service.py
"""
Validates a proof of presence and records attendance exactly once per
(meeting, user).

Checks run in a fixed order and stop at the first failure: proof shape,
meeting lookup, channel, freshness, time window, eligibility, geofence,
then the idempotent insert. Nothing is written unless every check passes.
"""
import logging
import secrets
from dataclasses import dataclass
from typing import List, Optional, Union
from uuid import UUID

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from api.attendance.attendance_errors import (
    AttendanceError,
    BadRequest,
    ExpiredQR,
    Forbidden,
    InternalError,
    LocationRequired,
    MeetingEnded,
    NotFound,
    OutOfRange,
    TooEarly,
)
from api.attendance.attendance_records_model import AttendanceRecord, AttendanceMethod
from api.attendance.attendance_schema import GeoPoint
from api.meetings.meetings_model import Meeting, ChannelKind, Participation
from api.meetings.meeting_lifecycle import LifecycleState, derive_state
from helpers.token_helper import (
    LinkProof,
    Proof,
    ProofDecodeError,
    TokenProof,
    decode_link_token,
    decode_proof,
)
from services.base_service import BaseService
from utils.clock import Clock, utc_now
from utils.geoutils import within_radius

logger = logging.getLogger(__name__)

LINK_STATUS = {
    LifecycleState.dormant: "upcoming",
    LifecycleState.active: "live",
    LifecycleState.ended: "ended",
}


@dataclass
class AttendanceOutcome:
    meeting: Meeting
    record: AttendanceRecord
    recorded: bool

    @property
    def already_recorded(self) -> bool:
        return not self.recorded


class AttendanceService(BaseService[AttendanceRecord]):
    def __init__(self, db: Session, clock: Clock = utc_now):
        super().__init__(db, AttendanceRecord)
        self.clock = clock

    # ── entry points ────────────────────────────────────────────────────

    def submit_scan(self, raw_proof: str, user_id: int, location: Optional[GeoPoint] = None) -> AttendanceOutcome:
        try:
            proof = decode_proof(raw_proof)
        except ProofDecodeError as e:
            raise BadRequest(str(e))
        return self.record_attendance(proof, user_id, location)

    def submit_link(self, link_token: str, user_id: int, location: Optional[GeoPoint] = None) -> AttendanceOutcome:
        try:
            proof = decode_link_token(link_token)
        except ProofDecodeError as e:
            raise BadRequest(str(e))
        return self.record_attendance(proof, user_id, location)

    def record_attendance(
        self,
        proof: Proof,
        user_id: int,
        location: Optional[GeoPoint] = None,
    ) -> AttendanceOutcome:
        try:
            meeting = self.resolve_meeting(proof)
            self.check_channel(meeting, proof)
            if isinstance(proof, TokenProof):
                self.check_fresh(meeting, proof)
            self.check_window(meeting)
            self.check_eligible(meeting, user_id)
            if meeting.has_geofence:
                self.check_geofence(meeting, location)

            existing = self.find_record(meeting.id, user_id)
            if existing is not None:
                return AttendanceOutcome(meeting, existing, recorded=False)

            return self.insert_or_get_existing(meeting, user_id, method_for(proof), location)
        except AttendanceError:
            raise
        except SQLAlchemyError:
            self.db.rollback()
            logger.exception(f"❌ Failed to record attendance for user {user_id}")
            raise InternalError("Failed to mark attendance. Please try again.")

    # ── individual checks ───────────────────────────────────────────────

    def resolve_meeting(self, proof: Proof) -> Meeting:
        if isinstance(proof, TokenProof):
            meeting = self.db.get(Meeting, proof.meeting_id, populate_existing=True)
            if meeting is None:
                raise NotFound("Meeting not found. The QR code may be outdated.")
            return meeting
        if isinstance(proof, LinkProof):
            meeting = (
                self.db.query(Meeting)
                .filter(Meeting.link_token == proof.link_token)
                .populate_existing()
                .one_or_none()
            )
            if meeting is None:
                raise NotFound("Invalid attendance link. This link may have expired or the meeting does not exist.")
            return meeting
        raise BadRequest("Unrecognised proof.")

    @staticmethod
    def check_channel(meeting: Meeting, proof: Proof) -> None:
        if isinstance(proof, TokenProof) and meeting.channel is not ChannelKind.presence_token:
            raise BadRequest("QR attendance is only available for in-person meetings. Use the attendance link instead.")
        if isinstance(proof, LinkProof) and meeting.channel is not ChannelKind.join_link:
            raise BadRequest("This attendance link is only valid for online meetings.")

    @staticmethod
    def check_fresh(meeting: Meeting, proof: TokenProof) -> None:
        # exact match against the stored token, no grace window
        current = meeting.proof_token or ""
        if not current or not secrets.compare_digest(current, proof.token):
            raise ExpiredQR()

    def check_window(self, meeting: Meeting) -> None:
        state = derive_state(self.clock(), meeting.scheduled_at, meeting.duration_minutes)
        if state is LifecycleState.dormant:
            raise TooEarly()
        if state is LifecycleState.ended:
            raise MeetingEnded()

    @staticmethod
    def check_eligible(meeting: Meeting, user_id: int) -> None:
        if meeting.participation is Participation.restricted and user_id not in meeting.participant_ids:
            raise Forbidden()

    @staticmethod
    def check_geofence(meeting: Meeting, location: Optional[GeoPoint]) -> float:
        if location is None:
            raise LocationRequired()
        inside, distance = within_radius(
            location.lat,
            location.lng,
            meeting.geofence_lat,
            meeting.geofence_lng,
            meeting.geofence_radius_m,
        )
        if not inside:
            raise OutOfRange(distance, meeting.geofence_radius_m)
        return distance

    # ── storage ─────────────────────────────────────────────────────────

    def find_record(self, meeting_id: UUID, user_id: int) -> Optional[AttendanceRecord]:
        return (
            self.db.query(AttendanceRecord)
            .filter_by(meeting_id=meeting_id, user_id=user_id)
            .one_or_none()
        )

    def insert_or_get_existing(
        self,
        meeting: Meeting,
        user_id: int,
        method: AttendanceMethod,
        location: Optional[GeoPoint],
    ) -> AttendanceOutcome:
        """
        Insert the record; a unique violation means a concurrent submission
        for the same pair won, so return that record as already recorded.
        """
        meeting_id = meeting.id
        record = AttendanceRecord(
            meeting_id  = meeting_id,
            user_id     = user_id,
            method      = method,
            recorded_at = self.clock(),
            location    = location,
        )
        self.db.add(record)
        try:
            self.db.commit()
        except IntegrityError:
            self.db.rollback()
            existing = self.find_record(meeting_id, user_id)
            if existing is None:
                # the constraint that fired was not the (meeting, user) one
                raise
            logger.info(f"↩️ Concurrent duplicate for meeting {meeting_id}, user {user_id}; kept existing record")
            return AttendanceOutcome(meeting, existing, recorded=False)

        self.db.refresh(record)
        logger.info(f"✅ Attendance recorded for meeting {meeting_id}, user {user_id} via {method.value}")
        return AttendanceOutcome(meeting, record, recorded=True)

    # ── read side ───────────────────────────────────────────────────────

    def preview_link(self, link_token: str, user_id: int) -> dict:
        """Meeting behind an attendance link plus this user's standing. No writes."""
        try:
            proof = decode_link_token(link_token)
        except ProofDecodeError as e:
            raise BadRequest(str(e))
        try:
            meeting = self.resolve_meeting(proof)
            self.check_channel(meeting, proof)
            self.check_eligible(meeting, user_id)
            state = derive_state(self.clock(), meeting.scheduled_at, meeting.duration_minutes)
            return {
                "meeting": meeting,
                "status": LINK_STATUS[state],
                "already_recorded": self.find_record(meeting.id, user_id) is not None,
            }
        except AttendanceError:
            raise
        except SQLAlchemyError:
            self.db.rollback()
            logger.exception(f"❌ Failed to load attendance link for user {user_id}")
            raise InternalError("Failed to load the attendance link. Please try again.")

    def list_meeting_records(self, meeting_id: UUID) -> List[AttendanceRecord]:
        try:
            if self.db.get(Meeting, meeting_id) is None:
                raise NotFound("Meeting not found.")
            return (
                self.db.query(AttendanceRecord)
                    .filter_by(meeting_id=meeting_id)
                    .order_by(AttendanceRecord.recorded_at.asc(), AttendanceRecord.id.asc())
                    .all()
            )
        except AttendanceError:
            raise
        except SQLAlchemyError:
            self.db.rollback()
            logger.exception(f"❌ Failed to list attendance for meeting {meeting_id}")
            raise InternalError("Failed to load attendance records.")

    def list_user_records(self, user_id: int) -> List[AttendanceRecord]:
        try:
            return (
                self.db.query(AttendanceRecord)
                    .filter_by(user_id=user_id)
                    .order_by(AttendanceRecord.recorded_at.desc())
                    .all()
            )
        except SQLAlchemyError:
            self.db.rollback()
            logger.exception(f"❌ Failed to list attendance for user {user_id}")
            raise InternalError("Failed to load attendance records.")


def method_for(proof: Union[TokenProof, LinkProof]) -> AttendanceMethod:
    return AttendanceMethod.token if isinstance(proof, TokenProof) else AttendanceMethod.link
