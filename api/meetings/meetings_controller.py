# api/meetings/meetings_controller.py

from typing import List
from uuid import UUID
from sqlalchemy.orm import Session

from api.meetings.meetings_service import MeetingService
from api.meetings.meetings_schema import (
    MeetingCreate,
    MeetingOut,
    ProofOut,
    LinkOut,
    PauseOut,
    ProofStatusOut,
)
from services.rotation_service import RotationState
from utils.clock import Clock


class MeetingController:
    @staticmethod
    def create_meeting(payload: MeetingCreate, db: Session, current_user_id: int, clock: Clock) -> MeetingOut:
        svc = MeetingService(db, clock)
        meeting = svc.create_meeting(payload, current_user_id)
        return MeetingOut.model_validate(svc.describe(meeting))

    @staticmethod
    def list_active(db: Session, clock: Clock) -> List[MeetingOut]:
        svc = MeetingService(db, clock)
        return [MeetingOut.model_validate(svc.describe(m)) for m in svc.list_active()]

    @staticmethod
    def get_meeting(meeting_id: UUID, db: Session, clock: Clock) -> MeetingOut:
        svc = MeetingService(db, clock)
        return MeetingOut.model_validate(svc.describe(svc.get_meeting(meeting_id)))

    @staticmethod
    def generate_proof(meeting_id: UUID, db: Session, clock: Clock) -> ProofOut:
        svc = MeetingService(db, clock)
        meeting = svc.generate_proof(meeting_id)
        return ProofOut(
            meeting_id=meeting.id,
            proof=svc.current_proof(meeting),
            issued_at=meeting.proof_issued_at,
        )

    @staticmethod
    def generate_link(meeting_id: UUID, db: Session, clock: Clock) -> LinkOut:
        svc = MeetingService(db, clock)
        meeting = svc.generate_link(meeting_id)
        return LinkOut(meeting_id=meeting.id, link_token=meeting.link_token)

    @staticmethod
    def toggle_proof_pause(
        meeting_id: UUID,
        db: Session,
        rotation_state: RotationState,
        clock: Clock,
    ) -> PauseOut:
        svc = MeetingService(db, clock)
        paused = svc.toggle_proof_pause(meeting_id, rotation_state)
        return PauseOut(
            meeting_id=meeting_id,
            paused=paused,
            message=f"QR auto-refresh {'paused' if paused else 'resumed'}.",
        )

    @staticmethod
    def proof_status(
        meeting_id: UUID,
        db: Session,
        rotation_state: RotationState,
        clock: Clock,
    ) -> ProofStatusOut:
        svc = MeetingService(db, clock)
        return ProofStatusOut.model_validate(svc.proof_status(meeting_id, rotation_state))
