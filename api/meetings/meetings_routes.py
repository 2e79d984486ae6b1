# api/meetings/meetings_routes.py

from typing import List
from uuid import UUID

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from config.database import get_db
from middlewares.auth_middleware import auth_middleware
from middlewares.role_middleware import role_middleware
from api.meetings.meetings_schema import (
    MeetingCreate,
    MeetingOut,
    ProofOut,
    LinkOut,
    PauseOut,
    ProofStatusOut,
)
from api.meetings.meetings_controller import MeetingController
from services.rotation_service import RotationState
from utils.deps import get_clock, get_rotation_state

router = APIRouter(prefix="/meetings", tags=["meetings"])


@router.post(
    "/",
    response_model=MeetingOut,
    status_code=status.HTTP_201_CREATED,
    summary="Register a meeting (starts dormant)",
)
def create_meeting(
    payload: MeetingCreate,
    db: Session = Depends(get_db),
    current_user: dict = Depends(role_middleware(required_roles=["admin"])),
    clock=Depends(get_clock),
) -> MeetingOut:
    return MeetingController.create_meeting(payload, db, current_user["id"], clock)


@router.get(
    "/active",
    response_model=List[MeetingOut],
    summary="Meetings live right now, newest first",
    dependencies=[Depends(role_middleware(required_roles=["admin", "pr"]))],
)
def list_active_meetings(
    db: Session = Depends(get_db),
    clock=Depends(get_clock),
) -> List[MeetingOut]:
    return MeetingController.list_active(db, clock)


@router.get("/{meeting_id}", response_model=MeetingOut)
def get_meeting(
    meeting_id: UUID,
    db: Session = Depends(get_db),
    current_user: dict = Depends(auth_middleware),
    clock=Depends(get_clock),
) -> MeetingOut:
    return MeetingController.get_meeting(meeting_id, db, clock)


@router.get(
    "/{meeting_id}/proof-status",
    response_model=ProofStatusOut,
    summary="Current QR proof and seconds until the next rotation (read-only)",
    dependencies=[Depends(role_middleware(required_roles=["admin", "pr"]))],
)
def proof_status(
    meeting_id: UUID,
    db: Session = Depends(get_db),
    rotation_state: RotationState = Depends(get_rotation_state),
    clock=Depends(get_clock),
) -> ProofStatusOut:
    return MeetingController.proof_status(meeting_id, db, rotation_state, clock)


@router.post(
    "/{meeting_id}/generate-proof",
    response_model=ProofOut,
    summary="Pre-generate a rotating QR proof",
    dependencies=[Depends(role_middleware(required_roles=["admin"]))],
)
def generate_proof(
    meeting_id: UUID,
    db: Session = Depends(get_db),
    clock=Depends(get_clock),
) -> ProofOut:
    return MeetingController.generate_proof(meeting_id, db, clock)


@router.post(
    "/{meeting_id}/generate-link",
    response_model=LinkOut,
    summary="(Re)issue the attendance link token of an online meeting",
    dependencies=[Depends(role_middleware(required_roles=["admin"]))],
)
def generate_link(
    meeting_id: UUID,
    db: Session = Depends(get_db),
    clock=Depends(get_clock),
) -> LinkOut:
    return MeetingController.generate_link(meeting_id, db, clock)


@router.patch(
    "/{meeting_id}/proof-pause",
    response_model=PauseOut,
    summary="Pause or resume QR rotation for a meeting",
    dependencies=[Depends(role_middleware(required_roles=["admin"]))],
)
def toggle_proof_pause(
    meeting_id: UUID,
    db: Session = Depends(get_db),
    rotation_state: RotationState = Depends(get_rotation_state),
    clock=Depends(get_clock),
) -> PauseOut:
    return MeetingController.toggle_proof_pause(meeting_id, db, rotation_state, clock)
