import uuid
from datetime import timedelta

import pytest
from pydantic import ValidationError

from api.attendance.attendance_errors import BadRequest, NotFound
from api.meetings.meeting_lifecycle import LifecycleState
from api.meetings.meetings_model import ChannelKind, Participation
from api.meetings.meetings_schema import MeetingCreate
from api.meetings.meetings_service import MeetingService
from helpers.token_helper import decode_proof
from services.rotation_service import RotationState
from conftest import T0


@pytest.fixture()
def service(db, clock):
    return MeetingService(db, clock)


@pytest.fixture()
def state(clock):
    return RotationState(20, clock=clock)


def test_create_meeting_starts_dormant_without_proof(service):
    meeting = service.create_meeting(
        MeetingCreate(title="  Standup ", channel=ChannelKind.presence_token, scheduled_at=T0),
        user_id=4,
    )

    assert meeting.title == "Standup"
    assert meeting.duration_minutes == 60
    assert meeting.is_active is False
    assert meeting.proof_token is None
    assert meeting.link_token is None
    assert meeting.created_by == 4


def test_restricted_meeting_keeps_its_participant_list(service):
    meeting = service.create_meeting(
        MeetingCreate(
            title="Board",
            channel=ChannelKind.presence_token,
            scheduled_at=T0,
            participation=Participation.restricted,
            participant_ids=[3, 1, 3],
        ),
        user_id=1,
    )
    assert meeting.participant_ids == {1, 3}
    assert service.describe(meeting)["participant_ids"] == [1, 3]


def test_geofence_is_rejected_for_link_meetings():
    with pytest.raises(ValidationError):
        MeetingCreate(
            title="Remote",
            channel=ChannelKind.join_link,
            scheduled_at=T0,
            geofence={"lat": 1.0, "lng": 2.0},
        )


def test_naive_schedule_is_rejected():
    with pytest.raises(ValidationError):
        MeetingCreate(title="x", channel=ChannelKind.presence_token, scheduled_at=T0.replace(tzinfo=None))


def test_unknown_meeting_is_not_found(service):
    with pytest.raises(NotFound):
        service.get_meeting(uuid.uuid4())


def test_generate_proof_issues_a_decodable_proof(service, make_meeting, clock):
    meeting = make_meeting()

    updated = service.generate_proof(meeting.id)
    proof = decode_proof(service.current_proof(updated))

    assert proof.meeting_id == meeting.id
    assert proof.token == updated.proof_token
    assert proof.issued_at == clock()


def test_generate_proof_refuses_link_meetings(service, make_meeting):
    meeting = make_meeting(channel=ChannelKind.join_link)
    with pytest.raises(BadRequest):
        service.generate_proof(meeting.id)


def test_generate_link_replaces_the_token(service, make_meeting):
    meeting = make_meeting(channel=ChannelKind.join_link, link_token="ab" * 24)
    updated = service.generate_link(meeting.id)
    assert updated.link_token and updated.link_token != "ab" * 24


def test_generate_link_refuses_presence_meetings(service, make_meeting):
    meeting = make_meeting()
    with pytest.raises(BadRequest):
        service.generate_link(meeting.id)


def test_pause_then_resume_restarts_the_countdown(service, live_meeting, state, clock):
    meeting = live_meeting()
    state.mark_rotated(clock())
    clock.advance(seconds=15)
    assert state.seconds_until_next_rotation() == 5

    assert service.toggle_proof_pause(meeting.id, state) is True
    assert state.seconds_until_next_rotation() == 5

    clock.advance(seconds=2)
    assert service.toggle_proof_pause(meeting.id, state) is False
    assert state.last_rotated_at == clock()
    assert state.seconds_until_next_rotation() == 20


def test_pause_is_only_for_presence_meetings(service, make_meeting, state):
    meeting = make_meeting(channel=ChannelKind.join_link)
    with pytest.raises(BadRequest):
        service.toggle_proof_pause(meeting.id, state)


def test_proof_status_does_not_rotate(service, live_meeting, state, clock):
    meeting = live_meeting()
    state.mark_rotated(clock())
    clock.advance(seconds=8)

    first = service.proof_status(meeting.id, state)
    second = service.proof_status(meeting.id, state)

    assert first == second
    assert first["current_proof"] is not None
    assert first["seconds_until_next_rotation"] == 12
    assert first["rotation_interval"] == 20
    assert first["state"] is LifecycleState.active
    assert state.last_rotated_at == clock() - timedelta(seconds=8)


def test_proof_status_without_proof(service, make_meeting, state):
    meeting = make_meeting()
    status = service.proof_status(meeting.id, state)
    assert status["current_proof"] is None
    assert status["seconds_until_next_rotation"] == 0


def test_list_active_uses_the_schedule_not_the_cached_flag(service, make_meeting, clock):
    make_meeting(title="later", scheduled_at=T0 + timedelta(hours=1), is_active=True)
    make_meeting(title="over", scheduled_at=T0 - timedelta(hours=2), is_active=True)
    earlier = make_meeting(title="earlier", scheduled_at=T0 - timedelta(minutes=30), is_active=False)
    current = make_meeting(title="current", scheduled_at=T0, is_active=False)

    live = service.list_active()

    assert [m.id for m in live] == [current.id, earlier.id]


def test_list_active_includes_the_longest_meetings(service, make_meeting, clock):
    marathon = make_meeting(scheduled_at=clock() - timedelta(hours=11), duration_minutes=720)
    make_meeting(scheduled_at=clock() - timedelta(hours=12), duration_minutes=720)

    assert [m.id for m in service.list_active()] == [marathon.id]
