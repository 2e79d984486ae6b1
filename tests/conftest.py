import os
import tempfile

# Settings are read at import time; point them somewhere harmless first.
_TMP_DIR = tempfile.mkdtemp(prefix="attendance-tests-")
os.environ.setdefault("DATABASE_URL", f"sqlite:///{_TMP_DIR}/app.db")
os.environ.setdefault("SECRET_KEY", "test-secret-key-that-is-long-enough-0123456789")
os.environ["SCHEDULER_ENABLED"] = "false"

import math
from datetime import datetime, timedelta, timezone

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import sessionmaker

from config.database import Base, build_engine
from api.meetings.meetings_model import Meeting, ChannelKind, Participation
from api.meetings.meeting_participants_model import MeetingParticipant
from api.attendance.attendance_records_model import AttendanceRecord  # noqa: F401
from api.attendance.attendance_service import AttendanceService
from helpers.token_helper import create_subject_token, encode_proof, generate_proof_token
from services.rotation_service import RotationState
from utils.geoutils import EARTH_RADIUS_M

T0 = datetime(2026, 3, 2, 10, 0, tzinfo=timezone.utc)


class FakeClock:
    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs):
        self.now = self.now + timedelta(**kwargs)
        return self.now

    def set(self, now: datetime):
        self.now = now
        return now


def offset_north(lat: float, lng: float, meters: float):
    """Point ``meters`` due north of (lat, lng) on the haversine sphere."""
    return lat + math.degrees(meters / EARTH_RADIUS_M), lng


def proof_for(meeting: Meeting) -> str:
    return encode_proof(meeting.id, meeting.proof_token, meeting.proof_issued_at)


def bearer(user_id: int, roles=None) -> dict:
    return {"Authorization": f"Bearer {create_subject_token(user_id, roles)}"}


@pytest.fixture()
def clock():
    return FakeClock(T0 + timedelta(minutes=5))


@pytest.fixture()
def engine(tmp_path):
    eng = build_engine(f"sqlite:///{tmp_path / 'attendance_test.db'}")
    Base.metadata.create_all(bind=eng)
    yield eng
    eng.dispose()


@pytest.fixture()
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture()
def db(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture()
def new_service(session_factory, clock):
    """Each call gets its own session, like one request would."""
    sessions = []

    def _make():
        session = session_factory()
        sessions.append(session)
        return AttendanceService(session, clock)

    yield _make
    for s in sessions:
        s.close()


@pytest.fixture()
def make_meeting(db):
    def _make(**overrides):
        participant_ids = overrides.pop("participant_ids", None)
        values = dict(
            title="Weekly sync",
            channel=ChannelKind.presence_token,
            scheduled_at=T0,
            duration_minutes=60,
            created_by=1,
            is_active=False,
            proof_paused=False,
            participation=Participation.open,
        )
        values.update(overrides)
        meeting = Meeting(**values)
        if participant_ids:
            meeting.participants = [MeetingParticipant(user_id=uid) for uid in participant_ids]
        db.add(meeting)
        db.commit()
        db.refresh(meeting)
        return meeting

    return _make


@pytest.fixture()
def live_meeting(make_meeting):
    """In-person meeting that is live at the default clock time with a proof issued."""
    def _make(**overrides):
        values = dict(
            is_active=True,
            proof_token=generate_proof_token(),
            proof_issued_at=T0,
        )
        values.update(overrides)
        return make_meeting(**values)

    return _make


@pytest.fixture()
def client(session_factory, clock):
    import main
    from config.database import get_db
    from utils.deps import get_clock

    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    main.app.dependency_overrides[get_db] = override_get_db
    main.app.dependency_overrides[get_clock] = lambda: clock
    main.app.state.rotation_state = RotationState(20, clock=clock)

    with TestClient(main.app) as c:
        yield c

    main.app.dependency_overrides.clear()
