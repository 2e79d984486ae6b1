from datetime import timedelta

from api.meetings.meetings_model import ChannelKind
from conftest import T0, bearer, proof_for

ADMIN = bearer(1, ["admin"])
MEMBER = bearer(7)


def test_health(client):
    assert client.get("/health").json() == {"status": "ok"}


def test_scan_requires_a_bearer_token(client):
    res = client.post("/api/attendance/scan", json={"proof": "x"})
    assert res.status_code in (401, 403)


def test_garbage_bearer_token_is_unauthorized(client):
    res = client.post(
        "/api/attendance/scan",
        json={"proof": "x"},
        headers={"Authorization": "Bearer not-a-jwt"},
    )
    assert res.status_code == 401


def test_members_cannot_create_meetings(client):
    res = client.post(
        "/api/meetings/",
        json={"title": "x", "channel": "presence_token", "scheduled_at": T0.isoformat()},
        headers=MEMBER,
    )
    assert res.status_code == 403


def test_admin_creates_a_dormant_meeting(client):
    res = client.post(
        "/api/meetings/",
        json={
            "title": "Field day",
            "channel": "presence_token",
            "scheduled_at": T0.isoformat(),
            "duration_minutes": 90,
            "geofence": {"lat": 17.72, "lng": 80.46, "radius_m": 150},
        },
        headers=ADMIN,
    )
    assert res.status_code == 201
    body = res.json()
    assert body["state"] == "active"
    assert body["is_active"] is False
    assert body["geofence"]["radius_m"] == 150

    fetched = client.get(f"/api/meetings/{body['id']}", headers=MEMBER)
    assert fetched.status_code == 200
    assert fetched.json()["title"] == "Field day"


def test_scan_records_then_reports_already_recorded(client, live_meeting):
    meeting = live_meeting()
    payload = {"proof": proof_for(meeting)}

    first = client.post("/api/attendance/scan", json=payload, headers=MEMBER)
    again = client.post("/api/attendance/scan", json=payload, headers=MEMBER)

    assert first.status_code == 201
    assert first.json()["recorded"] is True
    assert first.json()["meeting_link"] is None
    assert again.status_code == 200
    assert again.json()["already_recorded"] is True


def test_rejections_carry_a_machine_readable_code(client, live_meeting, clock):
    meeting = live_meeting()
    clock.set(T0 + timedelta(hours=2))

    res = client.post("/api/attendance/scan", json={"proof": proof_for(meeting)}, headers=MEMBER)

    assert res.status_code == 400
    assert res.json()["detail"]["code"] == "MeetingEnded"


def test_malformed_proof_is_a_bad_request(client):
    res = client.post("/api/attendance/scan", json={"proof": "{not json"}, headers=MEMBER)
    assert res.status_code == 400
    assert res.json()["detail"]["code"] == "BadRequest"


def test_out_of_range_scan(client, live_meeting):
    meeting = live_meeting(geofence_lat=0.0, geofence_lng=0.0, geofence_radius_m=100)
    res = client.post(
        "/api/attendance/scan",
        json={"proof": proof_for(meeting), "lat": 0.01, "lng": 0.0, "accuracy": 5},
        headers=MEMBER,
    )
    assert res.status_code == 400
    assert res.json()["detail"]["code"] == "OutOfRange"


def test_link_preview_and_mark(client, make_meeting):
    token = "ab" * 24
    make_meeting(
        channel=ChannelKind.join_link,
        link_token=token,
        meeting_link="https://meet.example/room",
        description="Quarterly review",
    )

    preview = client.get(f"/api/attendance/link/{token}", headers=MEMBER)
    assert preview.status_code == 200
    assert preview.json()["status"] == "live"
    assert preview.json()["already_recorded"] is False

    marked = client.post("/api/attendance/link", json={"link_token": token}, headers=MEMBER)
    assert marked.status_code == 201
    assert marked.json()["method"] == "link"
    assert marked.json()["meeting_link"] == "https://meet.example/room"

    preview = client.get(f"/api/attendance/link/{token}", headers=MEMBER)
    assert preview.json()["already_recorded"] is True


def test_unknown_link_is_not_found(client):
    res = client.post("/api/attendance/link", json={"link_token": "ef" * 24}, headers=MEMBER)
    assert res.status_code == 404
    assert res.json()["detail"]["code"] == "NotFound"


def test_proof_generation_status_and_pause(client, make_meeting, clock):
    meeting = make_meeting()

    generated = client.post(f"/api/meetings/{meeting.id}/generate-proof", headers=ADMIN)
    assert generated.status_code == 200

    client.app.state.rotation_state.mark_rotated(clock())
    clock.advance(seconds=6)
    status = client.get(f"/api/meetings/{meeting.id}/proof-status", headers=ADMIN).json()
    assert status["current_proof"] == generated.json()["proof"]
    assert status["seconds_until_next_rotation"] == 14
    assert status["paused"] is False

    paused = client.patch(f"/api/meetings/{meeting.id}/proof-pause", headers=ADMIN)
    assert paused.json()["paused"] is True
    resumed = client.patch(f"/api/meetings/{meeting.id}/proof-pause", headers=ADMIN)
    assert resumed.json()["paused"] is False

    status = client.get(f"/api/meetings/{meeting.id}/proof-status", headers=ADMIN).json()
    assert status["seconds_until_next_rotation"] == 20


def test_proof_status_is_for_staff_only(client, live_meeting):
    meeting = live_meeting()
    res = client.get(f"/api/meetings/{meeting.id}/proof-status", headers=MEMBER)
    assert res.status_code == 403


def test_record_listings(client, live_meeting):
    meeting = live_meeting()
    client.post("/api/attendance/scan", json={"proof": proof_for(meeting)}, headers=MEMBER)
    client.post("/api/attendance/scan", json={"proof": proof_for(meeting)}, headers=bearer(8))

    records = client.get(f"/api/attendance/meetings/{meeting.id}/records", headers=ADMIN)
    mine = client.get("/api/attendance/users/me/records", headers=MEMBER)

    assert records.status_code == 200
    assert sorted(r["user_id"] for r in records.json()) == [7, 8]
    assert [r["user_id"] for r in mine.json()] == [7]


def test_link_submission_accepts_camel_case_key(client, make_meeting):
    token = "cd" * 24
    make_meeting(channel=ChannelKind.join_link, link_token=token)

    res = client.post("/api/attendance/link", json={"linkToken": token}, headers=MEMBER)

    assert res.status_code == 201


def test_active_meetings_for_the_display_screen(client, make_meeting):
    make_meeting(title="later", scheduled_at=T0 + timedelta(hours=1))
    make_meeting(title="over", scheduled_at=T0 - timedelta(hours=3), is_active=True)
    live = make_meeting(title="now", is_active=False)

    res = client.get("/api/meetings/active", headers=bearer(2, ["pr"]))

    assert res.status_code == 200
    assert [m["id"] for m in res.json()] == [str(live.id)]
    assert res.json()[0]["state"] == "active"


def test_active_meetings_are_for_staff_only(client):
    assert client.get("/api/meetings/active", headers=MEMBER).status_code == 403


def test_half_a_coordinate_pair_is_rejected(client, live_meeting):
    meeting = live_meeting()
    res = client.post(
        "/api/attendance/scan",
        json={"proof": proof_for(meeting), "lat": 17.7231},
        headers=MEMBER,
    )
    assert res.status_code == 422
