import json
import uuid
from datetime import datetime, timezone

import jwt
import pytest

from config.settings import settings
from helpers.token_helper import (
    LinkProof,
    ProofDecodeError,
    TokenProof,
    create_subject_token,
    decode_link_token,
    decode_proof,
    encode_proof,
    generate_link_token,
    generate_proof_token,
)

ISSUED = datetime(2026, 3, 2, 10, 0, tzinfo=timezone.utc)


def test_proof_tokens_carry_128_bits():
    token = generate_proof_token()
    assert len(token) == 32
    int(token, 16)


def test_proof_tokens_do_not_repeat():
    assert len({generate_proof_token() for _ in range(500)}) == 500


def test_link_tokens_are_longer():
    assert len(generate_link_token()) == 48


def test_decode_reads_back_what_encode_wrote():
    meeting_id = uuid.uuid4()
    token = generate_proof_token()
    proof = decode_proof(encode_proof(meeting_id, token, ISSUED))
    assert isinstance(proof, TokenProof)
    assert proof.kind == "token"
    assert proof.meeting_id == meeting_id
    assert proof.token == token
    assert proof.issued_at == ISSUED


def test_encoded_proof_uses_wire_keys():
    raw = encode_proof(uuid.uuid4(), generate_proof_token(), ISSUED)
    assert set(json.loads(raw)) == {"meetingId", "token", "issuedAt"}


@pytest.mark.parametrize(
    "raw",
    [
        "",
        "   ",
        "not json at all",
        "[1, 2, 3]",
        json.dumps({"token": "a" * 32, "issuedAt": ISSUED.isoformat()}),
        json.dumps({"meetingId": "nope", "token": "a" * 32, "issuedAt": ISSUED.isoformat()}),
        json.dumps({"meetingId": str(uuid.uuid4()), "token": "ZZZZ" * 8, "issuedAt": ISSUED.isoformat()}),
        json.dumps({"meetingId": str(uuid.uuid4()), "token": "abc", "issuedAt": ISSUED.isoformat()}),
        json.dumps({"meetingId": str(uuid.uuid4()), "token": "a" * 32, "issuedAt": ISSUED.isoformat(), "extra": 1}),
    ],
)
def test_decode_rejects_anything_but_a_token_proof(raw):
    with pytest.raises(ProofDecodeError):
        decode_proof(raw)


def test_link_token_decodes_to_link_proof():
    token = generate_link_token()
    proof = decode_link_token(f"  {token} ")
    assert isinstance(proof, LinkProof)
    assert proof.link_token == token


@pytest.mark.parametrize("raw", ["", "short", "g" * 48])
def test_link_token_rejects_malformed_values(raw):
    with pytest.raises(ProofDecodeError):
        decode_link_token(raw)


def test_subject_token_carries_id_and_roles():
    decoded = jwt.decode(
        create_subject_token(42, ["admin"]),
        settings.SECRET_KEY,
        algorithms=[settings.ALGORITHM],
    )
    assert decoded["id"] == 42
    assert decoded["roles"] == ["admin"]
    assert "exp" in decoded
