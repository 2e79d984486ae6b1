import jwt
import json
import secrets
import datetime
from typing import Any, Dict, List, Literal, Union
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, ValidationError
from config.settings import settings  # must define SECRET_KEY and ALGORITHM
from utils.clock import as_utc

HEX_TOKEN = r"^[0-9a-f]+$"


class ProofDecodeError(ValueError):
    """Raised when a submitted proof matches neither known shape."""


class TokenProof(BaseModel):
    """Rotating proof shown on the in-room screen."""
    model_config = ConfigDict(extra="forbid", frozen=True, populate_by_name=True)

    kind: Literal["token"] = "token"
    meeting_id: UUID = Field(alias="meetingId")
    token: str = Field(min_length=16, max_length=128, pattern=HEX_TOKEN)
    issued_at: datetime.datetime = Field(alias="issuedAt")


class LinkProof(BaseModel):
    """Long-lived token embedded in a remote meeting's attendance link."""
    model_config = ConfigDict(extra="forbid", frozen=True)

    kind: Literal["link"] = "link"
    link_token: str = Field(min_length=16, max_length=128, pattern=HEX_TOKEN)


Proof = Union[TokenProof, LinkProof]


def generate_proof_token(nbytes: int = None) -> str:
    """Fresh random proof token; 16 bytes gives 128 bits of entropy."""
    return secrets.token_hex(nbytes or settings.PROOF_TOKEN_BYTES)


def generate_link_token(nbytes: int = None) -> str:
    return secrets.token_hex(nbytes or settings.LINK_TOKEN_BYTES)


def encode_proof(meeting_id: UUID, token: str, issued_at: datetime.datetime) -> str:
    """
    Serialise the proof embedded in the scannable code. Callers treat the
    result as an opaque string and hand it back unchanged.
    """
    return json.dumps(
        {
            "meetingId": str(meeting_id),
            "token": token,
            "issuedAt": as_utc(issued_at).isoformat(),
        },
        separators=(",", ":"),
    )


def decode_proof(raw: str) -> TokenProof:
    if not raw or not raw.strip():
        raise ProofDecodeError("QR data is required.")
    try:
        return TokenProof.model_validate_json(raw)
    except ValidationError as e:
        raise ProofDecodeError("Invalid QR code. Please scan a valid meeting QR code.") from e


def decode_link_token(raw: str) -> LinkProof:
    if not raw or not raw.strip():
        raise ProofDecodeError("Attendance token is required.")
    try:
        return LinkProof(link_token=raw.strip())
    except ValidationError as e:
        raise ProofDecodeError("Invalid attendance link.") from e


def create_access_token(
    payload: Dict[str, Any],
    expires_hours: int = 1,
) -> str:
    """
    Generate a JWT access token with the given payload and expiration.
    """
    expire = datetime.datetime.now(datetime.timezone.utc) + datetime.timedelta(hours=expires_hours)
    to_encode = payload.copy()
    to_encode.update({"exp": expire})

    token = jwt.encode(to_encode, settings.SECRET_KEY, algorithm=settings.ALGORITHM)
    return token


def create_subject_token(user_id: int, roles: List[str] = None, expires_hours: int = 1) -> str:
    """
    Mint the bearer token the API expects: ``id`` plus ``roles``.
    Identity is verified upstream; this is for operators and tests.
    """
    return create_access_token(
        {"id": user_id, "roles": roles or ["member"]},
        expires_hours,
    )
