from fastapi import Request

from services.rotation_service import RotationState
from utils.clock import Clock, utc_now


def get_rotation_state(request: Request) -> RotationState:
    """The single rotation clock owned by the running app."""
    return request.app.state.rotation_state


def get_clock() -> Clock:
    return utc_now
