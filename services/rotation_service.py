# services/rotation_service.py
"""
Lockstep rotation of presence proofs.

Every tick re-issues the proof of each presence meeting that holds a token
and is not paused, stamping all of them with the same issuance instant. The
tick time is kept in a single ``RotationState`` so any reader can work out
how long the current proofs have left without per-meeting bookkeeping.
"""
import logging
import math
import threading
from datetime import datetime
from typing import Callable, List, Optional

from sqlalchemy import update
from sqlalchemy.orm import Session

from api.meetings.meetings_model import Meeting, ChannelKind
from helpers.token_helper import generate_proof_token
from utils.clock import Clock, as_utc, utc_now

logger = logging.getLogger(__name__)


class RotationState:
    """Shared "last rotated at" instant plus the cadence it runs on."""

    def __init__(self, interval_seconds: int, clock: Clock = utc_now):
        self.interval_seconds = interval_seconds
        self._clock = clock
        self._last_rotated_at: Optional[datetime] = None
        self._lock = threading.Lock()
        self._reset_listeners: List[Callable[[datetime], None]] = []

    @property
    def last_rotated_at(self) -> Optional[datetime]:
        return self._last_rotated_at

    def mark_rotated(self, at: Optional[datetime] = None) -> datetime:
        at = as_utc(at) if at is not None else self._clock()
        with self._lock:
            self._last_rotated_at = at
        return at

    def reset(self) -> datetime:
        """Restart the countdown now, e.g. when a paused proof resumes."""
        at = self.mark_rotated()
        for listener in list(self._reset_listeners):
            try:
                listener(at)
            except Exception:
                logger.exception("❌ Rotation reset listener failed")
        return at

    def on_reset(self, listener: Callable[[datetime], None]) -> None:
        self._reset_listeners.append(listener)

    def seconds_until_next_rotation(self, now: Optional[datetime] = None) -> int:
        with self._lock:
            last = self._last_rotated_at
        if last is None:
            return 0
        now = as_utc(now) if now is not None else self._clock()
        elapsed = (now - last).total_seconds()
        return max(0, math.ceil(self.interval_seconds - elapsed))


class ProofRotationService:
    def __init__(
        self,
        session_factory: Callable[[], Session],
        state: RotationState,
        clock: Clock = utc_now,
        token_factory: Callable[[], str] = generate_proof_token,
    ):
        self.session_factory = session_factory
        self.state = state
        self.clock = clock
        self.token_factory = token_factory

    @staticmethod
    def due_meeting_ids(db: Session) -> List:
        rows = (
            db.query(Meeting.id)
            .filter(Meeting.channel == ChannelKind.presence_token)
            .filter(Meeting.proof_token.isnot(None))
            .filter(Meeting.proof_token != "")
            .filter(Meeting.proof_paused.is_(False))
            .all()
        )
        return [r.id for r in rows]

    def rotate_one(self, db: Session, meeting_id, issued_at: datetime) -> bool:
        """
        Replace one meeting's proof in a single UPDATE. The WHERE clause
        re-checks the pause flag so a pause landing mid-tick is honoured.
        """
        result = db.execute(
            update(Meeting)
            .where(Meeting.id == meeting_id)
            .where(Meeting.proof_paused.is_(False))
            .where(Meeting.proof_token.isnot(None))
            .values(proof_token=self.token_factory(), proof_issued_at=issued_at)
            .execution_options(synchronize_session=False)
        )
        db.commit()
        return result.rowcount > 0

    def tick(self) -> int:
        """Run one rotation. Never raises; returns how many proofs changed."""
        rotated = 0
        db = None
        try:
            now = self.clock()
            db = self.session_factory()
            meeting_ids = self.due_meeting_ids(db)

            # Stamp the tick even when nothing is due so countdowns stay in sync
            self.state.mark_rotated(now)

            for meeting_id in meeting_ids:
                try:
                    if self.rotate_one(db, meeting_id, now):
                        rotated += 1
                except Exception:
                    db.rollback()
                    logger.exception(f"❌ Proof rotation failed for meeting {meeting_id}")

            if meeting_ids:
                logger.info(f"🔄 Rotated proofs for {rotated}/{len(meeting_ids)} meeting(s)")
        except Exception:
            logger.exception("❌ Proof rotation tick failed")
        finally:
            if db is not None:
                db.close()
        return rotated
