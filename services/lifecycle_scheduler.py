# services/lifecycle_scheduler.py
"""
Flips meetings between dormant, active and ended from the wall clock.

The ``is_active`` column is written here and only read as a cheap
pre-filter; each candidate's state is recomputed from its schedule before
any transition.
"""
import logging
from datetime import datetime
from typing import Callable, Dict

from sqlalchemy import update
from sqlalchemy.orm import Session

from api.meetings.meetings_model import Meeting, ChannelKind
from api.meetings.meeting_lifecycle import LifecycleState, derive_state
from helpers.token_helper import generate_link_token, generate_proof_token
from utils.clock import Clock, utc_now

logger = logging.getLogger(__name__)


class LifecycleScheduler:
    def __init__(
        self,
        session_factory: Callable[[], Session],
        clock: Clock = utc_now,
        proof_token_factory: Callable[[], str] = generate_proof_token,
        link_token_factory: Callable[[], str] = generate_link_token,
    ):
        self.session_factory = session_factory
        self.clock = clock
        self.proof_token_factory = proof_token_factory
        self.link_token_factory = link_token_factory

    def activation_values(self, row, now: datetime) -> Dict:
        values = {"is_active": True}
        if row.channel == ChannelKind.join_link:
            if not row.link_token:
                values["link_token"] = self.link_token_factory()
        elif not row.proof_token:
            values["proof_token"] = self.proof_token_factory()
            values["proof_issued_at"] = now
        return values

    def activate_started(self, db: Session, now: datetime) -> int:
        candidates = (
            db.query(
                Meeting.id,
                Meeting.title,
                Meeting.channel,
                Meeting.scheduled_at,
                Meeting.duration_minutes,
                Meeting.proof_token,
                Meeting.link_token,
            )
            .filter(Meeting.is_active.is_(False))
            .filter(Meeting.scheduled_at <= now)
            .all()
        )

        activated = 0
        for row in candidates:
            # A window that elapsed entirely while we were not looking stays dormant
            if derive_state(now, row.scheduled_at, row.duration_minutes) is not LifecycleState.active:
                continue
            try:
                db.execute(
                    update(Meeting)
                    .where(Meeting.id == row.id)
                    .where(Meeting.is_active.is_(False))
                    .values(**self.activation_values(row, now))
                    .execution_options(synchronize_session=False)
                )
                db.commit()
                activated += 1
                logger.info(f"✅ Auto-activated meeting {row.id} ({row.title!r})")
            except Exception:
                db.rollback()
                logger.exception(f"❌ Failed to activate meeting {row.id}")
        return activated

    def deactivate_finished(self, db: Session, now: datetime) -> int:
        active = (
            db.query(Meeting.id, Meeting.title, Meeting.scheduled_at, Meeting.duration_minutes)
            .filter(Meeting.is_active.is_(True))
            .all()
        )

        ended = 0
        for row in active:
            if derive_state(now, row.scheduled_at, row.duration_minutes) is not LifecycleState.ended:
                continue
            try:
                db.execute(
                    update(Meeting)
                    .where(Meeting.id == row.id)
                    .values(
                        is_active=False,
                        proof_token=None,
                        proof_issued_at=None,
                        proof_paused=False,
                        link_token=None,
                    )
                    .execution_options(synchronize_session=False)
                )
                db.commit()
                ended += 1
                logger.info(f"⏹️ Auto-deactivated meeting {row.id} ({row.title!r})")
            except Exception:
                db.rollback()
                logger.exception(f"❌ Failed to deactivate meeting {row.id}")
        return ended

    def tick(self) -> Dict[str, int]:
        """Run one pass. Never raises to the caller."""
        result = {"activated": 0, "ended": 0}
        db = None
        try:
            now = self.clock()
            db = self.session_factory()
            result["activated"] = self.activate_started(db, now)
            result["ended"] = self.deactivate_finished(db, now)
        except Exception:
            logger.exception("❌ Meeting lifecycle tick failed")
        finally:
            if db is not None:
                db.close()
        return result
