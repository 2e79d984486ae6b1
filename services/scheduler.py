# services/scheduler.py
from datetime import datetime, timedelta, timezone
from apscheduler.schedulers.background import BackgroundScheduler

from services.lifecycle_scheduler import LifecycleScheduler
from services.rotation_service import ProofRotationService

LIFECYCLE_JOB_ID = "meeting_lifecycle"
ROTATION_JOB_ID = "proof_rotation"


def build_scheduler(
    lifecycle: LifecycleScheduler,
    rotation: ProofRotationService,
    lifecycle_seconds: int,
) -> BackgroundScheduler:
    """
    Two independent interval jobs. Both fire once on boot, never overlap with
    themselves, and collapse missed runs into one.
    """
    scheduler = BackgroundScheduler(timezone=timezone.utc)
    now = datetime.now(timezone.utc)

    scheduler.add_job(
        lifecycle.tick,
        "interval",
        seconds=lifecycle_seconds,
        id=LIFECYCLE_JOB_ID,
        max_instances=1,
        coalesce=True,
        next_run_time=now,
    )
    scheduler.add_job(
        rotation.tick,
        "interval",
        seconds=rotation.state.interval_seconds,
        id=ROTATION_JOB_ID,
        max_instances=1,
        coalesce=True,
        next_run_time=now,
    )

    def realign_rotation(at: datetime):
        # keep the next tick one full interval after a countdown reset
        if scheduler.running:
            scheduler.modify_job(
                ROTATION_JOB_ID,
                next_run_time=at + timedelta(seconds=rotation.state.interval_seconds),
            )

    rotation.state.on_reset(realign_rotation)
    return scheduler
