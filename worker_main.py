# worker_main.py
"""
Runs the background ticks outside the web process:
 - lifecycle: flips meetings dormant → active → ended
 - rotation: re-issues presence proofs in lockstep
Use it with SCHEDULER_ENABLED=false on the API so only one owner runs them.
"""

import sys
import time
import logging
import argparse

from config.database import SessionLocal
from config.logging_config import configure_logging
from config.settings import settings
from services.lifecycle_scheduler import LifecycleScheduler
from services.rotation_service import ProofRotationService, RotationState
from services.scheduler import build_scheduler

logger = logging.getLogger("worker")


def run_lifecycle_once():
    result = LifecycleScheduler(SessionLocal).tick()
    logger.info(f"▶️ Lifecycle tick: {result['activated']} activated, {result['ended']} ended")


def run_rotation_once():
    state = RotationState(settings.ROTATION_INTERVAL_SECONDS)
    rotated = ProofRotationService(SessionLocal, state).tick()
    logger.info(f"▶️ Rotation tick: {rotated} proof(s) rotated")


def main(argv=None):
    parser = argparse.ArgumentParser(description="Attendance background worker")
    parser.add_argument("--loop", action="store_true", help="Run both ticks on their intervals until interrupted")
    parser.add_argument("--run-lifecycle", action="store_true", help="Run one lifecycle tick")
    parser.add_argument("--run-rotation", action="store_true", help="Run one rotation tick")
    parser.add_argument("--debug", action="store_true", help="Enable debug logging")
    args = parser.parse_args(argv)

    configure_logging("DEBUG" if args.debug else settings.LOG_LEVEL)

    if args.loop:
        state = RotationState(settings.ROTATION_INTERVAL_SECONDS)
        scheduler = build_scheduler(
            LifecycleScheduler(SessionLocal),
            ProofRotationService(SessionLocal, state),
            settings.LIFECYCLE_TICK_SECONDS,
        )
        scheduler.start()
        logger.info("▶️ Worker started in loop mode")
        try:
            while True:
                time.sleep(1)
        except (KeyboardInterrupt, SystemExit):
            scheduler.shutdown(wait=False)
            logger.info("⏹️ Worker stopped")
        return 0

    if not (args.run_lifecycle or args.run_rotation):
        logger.info("▶️ worker_main executed (no jobs run). Use --run-lifecycle, --run-rotation or --loop.")
        return 0

    if args.run_lifecycle:
        run_lifecycle_once()
    if args.run_rotation:
        run_rotation_once()
    return 0


if __name__ == "__main__":
    sys.exit(main())
