# config/logging_config.py
import logging
import sys

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s %(message)s"


def configure_logging(level: str = "INFO") -> None:
    """Route every application logger to stdout with one shared format."""
    root = logging.getLogger()
    root.setLevel(level)
    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    root.handlers.clear()
    root.addHandler(handler)
    # APScheduler announces every job run at INFO
    if level != "DEBUG":
        logging.getLogger("apscheduler").setLevel(logging.WARNING)
