#Purpose: One place to configure logging for scripts and host apps embedding the matcher.
#Level defaults to Settings.log_level (LOG_LEVEL in .env).
#The matcher's own loggers (events.*, matching.*, proximity.*, drivers.*) follow that level;
#HTTP library chatter is kept at WARNING so retries stay readable.

import logging
from typing import Optional

from settings import Settings, load_settings

MATCHER_LOGGERS = ("events", "drivers", "matching", "proximity")
QUIET_LOGGERS = ("urllib3", "requests")

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(threadName)s %(name)s: %(message)s"


def setup_logging(
    level: Optional[int] = None,
    log_file: Optional[str] = None,
    settings: Optional[Settings] = None,
) -> int:
    """
    Configure the root handlers and the matcher's package loggers.
    Returns the level applied. Thread names are in the format because capture
    and matching log from worker threads.
    """
    if level is None:
        level = (settings or load_settings()).log_level

    handlers = [logging.StreamHandler()]
    if log_file:
        handlers.append(logging.FileHandler(log_file))
    logging.basicConfig(level=level, format=LOG_FORMAT, handlers=handlers)

    for name in MATCHER_LOGGERS:
        logging.getLogger(name).setLevel(level)
    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(max(level, logging.WARNING))
    return level
