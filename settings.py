#Purpose: Environment-driven runtime settings.
#Reads a local .env (python-dotenv) and exposes one Settings object.
#Algorithm thresholds do NOT live here: see drivers/policy.py.
#
# Example .env:
# MATCHING_BACKEND_URL=https://backend.example.org/rest/v1
# MATCHING_BACKEND_API_KEY=...
# EVENT_STORE_DIR=./data/events

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

load_dotenv()


def _read_float(name: str, default: float) -> float:
    try:
        return float(os.getenv(name, str(default)))
    except ValueError:
        return default


def _read_int(name: str, default: int) -> int:
    try:
        return int(os.getenv(name, str(default)))
    except ValueError:
        return default


@dataclass(frozen=True)
class Settings:
    backend_url: Optional[str]
    backend_api_key: Optional[str]
    backend_timeout_s: float
    backend_retries: int
    backend_backoff_s: float
    event_store_dir: Path
    feedback_log_path: Path
    beacon_scan_budget_s: float
    log_level: int


def load_settings() -> Settings:
    level_name = os.getenv("LOG_LEVEL", "INFO").upper()
    return Settings(
        backend_url=os.getenv("MATCHING_BACKEND_URL") or None,
        backend_api_key=os.getenv("MATCHING_BACKEND_API_KEY") or None,
        backend_timeout_s=_read_float("MATCHING_BACKEND_TIMEOUT_S", 5.0),
        backend_retries=_read_int("MATCHING_BACKEND_RETRIES", 1),
        backend_backoff_s=_read_float("MATCHING_BACKEND_BACKOFF_S", 0.5),
        event_store_dir=Path(os.getenv("EVENT_STORE_DIR", "data/events")),
        feedback_log_path=Path(os.getenv("FEEDBACK_LOG_PATH", "data/matching_feedback.jsonl")),
        beacon_scan_budget_s=_read_float("BEACON_SCAN_BUDGET_S", 2.5),
        log_level=getattr(logging, level_name, logging.INFO),
    )
