"""
FILE DESCRIPTION: Foundational module for global configuration and logging.
KEY FUNCTIONS/CLASSES: AuditConfig, setup_logger, CompanyFormatter, logger
"""

import logging
import os
import sys
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from types import MappingProxyType
from typing import Mapping

from dotenv import load_dotenv

# === CONFIGURATION SECTION ===

# Load .env at the beginning of core
load_dotenv(Path(__file__).resolve().parents[1] / '.env')


def _env_int(name: str, default: int) -> int:
    return int(os.getenv(name, default))


def _env_float(name: str, default: float) -> float:
    return float(os.getenv(name, default))


# Network timeouts for plain HTTP requests (seconds)
REQUEST_TIMEOUT = _env_float("REQUEST_TIMEOUT", 15)
REDIRECT_TIMEOUT = _env_float("REDIRECT_TIMEOUT", 10)
SITEMAP_TIMEOUT = _env_float("SITEMAP_TIMEOUT", 10)

USER_AGENT = "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/126.0.0.0 Safari/537.36"
SITEMAP_USER_AGENT = "Mozilla/5.0 (compatible; PublisherAuditBot/1.0)"

# Playwright / JS Rendering Waiting Periods (seconds)
JS_GOTO_TIMEOUT = _env_float("JS_GOTO_TIMEOUT", 30)
JS_AD_SETTLE_TIME = _env_float("JS_AD_SETTLE_TIME", 5)
JS_SCROLL_SETTLE_TIME = _env_float("JS_SCROLL_SETTLE_TIME", 3)

# Business policy (not protocol): keep overridable from the environment
RECENT_MAX_DAYS = _env_int("RECENT_MAX_DAYS", 30)
HISTORY_MIN_DAYS = _env_int("HISTORY_MIN_DAYS", 95)
MIN_PREMIUM_NETWORKS = _env_int("MIN_PREMIUM_NETWORKS", 2)
PLAGIARISM_FAIL_THRESHOLD = _env_float("PLAGIARISM_FAIL_THRESHOLD", 0.85)
PLAGIARISM_REVIEW_THRESHOLD = _env_float("PLAGIARISM_REVIEW_THRESHOLD", 0.5)

# Remote API call caps per audit
MAX_PLAGIARISM_API_CALLS = _env_int("MAX_PLAGIARISM_API_CALLS", 2)
MAX_HATE_SPEECH_API_CALLS = _env_int("MAX_HATE_SPEECH_API_CALLS", 2)
MAX_IMAGE_API_CALLS = _env_int("MAX_IMAGE_API_CALLS", 4)

# Per-check deadlines (seconds)
DEFAULT_DEADLINES = {
    "contentRecency": _env_float("RECENCY_DEADLINE", 30),
    "hateSpeech": _env_float("HATE_SPEECH_DEADLINE", 60),
    "plagiarism": _env_float("PLAGIARISM_DEADLINE", 60),
    "images": _env_float("IMAGES_DEADLINE", 90),
    "ads": _env_float("ADS_DEADLINE", 60),
}

# Google APIs
GOOGLE_API_KEY = os.getenv("GOOGLE_API_KEY", "")
GOOGLE_SEARCH_API_KEY = os.getenv("GOOGLE_SEARCH_API_KEY", "")
GOOGLE_SEARCH_ENGINE_ID = os.getenv("GOOGLE_SEARCH_ENGINE_ID", "")
GOOGLE_VISION_API_KEY = os.getenv("GOOGLE_VISION_API_KEY", "")

# MySQL
DB_CONFIG = {
    "host": os.getenv("MYSQL_HOST", "localhost"),
    "port": _env_int("MYSQL_PORT", 3306),
    "user": os.getenv("MYSQL_USER", "root"),
    "password": os.getenv("MYSQL_PASSWORD", ""),
    "database": os.getenv("MYSQL_DATABASE", "auditdb"),
    "charset": "utf8mb4",
}


@dataclass(frozen=True)
class AuditConfig:
    """
    Snapshot of the tunables a single audit depends on.
    Components take one in their constructor so tests can inject overrides
    without touching the environment.
    """
    request_timeout: float = REQUEST_TIMEOUT
    redirect_timeout: float = REDIRECT_TIMEOUT
    sitemap_timeout: float = SITEMAP_TIMEOUT
    user_agent: str = USER_AGENT
    recent_max_days: int = RECENT_MAX_DAYS
    history_min_days: int = HISTORY_MIN_DAYS
    min_premium_networks: int = MIN_PREMIUM_NETWORKS
    plagiarism_fail_threshold: float = PLAGIARISM_FAIL_THRESHOLD
    plagiarism_review_threshold: float = PLAGIARISM_REVIEW_THRESHOLD
    max_plagiarism_api_calls: int = MAX_PLAGIARISM_API_CALLS
    max_hate_speech_api_calls: int = MAX_HATE_SPEECH_API_CALLS
    max_image_api_calls: int = MAX_IMAGE_API_CALLS
    deadlines: Mapping[str, float] = field(default_factory=lambda: dict(DEFAULT_DEADLINES))

    def __post_init__(self):
        # Read-only copy; use dataclasses.replace for overrides.
        object.__setattr__(self, "deadlines", MappingProxyType(dict(self.deadlines)))

    @classmethod
    def from_env(cls) -> "AuditConfig":
        return cls()

    def deadline_for(self, check_name: str) -> float:
        return self.deadlines.get(check_name, 60.0)


# === LOGGING SECTION ===

class CompanyFormatter(logging.Formatter):
    """
    FLOW: Receives a log record -> Extracts timestamp -> Formats according to company standard
    (e.g., [ Tue Jan 06 05:32:41 AM UTC 2026 ]) -> Prepends level and context -> Returns final string.
    """
    def format(self, record):
        dt = datetime.fromtimestamp(record.created, tz=timezone.utc)
        timestamp = dt.strftime("%a %b %d %I:%M:%S %p UTC %Y")
        context = getattr(record, 'context', 'root')
        message = f"[ {timestamp} ] : {record.levelname} : {context} : {record.getMessage()}"
        if record.exc_info:
            message += "\n" + self.formatException(record.exc_info)
        return message


def setup_logger(name="auditor", log_file=None, level=logging.INFO):
    """
    FLOW: Initializes/Retrieves logger -> Checks for existing handlers to prevent duplicates ->
    Sets propagation for child loggers -> Attaches Console and optional File handlers with CompanyFormatter.
    """
    logger = logging.getLogger(name)
    logger.setLevel(level)

    if name != "auditor":
        logger.propagate = True
        setup_logger("auditor", log_file=log_file, level=level)
        return logger

    formatter = CompanyFormatter()

    if not logger.handlers:
        console_handler = logging.StreamHandler(sys.stdout)
        console_handler.setFormatter(formatter)
        logger.addHandler(console_handler)

    # File handler (optional), attached once per path
    if log_file and not any(
        isinstance(h, logging.FileHandler) and h.baseFilename == os.path.abspath(log_file)
        for h in logger.handlers
    ):
        file_handler = logging.FileHandler(log_file)
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

    return logger


# Global logger instance
logger = setup_logger(level=os.getenv("LOG_LEVEL", "INFO").upper())
