"""
Client configuration loaded from the environment.

Rationale:
- Exactly one wire encoding is active per deployment, so it is a setting, not code.
- In hosted deployments settings come from environment variables; locally a .env
  file may provide them. Some editors save .env as UTF-16, so support both.
"""

import os
import logging
from dataclasses import dataclass
from typing import Optional

from dotenv import load_dotenv, find_dotenv


logger = logging.getLogger(__name__)

QUESTION_FILE_FIELD = "questions.txt"

ENCODING_QUESTIONS_FILE = "questions_file"
ENCODING_FIELDS = "fields"
ENCODINGS = (ENCODING_QUESTIONS_FILE, ENCODING_FIELDS)

ERROR_POLICY_EXCLUSIVE = "exclusive"
ERROR_POLICY_INLINE = "inline"
ERROR_POLICIES = (ERROR_POLICY_EXCLUSIVE, ERROR_POLICY_INLINE)

BASE_DIR = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
DEFAULT_REPORTS_DIR = os.path.join(BASE_DIR, "runs", "reports")


@dataclass(frozen=True)
class ClientConfig:
    api_base: str = "http://localhost:8000"
    api_path: str = "/api/"  # the service requires the trailing slash
    encoding: str = ENCODING_QUESTIONS_FILE
    question_field: str = QUESTION_FILE_FIELD
    files_field: str = "files"
    debug: bool = False
    timeout: Optional[float] = None
    error_policy: str = ERROR_POLICY_EXCLUSIVE
    reports_dir: str = DEFAULT_REPORTS_DIR

    def __post_init__(self):
        if self.encoding not in ENCODINGS:
            raise ValueError(f"REQUEST_ENCODING must be one of {ENCODINGS}, got {self.encoding!r}")
        if self.error_policy not in ERROR_POLICIES:
            raise ValueError(f"ERROR_POLICY must be one of {ERROR_POLICIES}, got {self.error_policy!r}")
        if not self.files_field or self.files_field == QUESTION_FILE_FIELD:
            raise ValueError(f"OTHER_FILES_FIELD must be set and differ from {QUESTION_FILE_FIELD!r}")


def load_env_file() -> None:
    """Load a .env file if one exists, tolerating UTF-16 encoded files."""
    dotenv_path = find_dotenv(usecwd=True) or None
    if dotenv_path:
        try:
            load_dotenv(dotenv_path)
        except UnicodeError:
            load_dotenv(dotenv_path, encoding="utf-16")
    else:
        # No .env found; rely on process env
        load_dotenv()


def _env_flag(name: str, default: str = "0") -> bool:
    return os.getenv(name, default).strip().lower() in ("1", "true", "yes", "on")


def _env_timeout(name: str) -> Optional[float]:
    raw = os.getenv(name, "").strip()
    if not raw:
        return None
    try:
        value = float(raw)
    except ValueError:
        raise ValueError(f"{name} must be a number of seconds, got {raw!r}") from None
    return value if value > 0 else None


def load_settings() -> ClientConfig:
    load_env_file()
    settings = ClientConfig(
        api_base=os.getenv("ANALYST_API_BASE", ClientConfig.api_base).strip(),
        api_path=os.getenv("ANALYST_API_PATH", ClientConfig.api_path).strip(),
        encoding=os.getenv("REQUEST_ENCODING", ENCODING_QUESTIONS_FILE).strip().lower(),
        files_field=os.getenv("OTHER_FILES_FIELD", ClientConfig.files_field).strip(),
        debug=_env_flag("ANALYST_DEBUG"),
        timeout=_env_timeout("REQUEST_TIMEOUT"),
        error_policy=os.getenv("ERROR_POLICY", ERROR_POLICY_EXCLUSIVE).strip().lower(),
        reports_dir=os.getenv("REPORTS_DIR", DEFAULT_REPORTS_DIR),
    )
    logger.debug(
        "config.loaded api_base=%s api_path=%s encoding=%s debug=%s error_policy=%s",
        settings.api_base,
        settings.api_path,
        settings.encoding,
        settings.debug,
        settings.error_policy,
    )
    return settings


def configure_logging() -> str:
    """Configure root logging with an environment-based level. Returns the level name."""
    level = os.getenv("LOG_LEVEL", "INFO").upper()
    logging.basicConfig(
        level=getattr(logging, level, logging.INFO),
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S'
    )
    return level
