import os
import logging
from enum import Enum
from typing import List, Optional, Mapping

from pydantic import BaseModel, ConfigDict

from api.errors import ConfigurationDefect


class TotalMarksPolicy(str, Enum):
    PER_SUBJECT = "per_subject"  # 100 x distinct base subjects
    FIXED = "fixed"              # always 100


class Settings(BaseModel):
    model_config = ConfigDict(frozen=True)

    google_credentials: Optional[str] = None  # raw service-account JSON
    credentials_file: Optional[str] = None
    sheet_id: Optional[str] = None
    sheet_name: Optional[str] = None
    worksheet_name: Optional[str] = None
    worksheet_index: int = 0
    total_marks_policy: TotalMarksPolicy = TotalMarksPolicy.PER_SUBJECT
    allowed_origins: List[str] = ["*"]
    log_level: str = "INFO"


def _get(environ, key):
    value = environ.get(key)
    if value is None:
        return None
    value = value.strip()
    return value or None


def load_settings(environ: Optional[Mapping[str, str]] = None) -> Settings:
    """
    Build Settings from environment variables.

    Credentials are kept as raw text here; they are only parsed when a
    SheetSource is built, so a bad key never stops the app from starting.
    """
    env = os.environ if environ is None else environ

    policy_raw = (_get(env, "TOTAL_MARKS_POLICY") or TotalMarksPolicy.PER_SUBJECT.value).lower()
    try:
        policy = TotalMarksPolicy(policy_raw)
    except ValueError:
        raise ConfigurationDefect(f"Unknown TOTAL_MARKS_POLICY '{policy_raw}'")

    index_raw = _get(env, "WORKSHEET_INDEX") or "0"
    try:
        worksheet_index = int(index_raw)
    except ValueError:
        raise ConfigurationDefect(f"WORKSHEET_INDEX must be an integer, got '{index_raw}'")

    log_level = (_get(env, "LOG_LEVEL") or "INFO").upper()
    if not isinstance(logging.getLevelName(log_level), int):
        raise ConfigurationDefect(f"Unknown LOG_LEVEL '{log_level}'")

    origins_raw = _get(env, "ALLOWED_ORIGINS") or "*"
    origins = [o.strip() for o in origins_raw.split(",") if o.strip()]

    return Settings(
        google_credentials=_get(env, "GOOGLE_CREDENTIALS"),
        credentials_file=_get(env, "GOOGLE_APPLICATION_CREDENTIALS"),
        sheet_id=_get(env, "SHEET_ID"),
        sheet_name=_get(env, "SHEET_NAME"),
        worksheet_name=_get(env, "WORKSHEET_NAME"),
        worksheet_index=worksheet_index,
        total_marks_policy=policy,
        allowed_origins=origins or ["*"],
        log_level=log_level,
    )
