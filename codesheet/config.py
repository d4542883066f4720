from __future__ import annotations

import os
from dataclasses import dataclass


def _flag(name: str, default: str = "0") -> bool:
    return (os.getenv(name) or default).strip().lower() in ("1", "true", "yes")


@dataclass(frozen=True)
class Settings:
    log_level: str = "INFO"
    log_json: bool = False
    max_upload_bytes: int = 5 * 1024 * 1024


def load_settings() -> Settings:
    return Settings(
        log_level=(os.getenv("CODESHEET_LOG_LEVEL") or "INFO").strip().upper(),
        log_json=_flag("CODESHEET_LOG_JSON"),
        max_upload_bytes=int((os.getenv("CODESHEET_MAX_UPLOAD_BYTES") or str(5 * 1024 * 1024)).strip()),
    )
