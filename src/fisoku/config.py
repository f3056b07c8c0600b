from __future__ import annotations

import os
from pathlib import Path

from pydantic import BaseModel, Field

from .project_paths import ProjectPaths


class ServiceSettings(BaseModel):
    rules_dir: Path
    fetch_timeout_s: float = Field(default=10.0, gt=0)
    recognition_timeout_s: float = Field(default=20.0, gt=0)
    recognition_max_attempts: int = Field(default=3, ge=1)
    recognition_backoff_s: float = Field(default=0.5, ge=0)
    credentials_path: str | None = None
    language_hints: list[str] = Field(default_factory=lambda: ["tr"])
    log_level: str = "INFO"

    @classmethod
    def from_env(cls) -> "ServiceSettings":
        rules_dir = os.getenv("FISOKU_RULES_DIR")
        return cls(
            rules_dir=Path(rules_dir) if rules_dir else ProjectPaths.detect().rules_dir,
            fetch_timeout_s=float(os.getenv("FISOKU_FETCH_TIMEOUT_S", "10")),
            recognition_timeout_s=float(os.getenv("FISOKU_OCR_TIMEOUT_S", "20")),
            recognition_max_attempts=int(os.getenv("FISOKU_OCR_MAX_ATTEMPTS", "3")),
            recognition_backoff_s=float(os.getenv("FISOKU_OCR_BACKOFF_S", "0.5")),
            credentials_path=os.getenv("GOOGLE_APPLICATION_CREDENTIALS") or None,
            language_hints=[
                h.strip() for h in os.getenv("FISOKU_OCR_LANGUAGE_HINTS", "tr").split(",") if h.strip()
            ],
            log_level=os.getenv("FISOKU_LOG_LEVEL", "INFO").upper(),
        )
