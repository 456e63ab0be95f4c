from __future__ import annotations

import secrets
from datetime import datetime
from zoneinfo import ZoneInfo

from fastapi import Depends, Header, HTTPException, status

from sipeter.core.config import Settings, get_settings
from sipeter.db.session import SessionLocal
from sipeter.services.gemini_client import GeminiClient


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def get_now() -> datetime:
    """Current instant. Overridden in tests to pin "today"."""
    return datetime.now(tz=ZoneInfo("UTC"))


def get_tz(settings: Settings = Depends(get_settings)) -> ZoneInfo:
    return ZoneInfo(settings.timezone)


def require_operator(
    x_operator_token: str | None = Header(default=None),
    settings: Settings = Depends(get_settings),
) -> bool:
    """Fixed-credential gate for write-capable callers."""
    if not x_operator_token or not secrets.compare_digest(x_operator_token, settings.operator_token):
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Operator credential required")
    return True


def get_gemini_client(settings: Settings = Depends(get_settings)) -> GeminiClient | None:
    if not settings.gemini_api_key:
        return None
    return GeminiClient(settings.gemini_api_key, model=settings.gemini_model, base_url=settings.gemini_base_url)
