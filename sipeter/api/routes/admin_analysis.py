from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from sipeter.core.deps import get_db, get_gemini_client, require_operator
from sipeter.schemas.analysis import AnalysisOut
from sipeter.services.analysis_service import analyze_requests
from sipeter.services.gemini_client import GeminiClient
from sipeter.services.request_store import list_requests

router = APIRouter()


@router.post("/analysis", response_model=AnalysisOut)
async def admin_analysis(
    db: Session = Depends(get_db),
    client: GeminiClient | None = Depends(get_gemini_client),
    operator=Depends(require_operator),
):
    summary, analyzed_count = await analyze_requests(list_requests(db), client)
    return AnalysisOut(summary=summary, analyzed_count=analyzed_count)
