from __future__ import annotations

from pydantic import BaseModel


class AnalysisOut(BaseModel):
    summary: str
    # open requests sent to the model; 0 when nothing was sent
    analyzed_count: int = 0
