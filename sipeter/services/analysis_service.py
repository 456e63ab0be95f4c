from __future__ import annotations

import json
from typing import Iterable

import httpx

from sipeter.core.logging import get_logger
from sipeter.models.service_request import RequestStatus, ServiceRequest
from sipeter.services.gemini_client import GeminiClient

logger = get_logger(__name__)

MISSING_KEY_MESSAGE = "API Key is missing. Please configure the environment variable."
NOTHING_TO_ANALYZE_MESSAGE = "Tidak ada permintaan aktif untuk dianalisis saat ini."
EMPTY_ANSWER_MESSAGE = "Gagal mendapatkan analisis dari AI."
SERVICE_ERROR_MESSAGE = "Terjadi kesalahan saat menghubungi layanan AI. Silakan coba lagi nanti."

_ANALYZED_STATUSES = {RequestStatus.PENDING.value, RequestStatus.IN_PROGRESS.value}


def open_requests(requests: Iterable[ServiceRequest]) -> list[ServiceRequest]:
    return [r for r in requests if r.status in _ANALYZED_STATUSES]


def build_prompt(requests: Iterable[ServiceRequest]) -> str:
    data = [{"category": r.category, "desc": r.description, "priority": r.priority} for r in requests]
    return (
        "Bertindaklah sebagai Manajer Fasilitas Senior. Analisis data permintaan pemeliharaan "
        "berikut (format JSON) dan berikan ringkasan eksekutif singkat (maksimal 3 paragraf).\n\n"
        f"Data: {json.dumps(data, ensure_ascii=False)}\n\n"
        "Tugas:\n"
        "1. Identifikasi pola kritis (misalnya, apakah banyak kerusakan AC sekaligus?).\n"
        "2. Sarankan prioritas pengerjaan berdasarkan kategori dan urgensi.\n"
        "3. Berikan saran alokasi sumber daya.\n\n"
        "Gunakan Bahasa Indonesia yang formal dan profesional."
    )


async def analyze_requests(requests: Iterable[ServiceRequest], client: GeminiClient | None) -> tuple[str, int]:
    """Executive summary of the open maintenance workload.

    Returns the text shown to the operator and how many requests were sent.
    Every failure mode ends in a fixed message instead of an exception.
    """
    if client is None or not client.api_key:
        return MISSING_KEY_MESSAGE, 0

    active = open_requests(requests)
    if not active:
        return NOTHING_TO_ANALYZE_MESSAGE, 0

    try:
        text = await client.generate_text(build_prompt(active))
    except (httpx.HTTPError, ValueError) as exc:
        logger.warning("analysis_failed", model=client.model, error=str(exc))
        return SERVICE_ERROR_MESSAGE, len(active)

    logger.info("analysis_completed", model=client.model, request_count=len(active))
    return text or EMPTY_ANSWER_MESSAGE, len(active)
