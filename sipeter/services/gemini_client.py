from __future__ import annotations

from typing import Any, Optional

import httpx


class GeminiClient:
    """Minimal Gemini API client (HTTP).

    Configured from settings:
      - GEMINI_API_KEY
      - GEMINI_MODEL (default: "gemini-2.5-flash")
      - GEMINI_BASE_URL (default: "https://generativelanguage.googleapis.com")

    The endpoint style used here follows the Generative Language API (v1beta).
    ``transport`` is handed to httpx unchanged; tests pass an ``httpx.MockTransport``.
    """

    def __init__(
        self,
        api_key: str,
        model: str = "gemini-2.5-flash",
        base_url: str = "https://generativelanguage.googleapis.com",
        *,
        timeout: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.api_key = api_key
        self.model = model
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.transport = transport

    async def generate_content(self, prompt: str, *, temperature: float = 0.2) -> dict[str, Any]:
        url = f"{self.base_url}/v1beta/models/{self.model}:generateContent"
        params = {"key": self.api_key}
        payload = {
            "contents": [
                {
                    "role": "user",
                    "parts": [{"text": prompt}],
                }
            ],
            "generationConfig": {
                "temperature": temperature,
            },
        }

        async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
            r = await client.post(url, params=params, json=payload)
            r.raise_for_status()
            return r.json()

    async def generate_text(self, prompt: str, *, temperature: float = 0.2) -> str:
        """Text of the first candidate, or "" when the response carries none."""
        raw = await self.generate_content(prompt, temperature=temperature)
        candidates = raw.get("candidates") or []
        if not candidates:
            return ""
        parts = (candidates[0].get("content") or {}).get("parts") or []
        return "".join(p.get("text", "") for p in parts).strip()
