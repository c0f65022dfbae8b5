import logging
from typing import Optional

import httpx

from jevah.config import settings

logger = logging.getLogger(__name__)


class GeminiError(RuntimeError):
    """Raised when the text generation call fails or returns nothing usable."""


class GeminiClient:
    def __init__(self, api_key: Optional[str] = None, model: Optional[str] = None, base_url: Optional[str] = None,
                 timeout: Optional[float] = None, transport: Optional[httpx.AsyncBaseTransport] = None):
        self.api_key = api_key if api_key is not None else settings.GEMINI_API_KEY
        self.model = model or settings.GEMINI_MODEL
        self.base_url = (base_url or settings.GEMINI_BASE_URL).rstrip("/")
        self.timeout = timeout or settings.GEMINI_TIMEOUT
        self.transport = transport

    @property
    def enabled(self) -> bool:
        return bool(self.api_key)

    async def generate(self, prompt: str) -> str:
        url = f"{self.base_url}/models/{self.model}:generateContent"
        payload = {"contents": [{"role": "user", "parts": [{"text": prompt}]}]}
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
                response = await client.post(url, params={"key": self.api_key}, json=payload)
        except httpx.HTTPError as exc:
            raise GeminiError("Generation request failed") from exc

        if response.status_code != 200:
            logger.warning(f"Gemini returned status {response.status_code}")
            raise GeminiError(f"Generation failed with status {response.status_code}")

        try:
            data = response.json()
            parts = data["candidates"][0]["content"]["parts"]
        except (ValueError, KeyError, IndexError) as exc:
            raise GeminiError("Unexpected generation response") from exc

        text = "".join(part.get("text", "") for part in parts).strip()
        if not text:
            raise GeminiError("Empty generation response")
        return text


def get_gemini_client() -> GeminiClient:
    return GeminiClient()
