"""
Google Cloud Translation (v2) provider.
"""
import logging
from typing import List, Optional

import httpx

from app.core.exceptions import ProviderFailureError
from .base import BaseTranslationProvider

logger = logging.getLogger(__name__)


class GoogleTranslateProvider(BaseTranslationProvider):
    name = "google"
    endpoint = "https://translation.googleapis.com/language/translate/v2"

    def __init__(
        self,
        api_key: Optional[str] = None,
        timeout: float = 10,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.api_key = api_key
        self.timeout = timeout
        self.transport = transport
        if not api_key:
            logger.warning("Google Translate API key not set, provider disabled")

    def is_available(self) -> bool:
        return bool(self.api_key)

    @staticmethod
    def normalize_language_code(locale: str) -> str:
        lowered = locale.lower()
        if lowered in ("zh-cn", "zh-hans"):
            return "zh-CN"
        if lowered in ("zh-tw", "zh-hant"):
            return "zh-TW"
        return lowered.split("-")[0]

    async def _post(self, q, source_language: str, target_language: str) -> List[str]:
        if not self.api_key:
            raise ProviderFailureError(self.name, "API key not configured")

        payload = {
            "q": q,
            "source": self.normalize_language_code(source_language),
            "target": self.normalize_language_code(target_language),
            "format": "text",
        }
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
                response = await client.post(self.endpoint, params={"key": self.api_key}, json=payload)
                response.raise_for_status()
                data = response.json()
        except httpx.HTTPError as e:
            logger.error(f"Google Translate request failed: {e}")
            raise ProviderFailureError(self.name, f"Request failed: {e}")
        except ValueError as e:
            raise ProviderFailureError(self.name, f"Invalid JSON response: {e}")

        translations = (data.get("data") or {}).get("translations") if isinstance(data, dict) else None
        if not translations:
            raise ProviderFailureError(self.name, "No translation returned from Google API")
        return [item.get("translatedText", "") for item in translations]

    async def translate_text(self, text: str, source_language: str, target_language: str) -> str:
        self.check_length(text)
        return (await self._post(text, source_language, target_language))[0]

    async def translate_batch_items(
        self, texts: List[str], source_language: str, target_language: str
    ) -> List[Optional[str]]:
        """One request for the whole batch; falls back to per-item calls if it fails."""
        if not texts:
            return []
        try:
            results = await self._post(list(texts), source_language, target_language)
            if len(results) == len(texts):
                return results
            logger.warning("Google Translate returned a short batch, retrying per item")
        except ProviderFailureError as e:
            logger.warning(f"Google Translate batch failed, retrying per item: {e.message}")
        return await super().translate_batch_items(texts, source_language, target_language)

    def get_supported_languages(self) -> List[str]:
        return [
            "af", "am", "ar", "az", "be", "bg", "bn", "bs", "ca", "cs", "cy", "da",
            "de", "el", "en", "eo", "es", "et", "eu", "fa", "fi", "fr", "ga", "gl",
            "gu", "he", "hi", "hr", "hu", "hy", "id", "is", "it", "ja", "ka", "kk",
            "km", "kn", "ko", "lo", "lt", "lv", "mk", "ml", "mn", "mr", "ms", "my",
            "ne", "nl", "no", "pa", "pl", "pt", "ro", "ru", "si", "sk", "sl", "sq",
            "sr", "sv", "sw", "ta", "te", "th", "tl", "tr", "uk", "ur", "uz", "vi",
            "zh-CN", "zh-TW",
        ]
