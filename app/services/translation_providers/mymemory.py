"""
MyMemory translation provider (free, no API key).
"""
import logging
from typing import List, Optional

import httpx

from app.core.exceptions import ProviderFailureError
from .base import BaseTranslationProvider

logger = logging.getLogger(__name__)

_LOCALE_MAPPING = {
    "zh-CN": "zh-cn",
    "zh-TW": "zh-tw",
    "zh-Hans": "zh-cn",
    "zh-Hant": "zh-tw",
}


class MyMemoryProvider(BaseTranslationProvider):
    """Calls GET {base_url}/get?q=...&langpair=src|tgt"""

    name = "mymemory"
    max_text_length = 500

    def __init__(
        self,
        base_url: str = "https://api.mymemory.translated.net",
        timeout: float = 10,
        batch_delay_ms: int = 100,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.batch_delay_seconds = batch_delay_ms / 1000
        self.transport = transport

    def is_available(self) -> bool:
        return True

    @staticmethod
    def normalize_language_code(locale: str) -> str:
        if locale in _LOCALE_MAPPING:
            return _LOCALE_MAPPING[locale]
        return locale.lower().split("-")[0]

    async def translate_text(self, text: str, source_language: str, target_language: str) -> str:
        self.check_length(text)
        langpair = f"{self.normalize_language_code(source_language)}|{self.normalize_language_code(target_language)}"

        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
                response = await client.get(f"{self.base_url}/get", params={"q": text, "langpair": langpair})
                response.raise_for_status()
                data = response.json()
        except httpx.HTTPError as e:
            logger.error(f"MyMemory request failed: {e}", extra={"langpair": langpair})
            raise ProviderFailureError(self.name, f"Request failed: {e}")
        except ValueError as e:
            raise ProviderFailureError(self.name, f"Invalid JSON response: {e}")

        response_data = data.get("responseData") if isinstance(data, dict) else None
        if not response_data or response_data.get("translatedText") is None:
            raise ProviderFailureError(self.name, "Invalid response from MyMemory API")

        logger.debug(
            "MyMemory translation succeeded",
            extra={"langpair": langpair, "match": response_data.get("match")},
        )
        return response_data["translatedText"]

    def get_supported_languages(self) -> List[str]:
        return [
            "af", "ar", "bg", "bn", "ca", "cs", "da", "de", "el", "en", "es", "et",
            "fa", "fi", "fr", "he", "hi", "hr", "hu", "id", "it", "ja", "ko", "lt",
            "lv", "ms", "nl", "no", "pl", "pt", "ro", "ru", "sk", "sl", "sr", "sv",
            "th", "tr", "uk", "vi", "zh-cn", "zh-tw",
        ]
