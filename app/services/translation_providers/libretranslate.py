"""
LibreTranslate provider (self-hosted or public instance).
"""
import logging
from typing import List, Optional

import httpx

from app.core.exceptions import ProviderFailureError
from .base import BaseTranslationProvider

logger = logging.getLogger(__name__)


class LibreTranslateProvider(BaseTranslationProvider):
    name = "libretranslate"

    def __init__(
        self,
        base_url: Optional[str] = "https://libretranslate.de",
        api_key: Optional[str] = None,
        timeout: float = 10,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.base_url = base_url.rstrip("/") if base_url else None
        self.api_key = api_key
        self.timeout = timeout
        self.transport = transport

    def is_available(self) -> bool:
        return bool(self.base_url)

    @staticmethod
    def normalize_language_code(locale: str) -> str:
        return locale.split("-")[0].lower()

    async def translate_text(self, text: str, source_language: str, target_language: str) -> str:
        if not self.base_url:
            raise ProviderFailureError(self.name, "Base URL not configured")
        self.check_length(text)

        payload = {
            "q": text,
            "source": self.normalize_language_code(source_language),
            "target": self.normalize_language_code(target_language),
            "format": "text",
        }
        if self.api_key:
            payload["api_key"] = self.api_key

        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
                response = await client.post(f"{self.base_url}/translate", json=payload)
                response.raise_for_status()
                data = response.json()
        except httpx.HTTPError as e:
            logger.error(f"LibreTranslate request failed: {e}")
            raise ProviderFailureError(self.name, f"Request failed: {e}")
        except ValueError as e:
            raise ProviderFailureError(self.name, f"Invalid JSON response: {e}")

        translated = data.get("translatedText") if isinstance(data, dict) else None
        if translated is None:
            raise ProviderFailureError(self.name, "No translation returned")
        return translated

    def get_supported_languages(self) -> List[str]:
        return [
            "ar", "az", "ca", "zh", "cs", "da", "nl", "en", "eo", "fi", "fr", "de",
            "el", "hi", "hu", "id", "ga", "it", "ja", "ko", "fa", "pl", "pt", "ru",
            "sk", "es", "sv", "tr", "uk",
        ]
