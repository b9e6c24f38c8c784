"""
Base class for machine translation providers.
"""
import asyncio
import logging
from abc import ABC, abstractmethod
from typing import List, Optional

from app.core.exceptions import ProviderFailureError

logger = logging.getLogger(__name__)


class BaseTranslationProvider(ABC):
    """
    A machine translation backend.

    translate_text raises ProviderFailureError on any upstream problem.
    translate_batch never raises for a single bad item: that item comes
    back as its original text.
    """

    name: str = "base"
    max_text_length: int = 5000
    batch_delay_seconds: float = 0.0

    @abstractmethod
    def is_available(self) -> bool:
        """Whether the provider is configured well enough to be called."""

    @abstractmethod
    async def translate_text(self, text: str, source_language: str, target_language: str) -> str:
        """Translate one text."""

    @abstractmethod
    def get_supported_languages(self) -> List[str]:
        """Language codes the provider accepts."""

    async def translate_batch(self, texts: List[str], source_language: str, target_language: str) -> List[str]:
        """
        Translate texts keeping order.

        Failed items degrade to their original text.
        """
        results = await self.translate_batch_items(texts, source_language, target_language)
        return [text if result is None else result for text, result in zip(texts, results)]

    async def translate_batch_items(
        self, texts: List[str], source_language: str, target_language: str
    ) -> List[Optional[str]]:
        """
        Translate texts one at a time, keeping order.

        A failed item comes back as None so callers can tell it apart from a
        translation that happens to equal its input.
        """
        results: List[Optional[str]] = []
        for position, text in enumerate(texts):
            try:
                results.append(await self.translate_text(text, source_language, target_language))
            except ProviderFailureError as e:
                logger.warning(
                    f"{self.name} batch item {position} failed",
                    extra={"provider": self.name, "error": e.message},
                )
                results.append(None)
            if self.batch_delay_seconds and position < len(texts) - 1:
                await asyncio.sleep(self.batch_delay_seconds)
        return results

    def check_length(self, text: str) -> None:
        if len(text) > self.max_text_length:
            raise ProviderFailureError(
                self.name,
                f"Text exceeds {self.max_text_length} characters",
                details={"provider": self.name, "length": len(text)},
            )

    def describe(self) -> dict:
        return {
            "name": self.name,
            "available": self.is_available(),
            "max_text_length": self.max_text_length,
        }
