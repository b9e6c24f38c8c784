"""
Offline provider for development and tests.
"""
from typing import List

from .base import BaseTranslationProvider


class MockTranslationProvider(BaseTranslationProvider):
    """Deterministic provider: "Hello" to fr becomes "[fr] Hello"."""

    name = "mock"

    def __init__(self, prefix_template: str = "[{target}] "):
        self.prefix_template = prefix_template

    def is_available(self) -> bool:
        return True

    async def translate_text(self, text: str, source_language: str, target_language: str) -> str:
        self.check_length(text)
        return f"{self.prefix_template.format(source=source_language, target=target_language)}{text}"

    def get_supported_languages(self) -> List[str]:
        return ["*"]
