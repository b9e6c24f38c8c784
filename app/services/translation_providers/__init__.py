"""
Machine translation providers.
"""

from .base import BaseTranslationProvider
from .mock import MockTranslationProvider
from .mymemory import MyMemoryProvider
from .google import GoogleTranslateProvider
from .libretranslate import LibreTranslateProvider
from .factory import (
    TranslationProviderRegistry,
    create_translation_provider_registry,
)

__all__ = [
    "BaseTranslationProvider",
    "MockTranslationProvider",
    "MyMemoryProvider",
    "GoogleTranslateProvider",
    "LibreTranslateProvider",
    "TranslationProviderRegistry",
    "create_translation_provider_registry",
]
