"""
Builds the translation provider registry from settings.
"""
import logging
from typing import Dict, List, Optional

from app.config.settings import TranslationSettings, get_settings
from app.core.exceptions import ProviderUnavailableError, ValidationError
from .base import BaseTranslationProvider
from .google import GoogleTranslateProvider
from .libretranslate import LibreTranslateProvider
from .mock import MockTranslationProvider
from .mymemory import MyMemoryProvider

logger = logging.getLogger(__name__)

# Providers that need no API key, in fallback order
FREE_PROVIDERS = ("mymemory", "libretranslate", "mock")


class TranslationProviderRegistry:
    """Named providers plus the default-selection rule."""

    def __init__(self, providers: Dict[str, BaseTranslationProvider], default_name: str):
        self.providers = providers
        self.default_name = default_name

    def get(self, name: Optional[str] = None) -> BaseTranslationProvider:
        if name is None:
            return self.get_default()
        provider = self.providers.get(name.lower())
        if provider is None:
            raise ValidationError(
                f"Unknown translation provider: {name}",
                details={"provider": name, "available": list(self.providers)},
            )
        if not provider.is_available():
            raise ProviderUnavailableError(f"Translation provider {name} is not configured")
        return provider

    def get_default(self) -> BaseTranslationProvider:
        """Configured default if usable, else the first available free provider."""
        configured = self.providers.get(self.default_name)
        if configured is not None and configured.is_available():
            return configured

        for name in FREE_PROVIDERS:
            provider = self.providers.get(name)
            if provider is not None and provider.is_available():
                logger.warning(
                    f"Default provider {self.default_name} unavailable, falling back to {name}"
                )
                return provider
        raise ProviderUnavailableError()

    def describe(self) -> List[dict]:
        return [
            {**provider.describe(), "default": name == self.default_name}
            for name, provider in self.providers.items()
        ]


def create_translation_provider_registry(config: Optional[TranslationSettings] = None) -> TranslationProviderRegistry:
    config = config or get_settings().translation
    providers: Dict[str, BaseTranslationProvider] = {
        "mymemory": MyMemoryProvider(
            base_url=config.mymemory_url,
            timeout=config.timeout_seconds,
            batch_delay_ms=config.batch_delay_ms,
        ),
        "google": GoogleTranslateProvider(
            api_key=config.google_api_key,
            timeout=config.timeout_seconds,
        ),
        "libretranslate": LibreTranslateProvider(
            base_url=config.libretranslate_url,
            api_key=config.libretranslate_api_key,
            timeout=config.timeout_seconds,
        ),
        "mock": MockTranslationProvider(),
    }
    logger.info(
        f"Translation providers initialized: {', '.join(providers)}",
        extra={"default_provider": config.default_provider},
    )
    return TranslationProviderRegistry(providers, config.default_provider)
