"""
Configuration package for the Phrase Localization Backend.
"""

from .settings import (
    Settings,
    Environment,
    LogLevel,
    DatabaseSettings,
    TranslationSettings,
    ExtractionSettings,
    TransferSettings,
    settings,
    get_settings,
    reload_settings,
)

__all__ = [
    "Settings",
    "Environment",
    "LogLevel",
    "DatabaseSettings",
    "TranslationSettings",
    "ExtractionSettings",
    "TransferSettings",
    "settings",
    "get_settings",
    "reload_settings",
]
