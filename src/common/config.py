"""
Configuration module for the knowledge base sorter.

This module centralizes the loading and validation of all configuration
parameters from environment variables. It provides a single `Settings`
class that acts as a container for all configurable values, ensuring
that they are defined in one place and can be easily imported and used
throughout the application.
"""

import os
from typing import Literal

import openai

DEFAULT_BASE_URL = "https://generativelanguage.googleapis.com/v1beta/openai/"
DEFAULT_MODEL = "gemini-2.5-flash"
DEFAULT_PROJECTS = "Work,Personal,Side-Project"
DEFAULT_TAGS = "Urgent,Invoice,Receipt,Idea,Inspiration,Code Snippet"

API_KEY_VARIABLES = ("API_KEY", "GEMINI_API_KEY", "OPENAI_API_KEY")


def _split_list(value: str) -> list[str]:
    """Split a comma separated env value, dropping blanks and duplicates."""
    items: list[str] = []
    for part in value.split(","):
        part = part.strip()
        if part and part not in items:
            items.append(part)
    return items


class Settings:
    """
    A container for all configuration settings, loaded from environment variables.

    Unlike most settings, the API key is optional at startup: a missing key is
    reported by `missing_credentials()` so the caller can log it, and the
    first categorization request fails instead.
    """

    # --- LLM Configuration ---
    API_KEY: str | None
    LLM_BASE_URL: str
    AI_MODEL: str
    REQUEST_TIMEOUT: float | None

    # --- Allow-list defaults ---
    DEFAULT_PROJECTS: list[str]
    DEFAULT_TAGS: list[str]

    # --- Preview ---
    PREVIEW_MAX_SIDE: int

    # --- Logging ---
    LOG_FORMAT: Literal["console", "json"]
    LOG_LEVEL: str

    # --- Constants ---
    FALLBACK_PROJECT: str = "Uncategorized"

    def __init__(self):
        """
        Loads settings from environment variables and performs validation.
        """
        # --- LLM Configuration ---
        self.API_KEY = self._get_first_env(API_KEY_VARIABLES)
        self.LLM_BASE_URL = os.getenv("LLM_BASE_URL", DEFAULT_BASE_URL)
        self.AI_MODEL = os.getenv("AI_MODEL", DEFAULT_MODEL).strip()
        if not self.AI_MODEL:
            raise ValueError("AI_MODEL must not be empty")
        self.REQUEST_TIMEOUT = self._get_optional_float("REQUEST_TIMEOUT")

        # --- Allow-list defaults ---
        self.DEFAULT_PROJECTS = _split_list(
            os.getenv("DEFAULT_PROJECTS", DEFAULT_PROJECTS)
        )
        self.DEFAULT_TAGS = _split_list(os.getenv("DEFAULT_TAGS", DEFAULT_TAGS))

        # --- Preview ---
        self.PREVIEW_MAX_SIDE = int(os.getenv("PREVIEW_MAX_SIDE", 512))
        if self.PREVIEW_MAX_SIDE < 1:
            raise ValueError("PREVIEW_MAX_SIDE must be >= 1")

        # --- Logging ---
        self.LOG_FORMAT = os.getenv("LOG_FORMAT", "console").lower()
        if self.LOG_FORMAT not in ("console", "json"):
            raise ValueError("LOG_FORMAT must be 'console' or 'json'")
        self.LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

    def missing_credentials(self) -> list[str]:
        """Return the names of credential variables that are not set."""
        if self.API_KEY:
            return []
        return list(API_KEY_VARIABLES)

    def _get_first_env(self, var_names: tuple[str, ...]) -> str | None:
        for var_name in var_names:
            value = os.getenv(var_name)
            if value:
                return value
        return None

    def _get_optional_float(self, var_name: str) -> float | None:
        value = os.getenv(var_name, "").strip()
        if not value:
            return None
        try:
            parsed = float(value)
        except ValueError:
            raise ValueError(f"{var_name} must be a number, got '{value}'") from None
        if parsed <= 0:
            raise ValueError(f"{var_name} must be > 0")
        return parsed


def setup_libraries(settings: Settings) -> None:
    """
    Configures third-party libraries based on the application settings.
    """
    openai.base_url = settings.LLM_BASE_URL
    # Leave the key unset when missing so the SDK fails on first use.
    openai.api_key = settings.API_KEY
