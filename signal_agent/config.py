# Copyright (c) 2026 Heureum AI. All rights reserved.

"""
Application configuration using pydantic-settings.
"""

from typing import FrozenSet

from pydantic_settings import BaseSettings, SettingsConfigDict


# ---------------------------------------------------------------------------
# Stealth mode subscription IDs
# ---------------------------------------------------------------------------

# Subscriptions whose events mean a profile went INTO LinkedIn stealth mode.
STEALTH_INTO_SUBSCRIPTION_IDS: FrozenSet[str] = frozenset(
    {"29156", "29165", "29166", "29167", "29168"}
)

# Subscriptions whose events mean a profile came OUT OF LinkedIn stealth mode.
STEALTH_OUT_SUBSCRIPTION_IDS: FrozenSet[str] = frozenset(
    {
        "29171",
        "29172",
        "29173",
        "29174",
        "29175",
        "29179",
        "29180",
        "29181",
        "29182",
        "29183",
    }
)


class SpecialGroupId:
    """Group IDs with semantic meaning (all negative).

    Attributes:
        SAVED (int): Saved / liked profiles.
        SKIPPED (int): Skipped / disliked profiles.
        ALL_TRACKED (int): Every person the user tracks.
    """

    SAVED = -1
    SKIPPED = -2
    ALL_TRACKED = -3


class Settings(BaseSettings):
    """Application settings.

    Attributes:
        APP_NAME (str): Display name of the application.
        APP_BASE_URL (str): Base URL used to build in-app profile links.
        DEBUG (bool): Whether to enable debug mode.
        OPENAI_API_KEY (str): OpenAI API key for the summarizer model.
        CONTEXT_MAX_TURNS (int): User turns kept verbatim.
        CONTEXT_SUMMARIZE_AFTER (int): Turn count after which older turns are
            summarized. ``0`` disables summarization.
        CONTEXT_TOOL_TRIM_ENABLED (bool): Whether tool results are shrunk.
        CONTEXT_MAX_TOOL_PAYLOAD_CHARS (int): Serialized size cap for results
            of tools without a dedicated rule.
        CONTEXT_SUMMARY_MODEL (str): Model identifier for summarization.
        CONTEXT_SUMMARY_MAX_TOKENS (int): Output token cap for summaries.
        CONTEXT_SUMMARY_TEMPERATURE (float): Sampling temperature for summaries.
        CONTEXT_METRICS_ENABLED (bool): Whether context metrics are recorded.
        DEFAULT_ACTIVITY_DAYS (int): Default lookback window for triggers.
        DEFAULT_RESULT_LIMIT (int): Default number of results returned.
        MAX_RESULT_LIMIT (int): Upper bound on results per query.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",
    )

    APP_NAME: str = "Signal Agent"
    APP_BASE_URL: str = "https://app.signa.software"
    DEBUG: bool = False
    OPENAI_API_KEY: str = ""

    # Context management
    CONTEXT_MAX_TURNS: int = 8
    CONTEXT_SUMMARIZE_AFTER: int = 12
    CONTEXT_TOOL_TRIM_ENABLED: bool = True
    CONTEXT_MAX_TOOL_PAYLOAD_CHARS: int = 8_000
    CONTEXT_SUMMARY_MODEL: str = "gpt-4o-mini"
    CONTEXT_SUMMARY_MAX_TOKENS: int = 400
    CONTEXT_SUMMARY_TEMPERATURE: float = 0.3
    CONTEXT_METRICS_ENABLED: bool = True

    # Triggers
    DEFAULT_ACTIVITY_DAYS: int = 30
    DEFAULT_RESULT_LIMIT: int = 50
    MAX_RESULT_LIMIT: int = 500

    def profile_link(self, user_id: str) -> str:
        """Build the in-app search link for a profile.

        Args:
            user_id (str): Profile identifier.

        Returns:
            str: Absolute URL of the profile search page.
        """
        return f"{self.APP_BASE_URL.rstrip('/')}/search?user_id={user_id}"


settings = Settings()
