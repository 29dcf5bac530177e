# Copyright (c) 2026 Heureum AI. All rights reserved.

"""
Application configuration using pydantic-settings.
"""

from typing import List

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings.

    Attributes:
        APP_NAME (str): Display name of the application.
        DEBUG (bool): Whether to enable debug mode.
        LOG_LEVEL (str): Root log level applied at startup.
        CORS_ORIGINS (str): Comma-separated list of allowed CORS origins.
        COMPACTION_VERBATIM_THRESHOLD (int): Minimum block size in characters
            before compaction is attempted.
        COMPACTION_PREVIEW_CHARS_PER_SECTION (int): Maximum preview length of
            each section body in compacted output.
        COMPACTION_MAX_SECTIONS (int): Maximum number of sections emitted per
            compacted block.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
    )

    APP_NAME: str = "Context Engine"
    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"

    CORS_ORIGINS: str = "http://localhost:3000,http://localhost:5173"

    # Compaction defaults (overridable per request)
    COMPACTION_VERBATIM_THRESHOLD: int = 5_000
    COMPACTION_PREVIEW_CHARS_PER_SECTION: int = 500
    COMPACTION_MAX_SECTIONS: int = 20

    def get_cors_origins(self) -> List[str]:
        """Parse CORS origins as list.

        Returns:
            List[str]: A list of origin URL strings split from the
                comma-separated CORS_ORIGINS setting.
        """
        return [origin.strip() for origin in self.CORS_ORIGINS.split(",")]


settings = Settings()
