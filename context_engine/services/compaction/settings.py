# Copyright (c) 2026 Heureum AI. All rights reserved.

"""
Compaction settings.

A single frozen config object is threaded through every compaction call.
Nothing here is stored globally except the immutable defaults.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Optional

if TYPE_CHECKING:
    from context_engine.config import Settings


@dataclass(frozen=True)
class CompactionConfig:
    """Thresholds for deterministic, structure-preserving compaction.

    Attributes:
        verbatim_threshold (int): Minimum size in characters a block must
            reach before compaction is attempted.
        preview_chars_per_section (int): Maximum length to which each
            section body is truncated.
        max_sections (int): Maximum number of sections kept per block.
    """

    verbatim_threshold: int = 5_000
    preview_chars_per_section: int = 500
    max_sections: int = 20

    def __post_init__(self) -> None:
        for name in ("verbatim_threshold", "preview_chars_per_section", "max_sections"):
            value = getattr(self, name)
            if not isinstance(value, int) or isinstance(value, bool) or value <= 0:
                raise ValueError(f"{name} must be a positive integer, got {value!r}")

    @classmethod
    def from_settings(cls, app_settings: "Settings") -> "CompactionConfig":
        """Build a config from application settings.

        Args:
            app_settings (Settings): Loaded application settings.

        Returns:
            CompactionConfig: Config carrying the ``COMPACTION_*`` values.
        """
        return cls(
            verbatim_threshold=app_settings.COMPACTION_VERBATIM_THRESHOLD,
            preview_chars_per_section=app_settings.COMPACTION_PREVIEW_CHARS_PER_SECTION,
            max_sections=app_settings.COMPACTION_MAX_SECTIONS,
        )


DEFAULT_COMPACTION_CONFIG = CompactionConfig()


def resolve_config(config: Optional[CompactionConfig]) -> CompactionConfig:
    """Return *config*, or the defaults when ``None``."""
    return config if config is not None else DEFAULT_COMPACTION_CONFIG
