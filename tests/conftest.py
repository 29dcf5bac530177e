# Copyright (c) 2026 Heureum AI. All rights reserved.

"""Shared test fixtures for the context-engine test suite."""

from typing import Dict, List, Optional

import pytest
from context_engine.schemas.prompt_context import (
    PROMPT_LAYER_LABELS,
    PromptContextEnvelope,
    PromptLayerId,
    PromptLayerSegment,
    Segment,
)
from context_engine.services.compaction.settings import CompactionConfig


# ---------------------------------------------------------------------------
# Compaction config
# ---------------------------------------------------------------------------


@pytest.fixture
def small_config() -> CompactionConfig:
    """Config with small thresholds so test payloads stay readable."""
    return CompactionConfig(verbatim_threshold=100, preview_chars_per_section=50, max_sections=5)


# ---------------------------------------------------------------------------
# XML block factories
# ---------------------------------------------------------------------------


@pytest.fixture
def note_block():
    """Factory fixture for ``<note_context>`` blocks with a two-section note."""

    def _factory(
        path: str = "notes/alpha.md",
        title: str = "Alpha",
        repeat: int = 20,
        tag: str = "note_context",
    ) -> str:
        body = (
            f"# {title}\n"
            + "Alpha body sentence. " * repeat
            + "\n## Details\n"
            + "More detail here. " * repeat
        )
        return (
            f"<{tag}>\n<title>{title}</title>\n<path>{path}</path>\n"
            f"<content>\n{body}\n</content>\n</{tag}>"
        )

    return _factory


# ---------------------------------------------------------------------------
# Envelope factories
# ---------------------------------------------------------------------------


@pytest.fixture
def make_layer():
    """Factory fixture for PromptLayerSegment instances."""

    def _factory(
        layer_id: PromptLayerId,
        text: str = "",
        segments: Optional[List[Segment]] = None,
        layer_hash: str = "",
    ) -> PromptLayerSegment:
        return PromptLayerSegment(
            id=layer_id,
            label=PROMPT_LAYER_LABELS[layer_id],
            text=text,
            segments=segments or [],
            hash=layer_hash,
        )

    return _factory


@pytest.fixture
def make_envelope():
    """Factory fixture for PromptContextEnvelope instances."""

    def _factory(
        layers: List[PromptLayerSegment],
        layer_hashes: Optional[Dict[str, str]] = None,
    ) -> PromptContextEnvelope:
        return PromptContextEnvelope(
            conversation_id="conv-1",
            message_id="msg-1",
            layers=layers,
            layer_hashes=layer_hashes or {},
        )

    return _factory
