# Copyright (c) 2026 Heureum AI. All rights reserved.

"""Schemas for layered prompt context."""
from .prompt_context import (
    ConversionOptions,
    PromptContextEnvelope,
    PromptLayerId,
    PromptLayerSegment,
    ProviderMessage,
    Segment,
)

__all__ = [
    "ConversionOptions",
    "PromptContextEnvelope",
    "PromptLayerId",
    "PromptLayerSegment",
    "ProviderMessage",
    "Segment",
]
