# Copyright (c) 2026 Heureum AI. All rights reserved.

"""Request and response models for the HTTP API."""

from typing import Any, Dict, List, Optional, Union

from context_engine.config import Settings, settings
from context_engine.schemas.prompt_context import (
    ConversionOptions,
    PromptContextEnvelope,
    PromptLayerId,
    ProviderMessage,
    Segment,
)
from context_engine.services.compaction.settings import CompactionConfig
from pydantic import BaseModel, Field

AssistantOutput = Union[str, List[Dict[str, Any]]]


class CompactionOverrides(BaseModel):
    """Per-request compaction thresholds.

    Attributes:
        verbatim_threshold (Optional[int]): Minimum block size before
            compaction is attempted.
        preview_chars_per_section (Optional[int]): Preview length per section.
        max_sections (Optional[int]): Sections kept per block.

    Fields left unset fall back to the application settings.
    """

    verbatim_threshold: Optional[int] = Field(default=None, gt=0)
    preview_chars_per_section: Optional[int] = Field(default=None, gt=0)
    max_sections: Optional[int] = Field(default=None, gt=0)

    def to_config(self, app_settings: Optional[Settings] = None) -> CompactionConfig:
        """Merge the overrides onto the configured defaults.

        Args:
            app_settings (Optional[Settings]): Settings supplying unset
                values; the loaded application settings when ``None``.

        Returns:
            CompactionConfig: The effective thresholds.
        """
        defaults = CompactionConfig.from_settings(app_settings or settings)
        return CompactionConfig(
            verbatim_threshold=self.verbatim_threshold or defaults.verbatim_threshold,
            preview_chars_per_section=self.preview_chars_per_section or defaults.preview_chars_per_section,
            max_sections=self.max_sections or defaults.max_sections,
        )


def resolve_overrides(overrides: Optional[CompactionOverrides]) -> CompactionConfig:
    """Effective config for a request that may omit ``config``."""
    if overrides is None:
        return CompactionConfig.from_settings(settings)
    return overrides.to_config()


class CompactOutputRequest(BaseModel):
    """Assistant output to compact before it is saved to memory.

    Attributes:
        output (AssistantOutput): Plain text, or a list of content parts.
        config (Optional[CompactionOverrides]): Threshold overrides.
    """

    output: AssistantOutput
    config: Optional[CompactionOverrides] = None


class CompactOutputResponse(BaseModel):
    """Compacted assistant output, same shape as the request's."""

    output: AssistantOutput


class CompactBlockRequest(BaseModel):
    """A single context block to compact for the context library.

    Attributes:
        xml_block (str): The full XML block.
        block_type (str): Its tag name, e.g. ``"note_context"``.
        config (Optional[CompactionOverrides]): Threshold overrides.
    """

    xml_block: str
    block_type: str
    config: Optional[CompactionOverrides] = None


class CompactBlockResponse(BaseModel):
    """Result of compacting one context block.

    Attributes:
        content (str): The compacted block, or the input unchanged.
    """

    content: str


class BuildEnvelopeRequest(BaseModel):
    """Raw segments per layer.

    Attributes:
        layer_segments (Dict[PromptLayerId, List[Segment]]): Segments keyed by
            layer id; missing layers are rendered empty.
        conversation_id (Optional[str]): Conversation identifier.
        message_id (Optional[str]): User message identifier.
    """

    layer_segments: Dict[PromptLayerId, List[Segment]] = Field(default_factory=dict)
    conversation_id: Optional[str] = None
    message_id: Optional[str] = None


class ConvertMessagesRequest(BaseModel):
    """An envelope to flatten into provider messages.

    Attributes:
        envelope (PromptContextEnvelope): The layered prompt.
        options (Optional[ConversionOptions]): Conversion options.
    """

    envelope: PromptContextEnvelope
    options: Optional[ConversionOptions] = None


class ConvertMessagesResponse(BaseModel):
    """Provider messages plus the layer hashes they were built from.

    Attributes:
        messages (List[ProviderMessage]): ``[system?, user?]`` messages.
        layer_hashes (Dict[str, str]): Layer id -> hash.
    """

    messages: List[ProviderMessage]
    layer_hashes: Dict[str, str]


class RefetchInstructionResponse(BaseModel):
    """Guidance appended after compacted library blocks.

    Attributes:
        instruction (str): Text telling the model how to re-read a compacted source.
    """

    instruction: str
