# Copyright (c) 2026 Heureum AI. All rights reserved.

"""Layered prompt context schemas.

A prompt is assembled from five logical layers:

  L1_SYSTEM    system instructions and policies (stable)
  L2_PREVIOUS  cumulative context library from earlier turns (slow-changing)
  L3_TURN      context attached to the current turn
  L4_STRIP     conversation history strip (reserved)
  L5_USER      the user's message
"""

from enum import Enum
from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field


class PromptLayerId(str, Enum):
    """Identifier of a prompt layer, in assembly order."""

    L1_SYSTEM = "L1_SYSTEM"
    L2_PREVIOUS = "L2_PREVIOUS"
    L3_TURN = "L3_TURN"
    L4_STRIP = "L4_STRIP"
    L5_USER = "L5_USER"


PROMPT_LAYER_ORDER: List[PromptLayerId] = list(PromptLayerId)

PROMPT_LAYER_LABELS: Dict[PromptLayerId, str] = {
    PromptLayerId.L1_SYSTEM: "System & Policies",
    PromptLayerId.L2_PREVIOUS: "Context Library",
    PromptLayerId.L3_TURN: "Current Turn Context",
    PromptLayerId.L4_STRIP: "Conversation Strip",
    PromptLayerId.L5_USER: "User Message",
}


class Segment(BaseModel):
    """A unit of context with a stable identifier.

    Attributes:
        id (str): Stable content fingerprint or logical key (e.g. a note
            path), used for cross-turn deduplication.
        content (str): The segment's text.
        stable (bool): Whether the segment is expected to stay unchanged
            across turns.
        metadata (Optional[Dict[str, Any]]): Free-form producer metadata.
    """

    model_config = ConfigDict(frozen=True)

    id: str = ""
    content: str
    stable: bool = True
    metadata: Optional[Dict[str, Any]] = None


class PromptLayerSegment(BaseModel):
    """One rendered prompt layer.

    Attributes:
        id (PromptLayerId): Which layer this is.
        label (str): Human-readable layer label.
        text (str): Rendered layer text.
        segments (List[Segment]): Segments the text was rendered from.
        stable (bool): Whether every segment is stable.
        hash (str): Content hash of ``text``.
    """

    model_config = ConfigDict(frozen=True)

    id: PromptLayerId
    label: str = ""
    text: str = ""
    segments: List[Segment] = Field(default_factory=list)
    stable: bool = True
    hash: str = ""


class PromptContextEnvelope(BaseModel):
    """All layers of one outbound request.

    Attributes:
        version (int): Envelope format version.
        conversation_id (Optional[str]): Conversation the request belongs to.
        message_id (Optional[str]): User message the envelope was built for.
        layers (List[PromptLayerSegment]): Layers in assembly order.
        serialized_text (str): All non-empty layer texts joined.
        layer_hashes (Dict[str, str]): Layer id -> hash of its text.
        combined_hash (str): Hash of ``serialized_text``.
        warnings (List[str]): Diagnostics collected while building.
    """

    model_config = ConfigDict(frozen=True)

    version: int = 1
    conversation_id: Optional[str] = None
    message_id: Optional[str] = None
    layers: List[PromptLayerSegment] = Field(default_factory=list)
    serialized_text: str = ""
    layer_hashes: Dict[str, str] = Field(default_factory=dict)
    combined_hash: str = ""
    warnings: List[str] = Field(default_factory=list)

    def get_layer(self, layer_id: PromptLayerId) -> Optional[PromptLayerSegment]:
        """First layer with *layer_id*, or ``None``."""
        return next((layer for layer in self.layers if layer.id == layer_id), None)


class ProviderMessage(BaseModel):
    """Provider-agnostic chat message (OpenAI / Anthropic style).

    Attributes:
        role (Literal["system", "user", "assistant"]): Message role.
        content (str): Message text.
    """

    role: Literal["system", "user", "assistant"]
    content: str


class ConversionOptions(BaseModel):
    """Options for layer-to-message conversion.

    Attributes:
        include_system_message (bool): Emit L1 (+ Context Library) as a
            system message.
        merge_user_content (bool): Merge L3 and L5 into one user message.
        debug (bool): Log conversion details.
    """

    include_system_message: bool = True
    merge_user_content: bool = True
    debug: bool = False
