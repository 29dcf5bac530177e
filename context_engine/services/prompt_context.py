# Copyright (c) 2026 Heureum AI. All rights reserved.

"""Builds PromptContextEnvelopes from per-layer segments."""

import hashlib
import logging
from typing import Dict, List, Mapping, Optional, Sequence, Union

from context_engine.schemas.prompt_context import (
    PROMPT_LAYER_LABELS,
    PROMPT_LAYER_ORDER,
    PromptContextEnvelope,
    PromptLayerId,
    PromptLayerSegment,
    Segment,
)

logger = logging.getLogger(__name__)

ENVELOPE_VERSION = 1

LayerSegments = Mapping[Union[PromptLayerId, str], Sequence[Segment]]


def hash_text(text: str) -> str:
    """Hex SHA-256 of *text* (UTF-8)."""
    return hashlib.sha256(text.encode("utf-8")).hexdigest()


class PromptContextEngine:
    """Assembles the five prompt layers into one hashed envelope.

    Layer hashes let callers detect which parts of the prompt changed
    between turns, e.g. to decide whether a provider cache prefix is still
    valid.
    """

    @staticmethod
    def build_envelope(
        layer_segments: LayerSegments,
        conversation_id: Optional[str] = None,
        message_id: Optional[str] = None,
        debug_label: Optional[str] = None,
    ) -> PromptContextEnvelope:
        """Build an envelope from raw segments keyed by layer.

        Args:
            layer_segments (LayerSegments): Segments per layer id. Missing
                layers are rendered empty.
            conversation_id (Optional[str]): Conversation identifier.
            message_id (Optional[str]): User message identifier.
            debug_label (Optional[str]): When set, a summary of the envelope
                is logged under this label.

        Returns:
            PromptContextEnvelope: Layers L1-L5 in order with hashes.
        """
        by_layer: Dict[PromptLayerId, Sequence[Segment]] = {
            PromptLayerId(key): segments for key, segments in layer_segments.items()
        }

        layers: List[PromptLayerSegment] = []
        warnings: List[str] = []
        for layer_id in PROMPT_LAYER_ORDER:
            segments = _normalize_segments(layer_id, by_layer.get(layer_id, ()))
            text = "\n\n".join(segment.content for segment in segments if segment.content)
            if "\x00" in text:
                warnings.append(f"{layer_id.value} contains NUL characters")
            layers.append(
                PromptLayerSegment(
                    id=layer_id,
                    label=PROMPT_LAYER_LABELS[layer_id],
                    text=text,
                    segments=segments,
                    stable=all(segment.stable for segment in segments),
                    hash=hash_text(text),
                )
            )

        serialized_text = "\n\n".join(layer.text for layer in layers if layer.text)
        envelope = PromptContextEnvelope(
            version=ENVELOPE_VERSION,
            conversation_id=conversation_id,
            message_id=message_id,
            layers=layers,
            serialized_text=serialized_text,
            layer_hashes={layer.id.value: layer.hash for layer in layers},
            combined_hash=hash_text(serialized_text),
            warnings=warnings,
        )

        if debug_label:
            logger.info(
                "[%s] Built envelope: %d chars, combined hash %s",
                debug_label,
                len(serialized_text),
                envelope.combined_hash[:12],
            )
            for layer in layers:
                logger.info("  %s: %d segments, %d chars", layer.id.value, len(layer.segments), len(layer.text))
        for warning in warnings:
            logger.warning("Prompt envelope warning: %s", warning)

        return envelope


def _normalize_segments(layer_id: PromptLayerId, segments: Sequence[Segment]) -> List[Segment]:
    normalized = []
    for index, segment in enumerate(segments):
        normalized.append(
            segment.model_copy(
                update={
                    "id": segment.id or f"{layer_id.value}-segment-{index}",
                    "content": segment.content.strip(),
                }
            )
        )
    return normalized
