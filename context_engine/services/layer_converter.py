# Copyright (c) 2026 Heureum AI. All rights reserved.

"""
Layer-to-message conversion.

Flattens a PromptContextEnvelope into the message list sent to a provider:

  [SystemMessage]  <- L1 system prompt + "## Context Library" (L2)
  [HumanMessage]   <- L3 turn context (deduplicated against L2) + L5 query

The cumulative context library rides in the system message so it stays
part of the cacheable prefix. L3 segments already present in the library
are replaced by a short ``- <id>`` reference instead of being sent twice.

L4 (conversation strip) is reserved: history is replayed from chat memory
and the layer is never emitted here.
"""

from __future__ import annotations

import logging
from typing import Dict, List, Optional, Sequence, Set

from context_engine.schemas.prompt_context import (
    ConversionOptions,
    PromptContextEnvelope,
    PromptLayerId,
    PromptLayerSegment,
    ProviderMessage,
)
from context_engine.services.prompts.base import (
    CONTEXT_LIBRARY_HEADING,
    CONTEXT_REFERENCE_HEADER,
    USER_QUERY_SEPARATOR,
)
from langchain_core.messages import AIMessage, BaseMessage, HumanMessage, SystemMessage

logger = logging.getLogger(__name__)

_PREVIEW_CHARS = 100


def _layer_text(layer: Optional[PromptLayerSegment]) -> str:
    return layer.text if layer is not None and layer.text else ""


def _context_library_section(l2_previous: Optional[PromptLayerSegment]) -> str:
    text = _layer_text(l2_previous)
    return f"{CONTEXT_LIBRARY_HEADING}\n\n{text}" if text else ""


def _library_segment_ids(l2_previous: Optional[PromptLayerSegment]) -> Set[str]:
    if l2_previous is None:
        return set()
    return {segment.id for segment in l2_previous.segments if segment.id}


def _build_turn_content(envelope: PromptContextEnvelope) -> str:
    """Render L3, replacing segments already in the library with references."""
    l3_turn = envelope.get_layer(PromptLayerId.L3_TURN)
    if l3_turn is None:
        return ""
    if not l3_turn.segments:
        return l3_turn.text

    library_ids = _library_segment_ids(envelope.get_layer(PromptLayerId.L2_PREVIOUS))
    references: List[str] = []
    full_contents: List[str] = []
    for segment in l3_turn.segments:
        if segment.id and segment.id in library_ids:
            references.append(f"- {segment.id}")
        elif segment.content:
            full_contents.append(segment.content)

    parts: List[str] = []
    if references:
        parts.append(CONTEXT_REFERENCE_HEADER + "\n" + "\n".join(references))
    parts.extend(full_contents)
    return "\n\n".join(parts)


def _append_user_query(content: str, user_text: str) -> str:
    if content and user_text:
        return content + USER_QUERY_SEPARATOR + user_text
    return content or user_text


class LayerToMessagesConverter:
    """Converts PromptContextEnvelope layers into provider messages.

    Model-agnostic: the output works with OpenAI, Anthropic, Google and
    other providers using system/user chat messages. All methods are pure.
    """

    @staticmethod
    def convert(
        envelope: PromptContextEnvelope,
        options: Optional[ConversionOptions] = None,
    ) -> List[ProviderMessage]:
        """Convert an envelope to provider messages.

        Args:
            envelope (PromptContextEnvelope): Envelope holding layers L1-L5.
            options (Optional[ConversionOptions]): Conversion options;
                defaults when ``None``.

        Returns:
            List[ProviderMessage]: ``[system?, user?]``, or one user message
                per part when ``merge_user_content`` is off.
        """
        options = options or ConversionOptions()
        messages: List[ProviderMessage] = []

        l1_system = envelope.get_layer(PromptLayerId.L1_SYSTEM)
        l4_strip = envelope.get_layer(PromptLayerId.L4_STRIP)
        l5_user = envelope.get_layer(PromptLayerId.L5_USER)
        library_section = _context_library_section(envelope.get_layer(PromptLayerId.L2_PREVIOUS))

        if options.include_system_message:
            system_parts = [part for part in (_layer_text(l1_system), library_section) if part]
            if system_parts:
                messages.append(ProviderMessage(role="system", content="\n\n".join(system_parts)))
                if options.debug:
                    logger.debug(
                        "[LayerToMessagesConverter] Added system message (L1%s)",
                        " + Context Library" if library_section else "",
                    )

        if options.debug and _layer_text(l4_strip):
            logger.debug("[LayerToMessagesConverter] L4 (Strip) present but not emitted")

        user_parts: List[str] = []
        if not options.include_system_message and library_section:
            # Keep library references resolvable without a system message
            user_parts.append(library_section)
        turn_content = _build_turn_content(envelope)
        if turn_content:
            user_parts.append(turn_content)
            if options.debug:
                logger.debug("[LayerToMessagesConverter] Added L3 (Turn) to user content")
        user_text = _layer_text(l5_user)

        if options.merge_user_content:
            content = _append_user_query("\n\n".join(user_parts), user_text)
            if content:
                messages.append(ProviderMessage(role="user", content=content))
        else:
            for part in user_parts + ([user_text] if user_text else []):
                messages.append(ProviderMessage(role="user", content=part))

        if options.debug:
            logger.debug("[LayerToMessagesConverter] Converted envelope to %d messages", len(messages))
            for index, message in enumerate(messages, start=1):
                logger.debug("  Message %d [%s]: %s...", index, message.role, message.content[:_PREVIEW_CHARS])

        return messages

    @staticmethod
    def extract_user_content(envelope: PromptContextEnvelope) -> str:
        """User message content (L3 + L5) without the Context Library.

        Args:
            envelope (PromptContextEnvelope): The prompt context envelope.

        Returns:
            str: Deduplicated turn context followed by the user query.
        """
        user_text = _layer_text(envelope.get_layer(PromptLayerId.L5_USER))
        return _append_user_query(_build_turn_content(envelope), user_text)

    @staticmethod
    def extract_system_message(envelope: PromptContextEnvelope) -> str:
        """L1 text, or ``""`` when absent."""
        return _layer_text(envelope.get_layer(PromptLayerId.L1_SYSTEM))

    @staticmethod
    def extract_full_context(envelope: PromptContextEnvelope) -> str:
        """Every byte of L2 + L3 + L5, e.g. for multimodal asset extraction.

        Args:
            envelope (PromptContextEnvelope): The prompt context envelope.

        Returns:
            str: Non-empty layer texts separated by blank lines.
        """
        layer_ids = (PromptLayerId.L2_PREVIOUS, PromptLayerId.L3_TURN, PromptLayerId.L5_USER)
        texts = [_layer_text(envelope.get_layer(layer_id)) for layer_id in layer_ids]
        return "\n\n".join(text for text in texts if text)

    @staticmethod
    def get_layer_hashes(envelope: PromptContextEnvelope) -> Dict[str, str]:
        """Layer id -> hash map, for cache-invalidation decisions."""
        return envelope.layer_hashes


def to_langchain_messages(messages: Sequence[ProviderMessage]) -> List[BaseMessage]:
    """Convert provider messages to LangChain messages.

    Args:
        messages (Sequence[ProviderMessage]): Output of
            ``LayerToMessagesConverter.convert``.

    Returns:
        List[BaseMessage]: Matching ``SystemMessage`` / ``HumanMessage`` /
            ``AIMessage`` instances, in order.
    """
    converted: List[BaseMessage] = []
    for message in messages:
        if message.role == "system":
            converted.append(SystemMessage(content=message.content))
        elif message.role == "assistant":
            converted.append(AIMessage(content=message.content))
        else:
            converted.append(HumanMessage(content=message.content))
    return converted
