# Copyright (c) 2026 Heureum AI. All rights reserved.

"""
Context router - compaction and prompt assembly endpoints.

Every endpoint is a pure transformation of its request body; nothing is
stored between calls.
"""

import logging

from context_engine.models import (
    BuildEnvelopeRequest,
    CompactBlockRequest,
    CompactBlockResponse,
    CompactOutputRequest,
    CompactOutputResponse,
    ConvertMessagesRequest,
    ConvertMessagesResponse,
    RefetchInstructionResponse,
    resolve_overrides,
)
from context_engine.schemas.prompt_context import PromptContextEnvelope
from context_engine.services.compaction.chat_history import compact_assistant_output
from context_engine.services.compaction.library import compact_xml_block, get_l2_refetch_instruction
from context_engine.services.layer_converter import LayerToMessagesConverter
from context_engine.services.prompt_context import PromptContextEngine
from fastapi import APIRouter

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/compact/output", response_model=CompactOutputResponse)
async def compact_output(request: CompactOutputRequest) -> CompactOutputResponse:
    """Compact an assistant turn before it is persisted.

    Args:
        request (CompactOutputRequest): Output text or content parts, plus
            optional threshold overrides.

    Returns:
        CompactOutputResponse: The output with large tool results replaced.
    """
    config = resolve_overrides(request.config)
    return CompactOutputResponse(output=compact_assistant_output(request.output, config))


@router.post("/compact/block", response_model=CompactBlockResponse)
async def compact_block(request: CompactBlockRequest) -> CompactBlockResponse:
    """Compact one context block for the context library.

    Args:
        request (CompactBlockRequest): The XML block and its tag name.

    Returns:
        CompactBlockResponse: The compacted block, or the input unchanged
            when it is small or non-recoverable.
    """
    config = resolve_overrides(request.config)
    content = compact_xml_block(request.xml_block, request.block_type, config)
    if content != request.xml_block:
        logger.info(
            "Compacted %s block: %d chars -> %d chars",
            request.block_type,
            len(request.xml_block),
            len(content),
        )
    return CompactBlockResponse(content=content)


@router.post("/envelopes", response_model=PromptContextEnvelope)
async def build_envelope(request: BuildEnvelopeRequest) -> PromptContextEnvelope:
    """Assemble per-layer segments into a hashed envelope."""
    return PromptContextEngine.build_envelope(
        request.layer_segments,
        conversation_id=request.conversation_id,
        message_id=request.message_id,
    )


@router.post("/messages", response_model=ConvertMessagesResponse)
async def convert_messages(request: ConvertMessagesRequest) -> ConvertMessagesResponse:
    """Flatten an envelope into provider messages.

    Args:
        request (ConvertMessagesRequest): The envelope and conversion options.

    Returns:
        ConvertMessagesResponse: Provider messages and the envelope's layer
            hashes.
    """
    messages = LayerToMessagesConverter.convert(request.envelope, request.options)
    return ConvertMessagesResponse(
        messages=messages,
        layer_hashes=LayerToMessagesConverter.get_layer_hashes(request.envelope),
    )


@router.get("/refetch-instruction", response_model=RefetchInstructionResponse)
async def refetch_instruction() -> RefetchInstructionResponse:
    """Return the instruction that tells the model how to re-read compacted blocks.

    Returns:
        RefetchInstructionResponse: The fixed refetch instruction text.
    """
    return RefetchInstructionResponse(instruction=get_l2_refetch_instruction())
