# Copyright (c) 2026 Heureum AI. All rights reserved.

"""
Turn-to-library compaction.

Context attached in earlier turns (L3) is folded into the cumulative
context library (L2). The library does not need the verbatim content: it
keeps the document structure (headings), a preview of each section and the
source path / URL, and one instruction at the end tells the model how to
re-fetch anything it needs in full.

This is deterministic extraction, not model summarization. Typical
reduction for a large note is well above 90%.
"""

from __future__ import annotations

import logging
from typing import Iterable, List, Optional, Set, Union

from context_engine.schemas.prompt_context import (
    PromptContextEnvelope,
    PromptLayerId,
    Segment,
)
from context_engine.services.compaction.registry import (
    ContextSourceType,
    detect_block_tag,
    extract_content_from_block,
    extract_source_from_block,
    is_recoverable,
    lookup,
    never_compact_tags,
    source_type_of,
)
from context_engine.services.compaction.settings import CompactionConfig, resolve_config
from context_engine.services.compaction.truncation import compact_by_section, escape_xml_attr
from context_engine.services.prompts.base import (
    L2_REFETCH_INSTRUCTION,
    PRIOR_CONTEXT_OPEN,
    PRIOR_CONTEXT_TEMPLATE,
)

logger = logging.getLogger(__name__)


def compact_l3_for_l2(
    content: str,
    source: str,
    source_type: Union[ContextSourceType, str],
    config: Optional[CompactionConfig] = None,
) -> str:
    """Compact one piece of turn context for inclusion in the library.

    Args:
        content (str): Full content of the turn segment.
        source (str): Source path or URL, shown to the model for re-fetching.
        source_type (Union[ContextSourceType, str]): Category of the source.
        config (Optional[CompactionConfig]): Compaction thresholds.

    Returns:
        str: *content* unchanged when within the verbatim threshold, otherwise
            a ``<prior_context>`` envelope with headings and previews.
    """
    config = resolve_config(config)
    if len(content) <= config.verbatim_threshold:
        return content

    body = compact_by_section(content, config.preview_chars_per_section, config.max_sections)
    type_value = source_type.value if isinstance(source_type, ContextSourceType) else source_type
    return PRIOR_CONTEXT_TEMPLATE.format(
        source=escape_xml_attr(source),
        source_type=type_value,
        body=body,
    )


def compact_xml_block(
    xml_block: str,
    block_type: str,
    config: Optional[CompactionConfig] = None,
) -> str:
    """Compact an entire XML context block for the library.

    Args:
        xml_block (str): The full block, e.g. ``<note_context>...</note_context>``.
        block_type (str): The block's tag name, e.g. ``"note_context"``.
        config (Optional[CompactionConfig]): Compaction thresholds.

    Returns:
        str: The compacted block, or *xml_block* unchanged when it is
            non-recoverable or within the verbatim threshold.
    """
    if not is_recoverable(block_type):
        return xml_block

    config = resolve_config(config)
    if len(xml_block) <= config.verbatim_threshold:
        return xml_block

    source = extract_source_from_block(xml_block, block_type)
    content = extract_content_from_block(xml_block)
    return compact_l3_for_l2(content, source, source_type_of(block_type), config)


def get_l2_refetch_instruction() -> str:
    """The single instruction appended after all library content."""
    return L2_REFETCH_INSTRUCTION


def promote_to_library(
    previous_turns: Iterable[PromptContextEnvelope],
    config: Optional[CompactionConfig] = None,
) -> List[Segment]:
    """Collect earlier turns' context into compacted library segments.

    Turns are walked oldest first. The first occurrence of each segment id
    wins. Segments wrapping non-recoverable blocks (selected text) are
    dropped: a stale selection must not shadow the current one.

    Args:
        previous_turns (Iterable[PromptContextEnvelope]): Envelopes of the
            earlier user turns, oldest first.
        config (Optional[CompactionConfig]): Compaction thresholds.

    Returns:
        List[Segment]: Library segments in first-seen order.
    """
    config = resolve_config(config)
    seen: Set[str] = set()
    library: List[Segment] = []

    for envelope in previous_turns:
        turn_layer = envelope.get_layer(PromptLayerId.L3_TURN)
        if turn_layer is None:
            continue

        for segment in turn_layer.segments:
            if segment.id in seen:
                continue
            seen.add(segment.id)

            tag = detect_block_tag(segment.content)
            if tag in never_compact_tags():
                logger.debug("Skipping non-recoverable segment %s (%s)", segment.id, tag)
                continue

            library.append(
                segment.model_copy(
                    update={"content": _compact_segment_content(segment.content, tag, config)}
                )
            )

    return library


def _compact_segment_content(content: str, tag: Optional[str], config: CompactionConfig) -> str:
    # Unregistered or untagged content is kept verbatim
    if tag is None or lookup(tag) is None:
        return content
    return compact_xml_block(content, tag, config)


def build_library_text(segments: Iterable[Segment]) -> str:
    """Render library segments as L2 text.

    The refetch instruction is appended once, and only when at least one
    segment was compacted into a ``<prior_context>`` envelope.

    Args:
        segments (Iterable[Segment]): Library segments.

    Returns:
        str: Segment contents separated by blank lines.
    """
    contents = [segment.content for segment in segments if segment.content]
    if not contents:
        return ""
    if any(PRIOR_CONTEXT_OPEN in content for content in contents):
        contents.append(get_l2_refetch_instruction())
    return "\n\n".join(contents)
