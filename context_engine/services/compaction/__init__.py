# Copyright (c) 2026 Heureum AI. All rights reserved.

"""
Context compaction module.

Keeps a multi-turn prompt small without losing the model's ability to
recover what was dropped. Everything here is deterministic string work:
no model calls, no token counting.

  Assistant-output compaction  (chat_history.py)
      Before an assistant turn is written to chat memory, large tool-result
      XML blocks and large ``readNote`` JSON payloads inside it are replaced
      by structure-preserving previews that name how to re-fetch them.

  Turn-to-library compaction  (library.py)
      Context attached in earlier turns (L3) is folded into the cumulative
      context library (L2) as ``<prior_context>`` envelopes, followed by one
      refetch instruction.

  Shared primitives
      registry.py    block-type table (source type, recoverability)
      truncation.py  boundary-aware truncation, section previews
      parsing.py     balanced JSON extraction from free text
      settings.py    CompactionConfig thresholds

Usage:

    config = CompactionConfig(verbatim_threshold=5_000)

    # Before saving an assistant turn
    message = compact_ai_message(message, config)

    # When building the next turn's library layer
    library = promote_to_library(previous_envelopes, config)
    l2_text = build_library_text(library)

Recoverability is the invariant: a block is only compacted when its tag is
registered as recoverable, so the model can always re-fetch the original
with the named tool.
"""

from context_engine.services.compaction.chat_history import (
    TOOL_RESULT_TAGS,
    compact_ai_message,
    compact_assistant_output,
    compact_output_string,
    compact_read_note_result,
    compact_tool_result_block,
)
from context_engine.services.compaction.library import (
    build_library_text,
    compact_l3_for_l2,
    compact_xml_block,
    get_l2_refetch_instruction,
    promote_to_library,
)
from context_engine.services.compaction.parsing import BalancedJson, extract_balanced_json
from context_engine.services.compaction.registry import (
    CONTEXT_BLOCK_TYPES,
    ContextBlockType,
    ContextSourceType,
    SourceExtractor,
    detect_block_tag,
    extract_content_from_block,
    extract_source_from_block,
    is_recoverable,
    lookup,
    never_compact_tags,
    source_type_of,
)
from context_engine.services.compaction.settings import (
    DEFAULT_COMPACTION_CONFIG,
    CompactionConfig,
    resolve_config,
)
from context_engine.services.compaction.truncation import (
    compact_by_section,
    escape_xml_attr,
    truncate_with_ellipsis,
)

__all__ = [
    "CompactionConfig",
    "DEFAULT_COMPACTION_CONFIG",
    "resolve_config",
    "ContextSourceType",
    "SourceExtractor",
    "ContextBlockType",
    "CONTEXT_BLOCK_TYPES",
    "lookup",
    "is_recoverable",
    "source_type_of",
    "never_compact_tags",
    "extract_source_from_block",
    "extract_content_from_block",
    "detect_block_tag",
    "truncate_with_ellipsis",
    "compact_by_section",
    "escape_xml_attr",
    "BalancedJson",
    "extract_balanced_json",
    "TOOL_RESULT_TAGS",
    "compact_assistant_output",
    "compact_output_string",
    "compact_tool_result_block",
    "compact_read_note_result",
    "compact_ai_message",
    "compact_l3_for_l2",
    "compact_xml_block",
    "get_l2_refetch_instruction",
    "promote_to_library",
    "build_library_text",
]
