# Copyright (c) 2026 Heureum AI. All rights reserved.

"""
Assistant-output compaction.

When an assistant turn embeds large tool results (localSearch, note
contexts, readNote JSON, ...) they are replaced with compact previews right
before the turn is written to chat memory, so later requests replay the
preview instead of the full payload.

Two kinds of embedded results are handled:

  XML blocks:  ``<note_context>...</note_context>`` etc. become a
               ``<prior_context>`` envelope (localSearch gets a per-document
               listing instead).
  readNote:    ``Tool 'readNote' result: {...}`` keeps its JSON shape with
               ``content`` replaced and ``wasCompacted`` set.

Non-recoverable blocks (selected text) are never touched, nor is anything
quoted inside them. Anything that cannot be parsed is left exactly as it was.

Assumption: blocks of the same tag never nest inside one message. A span
runs from an opening tag to the first matching closing tag.
"""

from __future__ import annotations

import json
import logging
import re
from typing import Any, Dict, Iterator, List, Optional, Tuple

from context_engine.services.compaction.parsing import extract_balanced_json
from context_engine.services.compaction.registry import (
    extract_content_from_block,
    extract_source_from_block,
    is_recoverable,
    never_compact_tags,
    source_type_of,
)
from context_engine.services.compaction.settings import CompactionConfig, resolve_config
from context_engine.services.compaction.truncation import (
    ELLIPSIS,
    compact_by_section,
    escape_xml_attr,
)
from context_engine.services.prompts.base import (
    COMPACTED_NOTE_PREFIX,
    LOCAL_SEARCH_SUMMARY,
    PRIOR_CONTEXT_TEMPLATE,
    READ_NOTE_RESULT_PREFIX,
    WAS_COMPACTED_KEY,
)
from langchain_core.messages import AIMessage

logger = logging.getLogger(__name__)

LOCAL_SEARCH_TAG = "localSearch"

# Tags that show up as tool results inside assistant turns
TOOL_RESULT_TAGS: Tuple[str, ...] = (
    LOCAL_SEARCH_TAG,
    "note_context",
    "active_note",
    "retrieved_document",
    "url_content",
    "youtube_video_context",
)


def _build_compactable_tags() -> Tuple[str, ...]:
    """Tool-result tags eligible for compaction, fixed at import."""
    return tuple(tag for tag in TOOL_RESULT_TAGS if is_recoverable(tag))


COMPACTABLE_TAGS = _build_compactable_tags()

_DOCUMENT_PATTERN = re.compile(r"<document(\s[^>]*)?>(.*?)</document>", re.DOTALL)
_ATTRIBUTE_PATTERN = re.compile(r'(\w+)="([^"]*)"')
_TITLE_PATTERN = re.compile(r"<title>(.*?)</title>", re.DOTALL)
_PATH_PATTERN = re.compile(r"<path>(.*?)</path>", re.DOTALL)
_DOCUMENT_CONTENT_PATTERN = re.compile(r"<content>(.*?)</content>", re.DOTALL)
_DOCUMENT_METADATA_PATTERN = re.compile(
    r"<(title|path|ctime|mtime|score|rerank_score)>.*?</\1>", re.DOTALL
)
_WHITESPACE_RUN = re.compile(r"\s+")


def compact_assistant_output(output: Any, config: Optional[CompactionConfig] = None) -> Any:
    """Compact an assistant's output before it is saved to memory.

    Args:
        output (Any): A string, or a list of multimodal content parts. Any
            other value is returned unchanged.
        config (Optional[CompactionConfig]): Compaction thresholds; defaults
            when ``None``.

    Returns:
        Any: Same shape as *output*. Text parts of a list are copied with
            compacted text; other parts are returned as the same objects.
    """
    if isinstance(output, list):
        return [_compact_content_part(part, config) for part in output]
    if isinstance(output, str):
        return compact_output_string(output, config)
    return output


def _compact_content_part(part: Any, config: Optional[CompactionConfig]) -> Any:
    if isinstance(part, dict) and part.get("type") == "text" and isinstance(part.get("text"), str):
        return {**part, "text": compact_output_string(part["text"], config)}
    return part


def compact_output_string(content: str, config: Optional[CompactionConfig] = None) -> str:
    """Compact every oversized tool result embedded in *content*.

    Blocks that sit inside a never-compact block (a user selection that
    happens to contain a tool-result tag) are left untouched.

    Args:
        content (str): Assistant text possibly containing tool results.
        config (Optional[CompactionConfig]): Compaction thresholds.

    Returns:
        str: *content* with large XML tool results and readNote JSON results
            replaced by their compact forms.
    """
    config = resolve_config(config)
    result = content

    for tag in COMPACTABLE_TAGS:
        result = _compact_tag_spans(result, tag, config)

    result = _compact_read_note_results(result, config)

    if result != content:
        logger.info("Compacted assistant output: %d chars -> %d chars", len(content), len(result))
    return result


def _iter_tag_spans(content: str, tag: str) -> Iterator[Tuple[int, int]]:
    """Yield ``(start, end)`` of each ``<tag ...>...</tag>`` span, left to right.

    A span ends at the first closing tag after its opening tag. Scanning
    stops at the first opening tag that is never closed, since no later
    opening tag can be closed either.
    """
    opening = f"<{tag}"
    closing = f"</{tag}>"
    pos = 0

    while True:
        start = content.find(opening, pos)
        if start == -1:
            return

        name_end = start + len(opening)
        if name_end >= len(content) or not (content[name_end] == ">" or content[name_end].isspace()):
            # Longer tag name sharing the prefix
            pos = name_end
            continue

        tag_end = content.find(">", name_end)
        if tag_end == -1:
            return
        close = content.find(closing, tag_end + 1)
        if close == -1:
            return

        end = close + len(closing)
        yield start, end
        pos = end


class _ProtectedSpans:
    """Spans of never-compact blocks in one string.

    ``overlaps`` must be called with non-decreasing ``start`` values.
    """

    def __init__(self, content: str) -> None:
        self._spans = sorted(
            span for tag in never_compact_tags() for span in _iter_tag_spans(content, tag)
        )
        self._index = 0

    def overlaps(self, start: int, end: int) -> bool:
        while self._index < len(self._spans) and self._spans[self._index][1] <= start:
            self._index += 1
        return self._index < len(self._spans) and self._spans[self._index][0] < end


def _compact_tag_spans(content: str, tag: str, config: CompactionConfig) -> str:
    protected = _ProtectedSpans(content)
    parts: List[str] = []
    last = 0

    for start, end in _iter_tag_spans(content, tag):
        if protected.overlaps(start, end):
            continue
        parts.append(content[last:start])
        parts.append(_compact_span(content[start:end], tag, config))
        last = end

    parts.append(content[last:])
    return "".join(parts)


def _compact_span(span: str, tag: str, config: CompactionConfig) -> str:
    if len(span) < config.verbatim_threshold:
        return span
    return compact_tool_result_block(span, tag, config)


def _compact_read_note_results(content: str, config: CompactionConfig) -> str:
    """Replace every large ``Tool 'readNote' result: {...}`` in *content*."""
    protected = _ProtectedSpans(content)
    parts: List[str] = []
    search_pos = 0

    while search_pos < len(content):
        prefix_pos = content.find(READ_NOTE_RESULT_PREFIX, search_pos)
        if prefix_pos == -1:
            break

        json_start = prefix_pos + len(READ_NOTE_RESULT_PREFIX)
        parts.append(content[search_pos:json_start])

        extracted = extract_balanced_json(content, json_start)
        if extracted is None:
            search_pos = json_start
            continue

        if protected.overlaps(prefix_pos, extracted.end_pos):
            parts.append(extracted.json)
        else:
            parts.append(_compact_read_note_json(extracted.json, config))
        search_pos = extracted.end_pos

    parts.append(content[search_pos:])
    return "".join(parts)


def _compact_read_note_json(raw_json: str, config: CompactionConfig) -> str:
    try:
        parsed = json.loads(raw_json)
    except (ValueError, RecursionError):
        logger.debug("readNote result is not decodable JSON, keeping it verbatim")
        return raw_json

    if not isinstance(parsed, dict):
        return raw_json
    note_content = parsed.get("content")
    if not isinstance(note_content, str) or len(note_content) <= config.verbatim_threshold:
        return raw_json

    compacted = compact_read_note_result(parsed, config)
    return json.dumps(compacted, ensure_ascii=False, separators=(",", ":"))


def compact_tool_result_block(
    xml_block: str,
    tag: str,
    config: Optional[CompactionConfig] = None,
) -> str:
    """Compact one XML tool-result block into a ``<prior_context>`` envelope.

    Args:
        xml_block (str): The full block including its outer tag.
        tag (str): The block's tag name.
        config (Optional[CompactionConfig]): Compaction thresholds.

    Returns:
        str: The envelope, or *xml_block* unchanged for non-recoverable tags.
    """
    if not is_recoverable(tag):
        return xml_block

    config = resolve_config(config)
    if tag == LOCAL_SEARCH_TAG:
        compacted = _compact_local_search_block(xml_block, config)
        if compacted is not None:
            return compacted

    source = extract_source_from_block(xml_block, tag)
    content = extract_content_from_block(xml_block)
    body = compact_by_section(content, config.preview_chars_per_section, config.max_sections)

    return PRIOR_CONTEXT_TEMPLATE.format(
        source=escape_xml_attr(source),
        source_type=source_type_of(tag).value,
        body=body,
    )


def _compact_local_search_block(xml_block: str, config: CompactionConfig) -> Optional[str]:
    """Per-document listing of a localSearch result, or ``None`` if no documents parse."""
    documents = [_parse_document(match) for match in _DOCUMENT_PATTERN.finditer(xml_block)]
    if not documents:
        return None

    entries = []
    for index, (title, path, content) in enumerate(documents, start=1):
        header = f"{index}. [[{title}]] ({path})" if path else f"{index}. [[{title}]]"
        preview = _preview(content, config.preview_chars_per_section)
        entries.append(f"{header}\n   {preview}" if preview else header)

    body = LOCAL_SEARCH_SUMMARY.format(count=len(documents)) + "\n\n" + "\n\n".join(entries)
    return PRIOR_CONTEXT_TEMPLATE.format(
        source=LOCAL_SEARCH_TAG,
        source_type=source_type_of(LOCAL_SEARCH_TAG).value,
        body=body,
    )


def _parse_document(match: "re.Match[str]") -> Tuple[str, str, str]:
    """Extract ``(title, path, content)`` from one ``<document>`` match."""
    attributes: Dict[str, str] = dict(_ATTRIBUTE_PATTERN.findall(match.group(1) or ""))
    inner = match.group(2)

    path_match = _PATH_PATTERN.search(inner)
    path = path_match.group(1).strip() if path_match else attributes.get("path", "")

    title_match = _TITLE_PATTERN.search(inner)
    title = title_match.group(1).strip() if title_match else attributes.get("title", "")
    if not title:
        title = path.rstrip("/").split("/")[-1] or "Untitled"

    content_match = _DOCUMENT_CONTENT_PATTERN.search(inner)
    content = content_match.group(1) if content_match else _DOCUMENT_METADATA_PATTERN.sub("", inner)
    return title, path, content


def _preview(content: str, max_chars: int) -> str:
    text = _WHITESPACE_RUN.sub(" ", content).strip()
    if len(text) <= max_chars:
        return text
    return text[:max_chars].rstrip() + ELLIPSIS


def compact_read_note_result(
    result: Dict[str, Any],
    config: Optional[CompactionConfig] = None,
) -> Dict[str, Any]:
    """Replace a readNote result's full content with structure + previews.

    Args:
        result (Dict[str, Any]): Parsed readNote result (``notePath``,
            ``noteTitle``, ``content``, ...).
        config (Optional[CompactionConfig]): Compaction thresholds.

    Returns:
        Dict[str, Any]: A new dict with every other field preserved,
            ``content`` compacted and ``wasCompacted`` set, or *result*
            itself when it has no string content.
    """
    content = result.get("content")
    if not isinstance(content, str) or not content:
        return result

    config = resolve_config(config)
    compacted = compact_by_section(content, config.preview_chars_per_section, config.max_sections)

    rebuilt = {
        key: (COMPACTED_NOTE_PREFIX + compacted if key == "content" else value)
        for key, value in result.items()
    }
    rebuilt[WAS_COMPACTED_KEY] = True
    return rebuilt


def compact_ai_message(message: AIMessage, config: Optional[CompactionConfig] = None) -> AIMessage:
    """Compact an ``AIMessage`` right before it is persisted to chat memory.

    Args:
        message (AIMessage): The assistant turn as produced by the model.
        config (Optional[CompactionConfig]): Compaction thresholds.

    Returns:
        AIMessage: *message* itself when nothing changed, otherwise a copy
            carrying the compacted content.
    """
    compacted = compact_assistant_output(message.content, config)
    if compacted == message.content:
        return message
    return message.model_copy(update={"content": compacted})
