# Copyright (c) 2026 Heureum AI. All rights reserved.

"""
Context block registry.

Single source of truth for the XML tags that wrap context blocks:
  - which source category each tag belongs to (note, url, youtube, ...)
  - whether the model can re-fetch the content (recoverable)
  - which child element names the block's source

Unknown tags resolve to ``unknown`` / non-recoverable so that anything the
registry does not know about is never compacted.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum
from types import MappingProxyType
from typing import FrozenSet, Mapping, Optional


class ContextSourceType(str, Enum):
    """Category of source, used for re-fetch hints.

    Attributes:
        NOTE (str): Vault note (re-open via ``[[title]]`` or readNote).
        URL (str): Web page (re-fetch the URL).
        YOUTUBE (str): YouTube transcript (re-fetch the video).
        PDF (str): PDF embedded in the vault.
        SELECTED_TEXT (str): User selection; cannot be re-fetched.
        UNKNOWN (str): Tag not present in the registry.
    """

    NOTE = "note"
    URL = "url"
    YOUTUBE = "youtube"
    PDF = "pdf"
    SELECTED_TEXT = "selected_text"
    UNKNOWN = "unknown"


class SourceExtractor(str, Enum):
    """Child element holding a block's source identifier."""

    PATH = "path"
    URL = "url"
    NAME = "name"


@dataclass(frozen=True)
class ContextBlockType:
    """Metadata for one context block tag.

    Attributes:
        tag (str): XML tag name (e.g. ``"note_context"``).
        source_type (ContextSourceType): Category of source.
        recoverable (bool): Whether the model can re-fetch the content.
        source_extractor (Optional[SourceExtractor]): Child element holding
            the source identifier, or ``None``.
    """

    tag: str
    source_type: ContextSourceType
    recoverable: bool
    source_extractor: Optional[SourceExtractor]


CONTEXT_BLOCK_TYPES = (
    # Notes (recoverable via readNote or wiki-links)
    ContextBlockType("note_context", ContextSourceType.NOTE, True, SourceExtractor.PATH),
    ContextBlockType("active_note", ContextSourceType.NOTE, True, SourceExtractor.PATH),
    ContextBlockType("embedded_note", ContextSourceType.NOTE, True, SourceExtractor.PATH),
    ContextBlockType("vault_note", ContextSourceType.NOTE, True, SourceExtractor.PATH),
    ContextBlockType("retrieved_document", ContextSourceType.NOTE, True, SourceExtractor.PATH),
    # Web
    ContextBlockType("url_content", ContextSourceType.URL, True, SourceExtractor.URL),
    ContextBlockType("web_tab_context", ContextSourceType.URL, True, SourceExtractor.URL),
    ContextBlockType("active_web_tab", ContextSourceType.URL, True, SourceExtractor.URL),
    # YouTube
    ContextBlockType("youtube_video_context", ContextSourceType.YOUTUBE, True, SourceExtractor.URL),
    # PDF (needs the file in the vault)
    ContextBlockType("embedded_pdf", ContextSourceType.PDF, True, SourceExtractor.NAME),
    # Selections: user must re-select manually
    ContextBlockType("selected_text", ContextSourceType.SELECTED_TEXT, False, None),
    ContextBlockType("web_selected_text", ContextSourceType.SELECTED_TEXT, False, None),
    # Tool results; source is per-document
    ContextBlockType("localSearch", ContextSourceType.NOTE, True, None),
)

_BLOCK_TYPES_BY_TAG: Mapping[str, ContextBlockType] = MappingProxyType(
    {block_type.tag: block_type for block_type in CONTEXT_BLOCK_TYPES}
)

_NEVER_COMPACT_TAGS: FrozenSet[str] = frozenset(
    block_type.tag for block_type in CONTEXT_BLOCK_TYPES if not block_type.recoverable
)

_FALLBACK_EXTRACTORS = (SourceExtractor.PATH, SourceExtractor.URL, SourceExtractor.NAME)

_SOURCE_PATTERNS: Mapping[SourceExtractor, "re.Pattern[str]"] = MappingProxyType(
    {
        extractor: re.compile(rf"<{extractor.value}>([^<]+)</{extractor.value}>")
        for extractor in SourceExtractor
    }
)
_CONTENT_PATTERN = re.compile(r"<content>(.*?)</content>", re.DOTALL)
_OPENING_TAG_PATTERN = re.compile(r"^\s*<(\w+)[\s>/]")


def lookup(tag: str) -> Optional[ContextBlockType]:
    """Block type metadata for *tag*, or ``None`` if unregistered."""
    return _BLOCK_TYPES_BY_TAG.get(tag)


def is_recoverable(tag: str) -> bool:
    """Whether the model can re-fetch blocks of this tag (False if unknown)."""
    block_type = _BLOCK_TYPES_BY_TAG.get(tag)
    return block_type.recoverable if block_type else False


def source_type_of(tag: str) -> ContextSourceType:
    """Source type of *tag*, ``UNKNOWN`` if unregistered."""
    block_type = _BLOCK_TYPES_BY_TAG.get(tag)
    return block_type.source_type if block_type else ContextSourceType.UNKNOWN


def never_compact_tags() -> FrozenSet[str]:
    """All tags whose content must never be compacted."""
    return _NEVER_COMPACT_TAGS


def extract_source_from_block(xml_block: str, tag: str) -> str:
    """Extract the source identifier (path, URL or name) from an XML block.

    The tag's configured extractor is tried first. When the tag has none, or
    its element is absent, ``<path>``, ``<url>`` and ``<name>`` are tried in
    that order.

    Args:
        xml_block (str): Full XML block including its outer tag.
        tag (str): Block tag used to pick the extractor.

    Returns:
        str: The source identifier, or ``""`` when none is present.
    """
    block_type = _BLOCK_TYPES_BY_TAG.get(tag)
    extractors = list(_FALLBACK_EXTRACTORS)
    if block_type and block_type.source_extractor:
        extractors.remove(block_type.source_extractor)
        extractors.insert(0, block_type.source_extractor)

    for extractor in extractors:
        match = _SOURCE_PATTERNS[extractor].search(xml_block)
        if match:
            return match.group(1)
    return ""


def extract_content_from_block(xml_block: str) -> str:
    """Inner text of the first ``<content>`` element, or the whole block."""
    match = _CONTENT_PATTERN.search(xml_block)
    return match.group(1) if match else xml_block


def detect_block_tag(xml_block: str) -> Optional[str]:
    """Name of the opening tag of *xml_block*, or ``None``."""
    match = _OPENING_TAG_PATTERN.match(xml_block)
    return match.group(1) if match else None
