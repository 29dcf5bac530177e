# Copyright (c) 2026 Heureum AI. All rights reserved.

"""
Structure-preserving truncation primitives.

Two building blocks used by every compactor:

  truncate_with_ellipsis  cut a string at the nicest boundary available
                          (sentence > paragraph > word > hard cut).
  compact_by_section      keep every markdown heading of the first N
                          sections and a short preview of each body.

Markdown inside a section body (code fences, tables, lists) is treated as
opaque text and may be cut mid-structure.
"""

from __future__ import annotations

import re
from typing import List, Optional, Tuple

ELLIPSIS = "..."

_SENTENCE_END = re.compile(r"[.!?](?=\s|\Z)")
_HEADING_LINE = re.compile(r"^#+[ \t]", re.MULTILINE)
_SECTION_SEPARATOR = "\n\n"

_XML_ATTR_ESCAPES = (
    ("&", "&amp;"),
    ("<", "&lt;"),
    (">", "&gt;"),
    ('"', "&quot;"),
)


def truncate_with_ellipsis(text: str, max_length: int) -> str:
    """Truncate *text* to roughly *max_length* characters at a natural boundary.

    Boundaries are tried in order:
      1. last sentence end (``.``, ``!``, ``?`` followed by whitespace or end
         of text) within the limit, only when it lies past the midpoint
      2. last paragraph break (``\\n\\n``) within the limit
      3. last space within the limit (``" ..."`` is appended)
      4. hard cut at exactly *max_length*

    Args:
        text (str): Text to truncate.
        max_length (int): Maximum number of original characters to keep.

    Returns:
        str: *text* unchanged when it fits, otherwise the kept prefix
            followed by ``"..."``.
    """
    if len(text) <= max_length:
        return text

    last_sentence_end = -1
    for match in _SENTENCE_END.finditer(text):
        if match.end() > max_length:
            break
        last_sentence_end = match.end()
    if last_sentence_end > max_length * 0.5:
        return text[:last_sentence_end] + ELLIPSIS

    paragraph_break = text.rfind("\n\n", 0, max_length)
    if paragraph_break > 0:
        return text[: paragraph_break + 2] + ELLIPSIS

    word_break = text.rfind(" ", 0, max_length + 1)
    if word_break > 0:
        return text[:word_break] + " " + ELLIPSIS

    return text[:max_length] + ELLIPSIS


def _split_sections(content: str) -> List[Tuple[Optional[str], str]]:
    """Split markdown into ``(heading_line, body)`` pairs.

    Text before the first heading becomes an anonymous section
    (``heading_line`` is ``None``) unless it is blank.
    """
    starts = [match.start() for match in _HEADING_LINE.finditer(content)]
    if not starts:
        return [(None, content.strip())]

    sections: List[Tuple[Optional[str], str]] = []
    preamble = content[: starts[0]].strip()
    if preamble:
        sections.append((None, preamble))

    bounds = starts + [len(content)]
    for start, end in zip(bounds, bounds[1:]):
        chunk = content[start:end].rstrip()
        heading, _, body = chunk.partition("\n")
        sections.append((heading, body.strip()))
    return sections


def _render_section(heading: Optional[str], body: str, preview_chars: int) -> str:
    full_text = f"{heading}\n{body}" if heading and body else (heading or body)
    if len(full_text) <= preview_chars:
        return full_text
    if heading is None:
        return truncate_with_ellipsis(body, preview_chars)
    if not body:
        return heading
    return f"{heading}\n{truncate_with_ellipsis(body, preview_chars)}"


def compact_by_section(content: str, preview_chars_per_section: int, max_sections: int) -> str:
    """Compact markdown by keeping headings and a preview of each section.

    Args:
        content (str): Markdown text to compact.
        preview_chars_per_section (int): Maximum preview length per section
            body. Sections whose full text fits are emitted verbatim.
        max_sections (int): Maximum number of sections emitted, in original
            order. Non-blank text before the first heading forms its own
            section and counts toward this limit.

    Returns:
        str: Sections joined by blank lines, followed by a
            ``"<n> more sections omitted"`` line when sections were dropped.
    """
    if not content.strip():
        return content

    sections = _split_sections(content)
    kept = sections[:max_sections]
    parts = [_render_section(heading, body, preview_chars_per_section) for heading, body in kept]

    omitted = len(sections) - len(kept)
    if omitted > 0:
        parts.append(f"{omitted} more sections omitted")

    return _SECTION_SEPARATOR.join(parts)


def escape_xml_attr(value: str) -> str:
    """Escape *value* for use inside a double-quoted XML attribute."""
    for raw, escaped in _XML_ATTR_ESCAPES:
        value = value.replace(raw, escaped)
    return value
