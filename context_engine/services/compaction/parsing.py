# Copyright (c) 2026 Heureum AI. All rights reserved.

"""
Brace-balanced JSON extraction from free text.

Tool results embedded in chat history are JSON objects followed by more
prose, so ``json.loads`` cannot be pointed at "the rest of the string".
The object boundary is found with a single linear scan instead of a regex.
"""

from __future__ import annotations

from typing import NamedTuple, Optional


class BalancedJson(NamedTuple):
    """A JSON object located inside a larger string.

    Attributes:
        json (str): The object text, from ``{`` through the matching ``}``.
        end_pos (int): Index just past the closing brace.
    """

    json: str
    end_pos: int


def extract_balanced_json(content: str, start_pos: int) -> Optional[BalancedJson]:
    """Extract the brace-balanced JSON object starting at *start_pos*.

    Characters inside double-quoted strings are opaque; backslash escapes
    (including ``\\"``) are honoured.

    Args:
        content (str): Text containing the object.
        start_pos (int): Index of the opening ``{``.

    Returns:
        Optional[BalancedJson]: The object text and end offset, or ``None``
            when *start_pos* is not ``{`` or the braces never balance.
    """
    if start_pos < 0 or start_pos >= len(content) or content[start_pos] != "{":
        return None

    depth = 0
    in_string = False
    escaped = False

    for i in range(start_pos, len(content)):
        char = content[i]

        if escaped:
            escaped = False
            continue
        if char == "\\" and in_string:
            escaped = True
            continue
        if char == '"':
            in_string = not in_string
            continue
        if in_string:
            continue

        if char == "{":
            depth += 1
        elif char == "}":
            depth -= 1
            if depth == 0:
                return BalancedJson(content[start_pos : i + 1], i + 1)

    return None
