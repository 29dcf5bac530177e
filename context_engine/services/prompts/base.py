# Copyright (c) 2026 Heureum AI. All rights reserved.

"""
Fixed prompt fragments shared by the compactors and the message assembler.

Several of these strings are contracts with other components:
  - READ_NOTE_RESULT_PREFIX is emitted by the tool-formatting layer when it
    writes a readNote result into the assistant turn. Marker matching in
    chat_history.py must change together with it.
  - The prior_context / prior_context_note tags are what the system prompt
    teaches the model to recognise as previews.
"""

READ_NOTE_RESULT_PREFIX = "Tool 'readNote' result: "
COMPACTED_NOTE_PREFIX = "[COMPACTED - use readNote to get full content]\n\n"
WAS_COMPACTED_KEY = "wasCompacted"

PRIOR_CONTEXT_TEMPLATE = '<prior_context source="{source}" type="{source_type}">\n{body}\n</prior_context>'
PRIOR_CONTEXT_OPEN = "<prior_context "

LOCAL_SEARCH_SUMMARY = "[{count} search results - use localSearch to re-query]"

L2_REFETCH_INSTRUCTION = """<prior_context_note>
The above prior_context blocks contain previews of content from earlier turns.
To access full content: use [[note title]] for notes, or ask to read a specific URL/video.
</prior_context_note>"""

CONTEXT_LIBRARY_HEADING = "## Context Library"
CONTEXT_REFERENCE_HEADER = "[Context attached to this message - Find them in the Context Library]"
USER_QUERY_SEPARATOR = "\n\n---\n\n[User query]:\n"
