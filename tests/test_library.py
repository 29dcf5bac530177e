# Copyright (c) 2026 Heureum AI. All rights reserved.

"""Tests for turn-to-library compaction and library promotion."""

from context_engine.schemas.prompt_context import PromptLayerId, Segment
from context_engine.services.compaction.library import (
    build_library_text,
    compact_l3_for_l2,
    compact_xml_block,
    get_l2_refetch_instruction,
    promote_to_library,
)
from context_engine.services.compaction.registry import ContextSourceType


class TestCompactL3ForL2:
    """Tests for compact_l3_for_l2."""

    def test_small_content_verbatim(self, small_config):
        """Verify content within the threshold is returned as-is."""
        assert compact_l3_for_l2("tiny", "notes/a.md", ContextSourceType.NOTE, small_config) == "tiny"

    def test_large_content_enveloped(self, small_config):
        """Verify large content becomes a prior_context envelope."""
        content = "# Title\n" + "Body text goes here. " * 20
        result = compact_l3_for_l2(content, "notes/a.md", ContextSourceType.NOTE, small_config)
        assert result.startswith('<prior_context source="notes/a.md" type="note">\n# Title\n')
        assert result.endswith("\n</prior_context>")
        assert len(result) < len(content)

    def test_string_source_type(self, small_config):
        """Verify a plain string type is accepted."""
        result = compact_l3_for_l2("u " * 100, "https://e.com", "url", small_config)
        assert result.startswith('<prior_context source="https://e.com" type="url">')

    def test_source_escaped(self, small_config):
        """Verify the source attribute is escaped."""
        result = compact_l3_for_l2("v " * 100, 'a"b<c>', ContextSourceType.NOTE, small_config)
        assert 'source="a&quot;b&lt;c&gt;"' in result


class TestCompactXmlBlock:
    """Tests for compact_xml_block."""

    def test_note_block(self, note_block, small_config):
        """Verify a large note block is compacted with its path as source."""
        result = compact_xml_block(note_block(), "note_context", small_config)
        assert result.startswith('<prior_context source="notes/alpha.md" type="note">\n# Alpha\n')
        assert "## Details" in result

    def test_small_block_verbatim(self, small_config):
        """Verify a block within the threshold is returned as-is."""
        block = "<note_context><path>a.md</path><content>hi</content></note_context>"
        assert compact_xml_block(block, "note_context", small_config) == block

    def test_selected_text_never_compacted(self, small_config):
        """Verify non-recoverable blocks are returned as-is."""
        block = "<selected_text>" + "A" * 1000 + "</selected_text>"
        assert compact_xml_block(block, "selected_text", small_config) == block

    def test_unknown_block_never_compacted(self, small_config):
        """Verify unregistered tags are treated as non-recoverable."""
        block = "<mystery_block>" + "A" * 1000 + "</mystery_block>"
        assert compact_xml_block(block, "mystery_block", small_config) == block

    def test_default_config(self, note_block):
        """Verify the default 5000-char threshold applies when no config is given."""
        block = note_block()
        assert len(block) < 5_000
        assert compact_xml_block(block, "note_context") == block


class TestRefetchInstruction:
    """Tests for the library refetch instruction."""

    def test_instruction(self):
        """Verify the instruction names the preview tags and re-fetch routes."""
        instruction = get_l2_refetch_instruction()
        assert instruction.startswith("<prior_context_note>")
        assert instruction.endswith("</prior_context_note>")
        assert "[[note title]]" in instruction


# ---------------------------------------------------------------------------
# Promotion
# ---------------------------------------------------------------------------


class TestPromoteToLibrary:
    """Tests for promote_to_library / build_library_text."""

    def _turn(self, make_layer, make_envelope, segments):
        return make_envelope([make_layer(PromptLayerId.L3_TURN, segments=segments)])

    def test_promotion(self, make_layer, make_envelope, note_block, small_config):
        """Verify segments are compacted, deduplicated and selections dropped."""
        first = self._turn(
            make_layer,
            make_envelope,
            [
                Segment(id="note:notes/alpha.md", content=note_block()),
                Segment(id="selection", content="<selected_text>" + "s" * 500 + "</selected_text>"),
                Segment(id="free", content="Plain free-form context " * 10),
            ],
        )
        second = self._turn(
            make_layer,
            make_envelope,
            [
                Segment(id="note:notes/alpha.md", content=note_block(repeat=40)),
                Segment(id="note:notes/b.md", content="<note_context><path>b.md</path></note_context>"),
            ],
        )

        library = promote_to_library([first, second], small_config)

        assert [segment.id for segment in library] == [
            "note:notes/alpha.md",
            "free",
            "note:notes/b.md",
        ]
        assert library[0].content.startswith('<prior_context source="notes/alpha.md"')
        assert "Alpha body sentence. Alpha body sentence...." in library[0].content
        assert library[1].content == "Plain free-form context " * 10
        assert library[2].content == "<note_context><path>b.md</path></note_context>"

    def test_turns_without_l3(self, make_layer, make_envelope):
        """Verify envelopes without a turn layer contribute nothing."""
        envelope = make_envelope([make_layer(PromptLayerId.L5_USER, text="hi")])
        assert promote_to_library([envelope]) == []

    def test_library_text_with_instruction(self, make_layer, make_envelope, note_block, small_config):
        """Verify the refetch instruction is appended exactly once."""
        turn = self._turn(
            make_layer,
            make_envelope,
            [
                Segment(id="a", content=note_block(path="a.md")),
                Segment(id="b", content=note_block(path="b.md")),
            ],
        )
        text = build_library_text(promote_to_library([turn], small_config))
        assert text.count("<prior_context ") == 2
        assert text.count("<prior_context_note>") == 1
        assert text.endswith(get_l2_refetch_instruction())

    def test_library_text_without_envelopes(self):
        """Verify no instruction is added when nothing was compacted."""
        segments = [Segment(id="a", content="one"), Segment(id="b", content="two")]
        assert build_library_text(segments) == "one\n\ntwo"

    def test_empty_library(self):
        """Verify an empty library renders as empty text."""
        assert build_library_text([]) == ""
