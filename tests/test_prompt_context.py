# Copyright (c) 2026 Heureum AI. All rights reserved.

"""Tests for PromptContextEngine envelope building."""

import hashlib

from context_engine.schemas.prompt_context import PROMPT_LAYER_ORDER, PromptLayerId, Segment
from context_engine.services.layer_converter import LayerToMessagesConverter
from context_engine.services.prompt_context import PromptContextEngine, hash_text


def _sha256(text: str) -> str:
    return hashlib.sha256(text.encode("utf-8")).hexdigest()


class TestBuildEnvelope:
    """Tests for PromptContextEngine.build_envelope."""

    def test_layers_in_order(self):
        """Verify all five layers are present in fixed order."""
        envelope = PromptContextEngine.build_envelope({PromptLayerId.L5_USER: [Segment(content="hi")]})
        assert [layer.id for layer in envelope.layers] == PROMPT_LAYER_ORDER
        assert envelope.get_layer(PromptLayerId.L1_SYSTEM).label == "System & Policies"
        assert envelope.get_layer(PromptLayerId.L2_PREVIOUS).label == "Context Library"

    def test_layer_text_and_segment_ids(self):
        """Verify segments are trimmed, joined and given default ids."""
        envelope = PromptContextEngine.build_envelope(
            {
                PromptLayerId.L3_TURN: [
                    Segment(id="note:a.md", content="  first\n"),
                    Segment(content="second"),
                    Segment(content="   "),
                ],
            }
        )
        l3_turn = envelope.get_layer(PromptLayerId.L3_TURN)
        assert l3_turn.text == "first\n\nsecond"
        assert [segment.id for segment in l3_turn.segments] == [
            "note:a.md",
            "L3_TURN-segment-1",
            "L3_TURN-segment-2",
        ]

    def test_string_layer_keys(self):
        """Verify layer ids may be given as plain strings."""
        envelope = PromptContextEngine.build_envelope({"L1_SYSTEM": [Segment(content="sys")]})
        assert envelope.get_layer(PromptLayerId.L1_SYSTEM).text == "sys"

    def test_hashes(self):
        """Verify per-layer and combined SHA-256 hashes."""
        envelope = PromptContextEngine.build_envelope(
            {
                PromptLayerId.L1_SYSTEM: [Segment(content="sys")],
                PromptLayerId.L5_USER: [Segment(content="q")],
            },
            conversation_id="conv",
            message_id="msg",
        )
        assert envelope.serialized_text == "sys\n\nq"
        assert envelope.combined_hash == _sha256("sys\n\nq")
        assert envelope.layer_hashes["L1_SYSTEM"] == _sha256("sys")
        assert envelope.layer_hashes["L2_PREVIOUS"] == _sha256("")
        assert envelope.get_layer(PromptLayerId.L5_USER).hash == hash_text("q")
        assert (envelope.conversation_id, envelope.message_id) == ("conv", "msg")
        assert envelope.version == 1

    def test_hash_stable_across_builds(self):
        """Verify identical input yields identical hashes."""
        segments = {PromptLayerId.L1_SYSTEM: [Segment(content="sys")]}
        first = PromptContextEngine.build_envelope(segments)
        second = PromptContextEngine.build_envelope(segments)
        assert first.layer_hashes == second.layer_hashes
        assert first.combined_hash == second.combined_hash

    def test_stability(self):
        """Verify a layer is stable only when every segment is."""
        envelope = PromptContextEngine.build_envelope(
            {
                PromptLayerId.L1_SYSTEM: [Segment(content="sys")],
                PromptLayerId.L3_TURN: [Segment(content="a"), Segment(content="b", stable=False)],
            }
        )
        assert envelope.get_layer(PromptLayerId.L1_SYSTEM).stable is True
        assert envelope.get_layer(PromptLayerId.L3_TURN).stable is False

    def test_nul_warning(self):
        """Verify NUL characters are reported."""
        envelope = PromptContextEngine.build_envelope({PromptLayerId.L5_USER: [Segment(content="a\x00b")]})
        assert envelope.warnings == ["L5_USER contains NUL characters"]

    def test_converts_to_messages(self):
        """Verify a built envelope flattens into provider messages."""
        envelope = PromptContextEngine.build_envelope(
            {
                PromptLayerId.L1_SYSTEM: [Segment(content="sys")],
                PromptLayerId.L5_USER: [Segment(content="q")],
            }
        )
        messages = LayerToMessagesConverter.convert(envelope)
        assert [(message.role, message.content) for message in messages] == [("system", "sys"), ("user", "q")]
