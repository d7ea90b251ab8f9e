"""Tests for the sentence-bounded chunker."""

import re

import pytest

from pitchrag.application.ports.chunking_port import ChunkingError
from pitchrag.domain.text_cleaning import sanitize_text
from pitchrag.infrastructure.chunkers.sentence_chunker_adapter import SentenceChunkerAdapter, split_into_chunks


class TestSplitIntoChunks:
    """Test cases for split_into_chunks."""

    def test_long_sentence_is_force_split_then_carried(self):
        text = "A" * 500 + ". " + "B" * 500 + "."
        assert split_into_chunks(text, 100) == ["A" * 100, "A" * 400, "B" * 500]

    def test_sentences_join_with_period_space(self):
        text = "First sentence. Second sentence! Third?"
        assert split_into_chunks(text, 1000) == ["First sentence. Second sentence. Third"]

    def test_flushes_when_next_sentence_does_not_fit(self):
        assert split_into_chunks("One. Two. Three.", 8) == ["One. Two", "Three"]

    def test_repeated_terminators_are_one_boundary(self):
        assert split_into_chunks("Wow!!! Really?! Yes...", 1000) == ["Wow. Really. Yes"]

    def test_text_without_terminators_is_split_by_length(self):
        text = "x" * 250
        assert split_into_chunks(text, 100) == ["x" * 100, "x" * 150]

    def test_first_forced_slice_is_exactly_max_size(self):
        chunks = split_into_chunks("y" * 37, 10)
        assert len(chunks[0]) == 10

    def test_short_fragment_is_not_sliced(self):
        chunks = split_into_chunks("short", 10)
        assert chunks == ["short"]

    @pytest.mark.parametrize("text", ["", "   \n\t", "...", "?!."])
    def test_no_content_gives_no_chunks(self, text):
        assert split_into_chunks(text, 100) == []

    @pytest.mark.parametrize("size", [0, -5])
    def test_non_positive_size_is_rejected(self, size):
        with pytest.raises(ChunkingError):
            split_into_chunks("Some text.", size)

    def test_chunks_are_sanitized(self):
        chunks = split_into_chunks("Bad\x01bytes\x00 here.  And\n\nmore.", 1000)
        assert chunks == ["Bad bytes here. And more"]
        assert all(c == sanitize_text(c) for c in chunks)

    def test_chunks_cover_all_content(self):
        text = (
            "We are building payments infrastructure. Our ARR is growing fast! "
            "Would you invest? The team has deep fintech experience. " * 12
        )
        chunks = split_into_chunks(text, 120)
        strip = re.compile(r"[\s.!?]")
        assert strip.sub("", "".join(chunks)) == strip.sub("", sanitize_text(text))


class TestSentenceChunkerAdapter:
    """Test cases for the chunking port adapter."""

    def test_delegates_to_split_into_chunks(self):
        adapter = SentenceChunkerAdapter()
        text = "Market is large. Competition is weak."
        assert adapter.chunk_text(text, 20) == split_into_chunks(text, 20)

    def test_whitespace_only_text(self):
        assert SentenceChunkerAdapter().chunk_text("   ", 100) == []

    def test_invalid_size_raises_even_for_empty_text(self):
        with pytest.raises(ChunkingError):
            SentenceChunkerAdapter().chunk_text("", 0)
