"""Tests for the local upload store."""

import re

import pytest

from pitchrag.infrastructure.files.local_file_store import LocalFileStore, make_stored_filename


class TestMakeStoredFilename:
    def test_unsafe_characters_are_replaced(self):
        assert make_stored_filename("Q3 deck (final)!.pdf", timestamp_ms=1700000000000) == \
            "1700000000000-Q3_deck__final__.pdf"

    def test_safe_characters_are_kept(self):
        assert make_stored_filename("model-v2.xlsx", timestamp_ms=1) == "1-model-v2.xlsx"

    def test_path_separators_cannot_escape(self):
        assert "/" not in make_stored_filename("../../etc/passwd", timestamp_ms=1)


class TestLocalFileStore:
    def test_save_read_delete(self, tmp_path):
        store = LocalFileStore(tmp_path)
        stored_name = store.save(b"pitch bytes", "my deck.pdf")

        assert re.fullmatch(r"\d+-my_deck\.pdf", stored_name)
        assert store.read(stored_name) == b"pitch bytes"

        store.delete(stored_name)
        assert not (tmp_path / stored_name).exists()

    def test_deleting_missing_file_is_not_an_error(self, tmp_path):
        LocalFileStore(tmp_path).delete("123-never-existed.txt")

    def test_creates_upload_directory(self, tmp_path):
        store = LocalFileStore(tmp_path / "nested" / "uploads")
        stored_name = store.save(b"x", "a.txt")
        assert (tmp_path / "nested" / "uploads" / stored_name).exists()

    def test_rejects_names_with_separators(self, tmp_path):
        with pytest.raises(ValueError):
            LocalFileStore(tmp_path).read("../outside.txt")
