"""Tests for the output archive."""
from __future__ import annotations

import zipfile

import pytest
import tomlkit

from rem_graph.storage import CorpusStorage
from rem_io.archive import CorpusWriter


class TestCorpusWriter:
    def test_finish_moves_archive_to_output(self, corpus_zip, tmp_path):
        output = tmp_path / "out" / "merged.zip"
        output.parent.mkdir()

        with CorpusStorage() as storage, CorpusWriter(output) as writer:
            storage.import_all_from_zip(corpus_zip)
            writer.write_corpus(storage, "x", "x_tb", tomlkit.parse("[context]\ndefault = 3\n"))
            assert not storage.is_loaded("x")
            assert not output.exists()
            writer.finish()

        assert writer.corpus_count == 1
        with zipfile.ZipFile(output) as archive:
            assert sorted(archive.namelist()) == ["x_tb.graphml", "x_tb/notes.txt"]
            assert b"default = 3" in archive.read("x_tb.graphml")
        assert list(output.parent.iterdir()) == [output]

    def test_unfinished_writer_leaves_nothing(self, corpus_zip, tmp_path):
        output = tmp_path / "merged.zip"
        with pytest.raises(RuntimeError):
            with CorpusStorage() as storage, CorpusWriter(output) as writer:
                storage.import_all_from_zip(corpus_zip)
                writer.write_corpus(storage, "x")
                raise RuntimeError("abort")

        assert not output.exists()
        assert not [p for p in tmp_path.iterdir() if p.name.startswith(".merged.zip")]

    def test_closed_writer_rejects_corpus(self, tmp_path):
        writer = CorpusWriter(tmp_path / "merged.zip")
        writer.finish()
        with pytest.raises(ValueError):
            writer.write_corpus(None, "x")
