"""Tests for treebank Turtle reading and document binding."""
from __future__ import annotations

import logging

import pytest

from conftest import SAMPLE_TTL, TTL_PREFIXES
from rem_core.errors import BindingError, TreebankFormatError
from rem_core.models import AnnoKey, NodeType
from rem_io.turtle_io import TreebankStorage, read_treebank_file

IRI = "http://example.org/rem/doc1/"


def write_ttl(directory, name, content):
    path = directory / name
    path.write_text(content, encoding="utf-8")
    return path


class TestReadTreebankFile:
    def test_reads_types_links_and_annos(self, tmp_path):
        document = read_treebank_file(write_ttl(tmp_path, "doc1_tb.ttl", SAMPLE_TTL))

        w1 = document.node(IRI + "w1")
        assert w1.node_type is NodeType.WORD
        assert w1.next == IRI + "w2"
        assert w1.sentence == IRI + "s1"
        assert w1.anno(AnnoKey.LEMMA) == "sîn"
        assert document.node(IRI + "s1").is_sentence
        assert document.node(IRI + "p1").anno(AnnoKey.CAT) == "NP"
        assert document.node(IRI + "r1").node_type is None

        assert [(e.child, e.parent) for e in document.edges] == [
            (IRI + "p1", IRI + "r1"),
            (IRI + "w1", IRI + "p1"),
            (IRI + "w2", IRI + "p1"),
        ]

    def test_sentence_successor(self, tmp_path):
        content = TTL_PREFIXES + ":s1 a nif:Sentence ; nif:nextSentence :s2 .\n:s2 a nif:Sentence .\n"
        document = read_treebank_file(write_ttl(tmp_path, "doc1_tb.ttl", content))
        assert document.node(IRI + "s1").next == IRI + "s2"

    def test_syntax_error_is_skipped(self, tmp_path, caplog):
        path = write_ttl(tmp_path, "doc1_tb.ttl", TTL_PREFIXES + ":w1 a .\n")
        with caplog.at_level(logging.WARNING):
            assert read_treebank_file(path) is None
        assert "could not be parsed" in caplog.text

    def test_invalid_utf8_is_skipped(self, tmp_path, caplog):
        path = tmp_path / "doc1_tb.ttl"
        path.write_bytes(
            SAMPLE_TTL.encode("utf-8") + b':w3 conll:LEMMA "\xff\xfe" .\n'
        )
        with caplog.at_level(logging.WARNING):
            assert read_treebank_file(path) is None
        assert "could not be parsed" in caplog.text

    def test_blank_node_subject_is_fatal(self, tmp_path):
        path = write_ttl(tmp_path, "doc1_tb.ttl", TTL_PREFIXES + "[] a nif:Word .\n")
        with pytest.raises(TreebankFormatError, match="not a named node"):
            read_treebank_file(path)

    def test_literal_parent_is_fatal(self, tmp_path):
        path = write_ttl(tmp_path, "doc1_tb.ttl", TTL_PREFIXES + ':w1 powla:hasParent "p1" .\n')
        with pytest.raises(TreebankFormatError, match="not a named node"):
            read_treebank_file(path)

    @pytest.mark.parametrize("literal", ['"5"^^xsd:integer', '"man"@de', ":man"])
    def test_non_simple_literal_is_fatal(self, tmp_path, literal):
        path = write_ttl(tmp_path, "doc1_tb.ttl", TTL_PREFIXES + f":w1 conll:LEMMA {literal} .\n")
        with pytest.raises(TreebankFormatError, match="not a simple literal"):
            read_treebank_file(path)

    def test_string_typed_literal_accepted(self, tmp_path):
        path = write_ttl(tmp_path, "doc1_tb.ttl", TTL_PREFIXES + ':w1 conll:LEMMA "man"^^xsd:string .\n')
        assert read_treebank_file(path).node(IRI + "w1").anno(AnnoKey.LEMMA) == "man"


class TestTreebankStorage:
    def test_binds_by_stem_prefix(self, ttl_dir):
        write_ttl(ttl_dir, "doc10_treebank.ttl", SAMPLE_TTL)
        write_ttl(ttl_dir, "doc1_notes.txt", "")
        storage = TreebankStorage(ttl_dir)
        assert storage.file_for_name("doc1") == ttl_dir / "doc1_treebank.ttl"
        assert storage.document_for_name("doc1").to_dict()["words"] == 2

    def test_ambiguous_binding_is_fatal(self, ttl_dir):
        write_ttl(ttl_dir, "doc1_second.ttl", SAMPLE_TTL)
        with pytest.raises(BindingError, match="not unique"):
            TreebankStorage(ttl_dir).document_for_name("doc1")

    def test_missing_file_is_skipped(self, ttl_dir, caplog):
        with caplog.at_level(logging.WARNING):
            assert TreebankStorage(ttl_dir).document_for_name("doc2") is None
        assert "not found" in caplog.text
