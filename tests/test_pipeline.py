"""End-to-end tests of a merge run."""
from __future__ import annotations

import zipfile

import pytest

from conftest import SAMPLE_SEGMENTS, SAMPLE_TTL, build_corpus_graph, write_corpus_zip
from rem_core.config_runtime import MergeConfig
from rem_core.errors import GraphStoreError, SanityCheckError
from rem_graph.annotation_graph import Component, ComponentType, GraphAnnoKey, LAYER_KEY
from rem_io.graphml_io import GraphMLReader
from rem_merge.pipeline import TreebankMerger, document_name, run_merge

DOMINANCE = Component(ComponentType.DOMINANCE, "treebank", "")
PART_OF = Component(ComponentType.PART_OF, "annis", "")


def read_output(path, corpus_name):
    with zipfile.ZipFile(path) as archive:
        members = sorted(archive.namelist())
        corpus = GraphMLReader().read_string(archive.read(f"{corpus_name}.graphml"))
    return members, corpus


class TestDocumentName:
    def test_part_after_first_separator(self):
        assert document_name("x/doc1") == "doc1"
        assert document_name("x/sub/doc1") == "sub/doc1"

    def test_name_without_separator(self):
        with pytest.raises(GraphStoreError):
            document_name("doc1")


class TestTreebankMerger:
    def test_merged_corpus_written(self, corpus_zip, ttl_dir, tmp_path):
        output = tmp_path / "merged.zip"
        config = MergeConfig(input_annis=corpus_zip, input_ttl=ttl_dir, output=output)

        report = TreebankMerger(config).run()

        assert report.corpora == ["x"]
        assert report.documents[0].aligned_words == 2
        assert report.documents[0].closure.merged_edges == 2

        members, corpus = read_output(output, "x")
        assert members == ["x.graphml", "x/notes.txt"]

        graph = corpus.graph
        p1 = graph.require_node_id("x/doc1#p1")
        assert graph.get_anno(p1, LAYER_KEY) == "treebank"
        assert graph.get_anno(p1, GraphAnnoKey("treebank", "tree")) == "NP"
        for segment in ("x/doc1#s1", "x/doc1#s2"):
            assert graph.has_edge(p1, graph.require_node_id(segment), DOMINANCE)
        assert graph.has_edge(p1, graph.require_node_id("x/doc1#text1"), PART_OF)
        assert not graph.has_node("x/doc1#r1")

        assert "vis_type = \"tree\"" in corpus.config
        assert "vis_type = \"grid\"" in corpus.config

    def test_rename_and_iri_annotation(self, corpus_zip, ttl_dir, tmp_path):
        output = tmp_path / "merged.zip"
        config = MergeConfig(
            input_annis=corpus_zip, input_ttl=ttl_dir, output=output,
            rename="%c_tb", iri_anno="iri",
        )

        report = run_merge(config)

        assert report.corpora == ["x_tb"]
        members, corpus = read_output(output, "x_tb")
        assert members == ["x_tb.graphml", "x_tb/notes.txt"]
        graph = corpus.graph
        assert graph.has_node("x_tb")
        p1 = graph.require_node_id("x_tb/doc1#p1")
        assert graph.get_anno(p1, GraphAnnoKey("treebank", "iri")) == (
            "http://example.org/rem/doc1/p1"
        )
        s1 = graph.require_node_id("x_tb/doc1#s1")
        assert graph.get_anno(s1, GraphAnnoKey("treebank", "iri")) == (
            "http://example.org/rem/doc1/w1"
        )

    def test_default_output_beside_input(self, corpus_zip, ttl_dir):
        config = MergeConfig(input_annis=corpus_zip, input_ttl=ttl_dir, in_memory=True)
        TreebankMerger(config).run()
        assert corpus_zip.with_name("rem.out.zip").exists()

    def test_document_without_treebank_file_skipped(self, tmp_path, ttl_dir):
        graph = build_corpus_graph({"doc1": SAMPLE_SEGMENTS, "doc2": SAMPLE_SEGMENTS})
        corpus_zip = write_corpus_zip(tmp_path / "rem.zip", {"x": graph})
        config = MergeConfig(input_annis=corpus_zip, input_ttl=ttl_dir)

        report = TreebankMerger(config).run()

        assert report.skipped_documents == ["x/doc2"]
        assert [d.doc_name for d in report.documents] == ["doc1"]
        _, corpus = read_output(config.output, "x")
        assert corpus.graph.has_node("x/doc1#p1")
        assert not corpus.graph.has_node("x/doc2#p1")

    def test_unparseable_treebank_file_skipped(self, corpus_zip, tmp_path):
        ttl_dir = tmp_path / "broken"
        ttl_dir.mkdir()
        (ttl_dir / "doc1_treebank.ttl").write_text(":w1 a .\n", encoding="utf-8")
        config = MergeConfig(input_annis=corpus_zip, input_ttl=ttl_dir)

        report = TreebankMerger(config).run()

        assert report.skipped_documents == ["x/doc1"]
        assert config.output.exists()

    def test_undecodable_treebank_file_skipped(self, corpus_zip, tmp_path):
        ttl_dir = tmp_path / "undecodable"
        ttl_dir.mkdir()
        (ttl_dir / "doc1_treebank.ttl").write_bytes(
            SAMPLE_TTL.encode("utf-8") + b':w3 conll:LEMMA "\xff\xfe" .\n'
        )
        config = MergeConfig(input_annis=corpus_zip, input_ttl=ttl_dir)

        report = TreebankMerger(config).run()

        assert report.skipped_documents == ["x/doc1"]
        assert report.documents == []
        assert config.output.exists()

    def test_fatal_error_leaves_no_output(self, corpus_zip, tmp_path):
        ttl_dir = tmp_path / "mismatch"
        ttl_dir.mkdir()
        (ttl_dir / "doc1_treebank.ttl").write_text(
            SAMPLE_TTL.replace('"man"', '"wîp"'), encoding="utf-8"
        )
        output = tmp_path / "merged.zip"
        config = MergeConfig(input_annis=corpus_zip, input_ttl=ttl_dir, output=output)

        with pytest.raises(SanityCheckError):
            TreebankMerger(config).run()

        assert not output.exists()
        assert sorted(p.name for p in tmp_path.iterdir()) == ["mismatch", "rem.zip"]

    def test_several_corpora(self, tmp_path, ttl_dir):
        corpus_zip = write_corpus_zip(tmp_path / "rem.zip", {
            "x": build_corpus_graph({"doc1": SAMPLE_SEGMENTS}, corpus="x"),
            "y": build_corpus_graph({"doc1": SAMPLE_SEGMENTS}, corpus="y"),
        })
        config = MergeConfig(input_annis=corpus_zip, input_ttl=ttl_dir)

        report = TreebankMerger(config).run()

        assert report.corpora == ["x", "y"]
        with zipfile.ZipFile(config.output) as archive:
            assert sorted(archive.namelist()) == ["x.graphml", "y.graphml"]
