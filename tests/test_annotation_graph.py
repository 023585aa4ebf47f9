"""Tests for the annotation graph model."""
from __future__ import annotations

import pytest

from conftest import COVERAGE, PART_OF, build_corpus_graph, SAMPLE_SEGMENTS
from rem_core.errors import GraphStoreError
from rem_graph.annotation_graph import (
    AnnotationGraph,
    Component,
    ComponentType,
    DEFAULT_ORDERING_COMPONENT,
    GraphAnnoKey,
    LAYER_KEY,
    NODE_NAME_KEY,
    NODE_TYPE_KEY,
)


class TestKeysAndComponents:
    def test_anno_key_parse(self):
        assert GraphAnnoKey.parse("annis::node_name") == NODE_NAME_KEY
        assert GraphAnnoKey.parse("tok") == GraphAnnoKey("", "tok")
        assert str(GraphAnnoKey("default_ns", "tok_anno")) == "default_ns::tok_anno"

    def test_component_label(self):
        component = Component.parse("Dominance/treebank/")
        assert component == Component(ComponentType.DOMINANCE, "treebank", "")
        assert str(component) == "Dominance/treebank/"

    def test_unknown_component_type(self):
        with pytest.raises(GraphStoreError):
            Component.parse("Sideways/annis/")

    def test_malformed_label(self):
        with pytest.raises(GraphStoreError):
            Component.parse("Dominance")


class TestNodes:
    def test_add_node_is_idempotent(self):
        graph = AnnotationGraph()
        first = graph.add_node("x", "corpus")
        assert graph.add_node("x") == first
        assert graph.node_count() == 1
        assert graph.get_anno(first, NODE_TYPE_KEY) == "corpus"

    def test_rename_through_node_name(self):
        graph = AnnotationGraph()
        node_id = graph.add_node("x/doc1#n1")
        graph.set_anno(node_id, NODE_NAME_KEY, "y/doc1#n1")
        assert graph.node_id("y/doc1#n1") == node_id
        assert not graph.has_node("x/doc1#n1")

    def test_rename_to_existing_name_fails(self):
        graph = AnnotationGraph()
        node_id = graph.add_node("a")
        graph.add_node("b")
        with pytest.raises(GraphStoreError, match="already exists"):
            graph.set_anno(node_id, NODE_NAME_KEY, "b")

    def test_nodes_with_anno_value(self):
        graph = AnnotationGraph()
        a = graph.add_node("a")
        graph.add_node("b")
        graph.set_anno(a, LAYER_KEY, "treebank")
        assert graph.nodes_with_anno(LAYER_KEY) == [a]
        assert graph.nodes_with_anno(LAYER_KEY, "other") == []

    def test_require_unknown_node(self):
        with pytest.raises(GraphStoreError, match="node not found"):
            AnnotationGraph().require_node_id("missing")


class TestEdges:
    def test_edges_deduplicated_per_component(self):
        graph = AnnotationGraph()
        a, b = graph.add_node("a"), graph.add_node("b")
        graph.add_edge(a, b, COVERAGE)
        graph.add_edge(a, b, COVERAGE)
        graph.add_edge(a, b, PART_OF)
        assert graph.edge_count() == 2
        assert graph.edge_count(COVERAGE) == 1
        assert graph.components(ComponentType.COVERAGE) == [COVERAGE]

    def test_root_nodes_of_chain(self):
        graph = AnnotationGraph()
        a, b, c = (graph.add_node(n) for n in "abc")
        graph.add_edge(b, c, DEFAULT_ORDERING_COMPONENT)
        graph.add_edge(a, b, DEFAULT_ORDERING_COMPONENT)
        assert graph.root_nodes(DEFAULT_ORDERING_COMPONENT) == [a]

    def test_reachable_is_transitive(self):
        graph = AnnotationGraph()
        a, b, c = (graph.add_node(n) for n in "abc")
        graph.add_edge(a, b, PART_OF)
        graph.add_edge(b, c, PART_OF)
        assert graph.reachable(a, ComponentType.PART_OF) == [b, c]
        assert graph.reachable(c, ComponentType.PART_OF, reverse=True) == [b, a]
        assert graph.reachable(c, ComponentType.PART_OF) == []


class TestDocumentGraph:
    def test_document_view_holds_document_nodes_only(self):
        graph = build_corpus_graph({"doc1": SAMPLE_SEGMENTS, "doc2": SAMPLE_SEGMENTS})
        view = graph.document_graph("x/doc1")

        assert view.has_node("x/doc1")
        assert view.has_node("x/doc1#text1")
        assert view.has_node("x/doc1#t2")
        assert view.has_node("x/doc1#s1")
        assert not view.has_node("x")
        assert not view.has_node("x/doc2#t1")
        assert view.has_component(DEFAULT_ORDERING_COMPONENT)
        assert view.edge_count(DEFAULT_ORDERING_COMPONENT) == 1

    def test_to_dict(self):
        graph = build_corpus_graph({"doc1": SAMPLE_SEGMENTS})
        summary = graph.to_dict()
        assert summary["nodes"] == graph.node_count()
        assert "Ordering/annis/" in summary["components"]
