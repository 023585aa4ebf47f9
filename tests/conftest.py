"""Shared builders for annotation graphs, corpus archives and treebank files."""
from __future__ import annotations

import zipfile
from pathlib import Path
from typing import Dict, List, Optional

import pytest

from rem_core.config_runtime import ANNOTATION_NS, DEFAULT_NS, TOK_ANNO
from rem_graph.annotation_graph import (
    AnnotationGraph,
    Component,
    ComponentType,
    DEFAULT_ORDERING_COMPONENT,
    DOC_KEY,
    GraphAnnoKey,
    TOK_KEY,
)
from rem_io.graphml_io import GraphMLWriter

PART_OF = Component(ComponentType.PART_OF, "annis", "")
COVERAGE = Component(ComponentType.COVERAGE, DEFAULT_NS, "")
SEGMENTATION_KEY = GraphAnnoKey(DEFAULT_NS, TOK_ANNO)

TTL_PREFIXES = """\
@prefix nif: <http://persistence.uni-leipzig.org/nlp2rdf/ontologies/nif-core#> .
@prefix conll: <http://ufal.mff.cuni.cz/conll2009-st/task-description.html#> .
@prefix powla: <http://purl.org/powla/powla.owl#> .
@prefix xsd: <http://www.w3.org/2001/XMLSchema#> .
@prefix : <http://example.org/rem/doc1/> .
"""

SAMPLE_TTL = TTL_PREFIXES + """
:s1 a nif:Sentence .
:w1 a nif:Word ; conll:HEAD :s1 ; conll:LEMMA "sîn" ; conll:POS "VAFIN" ; nif:nextWord :w2 .
:w2 a nif:Word ; conll:HEAD :s1 ; conll:LEMMA "man" ; conll:POS "NA" .
:p1 conll:CAT "NP" .
:w1 powla:hasParent :p1 .
:w2 powla:hasParent :p1 .
:p1 powla:hasParent :r1 .
"""

SAMPLE_SEGMENTS = [
    {"lemma": "sîn", "pos": "VAFIN"},
    {"lemma": "man", "pos": "NA"},
]

SAMPLE_CONFIG = """\
[context]
default = 5

[[visualizers]]
element = "node"
layer = "default_ns"
vis_type = "grid"
display_name = "grid"
"""


def add_document(
    graph: AnnotationGraph,
    corpus: str,
    doc: str,
    segments: List[Dict[str, str]],
) -> str:
    """Add a document with one token and one segmentation node per entry.

    Returns the document node name. Tokens are `<doc>#t<i>`, segmentation
    nodes `<doc>#s<i>`, the datasource `<doc>#text1`.
    """
    corpus_id = graph.add_node(corpus, "corpus")
    doc_name = f"{corpus}/{doc}"
    doc_id = graph.add_node(doc_name, "corpus")
    graph.set_anno(doc_id, DOC_KEY, doc)
    graph.add_edge(doc_id, corpus_id, PART_OF)

    datasource_id = graph.add_node(f"{doc_name}#text1", "datasource")
    graph.add_edge(datasource_id, doc_id, PART_OF)

    previous: Optional[int] = None
    for index, annos in enumerate(segments, start=1):
        token_id = graph.add_node(f"{doc_name}#t{index}")
        graph.set_anno(token_id, TOK_KEY, f"tok{index}")
        graph.add_edge(token_id, datasource_id, PART_OF)

        segment_id = graph.add_node(f"{doc_name}#s{index}")
        graph.set_anno(segment_id, SEGMENTATION_KEY, f"seg{index}")
        for name, value in annos.items():
            graph.set_anno(segment_id, GraphAnnoKey(ANNOTATION_NS, name), value)
        graph.add_edge(segment_id, datasource_id, PART_OF)
        graph.add_edge(segment_id, token_id, COVERAGE)

        if previous is not None:
            graph.add_edge(previous, token_id, DEFAULT_ORDERING_COMPONENT)
        previous = token_id

    return doc_name


def build_corpus_graph(
    documents: Dict[str, List[Dict[str, str]]],
    corpus: str = "x",
) -> AnnotationGraph:
    """Build a corpus graph with the given documents."""
    graph = AnnotationGraph()
    for doc, segments in documents.items():
        add_document(graph, corpus, doc, segments)
    return graph


def write_corpus_zip(
    path: Path,
    corpora: Dict[str, AnnotationGraph],
    config: Optional[str] = SAMPLE_CONFIG,
    linked_files: Optional[Dict[str, str]] = None,
) -> Path:
    """Write a zip with one GraphML file per corpus and optional linked files."""
    writer = GraphMLWriter()
    with zipfile.ZipFile(path, "w") as archive:
        for name, graph in corpora.items():
            archive.writestr(f"{name}.graphml", writer.write_bytes(graph, config))
        for member, content in (linked_files or {}).items():
            archive.writestr(member, content)
    return path


@pytest.fixture
def sample_graph() -> AnnotationGraph:
    """Corpus `x` with document `doc1` matching SAMPLE_TTL."""
    return build_corpus_graph({"doc1": SAMPLE_SEGMENTS})


@pytest.fixture
def corpus_zip(tmp_path: Path, sample_graph: AnnotationGraph) -> Path:
    """Input archive with corpus `x` and one linked file."""
    return write_corpus_zip(
        tmp_path / "rem.zip",
        {"x": sample_graph},
        linked_files={"x/notes.txt": "linked"},
    )


@pytest.fixture
def ttl_dir(tmp_path: Path) -> Path:
    """Treebank directory with the Turtle file of `doc1`."""
    directory = tmp_path / "ttl"
    directory.mkdir()
    (directory / "doc1_treebank.ttl").write_text(SAMPLE_TTL, encoding="utf-8")
    return directory
