"""
REM IO Turtle - Treebank Turtle Reading

This module provides reading of the treebank edition in Turtle format
and the binding of Turtle files to ANNIS documents.

Supports:
- NIF sentence and word typing and successor links
- CoNLL annotation literals and word-to-sentence heads
- POWLA parent links as dominance edges
- Per-document file lookup by `<document-name>_` stem prefix
"""

from __future__ import annotations
import logging
from pathlib import Path
from typing import Dict, List, Optional, Union

from rdflib import Graph, Literal, URIRef
from rdflib.exceptions import ParserError
from rdflib.namespace import RDF, XSD, Namespace
from rdflib.plugins.parsers.notation3 import BadSyntax

from rem_core.errors import BindingError, TreebankFormatError
from rem_core.models import (
    AnnoKey, DominanceEdge, NodeType, TreebankDocument, TreebankNode, TreebankNodeName
)

logger = logging.getLogger(__name__)


CONLL = Namespace("http://ufal.mff.cuni.cz/conll2009-st/task-description.html#")
NIF = Namespace("http://persistence.uni-leipzig.org/nlp2rdf/ontologies/nif-core#")
POWLA = Namespace("http://purl.org/powla/powla.owl#")

TTL_SUFFIX = ".ttl"

TYPE_OBJECTS = {
    NIF.Sentence: NodeType.SENTENCE,
    NIF.Word: NodeType.WORD,
}

ANNO_PREDICATES = {
    CONLL.CAT: AnnoKey.CAT,
    CONLL.INFL: AnnoKey.INFL,
    CONLL.LEMMA: AnnoKey.LEMMA,
    CONLL.POS: AnnoKey.POS,
    CONLL.WORD: AnnoKey.WORD,
}


def _node_name(term, role: str) -> TreebankNodeName:
    if not isinstance(term, URIRef):
        raise TreebankFormatError(f"{role} {term} is not a named node")
    return TreebankNodeName(str(term))


def _simple_literal(term) -> str:
    if (
        not isinstance(term, Literal)
        or term.language is not None
        or term.datatype not in (None, XSD.string)
    ):
        raise TreebankFormatError(f"term {term} is not a simple literal")
    return str(term)


class TurtleTreebankReader:
    """Reader for treebank Turtle files"""

    def read_file(self, path: Union[str, Path]) -> Optional[TreebankDocument]:
        """Read a Turtle file, None if the file cannot be parsed"""
        path = Path(path)
        rdf_graph = Graph()

        try:
            rdf_graph.parse(str(path), format="turtle")
        except (BadSyntax, ParserError, UnicodeDecodeError) as e:
            logger.warning(f"ttl file could not be parsed: {path}: {e}")
            return None

        return self.read_graph(rdf_graph, source_path=str(path))

    def read_graph(self, rdf_graph: Graph, source_path: Optional[str] = None) -> TreebankDocument:
        """Build a treebank document from parsed triples"""
        node_types: Dict[TreebankNodeName, NodeType] = {}
        node_annos: Dict[TreebankNodeName, Dict[AnnoKey, str]] = {}
        next_sentence: Dict[TreebankNodeName, TreebankNodeName] = {}
        next_word: Dict[TreebankNodeName, TreebankNodeName] = {}
        word_to_sentence: Dict[TreebankNodeName, TreebankNodeName] = {}
        edges: List[DominanceEdge] = []

        links = {
            NIF.nextSentence: next_sentence,
            NIF.nextWord: next_word,
            CONLL.HEAD: word_to_sentence,
        }

        for subject, predicate, obj in rdf_graph:
            if predicate == RDF.type:
                node_type = TYPE_OBJECTS.get(obj)
                if node_type is not None:
                    node_types[_node_name(subject, "subject")] = node_type

            elif predicate in links:
                links[predicate][_node_name(subject, "subject")] = _node_name(obj, "term")

            elif predicate == POWLA.hasParent:
                edges.append(DominanceEdge(
                    child=_node_name(subject, "subject"),
                    parent=_node_name(obj, "term"),
                ))

            elif predicate in ANNO_PREDICATES:
                name = _node_name(subject, "subject")
                node_annos.setdefault(name, {})[ANNO_PREDICATES[predicate]] = _simple_literal(obj)

        nodes: Dict[TreebankNodeName, TreebankNode] = {}
        for name in set(node_types) | set(node_annos) | set(word_to_sentence):
            node_type = node_types.get(name)
            if node_type is NodeType.SENTENCE:
                successor = next_sentence.get(name)
            elif node_type is NodeType.WORD:
                successor = next_word.get(name)
            else:
                successor = next_word.get(name, next_sentence.get(name))

            nodes[name] = TreebankNode(
                name=name,
                node_type=node_type,
                annos=node_annos.get(name, {}),
                next=successor,
                sentence=word_to_sentence.get(name),
            )

        # graph iteration order is arbitrary
        edges.sort(key=lambda e: (e.child, e.parent))

        document = TreebankDocument(nodes, edges, source_path=source_path)
        logger.debug(f"Read treebank document {source_path}: {document.to_dict()}")
        return document


class TreebankStorage:
    """Directory of treebank Turtle files, one per document"""

    def __init__(self, directory: Union[str, Path]):
        self.directory = Path(directory)
        self.reader = TurtleTreebankReader()

    def file_for_name(self, doc_name: str) -> Optional[Path]:
        """Turtle file bound to a document, None if there is none"""
        prefix = f"{doc_name}_"
        doc_path: Optional[Path] = None

        for file_path in sorted(self.directory.iterdir()):
            if file_path.suffix != TTL_SUFFIX or not file_path.stem.startswith(prefix):
                continue

            logger.debug(f"Found ttl file for document {doc_name}: {file_path}")
            if doc_path is not None:
                raise BindingError(
                    f"ttl file path for document {doc_name} is not unique: "
                    f"found at least {doc_path}, {file_path}"
                )
            doc_path = file_path

        return doc_path

    def document_for_name(self, doc_name: str) -> Optional[TreebankDocument]:
        """Read the treebank document of a document name

        None if no file is bound to the document or the file cannot be
        parsed; both are logged by the caller or the reader.
        """
        doc_path = self.file_for_name(doc_name)
        if doc_path is None:
            logger.warning(f"ttl file for document {doc_name} not found")
            return None
        return self.reader.read_file(doc_path)


def read_treebank_file(path: Union[str, Path]) -> Optional[TreebankDocument]:
    """Read a treebank Turtle file"""
    return TurtleTreebankReader().read_file(path)
