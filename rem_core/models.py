"""
REM Core Models - Treebank and Alignment Data Structures

This module provides the data model shared by the merge stages:
the two node name spaces, the treebank annotation keys, treebank
nodes and documents as read from Turtle facts, and the per-document
alignment and merge bookkeeping.

Tree-source identifiers (IRIs) and graph node names (path-like
`corpus/doc#node` names) are distinct types and must never be mixed.
"""

from __future__ import annotations
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, NewType, Optional, Set, Tuple, Iterator

from rem_core.errors import AlignmentError, NamingError

logger = logging.getLogger(__name__)


TreebankNodeName = NewType("TreebankNodeName", str)
GraphNodeName = NewType("GraphNodeName", str)

GRAPH_NAME_SEPARATOR = "#"
TREEBANK_PATH_SEPARATOR = "/"


class AnnoKey(Enum):
    """Annotation slots of treebank nodes"""
    CAT = "category"
    INFL = "inflection"
    LEMMA = "lemma"
    POS = "part-of-speech"
    WORD = "word-form"


class NodeType(Enum):
    """Type tag of a treebank node"""
    SENTENCE = "sentence"
    WORD = "word"


@dataclass(frozen=True)
class TreebankNode:
    """Node of the tree source, identified by its IRI"""
    name: TreebankNodeName

    node_type: Optional[NodeType] = None

    annos: Dict[AnnoKey, str] = field(default_factory=dict, compare=False, hash=False)

    next: Optional[TreebankNodeName] = None

    sentence: Optional[TreebankNodeName] = None

    @property
    def is_word(self) -> bool:
        return self.node_type is NodeType.WORD

    @property
    def is_sentence(self) -> bool:
        return self.node_type is NodeType.SENTENCE

    def anno(self, key: AnnoKey) -> Optional[str]:
        """Get annotation value, None if absent"""
        return self.annos.get(key)

    @property
    def final_part(self) -> str:
        """Trailing path segment of the IRI"""
        head, sep, tail = self.name.rpartition(TREEBANK_PATH_SEPARATOR)
        if not sep:
            raise NamingError(f"treebank node name contains no '/': {self.name}")
        return tail


@dataclass(frozen=True)
class DominanceEdge:
    """Child/parent fact pair from the tree source"""
    child: TreebankNodeName
    parent: TreebankNodeName


class TreebankDocument:
    """Treebank nodes and dominance edges of one Turtle file

    Read-only after construction.
    """

    def __init__(
        self,
        nodes: Dict[TreebankNodeName, TreebankNode],
        edges: List[DominanceEdge],
        source_path: Optional[str] = None
    ):
        self._nodes = dict(nodes)
        self._edges = tuple(edges)
        self.source_path = source_path

    def node(self, name: TreebankNodeName) -> TreebankNode:
        """Get node by name; nodes known only from edges carry no facts"""
        node = self._nodes.get(name)
        if node is None:
            return TreebankNode(name=name)
        return node

    def nodes_of_type(self, node_type: NodeType) -> List[TreebankNode]:
        """Get all nodes with the given type tag"""
        return [n for n in self._nodes.values() if n.node_type is node_type]

    @property
    def edges(self) -> Tuple[DominanceEdge, ...]:
        return self._edges

    def edge_nodes(self) -> Iterator[Tuple[TreebankNode, TreebankNode]]:
        """Iterate (child, parent) node pairs of all dominance edges"""
        for edge in self._edges:
            yield self.node(edge.child), self.node(edge.parent)

    def __len__(self) -> int:
        return len(self._nodes)

    def to_dict(self) -> Dict[str, int]:
        """Summary counts"""
        return {
            "nodes": len(self._nodes),
            "sentences": len(self.nodes_of_type(NodeType.SENTENCE)),
            "words": len(self.nodes_of_type(NodeType.WORD)),
            "edges": len(self._edges),
        }


class AlignmentMap:
    """One-to-one mapping of treebank words to graph node names of one document"""

    def __init__(self, doc_node_name: GraphNodeName):
        self.doc_node_name = doc_node_name
        self._mapping: Dict[TreebankNodeName, GraphNodeName] = {}

    def add(self, treebank_name: TreebankNodeName, graph_name: GraphNodeName):
        """Record an aligned pair"""
        self._mapping[treebank_name] = graph_name

    def get(self, treebank_name: TreebankNodeName) -> Optional[GraphNodeName]:
        return self._mapping.get(treebank_name)

    def graph_name(self, node: TreebankNode) -> GraphNodeName:
        """Graph node name for a treebank node

        Words reuse the name of their aligned graph node, other nodes are
        placed in the document under the trailing segment of their IRI.
        """
        if node.is_word:
            graph_name = self._mapping.get(node.name)
            if graph_name is None:
                raise AlignmentError(f"missing mapping for ttl node name {node.name}")
            return graph_name

        return GraphNodeName(f"{self.doc_node_name}{GRAPH_NAME_SEPARATOR}{node.final_part}")

    def items(self):
        return self._mapping.items()

    def __contains__(self, treebank_name: object) -> bool:
        return treebank_name in self._mapping

    def __len__(self) -> int:
        return len(self._mapping)


class MergedNodeSet:
    """Treebank nodes and edges of one document already merged into the graph"""

    def __init__(self):
        self._names: Set[TreebankNodeName] = set()
        self._edges: Set[Tuple[TreebankNodeName, TreebankNodeName]] = set()

    def add(self, name: TreebankNodeName) -> bool:
        """Add a node name, return whether it was not merged before"""
        if name in self._names:
            return False
        self._names.add(name)
        return True

    def add_edge(self, child: TreebankNodeName, parent: TreebankNodeName) -> bool:
        """Add a dominance edge, return whether it was not merged before"""
        edge = (child, parent)
        if edge in self._edges:
            return False
        self._edges.add(edge)
        return True

    def has_edge(self, child: TreebankNodeName, parent: TreebankNodeName) -> bool:
        return (child, parent) in self._edges

    def __contains__(self, name: object) -> bool:
        return name in self._names

    def __len__(self) -> int:
        return len(self._names)
