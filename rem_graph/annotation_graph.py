"""
REM Graph Annotation Graph - In-Memory Annotation Graph

This module provides the annotation graph model of the corpus store.
Nodes are identified by integer ids and carry a map of namespaced
annotations; the node name is the `annis::node_name` annotation and is
indexed for lookup. Edges belong to typed components (Ordering,
Coverage, Dominance, Pointing, PartOf), each identified by type, layer
and name.

The graph is backed by a networkx MultiDiGraph whose edge keys are the
components, so there is at most one edge per component between a pair
of nodes.
"""

from __future__ import annotations
import logging
from collections import deque
from enum import Enum
from typing import (
    Dict, List, Optional, Any, Iterable, Iterator, NamedTuple, Set
)

import networkx as nx

from rem_core.config_runtime import ANNIS_NS
from rem_core.errors import GraphStoreError

logger = logging.getLogger(__name__)


class GraphAnnoKey(NamedTuple):
    """Namespaced annotation key"""
    ns: str
    name: str

    def __str__(self) -> str:
        if self.ns:
            return f"{self.ns}::{self.name}"
        return self.name

    @classmethod
    def parse(cls, qualified: str) -> "GraphAnnoKey":
        """Parse `ns::name`, a key without `::` has an empty namespace"""
        ns, sep, name = qualified.partition("::")
        if not sep:
            return cls("", qualified)
        return cls(ns, name)


NODE_NAME_KEY = GraphAnnoKey(ANNIS_NS, "node_name")
NODE_TYPE_KEY = GraphAnnoKey(ANNIS_NS, "node_type")
LAYER_KEY = GraphAnnoKey(ANNIS_NS, "layer")
DOC_KEY = GraphAnnoKey(ANNIS_NS, "doc")
TOK_KEY = GraphAnnoKey(ANNIS_NS, "tok")
FILE_KEY = GraphAnnoKey(ANNIS_NS, "file")


class ComponentType(Enum):
    """Types of edge components"""
    COVERAGE = "Coverage"
    DOMINANCE = "Dominance"
    POINTING = "Pointing"
    ORDERING = "Ordering"
    LEFT_TOKEN = "LeftToken"
    RIGHT_TOKEN = "RightToken"
    PART_OF = "PartOf"

    @classmethod
    def parse(cls, value: str) -> "ComponentType":
        try:
            return cls(value)
        except ValueError:
            raise GraphStoreError(f"unknown component type: {value}") from None


class Component(NamedTuple):
    """Edge component identified by type, layer and name"""
    ctype: ComponentType
    layer: str
    name: str = ""

    def __str__(self) -> str:
        return f"{self.ctype.value}/{self.layer}/{self.name}"

    @classmethod
    def parse(cls, label: str) -> "Component":
        """Parse an edge label `Type/layer/name`"""
        parts = label.split("/", 2)
        if len(parts) != 3:
            raise GraphStoreError(f"invalid component label: {label}")
        return cls(ComponentType.parse(parts[0]), parts[1], parts[2])


DEFAULT_ORDERING_COMPONENT = Component(ComponentType.ORDERING, ANNIS_NS, "")


class AnnotationGraph:
    """Annotation graph with named nodes and component-typed edges"""

    def __init__(self, graph: Optional[nx.MultiDiGraph] = None):
        self._graph = graph if graph is not None else nx.MultiDiGraph()
        self._name_index: Dict[str, int] = {}
        self._components: Set[Component] = set()
        self._next_id = 0

        for node_id, data in self._graph.nodes(data=True):
            self._name_index[data["annos"][NODE_NAME_KEY]] = node_id
            self._next_id = max(self._next_id, node_id + 1)

        for _, _, component in self._graph.edges(keys=True):
            self._components.add(component)

    # Nodes

    def add_node(self, name: str, node_type: str = "node") -> int:
        """Add a node, an existing node of the same name is kept"""
        node_id = self._name_index.get(name)
        if node_id is not None:
            return node_id

        node_id = self._next_id
        self._next_id += 1
        self._graph.add_node(node_id, annos={NODE_NAME_KEY: name, NODE_TYPE_KEY: node_type})
        self._name_index[name] = node_id
        return node_id

    def node_id(self, name: str) -> Optional[int]:
        """Get node id by name"""
        return self._name_index.get(name)

    def require_node_id(self, name: str) -> int:
        node_id = self._name_index.get(name)
        if node_id is None:
            raise GraphStoreError(f"node not found: {name}")
        return node_id

    def node_name(self, node_id: int) -> str:
        return self._graph.nodes[node_id]["annos"][NODE_NAME_KEY]

    def has_node(self, name: str) -> bool:
        return name in self._name_index

    def node_ids(self) -> Iterator[int]:
        return iter(self._graph.nodes)

    def node_count(self) -> int:
        return self._graph.number_of_nodes()

    def get_anno(self, node_id: int, key: GraphAnnoKey) -> Optional[str]:
        """Get annotation value of a node, None if absent"""
        return self._graph.nodes[node_id]["annos"].get(key)

    def node_annos(self, node_id: int) -> Dict[GraphAnnoKey, str]:
        return dict(self._graph.nodes[node_id]["annos"])

    def set_anno(self, node_id: int, key: GraphAnnoKey, value: str):
        """Set annotation value, setting the node name renames the node"""
        annos = self._graph.nodes[node_id]["annos"]

        if key == NODE_NAME_KEY:
            old_name = annos[NODE_NAME_KEY]
            if value == old_name:
                return
            if value in self._name_index:
                raise GraphStoreError(f"node name already exists: {value}")
            del self._name_index[old_name]
            self._name_index[value] = node_id

        annos[key] = value

    def nodes_with_anno(self, key: GraphAnnoKey, value: Optional[str] = None) -> List[int]:
        """Get all nodes carrying an annotation key, optionally with a value"""
        result = []
        for node_id, data in self._graph.nodes(data=True):
            anno_value = data["annos"].get(key)
            if anno_value is None:
                continue
            if value is None or anno_value == value:
                result.append(node_id)
        return result

    # Edges

    def add_edge(
        self,
        source: int,
        target: int,
        component: Component,
        annos: Optional[Dict[GraphAnnoKey, str]] = None
    ):
        """Add an edge, an existing edge of the same component is kept"""
        if self._graph.has_edge(source, target, key=component):
            if annos:
                self._graph.edges[source, target, component]["annos"].update(annos)
            return

        self._graph.add_edge(source, target, key=component, annos=dict(annos or {}))
        self._components.add(component)

    def has_edge(self, source: int, target: int, component: Component) -> bool:
        return self._graph.has_edge(source, target, key=component)

    def edge_annos(self, source: int, target: int, component: Component) -> Dict[GraphAnnoKey, str]:
        return dict(self._graph.edges[source, target, component]["annos"])

    def edges(self) -> Iterator[tuple]:
        """Iterate (source, target, component) triples"""
        return iter(self._graph.edges(keys=True))

    def edge_count(self, component: Optional[Component] = None) -> int:
        if component is None:
            return self._graph.number_of_edges()
        return sum(1 for _, _, c in self._graph.edges(keys=True) if c == component)

    def components(self, ctype: Optional[ComponentType] = None) -> List[Component]:
        """Get all components, optionally filtered by type, in a stable order"""
        result = [c for c in self._components if ctype is None or c.ctype == ctype]
        result.sort(key=lambda c: (c.ctype.value, c.layer, c.name))
        return result

    def has_component(self, component: Component) -> bool:
        return component in self._components

    def outgoing(self, node_id: int, component: Component) -> List[int]:
        """Targets of outgoing edges of a component"""
        return [
            target for _, target, c in self._graph.out_edges(node_id, keys=True)
            if c == component
        ]

    def ingoing(self, node_id: int, component: Component) -> List[int]:
        """Sources of ingoing edges of a component"""
        return [
            source for source, _, c in self._graph.in_edges(node_id, keys=True)
            if c == component
        ]

    def outgoing_of_type(self, node_id: int, ctype: ComponentType) -> List[int]:
        """Targets of outgoing edges of any component of a type"""
        return [
            target for _, target, c in self._graph.out_edges(node_id, keys=True)
            if c.ctype == ctype
        ]

    def ingoing_of_type(self, node_id: int, ctype: ComponentType) -> List[int]:
        """Sources of ingoing edges of any component of a type"""
        return [
            source for source, _, c in self._graph.in_edges(node_id, keys=True)
            if c.ctype == ctype
        ]

    def root_nodes(self, component: Component) -> List[int]:
        """Nodes of a component without ingoing edges of that component"""
        sources: Dict[int, None] = {}
        targets: Set[int] = set()
        for source, target, c in self._graph.edges(keys=True):
            if c != component:
                continue
            sources.setdefault(source)
            targets.add(target)
        return [n for n in sources if n not in targets]

    def reachable(self, start: int, ctype: ComponentType, reverse: bool = False) -> List[int]:
        """Nodes reachable in one or more steps over components of a type"""
        step = self.ingoing_of_type if reverse else self.outgoing_of_type
        seen: Set[int] = set()
        order: List[int] = []
        queue = deque(step(start, ctype))
        while queue:
            node_id = queue.popleft()
            if node_id in seen:
                continue
            seen.add(node_id)
            order.append(node_id)
            queue.extend(step(node_id, ctype))
        return order

    # Views

    def subgraph(self, node_ids: Iterable[int]) -> "AnnotationGraph":
        """Read-only view of the given nodes and all edges between them"""
        return AnnotationGraph(self._graph.subgraph(node_ids))

    def document_graph(self, doc_name: str) -> "AnnotationGraph":
        """View of a document node and every node transitively part of it"""
        doc_id = self.require_node_id(doc_name)
        node_ids = [doc_id] + self.reachable(doc_id, ComponentType.PART_OF, reverse=True)
        return self.subgraph(node_ids)

    def to_dict(self) -> Dict[str, Any]:
        """Summary counts"""
        return {
            "nodes": self.node_count(),
            "edges": self.edge_count(),
            "components": [str(c) for c in self.components()],
        }
