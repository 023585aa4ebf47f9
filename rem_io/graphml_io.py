"""
REM IO GraphML - ANNIS GraphML Interchange Format

This module provides reading and writing of corpora in the GraphML
dialect used by ANNIS for import and export.

Supports:
- Node annotations declared as `<key>` elements named `ns::name`
- Node ids used as node names
- Edge labels of the form `ComponentType/layer/name` and edge annotations
- The corpus configuration (TOML) as graph-level `configuration` data
"""

from __future__ import annotations
import logging
from pathlib import Path
from dataclasses import dataclass
from typing import Dict, List, Optional, Tuple, Union, BinaryIO

from lxml import etree

from rem_core.errors import GraphStoreError
from rem_graph.annotation_graph import (
    AnnotationGraph, Component, ComponentType, GraphAnnoKey, NODE_NAME_KEY, NODE_TYPE_KEY
)

logger = logging.getLogger(__name__)


CONFIGURATION_ATTR = "configuration"

GRAPH_ATTRIBUTES = {
    "edgedefault": "directed",
    "parse.order": "nodesfirst",
    "parse.nodeids": "free",
    "parse.edgeids": "canonical",
}


@dataclass
class GraphMLCorpus:
    """Annotation graph and configuration read from a GraphML file"""
    graph: AnnotationGraph

    config: Optional[str] = None

    def root_corpus_name(self) -> Optional[str]:
        """Name of the corpus node that is not part of another node"""
        for node_id in self.graph.nodes_with_anno(NODE_TYPE_KEY, "corpus"):
            if not self.graph.outgoing_of_type(node_id, ComponentType.PART_OF):
                return self.graph.node_name(node_id)
        return None


def _localname(element) -> str:
    return etree.QName(element).localname


class GraphMLReader:
    """Reader for ANNIS GraphML"""

    def read_file(self, source: Union[str, Path, BinaryIO]) -> GraphMLCorpus:
        """Read a GraphML file"""
        parser = etree.XMLParser(huge_tree=True, remove_blank_text=True)
        try:
            tree = etree.parse(str(source) if isinstance(source, Path) else source, parser)
        except etree.XMLSyntaxError as e:
            raise GraphStoreError(f"invalid GraphML: {e}") from e
        return self._read_root(tree.getroot())

    def read_string(self, content: Union[str, bytes]) -> GraphMLCorpus:
        """Read GraphML from a string"""
        if isinstance(content, str):
            content = content.encode("utf-8")
        parser = etree.XMLParser(huge_tree=True, remove_blank_text=True)
        try:
            root = etree.fromstring(content, parser)
        except etree.XMLSyntaxError as e:
            raise GraphStoreError(f"invalid GraphML: {e}") from e
        return self._read_root(root)

    def _read_root(self, root) -> GraphMLCorpus:
        if _localname(root) != "graphml":
            raise GraphStoreError(f"unexpected root element: {_localname(root)}")

        keys: Dict[str, str] = {}
        graph_elem = None

        for child in root:
            if not isinstance(child.tag, str):
                continue
            name = _localname(child)
            if name == "key":
                keys[child.get("id")] = child.get("attr.name")
            elif name == "graph" and graph_elem is None:
                graph_elem = child

        if graph_elem is None:
            raise GraphStoreError("GraphML file contains no graph")

        graph = AnnotationGraph()
        config: Optional[str] = None
        edges: List[Tuple[str, str, Component, Dict[GraphAnnoKey, str]]] = []

        for child in graph_elem:
            if not isinstance(child.tag, str):
                continue
            name = _localname(child)

            if name == "data":
                if keys.get(child.get("key")) == CONFIGURATION_ATTR:
                    config = child.text or ""

            elif name == "node":
                node_name = child.get("id")
                annos = self._read_data(child, keys)
                node_type = annos.pop(NODE_TYPE_KEY, "node")
                annos.pop(NODE_NAME_KEY, None)
                node_id = graph.add_node(node_name, node_type)
                for key, value in annos.items():
                    graph.set_anno(node_id, key, value)

            elif name == "edge":
                label = child.get("label")
                if label is None:
                    raise GraphStoreError(f"edge {child.get('id')} has no label")
                edges.append((
                    child.get("source"),
                    child.get("target"),
                    Component.parse(label),
                    self._read_data(child, keys),
                ))

        for source, target, component, annos in edges:
            source_id = graph.node_id(source)
            target_id = graph.node_id(target)
            if source_id is None or target_id is None:
                raise GraphStoreError(f"edge {source} -> {target} references unknown node")
            graph.add_edge(source_id, target_id, component, annos)

        logger.debug(f"Read GraphML with {graph.node_count()} nodes, {graph.edge_count()} edges")
        return GraphMLCorpus(graph=graph, config=config)

    def _read_data(self, element, keys: Dict[str, str]) -> Dict[GraphAnnoKey, str]:
        annos: Dict[GraphAnnoKey, str] = {}
        for data in element:
            if not isinstance(data.tag, str) or _localname(data) != "data":
                continue
            attr_name = keys.get(data.get("key"))
            if attr_name is None:
                raise GraphStoreError(f"undeclared GraphML key: {data.get('key')}")
            annos[GraphAnnoKey.parse(attr_name)] = data.text or ""
        return annos


class GraphMLWriter:
    """Writer for ANNIS GraphML"""

    def write_file(
        self,
        graph: AnnotationGraph,
        path: Union[str, Path],
        config: Optional[str] = None
    ):
        """Write a graph and its configuration to a GraphML file"""
        Path(path).write_bytes(self.write_bytes(graph, config))

    def write_bytes(self, graph: AnnotationGraph, config: Optional[str] = None) -> bytes:
        """Serialize a graph and its configuration to GraphML"""
        node_keys = set()
        for node_id in graph.node_ids():
            node_keys.update(k for k in graph.node_annos(node_id) if k != NODE_NAME_KEY)

        edge_keys = set()
        for source, target, component in graph.edges():
            edge_keys.update(graph.edge_annos(source, target, component))

        root = etree.Element("graphml")
        key_ids: Dict[Tuple[str, GraphAnnoKey], str] = {}
        config_key = None

        if config is not None:
            config_key = f"k{len(key_ids)}"
            key_ids[("graph", GraphAnnoKey("", CONFIGURATION_ATTR))] = config_key
            self._add_key(root, config_key, "graph", CONFIGURATION_ATTR)

        for domain, domain_keys in (("node", node_keys), ("edge", edge_keys)):
            for anno_key in sorted(domain_keys):
                key_id = f"k{len(key_ids)}"
                key_ids[(domain, anno_key)] = key_id
                self._add_key(root, key_id, domain, str(anno_key))

        graph_elem = etree.SubElement(root, "graph", GRAPH_ATTRIBUTES)

        if config_key is not None:
            data = etree.SubElement(graph_elem, "data", key=config_key)
            data.text = etree.CDATA(config)

        for node_id in sorted(graph.node_ids()):
            node_elem = etree.SubElement(graph_elem, "node", id=graph.node_name(node_id))
            annos = graph.node_annos(node_id)
            for anno_key in sorted(k for k in annos if k != NODE_NAME_KEY):
                data = etree.SubElement(node_elem, "data", key=key_ids[("node", anno_key)])
                data.text = annos[anno_key]

        edge_list = sorted(
            graph.edges(),
            key=lambda e: (str(e[2]), graph.node_name(e[0]), graph.node_name(e[1]))
        )
        for index, (source, target, component) in enumerate(edge_list):
            edge_elem = etree.SubElement(
                graph_elem,
                "edge",
                id=f"e{index}",
                source=graph.node_name(source),
                target=graph.node_name(target),
                label=str(component),
            )
            annos = graph.edge_annos(source, target, component)
            for anno_key in sorted(annos):
                data = etree.SubElement(edge_elem, "data", key=key_ids[("edge", anno_key)])
                data.text = annos[anno_key]

        return etree.tostring(root, xml_declaration=True, encoding="UTF-8", pretty_print=True)

    def _add_key(self, root, key_id: str, domain: str, attr_name: str):
        etree.SubElement(root, "key", {
            "id": key_id,
            "for": domain,
            "attr.name": attr_name,
            "attr.type": "string",
        })


def parse_graphml_file(path: Union[str, Path]) -> GraphMLCorpus:
    """Parse a GraphML file"""
    return GraphMLReader().read_file(Path(path))


def write_graphml_file(graph: AnnotationGraph, path: Union[str, Path], config: Optional[str] = None):
    """Write a GraphML file"""
    GraphMLWriter().write_file(graph, path, config)
