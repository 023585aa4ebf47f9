"""
REM Merge Emitter - Graph Update Instructions for Merged Treebank Nodes

This module translates merge decisions into graph update events. Every
node is created before the first event that references it; the
collected batch is applied by the caller as one transaction.
"""

from __future__ import annotations
import logging
from typing import Optional

from rem_core.config_runtime import ANNIS_NS
from rem_core.models import GraphNodeName
from rem_graph.annotation_graph import ComponentType, NODE_NAME_KEY, LAYER_KEY
from rem_graph.updates import GraphUpdate

logger = logging.getLogger(__name__)


NODE_TYPE_NODE = "node"


class GraphUpdateEmitter:
    """Collects update events for one batch"""

    def __init__(
        self,
        layer: str,
        tree_anno: str,
        iri_anno: Optional[str] = None,
        update: Optional[GraphUpdate] = None
    ):
        self.layer = layer
        self.tree_anno = tree_anno
        self.iri_anno = iri_anno
        self.update = update if update is not None else GraphUpdate()

    def emit_tree_node(self, name: GraphNodeName, category: Optional[str]):
        """Create a treebank node in the layer, labelled with its category"""
        self.update.add_node(name, NODE_TYPE_NODE)
        self.update.add_node_label(name, LAYER_KEY.ns, LAYER_KEY.name, self.layer)
        if category is not None:
            self.update.add_node_label(name, self.layer, self.tree_anno, category)

    def emit_iri(self, name: GraphNodeName, iri: str):
        """Record the treebank IRI of a node if an IRI annotation is configured"""
        if self.iri_anno is not None:
            self.update.add_node_label(name, self.layer, self.iri_anno, iri)

    def emit_dominance(self, parent: GraphNodeName, child: GraphNodeName):
        self.update.add_edge(parent, child, self.layer, ComponentType.DOMINANCE)

    def emit_part_of(self, node: str, container: str):
        self.update.add_edge(node, container, ANNIS_NS, ComponentType.PART_OF)

    def emit_rename(self, old_name: str, new_name: str):
        self.update.add_node_label(old_name, NODE_NAME_KEY.ns, NODE_NAME_KEY.name, new_name)

    def __len__(self) -> int:
        return len(self.update)
