"""
REM Graph Queries - Match Queries over Annotation Graphs

This module provides the match queries issued by the merge run. Each
query returns an ordered list of matches; a match is a tuple of node
names, one per query node.

    find_documents          annis:doc
    find_node_names         annis:node_name
    find_layer_containment  annis:layer="<layer>" >* node @* annis:node_type="datasource"
"""

from __future__ import annotations
import logging
from typing import List, Tuple

from rem_graph.annotation_graph import (
    AnnotationGraph, ComponentType, DOC_KEY, LAYER_KEY, NODE_NAME_KEY, NODE_TYPE_KEY
)

logger = logging.getLogger(__name__)


DATASOURCE_NODE_TYPE = "datasource"

Match = Tuple[str, ...]


def _sorted_by_name(graph: AnnotationGraph, node_ids: List[int]) -> List[int]:
    return sorted(node_ids, key=graph.node_name)


def find_documents(graph: AnnotationGraph) -> List[Match]:
    """All document nodes"""
    return [
        (graph.node_name(node_id),)
        for node_id in _sorted_by_name(graph, graph.nodes_with_anno(DOC_KEY))
    ]


def find_node_names(graph: AnnotationGraph) -> List[Match]:
    """All nodes"""
    return [
        (graph.node_name(node_id),)
        for node_id in _sorted_by_name(graph, graph.nodes_with_anno(NODE_NAME_KEY))
    ]


def find_layer_containment(graph: AnnotationGraph, layer: str) -> List[Match]:
    """Layer nodes dominating a node that is part of a datasource

    Dominance and part-of are both matched transitively with at least
    one step.
    """
    matches: List[Match] = []
    seen = set()

    for layer_id in _sorted_by_name(graph, graph.nodes_with_anno(LAYER_KEY, layer)):
        for dominated_id in graph.reachable(layer_id, ComponentType.DOMINANCE):
            for container_id in graph.reachable(dominated_id, ComponentType.PART_OF):
                if graph.get_anno(container_id, NODE_TYPE_KEY) != DATASOURCE_NODE_TYPE:
                    continue

                match = (
                    graph.node_name(layer_id),
                    graph.node_name(dominated_id),
                    graph.node_name(container_id),
                )
                if match not in seen:
                    seen.add(match)
                    matches.append(match)

    logger.debug(f"Layer containment query for {layer}: {len(matches)} matches")
    return matches
