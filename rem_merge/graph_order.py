"""
REM Merge Graph Order - Segmentation Order of an ANNIS Document

This module walks the default token order of a document graph and
collects, token by token, the segmentation nodes covering each token.
A segmentation node spanning several tokens is reported once, at the
first token it covers.
"""

from __future__ import annotations
import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Set

from rem_core.config_runtime import DEFAULT_NS
from rem_core.errors import OrderError
from rem_core.models import GraphNodeName
from rem_graph.annotation_graph import (
    AnnotationGraph, ComponentType, GraphAnnoKey, DEFAULT_ORDERING_COMPONENT
)

logger = logging.getLogger(__name__)


@dataclass
class GraphSegment:
    """Segmentation node of a document graph"""
    node_id: int

    name: GraphNodeName

    annos: Dict[GraphAnnoKey, str] = field(default_factory=dict)

    def anno(self, key: GraphAnnoKey) -> Optional[str]:
        """Get annotation value, None if absent"""
        return self.annos.get(key)


class GraphOrderExtractor:
    """Ordered segmentation nodes of a document graph"""

    def __init__(self, graph: AnnotationGraph, segmentation: str):
        self.graph = graph
        self.segmentation_key = GraphAnnoKey(DEFAULT_NS, segmentation)

    def segmentation_nodes_in_order(self) -> List[GraphSegment]:
        """Segmentation nodes in token order"""
        graph = self.graph

        if not graph.has_component(DEFAULT_ORDERING_COMPONENT):
            raise OrderError("default ordering component not found")

        coverage_components = [
            c for c in graph.components(ComponentType.COVERAGE) if graph.edge_count(c) > 0
        ]

        roots = graph.root_nodes(DEFAULT_ORDERING_COMPONENT)
        if not roots:
            raise OrderError("default ordering component has no root")
        if len(roots) > 1:
            raise OrderError(
                f"default ordering component has {len(roots)} roots, expected one"
            )

        segments: List[GraphSegment] = []
        collected: Set[int] = set()
        visited: Set[int] = set()
        token_id: Optional[int] = roots[0]

        while token_id is not None:
            if token_id in visited:
                raise OrderError(f"default ordering is cyclic at {graph.node_name(token_id)}")
            visited.add(token_id)

            for component in coverage_components:
                for covering_id in graph.ingoing(token_id, component):
                    if covering_id in collected:
                        continue
                    if graph.get_anno(covering_id, self.segmentation_key) is None:
                        continue
                    collected.add(covering_id)
                    segments.append(GraphSegment(
                        node_id=covering_id,
                        name=GraphNodeName(graph.node_name(covering_id)),
                        annos=graph.node_annos(covering_id),
                    ))

            successors = graph.outgoing(token_id, DEFAULT_ORDERING_COMPONENT)
            if len(successors) > 1:
                raise OrderError(
                    f"token {graph.node_name(token_id)} has {len(successors)} successors"
                )
            token_id = successors[0] if successors else None

        logger.debug(f"Graph order: {len(visited)} tokens, {len(segments)} segments")
        return segments
