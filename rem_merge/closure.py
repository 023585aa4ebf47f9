"""
REM Merge Closure - Dominance Edges Reachable from Aligned Words

This module grows the merged part of a treebank document upward from
its words. An edge (child, parent) is ready once its child is a word or
already merged; ready edges are merged, the others are retried in the
next pass. Passes repeat until one makes no progress; edges still not
ready by then are not connected to any word and are dropped.

Ready edges whose parent has no category are synthetic sentence roots
and are discarded.
"""

from __future__ import annotations
import logging
from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional, Tuple

from rem_core.models import (
    AlignmentMap, AnnoKey, MergedNodeSet, TreebankNode
)
from rem_merge.emitter import GraphUpdateEmitter

logger = logging.getLogger(__name__)


EdgePair = Tuple[TreebankNode, TreebankNode]


@dataclass
class ClosureStats:
    """Counts of one closure run"""
    passes: int = 0
    merged_edges: int = 0
    created_nodes: int = 0
    root_edges: int = 0
    dropped_edges: int = 0

    def to_dict(self) -> Dict[str, int]:
        """Convert to dictionary"""
        return {
            "passes": self.passes,
            "merged_edges": self.merged_edges,
            "created_nodes": self.created_nodes,
            "root_edges": self.root_edges,
            "dropped_edges": self.dropped_edges,
        }


class EdgeClosureBuilder:
    """Fixed-point merge of treebank dominance edges"""

    def __init__(
        self,
        alignment: AlignmentMap,
        emitter: GraphUpdateEmitter,
        merged: Optional[MergedNodeSet] = None
    ):
        self.alignment = alignment
        self.emitter = emitter
        self.merged = merged if merged is not None else MergedNodeSet()

    def is_ready(self, child: TreebankNode) -> bool:
        return child.is_word or child.name in self.merged

    def _merge_node(self, node: TreebankNode, stats: ClosureStats):
        name = self.alignment.graph_name(node)

        if self.merged.add(node.name) and not node.is_word:
            self.emitter.emit_tree_node(name, node.anno(AnnoKey.CAT))
            stats.created_nodes += 1

        self.emitter.emit_iri(name, node.name)

    def _merge_edge(self, child: TreebankNode, parent: TreebankNode, stats: ClosureStats):
        for node in (child, parent):
            self._merge_node(node, stats)

        if self.merged.add_edge(child.name, parent.name):
            self.emitter.emit_dominance(
                self.alignment.graph_name(parent), self.alignment.graph_name(child)
            )
            stats.merged_edges += 1

    def build(self, edges: Iterable[EdgePair]) -> ClosureStats:
        """Merge every edge reachable from a word"""
        stats = ClosureStats()
        working: Optional[List[EdgePair]] = list(edges)

        while working is not None:
            edges_of_pass, working = working, None
            remaining: List[EdgePair] = []
            progress = False

            for child, parent in edges_of_pass:
                if not self.is_ready(child):
                    remaining.append((child, parent))
                    continue

                if parent.anno(AnnoKey.CAT) is None:
                    stats.root_edges += 1
                    continue

                self._merge_edge(child, parent, stats)
                progress = True

            if progress:
                stats.passes += 1
                working = remaining
            else:
                stats.dropped_edges = len(remaining)

        logger.debug(f"Closure finished: {stats.to_dict()}")
        return stats
