"""
REM Graph - In-Process Annotation Graph Store

This package provides the annotation graph the treebank is merged into.

Modules:
    annotation_graph: Graph model with typed edge components
    updates: Transactional update batches
    queries: Match queries of the merge run
    storage: Corpus storage with a temporary backing directory
"""

from rem_graph.annotation_graph import (
    AnnotationGraph,
    GraphAnnoKey,
    Component,
    ComponentType,
)

from rem_graph.updates import (
    GraphUpdate,
    AddNode,
    AddNodeLabel,
    AddEdge,
    apply_update,
)

__version__ = "0.1.0"

__all__ = [
    "AnnotationGraph",
    "GraphAnnoKey",
    "Component",
    "ComponentType",
    "GraphUpdate",
    "AddNode",
    "AddNodeLabel",
    "AddEdge",
    "apply_update",
]
