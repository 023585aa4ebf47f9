"""
REM Graph Updates - Transactional Graph Update Batches

This module provides the update events understood by the corpus store
and the batch that collects them. A batch is applied atomically: every
event is validated against the graph (including nodes created or renamed
earlier in the same batch) before the first mutation happens.
"""

from __future__ import annotations
import logging
from dataclasses import dataclass
from typing import List, Union, Iterator, Set

from rem_core.errors import UpdateError, GraphStoreError
from rem_graph.annotation_graph import (
    AnnotationGraph, Component, ComponentType, GraphAnnoKey, NODE_NAME_KEY
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AddNode:
    """Create a node of the given type"""
    node_name: str
    node_type: str = "node"


@dataclass(frozen=True)
class AddNodeLabel:
    """Set a node annotation"""
    node_name: str
    anno_ns: str
    anno_name: str
    anno_value: str


@dataclass(frozen=True)
class AddEdge:
    """Create an edge in the component (component_type, layer, component_name)"""
    source_node: str
    target_node: str
    layer: str
    component_type: str
    component_name: str = ""

    @property
    def component(self) -> Component:
        return Component(ComponentType.parse(self.component_type), self.layer, self.component_name)


UpdateEvent = Union[AddNode, AddNodeLabel, AddEdge]


class GraphUpdate:
    """Ordered batch of update events"""

    def __init__(self):
        self._events: List[UpdateEvent] = []

    def add_event(self, event: UpdateEvent):
        self._events.append(event)

    def add_node(self, node_name: str, node_type: str = "node"):
        self.add_event(AddNode(node_name, node_type))

    def add_node_label(self, node_name: str, anno_ns: str, anno_name: str, anno_value: str):
        self.add_event(AddNodeLabel(node_name, anno_ns, anno_name, anno_value))

    def add_edge(
        self,
        source_node: str,
        target_node: str,
        layer: str,
        component_type: ComponentType,
        component_name: str = ""
    ):
        self.add_event(AddEdge(source_node, target_node, layer, component_type.value, component_name))

    def __iter__(self) -> Iterator[UpdateEvent]:
        return iter(self._events)

    def __len__(self) -> int:
        return len(self._events)

    def events_of_type(self, event_type: type) -> List[UpdateEvent]:
        return [e for e in self._events if isinstance(e, event_type)]


def validate_update(graph: AnnotationGraph, update: GraphUpdate):
    """Check that every event of the batch can be applied in order"""
    known: Set[str] = set()

    def exists(name: str) -> bool:
        return name in known or graph.has_node(name)

    renamed: Set[str] = set()

    for index, event in enumerate(update):
        if isinstance(event, AddNode):
            known.add(event.node_name)
            renamed.discard(event.node_name)

        elif isinstance(event, AddNodeLabel):
            if not exists(event.node_name) or event.node_name in renamed:
                raise UpdateError(f"event {index}: label for unknown node {event.node_name}")

            if GraphAnnoKey(event.anno_ns, event.anno_name) == NODE_NAME_KEY:
                new_name = event.anno_value
                if new_name != event.node_name:
                    if exists(new_name) and new_name not in renamed:
                        raise UpdateError(f"event {index}: node name already exists: {new_name}")
                    renamed.add(event.node_name)
                    known.discard(event.node_name)
                    known.add(new_name)
                    renamed.discard(new_name)

        elif isinstance(event, AddEdge):
            try:
                event.component
            except GraphStoreError as e:
                raise UpdateError(f"event {index}: {e}") from e
            for name in (event.source_node, event.target_node):
                if not exists(name) or name in renamed:
                    raise UpdateError(f"event {index}: edge references unknown node {name}")

        else:
            raise UpdateError(f"event {index}: unknown update event {event!r}")


def apply_update(graph: AnnotationGraph, update: GraphUpdate):
    """Validate and apply a batch, a failing batch leaves the graph untouched"""
    validate_update(graph, update)

    for event in update:
        if isinstance(event, AddNode):
            graph.add_node(event.node_name, event.node_type)
        elif isinstance(event, AddNodeLabel):
            node_id = graph.require_node_id(event.node_name)
            graph.set_anno(node_id, GraphAnnoKey(event.anno_ns, event.anno_name), event.anno_value)
        elif isinstance(event, AddEdge):
            graph.add_edge(
                graph.require_node_id(event.source_node),
                graph.require_node_id(event.target_node),
                event.component
            )

    logger.debug(f"Applied {len(update)} update events")
