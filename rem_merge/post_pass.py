"""
REM Merge Post Pass - Corpus-Level Steps after All Documents

This module provides the steps run once per corpus after its documents
have been merged: part-of edges from treebank nodes to the datasource
they end up in, the optional corpus rename and the tree visualizer
entry of the corpus configuration.
"""

from __future__ import annotations
import logging
from typing import Any, Dict
from urllib.parse import quote

from tomlkit import TOMLDocument
from tomlkit.items import AoT, Array

from rem_core.config_runtime import DEFAULT_NS, MergeConfig, RenamePattern
from rem_core.errors import ConfigError, RenameError
from rem_graph.storage import CorpusHandle
from rem_merge.emitter import GraphUpdateEmitter

logger = logging.getLogger(__name__)


VISUALIZERS_KEY = "visualizers"


def encode_corpus_name(name: str) -> str:
    """URL-encode a corpus name as it appears inside node names"""
    return quote(name, safe="")


def renamed_node_name(node_name: str, old_name: str, new_name: str) -> str:
    """Node name after renaming its corpus

    The corpus node carries the plain corpus name, every other node name
    starts with the URL-encoded corpus name followed by `/`.
    """
    if node_name == old_name:
        return new_name

    prefix, sep, rest = node_name.partition("/")
    if not sep:
        raise RenameError(f"unexpected node name: '{node_name}'")

    old_encoded = encode_corpus_name(old_name)
    if prefix != old_encoded:
        raise RenameError(
            f"unexpected corpus name in node name: '{prefix}' != '{old_encoded}'"
        )

    return f"{encode_corpus_name(new_name)}/{rest}"


class PostPass:
    """Corpus-level steps after merging all documents of a corpus"""

    def __init__(self, config: MergeConfig):
        self.config = config

    def add_containment_edges(self, corpus: CorpusHandle) -> int:
        """Part-of edges from layer nodes to the datasource of the nodes they dominate"""
        emitter = GraphUpdateEmitter(self.config.layer, self.config.tree_anno)

        matches = corpus.query_layer_containment(self.config.layer)
        for layer_node, _, datasource in matches:
            emitter.emit_part_of(layer_node, datasource)

        corpus.apply(emitter.update)
        logger.debug(f"Added {len(matches)} containment edges to {corpus.name}")
        return len(matches)

    def rename_corpus(self, corpus: CorpusHandle, pattern: RenamePattern) -> str:
        """Rename the corpus and every node name inside it"""
        old_name = corpus.name
        new_name = pattern.apply(old_name)
        logger.info(f"Renaming corpus {old_name} to {new_name}")

        emitter = GraphUpdateEmitter(self.config.layer, self.config.tree_anno)
        for (node_name,) in corpus.query_node_names():
            new_node_name = renamed_node_name(node_name, old_name, new_name)
            if new_node_name != node_name:
                emitter.emit_rename(node_name, new_node_name)

        corpus.apply(emitter.update)
        corpus.name = new_name
        return new_name

    def tree_visualizer(self) -> Dict[str, Any]:
        """Visualizer entry for the merged tree layer"""
        return {
            "display_name": self.config.tree_display,
            "element": "node",
            "layer": self.config.layer,
            "vis_type": "tree",
            "visibility": "hidden",
            "mappings": {
                "edge_type": "null",
                "node_anno_ns": self.config.layer,
                "node_key": self.config.tree_anno,
                "terminal_ns": DEFAULT_NS,
                "terminal_name": self.config.segmentation,
            },
        }

    def add_tree_visualizer(self, corpus_config: TOMLDocument) -> TOMLDocument:
        """Append the tree visualizer to the `visualizers` array of a corpus config"""
        if VISUALIZERS_KEY not in corpus_config:
            corpus_config[VISUALIZERS_KEY] = [self.tree_visualizer()]
            return corpus_config

        visualizers = corpus_config[VISUALIZERS_KEY]
        if not isinstance(visualizers, (AoT, Array)):
            raise ConfigError(f"invalid corpus config: `{VISUALIZERS_KEY}` is not an array")

        visualizers.append(self.tree_visualizer())
        return corpus_config

    def run(self, corpus: CorpusHandle) -> TOMLDocument:
        """Run every post step, return the augmented corpus config"""
        self.add_containment_edges(corpus)

        if self.config.rename is not None:
            self.rename_corpus(corpus, self.config.rename)

        return self.add_tree_visualizer(corpus.config())
