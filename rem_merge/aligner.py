"""
REM Merge Aligner - Positional Alignment of Treebank Words and Segments

This module pairs the treebank words of a document with the ANNIS
segmentation nodes of the same document by position and cross-checks
the annotations both sources share before accepting a pair.

Trailing ANNIS segments without a treebank word are accepted (ANNIS may
hold an incomplete last sentence); a treebank word without a segment is
fatal.
"""

from __future__ import annotations
import logging
from itertools import zip_longest
from typing import Iterable, List, Optional, Tuple

from rem_core.config_runtime import ANNOTATION_NS, PLACEHOLDER_ANNO_VALUE
from rem_core.errors import AlignmentError, SanityCheckError
from rem_core.models import AlignmentMap, AnnoKey, GraphNodeName, TreebankNode
from rem_graph.annotation_graph import GraphAnnoKey
from rem_merge.graph_order import GraphSegment

logger = logging.getLogger(__name__)


SANITY_CHECK_KEYS: List[Tuple[AnnoKey, GraphAnnoKey]] = [
    (AnnoKey.INFL, GraphAnnoKey(ANNOTATION_NS, "inflection")),
    (AnnoKey.LEMMA, GraphAnnoKey(ANNOTATION_NS, "lemma")),
    (AnnoKey.WORD, GraphAnnoKey(ANNOTATION_NS, "norm")),
    (AnnoKey.POS, GraphAnnoKey(ANNOTATION_NS, "pos")),
]

QUOT_ENTITY = "&quot;"


def sanitize_anno(value: Optional[str]) -> Optional[str]:
    """Normalize an ANNIS annotation value for comparison

    The placeholder `--` means absent; `#` separates node names and is
    replaced by `-` in the treebank.
    """
    if value is None or value == PLACEHOLDER_ANNO_VALUE:
        return None
    return value.strip().replace("#", "-")


def unescape_treebank_anno(value: Optional[str]) -> Optional[str]:
    """Undo the quote entity escaping of treebank literals"""
    if value is None:
        return None
    return value.replace(QUOT_ENTITY, '"')


class SequenceAligner:
    """Positional aligner with annotation sanity checks"""

    def __init__(self, check_keys: Optional[List[Tuple[AnnoKey, GraphAnnoKey]]] = None):
        self.check_keys = check_keys if check_keys is not None else SANITY_CHECK_KEYS

    def check_pair(self, word: TreebankNode, segment: GraphSegment):
        """Raise SanityCheckError on the first differing shared annotation"""
        for treebank_key, graph_key in self.check_keys:
            treebank_value = unescape_treebank_anno(word.anno(treebank_key))
            graph_value = sanitize_anno(segment.anno(graph_key))

            if treebank_value != graph_value:
                raise SanityCheckError(
                    graph_key.name, word.name, segment.name, treebank_value, graph_value
                )

    def align(
        self,
        words: Iterable[TreebankNode],
        segments: Iterable[GraphSegment],
        doc_node_name: GraphNodeName
    ) -> AlignmentMap:
        """Pair words and segments by position"""
        alignment = AlignmentMap(doc_node_name)
        surplus = 0

        for word, segment in zip_longest(words, segments):
            if word is None:
                surplus += 1
                continue
            if segment is None:
                raise AlignmentError(f"ttl node {word.name} has no counterpart in ANNIS")

            self.check_pair(word, segment)
            alignment.add(word.name, segment.name)

        if surplus:
            logger.debug(f"{doc_node_name}: {surplus} ANNIS segments without treebank word")
        logger.debug(f"{doc_node_name}: aligned {len(alignment)} words")
        return alignment
