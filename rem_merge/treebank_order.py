"""
REM Merge Treebank Order - Sentence and Word Order of a Treebank Document

This module reconstructs the linear order of a treebank document from
its successor links. Sentences form one chain of `nextSentence` links;
the words of each sentence form a chain of `nextWord` links starting at
the one word of the sentence that no other word of it points to.
"""

from __future__ import annotations
import logging
from typing import Dict, Iterator, List, Optional, Set

from rem_core.errors import OrderError
from rem_core.models import NodeType, TreebankDocument, TreebankNode, TreebankNodeName

logger = logging.getLogger(__name__)


class TreebankOrderExtractor:
    """Ordered sentences and words of a treebank document"""

    def __init__(self, document: TreebankDocument):
        self.document = document

    def _chain_head(self, nodes: List[TreebankNode], what: str) -> Optional[TreebankNode]:
        """Node of the list that is not the successor of another node of it"""
        if not nodes:
            return None

        names = {n.name for n in nodes}
        targets = {n.next for n in nodes if n.next in names}
        heads = sorted((n for n in nodes if n.name not in targets), key=lambda n: n.name)

        if not heads:
            raise OrderError(f"{what} chain has no head")
        if len(heads) > 1:
            raise OrderError(
                f"{what} chain is ambiguous: {len(heads)} heads "
                f"({', '.join(n.name for n in heads[:3])})"
            )
        return heads[0]

    def _walk(self, head: TreebankNode, node_type: NodeType) -> List[TreebankNode]:
        chain: List[TreebankNode] = []
        seen: Set[TreebankNodeName] = set()
        node: Optional[TreebankNode] = head

        while node is not None:
            if node.name in seen:
                raise OrderError(f"{node_type.value} chain is cyclic at {node.name}")
            seen.add(node.name)
            chain.append(node)
            node = self.document.node(node.next) if node.next is not None else None

        return chain

    def sentences_in_order(self) -> List[TreebankNode]:
        """All sentences following the nextSentence chain"""
        sentences = self.document.nodes_of_type(NodeType.SENTENCE)
        head = self._chain_head(sentences, "sentence")
        if head is None:
            return []
        return self._walk(head, NodeType.SENTENCE)

    def words_in_order(self) -> Iterator[TreebankNode]:
        """Words of all sentences in document order

        The result is a one-shot iterator.
        """
        words_by_sentence: Dict[TreebankNodeName, List[TreebankNode]] = {}
        for word in self.document.nodes_of_type(NodeType.WORD):
            if word.sentence is not None:
                words_by_sentence.setdefault(word.sentence, []).append(word)

        ordered: List[TreebankNode] = []
        for sentence in self.sentences_in_order():
            words = words_by_sentence.get(sentence.name, [])
            head = self._chain_head(words, f"word of sentence {sentence.name}")
            if head is not None:
                ordered.extend(self._walk(head, NodeType.WORD))

        logger.debug(f"Treebank order: {len(ordered)} words")
        return iter(ordered)
