"""
REM Merge Pipeline - Treebank Merge Run

This module drives a merge run: every corpus of the input archive is
processed document by document, merged with the treebank file bound to
the document, post-processed and written to the output archive.

Processing is strictly sequential. Each document's updates are applied
as one batch before the next document starts; a corpus is unloaded
right after it has been written. Any fatal error aborts the run and
leaves the output path untouched.
"""

from __future__ import annotations
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from rem_core.config_runtime import MergeConfig
from rem_core.errors import GraphStoreError
from rem_core.logging_monitoring import RunLogger
from rem_core.models import GraphNodeName, TreebankDocument
from rem_graph.storage import CorpusHandle, CorpusStorage
from rem_io.archive import CorpusWriter
from rem_io.turtle_io import TreebankStorage
from rem_merge.aligner import SequenceAligner
from rem_merge.closure import ClosureStats, EdgeClosureBuilder
from rem_merge.emitter import GraphUpdateEmitter
from rem_merge.graph_order import GraphOrderExtractor
from rem_merge.post_pass import PostPass
from rem_merge.treebank_order import TreebankOrderExtractor

logger = logging.getLogger(__name__)


@dataclass
class DocumentResult:
    """Outcome of merging one document"""
    doc_name: str

    aligned_words: int = 0

    closure: ClosureStats = field(default_factory=ClosureStats)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary"""
        return {
            "doc_name": self.doc_name,
            "aligned_words": self.aligned_words,
            "closure": self.closure.to_dict(),
        }


@dataclass
class MergeReport:
    """Summary of a merge run"""
    output: Optional[str] = None

    corpora: List[str] = field(default_factory=list)

    documents: List[DocumentResult] = field(default_factory=list)

    skipped_documents: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary"""
        return {
            "output": self.output,
            "corpora": list(self.corpora),
            "documents": [d.to_dict() for d in self.documents],
            "skipped_documents": list(self.skipped_documents),
        }


def document_name(doc_node_name: str) -> str:
    """Document name: the part of the document node name after the first `/`"""
    _, sep, doc_name = doc_node_name.partition("/")
    if not sep:
        raise GraphStoreError(f"could not get document name from node name {doc_node_name}")
    return doc_name


class TreebankMerger:
    """Merges a treebank directory into a zip of ANNIS corpora"""

    def __init__(self, config: MergeConfig, run_logger: Optional[RunLogger] = None):
        self.config = config
        self.log = run_logger or RunLogger(enable_console=False)
        self.aligner = SequenceAligner()
        self.post_pass = PostPass(config)

    def run(self) -> MergeReport:
        """Run the merge and write the output archive"""
        config = self.config
        report = MergeReport(output=str(config.output))
        treebank = TreebankStorage(config.input_ttl)

        with CorpusStorage(in_memory=config.in_memory) as storage, \
                CorpusWriter(config.output) as writer:
            with self.log.timed("importing corpora"):
                corpus_names = storage.import_all_from_zip(config.input_annis)
            self.log.info("imported corpora", count=len(corpus_names))

            for corpus_name in corpus_names:
                with self.log.context(corpus_name=corpus_name):
                    self.log.info("processing corpus")
                    corpus = CorpusHandle(storage, corpus_name)
                    self.merge_corpus(corpus, treebank, report)

                    corpus_config = self.post_pass.run(corpus)
                    writer.write_corpus(storage, corpus.original_name, corpus.name, corpus_config)
                    report.corpora.append(corpus.name)

            writer.finish()
            self.log.info("written corpora", path=str(config.output), count=writer.corpus_count)

        return report

    def merge_corpus(self, corpus: CorpusHandle, treebank: TreebankStorage, report: MergeReport):
        """Merge every document of a corpus that has a treebank file"""
        for doc_node_name in corpus.document_names():
            doc_name = document_name(doc_node_name)

            with self.log.context(doc_name=doc_name):
                treebank_doc = treebank.document_for_name(doc_name)
                if treebank_doc is None:
                    self.log.info("skipping document")
                    report.skipped_documents.append(doc_node_name)
                    continue

                self.log.info("processing document")
                result = self.merge_document(corpus, GraphNodeName(doc_node_name), treebank_doc)
                report.documents.append(result)
                self.log.info(
                    "merged document",
                    words=result.aligned_words,
                    edges=result.closure.merged_edges,
                    nodes=result.closure.created_nodes,
                )

    def merge_document(
        self,
        corpus: CorpusHandle,
        doc_node_name: GraphNodeName,
        treebank_doc: TreebankDocument
    ) -> DocumentResult:
        """Align and merge one document, then apply its updates as one batch"""
        config = self.config

        words = TreebankOrderExtractor(treebank_doc).words_in_order()
        segments = GraphOrderExtractor(
            corpus.document_graph(doc_node_name), config.segmentation
        ).segmentation_nodes_in_order()

        alignment = self.aligner.align(words, segments, doc_node_name)

        emitter = GraphUpdateEmitter(config.layer, config.tree_anno, config.iri_anno)
        stats = EdgeClosureBuilder(alignment, emitter).build(treebank_doc.edge_nodes())

        if stats.dropped_edges:
            self.log.debug("dropped edges not reachable from a word", count=stats.dropped_edges)

        corpus.apply(emitter.update)

        return DocumentResult(
            doc_name=document_name(doc_node_name),
            aligned_words=len(alignment),
            closure=stats,
        )


def run_merge(config: MergeConfig, run_logger: Optional[RunLogger] = None) -> MergeReport:
    """Run a merge with the given configuration"""
    return TreebankMerger(config, run_logger).run()
