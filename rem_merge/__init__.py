"""
REM Merge - Alignment and Merge of Treebank and ANNIS Documents

Modules:
    treebank_order: Sentence and word order of treebank documents
    graph_order: Segmentation order of ANNIS documents
    aligner: Positional alignment with sanity checks
    closure: Fixed-point merge of dominance edges
    emitter: Graph update instructions
    post_pass: Containment edges, rename and visualizer config
    pipeline: Corpus and document driver
"""

from rem_merge.pipeline import TreebankMerger, MergeReport, run_merge

__version__ = "0.1.0"

__all__ = [
    "TreebankMerger",
    "MergeReport",
    "run_merge",
]
