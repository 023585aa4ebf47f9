"""
REM Core Errors - Exception Hierarchy

Every fatal condition of a merge run is raised as a subclass of
MergeError so that the command line can report it uniformly. Per-document
recoverable conditions (unparseable Turtle file, document without a
treebank file) are logged and never raised.
"""

from __future__ import annotations
from typing import Optional


class MergeError(Exception):
    """Base class for all fatal merge errors"""


class ConfigError(MergeError):
    """Invalid configuration value or configuration file"""


class BindingError(MergeError):
    """Treebank file cannot be bound unambiguously to a document"""


class TreebankFormatError(MergeError):
    """Treebank fact has an unexpected shape (non-IRI node, non-plain literal)"""


class OrderError(MergeError):
    """Linear order of sentences, words or tokens cannot be reconstructed"""


class AlignmentError(MergeError):
    """Treebank word has no counterpart in the annotation graph"""


class SanityCheckError(AlignmentError):
    """Shared annotation of an aligned word pair differs between both sources"""

    def __init__(
        self,
        anno_key: str,
        treebank_node: str,
        graph_node: str,
        treebank_value: Optional[str],
        graph_value: Optional[str],
    ):
        self.anno_key = anno_key
        self.treebank_node = treebank_node
        self.graph_node = graph_node
        self.treebank_value = treebank_value
        self.graph_value = graph_value
        super().__init__(
            f"sanity check failed: {anno_key} for {treebank_node} and {graph_node} "
            f"doesn't match: '{treebank_value or ''}' != '{graph_value or ''}'"
        )


class NamingError(MergeError):
    """Graph node name cannot be derived for a treebank node"""


class RenameError(MergeError):
    """Node name does not have the shape expected when renaming a corpus"""


class GraphStoreError(MergeError):
    """Annotation graph store contract violation"""


class UpdateError(GraphStoreError):
    """Graph update batch is invalid and was not applied"""
