"""
REM Core - Shared Model, Errors, Configuration and Logging

This package provides the foundation of the treebank merge.

Modules:
    models: Treebank nodes, documents and alignment bookkeeping
    errors: Exception hierarchy of fatal merge errors
    config_runtime: Merge run configuration
    logging_monitoring: Run logger
"""

from rem_core.errors import (
    MergeError,
    ConfigError,
    BindingError,
    TreebankFormatError,
    OrderError,
    AlignmentError,
    SanityCheckError,
    NamingError,
    RenameError,
    GraphStoreError,
    UpdateError,
)

from rem_core.models import (
    TreebankNodeName,
    GraphNodeName,
    AnnoKey,
    NodeType,
    TreebankNode,
    DominanceEdge,
    TreebankDocument,
    AlignmentMap,
    MergedNodeSet,
)

from rem_core.config_runtime import (
    MergeConfig,
    RenamePattern,
    load_config_file,
)

from rem_core.logging_monitoring import (
    RunLogger,
    get_run_logger,
)

__version__ = "0.1.0"

__all__ = [
    "MergeError",
    "ConfigError",
    "BindingError",
    "TreebankFormatError",
    "OrderError",
    "AlignmentError",
    "SanityCheckError",
    "NamingError",
    "RenameError",
    "GraphStoreError",
    "UpdateError",
    "TreebankNodeName",
    "GraphNodeName",
    "AnnoKey",
    "NodeType",
    "TreebankNode",
    "DominanceEdge",
    "TreebankDocument",
    "AlignmentMap",
    "MergedNodeSet",
    "MergeConfig",
    "RenamePattern",
    "load_config_file",
    "RunLogger",
    "get_run_logger",
]
