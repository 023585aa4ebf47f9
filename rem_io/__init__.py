"""
REM IO - Input/Output for Treebank and ANNIS Data

This package provides reading of the treebank Turtle files, reading and
writing of ANNIS GraphML and packaging of the output archive.

Modules:
    turtle_io: Treebank Turtle reading and document binding
    graphml_io: ANNIS GraphML interchange format
    archive: Output corpus archive
"""

from rem_io.turtle_io import (
    TurtleTreebankReader,
    TreebankStorage,
    read_treebank_file,
)

from rem_io.graphml_io import (
    GraphMLReader,
    GraphMLWriter,
    parse_graphml_file,
    write_graphml_file,
)

__version__ = "0.1.0"

__all__ = [
    "TurtleTreebankReader",
    "TreebankStorage",
    "read_treebank_file",
    "GraphMLReader",
    "GraphMLWriter",
    "parse_graphml_file",
    "write_graphml_file",
]
