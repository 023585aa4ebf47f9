"""
REM IO Archive - Output Corpus Archive

This module provides packaging of merged corpora into the output zip
archive. The archive is staged in a temporary file next to the output
path and moved into place only when every corpus has been written, so a
failed run never leaves a partial archive at the output path.
"""

from __future__ import annotations
import os
import logging
import tempfile
import zipfile
from pathlib import Path
from typing import Optional, Union

import tomlkit
from tomlkit import TOMLDocument

from rem_graph.storage import CorpusStorage

logger = logging.getLogger(__name__)


class CorpusWriter:
    """Writer of the output archive, one GraphML file per corpus"""

    def __init__(self, path: Union[str, Path]):
        self.path = Path(path)
        self.corpus_count = 0

        parent = self.path.parent
        handle, staged = tempfile.mkstemp(
            prefix=f".{self.path.name}.", suffix=".tmp", dir=str(parent)
        )
        os.close(handle)
        self._staged_path = Path(staged)
        self._zip: Optional[zipfile.ZipFile] = zipfile.ZipFile(
            self._staged_path, "w", compression=zipfile.ZIP_DEFLATED
        )

    def __enter__(self) -> "CorpusWriter":
        return self

    def __exit__(self, exc_type, exc, tb):
        if self._zip is not None:
            self.discard()

    def write_corpus(
        self,
        storage: CorpusStorage,
        corpus_name: str,
        export_name: Optional[str] = None,
        config: Optional[TOMLDocument] = None
    ):
        """Add a corpus and its linked files, then unload it from the storage"""
        if self._zip is None:
            raise ValueError("corpus writer is already closed")

        export_name = export_name or corpus_name
        logger.info(f"Writing corpus {export_name}")

        config_text = tomlkit.dumps(config) if config is not None else None

        with tempfile.TemporaryDirectory(prefix="rem-export-") as temp_dir:
            temp_path = Path(temp_dir)
            graphml_path = storage.export_corpus(corpus_name, temp_path, export_name, config_text)
            self._zip.write(graphml_path, f"{export_name}.graphml")

            linked_dir = temp_path / export_name
            if linked_dir.is_dir():
                for file_path in sorted(linked_dir.rglob("*")):
                    if file_path.is_file():
                        self._zip.write(file_path, file_path.relative_to(temp_path).as_posix())

        storage.unload(corpus_name)
        self.corpus_count += 1

    def finish(self) -> Path:
        """Close the archive and move it to the output path"""
        if self._zip is None:
            raise ValueError("corpus writer is already closed")

        self._zip.close()
        self._zip = None
        os.replace(self._staged_path, self.path)

        logger.info(f"Written {self.corpus_count} corpora to {self.path}")
        return self.path

    def discard(self):
        """Drop the staged archive without touching the output path"""
        if self._zip is not None:
            self._zip.close()
            self._zip = None
        if self._staged_path.exists():
            self._staged_path.unlink()
        logger.debug(f"Discarded staged archive {self._staged_path}")
