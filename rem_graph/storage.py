"""
REM Graph Storage - Corpus Storage with Scoped Backing Directory

This module provides the corpus store of a merge run. Corpora are
imported from a zip archive of ANNIS GraphML files into a temporary
backing directory owned by the storage, loaded lazily (or all at import
when running in memory), updated with transactional batches and
exported again.

The storage is a context manager; its backing directory is removed on
every exit path.
"""

from __future__ import annotations
import shutil
import logging
import tempfile
import zipfile
from pathlib import Path, PurePosixPath
from dataclasses import dataclass
from typing import Dict, List, Optional, Union

import tomlkit
from tomlkit import TOMLDocument
from tomlkit.exceptions import ParseError as TOMLParseError

from rem_core.errors import GraphStoreError, ConfigError
from rem_graph.annotation_graph import AnnotationGraph
from rem_graph.updates import GraphUpdate, apply_update
from rem_graph import queries
from rem_io.graphml_io import GraphMLReader, GraphMLWriter

logger = logging.getLogger(__name__)


GRAPHML_SUFFIX = ".graphml"


@dataclass
class CorpusInfo:
    """Staged corpus: GraphML location, configuration and linked files"""
    name: str

    graphml_path: Path

    config_text: Optional[str] = None

    linked_files_dir: Optional[Path] = None

    def config(self) -> TOMLDocument:
        """Parse the corpus configuration, an absent configuration is empty"""
        if not self.config_text:
            return tomlkit.document()
        try:
            return tomlkit.parse(self.config_text)
        except TOMLParseError as e:
            raise ConfigError(f"invalid corpus config of {self.name}: {e}") from e

    def linked_files(self) -> List[Path]:
        """Linked files stored beside the corpus"""
        if self.linked_files_dir is None or not self.linked_files_dir.exists():
            return []
        return sorted(p for p in self.linked_files_dir.rglob("*") if p.is_file())


class CorpusStorage:
    """Corpus store backed by a temporary directory"""

    def __init__(self, in_memory: bool = False):
        self.in_memory = in_memory
        self._temp_dir: Optional[tempfile.TemporaryDirectory] = None
        self._infos: Dict[str, CorpusInfo] = {}
        self._graphs: Dict[str, AnnotationGraph] = {}

    def __enter__(self) -> "CorpusStorage":
        self._ensure_dir()
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()

    def _ensure_dir(self) -> Path:
        if self._temp_dir is None:
            self._temp_dir = tempfile.TemporaryDirectory(prefix="rem-annis-")
        return Path(self._temp_dir.name)

    @property
    def backing_dir(self) -> Path:
        return self._ensure_dir()

    def close(self):
        """Drop all corpora and remove the backing directory"""
        self._graphs.clear()
        self._infos.clear()
        if self._temp_dir is not None:
            self._temp_dir.cleanup()
            self._temp_dir = None

    # Import

    def import_all_from_zip(self, path: Union[str, Path]) -> List[str]:
        """Import every GraphML corpus of a zip archive, return corpus names"""
        path = Path(path)
        logger.info(f"Importing corpora from {path} (in_memory={self.in_memory})")

        staging_dir = self.backing_dir / f"import-{len(self._infos)}"
        staging_dir.mkdir(parents=True)

        try:
            with zipfile.ZipFile(path) as archive:
                members = [m for m in archive.infolist() if not m.is_dir()]
                for member in members:
                    if not _is_safe_member(member.filename):
                        raise GraphStoreError(f"unsafe path in archive: {member.filename}")
                archive.extractall(staging_dir, members)
        except zipfile.BadZipFile as e:
            raise GraphStoreError(f"invalid corpus archive {path}: {e}") from e

        names = []
        graphml_files = sorted(
            m.filename for m in members if m.filename.endswith(GRAPHML_SUFFIX)
        )
        for member_name in graphml_files:
            graphml_path = staging_dir / member_name
            names.append(self._import_graphml(graphml_path))

        logger.info(f"Imported {len(names)} corpora")
        return names

    def _import_graphml(self, graphml_path: Path) -> str:
        corpus = GraphMLReader().read_file(graphml_path)
        name = corpus.root_corpus_name() or graphml_path.stem

        if name in self._infos:
            raise GraphStoreError(f"corpus imported twice: {name}")

        linked_dir = graphml_path.with_suffix("")
        self._infos[name] = CorpusInfo(
            name=name,
            graphml_path=graphml_path,
            config_text=corpus.config,
            linked_files_dir=linked_dir if linked_dir.is_dir() else None,
        )

        if self.in_memory:
            self._graphs[name] = corpus.graph

        logger.debug(f"Imported corpus {name} from {graphml_path.name}")
        return name

    # Access

    def corpus_names(self) -> List[str]:
        return list(self._infos)

    def info(self, corpus_name: str) -> CorpusInfo:
        info = self._infos.get(corpus_name)
        if info is None:
            raise GraphStoreError(f"unknown corpus: {corpus_name}")
        return info

    def corpus_graph(self, corpus_name: str) -> AnnotationGraph:
        """Resident graph of a corpus, loading it if necessary"""
        graph = self._graphs.get(corpus_name)
        if graph is None:
            info = self.info(corpus_name)
            logger.debug(f"Loading corpus {corpus_name}")
            graph = GraphMLReader().read_file(info.graphml_path).graph
            self._graphs[corpus_name] = graph
        return graph

    def is_loaded(self, corpus_name: str) -> bool:
        return corpus_name in self._graphs

    def unload(self, corpus_name: str):
        """Drop the resident graph of a corpus to free memory"""
        self.info(corpus_name)
        self._graphs.pop(corpus_name, None)

    def document_names(self, corpus_name: str) -> List[str]:
        """Node names of all documents of a corpus"""
        return [m[0] for m in queries.find_documents(self.corpus_graph(corpus_name))]

    def document_graph(self, corpus_name: str, doc_node_name: str) -> AnnotationGraph:
        """View of one document of a corpus"""
        return self.corpus_graph(corpus_name).document_graph(doc_node_name)

    def apply_update(self, corpus_name: str, update: GraphUpdate):
        """Apply a batch atomically"""
        apply_update(self.corpus_graph(corpus_name), update)

    # Export

    def export_corpus(
        self,
        corpus_name: str,
        target_dir: Path,
        export_name: Optional[str] = None,
        config_text: Optional[str] = None
    ) -> Path:
        """Write `<name>.graphml` and the linked files directory `<name>/`"""
        info = self.info(corpus_name)
        export_name = export_name or corpus_name
        target_dir = Path(target_dir)

        graphml_path = target_dir / f"{export_name}{GRAPHML_SUFFIX}"
        GraphMLWriter().write_file(
            self.corpus_graph(corpus_name),
            graphml_path,
            config_text if config_text is not None else info.config_text,
        )

        if info.linked_files_dir is not None:
            shutil.copytree(info.linked_files_dir, target_dir / export_name)

        return graphml_path


def _is_safe_member(name: str) -> bool:
    path = PurePosixPath(name)
    return not path.is_absolute() and ".." not in path.parts


class CorpusHandle:
    """Corpus of the storage under its original and its current name

    The storage keeps addressing the corpus by the name it was imported
    with; renaming only changes the node names and the export name.
    """

    def __init__(self, storage: CorpusStorage, original_name: str):
        storage.info(original_name)
        self.storage = storage
        self.original_name = original_name
        self.name = original_name

    @property
    def graph(self) -> AnnotationGraph:
        return self.storage.corpus_graph(self.original_name)

    def config(self) -> TOMLDocument:
        return self.storage.info(self.original_name).config()

    def document_names(self) -> List[str]:
        return self.storage.document_names(self.original_name)

    def document_graph(self, doc_node_name: str) -> AnnotationGraph:
        return self.storage.document_graph(self.original_name, doc_node_name)

    def apply(self, update: GraphUpdate):
        """Apply a batch to the corpus"""
        logger.info(f"Applying {len(update)} updates to corpus {self.name}")
        self.storage.apply_update(self.original_name, update)

    def query_node_names(self) -> List[queries.Match]:
        return queries.find_node_names(self.graph)

    def query_layer_containment(self, layer: str) -> List[queries.Match]:
        return queries.find_layer_containment(self.graph, layer)
