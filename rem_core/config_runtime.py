"""
REM Core Config Runtime - Merge Run Configuration

This module provides the configuration of a merge run: input and output
paths, the layer and annotation names used for merged treebank nodes,
and the optional corpus rename pattern.

Values are resolved from built-in defaults, an optional TOML file with a
`[merge]` table, environment variables and finally command line flags.
"""

from __future__ import annotations
import os
import logging
from pathlib import Path
from dataclasses import dataclass, fields
from typing import Dict, Any, Optional, Mapping

import tomlkit
from tomlkit.exceptions import ParseError as TOMLParseError

from rem_core.errors import ConfigError

logger = logging.getLogger(__name__)


ANNIS_NS = "annis"
DEFAULT_NS = "default_ns"

TOK_ANNO = "tok_anno"
ANNOTATION_NS = "annotation"

PLACEHOLDER_ANNO_VALUE = "--"

RENAME_PLACEHOLDER = "%c"

ENV_PREFIX = "REM_TREEBANK_"

ENV_VARIABLES = {
    "LAYER": "layer",
    "TREE_ANNO": "tree_anno",
    "TREE_DISPLAY": "tree_display",
    "IRI_ANNO": "iri_anno",
    "IN_MEMORY": "in_memory",
}


class RenamePattern:
    """Corpus rename pattern containing the placeholder `%c`"""

    def __init__(self, pattern: str):
        if RENAME_PLACEHOLDER not in pattern:
            raise ConfigError(f"pattern must contain placeholder `{RENAME_PLACEHOLDER}`")
        self.pattern = pattern

    def apply(self, name: str) -> str:
        """Substitute the original corpus name"""
        return self.pattern.replace(RENAME_PLACEHOLDER, name)

    def __eq__(self, other: object) -> bool:
        return isinstance(other, RenamePattern) and other.pattern == self.pattern

    def __repr__(self) -> str:
        return f"RenamePattern({self.pattern!r})"


def default_output_path(input_annis: Path) -> Path:
    """Output beside the input archive with extension `.out.zip`"""
    if input_annis.stem:
        return input_annis.with_name(f"{input_annis.stem}.out.zip")
    return Path("out.zip")


def parse_bool(value: Any) -> bool:
    """Parse a boolean from a config or environment value"""
    if isinstance(value, bool):
        return value
    text = str(value).strip().lower()
    if text in ("1", "true", "yes", "on"):
        return True
    if text in ("0", "false", "no", "off", ""):
        return False
    raise ConfigError(f"invalid boolean value: {value!r}")


@dataclass
class MergeConfig:
    """Configuration for a merge run"""
    input_annis: Path

    input_ttl: Path

    output: Optional[Path] = None

    rename: Optional[RenamePattern] = None

    layer: str = "treebank"

    tree_anno: str = "tree"

    tree_display: str = "tree"

    iri_anno: Optional[str] = None

    in_memory: bool = False

    segmentation: str = TOK_ANNO

    def __post_init__(self):
        self.input_annis = Path(self.input_annis)
        self.input_ttl = Path(self.input_ttl)

        if self.output is None:
            self.output = default_output_path(self.input_annis)
        else:
            self.output = Path(self.output)

        if isinstance(self.rename, str):
            self.rename = RenamePattern(self.rename)

        for name in ("layer", "tree_anno", "tree_display", "segmentation"):
            if not getattr(self, name):
                raise ConfigError(f"{name} must not be empty")

    @classmethod
    def resolve(
        cls,
        cli_values: Mapping[str, Any],
        config_file: Optional[Path] = None,
        environ: Optional[Mapping[str, str]] = None
    ) -> "MergeConfig":
        """Merge defaults, config file, environment and command line values"""
        values: Dict[str, Any] = {}

        if config_file is not None:
            values.update(load_config_file(config_file))

        values.update(env_overrides(os.environ if environ is None else environ))

        values.update({k: v for k, v in cli_values.items() if v is not None})

        known = {f.name for f in fields(cls)}
        unknown = set(values) - known
        if unknown:
            raise ConfigError(f"unknown configuration keys: {', '.join(sorted(unknown))}")

        for required in ("input_annis", "input_ttl"):
            if required not in values:
                raise ConfigError(f"missing required setting: {required}")

        if "in_memory" in values:
            values["in_memory"] = parse_bool(values["in_memory"])

        config = cls(**values)
        logger.debug(f"Resolved configuration: {config.to_dict()}")
        return config

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary"""
        return {
            "input_annis": str(self.input_annis),
            "input_ttl": str(self.input_ttl),
            "output": str(self.output),
            "rename": self.rename.pattern if self.rename else None,
            "layer": self.layer,
            "tree_anno": self.tree_anno,
            "tree_display": self.tree_display,
            "iri_anno": self.iri_anno,
            "in_memory": self.in_memory,
            "segmentation": self.segmentation,
        }


def load_config_file(path: Path) -> Dict[str, Any]:
    """Read the `[merge]` table of a TOML configuration file"""
    path = Path(path)

    if not path.exists():
        raise ConfigError(f"configuration file not found: {path}")

    try:
        document = tomlkit.parse(path.read_text(encoding="utf-8"))
    except TOMLParseError as e:
        raise ConfigError(f"invalid configuration file {path}: {e}") from e

    if "merge" not in document:
        return {}

    table = document["merge"]
    if not isinstance(table, dict):
        raise ConfigError(f"invalid configuration file {path}: `merge` is not a table")

    values = {key.replace("-", "_"): value for key, value in table.unwrap().items()}

    base_dir = path.parent
    for key in ("input_annis", "input_ttl", "output"):
        if key in values:
            values[key] = base_dir / values[key]

    return values


def env_overrides(environ: Mapping[str, str]) -> Dict[str, Any]:
    """Collect settings from REM_TREEBANK_* environment variables"""
    values: Dict[str, Any] = {}
    for suffix, key in ENV_VARIABLES.items():
        value = environ.get(ENV_PREFIX + suffix)
        if value:
            values[key] = value
    return values
