"""
REM CLI - Main Command Line Interface

This module provides the command line of the treebank merge: it
converts the treebank edition of the Referenzkorpus Mittelhochdeutsch
(ReM) in Turtle format into the ANNIS corpora of the ReM.
"""

from __future__ import annotations
import sys
import logging
import argparse
from pathlib import Path
from typing import Optional, List

from rem_core.config_runtime import MergeConfig
from rem_core.errors import MergeError
from rem_core.logging_monitoring import get_run_logger
from rem_merge.pipeline import TreebankMerger

logger = logging.getLogger(__name__)


def create_parser() -> argparse.ArgumentParser:
    """Create argument parser"""
    parser = argparse.ArgumentParser(
        prog="rem-treebank-annis",
        description="Merge the ReM treebank (Turtle) into the ReM ANNIS corpora",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  rem-treebank-annis rem.zip treebank/
  rem-treebank-annis rem.zip treebank/ --rename %c_treebank --iri-anno iri
  rem-treebank-annis rem.zip treebank/ --output merged.zip --in-memory
        """
    )

    parser.add_argument(
        "input_annis",
        type=Path,
        metavar="INPUT_ANNIS_ZIP",
        help="Zip file with the input corpora in GraphML format"
    )

    parser.add_argument(
        "input_ttl",
        type=Path,
        metavar="INPUT_TTL_DIR",
        help="Directory with the treebank data in Turtle (.ttl) format"
    )

    parser.add_argument(
        "--output",
        type=Path,
        metavar="ANNIS_ZIP",
        help="Output zip file (default: input with extension .out.zip)"
    )

    parser.add_argument(
        "--rename",
        metavar="PATTERN",
        help="Rename corpora using a pattern with placeholder %%c, e.g. %%c_treebank"
    )

    parser.add_argument(
        "--layer",
        help="Layer (namespace) of the treebank nodes (default: treebank)"
    )

    parser.add_argument(
        "--tree-anno",
        dest="tree_anno",
        help="Name of the treebank annotation (default: tree)"
    )

    parser.add_argument(
        "--tree-display",
        dest="tree_display",
        help="Display name of the ANNIS tree visualizer (default: tree)"
    )

    parser.add_argument(
        "--iri-anno",
        dest="iri_anno",
        help="Add an annotation of this name holding the treebank IRI of each node"
    )

    parser.add_argument(
        "--in-memory",
        dest="in_memory",
        action="store_true",
        default=None,
        help="Keep corpus graphs in memory rather than reloading them from disk"
    )

    parser.add_argument(
        "--config",
        type=Path,
        help="TOML configuration file with a [merge] table"
    )

    parser.add_argument(
        "-q", "--quiet",
        action="store_true",
        help="Only report warnings and errors"
    )

    parser.add_argument(
        "--debug",
        action="store_true",
        help="Enable debug output"
    )

    parser.add_argument(
        "--log-json",
        dest="log_json",
        action="store_true",
        help="Write log messages as JSON lines"
    )

    parser.add_argument(
        "--version",
        action="version",
        version="%(prog)s 0.1.0"
    )

    return parser


CONFIG_ARGS = (
    "input_annis", "input_ttl", "output", "rename", "layer",
    "tree_anno", "tree_display", "iri_anno", "in_memory",
)


def cli(args: Optional[List[str]] = None) -> int:
    """Main CLI entry point"""
    parser = create_parser()
    parsed_args = parser.parse_args(args)

    run_logger = get_run_logger(
        quiet=parsed_args.quiet,
        debug=parsed_args.debug,
        json_lines=parsed_args.log_json,
    )

    try:
        config = MergeConfig.resolve(
            {name: getattr(parsed_args, name) for name in CONFIG_ARGS},
            config_file=parsed_args.config,
        )
        TreebankMerger(config, run_logger).run()
        return 0

    except KeyboardInterrupt:
        run_logger.error("interrupted")
        return 130
    except (MergeError, OSError) as e:
        run_logger.error(f"{e}", exc_info=parsed_args.debug)
        return 1
    except Exception as e:
        run_logger.error(f"unexpected error: {e}", exc_info=True)
        return 1


def main():
    """Main entry point"""
    sys.exit(cli())


if __name__ == "__main__":
    main()
