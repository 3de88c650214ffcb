#!/usr/bin/env python3
"""CLI entry point for Signal Search.

Runs unified searches against a storage export (a JSON object mapping
storage keys to stored values) and shows how queries are parsed.
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from dataclasses import asdict
from pathlib import Path

import yaml

from .config import ConfigManager, SearchConfig, apply_env_overrides
from .engine import FILTER_TO_KIND, SearchDataset, SearchEngine, SearchHit
from .filters import TIMELINE_WINDOWS
from .query import parse_unified_search_query
from .ranking import SORT_MODES
from .timestamps import normalize_iso, parse_timestamp_ms

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = Path("~/.signal-search/config.yaml").expanduser()

_KIND_HEADINGS = {
    "thread": "Threads",
    "space": "Spaces",
    "collection": "Collections",
    "file": "Files",
    "task": "Tasks",
}


# ---------------------------------------------------------------------------
# Helper Functions
# ---------------------------------------------------------------------------


def setup_logging(level: str) -> None:
    """Configure logging.

    Args:
        level: Log level name (DEBUG, INFO, WARNING, ERROR, CRITICAL).
    """
    logging.basicConfig(
        level=getattr(logging, level),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )


def _hit_title(hit: SearchHit) -> str:
    record = hit.record
    if hit.kind == "thread":
        return record.display_title
    return record.name


def _truncate(text: str, width: int = 60) -> str:
    return text if len(text) <= width else text[: width - 3] + "..."


def _load_config(path: Path | None) -> SearchConfig:
    manager = ConfigManager(path or DEFAULT_CONFIG_PATH)
    logger.debug("Loading config from %s", manager.config_path)
    return apply_env_overrides(manager.load())


def _load_export(path: Path) -> dict:
    with open(path, encoding="utf-8") as f:
        data = json.load(f)
    if not isinstance(data, dict):
        raise ValueError(f"Storage export must be a JSON object: {path}")
    return data


# ---------------------------------------------------------------------------
# Command Implementations
# ---------------------------------------------------------------------------


def _parse(query: str, verbatim: bool) -> int:
    """Print the parsed form of a query as JSON."""
    parsed = parse_unified_search_query(query, verbatim)
    print(json.dumps(asdict(parsed), indent=2, ensure_ascii=False))
    return 0


def _search(args: argparse.Namespace) -> int:
    """Run a unified search and print the ranked results."""
    try:
        config = _load_config(args.config)
        blobs = _load_export(args.data)
    except (OSError, ValueError, yaml.YAMLError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    now_ms = None
    now_iso = None
    if args.now is not None:
        now_iso = normalize_iso(args.now, "")
        if not now_iso:
            print(f"Error: Invalid --now timestamp: {args.now}", file=sys.stderr)
            return 1
        now_ms = parse_timestamp_ms(now_iso)

    dataset = SearchDataset.from_storage(blobs, now_iso=now_iso)
    engine = SearchEngine(config)
    results = engine.search(
        dataset,
        args.query,
        filter_type=args.filter,
        sort_by=args.sort,
        timeline_window=args.window,
        limit=args.limit,
        verbatim=True if args.verbatim else None,
        now_ms=now_ms,
    )

    if results.total == 0:
        print(f'No results found for "{args.query}"')
        return 0

    print(f'Search results for "{args.query}" ({results.total} matches)')
    for kind, group in results.groups.items():
        if not group.hits:
            continue
        # Unscoped searches show a short overview per kind
        if results.scope is None:
            hits = results.preview(kind, config.top_results)
        else:
            hits = group.hits
        print()
        print(f"## {_KIND_HEADINGS[kind]} ({group.total})")
        for i, hit in enumerate(hits, 1):
            print(f"{i}. {_truncate(_hit_title(hit))}")
            details = f"   id: {hit.id} • {hit.created_at} • score: {hit.score:.1f}"
            if hit.badges:
                details += f" • matched: {', '.join(hit.badges)}"
            print(details)
        if group.total > len(hits):
            print(f"   ... and {group.total - len(hits)} more")
    return 0


# ---------------------------------------------------------------------------
# CLI Argument Parsing
# ---------------------------------------------------------------------------


def _create_parser() -> argparse.ArgumentParser:
    """Create the argument parser."""
    parser = argparse.ArgumentParser(
        prog="signal-search",
        description="Search threads, spaces, collections, files and tasks.",
    )
    parser.add_argument(
        "--log-level",
        type=str,
        default="WARNING",
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        help="Log level (default: WARNING)",
    )

    subparsers = parser.add_subparsers(dest="command", help="Commands")

    # parse
    parse_parser = subparsers.add_parser(
        "parse",
        help="Show how a query is parsed",
    )
    parse_parser.add_argument("query", type=str, help="Search query")
    parse_parser.add_argument(
        "--verbatim",
        action="store_true",
        help="Treat free text as a single phrase",
    )

    # search
    search_parser = subparsers.add_parser(
        "search",
        help="Search a storage export",
    )
    search_parser.add_argument("query", type=str, help="Search query")
    search_parser.add_argument(
        "-d",
        "--data",
        type=Path,
        required=True,
        help="Path to a JSON storage export",
    )
    search_parser.add_argument(
        "-f",
        "--filter",
        type=str,
        default="all",
        choices=list(FILTER_TO_KIND),
        help="Entity kinds to search (default: all)",
    )
    search_parser.add_argument(
        "-s",
        "--sort",
        type=str,
        default=None,
        choices=list(SORT_MODES),
        help="Sort order (default: from config, relevance)",
    )
    search_parser.add_argument(
        "-w",
        "--window",
        type=str,
        default=None,
        choices=list(TIMELINE_WINDOWS),
        help="Timeline window (default: from config, all)",
    )
    search_parser.add_argument(
        "-l",
        "--limit",
        type=int,
        default=None,
        help="Max results per kind (default: from config, 20)",
    )
    search_parser.add_argument(
        "--verbatim",
        action="store_true",
        help="Treat free text as a single phrase",
    )
    search_parser.add_argument(
        "--now",
        type=str,
        default=None,
        help="Current time as ISO timestamp (default: system clock)",
    )
    search_parser.add_argument(
        "-c",
        "--config",
        type=Path,
        default=None,
        help=f"Config file (default: {DEFAULT_CONFIG_PATH})",
    )

    return parser


# ---------------------------------------------------------------------------
# Main Entry Point
# ---------------------------------------------------------------------------


def main(args: list[str] | None = None) -> int:
    """Run the Signal Search CLI.

    Usage:
        signal-search parse '<query>'
        signal-search search '<query>' --data export.json

    Args:
        args: Command line arguments (defaults to sys.argv[1:]).

    Returns:
        Exit code (0 for success, non-zero for error).
    """
    parser = _create_parser()
    parsed = parser.parse_args(args)
    setup_logging(parsed.log_level)

    if parsed.command == "parse":
        return _parse(parsed.query, parsed.verbatim)
    if parsed.command == "search":
        return _search(parsed)

    parser.print_help()
    return 1


if __name__ == "__main__":
    sys.exit(main())
