"""Main CLI entry point for supplygraph.

Provides commands: ingest, query
"""

import argparse
import json
import logging
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

from pydantic import ValidationError
from rich.console import Console
from rich.logging import RichHandler

from supplygraph.config import load_mapping, load_store_config
from supplygraph.errors import SupplyGraphError
from supplygraph.graph import (
    GraphStore,
    HasSourceAt,
    HasSourceAtSpec,
    dump_records,
    load_document,
)

logger = logging.getLogger("supplygraph.cli")


def setup_logging(verbose: bool = False, console: Optional[Console] = None) -> None:
    """Route supplygraph log records through a Rich handler.

    ``verbose`` lowers only the ``supplygraph`` hierarchy to DEBUG;
    third-party loggers stay at WARNING.
    """
    handler = RichHandler(
        console=console,
        show_time=verbose,
        show_path=verbose,
        markup=False,
        rich_tracebacks=verbose,
    )
    handler.setFormatter(logging.Formatter("[%(name)s] %(message)s"))

    root = logging.getLogger()
    for existing in list(root.handlers):
        root.removeHandler(existing)
    root.addHandler(handler)
    root.setLevel(logging.WARNING)

    logging.getLogger("supplygraph").setLevel(logging.DEBUG if verbose else logging.WARNING)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="supplygraph",
        description="Supplygraph - package to source provenance graph",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Enable verbose logging",
    )
    parser.add_argument(
        "--config",
        help="Store configuration (.toml/.json file or inline string)",
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    ingest_parser = subparsers.add_parser(
        "ingest",
        help="Load a graph document and print the ingested links",
    )
    ingest_parser.add_argument("document", help="Graph document (.toml or .json)")
    ingest_parser.add_argument("-o", "--output", help="Write JSON results to this file")

    query_parser = subparsers.add_parser(
        "query",
        help="Load a graph document and query has-source-at links",
    )
    query_parser.add_argument("document", help="Graph document (.toml or .json)")
    query_parser.add_argument("--id", help="Fetch a single link by id")
    query_parser.add_argument("--justification", help="Exact justification to match")
    query_parser.add_argument("--origin", help="Exact origin to match")
    query_parser.add_argument("--collector", help="Exact collector to match")
    query_parser.add_argument(
        "--known-since",
        type=datetime.fromisoformat,
        help="ISO-8601 timestamp the link must be known since",
    )
    query_parser.add_argument("-o", "--output", help="Write JSON results to this file")

    return parser


def _load_store(args: argparse.Namespace) -> Tuple[GraphStore, List[HasSourceAt]]:
    document = Path(args.document)
    if not document.is_file():
        raise FileNotFoundError(f"Graph document not found: {document}")
    config = load_store_config(args.config)
    store = GraphStore(config)
    links = load_document(store, load_mapping(document))
    return store, links


def _emit(payload: List[Dict[str, Any]], output: Optional[str], console: Console) -> None:
    if output:
        path = Path(output)
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, "w", encoding="utf-8") as f:
            json.dump(payload, f, indent=2, ensure_ascii=False)
        logger.info("Results written to: %s", path)
    else:
        console.print_json(data=payload)


def ingest_command(args: argparse.Namespace, console: Console) -> int:
    _, links = _load_store(args)
    _emit(dump_records(links), args.output, console)
    return 0


def query_command(args: argparse.Namespace, console: Console) -> int:
    store, _ = _load_store(args)
    spec = HasSourceAtSpec(
        id=args.id,
        justification=args.justification,
        origin=args.origin,
        collector=args.collector,
        known_since=args.known_since,
    )
    _emit(dump_records(store.has_source_at(spec)), args.output, console)
    return 0


COMMANDS = {
    "ingest": ingest_command,
    "query": query_command,
}


def main(argv: Optional[List[str]] = None) -> int:
    """Main CLI entry point.

    Returns:
        int: Exit code.
    """
    parser = build_parser()
    args = parser.parse_args(argv)

    console = Console()
    setup_logging(args.verbose, console=Console(stderr=True))

    if not args.command:
        parser.print_help()
        return 1

    try:
        return COMMANDS[args.command](args, console)
    except (SupplyGraphError, ValidationError, ValueError, OSError) as exc:
        logger.error("%s failed: %s", args.command, exc)
        return 1


if __name__ == "__main__":
    raise SystemExit(main())
