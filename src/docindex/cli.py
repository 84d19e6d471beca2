#!/usr/bin/env python3
"""
CLI entry point for the document index.

Usage:
    docindex --store sqlite ingest handbook.txt
    docindex --store sqlite query "how is leave accrued?" -k 3
    docindex --store sqlite list
    docindex --store sqlite delete handbook.txt
    docindex --config config/docindex.yaml query "parental leave"
"""

import argparse
import json
import logging
import sys
from dataclasses import replace
from pathlib import Path
from typing import List, Optional

from .core.config import EMBED_PROVIDERS, STORE_BACKENDS, DocIndexConfig
from .core.exceptions import DocIndexError
from .core.logging import configure_logging
from .retrieval.document_index import DocumentIndex


logger = logging.getLogger(__name__)


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    """Parse command-line arguments."""
    parser = argparse.ArgumentParser(
        prog="docindex",
        description="Chunk, embed and search plain-text documents",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )

    parser.add_argument(
        "--config",
        type=Path,
        help="Path to configuration YAML file",
    )
    parser.add_argument(
        "--store",
        choices=STORE_BACKENDS,
        help="Store backend (overrides config)",
    )
    parser.add_argument(
        "--sqlite-path",
        type=Path,
        help="SQLite database file (overrides config)",
    )
    parser.add_argument(
        "--provider",
        choices=EMBED_PROVIDERS,
        help="Embedding provider (overrides config)",
    )
    parser.add_argument(
        "--verbose",
        "-v",
        action="store_true",
        help="Enable verbose/debug logging",
    )
    parser.add_argument(
        "--json-logs",
        action="store_true",
        help="Emit JSON-structured log lines",
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    ingest = subparsers.add_parser("ingest", help="Ingest a UTF-8 text file")
    ingest.add_argument("path", type=Path, help="Text file to ingest")
    ingest.add_argument(
        "--document-id",
        help="Document identifier (default: the file name)",
    )
    ingest.add_argument(
        "--page-count",
        type=int,
        help="Page count of the source document",
    )

    query = subparsers.add_parser("query", help="Search stored chunks")
    query.add_argument("text", help="Query text")
    query.add_argument("-k", type=int, help="Number of hits (default: config top_k)")
    query.add_argument("--document-id", help="Restrict the search to one document")

    delete = subparsers.add_parser("delete", help="Delete a document")
    delete.add_argument("document_id", help="Document identifier")

    subparsers.add_parser("list", help="List stored documents")

    return parser.parse_args(argv)


def load_config(args: argparse.Namespace) -> DocIndexConfig:
    """Resolve config from file and environment, then apply CLI overrides."""
    if args.config:
        config = DocIndexConfig.from_file(args.config)
    else:
        config = DocIndexConfig.from_env()

    overrides = {}
    if args.store:
        overrides["store_backend"] = args.store
    if args.sqlite_path:
        overrides["sqlite_path"] = str(args.sqlite_path)
    if args.provider:
        overrides["embed_provider"] = args.provider
    if args.json_logs:
        overrides["log_json"] = True

    if overrides:
        config = replace(config, **overrides)
        config.validate()
    return config


def run_command(index: DocumentIndex, args: argparse.Namespace) -> None:
    """Execute one subcommand and print its result as JSON."""
    if args.command == "ingest":
        try:
            text = args.path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            raise DocIndexError(f"Cannot read {args.path}: {e}") from e
        document = index.ingest(
            args.document_id or args.path.name,
            text,
            page_count=args.page_count,
        )
        _print_json(document.to_dict())

    elif args.command == "query":
        hits = index.query(args.text, k=args.k, document_id=args.document_id)
        _print_json([hit.to_dict() for hit in hits])

    elif args.command == "delete":
        index.delete_document(args.document_id)
        _print_json({"deleted": args.document_id})

    elif args.command == "list":
        _print_json([document.to_dict() for document in index.list_documents()])


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point."""
    args = parse_args(argv)

    try:
        config = load_config(args)
    except DocIndexError as e:
        print(f"error: {e}", file=sys.stderr)
        return 1

    configure_logging(
        level=logging.DEBUG if args.verbose else config.log_level_number,
        structured=config.log_json,
        stream=sys.stderr,
    )

    try:
        with DocumentIndex.from_config(config) as index:
            run_command(index, args)
        return 0
    except DocIndexError as e:
        logger.debug(f"Command {args.command} failed", exc_info=True)
        print(f"error: {e}", file=sys.stderr)
        return 1
    except KeyboardInterrupt:
        logger.info("Interrupted by user")
        return 1


def _print_json(data) -> None:
    print(json.dumps(data, indent=2))


if __name__ == "__main__":
    sys.exit(main())
