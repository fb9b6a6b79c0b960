"""Command-line interface for chunkwise."""

import argparse
import asyncio
import json
import logging
import sys

from .config import settings


def main(argv=None):
    """Main entry point for the CLI."""
    parser = argparse.ArgumentParser(
        description="chunkwise - hydrate placeholder JSON documents from chunk streams"
    )
    parser.add_argument(
        "--log-level", default=settings.log_level, help="Logging level (default: %(default)s)"
    )
    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # Hydrate command
    hydrate_parser = subparsers.add_parser(
        "hydrate", help="Resolve a document against line-delimited JSON chunk batches"
    )
    hydrate_parser.add_argument("document", help="Path to the JSON document with placeholders")
    hydrate_parser.add_argument(
        "--chunks", "-c", help="File of JSON batches, one per line (default: stdin)"
    )
    hydrate_parser.add_argument(
        "--pattern", default=None, help="Placeholder regex with one capturing group"
    )
    hydrate_parser.add_argument(
        "--strict", action="store_true", help="Exit with status 1 if placeholders remain"
    )
    hydrate_parser.add_argument(
        "--indent", type=int, default=2, help="JSON output indentation (default: 2)"
    )

    args = parser.parse_args(argv)

    logging.basicConfig(
        level=args.log_level.upper(),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        stream=sys.stderr,
    )

    if args.command == "hydrate":
        sys.exit(asyncio.run(run_hydrate(args.document, args.chunks, args.pattern, args.strict, args.indent)))
    else:
        parser.print_help()
        sys.exit(1)


async def run_hydrate(
    document_path: str,
    chunks_path: str = None,
    pattern: str = None,
    strict: bool = False,
    indent: int = 2,
) -> int:
    """Hydrate a document file and print the result. Returns the exit status."""
    from .document import ChunkDocument
    from .streams import iter_lines

    with open(document_path, encoding="utf-8") as handle:
        document = json.load(handle)

    if not isinstance(document, dict):
        print("Error: the document must be a JSON object", file=sys.stderr)
        return 1

    async with ChunkDocument.from_json(document, pattern=pattern) as doc:
        events = doc.subscribe()
        await doc.process_chunk_stream(iter_lines(chunks_path))

        for event in events.drain():
            if event.is_error:
                print(f"Warning: {event.error}", file=sys.stderr)

        print(json.dumps(doc.get_resolved_data(), indent=indent, default=str))

        if strict and not doc.all_chunks_resolved:
            pending = [
                chunk_id for chunk_id in doc.placeholder_ids() if not doc.ledger.is_resolved(chunk_id)
            ]
            print(f"Error: unresolved chunks: {', '.join(pending)}", file=sys.stderr)
            return 1

    return 0


if __name__ == "__main__":
    main()
