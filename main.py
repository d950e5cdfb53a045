#!/usr/bin/env python3
"""
Hybrid Graph Search - command line entry point

Ingest text documents into a vector + k-nearest-neighbour graph corpus and
query it with hybrid vector/graph ranking. The CLI always persists to a JSON
store so that separate ingest and search invocations share one corpus.
"""

import argparse
import json
import sys
from pathlib import Path

from hybridgraph.config import settings
from hybridgraph.errors import HybridGraphError
from hybridgraph.processor.ingestion_pipeline import IngestionPipeline
from hybridgraph.search.hybrid_search import HybridSearch
from hybridgraph.store import JsonGraphStore, LocalBlobStore
from hybridgraph.utils.logger import app_logger


def _cmd_ingest(args, store, blob_store):
    path = Path(args.path)
    if not path.is_file():
        raise SystemExit(f"File not found: {path}")

    pipeline = IngestionPipeline(store, blob_store)
    record = pipeline.upload_file(path.name, path.read_bytes(), args.file_type)
    result = pipeline.ingest(record.id, record.path, record.type)
    return {"fileId": record.id, **result.to_dict()}


def _cmd_search(args, store, blob_store):
    engine = HybridSearch(store)
    response = engine.search(
        query=args.query,
        file_id=args.file_id,
        vector_weight=args.vector_weight,
        graph_weight=args.graph_weight,
        top_k=args.top_k,
    )
    return response.to_dict()


def _cmd_files(args, store, blob_store):
    return {"files": [record.to_dict() for record in store.list_files()]}


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Hybrid Graph Search")
    parser.add_argument("--storage-path", default=settings.graph_storage_path, help="JSON store location")
    parser.add_argument("--blob-root", default=settings.blob_storage_root, help="Uploaded file directory")
    subparsers = parser.add_subparsers(dest="command", required=True)

    ingest = subparsers.add_parser("ingest", help="Ingest a text file")
    ingest.add_argument("path")
    ingest.add_argument("--file-type", default="text/plain")
    ingest.set_defaults(handler=_cmd_ingest)

    search = subparsers.add_parser("search", help="Hybrid search within an ingested file")
    search.add_argument("file_id")
    search.add_argument("query")
    search.add_argument("--vector-weight", type=float, default=settings.default_vector_weight)
    search.add_argument("--graph-weight", type=float, default=settings.default_graph_weight)
    search.add_argument("--top-k", type=int, default=settings.default_top_k)
    search.set_defaults(handler=_cmd_search)

    files = subparsers.add_parser("files", help="List registered files")
    files.set_defaults(handler=_cmd_files)

    serve = subparsers.add_parser("serve", help="Run the HTTP API")
    serve.add_argument("--host", default=settings.api_host)
    serve.add_argument("--port", type=int, default=settings.api_port)
    serve.set_defaults(handler=None)

    return parser


def main(argv=None):
    """Main entry point for the CLI."""
    args = build_parser().parse_args(argv)

    if args.command == "serve":
        import uvicorn

        app_logger.info(f"Starting API server on {args.host}:{args.port}")
        uvicorn.run("api_server:create_app", factory=True, host=args.host, port=args.port,
                    log_level=settings.log_level.lower())
        return 0

    store = JsonGraphStore(args.storage_path)
    blob_store = LocalBlobStore(args.blob_root)

    try:
        output = args.handler(args, store, blob_store)
    except HybridGraphError as e:
        app_logger.error(f"{args.command} failed: {e.message}")
        print(json.dumps(e.to_dict()))
        return 1

    print(json.dumps(output, indent=2, ensure_ascii=False))
    return 0


if __name__ == "__main__":
    sys.exit(main())
