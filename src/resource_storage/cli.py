"""resource-storage CLI - inspect and manage stored resources.

Usage:
    python -m resource_storage ls (--owner ID | --prefix PREFIX)
    python -m resource_storage exists NAME [--owner ID]
    python -m resource_storage get NAME [--owner ID] [--out FILE]
    python -m resource_storage put NAME --file FILE [--content-type TYPE] [--owner ID]
    python -m resource_storage rm NAME [--owner ID]
    python -m resource_storage url NAME [--owner ID] [--ttl-seconds N]

The backend is configured through RESOURCE_STORAGE_* environment variables
(see resource_storage.config); tracing through RESOURCE_STORAGE_OTEL_*
(see resource_storage.observability.tracing).

Exit codes:
    0: Success
    1: Backend failure / internal error
    2: Not found / already exists / invalid input or configuration
"""

from __future__ import annotations

import argparse
import json
import logging
import mimetypes
import sys
from datetime import timedelta
from pathlib import Path
from typing import Any

from resource_storage.errors import (
    PathTraversalError,
    ResourceAlreadyExistsError,
    StorageConfigError,
    StorageUnavailableError,
)
from resource_storage.factory import build_resource_store
from resource_storage.observability.tracing import TracingConfigError, configure_tracing
from resource_storage.store import ResourceStore


def _output_json(data: dict[str, Any]) -> None:
    """Output JSON to stdout with deterministic ordering."""
    print(json.dumps(data, sort_keys=True, indent=2))


def _make_error_result(code: str, message: str) -> dict[str, Any]:
    return {"error": {"code": code, "message": message}, "ok": False}


def cmd_ls(store: ResourceStore, args: argparse.Namespace) -> int:
    """List resources of an owner or under a raw prefix."""
    if args.owner is not None:
        summaries = store.list_summaries(args.owner)
        objects = [
            {**s.to_dict(), "name": store.codec.strip(args.owner, s.key)} for s in summaries
        ]
    else:
        objects = [s.to_dict() for s in store.list_summaries_by_prefix(args.prefix)]

    _output_json({"count": len(objects), "objects": objects, "ok": True})
    return 0


def cmd_exists(store: ResourceStore, args: argparse.Namespace) -> int:
    exists = store.exists(args.name, owner_id=args.owner)
    _output_json({"exists": exists, "key": store.resolve_key(args.name, args.owner), "ok": True})
    return 0


def cmd_get(store: ResourceStore, args: argparse.Namespace) -> int:
    """Write resource content to --out, or to stdout when omitted."""
    content = store.get(args.name, owner_id=args.owner)
    if content is None:
        key = store.resolve_key(args.name, args.owner)
        _output_json(_make_error_result("NOT_FOUND", f"Resource not found: {key}"))
        return 2

    with content:
        data = content.read()

    if args.out:
        Path(args.out).write_bytes(data)
        _output_json(
            {
                "content_type": content.content_type,
                "key": content.key,
                "ok": True,
                "out": args.out,
                "size_bytes": len(data),
            }
        )
    else:
        sys.stdout.buffer.write(data)
        sys.stdout.buffer.flush()
    return 0


def cmd_put(store: ResourceStore, args: argparse.Namespace) -> int:
    path = Path(args.file)
    if not path.is_file():
        _output_json(_make_error_result("INVALID_INPUT", f"File not found: {args.file}"))
        return 2

    content_type = args.content_type or mimetypes.guess_type(path.name)[0]
    with path.open("rb") as f:
        written = store.put(args.name, f, content_type, owner_id=args.owner)

    key = store.resolve_key(args.name, args.owner)
    if not written:
        _output_json(_make_error_result("INVALID_INPUT", f"Could not read content for {key}"))
        return 2

    _output_json({"content_type": content_type, "key": key, "ok": True})
    return 0


def cmd_rm(store: ResourceStore, args: argparse.Namespace) -> int:
    store.delete(args.name, owner_id=args.owner)
    _output_json({"key": store.resolve_key(args.name, args.owner), "ok": True})
    return 0


def cmd_url(store: ResourceStore, args: argparse.Namespace) -> int:
    ttl = timedelta(seconds=args.ttl_seconds) if args.ttl_seconds is not None else None
    url = store.shareable_url(args.name, owner_id=args.owner, ttl=ttl)
    _output_json({"key": store.resolve_key(args.name, args.owner), "ok": True, "url": url})
    return 0


COMMAND_DISPATCH = {
    "ls": cmd_ls,
    "exists": cmd_exists,
    "get": cmd_get,
    "put": cmd_put,
    "rm": cmd_rm,
    "url": cmd_url,
}


def _add_resource_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("name", help="Full key, or a name relative to --owner")
    parser.add_argument(
        "--owner",
        type=int,
        default=None,
        metavar="ID",
        help="Owner id; NAME is then relative to the owner's folder",
    )


def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser."""
    parser = argparse.ArgumentParser(
        prog="resource-storage",
        description="Store, fetch, list and delete resources in object storage",
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        default=False,
        help="Log storage operations to stderr",
    )

    subparsers = parser.add_subparsers(dest="command", help="Commands")

    ls_parser = subparsers.add_parser("ls", help="List resources")
    scope = ls_parser.add_mutually_exclusive_group(required=True)
    scope.add_argument("--owner", type=int, metavar="ID", help="List an owner's folder")
    scope.add_argument("--prefix", metavar="PREFIX", help="List under a raw key prefix")

    _add_resource_arguments(subparsers.add_parser("exists", help="Check whether a resource exists"))

    get_parser = subparsers.add_parser("get", help="Download a resource")
    _add_resource_arguments(get_parser)
    get_parser.add_argument("--out", metavar="FILE", help="Write content to FILE")

    put_parser = subparsers.add_parser("put", help="Upload a new resource")
    _add_resource_arguments(put_parser)
    put_parser.add_argument("--file", required=True, metavar="FILE", help="File to upload")
    put_parser.add_argument(
        "--content-type",
        metavar="TYPE",
        help="MIME type (guessed from the file name if omitted)",
    )

    _add_resource_arguments(subparsers.add_parser("rm", help="Delete a resource"))

    url_parser = subparsers.add_parser("url", help="Issue a time-limited download link")
    _add_resource_arguments(url_parser)
    url_parser.add_argument(
        "--ttl-seconds",
        type=int,
        metavar="N",
        help="Link lifetime in seconds (capped at six days)",
    )

    return parser


def main(argv: list[str] | None = None) -> int:
    """Main entry point.

    Exit codes:
        0: Success
        1: Backend failure / internal error
        2: Not found / already exists / invalid input or configuration
    """
    parser = create_parser()
    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        return 0

    if args.verbose:
        logging.basicConfig(level=logging.DEBUG, stream=sys.stderr)

    try:
        configure_tracing()
        store = build_resource_store()
        return COMMAND_DISPATCH[args.command](store, args)

    except ResourceAlreadyExistsError as e:
        _output_json(_make_error_result("ALREADY_EXISTS", str(e)))
        return 2
    except (StorageConfigError, TracingConfigError) as e:
        _output_json(_make_error_result("CONFIG_ERROR", str(e)))
        return 2
    except (PathTraversalError, ValueError) as e:
        _output_json(_make_error_result("INVALID_INPUT", str(e)))
        return 2
    except StorageUnavailableError as e:
        _output_json(_make_error_result("BACKEND_UNAVAILABLE", str(e)))
        return 1
    except Exception as e:
        _output_json(_make_error_result("INTERNAL_ERROR", str(e)))
        return 1


if __name__ == "__main__":
    sys.exit(main())
