"""Orders store management CLI.

Maintenance commands that run against the configured backend.

Usage:
    python src/manage.py ping          # Check the backend is reachable
    python src/manage.py count         # Number of entries in the listing index
    python src/manage.py prune-index   # Drop index entries whose order was deleted
"""

import argparse
import sys

from ordering.config import Settings
from ordering.exceptions import StorageError
from ordering.order.repository import OrderRepository
from ordering.store import create_backend


def ping(repository):
    repository.backend.ping()
    print("Backend is reachable.")


def count(repository):
    print(f"{repository.count()} entries in the order index.")


def prune_index(repository):
    print("Scanning order index for dangling entries...")
    removed = repository.prune_index()
    print(f"  {removed} dangling entries removed.")
    print("Done.")


COMMANDS = {
    "ping": ping,
    "count": count,
    "prune-index": prune_index,
}


def main(argv=None, settings=None, backend=None):
    parser = argparse.ArgumentParser(description="Orders store management")
    subparsers = parser.add_subparsers(dest="command", required=True)

    subparsers.add_parser("ping", help="Check that the backend is reachable")
    subparsers.add_parser("count", help="Count entries in the order index")
    subparsers.add_parser("prune-index", help="Remove index entries with no order record")

    args = parser.parse_args(argv)

    settings = settings or Settings.from_env()
    owns_backend = backend is None
    if owns_backend:
        backend = create_backend(settings)

    try:
        COMMANDS[args.command](OrderRepository(backend))
    except StorageError as exc:
        print(f"Backend error: {exc}", file=sys.stderr)
        return 1
    finally:
        if owns_backend:
            backend.close()
    return 0


if __name__ == "__main__":
    sys.exit(main())
