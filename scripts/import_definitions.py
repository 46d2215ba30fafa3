#!/usr/bin/env python3
"""Import table definition files (JSON or YAML) into GridWeaver storage.

Every file is validated (schema + formatter compilation) before anything
is written. Invalid files are reported with their field paths and skipped.

Usage:
    cd ~/projects/gridweaver
    GRIDWEAVER_MUTATION_SECRET=... python scripts/import_definitions.py defs/*.yaml
    python scripts/import_definitions.py defs/ --api-url http://localhost:8001 --secret ...

Without --api-url the gateway configured by the GRIDWEAVER_* environment
is used directly.
"""

import argparse
import json
import os
import sys
from pathlib import Path
from typing import Any, Optional

import httpx
import yaml

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from gridweaver.errors import GridWeaverError, ValidationError
from gridweaver.gateway.gateway import get_definition_gateway, get_secret_header, validate_definition

SUFFIXES = (".json", ".yaml", ".yml")


def collect_files(paths: list[str]) -> list[Path]:
    files: list[Path] = []
    for raw in paths:
        path = Path(raw)
        if path.is_dir():
            files.extend(sorted(p for p in path.iterdir() if p.suffix in SUFFIXES))
        else:
            files.append(path)
    return files


def read_document(path: Path) -> Any:
    with open(path) as f:
        if path.suffix in (".yaml", ".yml"):
            return yaml.safe_load(f)
        return json.load(f)


def import_via_api(documents: dict[Path, dict], api_url: str, secret: str) -> int:
    """POST each document to /v1/table-definitions."""
    imported = 0
    with httpx.Client(base_url=api_url, timeout=30.0) as client:
        for path, document in documents.items():
            resp = client.post(
                "/v1/table-definitions",
                json=document,
                headers={get_secret_header(): secret},
            )
            if resp.status_code != 201:
                print(f"  FAIL {path.name}: HTTP {resp.status_code} {resp.text[:200]}")
                continue
            print(f"  OK   {path.name} -> {resp.json()['id']}")
            imported += 1
    return imported


def import_direct(documents: dict[Path, dict], secret: Optional[str]) -> int:
    """Create each document through the environment-configured gateway."""
    gateway = get_definition_gateway()
    imported = 0
    for path, document in documents.items():
        try:
            definition_id = gateway.create(document, secret=secret)
        except GridWeaverError as e:
            print(f"  FAIL {path.name}: {e}")
            continue
        print(f"  OK   {path.name} -> {definition_id}")
        imported += 1
    return imported


def main():
    parser = argparse.ArgumentParser(description="Import table definition files into GridWeaver")
    parser.add_argument("paths", nargs="+", help="Definition files or directories")
    parser.add_argument("--api-url", help="Import via the API instead of direct storage")
    parser.add_argument(
        "--secret",
        default=os.environ.get("GRIDWEAVER_MUTATION_SECRET"),
        help="Mutation secret (default: $GRIDWEAVER_MUTATION_SECRET)",
    )
    parser.add_argument("--dry-run", action="store_true", help="Validate only, write nothing")
    args = parser.parse_args()

    files = collect_files(args.paths)
    if not files:
        print("No definition files found")
        sys.exit(1)

    print(f"Validating {len(files)} file(s)...")
    documents: dict[Path, dict] = {}
    for path in files:
        try:
            document = read_document(path)
            validate_definition(document)
        except ValidationError as e:
            print(f"  SKIP {path.name}:")
            for err in e.errors:
                print(f"    {err.path}: {err.message}")
            continue
        except (OSError, ValueError, yaml.YAMLError) as e:
            print(f"  SKIP {path.name}: {e}")
            continue
        documents[path] = document

    print(f"  {len(documents)} valid, {len(files) - len(documents)} skipped")
    if args.dry_run or not documents:
        return

    if not args.secret:
        print("Error: no mutation secret (use --secret or GRIDWEAVER_MUTATION_SECRET)")
        sys.exit(1)

    if args.api_url:
        imported = import_via_api(documents, args.api_url, args.secret)
    else:
        imported = import_direct(documents, args.secret)

    print(f"\nImported {imported} of {len(documents)} definition(s)")


if __name__ == "__main__":
    main()
