#!/usr/bin/env python3
"""Sign and upload a PDF to a running compression service."""

from __future__ import annotations

import argparse
import os
import sys
import time
from pathlib import Path

import requests

REPO_ROOT = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(REPO_ROOT))

from pdf_compressor.core.security import compute_signature  # noqa: E402

LINE_WIDTH = 60


def _human_mb(value: int) -> str:
    return f"{value / (1024 * 1024):.2f}MB"


def build_headers(secret: str, environment: str) -> dict[str, str]:
    timestamp = str(int(time.time() * 1000))
    return {
        "x-timestamp": timestamp,
        "x-signature": compute_signature(secret, timestamp),
        "x-environment": environment,
    }


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("input", type=Path, help="PDF to compress")
    parser.add_argument("-o", "--output", type=Path, help="Where to write the result (default: <input>_compressed.pdf)")
    parser.add_argument("--url", default="http://localhost:8080", help="Service base URL")
    parser.add_argument("--environment", default="development", help="Value sent as x-environment")
    parser.add_argument("--timeout", type=float, default=600.0, help="HTTP timeout in seconds")
    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv)
    secret = os.environ.get("COMPRESSION_SERVICE_SECRET")
    if not secret:
        print("COMPRESSION_SERVICE_SECRET must be set", file=sys.stderr)
        return 2
    if not args.input.is_file():
        print(f"File not found: {args.input}", file=sys.stderr)
        return 2

    output = args.output or args.input.with_name(f"{args.input.stem}_compressed.pdf")
    original = args.input.read_bytes()

    started = time.time()
    try:
        response = requests.post(
            f"{args.url.rstrip('/')}/compress",
            headers=build_headers(secret, args.environment),
            files={"file": (args.input.name, original, "application/pdf")},
            timeout=args.timeout,
        )
    except requests.exceptions.RequestException as e:
        print(f"Request failed: {e}", file=sys.stderr)
        return 1
    elapsed = time.time() - started

    if response.status_code != 200:
        print(f"HTTP {response.status_code}: {response.text}", file=sys.stderr)
        return 1

    output.write_bytes(response.content)
    reduction = (1 - len(response.content) / len(original)) * 100 if original else 0.0

    print("=" * LINE_WIDTH)
    print(f"Input:     {args.input} ({_human_mb(len(original))})")
    print(f"Output:    {output} ({_human_mb(len(response.content))})")
    print(f"Reduction: {reduction:.2f}%")
    print(f"Elapsed:   {elapsed:.2f}s")
    print("=" * LINE_WIDTH)
    return 0


if __name__ == "__main__":
    sys.exit(main())
