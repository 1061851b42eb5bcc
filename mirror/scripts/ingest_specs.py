"""Ingest a batch of gem releases listed in a text file.

Each non-blank line is ``<name> <version> [<platform>]``; lines starting with
``#`` are ignored. Prints the batch report as JSON.
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path

LOGGER = logging.getLogger("mirror.ingest")


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Ingest gem specs into the mirror store.")
    parser.add_argument("payloads", type=Path, help="File with one '<name> <version> [<platform>]' per line.")
    parser.add_argument(
        "--mode",
        choices=["add", "fix_deps", "remove"],
        default="add",
        help="Ingestion mode applied to every line.",
    )
    parser.add_argument("--workers", type=int, default=None, help="Worker threads (overrides MIRROR_INGEST_WORKERS).")
    parser.add_argument("--silent", action="store_true", help="Suppress per-spec progress logging.")
    parser.add_argument(
        "--log-level",
        choices=["critical", "error", "warning", "info", "debug"],
        default="info",
    )
    return parser.parse_args()


def read_payloads(path: Path) -> list:
    from mirror_api.domain.models import DEFAULT_PLATFORM, Payload
    from mirror_api.domain.versions import is_prerelease

    payloads = []
    for lineno, raw in enumerate(path.read_text(encoding="utf-8").splitlines(), start=1):
        line = raw.strip()
        if not line or line.startswith("#"):
            continue
        parts = line.split()
        if len(parts) not in (2, 3):
            raise SystemExit(f"{path}:{lineno}: expected '<name> <version> [<platform>]', got {raw!r}")
        name, version = parts[0], parts[1]
        platform = parts[2] if len(parts) == 3 else DEFAULT_PLATFORM
        payloads.append(
            Payload(name=name, version=version, platform=platform, prerelease=is_prerelease(version))
        )
    return payloads


def main() -> int:
    args = parse_args()
    logging.basicConfig(
        level=getattr(logging, args.log_level.upper()),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )

    mirror_src = Path(__file__).resolve().parents[1] / "src"
    sys.path.insert(0, str(mirror_src))

    # Import after sys.path is adjusted
    from mirror_api.db.migrations import upgrade_database
    from mirror_api.service.facade import MirrorServiceFacade
    from mirror_api.service.ingestion import IngestMode

    payloads = read_payloads(args.payloads)
    upgrade_database()
    services = MirrorServiceFacade(ingest_workers=args.workers, silent=args.silent or None)
    report = services.ingest_batch(payloads, IngestMode(args.mode))
    for failed in report.failed:
        LOGGER.error("%s: %s", failed.payload.full_name, failed.error)
    print(json.dumps({**report.to_dict(), "counter": services.counter.value}))
    return 1 if report.failed else 0


if __name__ == "__main__":
    raise SystemExit(main())
