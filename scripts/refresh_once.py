#!/usr/bin/env python3
"""Run one refresh pass and print the trailer/truck assignments.

Usage
-----
Set environment variables and run::

    export SAMSARA_TOKEN="..."
    export SKYBITZ_USERNAME="..."
    export SKYBITZ_PASSWORD="..."
    python scripts/refresh_once.py

Options::

    --store DIR          Persist snapshots as JSON files under DIR, so an
                         empty poll on the next run reuses the last snapshot
    --json               Output the assignment set as JSON
    --output FILE        Write output to FILE instead of stdout
    --status STATUS      Only show records with this status
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path

# Allow running from the repo root without installing the package.
_repo = Path(__file__).resolve().parent.parent
_src = _repo / "src"
if _src.is_dir():
    sys.path.insert(0, str(_src))

from fleetpairs import (  # noqa: E402
    AssignmentSet,
    AssignmentStatus,
    FleetPairsConfig,
    JsonFileKeyValueStore,
    RefreshOrchestrator,
    SnapshotStore,
)


def _format_table(assignment_set: AssignmentSet, status: AssignmentStatus | None) -> str:
    lines = [f"updated {assignment_set.updated_at.isoformat()}", ""]
    lines.append(f"{'TRAILER':<12} {'TRUCK':<16} {'MILES':>8}  STATUS")
    for pair in assignment_set.pairs:
        if status is not None and pair.status != status:
            continue
        miles = f"{pair.distance_miles:.2f}" if pair.distance_miles is not None else "-"
        lines.append(f"{pair.trailer_id:<12} {pair.truck_id or '-':<16} {miles:>8}  {pair.status.value}")
    counts = {s.value: len(assignment_set.by_status(s)) for s in AssignmentStatus}
    lines.append("")
    lines.append("  ".join(f"{name}={count}" for name, count in counts.items()))
    return "\n".join(lines)


async def main() -> None:
    parser = argparse.ArgumentParser(
        description="Poll both telemetry feeds once and print nearest-truck assignments.",
    )
    parser.add_argument("--store", help="Directory for persisted JSON snapshots (default: in-memory)")
    parser.add_argument("--json", action="store_true", dest="json_mode", help="Output machine-readable JSON")
    parser.add_argument("--output", "-o", help="Write output to FILE instead of stdout")
    parser.add_argument(
        "--status",
        choices=[s.value for s in AssignmentStatus],
        help="Only show records with this status",
    )
    parser.add_argument("--verbose", "-v", action="store_true", help="Enable debug logging")
    args = parser.parse_args()

    if args.verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(levelname)s %(name)s: %(message)s")
    else:
        logging.basicConfig(level=logging.WARNING)

    config = FleetPairsConfig.from_env()
    store = SnapshotStore(JsonFileKeyValueStore(args.store)) if args.store else SnapshotStore()

    async with RefreshOrchestrator(config, store=store) as orchestrator:
        assignment_set = await orchestrator.refresh()

    status = AssignmentStatus(args.status) if args.status else None
    if args.json_mode:
        payload = assignment_set.to_payload()
        if status is not None:
            payload["pairs"] = [p for p in payload["pairs"] if p["status"] == status.value]
        text = json.dumps(payload, indent=2, ensure_ascii=False)
    else:
        text = _format_table(assignment_set, status)

    if args.output:
        Path(args.output).write_text(text + "\n", encoding="utf-8")
        print(f"Written to {args.output}", file=sys.stderr)
    else:
        print(text)


if __name__ == "__main__":
    asyncio.run(main())
