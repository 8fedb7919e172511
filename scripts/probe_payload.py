#!/usr/bin/env python3
"""Show how a saved provider payload is normalized.

Feeds a captured raw JSON response through the same extraction rules the
adapters use and reports, per record, which rule supplied each attribute.
Handy when a tenant or firmware revision ships a new field layout.

Usage
-----
::

    python scripts/probe_payload.py samsara dump.json
    python scripts/probe_payload.py skybitz dump.json --short-ids
"""

from __future__ import annotations

import argparse
import json
import sys
from collections.abc import Callable
from pathlib import Path
from typing import Any

_repo = Path(__file__).resolve().parent.parent
_src = _repo / "src"
if _src.is_dir():
    sys.path.insert(0, str(_src))

from fleetpairs.exceptions import ProviderPayloadError  # noqa: E402
from fleetpairs.ingestion.normalize import (  # noqa: E402
    FieldRule,
    is_meaningful,
    parse_timestamp,
    safe_float,
    safe_str,
)
from fleetpairs.ingestion.positions import PositionFieldRules, normalize_record  # noqa: E402
from fleetpairs.providers.samsara import SAMSARA_FIELD_RULES, _page_records  # noqa: E402
from fleetpairs.providers.skybitz import SKYBITZ_FIELD_RULES, _extract_records  # noqa: E402

_PROVIDERS = {
    "samsara": (SAMSARA_FIELD_RULES, _page_records),
    "skybitz": (SKYBITZ_FIELD_RULES, _extract_records),
}


def _matched_rule(
    record: Any,
    candidates: tuple[FieldRule, ...],
    parse: Callable[[Any], Any] | None = None,
) -> str | None:
    for rule in candidates:
        value = rule.extract(record)
        if not is_meaningful(value):
            continue
        if parse is None or parse(value) is not None:
            return rule.name
    return None


def _describe(record: Any, field_rules: PositionFieldRules, short_ids: bool) -> dict[str, Any]:
    report = normalize_record(record, field_rules, short_ids=short_ids)
    return {
        "normalized": report.to_payload() if report is not None else None,
        "rules": {
            "asset_id": _matched_rule(record, field_rules.asset_id, safe_str),
            "short_tag": _matched_rule(record, field_rules.short_tag) if short_ids else None,
            "latitude": _matched_rule(record, field_rules.latitude, safe_float),
            "longitude": _matched_rule(record, field_rules.longitude, safe_float),
            "observed_at": _matched_rule(record, field_rules.observed_at, parse_timestamp),
        },
    }


def main() -> int:
    parser = argparse.ArgumentParser(description="Probe provider field extraction on a saved payload.")
    parser.add_argument("provider", choices=sorted(_PROVIDERS))
    parser.add_argument("payload", type=Path, help="File with the raw JSON response")
    parser.add_argument("--short-ids", action="store_true", help="Derive 3/4 digit tags as public ids")
    args = parser.parse_args()

    field_rules, extract = _PROVIDERS[args.provider]
    payload = json.loads(args.payload.read_text(encoding="utf-8"))
    try:
        records = extract(payload, endpoint=str(args.payload))
    except ProviderPayloadError as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 1

    described = [_describe(record, field_rules, args.short_ids) for record in records]
    kept = sum(1 for item in described if item["normalized"] is not None)
    print(json.dumps(described, indent=2, ensure_ascii=False))
    print(f"{kept} of {len(records)} records normalized", file=sys.stderr)
    return 0


if __name__ == "__main__":
    sys.exit(main())
