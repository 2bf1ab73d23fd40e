#!/usr/bin/env python3
"""Replay emission batches into a target state and print the aggregate.

Usage
-----
    python scripts/aggregate_state.py --definitions targets.json emissions.json
    python scripts/aggregate_state.py --state state.json --start 1767225600000 --end 1769903999000
    python scripts/aggregate_state.py --state state.json --write state.json more-emissions.json

Emission files hold either a list of emissions (stored without
cancelling anything) or ``{"contactIds": [...], "emissions": [...]}``.
"""

from __future__ import annotations

import argparse
import json
import logging
from pathlib import Path
from typing import Any

from targetstate import EngineConfig, TargetStateEngine


def _load_json(path: str) -> Any:
    return json.loads(Path(path).read_text(encoding="utf-8"))


def _batch(payload: Any) -> tuple[Any, Any]:
    if isinstance(payload, dict):
        return payload.get("contactIds", []), payload.get("emissions", [])
    return [], payload


def main() -> None:
    parser = argparse.ArgumentParser(description="Aggregate target emissions.")
    source = parser.add_mutually_exclusive_group(required=True)
    source.add_argument("--definitions", help="JSON list of target definitions")
    source.add_argument("--state", help="Persisted state blob (legacy blobs are migrated)")
    parser.add_argument("emissions", nargs="*", help="Emission batch files, applied in order")
    parser.add_argument("--start", help="Inclusive window start (epoch ms or ISO-8601)")
    parser.add_argument("--end", help="Inclusive window end (epoch ms or ISO-8601)")
    parser.add_argument("--write", help="Write the resulting state blob to this file")
    parser.add_argument("--verbose", action="store_true", help="Log skipped emissions")
    args = parser.parse_args()

    if args.verbose:
        logging.basicConfig(level=logging.DEBUG)

    config = EngineConfig.from_env(log_dropped_emissions=args.verbose)
    if args.definitions:
        engine = TargetStateEngine.from_definitions(_load_json(args.definitions), config=config)
    else:
        engine = TargetStateEngine.from_blob(_load_json(args.state), config=config)

    for path in args.emissions:
        contact_ids, emissions = _batch(_load_json(path))
        updated = engine.store_emissions(contact_ids, emissions)
        print(f"{Path(path).name}: updated={updated}")

    interval = {"start": args.start, "end": args.end} if args.start or args.end else None
    result = engine.aggregate(interval, update_state=True)

    rows = [
        (
            target.id,
            target.type or "",
            str(target.value.passed),
            str(target.value.total),
            _percent(target.value.percent),
        )
        for target in result.aggregate.targets
    ]
    header = ("Target", "Type", "Pass", "Total", "Percent")
    widths = [max(len(row[i]) for row in [header, *rows]) for i in range(len(header))]
    line = "  ".join(f"{{:<{w}}}" for w in widths)
    print(line.format(*header))
    print("─" * (sum(widths) + 2 * (len(widths) - 1)))
    for row in rows:
        print(line.format(*row))

    dropped = engine.diagnostics.as_dict()["dropped"]
    print(f"\nchanged={result.is_updated} dropped={dropped}")

    if args.write:
        Path(args.write).write_text(json.dumps(engine.to_blob(), indent=2), encoding="utf-8")
        print(f"State written to {args.write}")


def _percent(value: int | None) -> str:
    return "" if value is None else f"{value}%"


if __name__ == "__main__":
    main()
