"""Show stored analyses."""

from __future__ import annotations

import argparse

from mailtrace.domain.models import StoredAnalysis
from mailtrace.infrastructure import get_settings, get_sqlite_store
from mailtrace.infrastructure.logging_config import configure_logging


def _print(analysis: StoredAnalysis) -> None:
    chain = " -> ".join(analysis.receiving_chain) or "(no Received headers)"
    print(f"[{analysis.id}] {analysis.subject}")
    print(f"  from: {analysis.sender}  to: {analysis.to}")
    print(f"  ESP:  {analysis.esp_type} ({analysis.esp_confidence:.0%})")
    print(f"  path: {chain}")


def main() -> int:
    parser = argparse.ArgumentParser(description="List analyzed emails")
    group = parser.add_mutually_exclusive_group()
    group.add_argument("--latest", action="store_true", help="Only the most recent analysis")
    group.add_argument("--id", dest="analysis_id", default=None, help="Show one analysis by id")
    parser.add_argument("--limit", type=int, default=50, help="Max analyses to list (default 50)")
    parser.add_argument("--json", action="store_true", help="Print JSON instead of a summary")
    args = parser.parse_args()

    settings = get_settings()
    configure_logging(settings.log_level)
    store = get_sqlite_store()

    if args.analysis_id:
        found = store.get(args.analysis_id)
        analyses = [found] if found else []
    elif args.latest:
        found = store.latest()
        analyses = [found] if found else []
    else:
        analyses = store.list_recent(limit=args.limit)

    if not analyses:
        print("No emails found")
        return 1

    for analysis in analyses:
        if args.json:
            print(analysis.model_dump_json(indent=2))
        else:
            _print(analysis)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
