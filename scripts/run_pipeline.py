"""
Run one lien discovery pipeline execution from the CLI.
"""

from __future__ import annotations

import argparse
import json
import logging
import os
from datetime import date

from app.domain.errors import PipelineAlreadyRunningError
from app.domain.liens import DateRange, RunStatus, RunType
from app.services.pipeline_orchestrator import get_pipeline_orchestrator
from app.services.source_registry import get_source_registry


def _parse_date(value: str) -> date:
    try:
        return date.fromisoformat(value)
    except ValueError as exc:
        raise argparse.ArgumentTypeError(f"Invalid date '{value}'; expected YYYY-MM-DD.") from exc


def main() -> int:
    parser = argparse.ArgumentParser(description="Run lien discovery and sync once.")
    parser.add_argument("--from-date", dest="from_date", type=_parse_date, default=None, help="YYYY-MM-DD")
    parser.add_argument("--to-date", dest="to_date", type=_parse_date, default=None, help="YYYY-MM-DD")
    parser.add_argument(
        "--no-seed",
        dest="seed",
        action="store_false",
        help="Do not register the bundled default sources when none exist.",
    )
    args = parser.parse_args()

    logging.basicConfig(
        level=getattr(logging, os.getenv("LOG_LEVEL", "INFO").strip().upper(), logging.INFO),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )

    try:
        date_range = DateRange.resolve(date_from=args.from_date, date_to=args.to_date)
    except ValueError as exc:
        parser.error(str(exc))

    if args.seed:
        get_source_registry().seed_defaults()

    orchestrator = get_pipeline_orchestrator()
    try:
        run = orchestrator.trigger(run_type=RunType.MANUAL, date_range=date_range)
    except PipelineAlreadyRunningError as exc:
        print(json.dumps({"error": str(exc)}))
        return 1

    payload = {
        "run_id": str(run.id),
        "status": run.status,
        "started_at": run.started_at.isoformat(),
        "ended_at": run.ended_at.isoformat() if run.ended_at else None,
        "records_found": run.records_found,
        "records_accepted": run.records_accepted,
        "records_over_threshold": run.records_over_threshold,
        "error_message": run.error_message,
        "metadata": run.metadata,
    }
    print(json.dumps(payload, indent=2, default=str))
    return 1 if run.status == RunStatus.FAILED else 0


if __name__ == "__main__":
    raise SystemExit(main())
