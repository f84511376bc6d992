#!/usr/bin/env python3
"""
Export invalid-record logs and validation-action logs for offline review.

Writes, under --out-dir (default exports/<timestamp>):
- invalid_records.csv / invalid_records.jsonl
- validation_actions.csv / validation_actions.jsonl
- summary.json  (invalid record summary + export parameters)
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Optional

from dotenv import load_dotenv

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from recordguard.export import (
    INVALID_RECORD_COLUMNS,
    VALIDATION_ACTION_COLUMNS,
    jsonl_write,
    to_rows,
    write_csv_file,
)
from recordguard.invalid_record_logger import InvalidRecordLogger
from recordguard.logging_setup import configure_logging
from recordguard.record_store import RecordStore, get_default_store
from recordguard.validation_action_logger import ValidationActionLogger

logger = logging.getLogger("export_logs")

EXPORT_LIMIT = 1000


def utc_now_slug() -> str:
    return datetime.now(timezone.utc).strftime("%Y%m%dT%H%M%SZ")


def ensure_dir(path: Path) -> Path:
    path.mkdir(parents=True, exist_ok=True)
    return path


def export_logs(
    store: RecordStore,
    out_dir: Path,
    record_type: Optional[str] = None,
    from_date: Optional[str] = None,
    to_date: Optional[str] = None,
) -> Dict[str, Any]:
    """Write both log families to ``out_dir`` and return the run summary."""
    ensure_dir(out_dir)

    invalid_logger = InvalidRecordLogger(store)
    invalid_rows = to_rows(invalid_logger.query_invalid_records(
        record_type=record_type,
        from_date=from_date,
        to_date=to_date,
        limit_results=EXPORT_LIMIT,
    ))
    write_csv_file(out_dir / "invalid_records.csv", invalid_rows, INVALID_RECORD_COLUMNS)
    jsonl_write(out_dir / "invalid_records.jsonl", invalid_rows)

    action_rows = to_rows(ValidationActionLogger(store).get_validation_logs(
        start_date=from_date,
        end_date=to_date,
        limit=EXPORT_LIMIT,
    ))
    write_csv_file(out_dir / "validation_actions.csv", action_rows, VALIDATION_ACTION_COLUMNS)
    jsonl_write(out_dir / "validation_actions.jsonl", action_rows)

    summary = {
        "run_info": {
            "exported_at": datetime.now(timezone.utc).isoformat(),
            "record_type": record_type,
            "from_date": from_date,
            "to_date": to_date,
        },
        "invalid_record_count": len(invalid_rows),
        "validation_action_count": len(action_rows),
        "invalid_records_summary": invalid_logger.get_invalid_records_summary(),
    }
    (out_dir / "summary.json").write_text(json.dumps(summary, indent=2, ensure_ascii=True), encoding="utf-8")
    return summary


def parse_args(argv=None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Export invalid record logs and validation action logs.")
    parser.add_argument("--out-dir", default=None, help="Output directory. Default exports/<timestamp>.")
    parser.add_argument("--record-type", choices=["grade", "attendance", "report"], default=None)
    parser.add_argument("--from-date", default=None, help="ISO timestamp inclusive lower bound.")
    parser.add_argument("--to-date", default=None, help="ISO timestamp inclusive upper bound.")
    return parser.parse_args(argv)


def main(argv=None) -> int:
    args = parse_args(argv)
    load_dotenv(PROJECT_ROOT / ".env")
    configure_logging()

    out_dir = Path(args.out_dir) if args.out_dir else PROJECT_ROOT / "exports" / utc_now_slug()
    if not out_dir.is_absolute():
        out_dir = (PROJECT_ROOT / out_dir).resolve()

    store = get_default_store()
    if store.client is None:
        logger.error("❌ Supabase is not configured. Set SUPABASE_URL and SUPABASE_SERVICE_ROLE_KEY.")
        return 1

    summary = export_logs(store, out_dir, args.record_type, args.from_date, args.to_date)
    logger.info(
        f"✅ Exported {summary['invalid_record_count']} invalid record(s) and "
        f"{summary['validation_action_count']} validation action(s) to {out_dir}"
    )
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
