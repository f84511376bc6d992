"""
CSV / JSONL rendering of audit logs, shared by the Flask export route and
scripts/export_logs.py.

CSV columns are exactly the log model's field names, in declaration order.
Nested values (record_data, validation_errors, metadata) are written as JSON.
"""

import csv
import io
import json
from pathlib import Path
from typing import Any, Dict, Iterable, List

from pydantic import BaseModel

from recordguard.schema import InvalidRecordLog, ValidationActionLog

INVALID_RECORD_COLUMNS: List[str] = list(InvalidRecordLog.model_fields)
VALIDATION_ACTION_COLUMNS: List[str] = list(ValidationActionLog.model_fields)


def to_rows(logs: Iterable[BaseModel]) -> List[Dict[str, Any]]:
    return [log.model_dump(mode="json") for log in logs]


def _cell(value: Any) -> Any:
    if isinstance(value, (dict, list)):
        return json.dumps(value, ensure_ascii=True, sort_keys=True)
    if value is None:
        return ""
    return value


def write_csv(f, rows: List[Dict[str, Any]], columns: List[str]) -> None:
    writer = csv.DictWriter(f, fieldnames=columns, extrasaction="ignore")
    writer.writeheader()
    for row in rows:
        writer.writerow({k: _cell(row.get(k)) for k in columns})


def csv_bytes(rows: List[Dict[str, Any]], columns: List[str]) -> io.BytesIO:
    output = io.StringIO()
    write_csv(output, rows, columns)
    return io.BytesIO(output.getvalue().encode())


def write_csv_file(path: Path, rows: List[Dict[str, Any]], columns: List[str]) -> None:
    with path.open("w", encoding="utf-8", newline="") as f:
        write_csv(f, rows, columns)


def jsonl_write(path: Path, rows: Iterable[Dict[str, Any]]) -> None:
    with path.open("w", encoding="utf-8") as f:
        for row in rows:
            f.write(json.dumps(row, ensure_ascii=True) + "\n")
