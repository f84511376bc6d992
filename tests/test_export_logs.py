import csv
import json

import pytest

from recordguard.export import INVALID_RECORD_COLUMNS, VALIDATION_ACTION_COLUMNS
from scripts.export_logs import export_logs, parse_args


def seed(invalid_logger, action_logger):
    invalid_logger.log_invalid_record(
        "grade", {"student_id": "", "score": 85}, [{"field": "student_id", "message": "Student ID is required"}],
        user_id="T1", entity_id="", user_email="t1@school.edu",
    )
    invalid_logger.log_invalid_record(
        "report", {"report_type": "class", "entity_id": "C404"}, [{"field": "entity_id", "message": "missing"}],
        user_id="T2", entity_id="C404",
    )
    action_logger.log_mark_as_official("admin-1", "admin@school.edu", "S1", "Ana Reyes")


def test_export_writes_all_files(tmp_path, invalid_logger, action_logger, store):
    seed(invalid_logger, action_logger)

    summary = export_logs(store, tmp_path)

    assert summary["invalid_record_count"] == 2
    assert summary["validation_action_count"] == 1
    for name in ("invalid_records.csv", "invalid_records.jsonl", "validation_actions.csv",
                 "validation_actions.jsonl", "summary.json"):
        assert (tmp_path / name).exists()

    with (tmp_path / "invalid_records.csv").open(encoding="utf-8") as f:
        assert next(csv.reader(f)) == INVALID_RECORD_COLUMNS
    with (tmp_path / "validation_actions.csv").open(encoding="utf-8") as f:
        assert next(csv.reader(f)) == VALIDATION_ACTION_COLUMNS

    lines = (tmp_path / "invalid_records.jsonl").read_text(encoding="utf-8").splitlines()
    assert {json.loads(line)["record_type"] for line in lines} == {"grade", "report"}

    written = json.loads((tmp_path / "summary.json").read_text(encoding="utf-8"))
    assert written["invalid_records_summary"]["total_invalid_records"] == 2


def test_export_filters_by_record_type(tmp_path, invalid_logger, action_logger, store):
    seed(invalid_logger, action_logger)
    summary = export_logs(store, tmp_path, record_type="report")
    assert summary["invalid_record_count"] == 1
    assert summary["run_info"]["record_type"] == "report"


def test_parse_args():
    args = parse_args(["--record-type", "grade", "--from-date", "2024-01-01T00:00:00+00:00"])
    assert args.record_type == "grade"
    assert args.out_dir is None
    with pytest.raises(SystemExit):
        parse_args(["--record-type", "invoice"])
