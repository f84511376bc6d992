"""
End-to-end tests for the guarded write path: validate, log rejections, persist accepted records.
"""

import pytest

from recordguard.guarded_writes import SAVE_FAILED_MESSAGE, GuardedRecordWriter


@pytest.fixture
def writer(store, guard, invalid_logger):
    return GuardedRecordWriter(store, guard, invalid_logger)


class TestGuardedWrites:
    def test_blocked_grade_is_logged_and_not_saved(self, writer, invalid_logger, fake_client):
        payload = {"student_id": "", "exam_id": "E1", "class_id": "C1", "score": 85, "recorded_by": "T1"}

        result = writer.save_grade(payload, user_email="t1@school.edu")

        assert result["success"] is False
        assert result["validation_errors"][0]["field"] == "student_id"
        assert result["error"].startswith("Grade record validation failed:")
        assert fake_client.rows("grades") == []

        logged = invalid_logger.query_invalid_records(record_type="grade")
        assert len(logged) == 1
        assert logged[0].record_data == payload
        assert logged[0].user_id == "T1"
        assert logged[0].user_email == "t1@school.edu"

    def test_valid_attendance_creates_no_invalid_log(self, writer, fake_client):
        payload = {"student_id": "S1", "class_id": "C1", "date": "2024-01-15", "status": "present", "recorded_by": "T1"}

        result = writer.save_attendance(payload)

        assert result["success"] is True
        assert result["id"]
        assert fake_client.rows("invalid_record_logs") == []
        saved = fake_client.rows("attendance")
        assert len(saved) == 1
        assert saved[0]["status"] == "present"
        assert saved[0]["recorded_at"]
        assert "kind" not in saved[0]

    def test_valid_report_saved(self, writer, fake_client):
        result = writer.save_report({"report_type": "class", "entity_id": "C1", "generated_by": "T1"})
        assert result["success"] is True
        assert len(fake_client.rows("reports")) == 1

    def test_report_blocked_logs_generated_by_as_actor(self, writer, invalid_logger):
        writer.save_report({"report_type": "class", "entity_id": "C404", "generated_by": "T7"})
        logged = invalid_logger.get_invalid_records_by_user("T7")
        assert len(logged) == 1
        assert logged[0].entity_id == "C404"

    def test_warnings_do_not_block(self, writer, fake_client):
        fake_client.fail_tables.add("exams")
        result = writer.save_grade({"student_id": "S1", "exam_id": "E1", "class_id": "C1", "score": 90, "recorded_by": "T1"})
        assert result["success"] is True
        assert [w["field"] for w in result["warnings"]] == ["exam_id"]

    def test_storage_failure_returns_generic_message(self, writer, fake_client):
        fake_client.fail_tables.add("grades")
        result = writer.save_grade({"student_id": "S1", "exam_id": "E1", "class_id": "C1", "score": 90, "recorded_by": "T1"})
        assert result == {"success": False, "error": SAVE_FAILED_MESSAGE}

    def test_ledger_outage_still_blocks(self, writer, fake_client):
        fake_client.fail_tables.add("invalid_record_logs")
        result = writer.save_grade({"student_id": "S1", "exam_id": "E1", "class_id": "C1", "score": 101, "recorded_by": "T1"})
        assert result["success"] is False
        assert fake_client.rows("grades") == []

    def test_save_record_dispatch_rejects_unknown_kind(self, writer):
        with pytest.raises(ValueError):
            writer.save_record("invoice", {})

    def test_graded_by_used_as_actor_when_recorded_by_missing(self, writer, invalid_logger):
        writer.save_grade({"student_id": "S1", "exam_id": "E1", "class_id": "C1", "score": 90, "graded_by": "T5"})
        assert len(invalid_logger.get_invalid_records_by_user("T5")) == 1
