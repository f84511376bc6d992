"""
Unit tests for the record validation guard.
Covers field rules per record kind, foreign key checks and the block/allow verdict.
"""

from datetime import date, timedelta

import pytest

from recordguard.record_guard import RecordValidationGuard, is_valid_date_format
from recordguard.schema import RecordKind, Severity, ValidationIssue, ValidationResult

ATTENDANCE_STATUSES = ["present", "absent", "late", "excused", "on-leave"]


def grade(**overrides):
    record = {"student_id": "S1", "exam_id": "E1", "class_id": "C1", "score": 85, "recorded_by": "T1"}
    record.update(overrides)
    return record


def attendance(**overrides):
    record = {"student_id": "S1", "class_id": "C1", "date": "2024-01-15", "status": "present", "recorded_by": "T1"}
    record.update(overrides)
    return record


def report(**overrides):
    record = {"report_type": "student", "entity_id": "S1", "generated_by": "T1"}
    record.update(overrides)
    return record


@pytest.fixture
def offline_guard():
    """Guard without a store: field checks only."""
    return RecordValidationGuard()


class TestGradeValidation:
    def test_valid_grade_passes_with_references(self, guard):
        result = guard.validate_grade_record(grade(grade_letter="b"))
        assert result.is_valid is True
        assert result.blocked_from_save is False

    @pytest.mark.parametrize("score", [-1, -0.5, 100.01, 150, float("nan"), float("inf")])
    def test_score_out_of_range(self, offline_guard, score):
        result = offline_guard.validate_grade_record(grade(score=score))
        assert result.is_valid is False
        score_errors = [e for e in result.errors if e.field == "score"]
        assert score_errors and "between 0 and 100" in score_errors[0].message

    @pytest.mark.parametrize("score", [0, 100, 72.5])
    def test_score_bounds_inclusive(self, offline_guard, score):
        assert offline_guard.validate_grade_record(grade(score=score)).is_valid is True

    @pytest.mark.parametrize("score", ["85", True, None])
    def test_score_must_be_a_number(self, offline_guard, score):
        result = offline_guard.validate_grade_record(grade(score=score))
        assert [e.field for e in result.errors] == ["score"]

    def test_empty_student_id_is_required_error(self, offline_guard):
        result = offline_guard.validate_grade_record(grade(student_id=""))
        assert result.errors[0].field == "student_id"
        assert "required" in result.errors[0].message

    def test_all_errors_collected_in_one_pass(self, offline_guard):
        result = offline_guard.validate_grade_record({"score": 101, "grade_letter": "Z"})
        fields = {e.field for e in result.errors}
        assert fields == {"student_id", "exam_id", "class_id", "recorded_by", "score", "grade_letter"}

    def test_unknown_references_are_errors(self, guard):
        result = guard.validate_grade_record(grade(student_id="NOPE", exam_id="E404", class_id="C404"))
        messages = {e.field: e.message for e in result.errors}
        assert messages["student_id"] == 'Student ID "NOPE" does not exist in the system'
        assert "exam_id" in messages and "class_id" in messages

    def test_reference_checks_skipped_when_fields_fail(self, guard, fake_client):
        guard.validate_grade_record(grade(student_id="NOPE", score=500))
        assert ("students", "select") not in fake_client.calls

    def test_exam_lookup_failure_is_a_warning(self, guard, fake_client):
        fake_client.fail_tables.add("exams")
        result = guard.validate_grade_record(grade())
        assert result.is_valid is True
        assert [w.field for w in result.warnings] == ["exam_id"]
        assert result.warnings[0].severity is Severity.WARNING

    def test_student_lookup_failure_blocks(self, guard, fake_client):
        fake_client.fail_tables.add("students")
        result = guard.validate_grade_record(grade())
        assert result.blocked_from_save is True
        assert result.errors[0].message.startswith("Failed to validate student ID")


class TestAttendanceValidation:
    @pytest.mark.parametrize("status", ATTENDANCE_STATUSES)
    def test_every_known_status_passes(self, guard, status):
        assert guard.validate_attendance_record(attendance(status=status)).is_valid is True

    @pytest.mark.parametrize("status", ["Present", "tardy", "sick"])
    def test_unknown_status_fails_on_status(self, offline_guard, status):
        result = offline_guard.validate_attendance_record(attendance(status=status))
        assert [e.field for e in result.errors] == ["status"]

    def test_future_date_rejected(self, offline_guard):
        tomorrow = (date.today() + timedelta(days=1)).isoformat()
        result = offline_guard.validate_attendance_record(attendance(date=tomorrow))
        assert result.errors[0].field == "date"
        assert "future" in result.errors[0].message

    def test_today_is_allowed(self, offline_guard):
        assert offline_guard.validate_attendance_record(attendance(date=date.today().isoformat())).is_valid

    @pytest.mark.parametrize("value", ["2024/01/15", "15-01-2024", "2024-02-30", "2024-13-01"])
    def test_bad_date_format(self, offline_guard, value):
        result = offline_guard.validate_attendance_record(attendance(date=value))
        assert result.errors[0].message == "Date must be in YYYY-MM-DD format"

    def test_remarks_must_be_string(self, offline_guard):
        result = offline_guard.validate_attendance_record(attendance(remarks=42))
        assert [e.field for e in result.errors] == ["remarks"]

    def test_missing_class_is_error(self, guard):
        result = guard.validate_attendance_record(attendance(class_id="C404"))
        assert result.errors[0].field == "class_id"


class TestReportValidation:
    def test_valid_student_report(self, guard):
        assert guard.validate_report_record(report()).is_valid is True

    def test_invalid_report_type(self, offline_guard):
        result = offline_guard.validate_report_record(report(report_type="weekly"))
        assert result.errors[0].field == "report_type"

    def test_start_after_end_rejected(self, offline_guard):
        result = offline_guard.validate_report_record(
            report(date_range_start="2024-03-01", date_range_end="2024-02-01")
        )
        assert result.errors[0].field == "date_range_start"

    def test_equal_range_allowed(self, offline_guard):
        result = offline_guard.validate_report_record(
            report(date_range_start="2024-03-01", date_range_end="2024-03-01")
        )
        assert result.is_valid is True

    @pytest.mark.parametrize("report_type,entity_id", [("student", "S404"), ("class", "C404"), ("exam", "E404")])
    def test_entity_must_exist(self, guard, report_type, entity_id):
        result = guard.validate_report_record(report(report_type=report_type, entity_id=entity_id))
        assert result.errors[0].field == "entity_id"

    def test_period_entity_not_checked(self, guard):
        assert guard.validate_report_record(report(report_type="period", entity_id="2024-Q1")).is_valid is True


class TestHelpers:
    def test_dispatch_by_kind(self, offline_guard):
        assert offline_guard.validate_record(RecordKind.GRADE, grade(score=200)).is_valid is False
        assert offline_guard.validate_record("attendance", attendance()).is_valid is True
        with pytest.raises(ValueError):
            offline_guard.validate_record("invoice", {})

    def test_should_block_ignores_warnings(self):
        warning = ValidationIssue(field="exam_id", message="lookup failed", severity=Severity.WARNING)
        error = ValidationIssue(field="score", message="bad")
        assert RecordValidationGuard.should_block_save(ValidationResult.from_issues([], [warning])) is False
        assert RecordValidationGuard.should_block_save(ValidationResult.from_issues([error], [])) is True

    def test_format_and_summary(self):
        errors = [ValidationIssue(field="score", message="Score is required")]
        text = RecordValidationGuard.format_validation_errors(errors, "Grade")
        assert text == "Grade record validation failed:\n• score: Score is required"
        assert RecordValidationGuard.format_validation_errors([], "Grade") == ""

        summary = RecordValidationGuard.get_validation_summary(ValidationResult.from_issues(errors, []))
        assert summary == {"error_count": 1, "warning_count": 0, "blocked_status": "BLOCKED"}
        ok = RecordValidationGuard.get_validation_summary(ValidationResult.from_issues([], []))
        assert ok["blocked_status"] == "OK"

    def test_date_format_helper(self):
        assert is_valid_date_format("2024-02-29") is True
        assert is_valid_date_format("2023-02-29") is False
        assert is_valid_date_format(20240101) is False
