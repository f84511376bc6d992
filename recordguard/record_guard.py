"""
Record validation guard for grade, attendance and report writes.

Each validator collects every field problem in one pass, then checks that the
referenced student/exam/class exists. Referential checks only run when the
field checks passed and a store is available. A record with any error is
blocked from save; warnings never block.
"""

import logging
import re
from datetime import date, datetime
from typing import Any, Dict, List, Optional

from recordguard.config import DEFAULT_VALIDATION_CONFIG, ValidationConfig
from recordguard.record_store import RecordStore
from recordguard.schema import RecordKind, Severity, ValidationIssue, ValidationResult

logger = logging.getLogger(__name__)

DATE_PATTERN = re.compile(r"^\d{4}-\d{2}-\d{2}$")

_REQUIRED_MESSAGES = {
    "student_id": "Student ID is required and must be a string",
    "exam_id": "Exam ID is required and must be a string",
    "class_id": "Class ID is required and must be a string",
    "recorded_by": "Recorded by (user ID) is required and must be a string",
    "entity_id": "Entity ID (student/class/exam ID) is required and must be a string",
    "generated_by": "Generated by (user ID) is required and must be a string",
}


def is_valid_date_format(value: Any) -> bool:
    """True for a real calendar date written as YYYY-MM-DD."""
    if not isinstance(value, str) or not DATE_PATTERN.match(value):
        return False
    try:
        datetime.strptime(value, "%Y-%m-%d")
    except ValueError:
        return False
    return True


def is_date_in_future(value: str, today: Optional[date] = None) -> bool:
    if not is_valid_date_format(value):
        return False
    today = today or date.today()
    return datetime.strptime(value, "%Y-%m-%d").date() > today


def _error(field: str, message: str, value: Any = None) -> ValidationIssue:
    return ValidationIssue(field=field, message=message, severity=Severity.ERROR, value=value)


def _warning(field: str, message: str, value: Any = None) -> ValidationIssue:
    return ValidationIssue(field=field, message=message, severity=Severity.WARNING, value=value)


class RecordValidationGuard:
    """
    Validates candidate records before they are persisted.

    Args:
        store: RecordStore used for foreign key checks. When None, only
               field-level checks run.
        config: Field tables and enumerations.
    """

    def __init__(self, store: Optional[RecordStore] = None, config: ValidationConfig = DEFAULT_VALIDATION_CONFIG):
        self.store = store
        self.config = config

    # ----- field checks -----

    def _check_required(self, data: Dict[str, Any], fields, errors: List[ValidationIssue]) -> None:
        for field_name in fields:
            value = data.get(field_name)
            if not value or not isinstance(value, str):
                message = _REQUIRED_MESSAGES.get(
                    field_name, f"{self.config.display_name(field_name)} is required and must be a string"
                )
                errors.append(_error(field_name, message, value))

    def _check_score(self, data: Dict[str, Any], errors: List[ValidationIssue]) -> None:
        score = data.get("score")
        if score is None:
            errors.append(_error("score", "Score is required", score))
        elif isinstance(score, bool) or not isinstance(score, (int, float)):
            errors.append(_error("score", "Score must be a number", score))
        elif not (self.config.min_score <= score <= self.config.max_score):
            errors.append(_error(
                "score",
                f"Score must be between {self.config.min_score:g} and {self.config.max_score:g}",
                score,
            ))

    # ----- foreign key checks -----

    def _check_reference(
        self,
        field: str,
        table: str,
        key_column: str,
        key: str,
        label: str,
        errors: List[ValidationIssue],
        warnings: List[ValidationIssue],
        lookup_failure_blocks: bool,
    ) -> None:
        try:
            found = self.store.exists(table, key_column, key)
        except Exception as e:
            logger.warning(f"⚠️ {label} lookup failed for {key}: {e}")
            message = f"Failed to validate {label.lower()} ID: {e}"
            if lookup_failure_blocks:
                errors.append(_error(field, message, key))
            else:
                warnings.append(_warning(field, message, key))
            return
        if not found:
            errors.append(_error(field, f'{label} ID "{key}" does not exist in the system', key))

    def _check_student(self, field, key, errors, warnings) -> None:
        c = self.store.collections
        self._check_reference(field, c.students, c.student_key, key, "Student", errors, warnings, True)

    def _check_exam(self, field, key, errors, warnings) -> None:
        c = self.store.collections
        self._check_reference(field, c.exams, c.exam_key, key, "Exam", errors, warnings, False)

    def _check_class(self, field, key, errors, warnings) -> None:
        c = self.store.collections
        self._check_reference(field, c.classes, c.class_key, key, "Class", errors, warnings, False)

    # ----- per-kind validators -----

    def validate_grade_record(self, data: Dict[str, Any]) -> ValidationResult:
        """Required ids, numeric score in range, optional letter grade, then student/exam/class exist."""
        errors: List[ValidationIssue] = []
        warnings: List[ValidationIssue] = []

        self._check_required(data, self.config.grade_required_fields, errors)
        self._check_score(data, errors)

        grade_letter = data.get("grade_letter")
        if grade_letter:
            letters = self.config.grade_letters
            if not isinstance(grade_letter, str) or grade_letter.upper() not in letters:
                errors.append(_error(
                    "grade_letter",
                    f'Invalid grade letter "{grade_letter}". Valid grades are: {", ".join(letters)}',
                    grade_letter,
                ))

        if not errors and self.store is not None:
            self._check_student("student_id", data["student_id"], errors, warnings)
            self._check_exam("exam_id", data["exam_id"], errors, warnings)
            self._check_class("class_id", data["class_id"], errors, warnings)

        return ValidationResult.from_issues(errors, warnings)

    def validate_attendance_record(self, data: Dict[str, Any], today: Optional[date] = None) -> ValidationResult:
        errors: List[ValidationIssue] = []
        warnings: List[ValidationIssue] = []

        self._check_required(data, ("student_id", "class_id"), errors)

        record_date = data.get("date")
        if not record_date or not isinstance(record_date, str):
            errors.append(_error("date", "Date is required and must be a string (YYYY-MM-DD format)", record_date))
        elif not is_valid_date_format(record_date):
            errors.append(_error("date", "Date must be in YYYY-MM-DD format", record_date))
        elif is_date_in_future(record_date, today):
            errors.append(_error("date", "Cannot record attendance for future dates", record_date))

        status = data.get("status")
        if not status:
            errors.append(_error("status", "Attendance status is required", status))
        elif status not in self.config.attendance_statuses:
            errors.append(_error(
                "status",
                f'Invalid status "{status}". Valid statuses are: {", ".join(self.config.attendance_statuses)}',
                status,
            ))

        remaining = [f for f in self.config.attendance_required_fields if f not in ("student_id", "class_id")]
        self._check_required(data, remaining, errors)

        remarks = data.get("remarks")
        if remarks is not None and not isinstance(remarks, str):
            errors.append(_error("remarks", "Remarks must be a string", remarks))

        if not errors and self.store is not None:
            self._check_student("student_id", data["student_id"], errors, warnings)
            self._check_class("class_id", data["class_id"], errors, warnings)

        return ValidationResult.from_issues(errors, warnings)

    def validate_report_record(self, data: Dict[str, Any]) -> ValidationResult:
        errors: List[ValidationIssue] = []
        warnings: List[ValidationIssue] = []

        report_type = data.get("report_type")
        if not report_type:
            errors.append(_error("report_type", "Report type is required", report_type))
        elif report_type not in self.config.report_types:
            errors.append(_error(
                "report_type",
                f'Invalid report type "{report_type}". Valid types are: {", ".join(self.config.report_types)}',
                report_type,
            ))

        self._check_required(data, self.config.report_required_fields, errors)

        start = data.get("date_range_start")
        end = data.get("date_range_end")
        if start and not is_valid_date_format(start):
            errors.append(_error("date_range_start", "Start date must be in YYYY-MM-DD format", start))
        if end and not is_valid_date_format(end):
            errors.append(_error("date_range_end", "End date must be in YYYY-MM-DD format", end))
        if start and end and is_valid_date_format(start) and is_valid_date_format(end) and start > end:
            # ISO dates order lexically
            errors.append(_error("date_range_start", "Start date must be before or equal to end date", start))

        if not errors and self.store is not None:
            entity_id = data["entity_id"]
            if report_type == "student":
                self._check_student("entity_id", entity_id, errors, warnings)
            elif report_type == "class":
                self._check_class("entity_id", entity_id, errors, warnings)
            elif report_type == "exam":
                self._check_exam("entity_id", entity_id, errors, warnings)

        return ValidationResult.from_issues(errors, warnings)

    def validate_record(self, kind, data: Dict[str, Any]) -> ValidationResult:
        """Dispatch on the record kind tag."""
        kind = RecordKind(kind)
        if kind is RecordKind.GRADE:
            return self.validate_grade_record(data)
        if kind is RecordKind.ATTENDANCE:
            return self.validate_attendance_record(data)
        return self.validate_report_record(data)

    # ----- helpers for callers -----

    @staticmethod
    def should_block_save(result: ValidationResult) -> bool:
        return result.blocked_from_save or len(result.errors) > 0

    @staticmethod
    def format_validation_errors(errors: List[ValidationIssue], record_label: str) -> str:
        """Multi-line admin summary, empty string when there is nothing to report."""
        if not errors:
            return ""
        lines = "\n".join(f"• {e.field}: {e.message}" for e in errors)
        return f"{record_label} record validation failed:\n{lines}"

    @staticmethod
    def get_validation_summary(result: ValidationResult) -> Dict[str, Any]:
        return {
            "error_count": len(result.errors),
            "warning_count": len(result.warnings),
            "blocked_status": "BLOCKED" if result.blocked_from_save else "OK",
        }
