"""
Student field validation: required fields (Name, ID, Year, Section) and format rules.

The validators here are pure. Only the ``*_with_logging`` variants write an
audit entry, and they write exactly one per call regardless of batch size.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Set

from recordguard.config import DEFAULT_VALIDATION_CONFIG, ValidationConfig
from recordguard.official_records import get_audit_email

STUDENT_ID_PATTERN = re.compile(r"^[a-zA-Z0-9\-_]+$")
NAME_PATTERN = re.compile(r"^[a-zA-Z\s\-']+$")
YEAR_PATTERN = re.compile(r"^(\d{1,4}|[A-Z])$")
SECTION_PATTERN = re.compile(r"^[a-zA-Z0-9-]+$")
EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")


@dataclass
class StudentValidationError:
    row_index: int
    field: str
    error: str
    value: Any = None


@dataclass
class StudentFieldValidationResult:
    is_valid: bool
    errors: List[StudentValidationError] = field(default_factory=list)
    missing_fields: Set[str] = field(default_factory=set)
    invalid_fields: Set[str] = field(default_factory=set)


@dataclass
class BulkValidationResult:
    valid_records: List[dict]
    invalid_records: List[Dict[str, Any]]  # {"row_index", "record", "errors"}
    summary: Dict[str, Any]


def is_field_valid(field_name: str, value: str) -> bool:
    """Format rule for a single trimmed value. Fields without a rule are accepted."""
    if not value or not value.strip():
        return False
    if field_name == "student_id":
        return bool(STUDENT_ID_PATTERN.match(value)) and len(value) >= 3
    if field_name in ("first_name", "last_name"):
        return bool(NAME_PATTERN.match(value)) and len(value) >= 2
    if field_name in ("year", "grade"):
        return bool(YEAR_PATTERN.match(value.strip()))
    if field_name in ("section", "block"):
        return bool(SECTION_PATTERN.match(value)) and len(value) >= 1
    return True


def is_valid_email(email: str) -> bool:
    return bool(EMAIL_PATTERN.match(email))


def _is_blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and value.strip() == "")


def validate_student_record(
    record: dict,
    row_index: int = 0,
    config: ValidationConfig = DEFAULT_VALIDATION_CONFIG,
) -> StudentFieldValidationResult:
    """
    Validate one student record against the required-field table.

    Missing (None, or empty after trim) and invalid (present but malformed)
    are tracked separately so callers can tell "not filled in" from "wrong".
    """
    errors: List[StudentValidationError] = []
    missing_fields: Set[str] = set()
    invalid_fields: Set[str] = set()

    for field_name in config.student_required_fields:
        value = record.get(field_name)
        label = config.display_name(field_name)

        if value is None:
            errors.append(StudentValidationError(row_index, field_name, f"{label} is required", value))
            missing_fields.add(field_name)
            continue

        if isinstance(value, str):
            trimmed = value.strip()
            if trimmed == "":
                errors.append(StudentValidationError(row_index, field_name, f"{label} cannot be empty", trimmed))
                missing_fields.add(field_name)
            elif not is_field_valid(field_name, trimmed):
                errors.append(StudentValidationError(row_index, field_name, f"{label} format is invalid", trimmed))
                invalid_fields.add(field_name)
        elif isinstance(value, (int, float)) and not isinstance(value, bool):
            if not is_field_valid(field_name, str(value)):
                errors.append(StudentValidationError(row_index, field_name, f"{label} format is invalid", value))
                invalid_fields.add(field_name)
        else:
            errors.append(StudentValidationError(row_index, field_name, f"{label} format is invalid", value))
            invalid_fields.add(field_name)

    email = record.get("email")
    if email:
        email_str = str(email).strip()
        if email_str and not is_valid_email(email_str):
            errors.append(StudentValidationError(row_index, "email", "Email format is invalid", email_str))
            invalid_fields.add("email")

    return StudentFieldValidationResult(
        is_valid=len(errors) == 0,
        errors=errors,
        missing_fields=missing_fields,
        invalid_fields=invalid_fields,
    )


def validate_bulk_records(
    records: List[dict],
    config: ValidationConfig = DEFAULT_VALIDATION_CONFIG,
) -> BulkValidationResult:
    """Partition a batch into valid/invalid and count missing fields per field name."""
    valid_records: List[dict] = []
    invalid_records: List[Dict[str, Any]] = []
    missing_by_field: Dict[str, int] = {}

    for index, record in enumerate(records):
        row_index = record.get("row_index", index)
        result = validate_student_record(record, row_index, config)
        if result.is_valid:
            valid_records.append(record)
            continue
        invalid_records.append({"row_index": row_index, "record": record, "errors": result.errors})
        for field_name in result.missing_fields:
            missing_by_field[field_name] = missing_by_field.get(field_name, 0) + 1

    return BulkValidationResult(
        valid_records=valid_records,
        invalid_records=invalid_records,
        summary={
            "total": len(records),
            "valid": len(valid_records),
            "invalid": len(invalid_records),
            "missing_fields_by_type": missing_by_field,
        },
    )


def validate_bulk_records_with_logging(
    records: List[dict],
    admin_id: str,
    admin_email: Optional[str],
    action_logger,
    config: ValidationConfig = DEFAULT_VALIDATION_CONFIG,
) -> BulkValidationResult:
    """Validate a batch and write one bulk_validation audit entry summarizing it."""
    result = validate_bulk_records(records, config)

    error_map: Dict[int, List[str]] = {}
    for entry in result.invalid_records:
        error_map[entry["row_index"]] = [e.error for e in entry["errors"]]

    action_logger.log_bulk_field_validation(
        admin_id,
        get_audit_email(admin_id, admin_email),
        result.summary["total"],
        result.summary["valid"],
        result.summary["invalid"],
        error_map,
    )
    return result


def get_error_summary(
    result: StudentFieldValidationResult,
    config: ValidationConfig = DEFAULT_VALIDATION_CONFIG,
) -> str:
    if result.is_valid:
        return "All required fields are present and valid"

    parts = []
    if result.missing_fields:
        names = ", ".join(config.display_name(f) for f in sorted(result.missing_fields))
        parts.append(f"Missing: {names}")
    if result.invalid_fields:
        names = ", ".join(config.display_name(f) for f in sorted(result.invalid_fields))
        parts.append(f"Invalid: {names}")
    return " | ".join(parts) or f"{len(result.errors)} validation error(s)"


def get_missing_fields_highlight(
    record: dict,
    config: ValidationConfig = DEFAULT_VALIDATION_CONFIG,
) -> Dict[str, List[str]]:
    missing = [f for f in config.student_required_fields if _is_blank(record.get(f))]
    return {
        "missing_fields": missing,
        "display_names": [config.display_name(f) for f in missing],
    }


def get_validation_status(record: dict, config: ValidationConfig = DEFAULT_VALIDATION_CONFIG) -> str:
    """'valid', 'incomplete' (something missing) or 'invalid' (present but malformed)."""
    result = validate_student_record(record, config=config)
    if result.is_valid:
        return "valid"
    if result.missing_fields:
        return "incomplete"
    return "invalid"


def get_field_errors(record: dict, config: ValidationConfig = DEFAULT_VALIDATION_CONFIG) -> Dict[str, str]:
    result = validate_student_record(record, config=config)
    return {e.field: e.error for e in result.errors}


def get_required_fields(config: ValidationConfig = DEFAULT_VALIDATION_CONFIG) -> List[Dict[str, str]]:
    return [{"key": f, "display_name": config.display_name(f)} for f in config.student_required_fields]


def is_field_required(field_name: str, config: ValidationConfig = DEFAULT_VALIDATION_CONFIG) -> bool:
    return field_name in config.student_required_fields


def mark_validated_records_as_official(
    student_ids: List[str],
    validated_by: str,
    official_records,
    action_logger,
    admin_email: Optional[str] = None,
) -> Dict[str, Any]:
    """
    Promote records that already passed field validation and the quality check.

    Each id gets its own mark_official entry from the official record service;
    one extra bulk entry summarizes the batch when an admin email is known.
    """
    try:
        result = official_records.mark_multiple_as_official(student_ids, validated_by, admin_email)
    except Exception as e:
        # mark_multiple_as_official already reports per-id failures; this guards a broken service object.
        return {"success": 0, "failed": list(student_ids), "error": str(e)}

    if admin_email:
        action_logger.log_mark_as_official(
            validated_by,
            admin_email,
            "",
            "Multiple students",
            is_bulk=True,
            total_records=len(student_ids),
            successful_records=result["success"],
        )
    return {"success": result["success"], "failed": result["failed"]}
