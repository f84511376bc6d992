"""
Config-driven validation rules and table names.

Rules and collection names are frozen dataclasses handed to each service's
constructor, so a deployment can swap field sets or table names without
editing the validators.

Adding a required student field: extend ``student_required_fields`` and give
it a display name in ``field_display_names``.
"""

import os
from dataclasses import dataclass, field
from typing import Dict, Tuple

from dotenv import load_dotenv

load_dotenv()


DEFAULT_FIELD_DISPLAY_NAMES: Dict[str, str] = {
    "student_id": "Student ID",
    "first_name": "First Name",
    "last_name": "Last Name",
    "email": "Email",
    "year": "Year/Grade",
    "section": "Section/Block",
    "block": "Block",
    "grade": "Grade",
}


@dataclass(frozen=True)
class ValidationConfig:
    """Field tables and enumerations used by the validators."""

    student_required_fields: Tuple[str, ...] = ("student_id", "first_name", "last_name", "year", "section")
    field_display_names: Dict[str, str] = field(default_factory=lambda: dict(DEFAULT_FIELD_DISPLAY_NAMES))

    grade_required_fields: Tuple[str, ...] = ("student_id", "exam_id", "class_id", "recorded_by")
    attendance_required_fields: Tuple[str, ...] = ("student_id", "class_id", "recorded_by")
    report_required_fields: Tuple[str, ...] = ("entity_id", "generated_by")

    grade_letters: Tuple[str, ...] = ("A", "B", "C", "D", "F")
    attendance_statuses: Tuple[str, ...] = ("present", "absent", "late", "excused", "on-leave")
    report_types: Tuple[str, ...] = ("student", "class", "exam", "period")

    min_score: float = 0
    max_score: float = 100

    def display_name(self, field_name: str) -> str:
        return self.field_display_names.get(field_name, field_name.replace("_", " ").title())


@dataclass(frozen=True)
class CollectionConfig:
    """Supabase table names, plus the key column each entity table is looked up by."""

    students: str = "students"
    exams: str = "exams"
    classes: str = "classes"
    grades: str = "grades"
    attendance: str = "attendance"
    reports: str = "reports"
    invalid_record_logs: str = "invalid_record_logs"
    validation_action_logs: str = "validation_action_logs"

    student_key: str = "student_id"
    exam_key: str = "id"
    class_key: str = "id"


DEFAULT_VALIDATION_CONFIG = ValidationConfig()
DEFAULT_COLLECTIONS = CollectionConfig()

# Invalid-record logs are kept for 90 days unless overridden.
INVALID_RECORD_RETENTION_DAYS = int(os.environ.get("INVALID_RECORD_RETENTION_DAYS", "90"))
LOG_LEVEL = os.environ.get("RECORDGUARD_LOG_LEVEL", "INFO").upper()


def get_collections() -> CollectionConfig:
    """Return table names, honoring ``RECORDGUARD_TABLE_PREFIX`` when set (e.g. ``staging_``)."""
    prefix = os.environ.get("RECORDGUARD_TABLE_PREFIX", "").strip()
    if not prefix:
        return DEFAULT_COLLECTIONS
    return CollectionConfig(
        students=f"{prefix}students",
        exams=f"{prefix}exams",
        classes=f"{prefix}classes",
        grades=f"{prefix}grades",
        attendance=f"{prefix}attendance",
        reports=f"{prefix}reports",
        invalid_record_logs=f"{prefix}invalid_record_logs",
        validation_action_logs=f"{prefix}validation_action_logs",
    )
