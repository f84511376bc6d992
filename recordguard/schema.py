"""
Data models for SIA records, validation outcomes and audit logs.
Uses Pydantic for validation and type safety.
"""

from enum import Enum
from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel, Field


class RecordKind(str, Enum):
    """Tag for the record union. Validation and logging dispatch on this, never on shape."""
    GRADE = "grade"
    ATTENDANCE = "attendance"
    REPORT = "report"

    @property
    def label(self) -> str:
        return self.value.capitalize()


class Severity(str, Enum):
    ERROR = "error"
    WARNING = "warning"


class ValidationStatus(str, Enum):
    UNVALIDATED = "unvalidated"
    PENDING = "pending"
    OFFICIAL = "official"


class ActionType(str, Enum):
    FIELD_VALIDATION = "field_validation"
    BULK_VALIDATION = "bulk_validation"
    QUALITY_CHECK = "quality_check"
    DUPLICATE_DETECTION = "duplicate_detection"
    MARK_OFFICIAL = "mark_official"
    MARK_PENDING = "mark_pending"
    VALIDATION_RESET = "validation_reset"
    OVERRIDE_VALIDATION = "override_validation"


class ActionStatus(str, Enum):
    SUCCESS = "success"
    FAILED = "failed"
    PENDING = "pending"
    WARNING = "warning"
    INFO = "info"


class TargetType(str, Enum):
    SINGLE_RECORD = "single_record"
    BULK_RECORDS = "bulk_records"
    CLASS = "class"
    STUDENT = "student"


# Record union. These describe accepted payloads; validation itself runs on raw dicts
# so malformed input produces ValidationIssues rather than model errors.

class GradeRecord(BaseModel):
    kind: RecordKind = RecordKind.GRADE
    student_id: str
    exam_id: str
    class_id: str
    score: float
    grade_letter: Optional[str] = None
    recorded_by: str
    recorded_at: Optional[str] = None


class AttendanceRecord(BaseModel):
    kind: RecordKind = RecordKind.ATTENDANCE
    student_id: str
    class_id: str
    date: str
    status: str
    remarks: Optional[str] = None
    recorded_by: str
    recorded_at: Optional[str] = None


class ReportRecord(BaseModel):
    kind: RecordKind = RecordKind.REPORT
    report_type: str
    entity_id: str
    date_range_start: Optional[str] = None
    date_range_end: Optional[str] = None
    generated_by: str
    generated_at: Optional[str] = None


Record = Union[GradeRecord, AttendanceRecord, ReportRecord]

RECORD_MODELS = {
    RecordKind.GRADE: GradeRecord,
    RecordKind.ATTENDANCE: AttendanceRecord,
    RecordKind.REPORT: ReportRecord,
}


class ValidationIssue(BaseModel):
    """One field-level finding from a validation pass."""
    field: str
    message: str
    severity: Severity = Severity.ERROR
    value: Optional[Any] = None


class ValidationResult(BaseModel):
    """
    Verdict for a candidate record.
    blocked_from_save is true iff at least one error-severity issue exists.
    """
    is_valid: bool
    errors: List[ValidationIssue] = []
    warnings: List[ValidationIssue] = []
    blocked_from_save: bool

    @classmethod
    def from_issues(cls, errors: List[ValidationIssue], warnings: List[ValidationIssue]) -> "ValidationResult":
        return cls(
            is_valid=len(errors) == 0,
            errors=list(errors),
            warnings=list(warnings),
            blocked_from_save=len(errors) > 0,
        )


class InvalidRecordLog(BaseModel):
    """Immutable ledger entry for a rejected write attempt."""
    id: Optional[str] = None
    record_type: RecordKind
    entity_id: str = ""
    user_id: str
    user_email: Optional[str] = None
    record_data: Dict[str, Any]
    validation_errors: List[Dict[str, Any]] = []
    error_count: int = 0
    warning_count: int = 0
    rejection_reason: str
    attempted_at: str
    expires_at: Optional[str] = None
    ip_address: Optional[str] = None
    user_agent: Optional[str] = None
    metadata: Optional[Dict[str, Any]] = None


class ValidationActionLog(BaseModel):
    """Immutable audit entry for a deliberate validation action."""
    id: Optional[str] = None
    admin_id: str
    admin_email: str
    timestamp: str
    action_type: ActionType
    action_status: ActionStatus
    target_type: TargetType
    target_id: Optional[str] = None
    target_name: Optional[str] = None
    records_processed: int = 0
    records_successful: int = 0
    records_failed: int = 0
    validation_errors: Optional[List[str]] = None
    quality_issues: Optional[Dict[str, int]] = None
    override_reason: Optional[str] = None
    metadata: Dict[str, Any] = Field(default_factory=dict)
    details: str = ""


class StudentRecord(BaseModel):
    """Student document as stored in the students table."""
    student_id: str
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    email: Optional[str] = None
    year: Optional[Union[int, str]] = None
    section: Optional[Union[int, str]] = None
    enrolled_classes: List[str] = []
    created_at: Optional[str] = None
    updated_at: Optional[str] = None
    created_by: Optional[str] = None
    validation_status: ValidationStatus = ValidationStatus.UNVALIDATED
    validation_date: Optional[str] = None
    validated_by: Optional[str] = None
