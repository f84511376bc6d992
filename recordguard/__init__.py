"""
Record Guard package exports.

Validation, rejection logging and official-record promotion for SIA grade,
attendance and report records.
"""

from recordguard.record_guard import RecordValidationGuard
from recordguard.invalid_record_logger import InvalidRecordLogger
from recordguard.validation_action_logger import ValidationActionLogger
from recordguard.official_records import OfficialRecordService
from recordguard.guarded_writes import GuardedRecordWriter

__all__ = [
    "RecordValidationGuard",
    "InvalidRecordLogger",
    "ValidationActionLogger",
    "OfficialRecordService",
    "GuardedRecordWriter",
]
