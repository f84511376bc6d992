"""
Write path for grade, attendance and report records.

Every save goes through the validation guard first. Blocked records are
written to the invalid record ledger and never reach their table; the full
structured error list goes back to the caller unchanged.
"""

import logging
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from recordguard.invalid_record_logger import InvalidRecordLogger
from recordguard.record_guard import RecordValidationGuard
from recordguard.record_store import RecordStore
from recordguard.schema import RECORD_MODELS, RecordKind

logger = logging.getLogger(__name__)

SAVE_FAILED_MESSAGE = "Failed to save record. Please try again."

_ACTOR_FIELD = {
    RecordKind.GRADE: "recorded_by",
    RecordKind.ATTENDANCE: "recorded_by",
    RecordKind.REPORT: "generated_by",
}

_TIMESTAMP_FIELD = {
    RecordKind.GRADE: "recorded_at",
    RecordKind.ATTENDANCE: "recorded_at",
    RecordKind.REPORT: "generated_at",
}


class GuardedRecordWriter:
    def __init__(self, store: RecordStore, guard: RecordValidationGuard, invalid_logger: InvalidRecordLogger):
        self.store = store
        self.guard = guard
        self.invalid_logger = invalid_logger

    def _table_for(self, kind: RecordKind) -> str:
        collections = self.store.collections
        return {
            RecordKind.GRADE: collections.grades,
            RecordKind.ATTENDANCE: collections.attendance,
            RecordKind.REPORT: collections.reports,
        }[kind]

    def save_record(
        self,
        kind,
        data: Dict[str, Any],
        *,
        user_email: Optional[str] = None,
        ip_address: Optional[str] = None,
        user_agent: Optional[str] = None,
        metadata: Optional[Dict[str, Any]] = None,
    ) -> Dict[str, Any]:
        """
        Validate then persist one record.

        Returns:
            {"success": True, "id": ..., "warnings": [...]} when saved,
            {"success": False, "error": ..., "validation_errors": [...], "warnings": [...]} when blocked,
            {"success": False, "error": SAVE_FAILED_MESSAGE} on storage failure.
        """
        kind = RecordKind(kind)
        result = self.guard.validate_record(kind, data)
        warnings = [w.model_dump(mode="json") for w in result.warnings]

        if self.guard.should_block_save(result):
            actor = data.get(_ACTOR_FIELD[kind])
            if not actor and kind is RecordKind.GRADE:
                actor = data.get("graded_by")
            self.invalid_logger.log_invalid_record(
                kind,
                data,
                result.errors,
                actor if isinstance(actor, str) else "",
                user_email=user_email,
                ip_address=ip_address,
                user_agent=user_agent,
                metadata=metadata,
                warning_count=len(result.warnings),
            )
            logger.warning(f"⚠️ {kind.label} record blocked with {len(result.errors)} error(s)")
            return {
                "success": False,
                "error": self.guard.format_validation_errors(result.errors, kind.label),
                "validation_errors": [e.model_dump(mode="json") for e in result.errors],
                "warnings": warnings,
            }

        payload = dict(data)
        payload.setdefault(_TIMESTAMP_FIELD[kind], datetime.now(timezone.utc).isoformat())
        try:
            record = RECORD_MODELS[kind](**payload)
            row = self.store.insert(self._table_for(kind), record.model_dump(mode="json", exclude={"kind"}))
        except Exception as e:
            logger.error(f"❌ Failed to save {kind.value} record: {e}")
            return {"success": False, "error": SAVE_FAILED_MESSAGE}

        logger.info(f"✅ Saved {kind.value} record {row.get('id')}")
        return {"success": True, "id": row.get("id"), "warnings": warnings}

    def save_grade(self, data: Dict[str, Any], **context: Any) -> Dict[str, Any]:
        return self.save_record(RecordKind.GRADE, data, **context)

    def save_attendance(self, data: Dict[str, Any], **context: Any) -> Dict[str, Any]:
        return self.save_record(RecordKind.ATTENDANCE, data, **context)

    def save_report(self, data: Dict[str, Any], **context: Any) -> Dict[str, Any]:
        return self.save_record(RecordKind.REPORT, data, **context)
