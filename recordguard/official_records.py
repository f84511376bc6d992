"""
Official record promotion for student records.

Status lifecycle: unvalidated -> pending -> official, and reset back to
unvalidated from either. Each mutation is the primary write followed by one
audit entry. A failed audit write is logged and counted in ``audit_failures``
but never undoes the status change.

mark_as_official does not re-validate: callers promote only records that
already passed field validation.
"""

import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from recordguard.record_store import RecordStore
from recordguard.schema import StudentRecord, ValidationStatus
from recordguard.validation_action_logger import ValidationActionLogger

logger = logging.getLogger(__name__)


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


def get_audit_email(admin_id: str, admin_email: Optional[str] = None) -> str:
    normalized = (admin_email or "").strip()
    if normalized:
        return normalized
    return f"{admin_id}@system.local"


def _to_student(row: Dict[str, Any]) -> StudentRecord:
    return StudentRecord(**{k: v for k, v in row.items() if v is not None})


class OfficialRecordService:
    def __init__(self, store: RecordStore, action_logger: ValidationActionLogger):
        self.store = store
        self.action_logger = action_logger
        self.audit_failures = 0

    @property
    def table(self) -> str:
        return self.store.collections.students

    @property
    def key(self) -> str:
        return self.store.collections.student_key

    def _audit(self, written: bool, action: str, student_id: str) -> None:
        if not written:
            self.audit_failures += 1
            logger.warning(f"⚠️ Audit entry for {action} on {student_id} was not written; status change kept")

    def _get_student(self, student_id: str) -> Optional[Dict[str, Any]]:
        return self.store.get(self.table, self.key, student_id)

    # ----- mutations -----

    def mark_as_official(
        self,
        student_id: str,
        validated_by: str,
        validated_by_email: Optional[str] = None,
        student_name: Optional[str] = None,
    ) -> bool:
        """Promote one student. Returns False when the update could not be applied."""
        now = _now()
        try:
            self.store.update(self.table, self.key, student_id, {
                "validation_status": ValidationStatus.OFFICIAL.value,
                "validation_date": now,
                "validated_by": validated_by,
                "updated_at": now,
            })
        except Exception as e:
            logger.error(f"❌ Failed to mark student {student_id} as official: {e}")
            return False

        written = self.action_logger.log_mark_as_official(
            validated_by,
            get_audit_email(validated_by, validated_by_email),
            student_id,
            student_name or student_id,
            is_bulk=False,
        )
        self._audit(written, "mark_official", student_id)
        return True

    def mark_multiple_as_official(
        self,
        student_ids: List[str],
        validated_by: str,
        validated_by_email: Optional[str] = None,
    ) -> Dict[str, Any]:
        """Promote ids one at a time in input order; failures are collected, not raised."""
        failed: List[str] = []
        success = 0
        for student_id in student_ids:
            if self.mark_as_official(student_id, validated_by, validated_by_email):
                success += 1
            else:
                failed.append(student_id)

        if failed:
            logger.warning(f"⚠️ {len(failed)}/{len(student_ids)} student(s) could not be marked official")
        return {"success": success, "failed": failed, "total": len(student_ids)}

    def mark_as_pending(
        self,
        student_id: str,
        admin_id: str,
        admin_email: Optional[str] = None,
        student_name: Optional[str] = None,
    ) -> bool:
        """
        Move an unvalidated student into review.

        Already pending is a no-op success. Official records cannot go back to
        pending; reset them instead.
        """
        try:
            row = self._get_student(student_id)
        except Exception as e:
            logger.error(f"❌ Failed to read student {student_id}: {e}")
            return False
        if row is None:
            logger.warning(f"⚠️ Student {student_id} not found; cannot mark as pending")
            return False

        status = row.get("validation_status") or ValidationStatus.UNVALIDATED.value
        if status == ValidationStatus.PENDING.value:
            return True
        if status == ValidationStatus.OFFICIAL.value:
            logger.warning(f"⚠️ Student {student_id} is official; reset it before marking pending")
            return False

        try:
            self.store.update(self.table, self.key, student_id, {
                "validation_status": ValidationStatus.PENDING.value,
                "updated_at": _now(),
            })
        except Exception as e:
            logger.error(f"❌ Failed to mark student {student_id} as pending: {e}")
            return False

        written = self.action_logger.log_mark_as_pending(
            admin_id, get_audit_email(admin_id, admin_email), student_id, student_name or student_id
        )
        self._audit(written, "mark_pending", student_id)
        return True

    def reset_validation_status(
        self,
        student_id: str,
        admin_id: str,
        admin_email: Optional[str] = None,
        student_name: str = "Unknown Student",
        reason: str = "Validation status reset",
    ) -> bool:
        """
        Return a student to unvalidated and clear validation_date / validated_by.

        A record that is already unvalidated with nothing to clear is left
        untouched and reported as success without an audit entry.
        """
        try:
            row = self._get_student(student_id)
        except Exception as e:
            logger.error(f"❌ Failed to read student {student_id}: {e}")
            return False
        if row is None:
            logger.warning(f"⚠️ Student {student_id} not found; nothing to reset")
            return False

        status = row.get("validation_status") or ValidationStatus.UNVALIDATED.value
        if status == ValidationStatus.UNVALIDATED.value and not row.get("validation_date") and not row.get("validated_by"):
            return True

        try:
            self.store.update(self.table, self.key, student_id, {
                "validation_status": ValidationStatus.UNVALIDATED.value,
                "validation_date": None,
                "validated_by": None,
                "updated_at": _now(),
            })
        except Exception as e:
            logger.error(f"❌ Failed to reset validation status for {student_id}: {e}")
            return False

        written = self.action_logger.log_validation_reset(
            admin_id, get_audit_email(admin_id, admin_email), [student_id], [student_name], reason
        )
        self._audit(written, "validation_reset", student_id)
        return True

    # ----- queries -----

    def _records_with_status(self, status: ValidationStatus) -> List[StudentRecord]:
        try:
            rows = self.store.query(self.table, equals={"validation_status": status.value})
            return [_to_student(row) for row in rows]
        except Exception as e:
            logger.error(f"❌ Failed to fetch {status.value} records: {e}")
            return []

    def get_official_records(self) -> List[StudentRecord]:
        return self._records_with_status(ValidationStatus.OFFICIAL)

    def get_unvalidated_records(self) -> List[StudentRecord]:
        return self._records_with_status(ValidationStatus.UNVALIDATED)

    def get_pending_records(self) -> List[StudentRecord]:
        return self._records_with_status(ValidationStatus.PENDING)

    def get_validation_status(self, student_id: str) -> ValidationStatus:
        """Unknown students and read failures both report unvalidated."""
        try:
            row = self._get_student(student_id)
        except Exception as e:
            logger.error(f"❌ Failed to get validation status for {student_id}: {e}")
            return ValidationStatus.UNVALIDATED
        if row is None:
            return ValidationStatus.UNVALIDATED
        return ValidationStatus(row.get("validation_status") or ValidationStatus.UNVALIDATED.value)

    def is_official(self, student_id: str) -> bool:
        return self.get_validation_status(student_id) is ValidationStatus.OFFICIAL

    def get_validation_metadata(self, student_id: str) -> Optional[Dict[str, Any]]:
        try:
            row = self._get_student(student_id)
        except Exception as e:
            logger.error(f"❌ Failed to get validation metadata for {student_id}: {e}")
            return None
        if row is None:
            return {"status": ValidationStatus.UNVALIDATED.value}
        return {
            "validation_date": row.get("validation_date"),
            "validated_by": row.get("validated_by"),
            "status": row.get("validation_status") or ValidationStatus.UNVALIDATED.value,
        }

    def get_validation_statistics(self) -> Dict[str, int]:
        official = len(self.get_official_records())
        unvalidated = len(self.get_unvalidated_records())
        pending = len(self.get_pending_records())
        return {
            "official": official,
            "unvalidated": unvalidated,
            "pending": pending,
            "total": official + unvalidated + pending,
        }
