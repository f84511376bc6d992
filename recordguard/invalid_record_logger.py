"""
Append-only ledger of rejected record writes.

Every blocked grade/attendance/report save is stored with its verbatim payload
and structured errors so admins can review, replay and export it. Logging is
auxiliary to the accept/reject decision: storage failures are logged and
reported as None / [] and never raised to the caller.
"""

import copy
import logging
from collections import Counter
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Optional, Union

from recordguard.config import INVALID_RECORD_RETENTION_DAYS
from recordguard.record_store import RecordStore
from recordguard.schema import InvalidRecordLog, RecordKind, ValidationIssue

logger = logging.getLogger(__name__)

DEFAULT_QUERY_LIMIT = 100
SUMMARY_SCAN_LIMIT = 1000

ErrorLike = Union[ValidationIssue, Dict[str, Any]]


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _error_to_dict(error: ErrorLike) -> Dict[str, Any]:
    if isinstance(error, ValidationIssue):
        return error.model_dump(mode="json")
    return dict(error)


def generate_rejection_reason(record_type: RecordKind, errors: List[Dict[str, Any]]) -> str:
    if not errors:
        return "Unknown validation error"
    label = RecordKind(record_type).label
    if len(errors) == 1:
        return f"{label} record rejected: {errors[0].get('message', '')}"
    fields = ", ".join(e.get("field", "") for e in errors)
    return f"{label} record rejected due to validation errors in: {fields}"


def format_error_details(errors: List[ErrorLike]) -> str:
    """Bulleted ``field: message`` lines for display and export."""
    lines = []
    for error in errors:
        e = _error_to_dict(error)
        lines.append(f"• {e.get('field', '')}: {e.get('message', '')}")
    return "\n".join(lines)


def _default_entity_id(record_type: RecordKind, record_data: Dict[str, Any]) -> str:
    key = "entity_id" if record_type is RecordKind.REPORT else "student_id"
    value = record_data.get(key)
    return value if isinstance(value, str) else ""


class InvalidRecordLogger:
    """
    Persists rejected write attempts into the ``invalid_record_logs`` table.

    Args:
        store: RecordStore used for inserts and queries.
        retention_days: How long an entry is kept before cleanup_old_records removes it.
    """

    def __init__(self, store: RecordStore, retention_days: int = INVALID_RECORD_RETENTION_DAYS):
        self.store = store
        self.retention_days = retention_days

    @property
    def table(self) -> str:
        return self.store.collections.invalid_record_logs

    format_error_details = staticmethod(format_error_details)

    def log_invalid_record(
        self,
        record_type,
        record_data: Dict[str, Any],
        validation_errors: List[ErrorLike],
        user_id: str,
        *,
        entity_id: Optional[str] = None,
        user_email: Optional[str] = None,
        ip_address: Optional[str] = None,
        user_agent: Optional[str] = None,
        metadata: Optional[Dict[str, Any]] = None,
        warning_count: int = 0,
    ) -> Optional[InvalidRecordLog]:
        """
        Store one rejection. Two identical calls produce two entries.

        Returns:
            The stored InvalidRecordLog, or None if it could not be written.
        """
        try:
            kind = RecordKind(record_type)
            errors = [_error_to_dict(e) for e in validation_errors]
            now = _utcnow()

            entry = InvalidRecordLog(
                record_type=kind,
                entity_id=entity_id or _default_entity_id(kind, record_data),
                user_id=user_id,
                user_email=user_email,
                record_data=copy.deepcopy(record_data),
                validation_errors=errors,
                error_count=len(errors),
                warning_count=warning_count,
                rejection_reason=generate_rejection_reason(kind, errors),
                attempted_at=now.isoformat(),
                expires_at=(now + timedelta(days=self.retention_days)).isoformat(),
                ip_address=ip_address,
                user_agent=user_agent,
                metadata=metadata,
            )
            row = self.store.insert(self.table, entry.model_dump(mode="json", exclude={"id"}))
            logger.info(f"🚫 Logged rejected {kind.value} record for entity {entry.entity_id or '-'}")
            return InvalidRecordLog(**row)
        except Exception as e:
            logger.error(f"❌ Error logging invalid record: {e}")
            return None

    def query_invalid_records(
        self,
        record_type=None,
        entity_id: Optional[str] = None,
        user_id: Optional[str] = None,
        from_date: Optional[str] = None,
        to_date: Optional[str] = None,
        limit_results: int = DEFAULT_QUERY_LIMIT,
    ) -> List[InvalidRecordLog]:
        """Filtered query, newest first. Returns [] on storage failure."""
        try:
            rows = self.store.query(
                self.table,
                equals={
                    "record_type": RecordKind(record_type).value if record_type else None,
                    "entity_id": entity_id,
                    "user_id": user_id,
                },
                gte={"attempted_at": from_date},
                lte={"attempted_at": to_date},
                order_by="attempted_at",
                desc=True,
                limit=limit_results or DEFAULT_QUERY_LIMIT,
            )
            return [InvalidRecordLog(**row) for row in rows]
        except Exception as e:
            logger.error(f"❌ Error querying invalid records: {e}")
            return []

    def get_invalid_records_by_entity(self, entity_id: str, record_type=None) -> List[InvalidRecordLog]:
        return self.query_invalid_records(record_type=record_type, entity_id=entity_id, limit_results=50)

    def get_invalid_records_by_user(self, user_id: str, record_type=None) -> List[InvalidRecordLog]:
        return self.query_invalid_records(record_type=record_type, user_id=user_id, limit_results=50)

    def get_invalid_records_by_date_range(self, start_date: str, end_date: str, record_type=None) -> List[InvalidRecordLog]:
        return self.query_invalid_records(
            record_type=record_type, from_date=start_date, to_date=end_date, limit_results=DEFAULT_QUERY_LIMIT
        )

    def get_invalid_records_summary(self) -> Dict[str, Any]:
        """Totals by type and by error field over the most recent entries."""
        records = self.query_invalid_records(limit_results=SUMMARY_SCAN_LIMIT)

        by_type = {kind.value: 0 for kind in RecordKind}
        by_error_field: Counter = Counter()
        affected: List[str] = []
        for record in records:
            by_type[record.record_type.value] += 1
            for error in record.validation_errors:
                by_error_field[error.get("field", "")] += 1
            if record.entity_id and record.entity_id not in affected:
                affected.append(record.entity_id)

        total = len(records)
        most_common = [
            {"field": field, "count": count, "percentage": round(count / total * 100)}
            for field, count in by_error_field.most_common(10)
        ]
        return {
            "total_invalid_records": total,
            "by_type": by_type,
            "by_error_field": dict(by_error_field),
            "most_common_errors": most_common,
            "affected_entities": affected,
        }

    def cleanup_old_records(self, days_old: Optional[int] = None) -> Dict[str, Any]:
        """Delete entries attempted more than ``days_old`` days ago (default: retention window)."""
        days = self.retention_days if days_old is None else days_old
        cutoff = (_utcnow() - timedelta(days=days)).isoformat()
        try:
            deleted = self.store.delete_older_than(self.table, "attempted_at", cutoff)
        except Exception as e:
            logger.error(f"❌ Error cleaning up invalid record logs: {e}")
            return {"success": False, "error": str(e)}
        logger.info(f"🧹 Removed {deleted} invalid record log(s) older than {days} days")
        return {"success": True, "deleted_count": deleted}
