"""
Audit trail of validation actions (bulk checks, promotions, resets, overrides).

Distinct from the invalid record ledger: these entries describe deliberate
admin or system actions, not rejected writes. Every ``log_*`` method writes a
single entry and returns True/False; none of them raise.
"""

import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from recordguard.record_store import RecordStore
from recordguard.schema import (
    ActionStatus,
    ActionType,
    TargetType,
    ValidationActionLog,
    ValidationStatus,
)

logger = logging.getLogger(__name__)

# Routing for log_status_change: the destination status decides the action family.
_STATUS_ACTIONS = {
    ValidationStatus.OFFICIAL: ActionType.MARK_OFFICIAL,
    ValidationStatus.PENDING: ActionType.MARK_PENDING,
    ValidationStatus.UNVALIDATED: ActionType.VALIDATION_RESET,
}


class ValidationActionLogger:
    def __init__(self, store: RecordStore):
        self.store = store

    @property
    def table(self) -> str:
        return self.store.collections.validation_action_logs

    def _write(
        self,
        admin_id: str,
        admin_email: str,
        action_type: ActionType,
        action_status: ActionStatus,
        target_type: TargetType,
        details: str,
        **fields: Any,
    ) -> bool:
        try:
            entry = ValidationActionLog(
                admin_id=admin_id,
                admin_email=admin_email,
                timestamp=datetime.now(timezone.utc).isoformat(),
                action_type=action_type,
                action_status=action_status,
                target_type=target_type,
                details=details,
                **fields,
            )
            self.store.insert(self.table, entry.model_dump(mode="json", exclude={"id"}))
            logger.info(f"📝 {action_type.value}: {details}")
            return True
        except Exception as e:
            logger.error(f"❌ Error logging {action_type.value} action: {e}")
            return False

    def log_field_validation(
        self,
        admin_id: str,
        admin_email: str,
        student_id: str,
        student_name: str,
        validation_errors: List[str],
        is_valid: bool,
    ) -> bool:
        if is_valid:
            details = f"Field validation passed for {student_name} ({student_id})"
        else:
            details = f"Field validation failed for {student_name} ({student_id}): {', '.join(validation_errors)}"
        return self._write(
            admin_id,
            admin_email,
            ActionType.FIELD_VALIDATION,
            ActionStatus.SUCCESS if is_valid else ActionStatus.FAILED,
            TargetType.STUDENT,
            details,
            target_id=student_id,
            target_name=student_name,
            records_processed=1,
            records_successful=1 if is_valid else 0,
            records_failed=0 if is_valid else 1,
            validation_errors=list(validation_errors),
            metadata={"is_valid": is_valid},
        )

    def log_bulk_field_validation(
        self,
        admin_id: str,
        admin_email: str,
        total_records: int,
        successful_records: int,
        failed_records: int,
        errors: Dict[int, List[str]],
    ) -> bool:
        """One entry for a whole batch; the per-row error list is truncated to 5 rows in ``details``."""
        summary = "; ".join(f"Row {row}: {', '.join(errs)}" for row, errs in list(errors.items())[:5])
        details = f"Bulk field validation completed: {successful_records}/{total_records} records valid"
        if failed_records:
            details += f", {failed_records} failed"
        return self._write(
            admin_id,
            admin_email,
            ActionType.BULK_VALIDATION,
            ActionStatus.SUCCESS if failed_records == 0 else ActionStatus.FAILED,
            TargetType.BULK_RECORDS,
            details,
            records_processed=total_records,
            records_successful=successful_records,
            records_failed=failed_records,
            validation_errors=[f"Row {row}: {', '.join(errs)}" for row, errs in errors.items()],
            metadata={"error_count": len(errors), "error_summary": summary},
        )

    def log_quality_check(
        self,
        admin_id: str,
        admin_email: str,
        records_checked: int,
        issues_found: Dict[str, int],
        is_clean: bool,
    ) -> bool:
        total = issues_found.get("total", 0)
        if is_clean:
            details = f"Data quality check passed: {records_checked} records checked, no issues"
        else:
            details = f"Data quality check found {total} issue(s) in {records_checked} records"
        return self._write(
            admin_id,
            admin_email,
            ActionType.QUALITY_CHECK,
            ActionStatus.SUCCESS if is_clean else ActionStatus.PENDING,
            TargetType.BULK_RECORDS,
            details,
            records_processed=records_checked,
            quality_issues=dict(issues_found),
            metadata={"is_clean": is_clean},
        )

    def log_duplicate_detection(
        self,
        admin_id: str,
        admin_email: str,
        student_id_duplicates: Optional[List[str]] = None,
        name_duplicates: Optional[List[str]] = None,
        email_duplicates: Optional[List[str]] = None,
    ) -> bool:
        ids = student_id_duplicates or []
        names = name_duplicates or []
        emails = email_duplicates or []
        total = len(ids) + len(names) + len(emails)
        if total == 0:
            details = "Duplicate detection completed: No duplicates found"
        else:
            details = (
                f"Duplicate detection found {total} duplicate(s): "
                f"{len(ids)} ID dupes, {len(names)} name dupes, {len(emails)} email dupes"
            )
        return self._write(
            admin_id,
            admin_email,
            ActionType.DUPLICATE_DETECTION,
            ActionStatus.SUCCESS if total == 0 else ActionStatus.PENDING,
            TargetType.BULK_RECORDS,
            details,
            quality_issues={"duplicates": total},
            metadata={
                "student_id_duplicates": ids,
                "name_duplicates": names,
                "email_duplicates": emails,
            },
        )

    def log_mark_as_official(
        self,
        admin_id: str,
        admin_email: str,
        student_id: str,
        student_name: str,
        is_bulk: bool = False,
        total_records: Optional[int] = None,
        successful_records: Optional[int] = None,
    ) -> bool:
        count = total_records if is_bulk and total_records is not None else 1
        successful = count if successful_records is None else successful_records
        failed = count - successful
        if is_bulk:
            details = f"Marked {successful}/{count} record(s) as official"
            if failed:
                details += f", {failed} failed"
        else:
            details = f"Marked student {student_name} ({student_id}) as official"
        return self._write(
            admin_id,
            admin_email,
            ActionType.MARK_OFFICIAL,
            ActionStatus.WARNING if failed else ActionStatus.SUCCESS,
            TargetType.BULK_RECORDS if is_bulk else TargetType.STUDENT,
            details,
            target_id=student_id or None,
            target_name=student_name,
            records_processed=count,
            records_successful=successful,
            records_failed=failed,
            metadata={"is_bulk": is_bulk},
        )

    def log_mark_as_pending(self, admin_id: str, admin_email: str, student_id: str, student_name: str) -> bool:
        return self._write(
            admin_id,
            admin_email,
            ActionType.MARK_PENDING,
            ActionStatus.SUCCESS,
            TargetType.STUDENT,
            f"Marked student {student_name} ({student_id}) as pending review",
            target_id=student_id,
            target_name=student_name,
            records_processed=1,
            records_successful=1,
        )

    def log_validation_reset(
        self,
        admin_id: str,
        admin_email: str,
        student_ids: List[str],
        student_names: List[str],
        reason: str,
    ) -> bool:
        multiple = len(student_ids) > 1
        if multiple:
            details = f"Reset validation for {len(student_ids)} student(s) - Reason: {reason}"
        else:
            name = student_names[0] if student_names else ""
            sid = student_ids[0] if student_ids else ""
            details = f"Reset validation for {name} ({sid}) - Reason: {reason}"
        return self._write(
            admin_id,
            admin_email,
            ActionType.VALIDATION_RESET,
            ActionStatus.SUCCESS,
            TargetType.BULK_RECORDS if multiple else TargetType.STUDENT,
            details,
            target_id=None if multiple else (student_ids[0] if student_ids else None),
            target_name=None if multiple else (student_names[0] if student_names else None),
            records_processed=len(student_ids),
            records_successful=len(student_ids),
            override_reason=reason,
            metadata={"student_ids": list(student_ids), "student_names": list(student_names)},
        )

    def log_validation_override(
        self,
        admin_id: str,
        admin_email: str,
        student_id: str,
        student_name: str,
        override_type: str,
        override_reason: str,
        affected_count: Optional[int] = None,
    ) -> bool:
        count = affected_count if affected_count is not None else 1
        return self._write(
            admin_id,
            admin_email,
            ActionType.OVERRIDE_VALIDATION,
            ActionStatus.WARNING,
            TargetType.BULK_RECORDS if count > 1 else TargetType.STUDENT,
            f"Validation override ({override_type}): {student_name} ({student_id}) - Reason: {override_reason}",
            target_id=student_id or None,
            target_name=student_name,
            records_processed=count,
            override_reason=override_reason,
            metadata={"override_type": override_type},
        )

    def log_status_change(
        self,
        admin_id: str,
        admin_email: str,
        student_id: str,
        student_name: str,
        from_status: str,
        to_status: str,
        reason: Optional[str] = None,
    ) -> bool:
        """Record a status transition under the action type of its destination status."""
        try:
            action_type = _STATUS_ACTIONS[ValidationStatus(to_status)]
        except (ValueError, KeyError):
            logger.error(f"❌ Unknown validation status for status change: {to_status}")
            return False

        details = f"Changed validation status for {student_name} ({student_id}) from {from_status} to {to_status}"
        if reason:
            details += f" - Reason: {reason}"
        return self._write(
            admin_id,
            admin_email,
            action_type,
            ActionStatus.SUCCESS,
            TargetType.STUDENT,
            details,
            target_id=student_id,
            target_name=student_name,
            records_processed=1,
            records_successful=1,
            override_reason=reason,
            metadata={"from_status": from_status, "to_status": to_status},
        )

    def get_validation_logs(
        self,
        admin_id: Optional[str] = None,
        action_type: Optional[str] = None,
        start_date: Optional[str] = None,
        end_date: Optional[str] = None,
        limit: int = 100,
    ) -> List[ValidationActionLog]:
        """Newest-first list of action entries. Returns [] on storage failure."""
        try:
            rows = self.store.query(
                self.table,
                equals={
                    "admin_id": admin_id,
                    "action_type": ActionType(action_type).value if action_type else None,
                },
                gte={"timestamp": start_date},
                lte={"timestamp": end_date},
                order_by="timestamp",
                desc=True,
                limit=limit,
            )
            return [ValidationActionLog(**row) for row in rows]
        except Exception as e:
            logger.error(f"❌ Error retrieving validation logs: {e}")
            return []

    def get_validation_statistics(self, recent: int = 10) -> Dict[str, Any]:
        logs = self.get_validation_logs(limit=1000)
        validations = [
            log for log in logs
            if log.action_type in (ActionType.FIELD_VALIDATION, ActionType.BULK_VALIDATION)
        ]
        return {
            "total_validations": len(validations),
            "successful_validations": sum(1 for log in validations if log.action_status is ActionStatus.SUCCESS),
            "failed_validations": sum(1 for log in validations if log.action_status is ActionStatus.FAILED),
            "overrides_applied": sum(1 for log in logs if log.action_type is ActionType.OVERRIDE_VALIDATION),
            "recent_actions": logs[:recent],
        }
