"""
Keeps non-official student records out of the Exams, Classes, Results and
Dashboard modules. Admins may override the block; an applied override is
written to the validation action log.
"""

import logging
from typing import Any, Dict, List, Optional

from recordguard.official_records import OfficialRecordService, get_audit_email
from recordguard.schema import ValidationStatus

logger = logging.getLogger(__name__)

WARNING_LIST_LIMIT = 5


class ModuleAccessGuard:
    def __init__(self, official_records: OfficialRecordService, action_logger=None):
        self.official_records = official_records
        self.action_logger = action_logger

    def can_use_in_module(self, student_id: str, module_name: str) -> Dict[str, Any]:
        status = self.official_records.get_validation_status(student_id)
        if status is ValidationStatus.OFFICIAL:
            return {"is_allowed": True}

        if status is ValidationStatus.PENDING:
            reason = f"Student {student_id} is pending validation and cannot be used in {module_name}"
        else:
            reason = f"Student {student_id} is unvalidated and cannot be used in {module_name}"
        return {"is_allowed": False, "reason": reason, "student_status": status.value}

    def can_use_multiple_in_module(self, student_ids: List[str], module_name: str) -> Dict[str, Any]:
        blocked: List[str] = []
        allowed: List[str] = []
        for student_id in student_ids:
            if self.can_use_in_module(student_id, module_name)["is_allowed"]:
                allowed.append(student_id)
            else:
                blocked.append(student_id)

        result: Dict[str, Any] = {
            "is_allowed": not blocked,
            "blocked_students": blocked,
            "allowed_students": allowed,
        }
        if blocked:
            result["reason"] = f"{len(blocked)} unvalidated student(s) cannot be used in {module_name}"
        return result

    def can_use_in_exams(self, student_ids: List[str]) -> Dict[str, Any]:
        return self.can_use_multiple_in_module(student_ids, "Exams")

    def can_use_in_classes(self, student_ids: List[str]) -> Dict[str, Any]:
        return self.can_use_multiple_in_module(student_ids, "Classes")

    def can_use_in_results(self, student_ids: List[str]) -> Dict[str, Any]:
        return self.can_use_multiple_in_module(student_ids, "Results")

    def can_use_in_dashboard(self, student_ids: List[str]) -> Dict[str, Any]:
        return self.can_use_multiple_in_module(student_ids, "Dashboard")

    def enforce_validation_requirement(
        self,
        student_ids: List[str],
        module_name: str,
        admin_override: bool = False,
        is_admin: bool = False,
        admin_id: Optional[str] = None,
        admin_email: Optional[str] = None,
        override_reason: Optional[str] = None,
    ) -> Dict[str, Any]:
        """
        Block unless every student is official. An admin with override enabled
        is let through, and that override is logged once for the whole batch.
        """
        result = self.can_use_multiple_in_module(student_ids, module_name)
        if result["is_allowed"] or not (admin_override and is_admin):
            return result

        blocked = result["blocked_students"]
        if self.action_logger is not None:
            actor = admin_id or "admin"
            self.action_logger.log_validation_override(
                actor,
                get_audit_email(actor, admin_email),
                blocked[0] if len(blocked) == 1 else "",
                blocked[0] if len(blocked) == 1 else f"{len(blocked)} students",
                "field_validation",
                override_reason or f"Admin override for {module_name}",
                affected_count=len(blocked),
            )
        logger.warning(f"⚠️ Admin override applied for {len(blocked)} student(s) in {module_name}")
        return {
            "is_allowed": True,
            "reason": "Access granted with admin override",
            "blocked_students": [],
            "allowed_students": list(student_ids),
            "overridden_students": blocked,
        }

    def get_validation_report(self, student_ids: List[str]) -> Dict[str, Any]:
        report: Dict[str, Any] = {
            "total": len(student_ids),
            "official": 0,
            "unvalidated": 0,
            "pending": 0,
            "official_ids": [],
            "unvalidated_ids": [],
            "pending_ids": [],
        }
        for student_id in student_ids:
            status = self.official_records.get_validation_status(student_id).value
            report[status] += 1
            report[f"{status}_ids"].append(student_id)
        return report

    def filter_to_official_only(self, student_ids: List[str]) -> List[str]:
        return [sid for sid in student_ids if self.official_records.is_official(sid)]

    @staticmethod
    def generate_warning_message(blocked_students: List[str], module_name: str) -> str:
        if not blocked_students:
            return ""
        listed = ", ".join(blocked_students[:WARNING_LIST_LIMIT])
        extra = len(blocked_students) - WARNING_LIST_LIMIT
        suffix = f" and {extra} more" if extra > 0 else ""
        return (
            f"The following students are unvalidated and cannot be used in {module_name}: "
            f"{listed}{suffix}. Please validate these records first."
        )
