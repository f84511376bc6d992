"""
Tests for keeping non-official students out of downstream modules.
"""

import pytest

from recordguard.module_access import ModuleAccessGuard


@pytest.fixture
def access(official, action_logger):
    return ModuleAccessGuard(official, action_logger)


def test_single_student_checks(access):
    assert access.can_use_in_module("S4", "Exams") == {"is_allowed": True}

    pending = access.can_use_in_module("S3", "Exams")
    assert pending["is_allowed"] is False
    assert pending["reason"] == "Student S3 is pending validation and cannot be used in Exams"

    unknown = access.can_use_in_module("S404", "Exams")
    assert unknown["student_status"] == "unvalidated"


def test_multiple_students_split(access):
    result = access.can_use_in_results(["S4", "S1", "S3"])
    assert result["is_allowed"] is False
    assert result["allowed_students"] == ["S4"]
    assert result["blocked_students"] == ["S1", "S3"]
    assert result["reason"] == "2 unvalidated student(s) cannot be used in Results"


def test_all_official_allowed(access):
    assert access.can_use_in_dashboard(["S4"])["is_allowed"] is True
    assert access.can_use_in_classes([])["is_allowed"] is True


def test_override_requires_admin(access, fake_client):
    result = access.enforce_validation_requirement(["S1"], "Exams", admin_override=True, is_admin=False)
    assert result["is_allowed"] is False
    assert fake_client.rows("validation_action_logs") == []


def test_admin_override_logged_once(access, fake_client):
    result = access.enforce_validation_requirement(
        ["S4", "S1", "S2"], "Exams", admin_override=True, is_admin=True,
        admin_id="admin-1", admin_email="admin@school.edu", override_reason="Make-up exam",
    )

    assert result["is_allowed"] is True
    assert result["overridden_students"] == ["S1", "S2"]
    logs = fake_client.rows("validation_action_logs")
    assert len(logs) == 1
    assert logs[0]["action_type"] == "override_validation"
    assert logs[0]["override_reason"] == "Make-up exam"
    assert logs[0]["records_processed"] == 2


def test_no_override_needed_writes_nothing(access, fake_client):
    result = access.enforce_validation_requirement(["S4"], "Exams", admin_override=True, is_admin=True)
    assert result["is_allowed"] is True
    assert fake_client.rows("validation_action_logs") == []


def test_report_and_filter(access):
    report = access.get_validation_report(["S1", "S3", "S4", "S404"])
    assert report["total"] == 4
    assert report["official_ids"] == ["S4"]
    assert report["pending_ids"] == ["S3"]
    assert report["unvalidated"] == 2
    assert access.filter_to_official_only(["S1", "S4", "S3"]) == ["S4"]


def test_warning_message_truncates_after_five():
    ids = [f"S{i}" for i in range(1, 8)]
    message = ModuleAccessGuard.generate_warning_message(ids, "Classes")
    assert "S1, S2, S3, S4, S5 and 2 more." in message
    assert message.startswith("The following students are unvalidated and cannot be used in Classes")
    assert ModuleAccessGuard.generate_warning_message([], "Classes") == ""
