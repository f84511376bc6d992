"""Shared fixtures: a seeded in-memory Supabase and the services built on it."""

import pytest

from fake_supabase import FakeSupabase, make_student
from recordguard.invalid_record_logger import InvalidRecordLogger
from recordguard.official_records import OfficialRecordService
from recordguard.record_guard import RecordValidationGuard
from recordguard.record_store import RecordStore
from recordguard.validation_action_logger import ValidationActionLogger


@pytest.fixture
def fake_client():
    return FakeSupabase({
        "students": [
            make_student("S1"),
            make_student("S2"),
            make_student("S3", status="pending"),
            make_student("S4", status="official", validation_date="2024-01-10T00:00:00+00:00", validated_by="T9"),
            make_student("STU-100", first_name="Marco", last_name="Diaz"),
        ],
        "exams": [{"id": "E1", "title": "Midterm"}],
        "classes": [{"id": "C1", "name": "Math 10"}],
    })


@pytest.fixture
def store(fake_client):
    return RecordStore(fake_client)


@pytest.fixture
def action_logger(store):
    return ValidationActionLogger(store)


@pytest.fixture
def invalid_logger(store):
    return InvalidRecordLogger(store)


@pytest.fixture
def guard(store):
    return RecordValidationGuard(store)


@pytest.fixture
def official(store, action_logger):
    return OfficialRecordService(store, action_logger)
