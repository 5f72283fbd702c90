import pytest
from sqlalchemy.exc import OperationalError, ProgrammingError

from consultation_service.database import (
    AUTH_HINT,
    CONNECT_HINT,
    MISSING_COLUMN_HINT,
    MISSING_TABLE_HINT,
    build_engine,
    classify_storage_failure,
    create_session_factory,
    create_tables,
    resolve_url,
)
from consultation_service.errors import ConfigurationError, StorageError
from consultation_service.store import ConsultationStore

VALUES = {
    "name": "Asha",
    "email": "asha@example.com",
    "phone": "123",
    "category": "Video",
    "consultation_date": "2025-01-01",
    "consultation_time": "10:00",
    "message": "hi",
    "status": "pending",
    "payment_id": "pay_1",
    "payment_status": "paid",
}


class DriverError(Exception):
    def __init__(self, message, pgcode=None):
        super().__init__(message)
        self.pgcode = pgcode


def test_build_engine_requires_url():
    with pytest.raises(ConfigurationError) as exc_info:
        build_engine(None)
    assert exc_info.value.details == "Database connection not configured."


def test_resolve_url_merges_password():
    url = resolve_url("postgresql://app@db.example.com:5432/leads", "s3cret")
    assert url.password == "s3cret"
    assert url.username == "app"
    assert url.database == "leads"


def test_resolve_url_keeps_inline_credential():
    assert resolve_url("postgresql://app:inline@db/leads").password == "inline"


@pytest.mark.parametrize("code, hint", [
    ("42P01", MISSING_TABLE_HINT),
    ("42703", MISSING_COLUMN_HINT),
    ("28P01", AUTH_HINT),
    ("08006", CONNECT_HINT),
])
def test_classify_prefers_sqlstate(code, hint):
    exc = ProgrammingError("INSERT ...", {}, DriverError("opaque", pgcode=code))
    assert classify_storage_failure(exc) == hint


@pytest.mark.parametrize("message, hint", [
    ('relation "consultations" does not exist', MISSING_TABLE_HINT),
    ("no such table: consultations", MISSING_TABLE_HINT),
    ('column "payment_id" of relation "consultations" does not exist', MISSING_COLUMN_HINT),
    ("table consultations has no column named payment_id", MISSING_COLUMN_HINT),
    ('password authentication failed for user "app"', AUTH_HINT),
    ("could not connect to server: Connection refused", CONNECT_HINT),
    ("disk I/O error", None),
])
def test_classify_falls_back_to_message(message, hint):
    exc = OperationalError("INSERT ...", {}, DriverError(message))
    assert classify_storage_failure(exc) == hint


def test_insert_returns_row(tmp_path):
    engine = build_engine(f"sqlite:///{tmp_path / 'db.sqlite'}")
    assert create_tables(engine)
    store = ConsultationStore(create_session_factory(engine))

    row = store.insert(VALUES)

    assert row["id"] == 1
    assert row["payment_status"] == "paid"
    assert row["created_at"] is not None


def test_insert_failure_carries_operator_hint(tmp_path):
    engine = build_engine(f"sqlite:///{tmp_path / 'db.sqlite'}")
    store = ConsultationStore(create_session_factory(engine))

    with pytest.raises(StorageError) as exc_info:
        store.insert(VALUES)

    assert exc_info.value.operator_hint == MISSING_TABLE_HINT
    assert "hint" not in exc_info.value.to_dict()
