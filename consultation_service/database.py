import logging
from typing import Optional

from sqlalchemy import create_engine
from sqlalchemy.engine import URL, make_url
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import sessionmaker, declarative_base

from consultation_service.errors import ConfigurationError

logger = logging.getLogger(__name__)

Base = declarative_base()

STORE_SETUP_HINT = "Add DATABASE_URL (and DATABASE_PASSWORD if the URL has no credential) to your .env file"
DRIVER_HINT = "Use postgresql+psycopg:// in DATABASE_URL, or install the driver its scheme names."

MISSING_TABLE_HINT = "Database table not found. Create the consultations table or start with AUTO_CREATE_TABLES=true."
MISSING_COLUMN_HINT = "The consultations table is missing columns. Apply the payment columns migration."
AUTH_HINT = "Authentication error. Check DATABASE_PASSWORD and the credential in DATABASE_URL."
CONNECT_HINT = "Cannot connect to database. Check the host and port in DATABASE_URL."


def resolve_url(database_url: str, password: Optional[str] = None) -> URL:
    url = make_url(database_url)
    if password:
        url = url.set(password=password)
    return url


def build_engine(database_url: Optional[str], password: Optional[str] = None):
    """Create the process-wide engine, or raise ConfigurationError."""
    if not database_url:
        raise ConfigurationError(
            details="Database connection not configured.",
            hint=STORE_SETUP_HINT,
        )

    url = resolve_url(database_url, password)
    return create_engine(
        url,
        pool_pre_ping=True,
        connect_args={"check_same_thread": False} if url.drivername.startswith("sqlite") else {},
    )


def create_session_factory(engine):
    return sessionmaker(bind=engine, autocommit=False, autoflush=False, expire_on_commit=False)


# SQLSTATE codes exposed by psycopg2 (pgcode) and psycopg 3 (sqlstate).
_SQLSTATE_HINTS = {
    "42P01": MISSING_TABLE_HINT,
    "42703": MISSING_COLUMN_HINT,
    "28P01": AUTH_HINT,
    "28000": AUTH_HINT,
}


def _sqlstate(exc: BaseException) -> Optional[str]:
    orig = getattr(exc, "orig", None)
    return getattr(orig, "pgcode", None) or getattr(orig, "sqlstate", None)


def classify_storage_failure(exc: BaseException) -> Optional[str]:
    """Best-effort operator hint for a failed database call.

    Only used for log output; callers never branch on the result.
    """
    code = _sqlstate(exc)
    if code:
        if code in _SQLSTATE_HINTS:
            return _SQLSTATE_HINTS[code]
        if code.startswith("08"):
            return CONNECT_HINT

    text = str(exc).lower()
    # Postgres names the relation in missing-column errors too.
    if ("column" in text and "does not exist" in text) or "no such column" in text or "has no column" in text:
        return MISSING_COLUMN_HINT
    if ("relation" in text and "does not exist" in text) or "no such table" in text:
        return MISSING_TABLE_HINT
    if "password authentication failed" in text or "access denied" in text or "jwt" in text:
        return AUTH_HINT
    if "connect" in text or "unable to open database" in text:
        return CONNECT_HINT
    return None


def create_tables(engine) -> bool:
    try:
        Base.metadata.create_all(bind=engine)
    except SQLAlchemyError as exc:
        logger.error("could not create tables: %s", exc, extra={"operator_hint": classify_storage_failure(exc)})
        return False
    return True
