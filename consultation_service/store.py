import logging

from sqlalchemy.exc import SQLAlchemyError

from consultation_service.database import classify_storage_failure
from consultation_service.errors import StorageError
from consultation_service.models import Consultation

logger = logging.getLogger(__name__)


class ConsultationStore:
    """Insert-only access to the consultations table."""

    def __init__(self, session_factory):
        self.session_factory = session_factory

    def insert(self, values: dict) -> dict:
        try:
            with self.session_factory() as db:
                row = Consultation(**values)
                db.add(row)
                db.commit()
                db.refresh(row)
                return row.to_dict()
        except SQLAlchemyError as exc:
            hint = classify_storage_failure(exc)
            logger.error("database insert failed: %s", exc, extra={"operator_hint": hint})
            raise StorageError(details="Please try again later.", operator_hint=hint) from exc
