"""Payment-gated consultation submission.

A booking moves through fixed checkpoints and stops at the first failure:

    received -> field-validated -> payment-gate-checked
             -> signature-verified -> persisted -> notified

Nothing is written before the signature has been recomputed here with the
server-held secret.
"""

import logging
import re

from consultation_service.errors import PaymentRequiredError, ValidationError, VerificationError
from consultation_service.notifications import Notifier
from consultation_service.payments import verify_payment
from consultation_service.schemas import BookingRequest, ConsultationRecord
from consultation_service.store import ConsultationStore

logger = logging.getLogger(__name__)

REQUIRED_FIELDS = {
    "name": "name",
    "email": "email",
    "phone": "phone",
    "project_type": "projectType",
    "consultation_date": "consultationDate",
    "consultation_time": "consultationTime",
    "message": "message",
}
RECEIPT_FIELDS = ("razorpay_order_id", "razorpay_payment_id", "razorpay_signature")

EMAIL_PATTERN = re.compile(r"[^\s@]+@[^\s@]+\.[^\s@]+")
DATE_PATTERN = re.compile(r"[0-9]{4}-[0-9]{2}-[0-9]{2}")


def _blank(value) -> bool:
    return value is None or not value.strip()


def validate_fields(request: BookingRequest) -> None:
    missing = [alias for field, alias in REQUIRED_FIELDS.items() if _blank(getattr(request, field))]
    if missing:
        raise ValidationError(
            "Missing required fields",
            details="All fields are required: " + ", ".join(REQUIRED_FIELDS.values()),
        )
    if not EMAIL_PATTERN.fullmatch(request.email.strip()):
        raise ValidationError("Invalid email format")
    if not DATE_PATTERN.fullmatch(request.consultation_date.strip()):
        raise ValidationError("Invalid date format. Expected YYYY-MM-DD")


def require_receipt(request: BookingRequest) -> None:
    if any(_blank(getattr(request, field)) for field in RECEIPT_FIELDS):
        raise PaymentRequiredError(
            details="A verified Razorpay payment is required before submitting a consultation.",
        )


def build_record_values(request: BookingRequest) -> dict:
    return {
        "name": request.name.strip(),
        "email": request.email.strip().lower(),
        "phone": request.phone.strip(),
        "category": request.project_type.strip(),
        "consultation_date": request.consultation_date.strip(),
        "consultation_time": request.consultation_time.strip(),
        "message": request.message.strip(),
        "status": "pending",
        "payment_id": request.razorpay_payment_id,
        "payment_status": "paid",
    }


class ConsultationService:
    def __init__(self, store: ConsultationStore, key_secret: str, notifier: Notifier):
        self.store = store
        self.key_secret = key_secret
        self.notifier = notifier

    def submit(self, request: BookingRequest) -> ConsultationRecord:
        logger.info("consultation submission received")
        validate_fields(request)

        try:
            require_receipt(request)
        except PaymentRequiredError:
            logger.warning("submission blocked: payment fields missing")
            raise

        result = verify_payment(
            request.razorpay_order_id,
            request.razorpay_payment_id,
            request.razorpay_signature,
            secret=self.key_secret,
        )
        if not result.verified:
            logger.warning("submission blocked for order %s: %s", request.razorpay_order_id, result.reason)
            raise VerificationError(details="The payment signature is invalid.")
        logger.info(
            "payment verified order=%s payment=%s",
            request.razorpay_order_id,
            request.razorpay_payment_id,
        )

        row = self.store.insert(build_record_values(request))
        record = ConsultationRecord.from_row(row)
        logger.info("consultation %s saved", record.id)
        return record

    async def notify(self, record: ConsultationRecord) -> dict:
        return await self.notifier.dispatch(record)
