"""Order creation and the payment verification gate."""

import logging
import time
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Optional

from consultation_service import signature
from consultation_service.errors import UpstreamGatewayError
from consultation_service.gateway import RazorpayGateway

logger = logging.getLogger(__name__)

CONSULTATION_FEE_PAISE = 29900  # INR 299
CURRENCY = "INR"
RECEIPT_MAX_LENGTH = 40
ORDER_PURPOSE = "Consultation Fee"

MISSING_FIELDS = "missing_fields"
MALFORMED_SIGNATURE = "malformed_signature"
SIGNATURE_MISMATCH = "signature_mismatch"


@dataclass(frozen=True)
class Order:
    order_id: str
    amount: int
    currency: str
    created_at: datetime


@dataclass(frozen=True)
class VerificationResult:
    verified: bool
    reason: Optional[str] = None


def _label(value) -> str:
    text = str(value).strip() if value is not None else ""
    return text or "unknown"


def _receipt_id() -> str:
    return f"rcpt_{int(time.time() * 1000)}"[:RECEIPT_MAX_LENGTH]


def create_order(gateway: RazorpayGateway, customer_name=None, customer_email=None) -> Order:
    """Mint a gateway order for the fixed consultation fee.

    The name and email only label the order on the Razorpay dashboard; the
    amount and currency are server-side constants.
    """
    name = _label(customer_name)
    email = _label(customer_email)
    logger.info("creating razorpay order for %s <%s>", name, email)

    try:
        payload = gateway.create_order(
            amount=CONSULTATION_FEE_PAISE,
            currency=CURRENCY,
            receipt=_receipt_id(),
            notes={
                "customer_name": name,
                "customer_email": email,
                "purpose": ORDER_PURPOSE,
            },
        )
        order_id = payload["id"]
    except Exception as exc:
        logger.exception("razorpay order creation failed")
        raise UpstreamGatewayError() from exc

    created_at = payload.get("created_at")
    order = Order(
        order_id=order_id,
        amount=payload.get("amount", CONSULTATION_FEE_PAISE),
        currency=payload.get("currency", CURRENCY),
        created_at=(
            datetime.fromtimestamp(created_at, tz=timezone.utc)
            if isinstance(created_at, (int, float))
            else datetime.now(timezone.utc)
        ),
    )
    logger.info("razorpay order created order_id=%s", order.order_id)
    return order


def _present(value) -> bool:
    return isinstance(value, str) and bool(value.strip())


def verify_payment(order_id, payment_id, signature_hex, *, secret: str) -> VerificationResult:
    """Check a checkout receipt against the key secret. Never touches storage."""
    if not (_present(order_id) and _present(payment_id) and _present(signature_hex)):
        return VerificationResult(False, MISSING_FIELDS)

    try:
        signature.decode_signature(signature_hex)
    except signature.MalformedSignatureError:
        return VerificationResult(False, MALFORMED_SIGNATURE)

    if not signature.verify(order_id, payment_id, signature_hex, secret):
        return VerificationResult(False, SIGNATURE_MISMATCH)
    return VerificationResult(True)
