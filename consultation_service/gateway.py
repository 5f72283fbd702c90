import razorpay

from consultation_service.errors import ConfigurationError

GATEWAY_SETUP_HINT = "Add RAZORPAY_KEY_ID and RAZORPAY_KEY_SECRET to your .env file"
VERIFY_SETUP_HINT = "Add RAZORPAY_KEY_SECRET to your .env file"


class RazorpayGateway:
    """Owns the Razorpay client for the lifetime of the process."""

    def __init__(self, key_id, key_secret, client=None):
        if not key_id or not key_secret:
            raise ConfigurationError("Payment gateway not configured", hint=GATEWAY_SETUP_HINT)
        self.key_id = key_id
        self.client = client or razorpay.Client(auth=(key_id, key_secret))

    def create_order(self, amount: int, currency: str, receipt: str, notes: dict) -> dict:
        return self.client.order.create({
            "amount": amount,
            "currency": currency,
            "receipt": receipt,
            "notes": notes,
        })
