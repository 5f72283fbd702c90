"""HMAC-SHA256 signatures over Razorpay checkout receipts.

Razorpay signs ``"<order_id>|<payment_id>"`` with the account's key secret and
hands the hex digest to the browser. We recompute it server-side and compare in
constant time.
"""

import hashlib
import hmac
import re

DIGEST_SIZE = hashlib.sha256().digest_size
_HEX_SIGNATURE = re.compile(r"[0-9a-fA-F]{%d}" % (DIGEST_SIZE * 2))


class MalformedSignatureError(ValueError):
    """The signature is not a hex string of the digest's length."""


def _digest(order_id: str, payment_id: str, secret: str) -> bytes:
    message = f"{order_id}|{payment_id}".encode("utf-8")
    return hmac.new(secret.encode("utf-8"), message, hashlib.sha256).digest()


def sign(order_id: str, payment_id: str, secret: str) -> str:
    return _digest(order_id, payment_id, secret).hex()


def decode_signature(signature) -> bytes:
    if not isinstance(signature, str) or not _HEX_SIGNATURE.fullmatch(signature):
        raise MalformedSignatureError("signature must be %d hex characters" % (DIGEST_SIZE * 2))
    return bytes.fromhex(signature)


def verify(order_id: str, payment_id: str, signature, secret: str) -> bool:
    if not secret:
        return False
    try:
        provided = decode_signature(signature)
    except MalformedSignatureError:
        return False
    # compare_digest does not short-circuit on the first differing byte.
    return hmac.compare_digest(_digest(order_id, payment_id, secret), provided)
