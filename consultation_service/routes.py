import logging

from fastapi import APIRouter, BackgroundTasks, Depends, Request
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import JSONResponse
from pydantic import ValidationError as SchemaError

from consultation_service.consultations import ConsultationService
from consultation_service.errors import ConfigurationError, ValidationError, VerificationError
from consultation_service.gateway import VERIFY_SETUP_HINT, RazorpayGateway
from consultation_service.payments import MALFORMED_SIGNATURE, MISSING_FIELDS, create_order, verify_payment
from consultation_service.schemas import BookingRequest, OrderRequest, PaymentReceipt

logger = logging.getLogger(__name__)

router = APIRouter()

CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Methods": "POST, OPTIONS",
    "Access-Control-Allow-Headers": "Content-Type, Authorization",
}


def get_gateway(request: Request) -> RazorpayGateway:
    services = request.app.state.services
    if services.gateway is None:
        raise services.gateway_error
    return services.gateway


def get_key_secret(request: Request) -> str:
    secret = request.app.state.services.settings.razorpay_key_secret
    if not secret:
        raise ConfigurationError("Payment verification not configured", hint=VERIFY_SETUP_HINT)
    return secret


def get_consultation_service(request: Request) -> ConsultationService:
    services = request.app.state.services
    if services.consultations is None:
        raise services.consultations_error
    return services.consultations


async def _read_json(request: Request) -> dict:
    try:
        body = await request.json()
    except ValueError as exc:
        raise ValidationError("Invalid request body", details="Expected a JSON object") from exc
    if not isinstance(body, dict):
        raise ValidationError("Invalid request body", details="Expected a JSON object")
    return body


def _parse(model, body: dict):
    try:
        return model.model_validate(body)
    except SchemaError as exc:
        raise ValidationError("Invalid request body", details="Fields must be strings") from exc


@router.post("/payment/create-order")
async def create_order_api(request: Request, gateway: RazorpayGateway = Depends(get_gateway)):
    # The body only labels the order, so a missing or malformed one is tolerated.
    try:
        order_request = _parse(OrderRequest, await _read_json(request))
    except ValidationError:
        order_request = OrderRequest()

    order = await run_in_threadpool(create_order, gateway, order_request.name, order_request.email)

    return JSONResponse(
        {
            "success": True,
            "orderId": order.order_id,
            "amount": order.amount,
            "currency": order.currency,
            "keyId": gateway.key_id,
        },
        status_code=201,
    )


@router.post("/payment/verify")
async def verify_payment_api(request: Request, secret: str = Depends(get_key_secret)):
    receipt = _parse(PaymentReceipt, await _read_json(request))

    result = verify_payment(
        receipt.razorpay_order_id,
        receipt.razorpay_payment_id,
        receipt.razorpay_signature,
        secret=secret,
    )
    if result.reason == MISSING_FIELDS:
        raise ValidationError(
            "Missing payment verification fields",
            details="razorpay_order_id, razorpay_payment_id, and razorpay_signature are all required",
        )
    if result.reason == MALFORMED_SIGNATURE:
        raise VerificationError("Invalid payment signature format")
    if not result.verified:
        logger.warning("signature mismatch for order %s", receipt.razorpay_order_id)
        raise VerificationError(details="Signature mismatch - payment could not be authenticated")

    logger.info("payment verified order=%s payment=%s", receipt.razorpay_order_id, receipt.razorpay_payment_id)
    return {
        "success": True,
        "verified": True,
        "paymentId": receipt.razorpay_payment_id,
        "orderId": receipt.razorpay_order_id,
    }


@router.post("/consultation")
async def create_consultation_api(
    request: Request,
    background_tasks: BackgroundTasks,
    service: ConsultationService = Depends(get_consultation_service),
):
    booking = _parse(BookingRequest, await _read_json(request))
    record = await run_in_threadpool(service.submit, booking)

    # Runs after the response has been sent.
    background_tasks.add_task(service.notify, record)

    return JSONResponse(
        {
            "success": True,
            "message": "Consultation request submitted successfully",
            "data": record.to_response(),
        },
        status_code=201,
    )


@router.options("/payment/create-order")
@router.options("/payment/verify")
@router.options("/consultation")
def preflight():
    return JSONResponse({}, headers=CORS_HEADERS)


@router.get("/health")
def health(request: Request):
    return {"ok": True, "components": request.app.state.services.components()}
