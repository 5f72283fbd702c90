import logging
from dataclasses import dataclass
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from sqlalchemy.exc import ArgumentError

from consultation_service.config import Settings, load_settings
from consultation_service.consultations import ConsultationService
from consultation_service.database import (
    DRIVER_HINT,
    STORE_SETUP_HINT,
    build_engine,
    create_session_factory,
    create_tables,
)
from consultation_service.errors import ConfigurationError, ServiceError
from consultation_service.gateway import VERIFY_SETUP_HINT, RazorpayGateway
from consultation_service.logging_config import configure_logging
from consultation_service.notifications import EmailChannel, Notifier, WhatsAppChannel
from consultation_service.routes import router
from consultation_service.store import ConsultationStore

logger = logging.getLogger(__name__)


@dataclass
class Services:
    """Collaborators built once at startup and shared by every request.

    A component whose configuration is missing is left as ``None`` next to the
    ``ConfigurationError`` its endpoints should answer with.
    """

    settings: Settings
    notifier: Notifier
    gateway: Optional[RazorpayGateway] = None
    gateway_error: Optional[ConfigurationError] = None
    consultations: Optional[ConsultationService] = None
    consultations_error: Optional[ConfigurationError] = None

    def components(self) -> dict:
        return {
            "gateway": self.gateway is not None,
            "store": self.consultations is not None,
            "verification": bool(self.settings.razorpay_key_secret),
            "email": self.notifier.email.configured,
            "whatsapp": self.notifier.whatsapp.configured,
        }


def build_notifier(settings: Settings) -> Notifier:
    return Notifier(
        EmailChannel(
            api_key=settings.resend_api_key,
            from_address=settings.resend_from_email,
            team_address=settings.team_email,
        ),
        WhatsAppChannel(
            account_sid=settings.twilio_account_sid,
            auth_token=settings.twilio_auth_token,
            from_number=settings.twilio_whatsapp_number,
            team_number=settings.team_whatsapp_number,
            client_template_sid=settings.twilio_client_template_sid,
        ),
    )


def _build_consultations(settings: Settings, notifier: Notifier) -> ConsultationService:
    try:
        engine = build_engine(settings.database_url, settings.database_password)
    except ArgumentError as exc:
        raise ConfigurationError(details="DATABASE_URL is not a valid database URL.", hint=STORE_SETUP_HINT) from exc
    except ImportError as exc:
        raise ConfigurationError(
            details=f"Database driver not installed: {exc.name or exc}",
            hint=DRIVER_HINT,
        ) from exc

    if not settings.razorpay_key_secret:
        raise ConfigurationError(
            "Payment verification not configured",
            details="Paid submissions are blocked until the key secret is set.",
            hint=VERIFY_SETUP_HINT,
        )

    if settings.auto_create_tables:
        create_tables(engine)
    store = ConsultationStore(create_session_factory(engine))
    return ConsultationService(store, settings.razorpay_key_secret, notifier)


def build_services(settings: Settings) -> Services:
    services = Services(settings=settings, notifier=build_notifier(settings))

    try:
        services.gateway = RazorpayGateway(settings.razorpay_key_id, settings.razorpay_key_secret)
    except ConfigurationError as exc:
        services.gateway_error = exc

    try:
        services.consultations = _build_consultations(settings, services.notifier)
    except ConfigurationError as exc:
        services.consultations_error = exc

    for component, names in settings.missing().items():
        logger.error("%s is not configured, missing %s", component, ", ".join(names))
    if not (services.notifier.email.configured or services.notifier.whatsapp.configured):
        logger.warning("email and WhatsApp notifications are not configured")
    return services


def create_app(settings: Optional[Settings] = None, services: Optional[Services] = None) -> FastAPI:
    if services is None:
        services = build_services(settings or load_settings())

    app = FastAPI(title="Consultation Payment Service")
    app.state.services = services
    app.include_router(router)

    @app.exception_handler(ServiceError)
    async def service_error_handler(request: Request, exc: ServiceError):
        return JSONResponse(exc.to_dict(), status_code=exc.status_code)

    @app.exception_handler(Exception)
    async def unhandled_error_handler(request: Request, exc: Exception):
        logger.exception("unhandled error on %s %s", request.method, request.url.path)
        return JSONResponse({"success": False, "error": "Internal server error"}, status_code=500)

    return app


settings = load_settings()
configure_logging(settings.service_name, settings.log_level)
app = create_app(settings)
