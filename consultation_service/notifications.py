"""Best-effort email and WhatsApp notifications for accepted consultations.

Each channel raises ``NotificationError`` when it is not configured or the
provider rejects the message. ``Notifier.dispatch`` runs all four channels
concurrently and only logs the outcome.
"""

import asyncio
import json
import logging
import re
from datetime import datetime

import resend
from twilio.rest import Client as TwilioClient

from consultation_service.errors import NotificationError
from consultation_service.schemas import ConsultationRecord

logger = logging.getLogger(__name__)

DEFAULT_FROM_EMAIL = "Consultations <onboarding@resend.dev>"
MESSAGE_PREVIEW_LENGTH = 200


def format_whatsapp_number(phone: str) -> str:
    """Normalise a phone number to ``whatsapp:+<digits>``."""
    phone = phone.strip()
    digits = re.sub(r"\D", "", phone)
    return f"whatsapp:+{digits}" if digits else "whatsapp:"


def _display_date(value: str) -> str:
    try:
        return datetime.strptime(value, "%Y-%m-%d").strftime("%A, %B %d, %Y")
    except ValueError:
        return value


class EmailChannel:
    def __init__(self, api_key=None, from_address=None, team_address=None):
        self.api_key = api_key
        self.from_address = from_address or DEFAULT_FROM_EMAIL
        self.team_address = team_address

    @property
    def configured(self) -> bool:
        return bool(self.api_key)

    def send(self, to: str, subject: str, text: str) -> str:
        if not self.api_key:
            raise NotificationError("Email not configured", details="RESEND_API_KEY is not set")
        resend.api_key = self.api_key
        try:
            sent = resend.Emails.send({
                "from": self.from_address,
                "to": [to],
                "subject": subject,
                "text": text,
            })
        except Exception as exc:
            raise NotificationError(details=str(exc)) from exc
        return sent.get("id", "") if isinstance(sent, dict) else ""

    def send_team(self, record: ConsultationRecord) -> str:
        if not self.team_address:
            raise NotificationError("Email not configured", details="TEAM_EMAIL is not set")
        text = (
            f"New consultation request - {record.project_type}\n\n"
            f"Name: {record.name}\n"
            f"Email: {record.email}\n"
            f"Phone: {record.phone}\n"
            f"Date: {record.consultation_date}\n"
            f"Time: {record.consultation_time}\n"
            f"Payment: {record.payment_id} ({record.payment_status})\n\n"
            f"{record.message}\n"
        )
        return self.send(self.team_address, f"New Consultation Request - {record.project_type}", text)

    def send_client(self, record: ConsultationRecord) -> str:
        text = (
            f"Thank you, {record.name}!\n\n"
            "Your consultation request has been received.\n\n"
            f"Date: {_display_date(record.consultation_date)}\n"
            f"Time: {record.consultation_time}\n"
            f"Service: {record.project_type}\n\n"
            "Our team will reach out to confirm the details.\n"
        )
        return self.send(record.email, "Consultation Request Received", text)


class WhatsAppChannel:
    def __init__(self, account_sid=None, auth_token=None, from_number=None, team_number=None,
                 client_template_sid=None, client=None):
        self.account_sid = account_sid
        self.auth_token = auth_token
        self.from_number = from_number
        self.team_number = team_number
        self.client_template_sid = client_template_sid
        self._client = client

    @property
    def configured(self) -> bool:
        return bool(self.account_sid and self.auth_token and self.from_number)

    @property
    def client(self) -> TwilioClient:
        if not (self.account_sid and self.auth_token):
            raise NotificationError("WhatsApp not configured", details="Twilio credentials are not set")
        if self._client is None:
            self._client = TwilioClient(self.account_sid, self.auth_token)
        return self._client

    def _create(self, **params) -> str:
        if not self.from_number:
            raise NotificationError("WhatsApp not configured", details="TWILIO_WHATSAPP_NUMBER is not set")
        try:
            message = self.client.messages.create(from_=self.from_number, **params)
        except NotificationError:
            raise
        except Exception as exc:
            raise NotificationError(details=str(exc)) from exc
        return message.sid

    def send_team(self, record: ConsultationRecord) -> str:
        if not self.team_number:
            raise NotificationError("WhatsApp not configured", details="TEAM_WHATSAPP_NUMBER is not set")
        preview = record.message[:MESSAGE_PREVIEW_LENGTH]
        if len(record.message) > MESSAGE_PREVIEW_LENGTH:
            preview += "..."
        body = (
            "*New Consultation Request*\n\n"
            f"*Client:* {record.name}\n"
            f"*Category:* {record.project_type}\n"
            f"*Date:* {record.consultation_date}\n"
            f"*Time:* {record.consultation_time}\n\n"
            f"{record.email}\n{record.phone}\n\n"
            f"{preview}"
        )
        return self._create(to=self.team_number, body=body)

    def send_client(self, record: ConsultationRecord) -> str:
        to = format_whatsapp_number(record.phone)
        display_date = _display_date(record.consultation_date)
        if self.client_template_sid:
            # Approved WhatsApp Business template: {{1}} name, {{2}} date, {{3}} time.
            return self._create(
                to=to,
                content_sid=self.client_template_sid,
                content_variables=json.dumps({
                    "1": record.name,
                    "2": display_date,
                    "3": record.consultation_time,
                }),
            )
        body = (
            f"Hello {record.name},\n\n"
            "Your consultation request has been received.\n\n"
            f"*Scheduled:* {display_date}, {record.consultation_time}\n"
            f"*Service:* {record.project_type}\n\n"
            "Our team will contact you shortly."
        )
        return self._create(to=to, body=body)


class Notifier:
    """Fans a consultation out to the team and the client on both channels."""

    def __init__(self, email: EmailChannel, whatsapp: WhatsAppChannel):
        self.email = email
        self.whatsapp = whatsapp

    def channels(self):
        return [
            ("team_email", self.email.send_team),
            ("client_email", self.email.send_client),
            ("team_whatsapp", self.whatsapp.send_team),
            ("client_whatsapp", self.whatsapp.send_client),
        ]

    async def dispatch(self, record: ConsultationRecord) -> dict:
        channels = self.channels()
        results = await asyncio.gather(
            *(asyncio.to_thread(send, record) for _, send in channels),
            return_exceptions=True,
        )

        summary = {}
        for (name, _), result in zip(channels, results):
            if isinstance(result, BaseException):
                detail = getattr(result, "details", None) or result
                logger.warning("%s failed for consultation %s: %s", name, record.id, detail)
                summary[name] = False
            else:
                summary[name] = True
        logger.info("notification summary for consultation %s", record.id, extra={"notifications": summary})
        return summary
