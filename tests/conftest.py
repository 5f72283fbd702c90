import pytest
from fastapi.testclient import TestClient

from consultation_service.config import Settings
from consultation_service.gateway import RazorpayGateway
from consultation_service.main import build_services, create_app
from consultation_service.models import Consultation
from tests.factories import KEY_ID, KEY_SECRET, ORDER_ID


@pytest.fixture
def settings(tmp_path):
    return Settings(
        database_url=f"sqlite:///{tmp_path / 'consultations.db'}",
        razorpay_key_id=KEY_ID,
        razorpay_key_secret=KEY_SECRET,
    )


@pytest.fixture
def gateway_client(mocker):
    client = mocker.Mock()
    client.order.create.return_value = {
        "id": ORDER_ID,
        "amount": 29900,
        "currency": "INR",
        "created_at": 1735689600,
        "status": "created",
    }
    return client


@pytest.fixture
def services(settings, gateway_client):
    services = build_services(settings)
    services.gateway = RazorpayGateway(KEY_ID, KEY_SECRET, client=gateway_client)
    return services


@pytest.fixture
def client(services):
    with TestClient(create_app(services=services)) as c:
        yield c


@pytest.fixture
def saved_consultations(services):
    def _rows():
        with services.consultations.store.session_factory() as db:
            return db.query(Consultation).all()
    return _rows
