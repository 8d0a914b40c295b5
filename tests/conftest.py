import pytest
from fastapi.testclient import TestClient

from upi_tracker.auth import AuthService, hash_password
from upi_tracker.database import build_engine
from upi_tracker.main import create_app
from upi_tracker.models import QRCode, Transaction, User
from upi_tracker.qr_service import QRCodeService
from upi_tracker.repository import InMemoryRepository, SQLRepository


@pytest.fixture(params=["memory", "sql"])
def repository(request):
    """Each contract test runs against both backends."""
    if request.param == "memory":
        yield InMemoryRepository()
        return

    repo = SQLRepository(build_engine("sqlite://"))
    repo.init_db()
    yield repo
    repo.engine.dispose()


@pytest.fixture
def qr_service():
    return QRCodeService()


@pytest.fixture
def auth_service(repository):
    return AuthService(repository, secret_key="test-secret")


@pytest.fixture
def client(repository):
    """API client wired to the parametrised repository."""
    return TestClient(create_app(repository))


# =============================================================================
# Domain objects
# =============================================================================

@pytest.fixture
def user(repository):
    """A registered user with zeroed stats."""
    return repository.create_user(
        User(username="demo", password=hash_password("pw"), upi_id="demo@bank")
    )


@pytest.fixture
def other_user(repository):
    return repository.create_user(User(username="other", password=hash_password("pw")))


@pytest.fixture
def make_qr_code(repository):
    """Factory creating QR codes through the repository."""
    def _make(owner, name="Shop", upi_id="demo@bank", **fields):
        return repository.create_qr_code(
            QRCode(user_id=owner.id, upi_id=upi_id, name=name, qr_data="data:image/png;base64,", **fields)
        )
    return _make


@pytest.fixture
def make_transaction(repository):
    """Factory recording a payment against a QR code."""
    def _make(qr_code, amount, payer_upi_id=None, payer_name=None, **fields):
        return repository.create_transaction(
            Transaction(
                qr_code_id=qr_code.id,
                amount=amount,
                payer_upi_id=payer_upi_id,
                payer_name=payer_name,
                **fields,
            )
        )
    return _make


@pytest.fixture
def qr_code(user, make_qr_code):
    return make_qr_code(user)


@pytest.fixture
def registered_client(client):
    """API client with a user registered as alice/secret."""
    response = client.post(
        "/api/register",
        json={"username": "alice", "password": "secret", "upiId": "alice@upi", "fullName": "Alice"},
    )
    assert response.status_code == 201
    return client


@pytest.fixture
def auth_headers(registered_client):
    response = registered_client.post("/api/login", json={"username": "alice", "password": "secret"})
    return {"Authorization": f"Bearer {response.json()['token']}"}
