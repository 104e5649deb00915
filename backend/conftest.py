"""
Pytest configuration file for backend testing.
"""
import os
import sys
from pathlib import Path

# Add the backend directory to Python path so imports work correctly
backend_dir = Path(__file__).parent
if str(backend_dir) not in sys.path:
    sys.path.insert(0, str(backend_dir))

# Settings are cached on first use, so the environment has to be in place
# before anything imports core.config
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["SCHEDULER_ENABLED"] = "false"
os.environ["ENVIRONMENT"] = "test"
for var in (
    "SQUARE_ACCESS_TOKEN",
    "SQUARE_LOCATION_ID",
    "TWILIO_ACCOUNT_SID",
    "TWILIO_AUTH_TOKEN",
    "HUGGINGFACE_API_KEY",
    "MANAGER_PHONE",
):
    os.environ.pop(var, None)

import pytest
from fastapi.testclient import TestClient

from core.auth import create_user_token
from core.database import Base, SessionLocal, engine, get_db
from core.memory_cache import LRUCache

# Import all models to register them with SQLAlchemy
from modules.auth.models import User  # noqa: F401
from modules.menu.models import MenuItem  # noqa: F401
from modules.orders.models import Order, OrderItem  # noqa: F401
from modules.payments.models import Payment  # noqa: F401
from modules.inventory.models import InventoryItem  # noqa: F401
from modules.analytics.models import DailyReport  # noqa: F401
from modules.ai_recommendations.models import CustomerRecommendation  # noqa: F401

from app.main import app
from modules.ai_recommendations.services import (
    RecommendationService,
    get_recommendation_service,
)
from modules.auth.models.user_models import UserRole
from modules.kds.services.kds_websocket_manager import get_kds_manager
from modules.payments.services.payment_processor import (
    PaymentProcessor,
    get_payment_processor,
)
from modules.pos.adapters.square_adapter import get_pos_client
from modules.sms.services.twilio_service import get_sms_service
from tests.factories import UserFactory, bind_session
from tests.fakes import FakeGateway, FakePOSClient, FakeSMS, RecordingKDS


@pytest.fixture
def db_session():
    """Fresh in-memory schema per test"""
    Base.metadata.create_all(bind=engine)
    session = SessionLocal()
    bind_session(session)
    try:
        yield session
    finally:
        session.close()
        bind_session(None)
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def fake_sms():
    return FakeSMS()


@pytest.fixture
def fake_gateway():
    return FakeGateway()


@pytest.fixture
def fake_pos():
    return FakePOSClient()


@pytest.fixture
def kds_recorder():
    return RecordingKDS()


@pytest.fixture
def payment_processor(fake_gateway):
    return PaymentProcessor(fake_gateway, LRUCache(max_size=100, ttl_seconds=60))


@pytest.fixture
def client(db_session, fake_sms, fake_pos, kds_recorder, payment_processor):
    """API client with every external integration replaced by a recorder"""

    def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_sms_service] = lambda: fake_sms
    app.dependency_overrides[get_pos_client] = lambda: fake_pos
    app.dependency_overrides[get_kds_manager] = lambda: kds_recorder
    app.dependency_overrides[get_payment_processor] = lambda: payment_processor
    app.dependency_overrides[get_recommendation_service] = lambda: RecommendationService(api_key="")

    with TestClient(app) as test_client:
        yield test_client

    app.dependency_overrides.clear()


@pytest.fixture
def manager_user(db_session):
    return UserFactory(role=UserRole.MANAGER, email="manager@example.com")


@pytest.fixture
def staff_user(db_session):
    return UserFactory(role=UserRole.STAFF, email="staff@example.com")


@pytest.fixture
def manager_headers(manager_user):
    return {"Authorization": f"Bearer {create_user_token(manager_user)}"}


@pytest.fixture
def staff_headers(staff_user):
    return {"Authorization": f"Bearer {create_user_token(staff_user)}"}
