import os


def _set_test_env() -> None:
    defaults = {
        "APP_NAME": "Airtime Giveaway Test",
        "ENVIRONMENT": "test",
        "LOG_LEVEL": "WARNING",
        "DATABASE_URL": "sqlite://",
        "AUTO_CREATE_TABLES": "false",
        "ONE4ALL_BASE_URL": "https://tppgh.myone4all.com/api/TopUpApi",
        "ONE4ALL_API_KEY": "one4all_key",
        "ONE4ALL_API_SECRET": "one4all_secret",
        "ONE4ALL_RETAILER": "233200000000",
        "ONE4ALL_TIMEOUT_SECONDS": "5",
        "AIRTIME_AMOUNT": "10.00",
        "AIRTIME_CURRENCY": "NGN",
        "AIRTIME_TEST_MODE": "true",
        "CORS_ORIGINS": "http://localhost:3000",
        "ADMIN_API_KEY": "admin-test-key",
    }
    for key, value in defaults.items():
        os.environ.setdefault(key, value)


_set_test_env()

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402

from app.core.database import Base, SessionLocal, engine  # noqa: E402
from app.models import AirtimeTransaction, PhoneNumber  # noqa: E402,F401


@pytest.fixture
def db():
    Base.metadata.create_all(bind=engine)
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def client(db):
    from app.main import app

    with TestClient(app) as test_client:
        yield test_client
