"""
Pytest fixtures for gateway tests.

Everything runs against an in-memory SQLite database and the stub provider.
"""

import os

os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("SECRET_KEY", "test-secret-key")
os.environ.setdefault("WHATSAPP_PROVIDER_MODE", "stub")
os.environ.setdefault("WEBHOOK_VERIFY_TOKEN", "test-verify-token")

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from whatsapp_gateway.core.db import Base, get_db
from whatsapp_gateway.core.security import create_access_token
from whatsapp_gateway.core.settings import Settings
from whatsapp_gateway.persistence.repo import WhatsAppRepository
from whatsapp_gateway.providers.factory import ProviderFactory
from whatsapp_gateway.providers.stub import StubWhatsAppProvider


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def db(engine):
    TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def repo(db):
    return WhatsAppRepository(db)


@pytest.fixture
def tenant(db, repo):
    """Active tenant without client secret."""
    tenant = repo.create_tenant(client_id="acme", name="Acme Ltda")
    db.commit()
    db.refresh(tenant)
    return tenant


@pytest.fixture
def other_tenant(db, repo):
    tenant = repo.create_tenant(client_id="globex", name="Globex")
    db.commit()
    db.refresh(tenant)
    return tenant


@pytest.fixture
def sample_phone():
    """Sample phone number as a caller would type it."""
    return "+55 11 99999-0000"


@pytest.fixture
def stub_provider():
    return StubWhatsAppProvider()


@pytest.fixture
def settings():
    return Settings(
        _env_file=None,
        DATABASE_URL="sqlite://",
        SECRET_KEY="test-secret-key",
        WHATSAPP_PROVIDER_MODE="stub",
        WEBHOOK_VERIFY_TOKEN="test-verify-token",
    )


@pytest.fixture
def providers(settings, stub_provider):
    return ProviderFactory(settings, stub=stub_provider)


@pytest.fixture
def app(db, settings, providers):
    from whatsapp_gateway.api.main import create_app

    app = create_app(settings=settings, providers=providers)

    def override_get_db():
        yield db

    app.dependency_overrides[get_db] = override_get_db
    yield app
    app.dependency_overrides.clear()


@pytest.fixture
def client(app):
    with TestClient(app) as client:
        yield client


@pytest.fixture
def make_auth_headers():
    """Build tenant + bearer headers for a tenant."""

    def _make(tenant, tenant_header: str | None = None) -> dict[str, str]:
        token = create_access_token({"sub": tenant.client_id, "tenant_id": str(tenant.id)})
        return {
            "X-Tenant-Id": tenant_header or str(tenant.id),
            "Authorization": f"Bearer {token}",
        }

    return _make


@pytest.fixture
def auth_headers(tenant, make_auth_headers):
    return make_auth_headers(tenant)
