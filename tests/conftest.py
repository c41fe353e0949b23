# tests/conftest.py

"""
Pytest configuration and shared fixtures for testing.
"""

import os

# Keep the app's global engine in memory and the scheduler off
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("ENABLE_SCHEDULER", "false")

from datetime import datetime
from typing import Generator

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.pool import StaticPool
from sqlmodel import SQLModel, Session

import models  # noqa: F401  (registers every table)
from core.errors import TransportError
from database import build_engine, get_session
from dependencies.auth import CurrentUser, get_current_user
from main import create_app
from models.enums import COIStatus, Role, VendorAuthStatus
from models import (
    COI,
    Building,
    Guard,
    GuardBuildingAssignment,
    Organization,
    Tenant,
    User,
    UserBuildingAccess,
    Vendor,
    VendorBuildingAuthorization,
)


# ============================================================
# Database
# ============================================================
@pytest.fixture
def engine():
    """In-memory SQLite shared by every connection of one test."""
    engine = build_engine("sqlite://", poolclass=StaticPool)
    SQLModel.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session(engine) -> Generator[Session, None, None]:
    with Session(engine) as session:
        yield session


# ============================================================
# Factories
# ============================================================
class Factory:
    """Small builders that commit, so routes and services see the rows."""

    def __init__(self, session: Session):
        self.session = session
        self._seq = 0

    def _save(self, obj):
        self.session.add(obj)
        self.session.commit()
        self.session.refresh(obj)
        return obj

    def _next(self) -> int:
        self._seq += 1
        return self._seq

    def organization(self, name: str = "Acme Properties") -> Organization:
        return self._save(Organization(name=name))

    def user(self, role: Role, organization: Organization = None, **kwargs) -> User:
        n = self._next()
        kwargs.setdefault("email", f"user{n}@example.com")
        return self._save(User(
            role=role,
            organization_id=organization.id if organization else None,
            **kwargs,
        ))

    def building(self, organization: Organization, name: str = None, **kwargs) -> Building:
        return self._save(Building(
            name=name or f"Building {self._next()}",
            organization_id=organization.id,
            **kwargs,
        ))

    def grant(self, user: User, building: Building) -> UserBuildingAccess:
        return self._save(UserBuildingAccess(user_id=user.id, building_id=building.id))

    def vendor(self, user: User = None, company_name: str = None, **kwargs) -> Vendor:
        n = self._next()
        kwargs.setdefault("contact_email", f"vendor{n}@example.com")
        kwargs.setdefault("contact_phone", f"+1555000{n:04d}")
        return self._save(Vendor(
            user_id=user.id if user else None,
            company_name=company_name or f"Vendor {n}",
            **kwargs,
        ))

    def authorize(
        self,
        vendor: Vendor,
        building: Building,
        status: VendorAuthStatus = VendorAuthStatus.APPROVED,
    ) -> VendorBuildingAuthorization:
        return self._save(VendorBuildingAuthorization(
            vendor_id=vendor.id, building_id=building.id, status=status
        ))

    def tenant(self, building: Building, user: User = None, **kwargs) -> Tenant:
        n = self._next()
        kwargs.setdefault("business_name", f"Tenant {n}")
        kwargs.setdefault("contact_email", f"tenant{n}@example.com")
        kwargs.setdefault("contact_phone", f"+1555100{n:04d}")
        return self._save(Tenant(
            building_id=building.id,
            user_id=user.id if user else None,
            **kwargs,
        ))

    def guard(self, user: User) -> Guard:
        return self._save(Guard(user_id=user.id, organization_id=user.organization_id))

    def assign(self, guard: Guard, building: Building) -> GuardBuildingAssignment:
        return self._save(GuardBuildingAssignment(guard_id=guard.id, building_id=building.id))

    def coi(
        self,
        building: Building,
        vendor: Vendor = None,
        tenant: Tenant = None,
        status: COIStatus = COIStatus.APPROVED,
        effective_date: datetime = datetime(2024, 1, 1),
        expiration_date: datetime = datetime(2024, 12, 31),
        **kwargs,
    ) -> COI:
        return self._save(COI(
            building_id=building.id,
            vendor_id=vendor.id if vendor else None,
            tenant_id=tenant.id if tenant else None,
            status=status,
            effective_date=effective_date,
            expiration_date=expiration_date,
            **kwargs,
        ))


@pytest.fixture
def factory(session) -> Factory:
    return Factory(session)


# ============================================================
# Transport
# ============================================================
class FakeSender:
    """Records every send; channels listed in `failing` raise TransportError."""

    def __init__(self, failing=()):
        self.failing = set(failing)
        self.calls = []

    def send(self, channel, recipient, subject, content):
        self.calls.append((channel, recipient, subject, content))
        if channel in self.failing:
            raise TransportError(channel, recipient, "gateway down")
        return True

    def channels(self):
        return [call[0] for call in self.calls]


@pytest.fixture
def sender() -> FakeSender:
    return FakeSender()


# ============================================================
# API
# ============================================================
@pytest.fixture(scope="function")
def app(session):
    """Test application bound to the test session."""
    app = create_app()
    app.dependency_overrides[get_session] = lambda: session
    return app


@pytest.fixture(scope="function")
def client(app) -> Generator[TestClient, None, None]:
    """Create a test client for the FastAPI application."""
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def login(app):
    """Authenticate every following request as `user`."""

    def _login(user: User) -> CurrentUser:
        current = CurrentUser.from_user(user)
        app.dependency_overrides[get_current_user] = lambda: current
        return current

    return _login


@pytest.fixture
def make_sender():
    """Build extra senders, e.g. one with failing channels."""
    return FakeSender
