import os

# Settings are read at import time and main.py refuses to start without these.
os.environ.setdefault("STORE_URL", "sqlite+pysqlite:///:memory:")
os.environ.setdefault("STORE_KEY", "test_store_key")
os.environ.setdefault("PAYSTACK_SECRET_KEY", "sk_test_paystack_secret")
os.environ.setdefault("AUTH_JWT_SECRET", "test_jwt_secret")

import importlib
import json
from contextlib import contextmanager

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from edulink.auth.identity import Identity
from edulink.core.base import Base
from edulink.core import config as app_config
from edulink.core.security import compute_hmac_sha512

# Import models so they register with SQLAlchemy metadata.
from edulink.models.profile import Profile, ProfileRole
from edulink.models.course import Course, CourseStatus
from edulink.models.enrollment import Enrollment  # noqa: F401
from edulink.models.payment import Payment  # noqa: F401
from edulink.models.earning import InstructorEarning  # noqa: F401
from edulink.models.activity import Activity  # noqa: F401
from edulink.models.paystack_event import PaystackEvent  # noqa: F401

from edulink.core.database import get_db
from edulink.dependencies.auth import get_current_identity


@pytest.fixture(scope="session")
def db_engine():
    # In-memory SQLite for fast, isolated tests.
    engine = create_engine(
        "sqlite+pysqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    return engine


@pytest.fixture()
def db_session(db_engine):
    # The in-memory DB persists across tests with StaticPool; reset schema per test.
    Base.metadata.drop_all(bind=db_engine)
    Base.metadata.create_all(bind=db_engine)

    TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=db_engine)
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture(autouse=True)
def _reset_mutable_settings():
    """
    Tests tweak the process-global settings object; restore it after each test.
    """
    keys = [
        "PAYSTACK_SECRET_KEY",
        "PAYSTACK_API_BASE_URL",
        "PLATFORM_FEE_PERCENT",
        "ENABLE_RATE_LIMITING",
        "AUTH_JWT_SECRET",
        "AUTH_JWT_AUDIENCE",
    ]
    original = {k: getattr(app_config.settings, k) for k in keys}
    try:
        yield
    finally:
        for k, v in original.items():
            setattr(app_config.settings, k, v)
        app_config.settings.ENABLE_RATE_LIMITING = False


@pytest.fixture()
def app(db_session):
    app_config.settings.ENABLE_RATE_LIMITING = False

    # SlowAPI decorators bind at import time, so reload the payment routes + app
    # in case the rate limiting test left them bound to an enabled limiter.
    import edulink.routes.payments as payments_routes
    import edulink.main as main

    importlib.reload(payments_routes)
    importlib.reload(main)
    fastapi_app = main.app

    def override_get_db():
        yield db_session

    fastapi_app.dependency_overrides[get_db] = override_get_db
    yield fastapi_app
    fastapi_app.dependency_overrides.clear()


def _make_profile(db_session, profile_id: str, role: str, name: str, email: str, **extra) -> Profile:
    profile = Profile(id=profile_id, role=role, name=name, email=email, **extra)
    db_session.add(profile)
    db_session.commit()
    db_session.refresh(profile)
    return profile


@pytest.fixture()
def educator(db_session):
    return _make_profile(
        db_session,
        "11111111-1111-1111-1111-111111111111",
        ProfileRole.EDUCATOR.value,
        "Ada Instructor",
        "ada@example.com",
        subject="Mathematics",
    )


@pytest.fixture()
def student(db_session):
    return _make_profile(
        db_session,
        "22222222-2222-2222-2222-222222222222",
        ProfileRole.STUDENT.value,
        "Sam Student",
        "sam@example.com",
    )


@pytest.fixture()
def other_student(db_session):
    return _make_profile(
        db_session,
        "33333333-3333-3333-3333-333333333333",
        ProfileRole.STUDENT.value,
        "Olu Other",
        "olu@example.com",
    )


@pytest.fixture()
def course(db_session, educator):
    course = Course(
        id="c0000000-0000-0000-0000-000000000001",
        instructor_id=educator.id,
        title="Algebra Basics",
        description="Linear equations and more",
        category="Mathematics",
        level="beginner",
        price_minor=10000,
        currency="NGN",
        status=CourseStatus.ACTIVE.value,
    )
    db_session.add(course)
    db_session.commit()
    db_session.refresh(course)
    return course


def identity_for(profile: Profile) -> Identity:
    return Identity(user_id=profile.id, email=profile.email, name=profile.name)


@pytest.fixture()
def client(app):
    """
    Unauthenticated client. Webhooks and public catalog routes need no token.
    """
    with TestClient(app) as c:
        yield c


@pytest.fixture()
def client_for(app):
    """
    Context manager to create a client authenticated as a profile or a bare identity.

    Usage:
        with client_for(student) as c:
            ...
    """

    @contextmanager
    def _client_for(who):
        identity = who if isinstance(who, Identity) else identity_for(who)
        app.dependency_overrides[get_current_identity] = lambda: identity
        with TestClient(app) as c:
            yield c
        app.dependency_overrides.pop(get_current_identity, None)

    return _client_for


@pytest.fixture()
def charge_event():
    """Build a Paystack charge.success event body."""

    def _charge_event(
        *,
        reference: str = "ref_test_001",
        amount: int = 10000,
        course_id: str | None = None,
        student_id: str | None = None,
        event: str = "charge.success",
        metadata: dict | str | None = None,
    ) -> dict:
        if metadata is None:
            metadata = {}
            if course_id is not None:
                metadata["courseId"] = course_id
            if student_id is not None:
                metadata["studentId"] = student_id
        return {
            "event": event,
            "data": {
                "reference": reference,
                "amount": amount,
                "currency": "NGN",
                "channel": "card",
                "status": "success",
                "metadata": metadata,
            },
        }

    return _charge_event


@pytest.fixture()
def send_webhook(client):
    """POST a body to the webhook signed with the configured secret (or an explicit signature)."""

    def _send(body, *, signature: str | None = None, sign: bool = True):
        raw = body if isinstance(body, bytes) else json.dumps(body).encode("utf-8")
        headers = {"Content-Type": "application/json"}
        if signature is not None:
            headers["x-paystack-signature"] = signature
        elif sign:
            headers["x-paystack-signature"] = compute_hmac_sha512(app_config.settings.PAYSTACK_SECRET_KEY, raw)
        return client.post("/webhooks/paystack", content=raw, headers=headers)

    return _send
