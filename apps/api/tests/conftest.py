from __future__ import annotations

import os
from dataclasses import dataclass, field

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

# Settings are read at import time, so configure them before the app loads
os.environ.setdefault("ENV", "test")
os.environ.setdefault("DATABASE_URL", "sqlite:///./doorlist-test.db")
os.environ.setdefault("RATE_LIMIT_ENABLED", "false")
os.environ.setdefault("EMAIL_BACKEND", "console")
os.environ.setdefault("SMS_BACKEND", "console")
os.environ.setdefault("INVITATION_PACING_SECONDS", "0")
os.environ.setdefault("FRONTEND_BASE_URL", "https://doorlist.test")
os.environ.setdefault("EVENT_TIMEZONE", "UTC")

from doorlist.db import get_db  # noqa: E402
from doorlist.main import app  # noqa: E402
from doorlist.models import Base  # noqa: E402
from doorlist.notifications.base import EmailSender, SendResult, SmsSender  # noqa: E402
from doorlist.notifications.factory import get_email_sender, get_sms_sender  # noqa: E402
from doorlist.services.policy import CredentialPolicy, LifecyclePolicy  # noqa: E402


@dataclass
class FakeEmailSender(EmailSender):
    sent: list[tuple[str, str, str]] = field(default_factory=list)
    fail_for: set[str] = field(default_factory=set)

    def send(self, to: str, subject: str, html_body: str) -> SendResult:
        if to in self.fail_for:
            return SendResult(success=False, error="mailbox unavailable")
        self.sent.append((to, subject, html_body))
        return SendResult(success=True)


@dataclass
class FakeSmsSender(SmsSender):
    sent: list[tuple[str, dict]] = field(default_factory=list)
    fail_for: set[str] = field(default_factory=set)

    def send(self, phone: str, template_vars: dict[str, str]) -> SendResult:
        if phone in self.fail_for:
            return SendResult(success=False, error="unreachable handset")
        self.sent.append((phone, template_vars))
        return SendResult(success=True)


@pytest.fixture
def db_engine(tmp_path):
    """A fresh SQLite file per test so threads can share it."""
    engine = create_engine(
        f"sqlite:///{tmp_path / 'doorlist.db'}",
        connect_args={"check_same_thread": False, "timeout": 30},
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def session_factory(db_engine):
    return sessionmaker(bind=db_engine, autoflush=False, expire_on_commit=False)


@pytest.fixture
def db_session(session_factory):
    db = session_factory()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture
def email_sender() -> FakeEmailSender:
    return FakeEmailSender()


@pytest.fixture
def sms_sender() -> FakeSmsSender:
    return FakeSmsSender()


@pytest.fixture
def client(session_factory, email_sender, sms_sender):
    def _override_get_db():
        db = session_factory()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = _override_get_db
    app.dependency_overrides[get_email_sender] = lambda: email_sender
    app.dependency_overrides[get_sms_sender] = lambda: sms_sender
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


@pytest.fixture
def lifecycle() -> LifecyclePolicy:
    return LifecyclePolicy()


@pytest.fixture
def credentials() -> CredentialPolicy:
    return CredentialPolicy()

