import os

# Must be set before app.core.config is imported anywhere
os.environ["DATABASE_URL"] = "sqlite://"
os.environ.pop("APP_ENV", None)

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from app.core.config import Settings
from app.core.database import Base, get_db
from app.integrations.mail_client import MailException
from app.models import Report, User
from app.models.report import STATUS_RESOLVED


class RecordingMailClient:
    """Stands in for MailClient; keeps sent mail in memory"""

    def __init__(self, fail: bool = False):
        self.fail = fail
        self.sent = []

    def send(self, to_address, subject, body):
        if self.fail:
            raise MailException("SMTP unavailable")
        self.sent.append({"to": to_address, "subject": subject, "body": body})


@pytest.fixture
def test_settings():
    return Settings(
        DATABASE_URL="sqlite://",
        SITE_URL="https://hive.example.org",
        SITE_NAME="CyberCrime Hive",
        MAIL_ENABLED=False,
    )


@pytest.fixture
def db():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    session = sessionmaker(autocommit=False, autoflush=False, bind=engine)()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)
        engine.dispose()


@pytest.fixture
def client(db):
    from main import app

    def override_get_db():
        yield db

    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture
def mail_client():
    return RecordingMailClient()


@pytest.fixture
def failing_mail_client():
    return RecordingMailClient(fail=True)


@pytest.fixture
def make_user(db):
    counter = {"n": 0}

    def _make_user(role="user", email=None):
        counter["n"] += 1
        user = User(
            email=email or f"citizen{counter['n']}@example.org",
            full_name=f"Citizen {counter['n']}",
            role=role,
        )
        db.add(user)
        db.commit()
        db.refresh(user)
        return user

    return _make_user


@pytest.fixture
def make_report(db):
    counter = {"n": 0}

    def _make_report(owner, status=STATUS_RESOLVED, title="Phishing email impersonating my bank"):
        counter["n"] += 1
        report = Report(
            user_id=owner.id,
            tracking_code=f"CCH-TEST{counter['n']:04d}",
            title=title,
            status=status,
        )
        db.add(report)
        db.commit()
        db.refresh(report)
        return report

    return _make_report
