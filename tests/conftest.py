"""Shared test configuration and fixtures for conference registration tests"""

import logging
import os
from typing import Optional

# The engine module refuses to import without a URL; tests swap in their own engine
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("ENVIRONMENT", "test")

import pytest
from fastapi.testclient import TestClient
from sqlmodel import Session, SQLModel

from conference_registration.backends.blob_store import DatabaseBlobStore
from conference_registration.errors import NotifierFailure
from conference_registration.main import app
from conference_registration.models.database import build_engine, get_db
from conference_registration.services.email_service import (
    EmailService,
    get_email_client,
)
from conference_registration.services.registration_service import RegistrationService
from conference_registration.services.storage_service import get_blob_store
from conference_registration.services.upload_service import (
    UploadConfig,
    UploadService,
    get_upload_config,
)
from tests.config import ABSTRACT_BYTES, RECEIPT_BYTES, VALID_FORM_FIELDS, test_config
from tests.helpers import make_form_data, make_upload

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


class FakeEmailClient:
    """Records outgoing mail instead of calling Mailgun"""

    def __init__(self, fail: bool = False):
        self.fail = fail
        self.sent = []
        self.is_configured = True

    async def send_email(self, to: str, subject: str, html: str, text: Optional[str] = None):
        if self.fail:
            raise NotifierFailure("Email sending failed: connection refused")
        message = {"to": to, "subject": subject, "html": html, "text": text}
        self.sent.append(message)
        return {"id": f"<test-{len(self.sent)}@mailgun>"}


@pytest.fixture
def valid_form_data():
    """Factory for a complete submission; keyword overrides replace text fields"""

    def _build(**overrides):
        fields = {**VALID_FORM_FIELDS, **overrides}
        return make_form_data(
            fields,
            receipt=make_upload("receipt.pdf", RECEIPT_BYTES, "application/pdf"),
            abstract=make_upload(
                "abstract.docx",
                ABSTRACT_BYTES,
                "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
            ),
        )

    return _build


@pytest.fixture
def engine(tmp_path):
    """A fresh SQLite database file per test"""
    test_engine = build_engine(f"sqlite:///{tmp_path / 'registrations.db'}")
    SQLModel.metadata.create_all(test_engine)

    yield test_engine

    test_engine.dispose()


@pytest.fixture
def _db_session(engine):
    """Raw DB session behind the service fixtures.

    Tests should go through the service fixtures; only seeding rows that the
    API cannot create (e.g. fixed timestamps) touches the session directly.
    """
    session = Session(engine)

    yield session

    session.close()


@pytest.fixture
def blob_store(engine):
    return DatabaseBlobStore(engine)


@pytest.fixture
def upload_config():
    return UploadConfig(
        max_file_size=test_config["max_file_size"],
        timeout_seconds=test_config["upload_timeout_seconds"],
    )


@pytest.fixture
def upload_service(blob_store, upload_config):
    return UploadService(blob_store, upload_config)


@pytest.fixture
def email_client():
    return FakeEmailClient()


@pytest.fixture
def email_service(email_client):
    return EmailService(email_client, test_config["conference_name"])


@pytest.fixture
def registration_service(_db_session, upload_service, email_service):
    """Create a RegistrationService instance for testing"""
    return RegistrationService(
        _db_session,
        upload_service,
        email_service,
        max_page_size=test_config["max_page_size"],
    )


@pytest.fixture
def client(engine, blob_store, email_client, upload_config):
    """Test client wired to the per-test database and the fake mailer"""
    original_overrides = app.dependency_overrides.copy()

    def get_test_db():
        with Session(engine) as session:
            yield session

    app.dependency_overrides.clear()
    app.dependency_overrides[get_db] = get_test_db
    app.dependency_overrides[get_blob_store] = lambda: blob_store
    app.dependency_overrides[get_email_client] = lambda: email_client
    app.dependency_overrides[get_upload_config] = lambda: upload_config

    yield TestClient(app)

    app.dependency_overrides.clear()
    app.dependency_overrides.update(original_overrides)
