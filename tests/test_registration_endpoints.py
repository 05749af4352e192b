"""End-to-end tests for the /api/register endpoints"""

import logging
import time
import uuid

from conference_registration.main import app
from conference_registration.models.stored_file import FileCategory
from conference_registration.routers.registration import content_disposition
from conference_registration.services.storage_service import get_blob_store
from conference_registration.services.upload_service import UploadConfig, get_upload_config
from tests.config import ABSTRACT_BYTES, RECEIPT_BYTES, VALID_FORM_FIELDS

logger = logging.getLogger(__name__)

DOCX_TYPE = "application/vnd.openxmlformats-officedocument.wordprocessingml.document"


def _files(receipt=None, abstract=None):
    return {
        "receipt": receipt or ("receipt.pdf", RECEIPT_BYTES, "application/pdf"),
        "abstractFile": abstract or ("abstract.docx", ABSTRACT_BYTES, DOCX_TYPE),
    }


def _register(client, files=None, **overrides):
    return client.post(
        "/api/register",
        data={**VALID_FORM_FIELDS, **overrides},
        files=files or _files(),
    )


class SlowAbstractBlobStore:
    """Real store whose abstract writes outlast the upload timeout"""

    def __init__(self, inner, delay):
        self.inner = inner
        self.delay = delay

    def put(self, storage_key, data, original_name, mime_type, category):
        if category == FileCategory.ABSTRACT:
            time.sleep(self.delay)
        return self.inner.put(storage_key, data, original_name, mime_type, category)

    def delete(self, file_id):
        return self.inner.delete(file_id)


class TestRegistrationEndpoints:
    def test_register_success(self, client, email_client):
        response = _register(client)

        logger.info(f"Response content: {response.text}")
        assert response.status_code == 201
        result = response.json()
        assert result["success"] is True
        assert result["message"] == "Registration saved"
        uuid.UUID(result["id"])

        # Background task has run by the time TestClient returns
        assert [m["to"] for m in email_client.sent] == ["asha.verma@university.edu"]
        assert email_client.sent[0]["subject"] == "Registration Confirmation - AI Conference"

    def test_register_then_fetch_and_download(self, client):
        registration_id = _register(client).json()["id"]

        response = client.get(f"/api/register/{registration_id}")
        assert response.status_code == 200
        data = response.json()["data"]
        assert data["id"] == registration_id
        assert data["fullName"] == "Asha Verma"
        assert data["paymentRef"] == "TXN-20250914-001"
        assert data["fee"] == 1500.0
        assert data["declaration"] is True
        assert "createdAt" in data and "updatedAt" in data

        receipt = client.get(f"/api/register/file/{data['receiptFileId']}")
        assert receipt.status_code == 200
        assert receipt.content == RECEIPT_BYTES
        assert receipt.headers["content-type"] == "application/pdf"
        assert (
            receipt.headers["content-disposition"]
            == 'attachment; filename="receipt.pdf"'
        )

        abstract = client.get(f"/api/register/file/{data['abstractFileId']}")
        assert abstract.status_code == 200
        assert abstract.content == ABSTRACT_BYTES
        assert abstract.headers["content-type"] == DOCX_TYPE

    def test_invalid_mobile_returns_400(self, client, blob_store):
        response = _register(client, mobile="12345")

        assert response.status_code == 400
        result = response.json()
        assert result["success"] is False
        assert result["errors"]["mobile"] == "Mobile must be 10 digits"
        assert blob_store.count() == 0

    def test_every_violation_is_listed(self, client):
        response = client.post(
            "/api/register",
            data={**VALID_FORM_FIELDS, "email": "nope", "fee": "free"},
        )

        assert response.status_code == 400
        errors = response.json()["errors"]
        assert set(errors) == {"email", "fee", "receipt", "abstractFile"}

    def test_oversized_receipt_returns_400(self, client, blob_store):
        big_receipt = ("receipt.pdf", b"0" * (6 * 1024 * 1024), "application/pdf")

        response = _register(client, files=_files(receipt=big_receipt))

        assert response.status_code == 400
        result = response.json()
        assert result["success"] is False
        assert "exceeds" in result["message"]
        assert blob_store.count() == 0

    def test_unsupported_file_type_returns_400(self, client, blob_store):
        response = _register(
            client, files=_files(abstract=("abstract.txt", b"plain text", "text/plain"))
        )

        assert response.status_code == 400
        assert "only PDF/DOC/Image files allowed" in response.json()["message"]
        assert blob_store.count() == 0

    def test_duplicate_email_returns_400(self, client, blob_store, email_client):
        first = _register(client, email="a@x.com")
        assert first.status_code == 201

        second = _register(client, email="a@x.com")

        assert second.status_code == 400
        assert second.json() == {"success": False, "message": "Email already exists!"}
        assert blob_store.count() == 2
        assert len(email_client.sent) == 1

    def test_notifier_failure_still_returns_201(self, client, email_client):
        email_client.fail = True

        response = _register(client)

        assert response.status_code == 201
        assert email_client.sent == []

    def test_list_registrations(self, client):
        for i in range(3):
            _register(client, email=f"speaker{i}@university.edu")

        response = client.get("/api/register", params={"page": 1, "limit": 2})

        assert response.status_code == 200
        result = response.json()
        assert result["success"] is True
        assert len(result["data"]) == 2
        assert result["pagination"] == {"total": 3, "page": 1, "pages": 2}
        assert set(result["data"][0]) == {
            "id",
            "fullName",
            "email",
            "institution",
            "category",
            "createdAt",
        }

    def test_list_with_invalid_params_uses_defaults(self, client):
        response = client.get("/api/register?page=zero&limit=")

        assert response.status_code == 200
        assert response.json()["pagination"] == {"total": 0, "page": 1, "pages": 0}

    def test_delete_registration(self, client, blob_store):
        registration_id = _register(client).json()["id"]
        data = client.get(f"/api/register/{registration_id}").json()["data"]

        response = client.delete(f"/api/register/{registration_id}")

        assert response.status_code == 200
        assert response.json() == {"success": True, "message": "Registration deleted"}
        assert blob_store.count() == 0
        assert client.get(f"/api/register/{registration_id}").status_code == 404
        assert client.get(f"/api/register/file/{data['receiptFileId']}").status_code == 404
        assert client.get(f"/api/register/file/{data['abstractFileId']}").status_code == 404

        again = client.delete(f"/api/register/{registration_id}")
        assert again.status_code == 404
        assert again.json() == {"success": False, "message": "Not found"}

    def test_download_name_with_spaces_keeps_ascii_filename(self, client):
        registration_id = _register(
            client, files=_files(receipt=("my receipt.pdf", RECEIPT_BYTES, "application/pdf"))
        ).json()["id"]
        data = client.get(f"/api/register/{registration_id}").json()["data"]

        receipt = client.get(f"/api/register/file/{data['receiptFileId']}")

        assert receipt.status_code == 200
        assert receipt.headers["content-disposition"] == (
            "attachment; filename=\"my receipt.pdf\"; filename*=UTF-8''my%20receipt.pdf"
        )

    def test_upload_timeout_returns_408(self, client, blob_store):
        app.dependency_overrides[get_blob_store] = lambda: SlowAbstractBlobStore(
            blob_store, delay=0.3
        )
        app.dependency_overrides[get_upload_config] = lambda: UploadConfig(
            max_file_size=5 * 1024 * 1024, timeout_seconds=0.05
        )

        response = _register(client)

        assert response.status_code == 408
        result = response.json()
        assert result["success"] is False
        assert result["message"].startswith("Upload of ")
        assert result["message"].endswith(" timed out")
        assert client.get("/api/register").json()["pagination"]["total"] == 0

    def test_get_unknown_registration(self, client):
        assert client.get(f"/api/register/{uuid.uuid4()}").status_code == 404
        assert client.get("/api/register/not-a-uuid").status_code == 404

    def test_download_unknown_file(self, client):
        response = client.get(f"/api/register/file/{uuid.uuid4()}")

        assert response.status_code == 404
        assert response.json() == {"success": False, "message": "File not found"}


class TestAppEndpoints:
    def test_root(self, client):
        response = client.get("/")

        assert response.status_code == 200
        assert response.text == "API is running"

    def test_unknown_route(self, client):
        response = client.get("/api/unknown")

        assert response.status_code == 404
        assert response.json() == {"success": False, "message": "Route not found"}

    def test_health(self, client):
        response = client.get("/health")

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "healthy"
        assert data["environment"]
        assert "timestamp" in data

    def test_detailed_health(self, client):
        response = client.get("/health/detailed")

        assert response.status_code == 200
        assert response.json()["checks"] == {
            "database": "healthy",
            "blob_store": "healthy",
        }


class TestContentDisposition:
    def test_plain_ascii_name(self):
        assert content_disposition("abstract.pdf") == 'attachment; filename="abstract.pdf"'

    def test_non_ascii_name_gets_both_parameters(self):
        assert content_disposition("résumé.pdf") == (
            "attachment; filename=\"resume.pdf\"; filename*=UTF-8''r%C3%A9sum%C3%A9.pdf"
        )

    def test_quotes_are_replaced_in_fallback(self):
        header = content_disposition('my "final" abstract.pdf')

        assert header.startswith('attachment; filename="my _final_ abstract.pdf"; ')
        assert header.endswith("filename*=UTF-8''my%20%22final%22%20abstract.pdf")

    def test_unrepresentable_name_falls_back_to_download(self):
        assert content_disposition("摘要") == (
            "attachment; filename=\"download\"; filename*=UTF-8''%E6%91%98%E8%A6%81"
        )
