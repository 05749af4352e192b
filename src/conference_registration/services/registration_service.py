"""Registration service for handling conference form submissions"""

import asyncio
import logging
import math
from dataclasses import dataclass
from typing import Any, Iterator, List, Optional

from fastapi import BackgroundTasks, Depends
from sqlalchemy import func
from sqlalchemy.exc import IntegrityError, OperationalError
from sqlmodel import Session, select

from conference_registration.config import config
from conference_registration.errors import DuplicateEmail, NotFound, StoreUnavailable
from conference_registration.models.database import get_db
from conference_registration.models.registration import Registration
from conference_registration.models.registration_form import parse_registration_form
from conference_registration.models.stored_file import FileCategory
from conference_registration.services.email_service import (
    EmailService,
    get_email_service,
)
from conference_registration.services.upload_service import (
    UploadService,
    get_upload_service,
)
from conference_registration.utils.form_utils import parse_uuid

logger = logging.getLogger(__name__)

DEFAULT_PAGE = 1
DEFAULT_PAGE_SIZE = 10
DOWNLOAD_CHUNK_SIZE = 64 * 1024


@dataclass
class RegistrationPage:
    """One page of registrations, newest first"""

    items: List[Registration]
    total: int
    page: int
    limit: int

    @property
    def pages(self) -> int:
        return math.ceil(self.total / self.limit) if self.limit else 0


@dataclass
class FileDownload:
    """Bytes and headers for serving a stored document"""

    file_id: str
    filename: str
    mime_type: str
    data: bytes

    def iter_chunks(self, chunk_size: int = DOWNLOAD_CHUNK_SIZE) -> Iterator[bytes]:
        for start in range(0, len(self.data), chunk_size):
            yield self.data[start : start + chunk_size]


def _positive_int(value: Any, default: int) -> int:
    try:
        number = int(value)
    except (TypeError, ValueError):
        return default
    return number if number >= 1 else default


class RegistrationService:
    """Service for managing conference registrations"""

    def __init__(
        self,
        db_session: Session,
        upload_service: UploadService,
        email_service: EmailService,
        max_page_size: int = 100,
    ):
        self.db = db_session
        self.upload_service = upload_service
        self.blob_store = upload_service.blob_store
        self.email_service = email_service
        self.max_page_size = max_page_size

    async def submit(
        self, form_data: Any, background_tasks: BackgroundTasks
    ) -> Registration:
        """
        Validate, store both documents and create a registration.

        Args:
            form_data: Parsed multipart body (text fields plus receipt/abstractFile)
            background_tasks: Where the confirmation email is scheduled

        Returns:
            Registration: The created registration

        Raises:
            ValidationFailed: every malformed field (and missing file) at once
            DuplicateEmail: email already registered
            UnsupportedFileType, FileTooLarge, UploadTimeout: upload rejected
        """
        files, file_violations = await self.upload_service.extract_files(form_data)
        fields = {key: value for key, value in form_data.items() if isinstance(value, str)}
        form = parse_registration_form(fields, file_violations)

        # Fast path only; the unique index on email is the real guarantee
        if self.get_registration_by_email(form.email):
            logger.info(f"Rejected duplicate registration for {form.email}")
            raise DuplicateEmail()

        handles = await self.upload_service.store_files(files)
        receipt = handles[FileCategory.RECEIPT]
        abstract = handles[FileCategory.ABSTRACT]

        registration = Registration(
            **form.model_dump(),
            receipt_file_id=receipt.id,
            receipt_file_name=receipt.storage_key,
            abstract_file_id=abstract.id,
            abstract_file_name=abstract.storage_key,
        )

        try:
            self.db.add(registration)
            self.db.commit()
            self.db.refresh(registration)
        except IntegrityError as e:
            self.db.rollback()
            logger.info(f"Concurrent registration for {form.email} lost the race: {e}")
            await self.upload_service.discard([receipt, abstract])
            raise DuplicateEmail()
        except OperationalError as e:
            self.db.rollback()
            logger.error(f"Failed to save registration for {form.email}: {e}")
            await self.upload_service.discard([receipt, abstract])
            raise StoreUnavailable("Database not ready") from e
        except Exception:
            self.db.rollback()
            await self.upload_service.discard([receipt, abstract])
            raise

        logger.info(f"Created registration {registration.id} for {registration.email}")

        background_tasks.add_task(
            self.email_service.send_registration_confirmation,
            registration.email,
            registration.full_name,
        )
        return registration

    def get_registration_by_email(self, email: str) -> Optional[Registration]:
        stmt = select(Registration).where(Registration.email == email.strip().lower())
        return self.db.exec(stmt).first()

    def get_registration(self, registration_id: Any) -> Registration:
        """Get a registration by ID or raise NotFound"""
        reg_id = parse_uuid(registration_id)
        registration = self.db.get(Registration, reg_id) if reg_id else None
        if registration is None:
            raise NotFound()
        return registration

    def list_registrations(self, page: Any = None, limit: Any = None) -> RegistrationPage:
        """Newest-first page; bad or missing page/limit fall back to 1/10"""
        page = _positive_int(page, DEFAULT_PAGE)
        limit = min(_positive_int(limit, DEFAULT_PAGE_SIZE), self.max_page_size)

        total = self.db.exec(select(func.count()).select_from(Registration)).one()
        stmt = (
            select(Registration)
            .order_by(Registration.created_at.desc())
            .offset((page - 1) * limit)
            .limit(limit)
        )
        items = list(self.db.exec(stmt).all())
        return RegistrationPage(items=items, total=total, page=page, limit=limit)

    async def delete_registration(self, registration_id: Any) -> None:
        """Delete both documents (best effort) and then the registration"""
        registration = self.get_registration(registration_id)

        for file_id in (registration.receipt_file_id, registration.abstract_file_id):
            try:
                deleted = await asyncio.to_thread(self.blob_store.delete, file_id)
                if not deleted:
                    logger.warning(
                        f"File {file_id} of registration {registration.id} was already gone"
                    )
            except Exception as e:
                logger.error(f"Error deleting file {file_id}: {e}")

        self.db.delete(registration)
        self.db.commit()
        logger.info(f"Deleted registration {registration.id}")

    async def download_file(self, file_id: Any) -> FileDownload:
        """Look up a document in the receipt bucket, then the abstract bucket"""
        for category in (FileCategory.RECEIPT, FileCategory.ABSTRACT):
            stored = await asyncio.to_thread(self.blob_store.find, file_id, category)
            if stored is not None:
                return FileDownload(
                    file_id=str(stored.id),
                    filename=stored.original_name,
                    mime_type=stored.mime_type,
                    data=stored.data,
                )
        raise NotFound("File not found")


def get_registration_service(
    db: Session = Depends(get_db),
    upload_service: UploadService = Depends(get_upload_service),
    email_service: EmailService = Depends(get_email_service),
) -> RegistrationService:
    return RegistrationService(
        db, upload_service, email_service, max_page_size=config["max_page_size"]
    )
