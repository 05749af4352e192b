"""Blob storage for uploaded registration documents.

Files live in the `stored_files` table next to the registrations, which keeps a
single database as the only piece of infrastructure. Every method opens its own
short session so calls are safe from upload worker threads.
"""

import logging
import uuid
from dataclasses import dataclass
from typing import Any, Optional

from sqlalchemy import func
from sqlalchemy.engine import Engine
from sqlalchemy.exc import OperationalError
from sqlmodel import Session, select

from conference_registration.errors import StoreUnavailable
from conference_registration.models.stored_file import FileCategory, StoredFile
from conference_registration.utils.form_utils import parse_uuid

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class FileHandle:
    """Reference to one stored blob"""

    id: uuid.UUID
    storage_key: str
    original_name: str
    mime_type: str
    category: FileCategory
    size_bytes: int


class DatabaseBlobStore:
    """Blob store backed by a SQL table"""

    def __init__(self, engine: Engine):
        self.engine = engine

    def put(
        self,
        storage_key: str,
        data: bytes,
        original_name: str,
        mime_type: str,
        category: FileCategory,
    ) -> FileHandle:
        """Write a blob and return its handle"""
        stored = StoredFile(
            storage_key=storage_key,
            original_name=original_name,
            mime_type=mime_type,
            category=category,
            size_bytes=len(data),
            data=data,
        )
        try:
            with Session(self.engine, expire_on_commit=False) as session:
                session.add(stored)
                session.commit()
                handle = FileHandle(
                    id=stored.id,
                    storage_key=stored.storage_key,
                    original_name=stored.original_name,
                    mime_type=stored.mime_type,
                    category=stored.category,
                    size_bytes=stored.size_bytes,
                )
        except OperationalError as e:
            logger.error(f"Blob store write failed for {storage_key}: {e}")
            raise StoreUnavailable("File storage not ready") from e

        logger.info(f"Stored {category.value} file {handle.id} as {storage_key}")
        return handle

    def find(
        self, file_id: Any, category: Optional[FileCategory] = None
    ) -> Optional[StoredFile]:
        """Get a blob (bytes included) by id, optionally restricted to one category"""
        blob_id = parse_uuid(file_id)
        if blob_id is None:
            return None

        stmt = select(StoredFile).where(StoredFile.id == blob_id)
        if category is not None:
            stmt = stmt.where(StoredFile.category == category)

        try:
            with Session(self.engine) as session:
                return session.exec(stmt).first()
        except OperationalError as e:
            logger.error(f"Blob store read failed for {file_id}: {e}")
            raise StoreUnavailable("File storage not ready") from e

    def delete(self, file_id: Any) -> bool:
        """Delete a blob. Returns False when it did not exist."""
        blob_id = parse_uuid(file_id)
        if blob_id is None:
            return False

        try:
            with Session(self.engine) as session:
                stored = session.get(StoredFile, blob_id)
                if stored is None:
                    return False
                session.delete(stored)
                session.commit()
        except OperationalError as e:
            logger.error(f"Blob store delete failed for {file_id}: {e}")
            raise StoreUnavailable("File storage not ready") from e

        logger.info(f"File {blob_id} deleted")
        return True

    def exists(self, file_id: Any) -> bool:
        blob_id = parse_uuid(file_id)
        if blob_id is None:
            return False
        with Session(self.engine) as session:
            return session.get(StoredFile, blob_id) is not None

    def count(self) -> int:
        with Session(self.engine) as session:
            return session.exec(select(func.count()).select_from(StoredFile)).one()

    def ping(self) -> bool:
        """Connectivity check used by the detailed health endpoint"""
        with Session(self.engine) as session:
            session.exec(select(StoredFile.id).limit(1)).first()
        return True
