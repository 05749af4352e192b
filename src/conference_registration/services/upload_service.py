"""Upload pipeline for the receipt and abstract documents.

Flow for one submission:
- extract exactly one file per slot from the multipart body
- validate every file (extension allow-list, then size ceiling) before any write
- write both files concurrently, each bounded by a timeout
- on any failure, delete whatever was already written

The pipeline writes to the blob store only; registrations are created by
RegistrationService once both handles exist.
"""

import asyncio
import logging
import mimetypes
import os
import secrets
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple

from fastapi import Depends
from starlette.datastructures import UploadFile

from conference_registration.backends.blob_store import DatabaseBlobStore, FileHandle
from conference_registration.config import config
from conference_registration.errors import (
    FileTooLarge,
    UnsupportedFileType,
    UploadTimeout,
)
from conference_registration.models.stored_file import FileCategory
from conference_registration.services.storage_service import get_blob_store
from conference_registration.utils.form_utils import file_extension

logger = logging.getLogger(__name__)

ALLOWED_EXTENSIONS = frozenset({"pdf", "doc", "docx", "png", "jpg", "jpeg"})

# Multipart field name -> blob category
FILE_SLOTS = {
    "receipt": FileCategory.RECEIPT,
    "abstractFile": FileCategory.ABSTRACT,
}

SLOT_LABELS = {
    "receipt": "Payment receipt",
    "abstractFile": "Abstract file",
}


@dataclass(frozen=True)
class UploadConfig:
    """Upload limits, built once from the application config"""

    max_file_size: int
    timeout_seconds: float
    allowed_extensions: frozenset = ALLOWED_EXTENSIONS

    @classmethod
    def from_config(cls, cfg: Mapping[str, Any]) -> "UploadConfig":
        return cls(
            max_file_size=int(cfg["max_file_size"]),
            timeout_seconds=float(cfg["upload_timeout_seconds"]),
        )


@dataclass
class IncomingFile:
    """A file read from the request, not yet stored"""

    slot: str
    category: FileCategory
    filename: str
    content_type: str
    data: bytes

    @property
    def extension(self) -> str:
        return file_extension(self.filename)

    @property
    def size(self) -> int:
        return len(self.data)


class UploadService:
    """Validates and stores the two documents of a registration"""

    def __init__(self, blob_store: DatabaseBlobStore, upload_config: UploadConfig):
        self.blob_store = blob_store
        self.config = upload_config
        self._late_writes = set()

    async def extract_files(
        self, form_data: Any
    ) -> Tuple[List[IncomingFile], Dict[str, str]]:
        """
        Read the file slots out of a parsed multipart body.

        Args:
            form_data: starlette FormData (anything with getlist())

        Returns:
            (files read, {slot: violation message} for missing or repeated slots)
        """
        files: List[IncomingFile] = []
        violations: Dict[str, str] = {}

        for slot, category in FILE_SLOTS.items():
            parts = [
                part
                for part in form_data.getlist(slot)
                if isinstance(part, UploadFile) and part.filename
            ]
            if not parts:
                violations[slot] = f"{SLOT_LABELS[slot]} is required"
                continue
            if len(parts) > 1:
                violations[slot] = f"Only one {SLOT_LABELS[slot].lower()} is allowed"
                continue
            files.append(await self.read_upload(parts[0], slot, category))

        return files, violations

    async def read_upload(
        self, upload: UploadFile, slot: str, category: FileCategory
    ) -> IncomingFile:
        """Read at most one byte past the ceiling; that is enough to reject oversize files."""
        data = await upload.read(self.config.max_file_size + 1)
        filename = os.path.basename((upload.filename or "").replace("\\", "/"))
        content_type = (
            upload.content_type
            or mimetypes.guess_type(filename)[0]
            or "application/octet-stream"
        )
        return IncomingFile(
            slot=slot,
            category=category,
            filename=filename,
            content_type=content_type,
            data=data,
        )

    def validate(self, incoming: IncomingFile) -> None:
        """Raise UnsupportedFileType or FileTooLarge, checked in that order"""
        if incoming.extension not in self.config.allowed_extensions:
            raise UnsupportedFileType(
                f"{SLOT_LABELS[incoming.slot]}: only PDF/DOC/Image files allowed "
                f"({', '.join(sorted(self.config.allowed_extensions))})"
            )
        if incoming.size > self.config.max_file_size:
            raise FileTooLarge(
                f"{SLOT_LABELS[incoming.slot]} exceeds the "
                f"{self.config.max_file_size} byte limit"
            )

    @staticmethod
    def generate_storage_key(filename: str) -> str:
        return f"{secrets.token_hex(16)}-{filename}"

    async def store_files(
        self, files: Iterable[IncomingFile]
    ) -> Dict[FileCategory, FileHandle]:
        """
        Validate then store every file; all succeed or none remain stored.

        Raises:
            UnsupportedFileType, FileTooLarge: before any write
            UploadTimeout, StoreUnavailable: after rolling back finished writes
        """
        files = list(files)
        for incoming in files:
            self.validate(incoming)

        results = await asyncio.gather(
            *(self._store_one(incoming) for incoming in files),
            return_exceptions=True,
        )

        handles = [r for r in results if isinstance(r, FileHandle)]
        failures = [r for r in results if isinstance(r, BaseException)]
        if failures:
            await self.discard(handles)
            raise failures[0]

        return {handle.category: handle for handle in handles}

    async def _store_one(self, incoming: IncomingFile) -> FileHandle:
        storage_key = self.generate_storage_key(incoming.filename)
        write = asyncio.ensure_future(
            asyncio.to_thread(
                self.blob_store.put,
                storage_key,
                incoming.data,
                incoming.filename,
                incoming.content_type,
                incoming.category,
            )
        )
        try:
            return await asyncio.wait_for(
                asyncio.shield(write), timeout=self.config.timeout_seconds
            )
        except asyncio.TimeoutError:
            # The worker thread cannot be interrupted; remove its blob once it lands
            logger.warning(
                f"Upload of {storage_key} timed out after "
                f"{self.config.timeout_seconds}s; it will be deleted when the write finishes"
            )
            self._late_writes.add(write)
            write.add_done_callback(self._discard_late_write)
            raise UploadTimeout(f"Upload of {incoming.filename} timed out")

    def _discard_late_write(self, write: "asyncio.Future[FileHandle]") -> None:
        self._late_writes.discard(write)
        if write.cancelled() or write.exception() is not None:
            return
        cleanup = asyncio.ensure_future(self.discard([write.result()]))
        self._late_writes.add(cleanup)
        cleanup.add_done_callback(self._late_writes.discard)

    async def wait_for_late_cleanups(self) -> None:
        """Wait until every timed-out write has finished and been deleted"""
        while self._late_writes:
            await asyncio.gather(*list(self._late_writes), return_exceptions=True)

    async def discard(self, handles: Iterable[Optional[FileHandle]]) -> None:
        """Best-effort delete of stored blobs; failures are logged as orphans"""
        for handle in handles:
            if handle is None:
                continue
            try:
                await asyncio.to_thread(self.blob_store.delete, handle.id)
            except Exception as e:
                logger.error(
                    f"Failed to delete file {handle.id} ({handle.storage_key}); "
                    f"orphaned blob left behind: {e}"
                )


# Upload limits are read once per process
_upload_config = None


def get_upload_config() -> UploadConfig:
    """Get or create the process-wide upload configuration"""
    global _upload_config
    if _upload_config is None:
        _upload_config = UploadConfig.from_config(config)
        logger.info(
            f"Upload limits: {_upload_config.max_file_size} bytes per file, "
            f"{_upload_config.timeout_seconds}s per upload"
        )
    return _upload_config


def get_upload_service(
    blob_store: DatabaseBlobStore = Depends(get_blob_store),
    upload_config: UploadConfig = Depends(get_upload_config),
) -> UploadService:
    return UploadService(blob_store, upload_config)
