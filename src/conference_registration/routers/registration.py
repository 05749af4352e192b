"""Registration API endpoints"""

import logging
import unicodedata
import uuid
from datetime import datetime
from typing import Optional
from urllib.parse import quote

from fastapi import APIRouter, BackgroundTasks, Depends, Request
from fastapi.responses import StreamingResponse
from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from conference_registration.services.registration_service import (
    RegistrationService,
    get_registration_service,
)

router = APIRouter(prefix="/api/register", tags=["Registration"])

logger = logging.getLogger(__name__)


class RegistrationSummary(BaseModel):
    """Fields shown in the registration list"""

    model_config = ConfigDict(
        alias_generator=to_camel, populate_by_name=True, from_attributes=True
    )

    id: uuid.UUID
    full_name: str
    email: str
    institution: str
    category: str
    created_at: Optional[datetime] = None


class RegistrationDetail(RegistrationSummary):
    gender: str
    dob: str
    nationality: str
    mobile: str
    address: str
    designation: str
    department: str
    fee: float
    payment_ref: str
    participation: str
    submission_title: str
    authors: str
    abstract_text: str
    declaration: bool
    receipt_file_id: uuid.UUID
    receipt_file_name: str
    abstract_file_id: uuid.UUID
    abstract_file_name: str
    updated_at: Optional[datetime] = None


def content_disposition(filename: str) -> str:
    """Attachment header; names that need escaping also get an RFC 5987 `filename*`"""
    quoted = quote(filename)
    if quoted == filename:
        return f'attachment; filename="{filename}"'

    ascii_name = (
        unicodedata.normalize("NFKD", filename).encode("ascii", "ignore").decode("ascii")
    )
    fallback = "".join(
        "_" if char in '"\\' else char for char in ascii_name if char.isprintable()
    ) or "download"
    return f'attachment; filename="{fallback}"; filename*=UTF-8\'\'{quoted}'


@router.post("", status_code=201)
async def create_registration(
    request: Request,
    background_tasks: BackgroundTasks,
    registration_service: RegistrationService = Depends(get_registration_service),
):
    """Handle a multipart registration submission"""
    form_data = await request.form()

    registration = await registration_service.submit(form_data, background_tasks)

    return {
        "success": True,
        "id": str(registration.id),
        "message": "Registration saved",
    }


@router.get("")
async def list_registrations(
    page: Optional[str] = None,
    limit: Optional[str] = None,
    registration_service: RegistrationService = Depends(get_registration_service),
):
    """Paginated registrations, newest first"""
    result = registration_service.list_registrations(page=page, limit=limit)

    return {
        "success": True,
        "data": [
            RegistrationSummary.model_validate(r).model_dump(by_alias=True, mode="json")
            for r in result.items
        ],
        "pagination": {
            "total": result.total,
            "page": result.page,
            "pages": result.pages,
        },
    }


@router.get("/file/{file_id}")
async def download_file(
    file_id: str,
    registration_service: RegistrationService = Depends(get_registration_service),
):
    """Stream a stored receipt or abstract document"""
    download = await registration_service.download_file(file_id)

    return StreamingResponse(
        download.iter_chunks(),
        media_type=download.mime_type,
        headers={
            "Content-Disposition": content_disposition(download.filename),
            "Content-Length": str(len(download.data)),
        },
    )


@router.get("/{registration_id}")
async def get_registration(
    registration_id: str,
    registration_service: RegistrationService = Depends(get_registration_service),
):
    registration = registration_service.get_registration(registration_id)

    return {
        "success": True,
        "data": RegistrationDetail.model_validate(registration).model_dump(
            by_alias=True, mode="json"
        ),
    }


@router.delete("/{registration_id}")
async def delete_registration(
    registration_id: str,
    registration_service: RegistrationService = Depends(get_registration_service),
):
    """Delete a registration together with its documents"""
    await registration_service.delete_registration(registration_id)

    return {"success": True, "message": "Registration deleted"}
