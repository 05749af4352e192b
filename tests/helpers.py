"""Builders for multipart payloads used across tests"""

import io
from typing import Dict, Optional

from starlette.datastructures import FormData, Headers, UploadFile

from tests.config import VALID_FORM_FIELDS


def make_upload(filename: str, data: bytes, content_type: str) -> UploadFile:
    return UploadFile(
        file=io.BytesIO(data),
        filename=filename,
        headers=Headers({"content-type": content_type}),
    )


def make_form_data(
    fields: Optional[Dict[str, str]] = None,
    receipt: Optional[UploadFile] = None,
    abstract: Optional[UploadFile] = None,
) -> FormData:
    """Build the FormData starlette would hand to the service"""
    items = list((fields if fields is not None else VALID_FORM_FIELDS).items())
    if receipt is not None:
        items.append(("receipt", receipt))
    if abstract is not None:
        items.append(("abstractFile", abstract))
    return FormData(items)
