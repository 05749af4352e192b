"""SQLModel StoredFile model - uploaded bytes kept in the database"""

import enum
import uuid
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import Column, LargeBinary
from sqlalchemy import Enum as SAEnum
from sqlmodel import Field, SQLModel


class FileCategory(str, enum.Enum):
    RECEIPT = "receipt"
    ABSTRACT = "abstract"


class StoredFile(SQLModel, table=True):
    """A blob plus the metadata needed to serve it back as a download"""

    __tablename__ = "stored_files"

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    storage_key: str = Field(unique=True, index=True)  # "<32 hex>-<original name>"
    original_name: str
    mime_type: str = Field(default="application/octet-stream")
    category: FileCategory = Field(
        sa_column=Column(
            SAEnum(
                FileCategory,
                name="stored_file_category",
                native_enum=False,
                values_callable=lambda enum: [e.value for e in enum],
            ),
            nullable=False,
            index=True,
        ),
    )
    size_bytes: int = Field(default=0)
    uploaded_by: str = Field(default="registration-form")
    data: bytes = Field(sa_column=Column(LargeBinary, nullable=False))
    created_at: Optional[datetime] = Field(
        default_factory=lambda: datetime.now(timezone.utc)
    )
