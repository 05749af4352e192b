"""SQLModel Registration model"""

import uuid
from datetime import datetime, timezone
from typing import Optional

from sqlmodel import Field, SQLModel


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class Registration(SQLModel, table=True):
    """One conference registration with its receipt and abstract uploads"""

    __tablename__ = "registrations"

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    full_name: str
    gender: str
    dob: str
    nationality: str
    mobile: str = Field(max_length=10)
    email: str = Field(unique=True, index=True)
    address: str
    institution: str
    designation: str
    department: str
    category: str
    fee: float
    payment_ref: str
    participation: str
    submission_title: str
    authors: str
    abstract_text: str
    declaration: bool = Field(default=False)
    # Blob handles; no foreign key so blobs can be removed before the record
    receipt_file_id: uuid.UUID
    receipt_file_name: str
    abstract_file_id: uuid.UUID
    abstract_file_name: str
    created_at: Optional[datetime] = Field(default_factory=utc_now, index=True)
    updated_at: Optional[datetime] = Field(
        default_factory=utc_now, sa_column_kwargs={"onupdate": utc_now}
    )
