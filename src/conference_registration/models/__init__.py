"""Database models for the conference registration service"""

from conference_registration.models.registration import Registration
from conference_registration.models.stored_file import FileCategory, StoredFile

__all__ = [
    "Registration",
    "StoredFile",
    "FileCategory",
]
