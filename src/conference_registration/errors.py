"""Error taxonomy for the registration pipeline.

Every error that can reach a client carries its HTTP status so the exception
handler in main.py can render it without a lookup table. NotifierFailure is
the exception: it is raised by the email transport and only ever logged.
"""

from typing import Dict, Optional


class RegistrationError(Exception):
    """Base class for errors surfaced to API clients"""

    status_code = 500
    default_message = "Server error"

    def __init__(self, message: Optional[str] = None):
        self.message = message or self.default_message
        super().__init__(self.message)

    def to_dict(self) -> Dict:
        return {"success": False, "message": self.message}


class ValidationFailed(RegistrationError):
    """One or more form fields are malformed. All violations are listed."""

    status_code = 400
    default_message = "Validation failed"

    def __init__(self, errors: Dict[str, str], message: Optional[str] = None):
        super().__init__(message)
        self.errors = errors

    def to_dict(self) -> Dict:
        body = super().to_dict()
        body["errors"] = self.errors
        return body


class DuplicateEmail(RegistrationError):
    status_code = 400
    default_message = "Email already exists!"


class UnsupportedFileType(RegistrationError):
    status_code = 400
    default_message = "Only PDF/DOC/Image files allowed"


class FileTooLarge(RegistrationError):
    status_code = 400
    default_message = "File too large"


class UploadTimeout(RegistrationError):
    status_code = 408
    default_message = "File upload timed out"


class NotFound(RegistrationError):
    status_code = 404
    default_message = "Not found"


class StoreUnavailable(RegistrationError):
    status_code = 500
    default_message = "Storage not ready"


class Unknown(RegistrationError):
    status_code = 500
    default_message = "Server error"


class NotifierFailure(Exception):
    """Email delivery failed. Logged, never returned to the caller."""
