"""Validation schema for the multipart registration form"""

from typing import Any, Dict, Mapping, Optional

from pydantic import (
    BaseModel,
    ConfigDict,
    EmailStr,
    Field,
    ValidationError,
    field_validator,
)
from pydantic.alias_generators import to_camel

from conference_registration.errors import ValidationFailed
from conference_registration.utils.form_utils import parse_declaration

MOBILE_PATTERN = r"^[0-9]{10}$"

# Client-facing message per form key; pydantic's own text is used otherwise
FIELD_MESSAGES = {
    "fullName": "Full Name is required",
    "gender": "Gender is required",
    "dob": "Date of birth is required",
    "nationality": "Nationality is required",
    "mobile": "Mobile must be 10 digits",
    "email": "Valid email is required",
    "address": "Address is required",
    "institution": "Institution is required",
    "designation": "Designation is required",
    "department": "Department is required",
    "category": "Category is required",
    "fee": "Fee must be a number",
    "paymentRef": "Payment reference is required",
    "participation": "Participation type is required",
    "submissionTitle": "Submission title is required",
    "authors": "Authors are required",
    "abstractText": "Abstract text is required",
}


class RegistrationForm(BaseModel):
    """Text fields of a registration submission, keyed by their camelCase form names"""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        str_strip_whitespace=True,
    )

    full_name: str = Field(min_length=3)
    gender: str = Field(min_length=1)
    dob: str = Field(min_length=1)
    nationality: str = Field(min_length=1)
    mobile: str = Field(pattern=MOBILE_PATTERN)
    email: EmailStr
    address: str = Field(min_length=1)
    institution: str = Field(min_length=1)
    designation: str = Field(min_length=1)
    department: str = Field(min_length=1)
    category: str = Field(min_length=1)
    fee: float = Field(allow_inf_nan=False)
    payment_ref: str = Field(min_length=1)
    participation: str = Field(min_length=1)
    submission_title: str = Field(min_length=1)
    authors: str = Field(min_length=1)
    abstract_text: str = Field(min_length=1)
    declaration: bool = False

    @field_validator("email", mode="before")
    @classmethod
    def _normalize_email(cls, v: Any) -> Any:
        if isinstance(v, str):
            return v.strip().lower()
        return v

    @field_validator("declaration", mode="before")
    @classmethod
    def _parse_declaration(cls, v: Any) -> bool:
        return parse_declaration(v)


def collect_violations(error: ValidationError) -> Dict[str, str]:
    """Flatten a pydantic ValidationError into {form key: message}, first error per key."""
    violations: Dict[str, str] = {}
    for item in error.errors():
        key = str(item["loc"][0]) if item.get("loc") else "__all__"
        if key not in violations:
            violations[key] = FIELD_MESSAGES.get(key, item["msg"])
    return violations


def parse_registration_form(
    fields: Mapping[str, Any], extra_violations: Optional[Dict[str, str]] = None
) -> RegistrationForm:
    """
    Validate raw form fields.

    Args:
        fields: Text fields from the multipart body (camelCase keys)
        extra_violations: Violations found elsewhere (e.g. missing files) to
            report together with the field errors

    Raises:
        ValidationFailed: listing every failing field at once
    """
    violations = dict(extra_violations or {})
    form = None
    try:
        form = RegistrationForm.model_validate(dict(fields))
    except ValidationError as e:
        violations = {**collect_violations(e), **violations}

    if violations:
        raise ValidationFailed(violations)
    return form
