"""
Application Form Schema

Pydantic models for the multi-section admission form stored as an
application's form data, plus the validator that turns a raw payload into a
normalized ApplicationFormData or an itemized list of field errors.

Validation runs in two passes:
1. The base schema (every section, every field). All violations are collected.
2. Cross-field rules, only once the base schema passes.

Nothing is partially accepted: either the whole form is valid or
FormValidationError lists every violated field path (camelCase, dotted).
"""

import enum
from collections.abc import Callable
from dataclasses import dataclass
from typing import Annotated, Any

from email_validator import EmailNotValidError, validate_email
from pydantic import (
    AfterValidator,
    AliasChoices,
    BaseModel,
    BeforeValidator,
    ConfigDict,
    Field,
    StrictBool,
    StrictInt,
)
from pydantic import ValidationError as PydanticValidationError
from pydantic.alias_generators import to_camel

from admission_portal.core.exceptions import FieldError, ValidationError

REQUIRED_MESSAGE = "is required"
EMAIL_MESSAGE = "must be a valid email address"
ACCEPT_OFFER_MESSAGE = "must accept offer"


class FormValidationError(ValidationError):
    """Raised when form data fails validation."""

    def __init__(self, errors: list[FieldError]):
        super().__init__(errors, message="Application form is invalid.")


def _not_blank(value: str) -> str:
    if not value.strip():
        raise ValueError(REQUIRED_MESSAGE)
    return value


def _valid_email(value: str) -> str:
    # Checked only; the address is stored exactly as entered
    try:
        validate_email(value, check_deliverability=False)
    except EmailNotValidError:
        raise ValueError(EMAIL_MESSAGE) from None
    return value


def _must_accept(value: Any) -> Any:
    # Only the literal boolean true counts as acceptance
    if value is not True:
        raise ValueError(ACCEPT_OFFER_MESSAGE)
    return value


RequiredText = Annotated[str, AfterValidator(_not_blank)]
EmailText = Annotated[str, AfterValidator(_valid_email)]
SiblingCount = Annotated[StrictInt, Field(ge=0)]


class Gender(str, enum.Enum):
    MALE = "male"
    FEMALE = "female"
    OTHER = "other"


class MaritalStatus(str, enum.Enum):
    SINGLE = "single"
    MARRIED = "married"
    DIVORCED = "divorced"
    WIDOWED = "widowed"


class FormSection(BaseModel):
    """Base for form sections: camelCase on the wire, snake_case in Python."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class PersonalInfo(FormSection):
    """Personal details section."""

    first_name: RequiredText
    middle_name: str | None = None
    last_name: RequiredText
    national_id_or_birth_cert_no: RequiredText
    huduma_no: str | None = None
    nhif_no: str | None = None
    date_of_birth: RequiredText
    gender: Gender
    religion: str | None = None
    nationality: RequiredText
    marital_status: MaritalStatus
    physical_impairment: StrictBool = False
    impairment_details: str | None = None


class ContactInfo(FormSection):
    """Contact details section."""

    postal_address: RequiredText
    postal_code: RequiredText
    town: RequiredText
    mobile_phone: RequiredText
    email: EmailText
    county: RequiredText


class FamilyInfo(FormSection):
    """Family background section. Every field is optional."""

    father_name: str | None = None
    father_occupation: str | None = None
    father_alive: StrictBool | None = None
    mother_name: str | None = None
    mother_occupation: str | None = None
    mother_alive: StrictBool | None = None
    number_of_siblings: SiblingCount | None = None
    spouse_name: str | None = None
    spouse_occupation: str | None = None
    spouse_phone: str | None = None


class ResidenceInfo(FormSection):
    """Place of birth and residence section."""

    place_of_birth: RequiredText
    permanent_residence: RequiredText
    nearest_town: RequiredText
    location: RequiredText
    sub_county: RequiredText
    constituency: RequiredText
    nearest_police_station: RequiredText


class EducationInfo(FormSection):
    """Secondary (KCSE) and primary (KCPE) school records."""

    kcse_school: RequiredText
    kcse_index: RequiredText
    kcse_year: RequiredText
    kcse_results: RequiredText
    kcpe_school: RequiredText
    kcpe_index: RequiredText
    kcpe_year: RequiredText
    kcpe_results: RequiredText
    other_qualifications: str | None = None


class MedicalInfo(FormSection):
    """
    Medical history section.

    Detail fields are filled by the client only when the matching flag is set;
    they are not cross-checked here.
    """

    ever_admitted: StrictBool = False
    admission_details: str | None = None
    tb_history: StrictBool = False
    tb_details: str | None = None
    fit_history: StrictBool = False
    fit_details: str | None = None
    heart_disease_history: StrictBool = False
    heart_disease_details: str | None = None
    digestive_disease_history: StrictBool = False
    digestive_disease_details: str | None = None
    allergies_history: StrictBool = False
    allergies_details: str | None = None


class DocumentsChecklist(FormSection):
    """Which supporting documents the applicant says they have provided."""

    national_id: StrictBool = False
    kcse_results: StrictBool = False
    kcpe_results: StrictBool = False
    passport_photo: StrictBool = False


class Acceptance(FormSection):
    """Offer acceptance and consent section."""

    accept_offer: Annotated[bool, BeforeValidator(_must_accept)] = Field(
        default=False, validate_default=True
    )
    image_release_consent: StrictBool = False


class ApplicationFormData(FormSection):
    """The complete admission form."""

    personal_info: PersonalInfo
    contact_info: ContactInfo
    family_info: FamilyInfo = Field(default_factory=FamilyInfo)
    residence_info: ResidenceInfo
    education_info: EducationInfo
    medical_info: MedicalInfo = Field(default_factory=MedicalInfo)
    documents_checklist: DocumentsChecklist = Field(
        default_factory=DocumentsChecklist,
        validation_alias=AliasChoices("documentsChecklist", "documents", "documents_checklist"),
        serialization_alias="documentsChecklist",
    )
    acceptance: Acceptance

    def to_payload(self) -> dict[str, Any]:
        """Normalized JSON-ready form data with camelCase keys."""
        return self.model_dump(mode="json", by_alias=True)


# ============================================
# Cross-field rules
# ============================================


@dataclass(frozen=True)
class CrossFieldRule:
    """A rule over several fields, evaluated after the base schema passes."""

    field: str
    message: str
    violated: Callable[[ApplicationFormData], bool]


def _blank(value: str | None) -> bool:
    return value is None or not value.strip()


CROSS_FIELD_RULES: tuple[CrossFieldRule, ...] = (
    CrossFieldRule(
        field="personalInfo.impairmentDetails",
        message="is required when physicalImpairment is true",
        violated=lambda form: (
            form.personal_info.physical_impairment
            and _blank(form.personal_info.impairment_details)
        ),
    ),
)


# ============================================
# Validation entry point
# ============================================


def _field_path(loc: tuple[int | str, ...]) -> str:
    return ".".join(str(part) for part in loc) or "formData"


def _error_message(error: dict[str, Any]) -> str:
    error_type = error["type"]
    if error_type in ("missing", "string_too_short"):
        return REQUIRED_MESSAGE
    if error_type == "value_error" and "error" in error.get("ctx", {}):
        return str(error["ctx"]["error"])
    return error["msg"]


def _translate_errors(exc: PydanticValidationError) -> list[FieldError]:
    return [
        FieldError(field=_field_path(error["loc"]), message=_error_message(error))
        for error in exc.errors()
    ]


def validate_form_data(payload: Any) -> ApplicationFormData:
    """
    Validate a raw form payload.

    Args:
        payload: Decoded JSON form data (expected to be an object)

    Returns:
        The parsed, normalized form

    Raises:
        FormValidationError: With every violated field path and message
    """
    try:
        form = ApplicationFormData.model_validate(payload)
    except PydanticValidationError as e:
        raise FormValidationError(_translate_errors(e)) from e

    violations = [
        FieldError(field=rule.field, message=rule.message)
        for rule in CROSS_FIELD_RULES
        if rule.violated(form)
    ]
    if violations:
        raise FormValidationError(violations)

    return form
