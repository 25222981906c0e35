from __future__ import annotations

import re
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any, Final

from pydantic import BaseModel, ConfigDict, Field

from .errors import InquiryError, invalid_email, invalid_phone, missing_fields

EMAIL_RE: Final[re.Pattern[str]] = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]{2,}$")
NON_DIGIT_RE: Final[re.Pattern[str]] = re.compile(r"\D")
PHONE_DIGITS: Final[int] = 10


class InquiryForm(BaseModel):
    """
    One validated coaching inquiry.

    Holds the superset of fields across schema revisions; fields outside the
    active revision stay None.
    """

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    schema_version: str
    name: str
    role: str
    email: str
    grade: str
    time_per_week: str = Field(alias="timePerWeek")
    phone: str | None = None
    region: str | None = None
    school: str | None = None
    state_province: str | None = Field(default=None, alias="stateProvince")
    event_code: str | None = Field(default=None, alias="eventCode")
    event_type: str | None = Field(default=None, alias="eventType")


@dataclass(frozen=True)
class FieldSpec:
    key: str  # wire name, as submitted by the form
    label: str  # label used in the email body


@dataclass(frozen=True)
class SchemaRevision:
    version: str
    fields: tuple[FieldSpec, ...]
    requires_phone: bool = False
    reply_to: bool = False

    @property
    def keys(self) -> tuple[str, ...]:
        return tuple(f.key for f in self.fields)


NAME = FieldSpec("name", "Name")
ROLE = FieldSpec("role", "Parent/Student")
EMAIL = FieldSpec("email", "Email")
PHONE = FieldSpec("phone", "Phone")
GRADE = FieldSpec("grade", "Grade")
REGION = FieldSpec("region", "Region")
SCHOOL = FieldSpec("school", "School")
STATE_PROVINCE = FieldSpec("stateProvince", "State/Province")
EVENT_CODE = FieldSpec("eventCode", "Event Code")
EVENT_TYPE = FieldSpec("eventType", "Event Type")
TIME_PER_WEEK = FieldSpec("timePerWeek", "Time per week")

# v1: first version of the form (region + event code, email check only).
SCHEMA_V1 = SchemaRevision(
    version="v1",
    fields=(NAME, ROLE, EMAIL, GRADE, REGION, EVENT_CODE, TIME_PER_WEEK),
)

# v2 adds phone, school and state/province, and replies go to the submitter.
SCHEMA_V2 = SchemaRevision(
    version="v2",
    fields=(NAME, ROLE, EMAIL, PHONE, GRADE, SCHOOL, STATE_PROVINCE, EVENT_TYPE, TIME_PER_WEEK),
    requires_phone=True,
    reply_to=True,
)

SCHEMA_REVISIONS: Final[dict[str, SchemaRevision]] = {
    SCHEMA_V1.version: SCHEMA_V1,
    SCHEMA_V2.version: SCHEMA_V2,
}


def _clean(value: Any) -> str:
    """
    Render a submitted JSON scalar as form text.

    None, false, 0, lists and objects count as missing. true renders as
    "true" and integral floats drop the ".0" (5.0 -> "5").
    """
    if value is None or isinstance(value, (list, tuple, dict)):
        return ""
    if isinstance(value, bool):
        return "true" if value else ""
    if isinstance(value, (int, float)):
        if not value or value != value:  # 0 and NaN
            return ""
        if isinstance(value, float) and value.is_integer():
            return str(int(value))
        return str(value)
    return str(value).strip()


def is_valid_email(value: str) -> bool:
    return bool(EMAIL_RE.fullmatch(value))


def phone_digits(value: str) -> str:
    """Strip every formatting character, keeping only digits."""
    return NON_DIGIT_RE.sub("", value)


def is_valid_phone(value: str) -> bool:
    return len(phone_digits(value)) == PHONE_DIGITS


def validate_inquiry(
    data: Mapping[str, Any], revision: SchemaRevision
) -> InquiryForm | InquiryError:
    """
    Check a normalised body against a schema revision.

    Rules run in order and the first failure is returned:
      1. all required fields present and non-blank
      2. email shape
      3. phone has exactly 10 digits (only if the revision requires phone)
    """
    cleaned = {key: _clean(data.get(key)) for key in revision.keys}

    if not all(cleaned.values()):
        return missing_fields()

    if not is_valid_email(cleaned[EMAIL.key]):
        return invalid_email()

    if revision.requires_phone and not is_valid_phone(cleaned[PHONE.key]):
        return invalid_phone()

    return InquiryForm.model_validate({"schema_version": revision.version, **cleaned})


def field_value(form: InquiryForm, spec: FieldSpec) -> str:
    """Look up a form value by its wire name."""
    dumped = form.model_dump(by_alias=True)
    return dumped.get(spec.key) or ""
