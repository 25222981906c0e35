from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any


class ErrorKind(str, Enum):
    METHOD_NOT_ALLOWED = "method_not_allowed"
    MISSING_FIELDS = "missing_fields"
    INVALID_EMAIL = "invalid_email"
    INVALID_PHONE = "invalid_phone"
    CONFIGURATION = "configuration"
    DELIVERY = "delivery"


_STATUS_BY_KIND: dict[ErrorKind, int] = {
    ErrorKind.METHOD_NOT_ALLOWED: 405,
    ErrorKind.MISSING_FIELDS: 400,
    ErrorKind.INVALID_EMAIL: 400,
    ErrorKind.INVALID_PHONE: 400,
    ErrorKind.CONFIGURATION: 500,
    ErrorKind.DELIVERY: 500,
}


@dataclass(frozen=True)
class InquiryError:
    """
    Error branch of every pipeline stage.

    Stages return this instead of raising, and the route turns it into a
    JSON response with `status_code` / `to_payload()`.
    """

    kind: ErrorKind
    message: str
    details: str | None = None
    checked: dict[str, dict[str, bool]] | None = None

    @property
    def status_code(self) -> int:
        return _STATUS_BY_KIND[self.kind]

    def to_payload(self) -> dict[str, Any]:
        payload: dict[str, Any] = {"error": self.message}
        if self.details is not None:
            payload["details"] = self.details
        if self.checked is not None:
            payload["checked"] = self.checked
        return payload


class DeliveryError(Exception):
    """Raised by the SMTP transport; carries the relay diagnostic in its message."""


def method_not_allowed() -> InquiryError:
    return InquiryError(ErrorKind.METHOD_NOT_ALLOWED, "Method not allowed")


def missing_fields() -> InquiryError:
    return InquiryError(ErrorKind.MISSING_FIELDS, "Missing required fields")


def invalid_email() -> InquiryError:
    return InquiryError(ErrorKind.INVALID_EMAIL, "Invalid email")


def invalid_phone() -> InquiryError:
    return InquiryError(ErrorKind.INVALID_PHONE, "Invalid phone")


def missing_credentials(checked: dict[str, dict[str, bool]]) -> InquiryError:
    return InquiryError(
        ErrorKind.CONFIGURATION,
        "Missing gmail_user/gmail_pass env vars",
        checked=checked,
    )


def delivery_failed(exc: BaseException) -> InquiryError:
    return InquiryError(ErrorKind.DELIVERY, "Server error", details=str(exc) or repr(exc))
