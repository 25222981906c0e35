from __future__ import annotations

from collections.abc import Callable
from typing import Any

import pytest

from coach_inquiry.config import PASS_ENV_ALIASES, USER_ENV_ALIASES, Settings
from coach_inquiry.message import OutboundMessage

OTHER_ENV_VARS = (
    "EMAIL_TO",
    "CORS_ORIGIN",
    "VERCEL_URL",
    "INQUIRY_SCHEMA",
    "SMTP_HOST",
    "SMTP_PORT",
    "SMTP_TIMEOUT",
    "SMTP_VERIFY",
    "LOG_LEVEL",
)


class FakeMailer:
    """Records verify/send calls instead of talking to a relay."""

    def __init__(
        self,
        verify_error: Exception | None = None,
        send_error: Exception | None = None,
        message_id: str = "<fake-id@example.com>",
    ) -> None:
        self.verify_error = verify_error
        self.send_error = send_error
        self.message_id = message_id
        self.verify_calls = 0
        self.sent: list[OutboundMessage] = []

    def verify(self) -> None:
        self.verify_calls += 1
        if self.verify_error is not None:
            raise self.verify_error

    def send(self, message: OutboundMessage) -> str:
        if self.send_error is not None:
            raise self.send_error
        self.sent.append(message)
        return self.message_id


class RecordingFactory:
    """Mailer factory that hands out one FakeMailer and counts how often it was asked."""

    def __init__(self, mailer: FakeMailer) -> None:
        self.mailer = mailer
        self.calls = 0

    def __call__(self, settings: Settings) -> FakeMailer:
        self.calls += 1
        return self.mailer


@pytest.fixture(autouse=True)
def clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep the developer's real credentials / .env values out of every test."""
    for name in (*USER_ENV_ALIASES, *PASS_ENV_ALIASES, *OTHER_ENV_VARS):
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def valid_payload() -> dict[str, str]:
    return {
        "name": "A",
        "role": "parent",
        "email": "a@b.co",
        "phone": "555-123-4567",
        "grade": "5",
        "school": "X",
        "stateProvince": "CA",
        "eventType": "Math",
        "timePerWeek": "2",
    }


@pytest.fixture
def v1_payload() -> dict[str, str]:
    return {
        "name": "B",
        "role": "student",
        "email": "b@c.org",
        "grade": "8",
        "region": "Northeast",
        "eventCode": "E-42",
        "timePerWeek": "3 hours",
    }


@pytest.fixture
def make_settings() -> Callable[..., Settings]:
    def _make(**overrides: Any) -> Settings:
        values: dict[str, Any] = {
            "smtp_user": "coach@example.com",
            "smtp_password": "app-password",
            "email_to": [],
            "cors_origin": "*",
            "inquiry_schema": "v2",
        }
        values.update(overrides)
        return Settings(**values)

    return _make


@pytest.fixture
def settings(make_settings: Callable[..., Settings]) -> Settings:
    return make_settings()
