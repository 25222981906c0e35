from __future__ import annotations

import logging
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from typing import Any

from starlette.concurrency import run_in_threadpool

from .config import Settings
from .errors import DeliveryError, InquiryError, delivery_failed, missing_credentials
from .inquiry import validate_inquiry
from .mailer import Mailer
from .message import compose_message

log = logging.getLogger(__name__)

MailerFactory = Callable[[Settings], Mailer]


@dataclass
class PipelineResult:
    message_id: str


async def handle_inquiry(
    data: Mapping[str, Any],
    settings: Settings,
    mailer_factory: MailerFactory,
) -> PipelineResult | InquiryError:
    """
    Run one submission through the whole intake flow:
    - validates the normalised body against the active schema revision
    - checks credentials before touching the network
    - composes the email
    - verifies the relay login (optional), then sends once

    Every failure comes back as an InquiryError; nothing is retried.
    """
    # 1. Validate
    form = validate_inquiry(data, settings.schema_revision)
    if isinstance(form, InquiryError):
        log.info("Rejected inquiry: %s", form.kind.value)
        return form

    # 2. Credentials must exist before any mailer is built
    if not settings.has_credentials():
        checked = settings.credential_report()
        log.error("SMTP credentials missing; env aliases set: %s", checked)
        return missing_credentials(checked)

    # 3. Compose
    message = compose_message(
        form,
        sender=settings.smtp_user,
        recipients=settings.recipients(),
    )

    # 4. Verify + send (blocking smtplib, so off the event loop)
    mailer = mailer_factory(settings)
    try:
        if settings.verify_before_send:
            await run_in_threadpool(mailer.verify)
        message_id = await run_in_threadpool(mailer.send, message)
    except DeliveryError as exc:
        log.error("send-email error: %s", exc)
        return delivery_failed(exc)
    except Exception as exc:
        log.exception("send-email unexpected error")
        return delivery_failed(exc)

    log.info("Inquiry sent to %d recipient(s), id=%s", len(message.recipients), message_id)
    return PipelineResult(message_id=message_id)
