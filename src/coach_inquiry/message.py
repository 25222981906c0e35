from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from email.message import EmailMessage
from email.utils import formatdate, make_msgid
from typing import Final

from .inquiry import SCHEMA_REVISIONS, InquiryForm, field_value

SUBJECT: Final[str] = "Coaching Inquiry"


@dataclass(frozen=True)
class OutboundMessage:
    subject: str
    body: str
    sender: str
    recipients: tuple[str, ...]
    reply_to: str | None = None


def render_body(form: InquiryForm) -> str:
    """
    One `Label: value` line per field, in the revision's declared order.

    The order is what the coach reads in their inbox, so it never depends on
    how the submitted body happened to be ordered.
    """
    revision = SCHEMA_REVISIONS[form.schema_version]
    return "\n".join(f"{spec.label}: {field_value(form, spec)}" for spec in revision.fields)


def compose_message(form: InquiryForm, sender: str, recipients: Sequence[str]) -> OutboundMessage:
    revision = SCHEMA_REVISIONS[form.schema_version]
    return OutboundMessage(
        subject=SUBJECT,
        body=render_body(form),
        sender=sender,
        recipients=tuple(recipients),
        reply_to=form.email if revision.reply_to else None,
    )


def to_email_message(message: OutboundMessage) -> EmailMessage:
    """Build the wire-format email. Date and Message-ID are stamped here, not in compose."""
    sender_domain = message.sender.rpartition("@")[2] or None

    msg = EmailMessage()
    msg["From"] = message.sender
    msg["To"] = ", ".join(message.recipients)
    msg["Subject"] = message.subject
    if message.reply_to:
        msg["Reply-To"] = message.reply_to
    msg["Date"] = formatdate(localtime=False)
    msg["Message-ID"] = make_msgid(domain=sender_domain)
    msg.set_content(message.body)
    return msg
