from __future__ import annotations

from coach_inquiry.inquiry import SCHEMA_V1, SCHEMA_V2, InquiryForm, validate_inquiry
from coach_inquiry.message import SUBJECT, compose_message, render_body, to_email_message


def _form(payload: dict[str, str], revision=SCHEMA_V2) -> InquiryForm:
    form = validate_inquiry(payload, revision)
    assert isinstance(form, InquiryForm)
    return form


def test_body_follows_declared_order(valid_payload: dict[str, str]) -> None:
    # Reverse the submitted order: the body must not care.
    reversed_payload = dict(reversed(list(valid_payload.items())))
    body = render_body(_form(reversed_payload))

    assert body == "\n".join(
        [
            "Name: A",
            "Parent/Student: parent",
            "Email: a@b.co",
            "Phone: 555-123-4567",
            "Grade: 5",
            "School: X",
            "State/Province: CA",
            "Event Type: Math",
            "Time per week: 2",
        ]
    )


def test_v1_body(v1_payload: dict[str, str]) -> None:
    body = render_body(_form(v1_payload, SCHEMA_V1))

    assert body.splitlines() == [
        "Name: B",
        "Parent/Student: student",
        "Email: b@c.org",
        "Grade: 8",
        "Region: Northeast",
        "Event Code: E-42",
        "Time per week: 3 hours",
    ]


def test_compose_is_deterministic(valid_payload: dict[str, str]) -> None:
    form = _form(valid_payload)
    first = compose_message(form, sender="coach@example.com", recipients=["coach@example.com"])
    second = compose_message(form, sender="coach@example.com", recipients=["coach@example.com"])

    assert first == second
    assert first.subject == SUBJECT == "Coaching Inquiry"
    assert first.reply_to == "a@b.co"


def test_v1_has_no_reply_to(v1_payload: dict[str, str]) -> None:
    message = compose_message(_form(v1_payload, SCHEMA_V1), sender="c@x.com", recipients=["c@x.com"])
    assert message.reply_to is None


def test_email_message_headers(valid_payload: dict[str, str]) -> None:
    message = compose_message(
        _form(valid_payload),
        sender="coach@example.com",
        recipients=["one@example.com", "two@example.com"],
    )
    msg = to_email_message(message)

    assert msg["From"] == "coach@example.com"
    assert msg["To"] == "one@example.com, two@example.com"
    assert msg["Subject"] == "Coaching Inquiry"
    assert msg["Reply-To"] == "a@b.co"
    assert msg["Message-ID"].endswith("@example.com>")
    assert msg["Date"]
    assert msg.get_content_type() == "text/plain"
    assert msg.get_content().rstrip("\n") == message.body
