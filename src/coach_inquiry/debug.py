from __future__ import annotations

import argparse
import json
import sys

from coach_inquiry.errors import InquiryError
from coach_inquiry.inquiry import SCHEMA_REVISIONS, validate_inquiry
from coach_inquiry.message import SUBJECT, render_body


def main(argv: list[str] | None = None) -> int:
    """Validate a JSON payload and print the email it would produce. Never sends."""
    parser = argparse.ArgumentParser(prog="coach-inquiry-preview")
    parser.add_argument("payload", type=str, help="JSON object, as the form would POST it")
    parser.add_argument("--schema", choices=sorted(SCHEMA_REVISIONS), default="v2")
    args = parser.parse_args(argv)

    try:
        data = json.loads(args.payload)
    except ValueError as exc:
        print(f"Payload is not valid JSON: {exc}", file=sys.stderr)
        return 2
    if not isinstance(data, dict):
        print("Payload must be a JSON object.", file=sys.stderr)
        return 2

    form = validate_inquiry(data, SCHEMA_REVISIONS[args.schema])
    if isinstance(form, InquiryError):
        print(f"rejected ({form.status_code}): {form.message}")
        return 1

    print(f"Subject: {SUBJECT}")
    print()
    print(render_body(form))
    return 0


if __name__ == "__main__":
    sys.exit(main())
