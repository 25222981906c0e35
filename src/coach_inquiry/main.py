from __future__ import annotations

from contextlib import asynccontextmanager

from fastapi import Depends, FastAPI, Request, Response
from fastapi.responses import JSONResponse

from .body import read_body
from .config import Settings, get_settings
from .errors import InquiryError, method_not_allowed
from .logging_config import setup_logging
from .mailer import smtp_mailer
from .pipeline import MailerFactory, handle_inquiry

SEND_EMAIL_PATH = "/api/send-email"
ALLOWED_METHODS = "POST, OPTIONS"

# Route accepts every verb so anything but POST/OPTIONS gets our JSON 405.
ROUTE_METHODS = ["GET", "HEAD", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"]


def cors_headers(settings: Settings) -> dict[str, str]:
    return {
        "Access-Control-Allow-Origin": settings.cors_origin,
        "Access-Control-Allow-Methods": ALLOWED_METHODS,
        "Access-Control-Allow-Headers": "Content-Type",
    }


def app_settings(request: Request) -> Settings:
    return request.app.state.settings


def app_mailer_factory(request: Request) -> MailerFactory:
    return request.app.state.mailer_factory


def create_app(
    settings: Settings | None = None,
    mailer_factory: MailerFactory = smtp_mailer,
) -> FastAPI:
    """
    Build the intake app.

    Settings and the mailer factory are injected so tests can run the full
    HTTP flow against a fake relay. Serve with:

      uvicorn --factory coach_inquiry.main:create_app
    """
    settings = settings or get_settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        # Startup: configure logging once before serving requests
        setup_logging(settings.log_level)
        yield

    app = FastAPI(title="coach-inquiry", version="0.2.0", lifespan=lifespan)
    app.state.settings = settings
    app.state.mailer_factory = mailer_factory

    @app.get("/healthz")
    def healthz(settings: Settings = Depends(app_settings)) -> dict[str, str]:
        """Liveness probe. Reports the active schema revision, never credentials."""
        return {"status": "ok", "schema": settings.inquiry_schema}

    @app.api_route(SEND_EMAIL_PATH, methods=ROUTE_METHODS)
    async def send_email(
        request: Request,
        settings: Settings = Depends(app_settings),
        mailer_factory: MailerFactory = Depends(app_mailer_factory),
    ) -> Response:
        """
        Coaching inquiry form endpoint.

        Accepts JSON or URL-encoded bodies:

          {"name": "A", "role": "parent", "email": "a@b.co", ...}

        Returns {"ok": true, "id": ...} once the relay accepted the email.
        """
        headers = cors_headers(settings)

        if request.method == "OPTIONS":
            return Response(status_code=204, headers=headers)

        if request.method != "POST":
            error = method_not_allowed()
            return JSONResponse(
                error.to_payload(),
                status_code=error.status_code,
                headers={**headers, "Allow": ALLOWED_METHODS},
            )

        data = await read_body(request)
        result = await handle_inquiry(data, settings, mailer_factory)

        if isinstance(result, InquiryError):
            return JSONResponse(result.to_payload(), status_code=result.status_code, headers=headers)

        return JSONResponse({"ok": True, "id": result.message_id}, headers=headers)

    return app
