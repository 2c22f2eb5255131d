"""
BillSense HTTP functions.
Start with: billsense serve  (or uvicorn billsense.server.app:app)
"""
import json
import logging
from typing import Any, Optional

from fastapi import APIRouter, FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ValidationError
from starlette.concurrency import run_in_threadpool

from billsense.config.settings import BillSenseSettings, get_config
from billsense.database.base import Database
from billsense.database.factories import create_sqlite_database
from billsense.email.dispatch import InvoiceEmailService
from billsense.email.invite import ClientInviteService

logger = logging.getLogger(__name__)

router = APIRouter(tags=["functions"])


class SendInvoiceEmailRequest(BaseModel):
    invoiceId: Optional[int] = None
    recipientEmail: Optional[str] = None
    recipientName: Optional[str] = None


def _db(request: Request) -> Database:
    return request.app.state.db


def _config(request: Request) -> BillSenseSettings:
    return request.app.state.config


@router.get("/health")
def health():
    """Check that the API is running."""
    return {"status": "ok", "message": "BillSense functions are running"}


async def _json_object(request: Request) -> Optional[dict[str, Any]]:
    """The request body as a dict, or None when it is not a JSON object."""
    try:
        payload = await request.json()
    except (json.JSONDecodeError, UnicodeDecodeError):
        return None
    return payload if isinstance(payload, dict) else None


def _send_invoice(db: Database, config: BillSenseSettings, req: SendInvoiceEmailRequest) -> tuple[dict, int]:
    try:
        service = InvoiceEmailService(db, config)
        return service.send_invoice_email(req.invoiceId, req.recipientEmail, req.recipientName)
    finally:
        db.release_session()


@router.post("/functions/send-invoice-email")
async def send_invoice_email(request: Request):
    """Send an invoice by e-mail; 200 on success, 400 with an error otherwise."""
    payload = await _json_object(request)
    if payload is None:
        return JSONResponse(content={"error": "Request body must be a JSON object"}, status_code=400)

    try:
        req = SendInvoiceEmailRequest.model_validate(payload)
    except ValidationError as e:
        first = e.errors()[0]
        field = ".".join(str(part) for part in first["loc"])
        return JSONResponse(content={"error": f"Invalid {field}: {first['msg']}"}, status_code=400)

    body, status = await run_in_threadpool(_send_invoice, _db(request), _config(request), req)
    return JSONResponse(content=body, status_code=status)


def _invite(db: Database, config: BillSenseSettings, payload: dict[str, Any]) -> tuple[dict, int]:
    try:
        service = ClientInviteService(db, config)
        client_id = payload.get("client_id")
        try:
            client_id = int(client_id) if client_id not in (None, "") else None
        except (TypeError, ValueError):
            return {"error": "Client ID must be a number"}, 200
        return service.invite_client_user(
            client_id, payload.get("email"), bool(payload.get("is_resend", False))
        )
    finally:
        db.release_session()


@router.post("/functions/invite-client-user")
async def invite_client_user(request: Request):
    """Invite a client portal user. Always answers 200; errors travel in the body."""
    payload = await _json_object(request)
    if payload is None:
        return JSONResponse(content={"error": "Request body must be a JSON object"}, status_code=200)

    body, status = await run_in_threadpool(_invite, _db(request), _config(request), payload)
    return JSONResponse(content=body, status_code=status)


def create_app(db: Optional[Database] = None, config: Optional[BillSenseSettings] = None) -> FastAPI:
    """Build the HTTP app around a database.

    Args:
        db: Database instance; a SQLite database from configuration when omitted
        config: Settings; the global configuration when omitted
    """
    config = config or get_config()
    if db is None:
        db = create_sqlite_database(config.db_path)
        db.connect()
        db.initialize_schema()

    app = FastAPI(
        title="BillSense Functions",
        description="Invoice e-mail dispatch and client portal invitations",
        version="0.1.0",
    )
    app.state.db = db
    app.state.config = config

    app.add_middleware(
        CORSMiddleware,
        allow_origins=[config.site_url.rstrip("/")],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.include_router(router)
    return app


_app: Optional[FastAPI] = None


def __getattr__(name):
    # Module-level app for `uvicorn billsense.server.app:app`, built once on first access
    global _app
    if name == "app":
        if _app is None:
            _app = create_app()
        return _app
    raise AttributeError(f"module '{__name__}' has no attribute '{name}'")
