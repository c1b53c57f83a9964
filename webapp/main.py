from __future__ import annotations

import json
import logging
import secrets
import sqlite3
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Dict, Iterator

from fastapi import APIRouter, Depends, FastAPI, File, Query, Request, UploadFile
from fastapi.responses import JSONResponse, Response
from fastapi.staticfiles import StaticFiles
from fastapi.templating import Jinja2Templates
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.middleware.sessions import SessionMiddleware

from finance_tracker.config import load_config
from finance_tracker.core.errors import TrackerError, UploadError
from finance_tracker.core.models import TransactionFields
from finance_tracker.database import (
    connect,
    create_transaction,
    delete_transaction,
    export_transactions,
    get_transaction,
    import_transactions,
    query_transactions,
    transaction_stats,
    update_transaction,
)
from finance_tracker.filters import TransactionFilter
from finance_tracker.loaders import CSVLoader
from finance_tracker.outputs import CSVOutput
from webapp.security import csrf_token, require_csrf

logger = logging.getLogger(__name__)

SERVICE_NAME = "MicDog Finance Tracker API"
BASE_DIR = Path(__file__).resolve().parent
templates = Jinja2Templates(directory=str(BASE_DIR / "templates"))


def get_connection(request: Request) -> Iterator[sqlite3.Connection]:
    with connect(request.app.state.db_path) as conn:
        yield conn


def get_filters(
    date_from: str | None = Query(default=None, alias="from"),
    date_to: str | None = Query(default=None, alias="to"),
    category: str | None = None,
    q: str | None = None,
) -> TransactionFilter:
    return TransactionFilter(date_from=date_from, date_to=date_to, category=category, q=q)


async def get_fields(request: Request) -> TransactionFields:
    body = await request.body()
    try:
        payload = json.loads(body) if body else {}
    except ValueError:
        payload = {}
    if not isinstance(payload, dict):
        payload = {}
    return TransactionFields.from_payload(payload)


router = APIRouter(dependencies=[Depends(require_csrf)])


@router.get("/")
def service_info():
    return {"ok": True, "service": SERVICE_NAME}


@router.get("/csrf")
def get_csrf(request: Request):
    return {"token": csrf_token(request)}


@router.get("/transactions")
def list_transactions(
    filters: TransactionFilter = Depends(get_filters),
    conn: sqlite3.Connection = Depends(get_connection),
):
    return {"items": [tx.to_dict() for tx in query_transactions(conn, filters)]}


@router.post("/transactions", status_code=201)
def add_transaction(
    fields: TransactionFields = Depends(get_fields),
    conn: sqlite3.Connection = Depends(get_connection),
):
    tx = create_transaction(conn, fields)
    logger.info("Created transaction %s", tx.id)
    return {"item": tx.to_dict()}


@router.get("/transactions/{tx_id:int}")
def read_transaction(tx_id: int, conn: sqlite3.Connection = Depends(get_connection)):
    return {"item": get_transaction(conn, tx_id).to_dict()}


@router.put("/transactions/{tx_id:int}")
def edit_transaction(
    tx_id: int,
    fields: TransactionFields = Depends(get_fields),
    conn: sqlite3.Connection = Depends(get_connection),
):
    tx = update_transaction(conn, tx_id, fields)
    return {"item": tx.to_dict() if tx else None}


@router.delete("/transactions/{tx_id:int}")
def remove_transaction(tx_id: int, conn: sqlite3.Connection = Depends(get_connection)):
    return {"deleted": delete_transaction(conn, tx_id)}


@router.get("/stats")
def stats(
    filters: TransactionFilter = Depends(get_filters),
    conn: sqlite3.Connection = Depends(get_connection),
):
    return transaction_stats(conn, filters).to_dict()


@router.get("/export")
def export_csv(
    filters: TransactionFilter = Depends(get_filters),
    conn: sqlite3.Connection = Depends(get_connection),
):
    body = CSVOutput().render(export_transactions(conn, filters))
    return Response(
        content=body,
        media_type="text/csv",
        headers={"Content-Disposition": 'attachment; filename="transactions.csv"'},
    )


@router.post("/import")
def import_csv(
    file: UploadFile | None = File(default=None),
    conn: sqlite3.Connection = Depends(get_connection),
):
    if file is None or not file.filename:
        raise UploadError()
    try:
        count = import_transactions(conn, CSVLoader().load(file.file))
    finally:
        file.file.close()
    return {"imported": count}


def _register_error_handlers(app: FastAPI) -> None:
    @app.exception_handler(TrackerError)
    async def tracker_error(request: Request, exc: TrackerError) -> JSONResponse:
        return JSONResponse(exc.payload(), status_code=exc.status_code)

    @app.exception_handler(StarletteHTTPException)
    async def http_error(request: Request, exc: StarletteHTTPException) -> JSONResponse:
        if exc.status_code == 404:
            payload: Dict[str, object] = {"error": "Not found", "path": request.url.path}
        elif exc.status_code == 405:
            payload = {"error": "Method not allowed"}
        else:
            payload = {"error": exc.detail}
        return JSONResponse(payload, status_code=exc.status_code, headers=exc.headers)

    @app.exception_handler(Exception)
    async def server_error(request: Request, exc: Exception) -> JSONResponse:
        logger.error(
            "Unhandled error on %s %s", request.method, request.url.path, exc_info=exc
        )
        return JSONResponse({"error": "Server error", "message": str(exc)}, status_code=500)


def create_app(config: Dict[str, object] | None = None) -> FastAPI:
    """Build the web application around an explicit configuration."""
    config = config or load_config()
    db_path = str(config["db_path"])
    secret_key = config.get("secret_key")
    if not secret_key:
        logger.warning("No secret_key configured; sessions will not survive a restart")
        secret_key = secrets.token_hex(32)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        with connect(db_path):
            logger.info("Using database %s", db_path)
        yield

    app = FastAPI(title="MicDog Finance Tracker", lifespan=lifespan)
    app.state.config = config
    app.state.db_path = db_path
    app.add_middleware(
        SessionMiddleware,
        secret_key=str(secret_key),
        session_cookie=str(config.get("session_cookie") or "micdog_session"),
    )
    app.mount("/static", StaticFiles(directory=str(BASE_DIR / "static")), name="static")
    app.include_router(router, prefix="/api")
    _register_error_handlers(app)

    @app.get("/", include_in_schema=False)
    def index(request: Request):
        return templates.TemplateResponse(
            request, "index.html", {"csrf_token": csrf_token(request)}
        )

    return app
