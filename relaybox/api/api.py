"""
The HTTP API for the mailbox.

Endpoints:
  POST /api/v1/message/{id}/release   release a message to new recipients
  GET  /api/v1/message/{id}/headers   the message headers as JSON
  GET  /api/v1/message/{id}/raw       the original message source

The id can be `latest` to refer to the most recently captured message.
"""

import logging

import anyio
from fastapi import APIRouter, FastAPI, Request
from fastapi.responses import JSONResponse, PlainTextResponse, Response
from pydantic import BaseModel, ConfigDict, Field

from relaybox.errors import NotFound, ReleaseError
from relaybox.headers import HeaderBlock
from relaybox.release import ReleasePipeline
from relaybox.store import LATEST, MessageStore


logger = logging.getLogger(__name__)


class ReleaseMessageRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    to: list[str] = Field(alias="To")


def canonical_name(name: str) -> str:
    """
    Returns the conventional spelling of a header name, so that
    `MESSAGE-ID` and `Message-Id` are reported together.
    """
    return "-".join(part.capitalize() for part in name.split("-"))


def printable(value: str) -> str:
    # 8-bit bytes that are not UTF-8 become U+FFFD
    return value.encode("utf-8", "surrogateescape").decode("utf-8", "replace")


def not_found() -> PlainTextResponse:
    return PlainTextResponse("404 page not found", status_code=404, headers={"Referrer-Policy": "no-referrer"})


def http_error(message: str) -> PlainTextResponse:
    return PlainTextResponse(message, status_code=400, headers={"Referrer-Policy": "no-referrer"})


def create_app(pipeline: ReleasePipeline, store: MessageStore) -> FastAPI:
    app = FastAPI(title="relaybox")
    router = APIRouter(prefix="/api/v1")

    app.state.pipeline = pipeline
    app.state.store = store

    @app.exception_handler(NotFound)
    async def handle_not_found(request: Request, exc: NotFound) -> Response:
        logger.debug("Not found: %(reason)s", {"reason": str(exc)})
        return not_found()

    @app.exception_handler(ReleaseError)
    async def handle_release_error(request: Request, exc: ReleaseError) -> Response:
        logger.warning("Request failed with %(kind)s: %(reason)s", {"kind": exc.kind, "reason": str(exc)})
        return http_error(str(exc))

    @router.post("/message/{message_id}/release", response_class=PlainTextResponse)
    async def release_message(message_id: str, body: ReleaseMessageRequest) -> str:
        await anyio.to_thread.run_sync(pipeline.release, message_id, body.to)
        return "ok"

    @router.get("/message/{message_id}/headers")
    async def get_headers(message_id: str) -> JSONResponse:
        raw = await anyio.to_thread.run_sync(store.load_raw, message_id)

        headers: dict[str, list[str]] = {}
        for (name, value) in HeaderBlock.parse(raw).items():
            headers.setdefault(canonical_name(name), []).append(printable(value))

        return JSONResponse(headers)

    @router.get("/message/{message_id}/raw")
    async def download_raw(message_id: str, dl: str = "") -> Response:
        if message_id == LATEST:
            message_id = await anyio.to_thread.run_sync(store.latest_id)

        raw = await anyio.to_thread.run_sync(store.load_raw, message_id)

        headers = {}
        if dl == "1":
            headers["Content-Disposition"] = f'attachment; filename="{message_id}.eml"'

        return Response(raw, media_type="text/plain; charset=utf-8", headers=headers)

    app.include_router(router)

    return app
