from __future__ import annotations

import logging
import re
from uuid import uuid4

from fastapi import FastAPI, Request

from edulink.core.logging import payment_reference_ctx, request_id_ctx

logger = logging.getLogger(__name__)

REQUEST_ID_HEADER = "X-Request-ID"
_REQUEST_ID_RE = re.compile(r"^[A-Za-z0-9._:-]{1,128}$")


def resolve_request_id(raw: str | None) -> str:
    """Reuse a caller-supplied request id when it is sane, otherwise mint one."""
    candidate = (raw or "").strip()
    if candidate and _REQUEST_ID_RE.match(candidate):
        return candidate
    return uuid4().hex


def register_request_context_middleware(app: FastAPI) -> None:
    @app.middleware("http")
    async def request_context_middleware(request: Request, call_next):
        request_id = resolve_request_id(request.headers.get(REQUEST_ID_HEADER))
        request.state.request_id = request_id
        request_token = request_id_ctx.set(request_id)
        payment_token = payment_reference_ctx.set("")
        try:
            response = await call_next(request)
        finally:
            payment_reference_ctx.reset(payment_token)
            request_id_ctx.reset(request_token)
        response.headers[REQUEST_ID_HEADER] = request_id
        return response
