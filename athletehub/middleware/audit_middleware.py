# athletehub/middleware/audit_middleware.py
from __future__ import annotations

import uuid
from typing import Callable

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware

from athletehub.utils.audit import write_audit_event


def _client_ip(request: Request) -> str:
    # Prefer X-Forwarded-For if present (proxies)
    xff = request.headers.get("x-forwarded-for")
    if xff:
        return xff.split(",")[0].strip()
    return request.client.host if request.client else ""


def _request_ctx(request: Request, request_id: str) -> dict:
    return {
        "request_id": request_id,
        "method": request.method,
        "path": request.url.path,
        "ip": _client_ip(request),
        "ua": request.headers.get("user-agent", ""),
    }


class AuditMiddleware(BaseHTTPMiddleware):
    """
    Adds request_id + writes an audit record for denied/failed requests.
    (Successful requests are not audited here; routes log their own activity.)
    """

    async def dispatch(self, request: Request, call_next: Callable):
        request_id = request.headers.get("x-request-id") or str(uuid.uuid4())
        request.state.request_id = request_id

        try:
            response = await call_next(request)
        except Exception as e:
            write_audit_event(
                action="server_error",
                ok=False,
                actor=getattr(request.state, "actor", None),
                err=repr(e),
                request_ctx=_request_ctx(request, request_id),
            )
            raise

        response.headers["x-request-id"] = request_id

        if response.status_code in (401, 403) or response.status_code >= 500:
            if response.status_code == 401:
                action = "auth_missing_or_invalid"
            elif response.status_code == 403:
                action = "permission_denied"
            else:
                action = "server_error"
            write_audit_event(
                action=action,
                ok=False,
                actor=getattr(request.state, "actor", None),
                err=f"HTTP {response.status_code}",
                request_ctx=_request_ctx(request, request_id),
            )

        return response
