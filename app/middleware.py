# /app/middleware.py
"""
Request pipeline, outermost first:

    RecoverPanicMiddleware -> LogRequestMiddleware -> HTTPMetricsMiddleware
    -> SecureHeadersMiddleware -> SessionMiddleware -> BodyLimitMiddleware

create_app() installs them in that order. SessionMiddleware only acts on
dynamic routes; static assets and /metrics pass straight through.
BodyLimitMiddleware sits next to the router so it owns the receive channel
the form parser reads from.
"""
import logging

from fastapi import HTTPException
from starlette.concurrency import run_in_threadpool
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import PlainTextResponse, Response
from starlette.types import ASGIApp, Message, Receive, Scope, Send

from application import RequestContext
from methods.errors import NotFoundError
from methods.manager.SessionManager import USER_KEY
from security.csrf import decode_base_token, new_base_token

logger = logging.getLogger(__name__)

STATIC_PREFIXES = ("/static/", "/metrics")

SECURE_HEADERS = {
    "X-XSS-Protection": "1; mode=block",
    "X-Frame-Options": "deny",
    "X-Content-Type-Options": "nosniff",
    "Referrer-Policy": "same-origin",
}


def is_dynamic(path: str) -> bool:
    return path != "/static" and not path.startswith(STATIC_PREFIXES)


def persist_request_context(request: Request, response: Response) -> None:
    """Write back the session (if modified) and a freshly issued CSRF cookie."""
    ctx = getattr(request.state, "ctx", None)
    if ctx is None:
        return
    application = request.app.state.application
    application.sessions.commit(ctx.session, response)
    if ctx.csrf_cookie_is_new:
        settings = application.settings
        response.set_cookie(
            key=settings.CSRF_COOKIE_NAME,
            value=ctx.csrf_cookie,
            max_age=settings.CSRF_COOKIE_MAX_AGE,
            path="/",
            httponly=True,
            secure=settings.cookie_secure,
            samesite="lax",
        )
        ctx.csrf_cookie_is_new = False


class RecoverPanicMiddleware(BaseHTTPMiddleware):
    """Any uncaught exception becomes a generic 500; the connection is not reused."""

    async def dispatch(self, request: Request, call_next):
        try:
            return await call_next(request)
        except Exception:
            logger.exception("middleware.py: Unhandled error on %s %s", request.method, request.url.path)
            response = PlainTextResponse(
                "Internal Server Error", status_code=500, headers={**SECURE_HEADERS, "Connection": "close"}
            )
            persist_request_context(request, response)
            return response


class LogRequestMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next):
        client = request.client.host if request.client else "-"
        if request.client:
            client = f"{client}:{request.client.port}"
        uri = request.url.path
        if request.url.query:
            uri = f"{uri}?{request.url.query}"
        logger.info("%s - HTTP/%s %s %s", client, request.scope.get("http_version", "1.1"), request.method, uri)
        return await call_next(request)


class SecureHeadersMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next):
        response = await call_next(request)
        for k, v in SECURE_HEADERS.items():
            response.headers[k] = v
        return response


class BodyLimitMiddleware:
    """
    Rejects request bodies over max_bytes with 400. A declared Content-Length
    is checked up front; streamed (chunked) bodies are counted as they are
    received and fail the read that crosses the limit.
    """

    def __init__(self, app: ASGIApp, max_bytes: int) -> None:
        self.app = app
        self.max_bytes = max_bytes

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        request = Request(scope)
        length = request.headers.get("content-length")
        if length is not None and (not length.isdigit() or int(length) > self.max_bytes):
            self._reject(request, length)
            await PlainTextResponse("Bad Request", status_code=400)(scope, receive, send)
            return

        received = 0

        async def limited_receive() -> Message:
            nonlocal received
            message = await receive()
            if message["type"] == "http.request":
                received += len(message.get("body", b""))
                if received > self.max_bytes:
                    self._reject(request, f">{received}")
                    raise HTTPException(status_code=400, detail="Bad Request")
            return message

        await self.app(scope, limited_receive, send)

    def _reject(self, request: Request, length) -> None:
        logger.warning(
            "middleware.py: Rejected %s %s: body of %s bytes over limit %s",
            request.method, request.url.path, length, self.max_bytes,
        )


class SessionMiddleware(BaseHTTPMiddleware):
    """
    Loads the session and CSRF cookie, rehydrates the authenticated account
    and exposes them as request.state.ctx. A session id whose account is gone
    is dropped and the request continues anonymously.
    """

    async def dispatch(self, request: Request, call_next):
        if not is_dynamic(request.url.path):
            return await call_next(request)

        application = request.app.state.application
        session = application.sessions.load(request)

        csrf_cookie = request.cookies.get(application.settings.CSRF_COOKIE_NAME)
        csrf_is_new = decode_base_token(csrf_cookie) is None
        if csrf_is_new:
            csrf_cookie = new_base_token()

        ctx = RequestContext(session=session, csrf_cookie=csrf_cookie, csrf_cookie_is_new=csrf_is_new)
        request.state.ctx = ctx

        if session.exists(USER_KEY):
            user_id = session.get_int(USER_KEY)
            if user_id is None:
                session.remove(USER_KEY)
            else:
                try:
                    ctx.user = await run_in_threadpool(application.accounts.get, user_id)
                except NotFoundError:
                    logger.info("middleware.py: Session refers to missing account %s; continuing anonymously", user_id)
                    session.remove(USER_KEY)

        response = await call_next(request)
        persist_request_context(request, response)
        return response
