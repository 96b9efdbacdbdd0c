# /app/main.py
import logging
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.responses import PlainTextResponse, RedirectResponse
from fastapi.staticfiles import StaticFiles
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.routing import Match, Mount

from configs.config import Settings, load_settings
from configs.log_config import configure_logging
from application import Application, LoginRequired
from methods.auth.auth import AccountStore
from methods.database.database import init_db, make_engine, make_session_factory
from methods.manager.SessionManager import SessionManager
from methods.manager.SnippetManager import SnippetStore
from middleware import (
    BodyLimitMiddleware,
    LogRequestMiddleware,
    RecoverPanicMiddleware,
    SecureHeadersMiddleware,
    SessionMiddleware,
)
from observability.db_metrics import init_db_metrics
from observability.metrics import router as metrics_router, install_http_metrics
from routers.snippets import router as snippets_router
from routers.users import router as users_router
from utils import TemplateCache

logger = logging.getLogger(__name__)


HTTP_VERBS = ("GET", "HEAD", "POST", "PUT", "PATCH", "DELETE", "OPTIONS")


def allowed_methods(app: FastAPI, path: str) -> list:
    """Every verb some route accepts for path, asking each route (or included router) per verb."""
    methods = set()
    for verb in HTTP_VERBS:
        for route in app.router.routes:
            scope = {
                "type": "http", "path": path, "root_path": "", "method": verb,
                "headers": [], "query_string": b"",
            }
            match, _ = route.matches(scope)
            if isinstance(route, Mount):
                # static mounts only serve reads
                if match != Match.NONE:
                    methods.update({"GET", "HEAD"})
            elif match == Match.FULL:
                methods.add(verb)
    return sorted(methods)


async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    headers = dict(exc.headers or {})
    if exc.status_code == 405:
        allow = allowed_methods(request.app, request.url.path)
        if allow:
            headers["Allow"] = ", ".join(allow)
    detail = exc.detail if isinstance(exc.detail, str) else "Error"
    return PlainTextResponse(detail, status_code=exc.status_code, headers=headers)


async def login_required_handler(request: Request, exc: LoginRequired):
    return RedirectResponse("/user/login", status_code=302)


def build_application(settings: Settings, engine=None) -> Application:
    engine = engine or make_engine(settings.DATABASE_URL, settings.DB_TIMEOUT_SECONDS)
    init_db(engine)
    init_db_metrics(engine)
    session_factory = make_session_factory(engine)

    return Application(
        settings=settings,
        engine=engine,
        templates=TemplateCache(settings.TEMPLATES_DIR),
        accounts=AccountStore(session_factory),
        snippets=SnippetStore(session_factory),
        sessions=SessionManager(
            settings.SECRET_KEY,
            algorithm=settings.ALGORITHM,
            lifetime_seconds=settings.session_lifetime_seconds,
            cookie_name=settings.SESSION_COOKIE_NAME,
            secure=settings.cookie_secure,
        ),
    )


def create_app(settings: Optional[Settings] = None, application: Optional[Application] = None) -> FastAPI:
    if application is None:
        settings = settings or load_settings()
        configure_logging(settings)
        application = build_application(settings)
    settings = application.settings

    app = FastAPI(title="snippetbox", docs_url=None, redoc_url=None, openapi_url=None)
    app.state.application = application

    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(LoginRequired, login_required_handler)

    # ---- Middleware (added innermost first) ----
    app.add_middleware(BodyLimitMiddleware, max_bytes=settings.MAX_FORM_BYTES)
    app.add_middleware(SessionMiddleware)
    app.add_middleware(SecureHeadersMiddleware)
    install_http_metrics(app)
    app.add_middleware(LogRequestMiddleware)
    app.add_middleware(RecoverPanicMiddleware)

    # ---- Routers ----
    app.include_router(snippets_router)
    app.include_router(users_router)
    app.include_router(metrics_router)

    # ---- Static ----
    app.mount("/static", StaticFiles(directory=settings.STATIC_DIR), name="static")

    logger.info("main.py: snippetbox app created (db=%s)", application.engine.url.render_as_string(hide_password=True))
    return app


if __name__ == "__main__":
    import uvicorn

    settings = load_settings()
    uvicorn.run(create_app(settings), host=settings.HOST, port=settings.PORT)
