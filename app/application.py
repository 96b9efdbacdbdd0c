# /app/application.py
from __future__ import annotations
from dataclasses import dataclass
from typing import Optional

from fastapi import Depends, HTTPException, Request, status
from sqlalchemy.engine import Engine

from configs.config import Settings
from methods.auth.auth import AccountStore
from methods.database.models import Account
from methods.manager.SessionManager import Session, SessionManager
from methods.manager.SnippetManager import SnippetStore
from utils import TemplateCache


@dataclass
class Application:
    """Everything a handler needs; built once by create_app()."""
    settings: Settings
    engine: Engine
    templates: TemplateCache
    accounts: AccountStore
    snippets: SnippetStore
    sessions: SessionManager


@dataclass
class RequestContext:
    """Per-request state filled in by the session middleware."""
    session: Session
    csrf_cookie: str
    csrf_cookie_is_new: bool = False
    user: Optional[Account] = None


class LoginRequired(Exception):
    """Raised by the authentication gate; turned into a redirect to the login page."""


def get_application(request: Request) -> Application:
    return request.app.state.application


def get_request_context(request: Request) -> RequestContext:
    ctx = getattr(request.state, "ctx", None)
    if ctx is None:
        # route mounted outside the session middleware
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Internal Server Error")
    return ctx


def require_authenticated_user(ctx: RequestContext = Depends(get_request_context)) -> Account:
    if ctx.user is None:
        raise LoginRequired()
    return ctx.user
