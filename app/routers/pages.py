# /app/routers/pages.py
import logging
from datetime import datetime, timezone
from typing import Dict, List, Optional

from fastapi import Request
from fastapi.responses import HTMLResponse

from application import get_application, get_request_context
from security.csrf import decode_base_token, mask_token

logger = logging.getLogger(__name__)


class FormView:
    """What a template needs to redisplay a form: submitted values and per-field errors."""

    def __init__(self, values: Optional[Dict[str, str]] = None, errors: Optional[Dict[str, List[str]]] = None) -> None:
        self.values = dict(values or {})
        self.errors = dict(errors or {})

    def get(self, field: str) -> str:
        return self.values.get(field, "")

    def error(self, field: str) -> str:
        msgs = self.errors.get(field) or []
        return msgs[0] if msgs else ""

    def add_error(self, field: str, message: str) -> None:
        self.errors.setdefault(field, []).append(message)

    @property
    def valid(self) -> bool:
        return not self.errors


def render(request: Request, name: str, data: Optional[dict] = None, status_code: int = 200) -> HTMLResponse:
    """Renders a cached page with the default data every page receives."""
    application = get_application(request)
    ctx = get_request_context(request)

    td = dict(data or {})
    td.setdefault("form", FormView())
    td["current_year"] = datetime.now(timezone.utc).year
    td["flash"] = ctx.session.pop_flash()
    td["authenticated_user"] = ctx.user
    td["csrf_token"] = mask_token(decode_base_token(ctx.csrf_cookie))

    # rendered fully before anything is written, so a template error still yields a clean 500
    body = application.templates.render(name, td)
    return HTMLResponse(body, status_code=status_code)
