# /app/routers/snippets.py
import logging

from fastapi import APIRouter, Depends, Form, HTTPException, Request, status
from fastapi.responses import HTMLResponse, RedirectResponse

from application import Application, get_application, require_authenticated_user
from methods.database.models import Account
from methods.errors import NotFoundError, ValidationError
from methods.forms.forms import SnippetForm, validate_form
from methods.manager.SessionManager import FLASH_KEY
from routers.pages import FormView, render
from security.csrf import verify_csrf
from utils import parse_snippet_id

logger = logging.getLogger(__name__)

router = APIRouter(tags=["snippets"])

LATEST_LIMIT = 10


@router.get("/", response_class=HTMLResponse)
def home(request: Request, app: Application = Depends(get_application)):
    snippets = app.snippets.latest(LATEST_LIMIT)
    return render(request, "home.page.html", {"snippets": snippets})


@router.get("/snippet/create", response_class=HTMLResponse)
def create_snippet_form(request: Request, user: Account = Depends(require_authenticated_user)):
    return render(request, "create.page.html", {"form": FormView({"expires": "365"})})


@router.post("/snippet/create", dependencies=[Depends(verify_csrf)])
def create_snippet(
    request: Request,
    title: str = Form(""),
    content: str = Form(""),
    expires: str = Form(""),
    user: Account = Depends(require_authenticated_user),
    app: Application = Depends(get_application),
):
    try:
        form = validate_form(SnippetForm, {"title": title, "content": content, "expires": expires})
    except ValidationError as e:
        logger.info("snippets.py: [create_snippet] invalid form from account %s: %s", user.id, sorted(e.errors))
        return render(
            request, "create.page.html",
            {"form": FormView(e.values, e.errors)},
            status_code=status.HTTP_400_BAD_REQUEST,
        )

    snippet_id = app.snippets.create(form.title, form.content, form.expiry_days)
    logger.info("snippets.py: [create_snippet] account %s created snippet %s", user.id, snippet_id)

    request.state.ctx.session.put(FLASH_KEY, "Snippet successfully created!")
    return RedirectResponse(f"/snippet/{snippet_id}", status_code=status.HTTP_303_SEE_OTHER)


@router.get("/snippet/{snippet_id}", response_class=HTMLResponse)
def show_snippet(snippet_id: str, request: Request, app: Application = Depends(get_application)):
    sid = parse_snippet_id(snippet_id)
    if sid is None:
        logger.info("snippets.py: [show_snippet] malformed id %r", snippet_id)
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Not Found")
    try:
        snippet = app.snippets.get(sid)
    except NotFoundError:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Not Found")
    return render(request, "show.page.html", {"snippet": snippet})
