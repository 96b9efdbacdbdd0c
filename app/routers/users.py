# /app/routers/users.py
import logging

from fastapi import APIRouter, Depends, Form, Request, status
from fastapi.responses import HTMLResponse, RedirectResponse

from application import (
    Application,
    RequestContext,
    get_application,
    get_request_context,
    require_authenticated_user,
)
from methods.database.models import Account
from methods.errors import DuplicateEmailError, InvalidCredentialsError, ValidationError
from methods.forms.forms import SignupForm, validate_form
from methods.manager.SessionManager import FLASH_KEY, USER_KEY
from routers.pages import FormView, render
from security.csrf import verify_csrf

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/user", tags=["users"])


@router.get("/signup", response_class=HTMLResponse)
def signup_form(request: Request):
    return render(request, "signup.page.html")


@router.post("/signup", dependencies=[Depends(verify_csrf)])
def signup(
    request: Request,
    name: str = Form(""),
    email: str = Form(""),
    password: str = Form(""),
    app: Application = Depends(get_application),
    ctx: RequestContext = Depends(get_request_context),
):
    try:
        form = validate_form(SignupForm, {"name": name, "email": email, "password": password})
    except ValidationError as e:
        e.values.pop("password", None)
        return render(
            request, "signup.page.html",
            {"form": FormView(e.values, e.errors)},
            status_code=status.HTTP_400_BAD_REQUEST,
        )

    try:
        app.accounts.create(form.name, form.email, form.password)
    except DuplicateEmailError:
        view = FormView({"name": form.name, "email": form.email})
        view.add_error("email", "Address is already in use")
        return render(request, "signup.page.html", {"form": view}, status_code=status.HTTP_400_BAD_REQUEST)

    ctx.session.put(FLASH_KEY, "Your signup was successful. Please log in.")
    return RedirectResponse("/user/login", status_code=status.HTTP_303_SEE_OTHER)


@router.get("/login", response_class=HTMLResponse)
def login_form(request: Request):
    return render(request, "login.page.html")


@router.post("/login", dependencies=[Depends(verify_csrf)])
def login(
    request: Request,
    email: str = Form(""),
    password: str = Form(""),
    app: Application = Depends(get_application),
    ctx: RequestContext = Depends(get_request_context),
):
    try:
        account_id = app.accounts.authenticate(email, password)
    except InvalidCredentialsError:
        view = FormView({"email": email})
        view.add_error("generic", "Email or Password is incorrect")
        return render(request, "login.page.html", {"form": view}, status_code=status.HTTP_400_BAD_REQUEST)

    ctx.session.put(USER_KEY, account_id)
    logger.info("users.py: account %s logged in", account_id)
    return RedirectResponse("/snippet/create", status_code=status.HTTP_303_SEE_OTHER)


@router.post("/logout", dependencies=[Depends(verify_csrf)])
def logout(
    user: Account = Depends(require_authenticated_user),
    ctx: RequestContext = Depends(get_request_context),
):
    ctx.session.remove(USER_KEY)
    ctx.session.put(FLASH_KEY, "You've been logged out successfully!")
    logger.info("users.py: account %s logged out", user.id)
    return RedirectResponse("/", status_code=status.HTTP_303_SEE_OTHER)
