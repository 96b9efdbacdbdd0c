# /app/methods/forms/forms.py
import re
from typing import Dict, List, Mapping, Type

from pydantic import BaseModel, ConfigDict, field_validator
from pydantic import ValidationError as PydanticValidationError
from pydantic_core import PydanticCustomError

from methods.errors import ValidationError

# W3C HTML living standard pattern for a valid e-mail address
EMAIL_RX = re.compile(
    r"^[a-zA-Z0-9.!#$%&'*+/=?^_`{|}~-]+@[a-zA-Z0-9](?:[a-zA-Z0-9-]{0,61}[a-zA-Z0-9])?"
    r"(?:\.[a-zA-Z0-9](?:[a-zA-Z0-9-]{0,61}[a-zA-Z0-9])?)*$"
)

TITLE_MAX_LENGTH = 100
PASSWORD_MIN_LENGTH = 10
PERMITTED_EXPIRES = ("365", "7", "1")


def _required(v: str) -> str:
    if not v or not v.strip():
        raise PydanticCustomError("blank", "This field cannot be blank")
    return v


def _max_length(v: str, n: int) -> str:
    # len() counts code points, not bytes
    if len(v) > n:
        raise PydanticCustomError("too_long", "This field is too long (maximum is {n} characters)", {"n": n})
    return v


def _min_length(v: str, n: int) -> str:
    if len(v) < n:
        raise PydanticCustomError("too_short", "This field is too short (minimum is {n} characters)", {"n": n})
    return v


def _invalid() -> PydanticCustomError:
    return PydanticCustomError("invalid", "This field is invalid")


class _Form(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=False, extra="ignore")


class SnippetForm(_Form):
    title: str = ""
    content: str = ""
    expires: str = ""

    @field_validator("title")
    @classmethod
    def _title(cls, v: str) -> str:
        return _max_length(_required(v), TITLE_MAX_LENGTH)

    @field_validator("content")
    @classmethod
    def _content(cls, v: str) -> str:
        return _required(v)

    @field_validator("expires")
    @classmethod
    def _expires(cls, v: str) -> str:
        _required(v)
        if v not in PERMITTED_EXPIRES:
            raise _invalid()
        return v

    @property
    def expiry_days(self) -> int:
        return int(self.expires)


class SignupForm(_Form):
    name: str = ""
    email: str = ""
    password: str = ""

    @field_validator("name")
    @classmethod
    def _name(cls, v: str) -> str:
        return _required(v)

    @field_validator("email")
    @classmethod
    def _email(cls, v: str) -> str:
        _required(v)
        if not EMAIL_RX.match(v):
            raise _invalid()
        return v

    @field_validator("password")
    @classmethod
    def _password(cls, v: str) -> str:
        return _min_length(_required(v), PASSWORD_MIN_LENGTH)


def validate_form(form_cls: Type[BaseModel], values: Mapping[str, str]):
    """Builds form_cls from raw values or raises ValidationError with one list of messages per field."""
    raw = {name: str(values.get(name) or "") for name in form_cls.model_fields}
    try:
        return form_cls(**raw)
    except PydanticValidationError as e:
        errors: Dict[str, List[str]] = {}
        for err in e.errors():
            field = str(err["loc"][0]) if err.get("loc") else "generic"
            errors.setdefault(field, []).append(err["msg"])
        raise ValidationError(errors, values=raw) from None
