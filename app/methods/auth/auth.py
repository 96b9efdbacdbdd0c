# /app/methods/auth/auth.py
import logging
from datetime import datetime, timezone
from typing import Callable, Optional

from passlib.context import CryptContext
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import sessionmaker

from methods.database.models import Account
from methods.errors import DuplicateEmailError, InvalidCredentialsError, NotFoundError, StoreError

logger = logging.getLogger(__name__)

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto", bcrypt__rounds=12)


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _is_duplicate_email(exc: IntegrityError) -> bool:
    # sqlite: "UNIQUE constraint failed: users.email"
    # mysql:  "Duplicate entry ... for key 'users_uc_email'"
    # pg:     "duplicate key value violates unique constraint \"users_uc_email\""
    msg = str(getattr(exc, "orig", exc)).lower()
    return "users_uc_email" in msg or "users.email" in msg


class AccountStore:
    """Durable account storage and password authentication."""

    def __init__(
        self,
        session_factory: sessionmaker,
        context: Optional[CryptContext] = None,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self.SessionLocal = session_factory
        self.pwd_context = context or pwd_context
        self.clock = clock
        self._dummy_hash: Optional[str] = None

    def hash_password(self, password: str) -> str:
        logger.debug("auth.py: Hashing a password")
        return self.pwd_context.hash(password)

    def verify_password(self, password: str, hashed_password: str) -> bool:
        return self.pwd_context.verify(password, hashed_password)

    def create(self, name: str, email: str, password: str) -> int:
        hashed = self.hash_password(password)
        created = self.clock().astimezone(timezone.utc).replace(tzinfo=None)
        account = Account(name=name, email=email, hashed_password=hashed, created=created)

        with self.SessionLocal() as db:
            try:
                db.add(account)
                db.commit()
            except IntegrityError as e:
                db.rollback()
                if _is_duplicate_email(e):
                    logger.info("auth.py: Signup rejected, email already registered")
                    raise DuplicateEmailError(email) from e
                logger.exception("auth.py: Integrity error while inserting account")
                raise StoreError("insert account failed") from e
            except SQLAlchemyError as e:
                db.rollback()
                logger.exception("auth.py: Failed to insert account")
                raise StoreError("insert account failed") from e

        logger.info(f"auth.py: Account {account.id} created")
        return account.id

    def authenticate(self, email: str, password: str) -> int:
        """Returns the account id, or raises InvalidCredentialsError for unknown email and wrong password alike."""
        try:
            with self.SessionLocal() as db:
                row = db.execute(
                    select(Account.id, Account.hashed_password).where(Account.email == email)
                ).first()
        except SQLAlchemyError as e:
            logger.exception("auth.py: Failed to look up account by email")
            raise StoreError("lookup account failed") from e

        if row is None:
            # burn the same time as a real check so timing does not leak account existence
            self.verify_password(password, self._get_dummy_hash())
            logger.warning("auth.py: Authentication failed: no matching account")
            raise InvalidCredentialsError()

        account_id, hashed = row
        try:
            ok = self.verify_password(password, hashed)
        except ValueError:
            # malformed hash in the row
            logger.exception(f"auth.py: Stored credential for account {account_id} is unreadable")
            raise StoreError("malformed credential") from None

        if not ok:
            logger.warning(f"auth.py: Authentication failed: invalid password for account {account_id}")
            raise InvalidCredentialsError()

        logger.info(f"auth.py: Account {account_id} successfully authenticated")
        return account_id

    def get(self, account_id: int) -> Account:
        try:
            with self.SessionLocal() as db:
                account = db.get(Account, account_id)
        except SQLAlchemyError as e:
            logger.exception(f"auth.py: Failed to load account {account_id}")
            raise StoreError("load account failed") from e
        if account is None:
            raise NotFoundError(account_id)
        return account

    def _get_dummy_hash(self) -> str:
        if self._dummy_hash is None:
            self._dummy_hash = self.pwd_context.hash("snippetbox-dummy-password")
        return self._dummy_hash
