import threading

import pytest
from sqlalchemy import select

from conftest import FAST_PWD_CONTEXT
from methods.auth.auth import AccountStore
from methods.database.database import init_db, make_engine, make_session_factory
from methods.database.models import Account
from methods.errors import DuplicateEmailError, InvalidCredentialsError, NotFoundError, StoreError


@pytest.fixture()
def session_factory(engine):
    init_db(engine)
    return make_session_factory(engine)


@pytest.fixture()
def accounts(session_factory):
    return AccountStore(session_factory, context=FAST_PWD_CONTEXT)


def test_create_returns_id_and_never_stores_plaintext(accounts, session_factory):
    account_id = accounts.create("Jonas", "jonas@email.com", "C0mpl3xPass!")
    assert isinstance(account_id, int) and account_id >= 1

    with session_factory() as db:
        row = db.execute(select(Account).where(Account.id == account_id)).scalar_one()
    assert row.hashed_password != "C0mpl3xPass!"
    assert row.hashed_password.startswith("$2b$")
    assert row.name == "Jonas"
    assert row.created is not None


def test_second_signup_with_same_email_is_duplicate_not_store_error(accounts):
    accounts.create("Name", "name@email.com", "password123")
    with pytest.raises(DuplicateEmailError):
        accounts.create("Other", "name@email.com", "different-pass")


def test_authenticate_returns_stored_id(accounts):
    account_id = accounts.create("Name", "a@b.com", "C0mpl3xPass!")
    assert accounts.authenticate("a@b.com", "C0mpl3xPass!") == account_id


def test_wrong_password_and_unknown_email_fail_the_same_way(accounts):
    accounts.create("Name", "a@b.com", "C0mpl3xPass!")

    with pytest.raises(InvalidCredentialsError) as wrong_pw:
        accounts.authenticate("a@b.com", "Password")
    with pytest.raises(InvalidCredentialsError) as unknown:
        accounts.authenticate("nobody@b.com", "C0mpl3xPass!")

    assert type(wrong_pw.value) is type(unknown.value)
    assert str(wrong_pw.value) == str(unknown.value)


def test_get_returns_account(accounts):
    account_id = accounts.create("Jonas", "jonas@email.com", "C0mpl3xPass!")
    account = accounts.get(account_id)
    assert account.id == account_id
    assert account.email == "jonas@email.com"


def test_get_missing_is_not_found(accounts):
    with pytest.raises(NotFoundError):
        accounts.get(999)


def test_unreadable_stored_hash_is_store_error(accounts, session_factory):
    with session_factory() as db:
        db.add(Account(name="n", email="e@x.com", hashed_password="password123",
                       created=accounts.clock().replace(tzinfo=None)))
        db.commit()
    with pytest.raises(StoreError):
        accounts.authenticate("e@x.com", "password123")


def test_missing_table_surfaces_as_store_error(engine):
    # no init_db: every statement fails at the database
    store = AccountStore(make_session_factory(engine), context=FAST_PWD_CONTEXT)
    with pytest.raises(StoreError):
        store.create("Name", "a@b.com", "C0mpl3xPass!")
    with pytest.raises(StoreError):
        store.authenticate("a@b.com", "C0mpl3xPass!")
    with pytest.raises(StoreError):
        store.get(1)


def test_concurrent_signups_with_same_email(tmp_path):
    eng = make_engine(f"sqlite:///{tmp_path / 'race.db'}", timeout=10)
    init_db(eng)
    store = AccountStore(make_session_factory(eng), context=FAST_PWD_CONTEXT)

    barrier = threading.Barrier(2)
    outcomes = []
    lock = threading.Lock()

    def worker(n):
        barrier.wait()
        try:
            store.create(f"user{n}", "race@example.com", "C0mpl3xPass!")
            result = "ok"
        except DuplicateEmailError:
            result = "duplicate"
        except StoreError:
            result = "store-error"
        with lock:
            outcomes.append(result)

    threads = [threading.Thread(target=worker, args=(n,)) for n in range(2)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()
    eng.dispose()

    assert sorted(outcomes) == ["duplicate", "ok"]
