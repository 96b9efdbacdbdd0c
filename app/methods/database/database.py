from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker, declarative_base
from sqlalchemy.pool import StaticPool

Base = declarative_base()


def _connect_args(url: str, timeout: float) -> dict:
    """Driver-level deadlines so a stalled database fails the request instead of hanging it."""
    if url.startswith("sqlite"):
        return {"timeout": timeout, "check_same_thread": False}
    if url.startswith("mysql"):
        t = max(1, int(timeout))
        return {"connect_timeout": t, "read_timeout": t, "write_timeout": t}
    if url.startswith("postgresql"):
        return {
            "connect_timeout": max(1, int(timeout)),
            "options": f"-c statement_timeout={int(timeout * 1000)}",
        }
    return {}


def make_engine(url: str, timeout: float = 5.0) -> Engine:
    kwargs = {"connect_args": _connect_args(url, timeout)}
    if url.startswith("sqlite") and (":memory:" in url or url.rstrip("/") == "sqlite:"):
        # one shared connection, or every checkout would see an empty database
        kwargs["poolclass"] = StaticPool
    else:
        kwargs["pool_timeout"] = timeout
        kwargs["pool_pre_ping"] = True
    return create_engine(url, **kwargs)


def make_session_factory(engine: Engine) -> sessionmaker:
    return sessionmaker(bind=engine, autocommit=False, autoflush=False, expire_on_commit=False)


def init_db(engine: Engine) -> None:
    # models must be imported so their tables are registered on Base.metadata
    from . import models  # noqa: F401
    Base.metadata.create_all(engine)
