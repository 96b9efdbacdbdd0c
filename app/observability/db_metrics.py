# observability/db_metrics.py
import logging
import time

from prometheus_client import Counter, Histogram
from sqlalchemy import event
from sqlalchemy.engine import Engine

logger = logging.getLogger(__name__)

DB_LAT = Histogram(
    "snippetbox_db_query_seconds", "DB statement latency (s) by SQL verb",
    ["verb"],
    buckets=(0.001, 0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1, 5),
)
DB_ERR = Counter("snippetbox_db_errors_total", "Failed DB statements by SQL verb", ["verb"])
POOL_CHECKOUTS = Counter("snippetbox_db_pool_checkouts_total", "Connections checked out of the pool")

KNOWN_VERBS = {"select", "insert", "update", "delete", "create", "pragma"}


def sql_verb(statement) -> str:
    words = (statement or "").split(None, 1)
    verb = words[0].lower() if words else ""
    return verb if verb in KNOWN_VERBS else "other"


def init_db_metrics(engine: Engine) -> None:
    """Times every statement on engine and counts failures and pool checkouts."""

    @event.listens_for(engine, "before_cursor_execute")
    def _before(conn, cursor, statement, parameters, context, executemany):
        conn.info.setdefault("snippetbox_started", []).append(time.perf_counter())

    @event.listens_for(engine, "after_cursor_execute")
    def _after(conn, cursor, statement, parameters, context, executemany):
        started = conn.info["snippetbox_started"].pop()
        DB_LAT.labels(sql_verb(statement)).observe(time.perf_counter() - started)

    @event.listens_for(engine, "handle_error")
    def _failed(exc_ctx):
        verb = sql_verb(exc_ctx.statement)
        stack = exc_ctx.connection.info.get("snippetbox_started") if exc_ctx.connection is not None else None
        if stack:
            stack.pop()
        DB_ERR.labels(verb).inc()
        logger.warning("db_metrics.py: %s statement failed: %s", verb, exc_ctx.original_exception)

    @event.listens_for(engine, "checkout")
    def _checkout(dbapi_connection, connection_record, connection_proxy):
        POOL_CHECKOUTS.inc()
