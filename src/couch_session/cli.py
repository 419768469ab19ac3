from __future__ import annotations

import asyncio
import logging
import sys

import click

from couch_session.core.models import ConnectionState
from couch_session.core.store import SessionStore
from couch_session.errors import ConfigurationError, SessionStoreError
from couch_session.utils.config import ConnectionConfig, StoreConfig

logger = logging.getLogger(__name__)


def _build_store(url: str, database: str, timeout: float, retries: int, **options) -> SessionStore:
    try:
        connection = ConnectionConfig(url=url, timeout_seconds=timeout, retry_attempts=retries)
    except ConfigurationError as exc:
        raise click.BadParameter(exc.message, param_hint="--retries") from exc
    try:
        config = StoreConfig.from_dict(dict(options, database=database))
    except ConfigurationError as exc:
        raise click.UsageError(exc.message) from exc
    try:
        return SessionStore.from_url(url, config, connection=connection, check_on_init=False)
    except ConfigurationError as exc:
        raise click.BadParameter(exc.message, param_hint="--url") from exc


@click.group()
@click.option("--url", envvar="COUCH_SESSION_URL", default="http://localhost:5984", help="CouchDB/Cloudant URL")
@click.option("--database", envvar="COUCH_SESSION_DB", default="sessions", help="Session database name")
@click.option("--timeout", default=5.0, type=float, help="Request timeout in seconds")
@click.option("--retries", default=1, type=int, help="Attempts per request on transient failures")
@click.option(
    "--log-level",
    default="INFO",
    help="Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)",
)
@click.pass_context
def main(ctx: click.Context, url: str, database: str, timeout: float, retries: int, log_level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, log_level.upper()),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
    ctx.obj = {"url": url, "database": database, "timeout": timeout, "retries": retries}


@main.command()
@click.pass_obj
def check(obj: dict) -> None:
    """Report whether the session database is reachable."""

    async def _run() -> ConnectionState:
        async with _build_store(**obj) as store:
            return await store.check_connection()

    state = asyncio.run(_run())
    click.echo(state.value)
    if state is ConnectionState.DISCONNECT:
        sys.exit(1)


@main.command()
@click.option("--batch-size", default=100, type=int, help="Maximum sessions removed in this run")
@click.option("--design", default="expired_sessions", help="Design document holding the expiry index")
@click.option("--index", "index_name", default="express_expired_sessions", help="Expiry index name")
@click.pass_obj
def cleanup(obj: dict, batch_size: int, design: str, index_name: str) -> None:
    """Remove one batch of expired sessions. Schedule it with cron or a timer."""

    async def _run() -> int:
        async with _build_store(
            **obj,
            cleanup_batch_size=batch_size,
            index_design_name=design,
            index_name=index_name,
        ) as store:
            return await store.cleanup_expired()

    try:
        removed = asyncio.run(_run())
    except SessionStoreError as exc:
        logger.error("cleanup failed: %s", exc)
        sys.exit(1)
    click.echo(f"removed {removed} expired session(s)")


if __name__ == "__main__":
    main()
