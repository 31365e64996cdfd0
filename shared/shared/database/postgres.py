import os
import ssl
from pathlib import Path
from typing import Any

from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import declarative_base

Base = declarative_base()

# SQLSTATE raised by Postgres when a queried relation is missing.
UNDEFINED_TABLE_SQLSTATE = "42P01"


def _build_ssl_connect_args() -> dict[str, Any]:
    """Return asyncpg ``connect_args`` for SSL when DATABASE_SSL is set."""
    mode = os.environ.get("DATABASE_SSL", "").lower()
    if not mode or mode == "disable":
        return {}

    cert_path = os.environ.get("DATABASE_SSL_CERT", "")
    if cert_path and Path(cert_path).exists():
        return {"ssl": ssl.create_default_context(cafile=cert_path)}

    # Hosted poolers accept an encrypted connection without cert verification
    return {"ssl": "require"}


def get_async_engine(
    database_url: str,
    *,
    command_timeout: float | None = None,
    **kwargs: Any,
) -> AsyncEngine:
    connect_args = _build_ssl_connect_args()
    if command_timeout is not None:
        # asyncpg aborts any single statement that runs longer than this
        connect_args["command_timeout"] = command_timeout
    return create_async_engine(
        database_url,
        pool_pre_ping=True,
        pool_size=5,
        max_overflow=10,
        pool_recycle=1800,
        connect_args=connect_args,
        **kwargs,
    )


def get_async_session_factory(
    database_url: str,
    *,
    expire_on_commit: bool = False,
    command_timeout: float | None = None,
    **engine_kwargs: Any,
) -> async_sessionmaker[AsyncSession]:
    engine = get_async_engine(database_url, command_timeout=command_timeout, **engine_kwargs)
    return async_sessionmaker(
        engine,
        class_=AsyncSession,
        expire_on_commit=expire_on_commit,
        autoflush=False,
        autocommit=False,
    )


AsyncSessionFactory = async_sessionmaker[AsyncSession]


def sqlstate_of(exc: BaseException) -> str | None:
    """Return the Postgres SQLSTATE carried by a driver error, if any.

    SQLAlchemy wraps the asyncpg adapter error in ``DBAPIError.orig``; the adapter
    exposes ``sqlstate`` (older releases: ``pgcode``) and chains the raw asyncpg
    exception as ``__cause__``.
    """
    candidates = [exc, getattr(exc, "orig", None)]
    orig = getattr(exc, "orig", None)
    if orig is not None:
        candidates.append(orig.__cause__)
    for candidate in candidates:
        if candidate is None:
            continue
        for attr in ("sqlstate", "pgcode"):
            code = getattr(candidate, attr, None)
            if isinstance(code, str) and code:
                return code
    return None
