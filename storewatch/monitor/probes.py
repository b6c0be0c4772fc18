"""Collaborator contracts and liveness probes for the database and cache.

The monitor never talks to PostgreSQL or Redis directly; it only needs:

- a :class:`DatabaseProbe` whose ``ping()`` raises when the database is
  unreachable (:class:`SQLAlchemyProbe` wraps an ``AsyncEngine``), and
- an :class:`AlertCache` with ``ping()`` and ``set(key, value, ex=...)``.
  ``redis.asyncio.Redis`` satisfies this protocol as-is.
"""

from __future__ import annotations

import asyncio
from typing import Protocol, runtime_checkable

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncEngine


@runtime_checkable
class DatabaseProbe(Protocol):
    async def ping(self) -> None: ...


@runtime_checkable
class AlertCache(Protocol):
    async def ping(self) -> object: ...

    async def set(self, name: str, value: str, ex: int | None = None) -> object: ...


class SQLAlchemyProbe:
    """Checks out a pooled connection and runs ``SELECT 1``."""

    def __init__(self, engine: AsyncEngine) -> None:
        self._engine = engine

    @property
    def engine(self) -> AsyncEngine:
        return self._engine

    async def ping(self) -> None:
        async with self._engine.connect() as conn:
            await conn.execute(text("SELECT 1"))


def database_check(database: DatabaseProbe | None):
    """Build the ``"database"`` health probe."""

    async def probe() -> str:
        if database is None:
            raise ConnectionError("database connection is not configured")
        try:
            await database.ping()
        except Exception as exc:
            raise ConnectionError(f"database ping failed: {exc}") from exc
        return "Database connection is healthy"

    return probe


def cache_check(cache: AlertCache | None, timeout_secs: float):
    """Build the ``"redis"`` health probe, bounded by *timeout_secs*."""

    async def probe() -> str:
        if cache is None:
            raise ConnectionError("redis connection is not configured")
        try:
            await asyncio.wait_for(cache.ping(), timeout=timeout_secs)
        except TimeoutError as exc:
            raise ConnectionError(
                f"redis ping failed: timed out after {timeout_secs}s",
            ) from exc
        except Exception as exc:
            raise ConnectionError(f"redis ping failed: {exc}") from exc
        return "Redis connection is healthy"

    return probe
