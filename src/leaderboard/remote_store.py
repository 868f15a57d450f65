"""
Remote leaderboard store

Contract consumed by the LeaderboardSynchronizer. Rows are keyed by
(device_id, month_year); nothing is assumed to be transactional across calls.

Implementations:
- RestLeaderboardStore: PostgREST-style HTTP API (e.g. a Supabase table) over
  httpx, guarded by a pybreaker circuit breaker
- InMemoryLeaderboardStore: process-local rows for tests and offline use

Every remote failure surfaces as RemoteStoreError.
"""

from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional, Tuple
import logging
import time

import httpx
import pybreaker
import pydantic

from src.config import (
    LEADERBOARD_API_KEY,
    LEADERBOARD_TABLE,
    LEADERBOARD_TIMEOUT,
    LEADERBOARD_URL,
)
from src.exceptions import RemoteStoreError, wrap_external_exception
from src.models.leaderboard import LeaderboardEntry
from src.resilience.circuit_breaker import create_breaker, guarded_call
from src.resilience.metrics import record_remote_call

logger = logging.getLogger(__name__)


class LeaderboardStore(ABC):
    """Upsert / query / delete over monthly leaderboard rows"""

    @abstractmethod
    async def upsert(self, entry: LeaderboardEntry) -> None:
        """Insert or replace the row for (entry.device_id, entry.month_year)"""

    @abstractmethod
    async def fetch_top(self, month_year: str, limit: int) -> List[LeaderboardEntry]:
        """Rows for month_year ordered by total_sessions descending, at most limit"""

    @abstractmethod
    async def fetch_entry(self, device_id: str, month_year: str) -> Optional[LeaderboardEntry]:
        """The row for (device_id, month_year), if any"""

    @abstractmethod
    async def count_above(self, month_year: str, total_sessions: int) -> int:
        """Number of rows for month_year with strictly more sessions"""

    @abstractmethod
    async def delete(self, device_id: Optional[str] = None, month_year: Optional[str] = None) -> None:
        """Delete matching rows; no filters deletes every row"""

    async def aclose(self) -> None:
        pass


class RestLeaderboardStore(LeaderboardStore):
    """
    PostgREST client for the leaderboard table

    Example:
        store = RestLeaderboardStore("https://xyz.supabase.co", api_key)
        await store.upsert(entry)
        top = await store.fetch_top("2025-10", limit=100)
    """

    def __init__(
        self,
        base_url: str = LEADERBOARD_URL,
        api_key: str = LEADERBOARD_API_KEY,
        table: str = LEADERBOARD_TABLE,
        timeout: float = LEADERBOARD_TIMEOUT,
        breaker: Optional[pybreaker.CircuitBreaker] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None
    ):
        self.table = table
        self.breaker = breaker if breaker is not None else create_breaker("leaderboard_store")
        self.client = httpx.AsyncClient(
            base_url=f"{base_url.rstrip('/')}/rest/v1",
            headers={
                "apikey": api_key,
                "Authorization": f"Bearer {api_key}",
                "Content-Type": "application/json",
            },
            timeout=timeout,
            transport=transport,
        )

    async def aclose(self) -> None:
        await self.client.aclose()

    async def _send(
        self,
        method: str,
        params: List[Tuple[str, Any]],
        json: Any = None,
        headers: Optional[Dict[str, str]] = None
    ) -> httpx.Response:
        response = await self.client.request(
            method, f"/{self.table}", params=params, json=json, headers=headers
        )
        response.raise_for_status()
        return response

    async def _request(
        self,
        operation: str,
        method: str,
        params: List[Tuple[str, Any]],
        json: Any = None,
        headers: Optional[Dict[str, str]] = None
    ) -> httpx.Response:
        """Send one request through the circuit breaker, recording metrics"""
        start = time.perf_counter()
        try:
            response = await guarded_call(self.breaker, self._send, method, params, json, headers)
        except (httpx.HTTPError, pybreaker.CircuitBreakerError) as e:
            record_remote_call(operation, False, time.perf_counter() - start)
            raise wrap_external_exception(
                e,
                operation=f"leaderboard_{operation}",
                context={"table": self.table, "params": [(k, str(v)) for k, v in params]},
            ) from e

        record_remote_call(operation, True, time.perf_counter() - start)
        return response

    def _rows(self, response: httpx.Response, operation: str) -> List[Dict[str, Any]]:
        """Decode a JSON array body; anything else is a remote failure"""
        try:
            rows = response.json()
            if not isinstance(rows, list):
                raise ValueError(f"expected a JSON array, got {type(rows).__name__}")
        except ValueError as e:
            raise RemoteStoreError(
                message=f"leaderboard returned an unreadable {operation} response: {e}",
                service="leaderboard",
                status_code=response.status_code,
                operation=f"leaderboard_{operation}",
                context={"table": self.table},
                cause=e
            ) from e
        return rows

    def _entries(self, response: httpx.Response, operation: str) -> List[LeaderboardEntry]:
        try:
            return [LeaderboardEntry.model_validate(row) for row in self._rows(response, operation)]
        except pydantic.ValidationError as e:
            raise RemoteStoreError(
                message=f"leaderboard returned invalid rows for {operation}: {e.error_count()} errors",
                service="leaderboard",
                status_code=response.status_code,
                operation=f"leaderboard_{operation}",
                context={"table": self.table},
                cause=e
            ) from e

    async def upsert(self, entry: LeaderboardEntry) -> None:
        await self._request(
            "upsert",
            "POST",
            params=[("on_conflict", "device_id,month_year")],
            json=[entry.to_row()],
            headers={"Prefer": "resolution=merge-duplicates,return=minimal"},
        )
        logger.info(
            f"Upserted leaderboard row {entry.device_id}/{entry.month_year}: "
            f"{entry.total_sessions} sessions"
        )

    async def fetch_top(self, month_year: str, limit: int) -> List[LeaderboardEntry]:
        response = await self._request(
            "fetch_top",
            "GET",
            params=[
                ("select", "*"),
                ("month_year", f"eq.{month_year}"),
                ("order", "total_sessions.desc"),
                ("limit", limit),
            ],
        )
        entries = self._entries(response, "fetch_top")
        logger.info(f"Fetched {len(entries)} leaderboard rows for {month_year}")
        return entries

    async def fetch_entry(self, device_id: str, month_year: str) -> Optional[LeaderboardEntry]:
        response = await self._request(
            "fetch_entry",
            "GET",
            params=[
                ("select", "*"),
                ("device_id", f"eq.{device_id}"),
                ("month_year", f"eq.{month_year}"),
                ("limit", 1),
            ],
        )
        entries = self._entries(response, "fetch_entry")
        return entries[0] if entries else None

    async def count_above(self, month_year: str, total_sessions: int) -> int:
        response = await self._request(
            "count_above",
            "GET",
            params=[
                ("select", "device_id"),
                ("month_year", f"eq.{month_year}"),
                ("total_sessions", f"gt.{total_sessions}"),
            ],
        )
        return len(self._rows(response, "count_above"))

    async def delete(self, device_id: Optional[str] = None, month_year: Optional[str] = None) -> None:
        params: List[Tuple[str, Any]] = []
        if device_id is not None:
            params.append(("device_id", f"eq.{device_id}"))
        if month_year is not None:
            params.append(("month_year", f"eq.{month_year}"))
        if not params:
            # PostgREST rejects unfiltered deletes
            params.append(("device_id", "not.is.null"))

        await self._request("delete", "DELETE", params=params)
        logger.info(f"Deleted leaderboard rows device={device_id or 'all'} month={month_year or 'all'}")


class InMemoryLeaderboardStore(LeaderboardStore):
    """Process-local rows with the same ordering semantics as the REST store"""

    def __init__(self, entries: Optional[List[LeaderboardEntry]] = None):
        self._rows: Dict[Tuple[str, str], LeaderboardEntry] = {}
        for entry in entries or []:
            self._rows[(entry.device_id, entry.month_year)] = entry.model_copy(update={"rank": None})

    @property
    def rows(self) -> List[LeaderboardEntry]:
        return list(self._rows.values())

    async def upsert(self, entry: LeaderboardEntry) -> None:
        self._rows[(entry.device_id, entry.month_year)] = entry.model_copy(update={"rank": None})
        logger.debug(f"Upserted in-memory row {entry.device_id}/{entry.month_year}")

    async def fetch_top(self, month_year: str, limit: int) -> List[LeaderboardEntry]:
        rows = [r for r in self._rows.values() if r.month_year == month_year]
        rows.sort(key=lambda r: r.total_sessions, reverse=True)
        return [r.model_copy() for r in rows[:limit]]

    async def fetch_entry(self, device_id: str, month_year: str) -> Optional[LeaderboardEntry]:
        row = self._rows.get((device_id, month_year))
        return row.model_copy() if row else None

    async def count_above(self, month_year: str, total_sessions: int) -> int:
        return sum(
            1 for r in self._rows.values()
            if r.month_year == month_year and r.total_sessions > total_sessions
        )

    async def delete(self, device_id: Optional[str] = None, month_year: Optional[str] = None) -> None:
        self._rows = {
            key: row for key, row in self._rows.items()
            if not (
                (device_id is None or row.device_id == device_id)
                and (month_year is None or row.month_year == month_year)
            )
        }
