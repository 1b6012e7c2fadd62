import asyncio
import time
from abc import ABC, abstractmethod
from datetime import datetime, timezone
from typing import Any

import httpx
import structlog
from pydantic import ValidationError

from statusboard.core.exceptions import MalformedResponseError
from statusboard.schemas.results import ErrorInfo, ErrorKind, SourceFailed, SourceOk

logger = structlog.get_logger()


class SourceAdapter(ABC):
    """One external API family, fetched and normalized into an internal record.

    ``fetch()`` always resolves to ``SourceOk`` or ``SourceFailed``; transport
    and parsing exceptions are classified here and never reach the caller.
    Adapters keep no state between calls.
    """

    source_id: str = ""

    def __init__(self, base_url: str, http_client: httpx.AsyncClient, timeout: float = 8.0):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._client = http_client

    @property
    def headers(self) -> dict[str, str]:
        return {}

    @abstractmethod
    async def _collect(self) -> Any:
        """Issue the adapter's request(s) and return the normalized record."""
        ...

    async def fetch(self) -> SourceOk | SourceFailed:
        attempted_at = datetime.now(timezone.utc)
        start = time.perf_counter()
        try:
            data = await asyncio.wait_for(self._collect(), timeout=self.timeout)
        except (asyncio.TimeoutError, httpx.TimeoutException):
            return self._failed(attempted_at, ErrorKind.TIMEOUT, detail=f"no response within {self.timeout}s")
        except httpx.HTTPStatusError as e:
            return self._failed(
                attempted_at,
                ErrorKind.HTTP_ERROR,
                status_code=e.response.status_code,
                detail=f"{e.request.method} {e.request.url.path} returned {e.response.status_code}",
            )
        except httpx.TransportError as e:
            return self._failed(attempted_at, ErrorKind.NETWORK_UNREACHABLE, detail=str(e) or type(e).__name__)
        except (MalformedResponseError, ValidationError, ValueError, KeyError, TypeError) as e:
            return self._failed(attempted_at, ErrorKind.MALFORMED_RESPONSE, detail=str(e))
        except Exception as e:
            logger.exception("source_fetch_unexpected_error", source=self.source_id)
            return self._failed(attempted_at, ErrorKind.UNKNOWN, detail=type(e).__name__)

        latency_ms = round((time.perf_counter() - start) * 1000, 1)
        logger.debug("source_fetch_ok", source=self.source_id, latency_ms=latency_ms)
        return SourceOk(
            source_id=self.source_id,
            data=data,
            fetched_at=datetime.now(timezone.utc),
            latency_ms=latency_ms,
        )

    def _failed(
        self,
        attempted_at: datetime,
        kind: ErrorKind,
        status_code: int | None = None,
        detail: str | None = None,
    ) -> SourceFailed:
        logger.warning(
            "source_fetch_failed",
            source=self.source_id,
            kind=kind.value,
            status_code=status_code,
            detail=detail,
        )
        return SourceFailed(
            source_id=self.source_id,
            error=ErrorInfo(kind=kind, status_code=status_code, detail=detail),
            attempted_at=attempted_at,
        )

    async def _get(self, path: str, params: dict | None = None) -> httpx.Response:
        response = await self._client.get(f"{self.base_url}{path}", params=params, headers=self.headers)
        response.raise_for_status()
        return response

    async def _get_json(self, path: str, params: dict | None = None) -> Any:
        response = await self._get(path, params=params)
        try:
            return response.json()
        except ValueError as e:
            raise MalformedResponseError(f"{path} did not return JSON") from e


def expect_list(payload: Any, what: str) -> list:
    if not isinstance(payload, list):
        raise MalformedResponseError(f"expected a list of {what}, got {type(payload).__name__}")
    return payload


def expect_dict(payload: Any, what: str) -> dict:
    if not isinstance(payload, dict):
        raise MalformedResponseError(f"expected a {what} object, got {type(payload).__name__}")
    return payload


async def gather_all(coros: list) -> list:
    """Run sub-requests together; the first failure cancels the rest and is re-raised as-is."""
    try:
        async with asyncio.TaskGroup() as tg:
            tasks = [tg.create_task(coro) for coro in coros]
    except ExceptionGroup as group:
        first = group.exceptions[0]
        while isinstance(first, BaseExceptionGroup):
            first = first.exceptions[0]
        raise first from None
    return [task.result() for task in tasks]
