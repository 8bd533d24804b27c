"""
HTTP client for the booking backend.

Single attempt per call, no retries: resilience comes from the cache
fallback, not from the client. Every call runs against a hard deadline;
failures are classified into the ``washsync.errors`` taxonomy.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any

import httpx
from pydantic import BaseModel, ConfigDict

from washsync.errors import (
    AuthenticationError,
    HttpError,
    NetworkError,
    RequestTimeoutError,
    SyncError,
    ValidationError,
)
from washsync.network.deadline import CancellationSignal, Deadline, Scheduler

logger = logging.getLogger(__name__)

DEFAULT_HEADERS = {"Accept": "application/json"}


class ApiEnvelope(BaseModel):
    """
    The backend's JSON envelope: ``{success, data?, message?, errors?}``.

    ``body`` keeps the full decoded document because some endpoints answer
    with a bare list or put their payload at the top level.
    """

    model_config = ConfigDict(arbitrary_types_allowed=True)

    status: int = 200
    success: bool | None = None
    data: Any = None
    message: str | None = None
    errors: Any = None
    body: Any = None

    @classmethod
    def from_body(cls, status: int, body: Any) -> ApiEnvelope:
        if not isinstance(body, dict):
            return cls(status=status, data=body, body=body)

        success = body.get("success")
        message = body.get("message") or body.get("error")
        return cls(
            status=status,
            success=success if isinstance(success, bool) else None,
            data=body.get("data"),
            message=message if isinstance(message, str) else None,
            errors=body.get("errors"),
            body=body,
        )

    @property
    def ok(self) -> bool:
        return self.status < 400 and self.success is not False


def _as_messages(value: Any) -> list[str]:
    if isinstance(value, list):
        return [str(v) for v in value]
    return [str(value)]


def _field_map(candidate: Any) -> dict[str, list[str]] | None:
    if not isinstance(candidate, dict) or not candidate:
        return None
    if not any(isinstance(v, (list, str)) for v in candidate.values()):
        return None
    return {str(k): _as_messages(v) for k, v in candidate.items()}


def extract_field_errors(body: Any) -> dict[str, list[str]] | None:
    """
    Locate per-field validation messages in an error body.

    Looks at ``errors``, ``data.errors`` and ``data.data.errors``, then
    falls back to the first mapping inside ``data`` whose values are
    lists or strings.
    """
    if not isinstance(body, dict):
        return None

    data = body.get("data")
    nested = data.get("data") if isinstance(data, dict) else None
    for candidate in (
        body.get("errors"),
        data.get("errors") if isinstance(data, dict) else None,
        nested.get("errors") if isinstance(nested, dict) else None,
    ):
        fields = _field_map(candidate)
        if fields:
            return fields

    if isinstance(data, dict):
        for value in data.values():
            fields = _field_map(value)
            if fields:
                return fields
    return None


class NetworkClient:
    """
    Issues authenticated JSON requests with a per-call deadline.

    Usage:
        client = NetworkClient("https://api.example.com")
        envelope = await client.request("GET", "/api/v1/visitor/bookinglist",
                                        token=token, timeout=10.0)
        await client.close()

    Raises:
        RequestTimeoutError: the deadline elapsed; the call was aborted.
        NetworkError: transport failure or no usable body.
        AuthenticationError: HTTP 401.
        ValidationError: field-level errors in a failure response.
        HttpError: any other failure status or ``success: false``.
    """

    def __init__(
        self,
        base_url: str,
        http_client: httpx.AsyncClient | None = None,
        default_timeout: float = 10.0,
        scheduler: Scheduler | None = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.default_timeout = default_timeout
        self._scheduler = scheduler
        self._owns_client = http_client is None
        self._client = http_client or httpx.AsyncClient(headers=DEFAULT_HEADERS)

    async def close(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    def url(self, path: str) -> str:
        if path.startswith(("http://", "https://")):
            return path
        return f"{self.base_url}/{path.lstrip('/')}"

    async def request(
        self,
        method: str,
        path: str,
        *,
        token: str | None = None,
        json: Any = None,
        form: dict[str, str] | None = None,
        timeout: float | None = None,
    ) -> ApiEnvelope:
        """Perform one request and return the decoded envelope."""
        url = self.url(path)
        headers = dict(DEFAULT_HEADERS)
        if token:
            headers["Authorization"] = f"Bearer {token}"

        budget = timeout if timeout is not None else self.default_timeout
        response = await self._send_with_deadline(
            budget,
            method=method,
            url=url,
            headers=headers,
            json=json,
            data=form,
        )
        logger.debug("%s %s -> %s", method, url, response.status_code)
        return self._decode(response)

    async def _send_with_deadline(self, budget: float, **kwargs: Any) -> httpx.Response:
        deadline = Deadline(budget, CancellationSignal(), scheduler=self._scheduler)
        # The deadline below is the only timeout; disable httpx's own.
        send = asyncio.ensure_future(self._client.request(timeout=None, **kwargs))
        signal = deadline.start()
        waiter = asyncio.ensure_future(signal.wait())
        try:
            done, _ = await asyncio.wait({send, waiter}, return_when=asyncio.FIRST_COMPLETED)
        finally:
            deadline.stop()
            waiter.cancel()
            if not send.done():
                send.cancel()

        if send not in done:
            await asyncio.gather(send, return_exceptions=True)
            logger.warning("%s %s aborted after %.1fs", kwargs["method"], kwargs["url"], budget)
            raise RequestTimeoutError()

        try:
            return send.result()
        except httpx.TimeoutException as e:
            raise RequestTimeoutError() from e
        except httpx.HTTPError as e:
            logger.warning("%s %s failed: %s", kwargs["method"], kwargs["url"], e)
            raise NetworkError() from e

    def _decode(self, response: httpx.Response) -> ApiEnvelope:
        status = response.status_code

        if not response.content:
            if status >= 400:
                raise self._failure(ApiEnvelope(status=status))
            raise NetworkError("Empty response from server. Please try again.")

        try:
            body = response.json()
        except ValueError as e:
            if status >= 400:
                raise HttpError(status, f"Request failed with status {status}. Please try again.") from e
            raise NetworkError("Invalid response from server. Please try again.") from e

        envelope = ApiEnvelope.from_body(status, body)
        if not envelope.ok:
            raise self._failure(envelope)
        return envelope

    @staticmethod
    def _failure(envelope: ApiEnvelope) -> SyncError:
        status = envelope.status
        fields = extract_field_errors(envelope.body)
        if fields:
            return ValidationError(status if status >= 400 else 422, fields)
        if status == 401:
            return AuthenticationError(envelope.message or "Your session has expired. Please login again.")
        return HttpError(status, envelope.message or "")
