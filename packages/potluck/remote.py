"""Async HTTP client for the sheet's read and write endpoints.

Read: ``GET`` of the published CSV export with a ``t=<epoch-ms>`` query
parameter and no-store cache headers, so proxies never serve a stale sheet.

Write: ``POST`` of a URL-encoded form (``name``, ``item``, ``qty``, ``note``).
The endpoint acknowledges with a body of ``ok``; anything else, including a
2xx with another body, is a failure carrying the body as its message.

The client performs no retries and sets no timeout of its own beyond the
transport default.
"""

from __future__ import annotations

import time
from types import TracebackType

import httpx

from .errors import FetchError, WriteError
from .ingest import decode
from .logging_setup import get_logger
from .models import SignupForm, SignupRecord

READ_ERROR_MESSAGE = "Lecture impossible. Vérifie l’URL CSV publiée."
WRITE_ERROR_MESSAGE = "Ajout impossible."

_NO_CACHE_HEADERS: dict[str, str] = {"Cache-Control": "no-store", "Pragma": "no-cache"}
_FORM_CONTENT_TYPE = "application/x-www-form-urlencoded;charset=UTF-8"

_logger = get_logger("potluck.remote")


def cache_busted_url(url: str, *, now_ms: int | None = None) -> str:
    """Append ``t=<epoch-ms>`` using ``&`` or ``?`` as the URL requires."""

    stamp = now_ms if now_ms is not None else int(time.time() * 1000)
    sep = "&" if "?" in url else "?"
    return f"{url}{sep}t={stamp}"


def is_write_ack(status_ok: bool, body: str) -> bool:
    return status_ok and body.strip().lower() == "ok"


class SheetClient:
    """Reads and appends sign-up rows through the sheet's HTTP endpoints.

    Parameters
    ----------
    csv_url:
        Published CSV export URL.
    script_url:
        Write endpoint URL.
    http:
        Optional pre-built ``httpx.AsyncClient`` (tests pass one with a
        ``MockTransport``). When omitted the client owns its own instance and
        closes it in :meth:`aclose`.
    """

    def __init__(
        self,
        csv_url: str,
        script_url: str,
        *,
        http: httpx.AsyncClient | None = None,
    ) -> None:
        self.csv_url = csv_url
        self.script_url = script_url
        self._owns_http = http is None
        # Apps Script deployments answer writes through a redirect.
        self._http = http or httpx.AsyncClient(follow_redirects=True)

    async def fetch_csv(self) -> str:
        url = cache_busted_url(self.csv_url)
        try:
            resp = await self._http.get(url, headers=_NO_CACHE_HEADERS)
        except httpx.HTTPError as exc:
            _logger.warning("CSV fetch failed: %s", exc)
            raise FetchError(str(exc) or READ_ERROR_MESSAGE) from exc
        if not resp.is_success:
            _logger.warning("CSV fetch returned HTTP %s", resp.status_code)
            raise FetchError(READ_ERROR_MESSAGE)
        return resp.text

    async def fetch_records(self) -> list[SignupRecord]:
        return decode(await self.fetch_csv())

    async def post_entry(self, form: SignupForm) -> None:
        """Send one entry; return only when the endpoint answered ``ok``."""

        try:
            resp = await self._http.post(
                self.script_url,
                data=form.as_payload(),
                headers={"Content-Type": _FORM_CONTENT_TYPE},
            )
        except httpx.HTTPError as exc:
            _logger.warning("write request failed: %s", exc)
            raise WriteError(str(exc) or WRITE_ERROR_MESSAGE) from exc

        body = resp.text
        if not is_write_ack(resp.is_success, body):
            _logger.warning("write rejected (HTTP %s): %r", resp.status_code, body[:200])
            raise WriteError(body or WRITE_ERROR_MESSAGE)

    async def aclose(self) -> None:
        if self._owns_http:
            await self._http.aclose()

    async def __aenter__(self) -> SheetClient:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.aclose()


__all__ = [
    "READ_ERROR_MESSAGE",
    "WRITE_ERROR_MESSAGE",
    "SheetClient",
    "cache_busted_url",
    "is_write_ack",
]
