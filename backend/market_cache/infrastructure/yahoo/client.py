"""
Yahoo Finance Client

Async HTTP client for the Yahoo Finance query API.

Handles the cookie/crumb handshake the API requires, retries transient
failures with exponential backoff, and converts transport and protocol
errors into ``UpstreamException`` subclasses.
"""

import asyncio
import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Sequence

import httpx
from opentelemetry import trace
from tenacity import (
    AsyncRetrying,
    retry_if_exception,
    stop_after_attempt,
    wait_exponential,
)

from ...core.config import Settings
from .exceptions import (
    SymbolNotFoundException,
    UpstreamConnectionException,
    UpstreamRateLimitException,
    UpstreamResponseException,
    UpstreamTimeoutException,
)

logger = logging.getLogger(__name__)
tracer = trace.get_tracer(__name__)


def _is_transient(error: BaseException) -> bool:
    """Errors worth another attempt."""
    if isinstance(
        error,
        (
            UpstreamConnectionException,
            UpstreamTimeoutException,
            UpstreamRateLimitException,
        ),
    ):
        return True
    if isinstance(error, UpstreamResponseException):
        status = error.status_code
        return status is not None and status >= 500
    return False


def _to_epoch(value: datetime) -> int:
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return int(value.timestamp())


class YahooFinanceClient:
    """
    Yahoo Finance API client implementing ``MarketDataProvider``.

    Args:
        settings: Application settings (base URLs, timeouts, retry policy)
        http_client: Optional preconfigured ``httpx.AsyncClient``; the client
            owns and closes the one it creates itself.
    """

    def __init__(
        self,
        settings: Settings,
        http_client: Optional[httpx.AsyncClient] = None,
    ):
        self._settings = settings
        self._base_url = settings.YAHOO_QUERY_URL.rstrip("/")
        self._timeout = settings.YAHOO_REQUEST_TIMEOUT_SECONDS
        self._owns_client = http_client is None
        self._client = http_client or httpx.AsyncClient(
            timeout=self._timeout,
            headers={"User-Agent": settings.YAHOO_USER_AGENT},
            follow_redirects=True,
        )
        self._crumb: Optional[str] = None
        self._crumb_lock = asyncio.Lock()

    async def close(self) -> None:
        """Close the underlying HTTP client if this instance created it."""
        if self._owns_client:
            await self._client.aclose()

    async def __aenter__(self) -> "YahooFinanceClient":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.close()

    # Session handshake

    async def _get_crumb(self) -> str:
        """Fetch and memoize the anti-CSRF crumb bound to the session cookie."""
        async with self._crumb_lock:
            if self._crumb:
                return self._crumb

            crumb_url = f"{self._base_url}/v1/test/getcrumb"
            try:
                # Sets the session cookie; a 404 body here is normal
                await self._client.get(self._settings.YAHOO_COOKIE_URL)
                response = await self._client.get(crumb_url)
            except httpx.TimeoutException as e:
                raise UpstreamTimeoutException("getcrumb", self._timeout) from e
            except httpx.HTTPError as e:
                raise UpstreamConnectionException(
                    url=crumb_url, original_error=e
                ) from e

            if response.status_code == 429:
                raise UpstreamRateLimitException(
                    "getcrumb", response.headers.get("Retry-After")
                )

            crumb = response.text.strip()
            if response.status_code != 200 or not crumb:
                raise UpstreamResponseException(
                    "getcrumb", response.status_code, "no crumb returned"
                )

            self._crumb = crumb
            logger.debug("Obtained upstream crumb")
            return crumb

    # Transport

    async def _request(
        self,
        operation: str,
        path: str,
        params: Dict[str, Any],
        symbol: Optional[str] = None,
    ) -> Dict[str, Any]:
        """GET a JSON document, retrying transient failures."""
        retrying = AsyncRetrying(
            stop=stop_after_attempt(self._settings.YAHOO_MAX_RETRIES),
            wait=wait_exponential(
                multiplier=self._settings.YAHOO_RETRY_BACKOFF_SECONDS, max=10
            ),
            retry=retry_if_exception(_is_transient),
            reraise=True,
        )
        async for attempt in retrying:
            with attempt:
                return await self._send(operation, path, params, symbol)
        raise AssertionError("unreachable")  # pragma: no cover

    async def _send(
        self,
        operation: str,
        path: str,
        params: Dict[str, Any],
        symbol: Optional[str],
        crumb_refreshed: bool = False,
    ) -> Dict[str, Any]:
        with tracer.start_as_current_span(f"yahoo.{operation}") as span:
            url = f"{self._base_url}{path}"
            span.set_attribute("http.url", url)
            if symbol:
                span.set_attribute("market.symbol", symbol)

            query = dict(params)
            query["crumb"] = await self._get_crumb()

            try:
                response = await self._client.get(url, params=query)
            except httpx.TimeoutException as e:
                raise UpstreamTimeoutException(operation, self._timeout) from e
            except httpx.HTTPError as e:
                raise UpstreamConnectionException(url=url, original_error=e) from e

            span.set_attribute("http.status_code", response.status_code)

            if response.status_code == 401 and not crumb_refreshed:
                logger.info("Upstream rejected crumb, refreshing", extra={"operation": operation})
                self._crumb = None
                return await self._send(
                    operation, path, params, symbol, crumb_refreshed=True
                )

            if response.status_code == 429:
                raise UpstreamRateLimitException(
                    operation, response.headers.get("Retry-After")
                )

            if response.status_code == 404 and symbol:
                raise SymbolNotFoundException(symbol)

            if response.status_code >= 400:
                raise UpstreamResponseException(
                    operation, response.status_code, response.reason_phrase
                )

            try:
                payload = response.json()
            except ValueError as e:
                raise UpstreamResponseException(
                    operation, response.status_code, "invalid JSON body"
                ) from e

            if not isinstance(payload, dict):
                raise UpstreamResponseException(
                    operation, response.status_code, "unexpected payload shape"
                )
            return payload

    @staticmethod
    def _first_result(
        envelope: Any, operation: str, symbol: Optional[str] = None
    ) -> Dict[str, Any]:
        """Unwrap ``{"result": [...], "error": ...}`` envelopes."""
        if not isinstance(envelope, dict):
            raise UpstreamResponseException(operation, reason="missing result envelope")

        error = envelope.get("error")
        if error:
            description = (
                error.get("description") if isinstance(error, dict) else str(error)
            )
            if symbol and isinstance(error, dict) and error.get("code") == "Not Found":
                raise SymbolNotFoundException(symbol)
            raise UpstreamResponseException(operation, reason=description)

        results = envelope.get("result") or []
        if not results:
            if symbol:
                raise SymbolNotFoundException(symbol)
            raise UpstreamResponseException(operation, reason="empty result")
        return results[0]

    # Provider operations

    async def quote(self, symbol: str) -> Dict[str, Any]:
        """Real-time quote snapshot for one symbol."""
        payload = await self._request(
            "quote", "/v7/finance/quote", {"symbols": symbol}
        )
        return self._first_result(payload.get("quoteResponse"), "quote", symbol)

    async def quote_summary(
        self, symbol: str, modules: Sequence[str]
    ) -> Dict[str, Any]:
        """Quote summary restricted to the requested modules."""
        payload = await self._request(
            "quote_summary",
            f"/v10/finance/quoteSummary/{symbol}",
            {"modules": ",".join(modules), "formatted": "false"},
            symbol=symbol,
        )
        return self._first_result(payload.get("quoteSummary"), "quote_summary", symbol)

    async def chart(
        self,
        symbol: str,
        period1: datetime,
        period2: datetime,
        interval: str,
    ) -> Dict[str, Any]:
        """OHLCV series between two instants, as ``{meta, quotes}``."""
        payload = await self._request(
            "chart",
            f"/v8/finance/chart/{symbol}",
            {
                "period1": _to_epoch(period1),
                "period2": _to_epoch(period2),
                "interval": interval,
                "includePrePost": "false",
                "events": "div|split",
            },
            symbol=symbol,
        )
        result = self._first_result(payload.get("chart"), "chart", symbol)
        return self._normalize_chart(result)

    @staticmethod
    def _normalize_chart(result: Dict[str, Any]) -> Dict[str, Any]:
        timestamps: List[int] = result.get("timestamp") or []
        indicators = result.get("indicators") or {}
        quote = (indicators.get("quote") or [{}])[0]
        adjclose = ((indicators.get("adjclose") or [{}])[0]).get("adjclose") or []

        def column(name: str) -> List[Any]:
            return quote.get(name) or []

        opens, highs, lows = column("open"), column("high"), column("low")
        closes, volumes = column("close"), column("volume")

        def at(values: List[Any], index: int) -> Any:
            return values[index] if index < len(values) else None

        quotes = []
        for i, ts in enumerate(timestamps):
            quotes.append(
                {
                    "date": datetime.fromtimestamp(ts, tz=timezone.utc).isoformat(),
                    "open": at(opens, i),
                    "high": at(highs, i),
                    "low": at(lows, i),
                    "close": at(closes, i),
                    "volume": at(volumes, i),
                    "adjclose": at(adjclose, i),
                }
            )

        return {"meta": result.get("meta") or {}, "quotes": quotes}

    async def search(
        self, query: str, news_count: Optional[int] = None
    ) -> Dict[str, Any]:
        """Free-text search over quotes and news."""
        params: Dict[str, Any] = {"q": query}
        if news_count is not None:
            params["newsCount"] = news_count
        return await self._request("search", "/v1/finance/search", params)

    async def screener(
        self,
        scr_ids: str,
        count: int,
        region: str,
        lang: str,
        validate_result: bool = True,
    ) -> Dict[str, Any]:
        """Predefined screener results."""
        payload = await self._request(
            "screener",
            "/v1/finance/screener/predefined/saved",
            {
                "scrIds": scr_ids,
                "count": count,
                "region": region,
                "lang": lang,
                "formatted": "false",
            },
        )
        result = self._first_result(payload.get("finance"), "screener")
        # An upstream error always raises; validation only checks the result shape
        if validate_result and not isinstance(result.get("quotes"), list):
            raise UpstreamResponseException("screener", reason="result has no quotes")
        return result

    async def trending_symbols(self, region: str) -> Dict[str, List[Dict[str, Any]]]:
        """Currently trending symbols for a region."""
        payload = await self._request(
            "trending_symbols", f"/v1/finance/trending/{region}", {}
        )
        result = self._first_result(payload.get("finance"), "trending_symbols")
        return {"quotes": result.get("quotes") or []}
