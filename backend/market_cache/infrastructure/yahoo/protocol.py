from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, List, Optional, Protocol, Sequence


class MarketDataProvider(Protocol):
    """Upstream market data calls consumed by the cached accessors.

    Every method is an independent network call that may raise
    ``UpstreamException``.
    """

    async def quote(self, symbol: str) -> Dict[str, Any]:  # pragma: no cover - interface
        ...

    async def quote_summary(
        self, symbol: str, modules: Sequence[str]
    ) -> Dict[str, Any]:  # pragma: no cover - interface
        ...

    async def chart(
        self,
        symbol: str,
        period1: datetime,
        period2: datetime,
        interval: str,
    ) -> Dict[str, Any]:  # pragma: no cover - interface
        ...

    async def search(
        self, query: str, news_count: Optional[int] = None
    ) -> Dict[str, Any]:  # pragma: no cover - interface
        ...

    async def screener(
        self,
        scr_ids: str,
        count: int,
        region: str,
        lang: str,
        validate_result: bool = True,
    ) -> Dict[str, Any]:  # pragma: no cover - interface
        ...

    async def trending_symbols(
        self, region: str
    ) -> Dict[str, List[Dict[str, Any]]]:  # pragma: no cover - interface
        ...
