"""
Cache Value Objects

Immutable value objects for the resource cache domain.
Provides type safety for cache keys, TTLs and the per-category TTL policy.
"""

from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Iterable, Mapping, Optional, Tuple


class ResourceCategory(str, Enum):
    """Upstream data categories with their own staleness bounds."""

    QUOTE = "QUOTE"
    CHART = "CHART"
    SEARCH = "SEARCH"
    MARKET_DATA = "MARKET_DATA"
    TRENDING = "TRENDING"
    STOCK_DETAILS = "STOCK_DETAILS"
    NEWS = "NEWS"
    SCREENER = "SCREENER"
    QUOTE_SUMMARY = "QUOTE_SUMMARY"
    HISTORICAL = "HISTORICAL"
    INSIGHTS = "INSIGHTS"
    OPTIONS = "OPTIONS"


def normalize_symbol(symbol: str) -> str:
    """Canonical form of a ticker symbol."""
    return (symbol or "").strip().upper()


def normalize_modules(modules: Iterable[str]) -> Tuple[str, ...]:
    """Sorted, de-duplicated quote-summary module names."""
    cleaned = {module.strip() for module in modules if module and module.strip()}
    return tuple(sorted(cleaned))


@dataclass(frozen=True)
class CacheKey:
    """
    Immutable cache key value object.

    A key is a namespace tag plus an ordered tuple of normalized parameter
    tokens. Equality and hashing are structural, so two keys built from the
    same logical request are interchangeable as dictionary keys.
    """

    namespace: str
    params: Tuple[str, ...] = field(default_factory=tuple)

    def __post_init__(self) -> None:
        """Validate cache key format."""
        if not self.namespace:
            raise ValueError("Cache key namespace cannot be empty")

        if any(char.isspace() for char in self.namespace):
            raise ValueError("Cache key namespace cannot contain whitespace")

        if not isinstance(self.params, tuple):
            object.__setattr__(self, "params", tuple(self.params))

        if any(not isinstance(param, str) for param in self.params):
            raise ValueError("Cache key parameters must be strings")

    @property
    def value(self) -> str:
        """Serialized key, ``NAMESPACE_param1_param2``."""
        return "_".join((self.namespace,) + self.params)

    def mentions_symbol(self, symbol: str) -> bool:
        """Whether any parameter token refers to the given symbol."""
        target = normalize_symbol(symbol)
        if not target:
            return False
        return any(param.upper() == target for param in self.params)

    # Key factories, one per accessor namespace

    @classmethod
    def quote(cls, symbol: str) -> "CacheKey":
        """Single-symbol quote key."""
        return cls("QUOTE", (normalize_symbol(symbol),))

    @classmethod
    def stock_details(cls, symbol: str) -> "CacheKey":
        """Quote + profile + news composite key."""
        return cls("DETAILS", (normalize_symbol(symbol),))

    @classmethod
    def quote_summary(cls, symbol: str, modules: Iterable[str]) -> "CacheKey":
        """Quote summary key; module order does not matter."""
        return cls(
            "QUOTE_SUMMARY",
            (normalize_symbol(symbol), ",".join(normalize_modules(modules))),
        )

    @classmethod
    def chart(cls, symbol: str, range_: str, interval: str) -> "CacheKey":
        """Chart series key."""
        return cls("CHART", (normalize_symbol(symbol), range_, interval))

    @classmethod
    def search(cls, query: str, category: str, news_count: int) -> "CacheKey":
        """Search key, built from the query actually sent upstream."""
        return cls("SEARCH", (query.strip().lower(), category, str(news_count)))

    @classmethod
    def screener(
        cls,
        screener_id: str,
        count: int,
        symbols: Optional[Iterable[str]] = None,
    ) -> "CacheKey":
        """Screener key; favorite symbols are appended in request order."""
        params: Tuple[str, ...] = (screener_id, str(count))
        if symbols:
            params += tuple(normalize_symbol(symbol) for symbol in symbols)
        return cls("SCREENER", params)

    @classmethod
    def market_data(cls) -> "CacheKey":
        """Market snapshot key."""
        return cls("MARKET_DATA")

    @classmethod
    def trending_data(cls) -> "CacheKey":
        """Trending snapshot key."""
        return cls("TRENDING_DATA")

    @classmethod
    def indices(cls) -> "CacheKey":
        """World indices basket key."""
        return cls("INDICES")

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True)
class TTL:
    """
    Time To Live value object for cache expiration.

    Zero is allowed and means entries are stored but never served.
    """

    seconds: float

    def __post_init__(self) -> None:
        """Validate TTL value."""
        if self.seconds < 0:
            raise ValueError("TTL cannot be negative")
        if self.seconds > 86400 * 365:  # Max 1 year
            raise ValueError("TTL too large (max 1 year)")

    @classmethod
    def of_seconds(cls, seconds: float) -> "TTL":
        """Create TTL from seconds."""
        return cls(float(seconds))

    @classmethod
    def of_minutes(cls, minutes: float) -> "TTL":
        """Create TTL from minutes."""
        return cls(float(minutes) * 60)

    def __str__(self) -> str:
        return f"{self.seconds:g}s"


DEFAULT_TTLS: Mapping[ResourceCategory, TTL] = MappingProxyType(
    {
        ResourceCategory.QUOTE: TTL.of_seconds(5),
        ResourceCategory.CHART: TTL.of_minutes(1),
        ResourceCategory.SEARCH: TTL.of_minutes(1),
        ResourceCategory.MARKET_DATA: TTL.of_seconds(5),
        ResourceCategory.TRENDING: TTL.of_seconds(10),
        ResourceCategory.STOCK_DETAILS: TTL.of_seconds(15),
        ResourceCategory.NEWS: TTL.of_minutes(1),
        ResourceCategory.SCREENER: TTL.of_seconds(15),
        ResourceCategory.QUOTE_SUMMARY: TTL.of_seconds(30),
        ResourceCategory.HISTORICAL: TTL.of_minutes(5),
        ResourceCategory.INSIGHTS: TTL.of_minutes(2),
        ResourceCategory.OPTIONS: TTL.of_minutes(1),
    }
)


class TTLPolicy:
    """
    Read-only mapping from resource category to TTL.

    Built once from the defaults plus optional per-category overrides.
    """

    def __init__(self, overrides: Optional[Mapping[str, float]] = None):
        table = dict(DEFAULT_TTLS)
        for name, seconds in (overrides or {}).items():
            try:
                category = ResourceCategory(name.upper())
            except ValueError:
                raise ValueError(f"Unknown resource category: {name}") from None
            table[category] = TTL.of_seconds(seconds)
        self._table: Mapping[ResourceCategory, TTL] = MappingProxyType(table)

    def ttl_for(self, category: ResourceCategory) -> TTL:
        """TTL configured for a category."""
        return self._table[category]

    def as_dict(self) -> dict:
        """Category name to seconds, for diagnostics."""
        return {category.value: ttl.seconds for category, ttl in self._table.items()}

    def __getitem__(self, category: ResourceCategory) -> TTL:
        return self.ttl_for(category)
