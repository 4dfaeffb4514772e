"""
Market Data Cache

TTL-bounded caching layer between the market data API routes and the
upstream Yahoo Finance provider.
"""

__version__ = "0.1.0"
