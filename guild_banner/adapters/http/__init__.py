"""HTTP adapter package."""

from .server import BannerHTTPServer, QueryValidationError, cache_headers, parse_banner_query

__all__ = ["BannerHTTPServer", "QueryValidationError", "cache_headers", "parse_banner_query"]
