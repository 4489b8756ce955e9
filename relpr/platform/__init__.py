"""Adapters to the outside world."""

from .http import HttpClient, HttpError, JsonResponse, MockHttpClient, RealHttpClient

__all__ = [
    "HttpClient",
    "HttpError",
    "JsonResponse",
    "MockHttpClient",
    "RealHttpClient",
]
