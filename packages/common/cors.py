"""Permissive cross-origin support for the browser-facing endpoints.

Pre-flight `OPTIONS` requests are answered directly with 200, an empty body
and the CORS headers; every other response gets the same headers attached,
including the 500 rendered for an exception nothing else handled.
"""

from fastapi import Request, Response
from typing import Awaitable, Callable

from .errors import unhandled_error_response

CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Methods": "GET, POST, OPTIONS",
    "Access-Control-Allow-Headers": "Content-Type, Authorization, X-Client-Info, Apikey",
}


async def cors_middleware(request: Request, call_next: Callable[[Request], Awaitable[Response]]) -> Response:
    """Short-circuit pre-flight requests and decorate all other responses."""
    if request.method == "OPTIONS":
        return Response(status_code=200, headers=CORS_HEADERS)
    try:
        response = await call_next(request)
    except Exception as exc:
        response = unhandled_error_response(request, exc)
    response.headers.update(CORS_HEADERS)
    return response
