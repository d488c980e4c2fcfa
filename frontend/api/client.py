"""
HTTP client configuration and utilities.

GET responses are cached per (token, path, params) for QUERY_CACHE_TTL seconds;
any mutation through ``send`` clears the whole cache, so the next render reads
fresh data. Concurrent edits are last-writer-wins.
"""
from typing import Any, Dict, Optional

import httpx
import streamlit as st

from config.settings import settings
from core.auth import get_auth_headers


def get_client(timeout: Optional[float] = None, headers: Optional[Dict] = None):
    """
    Get configured HTTP client with auth headers.

    Args:
        timeout: Request timeout in seconds
        headers: Headers to use instead of the session's bearer header

    Returns:
        httpx.Client instance
    """
    return httpx.Client(
        base_url=settings.API_URL,
        headers=get_auth_headers() if headers is None else headers,
        timeout=httpx.Timeout(timeout or settings.REQUEST_TIMEOUT)
    )


@st.cache_data(ttl=settings.QUERY_CACHE_TTL, show_spinner=False)
def _cached_get(token: str, path: str, params: tuple) -> Any:
    headers = {"Authorization": f"Bearer {token}"} if token else {}
    with get_client(headers=headers) as client:
        response = client.get(path, params=dict(params))
        response.raise_for_status()
        return response.json()


def fetch(path: str, params: Optional[Dict] = None) -> Any:
    """Cached GET returning the decoded JSON body; raises httpx errors."""
    token = st.session_state.get("token") or ""
    key = tuple(sorted((k, v) for k, v in (params or {}).items() if v is not None))
    return _cached_get(token, path, key)


def invalidate_cache():
    _cached_get.clear()


def send(method: str, path: str, timeout: Optional[float] = None, **kwargs) -> Any:
    """
    Perform a mutating request and clear the read cache.

    Keyword arguments are passed to ``httpx.Client.request`` (json, data, files, params).
    Returns the decoded JSON body, or None for empty responses.
    """
    try:
        with get_client(timeout) as client:
            response = client.request(method, path, **kwargs)
            response.raise_for_status()
    finally:
        invalidate_cache()
    return response.json() if response.content else None


def download(path: str, timeout: Optional[float] = None) -> bytes:
    """Raw bytes of a file endpoint; never cached."""
    with get_client(timeout) as client:
        response = client.get(path)
        response.raise_for_status()
        return response.content


def _detail(response: httpx.Response) -> str:
    try:
        body = response.json()
    except ValueError:
        return response.text or "Unknown error"
    if not isinstance(body, dict):
        return str(body)
    errors = body.get("errors")
    if errors:
        return "; ".join(
            f"{e['field']}: {e['message']}" if e.get("field") else e.get("message", "")
            for e in errors
        )
    detail = body.get("detail", "Unknown error")
    return detail if isinstance(detail, str) else str(detail)


def handle_http_error(e: Exception, operation: str, logger) -> str:
    """
    Handle HTTP errors and return user-friendly message.

    Args:
        e: Exception that occurred
        operation: Description of the operation
        logger: Logger instance

    Returns:
        Error message string
    """
    if isinstance(e, httpx.HTTPStatusError):
        status = e.response.status_code
        error_detail = _detail(e.response)
        logger.error(f"{operation} failed | status: {status} | detail: {error_detail}")
        if status == 401 and st.session_state.get("token"):
            return f"{operation} failed: your session has expired. Please log in again."
        if status == 413:
            return f"{operation} failed: file too large."
        return f"{operation} failed: {error_detail}"
    elif isinstance(e, httpx.RequestError):
        logger.error(f"Network error during {operation}: {e}", exc_info=True)
        return f"Network error during {operation}: {e}"
    else:
        logger.error(f"Unexpected error during {operation}: {e}", exc_info=True)
        return f"Unexpected error during {operation}: {e}"
