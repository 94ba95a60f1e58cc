"""
HTTP transport for the EasyPost REST API.

Resource services only depend on the ``Transport`` protocol, so tests (and
callers with their own HTTP stack) can inject anything that exposes
``get/post/patch/delete`` returning a ``Response``. ``HttpTransport`` is the
default implementation on top of ``httpx.AsyncClient``.
"""

import time
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Protocol, Tuple, runtime_checkable

import httpx

from postbind import __version__
from postbind import json_utils
from postbind.exceptions import ApiConnectionError, ApiError, RateLimitError, error_class_for_status
from postbind.logger import logger


@dataclass
class Response:
    """Decoded API response."""
    status_code: int
    body: Any = field(default_factory=dict)
    headers: Dict[str, str] = field(default_factory=dict)


@runtime_checkable
class Transport(Protocol):
    async def get(self, url: str, query: Optional[Mapping[str, Any]] = None) -> Response: ...

    async def post(self, url: str, body: Any = None) -> Response: ...

    async def patch(self, url: str, body: Any = None) -> Response: ...

    async def delete(self, url: str) -> Response: ...


def flatten_query(query: Optional[Mapping[str, Any]], prefix: str = "") -> List[Tuple[str, str]]:
    """
    Flatten nested query parameters the way the API expects them.

        {"a": {"b": 1}, "ids": ["x", "y"]} -> [("a[b]", "1"), ("ids[]", "x"), ("ids[]", "y")]

    ``None`` values are dropped and booleans are sent as ``true``/``false``.
    """
    params: List[Tuple[str, str]] = []
    for key, value in (query or {}).items():
        name = f"{prefix}[{key}]" if prefix else str(key)
        if value is None:
            continue
        if isinstance(value, Mapping):
            params.extend(flatten_query(value, name))
        elif isinstance(value, (list, tuple)):
            for item in value:
                params.append((f"{name}[]", _query_value(item)))
        else:
            params.append((name, _query_value(value)))
    return params


def _query_value(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def _decode_body(response: httpx.Response) -> Any:
    if not response.content:
        return {}
    try:
        return json_utils.loads(response.content)
    except ValueError:
        return response.text


def raise_for_response(response: httpx.Response, body: Any) -> None:
    """Raise the ApiError subclass matching a non-2xx response."""
    if response.is_success:
        return

    error = body.get("error") if isinstance(body, dict) else None
    error = error if isinstance(error, dict) else {}
    message = error.get("message") or f"HTTP {response.status_code} returned by {response.request.url}"
    kwargs: Dict[str, Any] = dict(
        status_code=response.status_code,
        code=error.get("code"),
        errors=error.get("errors"),
        http_body=response.text,
    )

    error_class = error_class_for_status(response.status_code)
    if error_class is RateLimitError:
        retry_after = response.headers.get("Retry-After")
        kwargs["retry_after"] = int(retry_after) if retry_after and retry_after.isdigit() else None

    raise error_class(message, **kwargs)


class HttpTransport:
    """
    httpx-backed transport.

    Authenticates with the API key as the basic-auth username. Non-2xx
    responses raise ``ApiError`` subclasses; connectivity failures and
    timeouts raise ``ApiConnectionError``. Nothing is retried here.
    """

    def __init__(
        self,
        api_key: str,
        base_url: str,
        timeout: float = 60.0,
        http_transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.base_url = base_url
        self.client = httpx.AsyncClient(
            base_url=base_url,
            auth=(api_key, ""),
            headers={
                "Accept": "application/json",
                "User-Agent": f"postbind/{__version__}",
            },
            timeout=timeout,
            transport=http_transport,
        )

    async def get(self, url: str, query: Optional[Mapping[str, Any]] = None) -> Response:
        return await self._request("GET", url, params=flatten_query(query))

    async def post(self, url: str, body: Any = None) -> Response:
        return await self._request("POST", url, body=body)

    async def patch(self, url: str, body: Any = None) -> Response:
        return await self._request("PATCH", url, body=body)

    async def delete(self, url: str) -> Response:
        return await self._request("DELETE", url)

    async def _request(
        self,
        method: str,
        url: str,
        params: Optional[List[Tuple[str, str]]] = None,
        body: Any = None,
    ) -> Response:
        headers = {}
        content = None
        if body is not None:
            content = json_utils.dumps_bytes(body)
            headers["Content-Type"] = "application/json"

        log = logger.bind(resource=url.split("/", 1)[0])
        started = time.perf_counter()
        try:
            response = await self.client.request(
                method, url, params=params or None, content=content, headers=headers
            )
        except httpx.TransportError as e:
            log.warning(f"{method} {url} failed: {e!r}")
            raise ApiConnectionError(f"Could not reach the API: {e}") from e

        elapsed_ms = (time.perf_counter() - started) * 1000
        log.debug(f"{method} {url} -> {response.status_code} ({elapsed_ms:.0f} ms)")

        body = _decode_body(response)
        try:
            raise_for_response(response, body)
        except ApiError as e:
            log.warning(f"{method} {url} returned {e.status_code}: {e.message}")
            raise

        return Response(status_code=response.status_code, body=body, headers=dict(response.headers))

    async def aclose(self) -> None:
        await self.client.aclose()

    async def __aenter__(self):
        return self

    async def __aexit__(self, *args):
        await self.aclose()
