"""HTTP transport shared by project operations: endpoints, retries and errors."""

from __future__ import annotations

import http.client
import json
import re
import time
import urllib.error
import urllib.request
from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import timedelta
from typing import Any

HTTP_SCHEME = "http://"
HTTPS_SCHEME = "https://"

PROJECT_DATA_REDUNDANCY_TYPE_UNKNOWN = "Unknown"
PROJECT_DATA_REDUNDANCY_TYPE_LRS = "LRS"
PROJECT_DATA_REDUNDANCY_TYPE_ZRS = "ZRS"

DEFAULT_REQUEST_TIMEOUT = 60.0
DEFAULT_RETRY_TIMEOUT = 90.0
DEFAULT_USER_AGENT = "slsproject"

# When true every endpoint is reached over plain http, whatever its scheme.
GLOBAL_FORCE_USING_HTTP = False

_IP_PATTERN = re.compile(r"\d{1,3}\.\d{1,3}\.\d{1,3}\.\d{1,3}.*")
_RETRYABLE_STATUS = frozenset({500, 502, 503})
_INITIAL_BACKOFF = 0.1
_MAX_BACKOFF = 2.0


class LogError(Exception):
    """An error reported by the log service in a response."""

    def __init__(
        self, code: str = "", message: str = "", *, http_code: int = 0, request_id: str = ""
    ) -> None:
        self.code = code
        self.message = message
        self.http_code = http_code
        self.request_id = request_id
        super().__init__(str(self))

    def __str__(self) -> str:
        return json.dumps(
            {
                "httpCode": self.http_code,
                "errorCode": self.code,
                "errorMessage": self.message,
                "requestID": self.request_id,
            },
            ensure_ascii=False,
        )


class ClientError(Exception):
    """A failure on the client side: the request could not be made or completed."""

    def __init__(self, message: str, *, cause: BaseException | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.cause = cause


@dataclass
class HttpResponse:
    """A complete response; header names are lower case."""

    status: int
    headers: dict[str, str] = field(default_factory=dict)
    body: bytes = b""


def _lower_headers(headers: Any) -> dict[str, str]:
    if headers is None:
        return {}
    return {str(name).lower(): value for name, value in headers.items()}


def _seconds(timeout: float | timedelta) -> float:
    if isinstance(timeout, timedelta):
        return timeout.total_seconds()
    return float(timeout)


class HttpClient:
    """Sends single HTTP requests with a timeout, optionally through a proxy."""

    def __init__(self, timeout: float = DEFAULT_REQUEST_TIMEOUT, proxy: str | None = None) -> None:
        self.timeout = timeout
        self.proxy = proxy

    def _opener(self) -> urllib.request.OpenerDirector:
        if self.proxy is None:
            return urllib.request.build_opener()
        handler = urllib.request.ProxyHandler({"http": self.proxy, "https": self.proxy})
        return urllib.request.build_opener(handler)

    def send(
        self,
        method: str,
        url: str,
        headers: Mapping[str, str] | None,
        body: bytes | None,
    ) -> HttpResponse:
        """Send one request and return its response, whatever its status."""
        request = urllib.request.Request(
            url, data=body, headers=dict(headers or {}), method=method
        )
        try:
            with self._opener().open(request, timeout=self.timeout) as response:
                return HttpResponse(
                    status=response.status,
                    headers=_lower_headers(response.headers),
                    body=response.read(),
                )
        except urllib.error.HTTPError as err:
            with err:
                payload = err.read()
            return HttpResponse(status=err.code, headers=_lower_headers(err.headers), body=payload)
        except urllib.error.URLError as err:
            raise ClientError(f"{method} {url} failed: {err.reason}", cause=err) from err
        except (OSError, http.client.HTTPException) as err:
            raise ClientError(f"{method} {url} failed: {err}", cause=err) from err


DEFAULT_HTTP_CLIENT = HttpClient(DEFAULT_REQUEST_TIMEOUT)


def parse_endpoint(
    endpoint: str, project_name: str, using_http: bool
) -> tuple[str, str | None]:
    """Work out the base URL of a project and, for IP endpoints, the proxy to reach it by."""
    scheme = HTTP_SCHEME
    host = endpoint
    if endpoint.startswith(HTTP_SCHEME):
        host = endpoint[len(HTTP_SCHEME):]
    elif endpoint.startswith(HTTPS_SCHEME):
        scheme = HTTPS_SCHEME
        host = endpoint[len(HTTPS_SCHEME):]

    if GLOBAL_FORCE_USING_HTTP or using_http:
        scheme = HTTP_SCHEME

    proxy = f"{scheme}{host}" if _IP_PATTERN.search(host) else None
    if project_name:
        return f"{scheme}{project_name}.{host}", proxy
    return f"{scheme}{host}", proxy


def _error_from_response(response: HttpResponse) -> LogError:
    code = ""
    message = ""
    request_id = response.headers.get("x-log-requestid", "")
    try:
        document = json.loads(response.body.decode("utf-8")) if response.body else None
    except (UnicodeDecodeError, ValueError):
        document = None
    if isinstance(document, Mapping):
        code = str(document.get("errorCode") or "")
        message = str(document.get("errorMessage") or "")
        request_id = request_id or str(document.get("requestID") or "")
    elif response.body:
        message = response.body.decode("utf-8", errors="replace")
    return LogError(code, message, http_code=response.status, request_id=request_id)


class ProjectBase:
    """Connection settings of one project and the request loop behind its operations."""

    def __init__(
        self,
        name: str,
        endpoint: str,
        access_key_id: str = "",
        access_key_secret: str = "",
        *,
        credentials_provider: Any = None,
        security_token: str = "",
        using_http: bool = False,
        user_agent: str = "",
        auth_version: str = "",
        common_headers: Mapping[str, str] | None = None,
        inner_headers: Mapping[str, str] | None = None,
    ) -> None:
        self.name = name
        self.endpoint = endpoint
        self.access_key_id = access_key_id
        self.access_key_secret = access_key_secret
        self.security_token = security_token
        self.using_http = using_http
        self.user_agent = user_agent
        self.auth_version = auth_version
        self.common_headers = dict(common_headers or {})
        self.inner_headers = dict(inner_headers or {})
        self.credentials_provider = credentials_provider
        self.http_client: HttpClient | None = DEFAULT_HTTP_CLIENT
        self.retry_timeout = DEFAULT_RETRY_TIMEOUT
        self._base_url = ""
        self._parse_endpoint()

    @property
    def base_url(self) -> str:
        if not self._base_url:
            self._parse_endpoint()
        return self._base_url

    def _parse_endpoint(self) -> None:
        base_url, proxy = parse_endpoint(self.endpoint, self.name, self.using_http)
        if proxy is not None:
            if self.http_client is None or self.http_client is DEFAULT_HTTP_CLIENT:
                self.http_client = HttpClient(DEFAULT_REQUEST_TIMEOUT)
            self.http_client.proxy = proxy
        self._base_url = base_url

    def with_credentials_provider(self, provider: Any) -> ProjectBase:
        self.credentials_provider = provider
        return self

    def with_token(self, token: str) -> ProjectBase:
        self.security_token = token
        return self

    def with_request_timeout(self, timeout: float | timedelta) -> ProjectBase:
        """Limit each single HTTP request to ``timeout`` seconds."""
        seconds = _seconds(timeout)
        if self.http_client is None or self.http_client is DEFAULT_HTTP_CLIENT:
            self.http_client = HttpClient(seconds)
        else:
            self.http_client.timeout = seconds
        return self

    def with_retry_timeout(self, timeout: float | timedelta) -> ProjectBase:
        """Limit one operation, retries included, to ``timeout`` seconds."""
        self.retry_timeout = _seconds(timeout)
        return self

    def raw_request(
        self,
        method: str,
        uri: str,
        headers: Mapping[str, str] | None,
        body: bytes | None,
    ) -> HttpResponse:
        """Send a request to the project and return the successful response."""
        return self._request(method, uri, headers, body)

    def _headers(self, headers: Mapping[str, str] | None) -> dict[str, str]:
        merged = dict(headers or {})
        present = {name.lower() for name in merged}
        if "user-agent" not in present:
            merged["User-Agent"] = self.user_agent or DEFAULT_USER_AGENT
            present.add("user-agent")
        for extra in (self.common_headers, self.inner_headers):
            for name, value in extra.items():
                if name.lower() not in present:
                    merged[name] = value
                    present.add(name.lower())
        return merged

    def _request(
        self,
        method: str,
        uri: str,
        headers: Mapping[str, str] | None = None,
        body: bytes | None = None,
    ) -> HttpResponse:
        """Send a request, retrying server failures until the retry timeout runs out."""
        if self.http_client is None:
            self.http_client = DEFAULT_HTTP_CLIENT
        url = self.base_url + uri
        merged = self._headers(headers)
        deadline = time.monotonic() + self.retry_timeout
        delay = _INITIAL_BACKOFF
        while True:
            try:
                response = self.http_client.send(method, url, merged, body)
            except ClientError as err:
                last: Exception = err
            else:
                if response.status == 200:
                    return response
                error = _error_from_response(response)
                if response.status not in _RETRYABLE_STATUS:
                    raise error
                last = error
            remaining = deadline - time.monotonic()
            if remaining <= 0:
                raise ClientError(
                    f"stopped retrying err: {last}, deadline exceeded", cause=last
                ) from last
            time.sleep(min(delay, remaining))
            delay = min(delay * 2, _MAX_BACKOFF)