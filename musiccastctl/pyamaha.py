from __future__ import annotations

import asyncio
import logging
import sys
from collections.abc import Iterable
from dataclasses import dataclass
from typing import IO
from urllib.parse import parse_qsl, urlencode, urlsplit, urlunsplit

import aiohttp
from aiohttp import BasicAuth, ClientError, ClientTimeout, InvalidURL

from .config import ConnectionConfig
from .const import DEFAULT_API_PREFIX, PRODUCT_PATH, RESPONSE_CODE, RETRY_BACKOFF
from .exceptions import (
    MusicCastConfigurationException,
    MusicCastConnectionException,
    MusicCastDecodeException,
    MusicCastHTTPStatusException,
    MusicCastResponseCodeException,
)
from .musiccast_data import EndpointReference, HttpResult
from .output import decode_json, render, response_code

_LOGGER = logging.getLogger(__name__)


def _is_absolute_url(path: str) -> bool:
    return path.startswith("http://") or path.startswith("https://")


class UrlBuilder:
    @classmethod
    def api_prefix(cls, prefix: str | None) -> str:
        """Normalize the API prefix to one leading slash and no trailing slash."""
        prefix = (prefix or "").strip()
        if not prefix:
            prefix = DEFAULT_API_PREFIX
        if not prefix.startswith("/"):
            prefix = "/" + prefix
        return prefix.rstrip("/")

    @classmethod
    def api_path(cls, prefix: str | None, path: str) -> str:
        """Root an endpoint suffix such as ``system/getDeviceInfo`` under the API prefix.

        Paths already below the prefix are returned unchanged.
        """
        prefix = cls.api_prefix(prefix)
        if not path.startswith("/"):
            path = "/" + path
        if prefix and (path == prefix or path.startswith(prefix + "/")):
            return path
        return prefix + "/" + path.lstrip("/")

    @classmethod
    def base_url(cls, config: ConnectionConfig) -> str:
        if config.base_url and config.base_url.strip():
            return config.base_url.strip().rstrip("/")
        host = (config.host or "").strip()
        if not host:
            raise MusicCastConfigurationException("host or base-url is required")
        if _is_absolute_url(host):
            return host.rstrip("/") + PRODUCT_PATH
        return f"http://{host}{PRODUCT_PATH}"

    @classmethod
    def merge_query(cls, url: str, query: Iterable[tuple[str, str]]) -> str:
        """Add query pairs to the query string already present on ``url``."""
        query = list(query)
        if not query:
            return url
        parts = urlsplit(url)
        pairs = parse_qsl(parts.query, keep_blank_values=True) + query
        return urlunsplit(parts._replace(query=urlencode(pairs)))

    @classmethod
    def validate(cls, url: str) -> str:
        """Reject URLs that cannot be sent, such as a non numeric port.

        Raises
        ------
        MusicCastConfigurationException
            If the URL has no host or cannot be parsed.
        """
        try:
            parts = urlsplit(url)
            parts.port  # raises ValueError for a non numeric or out of range port
        except ValueError as err:
            raise MusicCastConfigurationException(f"Invalid URL {url!r}: {err}") from err
        if parts.scheme not in ("http", "https") or not parts.hostname:
            raise MusicCastConfigurationException(f"Invalid URL {url!r}: an http or https URL with a host is required")
        return url

    @classmethod
    def build_url(cls, config: ConnectionConfig, path: str, query: Iterable[tuple[str, str]] = ()) -> str:
        if _is_absolute_url(path):
            url = path
        else:
            url = cls.base_url(config) + cls.api_path(config.api_prefix, path)
        return cls.validate(cls.merge_query(url, query))


@dataclass(frozen=True, slots=True)
class PreparedRequest:
    method: str
    url: str
    headers: tuple[tuple[str, str], ...]
    body: bytes | None

    def header(self, name: str) -> str | None:
        for key, value in self.headers:
            if key.lower() == name.lower():
                return value
        return None

    def describe(self) -> str:
        """Format the request the way it would be sent, for dry runs."""
        lines = [f"{self.method} {self.url}"]
        lines.extend(f"{key}: {value}" for key, value in self.headers)
        text = "\n".join(lines) + "\n"
        if self.body:
            text += "\n" + self.body.decode("utf-8", errors="replace") + "\n"
        return text


def _has_header(headers: Iterable[tuple[str, str]], name: str) -> bool:
    return any(key.lower() == name.lower() for key, _ in headers)


def build_request(config: ConnectionConfig, endpoint: EndpointReference) -> PreparedRequest:
    """Resolve an endpoint reference against the connection configuration."""
    url = UrlBuilder.build_url(config, endpoint.path, endpoint.query)
    body = endpoint.body or None

    headers: list[tuple[str, str]] = []
    if body is not None and endpoint.content_type and not _has_header(config.headers, "Content-Type"):
        headers.append(("Content-Type", endpoint.content_type))
    headers.extend(config.headers)
    if config.auth is not None and not _has_header(headers, "Authorization"):
        user, password = config.auth
        headers.append(("Authorization", BasicAuth(user, password, encoding="utf-8").encode()))

    return PreparedRequest(endpoint.method, url, tuple(headers), body)


class AsyncDevice:
    """Yamaha Extended Control endpoint caller."""

    def __init__(self, client: aiohttp.ClientSession, config: ConnectionConfig) -> None:
        """Ctor.

        Parameters
        ----------
        client : aiohttp.ClientSession
            aiohttp client session.
        config : ConnectionConfig
            Connection settings of this invocation.
        """
        self.client = client
        self.config = config
        self._sleep = asyncio.sleep

    # end-of-method __init__

    async def call(self, endpoint: EndpointReference, out: IO[str] | None = None) -> HttpResult | None:
        """Send an endpoint reference, render the response and check its outcome.

        The response body is written before an error is raised, so the
        device's answer is shown on failures too.

        Raises
        ------
        MusicCastHTTPStatusException
            If the final HTTP status is 400 or above.
        MusicCastResponseCodeException
            If the device answered with a non-zero ``response_code``.
        """
        out = out if out is not None else sys.stdout
        prepared = build_request(self.config, endpoint)
        if self.config.dry_run:
            out.write(prepared.describe())
            return None

        result = await self.request(endpoint)
        _LOGGER.info("%s %s -> %d", prepared.method, prepared.url, result.status)

        render(result.body, self.config.output_format, out)

        if result.status >= 400:
            raise MusicCastHTTPStatusException(result.status)
        code = self.response_code(result.body)
        if code:
            raise MusicCastResponseCodeException(code, RESPONSE_CODE.get(code))
        return result

    # end-of-method call

    @classmethod
    def response_code(cls, body: bytes) -> int | None:
        if not body:
            return None
        try:
            return response_code(decode_json(body))
        except MusicCastDecodeException:
            return None

    async def request(self, endpoint: EndpointReference) -> HttpResult:
        """Execute the endpoint reference, retrying on connection errors and 5xx answers.

        A fresh request is built for every attempt; the configured timeout
        applies to each attempt separately.
        """
        attempts = self.config.retries + 1
        for attempt in range(attempts):
            prepared = build_request(self.config, endpoint)
            last = attempt + 1 >= attempts
            try:
                result = await self.send(prepared)
            except MusicCastConnectionException as err:
                if last:
                    raise
                _LOGGER.warning("Attempt %d/%d of %s %s failed: %s", attempt + 1, attempts, prepared.method, prepared.url, err)
            else:
                if result.status < 500 or last:
                    return result
                _LOGGER.warning(
                    "Attempt %d/%d of %s %s returned %d", attempt + 1, attempts, prepared.method, prepared.url, result.status
                )
            await self._sleep(RETRY_BACKOFF * (attempt + 1))

        raise MusicCastConnectionException("request failed")

    # end-of-method request

    async def send(self, prepared: PreparedRequest) -> HttpResult:
        """Send one attempt and read the whole response."""
        timeout = ClientTimeout(total=self.config.timeout if self.config.timeout > 0 else None)
        _LOGGER.debug("Sending %s %s", prepared.method, prepared.url)
        try:
            async with self.client.request(
                prepared.method,
                prepared.url,
                headers=list(prepared.headers),
                data=prepared.body,
                timeout=timeout,
            ) as response:
                body = await response.read()
                return HttpResult(response.status, body, dict(response.headers))
        except InvalidURL as iu:
            raise MusicCastConfigurationException(f"Invalid URL {prepared.url!r}: {iu}") from iu
        except ClientError as ce:
            raise MusicCastConnectionException(f"{prepared.method} {prepared.url}: {ce}") from ce
        except TimeoutError as te:
            raise MusicCastConnectionException(f"{prepared.method} {prepared.url}: timed out") from te

    # end-of-method send


# end-of-class AsyncDevice
