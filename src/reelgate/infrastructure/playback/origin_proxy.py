"""Origin replay for the playback proxy.

The proxy re-issues the player's request against the real media origin with
the provider-required headers attached, then streams the body back without
buffering it. Only an explicit allow-list of response headers is passed on.
"""

from __future__ import annotations

from collections.abc import AsyncIterator, Mapping
from dataclasses import dataclass, field
from urllib.parse import urljoin, urlsplit

import httpx
import structlog

from reelgate.domain.entities.errors import (
    OriginStatusError,
    OriginUnreachableError,
    ProxyBadRequest,
)
from reelgate.domain.entities.playback import ProxyRequest, forward_headers_dict
from reelgate.infrastructure.playback.proxy_url import validate_target_url

log = structlog.get_logger(__name__)

# Response headers copied from the origin to the player.
SAFE_RESPONSE_HEADERS: tuple[str, ...] = (
    "content-type",
    "content-length",
    "content-range",
    "accept-ranges",
)

# Inbound request headers replayed to the origin (seeking support).
CLIENT_PASSTHROUGH_HEADERS: tuple[str, ...] = ("range", "if-range")

DEFAULT_CHUNK_SIZE = 65_536
MAX_REDIRECTS = 5


def build_outbound_headers(
    proxy_request: ProxyRequest,
    client_headers: Mapping[str, str] | None = None,
) -> dict[str, str]:
    """Merge forwarded provider headers with the allowed client headers.

    Provider headers win over client headers of the same name. The body is
    requested unencoded so Content-Length stays truthful.
    """
    outbound: dict[str, str] = {"Accept-Encoding": "identity"}
    if client_headers:
        for name in CLIENT_PASSTHROUGH_HEADERS:
            value = client_headers.get(name)
            if value:
                outbound[name.title()] = value
    outbound.update(forward_headers_dict(proxy_request.forward_headers))
    return outbound


def select_response_headers(headers: httpx.Headers) -> dict[str, str]:
    """Pick the allow-listed origin headers for the player response."""
    selected = {
        name: headers[name] for name in SAFE_RESPONSE_HEADERS if name in headers
    }
    encoding = headers.get("content-encoding", "identity").lower()
    if encoding != "identity":
        # httpx decodes the body, so the origin length no longer applies.
        selected.pop("content-length", None)
    return selected


@dataclass
class OriginStream:
    """An open origin response ready to be streamed to the player."""

    status_code: int
    headers: dict[str, str]
    response: httpx.Response
    chunk_size: int = DEFAULT_CHUNK_SIZE
    bytes_sent: int = field(default=0, init=False)
    interrupted: bool = field(default=False, init=False)

    async def iter_body(self) -> AsyncIterator[bytes]:
        """Yield body chunks; always closes the origin response at the end."""
        try:
            async for chunk in self.response.aiter_bytes(chunk_size=self.chunk_size):
                self.bytes_sent += len(chunk)
                yield chunk
        except httpx.HTTPError as exc:
            # Headers are already sent; the player sees a truncated body.
            self.interrupted = True
            log.warning(
                "proxy_stream_interrupted",
                url=str(self.response.request.url)[:120],
                bytes_sent=self.bytes_sent,
                error=str(exc),
            )
        finally:
            await self.response.aclose()

    async def aclose(self) -> None:
        await self.response.aclose()


async def _send_once(
    http_client: httpx.AsyncClient,
    method: str,
    url: str,
    headers: dict[str, str],
    timeout: httpx.Timeout | float | None,
) -> httpx.Response:
    request = http_client.build_request(
        method,
        url,
        headers=headers,
        timeout=timeout if timeout is not None else http_client.timeout,
    )
    try:
        return await http_client.send(request, stream=True, follow_redirects=False)
    except httpx.TimeoutException as exc:
        log.warning("proxy_origin_timeout", url=url[:120])
        raise OriginUnreachableError(
            "Origin did not respond in time", timed_out=True
        ) from exc
    except httpx.HTTPError as exc:
        log.warning("proxy_origin_unreachable", url=url[:120], error=str(exc))
        raise OriginUnreachableError("Origin is unreachable") from exc


def _redirect_target(
    current_url: str, location: str, *, deny_private_networks: bool
) -> str:
    """Resolve a Location header and apply the same checks as ``videoUrl``."""
    next_url = urljoin(current_url, location.strip())
    try:
        return validate_target_url(
            next_url, deny_private_networks=deny_private_networks
        )
    except ProxyBadRequest as exc:
        log.warning(
            "proxy_redirect_rejected",
            url=current_url[:120],
            location=next_url[:120],
            reason=exc.message,
        )
        raise OriginStatusError(
            "Origin redirected to a location that may not be proxied"
        ) from exc


async def open_origin_stream(
    http_client: httpx.AsyncClient,
    proxy_request: ProxyRequest,
    *,
    method: str = "GET",
    client_headers: Mapping[str, str] | None = None,
    timeout: httpx.Timeout | float | None = None,
    chunk_size: int = DEFAULT_CHUNK_SIZE,
    deny_private_networks: bool = True,
    max_redirects: int = MAX_REDIRECTS,
) -> OriginStream:
    """Send the request to the origin and return it as an OriginStream.

    Redirects are followed here rather than by httpx so every hop passes
    ``validate_target_url`` before it is requested. ``Authorization`` is
    dropped once a redirect leaves the original host.

    Raises ``OriginUnreachableError`` on transport errors and timeouts.
    Raises ``OriginStatusError`` on non-2xx answers (carrying the origin
    status) and when the redirect chain is refused or too long.
    The body is not read here; callers stream it via ``iter_body()``.
    """
    url = proxy_request.target_url
    origin_host = urlsplit(url).hostname
    headers = build_outbound_headers(proxy_request, client_headers)

    for _ in range(max_redirects + 1):
        resp = await _send_once(http_client, method, url, headers, timeout)
        if not resp.is_redirect:
            break
        await resp.aclose()
        url = _redirect_target(
            url,
            resp.headers["location"],
            deny_private_networks=deny_private_networks,
        )
        if resp.status_code == 303 and method != "HEAD":
            method = "GET"
        if urlsplit(url).hostname != origin_host:
            headers = {k: v for k, v in headers.items() if k.lower() != "authorization"}
        log.debug("proxy_origin_redirect", status=resp.status_code, url=url[:120])
    else:
        log.info("proxy_origin_redirect_loop", url=proxy_request.target_url[:120])
        raise OriginStatusError(
            f"Origin redirected more than {max_redirects} times"
        )

    if not resp.is_success:
        await resp.aclose()
        log.info(
            "proxy_origin_status",
            url=url[:120],
            status=resp.status_code,
        )
        raise OriginStatusError(
            f"Origin returned HTTP {resp.status_code}",
            status_code=resp.status_code,
        )

    return OriginStream(
        status_code=resp.status_code,
        headers=select_response_headers(resp.headers),
        response=resp,
        chunk_size=chunk_size,
    )
