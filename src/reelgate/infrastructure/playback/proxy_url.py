"""Same-origin playback proxy URLs: building them and parsing them back.

A proxy URL carries two query parameters::

    /proxy?videoUrl=<percent-encoded URL>&headers=<percent-encoded JSON object>

Both values are percent-encoded with no safe characters, so neither can
leak delimiters into the surrounding query string. The parser re-validates
everything on the way in because the URL reaches the server from the client.
"""

from __future__ import annotations

import ipaddress
import json
import re
from urllib.parse import quote, urlsplit

import structlog

from reelgate.domain.entities.errors import ProxyBadRequest
from reelgate.domain.entities.playback import (
    NO_HEADERS,
    ForwardHeaders,
    Headers,
    ProxyRequest,
    StreamCandidate,
    forward_headers_from,
)

log = structlog.get_logger(__name__)

PROXY_PATH = "/proxy"
VIDEO_URL_PARAM = "videoUrl"
HEADERS_PARAM = "headers"

_ALLOWED_SCHEMES = frozenset({"http", "https"})

# RFC 7230 token characters.
_HEADER_NAME_RE = re.compile(r"[!#$%&'*+\-.^_`|~0-9A-Za-z]+")
_FORBIDDEN_VALUE_CHARS = ("\r", "\n", "\x00")

# Connection-level headers are owned by the proxy's own HTTP client.
_HOP_BY_HOP = frozenset(
    {
        "connection",
        "content-length",
        "host",
        "keep-alive",
        "proxy-authenticate",
        "proxy-authorization",
        "proxy-connection",
        "te",
        "trailer",
        "transfer-encoding",
        "upgrade",
    }
)


def _encode(value: str) -> str:
    return quote(value, safe="")


def encode_forward_headers(headers: ForwardHeaders) -> str | None:
    """Serialize headers to compact JSON. None for NoHeaders."""
    if not isinstance(headers, Headers) or not headers.values:
        return None
    return json.dumps(headers.values, separators=(",", ":"))


def build_proxy_url(
    candidate: StreamCandidate | ProxyRequest,
    proxy_path: str = PROXY_PATH,
) -> str:
    """Build the relative playback URL for a chosen stream.

    >>> build_proxy_url(StreamCandidate("", "", "http://cdn.example/a.mp4"))
    '/proxy?videoUrl=http%3A%2F%2Fcdn.example%2Fa.mp4'
    """
    url = f"{proxy_path}?{VIDEO_URL_PARAM}={_encode(candidate.target_url)}"
    headers_json = encode_forward_headers(candidate.forward_headers)
    if headers_json is not None:
        url += f"&{HEADERS_PARAM}={_encode(headers_json)}"
    return url


# ---------------------------------------------------------------------------
# Parsing (server side)
# ---------------------------------------------------------------------------


def _is_disallowed_host(hostname: str) -> bool:
    """True for localhost and non-public IP literals. No DNS lookups."""
    host = hostname.lower().rstrip(".")
    if host == "localhost" or host.endswith(".localhost"):
        return True
    try:
        address = ipaddress.ip_address(host)
    except ValueError:
        return False
    return (
        address.is_private
        or address.is_loopback
        or address.is_link_local
        or address.is_reserved
        or address.is_unspecified
        or address.is_multicast
    )


def validate_target_url(raw: str | None, *, deny_private_networks: bool = True) -> str:
    """Return the target URL if it may be proxied, else raise ProxyBadRequest."""
    if raw is None or not raw.strip():
        raise ProxyBadRequest(f"Missing required parameter '{VIDEO_URL_PARAM}'")

    target = raw.strip()
    if any(ord(ch) < 0x21 or ord(ch) == 0x7F for ch in target):
        raise ProxyBadRequest("videoUrl contains whitespace or control characters")

    try:
        parts = urlsplit(target)
        hostname = parts.hostname
        parts.port  # noqa: B018 - raises ValueError on a malformed port
    except ValueError as exc:
        raise ProxyBadRequest("videoUrl is not a well-formed URL") from exc

    if parts.scheme.lower() not in _ALLOWED_SCHEMES:
        raise ProxyBadRequest(
            f"videoUrl scheme '{parts.scheme or '(none)'}' is not allowed"
        )
    if not hostname:
        raise ProxyBadRequest("videoUrl must be an absolute URL with a host")
    if deny_private_networks and _is_disallowed_host(hostname):
        raise ProxyBadRequest(f"videoUrl host '{hostname}' is not allowed")

    return target


def decode_forward_headers(raw: str | None) -> ForwardHeaders:
    """Parse the ``headers`` parameter into ForwardHeaders.

    Rejects anything that is not a flat JSON object of valid header names
    to ASCII string values free of CR/LF/NUL. Hop-by-hop headers are
    dropped.
    """
    if raw is None or not raw.strip():
        return NO_HEADERS

    try:
        decoded = json.loads(raw)
    except ValueError as exc:
        raise ProxyBadRequest("headers is not valid JSON") from exc
    if not isinstance(decoded, dict):
        raise ProxyBadRequest("headers must be a JSON object")

    headers: dict[str, str] = {}
    for name, value in decoded.items():
        if not _HEADER_NAME_RE.fullmatch(name):
            raise ProxyBadRequest(f"Invalid header name: {name!r}")
        if not isinstance(value, str):
            raise ProxyBadRequest(f"Header '{name}' must have a string value")
        if any(ch in value for ch in _FORBIDDEN_VALUE_CHARS):
            raise ProxyBadRequest(f"Header '{name}' contains control characters")
        if not value.isascii():
            raise ProxyBadRequest(f"Header '{name}' must be ASCII")
        if name.lower() in _HOP_BY_HOP:
            log.debug("proxy_header_dropped", header=name)
            continue
        headers[name] = value

    return forward_headers_from(headers)


def parse_proxy_request(
    video_url: str | None,
    headers: str | None = None,
    *,
    deny_private_networks: bool = True,
) -> ProxyRequest:
    """Decode and validate the two proxy query parameters."""
    target = validate_target_url(video_url, deny_private_networks=deny_private_networks)
    return ProxyRequest(
        target_url=target,
        forward_headers=decode_forward_headers(headers),
    )
