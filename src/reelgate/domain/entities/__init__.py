from .errors import (
    CrossReferenceError,
    NoStreamsError,
    OriginStatusError,
    OriginUnreachableError,
    ProxyBadRequest,
    ProxyError,
    ProxyStage,
    ResolutionError,
    ResolutionStage,
    StreamTransportError,
    UpstreamStatusError,
)
from .playback import (
    NO_HEADERS,
    ForwardHeaders,
    Headers,
    MediaDetails,
    MediaKind,
    MediaPreview,
    NoHeaders,
    ProxyRequest,
    ResolutionRequest,
    ResolutionResult,
    SeasonInfo,
    StreamCandidate,
)

__all__ = [
    "NO_HEADERS",
    "CrossReferenceError",
    "ForwardHeaders",
    "Headers",
    "MediaDetails",
    "MediaKind",
    "MediaPreview",
    "NoHeaders",
    "NoStreamsError",
    "OriginStatusError",
    "OriginUnreachableError",
    "ProxyBadRequest",
    "ProxyError",
    "ProxyRequest",
    "ProxyStage",
    "ResolutionError",
    "ResolutionRequest",
    "ResolutionResult",
    "ResolutionStage",
    "SeasonInfo",
    "StreamCandidate",
    "StreamTransportError",
    "UpstreamStatusError",
]
