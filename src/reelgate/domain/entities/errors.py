"""Failure taxonomy for the resolution pipeline and the playback proxy."""

from __future__ import annotations

from enum import StrEnum
from typing import ClassVar


class ResolutionStage(StrEnum):
    CROSS_REFERENCE = "cross_reference"
    TRANSPORT = "transport"
    UPSTREAM_STATUS = "upstream_status"
    NO_STREAMS = "no_streams"


class ProxyStage(StrEnum):
    BAD_REQUEST = "bad_request"
    ORIGIN_UNREACHABLE = "origin_unreachable"
    ORIGIN_STATUS = "origin_status"


class ResolutionError(Exception):
    """Base error for one playback resolution attempt.

    ``status_code`` carries the upstream HTTP status when one was received.
    """

    stage: ClassVar[ResolutionStage]

    def __init__(self, message: str, *, status_code: int | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.status_code = status_code

    def to_dict(self) -> dict[str, str | int | None]:
        return {
            "stage": self.stage.value,
            "message": self.message,
            "status_code": self.status_code,
        }


class CrossReferenceError(ResolutionError):
    """No external id could be found for the catalog id."""

    stage = ResolutionStage.CROSS_REFERENCE


class StreamTransportError(ResolutionError):
    """The stream-source provider could not be reached (or timed out)."""

    stage = ResolutionStage.TRANSPORT

    def __init__(
        self,
        message: str,
        *,
        status_code: int | None = None,
        timed_out: bool = False,
    ) -> None:
        super().__init__(message, status_code=status_code)
        self.timed_out = timed_out


class UpstreamStatusError(ResolutionError):
    """The stream-source provider answered with an error status."""

    stage = ResolutionStage.UPSTREAM_STATUS


class NoStreamsError(ResolutionError):
    """The provider answered but offered nothing playable."""

    stage = ResolutionStage.NO_STREAMS


class ProxyError(Exception):
    """Base error for one inbound playback proxy request."""

    stage: ClassVar[ProxyStage]

    def __init__(self, message: str, *, status_code: int | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.status_code = status_code

    def to_dict(self) -> dict[str, str | int | None]:
        return {
            "stage": self.stage.value,
            "message": self.message,
            "status_code": self.status_code,
        }


class ProxyBadRequest(ProxyError):
    """Missing, malformed or disallowed proxy parameters."""

    stage = ProxyStage.BAD_REQUEST


class OriginUnreachableError(ProxyError):
    """Transport failure (or timeout) while replaying against the origin."""

    stage = ProxyStage.ORIGIN_UNREACHABLE

    def __init__(
        self,
        message: str,
        *,
        status_code: int | None = None,
        timed_out: bool = False,
    ) -> None:
        super().__init__(message, status_code=status_code)
        self.timed_out = timed_out


class OriginStatusError(ProxyError):
    """The origin answered with a non-success status."""

    stage = ProxyStage.ORIGIN_STATUS
