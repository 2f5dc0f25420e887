"""
Output device error classification.
"""

from __future__ import annotations

from enum import Enum

from constants import (
    MEDIA_ERR_ABORTED,
    MEDIA_ERR_DECODE,
    MEDIA_ERR_NETWORK,
    MEDIA_ERR_SRC_NOT_SUPPORTED,
)


class MediaErrorKind(str, Enum):
    """
    Closed taxonomy of device failures.

    UNKNOWN covers codes outside the documented range and failures raised
    while starting playback.
    """

    ABORTED = "ABORTED"
    NETWORK = "NETWORK"
    DECODE = "DECODE"
    SRC_NOT_SUPPORTED = "SRC_NOT_SUPPORTED"
    UNKNOWN = "UNKNOWN"

    @classmethod
    def from_code(cls, code: int | None) -> MediaErrorKind:
        """Decode a device error code."""
        return _BY_CODE.get(code, cls.UNKNOWN) if code is not None else cls.UNKNOWN


_BY_CODE: dict[int, MediaErrorKind] = {
    MEDIA_ERR_ABORTED: MediaErrorKind.ABORTED,
    MEDIA_ERR_NETWORK: MediaErrorKind.NETWORK,
    MEDIA_ERR_DECODE: MediaErrorKind.DECODE,
    MEDIA_ERR_SRC_NOT_SUPPORTED: MediaErrorKind.SRC_NOT_SUPPORTED,
}
