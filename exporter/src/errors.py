"""
Exception types raised by the bridge core.

CHANGELOG:
- 2026-10-19: Initial creation (STORY-102)

TODO:
- None
"""


class ExporterError(Exception):
    """Base class for all bridge errors."""


class StreamFatal(ExporterError):
    """The inbound byte stream ended or failed; ingestion cannot continue."""


class MalformedFrame(ExporterError):
    """A candidate frame is not a valid telemetry JSON object.

    Args:
        frame: The raw frame bytes that failed to decode.
        reason: Short human-readable cause.
    """

    def __init__(self, frame: bytes, reason: str) -> None:
        self.frame = frame
        self.reason = reason
        super().__init__(f"Malformed frame ({reason}): {excerpt(frame)}")


def excerpt(frame: bytes, limit: int = 80) -> str:
    """Return a printable, length-capped rendering of *frame* for logs."""
    text = frame[:limit].decode("utf-8", errors="replace")
    if len(frame) > limit:
        text += "..."
    return text
