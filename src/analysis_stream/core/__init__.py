"""Core domain types."""

from analysis_stream.core.exceptions import (
    AnalysisStreamError,
    AuthenticationError,
    ControllerBusyError,
    StreamCancelledError,
    TransportError,
)

__all__ = [
    "AnalysisStreamError",
    "AuthenticationError",
    "ControllerBusyError",
    "StreamCancelledError",
    "TransportError",
]
