"""Chunk transports delivering task streams."""

from analysis_stream.transport.base import ChunkTransport, iter_chunks
from analysis_stream.transport.http import HttpTaskTransport, build_client, error_from_response

__all__ = [
    "ChunkTransport",
    "HttpTaskTransport",
    "build_client",
    "error_from_response",
    "iter_chunks",
]
