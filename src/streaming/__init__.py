"""Streaming module for the offline FairPlay workflow.

This module exposes the encoded asset for playback:
- Streaming endpoint start/stop with run-scoped bookkeeping
- Streaming locator creation
- HLS playback URL derivation
"""

from .endpoint import ensure_streaming_endpoint_running, stop_streaming_endpoint
from .locator import build_hls_url, create_streaming_locator, get_hls_streaming_url

__all__ = [
    "ensure_streaming_endpoint_running",
    "stop_streaming_endpoint",
    "build_hls_url",
    "create_streaming_locator",
    "get_hls_streaming_url",
]
