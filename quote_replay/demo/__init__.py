"""Synthetic feed captures for demos and tests."""

from .capture_generator import (
    CaptureConfig,
    CaptureGenerator,
    GeneratedFrame,
    encode_payload,
    build_udp_frame,
    build_tcp_frame,
    accept_field,
    write_capture,
)

__all__ = [
    'CaptureConfig',
    'CaptureGenerator',
    'GeneratedFrame',
    'encode_payload',
    'build_udp_frame',
    'build_tcp_frame',
    'accept_field',
    'write_capture',
]
