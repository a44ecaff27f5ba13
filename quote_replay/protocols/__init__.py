"""
Feed protocol decoding.

Provides:
- Ethernet/IPv4/UDP payload extraction
- Quote decoder for the five-level bid/ask quote feed
"""

from .frames import udp_payload
from .quote import Quote, QuoteDecoder, packet_time_from_micros

__all__ = [
    'udp_payload',
    'Quote',
    'QuoteDecoder',
    'packet_time_from_micros',
]
