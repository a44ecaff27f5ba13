"""
Ethernet / IPv4 / UDP decomposition.

Only the UDP payload matters to the quote decoder; everything else is
filtering. Anything that is not Ethernet II carrying IPv4 carrying UDP is
not feed traffic and yields None.
"""

from typing import Optional

import dpkt


def udp_payload(frame_bytes: bytes) -> Optional[bytes]:
    """
    Extract the UDP payload from a raw Ethernet frame.

    Returns:
        The UDP payload bytes, or None if the frame is not Ethernet/IPv4/UDP
        or its headers cannot be unpacked
    """
    try:
        eth = dpkt.ethernet.Ethernet(frame_bytes)
    except dpkt.dpkt.UnpackError:
        return None

    if eth.type != dpkt.ethernet.ETH_TYPE_IP:
        return None

    ip = eth.data
    if not isinstance(ip, dpkt.ip.IP) or ip.p != dpkt.ip.IP_PROTO_UDP:
        return None

    udp = ip.data
    if not isinstance(udp, dpkt.udp.UDP):
        return None

    return bytes(udp.data)
