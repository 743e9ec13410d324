"""
Server network probe.

Every new session records which server instance created it: the first
non-loopback IPv4 address and the hardware (MAC) address of the same
interface.  Best-effort only; anything missing becomes "unknown".
"""

import logging
import socket

import psutil

from app.models.record import ServerInfo

logger = logging.getLogger(__name__)


def get_server_network_info() -> ServerInfo:
    try:
        interfaces = psutil.net_if_addrs()
    except OSError:
        logger.warning("Could not list network interfaces", exc_info=True)
        return ServerInfo.unknown()

    for name, addresses in interfaces.items():
        ipv4 = next(
            (
                a.address
                for a in addresses
                if a.family == socket.AF_INET and not a.address.startswith("127.")
            ),
            None,
        )
        if ipv4 is None:
            continue
        mac = next(
            (a.address for a in addresses if a.family == psutil.AF_LINK and a.address),
            None,
        )
        return ServerInfo(address=ipv4, hardware_id=mac or ServerInfo.UNKNOWN)

    return ServerInfo.unknown()
