import socket
import logging
import time
from typing import Dict, List

import psutil

logger = logging.getLogger(__name__)

def get_local_ip() -> str | None:
    """
    Attempts to determine the primary local IP address of the machine.

    Returns:
        str: The local IP address if found, otherwise None.
    """
    s = None
    try:
        # Connect to an external host (doesn't actually send data)
        s = socket.socket(socket.AF_INET, socket.SOCK_DGRAM)
        s.settimeout(0.1)
        s.connect(('8.8.8.8', 1))
        ip = s.getsockname()[0]
        logger.debug(f"Determined local IP: {ip}")
        return ip
    except OSError as e:
        logger.warning(f"Could not determine local IP address: {e}")
        return None
    finally:
        if s:
            s.close()

def get_lan_ips() -> List[Dict[str, str]]:
    """
    List the non-loopback IPv4 addresses of every network interface.

    Returns:
        A list of {"iface": name, "ip": address} dicts, in interface order.
    """
    ips = []
    for iface, addresses in psutil.net_if_addrs().items():
        for addr in addresses:
            if addr.family != socket.AF_INET:
                continue
            if addr.address.startswith("127."):
                continue
            ips.append({"iface": iface, "ip": addr.address})
    return ips

def get_process_uptime() -> float:
    """Seconds since the current process was started."""
    return max(0.0, time.time() - psutil.Process().create_time())
