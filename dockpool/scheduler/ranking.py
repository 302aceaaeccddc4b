"""
Host ranking.

Hosts are probed for status and free executor slots and ordered from most to
least free capacity, so consecutive placements spread over the pool instead of
piling onto one host.
"""

from concurrent.futures import ThreadPoolExecutor
from typing import Iterable, List, Optional

from ..hosts import DockerHostStatus
from ..logging import get_logger
from ..types import HostCapacity

logger = get_logger(__name__)


def probe_host(host: DockerHostStatus, max_executors: int) -> Optional[HostCapacity]:
    """Return the host's remaining capacity, or None if it is unavailable or full."""
    try:
        # Query for status to check the host is available and ready
        host.status()
        count = host.count_running_jobs()
    except Exception as e:
        logger.warning("Error getting status from docker host", host=str(host), error=str(e))
        return None

    remaining = max_executors - count
    if remaining <= 0:
        logger.debug("Docker host is full", host=str(host), running_jobs=count)
        return None

    return HostCapacity(host=host, capacity=remaining)


def rank_hosts(
    hosts: Iterable[DockerHostStatus],
    max_executors: int,
    max_workers: int = 1,
) -> List[HostCapacity]:
    """Find hosts with free capacity, sorted from greatest to least.

    With ``max_workers > 1`` the probes run concurrently; the result is the
    same as probing sequentially.
    """
    hosts = list(hosts)

    if max_workers > 1 and len(hosts) > 1:
        with ThreadPoolExecutor(
            max_workers=min(max_workers, len(hosts)), thread_name_prefix="DockpoolProbe"
        ) as executor:
            probes = list(executor.map(lambda h: probe_host(h, max_executors), hosts))
    else:
        probes = [probe_host(host, max_executors) for host in hosts]

    available = [probe for probe in probes if probe is not None]

    # sorted() is stable: equal capacities keep pool order
    return sorted(available, key=lambda hc: hc.capacity, reverse=True)
