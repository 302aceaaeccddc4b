"""
Scheduler Components for Dockpool

Host ranking and the placement engine that decides which Docker host starts a
job.
"""

from .placement import DockerCloud, StaticDockerCloud
from .ranking import probe_host, rank_hosts

__all__ = [
    "DockerCloud",
    "StaticDockerCloud",
    "probe_host",
    "rank_hosts",
]
