"""
Execution hosts.

A ``DockerCloudHost`` is a live Docker machine owned by the surrounding pool.
The placement engine only probes it, counts its running jobs and asks it to
provision a slave; it never manages the host itself. Ranking needs only the
probing half, ``DockerHostStatus``.
"""

import json
from abc import ABC, abstractmethod
from typing import Any, Callable, FrozenSet, List

import httpx

from .errors import ConfigurationError, HostCommunicationError
from .logging import get_logger
from .types import DirectoryBinding

logger = get_logger(__name__)


class DockerHostStatus(ABC):
    """A Docker host whose readiness and load can be probed."""

    @abstractmethod
    def status(self) -> Any:
        """Probe the host; raises when it is unreachable or not ready."""

    @abstractmethod
    def count_running_jobs(self) -> int:
        """Number of jobs the pool currently runs on this host."""


class DockerCloudHost(DockerHostStatus):
    """A Docker host that can receive jobs."""

    @abstractmethod
    def provision_slave(
        self,
        image_name: str,
        labels: FrozenSet,
        directory_bindings: List[DirectoryBinding],
    ) -> Any:
        """Start an execution slot for one job; raises OSError on I/O failure."""


# (client, image_name, labels, directory_bindings) -> slave handle
SlaveLauncher = Callable[[httpx.Client, str, FrozenSet, List[DirectoryBinding]], Any]


class HttpDockerStatus(DockerHostStatus):
    """Host probed through the Docker Engine HTTP API."""

    def __init__(self, address: str, client: httpx.Client, job_label: str = "dockpool.job"):
        self.address = address
        self.client = client
        self.job_label = job_label

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.address})"

    def __str__(self) -> str:
        return self.address

    def close(self):
        self.client.close()

    def _get(self, operation: str, path: str, **params) -> Any:
        try:
            response = self.client.get(path, params=params or None)
            response.raise_for_status()
            return response.json()
        except httpx.HTTPStatusError as e:
            raise HostCommunicationError(
                self.address, operation, f"HTTP {e.response.status_code}"
            ) from e
        except httpx.HTTPError as e:
            raise HostCommunicationError(self.address, operation, str(e) or type(e).__name__) from e
        except ValueError as e:
            raise HostCommunicationError(self.address, operation, "invalid JSON response") from e

    def status(self) -> dict:
        return self._get("status", "/info")

    def count_running_jobs(self) -> int:
        filters = json.dumps({"label": [self.job_label], "status": ["running"]})
        containers = self._get("count_running_jobs", "/containers/json", filters=filters)
        return len(containers)


class HttpDockerHost(HttpDockerStatus, DockerCloudHost):
    """Pool host reached through the Docker Engine HTTP API.

    Status and job counting are answered directly from the API. Starting the
    slave container is delegated to ``launcher``, which is required.
    """

    def __init__(
        self,
        address: str,
        client: httpx.Client,
        launcher: SlaveLauncher,
        job_label: str = "dockpool.job",
    ):
        if launcher is None:
            raise ConfigurationError("launcher", None, "a slave launcher callable", host=address)
        super().__init__(address, client, job_label=job_label)
        self.launcher = launcher

    def provision_slave(
        self,
        image_name: str,
        labels: FrozenSet,
        directory_bindings: List[DirectoryBinding],
    ) -> Any:
        try:
            return self.launcher(self.client, image_name, labels, directory_bindings)
        except httpx.HTTPError as e:
            raise HostCommunicationError(self.address, "provision_slave", str(e)) from e
