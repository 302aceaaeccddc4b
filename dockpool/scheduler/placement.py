"""
Job Placement for Dockpool

A ``DockerCloud`` answers two questions for the scheduler: can this pool ever
run a job with the given label expression, and if so, which host should start
it right now. Both answers come from the same image matcher, so a job that is
reported eligible is never turned away as not applicable.

Image selection, in order:

1. ``docker/<image>`` atoms found in the job's own expression; the first whose
   label set (the atom plus the pool labels) satisfies the expression wins.
2. Preconfigured images, in catalog order; the label set is the synthetic
   ``docker/<image>`` atom plus the image's labels plus the pool labels.

The first match is used even if a later one might land on a freer host.
"""

import threading
from abc import ABC, abstractmethod
from typing import Any, Dict, FrozenSet, Iterable, List, Optional

from ..config import CloudConfig
from ..hosts import DockerCloudHost
from ..labels.expression import Label, LabelAtom
from ..labels.resolver import extract_image_name, image_label, list_potential_images
from ..logging import get_logger, trace_operation, with_correlation_id
from ..types import HostCapacity, ImageCatalog, ImageMatch, ProvisionResult, ProvisionStatus
from .ranking import rank_hosts


class DockerCloud(ABC):
    """Pool of Docker hosts that jobs are placed on."""

    def __init__(self, config: CloudConfig, images: Optional[ImageCatalog] = None):
        self.config = config
        self.images = images if images is not None else ImageCatalog()
        self.logger = get_logger(f"dockpool.scheduler.placement.{config.name}")

        self._labels: FrozenSet[LabelAtom] = config.labels
        self._directory_bindings = config.directory_bindings

        self._lock = threading.Lock()
        self._stats: Dict[str, int] = {
            "eligibility_checks": 0,
            "provisioned": 0,
            "no_capacity": 0,
            "not_applicable": 0,
            "host_failures": 0,
        }

    @property
    def name(self) -> str:
        return self.config.name

    @property
    def labels(self) -> FrozenSet[LabelAtom]:
        return self._labels

    @abstractmethod
    def list_hosts(self) -> Iterable[DockerCloudHost]:
        """All hosts currently belonging to the pool."""

    def match_image(self, job_label: Optional[Label]) -> Optional[ImageMatch]:
        """Pick the image and node labels for a job, or None if none fits."""
        if job_label is None:
            return None

        # Image names given in the job restriction label (i.e. docker/IMAGE)
        for potential_image in list_potential_images(job_label):
            node_labels = frozenset({potential_image}) | self._labels

            if job_label.matches(node_labels):
                return ImageMatch(extract_image_name(potential_image), node_labels)

        # Images registered up front with friendlier labels
        for image in self.images:
            node_labels = frozenset({image_label(image.image_name)}) | image.labels | self._labels

            if job_label.matches(node_labels):
                return ImageMatch(image.image_name, node_labels, preconfigured=True)

        return None

    def can_provision(self, job_label: Optional[Label]) -> bool:
        """Whether a job with this label could ever run in the pool."""
        self._count("eligibility_checks")
        return self.match_image(job_label) is not None

    @with_correlation_id()
    def provision_job(self, job_label: Optional[Label]) -> ProvisionResult:
        """Start an execution slot for a job on the least busy host."""
        match = self.match_image(job_label)

        if match is None:
            self.logger.debug("Job not applicable to pool", pool=self.name, label=str(job_label))
            result = ProvisionResult.not_applicable()
        else:
            result = self._provision(match)

        self._count(result.status.value)
        return result

    @trace_operation("provision")
    def _provision(self, match: ImageMatch) -> ProvisionResult:
        for host in self.list_available_hosts():
            try:
                self.logger.info(
                    "Provisioning node",
                    host=str(host.host),
                    capacity=host.capacity,
                    image=match.image_name,
                )
                slave = host.host.provision_slave(
                    match.image_name, match.node_labels, list(self._directory_bindings)
                )
            except OSError as e:
                self._count("host_failures")
                self.logger.warning(
                    "Error provisioning node", host=str(host.host), error=str(e), exc_info=True
                )
                continue

            return ProvisionResult.provisioned(slave)

        self.logger.info("No docker host has capacity", pool=self.name, image=match.image_name)
        return ProvisionResult.no_capacity()

    def list_available_hosts(self) -> List[HostCapacity]:
        """Hosts with free capacity, sorted from greatest to least."""
        return rank_hosts(
            self.list_hosts(),
            self.config.max_executors,
            max_workers=self.config.status_query_workers,
        )

    def _count(self, key: str):
        with self._lock:
            self._stats[key] += 1

    def get_statistics(self) -> Dict[str, Any]:
        with self._lock:
            stats = dict(self._stats)

        placements = sum(stats[s.value] for s in ProvisionStatus)
        stats["placements"] = placements
        stats["provision_rate"] = stats["provisioned"] / placements if placements else 0.0
        return stats


class StaticDockerCloud(DockerCloud):
    """Pool over a fixed list of hosts."""

    def __init__(
        self,
        config: CloudConfig,
        hosts: Iterable[DockerCloudHost],
        images: Optional[ImageCatalog] = None,
    ):
        super().__init__(config, images)
        self.hosts = list(hosts)

    def list_hosts(self) -> List[DockerCloudHost]:
        return list(self.hosts)
