"""
Dockpool - capacity-aware placement of build jobs on Docker hosts.

Jobs describe where they may run with a label expression. Dockpool resolves
the container image the expression asks for, ranks the pool's hosts by free
capacity and provisions an execution slot on the least busy one.
"""

from .bindings import format_bindings, parse_bindings
from .config import CloudConfig, DockpoolConfig
from .errors import (
    BindingSyntaxError,
    ConfigurationError,
    CredentialsError,
    DockpoolError,
    HostCommunicationError,
    LabelSyntaxError,
)
from .hosts import DockerCloudHost, DockerHostStatus, HttpDockerHost, HttpDockerStatus
from .labels import LabelAtom, list_potential_images, parse_label, parse_label_set
from .scheduler import DockerCloud, StaticDockerCloud, rank_hosts
from .types import (
    BindingAccess,
    DirectoryBinding,
    HostCapacity,
    ImageCatalog,
    ImageMatch,
    LabeledImage,
    ProvisionResult,
    ProvisionStatus,
)

__version__ = "0.1.0"

__all__ = [
    "CloudConfig",
    "DockpoolConfig",
    "DockerCloud",
    "StaticDockerCloud",
    "DockerCloudHost",
    "DockerHostStatus",
    "HttpDockerHost",
    "HttpDockerStatus",
    "rank_hosts",
    "parse_bindings",
    "format_bindings",
    "parse_label",
    "parse_label_set",
    "list_potential_images",
    "LabelAtom",
    "BindingAccess",
    "DirectoryBinding",
    "HostCapacity",
    "ImageCatalog",
    "ImageMatch",
    "LabeledImage",
    "ProvisionResult",
    "ProvisionStatus",
    "DockpoolError",
    "ConfigurationError",
    "BindingSyntaxError",
    "LabelSyntaxError",
    "HostCommunicationError",
    "CredentialsError",
]
