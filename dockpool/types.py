"""
Core Type Definitions for Dockpool

This module defines the data types shared by the binding parser, the host
ranker and the placement engine.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Any, Dict, FrozenSet, List, Optional

from .errors import ConfigurationError, LabelSyntaxError

if TYPE_CHECKING:
    from .hosts import DockerCloudHost
    from .labels.expression import LabelAtom


class BindingAccess(Enum):
    """Access mode of a directory mounted into a job container."""

    READ = "r"
    READ_WRITE = "rw"

    @classmethod
    def from_token(cls, token: str) -> Optional["BindingAccess"]:
        """Return the access mode for ``r``/``rw`` (any case), else None."""
        normalized = token.strip().lower()
        for access in cls:
            if access.value == normalized:
                return access
        return None


@dataclass(frozen=True)
class DirectoryBinding:
    """A host directory mounted into every provisioned job container."""

    host_path: str
    container_path: str
    access: BindingAccess = BindingAccess.READ

    def __post_init__(self):
        if not self.host_path.startswith("/"):
            raise ValueError(f"host_path must be absolute: {self.host_path}")

        if not self.container_path.startswith("/"):
            raise ValueError(f"container_path must be absolute: {self.container_path}")

    @property
    def read_only(self) -> bool:
        return self.access is BindingAccess.READ

    def to_docker_bind(self) -> str:
        """Render in the ``host:container:ro|rw`` form the Docker API expects."""
        mode = "ro" if self.read_only else "rw"
        return f"{self.host_path}:{self.container_path}:{mode}"


@dataclass(frozen=True)
class LabeledImage:
    """An image pre-registered by the operator together with extra labels.

    Jobs can request the image through any combination of ``label_string``
    labels instead of naming ``docker/<image_name>`` themselves.
    """

    image_name: str
    label_string: str = ""
    labels: FrozenSet["LabelAtom"] = field(init=False, repr=False, compare=False)

    def __post_init__(self):
        from .labels.parser import parse_label_set

        if not self.image_name or not self.image_name.strip():
            raise ValueError("image_name cannot be empty")

        try:
            labels = parse_label_set(self.label_string)
        except LabelSyntaxError as e:
            raise ConfigurationError(
                "label_string",
                self.label_string,
                "space separated labels",
                image=self.image_name,
                reason=e.reason,
            ) from e
        object.__setattr__(self, "labels", labels)


@dataclass
class ImageCatalog:
    """Ordered collection of preconfigured images offered to every pool."""

    labeled_images: List[LabeledImage] = field(default_factory=list)

    def __iter__(self):
        return iter(self.labeled_images)

    def __len__(self) -> int:
        return len(self.labeled_images)

    @classmethod
    def from_dicts(cls, entries: List[Dict[str, Any]]) -> "ImageCatalog":
        return cls([LabeledImage(**entry) for entry in entries])


@dataclass(frozen=True)
class ImageMatch:
    """The image selected for a job and the labels the new node will carry."""

    image_name: str
    node_labels: FrozenSet["LabelAtom"]
    preconfigured: bool = False


@dataclass(frozen=True)
class HostCapacity:
    """A host that answered its status probe, with its free executor slots."""

    host: "DockerCloudHost"
    capacity: int


class ProvisionStatus(Enum):
    """Outcome of a single placement request."""

    PROVISIONED = "provisioned"
    NO_CAPACITY = "no_capacity"
    NOT_APPLICABLE = "not_applicable"


@dataclass(frozen=True)
class ProvisionResult:
    """Result of asking a pool to place one job."""

    status: ProvisionStatus
    slave: Optional[Any] = None

    @classmethod
    def provisioned(cls, slave: Any) -> "ProvisionResult":
        return cls(ProvisionStatus.PROVISIONED, slave)

    @classmethod
    def no_capacity(cls) -> "ProvisionResult":
        return cls(ProvisionStatus.NO_CAPACITY)

    @classmethod
    def not_applicable(cls) -> "ProvisionResult":
        return cls(ProvisionStatus.NOT_APPLICABLE)

    @property
    def is_provisioned(self) -> bool:
        return self.status is ProvisionStatus.PROVISIONED
