"""Shared test fixtures for dockpool."""

import os

import pytest

from dockpool.config import CloudConfig, reset_config
from dockpool.hosts import DockerCloudHost
from dockpool.types import ImageCatalog, LabeledImage


class FakeHost(DockerCloudHost):
    """In-memory Docker host recording provisioning calls."""

    def __init__(self, name, running=0, status_error=None, provision_error=None):
        self.name = name
        self.running = running
        self.status_error = status_error
        self.provision_error = provision_error
        self.provision_calls = []

    def __repr__(self):
        return f"FakeHost({self.name})"

    def __str__(self):
        return self.name

    def status(self):
        if self.status_error is not None:
            raise self.status_error
        return {"Name": self.name}

    def count_running_jobs(self):
        return self.running

    def provision_slave(self, image_name, labels, directory_bindings):
        self.provision_calls.append((image_name, labels, directory_bindings))
        if self.provision_error is not None:
            raise self.provision_error
        self.running += 1
        return f"{self.name}/{image_name}"


@pytest.fixture(autouse=True)
def _reset_global_config(monkeypatch):
    """Reset global config and clear DOCKPOOL_* variables for all tests."""
    for key in list(os.environ):
        if key.startswith("DOCKPOOL_"):
            monkeypatch.delenv(key)
    reset_config()
    yield
    reset_config()


@pytest.fixture
def make_host():
    """Factory for fake Docker hosts."""
    return FakeHost


@pytest.fixture
def cloud_config():
    """A pool offering the ``linux`` label with three executors per host."""
    return CloudConfig(
        name="test-pool",
        label_string="linux",
        max_executors=3,
        directory_mappings="/var/cache/maven:/root/.m2:rw",
    )


@pytest.fixture
def image_catalog():
    """Preconfigured images: a JDK image and a node image."""
    return ImageCatalog(
        [
            LabeledImage("openjdk:8", "java jdk8"),
            LabeledImage("node:18", "nodejs"),
        ]
    )
