"""Tests for the placement engine."""

import pytest

from dockpool.config import CloudConfig
from dockpool.errors import HostCommunicationError
from dockpool.labels import LabelAtom, parse_label
from dockpool.scheduler import StaticDockerCloud
from dockpool.types import (
    BindingAccess,
    DirectoryBinding,
    ImageCatalog,
    LabeledImage,
    ProvisionStatus,
)


def atoms(*names):
    return frozenset(LabelAtom(name) for name in names)


class TestEligibility:
    def test_no_label(self, cloud_config):
        cloud = StaticDockerCloud(cloud_config, [])
        assert cloud.can_provision(None) is False

    def test_image_label_with_pool_labels(self, cloud_config):
        cloud = StaticDockerCloud(cloud_config, [])
        assert cloud.can_provision(parse_label("docker/ubuntu && linux"))

    def test_label_pool_does_not_offer(self, cloud_config):
        cloud = StaticDockerCloud(cloud_config, [])
        assert not cloud.can_provision(parse_label("docker/ubuntu && windows"))

    def test_no_image_atom(self, cloud_config):
        cloud = StaticDockerCloud(cloud_config, [])
        assert not cloud.can_provision(parse_label("linux"))

    def test_preconfigured_image(self, cloud_config, image_catalog):
        cloud = StaticDockerCloud(cloud_config, [], image_catalog)
        assert cloud.can_provision(parse_label("java && linux"))
        assert cloud.can_provision(parse_label("docker/node:18"))
        assert not cloud.can_provision(parse_label("java && nodejs"))

    def test_negated_image_does_not_match(self, cloud_config):
        cloud = StaticDockerCloud(cloud_config, [])
        assert not cloud.can_provision(parse_label("!docker/ubuntu"))


class TestMatchImage:
    def test_job_image(self, cloud_config):
        cloud = StaticDockerCloud(cloud_config, [])
        match = cloud.match_image(parse_label("docker/ubuntu && linux"))
        assert match.image_name == "ubuntu"
        assert match.node_labels == atoms("docker/ubuntu", "linux")
        assert match.preconfigured is False

    def test_first_satisfying_candidate_wins(self, cloud_config):
        cloud = StaticDockerCloud(cloud_config, [])
        match = cloud.match_image(parse_label("docker/a && docker/b || docker/c || docker/d"))
        assert match.image_name == "c"

    def test_preconfigured_labels(self, cloud_config, image_catalog):
        cloud = StaticDockerCloud(cloud_config, [], image_catalog)
        match = cloud.match_image(parse_label("jdk8"))
        assert match.image_name == "openjdk:8"
        assert match.node_labels == atoms("docker/openjdk:8", "java", "jdk8", "linux")
        assert match.preconfigured is True

    def test_job_image_preferred_over_catalog(self, cloud_config, image_catalog):
        cloud = StaticDockerCloud(cloud_config, [], image_catalog)
        match = cloud.match_image(parse_label("docker/custom || java"))
        assert match.image_name == "custom"

    def test_catalog_order(self, cloud_config):
        catalog = ImageCatalog([LabeledImage("first", "build"), LabeledImage("second", "build")])
        cloud = StaticDockerCloud(cloud_config, [], catalog)
        assert cloud.match_image(parse_label("build")).image_name == "first"


class TestProvisionJob:
    def test_provisions_on_host_with_most_capacity(self, make_host):
        config = CloudConfig(name="pool", label_string="linux", max_executors=4)
        busy = make_host("busy", running=3)
        idle = make_host("idle", running=1)
        cloud = StaticDockerCloud(config, [busy, idle])

        result = cloud.provision_job(parse_label("docker/ubuntu && linux"))

        assert result.status is ProvisionStatus.PROVISIONED
        assert result.slave == "idle/ubuntu"
        assert idle.provision_calls[0][0] == "ubuntu"
        assert idle.provision_calls[0][1] == atoms("docker/ubuntu", "linux")
        assert busy.provision_calls == []

    def test_passes_directory_bindings(self, cloud_config, make_host):
        host = make_host("a")
        cloud = StaticDockerCloud(cloud_config, [host])

        cloud.provision_job(parse_label("docker/ubuntu"))

        assert host.provision_calls[0][2] == [
            DirectoryBinding("/var/cache/maven", "/root/.m2", BindingAccess.READ_WRITE)
        ]

    def test_no_label_is_not_applicable(self, cloud_config, make_host):
        host = make_host("a")
        cloud = StaticDockerCloud(cloud_config, [host])

        result = cloud.provision_job(None)

        assert result.status is ProvisionStatus.NOT_APPLICABLE
        assert host.provision_calls == []

    def test_unmatched_label_is_not_applicable(self, cloud_config, image_catalog, make_host):
        host = make_host("a")
        cloud = StaticDockerCloud(cloud_config, [host], image_catalog)

        result = cloud.provision_job(parse_label("windows && msvc"))

        assert result.status is ProvisionStatus.NOT_APPLICABLE
        assert host.provision_calls == []

    def test_preconfigured_image_uses_declared_name(self, cloud_config, image_catalog, make_host):
        host = make_host("a")
        cloud = StaticDockerCloud(cloud_config, [host], image_catalog)

        result = cloud.provision_job(parse_label("nodejs"))

        assert result.is_provisioned
        assert host.provision_calls[0][0] == "node:18"

    def test_io_error_falls_through_to_next_host(self, cloud_config, make_host):
        flaky = make_host("flaky", provision_error=HostCommunicationError("flaky", "create", "503"))
        steady = make_host("steady", running=1)
        cloud = StaticDockerCloud(cloud_config, [flaky, steady])

        result = cloud.provision_job(parse_label("docker/ubuntu"))

        assert result.slave == "steady/ubuntu"
        assert len(flaky.provision_calls) == 1
        assert cloud.get_statistics()["host_failures"] == 1

    def test_plain_os_error_is_io(self, cloud_config, make_host):
        flaky = make_host("flaky", provision_error=ConnectionResetError("reset"))
        steady = make_host("steady", running=1)
        cloud = StaticDockerCloud(cloud_config, [flaky, steady])

        assert cloud.provision_job(parse_label("docker/ubuntu")).slave == "steady/ubuntu"

    def test_stops_at_first_success(self, cloud_config, make_host):
        first = make_host("first")
        second = make_host("second")
        cloud = StaticDockerCloud(cloud_config, [first, second])

        cloud.provision_job(parse_label("docker/ubuntu"))

        assert len(first.provision_calls) == 1
        assert second.provision_calls == []

    def test_all_hosts_fail_provisioning(self, cloud_config, make_host):
        hosts = [make_host(n, provision_error=OSError("disk full")) for n in "ab"]
        cloud = StaticDockerCloud(cloud_config, hosts)

        result = cloud.provision_job(parse_label("docker/ubuntu"))

        assert result.status is ProvisionStatus.NO_CAPACITY
        assert all(len(h.provision_calls) == 1 for h in hosts)

    def test_all_hosts_report_status_errors(self, cloud_config, make_host):
        hosts = [make_host(n, status_error=ConnectionError("down")) for n in "abc"]
        cloud = StaticDockerCloud(cloud_config, hosts)

        result = cloud.provision_job(parse_label("docker/ubuntu"))

        assert result.status is ProvisionStatus.NO_CAPACITY

    def test_status_errors_and_no_match(self, cloud_config, make_host):
        hosts = [make_host("a", status_error=ConnectionError("down"))]
        cloud = StaticDockerCloud(cloud_config, hosts)

        result = cloud.provision_job(parse_label("windows"))

        assert result.status is ProvisionStatus.NOT_APPLICABLE

    def test_full_hosts_never_receive_jobs(self, make_host):
        config = CloudConfig(name="pool", max_executors=2)
        full = make_host("full", running=2)
        over = make_host("over", running=5)
        cloud = StaticDockerCloud(config, [full, over])

        result = cloud.provision_job(parse_label("docker/ubuntu"))

        assert result.status is ProvisionStatus.NO_CAPACITY
        assert full.provision_calls == [] and over.provision_calls == []

    def test_non_io_errors_propagate(self, cloud_config, make_host):
        host = make_host("a", provision_error=ValueError("bad image"))
        cloud = StaticDockerCloud(cloud_config, [host])

        with pytest.raises(ValueError, match="bad image"):
            cloud.provision_job(parse_label("docker/ubuntu"))

    def test_burst_spreads_over_hosts(self, make_host):
        config = CloudConfig(name="pool", max_executors=2)
        hosts = [make_host("a"), make_host("b")]
        cloud = StaticDockerCloud(config, hosts)
        label = parse_label("docker/ubuntu")

        slaves = [cloud.provision_job(label).slave for _ in range(4)]

        assert slaves == ["a/ubuntu", "b/ubuntu", "a/ubuntu", "b/ubuntu"]
        assert cloud.provision_job(label).status is ProvisionStatus.NO_CAPACITY


class TestEligibilityAgreesWithPlacement:
    @pytest.mark.parametrize(
        "expression",
        [
            "docker/ubuntu && linux",
            "docker/ubuntu && windows",
            "linux",
            "java",
            "java && !linux",
            "docker/a || nodejs",
            "!docker/ubuntu",
            "docker/x -> linux",
        ],
    )
    def test_agreement(self, cloud_config, image_catalog, make_host, expression):
        label = parse_label(expression)
        cloud = StaticDockerCloud(cloud_config, [make_host("a")], image_catalog)

        eligible = cloud.can_provision(label)
        result = cloud.provision_job(label)

        assert eligible == (result.status is not ProvisionStatus.NOT_APPLICABLE)


class TestStatistics:
    def test_counts_outcomes(self, cloud_config, make_host):
        cloud = StaticDockerCloud(cloud_config, [make_host("a", running=2)])

        cloud.can_provision(parse_label("docker/ubuntu"))
        cloud.provision_job(parse_label("docker/ubuntu"))
        cloud.provision_job(parse_label("docker/ubuntu"))
        cloud.provision_job(parse_label("windows"))

        stats = cloud.get_statistics()
        assert stats["eligibility_checks"] == 1
        assert stats["provisioned"] == 1
        assert stats["no_capacity"] == 1
        assert stats["not_applicable"] == 1
        assert stats["placements"] == 3
        assert stats["provision_rate"] == pytest.approx(1 / 3)
