"""Tests for turning kubectl output into resource records."""

import logging
import subprocess
from unittest.mock import MagicMock, patch

import pytest

from kube_allocations.collectors import (
    CollectionError,
    Kubectl,
    KubectlError,
    collect_resources,
    extract_locations,
    is_scheduled,
    resources_from_metrics,
    resources_from_nodes,
    resources_from_pods,
)
from kube_allocations.collectors.schemas import NodeList, Pod, PodList, PodMetricsList
from kube_allocations.models import Location, ResourceQualifier
from kube_allocations.qty import Quantity

R = ResourceQualifier


def q(text):
    return Quantity.parse(text)


def as_map(resources):
    """(pod or node, qualifier, kind) -> quantity."""
    return {
        (r.location.pod_name or r.location.node_name, r.qualifier, r.kind): r.quantity
        for r in resources
    }


def pod(phase, conditions=None):
    return Pod.model_validate({"status": {"phase": phase, "conditions": conditions}})


# -----------------------------------------------------------------------------
# Nodes
# -----------------------------------------------------------------------------


class TestNodes:
    def test_one_allocatable_record_per_kind(self, node_list):
        resources = resources_from_nodes(node_list)
        assert len(resources) == 8
        assert all(r.qualifier is R.ALLOCATABLE for r in resources)
        values = as_map(resources)
        assert values[("node-1", R.ALLOCATABLE, "memory")] == q("16Gi")
        assert values[("node-2", R.ALLOCATABLE, "nvidia.com/gpu")] == q("1")
        assert values[("node-1", R.ALLOCATABLE, "hugepages-1Gi")].is_zero()

    def test_location_holds_only_the_node(self, node_list):
        resource = resources_from_nodes(node_list)[0]
        assert resource.location == Location(node_name="node-1")

    def test_node_without_status(self):
        nodes = NodeList.model_validate({"items": [{"metadata": {"name": "bare"}}]})
        assert resources_from_nodes(nodes) == []

    def test_invalid_quantity(self):
        nodes = NodeList.model_validate(
            {"items": [{"metadata": {"name": "n1"}, "status": {"allocatable": {"cpu": "four"}}}]}
        )
        with pytest.raises(CollectionError, match="cpu='four'"):
            resources_from_nodes(nodes)

    def test_negative_quantity(self):
        nodes = NodeList.model_validate(
            {"items": [{"metadata": {"name": "n1"}, "status": {"allocatable": {"cpu": "-1"}}}]}
        )
        with pytest.raises(CollectionError, match="Negative"):
            resources_from_nodes(nodes)


# -----------------------------------------------------------------------------
# Pods
# -----------------------------------------------------------------------------


class TestIsScheduled:
    def test_running(self):
        assert is_scheduled(pod("Running"))

    def test_finished_pods_release_resources(self):
        assert not is_scheduled(pod("Succeeded"))
        assert not is_scheduled(pod("Failed"))

    def test_unknown_phase(self):
        assert not is_scheduled(pod("Unknown"))

    def test_pending_depends_on_pod_scheduled(self):
        assert is_scheduled(pod("Pending", [{"type": "PodScheduled", "status": "True"}]))
        assert not is_scheduled(pod("Pending", [{"type": "PodScheduled", "status": "False"}]))
        assert not is_scheduled(pod("Pending", [{"type": "Ready", "status": "True"}]))
        assert not is_scheduled(pod("Pending"))

    def test_missing_status(self):
        assert not is_scheduled(Pod())


class TestPods:
    def test_only_scheduled_pods_are_counted(self, pod_list):
        resources = resources_from_pods(pod_list)
        assert {r.location.pod_name for r in resources} == {"pod-a", "pod-b"}

    def test_effective_requests(self, pod_list):
        values = as_map(resources_from_pods(pod_list))
        # containers 750m, init container raises it to 1, overhead adds 100m
        assert values[("pod-a", R.REQUESTED, "cpu")] == q("1100m")
        assert values[("pod-a", R.REQUESTED, "memory")] == q("1.5Gi")
        assert values[("pod-b", R.REQUESTED, "nvidia.com/gpu")] == q("1")

    def test_effective_limits(self, pod_list):
        values = as_map(resources_from_pods(pod_list))
        assert values[("pod-a", R.LIMIT, "cpu")] == q("1.1")
        assert values[("pod-a", R.LIMIT, "memory")] == q("2Gi")
        assert values[("pod-b", R.LIMIT, "cpu")] == q("2")

    def test_each_pod_counts_once_per_qualifier(self, pod_list):
        resources = resources_from_pods(pod_list)
        counts = [r for r in resources if r.kind == "pods"]
        assert len(counts) == 4
        assert all(r.quantity == q("1") for r in counts)
        assert len(resources) == 12

    def test_location(self, pod_list):
        resource = resources_from_pods(pod_list)[0]
        assert resource.location == Location(
            node_name="node-1", namespace="default", pod_name="pod-a"
        )

    def test_memory_keeps_binary_scale(self, pod_list):
        values = as_map(resources_from_pods(pod_list))
        assert values[("pod-a", R.REQUESTED, "memory")].adjust_scale() == "1.50Gi"

    def test_pod_without_resources_only_counts_itself(self):
        pods = PodList.model_validate(
            {
                "items": [
                    {
                        "metadata": {"name": "tiny", "namespace": "ns"},
                        "spec": {"nodeName": "n1", "containers": [{"name": "c"}]},
                        "status": {"phase": "Running"},
                    }
                ]
            }
        )
        resources = resources_from_pods(pods)
        assert [(r.kind, r.qualifier) for r in resources] == [
            ("pods", R.REQUESTED),
            ("pods", R.LIMIT),
        ]


# -----------------------------------------------------------------------------
# Pod metrics
# -----------------------------------------------------------------------------


class TestMetrics:
    def test_extract_locations(self, pod_list):
        locations = extract_locations(resources_from_pods(pod_list))
        assert locations[("default", "pod-a")].node_name == "node-1"
        assert locations[("kube-system", "pod-b")].node_name == "node-2"
        assert len(locations) == 2

    def test_node_locations_are_ignored(self, node_list):
        assert extract_locations(resources_from_nodes(node_list)) == {}

    def test_utilization_per_pod(self, pod_list, pod_metrics_list):
        locations = extract_locations(resources_from_pods(pod_list))
        values = as_map(resources_from_metrics(pod_metrics_list, locations))
        assert values[("pod-a", R.UTILIZATION, "memory")] == q("700Mi")
        # The idle sidecar still counts as the smallest positive amount
        assert values[("pod-a", R.UTILIZATION, "cpu")] == q("250m") + Quantity.lowest_positive()

    def test_location_comes_from_pods(self, pod_list, pod_metrics_list):
        locations = extract_locations(resources_from_pods(pod_list))
        resources = resources_from_metrics(pod_metrics_list, locations)
        assert resources[0].location == Location(
            node_name="node-1", namespace="default", pod_name="pod-a"
        )

    def test_unknown_pod_has_no_node(self, pod_metrics_list):
        resources = resources_from_metrics(pod_metrics_list, {})
        unknown = [r for r in resources if r.location.pod_name == "pod-x"]
        assert len(unknown) == 2
        assert unknown[0].location == Location(namespace="other", pod_name="pod-x")

    def test_zero_usage_is_not_zero(self):
        metrics = PodMetricsList.model_validate(
            {
                "items": [
                    {
                        "metadata": {"name": "idle", "namespace": "ns"},
                        "containers": [{"name": "c", "usage": {"cpu": "0", "memory": "0"}}],
                    }
                ]
            }
        )
        resources = resources_from_metrics(metrics, {})
        assert all(r.quantity == Quantity.lowest_positive() for r in resources)


# -----------------------------------------------------------------------------
# collect_resources
# -----------------------------------------------------------------------------


class TestCollectResources:
    def test_all_sources(self, fake_kubectl):
        result = collect_resources(fake_kubectl)
        assert result.show_utilization
        assert len(result.resources) == 24
        assert fake_kubectl.calls == [
            ["get", "nodes", "-o", "json"],
            ["get", "pods", "-o", "json", "--all-namespaces"],
            ["get", "--raw", "/apis/metrics.k8s.io/v1beta1/pods"],
        ]

    def test_namespace(self, fake_kubectl):
        collect_resources(fake_kubectl, "default")
        assert fake_kubectl.calls[1] == ["get", "pods", "-o", "json", "--namespace", "default"]
        assert fake_kubectl.calls[2] == [
            "get", "--raw", "/apis/metrics.k8s.io/v1beta1/namespaces/default/pods",
        ]

    def test_missing_metrics_hides_utilization(self, kubectl_factory, caplog):
        kubectl = kubectl_factory(metrics_available=False)
        with caplog.at_level(logging.WARNING, logger="kube_allocations.collectors.collect"):
            result = collect_resources(kubectl)
        assert not result.show_utilization
        assert len(result.resources) == 20
        assert not any(r.qualifier is R.UTILIZATION for r in result.resources)
        assert caplog.records == []

    def test_missing_metrics_warns_when_utilization_requested(self, kubectl_factory, caplog):
        kubectl = kubectl_factory(metrics_available=False)
        with caplog.at_level(logging.WARNING, logger="kube_allocations.collectors.collect"):
            result = collect_resources(kubectl, utilization=True)
        assert not result.show_utilization
        assert "Metrics API not available" in caplog.text

    def test_node_failure_is_fatal(self):
        kubectl = MagicMock()
        kubectl.get.side_effect = KubectlError("connection refused")
        with pytest.raises(KubectlError, match="connection refused"):
            collect_resources(kubectl)


# -----------------------------------------------------------------------------
# Kubectl
# -----------------------------------------------------------------------------


class TestKubectl:
    def test_command(self):
        assert Kubectl().command(["get", "nodes"]) == ["kubectl", "get", "nodes"]
        assert Kubectl(binary="/bin/kc", context="prod").command(["get", "pods"]) == [
            "/bin/kc", "--context", "prod", "get", "pods",
        ]

    @patch("kube_allocations.collectors.kubectl.subprocess.run")
    def test_get_validates_output(self, mock_run):
        mock_run.return_value = MagicMock(stdout='{"items": [{"metadata": {"name": "n1"}}]}')
        nodes = Kubectl(context="prod", timeout=5).get(NodeList, ["get", "nodes", "-o", "json"])
        assert nodes.items[0].metadata.name == "n1"
        args, kwargs = mock_run.call_args
        assert args[0] == ["kubectl", "--context", "prod", "get", "nodes", "-o", "json"]
        assert kwargs["timeout"] == 5
        assert kwargs["check"] is True

    @patch("kube_allocations.collectors.kubectl.subprocess.run")
    def test_command_failure(self, mock_run):
        mock_run.side_effect = subprocess.CalledProcessError(
            1, ["kubectl"], stderr="error: You must be logged in\n"
        )
        with pytest.raises(KubectlError, match="You must be logged in"):
            Kubectl().run(["get", "nodes"])

    @patch("kube_allocations.collectors.kubectl.subprocess.run")
    def test_binary_missing(self, mock_run):
        mock_run.side_effect = FileNotFoundError()
        with pytest.raises(KubectlError, match="not found"):
            Kubectl(binary="kubectl-missing").run(["get", "nodes"])

    @patch("kube_allocations.collectors.kubectl.subprocess.run")
    def test_timeout(self, mock_run):
        mock_run.side_effect = subprocess.TimeoutExpired(["kubectl"], 3)
        with pytest.raises(KubectlError, match="timed out after 3s"):
            Kubectl(timeout=3).run(["get", "nodes"])

    @patch("kube_allocations.collectors.kubectl.subprocess.run")
    def test_unexpected_output(self, mock_run):
        mock_run.return_value = MagicMock(stdout="not json")
        with pytest.raises(KubectlError, match="unexpected output"):
            Kubectl().get(NodeList, ["get", "nodes", "-o", "json"])
