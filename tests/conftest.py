"""Pytest configuration and shared fixtures for kube-allocations tests."""

import logging
import os
from pathlib import Path

import pytest

from kube_allocations.collectors import KubectlError
from kube_allocations.collectors.schemas import NodeList, PodList, PodMetricsList
from kube_allocations.models import Location, Resource, ResourceQualifier
from kube_allocations.qty import Quantity

FIXTURES = Path(__file__).parent / "fixtures"


@pytest.fixture(autouse=True)
def _guard_project_repo(tmp_path, monkeypatch):
    """Run every test in its own directory with no user config or env overrides."""
    monkeypatch.chdir(tmp_path)
    for name in list(os.environ):
        if name.startswith("KUBE_ALLOCATIONS_"):
            monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("KUBE_ALLOCATIONS_CONFIG", str(tmp_path / "no-config.json"))


@pytest.fixture(autouse=True)
def _restore_root_logger():
    """The CLI reconfigures the root logger; put it back after each test."""
    root = logging.getLogger()
    handlers = root.handlers[:]
    level = root.level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)


def make_resource(kind, qualifier, quantity, node=None, namespace=None, pod=None):
    """Helper: build a Resource from plain values."""
    return Resource(
        kind=kind,
        qualifier=qualifier,
        quantity=Quantity.parse(quantity),
        location=Location(node_name=node, namespace=namespace, pod_name=pod),
    )


@pytest.fixture
def cpu_scenario():
    """n1 allocates 4 cpu; pods p1 and p2 request 500m and 1500m."""
    return [
        make_resource("cpu", ResourceQualifier.ALLOCATABLE, "4", node="n1"),
        make_resource("cpu", ResourceQualifier.REQUESTED, "500m", node="n1", namespace="default", pod="p1"),
        make_resource("cpu", ResourceQualifier.REQUESTED, "1500m", node="n1", namespace="default", pod="p2"),
    ]


@pytest.fixture
def cluster_resources():
    """Two nodes, three pods in two namespaces, cpu and memory."""
    R = ResourceQualifier
    return [
        make_resource("cpu", R.ALLOCATABLE, "4", node="n1"),
        make_resource("memory", R.ALLOCATABLE, "16Gi", node="n1"),
        make_resource("cpu", R.ALLOCATABLE, "2", node="n2"),
        make_resource("memory", R.ALLOCATABLE, "8Gi", node="n2"),
        make_resource("cpu", R.REQUESTED, "500m", node="n1", namespace="web", pod="p1"),
        make_resource("cpu", R.LIMIT, "1", node="n1", namespace="web", pod="p1"),
        make_resource("memory", R.REQUESTED, "512Mi", node="n1", namespace="web", pod="p1"),
        make_resource("cpu", R.REQUESTED, "250m", node="n1", namespace="db", pod="p2"),
        make_resource("memory", R.REQUESTED, "2Gi", node="n1", namespace="db", pod="p2"),
        make_resource("memory", R.LIMIT, "4Gi", node="n1", namespace="db", pod="p2"),
        make_resource("cpu", R.REQUESTED, "1500m", node="n2", namespace="web", pod="p3"),
        make_resource("cpu", R.UTILIZATION, "1200m", node="n2", namespace="web", pod="p3"),
    ]


@pytest.fixture
def node_list():
    return NodeList.model_validate_json((FIXTURES / "nodes.json").read_text())


@pytest.fixture
def pod_list():
    return PodList.model_validate_json((FIXTURES / "pods.json").read_text())


@pytest.fixture
def pod_metrics_list():
    return PodMetricsList.model_validate_json((FIXTURES / "pod_metrics.json").read_text())


class FakeKubectl:
    """Stand-in for Kubectl that serves fixture files instead of a cluster."""

    def __init__(self, metrics_available=True):
        self.metrics_available = metrics_available
        self.calls = []

    def get(self, model, args):
        self.calls.append(args)
        if model is NodeList:
            return NodeList.model_validate_json((FIXTURES / "nodes.json").read_text())
        if model is PodList:
            return PodList.model_validate_json((FIXTURES / "pods.json").read_text())
        if not self.metrics_available:
            raise KubectlError("kubectl get --raw: the server could not find the requested resource")
        return PodMetricsList.model_validate_json((FIXTURES / "pod_metrics.json").read_text())


@pytest.fixture
def fake_kubectl():
    return FakeKubectl()


@pytest.fixture
def resource():
    """Factory fixture: ``resource("cpu", ResourceQualifier.REQUESTED, "500m", node="n1")``."""
    return make_resource


@pytest.fixture
def kubectl_factory():
    return FakeKubectl
