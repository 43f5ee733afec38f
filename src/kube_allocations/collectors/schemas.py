"""Pydantic schemas for the subset of Kubernetes objects read from kubectl."""

from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field


class ObjectMeta(BaseModel):
    name: Optional[str] = None
    namespace: Optional[str] = None


class NodeStatus(BaseModel):
    allocatable: Optional[Dict[str, str]] = None


class Node(BaseModel):
    metadata: ObjectMeta = ObjectMeta()
    status: Optional[NodeStatus] = None


class NodeList(BaseModel):
    items: List[Node] = []


class ResourceRequirements(BaseModel):
    requests: Optional[Dict[str, str]] = None
    limits: Optional[Dict[str, str]] = None


class Container(BaseModel):
    name: str = ""
    resources: Optional[ResourceRequirements] = None


class PodSpec(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    node_name: Optional[str] = Field(default=None, alias="nodeName")
    containers: List[Container] = []
    init_containers: Optional[List[Container]] = Field(default=None, alias="initContainers")
    overhead: Optional[Dict[str, str]] = None


class PodCondition(BaseModel):
    type: str
    status: str


class PodStatus(BaseModel):
    phase: Optional[str] = None
    conditions: Optional[List[PodCondition]] = None


class Pod(BaseModel):
    metadata: ObjectMeta = ObjectMeta()
    spec: Optional[PodSpec] = None
    status: Optional[PodStatus] = None


class PodList(BaseModel):
    items: List[Pod] = []


class ContainerUsage(BaseModel):
    cpu: str
    memory: str


class ContainerMetrics(BaseModel):
    name: str = ""
    usage: ContainerUsage


class PodMetrics(BaseModel):
    metadata: ObjectMeta = ObjectMeta()
    containers: List[ContainerMetrics] = []


class PodMetricsList(BaseModel):
    items: List[PodMetrics] = []
