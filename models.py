"""
Data model for one analysis run.

Raw Kubernetes objects come in through ClusterSnapshot; everything else is
derived from it by the normalize/analysis/report layers. Records carry
explicit sentinels ("unknown", empty lists, None for unset resource fields)
so consumers never have to guess whether a field was present.
"""
from dataclasses import dataclass, field, asdict
from typing import Any, Dict, List, Optional

UNKNOWN = "unknown"
NO_EVENTS = "no events found"
NO_METRICS = "no metrics"

# Pod phases that are not considered problematic
HEALTHY_PHASES = ("Running", "Succeeded")

# Section availability states carried by the document
SECTION_INCLUDED = "included"
SECTION_UNAVAILABLE = "unavailable"
SECTION_DISABLED = "disabled"


def empty_resources() -> Dict[str, Dict[str, Optional[str]]]:
    return {
        'requests': {'cpu': None, 'memory': None},
        'limits': {'cpu': None, 'memory': None},
    }


@dataclass(frozen=True)
class ClusterSnapshot:
    """Point-in-time raw input handed over by the data collector.

    `None` for an optional collection means the collector could not obtain it
    (section unavailable); an empty list means it was fetched and is empty.
    """
    namespaces: Optional[List[Any]]
    pods: Optional[List[Dict[str, Any]]]
    nodes: Optional[List[Dict[str, Any]]] = None
    deployments: Optional[List[Dict[str, Any]]] = None
    events: Optional[List[Dict[str, Any]]] = None
    metrics: Optional[Dict[str, Any]] = None


@dataclass
class ConditionRecord:
    type: str
    status: str
    reason: Optional[str] = None
    message: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class ContainerRecord:
    name: str
    image: str
    ready: bool = False
    restart_count: int = 0
    state: str = UNKNOWN
    # {'requests': {'cpu', 'memory'}, 'limits': {'cpu', 'memory'}}, None when unset
    resources: Dict[str, Dict[str, Optional[str]]] = field(default_factory=empty_resources)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'ContainerRecord':
        return cls(
            name=data['name'],
            image=data.get('image', UNKNOWN),
            ready=bool(data.get('ready', False)),
            restart_count=int(data.get('restart_count', 0)),
            state=data.get('state', UNKNOWN),
            resources=data.get('resources') or empty_resources(),
        )


@dataclass
class PodRecord:
    name: str
    namespace: str
    status: str
    containers: List[ContainerRecord] = field(default_factory=list)
    node_name: str = UNKNOWN
    pod_ip: str = UNKNOWN
    start_time: str = UNKNOWN
    conditions: List[ConditionRecord] = field(default_factory=list)
    labels: Dict[str, str] = field(default_factory=dict)

    @property
    def key(self) -> str:
        return f"{self.namespace}/{self.name}"

    @property
    def restart_count(self) -> int:
        return sum(c.restart_count for c in self.containers)

    @property
    def is_problematic(self) -> bool:
        return self.status not in HEALTHY_PHASES

    def to_dict(self) -> Dict[str, Any]:
        return {
            'name': self.name,
            'namespace': self.namespace,
            'status': self.status,
            'node_name': self.node_name,
            'pod_ip': self.pod_ip,
            'start_time': self.start_time,
            'restart_count': self.restart_count,
            'labels': dict(self.labels),
            'containers': [c.to_dict() for c in self.containers],
            'conditions': [{'type': c.type, 'status': c.status} for c in self.conditions],
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'PodRecord':
        return cls(
            name=data['name'],
            namespace=data['namespace'],
            status=data['status'],
            containers=[ContainerRecord.from_dict(c) for c in data.get('containers', [])],
            node_name=data.get('node_name', UNKNOWN),
            pod_ip=data.get('pod_ip', UNKNOWN),
            start_time=data.get('start_time', UNKNOWN),
            conditions=[ConditionRecord(type=c['type'], status=c['status'])
                        for c in data.get('conditions', [])],
            labels=dict(data.get('labels') or {}),
        )


@dataclass
class NodeRecord:
    name: str
    capacity: Dict[str, str] = field(default_factory=dict)
    allocatable: Dict[str, str] = field(default_factory=dict)
    conditions: List[ConditionRecord] = field(default_factory=list)
    addresses: List[Dict[str, str]] = field(default_factory=list)
    kubelet_version: str = UNKNOWN

    @property
    def ready(self) -> bool:
        for c in self.conditions:
            if c.type == 'Ready':
                return c.status == 'True'
        return False

    def to_dict(self) -> Dict[str, Any]:
        return {
            'name': self.name,
            'ready': self.ready,
            'kubelet_version': self.kubelet_version,
            'capacity': dict(self.capacity),
            'allocatable': dict(self.allocatable),
            'conditions': [c.to_dict() for c in self.conditions],
            'addresses': [dict(a) for a in self.addresses],
        }


@dataclass
class DeploymentRecord:
    name: str
    namespace: str
    replicas: int = 0
    available_replicas: int = 0
    ready_replicas: int = 0
    updated_replicas: int = 0
    strategy: str = UNKNOWN
    selector: Dict[str, str] = field(default_factory=dict)

    @property
    def fully_available(self) -> bool:
        return self.available_replicas >= self.replicas

    def to_dict(self) -> Dict[str, Any]:
        d = asdict(self)
        d['fully_available'] = self.fully_available
        return d


@dataclass
class EventRecord:
    type: str
    reason: str
    message: str
    count: int = 1
    first_timestamp: str = UNKNOWN
    last_timestamp: str = UNKNOWN
    involved_namespace: str = UNKNOWN
    involved_name: str = UNKNOWN
    involved_kind: str = UNKNOWN

    def to_dict(self) -> Dict[str, Any]:
        return {
            'type': self.type,
            'reason': self.reason,
            'message': self.message,
            'count': self.count,
            'first_timestamp': self.first_timestamp,
            'last_timestamp': self.last_timestamp,
        }


@dataclass
class MetricSample:
    namespace: str
    name: str
    # container name -> {'cpu': '12m', 'memory': '34Mi'}
    containers: Dict[str, Dict[str, Optional[str]]] = field(default_factory=dict)
    timestamp: str = UNKNOWN

    @property
    def key(self) -> str:
        return f"{self.namespace}/{self.name}"

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class JoinResult:
    """Outcome of a best-effort join (events or metrics onto a pod)."""
    found: bool
    value: Any = None
    note: str = ""


@dataclass
class HealthSummary:
    total_pods: int
    running_pods: int
    succeeded_pods: int
    problematic_pods: int
    health_percentage: float
    health_threshold: float
    is_healthy: bool

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class DiagnosticFinding:
    name: str
    namespace: str
    status: str
    events: List[EventRecord]
    likely_cause: str
    suggested_action: str
    events_note: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return {
            'name': self.name,
            'namespace': self.namespace,
            'status': self.status,
            'likely_cause': self.likely_cause,
            'suggested_action': self.suggested_action,
            'event_count': len(self.events),
            'events': [e.to_dict() for e in self.events],
            'events_note': self.events_note,
        }


@dataclass
class Groupings:
    """Pods indexed by namespace, by status and by both, plus their summaries."""
    by_namespace: Dict[str, List[PodRecord]] = field(default_factory=dict)
    by_status: Dict[str, List[PodRecord]] = field(default_factory=dict)
    by_namespace_and_status: Dict[str, Dict[str, List[PodRecord]]] = field(default_factory=dict)
    namespace_summary: Dict[str, Dict[str, Any]] = field(default_factory=dict)
    status_summary: Dict[str, Dict[str, Any]] = field(default_factory=dict)

    @property
    def total_pods(self) -> int:
        return sum(len(v) for v in self.by_namespace.values())

    def status_counts(self) -> Dict[str, int]:
        return {s: len(pods) for s, pods in self.by_status.items()}

    def namespace_counts(self) -> Dict[str, int]:
        return {ns: len(pods) for ns, pods in self.by_namespace.items()}

    def nested_dict(self) -> Dict[str, Dict[str, List[Dict[str, Any]]]]:
        return {
            ns: {status: [p.to_dict() for p in pods] for status, pods in statuses.items()}
            for ns, statuses in self.by_namespace_and_status.items()
        }


@dataclass
class AnalysisDocument:
    """Everything a renderer may show, built once per run and never mutated."""
    generated_at: str
    analysis_type: str
    cluster: Dict[str, str]
    settings: Dict[str, Any]
    namespaces: List[str]
    ignored_namespaces: List[str]
    pods: List[PodRecord]
    nodes: List[NodeRecord]
    deployments: List[DeploymentRecord]
    metrics: Dict[str, MetricSample]
    groupings: Groupings
    health: HealthSummary
    findings: List[DiagnosticFinding]
    resource_totals: Dict[str, Any]
    sections: Dict[str, str]
    debug: Dict[str, Any] = field(default_factory=dict)

    @property
    def problematic_pods(self) -> List[PodRecord]:
        return [p for p in self.pods if p.is_problematic]

    def finding_for(self, pod: PodRecord) -> Optional[DiagnosticFinding]:
        for f in self.findings:
            if f.namespace == pod.namespace and f.name == pod.name:
                return f
        return None
