"""
Resource normalizer: raw Kubernetes objects -> canonical records.

Accepts the shapes returned by `kubectl get -o json` (metadata/spec/status)
and, for convenience, the flattened form where the same keys sit at the top
level. Absent optional fields get explicit sentinels; absence is expected,
not an error. Objects without a name cannot be keyed and are skipped.
"""
import logging
from typing import Any, Dict, Iterable, List, Optional, Tuple

from models import (
    UNKNOWN,
    ConditionRecord,
    ContainerRecord,
    DeploymentRecord,
    EventRecord,
    NodeRecord,
    PodRecord,
)

logger = logging.getLogger(__name__)


def _as_dict(value: Any) -> Dict[str, Any]:
    return value if isinstance(value, dict) else {}


def _section(obj: Dict[str, Any], name: str) -> Dict[str, Any]:
    return _as_dict(obj.get(name))


def _field(obj: Dict[str, Any], section: str, key: str, default: Any = None) -> Any:
    """Look up `obj[section][key]`, falling back to a flattened `obj[key]`."""
    value = _section(obj, section).get(key)
    if value is None:
        value = obj.get(key)
    return default if value is None else value


def _as_int(value: Any, default: int = 0) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        return default


def _as_list(value: Any) -> List[Any]:
    return value if isinstance(value, list) else []


def _container_state(status: Optional[Dict[str, Any]]) -> str:
    if not status:
        return UNKNOWN
    state = _as_dict(status.get('state'))
    if 'running' in state:
        return 'running'
    if 'waiting' in state:
        return f"waiting: {_as_dict(state.get('waiting')).get('reason') or UNKNOWN}"
    if 'terminated' in state:
        return f"terminated: {_as_dict(state.get('terminated')).get('reason') or UNKNOWN}"
    return UNKNOWN


def _resource_values(resources: Dict[str, Any], kind: str) -> Dict[str, Optional[str]]:
    values = _as_dict(resources.get(kind))
    # Quantities stay as written; None means "not set", never zero
    return {
        'cpu': None if values.get('cpu') is None else str(values.get('cpu')),
        'memory': None if values.get('memory') is None else str(values.get('memory')),
    }


def normalize_container(spec: Dict[str, Any], statuses: Dict[str, Dict[str, Any]]) -> ContainerRecord:
    name = spec.get('name') or UNKNOWN
    status = statuses.get(name)
    resources = _as_dict(spec.get('resources'))
    return ContainerRecord(
        name=name,
        image=spec.get('image') or UNKNOWN,
        # No status entry for a declared container means "not ready"
        ready=bool(status.get('ready')) if status else False,
        restart_count=_as_int(status.get('restartCount')) if status else 0,
        state=_container_state(status),
        resources={
            'requests': _resource_values(resources, 'requests'),
            'limits': _resource_values(resources, 'limits'),
        },
    )


def normalize_pod(raw: Dict[str, Any]) -> Optional[PodRecord]:
    if not isinstance(raw, dict):
        logger.warning(f"Skipping pod entry of type {type(raw).__name__}")
        return None
    name = _field(raw, 'metadata', 'name')
    namespace = _field(raw, 'metadata', 'namespace')
    if not name or not namespace:
        logger.warning(f"Skipping pod without name/namespace: {name!r}/{namespace!r}")
        return None

    status = _section(raw, 'status')
    statuses = {
        s.get('name'): s
        for s in _as_list(status.get('containerStatuses', raw.get('containerStatuses')))
        if isinstance(s, dict)
    }
    containers = [
        normalize_container(c, statuses)
        for c in _as_list(_field(raw, 'spec', 'containers', []))
        if isinstance(c, dict)
    ]
    conditions = [
        ConditionRecord(type=c.get('type') or UNKNOWN, status=c.get('status') or UNKNOWN)
        for c in _as_list(_field(raw, 'status', 'conditions', []))
        if isinstance(c, dict)
    ]

    return PodRecord(
        name=name,
        namespace=namespace,
        status=_field(raw, 'status', 'phase', 'Unknown'),
        containers=containers,
        node_name=_field(raw, 'spec', 'nodeName', UNKNOWN),
        pod_ip=_field(raw, 'status', 'podIP', UNKNOWN),
        start_time=_field(raw, 'status', 'startTime', UNKNOWN),
        conditions=conditions,
        labels=dict(_as_dict(_field(raw, 'metadata', 'labels'))),
    )


def normalize_pods(raw_pods: Iterable[Dict[str, Any]], namespaces: Iterable[str]) -> List[PodRecord]:
    """Normalize pods of the analyzed namespaces, sorted by (namespace, name)."""
    allowed = set(namespaces)
    pods: Dict[Tuple[str, str], PodRecord] = {}
    for raw in raw_pods or []:
        pod = normalize_pod(raw)
        if pod is None or pod.namespace not in allowed:
            continue
        key = (pod.namespace, pod.name)
        if key in pods:
            logger.debug(f"Duplicate pod {pod.key}, keeping the last one seen")
        pods[key] = pod
    return [pods[k] for k in sorted(pods)]


def normalize_node(raw: Dict[str, Any]) -> Optional[NodeRecord]:
    if not isinstance(raw, dict):
        logger.warning(f"Skipping node entry of type {type(raw).__name__}")
        return None
    name = _field(raw, 'metadata', 'name')
    if not name:
        logger.warning("Skipping node without a name")
        return None

    status = _section(raw, 'status')
    conditions = [
        ConditionRecord(
            type=c.get('type') or UNKNOWN,
            status=c.get('status') or UNKNOWN,
            reason=c.get('reason'),
            message=c.get('message'),
        )
        for c in _as_list(_field(raw, 'status', 'conditions', []))
        if isinstance(c, dict)
    ]
    addresses = [
        {'type': a.get('type') or UNKNOWN, 'address': a.get('address') or UNKNOWN}
        for a in _as_list(_field(raw, 'status', 'addresses', []))
        if isinstance(a, dict)
    ]
    node_info = _as_dict(status.get('nodeInfo'))
    return NodeRecord(
        name=name,
        capacity={k: str(v) for k, v in sorted(_as_dict(_field(raw, 'status', 'capacity')).items())},
        allocatable={k: str(v) for k, v in sorted(_as_dict(_field(raw, 'status', 'allocatable')).items())},
        conditions=conditions,
        addresses=addresses,
        kubelet_version=node_info.get('kubeletVersion') or raw.get('kubeletVersion') or UNKNOWN,
    )


def normalize_nodes(raw_nodes: Iterable[Dict[str, Any]]) -> List[NodeRecord]:
    nodes = [n for n in (normalize_node(r) for r in raw_nodes or []) if n is not None]
    return sorted(nodes, key=lambda n: n.name)


def normalize_deployment(raw: Dict[str, Any]) -> Optional[DeploymentRecord]:
    if not isinstance(raw, dict):
        logger.warning(f"Skipping deployment entry of type {type(raw).__name__}")
        return None
    name = _field(raw, 'metadata', 'name')
    namespace = _field(raw, 'metadata', 'namespace')
    if not name or not namespace:
        logger.warning(f"Skipping deployment without name/namespace: {name!r}/{namespace!r}")
        return None

    strategy = _field(raw, 'spec', 'strategy', {})
    if isinstance(strategy, dict):
        strategy = strategy.get('type') or UNKNOWN
    selector = _field(raw, 'spec', 'selector', {})
    if isinstance(selector, dict) and 'matchLabels' in selector:
        selector = selector.get('matchLabels') or {}

    return DeploymentRecord(
        name=name,
        namespace=namespace,
        replicas=_as_int(_field(raw, 'spec', 'replicas', 0)),
        available_replicas=_as_int(_field(raw, 'status', 'availableReplicas', 0)),
        ready_replicas=_as_int(_field(raw, 'status', 'readyReplicas', 0)),
        updated_replicas=_as_int(_field(raw, 'status', 'updatedReplicas', 0)),
        strategy=str(strategy or UNKNOWN),
        selector={str(k): str(v) for k, v in sorted((selector or {}).items())} if isinstance(selector, dict) else {},
    )


def normalize_deployments(raw_deployments: Iterable[Dict[str, Any]], namespaces: Iterable[str]) -> List[DeploymentRecord]:
    allowed = set(namespaces)
    deployments = [
        d for d in (normalize_deployment(r) for r in raw_deployments or [])
        if d is not None and d.namespace in allowed
    ]
    return sorted(deployments, key=lambda d: (d.namespace, d.name))


def normalize_event(raw: Dict[str, Any]) -> Optional[EventRecord]:
    if not isinstance(raw, dict):
        logger.warning(f"Skipping event entry of type {type(raw).__name__}")
        return None
    involved = _as_dict(raw.get('involvedObject') or raw.get('regarding'))
    metadata = _section(raw, 'metadata')
    last = (raw.get('lastTimestamp') or raw.get('eventTime')
            or raw.get('firstTimestamp') or UNKNOWN)
    return EventRecord(
        type=raw.get('type') or UNKNOWN,
        reason=raw.get('reason') or UNKNOWN,
        message=(raw.get('message') or raw.get('note') or '').strip(),
        count=_as_int(raw.get('count'), default=1) or 1,
        first_timestamp=raw.get('firstTimestamp') or raw.get('eventTime') or UNKNOWN,
        last_timestamp=last,
        involved_namespace=involved.get('namespace') or metadata.get('namespace') or UNKNOWN,
        involved_name=involved.get('name') or UNKNOWN,
        involved_kind=involved.get('kind') or UNKNOWN,
    )


def normalize_events(raw_events: Iterable[Dict[str, Any]], namespaces: Iterable[str]) -> List[EventRecord]:
    allowed = set(namespaces)
    events = [
        e for e in (normalize_event(r) for r in raw_events or [])
        if e is not None and e.involved_namespace in allowed
    ]
    return events
