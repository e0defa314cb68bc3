"""
Grouping & aggregation - deterministic indexes over normalized pods.

Every map is keyed in sorted order and every name list is sorted, so the
same pods give byte-identical output whatever order they were fetched in.
"""
from typing import Dict, List

from models import Groupings, PodRecord


def _sorted_pods(pods: List[PodRecord]) -> List[PodRecord]:
    return sorted(pods, key=lambda p: (p.namespace, p.name))


def build_groupings(pods: List[PodRecord]) -> Groupings:
    """Build all indexes in a single pass over `pods`.

    Namespaces without pods never appear (there is nothing to group).
    """
    nested: Dict[str, Dict[str, List[PodRecord]]] = {}
    for pod in pods:
        nested.setdefault(pod.namespace, {}).setdefault(pod.status, []).append(pod)

    g = Groupings()
    by_status: Dict[str, List[PodRecord]] = {}
    for ns in sorted(nested):
        statuses = nested[ns]
        g.by_namespace_and_status[ns] = {s: _sorted_pods(statuses[s]) for s in sorted(statuses)}
        ns_pods: List[PodRecord] = []
        for status, members in g.by_namespace_and_status[ns].items():
            ns_pods.extend(members)
            by_status.setdefault(status, []).extend(members)
        g.by_namespace[ns] = _sorted_pods(ns_pods)
        g.namespace_summary[ns] = {
            'total_pods': len(ns_pods),
            'pod_names': sorted(p.name for p in ns_pods),
            'status_breakdown': {s: len(m) for s, m in g.by_namespace_and_status[ns].items()},
        }

    for status in sorted(by_status):
        members = _sorted_pods(by_status[status])
        g.by_status[status] = members
        breakdown: Dict[str, int] = {}
        for p in members:
            breakdown[p.namespace] = breakdown.get(p.namespace, 0) + 1
        g.status_summary[status] = {
            'total_pods': len(members),
            'pod_names': [p.key for p in members],
            'namespace_breakdown': {ns: breakdown[ns] for ns in sorted(breakdown)},
        }

    return g
