"""
Resource request aggregation - requested vs allocatable capacity.
Quantities that are unset stay out of the sums and are counted instead.
"""
from typing import Any, Dict, List, Optional

from models import NodeRecord, PodRecord
from normalize.quantities import parse_cpu, parse_memory


def _percent(part: float, whole: Optional[float]) -> Optional[float]:
    if not whole:
        return None
    return round(part / whole * 100, 2)


def _empty_totals() -> Dict[str, Any]:
    return {
        'cpu_requests_cores': 0.0,
        'cpu_limits_cores': 0.0,
        'memory_requests_bytes': 0.0,
        'memory_limits_bytes': 0.0,
    }


def summarize_resources(pods: List[PodRecord], nodes: List[NodeRecord]) -> Dict[str, Any]:
    """
    Sum container requests/limits across pods and compare with node allocatable.

    Returns a dict with:
      - totals: cluster-wide cpu (cores) / memory (bytes) requests and limits
      - by_namespace: the same sums per namespace
      - containers_total / containers_without_requests / containers_without_limits
      - allocatable: summed node allocatable (falls back to capacity), None if unknown
      - requested_percent: requests as a share of allocatable, None if unknown
    """
    totals = _empty_totals()
    by_namespace: Dict[str, Dict[str, Any]] = {}
    containers_total = 0
    without_requests = 0
    without_limits = 0

    for pod in pods:
        ns_totals = by_namespace.setdefault(pod.namespace, _empty_totals())
        for c in pod.containers:
            containers_total += 1
            req = c.resources.get('requests') or {}
            lim = c.resources.get('limits') or {}
            if req.get('cpu') is None and req.get('memory') is None:
                without_requests += 1
            if lim.get('cpu') is None and lim.get('memory') is None:
                without_limits += 1
            for key, value in (
                ('cpu_requests_cores', parse_cpu(req.get('cpu'))),
                ('cpu_limits_cores', parse_cpu(lim.get('cpu'))),
                ('memory_requests_bytes', parse_memory(req.get('memory'))),
                ('memory_limits_bytes', parse_memory(lim.get('memory'))),
            ):
                if value is not None:
                    totals[key] += value
                    ns_totals[key] += value

    cpu_alloc: Optional[float] = None
    mem_alloc: Optional[float] = None
    for node in nodes:
        source = node.allocatable or node.capacity
        cpu = parse_cpu(source.get('cpu'))
        mem = parse_memory(source.get('memory'))
        if cpu is not None:
            cpu_alloc = (cpu_alloc or 0.0) + cpu
        if mem is not None:
            mem_alloc = (mem_alloc or 0.0) + mem

    return {
        'totals': {k: round(v, 6) for k, v in totals.items()},
        'by_namespace': {
            ns: {k: round(v, 6) for k, v in by_namespace[ns].items()}
            for ns in sorted(by_namespace)
        },
        'containers_total': containers_total,
        'containers_without_requests': without_requests,
        'containers_without_limits': without_limits,
        'allocatable': {
            'cpu_cores': cpu_alloc,
            'memory_bytes': mem_alloc,
        },
        'requested_percent': {
            'cpu': _percent(totals['cpu_requests_cores'], cpu_alloc),
            'memory': _percent(totals['memory_requests_bytes'], mem_alloc),
        },
    }
