"""
Pod usage metrics: parse a metrics.k8s.io payload and join it onto pods.

Payload shape:
    {"items": [{"metadata": {"namespace": ..., "name": ...},
                "containers": [{"name": ..., "usage": {"cpu": ..., "memory": ...}}],
                "timestamp": ...}]}
"""
import logging
from typing import Any, Dict, Iterable, List, Optional

from models import NO_METRICS, UNKNOWN, JoinResult, MetricSample
from normalize.quantities import parse_cpu, parse_memory

logger = logging.getLogger(__name__)


def parse_metrics_payload(payload: Optional[Dict[str, Any]]) -> List[MetricSample]:
    """Parse the payload into samples; an absent or empty payload gives []."""
    if not payload:
        return []
    items = payload.get('items') if isinstance(payload, dict) else None
    samples: List[MetricSample] = []
    for item in items or []:
        if not isinstance(item, dict):
            continue
        metadata = item.get('metadata') if isinstance(item.get('metadata'), dict) else {}
        namespace = metadata.get('namespace')
        name = metadata.get('name')
        if not namespace or not name:
            logger.debug(f"Skipping metric sample without namespace/name: {metadata}")
            continue
        containers: Dict[str, Dict[str, Optional[str]]] = {}
        for c in item.get('containers') or []:
            if not isinstance(c, dict) or not c.get('name'):
                continue
            usage = c.get('usage') if isinstance(c.get('usage'), dict) else {}
            containers[c['name']] = {
                'cpu': None if usage.get('cpu') is None else str(usage.get('cpu')),
                'memory': None if usage.get('memory') is None else str(usage.get('memory')),
            }
        samples.append(MetricSample(
            namespace=namespace,
            name=name,
            containers={k: containers[k] for k in sorted(containers)},
            timestamp=item.get('timestamp') or UNKNOWN,
        ))
    return samples


def build_metrics_index(payload: Optional[Dict[str, Any]],
                        ignore_namespaces: Iterable[str],
                        namespaces: Optional[Iterable[str]] = None) -> Dict[str, MetricSample]:
    """Key samples by `namespace/name`, dropping ignored (and unanalyzed) namespaces."""
    ignored = set(ignore_namespaces or [])
    allowed = set(namespaces) if namespaces is not None else None
    index: Dict[str, MetricSample] = {}
    for sample in parse_metrics_payload(payload):
        if sample.namespace in ignored:
            continue
        if allowed is not None and sample.namespace not in allowed:
            continue
        index[sample.key] = sample
    return {k: index[k] for k in sorted(index)}


def lookup_pod_metrics(index: Dict[str, MetricSample], namespace: str, name: str) -> JoinResult:
    sample = index.get(f"{namespace}/{name}")
    if sample is None:
        return JoinResult(found=False, value=None, note=NO_METRICS)
    return JoinResult(found=True, value=sample)


def pod_usage_totals(sample: MetricSample) -> Dict[str, Optional[float]]:
    """Sum container usage of one pod: cpu in cores, memory in bytes."""
    cpu = [parse_cpu(c.get('cpu')) for c in sample.containers.values()]
    mem = [parse_memory(c.get('memory')) for c in sample.containers.values()]
    cpu = [v for v in cpu if v is not None]
    mem = [v for v in mem if v is not None]
    return {
        'cpu_cores': sum(cpu) if cpu else None,
        'memory_bytes': sum(mem) if mem else None,
    }
