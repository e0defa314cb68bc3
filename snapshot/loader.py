"""
Snapshot loader: reads a directory of `kubectl get -o json` (or YAML) dumps
into a ClusterSnapshot.

Layout:
    namespaces.json          required
    pods.json | pods/*.json  required
    nodes.json               optional
    deployments.json         optional
    events.json              optional
    metrics.json             optional (metrics.k8s.io PodMetricsList)

Any of the files may use the .yaml/.yml extension instead. A missing optional
file means the section is unavailable; a missing required file fails the run.
"""
import logging
import os
from typing import Any, Dict, List, Optional

import yaml

from models import ClusterSnapshot

logger = logging.getLogger(__name__)

_EXTENSIONS = ('.json', '.yaml', '.yml')


class SnapshotError(Exception):
    """Raised when required cluster data cannot be obtained"""
    pass


def load_document(path: str) -> Any:
    """Parse one JSON or YAML file (YAML is a superset of JSON)."""
    try:
        with open(path, 'r', encoding='utf-8') as f:
            return yaml.safe_load(f)
    except OSError as e:
        raise SnapshotError(f"cannot read {path}: {e}")
    except yaml.YAMLError as e:
        raise SnapshotError(f"{path} is not valid JSON/YAML: {e}")


def list_items(data: Any) -> List[Any]:
    """Unwrap a Kubernetes List (`{"kind": "...List", "items": [...]}`) or plain list."""
    if data is None:
        return []
    if isinstance(data, list):
        return data
    if isinstance(data, dict):
        if 'items' in data:
            return list(data.get('items') or [])
        # A single object dumped on its own
        return [data]
    raise SnapshotError(f"expected a list or a List object, got {type(data).__name__}")


def _find(directory: str, stem: str) -> Optional[str]:
    for ext in _EXTENSIONS:
        path = os.path.join(directory, stem + ext)
        if os.path.isfile(path):
            return path
    return None


def _load_optional_items(directory: str, stem: str) -> Optional[List[Any]]:
    path = _find(directory, stem)
    if path is None:
        logger.info(f"No {stem} data in snapshot, section unavailable")
        return None
    items = list_items(load_document(path))
    logger.debug(f"Loaded {len(items)} {stem} from {path}")
    return items


def _load_pods(directory: str) -> List[Any]:
    pods: List[Any] = []
    path = _find(directory, 'pods')
    if path is not None:
        pods.extend(list_items(load_document(path)))

    # Per-namespace dumps: pods/<namespace>.json, merged in any order
    pods_dir = os.path.join(directory, 'pods')
    if os.path.isdir(pods_dir):
        for fname in sorted(os.listdir(pods_dir)):
            if fname.endswith(_EXTENSIONS):
                pods.extend(list_items(load_document(os.path.join(pods_dir, fname))))
    elif path is None:
        raise SnapshotError(f"no pod data found in {directory} (expected pods.json or pods/)")
    return pods


def load_snapshot(directory: str) -> ClusterSnapshot:
    """Load a ClusterSnapshot from `directory`

    Raises:
        SnapshotError: If the directory, the namespace list or the pod data
            is missing, or any file cannot be parsed
    """
    if not os.path.isdir(directory):
        raise SnapshotError(f"snapshot directory not found: {directory}")

    ns_path = _find(directory, 'namespaces')
    if ns_path is None:
        raise SnapshotError(f"no namespace list found in {directory} (expected namespaces.json)")
    namespaces = list_items(load_document(ns_path))

    pods = _load_pods(directory)

    metrics: Optional[Dict[str, Any]] = None
    metrics_path = _find(directory, 'metrics')
    if metrics_path is not None:
        data = load_document(metrics_path)
        # An empty file is treated as "no samples"
        metrics = data if isinstance(data, dict) else {'items': list_items(data)}

    snapshot = ClusterSnapshot(
        namespaces=namespaces,
        pods=pods,
        nodes=_load_optional_items(directory, 'nodes'),
        deployments=_load_optional_items(directory, 'deployments'),
        events=_load_optional_items(directory, 'events'),
        metrics=metrics,
    )
    logger.info(
        f"Loaded snapshot from {directory}: {len(namespaces)} namespaces, {len(pods)} pods"
    )
    return snapshot
