"""Orchestrator: load snapshot -> normalize -> group -> health -> root cause -> compose -> render -> atomic write.

Deterministic facts only. The snapshot is the source of truth; the metrics
endpoint is consulted only when usage metrics are enabled and the snapshot
carries none. All configuration comes from config.py.
"""
import argparse
import logging
import os
import tempfile
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List, Optional, Tuple

from config import (
    setup_logging, get_settings, validate_settings, ConfigValidationError,
    ANALYSIS_TYPES,
)
from models import (
    SECTION_DISABLED, SECTION_INCLUDED, SECTION_UNAVAILABLE,
    AnalysisDocument, ClusterSnapshot,
)
from snapshot.loader import SnapshotError, load_snapshot
from normalize.namespaces import filter_namespaces, namespace_name
from normalize.resources import (
    normalize_deployments, normalize_events, normalize_nodes, normalize_pods,
)
from metrics.metrics_api import fetch_pod_metrics
from metrics.pod_metrics import build_metrics_index
from analysis.grouping import build_groupings
from analysis.health import evaluate_health
from analysis.resources import summarize_resources
from analysis.root_cause import diagnose
from report.composer import compose_document
from report.artifacts import ARTIFACT_NAMES, render_artifacts

logger = logging.getLogger(__name__)


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def _atomic_write(path: str, data: str) -> None:
    dirp = os.path.dirname(path) or '.'
    fd, tmp = tempfile.mkstemp(prefix='.tmp_analysis_', dir=dirp)
    try:
        with os.fdopen(fd, 'w', encoding='utf-8') as f:
            f.write(data)
        os.replace(tmp, path)
    finally:
        if os.path.exists(tmp):
            os.remove(tmp)


def _section_state(enabled: bool, data: Any) -> str:
    if not enabled:
        return SECTION_DISABLED
    if data is None:
        return SECTION_UNAVAILABLE
    return SECTION_INCLUDED


def _raw_key(raw: Any) -> Tuple[str, str]:
    if not isinstance(raw, dict):
        return ('', '')
    meta = raw.get('metadata') if isinstance(raw.get('metadata'), dict) else {}
    involved = raw.get('involvedObject') or raw.get('regarding')
    involved = involved if isinstance(involved, dict) else {}
    return (
        involved.get('namespace') or meta.get('namespace') or '',
        involved.get('name') or meta.get('name') or '',
    )


def _dropped(raw_items: Optional[Iterable[Any]], allowed: List[str]) -> List[str]:
    """`namespace/name` of raw objects outside the analyzed namespaces."""
    allowed_set = set(allowed)
    out = set()
    for raw in raw_items or []:
        ns, name = _raw_key(raw)
        if ns and ns not in allowed_set:
            out.add(f"{ns}/{name}")
    return sorted(out)


def _resolve_metrics(snapshot: ClusterSnapshot, settings: Dict[str, Any]) -> Optional[Dict[str, Any]]:
    if not settings.get('include_resource_metrics'):
        return None
    if snapshot.metrics is not None:
        return snapshot.metrics
    url = settings.get('metrics_url')
    if not url:
        logger.info("Resource metrics enabled but snapshot has none and no metrics_url is set")
        return None
    return fetch_pod_metrics(url)


def run_analysis(snapshot: ClusterSnapshot,
                 settings: Dict[str, Any],
                 generated_at: Optional[str] = None) -> Tuple[AnalysisDocument, Dict[str, str]]:
    """Run the whole pipeline on one snapshot

    Returns:
        (document, artifacts) where artifacts maps file name -> file content

    Raises:
        ConfigValidationError: If settings are invalid (checked before any processing)
        SnapshotError: If the namespace list or the pod list is missing
    """
    validate_settings(settings)

    if snapshot.namespaces is None:
        raise SnapshotError("namespace list is unavailable")
    if snapshot.pods is None:
        raise SnapshotError("pod list is unavailable")

    generated_at = generated_at or _now_iso()
    ignore = settings['ignore_namespaces']

    # 1) Namespaces
    namespaces = filter_namespaces(snapshot.namespaces, ignore)
    logger.info(f"Analyzing {len(namespaces)} namespace(s), ignoring {sorted(ignore)}")

    # 2) Normalize
    pods = normalize_pods(snapshot.pods, namespaces)
    events = normalize_events(snapshot.events, namespaces)

    sections = {
        'nodes': _section_state(settings['include_node_info'], snapshot.nodes),
        'deployments': _section_state(settings['include_deployment_details'], snapshot.deployments),
    }
    nodes = normalize_nodes(snapshot.nodes) if sections['nodes'] == SECTION_INCLUDED else []
    deployments = (normalize_deployments(snapshot.deployments, namespaces)
                   if sections['deployments'] == SECTION_INCLUDED else [])

    payload = _resolve_metrics(snapshot, settings)
    sections['metrics'] = _section_state(settings['include_resource_metrics'], payload)
    metrics = build_metrics_index(payload, ignore, namespaces) if payload is not None else {}
    logger.info(
        f"Normalized {len(pods)} pods, {len(events)} events, {len(nodes)} nodes, "
        f"{len(deployments)} deployments, {len(metrics)} metric samples"
    )

    # 3) Analyze
    groupings = build_groupings(pods)
    health = evaluate_health(pods, settings['health_threshold'])
    logger.info(
        f"Health {health.health_percentage:.2f}% (threshold {health.health_threshold:.2f}%): "
        f"{'healthy' if health.is_healthy else 'unhealthy'}"
    )
    findings = diagnose(pods, events)
    resource_totals = summarize_resources(pods, nodes)

    debug: Dict[str, Any] = {}
    if settings.get('debug_mode'):
        debug = {
            'settings': dict(settings),
            'input_counts': {
                'namespaces': len(snapshot.namespaces),
                'pods': len(snapshot.pods),
                'nodes': None if snapshot.nodes is None else len(snapshot.nodes),
                'deployments': None if snapshot.deployments is None else len(snapshot.deployments),
                'events': None if snapshot.events is None else len(snapshot.events),
            },
            'namespaces_seen': sorted({namespace_name(n) for n in snapshot.namespaces} - {''}),
            'dropped_pods': _dropped(snapshot.pods, namespaces),
            'dropped_events': _dropped(snapshot.events, namespaces),
        }

    # 4) Compose and render
    doc = compose_document(
        settings=settings,
        generated_at=generated_at,
        namespaces=namespaces,
        pods=pods,
        groupings=groupings,
        health=health,
        findings=findings,
        resource_totals=resource_totals,
        sections=sections,
        nodes=nodes,
        deployments=deployments,
        metrics=metrics,
        debug=debug,
    )
    return doc, render_artifacts(doc)


def write_artifacts(output_dir: str, artifacts: Dict[str, str]) -> List[str]:
    """Write every artifact atomically; returns the written paths.

    Known artifacts left over from an earlier run that this run did not
    produce are removed, so the directory only ever holds one run.
    """
    os.makedirs(output_dir, exist_ok=True)
    for name in ARTIFACT_NAMES:
        stale = os.path.join(output_dir, name)
        if name not in artifacts and os.path.exists(stale):
            os.remove(stale)
            logger.info(f"Removed stale artifact {stale}")
    written = []
    for name, content in artifacts.items():
        path = os.path.join(output_dir, name)
        _atomic_write(path, content)
        logger.debug(f"Wrote {path}")
        written.append(path)
    logger.info(f"Wrote {len(written)} artifact(s) to {output_dir}")
    return written


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Analyze a Kubernetes cluster snapshot and write health reports."
    )
    parser.add_argument('--snapshot-dir', help="directory holding the cluster snapshot (default: SNAPSHOT_DIR)")
    parser.add_argument('--output-dir', help="directory for the generated artifacts (default: OUTPUT_DIR)")
    parser.add_argument('--analysis-type', help=f"narrative format, one of: {', '.join(ANALYSIS_TYPES)}")
    parser.add_argument('--config', help="YAML file with option overrides")
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    # Setup logging first
    setup_logging()

    try:
        settings = get_settings(
            config_path=args.config,
            overrides={
                'snapshot_dir': args.snapshot_dir,
                'output_dir': args.output_dir,
                'analysis_type': args.analysis_type,
            },
        )
        validate_settings(settings)
        logger.info("Configuration validated successfully")
    except ConfigValidationError as e:
        logger.error(f"Configuration error: {e}")
        return 1

    logger.info(f"Starting cluster analysis (type={settings['analysis_type']})")

    try:
        snapshot = load_snapshot(settings['snapshot_dir'])
        doc, artifacts = run_analysis(snapshot, settings)
    except SnapshotError as e:
        logger.error(f"Snapshot error: {e}")
        return 1

    write_artifacts(settings['output_dir'], artifacts)

    logger.info("=" * 60)
    logger.info(
        f"Analysis complete: {doc.health.total_pods} pods, {doc.health.problematic_pods} problematic, "
        f"health {doc.health.health_percentage:.2f}%"
    )
    logger.info("=" * 60)
    return 0


if __name__ == '__main__':
    raise SystemExit(main())
