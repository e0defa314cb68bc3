"""
Machine-readable projections of the analysis document.

File names are fixed; the orchestrator writes them verbatim. The narrative
is added as `ai_prompt.md`.
"""
import json
from typing import Any, Dict

from metrics.pod_metrics import lookup_pod_metrics
from models import (
    SECTION_DISABLED,
    SECTION_INCLUDED,
    AnalysisDocument,
)
from report.renderer import render_narrative

CLUSTER_SUMMARY = 'cluster_summary.json'
HEALTH_STATUS = 'health_status.json'
NAMESPACE_SUMMARY = 'namespace_summary.json'
STATUS_SUMMARY = 'status_summary.json'
PODS_BY_NAMESPACE_AND_STATUS = 'pods_by_namespace_and_status.json'
PROBLEMATIC_PODS = 'problematic_pods.json'
ROOT_CAUSE_ANALYSIS = 'root_cause_analysis.json'
NODE_DATA = 'node_data.json'
DEPLOYMENT_DATA = 'deployment_data.json'
POD_METRICS = 'pod_metrics.json'
DEBUG_INFO = 'debug_info.json'
NARRATIVE = 'ai_prompt.md'

# Every file a run may produce; optional ones are absent when their section is off
ARTIFACT_NAMES = (
    CLUSTER_SUMMARY, HEALTH_STATUS, NAMESPACE_SUMMARY, STATUS_SUMMARY,
    PODS_BY_NAMESPACE_AND_STATUS, PROBLEMATIC_PODS, ROOT_CAUSE_ANALYSIS,
    NODE_DATA, DEPLOYMENT_DATA, POD_METRICS, DEBUG_INFO, NARRATIVE,
)


def cluster_summary(doc: AnalysisDocument) -> Dict[str, Any]:
    h = doc.health
    return {
        'generated_at': doc.generated_at,
        'cluster': dict(doc.cluster),
        'analysis_type': doc.analysis_type,
        'namespaces_analyzed': list(doc.namespaces),
        'ignored_namespaces': list(doc.ignored_namespaces),
        'total_pods': h.total_pods,
        'running_pods': h.running_pods,
        'problematic_pods': h.problematic_pods,
        'health_percentage': h.health_percentage,
        'health_threshold': h.health_threshold,
        'is_healthy': h.is_healthy,
        'status_counts': doc.groupings.status_counts(),
        'namespace_counts': doc.groupings.namespace_counts(),
        'node_count': len(doc.nodes),
        'deployment_count': len(doc.deployments),
        'sections': dict(doc.sections),
    }


def health_status(doc: AnalysisDocument) -> Dict[str, Any]:
    out = doc.health.to_dict()
    out['generated_at'] = doc.generated_at
    return out


def problematic_pods(doc: AnalysisDocument) -> list:
    out = []
    for pod in doc.problematic_pods:
        finding = doc.finding_for(pod)
        entry = pod.to_dict()
        entry['events'] = [e.to_dict() for e in finding.events] if finding else []
        entry['events_note'] = finding.events_note if finding else ''
        out.append(entry)
    return out


def pod_metrics(doc: AnalysisDocument) -> Dict[str, Any]:
    state = doc.sections.get('metrics')
    items = {}
    pods_without_metrics = []
    if state == SECTION_INCLUDED:
        for pod in doc.pods:
            joined = lookup_pod_metrics(doc.metrics, pod.namespace, pod.name)
            if joined.found:
                items[pod.key] = joined.value.to_dict()
            else:
                pods_without_metrics.append(pod.key)
    return {
        'enabled': state != SECTION_DISABLED,
        'available': state == SECTION_INCLUDED,
        'items': items,
        'pods_without_metrics': pods_without_metrics,
    }


def build_json_artifacts(doc: AnalysisDocument) -> Dict[str, Any]:
    """Filename -> JSON-serializable payload, in a fixed order."""
    artifacts: Dict[str, Any] = {
        CLUSTER_SUMMARY: cluster_summary(doc),
        HEALTH_STATUS: health_status(doc),
        NAMESPACE_SUMMARY: doc.groupings.namespace_summary,
        STATUS_SUMMARY: doc.groupings.status_summary,
        PODS_BY_NAMESPACE_AND_STATUS: doc.groupings.nested_dict(),
        PROBLEMATIC_PODS: problematic_pods(doc),
        ROOT_CAUSE_ANALYSIS: [f.to_dict() for f in doc.findings],
    }
    if doc.sections.get('nodes') != SECTION_DISABLED:
        artifacts[NODE_DATA] = [n.to_dict() for n in doc.nodes]
    if doc.sections.get('deployments') != SECTION_DISABLED:
        artifacts[DEPLOYMENT_DATA] = [d.to_dict() for d in doc.deployments]
    # Always written; an empty structure when metrics are disabled
    artifacts[POD_METRICS] = pod_metrics(doc)
    if doc.settings.get('debug_mode'):
        artifacts[DEBUG_INFO] = doc.debug
    return artifacts


def render_artifacts(doc: AnalysisDocument) -> Dict[str, str]:
    """Filename -> file content for every output of one run."""
    files = {
        name: json.dumps(payload, indent=2) + "\n"
        for name, payload in build_json_artifacts(doc).items()
    }
    files[NARRATIVE] = render_narrative(doc)
    return files
