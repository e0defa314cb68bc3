import logging
from typing import Any, Dict, List, Optional

from models import (
    AnalysisDocument,
    DeploymentRecord,
    DiagnosticFinding,
    Groupings,
    HealthSummary,
    MetricSample,
    NodeRecord,
    PodRecord,
)

logger = logging.getLogger(__name__)


def compose_document(
    settings: Dict[str, Any],
    generated_at: str,
    namespaces: List[str],
    pods: List[PodRecord],
    groupings: Groupings,
    health: HealthSummary,
    findings: List[DiagnosticFinding],
    resource_totals: Dict[str, Any],
    sections: Dict[str, str],
    nodes: Optional[List[NodeRecord]] = None,
    deployments: Optional[List[DeploymentRecord]] = None,
    metrics: Optional[Dict[str, MetricSample]] = None,
    debug: Optional[Dict[str, Any]] = None,
) -> AnalysisDocument:
    """Assemble the complete document.

    Always the superset: sections that were disabled or unavailable are empty
    collections with their state recorded in `sections`, never missing fields.
    """
    doc = AnalysisDocument(
        generated_at=generated_at,
        analysis_type=settings['analysis_type'],
        cluster={
            'name': settings.get('cluster_name', 'unknown'),
            'platform': settings.get('cluster_platform', 'unknown'),
            'cpu': settings.get('cluster_cpu', 'unknown'),
            'memory': settings.get('cluster_memory', 'unknown'),
        },
        settings=dict(settings),
        namespaces=list(namespaces),
        ignored_namespaces=sorted(settings.get('ignore_namespaces') or []),
        pods=list(pods),
        nodes=list(nodes or []),
        deployments=list(deployments or []),
        metrics=dict(metrics or {}),
        groupings=groupings,
        health=health,
        findings=list(findings),
        resource_totals=resource_totals,
        sections=dict(sections),
        debug=dict(debug or {}),
    )
    logger.info(
        f"Composed document: {len(doc.pods)} pods, {len(doc.findings)} findings, sections={doc.sections}"
    )
    return doc
