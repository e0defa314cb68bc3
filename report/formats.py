"""
Narrative formats: one composition entry per analysis type.

Each entry is an ordered tuple of fragment ids (see report.fragments) plus
the format-specific questions that close the document. Formats differ only
by this table; the fragment code is shared.
"""
from dataclasses import dataclass
from enum import Enum
from typing import Dict, Tuple


class AnalysisType(str, Enum):
    STANDARD = "standard"
    HEALTH = "health"
    PERFORMANCE = "performance"
    SECURITY = "security"
    TROUBLESHOOTING = "troubleshooting"
    COMPREHENSIVE = "comprehensive"
    RESOURCE = "resource"
    CAPACITY = "capacity"


@dataclass(frozen=True)
class FormatLayout:
    title: str
    intro: str
    fragments: Tuple[str, ...]
    questions: Tuple[str, ...]


LAYOUTS: Dict[AnalysisType, FormatLayout] = {
    AnalysisType.STANDARD: FormatLayout(
        title="Kubernetes Cluster Analysis",
        intro="Analyze the following Kubernetes cluster snapshot and give an overall assessment.",
        fragments=(
            'cluster_context', 'health_overview', 'status_distribution',
            'namespace_distribution', 'problematic_detail', 'root_cause',
            'node_block', 'deployment_block', 'metrics_block', 'analysis_request',
        ),
        questions=(
            "What is the overall health of the cluster?",
            "Which issues need attention first, and why?",
            "What concrete steps would bring the cluster above the health threshold?",
        ),
    ),
    AnalysisType.HEALTH: FormatLayout(
        title="Kubernetes Cluster Health Check",
        intro="Assess the health of the following cluster against its configured threshold.",
        fragments=(
            'cluster_context', 'health_overview', 'status_distribution',
            'problematic_detail', 'root_cause', 'node_block', 'analysis_request',
        ),
        questions=(
            "Is the cluster healthy according to the threshold, and how far from it is it?",
            "Which pods or nodes are dragging the health score down?",
            "Are there early warning signs (restarts, node conditions) that could lower it further?",
            "Which fixes would have the largest effect on the health percentage?",
        ),
    ),
    AnalysisType.PERFORMANCE: FormatLayout(
        title="Kubernetes Performance Analysis",
        intro="Evaluate workload performance and resource usage in the following cluster.",
        fragments=(
            'cluster_context', 'health_overview', 'resource_block',
            'metrics_block', 'node_block', 'deployment_block', 'analysis_request',
        ),
        questions=(
            "Are any workloads using noticeably more or less than they request?",
            "Do restart counts or unready replicas point at performance problems?",
            "Which requests or limits should be tuned, and in which direction?",
            "Is node capacity a bottleneck for the current workload mix?",
        ),
    ),
    AnalysisType.SECURITY: FormatLayout(
        title="Kubernetes Security Review",
        intro="Review the following cluster snapshot for security and hardening concerns.",
        fragments=(
            'cluster_context', 'namespace_distribution', 'container_inventory',
            'deployment_block', 'node_block', 'problematic_detail', 'analysis_request',
        ),
        questions=(
            "Which container images use mutable tags (such as latest) or no tag at all?",
            "Which containers run without resource limits, and what is the risk?",
            "Do node versions or conditions suggest missing patches?",
            "What hardening steps should be prioritized for these namespaces?",
        ),
    ),
    AnalysisType.TROUBLESHOOTING: FormatLayout(
        title="Kubernetes Troubleshooting Report",
        intro="Help troubleshoot the failing workloads in the following cluster.",
        fragments=(
            'cluster_context', 'health_overview', 'problematic_detail',
            'root_cause', 'node_block', 'deployment_block', 'analysis_request',
        ),
        questions=(
            "For each problematic pod, is the likely cause correct given its events?",
            "What commands would you run next to confirm each diagnosis?",
            "Which fixes should be applied, and in what order?",
            "Are several failures likely to share one underlying cause?",
        ),
    ),
    AnalysisType.COMPREHENSIVE: FormatLayout(
        title="Comprehensive Kubernetes Cluster Report",
        intro="Produce a full assessment of the following cluster covering health, workloads, resources and risks.",
        fragments=(
            'cluster_context', 'health_overview', 'status_distribution',
            'namespace_distribution', 'problematic_detail', 'root_cause',
            'node_block', 'deployment_block', 'resource_block',
            'container_inventory', 'metrics_block', 'analysis_request',
        ),
        questions=(
            "What is the overall health of the cluster and its main risks?",
            "Which problematic workloads need attention first, and how should they be fixed?",
            "Are resources requested, limited and sized sensibly?",
            "Are there security or configuration concerns in the workloads shown?",
            "What should be monitored going forward?",
        ),
    ),
    AnalysisType.RESOURCE: FormatLayout(
        title="Kubernetes Resource Allocation Review",
        intro="Review how resources are requested and limited across the following cluster.",
        fragments=(
            'cluster_context', 'namespace_distribution', 'resource_block',
            'container_inventory', 'metrics_block', 'analysis_request',
        ),
        questions=(
            "Which containers are missing requests or limits?",
            "Which namespaces consume the largest share of requested resources?",
            "Where do requests look over- or under-provisioned?",
            "What request/limit values would you recommend?",
        ),
    ),
    AnalysisType.CAPACITY: FormatLayout(
        title="Kubernetes Capacity Planning",
        intro="Assess whether the following cluster has enough capacity for its workloads.",
        fragments=(
            'cluster_context', 'health_overview', 'node_block',
            'resource_block', 'deployment_block', 'metrics_block', 'analysis_request',
        ),
        questions=(
            "How much headroom is left between requested resources and node allocatable?",
            "Are pending pods a sign of insufficient capacity?",
            "Would scaling any deployment exceed current capacity?",
            "Should nodes be added, resized or consolidated?",
        ),
    ),
}


def parse_analysis_type(value: str) -> AnalysisType:
    try:
        return AnalysisType(value)
    except ValueError:
        raise ValueError(
            f"analysis_type must be one of {[t.value for t in AnalysisType]}, got {value!r}"
        )
