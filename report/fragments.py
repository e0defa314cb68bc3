"""
Shared narrative fragments.

Every fragment takes the analysis document (and the selected layout) and
returns markdown lines. An empty list means the fragment is left out; that is
how disabled sections disappear without touching the surrounding structure.
Fragments only read the document.
"""
from typing import Callable, Dict, List

from metrics.pod_metrics import lookup_pod_metrics, pod_usage_totals
from models import (
    NO_EVENTS,
    SECTION_DISABLED,
    SECTION_UNAVAILABLE,
    AnalysisDocument,
)
from normalize.quantities import format_cpu, format_memory
from report.formats import FormatLayout

Fragment = Callable[[AnalysisDocument, FormatLayout], List[str]]

# Node conditions where "True" is bad news
_PRESSURE_CONDITIONS = ('MemoryPressure', 'DiskPressure', 'PIDPressure', 'NetworkUnavailable')


def _pct(value) -> str:
    return 'n/a' if value is None else f"{value:.2f}%"


def _unavailable(title: str, what: str) -> List[str]:
    return [f"## {title}", "", f"_{what} not available for this snapshot._"]


def cluster_context(doc: AnalysisDocument, layout: FormatLayout) -> List[str]:
    cluster = doc.cluster
    ignored = ', '.join(doc.ignored_namespaces) or 'none'
    analyzed = ', '.join(doc.namespaces) or 'none'
    return [
        "## Cluster Context",
        "",
        f"- Cluster: {cluster.get('name')}",
        f"- Platform: {cluster.get('platform')}",
        f"- CPU: {cluster.get('cpu')}",
        f"- Memory: {cluster.get('memory')}",
        f"- Analysis type: {doc.analysis_type}",
        f"- Generated at: {doc.generated_at}",
        f"- Health threshold: {doc.health.health_threshold:.2f}%",
        f"- Namespaces analyzed ({len(doc.namespaces)}): {analyzed}",
        f"- Namespaces ignored: {ignored}",
    ]


def health_overview(doc: AnalysisDocument, layout: FormatLayout) -> List[str]:
    h = doc.health
    verdict = "HEALTHY" if h.is_healthy else "UNHEALTHY"
    return [
        "## Health Overview",
        "",
        f"- Health: {h.health_percentage:.2f}% of pods running (threshold {h.health_threshold:.2f}%): **{verdict}**",
        f"- Total pods: {h.total_pods}",
        f"- Running: {h.running_pods}",
        f"- Succeeded: {h.succeeded_pods}",
        f"- Problematic: {h.problematic_pods}",
    ]


def status_distribution(doc: AnalysisDocument, layout: FormatLayout) -> List[str]:
    lines = ["## Pod Status Distribution", ""]
    summary = doc.groupings.status_summary
    if not summary:
        return lines + ["No pods found in the analyzed namespaces."]
    lines += ["| Status | Pods | Members |", "|---|---|---|"]
    for status, s in summary.items():
        lines.append(f"| {status} | {s['total_pods']} | {', '.join(s['pod_names'])} |")
    return lines


def namespace_distribution(doc: AnalysisDocument, layout: FormatLayout) -> List[str]:
    lines = ["## Namespace Distribution", ""]
    summary = doc.groupings.namespace_summary
    if not summary:
        return lines + ["No pods found in the analyzed namespaces."]
    lines += ["| Namespace | Pods | Status breakdown |", "|---|---|---|"]
    for ns, s in summary.items():
        breakdown = ', '.join(f"{k}: {v}" for k, v in s['status_breakdown'].items())
        lines.append(f"| {ns} | {s['total_pods']} | {breakdown} |")
    return lines


def problematic_detail(doc: AnalysisDocument, layout: FormatLayout) -> List[str]:
    lines = ["## Problematic Pods", ""]
    pods = doc.problematic_pods
    if not pods:
        return lines + ["No problematic pods found."]
    for pod in pods:
        lines += [
            f"### {pod.key} ({pod.status})",
            "",
            f"- Node: {pod.node_name}",
            f"- Pod IP: {pod.pod_ip}",
            f"- Started: {pod.start_time}",
            f"- Restarts: {pod.restart_count}",
            "- Containers:",
        ]
        if not pod.containers:
            lines.append("  - none declared")
        for c in pod.containers:
            lines.append(f"  - {c.name} ({c.image}): ready={c.ready}, state={c.state}, restarts={c.restart_count}")
        finding = doc.finding_for(pod)
        events = finding.events if finding else []
        lines.append("- Events:")
        if not events:
            lines.append(f"  - {NO_EVENTS}")
        for e in events:
            lines.append(f"  - [{e.type}] {e.reason} (x{e.count}, last {e.last_timestamp}): {e.message}")
        lines.append("")
    return lines[:-1]


def root_cause(doc: AnalysisDocument, layout: FormatLayout) -> List[str]:
    lines = ["## Root Cause Analysis", ""]
    if not doc.findings:
        return lines + ["No problematic pods to diagnose."]
    lines += ["| Pod | Status | Likely cause | Suggested action |", "|---|---|---|---|"]
    for f in doc.findings:
        lines.append(f"| {f.namespace}/{f.name} | {f.status} | {f.likely_cause} | {f.suggested_action} |")
    return lines


def node_block(doc: AnalysisDocument, layout: FormatLayout) -> List[str]:
    state = doc.sections.get('nodes')
    if state == SECTION_DISABLED:
        return []
    if state == SECTION_UNAVAILABLE:
        return _unavailable("Nodes", "Node information")
    lines = ["## Nodes", ""]
    if not doc.nodes:
        return lines + ["No nodes reported."]
    lines += ["| Node | Ready | Kubelet | CPU | Memory | Pods |", "|---|---|---|---|---|---|"]
    alerts: List[str] = []
    for n in doc.nodes:
        lines.append(
            f"| {n.name} | {n.ready} | {n.kubelet_version} | {n.capacity.get('cpu', 'n/a')} "
            f"| {n.capacity.get('memory', 'n/a')} | {n.capacity.get('pods', 'n/a')} |"
        )
        for c in n.conditions:
            bad = (c.type == 'Ready' and c.status != 'True') or (c.type in _PRESSURE_CONDITIONS and c.status == 'True')
            if bad:
                alert = f"- {n.name}: {c.type}={c.status} ({c.reason or 'no reason'})"
                alerts.append(f"{alert}: {c.message}" if c.message else alert)
    if alerts:
        lines += ["", "Node conditions needing attention:"] + alerts
    return lines


def deployment_block(doc: AnalysisDocument, layout: FormatLayout) -> List[str]:
    state = doc.sections.get('deployments')
    if state == SECTION_DISABLED:
        return []
    if state == SECTION_UNAVAILABLE:
        return _unavailable("Deployments", "Deployment information")
    lines = ["## Deployments", ""]
    if not doc.deployments:
        return lines + ["No deployments found in the analyzed namespaces."]
    lines += ["| Deployment | Desired | Ready | Available | Updated | Strategy |", "|---|---|---|---|---|---|"]
    degraded = []
    for d in doc.deployments:
        lines.append(
            f"| {d.namespace}/{d.name} | {d.replicas} | {d.ready_replicas} | {d.available_replicas} "
            f"| {d.updated_replicas} | {d.strategy} |"
        )
        if not d.fully_available:
            degraded.append(f"- {d.namespace}/{d.name}: {d.available_replicas}/{d.replicas} replicas available")
    if degraded:
        lines += ["", "Deployments below desired availability:"] + degraded
    return lines


def resource_block(doc: AnalysisDocument, layout: FormatLayout) -> List[str]:
    r = doc.resource_totals
    t = r['totals']
    alloc = r['allocatable']
    pct = r['requested_percent']
    lines = [
        "## Resource Requests and Limits",
        "",
        f"- CPU requested: {format_cpu(t['cpu_requests_cores'])} (limits {format_cpu(t['cpu_limits_cores'])})",
        f"- Memory requested: {format_memory(t['memory_requests_bytes'])} (limits {format_memory(t['memory_limits_bytes'])})",
        f"- Allocatable: CPU {format_cpu(alloc['cpu_cores'])}, memory {format_memory(alloc['memory_bytes'])}",
        f"- Requested share of allocatable: CPU {_pct(pct['cpu'])}, memory {_pct(pct['memory'])}",
        f"- Containers: {r['containers_total']} total, {r['containers_without_requests']} without requests, "
        f"{r['containers_without_limits']} without limits",
    ]
    if r['by_namespace']:
        lines += ["", "| Namespace | CPU requests | CPU limits | Memory requests | Memory limits |", "|---|---|---|---|---|"]
        for ns, v in r['by_namespace'].items():
            lines.append(
                f"| {ns} | {format_cpu(v['cpu_requests_cores'])} | {format_cpu(v['cpu_limits_cores'])} "
                f"| {format_memory(v['memory_requests_bytes'])} | {format_memory(v['memory_limits_bytes'])} |"
            )
    return lines


def _image_tag_note(image: str) -> str:
    name = image.rsplit('/', 1)[-1]
    if '@' in name:
        return 'pinned digest'
    if ':' not in name:
        return 'no tag'
    if name.endswith(':latest'):
        return 'mutable tag'
    return ''


def container_inventory(doc: AnalysisDocument, layout: FormatLayout) -> List[str]:
    lines = ["## Container Inventory", ""]
    rows = []
    for pod in doc.pods:
        for c in pod.containers:
            req = c.resources['requests']
            lim = c.resources['limits']
            rows.append(
                f"| {pod.key} | {c.name} | {c.image} | {_image_tag_note(c.image) or '-'} "
                f"| {req['cpu'] or '-'} / {req['memory'] or '-'} | {lim['cpu'] or '-'} / {lim['memory'] or '-'} |"
            )
    if not rows:
        return lines + ["No containers found in the analyzed namespaces."]
    return lines + [
        "| Pod | Container | Image | Image note | Requests (cpu/mem) | Limits (cpu/mem) |",
        "|---|---|---|---|---|---|",
    ] + rows


def metrics_block(doc: AnalysisDocument, layout: FormatLayout) -> List[str]:
    state = doc.sections.get('metrics')
    if state == SECTION_DISABLED:
        return []
    if state == SECTION_UNAVAILABLE:
        return _unavailable("Resource Usage Metrics", "Resource usage metrics")
    lines = ["## Resource Usage Metrics", ""]
    rows = []
    missing = []
    for pod in doc.pods:
        joined = lookup_pod_metrics(doc.metrics, pod.namespace, pod.name)
        if not joined.found:
            missing.append(pod.key)
            continue
        usage = pod_usage_totals(joined.value)
        rows.append(
            f"| {pod.key} | {format_cpu(usage['cpu_cores'])} | {format_memory(usage['memory_bytes'])} "
            f"| {joined.value.timestamp} |"
        )
    if rows:
        lines += ["| Pod | CPU | Memory | Sampled at |", "|---|---|---|---|"] + rows
    if missing:
        if rows:
            lines.append("")
        lines.append(f"Pods with no metrics ({len(missing)}): {', '.join(missing)}")
    if not rows and not missing:
        lines.append("No pods to report usage for.")
    return lines


def analysis_request(doc: AnalysisDocument, layout: FormatLayout) -> List[str]:
    lines = ["## Analysis Request", "", layout.intro, "", "Please answer the following:", ""]
    for i, q in enumerate(layout.questions, start=1):
        lines.append(f"{i}. {q}")
    return lines


FRAGMENTS: Dict[str, Fragment] = {
    'cluster_context': cluster_context,
    'health_overview': health_overview,
    'status_distribution': status_distribution,
    'namespace_distribution': namespace_distribution,
    'problematic_detail': problematic_detail,
    'root_cause': root_cause,
    'node_block': node_block,
    'deployment_block': deployment_block,
    'resource_block': resource_block,
    'container_inventory': container_inventory,
    'metrics_block': metrics_block,
    'analysis_request': analysis_request,
}
