"""
Root-cause diagnosis - Heuristic, deterministic
For every problematic pod (status not Running/Succeeded), join its events and
classify a likely cause and a suggested action. No I/O: events are fetched
upstream and handed in.
"""
import logging
from datetime import datetime, timezone
from typing import Dict, Iterable, List, Optional, Tuple

from models import (
    NO_EVENTS,
    DiagnosticFinding,
    EventRecord,
    JoinResult,
    PodRecord,
)

logger = logging.getLogger(__name__)

CAUSE_SCHEDULING = "Scheduling or Resource Issue"
CAUSE_CONTAINER_ERROR = "Container Error"
CAUSE_UNKNOWN = "Unknown"

DEFAULT_ACTION = "inspect cluster events and pod logs"

SUGGESTED_ACTIONS: Dict[str, str] = {
    'ImagePullBackOff': "verify image reference/registry access",
    'ErrImagePull': "verify image reference/registry access",
    'CrashLoopBackOff': "inspect container logs for application-level failure",
    'Unhealthy': "check liveness/readiness probe configuration",
}

_MIN_TS = datetime.min.replace(tzinfo=timezone.utc)


def _parse_timestamp(value: str) -> Optional[datetime]:
    if not value or value == 'unknown':
        return None
    try:
        ts = datetime.fromisoformat(value.replace('Z', '+00:00'))
    except ValueError:
        return None
    if ts.tzinfo is None:
        ts = ts.replace(tzinfo=timezone.utc)
    return ts


def _event_sort_key(event: EventRecord) -> Tuple[int, datetime, str, str]:
    ts = _parse_timestamp(event.last_timestamp)
    # Events without a usable timestamp sort first (oldest)
    return (0 if ts is None else 1, ts or _MIN_TS, event.reason, event.message)


def index_events(events: Iterable[EventRecord]) -> Dict[Tuple[str, str], List[EventRecord]]:
    """Group pod events by (namespace, name), each list in chronological order."""
    index: Dict[Tuple[str, str], List[EventRecord]] = {}
    for e in events:
        if e.involved_kind not in ('Pod', 'unknown'):
            continue
        index.setdefault((e.involved_namespace, e.involved_name), []).append(e)
    return {k: sorted(v, key=_event_sort_key) for k, v in index.items()}


def join_pod_events(index: Dict[Tuple[str, str], List[EventRecord]], pod: PodRecord) -> JoinResult:
    events = index.get((pod.namespace, pod.name)) or []
    if not events:
        return JoinResult(found=False, value=[], note=NO_EVENTS)
    return JoinResult(found=True, value=list(events))


def representative_event(events: List[EventRecord]) -> Optional[EventRecord]:
    """Most recent event of any type."""
    if not events:
        return None
    return sorted(events, key=_event_sort_key)[-1]


def suggested_action(reason: Optional[str]) -> str:
    return SUGGESTED_ACTIONS.get(reason or '', DEFAULT_ACTION)


def classify(status: str, events: List[EventRecord]) -> Tuple[str, str]:
    """Return (likely_cause, suggested_action) for a problematic pod."""
    event = representative_event(events)
    if event is not None:
        return event.reason, suggested_action(event.reason)
    if status == 'Pending':
        return CAUSE_SCHEDULING, DEFAULT_ACTION
    if status == 'Failed':
        return CAUSE_CONTAINER_ERROR, DEFAULT_ACTION
    return CAUSE_UNKNOWN, DEFAULT_ACTION


def diagnose_pod(pod: PodRecord, events: List[EventRecord]) -> DiagnosticFinding:
    ordered = sorted(events, key=_event_sort_key)
    cause, action = classify(pod.status, ordered)
    return DiagnosticFinding(
        name=pod.name,
        namespace=pod.namespace,
        status=pod.status,
        events=ordered,
        likely_cause=cause,
        suggested_action=action,
        events_note='' if ordered else NO_EVENTS,
    )


def diagnose(pods: List[PodRecord], events: Iterable[EventRecord]) -> List[DiagnosticFinding]:
    """One finding per problematic pod, in pod order."""
    index = index_events(events)
    findings: List[DiagnosticFinding] = []
    for pod in pods:
        if not pod.is_problematic:
            continue
        joined = join_pod_events(index, pod)
        finding = diagnose_pod(pod, joined.value)
        logger.debug(f"{pod.key} ({pod.status}): {finding.likely_cause}")
        findings.append(finding)
    logger.info(f"Diagnosed {len(findings)} problematic pod(s)")
    return findings
