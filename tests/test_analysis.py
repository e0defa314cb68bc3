"""
Tests for grouping, health evaluation, root-cause diagnosis and resource totals
"""
import pytest

import sys
from pathlib import Path
sys.path.insert(0, str(Path(__file__).parent.parent))

from analysis.grouping import build_groupings
from analysis.health import evaluate_health, health_percentage
from analysis.resources import summarize_resources
from analysis.root_cause import (
    CAUSE_CONTAINER_ERROR, CAUSE_SCHEDULING, CAUSE_UNKNOWN, DEFAULT_ACTION,
    classify, diagnose, representative_event,
)
from models import NO_EVENTS, ContainerRecord, EventRecord, Groupings, NodeRecord, PodRecord
from normalize.resources import normalize_events, normalize_nodes, normalize_pods


def _pod(name, status='Running', namespace='test-apps'):
    return PodRecord(name=name, namespace=namespace, status=status)


def _event(reason, type_='Warning', ts='2026-01-04T10:00:00Z', name='p1', namespace='test-apps'):
    return EventRecord(type=type_, reason=reason, message=f"{reason} happened", last_timestamp=ts,
                       involved_namespace=namespace, involved_name=name, involved_kind='Pod')


@pytest.fixture
def pods(raw_pods):
    return normalize_pods(raw_pods, ['default', 'test-apps'])


class TestGrouping:

    def test_counts_agree(self, pods):
        g = build_groupings(pods)
        total = len(pods)
        assert g.total_pods == total
        assert sum(s['total_pods'] for s in g.status_summary.values()) == total
        assert sum(s['total_pods'] for s in g.namespace_summary.values()) == total

    def test_summaries(self, pods):
        g = build_groupings(pods)
        assert g.status_counts() == {'Pending': 1, 'Running': 4}
        assert g.namespace_counts() == {'test-apps': 5}
        assert g.namespace_summary['test-apps']['status_breakdown'] == {'Pending': 1, 'Running': 4}
        assert g.status_summary['Pending']['pod_names'] == ['test-apps/postgres-deployment-5b8f6d9c4-uvwxy']
        assert g.status_summary['Running']['namespace_breakdown'] == {'test-apps': 4}

    def test_namespace_without_pods_omitted(self, pods):
        """'default' is analyzed but has no pods, so it has no summary entry"""
        assert 'default' not in build_groupings(pods).namespace_summary

    def test_order_independent(self, pods):
        forward = build_groupings(pods)
        backward = build_groupings(list(reversed(pods)))
        assert forward.namespace_summary == backward.namespace_summary
        assert forward.status_summary == backward.status_summary
        assert forward.nested_dict() == backward.nested_dict()

    def test_nested_round_trip(self, pods):
        nested = build_groupings(pods).nested_dict()
        decoded = [PodRecord.from_dict(p) for statuses in nested.values()
                   for members in statuses.values() for p in members]
        assert build_groupings(decoded).namespace_summary == build_groupings(pods).namespace_summary

    def test_empty(self):
        g = build_groupings([])
        assert isinstance(g, Groupings)
        assert g.total_pods == 0
        assert g.namespace_summary == {}
        assert g.status_summary == {}


class TestHealth:

    def test_scenario_four_of_five(self, pods):
        h = evaluate_health(pods, 90)
        assert h.total_pods == 5
        assert h.running_pods == 4
        assert h.problematic_pods == 1
        assert h.health_percentage == 80.0
        assert h.is_healthy is False

    def test_empty_cluster_is_healthy(self):
        h = evaluate_health([], 90)
        assert h.health_percentage == 100.0
        assert h.is_healthy is True

    def test_floor_not_round(self):
        assert health_percentage(2, 3) == 66.66
        assert health_percentage(1, 3) == 33.33

    def test_monotonic_in_running(self):
        values = [health_percentage(r, 7) for r in range(8)]
        assert values == sorted(values)

    def test_threshold_boundary_inclusive(self):
        pods = [_pod('a'), _pod('b', 'Failed')]
        assert evaluate_health(pods, 50).is_healthy is True
        assert evaluate_health(pods, 50.01).is_healthy is False

    def test_succeeded_is_not_running_but_not_problematic(self):
        h = evaluate_health([_pod('a'), _pod('job', 'Succeeded')], 90)
        assert h.health_percentage == 50.0
        assert h.succeeded_pods == 1
        assert h.problematic_pods == 0

    @pytest.mark.parametrize('threshold', [0, 100.1, -1])
    def test_bad_threshold(self, threshold):
        with pytest.raises(ValueError):
            evaluate_health([], threshold)


class TestRootCause:

    def test_one_finding_per_problematic_pod(self, pods, raw_events):
        events = normalize_events(raw_events, ['test-apps'])
        findings = diagnose(pods, events)
        assert len(findings) == 1
        f = findings[0]
        assert f.name == 'postgres-deployment-5b8f6d9c4-uvwxy'
        assert f.likely_cause == 'FailedScheduling'
        assert f.suggested_action == DEFAULT_ACTION
        assert len(f.events) == 1

    def test_no_events_falls_back_on_status(self):
        assert classify('Pending', []) == (CAUSE_SCHEDULING, DEFAULT_ACTION)
        assert classify('Failed', []) == (CAUSE_CONTAINER_ERROR, DEFAULT_ACTION)
        assert classify('Unknown', []) == (CAUSE_UNKNOWN, DEFAULT_ACTION)

    def test_pod_without_events_carries_sentinel(self):
        findings = diagnose([_pod('p1', 'Pending')], [])
        assert findings[0].events == []
        assert findings[0].events_note == NO_EVENTS

    @pytest.mark.parametrize('reason,action', [
        ('ImagePullBackOff', 'verify image reference/registry access'),
        ('ErrImagePull', 'verify image reference/registry access'),
        ('CrashLoopBackOff', 'inspect container logs for application-level failure'),
        ('Unhealthy', 'check liveness/readiness probe configuration'),
        ('FailedMount', DEFAULT_ACTION),
    ])
    def test_action_table(self, reason, action):
        assert classify('Pending', [_event(reason)]) == (reason, action)

    def test_most_recent_event_wins_over_older_warnings(self):
        events = [
            _event('ImagePullBackOff', ts='2026-01-04T10:00:00Z'),
            _event('CrashLoopBackOff', ts='2026-01-04T10:05:00Z'),
            _event('Pulled', type_='Normal', ts='2026-01-04T10:10:00Z'),
        ]
        assert representative_event(events).reason == 'Pulled'

    def test_newer_normal_event_sets_likely_cause(self):
        events = [
            _event('FailedScheduling', ts='2026-01-04T10:00:00Z', name='p1'),
            _event('Scheduled', type_='Normal', ts='2026-01-04T10:05:00Z', name='p1'),
        ]
        finding = diagnose([_pod('p1', 'Pending')], events)[0]
        assert finding.likely_cause == 'Scheduled'
        assert finding.suggested_action == DEFAULT_ACTION

    def test_most_recent_event_when_no_warning(self):
        events = [
            _event('Scheduled', type_='Normal', ts='2026-01-04T10:00:00Z'),
            _event('Pulling', type_='Normal', ts='2026-01-04T10:01:00Z'),
        ]
        assert representative_event(events).reason == 'Pulling'

    def test_events_of_other_pods_and_kinds_ignored(self):
        other = _event('BackOff', name='p2')
        rs = EventRecord(type='Warning', reason='FailedCreate', message='quota', involved_namespace='test-apps',
                         involved_name='p1', involved_kind='ReplicaSet')
        findings = diagnose([_pod('p1', 'Failed')], [other, rs])
        assert findings[0].likely_cause == CAUSE_CONTAINER_ERROR

    def test_healthy_pods_have_no_findings(self):
        assert diagnose([_pod('a'), _pod('b', 'Succeeded')], [_event('Unhealthy', name='a')]) == []

    def test_input_order_irrelevant(self):
        events = [_event('ImagePullBackOff', ts='2026-01-04T10:00:00Z'),
                  _event('ErrImagePull', ts='2026-01-04T09:59:00Z')]
        a = diagnose([_pod('p1', 'Pending')], events)
        b = diagnose([_pod('p1', 'Pending')], list(reversed(events)))
        assert [f.to_dict() for f in a] == [f.to_dict() for f in b]


class TestResourceSummary:

    def test_totals_and_allocatable(self, pods, raw_nodes):
        r = summarize_resources(pods, normalize_nodes(raw_nodes))
        t = r['totals']
        # 3 x nginx (100m/128Mi) + 2 x postgres (250m/256Mi)
        assert t['cpu_requests_cores'] == pytest.approx(0.8)
        assert t['memory_requests_bytes'] == 3 * 128 * 2 ** 20 + 2 * 256 * 2 ** 20
        assert r['allocatable']['cpu_cores'] == pytest.approx(3.8)
        assert r['allocatable']['memory_bytes'] == 7 * 2 ** 30
        assert r['requested_percent']['cpu'] == pytest.approx(21.05)
        assert r['containers_total'] == 5
        assert r['containers_without_requests'] == 0

    def test_unset_quantities_counted_not_summed(self):
        pod = PodRecord(name='p', namespace='default', status='Running',
                        containers=[ContainerRecord(name='c', image='busybox')])
        r = summarize_resources([pod], [])
        assert r['totals']['cpu_requests_cores'] == 0.0
        assert r['containers_without_requests'] == 1
        assert r['containers_without_limits'] == 1
        assert r['allocatable'] == {'cpu_cores': None, 'memory_bytes': None}
        assert r['requested_percent'] == {'cpu': None, 'memory': None}

    def test_allocatable_falls_back_to_capacity(self):
        node = NodeRecord(name='n1', capacity={'cpu': '2', 'memory': '4Gi'})
        r = summarize_resources([], [node])
        assert r['allocatable']['cpu_cores'] == 2.0
